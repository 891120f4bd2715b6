"""
Command-line interface for OrthoEdit.

OrthoEdit: ortholog variant mapping and yeast CRISPR repair-template design
"""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .config import AnalysisConfig, DesignConfig, parse_sequence_input


def _setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


def _load_sequence(value, alphabet, label):
    try:
        return parse_sequence_input(value, alphabet)
    except ValueError as e:
        click.echo(f"Error loading {label}: {e}", err=True)
        sys.exit(1)


def _print_designs(designs):
    if not designs:
        click.echo("\nNo viable repair design found.")
        return

    click.echo(f"\n{len(designs)} repair design(s):")
    for rank, d in enumerate(designs, start=1):
        score = d.score if d.score is not None else 'NA'
        click.echo(f"\n  #{rank} {d.guide_with_pam} ({d.site.strand.value}, "
                   f"position {d.site.position + 1}, score {score})")
        click.echo(f"     Strategy:        {d.strategy.value} "
                   f"({d.silent_mutation_count} silent)")
        click.echo(f"     Repair template: {d.repair_template}")
        click.echo(f"     Oligo A:         {d.cloning_oligo_a}")
        click.echo(f"     Oligo B:         {d.cloning_oligo_b}")


@click.group()
@click.version_option(version=__version__)
def cli():
    """OrthoEdit: map human variants to yeast and design CRISPR repair templates."""
    pass


@cli.command()
@click.option('--human', '-a', type=str, required=True,
              help='Human protein: sequence or FASTA file path')
@click.option('--yeast', '-b', type=str, required=True,
              help='Yeast protein: sequence or FASTA file path')
@click.option('--output', '-o', type=click.Path(),
              help='Write the gapped alignment as FASTA')
@click.option('--width', type=int, default=60,
              help='Alignment display width (default: 60)')
def align(human, yeast, output, width):
    """Align a human protein with its yeast ortholog."""
    from .core.alignment import align_sequences
    from .io.output import write_alignment_fasta

    human_seq = _load_sequence(human, 'protein', 'human protein')
    yeast_seq = _load_sequence(yeast, 'protein', 'yeast protein')

    pair = align_sequences(human_seq, yeast_seq)

    click.echo(f"Score:      {pair.score}")
    click.echo(f"Length:     {pair.length}")
    click.echo(f"Identity:   {pair.percent_identity:.1f}%")
    click.echo(f"Similarity: {pair.percent_similarity:.1f}%")
    if pair.exceeds_recommended_size:
        click.echo("Warning: alignment exceeds the recommended size", err=True)
    click.echo("")
    click.echo(pair.format(width))

    if output:
        write_alignment_fasta(pair, Path(output))
        click.echo(f"\nAlignment written to: {output}")


@cli.command()
@click.option('--human', '-a', type=str, required=True,
              help='Human protein: sequence or FASTA file path')
@click.option('--yeast', '-b', type=str, required=True,
              help='Yeast protein: sequence or FASTA file path')
@click.option('--variant', '-v', type=str, required=True,
              help='Human protein change (R114W or p.Arg114Trp)')
def locate(human, yeast, variant):
    """Map a human residue onto the yeast ortholog."""
    from .pipeline import VariantPipeline

    human_seq = _load_sequence(human, 'protein', 'human protein')
    yeast_seq = _load_sequence(yeast, 'protein', 'yeast protein')

    pipeline = VariantPipeline(human_seq, yeast_seq)
    try:
        result = pipeline.analyze(variant)
    except ValueError as e:
        click.echo(f"Error parsing variant: {e}", err=True)
        sys.exit(1)

    mapping = result.mapping
    click.echo(f"Variant:      {result.change.short}")
    click.echo(f"Conservation: {result.call.value}")
    if mapping.is_mappable:
        click.echo(f"Yeast:        {mapping.yeast_aa}{mapping.yeast_residue}")
        click.echo(f"Yeast change: {result.yeast_change}")
    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)


@cli.command()
@click.option('--cds', '-d', type=str, required=True,
              help='Coding sequence (frame starts at base 1): DNA or FASTA file path')
@click.option('--position', '-p', type=int, required=True,
              help='1-based codon number to mutate')
@click.option('--target', '-t', type=str, required=True,
              help='One-letter code of the new amino acid')
@click.option('--output', '-o', type=click.Path(),
              help='Write designs to TSV')
@click.option('--window', type=int, default=105,
              help='Site search window in nt (default: 105)')
@click.option('--verbose', is_flag=True, help='Debug logging')
def design(cds, position, target, output, window, verbose):
    """Find Cas9 sites and design repair templates for a codon change."""
    from .crispr import design_repair_templates, find_cas9_sites
    from .io.output import write_designs_tsv

    _setup_logging(verbose)

    sequence = _load_sequence(cds, 'dna', 'coding sequence')
    config = DesignConfig(site_window=window)
    errors = config.validate()
    if errors:
        click.echo(f"Error: {'; '.join(errors)}", err=True)
        sys.exit(1)

    sites = find_cas9_sites(sequence, position, config.site_window)
    click.echo(f"Found {len(sites)} candidate Cas9 sites near codon {position}")

    designs = design_repair_templates(sequence, sites, position, target, config)
    _print_designs(designs)

    if output:
        write_designs_tsv(designs, Path(output))
        click.echo(f"\nDesigns written to: {output}")


def _pipeline_from_options(config, human, yeast, cds):
    """Build a pipeline from a YAML config with command-line overrides."""
    from .pipeline import VariantPipeline

    if config:
        try:
            analysis_config = AnalysisConfig.from_yaml(Path(config))
        except (OSError, ValueError) as e:
            click.echo(f"Error loading config: {e}", err=True)
            sys.exit(1)
    else:
        analysis_config = AnalysisConfig()

    if human:
        analysis_config.human_protein = _load_sequence(human, 'protein', 'human protein')
    if yeast:
        analysis_config.yeast_protein = _load_sequence(yeast, 'protein', 'yeast protein')
    if cds:
        analysis_config.yeast_cds = _load_sequence(cds, 'dna', 'coding sequence')

    try:
        pipeline = VariantPipeline.from_config(analysis_config)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    return analysis_config, pipeline


@cli.command()
@click.option('--config', '-c', type=click.Path(exists=True),
              help='YAML configuration file')
@click.option('--human', '-a', type=str,
              help='Human protein: sequence or FASTA file path')
@click.option('--yeast', '-b', type=str,
              help='Yeast protein: sequence or FASTA file path')
@click.option('--cds', '-d', type=str,
              help='Yeast coding sequence: DNA or FASTA file path')
@click.option('--variant', '-v', type=str,
              help='Human protein change (R114W or p.Arg114Trp)')
@click.option('--output', '-o', type=click.Path(),
              help='Output directory')
@click.option('--verbose', is_flag=True, help='Debug logging')
def analyze(config, human, yeast, cds, variant, output, verbose):
    """
    Run the full pipeline for one variant.

    Sequences and the variant come from --config, from options, or both
    (options win).

    \b
    Example:
      orthoedit analyze -a human.fasta -b yeast.fasta -d yeast_orf.fasta \\
                        -v p.Arg114Trp -o results/
    """
    from .io.output import generate_summary_report, write_alignment_fasta, write_designs_tsv

    _setup_logging(verbose)

    analysis_config, pipeline = _pipeline_from_options(config, human, yeast, cds)

    variant = variant or analysis_config.variant
    if not variant:
        click.echo("Error: --variant is required (or 'variant' in the config)", err=True)
        sys.exit(1)

    try:
        result = pipeline.analyze(variant)
    except ValueError as e:
        click.echo(f"Error parsing variant: {e}", err=True)
        sys.exit(1)

    click.echo(f"\n{result.variant_id}: {result.mapping}")
    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)
    if pipeline.yeast_cds is not None and result.mapping.is_mappable:
        click.echo(f"Candidate sites: {result.n_sites}")
        _print_designs(result.designs)

    output_dir = output or (analysis_config.output_dir if config else None)
    if output_dir:
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)
        write_alignment_fasta(pipeline.alignment, output_path / 'alignment.fasta')
        write_designs_tsv(result.designs, output_path / f"{result.variant_id}_designs.tsv")
        generate_summary_report(result, pipeline.alignment,
                                output_path / f"{result.variant_id}_report.md")
        click.echo(f"\nResults written to: {output_path}")


@cli.command()
@click.option('--variant-key', '-k', type=click.Path(exists=True),
              help='Variant key TSV (variant_id, protein_change columns)')
@click.option('--config', '-c', type=click.Path(exists=True),
              help='YAML configuration file')
@click.option('--human', '-a', type=str,
              help='Human protein: sequence or FASTA file path')
@click.option('--yeast', '-b', type=str,
              help='Yeast protein: sequence or FASTA file path')
@click.option('--cds', '-d', type=str,
              help='Yeast coding sequence: DNA or FASTA file path')
@click.option('--output', '-o', type=click.Path(), required=True,
              help='Output directory')
@click.option('--verbose', is_flag=True, help='Debug logging')
def batch(variant_key, config, human, yeast, cds, output, verbose):
    """
    Run the pipeline for every variant in a variant key.

    A variant that fails is reported in the summary and does not stop the
    others.

    \b
    Example:
      orthoedit batch -k variants.tsv -a human.fasta -b yeast.fasta \\
                      -d yeast_orf.fasta -o results/
    """
    from .io.output import write_alignment_fasta, write_batch_summary_tsv, write_designs_tsv
    from .io.variant_key import load_variant_key

    _setup_logging(verbose)

    analysis_config, pipeline = _pipeline_from_options(config, human, yeast, cds)

    key_path = variant_key or analysis_config.variant_key
    if not key_path:
        click.echo("Error: --variant-key is required (or 'variant_key' in the config)", err=True)
        sys.exit(1)

    try:
        entries = load_variant_key(Path(key_path))
    except (OSError, ValueError) as e:
        click.echo(f"Error loading variant key: {e}", err=True)
        sys.exit(1)
    click.echo(f"Loaded {len(entries)} variants")

    results = pipeline.analyze_many({e.variant_id: e.protein_change for e in entries})

    output_path = Path(output)
    output_path.mkdir(parents=True, exist_ok=True)
    write_alignment_fasta(pipeline.alignment, output_path / 'alignment.fasta')
    for result in results:
        if result.designs:
            write_designs_tsv(result.designs, output_path / f"{result.variant_id}_designs.tsv")
    summary_path = write_batch_summary_tsv(results, output_path / 'variant_summary.tsv')

    n_failed = sum(1 for r in results if not r.succeeded)
    n_designed = sum(1 for r in results if r.designs)
    click.echo("\nBatch complete!")
    click.echo(f"Processed {len(results)} variants ({n_designed} with designs, {n_failed} failed)")
    click.echo(f"Summary written to: {summary_path}")


@cli.command()
@click.option('--output', '-o', type=click.Path(), default='orthoedit_config.yaml',
              help='Output config file path')
@click.option('--variant-key', '-k', type=click.Path(),
              help='Also write a template variant key TSV to this path')
@click.option('--gene', type=str,
              help='Gene name used in the variant key example ids')
def init(output, variant_key, gene):
    """Generate a template configuration file (and optionally a variant key)."""
    from .config import write_config_template
    from .io.variant_key import create_variant_key_template

    write_config_template(Path(output))
    click.echo(f"Generated configuration template: {output}")

    if variant_key:
        create_variant_key_template(Path(variant_key), gene=gene)
        click.echo(f"Generated variant key template: {variant_key}")

    click.echo("\nEdit the template(s) and run:")
    if variant_key:
        click.echo(f"  orthoedit batch --config {output} --variant-key {variant_key} -o results/")
    else:
        click.echo(f"  orthoedit analyze --config {output}")


if __name__ == '__main__':
    cli()
