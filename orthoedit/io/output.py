"""
Output generation for OrthoEdit results.
"""

from pathlib import Path
from typing import Dict, List
import pandas as pd
import logging

from ..core.alignment import AlignedPair
from ..crispr.repair import RepairDesign
from ..pipeline import VariantAnalysis

logger = logging.getLogger(__name__)

DESIGN_COLUMNS = [
    'rank', 'site_position', 'strand', 'guide_with_pam', 'score', 'strategy',
    'silent_mutations', 'aa_changes', 'homology_start', 'repair_template',
    'deletion_repair_template', 'cloning_oligo_a', 'cloning_oligo_b',
]


def design_to_row(design: RepairDesign, rank: int) -> Dict:
    """Flatten a RepairDesign into one table row."""
    site = design.site
    return {
        'rank': rank,
        'site_position': site.position + 1,
        'strand': site.strand.value,
        'guide_with_pam': design.guide_with_pam,
        'score': design.score if design.score is not None else 'NA',
        'strategy': design.strategy.value,
        'silent_mutations': design.silent_mutation_count,
        'aa_changes': design.aa_changes_count,
        'homology_start': design.homology_start + 1,
        'repair_template': design.repair_template,
        'deletion_repair_template': design.deletion_repair_template,
        'cloning_oligo_a': design.cloning_oligo_a,
        'cloning_oligo_b': design.cloning_oligo_b,
    }


def write_designs_tsv(
    designs: List[RepairDesign],
    output_path: Path,
) -> Path:
    """
    Write repair designs to TSV file.

    Positions are written 1-based.

    Args:
        designs: Ranked designs
        output_path: Path for output TSV

    Returns:
        Path to written file
    """
    rows = [design_to_row(d, rank) for rank, d in enumerate(designs, start=1)]

    df = pd.DataFrame(rows, columns=DESIGN_COLUMNS)
    df.to_csv(output_path, sep='\t', index=False)

    logger.info(f"Wrote {len(rows)} designs to {output_path}")

    return output_path


def write_batch_summary_tsv(
    results: List[VariantAnalysis],
    output_path: Path,
) -> Path:
    """
    Write one row per analyzed variant.

    Args:
        results: Pipeline results
        output_path: Path for output TSV

    Returns:
        Path to written file
    """
    rows = []

    for r in results:
        mapping = r.mapping
        best = r.designs[0] if r.designs else None
        rows.append({
            'variant_id': r.variant_id,
            'protein_change': r.change.short if r.change else 'NA',
            'conservation': r.call.value,
            'human_aa': mapping.human_aa if mapping and mapping.human_aa else 'NA',
            'yeast_aa': mapping.yeast_aa if mapping and mapping.yeast_aa else 'NA',
            'yeast_residue': mapping.yeast_residue if mapping and mapping.yeast_residue else 'NA',
            'yeast_change': r.yeast_change or 'NA',
            'reference_mismatch': bool(mapping and mapping.reference_mismatch),
            'n_sites': r.n_sites,
            'n_designs': len(r.designs),
            'best_guide': best.guide_with_pam if best else 'NA',
            'best_score': best.score if best and best.score is not None else 'NA',
            'best_strategy': best.strategy.value if best else 'NA',
            'warnings': '; '.join(r.warnings),
            'error': r.error or '',
        })

    df = pd.DataFrame(rows)
    df.to_csv(output_path, sep='\t', index=False)

    logger.info(f"Wrote batch summary to {output_path}")

    return output_path


def write_alignment_fasta(
    pair: AlignedPair,
    output_path: Path,
    name_a: str = 'human',
    name_b: str = 'yeast',
    width: int = 60,
) -> Path:
    """Write the gapped alignment as a two-record FASTA file."""
    with open(output_path, 'w') as f:
        for name, seq in ((name_a, pair.aligned_a), (name_b, pair.aligned_b)):
            f.write(f">{name}\n")
            for start in range(0, len(seq), width):
                f.write(seq[start:start + width] + "\n")

    logger.info(f"Wrote alignment to {output_path}")

    return output_path


def generate_summary_report(
    analysis: VariantAnalysis,
    pair: AlignedPair,
    output_path: Path,
) -> Path:
    """
    Generate a summary report for one variant in markdown format.

    Args:
        analysis: Pipeline result
        pair: The human/yeast alignment used
        output_path: Path for output markdown file

    Returns:
        Path to written file
    """
    mapping = analysis.mapping

    with open(output_path, 'w') as f:
        f.write(f"# OrthoEdit Report: {analysis.variant_id}\n\n")

        f.write("## Alignment\n\n")
        f.write(f"- **Length:** {pair.length} columns\n")
        f.write(f"- **Identity:** {pair.percent_identity:.1f}%\n")
        f.write(f"- **Similarity:** {pair.percent_similarity:.1f}%\n\n")

        f.write("## Conservation\n\n")
        if mapping is not None:
            f.write(f"- **Human residue:** {mapping.human_aa or 'NA'}{mapping.human_residue}\n")
            yeast = (f"{mapping.yeast_aa}{mapping.yeast_residue}"
                     if mapping.is_mappable else '-')
            f.write(f"- **Yeast residue:** {yeast}\n")
        f.write(f"- **Status:** {analysis.call.value}\n\n")

        if analysis.warnings:
            f.write("## Warnings\n\n")
            for warning in analysis.warnings:
                f.write(f"- {warning}\n")
            f.write("\n")

        f.write("## Repair Designs\n\n")
        if not analysis.designs:
            f.write("No viable repair design found.\n")
        else:
            f.write("| Rank | Guide + PAM | Strand | Score | Strategy | Silent |\n")
            f.write("|------|-------------|--------|-------|----------|--------|\n")
            for rank, d in enumerate(analysis.designs, start=1):
                score = d.score if d.score is not None else 'NA'
                f.write(f"| {rank} | {d.guide_with_pam} | {d.site.strand.value} | "
                        f"{score} | {d.strategy.value} | {d.silent_mutation_count} |\n")
        f.write("\n")

    logger.info(f"Wrote summary report to {output_path}")

    return output_path
