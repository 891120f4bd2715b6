"""
Configuration classes and sequence input handling for OrthoEdit.

OrthoEdit: ortholog variant mapping and yeast CRISPR repair-template design
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional
import re
import yaml


# Regex to detect if string is pure DNA / protein sequence
DNA_PATTERN = re.compile(r'^[ACGTacgtNn]+$')
PROTEIN_PATTERN = re.compile(r'^[ACDEFGHIKLMNPQRSTVWYXacdefghiklmnpqrstvwyx*]+$')

SEQUENCE_PATTERNS = {
    'dna': DNA_PATTERN,
    'protein': PROTEIN_PATTERN,
}

FASTA_SUFFIXES = ('.fa', '.fasta', '.faa', '.fna', '.txt')


def is_dna_sequence(s: str) -> bool:
    """Check if string is a pure DNA sequence (not a file path)."""
    return bool(s) and bool(DNA_PATTERN.match(s))


def is_protein_sequence(s: str) -> bool:
    """Check if string is a pure amino-acid sequence (not a file path)."""
    return bool(s) and bool(PROTEIN_PATTERN.match(s))


def parse_sequence_input(value: str, alphabet: str = 'dna') -> str:
    """
    Parse sequence input - can be either a literal sequence or a FASTA file path.

    Args:
        value: Either a sequence string or path to a FASTA file
        alphabet: 'dna' or 'protein'

    Returns:
        The sequence (uppercase)

    Examples:
        >>> parse_sequence_input("ATCGATCG")
        'ATCGATCG'
        >>> parse_sequence_input("mktayiak", alphabet="protein")
        'MKTAYIAK'
    """
    if alphabet not in SEQUENCE_PATTERNS:
        raise ValueError(f"Unknown alphabet: {alphabet}")

    value = value.strip()

    path = Path(value)
    if path.suffix.lower() in FASTA_SUFFIXES or not SEQUENCE_PATTERNS[alphabet].match(value):
        if not path.exists():
            raise ValueError(f"File not found: {value}")
        sequence = load_fasta(path)
        if not sequence:
            raise ValueError(f"No sequence found in {value}")
        if not SEQUENCE_PATTERNS[alphabet].match(sequence):
            raise ValueError(f"{value} does not contain a valid {alphabet} sequence")
        return sequence

    return value.upper()


@dataclass
class AlignmentScoring:
    """Scores for protein alignment."""
    match: int = 5
    similar: int = 2
    mismatch: int = -4
    gap_open: int = -10
    gap_extend: int = -1
    # Tables beyond this many cells are aligned anyway but flagged
    max_cells: int = 2500 * 2500


@dataclass
class DesignConfig:
    """Parameters for Cas9 site finding and repair-template design."""
    site_window: int = 105  # nt searched around the target codon
    homology_arm_length: int = 75
    verification_flank: int = 150  # nt translated either side of the target codon
    max_designs: int = 5
    cut_offset: int = 17  # nt from site start to the cut
    min_seed_mutations: int = 2

    def validate(self) -> List[str]:
        """Validate parameters. Returns list of errors."""
        errors = []
        if self.site_window < 23:
            errors.append(f"site_window must be at least 23 nt, got {self.site_window}")
        if self.homology_arm_length < 23:
            errors.append(
                f"homology_arm_length must be at least 23 nt, got {self.homology_arm_length}"
            )
        if self.verification_flank < 0:
            errors.append(f"verification_flank must be non-negative, got {self.verification_flank}")
        if self.max_designs < 1:
            errors.append(f"max_designs must be at least 1, got {self.max_designs}")
        if self.min_seed_mutations < 1:
            errors.append(f"min_seed_mutations must be at least 1, got {self.min_seed_mutations}")
        return errors


def _from_section(cls, section: Optional[Dict[str, Any]]):
    """Build a dataclass from a YAML mapping, rejecting unknown keys."""
    section = section or {}
    known = {f.name for f in fields(cls)}
    unknown = set(section) - known
    if unknown:
        raise ValueError(
            f"Unknown {cls.__name__} option(s): {', '.join(sorted(unknown))}"
        )
    return cls(**section)


@dataclass
class AnalysisConfig:
    """Full analysis configuration."""
    human_protein: Optional[str] = None
    yeast_protein: Optional[str] = None
    yeast_cds: Optional[str] = None
    variant: Optional[str] = None
    variant_key: Optional[Path] = None
    output_dir: Path = Path('./results')

    alignment: AlignmentScoring = field(default_factory=AlignmentScoring)
    design: DesignConfig = field(default_factory=DesignConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> 'AnalysisConfig':
        """Load configuration from YAML file.

        Sequence entries may be literal sequences or FASTA paths.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a YAML mapping")

        human = data.get('human_protein')
        yeast = data.get('yeast_protein')
        cds = data.get('yeast_cds')

        config = cls(
            human_protein=parse_sequence_input(human, 'protein') if human else None,
            yeast_protein=parse_sequence_input(yeast, 'protein') if yeast else None,
            yeast_cds=parse_sequence_input(cds, 'dna') if cds else None,
            variant=data.get('variant'),
            variant_key=Path(data['variant_key']) if data.get('variant_key') else None,
            output_dir=Path(data.get('output_dir', './results')),
            alignment=_from_section(AlignmentScoring, data.get('alignment')),
            design=_from_section(DesignConfig, data.get('design')),
        )

        errors = config.design.validate()
        if errors:
            raise ValueError("Invalid design options: " + "; ".join(errors))

        return config


CONFIG_TEMPLATE = '''# OrthoEdit Configuration Template
# Edit this file to configure your analysis

# Required: sequences (literal sequence or FASTA path)
human_protein: human_protein.fasta   # Human protein sequence
yeast_protein: yeast_protein.fasta   # Yeast ortholog protein sequence
yeast_cds: yeast_orf.fasta           # Yeast coding sequence (frame starts at base 1)

# Single variant (p.Arg114Gln or R114Q) ...
variant: R114Q

# ... or many variants: TSV with variant_id and protein_change columns
# variant_key: variants.tsv

# Output directory
output_dir: ./results

# Alignment scoring
alignment:
  match: 5
  similar: 2
  mismatch: -4
  gap_open: -10
  gap_extend: -1

# Cas9 site finding and repair-template design
design:
  site_window: 105
  homology_arm_length: 75
  verification_flank: 150
  max_designs: 5
'''


def write_config_template(output: Path) -> Path:
    """Write a YAML configuration template."""
    with open(output, 'w') as f:
        f.write(CONFIG_TEMPLATE)
    return Path(output)


def _read_fasta_sequence(path: str) -> str:
    """Read first sequence from a FASTA file."""
    sequence = []
    with open(path) as f:
        for line in f:
            line = line.strip()
            if line.startswith('>'):
                if sequence:
                    break  # Only read first sequence
                continue
            sequence.append(line.upper())
    return ''.join(sequence)


def load_fasta(path: Path) -> str:
    """Load sequence from FASTA file."""
    return _read_fasta_sequence(str(path))
