"""
Variant key parsing and validation.
"""

from pathlib import Path
from typing import Dict, List, Optional
from dataclasses import dataclass
import pandas as pd
import logging

from ..utils.variant import parse_protein_change

logger = logging.getLogger(__name__)


@dataclass
class VariantEntry:
    """Represents a single row of a variant key.

    Attributes:
        variant_id: Unique variant identifier
        protein_change: Change text, e.g. R114W or p.Arg114Trp
        metadata: Additional columns from the variant key
    """
    variant_id: str
    protein_change: str
    metadata: Dict = None

    def __post_init__(self):
        if self.metadata is None:
            self.metadata = {}

    def validate(self) -> List[str]:
        """Validate the entry. Returns list of errors."""
        errors = []
        try:
            parse_protein_change(self.protein_change)
        except ValueError as e:
            errors.append(str(e))
        return errors


def load_variant_key(
    path: Path,
    validate: bool = True
) -> List[VariantEntry]:
    """
    Load variants from a variant key TSV file.

    Required columns:
    - variant_id: Unique variant identifier
    - protein_change: Human protein change (R114W, Arg114Trp or p.Arg114Trp)

    Additional columns are stored as metadata. Rows with unparseable changes
    are kept and reported; the pipeline records their error per variant.

    Args:
        path: Path to variant key TSV
        validate: If True, log unparseable changes

    Returns:
        List of VariantEntry objects
    """
    df = pd.read_csv(path, sep='\t', dtype=str)

    for column in ('variant_id', 'protein_change'):
        if column not in df.columns:
            raise ValueError(f"Variant key must have '{column}' column")

    standard_cols = {'variant_id', 'protein_change'}

    entries = []
    errors = []
    seen = set()

    for _, row in df.iterrows():
        if pd.isna(row['variant_id']):
            continue
        variant_id = str(row['variant_id']).strip()
        change = str(row['protein_change']).strip() if pd.notna(row['protein_change']) else ''

        if variant_id in seen:
            raise ValueError(f"Duplicate variant_id in variant key: {variant_id}")
        seen.add(variant_id)

        metadata = {
            k: v for k, v in row.items()
            if k not in standard_cols and pd.notna(v)
        }

        entry = VariantEntry(
            variant_id=variant_id,
            protein_change=change,
            metadata=metadata,
        )

        if validate:
            for err in entry.validate():
                errors.append(f"{variant_id}: {err}")

        entries.append(entry)

    if errors:
        logger.warning(f"Variant key validation found {len(errors)} errors:")
        for err in errors[:10]:
            logger.warning(f"  {err}")
        if len(errors) > 10:
            logger.warning(f"  ... and {len(errors) - 10} more")

    logger.info(f"Loaded {len(entries)} variants from {path}")

    return entries


def create_variant_key_template(output_path: Path, gene: Optional[str] = None):
    """Create a template variant key file."""
    gene = gene or 'GENE'
    template = (
        "variant_id\tprotein_change\tclinical_significance\n"
        f"{gene}_R114W\tR114W\tpathogenic\n"
        f"{gene}_G12D\tp.Gly12Asp\tuncertain\n"
    )
    with open(output_path, 'w') as f:
        f.write(template)

    logger.info(f"Created variant key template: {output_path}")
