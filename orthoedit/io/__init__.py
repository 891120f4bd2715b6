"""
I/O modules for OrthoEdit.
"""

from .output import (
    generate_summary_report,
    write_alignment_fasta,
    write_batch_summary_tsv,
    write_designs_tsv,
)
from .variant_key import (
    VariantEntry,
    create_variant_key_template,
    load_variant_key,
)

__all__ = [
    'VariantEntry',
    'load_variant_key',
    'create_variant_key_template',
    'write_designs_tsv',
    'write_batch_summary_tsv',
    'write_alignment_fasta',
    'generate_summary_report',
]
