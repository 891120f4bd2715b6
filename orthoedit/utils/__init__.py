"""
Utility modules for OrthoEdit.
"""

from .sequence import (
    AA_LOOKUP,
    CODON_TABLE,
    codon_to_aa,
    match_string,
    reverse_complement,
    translate,
    translate_codon,
)
from .variant import (
    AA_ONE_TO_THREE,
    AA_THREE_TO_ONE,
    ProteinChange,
    parse_protein_change,
)

__all__ = [
    # Sequence
    'CODON_TABLE',
    'AA_LOOKUP',
    'reverse_complement',
    'codon_to_aa',
    'translate_codon',
    'translate',
    'match_string',
    # Protein changes
    'AA_THREE_TO_ONE',
    'AA_ONE_TO_THREE',
    'ProteinChange',
    'parse_protein_change',
]
