"""
Core analysis modules for OrthoEdit.
"""

from .alignment import (
    GAP,
    AlignedPair,
    align_sequences,
)
from .conservation import (
    ColumnMap,
    ConservationCall,
    ResidueMapping,
    locate_residue,
    map_residues,
)
from .similarity import (
    AA_GROUPS,
    is_similar,
)

__all__ = [
    # Similarity
    'AA_GROUPS',
    'is_similar',
    # Alignment
    'GAP',
    'AlignedPair',
    'align_sequences',
    # Conservation
    'ConservationCall',
    'ResidueMapping',
    'ColumnMap',
    'locate_residue',
    'map_residues',
]
