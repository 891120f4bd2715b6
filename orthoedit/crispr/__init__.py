"""
Cas9 site finding and repair-template design for OrthoEdit.
"""

from .repair import (
    RepairDesign,
    SequenceComparison,
    SilentMutationStrategy,
    cloning_oligos,
    design_repair_templates,
    mutate_pam,
    mutate_seed,
)
from .sites import (
    Cas9Site,
    Strand,
    find_cas9_sites,
    score_guide,
)

__all__ = [
    # Sites
    'Cas9Site',
    'Strand',
    'find_cas9_sites',
    'score_guide',
    # Repair templates
    'RepairDesign',
    'SequenceComparison',
    'SilentMutationStrategy',
    'cloning_oligos',
    'design_repair_templates',
    'mutate_pam',
    'mutate_seed',
]
