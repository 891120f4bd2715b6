"""
SpCas9 site discovery around a target codon.

Scans both strands of a window centred on the target codon for 23-nt
protospacer + NGG PAM sites and scores them with a simplified on-target
efficiency heuristic (shape of Doench et al. 2014 Rule Set 1: GC penalty,
seed/PAM-proximal position weights, sigmoid normalisation). Scores are for
ranking only and are not a validated prediction.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple
import logging
import math
import re

from ..utils.sequence import reverse_complement

logger = logging.getLogger(__name__)

SITE_LENGTH = 23
GUIDE_LENGTH = 20
CONTEXT_LENGTH = 30

# Lookaheads so that overlapping sites are all reported
FORWARD_SITE = re.compile(r'(?=([ACGT]{20}[ACGT]GG))')
REVERSE_SITE = re.compile(r'(?=(CC[ACGT][ACGT]{20}))')

# Score model. Context layout: 4 nt 5' flank | 20 nt guide | NGG | 3 nt 3' flank
SCORE_INTERCEPT = 0.5976
GC_HIGH_PENALTY = -0.1664
GC_LOW_PENALTY = -0.2026
GC_OPTIMUM = 10  # G/C count in the 20-nt guide
POSITION_WEIGHTS: Tuple[Tuple[str, int, float], ...] = (
    ('G', 5, -0.27),   # guide position 2
    ('T', 29, -0.10),  # 3' end of context
    ('C', 20, 0.10),   # seed
    ('G', 23, -0.15),  # base before PAM
)
SIGMOID_SLOPE = 4.0


class Strand(Enum):
    """Strand carrying the protospacer."""
    FORWARD = 'forward'
    REVERSE = 'reverse'


@dataclass(frozen=True)
class Cas9Site:
    """
    A candidate SpCas9 target.

    Attributes:
        position: 0-based start of the 23-nt match in the genomic sequence
        sequence: The 23 nt as read on the forward strand (N20-NGG forward,
            CCN-N20 reverse)
        strand: Strand of the protospacer
        context30: 30-nt scoring context in guide orientation, when the
            window holds it completely
    """
    position: int
    sequence: str
    strand: Strand
    context30: Optional[str] = None

    @property
    def guide_with_pam(self) -> str:
        """Protospacer + PAM, 5' to 3' on the targeted strand."""
        if self.strand == Strand.REVERSE:
            return reverse_complement(self.sequence)
        return self.sequence

    @property
    def guide(self) -> str:
        return self.guide_with_pam[:GUIDE_LENGTH].upper()

    @property
    def pam(self) -> str:
        return self.guide_with_pam[GUIDE_LENGTH:].upper()

    @property
    def pam_critical_offsets(self) -> Tuple[int, int]:
        """Offsets of the two PAM-defining G/C bases from the site start."""
        if self.strand == Strand.FORWARD:
            return (GUIDE_LENGTH + 1, GUIDE_LENGTH + 2)
        return (0, 1)

    @property
    def seed_offsets(self) -> range:
        """Offsets of the 10 PAM-proximal guide bases from the site start."""
        if self.strand == Strand.FORWARD:
            return range(10, 20)
        return range(3, 13)

    def cut_position(self, cut_offset: int = 17) -> int:
        """Cut coordinate used to centre homology arms.

        The forward-strand offset is applied from the site start on both
        strands.
        """
        return self.position + cut_offset

    @property
    def score(self) -> Optional[int]:
        if self.context30 is None:
            return None
        return score_guide(self.context30)


def score_guide(context30: str) -> int:
    """
    Heuristic on-target efficiency score.

    Args:
        context30: 4 nt flank + 20 nt guide + 3 nt PAM + 3 nt flank

    Returns:
        Integer score 0-100 (0 for a context of the wrong length)
    """
    if not context30 or len(context30) != CONTEXT_LENGTH:
        return 0

    seq = context30.upper()
    score = SCORE_INTERCEPT

    gc_count = sum(1 for base in seq[4:24] if base in 'GC')
    if gc_count > GC_OPTIMUM:
        score += GC_HIGH_PENALTY
    elif gc_count < GC_OPTIMUM:
        score += GC_LOW_PENALTY

    for base, index, weight in POSITION_WEIGHTS:
        if seq[index] == base:
            score += weight

    probability = 1 / (1 + math.exp(-score * SIGMOID_SLOPE))
    return int(math.floor(probability * 100 + 0.5))


def _forward_context(region: str, index: int) -> Optional[str]:
    start = index - 4
    end = start + CONTEXT_LENGTH
    if start < 0 or end > len(region):
        return None
    return region[start:end]


def _reverse_context(region: str, index: int) -> Optional[str]:
    # 3 nt beyond the PAM sit 5' of the match on the forward strand
    start = index - 3
    end = start + CONTEXT_LENGTH
    if start < 0 or end > len(region):
        return None
    return reverse_complement(region[start:end])


def find_cas9_sites(
    genomic_sequence: str,
    amino_acid_position: int,
    window: int = 105,
) -> List[Cas9Site]:
    """
    Find SpCas9 sites on both strands near a codon.

    Args:
        genomic_sequence: Coding sequence, reading frame starting at index 0
        amino_acid_position: 1-based codon number of the target residue
        window: Width of the searched region, centred on the codon start

    Returns:
        Sites sorted by distance from the codon start (closest first).
        Empty when the window falls outside the sequence.
    """
    sequence = genomic_sequence.upper()
    nucleotide_position = (amino_acid_position - 1) * 3
    start = max(0, nucleotide_position - window // 2)
    end = min(len(sequence), nucleotide_position + window // 2)
    region = sequence[start:end]

    sites = []
    for match in FORWARD_SITE.finditer(region):
        sites.append(Cas9Site(
            position=start + match.start(),
            sequence=match.group(1),
            strand=Strand.FORWARD,
            context30=_forward_context(region, match.start()),
        ))

    for match in REVERSE_SITE.finditer(region):
        sites.append(Cas9Site(
            position=start + match.start(),
            sequence=match.group(1),
            strand=Strand.REVERSE,
            context30=_reverse_context(region, match.start()),
        ))

    sites.sort(key=lambda site: abs(site.position - nucleotide_position))

    logger.debug(
        f"Found {len(sites)} Cas9 sites in {len(region)} nt around codon {amino_acid_position}"
    )
    return sites
