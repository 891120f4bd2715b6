"""
Residue conservation calls.

Projects a 1-based residue of the first (human) sequence through an
alignment onto the second (yeast) sequence and classifies the pair:
- Identical: same residue
- Similar: residues share a similarity group
- Mismatch: any other residue
- Gap: the yeast sequence has a gap at that column
- N/A: the residue number is outside the human sequence
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional
import logging

from .alignment import GAP, AlignedPair
from .similarity import is_similar

logger = logging.getLogger(__name__)


class ConservationCall(Enum):
    """Conservation categories."""
    IDENTICAL = 'Identical'
    SIMILAR = 'Similar'
    MISMATCH = 'Mismatch'
    GAP = 'Gap'
    NOT_APPLICABLE = 'N/A'

    @property
    def is_conserved(self) -> bool:
        return self in (ConservationCall.IDENTICAL, ConservationCall.SIMILAR)


@dataclass(frozen=True)
class ResidueMapping:
    """Where a human residue lands in the yeast ortholog."""
    human_residue: int
    call: ConservationCall
    column: Optional[int] = None  # 0-based alignment column
    human_aa: Optional[str] = None
    yeast_aa: Optional[str] = None
    yeast_residue: Optional[int] = None  # 1-based, None for gaps
    expected_reference: Optional[str] = None
    reference_mismatch: bool = False

    @property
    def is_mappable(self) -> bool:
        """True when a yeast residue exists to edit."""
        return self.yeast_residue is not None

    def __str__(self) -> str:
        if self.call == ConservationCall.NOT_APPLICABLE:
            return f"{self.human_residue}: out of bounds"
        yeast = f"{self.yeast_aa}{self.yeast_residue}" if self.yeast_residue else GAP
        return f"{self.human_aa}{self.human_residue} -> {yeast} ({self.call.value})"


class ColumnMap:
    """
    Coordinate map between alignment columns and ungapped residue numbers.

    Built in a single scan with one counter per sequence, each advanced only
    on non-gap characters.
    """

    def __init__(self, pair: AlignedPair):
        self.pair = pair
        self.residue_b: List[int] = []  # per column: residues of B seen so far
        self.column_of_a: List[int] = []  # per residue of A (0-based): its column

        count_b = 0
        for column, (a, b) in enumerate(zip(pair.aligned_a, pair.aligned_b)):
            if a != GAP:
                self.column_of_a.append(column)
            if b != GAP:
                count_b += 1
            self.residue_b.append(count_b)

    @property
    def length_a(self) -> int:
        return len(self.column_of_a)

    def column_for(self, residue: int) -> Optional[int]:
        """Column holding 1-based residue of the first sequence, or None."""
        if residue < 1 or residue > self.length_a:
            return None
        return self.column_of_a[residue - 1]

    def yeast_residue_at(self, column: int) -> Optional[int]:
        """1-based residue of the second sequence at a column, None for a gap."""
        if self.pair.aligned_b[column] == GAP:
            return None
        return self.residue_b[column]

    def locate(
        self,
        human_residue: int,
        expected_reference: Optional[str] = None,
    ) -> ResidueMapping:
        column = self.column_for(human_residue)
        if column is None:
            logger.warning(
                f"Residue {human_residue} is out of bounds for a "
                f"{self.length_a}-residue sequence"
            )
            return ResidueMapping(
                human_residue=human_residue,
                call=ConservationCall.NOT_APPLICABLE,
                expected_reference=expected_reference,
            )

        human_aa = self.pair.aligned_a[column]
        yeast_aa = self.pair.aligned_b[column]

        if yeast_aa == GAP:
            call = ConservationCall.GAP
        elif human_aa == yeast_aa:
            call = ConservationCall.IDENTICAL
        elif is_similar(human_aa, yeast_aa):
            call = ConservationCall.SIMILAR
        else:
            call = ConservationCall.MISMATCH

        mismatch = (
            expected_reference is not None
            and expected_reference.upper() != human_aa
        )
        if mismatch:
            logger.warning(
                f"Expected reference {expected_reference.upper()} but sequence has "
                f"{human_aa} at position {human_residue}"
            )

        return ResidueMapping(
            human_residue=human_residue,
            call=call,
            column=column,
            human_aa=human_aa,
            yeast_aa=yeast_aa,
            yeast_residue=self.yeast_residue_at(column),
            expected_reference=expected_reference,
            reference_mismatch=mismatch,
        )


def locate_residue(
    pair: AlignedPair,
    human_residue: int,
    expected_reference: Optional[str] = None,
) -> ResidueMapping:
    """
    Map a 1-based human residue onto the yeast sequence and classify it.

    Args:
        pair: Alignment with the human sequence first
        human_residue: 1-based residue number in the ungapped human sequence
        expected_reference: Residue the caller believes sits at that position;
            a disagreement is flagged, not fatal

    Returns:
        ResidueMapping (call is N/A when the residue is out of bounds)
    """
    return ColumnMap(pair).locate(human_residue, expected_reference)


def map_residues(
    pair: AlignedPair,
    residues: Iterable[int],
) -> List[ResidueMapping]:
    """Map several residues reusing one column map."""
    column_map = ColumnMap(pair)
    return [column_map.locate(residue) for residue in residues]
