"""
Global pairwise protein alignment.

Needleman-Wunsch over the full dynamic-programming table with a simplified
affine gap model: the first row and column are initialised with
gap_open + (k - 1) * gap_extend, while every interior gap step is charged
gap_extend only. Ties in the traceback prefer the diagonal, then up (gap in
the second sequence), then left (gap in the first sequence).
"""

from dataclasses import dataclass
from typing import Optional
import logging

import numpy as np

from ..config import AlignmentScoring
from .similarity import is_similar

logger = logging.getLogger(__name__)

GAP = '-'

# Traceback pointers
_DIAG = 1
_UP = 2
_LEFT = 3


@dataclass(frozen=True)
class AlignedPair:
    """
    Two gap-padded sequences of equal length.

    Sequences are held upper case with whitespace removed, so the ungapped
    sides equal the normalised inputs of align_sequences.

    Attributes:
        aligned_a: First (human) sequence with gaps
        aligned_b: Second (yeast) sequence with gaps
        score: Score of the bottom-right cell of the DP table
        exceeds_recommended_size: Set when the DP table was larger than
            the configured max_cells
    """
    aligned_a: str
    aligned_b: str
    score: int = 0
    exceeds_recommended_size: bool = False

    def __post_init__(self):
        if len(self.aligned_a) != len(self.aligned_b):
            raise ValueError(
                f"Aligned sequences must be equal length: "
                f"{len(self.aligned_a)} vs {len(self.aligned_b)}"
            )

    @property
    def length(self) -> int:
        return len(self.aligned_a)

    @property
    def ungapped_a(self) -> str:
        return self.aligned_a.replace(GAP, '')

    @property
    def ungapped_b(self) -> str:
        return self.aligned_b.replace(GAP, '')

    @property
    def gap_count(self) -> int:
        """Number of gap characters on either side."""
        return self.aligned_a.count(GAP) + self.aligned_b.count(GAP)

    @property
    def identity_count(self) -> int:
        return sum(
            1 for a, b in zip(self.aligned_a, self.aligned_b)
            if a != GAP and a == b
        )

    @property
    def similarity_count(self) -> int:
        """Columns holding identical or similar residues."""
        return sum(
            1 for a, b in zip(self.aligned_a, self.aligned_b)
            if a != GAP and b != GAP and is_similar(a, b)
        )

    @property
    def _aligned_columns(self) -> int:
        return sum(
            1 for a, b in zip(self.aligned_a, self.aligned_b)
            if a != GAP or b != GAP
        )

    @property
    def percent_identity(self) -> float:
        total = self._aligned_columns
        return (self.identity_count / total * 100) if total > 0 else 0.0

    @property
    def percent_similarity(self) -> float:
        total = self._aligned_columns
        return (self.similarity_count / total * 100) if total > 0 else 0.0

    def match_string(self) -> str:
        """Middle line for display: '|' identical, ':' similar, ' ' otherwise."""
        marks = []
        for a, b in zip(self.aligned_a, self.aligned_b):
            if a == GAP or b == GAP:
                marks.append(' ')
            elif a == b:
                marks.append('|')
            elif is_similar(a, b):
                marks.append(':')
            else:
                marks.append(' ')
        return ''.join(marks)

    def format(self, width: int = 60) -> str:
        """Render the alignment as wrapped three-line blocks."""
        matches = self.match_string()
        blocks = []
        for start in range(0, self.length, width):
            end = start + width
            blocks.append('\n'.join([
                self.aligned_a[start:end],
                matches[start:end],
                self.aligned_b[start:end],
            ]))
        return '\n\n'.join(blocks)


def _substitution_table(alphabet: str, scoring: AlignmentScoring) -> np.ndarray:
    """Score every pair of characters in the alphabet."""
    size = len(alphabet)
    table = np.empty((size, size), dtype=np.int64)
    for i, c1 in enumerate(alphabet):
        for j, c2 in enumerate(alphabet):
            if c1 == c2:
                table[i, j] = scoring.match
            elif is_similar(c1, c2):
                table[i, j] = scoring.similar
            else:
                table[i, j] = scoring.mismatch
    return table


def _gap_run_score(length: int, scoring: AlignmentScoring) -> int:
    if length == 0:
        return 0
    return scoring.gap_open + (length - 1) * scoring.gap_extend


def align_sequences(
    seq_a: str,
    seq_b: str,
    scoring: Optional[AlignmentScoring] = None,
) -> AlignedPair:
    """
    Globally align two protein sequences.

    Args:
        seq_a: First sequence (human protein)
        seq_b: Second sequence (yeast protein)
        scoring: Scoring parameters (defaults to AlignmentScoring())

    Returns:
        AlignedPair. Inputs are upper-cased and stripped of whitespace
        first; removing gaps from each side gives back the normalised inputs.
    """
    scoring = scoring or AlignmentScoring()
    seq_a = ''.join(seq_a.split()).upper()
    seq_b = ''.join(seq_b.split()).upper()
    n, m = len(seq_a), len(seq_b)

    oversized = n * m > scoring.max_cells
    if oversized:
        logger.warning(
            f"Aligning {n} x {m} residues exceeds the recommended "
            f"{scoring.max_cells:,} DP cells; this will be slow and memory hungry"
        )

    # A zero-length sequence aligns to all gaps
    if n == 0 or m == 0:
        return AlignedPair(
            aligned_a=seq_a + GAP * m,
            aligned_b=GAP * n + seq_b,
            score=_gap_run_score(max(n, m), scoring),
            exceeds_recommended_size=oversized,
        )

    alphabet = ''.join(sorted(set(seq_a) | set(seq_b)))
    index = {c: i for i, c in enumerate(alphabet)}
    table = _substitution_table(alphabet, scoring)
    idx_a = np.array([index[c] for c in seq_a], dtype=np.intp)
    idx_b = np.array([index[c] for c in seq_b], dtype=np.intp)

    extend = scoring.gap_extend
    score = np.zeros((n + 1, m + 1), dtype=np.int64)
    ptr = np.zeros((n + 1, m + 1), dtype=np.int8)
    score[1:, 0] = scoring.gap_open + np.arange(n, dtype=np.int64) * extend
    score[0, 1:] = scoring.gap_open + np.arange(m, dtype=np.int64) * extend

    # s[j] = max(best[j], s[j-1] + extend) unrolls to a running maximum
    # of best[k] - k * extend, shifted back by j * extend.
    steps = np.arange(m + 1, dtype=np.int64) * extend
    candidates = np.empty(m + 1, dtype=np.int64)

    for i in range(1, n + 1):
        prev = score[i - 1]
        diag = prev[:-1] + table[idx_a[i - 1], idx_b]
        up = prev[1:] + extend

        candidates[0] = score[i, 0]
        candidates[1:] = np.maximum(diag, up)
        row = np.maximum.accumulate(candidates - steps) + steps
        score[i] = row

        cells = row[1:]
        ptr[i, 1:] = np.where(cells == diag, _DIAG, np.where(cells == up, _UP, _LEFT))

    aligned_a = []
    aligned_b = []
    i, j = n, m
    while i > 0 or j > 0:
        if i > 0 and j > 0 and ptr[i, j] == _DIAG:
            aligned_a.append(seq_a[i - 1])
            aligned_b.append(seq_b[j - 1])
            i -= 1
            j -= 1
        elif i > 0 and (j == 0 or ptr[i, j] == _UP):
            aligned_a.append(seq_a[i - 1])
            aligned_b.append(GAP)
            i -= 1
        else:
            aligned_a.append(GAP)
            aligned_b.append(seq_b[j - 1])
            j -= 1

    return AlignedPair(
        aligned_a=''.join(reversed(aligned_a)),
        aligned_b=''.join(reversed(aligned_b)),
        score=int(score[n, m]),
        exceeds_recommended_size=oversized,
    )
