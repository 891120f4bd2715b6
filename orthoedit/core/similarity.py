"""
Amino-acid similarity model.

Residues are grouped by shared physicochemical properties (size, charge,
polarity, aromaticity). Two residues are similar when they are identical or
share at least one group. Groups overlap, so similarity is not transitive.
"""

from typing import FrozenSet, Tuple


AA_GROUPS: Tuple[FrozenSet[str], ...] = tuple(frozenset(group) for group in (
    "VLIM", "FYW", "MILF", "MILV", "KRH", "DE",
    "ST", "NQ", "HY", "NDEQ", "SGND", "STPA",
    "STNK", "NEQK", "NHQK", "QHRK", "HFY", "FVLIM",
    "CSA", "ATV", "SAG", "SNDEQK", "NDEQHK", "NEQHRK",
))


def is_similar(aa1: str, aa2: str) -> bool:
    """Return True if two residues are identical or share a similarity group."""
    aa1 = aa1.upper()
    aa2 = aa2.upper()
    if aa1 == aa2:
        return True
    return any(aa1 in group and aa2 in group for group in AA_GROUPS)
