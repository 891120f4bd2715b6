"""
Sequence manipulation utilities.

Provides the codon table and common functions for DNA and protein
sequence operations.
"""

from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple


# Synonymous codons per amino acid. Order matters: the repair designer takes
# the first codon that differs from the original.
CODON_TABLE: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    'F': ('TTT', 'TTC'),
    'L': ('TTA', 'TTG', 'CTT', 'CTC', 'CTA', 'CTG'),
    'I': ('ATT', 'ATC', 'ATA'),
    'M': ('ATG',),
    'V': ('GTT', 'GTC', 'GTA', 'GTG'),
    'S': ('TCT', 'TCC', 'TCA', 'TCG', 'AGT', 'AGC'),
    'P': ('CCT', 'CCC', 'CCA', 'CCG'),
    'T': ('ACT', 'ACC', 'ACA', 'ACG'),
    'A': ('GCT', 'GCC', 'GCA', 'GCG'),
    'Y': ('TAT', 'TAC'),
    'H': ('CAT', 'CAC'),
    'Q': ('CAA', 'CAG'),
    'N': ('AAT', 'AAC'),
    'K': ('AAA', 'AAG'),
    'D': ('GAT', 'GAC'),
    'E': ('GAA', 'GAG'),
    'C': ('TGT', 'TGC'),
    'W': ('TGG',),
    'R': ('CGT', 'CGC', 'CGA', 'CGG', 'AGA', 'AGG'),
    'G': ('GGT', 'GGC', 'GGA', 'GGG'),
    '*': ('TAA', 'TAG', 'TGA'),
})


def _invert_codon_table(table: Mapping[str, Tuple[str, ...]]) -> Dict[str, str]:
    lookup = {}
    for aa, codons in table.items():
        for codon in codons:
            lookup[codon] = aa
    return lookup


# Codon -> amino acid
AA_LOOKUP: Mapping[str, str] = MappingProxyType(_invert_codon_table(CODON_TABLE))

_COMPLEMENT = {
    'A': 'T', 'T': 'A', 'G': 'C', 'C': 'G', 'N': 'N',
    'a': 't', 't': 'a', 'g': 'c', 'c': 'g', 'n': 'n',
    '-': '-',
}


def reverse_complement(seq: str) -> str:
    """Return reverse complement of DNA sequence.

    Case is preserved. Gaps and unknown characters are passed through.
    """
    return ''.join(_COMPLEMENT.get(base, base) for base in reversed(seq))


def codon_to_aa(codon: str) -> Optional[str]:
    """Translate a single codon, returning None for anything not in the table."""
    return AA_LOOKUP.get(codon.upper())


def translate_codon(codon: str) -> str:
    """Translate a DNA codon to amino acid (single letter).

    Returns '*' for stop codons, 'X' for invalid codons.
    """
    return AA_LOOKUP.get(codon.upper(), 'X')


def translate(seq: str) -> str:
    """Translate a DNA sequence in frame 0.

    Trailing bases that do not form a full codon are ignored.
    """
    seq = seq.upper()
    return ''.join(
        translate_codon(seq[i:i + 3])
        for i in range(0, len(seq) - 2, 3)
    )


def match_string(seq1: str, seq2: str) -> str:
    """Build a display line marking identical positions with '|'.

    Sequences of different length are compared over the longer one, the
    missing tail counting as gaps.
    """
    marks = []
    for i in range(max(len(seq1), len(seq2))):
        c1 = seq1[i] if i < len(seq1) else '-'
        c2 = seq2[i] if i < len(seq2) else '-'
        marks.append('|' if c1 == c2 and c1 != '-' else ' ')
    return ''.join(marks)
