"""
Protein change parsing.

Accepts HGVS-like protein changes in three-letter (p.Arg114Gln) or
one-letter (R114Q) notation.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


AA_THREE_TO_ONE: Mapping[str, str] = MappingProxyType({
    'Ala': 'A', 'Arg': 'R', 'Asn': 'N', 'Asp': 'D', 'Cys': 'C',
    'Gln': 'Q', 'Glu': 'E', 'Gly': 'G', 'His': 'H', 'Ile': 'I',
    'Leu': 'L', 'Lys': 'K', 'Met': 'M', 'Phe': 'F', 'Pro': 'P',
    'Ser': 'S', 'Thr': 'T', 'Trp': 'W', 'Tyr': 'Y', 'Val': 'V',
    'Ter': '*',
})

AA_ONE_TO_THREE: Mapping[str, str] = MappingProxyType(
    {one: three for three, one in AA_THREE_TO_ONE.items()}
)

THREE_LETTER_PATTERN = re.compile(r'^([A-Za-z]{3})\s*(\d+)\s*([A-Za-z]{3})$')
ONE_LETTER_PATTERN = re.compile(r'^([A-Za-z*])\s*(\d+)\s*([A-Za-z*])$')


@dataclass(frozen=True)
class ProteinChange:
    """A single amino-acid substitution.

    Attributes:
        reference: Reference amino acid (one letter)
        residue: 1-based residue number
        target: Replacement amino acid (one letter)
    """
    reference: str
    residue: int
    target: str

    @property
    def short(self) -> str:
        """One-letter notation, e.g. R114Q."""
        return f"{self.reference}{self.residue}{self.target}"

    @property
    def hgvs(self) -> str:
        """Three-letter HGVS protein notation, e.g. p.Arg114Gln."""
        ref = AA_ONE_TO_THREE.get(self.reference, self.reference)
        target = AA_ONE_TO_THREE.get(self.target, self.target)
        return f"p.{ref}{self.residue}{target}"

    def __str__(self) -> str:
        return self.short


def parse_protein_change(value: str) -> ProteinChange:
    """
    Parse a protein change description.

    Args:
        value: Text such as 'p.Arg114Gln', 'arg114gln' or 'R114Q'

    Returns:
        ProteinChange

    Raises:
        ValueError: If the text is not a recognised substitution

    Examples:
        >>> parse_protein_change("p.Arg114Gln")
        ProteinChange(reference='R', residue=114, target='Q')
        >>> parse_protein_change("r114q").short
        'R114Q'
    """
    clean = re.sub(r'^p\.', '', value.strip(), flags=re.IGNORECASE)

    match = THREE_LETTER_PATTERN.match(clean)
    if match:
        ref = AA_THREE_TO_ONE.get(match.group(1).capitalize())
        target = AA_THREE_TO_ONE.get(match.group(3).capitalize())
        if ref and target:
            return ProteinChange(ref, int(match.group(2)), target)

    match = ONE_LETTER_PATTERN.match(clean)
    if match:
        return ProteinChange(
            reference=match.group(1).upper(),
            residue=int(match.group(2)),
            target=match.group(3).upper(),
        )

    raise ValueError(
        f"Invalid protein change: {value!r}. Use 'p.Arg114Gln' or 'R114Q'"
    )
