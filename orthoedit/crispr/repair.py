"""
Repair-template design for Cas9-mediated point mutations.

For each candidate site a homology arm carrying the desired codon is built,
then re-cutting of the edited allele is blocked with synonymous changes:
- PAM_DISRUPTED_BY_TARGET: the codon change already hits a PAM base
- PAM_SILENT: one synonymous codon change that breaks the PAM
- SEED_SILENT: synonymous changes in the PAM-proximal seed (fallback)

Every design is checked by translating the edited locus: exactly one amino
acid must change. A PAM-deletion control template is produced alongside.

The genomic sequence is treated as a coding sequence whose reading frame
starts at index 0.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Set, Tuple
import logging

from ..config import DesignConfig
from ..utils.sequence import (
    CODON_TABLE,
    codon_to_aa,
    match_string,
    reverse_complement,
    translate,
)
from .sites import Cas9Site

logger = logging.getLogger(__name__)

OLIGO_A_PREFIX = 'gatc'
OLIGO_A_SUFFIX = 'gttttagagctag'
OLIGO_B_PREFIX = 'ctagctctaaaac'


class SilentMutationStrategy(Enum):
    """How re-cutting of the repaired allele is prevented."""
    PAM_DISRUPTED_BY_TARGET = 'PAM_DISRUPTED_BY_TARGET'
    PAM_SILENT = 'PAM_SILENT'
    SEED_SILENT = 'SEED_SILENT'


@dataclass(frozen=True)
class SequenceComparison:
    """Original and modified sequence with a match line for display."""
    original: str
    modified: str
    match_string: str

    @classmethod
    def of(cls, original: str, modified: str) -> 'SequenceComparison':
        return cls(original, modified, match_string(original, modified))


@dataclass(frozen=True)
class RepairDesign:
    """
    A verified repair design for one Cas9 site.

    Attributes:
        site: Cas9 site the design targets
        repair_template: Homology arm; edited bases lower case
        original_region: Unedited homology arm
        homology_start: 0-based start of the arm in the genomic sequence
        mutation_position: 0-based start of the target codon
        deletion_repair_template: Arm with the two PAM bases removed
        deletion_dna_display: Arm with the two PAM bases shown as '-'
        deletion_protein: Translation of the PAM-deleted verification window
        cloning_oligo_a: Top-strand guide cloning oligo
        cloning_oligo_b: Bottom-strand guide cloning oligo
        guide_with_pam: 23-nt guide + PAM on the targeted strand
        strategy: How re-cutting is prevented
        silent_mutation_count: Synonymous base changes added
        aa_changes_count: Amino-acid differences found by verification
        dna_alignment: Unedited vs edited arm
        aa_alignment: Unedited vs edited translation of the verification window
        score: Guide efficiency score, when scoring context was available
    """
    site: Cas9Site
    repair_template: str
    original_region: str
    homology_start: int
    mutation_position: int
    deletion_repair_template: str
    deletion_dna_display: str
    deletion_protein: str
    cloning_oligo_a: str
    cloning_oligo_b: str
    guide_with_pam: str
    strategy: SilentMutationStrategy
    silent_mutation_count: int
    aa_changes_count: int
    dna_alignment: SequenceComparison
    aa_alignment: SequenceComparison
    score: Optional[int] = None

    @property
    def rank_score(self) -> int:
        return self.score if self.score is not None else 0

    @property
    def total_base_changes(self) -> int:
        return sum(1 for base in self.repair_template if base.islower())


def cloning_oligos(guide: str) -> Tuple[str, str]:
    """Annealed-oligo pair for cloning a 20-nt guide."""
    guide = guide.upper()
    return (
        f"{OLIGO_A_PREFIX}{guide}{OLIGO_A_SUFFIX}",
        f"{OLIGO_B_PREFIX}{reverse_complement(guide)}",
    )


def _codon_starts(indices: Iterable[int], arm_length: int, homology_start: int) -> List[int]:
    """Arm-relative starts of the in-frame codons covering the given indices.

    Only codons lying wholly inside the arm are returned.
    """
    starts = set()
    for idx in indices:
        if 0 <= idx < arm_length:
            absolute = homology_start + idx
            start = absolute - absolute % 3 - homology_start
            if start >= 0 and start + 3 <= arm_length:
                starts.add(start)
    return sorted(starts)


def _synonyms(codon: str) -> Sequence[str]:
    aa = codon_to_aa(codon)
    # Stop codons are never recoded
    if aa is None or aa == '*':
        return ()
    return [c for c in CODON_TABLE[aa] if c != codon]


def mutate_pam(
    arm: List[str],
    critical: Set[int],
    homology_start: int,
) -> Optional[Tuple[List[str], int]]:
    """
    Break the PAM with the cheapest single synonymous codon change.

    Args:
        arm: Homology arm bases (target codon already substituted)
        critical: Arm indices of the two PAM-defining bases
        homology_start: Arm start in the genomic sequence (for the frame)

    Returns:
        (mutated arm, bases changed), or None if no synonym touches the PAM
    """
    best = None
    fewest = None

    for start in _codon_starts(critical, len(arm), homology_start):
        codon = ''.join(arm[start:start + 3])
        for synonym in _synonyms(codon):
            changed = [k for k in range(3) if synonym[k] != codon[k]]
            if not any(start + k in critical for k in changed):
                continue
            if fewest is None or len(changed) < fewest:
                fewest = len(changed)
                best = list(arm)
                best[start:start + 3] = synonym

    if best is None:
        return None
    return best, fewest


def mutate_seed(
    arm: List[str],
    seed: Set[int],
    homology_start: int,
    min_mutations: int = 2,
) -> Optional[Tuple[List[str], int]]:
    """
    Disrupt the seed with synonymous changes, codon by codon.

    Each codon overlapping the seed is swapped for the synonym changing the
    most seed bases; codons are visited 5' to 3' until min_mutations bases
    have changed.

    Returns:
        (mutated arm, bases changed), or None if too few changes are possible
    """
    mutated = list(arm)
    total = 0

    for start in _codon_starts(seed, len(arm), homology_start):
        codon = ''.join(mutated[start:start + 3])
        best_synonym = None
        most_seed_changes = 0
        best_changes = 0

        for synonym in _synonyms(codon):
            changed = [k for k in range(3) if synonym[k] != codon[k]]
            seed_changes = sum(1 for k in changed if start + k in seed)
            if seed_changes > most_seed_changes:
                most_seed_changes = seed_changes
                best_changes = len(changed)
                best_synonym = synonym

        if best_synonym is not None:
            mutated[start:start + 3] = best_synonym
            total += best_changes

        if total >= min_mutations:
            break

    if total < min_mutations:
        return None
    return mutated, total


def _delete_positions(seq: str, positions: Set[int]) -> str:
    return ''.join(base for i, base in enumerate(seq) if i not in positions)


def _count_differences(seq1: str, seq2: str) -> int:
    return sum(1 for a, b in zip(seq1, seq2) if a != b)


class _VerificationWindow:
    """Wide window around the target codon, translated in frame."""

    def __init__(self, sequence: str, mutation_position: int, flank: int):
        self.start = max(0, mutation_position - flank)
        end = min(len(sequence), mutation_position + 3 + flank)
        self.dna = sequence[self.start:end]
        # Skip to the first full codon of the coding frame
        self.frame = (3 - self.start % 3) % 3
        self.protein = self.translate(self.dna)

    def translate(self, dna: str) -> str:
        return translate(dna[self.frame:])

    def splice(self, segment: str, segment_start: int) -> str:
        """Overwrite the window with a segment given in genomic coordinates."""
        bases = list(self.dna)
        offset = segment_start - self.start
        for i, base in enumerate(segment):
            if 0 <= offset + i < len(bases):
                bases[offset + i] = base
        return ''.join(bases)

    def without(self, genomic_positions: Iterable[int]) -> str:
        return _delete_positions(
            self.dna, {pos - self.start for pos in genomic_positions}
        )


def _design_for_site(
    sequence: str,
    site: Cas9Site,
    mutation_position: int,
    codon_options: Sequence[str],
    window: _VerificationWindow,
    config: DesignConfig,
) -> Optional[RepairDesign]:
    """Build and verify the repair design for one site, or None if not viable."""
    arm_length = config.homology_arm_length
    center = (site.cut_position(config.cut_offset) + mutation_position) // 2
    homology_start = max(0, center - arm_length // 2)
    homology_end = min(len(sequence), center + arm_length // 2 + arm_length % 2)
    original_region = sequence[homology_start:homology_end]
    arm = list(original_region)

    site_offset = site.position - homology_start
    critical = {site_offset + o for o in site.pam_critical_offsets}
    seed = {site_offset + o for o in site.seed_offsets}

    codon_start = mutation_position - homology_start
    if codon_start < 0 or codon_start + 3 > len(arm):
        logger.debug(f"Site at {site.position}: target codon outside homology arm")
        return None

    original_codon = original_region[codon_start:codon_start + 3]
    new_codon = next((c for c in codon_options if c != original_codon), codon_options[0])
    arm[codon_start:codon_start + 3] = new_codon

    pam_disrupted = any(
        0 <= idx < len(arm) and arm[idx] != original_region[idx]
        for idx in critical
    )

    if pam_disrupted:
        final_arm = arm
        strategy = SilentMutationStrategy.PAM_DISRUPTED_BY_TARGET
        silent_count = 0
    else:
        attempt = mutate_pam(arm, critical, homology_start)
        strategy = SilentMutationStrategy.PAM_SILENT
        if attempt is None:
            attempt = mutate_seed(arm, seed, homology_start, config.min_seed_mutations)
            strategy = SilentMutationStrategy.SEED_SILENT
        if attempt is None:
            logger.debug(f"Site at {site.position}: no silent PAM or seed mutation")
            return None
        final_arm, silent_count = attempt

    repair_template = ''.join(
        base.lower() if base != original else base
        for base, original in zip(final_arm, original_region)
    )

    # Negative control: PAM deleted, no point mutation
    deletion_repair_template = _delete_positions(original_region, critical)
    deletion_dna_display = ''.join(
        '-' if i in critical else base for i, base in enumerate(original_region)
    )
    deletion_protein = window.translate(
        window.without(site.position + o for o in site.pam_critical_offsets)
    )

    repaired_protein = window.translate(window.splice(repair_template, homology_start))
    aa_changes = _count_differences(window.protein, repaired_protein)
    if aa_changes != 1:
        logger.debug(
            f"Site at {site.position}: verification found {aa_changes} amino-acid changes"
        )
        return None

    oligo_a, oligo_b = cloning_oligos(site.guide)

    return RepairDesign(
        site=site,
        repair_template=repair_template,
        original_region=original_region,
        homology_start=homology_start,
        mutation_position=mutation_position,
        deletion_repair_template=deletion_repair_template,
        deletion_dna_display=deletion_dna_display,
        deletion_protein=deletion_protein,
        cloning_oligo_a=oligo_a,
        cloning_oligo_b=oligo_b,
        guide_with_pam=site.guide_with_pam,
        strategy=strategy,
        silent_mutation_count=silent_count,
        aa_changes_count=aa_changes,
        dna_alignment=SequenceComparison.of(original_region, repair_template.upper()),
        aa_alignment=SequenceComparison.of(window.protein, repaired_protein),
        score=site.score,
    )


def design_repair_templates(
    genomic_sequence: str,
    sites: Iterable[Cas9Site],
    amino_acid_position: int,
    new_amino_acid: str,
    config: Optional[DesignConfig] = None,
) -> List[RepairDesign]:
    """
    Design repair templates introducing a point mutation.

    Args:
        genomic_sequence: Coding sequence, reading frame starting at index 0
        sites: Candidate sites, e.g. from find_cas9_sites
        amino_acid_position: 1-based codon number to mutate
        new_amino_acid: One-letter code of the replacement residue
        config: Design parameters

    Returns:
        Verified designs ranked by score (unscored last), at most
        config.max_designs. Empty when no site gives a viable design.
    """
    config = config or DesignConfig()
    sequence = genomic_sequence.upper()
    mutation_position = (amino_acid_position - 1) * 3

    codon_options = CODON_TABLE.get(new_amino_acid.upper())
    if not codon_options:
        logger.warning(f"No codons for amino acid {new_amino_acid!r}; skipping all sites")
        return []

    window = _VerificationWindow(sequence, mutation_position, config.verification_flank)

    designs = []
    for site in sites:
        design = _design_for_site(
            sequence, site, mutation_position, codon_options, window, config
        )
        if design is not None:
            designs.append(design)

    designs.sort(key=lambda d: d.rank_score, reverse=True)

    if not designs:
        logger.info(f"No viable repair design for codon {amino_acid_position}")
    return designs[:config.max_designs]
