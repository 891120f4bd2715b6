"""
Main pipeline orchestration for OrthoEdit.

align human vs yeast protein -> map the variant residue -> find Cas9 sites
in the yeast coding sequence -> design repair templates.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union
import logging

from .config import AlignmentScoring, AnalysisConfig, DesignConfig
from .core.alignment import AlignedPair, align_sequences
from .core.conservation import ColumnMap, ConservationCall, ResidueMapping
from .crispr.repair import RepairDesign, design_repair_templates
from .crispr.sites import find_cas9_sites
from .utils.sequence import CODON_TABLE, translate
from .utils.variant import ProteinChange, parse_protein_change

logger = logging.getLogger(__name__)


@dataclass
class VariantAnalysis:
    """Everything learned about one variant."""
    variant_id: str
    change: Optional[ProteinChange] = None
    mapping: Optional[ResidueMapping] = None
    designs: List[RepairDesign] = field(default_factory=list)
    n_sites: int = 0
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def call(self) -> ConservationCall:
        return self.mapping.call if self.mapping else ConservationCall.NOT_APPLICABLE

    @property
    def yeast_change(self) -> Optional[str]:
        """The equivalent yeast substitution, e.g. K98Q."""
        if self.change is None or self.mapping is None or not self.mapping.is_mappable:
            return None
        return f"{self.mapping.yeast_aa}{self.mapping.yeast_residue}{self.change.target}"

    @property
    def succeeded(self) -> bool:
        return self.error is None


class VariantPipeline:
    """Pipeline orchestrator for one human/yeast ortholog pair."""

    def __init__(
        self,
        human_protein: str,
        yeast_protein: str,
        yeast_cds: Optional[str] = None,
        scoring: Optional[AlignmentScoring] = None,
        design: Optional[DesignConfig] = None,
    ):
        self.human_protein = human_protein.upper()
        self.yeast_protein = yeast_protein.upper()
        self.yeast_cds = yeast_cds.upper() if yeast_cds else None
        self.scoring = scoring or AlignmentScoring()
        self.design = design or DesignConfig()
        self._alignment: Optional[AlignedPair] = None
        self._column_map: Optional[ColumnMap] = None

        if self.yeast_cds:
            self._check_cds()

    @classmethod
    def from_config(cls, config: AnalysisConfig) -> 'VariantPipeline':
        if not config.human_protein or not config.yeast_protein:
            raise ValueError("Both human_protein and yeast_protein are required")
        return cls(
            human_protein=config.human_protein,
            yeast_protein=config.yeast_protein,
            yeast_cds=config.yeast_cds,
            scoring=config.alignment,
            design=config.design,
        )

    def _check_cds(self):
        """Warn when the coding sequence does not encode the yeast protein."""
        encoded = translate(self.yeast_cds).rstrip('*')
        if encoded != self.yeast_protein.rstrip('*'):
            logger.warning(
                "Yeast coding sequence does not translate to the yeast protein; "
                "residue numbers may not match codons"
            )

    @property
    def alignment(self) -> AlignedPair:
        """Alignment of human vs yeast protein, computed once."""
        if self._alignment is None:
            logger.info(
                f"Performing pairwise alignment ({len(self.human_protein)} x "
                f"{len(self.yeast_protein)} residues)..."
            )
            self._alignment = align_sequences(
                self.human_protein, self.yeast_protein, self.scoring
            )
            logger.info(
                f"Alignment complete: {self._alignment.percent_identity:.1f}% identity, "
                f"{self._alignment.percent_similarity:.1f}% similarity"
            )
        return self._alignment

    @property
    def column_map(self) -> ColumnMap:
        if self._column_map is None:
            self._column_map = ColumnMap(self.alignment)
        return self._column_map

    def analyze(
        self,
        change: Union[str, ProteinChange],
        variant_id: Optional[str] = None,
    ) -> VariantAnalysis:
        """
        Analyze a single variant.

        Args:
            change: Protein change text or parsed ProteinChange
            variant_id: Label for reports (defaults to the change text)

        Returns:
            VariantAnalysis

        Raises:
            ValueError: If the change text cannot be parsed
        """
        if isinstance(change, str):
            change = parse_protein_change(change)
        result = VariantAnalysis(variant_id=variant_id or change.short, change=change)

        logger.info(f"Mapping variant {change.short} to alignment...")
        mapping = self.column_map.locate(change.residue, expected_reference=change.reference)
        result.mapping = mapping

        if mapping.call == ConservationCall.NOT_APPLICABLE:
            result.warnings.append(
                f"Residue {change.residue} is out of bounds for the "
                f"{len(self.human_protein)}-residue human sequence"
            )
            return result

        if mapping.reference_mismatch:
            result.warnings.append(
                f"Input reference is {change.reference}, but the sequence has "
                f"{mapping.human_aa} at position {change.residue}"
            )

        logger.info(f"{change.short}: {mapping}")

        if not mapping.is_mappable:
            result.warnings.append("Residue aligns to a gap in yeast; nothing to edit")
            return result

        if self.yeast_cds is None:
            return result

        self._design(result)
        return result

    def _design(self, result: VariantAnalysis):
        mapping = result.mapping
        target = result.change.target

        if target not in CODON_TABLE:
            result.warnings.append(f"No codons for amino acid {target}; no designs")
            return

        sites = find_cas9_sites(self.yeast_cds, mapping.yeast_residue, self.design.site_window)
        result.n_sites = len(sites)
        logger.info(f"Found {len(sites)} candidate Cas9 sites near yeast codon {mapping.yeast_residue}")

        result.designs = design_repair_templates(
            self.yeast_cds, sites, mapping.yeast_residue, target, self.design
        )
        if result.designs:
            logger.info(f"{len(result.designs)} repair designs for {result.yeast_change}")
        else:
            result.warnings.append("No viable repair design found")

    def analyze_many(
        self,
        changes: Union[Iterable[str], Dict[str, str]],
    ) -> List[VariantAnalysis]:
        """
        Analyze several variants against the same alignment.

        A variant that cannot be parsed is reported on its own result and
        does not stop the others.

        Args:
            changes: Protein change strings, or a mapping of variant_id to change

        Returns:
            One VariantAnalysis per input, in input order
        """
        items = changes.items() if isinstance(changes, dict) else ((c, c) for c in changes)

        results = []
        for variant_id, change in items:
            try:
                results.append(self.analyze(change, variant_id=variant_id))
            except ValueError as e:
                logger.error(f"{variant_id}: {e}")
                results.append(VariantAnalysis(variant_id=variant_id, error=str(e)))

        n_designed = sum(1 for r in results if r.designs)
        logger.info(f"Analyzed {len(results)} variants, {n_designed} with repair designs")
        return results
