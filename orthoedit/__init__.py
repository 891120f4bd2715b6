"""
OrthoEdit - ortholog variant mapping and yeast CRISPR repair-template design.
"""

__version__ = "0.1.0"

from .config import (
    AlignmentScoring,
    AnalysisConfig,
    DesignConfig,
)
from .core.conservation import ConservationCall, ResidueMapping
from .pipeline import VariantAnalysis, VariantPipeline

__all__ = [
    "AlignmentScoring",
    "DesignConfig",
    "AnalysisConfig",
    "ConservationCall",
    "ResidueMapping",
    "VariantPipeline",
    "VariantAnalysis",
    "__version__",
]
