"""
Cross-method reconciliation of pathway analysis results.

Exports the typed records, the individual stages and the composed
pipeline:

- Identifier normalization (normalize, decorate, join_key)
- Significance thresholding (threshold)
- Set overlap (overlap, pairwise_overlap, jaccard_matrix)
- Directional concordance (concordance, statistic_correlation)
- Full run (reconcile -> ReconciliationReport)
"""

from .types import (
    ReconciliationError,
    UnknownFormatError,
    InvalidThresholdError,
    MissingDirectionError,
    MethodName,
    Direction,
    OverlapMode,
    MethodResult,
    SignificantSet,
    OverlapReport,
    DirectionalConcordance,
    validate_results,
)
from .normalize import (
    NormalizationRule,
    RuleTable,
    DEFAULT_RULES,
    normalize,
    decorate,
    join_key,
    normalize_results,
)
from .threshold import threshold, threshold_all, validate_cutoff
from .overlap import overlap, pairwise_overlap, jaccard_matrix
from .concordance import concordance, statistic_correlation
from .pipeline import ReconcileConfig, ReconciliationReport, reconcile

__all__ = [
    "ReconciliationError",
    "UnknownFormatError",
    "InvalidThresholdError",
    "MissingDirectionError",
    "MethodName",
    "Direction",
    "OverlapMode",
    "MethodResult",
    "SignificantSet",
    "OverlapReport",
    "DirectionalConcordance",
    "validate_results",
    "NormalizationRule",
    "RuleTable",
    "DEFAULT_RULES",
    "normalize",
    "decorate",
    "join_key",
    "normalize_results",
    "threshold",
    "threshold_all",
    "validate_cutoff",
    "overlap",
    "pairwise_overlap",
    "jaccard_matrix",
    "concordance",
    "statistic_correlation",
    "ReconcileConfig",
    "ReconciliationReport",
    "reconcile",
]
