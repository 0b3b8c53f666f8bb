"""
PathConcord - Cross-method reconciliation of pathway analysis results

Thresholds, joins and compares pathway-level results from GSEA, fry,
SPIA and sSNAPPY: significant-set overlaps and directional concordance.
"""

__version__ = "0.1.0"

from pathconcord.reconcile import (
    MethodName,
    Direction,
    MethodResult,
    ReconcileConfig,
    reconcile,
)

__all__ = [
    "MethodName",
    "Direction",
    "MethodResult",
    "ReconcileConfig",
    "reconcile",
]
