"""
Significance thresholding of per-method results.

One cutoff is applied uniformly across methods whose significance values
mean different things (fgsea padj, fry FDR, SPIA's Fisher-combined pGFdr,
sSNAPPY adj.P.Val). The comparison is strict: a row with
significance_value == cutoff is not significant.
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

import numpy as np

from .types import (
    InvalidThresholdError,
    MethodName,
    MethodResult,
    SignificantSet,
    validate_results,
)

logger = logging.getLogger(__name__)

__all__ = ["validate_cutoff", "threshold", "threshold_all"]


def validate_cutoff(cutoff: float) -> float:
    """
    Check a cutoff lies in the open interval (0, 1).

    Raises:
        InvalidThresholdError: For non-numeric, non-finite or out-of-range values
    """
    if isinstance(cutoff, bool):
        raise InvalidThresholdError(cutoff)
    try:
        value = float(cutoff)
    except (TypeError, ValueError):
        raise InvalidThresholdError(cutoff)
    if not np.isfinite(value) or not 0.0 < value < 1.0:
        raise InvalidThresholdError(cutoff)
    return value


def threshold(results: Sequence[MethodResult], cutoff: float = 0.05) -> SignificantSet:
    """
    Select rows with significance_value < cutoff.

    Args:
        results: Rows from a single method
        cutoff: Strict upper bound in (0, 1). Default 0.05.

    Returns:
        SignificantSet with the passing rows in input order and the ids of
        every input row as tested_ids

    Raises:
        InvalidThresholdError: If cutoff is outside (0, 1)
        ValueError: If rows come from more than one method or repeat an id

    Example:
        >>> sig = threshold(gsea_results, cutoff=0.05)
        >>> len(sig), len(sig.tested_ids)
        (42, 1187)
    """
    cutoff = validate_cutoff(cutoff)
    method = validate_results(results)

    passing = tuple(r for r in results if r.significance_value < cutoff)
    tested = frozenset(r.pathway_id for r in results)

    if method is not None:
        logger.info(
            f"{method.value}: {len(passing)}/{len(tested)} pathways with "
            f"significance < {cutoff}"
        )

    return SignificantSet(
        method=method,
        cutoff=cutoff,
        results=passing,
        tested_ids=tested,
    )


def threshold_all(
    results_by_method: Mapping[MethodName, Sequence[MethodResult]],
    cutoff: float = 0.05,
) -> dict[MethodName, SignificantSet]:
    """
    Threshold every method at the same cutoff.

    The cutoff is validated once before any method is processed. A method
    with no rows still gets an (empty) SignificantSet keyed by its name.
    """
    cutoff = validate_cutoff(cutoff)
    out: dict[MethodName, SignificantSet] = {}
    for method, results in results_by_method.items():
        sig = threshold(results, cutoff)
        if sig.method is None:
            sig = SignificantSet(method=method, cutoff=cutoff, results=(), tested_ids=frozenset())
        elif sig.method != method:
            raise ValueError(
                f"Results filed under {method.value} were produced by {sig.method.value}"
            )
        out[method] = sig
    return out
