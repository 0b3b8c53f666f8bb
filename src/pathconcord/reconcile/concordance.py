"""
Directional concordance between pathway analysis methods.

When two methods both call a pathway significant and both predict a
direction of change, the predictions should agree. This module tallies
agreement over a set of shared ids and keeps the disagreeing ids for
manual inspection; pathways lacking a direction on either side are
recorded as non-comparable rather than counted either way.

Directions come from:
    - GSEA: sign of NES
    - fry: Direction label (Up/Down)
    - SPIA: Status label (Activated/Inhibited)
    - sSNAPPY: sign of the perturbation-score logFC

Whether non-comparable pathways belong in the denominator of an agreement
rate is left to the caller: see DirectionalConcordance.rate().
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

import numpy as np

from .types import (
    Direction,
    DirectionalConcordance,
    MethodName,
    MethodResult,
    MissingDirectionError,
    validate_results,
)

logger = logging.getLogger(__name__)

__all__ = ["compare_directions", "concordance", "statistic_correlation"]


def compare_directions(
    pathway_id: str,
    result_a: Optional[MethodResult],
    result_b: Optional[MethodResult],
    method_a: object = "method A",
    method_b: object = "method B",
) -> bool:
    """
    Whether two results predict the same direction for a pathway.

    Raises:
        MissingDirectionError: If either result is absent or UNKNOWN
    """
    if result_a is None or result_a.direction is Direction.UNKNOWN:
        raise MissingDirectionError(pathway_id, method_a)
    if result_b is None or result_b.direction is Direction.UNKNOWN:
        raise MissingDirectionError(pathway_id, method_b)
    return result_a.direction is result_b.direction


def concordance(
    results_a: Sequence[MethodResult],
    results_b: Sequence[MethodResult],
    shared_ids: Iterable[str],
) -> DirectionalConcordance:
    """
    Tally direction agreement between two methods over shared ids.

    Args:
        results_a: Rows from method A (normalized ids)
        results_b: Rows from method B (normalized ids)
        shared_ids: Ids to compare, typically the intersection of both
            methods' significant sets

    Returns:
        DirectionalConcordance with every shared id in exactly one of
        agree_ids, disagree_ids or non_comparable_ids (each sorted)

    Raises:
        ValueError: If either input mixes methods or repeats ids, or if
            either input is empty (the method could not be identified)

    Example:
        >>> conc = concordance(fry_results, ssnappy_results, shared)
        >>> conc.agree_count, conc.disagree_count, conc.non_comparable_count
        (12, 3, 1)
        >>> conc.disagree_ids
        ('Interferon Signaling', 'Mitotic Prophase', 'RHO GTPase Effectors')
    """
    method_a = validate_results(results_a)
    method_b = validate_results(results_b)
    if method_a is None or method_b is None:
        raise ValueError("concordance needs non-empty result sets for both methods")

    a_by_id = {r.pathway_id: r for r in results_a}
    b_by_id = {r.pathway_id: r for r in results_b}

    agree: list[str] = []
    disagree: list[str] = []
    non_comparable: list[str] = []

    for pid in sorted(set(shared_ids)):
        try:
            same = compare_directions(
                pid, a_by_id.get(pid), b_by_id.get(pid), method_a.value, method_b.value
            )
        except MissingDirectionError as e:
            logger.debug(f"Non-comparable: {e}")
            non_comparable.append(pid)
            continue
        (agree if same else disagree).append(pid)

    if non_comparable:
        logger.info(
            f"{method_a.value} vs {method_b.value}: {len(non_comparable)} "
            f"pathway(s) without a direction on one side"
        )

    return DirectionalConcordance(
        method_a=method_a,
        method_b=method_b,
        agree_ids=tuple(agree),
        disagree_ids=tuple(disagree),
        non_comparable_ids=tuple(non_comparable),
    )


def statistic_correlation(
    results_a: Sequence[MethodResult],
    results_b: Sequence[MethodResult],
    ids: Optional[Iterable[str]] = None,
) -> tuple[float, float, int]:
    """
    Spearman rank correlation of primary statistics over shared pathways.

    Only ids present in both inputs with finite statistics on both sides are
    used. With fewer than 3 such ids the correlation is undefined.

    Args:
        results_a: Rows from method A
        results_b: Rows from method B
        ids: Restrict to these ids (default: every id present in both)

    Returns:
        (rho, p-value, n) with NaN rho and p-value when n < 3
    """
    from scipy import stats as scipy_stats

    a_by_id = {r.pathway_id: r.primary_statistic for r in results_a}
    b_by_id = {r.pathway_id: r.primary_statistic for r in results_b}

    candidates = set(a_by_id) & set(b_by_id)
    if ids is not None:
        candidates &= set(ids)

    common = sorted(
        pid for pid in candidates
        if np.isfinite(a_by_id[pid]) and np.isfinite(b_by_id[pid])
    )
    n = len(common)
    if n < 3:
        return float("nan"), float("nan"), n

    x = np.array([a_by_id[pid] for pid in common])
    y = np.array([b_by_id[pid] for pid in common])
    rho, pval = scipy_stats.spearmanr(x, y)
    return (
        float(rho) if np.isfinite(rho) else float("nan"),
        float(pval) if np.isfinite(pval) else float("nan"),
        n,
    )
