"""
Cross-method overlap of significant pathway sets.

Two set semantics are supported:

* EXACT: every id significant anywhere is assigned to the exact subset of
  methods that call it significant. The subsets partition the union, which
  is what an UpSet plot draws.
* AT_LEAST: a subset S lists the ids significant in every method of S,
  whatever their status elsewhere ("significant in GSEA, fry and SPIA,
  possibly also in sSNAPPY"). Removing a method from S can only grow it.

Pairwise summaries (intersection sizes, Jaccard index) are provided as
square DataFrames for heatmaps.
"""

from __future__ import annotations

from itertools import combinations
from typing import Iterable, Mapping, Optional

import numpy as np
import pandas as pd

from .types import MethodName, OverlapMode, OverlapReport, SignificantSet

__all__ = ["overlap", "pairwise_overlap", "jaccard_matrix"]


def _id_sets(sets: Mapping[MethodName, SignificantSet | Iterable[str]]) -> dict[MethodName, frozenset[str]]:
    out: dict[MethodName, frozenset[str]] = {}
    for method, value in sets.items():
        method = MethodName.parse(method)
        if isinstance(value, SignificantSet):
            out[method] = value.ids
        else:
            out[method] = frozenset(value)
    return out


def overlap(
    sets: Mapping[MethodName, SignificantSet | Iterable[str]],
    mode: OverlapMode = OverlapMode.EXACT,
    target: Optional[Iterable[MethodName]] = None,
) -> OverlapReport:
    """
    Compute the overlap report of per-method significant sets.

    Args:
        sets: Method name -> SignificantSet (or plain iterable of ids)
        mode: EXACT or AT_LEAST
        target: AT_LEAST only. The method subset to query; when omitted,
            every non-empty subset of the supplied methods is reported.

    Returns:
        OverlapReport. Combinations with no ids are omitted, so an id
        significant in no method never appears.

    Raises:
        ValueError: If target is empty, names a method not in ``sets``, or
            is supplied in EXACT mode

    Example:
        >>> report = overlap({MethodName.GSEA: {"p1", "p2", "p3"},
        ...                   MethodName.SPIA: {"p2", "p3", "p4"}})
        >>> sorted(report[{MethodName.GSEA, MethodName.SPIA}])
        ['p2', 'p3']
    """
    mode = OverlapMode(mode)
    id_sets = _id_sets(sets)
    methods = tuple(id_sets)

    if mode is OverlapMode.EXACT:
        if target is not None:
            raise ValueError("target applies to AT_LEAST mode only")

        membership: dict[str, set[MethodName]] = {}
        for method, ids in id_sets.items():
            for pid in ids:
                membership.setdefault(pid, set()).add(method)

        grouped: dict[frozenset[MethodName], set[str]] = {}
        for pid, members in membership.items():
            grouped.setdefault(frozenset(members), set()).add(pid)

        combos = {combo: frozenset(ids) for combo, ids in grouped.items()}
        return OverlapReport(mode=mode, methods=methods, combinations=combos)

    if target is not None:
        subset = frozenset(MethodName.parse(m) for m in target)
        if not subset:
            raise ValueError("target must name at least one method")
        missing = subset - set(methods)
        if missing:
            raise ValueError(
                f"target names methods without a significant set: "
                f"{sorted(m.value for m in missing)}"
            )
        subsets = [subset]
    else:
        subsets = [
            frozenset(c)
            for k in range(1, len(methods) + 1)
            for c in combinations(methods, k)
        ]

    combos = {}
    for subset in subsets:
        ids = frozenset.intersection(*(id_sets[m] for m in subset))
        if ids:
            combos[subset] = ids

    return OverlapReport(mode=mode, methods=methods, combinations=combos)


def pairwise_overlap(
    sets: Mapping[MethodName, SignificantSet | Iterable[str]],
) -> pd.DataFrame:
    """
    Square matrix of pairwise intersection sizes.

    The diagonal holds each method's own set size. Index and columns are the
    method values in input order.
    """
    id_sets = _id_sets(sets)
    names = [m.value for m in id_sets]
    values = list(id_sets.values())
    n = len(values)

    matrix = np.zeros((n, n), dtype=int)
    for i in range(n):
        for j in range(i, n):
            size = len(values[i] & values[j])
            matrix[i, j] = size
            matrix[j, i] = size

    return pd.DataFrame(matrix, index=names, columns=names)


def jaccard_matrix(
    sets: Mapping[MethodName, SignificantSet | Iterable[str]],
) -> pd.DataFrame:
    """
    Square matrix of pairwise Jaccard indices |A & B| / |A | B|.

    Diagonal is 1.0. Pairs whose union is empty get 0.0.
    """
    id_sets = _id_sets(sets)
    names = [m.value for m in id_sets]
    values = list(id_sets.values())
    n = len(values)

    matrix = np.eye(n)
    for i, j in combinations(range(n), 2):
        union = len(values[i] | values[j])
        jac = len(values[i] & values[j]) / union if union else 0.0
        matrix[i, j] = jac
        matrix[j, i] = jac

    return pd.DataFrame(matrix, index=names, columns=names)
