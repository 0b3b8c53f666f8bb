"""
Core types for the pathway reconciliation framework.

This module defines the foundational types shared by every reconciliation
stage: enums identifying the analysis methods and predicted directions,
frozen dataclasses for per-pathway results and derived reports, and the
exception hierarchy raised by the reconciler.

All records are immutable. Each stage (normalize, threshold, overlap,
concordance) builds new records from its inputs and never mutates them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Sequence

import numpy as np


# =============================================================================
# Exceptions
# =============================================================================


class ReconciliationError(Exception):
    """Base class for reconciliation failures."""


class UnknownFormatError(ReconciliationError):
    """Pathway identifier matches no registered normalization pattern."""

    def __init__(self, pathway_id: str, method: object, detail: str = ""):
        self.pathway_id = pathway_id
        self.method = method
        msg = f"Identifier {pathway_id!r} does not match any pattern registered for {method}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class InvalidThresholdError(ReconciliationError):
    """Significance cutoff outside the open interval (0, 1)."""

    def __init__(self, cutoff: object):
        self.cutoff = cutoff
        super().__init__(f"Significance cutoff must lie in (0, 1), got {cutoff!r}")


class MissingDirectionError(ReconciliationError):
    """A pathway lacks a usable direction in one of the compared methods."""

    def __init__(self, pathway_id: str, method: object):
        self.pathway_id = pathway_id
        self.method = method
        super().__init__(f"No direction for {pathway_id!r} in {method}")


# =============================================================================
# Enums
# =============================================================================


class MethodName(Enum):
    """
    Pathway analysis methods compared by the reconciler.

    Attributes:
        GSEA: Gene set enrichment analysis (fgsea), signed NES
        FRY: Rotation gene set test (limma::fry), Up/Down direction label
        SPIA: Signaling pathway impact analysis, perturbation tA and status
        SSNAPPY: Single-sample perturbation scores tested at group level
    """

    GSEA = "gsea"
    FRY = "fry"
    SPIA = "spia"
    SSNAPPY = "ssnappy"

    @classmethod
    def parse(cls, value: "MethodName | str") -> "MethodName":
        """Accept an enum member, its value, or its name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for member in cls:
            if text.lower() in (member.value, member.name.lower()):
                return member
        raise ValueError(
            f"Unknown method {value!r}. Expected one of: "
            f"{', '.join(m.value for m in cls)}"
        )


class Direction(Enum):
    """Predicted direction of pathway change."""

    ACTIVATED = "Activated"
    INHIBITED = "Inhibited"
    UNKNOWN = "Unknown"

    @classmethod
    def from_statistic(cls, value: float | None) -> "Direction":
        """Sign of a signed statistic; zero or non-finite gives UNKNOWN."""
        if value is None or not np.isfinite(value) or value == 0:
            return cls.UNKNOWN
        return cls.ACTIVATED if value > 0 else cls.INHIBITED

    @classmethod
    def from_label(cls, label: object) -> "Direction":
        """
        Map an engine's direction label onto Direction.

        Recognizes SPIA's Activated/Inhibited and fry's Up/Down. Anything
        else, including missing values, maps to UNKNOWN.
        """
        if label is None or (isinstance(label, float) and math.isnan(label)):
            return cls.UNKNOWN
        text = str(label).strip().lower()
        if text in ("activated", "up", "+"):
            return cls.ACTIVATED
        if text in ("inhibited", "down", "-"):
            return cls.INHIBITED
        return cls.UNKNOWN


class OverlapMode(Enum):
    """
    Set semantics for overlap reports.

    EXACT: each id is assigned to the one combination of methods in which
        it is significant (UpSet semantics); combinations partition the union.
    AT_LEAST: each combination lists ids significant in every method of the
        combination, regardless of significance elsewhere.
    """

    EXACT = "exact"
    AT_LEAST = "at_least"


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class MethodResult:
    """
    One pathway's result from one analysis method.

    Semantic Equivalence Notes:
        - primary_statistic: NES for GSEA, tA for SPIA, logFC of the
          perturbation score for sSNAPPY, NaN for fry (no statistic emitted)
        - significance_value: adjusted p-value (padj, FDR, pGFdr, adj.P.Val)

    Attributes:
        pathway_id: Identifier in the method's naming convention, or the
            normalized identifier once normalize_results() has run
        method: Which analysis method produced the row
        primary_statistic: Signed effect statistic (NaN when unavailable)
        significance_value: Adjusted p-value in [0, 1]
        direction: Predicted direction of change
        raw_pathway_id: Original identifier before normalization

    Example:
        >>> r = MethodResult("reactome.Cell Cycle", MethodName.SSNAPPY, 1.2, 0.003)
        >>> r.is_significant(0.05)
        True
    """

    pathway_id: str
    method: MethodName
    primary_statistic: float
    significance_value: float
    direction: Direction = Direction.UNKNOWN
    raw_pathway_id: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.pathway_id, str) or not self.pathway_id:
            raise ValueError(f"pathway_id must be a non-empty string, got {self.pathway_id!r}")
        sig = self.significance_value
        if sig is None or not np.isfinite(sig) or not 0.0 <= sig <= 1.0:
            raise ValueError(
                f"significance_value for {self.pathway_id!r} ({self.method.value}) "
                f"must lie in [0, 1], got {sig!r}"
            )

    def is_significant(self, cutoff: float) -> bool:
        return self.significance_value < cutoff

    def to_dict(self) -> dict[str, object]:
        return {
            "pathway_id": self.pathway_id,
            "method": self.method.value,
            "primary_statistic": self.primary_statistic,
            "significance_value": self.significance_value,
            "direction": self.direction.value,
            "raw_pathway_id": self.raw_pathway_id,
        }


def validate_results(results: Sequence[MethodResult]) -> Optional[MethodName]:
    """
    Check that a result sequence comes from one method with unique ids.

    Returns:
        The shared MethodName, or None for an empty sequence

    Raises:
        ValueError: On mixed methods or duplicate pathway ids
    """
    if not results:
        return None

    methods = {r.method for r in results}
    if len(methods) > 1:
        raise ValueError(
            f"Results mix several methods: {sorted(m.value for m in methods)}"
        )

    seen: set[str] = set()
    duplicates: list[str] = []
    for r in results:
        if r.pathway_id in seen:
            duplicates.append(r.pathway_id)
        seen.add(r.pathway_id)
    if duplicates:
        raise ValueError(
            f"Duplicate pathway ids in {results[0].method.value} results: "
            f"{sorted(set(duplicates))[:10]}"
        )

    return next(iter(methods))


@dataclass(frozen=True)
class SignificantSet:
    """
    Pathways passing the significance cutoff for one method.

    Attributes:
        method: Method the rows came from (None for an empty input)
        cutoff: Strict upper bound applied to significance_value
        results: Significant rows, in input order
        tested_ids: Every id the method reported, significant or not.
            Pathways outside tested_ids were not tested (e.g. SPIA only
            reports pathways containing a DE gene).
    """

    method: Optional[MethodName]
    cutoff: float
    results: tuple[MethodResult, ...]
    tested_ids: frozenset[str] = field(default_factory=frozenset)

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(r.pathway_id for r in self.results)

    def __len__(self) -> int:
        return len(self.results)

    def __contains__(self, pathway_id: object) -> bool:
        return pathway_id in self.ids

    def was_tested(self, pathway_id: str) -> bool:
        return pathway_id in self.tested_ids


@dataclass(frozen=True)
class OverlapReport:
    """
    Cross-method overlap of significant pathway sets.

    Attributes:
        mode: EXACT (partition) or AT_LEAST (inclusive intersections)
        methods: Methods considered, in the order supplied
        combinations: Mapping from a non-empty method subset to the ids
            assigned to it. Empty combinations are omitted.
    """

    mode: OverlapMode
    methods: tuple[MethodName, ...]
    combinations: dict[frozenset[MethodName], frozenset[str]]

    def __getitem__(self, key: Iterable[MethodName]) -> frozenset[str]:
        return self.combinations.get(frozenset(key), frozenset())

    def __iter__(self):
        return iter(self.combinations)

    def __len__(self) -> int:
        return len(self.combinations)

    def union(self) -> frozenset[str]:
        out: set[str] = set()
        for ids in self.combinations.values():
            out.update(ids)
        return frozenset(out)

    def counts(self) -> dict[frozenset[MethodName], int]:
        return {combo: len(ids) for combo, ids in self.combinations.items()}

    def to_frame(self):
        """
        One row per combination with a boolean membership column per method.

        Columns: one per method value, ``combination`` (methods joined by
        '&'), ``n_pathways`` and ``pathways`` (sorted, ';'-joined).
        Rows are sorted by size descending, then by combination label.
        """
        import pandas as pd

        rows: list[dict[str, object]] = []
        for combo, ids in self.combinations.items():
            row: dict[str, object] = {m.value: (m in combo) for m in self.methods}
            row["combination"] = combination_label(combo, self.methods)
            row["n_pathways"] = len(ids)
            row["pathways"] = ";".join(sorted(ids))
            rows.append(row)

        columns = [m.value for m in self.methods] + ["combination", "n_pathways", "pathways"]
        if not rows:
            return pd.DataFrame(columns=columns)

        df = pd.DataFrame(rows, columns=columns)
        df = df.sort_values(["n_pathways", "combination"], ascending=[False, True])
        return df.reset_index(drop=True)


def combination_label(
    combo: Iterable[MethodName], order: Sequence[MethodName] = tuple(MethodName)
) -> str:
    """'gsea&spia' style label with members in a stable order."""
    members = set(combo)
    return "&".join(m.value for m in order if m in members)


@dataclass(frozen=True)
class DirectionalConcordance:
    """
    Agreement of predicted directions between two methods.

    Restricted to a given set of shared ids (usually the intersection of
    both methods' significant sets). Every shared id lands in exactly one of
    agree_ids, disagree_ids or non_comparable_ids.

    Attributes:
        method_a: First method
        method_b: Second method
        agree_ids: Ids with the same direction in both methods
        disagree_ids: Ids with opposite directions, sorted for inspection
        non_comparable_ids: Ids with an UNKNOWN or missing direction on
            either side
    """

    method_a: MethodName
    method_b: MethodName
    agree_ids: tuple[str, ...]
    disagree_ids: tuple[str, ...]
    non_comparable_ids: tuple[str, ...]

    @property
    def agree_count(self) -> int:
        return len(self.agree_ids)

    @property
    def disagree_count(self) -> int:
        return len(self.disagree_ids)

    @property
    def non_comparable_count(self) -> int:
        return len(self.non_comparable_ids)

    @property
    def n_shared(self) -> int:
        return self.agree_count + self.disagree_count + self.non_comparable_count

    def rate(self, denominator: str) -> float:
        """
        Fraction of agreeing pathways.

        Args:
            denominator: "comparable" divides by agree + disagree;
                "all" divides by every shared id, counting non-comparable
                pathways as not agreeing.

        Returns:
            Agreement fraction, or NaN when the denominator is zero
        """
        if denominator == "comparable":
            total = self.agree_count + self.disagree_count
        elif denominator == "all":
            total = self.n_shared
        else:
            raise ValueError(
                f"denominator must be 'comparable' or 'all', got {denominator!r}"
            )
        if total == 0:
            return float("nan")
        return self.agree_count / total

    def to_dict(self, denominator: Optional[str] = None) -> dict[str, object]:
        out: dict[str, object] = {
            "method_a": self.method_a.value,
            "method_b": self.method_b.value,
            "n_shared": self.n_shared,
            "n_agree": self.agree_count,
            "n_disagree": self.disagree_count,
            "n_non_comparable": self.non_comparable_count,
            "disagreeing": ";".join(self.disagree_ids),
            "non_comparable": ";".join(self.non_comparable_ids),
        }
        if denominator is not None:
            out["agreement_rate"] = self.rate(denominator)
        return out

    def summary(self) -> str:
        lines = [
            f"Direction concordance: {self.method_a.value} vs {self.method_b.value}",
            f"  Shared pathways: {self.n_shared}",
            f"  Agree: {self.agree_count}",
            f"  Disagree: {self.disagree_count}",
            f"  Non-comparable: {self.non_comparable_count}",
        ]
        for pid in self.disagree_ids:
            lines.append(f"    disagrees: {pid}")
        return "\n".join(lines)


__all__ = [
    "ReconciliationError",
    "UnknownFormatError",
    "InvalidThresholdError",
    "MissingDirectionError",
    "MethodName",
    "Direction",
    "OverlapMode",
    "MethodResult",
    "validate_results",
    "SignificantSet",
    "OverlapReport",
    "combination_label",
    "DirectionalConcordance",
]
