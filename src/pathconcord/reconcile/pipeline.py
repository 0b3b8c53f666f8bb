"""
Reconciliation pipeline and the ``ReconciliationReport`` dataclass.

This module provides:

* :class:`ReconcileConfig` -- cutoff, reference method, identifier folding
  and the concordance-rate denominator.
* :func:`reconcile` -- validate, normalize, threshold, overlap and
  concordance as explicit function composition.
* :class:`ReconciliationReport` -- aggregated output with views for
  export (wide table, flagged tables, summary).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import combinations
from typing import Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .concordance import concordance, statistic_correlation
from .normalize import DEFAULT_RULES, RuleTable, normalize_results
from .overlap import jaccard_matrix, overlap, pairwise_overlap
from .threshold import threshold_all, validate_cutoff
from .types import (
    DirectionalConcordance,
    MethodName,
    MethodResult,
    OverlapMode,
    OverlapReport,
    SignificantSet,
    combination_label,
    validate_results,
)

logger = logging.getLogger(__name__)

__all__ = ["ReconcileConfig", "ReconciliationReport", "reconcile"]

CONCORDANCE_DENOMINATORS = ("comparable", "all")


@dataclass(frozen=True)
class ReconcileConfig:
    """
    Parameters of one reconciliation run.

    Attributes:
        fdr_cutoff: Strict significance cutoff applied to every method
        reference_method: Method whose significant set flags the exported
            per-method tables ("also significant in reference")
        fold_identifiers: Join on join_key() of normalized ids, making
            MSigDB upper-case names comparable with display names (default).
            When False, normalized ids are compared verbatim
        concordance_denominator: None (report counts only), "comparable"
            or "all"; see DirectionalConcordance.rate()
        rules: Normalization rule table
    """

    fdr_cutoff: float = 0.05
    reference_method: MethodName = MethodName.SSNAPPY
    fold_identifiers: bool = True
    concordance_denominator: Optional[str] = None
    rules: RuleTable = field(default_factory=lambda: DEFAULT_RULES, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "fdr_cutoff", validate_cutoff(self.fdr_cutoff))
        object.__setattr__(self, "reference_method", MethodName.parse(self.reference_method))
        if (
            self.concordance_denominator is not None
            and self.concordance_denominator not in CONCORDANCE_DENOMINATORS
        ):
            raise ValueError(
                f"concordance_denominator must be one of {CONCORDANCE_DENOMINATORS} "
                f"or None, got {self.concordance_denominator!r}"
            )

    def to_dict(self) -> dict[str, object]:
        return {
            "fdr_cutoff": self.fdr_cutoff,
            "reference_method": self.reference_method.value,
            "fold_identifiers": self.fold_identifiers,
            "concordance_denominator": self.concordance_denominator,
            "normalization_rules": {
                m.value: {"patterns": list(r.patterns), "template": r.template}
                for m, r in self.rules.items()
            },
        }


@dataclass
class ReconciliationReport:
    """
    Complete output of one reconciliation run.

    Not frozen because it holds dict fields; treat it as read-only.

    Statistical Note:
        This is a DESCRIPTIVE comparison. Significance values from different
        methods are thresholded at one cutoff but never combined.

    Attributes:
        config: Parameters the run used
        results_by_method: Normalized rows per method
        significant_sets: SignificantSet per method
        overlap_report: EXACT overlap of the significant sets
        concordances: DirectionalConcordance for every method pair, computed
            over the intersection of the pair's significant sets
        statistic_correlations: (rho, p-value, n) per method pair over the
            same intersection

    Example:
        >>> report = reconcile(results_by_method, ReconcileConfig(fdr_cutoff=0.05))
        >>> print(report.summary())
        >>> report.method_specific_hits(MethodName.SSNAPPY)
        ['Cell Cycle Checkpoints', ...]
    """

    config: ReconcileConfig
    results_by_method: dict[MethodName, list[MethodResult]]
    significant_sets: dict[MethodName, SignificantSet]
    overlap_report: OverlapReport
    concordances: list[DirectionalConcordance]
    statistic_correlations: dict[tuple[MethodName, MethodName], tuple[float, float, int]]

    @property
    def methods(self) -> list[MethodName]:
        return list(self.significant_sets)

    def at_least(self, target: Sequence[MethodName]) -> frozenset[str]:
        """Ids significant in every method of ``target``."""
        target = [MethodName.parse(m) for m in target]
        report = overlap(self.significant_sets, OverlapMode.AT_LEAST, target=target)
        return report[target]

    def robust_hits(self) -> list[str]:
        """Ids significant in every method, sorted."""
        return sorted(self.overlap_report[self.methods])

    def method_specific_hits(self, method: MethodName) -> list[str]:
        """Ids significant in ``method`` and in no other method, sorted."""
        method = MethodName.parse(method)
        if method not in self.significant_sets:
            return []
        return sorted(self.overlap_report[{method}])

    def get_concordance(
        self, method_a: MethodName, method_b: MethodName
    ) -> Optional[DirectionalConcordance]:
        """Concordance for a pair in either order, or None if not computed."""
        pair = {MethodName.parse(method_a), MethodName.parse(method_b)}
        for conc in self.concordances:
            if {conc.method_a, conc.method_b} == pair:
                return conc
        return None

    def wide_format(self) -> pd.DataFrame:
        """
        One row per pathway across all methods.

        Columns:
            - pathway: normalized id
            - {method}_statistic, {method}_fdr, {method}_direction
            - {method}_significant: True/False, or missing when the method
              did not test the pathway
            - n_methods_significant

        Rows are sorted by n_methods_significant descending, then pathway.
        """
        all_ids: set[str] = set()
        for results in self.results_by_method.values():
            all_ids.update(r.pathway_id for r in results)

        if not all_ids:
            return pd.DataFrame(columns=["pathway", "n_methods_significant"])

        lookups = {
            method: {r.pathway_id: r for r in results}
            for method, results in self.results_by_method.items()
        }

        rows: list[dict[str, object]] = []
        for pid in sorted(all_ids):
            row: dict[str, object] = {"pathway": pid}
            n_sig = 0
            for method, by_id in lookups.items():
                prefix = method.value
                result = by_id.get(pid)
                if result is None:
                    row[f"{prefix}_statistic"] = np.nan
                    row[f"{prefix}_fdr"] = np.nan
                    row[f"{prefix}_direction"] = None
                    row[f"{prefix}_significant"] = None
                    continue
                is_sig = pid in self.significant_sets[method]
                row[f"{prefix}_statistic"] = result.primary_statistic
                row[f"{prefix}_fdr"] = result.significance_value
                row[f"{prefix}_direction"] = result.direction.value
                row[f"{prefix}_significant"] = is_sig
                n_sig += int(is_sig)
            row["n_methods_significant"] = n_sig
            rows.append(row)

        df = pd.DataFrame(rows)
        df = df.sort_values(["n_methods_significant", "pathway"], ascending=[False, True])
        return df.reset_index(drop=True)

    def flagged_table(self, method: MethodName) -> pd.DataFrame:
        """
        Significant pathways of one method flagged against the reference.

        Columns: ``pathway``, ``adj_p_value`` and
        ``sig_in_<reference>``. A pathway the reference did not test is
        flagged False. Sorted by adjusted p-value.

        Raises:
            KeyError: If the method or the reference method was not run
        """
        method = MethodName.parse(method)
        reference = self.config.reference_method
        if method not in self.significant_sets:
            raise KeyError(f"Method {method.value} was not part of this run")
        if reference not in self.significant_sets:
            raise KeyError(f"Reference method {reference.value} was not part of this run")

        ref_ids = self.significant_sets[reference].ids
        flag_col = f"sig_in_{reference.value}"
        rows = [
            {
                "pathway": r.pathway_id,
                "adj_p_value": r.significance_value,
                flag_col: r.pathway_id in ref_ids,
            }
            for r in self.significant_sets[method].results
        ]
        df = pd.DataFrame(rows, columns=["pathway", "adj_p_value", flag_col])
        df = df.sort_values(["adj_p_value", "pathway"], kind="mergesort")
        return df.reset_index(drop=True)

    def concordance_frame(self) -> pd.DataFrame:
        """One row per method pair with counts, optional rate and Spearman rho."""
        denominator = self.config.concordance_denominator
        rows = []
        for conc in self.concordances:
            row = conc.to_dict(denominator)
            rho, pval, n = self.statistic_correlations.get(
                (conc.method_a, conc.method_b), (np.nan, np.nan, 0)
            )
            row["statistic_spearman_rho"] = rho
            row["statistic_spearman_pvalue"] = pval
            row["statistic_n"] = n
            rows.append(row)
        return pd.DataFrame(rows)

    def pairwise_overlap(self) -> pd.DataFrame:
        return pairwise_overlap(self.significant_sets)

    def jaccard_matrix(self) -> pd.DataFrame:
        return jaccard_matrix(self.significant_sets)

    def to_dict(self) -> dict[str, object]:
        """JSON-compatible run summary."""
        denominator = self.config.concordance_denominator
        return {
            "config": self.config.to_dict(),
            "methods": [m.value for m in self.methods],
            "n_tested": {m.value: len(s.tested_ids) for m, s in self.significant_sets.items()},
            "n_significant": {m.value: len(s) for m, s in self.significant_sets.items()},
            "robust_hits": self.robust_hits(),
            "overlap": {
                combination_label(combo, self.methods): len(ids)
                for combo, ids in self.overlap_report.combinations.items()
            },
            "concordance": [c.to_dict(denominator) for c in self.concordances],
        }

    def summary(self) -> str:
        """
        Human-readable multi-line summary.

        Example:
            >>> print(report.summary())
            Pathway Reconciliation Results
            ========================================
            FDR cutoff: 0.05
            Methods: gsea, fry, spia, ssnappy
            ...
        """
        lines = [
            "Pathway Reconciliation Results",
            "=" * 40,
            f"FDR cutoff: {self.config.fdr_cutoff}",
            f"Methods: {', '.join(m.value for m in self.methods)}",
            f"Reference: {self.config.reference_method.value}",
            "",
            "Significant pathways (tested):",
        ]
        for method, sig in self.significant_sets.items():
            lines.append(f"  {method.value}: {len(sig)} ({len(sig.tested_ids)})")

        lines.extend([
            "",
            f"Significant in all methods: {len(self.robust_hits())}",
        ])
        for method in self.methods:
            lines.append(
                f"  {method.value} only: {len(self.method_specific_hits(method))}"
            )

        if self.concordances:
            lines.extend(["", "Direction concordance:"])
            denominator = self.config.concordance_denominator
            for conc in self.concordances:
                line = (
                    f"  {conc.method_a.value} vs {conc.method_b.value}: "
                    f"agree={conc.agree_count}, disagree={conc.disagree_count}, "
                    f"non-comparable={conc.non_comparable_count}"
                )
                if denominator is not None:
                    line += f", rate={conc.rate(denominator):.1%}"
                lines.append(line)

        return "\n".join(lines)


def reconcile(
    results_by_method: Mapping[MethodName, Sequence[MethodResult]],
    config: Optional[ReconcileConfig] = None,
) -> ReconciliationReport:
    """
    Run the full reconciliation over per-method result tables.

    Stages (each returns new values, nothing is mutated):
        1. validate: one method per table, unique ids
        2. normalize: strip method decoration (optionally fold to join keys)
        3. threshold: strict cutoff per method
        4. overlap: EXACT partition of the significant sets
        5. concordance: directions over each pair's shared significant ids

    Args:
        results_by_method: Method name -> rows emitted by that method
        config: Run parameters (default ReconcileConfig())

    Returns:
        ReconciliationReport

    Raises:
        ValueError: If fewer than two methods are supplied or inputs are
            structurally invalid
        UnknownFormatError: If an identifier cannot be normalized
        InvalidThresholdError: If the configured cutoff is out of range
    """
    config = config or ReconcileConfig()
    validate_cutoff(config.fdr_cutoff)

    if len(results_by_method) < 2:
        raise ValueError(
            f"Reconciliation needs at least two methods, got {len(results_by_method)}"
        )

    normalized: dict[MethodName, list[MethodResult]] = {}
    for method_key, results in results_by_method.items():
        method = MethodName.parse(method_key)
        actual = validate_results(results)
        if actual is not None and actual != method:
            raise ValueError(
                f"Results filed under {method.value} were produced by {actual.value}"
            )
        normalized[method] = normalize_results(
            results, config.rules, fold=config.fold_identifiers
        )
        logger.info(f"{method.value}: {len(normalized[method])} pathways loaded")

    significant_sets = threshold_all(normalized, config.fdr_cutoff)
    overlap_report = overlap(significant_sets, OverlapMode.EXACT)

    concordances: list[DirectionalConcordance] = []
    correlations: dict[tuple[MethodName, MethodName], tuple[float, float, int]] = {}
    for method_a, method_b in combinations(significant_sets, 2):
        if not normalized[method_a] or not normalized[method_b]:
            logger.warning(
                f"Skipping concordance {method_a.value} vs {method_b.value}: "
                f"no results for one method"
            )
            continue
        shared = significant_sets[method_a].ids & significant_sets[method_b].ids
        concordances.append(
            concordance(normalized[method_a], normalized[method_b], shared)
        )
        correlations[(method_a, method_b)] = statistic_correlation(
            normalized[method_a], normalized[method_b], shared
        )

    report = ReconciliationReport(
        config=config,
        results_by_method=normalized,
        significant_sets=significant_sets,
        overlap_report=overlap_report,
        concordances=concordances,
        statistic_correlations=correlations,
    )
    logger.info(
        f"Reconciled {len(normalized)} methods: "
        f"{len(overlap_report.union())} pathways significant in at least one"
    )
    return report
