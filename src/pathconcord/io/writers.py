"""
Writers for reconciliation artifacts.

Output files (all tab-separated unless noted):

    {method}_vs_{reference}.tsv   pathway, adj_p_value, sig_in_{reference}
    overlap.tsv                   one row per EXACT method combination
    concordance.tsv               one row per method pair
    pathways_wide.tsv             one row per pathway, every method's columns
    summary.json                  run configuration and headline counts (JSON)

Every file is written atomically (temp file + rename) so an interrupted run
never leaves a half-written table next to complete ones.

Examples:
    >>> from pathconcord.io.writers import write_report
    >>> paths = write_report(report, Path("results/reconciliation"))
    >>> sorted(p.name for p in paths)
    ['concordance.tsv', 'fry_vs_ssnappy.tsv', 'gsea_vs_ssnappy.tsv', ...]
"""

from __future__ import annotations

import logging
from pathlib import Path

from pathconcord.reconcile.pipeline import ReconciliationReport
from pathconcord.reconcile.types import MethodName
from pathconcord.utils.fileio import atomic_write_json, atomic_write_table

logger = logging.getLogger(__name__)

__all__ = [
    'write_flagged_table',
    'write_overlap_table',
    'write_concordance_table',
    'write_wide_table',
    'write_run_summary',
    'write_report',
]


def _prepare(path: Path) -> Path:
    if not isinstance(path, Path):
        path = Path(path)
    if path.parent != Path('.') and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    return path


def write_flagged_table(report: ReconciliationReport, method: MethodName, path: Path) -> Path:
    """
    Write one method's significant pathways flagged against the reference.

    Columns: pathway, adj_p_value, sig_in_{reference}

    Raises:
        KeyError: If the method or the reference was not part of the run
    """
    path = _prepare(path)
    df = report.flagged_table(method)
    atomic_write_table(path, df)
    logger.info(f"Wrote {len(df)} {MethodName.parse(method).value} pathways to {path}")
    return path


def write_overlap_table(report: ReconciliationReport, path: Path) -> Path:
    path = _prepare(path)
    df = report.overlap_report.to_frame()
    atomic_write_table(path, df)
    logger.info(f"Wrote {len(df)} overlap combinations to {path}")
    return path


def write_concordance_table(report: ReconciliationReport, path: Path) -> Path:
    path = _prepare(path)
    df = report.concordance_frame()
    atomic_write_table(path, df)
    logger.info(f"Wrote {len(df)} concordance pairs to {path}")
    return path


def write_wide_table(report: ReconciliationReport, path: Path) -> Path:
    path = _prepare(path)
    df = report.wide_format()
    atomic_write_table(path, df)
    logger.info(f"Wrote {len(df)} pathways to {path}")
    return path


def write_run_summary(report: ReconciliationReport, path: Path, extra: dict | None = None) -> Path:
    """Write the JSON run summary; ``extra`` keys are merged at top level."""
    path = _prepare(path)
    payload = report.to_dict()
    if extra:
        payload.update(extra)
    atomic_write_json(path, payload)
    logger.info(f"Wrote run summary to {path}")
    return path


def write_report(
    report: ReconciliationReport, output_dir: Path, extra: dict | None = None
) -> list[Path]:
    """
    Write every artifact of a reconciliation run into ``output_dir``.

    One flagged table is written per non-reference method; when the
    reference method is absent from the run no flagged tables are written.

    Returns:
        Paths written, in write order
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    reference = report.config.reference_method
    if reference in report.significant_sets:
        for method in report.methods:
            if method == reference:
                continue
            written.append(write_flagged_table(
                report, method, output_dir / f"{method.value}_vs_{reference.value}.tsv"
            ))
    else:
        logger.warning(
            f"Reference method {reference.value} not in run; flagged tables skipped"
        )

    written.append(write_overlap_table(report, output_dir / "overlap.tsv"))
    written.append(write_concordance_table(report, output_dir / "concordance.tsv"))
    written.append(write_wide_table(report, output_dir / "pathways_wide.tsv"))
    written.append(write_run_summary(report, output_dir / "summary.json", extra=extra))
    return written
