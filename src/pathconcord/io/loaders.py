"""
Loaders for external engine result tables.

Reads pathway-level tables written by fgsea, limma::fry, SPIA and the
sSNAPPY group-level test into MethodResult records, plus the gene-level
differential expression table.

Engineering Design:
    - Delimiter sniffed unless the format fixes it (CSV and TSV both work)
    - Required columns checked up front with a message naming what is missing
    - Rows with a missing adjusted p-value are dropped with a warning
      (fgsea reports NA padj for gene sets it could not test)
    - Everything else invalid raises ValueError; nothing is silently coerced

Examples:
    >>> from pathlib import Path
    >>> from pathconcord.io.loaders import load_method_results
    >>> from pathconcord.io.formats import PRESETS
    >>>
    >>> spia = load_method_results(Path("spia.tsv"), PRESETS['spia'])
    >>> spia[0]
    MethodResult(pathway_id='Cell Cycle', method=<MethodName.SPIA: 'spia'>, ...)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

from pathconcord.io.formats import DE_COLUMNS, PRESETS, ResultFormat, sniff_delimiter
from pathconcord.reconcile.types import Direction, MethodResult

logger = logging.getLogger(__name__)

__all__ = ['read_table', 'load_method_results', 'load_de_table', 'results_from_frame']


def read_table(path: Path, delimiter: Optional[str] = None, na_values=None) -> pd.DataFrame:
    """
    Read a delimited table with string-typed header handling.

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If the file is empty or has no data rows
    """
    if not isinstance(path, Path):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Result table not found: {path}")

    sep = delimiter or sniff_delimiter(path)
    try:
        df = pd.read_csv(
            path,
            sep=sep,
            na_values=list(na_values) if na_values is not None else None,
            keep_default_na=True,
        )
    except pd.errors.EmptyDataError:
        raise ValueError(f"Result table is empty: {path}")

    if df.empty:
        raise ValueError(f"Result table has a header but no rows: {path}")
    return df


def results_from_frame(df: pd.DataFrame, fmt: ResultFormat, source: str = "<frame>") -> list[MethodResult]:
    """
    Convert an engine's result DataFrame into MethodResult records.

    Args:
        df: Table as read from disk
        fmt: Column configuration
        source: Label used in log and error messages

    Returns:
        One MethodResult per row with a non-missing significance value

    Raises:
        ValueError: If required columns are missing, significance values are
            non-numeric or outside [0, 1], or pathway ids repeat
    """
    missing = [c for c in fmt.required_columns if c not in df.columns]
    if missing:
        raise ValueError(
            f"{source}: missing column(s) {missing} for {fmt.name} format. "
            f"Available: {list(df.columns)}"
        )

    if fmt.id_col is None:
        # R row names: an unnamed first column (write.csv) or a header one
        # field short (write.table), which pandas turns into the index
        if not isinstance(df.index, pd.RangeIndex):
            df = df.reset_index()
        id_series = df.iloc[:, 0]
    else:
        id_series = df[fmt.id_col]

    raw_sig = df[fmt.significance_col]
    sig = pd.to_numeric(raw_sig, errors='coerce')
    unparsed = sig.isna() & raw_sig.notna()
    if unparsed.any():
        bad = [
            f"{str(id_series.loc[idx]).strip()}={raw_sig.loc[idx]!r}"
            for idx in df.index[unparsed]
        ]
        raise ValueError(
            f"{source}: non-numeric {fmt.significance_col} value(s) in {fmt.name} "
            f"table: {bad[:10]}"
        )
    keep = raw_sig.notna()
    n_dropped = int((~keep).sum())
    if n_dropped:
        logger.warning(
            f"{source}: dropped {n_dropped} {fmt.name} row(s) with missing "
            f"{fmt.significance_col}"
        )

    if fmt.statistic_col is not None:
        stat = pd.to_numeric(df[fmt.statistic_col], errors='coerce')
        bad_stat = stat.isna() & df[fmt.statistic_col].notna()
        if bad_stat.any():
            raise ValueError(
                f"{source}: non-numeric {fmt.statistic_col} value(s) in {fmt.name} "
                f"table: {df.loc[bad_stat, fmt.statistic_col].tolist()[:10]}"
            )
    else:
        stat = pd.Series(np.nan, index=df.index)

    results: list[MethodResult] = []
    for idx in df.index[keep]:
        pid = str(id_series.loc[idx]).strip()
        statistic = float(stat.loc[idx])
        if fmt.direction_col is not None:
            direction = Direction.from_label(df.at[idx, fmt.direction_col])
        else:
            direction = Direction.from_statistic(statistic)
        results.append(
            MethodResult(
                pathway_id=pid,
                method=fmt.method,
                primary_statistic=statistic,
                significance_value=float(sig.loc[idx]),
                direction=direction,
            )
        )

    ids = [r.pathway_id for r in results]
    if len(set(ids)) != len(ids):
        dupes = sorted({pid for pid in ids if ids.count(pid) > 1})
        raise ValueError(f"{source}: duplicate pathway ids {dupes[:10]}")

    logger.info(f"Loaded {len(results)} {fmt.name} pathways from {source}")
    return results


def load_method_results(path: Path, fmt: ResultFormat | str) -> list[MethodResult]:
    """
    Load one engine's pathway result table.

    Args:
        path: CSV or TSV file
        fmt: ResultFormat, or the name of a preset ('fgsea', 'fry', 'spia',
            'ssnappy')

    Returns:
        List of MethodResult with raw (un-normalized) pathway ids

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: For unknown presets or malformed tables
    """
    if isinstance(fmt, str):
        if fmt not in PRESETS:
            raise ValueError(f"Unknown result format {fmt!r}. Presets: {sorted(PRESETS)}")
        fmt = PRESETS[fmt]

    df = read_table(path, delimiter=fmt.delimiter, na_values=fmt.na_values)
    return results_from_frame(df, fmt, source=str(path))


def load_de_table(path: Path, columns: Optional[dict[str, str]] = None) -> pd.DataFrame:
    """
    Load the gene-level differential expression table.

    The table is only summarized (number of DE genes); DE modeling itself
    belongs to the external engine.

    Args:
        path: CSV or TSV with gene id, logFC, PValue, FDR and a DE flag
        columns: Overrides for DE_COLUMNS keys

    Returns:
        DataFrame with columns renamed to gene_id, logFC, PValue, FDR, DE;
        DE coerced to bool

    Raises:
        ValueError: If required columns are missing
    """
    cols = dict(DE_COLUMNS)
    if columns:
        unknown = set(columns) - set(cols)
        if unknown:
            raise ValueError(f"Unknown DE column key(s): {sorted(unknown)}")
        cols.update(columns)

    df = read_table(path)
    missing = [c for c in cols.values() if c not in df.columns]
    if missing:
        raise ValueError(
            f"{path}: missing DE column(s) {missing}. Available: {list(df.columns)}"
        )

    out = df[list(cols.values())].copy()
    out.columns = ['gene_id', 'logFC', 'PValue', 'FDR', 'DE']
    de = out['DE']
    if de.dtype != bool:
        de = de.astype(str).str.strip().str.upper().isin(['TRUE', 'T', '1', 'YES'])
    out['DE'] = de

    logger.info(f"Loaded DE table: {int(out['DE'].sum())}/{len(out)} genes flagged DE")
    return out
