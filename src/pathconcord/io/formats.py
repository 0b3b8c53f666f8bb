"""
Column presets for pathway-level result tables.

Each external engine writes its own column names. A ResultFormat records
which column holds the pathway id, the signed statistic, the adjusted
p-value and (optionally) an explicit direction label.

Presets follow the published implementations:

    fgsea       pathway, NES, padj                  (direction: sign of NES)
    fry         <row names>, FDR, Direction         (Up/Down)
    spia        Name, tA, pGFdr, Status             (Activated/Inhibited)
    ssnappy     gs_name, logFC, adj.P.Val           (direction: sign of logFC)

Examples:
    >>> from pathconcord.io.formats import PRESETS
    >>> fmt = PRESETS['spia']
    >>> fmt.significance_col
    'pGFdr'
    >>> custom = PRESETS['fgsea'].with_overrides(significance_col='FDR')
"""

from __future__ import annotations

import csv
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional

from pathconcord.reconcile.types import MethodName

__all__ = [
    'ResultFormat',
    'PRESETS',
    'PRESET_FOR_METHOD',
    'DE_COLUMNS',
    'sniff_delimiter',
]


@dataclass(frozen=True)
class ResultFormat:
    """
    Configuration for loading one engine's pathway result table.

    Attributes:
        name: Human-readable format name
        method: Method the rows are attributed to
        id_col: Column with pathway ids. None = first column (R row names
            written by write.csv/write.table)
        statistic_col: Signed statistic column. None = no statistic
            (primary_statistic is NaN)
        significance_col: Adjusted p-value column
        direction_col: Explicit direction label column. None = derive the
            direction from the sign of statistic_col
        delimiter: Column delimiter (None = auto-detect)
        na_values: Values to treat as missing
    """

    name: str
    method: MethodName
    significance_col: str
    id_col: Optional[str] = None
    statistic_col: Optional[str] = None
    direction_col: Optional[str] = None
    delimiter: Optional[str] = None
    na_values: tuple[str, ...] = field(default=('', 'NA', 'NaN', 'nan', 'NULL', 'null'))

    @property
    def required_columns(self) -> list[str]:
        cols = [self.significance_col]
        for col in (self.id_col, self.statistic_col, self.direction_col):
            if col is not None:
                cols.append(col)
        return cols

    def with_overrides(self, **overrides: object) -> 'ResultFormat':
        """Copy with some fields replaced (e.g. from a config file)."""
        unknown = set(overrides) - {
            'name', 'id_col', 'statistic_col', 'significance_col',
            'direction_col', 'delimiter', 'na_values',
        }
        if unknown:
            raise ValueError(f"Unknown ResultFormat field(s): {sorted(unknown)}")
        if 'na_values' in overrides and overrides['na_values'] is not None:
            overrides['na_values'] = tuple(overrides['na_values'])
        return replace(self, **overrides)


# =============================================================================
# Format Presets
# =============================================================================

PRESETS: dict[str, ResultFormat] = {
    # fgsea::fgsea() output, list columns (leadingEdge) dropped or ignored
    'fgsea': ResultFormat(
        name="fgsea",
        method=MethodName.GSEA,
        id_col='pathway',
        statistic_col='NES',
        significance_col='padj',
    ),

    # limma::fry() output; gene-set names are the row names
    'fry': ResultFormat(
        name="limma fry",
        method=MethodName.FRY,
        id_col=None,
        statistic_col=None,
        significance_col='FDR',
        direction_col='Direction',
    ),

    # SPIA::spia() output. pGFdr is the FDR of the Fisher-combined pG.
    # Only pathways with at least one DE gene are reported.
    'spia': ResultFormat(
        name="SPIA",
        method=MethodName.SPIA,
        id_col='Name',
        statistic_col='tA',
        significance_col='pGFdr',
        direction_col='Status',
    ),

    # limma topTable on sSNAPPY normalised perturbation scores
    'ssnappy': ResultFormat(
        name="sSNAPPY",
        method=MethodName.SSNAPPY,
        id_col='gs_name',
        statistic_col='logFC',
        significance_col='adj.P.Val',
    ),
}

PRESET_FOR_METHOD: Mapping[MethodName, str] = {
    MethodName.GSEA: 'fgsea',
    MethodName.FRY: 'fry',
    MethodName.SPIA: 'spia',
    MethodName.SSNAPPY: 'ssnappy',
}

# edgeR topTags-style gene-level table
DE_COLUMNS: dict[str, str] = {
    'gene_col': 'gene_id',
    'logfc_col': 'logFC',
    'pvalue_col': 'PValue',
    'fdr_col': 'FDR',
    'de_col': 'DE',
}


# =============================================================================
# Utility Functions
# =============================================================================

def sniff_delimiter(path: Path, sample_size: int = 8192) -> str:
    """
    Auto-detect delimiter from file content.

    Uses Python's csv.Sniffer with a first-line count fallback.

    Args:
        path: Path to data file
        sample_size: Bytes to sample for detection

    Returns:
        Detected delimiter character ('\\t', ',' or ';')

    Raises:
        ValueError: If delimiter cannot be determined
    """
    with open(path, 'r', encoding='utf-8', errors='ignore') as f:
        sample = f.read(sample_size)

    try:
        dialect = csv.Sniffer().sniff(sample, delimiters='\t,;')
        return dialect.delimiter
    except csv.Error:
        pass

    first_line = sample.split('\n')[0]
    counts = {
        '\t': first_line.count('\t'),
        ',': first_line.count(','),
        ';': first_line.count(';'),
    }

    if max(counts.values()) == 0:
        raise ValueError(
            f"Could not detect delimiter in {path}. "
            "Please specify it explicitly in the format configuration"
        )

    return max(counts, key=counts.get)
