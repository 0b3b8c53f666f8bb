"""
I/O for pathway result tables and reconciliation artifacts.

Key Functions:
    - load_method_results: Load one engine's pathway table into MethodResult records
    - load_de_table: Load the gene-level differential expression table
    - write_report: Write flagged tables, overlap, concordance and summary

Supported Formats:
    - CSV or TSV (delimiter sniffed); column presets for fgsea, limma fry,
      SPIA and sSNAPPY in pathconcord.io.formats.PRESETS
"""

from pathconcord.io.formats import PRESETS, PRESET_FOR_METHOD, ResultFormat
from pathconcord.io.loaders import load_de_table, load_method_results
from pathconcord.io.writers import (
    write_concordance_table,
    write_flagged_table,
    write_overlap_table,
    write_report,
    write_run_summary,
    write_wide_table,
)

__all__ = [
    'PRESETS',
    'PRESET_FOR_METHOD',
    'ResultFormat',
    'load_method_results',
    'load_de_table',
    'write_flagged_table',
    'write_overlap_table',
    'write_concordance_table',
    'write_wide_table',
    'write_run_summary',
    'write_report',
]
