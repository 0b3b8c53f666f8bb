"""
Atomic file-write utilities.

Prevents truncated report files when a run is interrupted mid-write by
writing to a temporary file in the same directory and then performing an
atomic ``os.replace()`` (POSIX rename guarantee).
"""

from __future__ import annotations

import json
import os
import tempfile
from typing import Any

import pandas as pd


def _atomic_write(path: str | os.PathLike, write) -> None:
    path = str(path)
    dir_path = os.path.dirname(path) or "."
    tmp_path: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", dir=dir_path, suffix=".tmp", delete=False, newline=""
        ) as tmp:
            tmp_path = tmp.name
            write(tmp)
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any failure
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def atomic_write_json(path: str | os.PathLike, data: Any, *, indent: int = 2) -> None:
    """Write *data* as JSON atomically via temp-file + rename.

    Parameters
    ----------
    path:
        Destination file path.
    data:
        JSON-serializable object. NaN floats are written as ``null``.
    indent:
        JSON indentation (default 2).
    """
    _atomic_write(path, lambda fh: json.dump(_json_safe(data), fh, indent=indent))


def atomic_write_table(path: str | os.PathLike, df: pd.DataFrame, *, sep: str = "\t") -> None:
    """Write a DataFrame (no index) atomically; tab-separated by default."""
    _atomic_write(path, lambda fh: df.to_csv(fh, sep=sep, index=False))


def _json_safe(value: Any) -> Any:
    if isinstance(value, float) and value != value:
        return None
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value
