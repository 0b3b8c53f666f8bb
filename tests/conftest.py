"""
Pytest configuration and shared fixtures.

Provides small synthetic result sets for the four compared methods, using
each engine's own identifier decoration, and writers that lay them out on
disk in each engine's table format.
"""

from pathlib import Path

import matplotlib
import numpy as np
import pandas as pd
import pytest

from pathconcord.reconcile.types import Direction, MethodName, MethodResult

matplotlib.use("Agg")


def make_result(
    pathway_id: str,
    method: MethodName = MethodName.GSEA,
    significance: float = 0.01,
    statistic: float = 1.0,
    direction: Direction | None = None,
) -> MethodResult:
    """MethodResult with direction defaulting to the sign of the statistic."""
    if direction is None:
        direction = Direction.from_statistic(statistic)
    return MethodResult(
        pathway_id=pathway_id,
        method=method,
        primary_statistic=statistic,
        significance_value=significance,
        direction=direction,
    )


# Pathway -> (fdr, statistic) per method. None = not reported by the method.
PATHWAY_TABLE = {
    "Cell Cycle":                 {"gsea": (0.001, 2.1), "fry": (0.002, 1.0), "spia": (0.004, 3.2), "ssnappy": (0.003, 0.8)},
    "Mitotic Prophase":           {"gsea": (0.010, 1.7), "fry": (0.020, -1.0), "spia": (0.030, 1.1), "ssnappy": (0.200, 0.1)},
    "Interferon Signaling":       {"gsea": (0.030, -1.9), "fry": (0.040, -1.0), "spia": None, "ssnappy": (0.010, -0.5)},
    "DNA Repair":                 {"gsea": (0.300, 0.4), "fry": (0.010, 1.0), "spia": (0.020, -0.9), "ssnappy": (0.040, 0.3)},
    "Apoptosis":                  {"gsea": (0.500, -0.2), "fry": (0.600, -1.0), "spia": (0.700, 0.2), "ssnappy": (0.001, -1.4)},
    "Signaling by NOTCH1":        {"gsea": (0.050, 1.3), "fry": (0.049, 1.0), "spia": (0.900, 0.0), "ssnappy": (0.800, 0.05)},
}


def synthetic_results() -> dict[MethodName, list[MethodResult]]:
    """Raw (decorated) results for all four methods."""
    out: dict[MethodName, list[MethodResult]] = {m: [] for m in MethodName}
    for name, per_method in PATHWAY_TABLE.items():
        for key, values in per_method.items():
            if values is None:
                continue
            fdr, stat = values
            method = MethodName(key)
            if method is MethodName.GSEA:
                pid = "REACTOME_" + name.upper().replace(" ", "_")
            elif method is MethodName.SPIA:
                pid = name
            else:
                pid = "reactome." + name
            if method is MethodName.FRY:
                out[method].append(make_result(
                    pid, method, fdr, float("nan"),
                    Direction.ACTIVATED if stat > 0 else Direction.INHIBITED,
                ))
            else:
                out[method].append(make_result(pid, method, fdr, stat))
    return out


@pytest.fixture
def raw_results():
    """Decorated results for all four methods (fold identifiers to join GSEA)."""
    return synthetic_results()


def write_engine_tables(directory: Path) -> dict[str, Path]:
    """Write the synthetic results in each engine's native column layout."""
    directory.mkdir(parents=True, exist_ok=True)
    rows = {"gsea": [], "fry": [], "spia": [], "ssnappy": []}
    for name, per_method in PATHWAY_TABLE.items():
        for key, values in per_method.items():
            if values is None:
                continue
            fdr, stat = values
            if key == "gsea":
                rows[key].append({"pathway": "REACTOME_" + name.upper().replace(" ", "_"),
                                  "pval": fdr / 2, "padj": fdr, "ES": stat / 3,
                                  "NES": stat, "size": 40})
            elif key == "fry":
                rows[key].append({"": "reactome." + name, "NGenes": 40,
                                  "Direction": "Up" if stat > 0 else "Down",
                                  "PValue": fdr / 2, "FDR": fdr})
            elif key == "spia":
                rows[key].append({"Name": name, "ID": "R-HSA-1", "pSize": 40, "NDE": 5,
                                  "tA": stat, "pPERT": fdr, "pG": fdr / 2, "pGFdr": fdr,
                                  "Status": "Activated" if stat > 0 else "Inhibited"})
            else:
                rows[key].append({"gs_name": "reactome." + name, "logFC": stat,
                                  "AveExpr": 0.0, "t": stat * 3,
                                  "P.Value": fdr / 2, "adj.P.Val": fdr})

    paths = {}
    for key, records in rows.items():
        path = directory / f"{key}.tsv"
        pd.DataFrame(records).to_csv(path, sep="\t", index=False)
        paths[key] = path

    de = pd.DataFrame({
        "gene_id": [f"ENSG{i:011d}" for i in range(10)],
        "logFC": np.linspace(-2, 2, 10),
        "PValue": np.linspace(0.0001, 0.5, 10),
        "FDR": np.linspace(0.001, 0.9, 10),
        "DE": [True] * 3 + [False] * 7,
    })
    de_path = directory / "de.csv"
    de.to_csv(de_path, index=False)
    paths["de"] = de_path
    return paths


@pytest.fixture
def engine_tables(tmp_path):
    """Paths of engine-format result tables in a temporary directory."""
    return write_engine_tables(tmp_path / "inputs")
