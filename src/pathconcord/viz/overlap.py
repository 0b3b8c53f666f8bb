"""
Overlap figures: UpSet intersection plot and Jaccard heatmap.

The UpSet plot is drawn by upsetplot from the EXACT combinations of an
OverlapReport: one boolean index level per method, one count per
combination.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns
from matplotlib.figure import Figure
from upsetplot import UpSet

from pathconcord.reconcile.overlap import jaccard_matrix
from pathconcord.reconcile.types import (
    MethodName,
    OverlapMode,
    OverlapReport,
    SignificantSet,
)
from pathconcord.viz.styles import PALETTES, Palette

logger = logging.getLogger(__name__)

__all__ = ["upset_data", "plot_upset", "plot_jaccard_heatmap", "save_figure"]


def upset_data(report: OverlapReport, max_combinations: Optional[int] = None) -> pd.Series:
    """
    Combination sizes in the layout upsetplot expects.

    Returns a Series of pathway counts indexed by a MultiIndex with one
    boolean level per method (level names are the method values), largest
    combination first.

    Raises
    ------
    ValueError
        If the report is not in EXACT mode
    """
    if report.mode is not OverlapMode.EXACT:
        raise ValueError("plot_upset requires an EXACT overlap report")

    frame = report.to_frame()
    if max_combinations is not None:
        frame = frame.head(max_combinations)

    levels = [m.value for m in report.methods]
    index = pd.MultiIndex.from_frame(frame[levels].astype(bool))
    return pd.Series(frame["n_pathways"].to_numpy(dtype=int), index=index, name="n_pathways")


def plot_upset(
    report: OverlapReport,
    palette: Optional[Palette] = None,
    max_combinations: Optional[int] = None,
    title: str = "Significant pathways by method combination",
) -> Figure:
    """
    UpSet plot of an EXACT overlap report.

    Parameters
    ----------
    report : OverlapReport
        Must be in EXACT mode (combinations partition the union)
    palette : Palette, optional
        Colors (default palette if omitted); set-size bars use the method colors
    max_combinations : int, optional
        Show only the largest N combinations

    Returns
    -------
    matplotlib.figure.Figure

    Raises
    ------
    ValueError
        If the report is not in EXACT mode
    """
    palette = palette or PALETTES["default"]
    data = upset_data(report, max_combinations=max_combinations)

    fig = plt.figure(figsize=(max(6.0, 0.5 * len(data) + 4.0), 1.5 + 0.4 * len(report.methods) + 3.0))
    if data.empty:
        logger.warning("No significant pathways in any method; UpSet plot left empty")
        fig.text(0.5, 0.5, "No significant pathways", ha="center", va="center")
        fig.suptitle(title)
        return fig

    upset = UpSet(data, sort_by="cardinality", sort_categories_by="input",
                  show_counts=True, facecolor=palette.dot_on)
    for method in report.methods:
        upset.style_categories(method.value, bar_facecolor=palette.method_color(method))
    upset.plot(fig=fig)
    fig.suptitle(title)
    return fig


def plot_jaccard_heatmap(
    sets: Mapping[MethodName, SignificantSet],
    palette: Optional[Palette] = None,
    title: str = "Pairwise Jaccard index of significant pathways",
) -> Figure:
    """Annotated heatmap of pairwise Jaccard indices between methods."""
    palette = palette or PALETTES["default"]
    matrix = jaccard_matrix(sets)

    fig, ax = plt.subplots(figsize=(1.2 * len(matrix) + 2, 1.0 * len(matrix) + 1.5))
    sns.heatmap(matrix, annot=True, fmt=".2f", vmin=0, vmax=1,
                cmap=palette.sequential, square=True, ax=ax,
                cbar_kws={"label": "Jaccard index"})
    ax.set_title(title)
    return fig


def save_figure(fig: Figure, path: Path, dpi: int = 300) -> Path:
    """Save a figure (format from the suffix) and close it."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Saved figure to {path}")
    return path
