"""
Consistent visual styles for method-comparison figures.

Domain Conventions
------------------
- Each method keeps one color across every figure (builds spatial memory)
- Overlap/Jaccard heatmaps use a sequential colormap
- All colorblind-safe palettes
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import matplotlib as mpl
import seaborn as sns

from pathconcord.reconcile.types import MethodName


@dataclass(frozen=True)
class Palette:
    """
    Color palette for method-comparison visualizations.

    Attributes
    ----------
    gsea, fry, spia, ssnappy : str
        Color per analysis method
    dot_on : str
        Intersection bars and filled membership dots in UpSet plots
    sequential : str
        Colormap name for overlap heatmaps
    """
    gsea: str = "#0077bb"
    fry: str = "#ee7733"
    spia: str = "#009988"
    ssnappy: str = "#aa3377"
    dot_on: str = "#111827"
    sequential: str = "viridis"

    def method_color(self, method: MethodName) -> str:
        return getattr(self, MethodName.parse(method).value)


PALETTES = {
    "default": Palette(),
    "print": Palette(
        gsea="#1a1a1a",
        fry="#4d4d4d",
        spia="#808080",
        ssnappy="#b3b3b3",
        sequential="Greys",
    ),
}


def configure_style(
    style: Literal["paper", "notebook"] = "paper",
    palette: str | Palette = "default",
    font_scale: float = 1.0,
) -> Palette:
    """
    Configure matplotlib and seaborn for consistent figure style.

    Parameters
    ----------
    style : {"paper", "notebook"}
        paper: 300 dpi, small fonts; notebook: 100 dpi, larger fonts
    palette : str or Palette
        Palette name or instance
    font_scale : float
        Multiplier for all font sizes

    Returns
    -------
    Palette
        The configured color palette.
    """
    if isinstance(palette, str):
        palette = PALETTES.get(palette, PALETTES["default"])

    sns.set_theme(context="paper" if style == "paper" else "notebook",
                  style="white", font_scale=font_scale)
    mpl.rcParams.update({
        "figure.facecolor": "white",
        "axes.spines.top": False,
        "axes.spines.right": False,
        "legend.frameon": False,
        "figure.dpi": 300 if style == "paper" else 100,
        "savefig.bbox": "tight",
    })
    return palette
