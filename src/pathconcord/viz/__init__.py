"""
Visualization of cross-method overlaps.

Modules:
    styles: Method palette and matplotlib/seaborn configuration
    overlap: UpSet intersection plot (upsetplot) and Jaccard heatmap
"""

from pathconcord.viz.styles import PALETTES, Palette, configure_style
from pathconcord.viz.overlap import plot_jaccard_heatmap, plot_upset, save_figure, upset_data

__all__ = [
    "Palette",
    "PALETTES",
    "configure_style",
    "upset_data",
    "plot_upset",
    "plot_jaccard_heatmap",
    "save_figure",
]
