"""
Visualization module for permutation diagnostics.

Static matplotlib/seaborn figures, one per run:
- Scatter of true-set enrichment vs target gene expression with trend line
- Null distribution of random-set correlations with the observed value marked

Examples
--------
>>> from genesetnull.viz import DiagnosticsVisualizer, render_diagnostics
>>>
>>> viz = DiagnosticsVisualizer(palette="colorblind")
>>> fig = viz.plot_run(outcome)
>>> fig.save("figures/run.pdf")
>>>
>>> # Or draw + save + close in one call
>>> render_diagnostics(outcome, Path("results/plots"))
"""

from genesetnull.viz.core import Figure
from genesetnull.viz.styles import Palette, PALETTES, configure_style
from genesetnull.viz.diagnostics import DiagnosticsVisualizer, render_diagnostics

__all__ = [
    "Figure",
    "Palette",
    "PALETTES",
    "configure_style",
    "DiagnosticsVisualizer",
    "render_diagnostics",
]
