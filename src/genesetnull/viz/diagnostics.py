"""
Per-run diagnostic figures for the permutation test.

Narrative:
    "Samples with higher target-gene expression have higher enrichment of the
    gene set (left), and that correlation is stronger than what random gene
    sets of the same size achieve in this cohort (right)."

Layout (one figure per cohort × gene set × target gene):
    - Left: true-set enrichment score vs target expression over the samples
      used for the observed statistic, with a least-squares trend line
    - Right: histogram of the null correlations, observed value marked in red
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Literal, Optional

import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns

from genesetnull.stats.permutation_engine import RunOutcome
from genesetnull.viz.core import Figure
from genesetnull.viz.styles import Palette, PALETTES, configure_style, italicize_gene

logger = logging.getLogger(__name__)

__all__ = ['DiagnosticsVisualizer', 'render_diagnostics', 'scatter_title', 'null_title']

_MATHTEXT_SAFE = re.compile(r"^[A-Za-z0-9.\-]+$")


def scatter_title(title: str, gene: str, r: float, p: float) -> str:
    """``"<title> vs <gene> | Cor=<r> | P=<p>"``."""
    return f"{title} vs {gene} | Cor={r:.2f} | P={p:.2e}"


def null_title(title: str, gene: str) -> str:
    return f"Cor random sets vs {gene}\n{title} highlighted"


def _gene_label(gene: str) -> str:
    return italicize_gene(gene) if _MATHTEXT_SAFE.match(gene) else gene


class DiagnosticsVisualizer:
    """
    Two-panel diagnostics for one permutation run.

    Examples
    --------
    >>> viz = DiagnosticsVisualizer()
    >>> fig = viz.plot_run(outcome)
    >>> fig.save(plot_dir / outcome.descriptor.file_name())
    >>> fig.close()
    """

    def __init__(
        self,
        palette: str | Palette = "default",
        style: Literal["paper", "notebook"] = "notebook",
        bins: int = 30,
    ):
        if isinstance(palette, str):
            self.palette = PALETTES.get(palette, PALETTES["default"])
        else:
            self.palette = palette
        self.style = style
        self.bins = bins
        configure_style(style=style, palette=self.palette)

    def plot_run(
        self,
        outcome: RunOutcome,
        figsize: tuple[float, float] = (12, 5),
    ) -> Figure:
        """
        Scatter + null histogram for one run.

        The left panel uses exactly the filtered samples and the observed
        (r, p) the record carries; the right panel uses the null
        distribution of the same run.
        """
        d = outcome.descriptor
        ev = outcome.evaluation
        fig, (ax1, ax2) = plt.subplots(1, 2, figsize=figsize)

        # === Left panel: true-set score vs target expression ===
        x = outcome.target_expression.to_numpy(dtype=float)
        y = outcome.true_scores.to_numpy(dtype=float)
        ax1.scatter(x, y, s=18, alpha=0.7, c=self.palette.samples, edgecolors='none')
        if len(x) >= 2 and np.ptp(x) > 0:
            slope, intercept = np.polyfit(x, y, 1)
            xs = np.linspace(x.min(), x.max(), 100)
            ax1.plot(xs, slope * xs + intercept, color=self.palette.trend, linewidth=1.5)

        ax1.set_xlabel(f"{_gene_label(d.target_gene)} expression")
        ax1.set_ylabel(f"{d.gene_set} enrichment score")
        ax1.set_title(scatter_title(d.gene_set, d.target_gene, ev.r_obs, ev.p_obs))
        ax1.text(0.02, 0.98, f"n = {ev.n_filtered} of {ev.n_total} samples",
                 transform=ax1.transAxes, ha='left', va='top', fontsize=9,
                 color=self.palette.neutral)

        # === Right panel: null distribution ===
        null = ev.null_distribution[~np.isnan(ev.null_distribution)]
        if len(null):
            sns.histplot(null, bins=self.bins, color=self.palette.null, edgecolor='white', ax=ax2)
        ax2.axvline(ev.r_obs, color=self.palette.observed, linewidth=2,
                    label=f"Observed r = {ev.r_obs:.2f}")
        ax2.set_xlabel("Pearson correlation")
        ax2.set_ylabel("Count")
        ax2.set_title(null_title(d.gene_set, d.target_gene))
        ax2.legend(loc='upper left', fontsize=8)
        ax2.text(0.98, 0.98,
                 f"{ev.n_random} random sets\n"
                 f"Null mean: {ev.null_mean:.2f}\n"
                 f"Percentile: {ev.percentile_rank:.1f}",
                 transform=ax2.transAxes, ha='right', va='top', fontsize=9,
                 bbox=dict(boxstyle='round', facecolor='white', alpha=0.8))

        fig.suptitle(d.cohort)
        plt.tight_layout()

        return Figure(
            fig=fig,
            title=scatter_title(d.gene_set, d.target_gene, ev.r_obs, ev.p_obs),
            description=(
                f"{d.cohort}: {outcome.intersected_size}/{outcome.original_size} genes measured, "
                f"{ev.n_random} random sets"
            ),
            metadata={'descriptor': d.key, **ev.to_dict()},
        )


def render_diagnostics(
    outcome: RunOutcome,
    plot_dir: Path,
    visualizer: Optional[DiagnosticsVisualizer] = None,
) -> Path:
    """
    Draw, save and close the diagnostics of one run.

    Returns:
        Path of the written PNG (``plot_dir / descriptor.file_name()``)
    """
    visualizer = visualizer or DiagnosticsVisualizer()
    figure = visualizer.plot_run(outcome)
    try:
        path = figure.save(Path(plot_dir) / outcome.descriptor.file_name(".png"))
    finally:
        figure.close()
    logger.debug(f"Saved diagnostics to {path}")
    return path
