"""
Consistent visual styles for permutation diagnostics.

Conventions
-----------
- Observed (true gene set) = Red (#dc2626), drawn on top of everything
- Null (random gene sets) = Gray (#9ca3af)
- Samples = Blue (#2563eb), fitted trend = near-black
- Gene symbols italicized (use $gene$ in matplotlib)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
import matplotlib.pyplot as plt
import seaborn as sns


@dataclass(frozen=True)
class Palette:
    """
    Color palette for diagnostic figures.

    Attributes
    ----------
    observed : str
        Marker for the observed statistic (vertical line on the null)
    null : str
        Fill for the null distribution histogram
    samples : str
        Scatter points (one per sample)
    trend : str
        Fitted linear trend
    neutral : str
        Annotations and secondary elements
    """
    observed: str = "#dc2626"    # Red-600
    null: str = "#9ca3af"        # Gray-400
    samples: str = "#2563eb"     # Blue-600
    trend: str = "#1a1a1a"       # Near-black
    neutral: str = "#6b7280"     # Gray-500


PALETTES = {
    "default": Palette(),
    "colorblind": Palette(
        observed="#cc3311",  # Red
        null="#bbbbbb",
        samples="#0077bb",   # Blue
        trend="#000000",
        neutral="#999999",
    ),
    "print": Palette(
        observed="#000000",
        null="#b3b3b3",
        samples="#4d4d4d",
        trend="#000000",
        neutral="#808080",
    ),
}


def configure_style(
    style: Literal["paper", "notebook"] = "notebook",
    palette: str | Palette = "default",
    font_scale: float = 1.0
) -> Palette:
    """
    Configure matplotlib and seaborn for consistent diagnostics.

    Parameters
    ----------
    style : {"paper", "notebook"}
        - paper: small fonts, high DPI
        - notebook: moderate sizes, screen DPI
    palette : str or Palette
        Color palette name or Palette instance.
    font_scale : float
        Multiplier for all font sizes.

    Returns
    -------
    Palette
        The configured color palette.
    """
    if isinstance(palette, str):
        palette = PALETTES.get(palette, PALETTES["default"])

    base_params = {
        "figure.facecolor": "white",
        "axes.facecolor": "white",
        "axes.spines.top": False,
        "axes.spines.right": False,
        "legend.frameon": False,
    }

    if style == "paper":
        style_params = {
            "font.size": 9 * font_scale,
            "axes.titlesize": 10 * font_scale,
            "axes.labelsize": 9 * font_scale,
            "savefig.dpi": 300,
        }
        context = "paper"
    else:
        style_params = {
            "font.size": 11 * font_scale,
            "axes.titlesize": 11 * font_scale,
            "axes.labelsize": 11 * font_scale,
            "savefig.dpi": 150,
        }
        context = "notebook"

    sns.set_theme(style="whitegrid", context=context, font_scale=font_scale)
    plt.rcParams.update({**base_params, **style_params})

    return palette


def italicize_gene(gene: str) -> str:
    """
    Format gene symbol for matplotlib (italicized per biology convention).

    Examples
    --------
    >>> italicize_gene("TGFB1")
    '$\\\\mathit{TGFB1}$'
    """
    return f"$\\mathit{{{gene}}}$"
