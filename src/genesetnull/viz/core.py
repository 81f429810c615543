"""
Core visualization primitive: Figure wrapper.

A Figure bundles a matplotlib figure with the title and description that
identify it, so diagnostics can be saved and closed uniformly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional
from datetime import datetime

import matplotlib.figure
import matplotlib.pyplot as plt

OutputFormat = Literal["png", "pdf", "svg"]


@dataclass
class Figure:
    """
    Wrapper for a matplotlib figure with display metadata.

    Attributes
    ----------
    fig : matplotlib.figure.Figure
        The underlying figure object
    title : str
        Human-readable title for the figure
    description : str
        Longer description explaining what the figure shows
    metadata : dict
        Additional metadata (creation time, run statistics, etc.)

    Examples
    --------
    >>> fig = Figure(
    ...     fig=plt.figure(),
    ...     title="TGFBeta Geneset vs TGFB1",
    ...     description="Observed vs 99 random sets",
    ... )
    >>> fig.save("lung adenocarcinoma_TGFBeta Geneset_vs_TGFB1.png")
    """
    fig: matplotlib.figure.Figure
    title: str
    description: str
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        if "created_at" not in self.metadata:
            self.metadata["created_at"] = datetime.now().isoformat()

    def save(
        self,
        path: Path | str,
        format: Optional[OutputFormat] = None,
        dpi: int = 150,
        **kwargs
    ) -> Path:
        """
        Save figure to file.

        Parameters
        ----------
        path : Path or str
            Output file path. Format inferred from extension if not specified.
        format : str, optional
            Output format. If None, inferred from path extension.
        dpi : int, default 150
            DPI for raster formats. Ignored for vector formats.

        Returns
        -------
        Path
            The path where the figure was saved.
        """
        path = Path(path)

        if format is None:
            format = path.suffix.lstrip(".").lower()
            if format not in ("png", "pdf", "svg"):
                format = "png"

        path.parent.mkdir(parents=True, exist_ok=True)

        save_kwargs = {
            "dpi": dpi,
            "bbox_inches": "tight",
            "facecolor": "white",
            **kwargs
        }
        self.fig.savefig(path, format=format, **save_kwargs)
        return path

    def close(self):
        """Close the figure to free memory."""
        plt.close(self.fig)
