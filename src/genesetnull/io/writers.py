"""
Writers for the aggregate result table and run failures.

Output Files:
    {output}              - tab-separated, one row per successful run:
                            cohort, gene_set, target_gene, p_value, correlation
                            (plus fdr when requested); no index column
    {output}.failures.tsv - runs that aborted, with category and message
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from genesetnull.results import RESULT_COLUMNS

logger = logging.getLogger(__name__)

__all__ = ['write_result_table', 'write_failures', 'failures_path']


def write_result_table(frame: pd.DataFrame, path: Path) -> Path:
    """
    Write the aggregate table as TSV without the row index.

    Raises:
        ValueError: If required result columns are missing
    """
    missing = [c for c in RESULT_COLUMNS if c not in frame.columns]
    if missing:
        raise ValueError(f"Result table missing columns: {missing}")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(path, sep="\t", index=False)
    logger.info(f"Wrote {len(frame)} result rows to {path}")
    return path


def failures_path(path: Path) -> Path:
    """``results/pValsCors.tsv`` → ``results/pValsCors.failures.tsv``."""
    path = Path(path)
    return path.with_name(f"{path.stem}.failures.tsv")


def write_failures(frame: pd.DataFrame, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(path, sep="\t", index=False)
    logger.info(f"Wrote {len(frame)} failed runs to {path}")
    return path
