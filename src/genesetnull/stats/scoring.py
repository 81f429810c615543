"""
Single-sample enrichment scoring adapter.

The permutation test needs, for every gene set in a batch, one enrichment
score per sample. How that score is computed is delegated to a library; the
rest of the package only relies on the contract below, so any implementation
of the ``EnrichmentScorer`` protocol (including test stubs) can be plugged in.

Contract:
    - Input: genes × samples expression DataFrame and an ordered mapping of
      set name → gene list
    - Output: sets × samples DataFrame, rows in input batch order, columns in
      input sample order
    - Deterministic for identical inputs and seed
    - Defined for gene sets of two or more genes
    - ScoringError on missing samples, empty gene sets, or library failure

Default implementation:
    SsgseaScorer wraps ``gseapy.ssgsea`` (Barbie et al., Nature 2009;
    rank-based single-sample GSEA as in GSVA's ``method="ssgsea"``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Mapping, Protocol, Sequence, runtime_checkable

import numpy as np
import pandas as pd

from genesetnull.core.errors import ScoringError

logger = logging.getLogger(__name__)

__all__ = [
    'EnrichmentScorer',
    'SsgseaScorer',
    'validate_score_matrix',
    'score_batch',
]

SampleNorm = Literal["rank", "log_rank", "log", "custom"]


@runtime_checkable
class EnrichmentScorer(Protocol):
    """Protocol for single-sample enrichment scoring."""

    def score(
        self,
        matrix: pd.DataFrame,
        gene_sets: Mapping[str, Sequence[str]],
    ) -> pd.DataFrame:
        """Return a gene-set × sample score matrix."""
        ...


def _check_inputs(matrix: pd.DataFrame, gene_sets: Mapping[str, Sequence[str]]) -> None:
    if matrix.shape[1] == 0:
        raise ScoringError("Expression matrix has no sample columns")
    if len(gene_sets) == 0:
        raise ScoringError("No gene sets to score")
    universe = set(matrix.index)
    for name, genes in gene_sets.items():
        n_present = sum(1 for g in genes if g in universe)
        if n_present == 0:
            raise ScoringError(f"Gene set '{name}' has no genes in the expression matrix")


def validate_score_matrix(
    scores: pd.DataFrame,
    set_names: Sequence[str],
    sample_ids: Sequence[str],
) -> pd.DataFrame:
    """
    Enforce the scorer contract on a returned score matrix.

    Reorders rows to ``set_names`` and columns to ``sample_ids``.

    Raises:
        ScoringError: If any set or sample is missing, or scores are not finite
    """
    missing_sets = [s for s in set_names if s not in scores.index]
    if missing_sets:
        raise ScoringError(
            f"Scorer returned no scores for {len(missing_sets)} gene sets "
            f"(e.g. {missing_sets[:3]})"
        )
    missing_samples = [s for s in sample_ids if s not in scores.columns]
    if missing_samples:
        raise ScoringError(
            f"Scorer returned no scores for {len(missing_samples)} samples "
            f"(e.g. {missing_samples[:3]})"
        )

    ordered = scores.loc[list(set_names), list(sample_ids)].astype(np.float64)
    if not np.all(np.isfinite(ordered.to_numpy())):
        raise ScoringError("Scorer returned non-finite enrichment scores")
    return ordered


def score_batch(
    scorer: EnrichmentScorer,
    matrix: pd.DataFrame,
    gene_sets: Mapping[str, Sequence[str]],
) -> pd.DataFrame:
    """
    Score a batch through any scorer and validate the result.

    Missing sample columns and empty gene sets are rejected before the
    scorer is called; library exceptions are re-raised as ScoringError.
    """
    _check_inputs(matrix, gene_sets)
    try:
        scores = scorer.score(matrix, gene_sets)
    except ScoringError:
        raise
    except Exception as e:
        raise ScoringError(f"Enrichment scoring failed: {e}") from e
    return validate_score_matrix(scores, list(gene_sets.keys()), list(matrix.columns))


@dataclass
class SsgseaScorer:
    """
    ssGSEA scores via gseapy.

    Attributes:
        sample_norm_method: Per-sample normalisation before ranking
            ("rank" matches GSVA's ssgsea on untransformed input)
        alpha: Weight exponent of the running-sum statistic (0.25 in GSVA)
        score_column: "ES" (raw enrichment score) or "NES" (normalised by
            the range over the batch). Pearson correlations are identical
            for both since NES is a positive rescaling of ES within a batch.
        threads: Worker threads used by gseapy
        seed: Seed passed to gseapy
    """

    sample_norm_method: SampleNorm = "rank"
    alpha: float = 0.25
    score_column: Literal["ES", "NES"] = "ES"
    threads: int = 1
    seed: int = 123

    def score(
        self,
        matrix: pd.DataFrame,
        gene_sets: Mapping[str, Sequence[str]],
    ) -> pd.DataFrame:
        import gseapy

        _check_inputs(matrix, gene_sets)

        data = matrix.copy()
        # gseapy treats a non-object index as data and takes column 0 as genes
        data.index = data.index.astype(str).astype(object)
        data.columns = data.columns.astype(str).astype(object)

        sets = {name: [str(g) for g in genes] for name, genes in gene_sets.items()}
        max_size = max(len(genes) for genes in sets.values())

        logger.debug(
            f"ssGSEA: {len(sets)} gene sets × {data.shape[1]} samples "
            f"({data.shape[0]} genes)"
        )

        result = gseapy.ssgsea(
            data=data,
            gene_sets=sets,
            outdir=None,
            sample_norm_method=self.sample_norm_method,
            min_size=1,
            max_size=max(max_size, 1),
            permutation_num=0,
            weight=self.alpha,
            threads=self.threads,
            seed=self.seed,
            no_plot=True,
            verbose=False,
        )

        res = result.res2d
        scores = res.pivot(index="Term", columns="Name", values=self.score_column)
        scores.index = scores.index.astype(str)
        scores.columns = scores.columns.astype(str)
        return validate_score_matrix(scores, list(sets.keys()), [str(c) for c in matrix.columns])
