"""
Null-vs-observed correlation of enrichment scores with target gene expression.

Given the score matrix of one batch (n random sets + the true set) and the
expression row of a target gene, compute:

    1. the observed Pearson correlation and two-sided p-value between the
       true-set scores and the target expression, restricted to samples where
       the target is expressed above a threshold (log2(10) by default);
    2. the null distribution: Pearson correlation of every random-set score
       row against the target expression over ALL cohort samples.

The expression filter deliberately applies only to the observed statistic.
The null is computed on the unfiltered cohort. Changing this would change
every reported value, so both sample counts are returned for inspection.

The null is used for display (histogram, percentile); the reported p-value is
the parametric one from ``scipy.stats.pearsonr``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from numpy.typing import NDArray
from scipy import stats

from genesetnull.core.errors import InsufficientSamplesError, UndefinedCorrelationError
from genesetnull.core.genesets import TRUE_SET_KEY

logger = logging.getLogger(__name__)

__all__ = [
    'EXPRESSION_THRESHOLD',
    'MIN_CORRELATION_SAMPLES',
    'CorrelationEvaluation',
    'pearson_correlation',
    'null_correlations',
    'expression_filter_mask',
    'evaluate_correlations',
]

EXPRESSION_THRESHOLD = math.log2(10)
MIN_CORRELATION_SAMPLES = 3


@dataclass
class CorrelationEvaluation:
    """Observed statistic and null distribution for one run."""

    r_obs: float
    p_obs: float
    null_distribution: NDArray[np.float64]
    n_filtered: int  # samples used for the observed correlation
    n_total: int  # samples used for each null correlation
    null_names: list[str] = field(default_factory=list)

    @property
    def n_random(self) -> int:
        return len(self.null_distribution)

    @property
    def n_null_undefined(self) -> int:
        return int(np.sum(np.isnan(self.null_distribution)))

    @property
    def percentile_rank(self) -> float:
        """Share (0-100) of defined null correlations strictly below r_obs."""
        null = self.null_distribution[~np.isnan(self.null_distribution)]
        if len(null) == 0:
            return float("nan")
        return float(100.0 * np.mean(null < self.r_obs))

    @property
    def null_mean(self) -> float:
        null = self.null_distribution[~np.isnan(self.null_distribution)]
        return float(np.mean(null)) if len(null) else float("nan")

    @property
    def null_std(self) -> float:
        null = self.null_distribution[~np.isnan(self.null_distribution)]
        return float(np.std(null)) if len(null) else float("nan")

    def to_dict(self) -> dict:
        return {
            'r_obs': self.r_obs,
            'p_obs': self.p_obs,
            'n_filtered': self.n_filtered,
            'n_total': self.n_total,
            'n_random': self.n_random,
            'null_mean': self.null_mean,
            'null_std': self.null_std,
            'percentile_rank': self.percentile_rank,
        }


def pearson_correlation(x: NDArray, y: NDArray) -> tuple[float, float]:
    """
    Pearson r and two-sided p-value.

    Raises:
        InsufficientSamplesError: If fewer than 3 paired values
        UndefinedCorrelationError: If either vector has zero variance
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if x.shape != y.shape:
        raise ValueError(f"x and y must have the same shape, got {x.shape} and {y.shape}")
    if len(x) < MIN_CORRELATION_SAMPLES:
        raise InsufficientSamplesError(
            f"Correlation needs at least {MIN_CORRELATION_SAMPLES} samples, got {len(x)}"
        )
    if np.ptp(x) == 0 or np.ptp(y) == 0:
        raise UndefinedCorrelationError(
            "Correlation undefined: zero variance in "
            f"{'enrichment scores' if np.ptp(x) == 0 else 'target expression'}"
        )

    result = stats.pearsonr(x, y)
    return float(result[0]), float(result[1])


def null_correlations(scores: NDArray, y: NDArray) -> NDArray[np.float64]:
    """
    Row-wise Pearson r of ``scores`` (sets × samples) against ``y``.

    Rows with zero variance yield NaN. If ``y`` itself is constant every
    entry is NaN.
    """
    scores = np.asarray(scores, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if scores.ndim != 2 or scores.shape[1] != len(y):
        raise ValueError(
            f"scores must be (n_sets, {len(y)}), got shape {scores.shape}"
        )
    if scores.shape[0] == 0:
        return np.empty(0, dtype=np.float64)

    xc = scores - scores.mean(axis=1, keepdims=True)
    yc = y - y.mean()
    num = xc @ yc
    denom = np.sqrt(np.sum(xc ** 2, axis=1) * np.sum(yc ** 2))

    r = np.full(scores.shape[0], np.nan)
    ok = denom > 0
    r[ok] = np.clip(num[ok] / denom[ok], -1.0, 1.0)
    return r


def expression_filter_mask(
    expression: pd.Series,
    threshold: float = EXPRESSION_THRESHOLD,
) -> pd.Series:
    """Samples whose target expression is strictly above ``threshold``."""
    return expression > threshold


def evaluate_correlations(
    scores: pd.DataFrame,
    target_expression: pd.Series,
    threshold: float = EXPRESSION_THRESHOLD,
    true_key: str = TRUE_SET_KEY,
) -> CorrelationEvaluation:
    """
    Observed correlation (filtered samples) and null distribution (all samples).

    Args:
        scores: Gene-set × sample score matrix; must contain ``true_key``
        target_expression: Target gene expression indexed by sample id
        threshold: Expression filter for the observed statistic
        true_key: Row of ``scores`` holding the true gene set

    Returns:
        CorrelationEvaluation

    Raises:
        KeyError: If ``true_key`` is missing or samples don't align
        InsufficientSamplesError: If fewer than 3 samples pass the filter
        UndefinedCorrelationError: If the observed correlation is undefined
    """
    if true_key not in scores.index:
        raise KeyError(f"Score matrix has no row '{true_key}'")

    missing = scores.columns.difference(target_expression.index)
    if len(missing) > 0:
        raise KeyError(
            f"Target expression missing {len(missing)} scored samples (e.g. {list(missing[:3])})"
        )
    expression = target_expression.loc[scores.columns].astype(np.float64)

    # Observed: filtered samples only
    keep = expression_filter_mask(expression, threshold)
    n_filtered = int(keep.sum())
    if n_filtered < MIN_CORRELATION_SAMPLES:
        raise InsufficientSamplesError(
            f"Only {n_filtered} of {len(expression)} samples have target expression "
            f"> {threshold:.3f}; need at least {MIN_CORRELATION_SAMPLES}"
        )
    true_scores = scores.loc[true_key]
    r_obs, p_obs = pearson_correlation(
        true_scores[keep.values].to_numpy(),
        expression[keep].to_numpy(),
    )

    # Null: random sets against the unfiltered cohort
    random_rows = scores.drop(index=true_key)
    null = null_correlations(random_rows.to_numpy(), expression.to_numpy())
    n_undefined = int(np.sum(np.isnan(null)))
    if n_undefined:
        logger.warning(
            f"{n_undefined}/{len(null)} random-set correlations undefined (zero variance)"
        )

    return CorrelationEvaluation(
        r_obs=r_obs,
        p_obs=p_obs,
        null_distribution=null,
        n_filtered=n_filtered,
        n_total=len(expression),
        null_names=list(random_rows.index),
    )
