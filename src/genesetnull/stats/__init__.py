"""
Statistical core of the permutation test.

Exports:
- Matched-size random gene set sampling
- Single-sample enrichment scoring adapter
- Observed vs null correlation evaluation
- Hypergeometric overlap test and FDR correction

The orchestrator lives in ``genesetnull.stats.permutation_engine``.
"""

from .sampler import MatchedSizeSampler, draw_random_sets, build_random_batch
from .scoring import EnrichmentScorer, SsgseaScorer, score_batch, validate_score_matrix
from .correlation import (
    EXPRESSION_THRESHOLD,
    CorrelationEvaluation,
    pearson_correlation,
    null_correlations,
    evaluate_correlations,
)
from .enrichment_tests import OverlapResult, run_hypergeometric_overlap, apply_fdr_correction

__all__ = [
    "MatchedSizeSampler",
    "draw_random_sets",
    "build_random_batch",
    "EnrichmentScorer",
    "SsgseaScorer",
    "score_batch",
    "validate_score_matrix",
    "EXPRESSION_THRESHOLD",
    "CorrelationEvaluation",
    "pearson_correlation",
    "null_correlations",
    "evaluate_correlations",
    "OverlapResult",
    "run_hypergeometric_overlap",
    "apply_fdr_correction",
]
