"""
Core data structures shared by every stage of the permutation test.

1. BioMatrix: Expression matrix with aligned clinical annotations
2. GeneSet / GeneSetBatch: named gene lists and the scored batch
3. Error taxonomy: RunError and its data / scoring / statistical subclasses

Examples:
    >>> from genesetnull.core import BioMatrix, DataError
    >>>
    >>> matrix = BioMatrix(...)
    >>> cohort = matrix.select_cohort("lung adenocarcinoma")
    >>> if cohort.n_samples == 0:
    ...     raise DataError("empty cohort")
"""

from genesetnull.core.biomatrix import BioMatrix, DEFAULT_COHORT_COLUMN
from genesetnull.core.genesets import GeneSet, GeneSetBatch, TRUE_SET_KEY
from genesetnull.core.errors import (
    RunError,
    DataError,
    ScoringError,
    InsufficientSamplesError,
    UndefinedCorrelationError,
)

__all__ = [
    'BioMatrix',
    'DEFAULT_COHORT_COLUMN',
    'GeneSet',
    'GeneSetBatch',
    'TRUE_SET_KEY',
    'RunError',
    'DataError',
    'ScoringError',
    'InsufficientSamplesError',
    'UndefinedCorrelationError',
]
