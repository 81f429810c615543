"""
Error taxonomy for permutation runs.

Every failure that can abort a single (cohort, gene set, target gene) run
derives from RunError. The batch runner catches RunError per run, records a
failure row and moves on; anything else is a programming error and propagates.

Categories:
    DataError                 - input data cannot support the run
                                (empty cohort, empty intersection, k > U, ...)
    ScoringError              - the enrichment scoring adapter failed
    InsufficientSamplesError  - fewer than 3 samples left after filtering
    UndefinedCorrelationError - zero variance in one of the correlated vectors
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from genesetnull.results import RunDescriptor

__all__ = [
    'RunError',
    'DataError',
    'ScoringError',
    'InsufficientSamplesError',
    'UndefinedCorrelationError',
]


class RunError(Exception):
    """Base class for errors that abort one permutation run."""

    category = "run"

    def __init__(self, message: str, descriptor: Optional["RunDescriptor"] = None):
        super().__init__(message)
        self.message = message
        self.descriptor = descriptor

    def with_descriptor(self, descriptor: "RunDescriptor") -> "RunError":
        """Attach the run that failed (keeps the first one if already set)."""
        if self.descriptor is None:
            self.descriptor = descriptor
        return self

    def __str__(self) -> str:
        if self.descriptor is None:
            return self.message
        return f"[{self.descriptor.key}] {self.message}"


class DataError(RunError, ValueError):
    """Raised when the input data cannot support a run."""

    category = "data"


class ScoringError(DataError):
    """Raised when the enrichment scoring adapter fails or breaks its contract."""

    category = "scoring"


class InsufficientSamplesError(DataError):
    """Raised when too few samples remain for a correlation estimate."""

    category = "insufficient_samples"


class UndefinedCorrelationError(RunError):
    """Raised when a correlation is undefined (zero variance in either vector)."""

    category = "undefined_correlation"
