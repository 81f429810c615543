"""
Run descriptors, result records and the thread-safe result collector.

Each permutation run is identified by a RunDescriptor (cohort, gene-set
title, target gene). A successful run yields one immutable CorrelationRecord;
a failed run yields a RunFailure. Both are appended to a ResultCollector,
which the batch runner owns and which is serialized once at the end.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

import pandas as pd

from genesetnull.stats.enrichment_tests import apply_fdr_correction

if TYPE_CHECKING:
    from genesetnull.core.errors import RunError
    from genesetnull.stats.correlation import CorrelationEvaluation

__all__ = [
    'RESULT_COLUMNS',
    'FAILURE_COLUMNS',
    'RunDescriptor',
    'CorrelationRecord',
    'RunFailure',
    'ResultCollector',
]

RESULT_COLUMNS = ["cohort", "gene_set", "target_gene", "p_value", "correlation"]
FAILURE_COLUMNS = ["cohort", "gene_set", "target_gene", "category", "message"]


@dataclass(frozen=True)
class RunDescriptor:
    """Identity of one (cohort, gene set, target gene) run."""

    cohort: str
    gene_set: str
    target_gene: str

    @property
    def key(self) -> str:
        """``<cohort>_<gene set>_vs_<target gene>``."""
        return f"{self.cohort}_{self.gene_set}_vs_{self.target_gene}"

    def file_name(self, suffix: str = ".png") -> str:
        """File name for this run's outputs; path separators are replaced."""
        stem = self.key.replace("/", "-").replace("\\", "-")
        return f"{stem}{suffix}"


@dataclass(frozen=True)
class CorrelationRecord:
    """One output row: observed correlation and p-value of a run."""

    cohort: str
    gene_set: str
    target_gene: str
    p_value: float
    correlation: float

    @classmethod
    def from_evaluation(
        cls,
        descriptor: RunDescriptor,
        evaluation: "CorrelationEvaluation",
    ) -> CorrelationRecord:
        return cls(
            cohort=descriptor.cohort,
            gene_set=descriptor.gene_set,
            target_gene=descriptor.target_gene,
            p_value=evaluation.p_obs,
            correlation=evaluation.r_obs,
        )

    @property
    def descriptor(self) -> RunDescriptor:
        return RunDescriptor(self.cohort, self.gene_set, self.target_gene)

    def as_row(self) -> dict:
        return {
            "cohort": self.cohort,
            "gene_set": self.gene_set,
            "target_gene": self.target_gene,
            "p_value": self.p_value,
            "correlation": self.correlation,
        }


@dataclass(frozen=True)
class RunFailure:
    """A run that aborted, with the error category and message."""

    descriptor: RunDescriptor
    category: str
    message: str

    @classmethod
    def from_error(cls, descriptor: RunDescriptor, error: "RunError") -> RunFailure:
        return cls(descriptor=descriptor, category=error.category, message=error.message)

    def as_row(self) -> dict:
        return {
            "cohort": self.descriptor.cohort,
            "gene_set": self.descriptor.gene_set,
            "target_gene": self.descriptor.target_gene,
            "category": self.category,
            "message": self.message,
        }


class ResultCollector:
    """
    Append-only, lock-protected store of records and failures.

    Examples
    --------
    >>> collector = ResultCollector()
    >>> collector.add_record(record)
    >>> collector.to_frame().to_csv("pValsCors.tsv", sep="\\t", index=False)
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._records: list[CorrelationRecord] = []
        self._failures: list[RunFailure] = []

    def add_record(self, record: CorrelationRecord) -> None:
        with self._lock:
            self._records.append(record)

    def add_failure(self, failure: RunFailure) -> None:
        with self._lock:
            self._failures.append(failure)

    @property
    def records(self) -> tuple[CorrelationRecord, ...]:
        with self._lock:
            return tuple(self._records)

    @property
    def failures(self) -> tuple[RunFailure, ...]:
        with self._lock:
            return tuple(self._failures)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def to_frame(self, fdr: bool = False) -> pd.DataFrame:
        """
        One row per successful run, in append order.

        Args:
            fdr: Add a Benjamini-Hochberg adjusted ``fdr`` column
        """
        rows = [r.as_row() for r in self.records]
        frame = pd.DataFrame(rows, columns=RESULT_COLUMNS)
        if fdr:
            frame["fdr"] = apply_fdr_correction(frame["p_value"].to_numpy(dtype=float))
        return frame

    def failures_frame(self) -> pd.DataFrame:
        rows = [f.as_row() for f in self.failures]
        return pd.DataFrame(rows, columns=FAILURE_COLUMNS)

    def __repr__(self) -> str:
        return f"ResultCollector(records={len(self._records)}, failures={len(self._failures)})"
