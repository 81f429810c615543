"""
Core data structure for expression matrices with aligned clinical annotations.

BioMatrix unifies the numerical expression data with the clinical table that
describes each sample (cohort / primary disease label).

Biological Context:
    Pan-cancer expression compendia (e.g. TCGA PANCAN) come as:
    - Rows = genes (HGNC symbols)
    - Columns = tumour samples
    - Values = log2-scale expression
    and a separate clinical matrix mapping each sample to its primary disease.

    The permutation test needs both to stay aligned while we:
    - Restrict to one cohort (samples of one disease)
    - Look up which gene set members are measured
    - Pull one target gene's expression row

Engineering Design:
    - Immutable: Operations return new instances (functional style)
    - Type-safe: NumPy arrays for data, Pandas for labels and metadata
    - Validated: Constructor checks shape consistency and label uniqueness
    - Read-only sharing: safe to hand the same instance to concurrent runs

Examples:
    >>> import numpy as np
    >>> import pandas as pd
    >>> from genesetnull.core.biomatrix import BioMatrix
    >>>
    >>> data = np.array([[5.0, 6.0], [3.0, 4.0]])
    >>> feature_ids = pd.Index(["TGFB1", "SMAD7"])
    >>> sample_ids = pd.Index(["TCGA-01", "TCGA-02"])
    >>> sample_metadata = pd.DataFrame({
    ...     'primary_disease': ['lung adenocarcinoma', 'breast invasive carcinoma']
    ... }, index=sample_ids)
    >>>
    >>> matrix = BioMatrix(data, feature_ids, sample_ids, sample_metadata)
    >>> luad = matrix.select_cohort('lung adenocarcinoma')
"""

from __future__ import annotations

from typing import Optional
import warnings

import numpy as np
import pandas as pd

__all__ = ['BioMatrix', 'DEFAULT_COHORT_COLUMN']

DEFAULT_COHORT_COLUMN = "primary_disease"


class BioMatrix:
    """
    Immutable container for expression matrix + clinical sample annotations.

    Attributes:
        data: Numerical expression matrix (genes × samples)
        feature_ids: Row identifiers (gene symbols)
        sample_ids: Column identifiers (sample barcodes)
        sample_metadata: Clinical annotations (cohort label, etc.)

    Shape Invariants:
        - data.shape[0] == len(feature_ids)
        - data.shape[1] == len(sample_ids)
        - sample_metadata.index equals sample_ids
        - feature_ids and sample_ids are unique
    """

    def __init__(
        self,
        data: np.ndarray,
        feature_ids: pd.Index,
        sample_ids: pd.Index,
        sample_metadata: Optional[pd.DataFrame] = None,
    ):
        """
        Initialize BioMatrix with validation.

        Args:
            data: Expression matrix (genes × samples)
            feature_ids: Row identifiers
            sample_ids: Column identifiers
            sample_metadata: DataFrame with clinical annotations, index must
                match sample_ids. Defaults to an empty frame.

        Raises:
            ValueError: If shapes are inconsistent, labels are duplicated
                or metadata index doesn't match
            TypeError: If data types are incorrect
        """
        if not isinstance(data, np.ndarray):
            raise TypeError(f"data must be np.ndarray, got {type(data)}")
        if not isinstance(feature_ids, pd.Index):
            raise TypeError(f"feature_ids must be pd.Index, got {type(feature_ids)}")
        if not isinstance(sample_ids, pd.Index):
            raise TypeError(f"sample_ids must be pd.Index, got {type(sample_ids)}")
        if sample_metadata is None:
            sample_metadata = pd.DataFrame(index=sample_ids)
        if not isinstance(sample_metadata, pd.DataFrame):
            raise TypeError(f"sample_metadata must be pd.DataFrame, got {type(sample_metadata)}")

        if data.ndim != 2:
            raise ValueError(f"data must be 2D, got shape {data.shape}")

        n_features, n_samples = data.shape

        if len(feature_ids) != n_features:
            raise ValueError(
                f"feature_ids length ({len(feature_ids)}) must match data rows ({n_features})"
            )
        if len(sample_ids) != n_samples:
            raise ValueError(
                f"sample_ids length ({len(sample_ids)}) must match data columns ({n_samples})"
            )
        if not feature_ids.is_unique:
            dupes = feature_ids[feature_ids.duplicated()].unique()[:5].tolist()
            raise ValueError(f"feature_ids must be unique, duplicated: {dupes}")
        if not sample_ids.is_unique:
            dupes = sample_ids[sample_ids.duplicated()].unique()[:5].tolist()
            raise ValueError(f"sample_ids must be unique, duplicated: {dupes}")

        if not sample_metadata.index.equals(sample_ids):
            raise ValueError(
                "sample_metadata.index must match sample_ids exactly. "
                f"Got {len(sample_metadata.index)} metadata rows for {len(sample_ids)} samples."
            )

        self._data = data
        self._feature_ids = feature_ids
        self._sample_ids = sample_ids
        self._sample_metadata = sample_metadata
        self._feature_index = {f: i for i, f in enumerate(feature_ids)}

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        sample_metadata: Optional[pd.DataFrame] = None,
    ) -> BioMatrix:
        """Build from a genes × samples DataFrame."""
        return cls(
            data=frame.to_numpy(dtype=np.float64),
            feature_ids=pd.Index(frame.index.astype(str)),
            sample_ids=pd.Index(frame.columns.astype(str)),
            sample_metadata=sample_metadata,
        )

    @property
    def data(self) -> np.ndarray:
        """Expression matrix (genes × samples)."""
        return self._data

    @property
    def feature_ids(self) -> pd.Index:
        """Row identifiers (genes)."""
        return self._feature_ids

    @property
    def sample_ids(self) -> pd.Index:
        """Column identifiers (samples)."""
        return self._sample_ids

    @property
    def sample_metadata(self) -> pd.DataFrame:
        """Clinical annotations for samples."""
        return self._sample_metadata

    @property
    def shape(self) -> tuple[int, int]:
        """Matrix dimensions (n_features, n_samples)."""
        return self._data.shape

    @property
    def n_features(self) -> int:
        """Number of genes."""
        return self._data.shape[0]

    @property
    def n_samples(self) -> int:
        """Number of samples."""
        return self._data.shape[1]

    def has_feature(self, feature_id: str) -> bool:
        return feature_id in self._feature_index

    def feature_values(self, feature_id: str) -> pd.Series:
        """
        Expression row of one gene, indexed by sample id.

        Raises:
            KeyError: If the gene is not in the matrix
        """
        idx = self._feature_index.get(feature_id)
        if idx is None:
            raise KeyError(f"Feature not found in matrix: {feature_id}")
        return pd.Series(self._data[idx, :], index=self._sample_ids, name=feature_id)

    def select_samples(self, mask: np.ndarray | pd.Series) -> BioMatrix:
        """
        Subset matrix by samples (columns).

        Args:
            mask: Boolean array/Series indicating which samples to keep.
                If Series, uses values and ignores index

        Returns:
            New BioMatrix with selected samples

        Raises:
            ValueError: If mask length doesn't match n_samples
        """
        if isinstance(mask, pd.Series):
            mask = mask.values
        mask = np.asarray(mask, dtype=bool)

        if len(mask) != self.n_samples:
            raise ValueError(
                f"mask length ({len(mask)}) must match n_samples ({self.n_samples})"
            )

        return BioMatrix(
            data=self._data[:, mask],
            feature_ids=self._feature_ids,
            sample_ids=self._sample_ids[mask],
            sample_metadata=self._sample_metadata.loc[self._sample_ids[mask]],
        )

    def select_cohort(self, cohort: str, column: str = DEFAULT_COHORT_COLUMN) -> BioMatrix:
        """
        Restrict to samples whose clinical label equals ``cohort``.

        The result may have zero samples; callers decide whether that is an
        error.

        Raises:
            KeyError: If ``column`` is not a clinical column
        """
        if column not in self._sample_metadata.columns:
            raise KeyError(
                f"Cohort column '{column}' not in sample metadata. "
                f"Available: {list(self._sample_metadata.columns)}"
            )
        return self.select_samples(self._sample_metadata[column] == cohort)

    def cohorts(self, column: str = DEFAULT_COHORT_COLUMN) -> list[str]:
        """Distinct cohort labels, in order of first appearance."""
        return self._sample_metadata[column].dropna().astype(str).unique().tolist()

    def align_clinical(self, clinical: pd.DataFrame) -> BioMatrix:
        """
        Attach a clinical table, keeping only samples present in both.

        Samples keep expression-matrix order. Clinical rows without an
        expression column are dropped with a warning.

        Returns:
            New BioMatrix restricted to the common samples
        """
        clinical = clinical.copy()
        clinical.index = clinical.index.astype(str)
        clinical = clinical[~clinical.index.duplicated(keep="first")]

        common = self._sample_ids.intersection(clinical.index, sort=False)
        n_dropped = len(clinical.index) - len(common)
        if n_dropped > 0:
            warnings.warn(
                f"{n_dropped} clinical samples have no expression column and were dropped"
            )

        mask = self._sample_ids.isin(common)
        sample_ids = self._sample_ids[mask]
        return BioMatrix(
            data=self._data[:, mask],
            feature_ids=self._feature_ids,
            sample_ids=sample_ids,
            sample_metadata=clinical.loc[sample_ids],
        )

    def to_frame(self) -> pd.DataFrame:
        """Genes × samples DataFrame view of the data."""
        return pd.DataFrame(self._data, index=self._feature_ids, columns=self._sample_ids)

    def __repr__(self) -> str:
        if self.n_features == 0 or self.n_samples == 0:
            return f"BioMatrix({self.n_features} features × {self.n_samples} samples)"
        return (
            f"BioMatrix({self.n_features} features × {self.n_samples} samples)\n"
            f"  Features: {self.feature_ids[0]}...{self.feature_ids[-1]}\n"
            f"  Samples: {self.sample_ids[0]}...{self.sample_ids[-1]}\n"
            f"  Metadata columns: {list(self.sample_metadata.columns)}"
        )

    def __str__(self) -> str:
        return self.__repr__()
