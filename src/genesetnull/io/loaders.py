"""
Loaders for expression matrices, clinical tables and gene sets.

Biological Context:
    A pan-cancer run needs three inputs:
    - Expression matrix: genes (rows) × samples (columns), log2 scale,
      e.g. the TCGA PANCAN12 gene-symbol matrix
    - Clinical matrix: one row per sample, first column the sample barcode,
      one column naming the primary disease (the cohort label)
    - Gene sets: one gene symbol per line, first line a header
      (or a .gmt collection)

Engineering Design:
    - Delimiter sniffed, tab by default
    - Duplicated gene ids rejected (row labels must be unique)
    - Missing expression values rejected unless explicitly dropped
    - Clinical table aligned to the expression columns on load

Examples:
    >>> from pathlib import Path
    >>> from genesetnull.io.loaders import load_dataset, load_gene_set
    >>>
    >>> matrix = load_dataset(
    ...     Path("pancan12_GeneSymbol.tsv"),
    ...     Path("PANCAN_clinicalMatrix"),
    ...     cohort_column="_primary_disease",
    ...     cohorts=["lung adenocarcinoma"],
    ... )
    >>> tgfb = load_gene_set(Path("tgfbGenes.txt"), name="TGFBeta Geneset")
"""

from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from genesetnull.core.biomatrix import BioMatrix, DEFAULT_COHORT_COLUMN
from genesetnull.core.genesets import GeneSet
from genesetnull.io.formats import FileKind, detect_kind, open_text, sniff_delimiter, strip_compression

logger = logging.getLogger(__name__)

__all__ = [
    'load_expression_matrix',
    'load_clinical_matrix',
    'load_gene_set',
    'load_gmt',
    'load_gene_sets',
    'load_dataset',
]


def _check_file(path: Path) -> Path:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if not path.is_file():
        raise ValueError(f"Path is not a file: {path}")
    return path


def load_expression_matrix(
    path: Path,
    delimiter: Optional[str] = None,
    drop_missing: bool = False,
) -> BioMatrix:
    """
    Load a genes × samples expression matrix.

    Expected layout for delimited text: first column gene ids, header row of
    sample ids, numeric values elsewhere. Parquet/pickle files must hold a
    DataFrame with gene ids as index.

    Args:
        path: Matrix file
        delimiter: Override the sniffed delimiter
        drop_missing: Drop genes with any missing value instead of failing

    Returns:
        BioMatrix with an empty clinical table

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If the file is empty, non-numeric, has duplicated gene
            ids, or contains missing values (unless ``drop_missing``)
    """
    path = _check_file(path)
    kind = detect_kind(path)

    try:
        if kind is FileKind.PARQUET:
            df = pd.read_parquet(path)
        elif kind is FileKind.PICKLE:
            df = pd.read_pickle(path)
        else:
            sep = delimiter or sniff_delimiter(path)
            df = pd.read_csv(path, sep=sep, index_col=0)
    except pd.errors.EmptyDataError as e:
        raise ValueError(f"Expression file is empty: {path}") from e

    if not isinstance(df, pd.DataFrame):
        raise ValueError(f"Expected a DataFrame in {path}, got {type(df).__name__}")
    if df.empty:
        raise ValueError(f"Expression file contains no data: {path}")

    df.index = df.index.astype(str)
    df.columns = df.columns.astype(str)

    non_numeric = [c for c in df.columns if not pd.api.types.is_numeric_dtype(df[c])]
    if non_numeric:
        raise ValueError(
            f"Non-numeric sample columns in {path}: {non_numeric[:5]}"
            f"{'...' if len(non_numeric) > 5 else ''}"
        )

    if df.index.has_duplicates:
        dupes = df.index[df.index.duplicated()].unique()[:5].tolist()
        raise ValueError(f"Duplicated gene ids in {path}: {dupes}")

    n_missing_rows = int(df.isna().any(axis=1).sum())
    if n_missing_rows:
        if not drop_missing:
            raise ValueError(
                f"{n_missing_rows} genes in {path} have missing values; "
                "pass drop_missing=True to drop them"
            )
        warnings.warn(f"Dropping {n_missing_rows} genes with missing values from {path}")
        df = df.dropna(axis=0, how="any")

    matrix = BioMatrix(
        data=df.to_numpy(dtype=np.float64),
        feature_ids=pd.Index(df.index),
        sample_ids=pd.Index(df.columns),
    )
    logger.info(f"Loaded expression: {matrix.n_features:,} genes × {matrix.n_samples:,} samples")
    return matrix


def load_clinical_matrix(
    path: Path,
    cohort_column: Optional[str] = DEFAULT_COHORT_COLUMN,
    delimiter: Optional[str] = None,
) -> pd.DataFrame:
    """
    Load a clinical table indexed by sample id (first column).

    Args:
        path: Clinical file
        cohort_column: Column that must be present (None to skip the check)
        delimiter: Override the sniffed delimiter

    Raises:
        ValueError: If the cohort column is missing or sample ids repeat
    """
    path = _check_file(path)
    sep = delimiter or sniff_delimiter(path)
    try:
        clinical = pd.read_csv(path, sep=sep, index_col=0, dtype=str)
    except pd.errors.EmptyDataError as e:
        raise ValueError(f"Clinical file is empty: {path}") from e

    clinical.index = clinical.index.astype(str)
    if clinical.index.has_duplicates:
        dupes = clinical.index[clinical.index.duplicated()].unique()[:5].tolist()
        raise ValueError(f"Duplicated sample ids in {path}: {dupes}")

    if cohort_column is not None and cohort_column not in clinical.columns:
        raise ValueError(
            f"Cohort column '{cohort_column}' not in {path}. "
            f"Available: {list(clinical.columns)[:20]}"
        )
    logger.info(f"Loaded clinical: {len(clinical):,} samples")
    return clinical


def load_gene_set(
    path: Path,
    name: Optional[str] = None,
    has_header: bool = True,
) -> GeneSet:
    """
    Load a single-column gene list.

    Only the first column is used; blank lines are skipped.

    Args:
        path: Gene list file
        name: Gene set name (defaults to the file stem)
        has_header: First line is a header, not a gene

    Returns:
        GeneSet (deduplicated, file order)
    """
    path = _check_file(path)
    if name is None:
        name = strip_compression(path).stem

    sep = sniff_delimiter(path)
    try:
        df = pd.read_csv(
            path,
            sep=sep,
            header=0 if has_header else None,
            usecols=[0],
            dtype=str,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        df = pd.DataFrame({0: []})

    genes = df.iloc[:, 0].dropna().astype(str).str.strip()
    gene_set = GeneSet.from_genes(name, genes, source=str(path))
    if gene_set.size == 0:
        warnings.warn(f"Gene set file {path} contains no genes")
    return gene_set


def load_gmt(path: Path) -> list[GeneSet]:
    """
    Load a .gmt collection: ``name<TAB>description<TAB>gene1<TAB>gene2...``.
    """
    path = _check_file(path)
    gene_sets = []
    with open_text(path) as f:
        for line_no, line in enumerate(f, 1):
            fields = line.rstrip("\n\r").split("\t")
            if len(fields) < 2 or not fields[0].strip():
                if line.strip():
                    logger.warning(f"{path}:{line_no}: malformed GMT line skipped")
                continue
            gene_sets.append(
                GeneSet.from_genes(fields[0].strip(), fields[2:], description=fields[1], source=str(path))
            )
    return gene_sets


def load_gene_sets(path: Path, name: Optional[str] = None, has_header: bool = True) -> list[GeneSet]:
    """Load a gene list (one set) or a .gmt file (many sets)."""
    if detect_kind(Path(path)) is FileKind.GMT:
        return load_gmt(path)
    return [load_gene_set(path, name=name, has_header=has_header)]


def load_dataset(
    expression_path: Path,
    clinical_path: Path,
    cohort_column: str = DEFAULT_COHORT_COLUMN,
    cohorts: Optional[Sequence[str]] = None,
    drop_missing: bool = False,
) -> BioMatrix:
    """
    Load expression + clinical data and keep only common samples.

    Args:
        expression_path: Expression matrix file
        clinical_path: Clinical matrix file
        cohort_column: Clinical column with cohort labels
        cohorts: Keep only samples in these cohorts (all when None)
        drop_missing: Passed to load_expression_matrix

    Returns:
        BioMatrix whose sample_metadata is the aligned clinical table
    """
    matrix = load_expression_matrix(expression_path, drop_missing=drop_missing)
    clinical = load_clinical_matrix(clinical_path, cohort_column=cohort_column)

    if cohorts is not None:
        clinical = clinical[clinical[cohort_column].isin(list(cohorts))]
        missing = sorted(set(cohorts) - set(clinical[cohort_column].unique()))
        if missing:
            warnings.warn(f"Cohorts not found in clinical data: {missing}")

    matrix = matrix.align_clinical(clinical)
    logger.info(
        f"Aligned dataset: {matrix.n_features:,} genes × {matrix.n_samples:,} samples "
        f"in {len(matrix.cohorts(cohort_column))} cohorts"
    )
    return matrix
