"""
Pytest configuration and shared fixtures.

Provides synthetic cohort data generators, deterministic stub scorers that
implement the EnrichmentScorer protocol, and file fixtures for loader and CLI
tests.
"""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest
from pathlib import Path

from genesetnull.core.biomatrix import BioMatrix, DEFAULT_COHORT_COLUMN
from genesetnull.core.genesets import GeneSet

TARGET_GENE = "TGFB1"
COHORTS = ["lung adenocarcinoma", "breast invasive carcinoma"]
MODULE_GENES = [f"GENE_{i:03d}" for i in range(5)]


def generate_cohort_matrix(
    n_genes: int = 100,
    samples_per_cohort: int = 10,
    cohorts: list[str] = COHORTS,
    n_low: int = 3,
    seed: int = 42,
) -> BioMatrix:
    """
    Generate a synthetic log2 expression matrix with clinical labels.

    Args:
        n_genes: Total genes, including the target gene
        samples_per_cohort: Samples in each cohort
        cohorts: Cohort labels (written to the primary_disease column)
        n_low: Samples per cohort whose target expression is below log2(10)
        seed: Random seed for reproducibility

    Design:
        - Background genes ~ N(6, 1.5)
        - Target gene TGFB1 ~ N(7, 1.5), first ``n_low`` samples of each
          cohort near 1.0 (filtered out of the observed statistic)
        - GENE_000..GENE_004 follow TGFB1 plus noise (a co-expressed module)
    """
    rng = np.random.default_rng(seed)
    n_samples = samples_per_cohort * len(cohorts)

    data = rng.normal(6.0, 1.5, size=(n_genes, n_samples))
    target = rng.normal(7.0, 1.5, size=n_samples)
    for c in range(len(cohorts)):
        start = c * samples_per_cohort
        target[start:start + n_low] = 1.0 + rng.uniform(0, 0.5, size=n_low)
    for i in range(len(MODULE_GENES)):
        data[i] = target + rng.normal(0, 0.5, size=n_samples)
    data[-1] = target

    feature_ids = pd.Index(MODULE_GENES + [f"GENE_{i:03d}" for i in range(len(MODULE_GENES), n_genes - 1)]
                           + [TARGET_GENE])
    sample_ids = pd.Index([f"TCGA-{i:02d}-{i:04d}-01" for i in range(n_samples)])
    labels = [cohorts[i // samples_per_cohort] for i in range(n_samples)]
    metadata = pd.DataFrame({DEFAULT_COHORT_COLUMN: labels}, index=sample_ids)

    return BioMatrix(data=data, feature_ids=feature_ids, sample_ids=sample_ids, sample_metadata=metadata)


class MeanScorer:
    """Deterministic stub: enrichment = mean expression of the set's genes."""

    def __init__(self):
        self.calls = []

    def score(self, matrix, gene_sets):
        self.calls.append((list(matrix.columns), dict(gene_sets)))
        rows = {
            name: matrix.loc[[g for g in genes if g in matrix.index]].mean(axis=0)
            for name, genes in gene_sets.items()
        }
        return pd.DataFrame(rows).T


class ConstantScorer:
    """Stub returning the same score everywhere (zero variance)."""

    def score(self, matrix, gene_sets):
        return pd.DataFrame(1.0, index=list(gene_sets), columns=matrix.columns)


@pytest.fixture
def cohort_matrix():
    """Two cohorts × 10 samples, 100 genes, TGFB1 as target."""
    return generate_cohort_matrix()


@pytest.fixture
def module_set():
    return GeneSet.from_genes("TGFBeta Geneset", MODULE_GENES)


@pytest.fixture
def mean_scorer():
    return MeanScorer()


def write_gene_list(path: Path, genes: list[str], header: str = "Gene") -> Path:
    lines = ([header] if header else []) + list(genes)
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def dataset_files(tmp_path, cohort_matrix):
    """Expression TSV, clinical TSV and a gene list written from cohort_matrix."""
    expression = tmp_path / "expression.tsv"
    frame = cohort_matrix.to_frame()
    frame.index.name = "sample"
    frame.to_csv(expression, sep="\t")

    clinical = tmp_path / "clinical.tsv"
    meta = cohort_matrix.sample_metadata.copy()
    meta.index.name = "sampleID"
    meta["age"] = 60
    meta.to_csv(clinical, sep="\t")

    gene_set = write_gene_list(tmp_path / "tgfbGenes.txt", MODULE_GENES + ["NOT_MEASURED"])

    return {'expression': expression, 'clinical': clinical, 'gene_set': gene_set, 'dir': tmp_path}
