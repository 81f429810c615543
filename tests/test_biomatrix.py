"""Tests for BioMatrix and gene set containers."""

import numpy as np
import pandas as pd
import pytest

from genesetnull.core.biomatrix import BioMatrix
from genesetnull.core.genesets import TRUE_SET_KEY, GeneSet, GeneSetBatch

from conftest import COHORTS, TARGET_GENE


class TestBioMatrix:
    """Tests for BioMatrix validation and selection."""

    def test_duplicated_features_rejected(self):
        with pytest.raises(ValueError, match="unique"):
            BioMatrix(np.zeros((2, 2)), pd.Index(["A", "A"]), pd.Index(["s1", "s2"]))

    def test_metadata_must_match(self):
        meta = pd.DataFrame({"primary_disease": ["x"]}, index=["s1"])
        with pytest.raises(ValueError, match="sample_metadata"):
            BioMatrix(np.zeros((1, 2)), pd.Index(["A"]), pd.Index(["s1", "s2"]), meta)

    def test_select_cohort(self, cohort_matrix):
        luad = cohort_matrix.select_cohort(COHORTS[0])
        assert luad.n_samples == 10
        assert luad.n_features == cohort_matrix.n_features
        assert set(luad.sample_metadata["primary_disease"]) == {COHORTS[0]}

    def test_select_unknown_cohort_is_empty(self, cohort_matrix):
        assert cohort_matrix.select_cohort("glioblastoma").n_samples == 0

    def test_select_cohort_missing_column(self, cohort_matrix):
        with pytest.raises(KeyError):
            cohort_matrix.select_cohort(COHORTS[0], column="_primary_disease")

    def test_feature_values(self, cohort_matrix):
        values = cohort_matrix.feature_values(TARGET_GENE)
        assert list(values.index) == list(cohort_matrix.sample_ids)
        with pytest.raises(KeyError):
            cohort_matrix.feature_values("NOT_A_GENE")

    def test_gene_set_intersect_with_features(self, cohort_matrix):
        gs = GeneSet.from_genes("T", ["GENE_003", "X", "GENE_001", "GENE_003"])
        assert gs.intersect(cohort_matrix.feature_ids).genes == ("GENE_003", "GENE_001")

    def test_align_clinical(self):
        matrix = BioMatrix.from_frame(pd.DataFrame(np.ones((2, 3)), index=["A", "B"], columns=["s1", "s2", "s3"]))
        clinical = pd.DataFrame({"primary_disease": ["x", "y", "z"]}, index=["s3", "s1", "s9"])
        with pytest.warns(UserWarning, match="1 clinical samples"):
            aligned = matrix.align_clinical(clinical)
        assert list(aligned.sample_ids) == ["s1", "s3"]
        assert list(aligned.sample_metadata["primary_disease"]) == ["y", "x"]


class TestGeneSets:
    """Tests for GeneSet and GeneSetBatch."""

    def test_from_genes_dedupes(self):
        gs = GeneSet.from_genes("T", [" TGFB1", "SMAD7", "TGFB1", ""])
        assert gs.genes == ("TGFB1", "SMAD7")
        assert gs.size == len(gs) == 2
        assert "SMAD7" in gs

    def test_intersect(self):
        gs = GeneSet.from_genes("T", ["A", "B", "C"])
        assert gs.intersect(["C", "A"]).genes == ("A", "C")

    def test_batch_mapping(self):
        batch = GeneSetBatch([["A"], ["B"]], ["C"])
        assert list(batch) == ["RandomGeneSet_1", "RandomGeneSet_2", TRUE_SET_KEY]
        assert batch.as_dict()[TRUE_SET_KEY] == ["C"]
