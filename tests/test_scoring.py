"""Tests for the enrichment scoring adapter contract."""

import numpy as np
import pandas as pd
import pytest

from genesetnull.core.errors import DataError, ScoringError
from genesetnull.stats.scoring import EnrichmentScorer, SsgseaScorer, score_batch, validate_score_matrix

from conftest import MeanScorer


@pytest.fixture
def expression():
    rng = np.random.default_rng(42)
    genes = [f"G{i}" for i in range(30)]
    samples = [f"S{j}" for j in range(6)]
    return pd.DataFrame(rng.normal(6, 1, size=(30, 6)), index=genes, columns=samples)


class _RaisingScorer:
    def score(self, matrix, gene_sets):
        raise ValueError("library exploded")


class _DropSampleScorer:
    def score(self, matrix, gene_sets):
        return pd.DataFrame(0.5, index=list(gene_sets), columns=matrix.columns[:-1])


class _NanScorer:
    def score(self, matrix, gene_sets):
        return pd.DataFrame(np.nan, index=list(gene_sets), columns=matrix.columns)


class TestScoreBatch:
    """Tests for score_batch()."""

    def test_stub_satisfies_protocol(self):
        assert isinstance(MeanScorer(), EnrichmentScorer)
        assert isinstance(SsgseaScorer(), EnrichmentScorer)

    def test_shape_and_order(self, expression):
        """Rows follow batch order, columns follow sample order."""
        sets = {"B": ["G1", "G2"], "A": ["G3", "G4"], "MyGeneSet": ["G5", "G6"]}
        scores = score_batch(MeanScorer(), expression, sets)

        assert list(scores.index) == ["B", "A", "MyGeneSet"]
        assert list(scores.columns) == list(expression.columns)
        np.testing.assert_allclose(
            scores.loc["A"].to_numpy(), expression.loc[["G3", "G4"]].mean(axis=0).to_numpy()
        )

    def test_empty_gene_set_rejected_before_scoring(self, expression):
        """A set with no measured genes never reaches the scorer."""
        scorer = MeanScorer()
        with pytest.raises(ScoringError, match="no genes"):
            score_batch(scorer, expression, {"A": ["G1"], "B": ["NOPE1", "NOPE2"]})
        assert scorer.calls == []

    def test_no_samples(self, expression):
        with pytest.raises(ScoringError, match="no sample columns"):
            score_batch(MeanScorer(), expression.iloc[:, :0], {"A": ["G1"]})

    def test_library_error_wrapped(self, expression):
        with pytest.raises(ScoringError, match="library exploded"):
            score_batch(_RaisingScorer(), expression, {"A": ["G1", "G2"]})

    @pytest.mark.parametrize("error", [IndexError, AttributeError, ZeroDivisionError])
    def test_any_library_exception_wrapped(self, expression, error):
        class _Scorer:
            def score(self, matrix, gene_sets):
                raise error("index 0 is out of bounds")

        with pytest.raises(ScoringError, match="out of bounds") as excinfo:
            score_batch(_Scorer(), expression, {"A": ["G1", "G2"]})
        assert isinstance(excinfo.value.__cause__, error)

    def test_missing_sample_in_output(self, expression):
        with pytest.raises(ScoringError, match="samples"):
            score_batch(_DropSampleScorer(), expression, {"A": ["G1", "G2"]})

    def test_non_finite_scores(self, expression):
        with pytest.raises(ScoringError, match="non-finite"):
            score_batch(_NanScorer(), expression, {"A": ["G1", "G2"]})

    def test_scoring_error_is_data_error(self):
        assert issubclass(ScoringError, DataError)


class TestValidateScoreMatrix:
    """Tests for validate_score_matrix()."""

    def test_reorders(self):
        scores = pd.DataFrame([[1.0, 2.0], [3.0, 4.0]], index=["b", "a"], columns=["s2", "s1"])
        out = validate_score_matrix(scores, ["a", "b"], ["s1", "s2"])
        assert out.loc["a", "s1"] == 4.0
        assert list(out.index) == ["a", "b"]
        assert list(out.columns) == ["s1", "s2"]

    def test_missing_set(self):
        scores = pd.DataFrame([[1.0]], index=["a"], columns=["s1"])
        with pytest.raises(ScoringError, match="gene sets"):
            validate_score_matrix(scores, ["a", "b"], ["s1"])


class TestSsgseaScorer:
    """Integration with gseapy (skipped when gseapy is unavailable)."""

    def test_scores_every_set_and_sample(self, expression):
        pytest.importorskip("gseapy")
        sets = {"RandomGeneSet_1": ["G1", "G2", "G3"], "MyGeneSet": ["G4", "G5", "G6"]}
        scores = SsgseaScorer(seed=1).score(expression, sets)

        assert scores.shape == (2, 6)
        assert list(scores.index) == list(sets)
        assert list(scores.columns) == list(expression.columns)
        assert np.all(np.isfinite(scores.to_numpy()))

    def test_deterministic(self, expression):
        pytest.importorskip("gseapy")
        sets = {"A": ["G1", "G2", "G3", "G7"], "B": ["G4", "G5", "G6"]}
        a = SsgseaScorer(seed=3).score(expression, sets)
        b = SsgseaScorer(seed=3).score(expression, sets)
        pd.testing.assert_frame_equal(a, b)
