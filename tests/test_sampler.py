"""Tests for matched-size random gene set sampling."""

import numpy as np
import pytest

from genesetnull.core.errors import DataError
from genesetnull.core.genesets import TRUE_SET_KEY, GeneSetBatch, random_set_name
from genesetnull.stats.sampler import MatchedSizeSampler, build_random_batch, draw_random_sets

UNIVERSE = [f"G{i}" for i in range(50)]


class TestMatchedSizeSampler:
    """Tests for MatchedSizeSampler."""

    def test_sets_are_distinct_k_subsets(self):
        """Every draw has exactly k distinct genes, all from the universe."""
        sampler = MatchedSizeSampler(UNIVERSE, np.random.default_rng(42))
        sets = sampler.draw(size=7, n=200)

        assert len(sets) == 200
        universe = set(UNIVERSE)
        for genes in sets:
            assert len(genes) == 7
            assert len(set(genes)) == 7
            assert set(genes) <= universe

    def test_size_equal_to_universe(self):
        """k == |U| returns a permutation of the universe."""
        sampler = MatchedSizeSampler(UNIVERSE, np.random.default_rng(0))
        genes = sampler.draw_one(len(UNIVERSE))
        assert sorted(genes) == sorted(UNIVERSE)

    def test_size_exceeds_universe(self):
        """k > |U| is a data error, not a silent truncation."""
        sampler = MatchedSizeSampler(UNIVERSE, np.random.default_rng(0))
        with pytest.raises(DataError, match="exceeds gene universe size"):
            sampler.draw(size=51, n=3)

    def test_negative_arguments(self):
        sampler = MatchedSizeSampler(UNIVERSE, np.random.default_rng(0))
        with pytest.raises(DataError):
            sampler.draw(size=-1, n=3)
        with pytest.raises(DataError):
            sampler.draw(size=3, n=-1)

    def test_duplicated_universe_rejected(self):
        with pytest.raises(DataError, match="duplicated"):
            MatchedSizeSampler(["A", "B", "A"], np.random.default_rng(0))

    def test_deterministic_for_seed(self):
        """Same seed, same sets; different seed, different sets."""
        a = draw_random_sets(UNIVERSE, 5, 20, np.random.default_rng(7))
        b = draw_random_sets(UNIVERSE, 5, 20, np.random.default_rng(7))
        c = draw_random_sets(UNIVERSE, 5, 20, np.random.default_rng(8))
        assert a == b
        assert a != c

    def test_covers_universe(self):
        """Across many draws every gene is eventually sampled."""
        sets = draw_random_sets(UNIVERSE, 5, 500, np.random.default_rng(1))
        seen = {g for genes in sets for g in genes}
        assert seen == set(UNIVERSE)


class TestBuildRandomBatch:
    """Tests for build_random_batch()."""

    def test_batch_layout(self):
        """n random sets named RandomGeneSet_i, true set last under MyGeneSet."""
        true_set = ["G1", "G2", "G3"]
        batch = build_random_batch(true_set, UNIVERSE, 10, np.random.default_rng(42))

        assert isinstance(batch, GeneSetBatch)
        assert len(batch) == 11
        assert batch.n_random == 10
        assert list(batch)[-1] == TRUE_SET_KEY
        assert list(batch)[0] == random_set_name(1)
        assert batch.true_set == true_set
        assert all(len(batch[name]) == 3 for name in batch.random_names)

    def test_zero_random_sets(self):
        batch = build_random_batch(["G1"], UNIVERSE, 0, np.random.default_rng(42))
        assert list(batch) == [TRUE_SET_KEY]

    def test_true_set_must_be_intersected(self):
        with pytest.raises(DataError, match="intersected"):
            build_random_batch(["G1", "NOT_A_GENE"], UNIVERSE, 5, np.random.default_rng(42))
