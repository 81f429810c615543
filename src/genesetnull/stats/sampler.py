"""
Matched-size random gene set sampling.

Competitive null: the observed gene set is compared with random sets of the
same size drawn from the measured gene universe. Within one draw genes are
sampled without replacement; across draws the same gene may reappear, so
every random set is an independent uniform k-subset of the universe.

All randomness flows through an explicit ``numpy.random.Generator``; nothing
here touches the global NumPy random state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from genesetnull.core.errors import DataError
from genesetnull.core.genesets import GeneSetBatch

__all__ = ['MatchedSizeSampler', 'draw_random_sets', 'build_random_batch']


@dataclass
class MatchedSizeSampler:
    """Draw random gene sets of a fixed size from a gene universe.

    Example:
        sampler = MatchedSizeSampler(universe=list(matrix.feature_ids),
                                     rng=np.random.default_rng(42))
        random_sets = sampler.draw(size=25, n=99)
    """

    universe: Sequence[str]
    rng: np.random.Generator = field(default_factory=lambda: np.random.default_rng())

    def __post_init__(self):
        self._universe = np.asarray(list(self.universe), dtype=object)
        if len(set(self._universe.tolist())) != len(self._universe):
            raise DataError("Gene universe contains duplicated identifiers")

    @property
    def universe_size(self) -> int:
        return len(self._universe)

    def draw_one(self, size: int) -> list[str]:
        """One k-subset of the universe, uniform, without replacement."""
        self._check_size(size)
        idx = self.rng.choice(self.universe_size, size=size, replace=False)
        return [str(g) for g in self._universe[idx]]

    def draw(self, size: int, n: int) -> list[list[str]]:
        """``n`` independent k-subsets."""
        if n < 0:
            raise DataError(f"Number of random sets must be >= 0, got {n}")
        self._check_size(size)
        return [self.draw_one(size) for _ in range(n)]

    def _check_size(self, size: int) -> None:
        if size < 0:
            raise DataError(f"Random set size must be >= 0, got {size}")
        if size > self.universe_size:
            raise DataError(
                f"Random set size ({size}) exceeds gene universe size ({self.universe_size})"
            )


def draw_random_sets(
    universe: Sequence[str],
    size: int,
    n: int,
    rng: np.random.Generator,
) -> list[list[str]]:
    """Functional shortcut for ``MatchedSizeSampler(universe, rng).draw(size, n)``."""
    return MatchedSizeSampler(universe, rng).draw(size, n)


def build_random_batch(
    true_set: Sequence[str],
    universe: Sequence[str],
    n: int,
    rng: np.random.Generator,
) -> GeneSetBatch:
    """
    Build the scoring batch: ``n`` random sets matched to ``len(true_set)``
    plus the true set itself.

    Args:
        true_set: Gene set already intersected with ``universe``
        universe: Gene identifiers of the cohort-restricted matrix
        n: Number of random sets
        rng: Random source

    Returns:
        GeneSetBatch with n + 1 entries

    Raises:
        DataError: If the true set contains genes outside the universe or
            is larger than it
    """
    universe_set = set(universe)
    outside = [g for g in true_set if g not in universe_set]
    if outside:
        raise DataError(
            f"True gene set must be intersected with the universe first; "
            f"{len(outside)} genes outside it (e.g. {outside[:3]})"
        )
    random_sets = draw_random_sets(universe, len(true_set), n, rng)
    return GeneSetBatch(random_sets, list(true_set))
