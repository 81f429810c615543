"""
Gene set containers.

GeneSet is a named, deduplicated list of gene identifiers. Order carries no
biological meaning but is kept (first appearance) so that sampling from a
gene universe built out of it is reproducible for a fixed seed.

GeneSetBatch is the unit handed to the scoring adapter: ``n`` random sets
named ``RandomGeneSet_1 .. RandomGeneSet_n`` followed by the true set under
the fixed key ``MyGeneSet``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Mapping

__all__ = ['GeneSet', 'GeneSetBatch', 'TRUE_SET_KEY', 'RANDOM_SET_PREFIX', 'random_set_name']

TRUE_SET_KEY = "MyGeneSet"
RANDOM_SET_PREFIX = "RandomGeneSet_"


def random_set_name(i: int) -> str:
    """Name of the i-th random set (1-based)."""
    return f"{RANDOM_SET_PREFIX}{i}"


@dataclass(frozen=True)
class GeneSet:
    """Named collection of gene identifiers."""

    name: str
    genes: tuple[str, ...]
    metadata: dict = field(default_factory=dict, compare=False)

    @classmethod
    def from_genes(cls, name: str, genes: Iterable[str], **metadata) -> GeneSet:
        seen = set()
        unique = []
        for gene in genes:
            gene = str(gene).strip()
            if gene and gene not in seen:
                seen.add(gene)
                unique.append(gene)
        return cls(name=name, genes=tuple(unique), metadata=dict(metadata))

    @property
    def size(self) -> int:
        return len(self.genes)

    def intersect(self, universe: Iterable[str]) -> GeneSet:
        """Restrict to genes in ``universe``, keeping order."""
        universe = universe if isinstance(universe, (set, frozenset)) else set(universe)
        return GeneSet(
            name=self.name,
            genes=tuple(g for g in self.genes if g in universe),
            metadata=self.metadata,
        )

    def __len__(self) -> int:
        return len(self.genes)

    def __iter__(self) -> Iterator[str]:
        return iter(self.genes)

    def __contains__(self, gene: object) -> bool:
        return gene in self.genes


class GeneSetBatch(Mapping[str, list[str]]):
    """
    Ordered mapping of set name → genes: n random sets plus the true set.

    The true set is always the last entry and is stored under TRUE_SET_KEY.
    """

    def __init__(self, random_sets: list[list[str]], true_set: list[str]):
        self._sets: dict[str, list[str]] = {
            random_set_name(i): list(genes) for i, genes in enumerate(random_sets, start=1)
        }
        self._sets[TRUE_SET_KEY] = list(true_set)

    def __getitem__(self, key: str) -> list[str]:
        return self._sets[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._sets)

    def __len__(self) -> int:
        return len(self._sets)

    @property
    def n_random(self) -> int:
        return len(self._sets) - 1

    @property
    def true_set(self) -> list[str]:
        return self._sets[TRUE_SET_KEY]

    @property
    def random_names(self) -> list[str]:
        return [name for name in self._sets if name != TRUE_SET_KEY]

    def as_dict(self) -> dict[str, list[str]]:
        return {name: list(genes) for name, genes in self._sets.items()}

    def __repr__(self) -> str:
        return f"GeneSetBatch(n_random={self.n_random}, set_size={len(self.true_set)})"
