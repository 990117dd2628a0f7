"""
Random map selection for the chaos game.

A system either selects its maps uniformly or in proportion to per-map
weights. The two cases are separate selector types so that a weighted
selector always owns a cumulative table and a uniform one never does.
Randomness comes from an injectable source with a ``random()`` method
returning floats in [0, 1), which lets tests script exact draws.
"""

from abc import ABC, abstractmethod
from itertools import cycle as _cycle
from typing import Iterable, Optional, Protocol, Sequence, Tuple

import numpy as np


class RandomSource(Protocol):
    """Anything that yields uniform floats in [0, 1)."""

    def random(self) -> float:
        ...


class NumpyRandomSource:
    """Uniform draws from a numpy Generator, fetched in blocks."""

    def __init__(self, seed: Optional[int] = None, block_size: int = 4096):
        """
        Initialize the random source.

        Args:
            seed: Seed for ``numpy.random.default_rng``; None for OS entropy
            block_size: Number of draws fetched from the generator at once
        """
        if block_size <= 0:
            raise ValueError("block_size must be positive")
        self.seed = seed
        self.block_size = block_size
        self._rng = np.random.default_rng(seed)
        self._block = np.empty(0)
        self._position = 0

    def random(self) -> float:
        if self._position >= len(self._block):
            self._block = self._rng.random(self.block_size)
            self._position = 0
        value = self._block[self._position]
        self._position += 1
        return float(value)


class ScriptedRandomSource:
    """Replays a fixed sequence of draws, for deterministic tests."""

    def __init__(self, values: Iterable[float], cycle: bool = True):
        values = [float(v) for v in values]
        if not values:
            raise ValueError("ScriptedRandomSource needs at least one value")
        for v in values:
            if not 0.0 <= v < 1.0:
                raise ValueError(f"Scripted draws must lie in [0, 1), got {v}")
        self.values = tuple(values)
        self._iter = _cycle(self.values) if cycle else iter(self.values)

    def random(self) -> float:
        try:
            return next(self._iter)
        except StopIteration:
            raise RuntimeError("ScriptedRandomSource exhausted") from None


class MapSelector(ABC):
    """Strategy for turning a uniform draw into a map index."""

    def __init__(self, count: int):
        self.count = count

    @abstractmethod
    def select(self, u: float) -> int:
        """Map a uniform draw ``u`` in [0, 1) to an index in [0, count)."""
        pass

    def choose(self, source: RandomSource) -> int:
        return self.select(source.random())


class UniformSelector(MapSelector):
    """Every map is equally likely."""

    def select(self, u: float) -> int:
        # u may round up to 1.0 once multiplied
        return min(int(u * self.count), self.count - 1)

    def __repr__(self) -> str:
        return f"UniformSelector(count={self.count})"


class WeightedSelector(MapSelector):
    """Maps are chosen with probability proportional to their weight."""

    def __init__(self, weights: Sequence[float]):
        super().__init__(len(weights))
        self.cumulative = self.cumulative_table(weights)

    @staticmethod
    def cumulative_table(weights: Sequence[float]) -> Tuple[float, ...]:
        """
        Prefix sums of the weights, starting at zero.

        The table has ``len(weights) + 1`` entries; entry ``i + 1`` minus
        entry ``i`` is the weight of map ``i``.
        """
        table = [0.0]
        for weight in weights:
            table.append(table[-1] + weight)
        return tuple(table)

    @property
    def total_weight(self) -> float:
        return self.cumulative[-1]

    def select(self, u: float) -> int:
        total = self.total_weight
        if total == 0:
            return 0

        # First bucket whose upper bound meets or exceeds the draw
        target = u * total
        for index in range(self.count):
            if self.cumulative[index + 1] >= target:
                return index

        # Only reachable when negative weights make the table non-monotonic
        return self.count - 1

    def probabilities(self) -> np.ndarray:
        """Selection probability of each map (all zero for a zero total)."""
        weights = np.diff(np.asarray(self.cumulative, dtype=np.float64))
        total = self.total_weight
        if total == 0:
            return np.zeros_like(weights)
        return weights / total

    def __repr__(self) -> str:
        return f"WeightedSelector(cumulative={self.cumulative})"
