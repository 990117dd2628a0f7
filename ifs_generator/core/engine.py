"""
The chaos-game engine.

An IfsEngine holds an ordered system of affine maps, one color per map and
the running state of the game. Each call to ``iterate`` picks a map at
random, applies it to the current point and makes the result the new
current point. After enough iterations the visited points trace out the
attractor of the system.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from .affine import AffineMap, Point
from .errors import (
    EmptySystemError,
    InconsistentRowLengthError,
    MalformedMapError,
    NoIterationYetError,
)
from .selection import (
    MapSelector,
    NumpyRandomSource,
    RandomSource,
    UniformSelector,
    WeightedSelector,
)

logger = logging.getLogger(__name__)

MAX_COLOR = 0xFFFFFF

Row = Union[AffineMap, Sequence[float]]


@dataclass(frozen=True)
class EngineState:
    """Position of the game: the current point and the last map chosen."""
    point: Point = Point(0.0, 0.0)
    last_index: Optional[int] = None


def generate_colors(count: int, seed: Optional[int] = None) -> List[int]:
    """Generate ``count`` pseudo-random 24-bit RGB colors."""
    if count <= 0:
        return []
    rng = np.random.default_rng(seed)
    return [int(c) for c in rng.integers(0, MAX_COLOR + 1, size=count)]


def build_maps(system: Sequence[Row]) -> Tuple[AffineMap, ...]:
    """
    Validate a system description and convert it to affine maps.

    Args:
        system: Rows of 6 or 7 numbers, or AffineMap instances

    Returns:
        Tuple of AffineMap in system order

    Raises:
        EmptySystemError: if the system has no rows
        MalformedMapError: if a row is not 6 or 7 numbers
        InconsistentRowLengthError: if weighted and unweighted rows are mixed
    """
    if system is None:
        raise EmptySystemError("Must provide a system.")
    if isinstance(system, (str, bytes)):
        raise MalformedMapError("system must be a sequence of rows, not text")

    maps = []
    for index, row in enumerate(system):
        if isinstance(row, AffineMap):
            maps.append(row)
        else:
            maps.append(AffineMap.from_row(row, index))

    if not maps:
        raise EmptySystemError()

    weighted = [i for i, m in enumerate(maps) if m.weighted]
    if weighted and len(weighted) != len(maps):
        unweighted = next(i for i, m in enumerate(maps) if not m.weighted)
        raise InconsistentRowLengthError(weighted[0], unweighted)

    return tuple(maps)


class IfsEngine:
    """Runs the chaos game over a fixed system of affine maps."""

    def __init__(self, system: Sequence[Row], colors: Optional[Sequence[int]] = None,
                 random_source: Optional[RandomSource] = None,
                 color_seed: Optional[int] = None):
        """
        Initialize the engine.

        Args:
            system: Rows ``a b c d e f [weight]`` or AffineMap instances.
                Either every row carries a weight or none does.
            colors: 24-bit RGB colors, one per map. Missing entries are
                generated; surplus entries are kept but never used.
            random_source: Source of uniform draws in [0, 1). Defaults to a
                fresh NumpyRandomSource.
            color_seed: Seed for generated filler colors
        """
        self._maps = build_maps(system)
        self._selector = self._build_selector(self._maps)
        self._random = random_source if random_source is not None else NumpyRandomSource()

        self._colors = [int(c) for c in colors] if colors is not None else []
        missing = len(self._maps) - len(self._colors)
        if missing > 0:
            self._colors.extend(generate_colors(missing, color_seed))
            logger.debug(f"Generated {missing} filler colors")

        self._state = EngineState()

        for index, m in enumerate(self._maps):
            ratio = m.contraction_ratio()
            if not ratio < 1.0:
                logger.warning(f"Map {index} is not a contraction (ratio {ratio:.3f}); "
                               "points may diverge")

        logger.debug(f"IfsEngine initialized: {len(self._maps)} maps, "
                     f"selector={self._selector!r}")

    @staticmethod
    def _build_selector(maps: Tuple[AffineMap, ...]) -> MapSelector:
        if not maps[0].weighted:
            return UniformSelector(len(maps))

        weights = [m.weight for m in maps]
        if any(w < 0 for w in weights):
            logger.warning("System contains negative weights; selection may be skewed")
        selector = WeightedSelector(weights)
        if selector.total_weight == 0:
            logger.warning("All weights are zero; the first map will always be chosen")
        return selector

    @property
    def maps(self) -> Tuple[AffineMap, ...]:
        return self._maps

    @property
    def colors(self) -> Tuple[int, ...]:
        return tuple(self._colors)

    @property
    def selector(self) -> MapSelector:
        return self._selector

    @property
    def weighted(self) -> bool:
        return isinstance(self._selector, WeightedSelector)

    @property
    def cumulative(self) -> Optional[Tuple[float, ...]]:
        """Cumulative weight table, or None for a uniform system."""
        if isinstance(self._selector, WeightedSelector):
            return self._selector.cumulative
        return None

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def point(self) -> Point:
        return self._state.point

    @property
    def last_index(self) -> Optional[int]:
        return self._state.last_index

    @property
    def chosen_map(self) -> AffineMap:
        if self._state.last_index is None:
            raise NoIterationYetError()
        return self._maps[self._state.last_index]

    def __len__(self) -> int:
        return len(self._maps)

    def choose(self) -> int:
        """Pick the index of the next map and remember it."""
        index = self._selector.choose(self._random)
        self._state = EngineState(self._state.point, index)
        return index

    def iterate(self) -> Point:
        """Advance the game by one step and return the new point."""
        index = self.choose()
        point = self._maps[index].apply(self._state.point)
        self._state = EngineState(point, index)
        return point

    def step(self, state: EngineState) -> EngineState:
        """
        Advance an explicit state without touching the engine's own.

        Draws from the engine's random source like ``iterate`` does.
        """
        index = self._selector.choose(self._random)
        return EngineState(self._maps[index].apply(state.point), index)

    def get_color(self) -> int:
        """Color of the most recently chosen map."""
        if self._state.last_index is None:
            raise NoIterationYetError()
        return self._colors[self._state.last_index]

    def color_for(self, state: EngineState) -> int:
        """Color of the map that produced ``state``."""
        if state.last_index is None:
            raise NoIterationYetError()
        return self._colors[state.last_index]

    def reset(self) -> None:
        """Return to the origin and forget the last chosen map."""
        self._state = EngineState()

    def points(self, count: int, burn_in: int = 0) -> Iterator[Tuple[Point, int]]:
        """
        Yield ``count`` (point, color) pairs.

        The first ``burn_in`` iterations are run but not yielded, which
        skips the transient near the starting point.
        """
        if count < 0 or burn_in < 0:
            raise ValueError("count and burn_in must be non-negative")
        for _ in range(burn_in):
            self.iterate()
        for _ in range(count):
            point = self.iterate()
            yield point, self._colors[self._state.last_index]

    def sample(self, count: int, burn_in: int = 0) -> Tuple[np.ndarray, np.ndarray]:
        """
        Collect ``count`` points and their colors into arrays.

        Returns:
            Tuple of (points (count, 2) float64, colors (count,) uint32)
        """
        if count < 0:
            raise ValueError("count must be non-negative")
        coords = np.empty((count, 2), dtype=np.float64)
        colors = np.empty(count, dtype=np.uint32)
        for i, (point, color) in enumerate(self.points(count, burn_in)):
            coords[i] = point
            colors[i] = color
        return coords, colors
