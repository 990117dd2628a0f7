"""
Affine contraction mappings.

An affine map sends a point (x, y) to (a*x + b*y + e, c*x + d*y + f). A map
in an iterated function system may also carry a selection weight, in which
case it is written as the seven-value row ``a b c d e f weight``.
"""

import numbers
from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence, Tuple

import numpy as np

from .errors import MalformedMapError

COEFFICIENT_COUNT = 6
WEIGHTED_ROW_LENGTH = COEFFICIENT_COUNT + 1


class Point(NamedTuple):
    """A point in the unscaled attractor plane."""
    x: float = 0.0
    y: float = 0.0


def _coerce_coefficient(value, position: int, index: Optional[int]) -> float:
    if value is None:
        raise MalformedMapError(f"coefficient {position} is missing", index)
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise MalformedMapError(
            f"coefficient {position} is not numeric: {value!r}", index
        )
    return float(value)


@dataclass(frozen=True)
class AffineMap:
    """A single affine mapping with an optional selection weight."""

    a: float
    b: float
    c: float
    d: float
    e: float
    f: float
    weight: Optional[float] = None

    @classmethod
    def from_row(cls, row: Sequence, index: Optional[int] = None) -> 'AffineMap':
        """
        Build a map from a row of six or seven numbers.

        Args:
            row: ``a b c d e f`` optionally followed by a weight
            index: Position of the row in its system, used in error messages

        Returns:
            The corresponding AffineMap

        Raises:
            MalformedMapError: if the row is not a sequence of 6 or 7 numbers
        """
        if isinstance(row, (str, bytes)) or not isinstance(row, Sequence):
            try:
                row = list(row)
            except TypeError:
                raise MalformedMapError(f"expected a sequence of numbers, got {row!r}", index)
            if row and isinstance(row[0], str):
                raise MalformedMapError("expected a sequence of numbers, got text", index)

        if len(row) not in (COEFFICIENT_COUNT, WEIGHTED_ROW_LENGTH):
            raise MalformedMapError(
                f"expected {COEFFICIENT_COUNT} or {WEIGHTED_ROW_LENGTH} values, got {len(row)}",
                index,
            )

        values = [_coerce_coefficient(v, i, index) for i, v in enumerate(row)]
        return cls(*values)

    @property
    def weighted(self) -> bool:
        return self.weight is not None

    def to_row(self) -> Tuple[float, ...]:
        """Return the map as a row, including the weight if present."""
        row = (self.a, self.b, self.c, self.d, self.e, self.f)
        if self.weighted:
            row += (self.weight,)
        return row

    def apply(self, point: Point) -> Point:
        """Apply the map to a single point."""
        x, y = point
        return Point(
            self.a * x + self.b * y + self.e,
            self.c * x + self.d * y + self.f,
        )

    def apply_array(self, xs: np.ndarray, ys: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Apply the map element-wise to coordinate arrays."""
        return (self.a * xs + self.b * ys + self.e,
                self.c * xs + self.d * ys + self.f)

    def linear_part(self) -> np.ndarray:
        """Return the 2x2 linear part of the map."""
        return np.array([[self.a, self.b], [self.c, self.d]], dtype=np.float64)

    def contraction_ratio(self) -> float:
        """
        Lipschitz constant of the map in the Euclidean metric.

        This is the spectral norm of the linear part; the map is a
        contraction when the ratio is strictly below one.
        """
        matrix = self.linear_part()
        if not np.all(np.isfinite(matrix)):
            return float("nan")
        return float(np.linalg.norm(matrix, ord=2))

    def is_contraction(self) -> bool:
        return self.contraction_ratio() < 1.0
