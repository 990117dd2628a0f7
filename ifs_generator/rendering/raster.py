"""
Rasterization of chaos-game points.

Points come out of the engine in an abstract, unscaled plane. A Viewport
maps that plane onto pixels with a uniform scale and an offset, and a
PointRasterizer writes each point's color into an RGB buffer.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .coloring import unpack_colors

logger = logging.getLogger(__name__)


@dataclass
class Viewport:
    """
    Mapping from attractor coordinates to pixel coordinates.

    With ``size = min(width, height)`` a point (x, y) lands on pixel
    ``(offset_x + size*scale*x, offset_y + size*scale*y)`` truncated toward
    zero. The default offset is the center of the ``size`` square.
    """

    width: int
    height: int
    scale: float = 1.0
    offset: Optional[Tuple[float, float]] = None
    flip_y: bool = False

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Width and height must be positive")
        if self.scale <= 0:
            raise ValueError("scale must be positive")
        if self.offset is None:
            half = self.size // 2
            self.offset = (float(half), float(half))

    @property
    def size(self) -> int:
        return min(self.width, self.height)

    @property
    def radius(self) -> float:
        return self.size * self.scale

    def to_pixels(self, points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Convert an (N, 2) array of points to integer pixel columns and rows.

        Non-finite coordinates are mapped to -1 so they fall outside the image.
        """
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        ys = -points[:, 1] if self.flip_y else points[:, 1]
        px = self.offset[0] + self.radius * points[:, 0]
        py = self.offset[1] + self.radius * ys

        finite = np.isfinite(px) & np.isfinite(py)
        px = np.where(finite, px, -1.0)
        py = np.where(finite, py, -1.0)
        # Huge but finite values must not overflow the integer cast
        limit = float(max(self.width, self.height) + 1)
        px = np.clip(px, -limit, limit)
        py = np.clip(py, -limit, limit)
        return np.trunc(px).astype(np.int64), np.trunc(py).astype(np.int64)

    @classmethod
    def fit(cls, points: np.ndarray, width: int, height: int,
            margin: float = 0.05, flip_y: bool = False) -> 'Viewport':
        """
        Build a viewport that frames the given points.

        Args:
            points: (N, 2) array of sampled points
            width, height: Image resolution in pixels
            margin: Fraction of the image left empty on each side
            flip_y: Draw with y increasing upwards

        Returns:
            Viewport centering the finite points' bounding box
        """
        if not 0 <= margin < 0.5:
            raise ValueError("margin must be in [0, 0.5)")

        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        finite = points[np.all(np.isfinite(points), axis=1)]
        if len(finite) == 0:
            logger.warning("No finite points to fit; using default viewport")
            return cls(width, height, flip_y=flip_y)

        xmin, ymin = finite.min(axis=0)
        xmax, ymax = finite.max(axis=0)
        if flip_y:
            ymin, ymax = -ymax, -ymin

        span_x = xmax - xmin
        span_y = ymax - ymin
        size = min(width, height)
        usable_w = width * (1 - 2 * margin)
        usable_h = height * (1 - 2 * margin)

        candidates = []
        if span_x > 0:
            candidates.append(usable_w / span_x)
        if span_y > 0:
            candidates.append(usable_h / span_y)
        radius = min(candidates) if candidates else float(size)
        scale = radius / size

        center_x = (xmin + xmax) / 2
        center_y = (ymin + ymax) / 2
        offset = (width / 2 - radius * center_x, height / 2 - radius * center_y)

        logger.debug(f"Fitted viewport: scale={scale:.4g}, offset=({offset[0]:.1f}, {offset[1]:.1f})")
        return cls(width, height, scale=scale, offset=offset, flip_y=flip_y)


class PointRasterizer:
    """Plots colored points into an RGB image buffer."""

    def __init__(self, viewport: Viewport, background: int = 0x000000):
        """
        Initialize rasterizer.

        Args:
            viewport: Mapping from attractor plane to pixels
            background: Packed 24-bit background color
        """
        self.viewport = viewport
        self.background = background
        self.image = np.empty((viewport.height, viewport.width, 3), dtype=np.uint8)
        self.clear()

    def clear(self) -> None:
        self.image[...] = unpack_colors(np.array([self.background]))[0]

    def plot(self, points: np.ndarray, colors: np.ndarray) -> int:
        """
        Plot points with their packed colors.

        Later points overwrite earlier ones on the same pixel. Points outside
        the image are dropped.

        Returns:
            Number of points that landed inside the image
        """
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        colors = np.asarray(colors)
        if len(colors) != len(points):
            raise ValueError(f"Got {len(points)} points but {len(colors)} colors")

        px, py = self.viewport.to_pixels(points)
        inside = (px >= 0) & (px < self.viewport.width) & (py >= 0) & (py < self.viewport.height)

        self.image[py[inside], px[inside]] = unpack_colors(colors[inside])

        plotted = int(np.count_nonzero(inside))
        if plotted < len(points):
            logger.debug(f"Dropped {len(points) - plotted} points outside the image")
        return plotted

    def coverage(self) -> float:
        """Fraction of pixels that differ from the background."""
        background = unpack_colors(np.array([self.background]))[0]
        painted = np.any(self.image != background, axis=2)
        return float(painted.mean())
