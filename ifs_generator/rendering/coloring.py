"""
Color handling for chaos-game rendering.

The engine hands out colors as opaque 24-bit integers packed as 0xRRGGBB.
This module converts between that packing, normalized RGB triples and the
uint8 pixels written into raster buffers, and builds per-map color lists
from matplotlib colormaps.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple, Union

import numpy as np

import matplotlib
import matplotlib.colors as mcolors

logger = logging.getLogger(__name__)

MAX_PACKED = 0xFFFFFF


@dataclass
class ColorRGB:
    """RGB color representation."""
    r: float
    g: float
    b: float

    def __post_init__(self):
        """Validate RGB values."""
        for component in [self.r, self.g, self.b]:
            if not 0 <= component <= 1:
                raise ValueError("RGB components must be between 0 and 1")

    def to_tuple(self) -> Tuple[float, float, float]:
        """Convert to RGB tuple."""
        return (self.r, self.g, self.b)

    def to_uint8_tuple(self) -> Tuple[int, int, int]:
        """Convert to 8-bit RGB tuple."""
        return (int(round(self.r * 255)), int(round(self.g * 255)), int(round(self.b * 255)))

    def to_packed(self) -> int:
        """Pack into a 24-bit 0xRRGGBB integer."""
        r, g, b = self.to_uint8_tuple()
        return (r << 16) | (g << 8) | b

    @classmethod
    def from_packed(cls, value: int) -> 'ColorRGB':
        """Unpack a 24-bit 0xRRGGBB integer."""
        value = int(value)
        if not 0 <= value <= MAX_PACKED:
            raise ValueError(f"Packed color out of range: {value:#x}")
        return cls(((value >> 16) & 0xFF) / 255,
                   ((value >> 8) & 0xFF) / 255,
                   (value & 0xFF) / 255)

    def to_hex(self) -> str:
        return f"#{self.to_packed():06x}"


def parse_color(text: Union[str, int]) -> int:
    """
    Parse a color specification into a packed 24-bit integer.

    Accepts integers, ``#RRGGBB``, ``0xRRGGBB`` and matplotlib color names
    such as ``"tab:green"`` or ``"white"``.

    Raises:
        ValueError: if the color cannot be interpreted
    """
    if isinstance(text, (int, np.integer)):
        value = int(text)
        if not 0 <= value <= MAX_PACKED:
            raise ValueError(f"Packed color out of range: {value:#x}")
        return value
    if not isinstance(text, str):
        raise ValueError(f"Invalid color {text!r}: expected a string or a packed integer")

    spec = text.strip()
    lowered = spec.lower()
    for prefix in ('#', '0x'):
        if lowered.startswith(prefix) and len(lowered) == len(prefix) + 6:
            try:
                return int(lowered[len(prefix):], 16)
            except ValueError:
                break

    try:
        rgb = mcolors.to_rgb(spec)
    except ValueError:
        raise ValueError(f"Invalid color '{text}'") from None
    return ColorRGB(*rgb).to_packed()


def unpack_colors(packed: np.ndarray) -> np.ndarray:
    """
    Convert packed colors to uint8 RGB triples.

    Args:
        packed: Array of 0xRRGGBB integers, shape (N,)

    Returns:
        uint8 array of shape (N, 3)
    """
    packed = np.asarray(packed, dtype=np.uint32)
    rgb = np.empty(packed.shape + (3,), dtype=np.uint8)
    rgb[..., 0] = (packed >> 16) & 0xFF
    rgb[..., 1] = (packed >> 8) & 0xFF
    rgb[..., 2] = packed & 0xFF
    return rgb


def palette_colors(cmap_name: str, count: int) -> List[int]:
    """
    Sample ``count`` evenly spaced packed colors from a matplotlib colormap.

    Raises:
        ValueError: if the colormap does not exist
    """
    if count <= 0:
        return []

    try:
        cmap = matplotlib.colormaps[cmap_name]
    except KeyError:
        raise ValueError(f"Unknown colormap '{cmap_name}'") from None

    # Avoid sampling both ends of cyclic maps such as hsv
    positions = np.linspace(0.0, 1.0, count, endpoint=False) if count > 1 else [0.0]
    colors = []
    for t in positions:
        r, g, b, _ = cmap(float(t))
        colors.append(ColorRGB(r, g, b).to_packed())

    logger.debug(f"Sampled {count} colors from colormap {cmap_name}")
    return colors


def list_palettes() -> List[str]:
    """Names of the available matplotlib colormaps."""
    return sorted(matplotlib.colormaps)
