"""
Chaos-game rendering of iterated function systems.

An iterated function system (IFS) is a finite set of affine contraction
mappings, each written as ``a b c d e f [weight]`` and sending (x, y) to
(a*x + b*y + e, c*x + d*y + f). Repeatedly applying randomly chosen maps to
a running point produces samples of the system's attractor.

Key Features:
- Chaos-game engine with uniform or weighted map selection
- Injectable random sources for reproducible and scripted runs
- Per-map colors, generated or taken from matplotlib colormaps
- Rasterization to PNG/TIFF/JPEG with embedded render metadata
- Built-in presets (Sierpinski triangle, Barnsley fern, dragon curves, ...)

Example usage:
    >>> from ifs_generator import IfsEngine
    >>> engine = IfsEngine([[0.5, 0, 0, 0.5, 0, 0], [0.5, 0, 0, 0.5, 0.5, 0]])
    >>> point = engine.iterate()
    >>> color = engine.get_color()
"""

__version__ = "1.0.0"
__author__ = "IFS Generator Team"

from ifs_generator.core.affine import AffineMap, Point
from ifs_generator.core.engine import EngineState, IfsEngine
from ifs_generator.core.errors import (
    IfsError,
    EmptySystemError,
    MalformedMapError,
    InconsistentRowLengthError,
    NoIterationYetError,
)
from ifs_generator.core.presets import SYSTEM_PRESETS, get_preset
from ifs_generator.core.selection import NumpyRandomSource, ScriptedRandomSource
from ifs_generator.io.system_file import load_system, parse_system
from ifs_generator.rendering.image_output import ImageExporter
from ifs_generator.rendering.raster import PointRasterizer, Viewport

# Main API classes
from ifs_generator.api import IfsRenderer, RenderConfig, BatchRenderer

__all__ = [
    "IfsRenderer",
    "RenderConfig",
    "BatchRenderer",
    "IfsEngine",
    "EngineState",
    "AffineMap",
    "Point",
    "IfsError",
    "EmptySystemError",
    "MalformedMapError",
    "InconsistentRowLengthError",
    "NoIterationYetError",
    "NumpyRandomSource",
    "ScriptedRandomSource",
    "SYSTEM_PRESETS",
    "get_preset",
    "load_system",
    "parse_system",
    "ImageExporter",
    "PointRasterizer",
    "Viewport",
]
