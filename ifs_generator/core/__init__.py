"""Chaos-game engine: affine maps, map selection and iteration state."""

from .affine import AffineMap, Point
from .engine import EngineState, IfsEngine, build_maps, generate_colors
from .errors import (
    EmptySystemError,
    IfsError,
    InconsistentRowLengthError,
    MalformedMapError,
    NoIterationYetError,
    SystemDefinitionError,
)
from .selection import (
    NumpyRandomSource,
    RandomSource,
    ScriptedRandomSource,
    UniformSelector,
    WeightedSelector,
)

__all__ = [
    "AffineMap",
    "Point",
    "EngineState",
    "IfsEngine",
    "build_maps",
    "generate_colors",
    "IfsError",
    "SystemDefinitionError",
    "EmptySystemError",
    "MalformedMapError",
    "InconsistentRowLengthError",
    "NoIterationYetError",
    "RandomSource",
    "NumpyRandomSource",
    "ScriptedRandomSource",
    "UniformSelector",
    "WeightedSelector",
]
