"""
Well-known iterated function systems.

Each preset is stored as rows ``a b c d e f [weight]`` and can be passed
straight to an IfsEngine.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class SystemPreset:
    """A named system of affine maps."""

    name: str
    rows: Tuple[Tuple[float, ...], ...]
    description: str = ""
    # Presets drawn with y increasing upwards
    flip_y: bool = False

    @property
    def weighted(self) -> bool:
        return len(self.rows[0]) == 7

    def to_rows(self) -> List[List[float]]:
        return [list(row) for row in self.rows]

    def viewport_defaults(self, render_options: Dict[str, Any]) -> Dict[str, Any]:
        """
        Viewport options a preset is drawn with unless already chosen.

        Presets carry no coordinates of their own, so they are fitted to the
        image. Only options left as None in ``render_options`` are returned.
        """
        defaults = {}
        if render_options.get('fit') is None:
            defaults['fit'] = True
        if render_options.get('flip_y') is None:
            defaults['flip_y'] = self.flip_y
        return defaults


SYSTEM_PRESETS: Dict[str, SystemPreset] = {
    'sierpinski': SystemPreset(
        name='sierpinski',
        rows=(
            (0.5, 0.0, 0.0, 0.5, -0.25, -0.25),
            (0.5, 0.0, 0.0, 0.5, 0.25, -0.25),
            (0.5, 0.0, 0.0, 0.5, 0.0, 0.25),
        ),
        description="Sierpinski triangle, three half-size copies",
    ),
    'barnsley_fern': SystemPreset(
        name='barnsley_fern',
        rows=(
            (0.0, 0.0, 0.0, 0.16, 0.0, 0.0, 0.01),
            (0.85, 0.04, -0.04, 0.85, 0.0, 1.6, 0.85),
            (0.20, -0.26, 0.23, 0.22, 0.0, 1.6, 0.07),
            (-0.15, 0.28, 0.26, 0.24, 0.0, 0.44, 0.07),
        ),
        description="Barnsley fern with the classic probabilities",
        flip_y=True,
    ),
    'heighway_dragon': SystemPreset(
        name='heighway_dragon',
        rows=(
            (0.5, -0.5, 0.5, 0.5, 0.0, 0.0),
            (-0.5, -0.5, 0.5, -0.5, 1.0, 0.0),
        ),
        description="Heighway dragon curve",
    ),
    'levy_c': SystemPreset(
        name='levy_c',
        rows=(
            (0.5, -0.5, 0.5, 0.5, 0.0, 0.0),
            (0.5, 0.5, -0.5, 0.5, 0.5, 0.5),
        ),
        description="Levy C curve",
    ),
    'maple_leaf': SystemPreset(
        name='maple_leaf',
        rows=(
            (0.14, 0.01, 0.0, 0.51, -0.08, -1.31, 0.10),
            (0.43, 0.52, -0.45, 0.50, 1.49, -0.75, 0.35),
            (0.45, -0.49, 0.47, 0.47, -1.62, -0.74, 0.35),
            (0.49, 0.0, 0.0, 0.51, 0.02, 1.62, 0.20),
        ),
        description="Maple leaf",
        flip_y=True,
    ),
    'koch_curve': SystemPreset(
        name='koch_curve',
        rows=(
            (1 / 3, 0.0, 0.0, 1 / 3, -1 / 3, 0.0),
            (1 / 6, -0.288675, 0.288675, 1 / 6, -1 / 12, 0.144338),
            (1 / 6, 0.288675, -0.288675, 1 / 6, 1 / 12, 0.144338),
            (1 / 3, 0.0, 0.0, 1 / 3, 1 / 3, 0.0),
        ),
        description="Koch curve built from four one-third copies",
        flip_y=True,
    ),
    'crystal': SystemPreset(
        name='crystal',
        rows=(
            (0.382, 0.0, 0.0, 0.382, 0.3072, 0.619),
            (0.382, 0.0, 0.0, 0.382, 0.6033, 0.4044),
            (0.382, 0.0, 0.0, 0.382, 0.0139, 0.4044),
            (0.382, 0.0, 0.0, 0.382, 0.1253, 0.0595),
            (0.382, 0.0, 0.0, 0.382, 0.492, 0.0595),
        ),
        description="Pentagonal crystal",
    ),
}


def get_preset(name: str) -> SystemPreset:
    """
    Look up a preset by name.

    Raises:
        ValueError: if no preset has that name
    """
    preset = SYSTEM_PRESETS.get(name.lower().replace('-', '_'))
    if preset is None:
        available = ', '.join(SYSTEM_PRESETS.keys())
        raise ValueError(f"Unknown preset '{name}'. Available: {available}")
    return preset
