import numpy as np
import pytest

from ifs_generator.core.engine import IfsEngine
from ifs_generator.core.presets import SYSTEM_PRESETS, get_preset
from ifs_generator.core.selection import NumpyRandomSource


@pytest.mark.parametrize("name", sorted(SYSTEM_PRESETS))
def test_presets_are_valid_contractive_systems(name):
    preset = SYSTEM_PRESETS[name]
    assert preset.name == name
    engine = IfsEngine(preset.to_rows(), random_source=NumpyRandomSource(seed=0))
    assert engine.weighted == preset.weighted
    assert all(m.is_contraction() for m in engine.maps)

    points, _ = engine.sample(1000, burn_in=20)
    assert np.all(np.isfinite(points))


def test_get_preset_normalizes_name():
    assert get_preset('Barnsley-Fern') is SYSTEM_PRESETS['barnsley_fern']


def test_get_preset_unknown():
    with pytest.raises(ValueError, match="Available"):
        get_preset('mandelbrot')


def test_to_rows_returns_fresh_lists():
    rows = get_preset('sierpinski').to_rows()
    rows[0][0] = 99.0
    assert get_preset('sierpinski').rows[0][0] == 0.5


def test_viewport_defaults_fill_unset_options():
    fern = get_preset('barnsley_fern')
    assert fern.viewport_defaults({}) == {'fit': True, 'flip_y': True}
    assert fern.viewport_defaults({'fit': None, 'flip_y': None}) == {'fit': True, 'flip_y': True}
    assert get_preset('sierpinski').viewport_defaults({}) == {'fit': True, 'flip_y': False}


def test_viewport_defaults_keep_explicit_options():
    fern = get_preset('barnsley_fern')
    assert fern.viewport_defaults({'fit': False}) == {'flip_y': True}
    assert fern.viewport_defaults({'fit': False, 'flip_y': False}) == {}
