import json

import pytest
import yaml
from click.testing import CliRunner

from ifs_generator.cli.main import main, resolve_system
from ifs_generator.core.presets import get_preset
from ifs_generator.rendering.image_output import ImageExporter

SMALL = ['-w', '32', '-h', '32', '-n', '2000', '--seed', '1']


@pytest.fixture
def runner():
    return CliRunner()


class TestResolveSystem:

    def test_preset_prefix(self):
        rows, source, preset = resolve_system('preset:sierpinski')
        assert len(rows) == 3
        assert source == 'preset:sierpinski'
        assert preset is get_preset('sierpinski')

    def test_file_wins(self, system_file):
        rows, source, preset = resolve_system(str(system_file))
        assert len(rows) == 3
        assert source == str(system_file)
        assert preset is None

    def test_bare_preset_name(self):
        _, source, preset = resolve_system('Barnsley-Fern')
        assert source == 'preset:barnsley_fern'
        assert preset.flip_y

    def test_unknown(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            resolve_system(str(tmp_path / 'missing.ifs'))


def test_version(runner):
    result = runner.invoke(main, ['--version'])
    assert result.exit_code == 0
    assert 'IFS Generator v' in result.output


def test_render_preset(runner, tmp_path):
    output = tmp_path / 'fern.png'
    result = runner.invoke(main, ['render', 'barnsley_fern', str(output)] + SMALL)
    assert result.exit_code == 0, result.output
    assert output.exists()
    metadata = ImageExporter.read_metadata(output)
    assert metadata.source == 'preset:barnsley_fern'
    assert metadata.points == 2000


def test_render_file_with_options(runner, tmp_path, system_file):
    output = tmp_path / 'tri.png'
    result = runner.invoke(main, ['render', str(system_file), str(output), '--offset', '16,16',
                                  '--scale', '1.5', '--color', 'red'] + SMALL)
    assert result.exit_code == 0, result.output
    metadata = ImageExporter.read_metadata(output)
    assert metadata.offset == (16.0, 16.0)
    assert metadata.scale == 1.5
    assert set(metadata.colors) == {0xFF0000}


def test_render_bad_offset(runner, tmp_path):
    result = runner.invoke(main, ['render', 'sierpinski', str(tmp_path / 'x.png'),
                                  '--offset', '1,2,3'] + SMALL)
    assert result.exit_code == 1
    assert 'Invalid offset' in result.output


def test_render_missing_system(runner, tmp_path):
    result = runner.invoke(main, ['render', str(tmp_path / 'nope.ifs'), str(tmp_path / 'x.png')])
    assert result.exit_code == 1
    assert 'Error' in result.output


def test_validate_good_file(runner, system_file):
    result = runner.invoke(main, ['validate', str(system_file)])
    assert result.exit_code == 0, result.output
    assert '3 maps, uniform selection' in result.output


def test_validate_mixed_rows(runner, tmp_path):
    path = tmp_path / 'mixed.ifs'
    path.write_text("0.5 0 0 0.5 0 0\n0.5 0 0 0.5 0.5 0 1\n")
    result = runner.invoke(main, ['validate', str(path)])
    assert result.exit_code == 1
    assert 'Invalid system' in result.output


def test_validate_flags_expanding_map(runner, tmp_path):
    path = tmp_path / 'grow.ifs'
    path.write_text("2 0 0 2 0 0\n")
    result = runner.invoke(main, ['validate', str(path)])
    assert result.exit_code == 0
    assert 'not a contraction' in result.output


def test_list_presets(runner):
    result = runner.invoke(main, ['list-presets'])
    assert result.exit_code == 0
    assert 'sierpinski' in result.output
    assert 'preview' in result.output


def test_list_palettes(runner):
    result = runner.invoke(main, ['list-palettes'])
    assert result.exit_code == 0
    assert 'viridis' in result.output


def test_init_and_validate_config(runner, tmp_path):
    path = tmp_path / 'config.json'
    result = runner.invoke(main, ['init-config', '-o', str(path), '--with-examples'])
    assert result.exit_code == 0, result.output
    assert path.exists()

    result = runner.invoke(main, ['validate-config', str(path)])
    assert result.exit_code == 0, result.output
    assert 'valid' in result.output


def test_validate_config_with_errors(runner, tmp_path):
    path = tmp_path / 'bad.json'
    path.write_text(json.dumps({'render': {'width': -1}}))
    result = runner.invoke(main, ['validate-config', str(path)])
    assert result.exit_code == 1
    assert 'render:' in result.output


def test_config_preset_option(runner, tmp_path):
    path = tmp_path / 'config.json'
    path.write_text(json.dumps({'presets': {'tiny': {'width': 16, 'height': 16, 'points': 100}}}))
    output = tmp_path / 'tiny.png'
    result = runner.invoke(main, ['--config', str(path), '--preset', 'tiny',
                                  'render', 'sierpinski', str(output)])
    assert result.exit_code == 0, result.output
    assert ImageExporter.read_metadata(output).resolution == (16, 16)


@pytest.fixture
def batch_file(tmp_path):
    path = tmp_path / 'batch.json'
    path.write_text(json.dumps({
        'render': {'width': 32, 'height': 32, 'points': 500, 'seed': 2},
        'batch_jobs': [
            {'name': 'tri', 'preset': 'sierpinski', 'render': {'fit': True}},
            {'name': 'fern', 'preset': 'barnsley_fern', 'colors': ['#ff0000']},
        ],
    }))
    return path


def test_batch_dry_run(runner, tmp_path, batch_file):
    out_dir = tmp_path / 'out'
    result = runner.invoke(main, ['batch', str(batch_file), '-o', str(out_dir), '--dry-run'])
    assert result.exit_code == 0, result.output
    assert 'Would render: tri' in result.output
    assert '2 jobs would be executed' in result.output
    assert not out_dir.exists()


def test_batch(runner, tmp_path, batch_file):
    out_dir = tmp_path / 'out'
    result = runner.invoke(main, ['batch', str(batch_file), '-o', str(out_dir)])
    assert result.exit_code == 0, result.output
    assert (out_dir / 'tri.png').exists()
    assert (out_dir / 'fern.png').exists()
    assert 'Jobs completed: 2/2' in result.output


def test_batch_without_jobs(runner, tmp_path):
    path = tmp_path / 'empty.json'
    path.write_text(json.dumps({'render': {}}))
    result = runner.invoke(main, ['batch', str(path)])
    assert result.exit_code == 1
    assert 'batch_jobs' in result.output


def test_batch_fits_preset_jobs_like_render(runner, tmp_path):
    options = {'width': 64, 'height': 64, 'points': 5000, 'seed': 2}
    path = tmp_path / 'batch.yaml'
    path.write_text(yaml.safe_dump({
        'render': options,
        'batch_jobs': [{'name': 'fern', 'preset': 'barnsley_fern'}],
    }))
    result = runner.invoke(main, ['batch', str(path), '-o', str(tmp_path / 'out')])
    assert result.exit_code == 0, result.output
    batch_metadata = ImageExporter.read_metadata(tmp_path / 'out' / 'fern.png')

    rendered = tmp_path / 'fern.png'
    result = runner.invoke(main, ['render', 'barnsley_fern', str(rendered),
                                  '-w', '64', '-h', '64', '-n', '5000', '--seed', '2'])
    assert result.exit_code == 0, result.output
    render_metadata = ImageExporter.read_metadata(rendered)

    assert batch_metadata.points_plotted == 5000
    assert batch_metadata.points_plotted == render_metadata.points_plotted
    assert batch_metadata.scale == render_metadata.scale
    assert batch_metadata.offset == render_metadata.offset


def test_batch_job_can_turn_off_fitting(runner, tmp_path):
    path = tmp_path / 'batch.yaml'
    path.write_text(yaml.safe_dump({
        'render': {'width': 32, 'height': 32, 'points': 500},
        'batch_jobs': [{'name': 'fixed', 'preset': 'sierpinski', 'render': {'fit': False}}],
    }))
    result = runner.invoke(main, ['batch', str(path), '-o', str(tmp_path / 'out')])
    assert result.exit_code == 0, result.output
    metadata = ImageExporter.read_metadata(tmp_path / 'out' / 'fixed.png')
    assert metadata.scale == 1.0
    assert metadata.offset == (16.0, 16.0)


@pytest.mark.parametrize("config", [
    {'render': {'fit': False}},
    {'presets': {'fixed': {'fit': False}}},
])
def test_render_preset_respects_fit_from_config(runner, tmp_path, config):
    path = tmp_path / 'config.yaml'
    path.write_text(yaml.safe_dump(config))
    args = ['--config', str(path)]
    if 'presets' in config:
        args += ['--preset', 'fixed']
    output = tmp_path / 'fern.png'
    result = runner.invoke(main, args + ['render', 'barnsley_fern', str(output)] + SMALL)
    assert result.exit_code == 0, result.output
    metadata = ImageExporter.read_metadata(output)
    assert metadata.scale == 1.0
    assert metadata.offset == (16.0, 16.0)


def test_render_preset_is_fitted_by_default(runner, tmp_path):
    output = tmp_path / 'fern.png'
    result = runner.invoke(main, ['render', 'barnsley_fern', str(output)] + SMALL)
    assert result.exit_code == 0, result.output
    metadata = ImageExporter.read_metadata(output)
    assert metadata.scale != 1.0
    assert metadata.points_plotted == metadata.points


def test_init_config_defaults_to_yaml(runner, tmp_path):
    result = runner.invoke(main, ['init-config', '-o', str(tmp_path / 'settings'), '--with-examples'])
    assert result.exit_code == 0, result.output
    assert 'Format: YAML' in result.output

    path = tmp_path / 'settings.yaml'
    data = yaml.safe_load(path.read_text())
    assert data['render']['width'] == 1000
    assert len(data['batch_jobs']) == 2

    result = runner.invoke(main, ['validate-config', str(path)])
    assert result.exit_code == 0, result.output
    assert 'valid' in result.output


def test_init_config_explicit_json_format(runner, tmp_path):
    path = tmp_path / 'settings.cfg'
    result = runner.invoke(main, ['init-config', '-o', str(path), '--format', 'json'])
    assert result.exit_code == 0, result.output
    assert 'Format: JSON' in result.output
    assert 'render' in json.loads(path.read_text())
