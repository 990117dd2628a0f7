"""
Command-line interface for IFS rendering.

Renders chaos-game attractors from system files or built-in presets, and
manages configuration files.
"""

import click
import sys
from pathlib import Path
from typing import List, Optional, Tuple
import logging
import time

from .. import __version__
from ..api import IfsRenderer, BatchRenderer
from ..core.engine import build_maps
from ..core.presets import SYSTEM_PRESETS, SystemPreset, get_preset
from ..io.config import CONFIG_FORMATS, ConfigManager, detect_config_format, load_config_from_args
from ..io.system_file import load_system
from ..rendering.coloring import list_palettes
from ..rendering.image_output import default_output_path

logger = logging.getLogger(__name__)

PRESET_PREFIX = 'preset:'


def resolve_system(spec: str) -> Tuple[List[List[float]], str, Optional[SystemPreset]]:
    """
    Resolve a SYSTEM argument to rows.

    ``preset:<name>`` always names a preset; otherwise an existing file wins
    and a bare preset name is the fallback.

    Returns:
        Tuple of (rows, source description, the preset or None for a file)
    """
    if spec.startswith(PRESET_PREFIX):
        preset = get_preset(spec[len(PRESET_PREFIX):])
        return preset.to_rows(), f"preset:{preset.name}", preset

    path = Path(spec)
    if path.exists():
        return load_system(path), str(path), None

    try:
        preset = get_preset(spec)
    except ValueError:
        raise FileNotFoundError(f"File '{spec}' could not be found and is not a preset name") from None
    return preset.to_rows(), f"preset:{preset.name}", preset


def _fail(ctx, error: Exception, prefix: str = "Error"):
    click.echo(f"{prefix}: {error}", err=True)
    if ctx.obj.get('verbose'):
        import traceback
        traceback.print_exc()
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--config', type=click.Path(exists=True), help='Configuration file path')
@click.option('--preset', help='Configuration preset to use')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, version, config, preset, verbose, quiet):
    """
    IFS Generator - chaos-game renderer for iterated function systems.

    Reads a system of affine maps (one "a b c d e f [weight]" row per line)
    and plots the attractor by repeatedly applying randomly chosen maps.
    """
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO,
                            format='%(levelname)s: %(message)s')

    if version:
        click.echo(f"IFS Generator v{__version__}")
        click.echo(f"Python: {sys.version}")
        if ctx.invoked_subcommand is None:
            sys.exit(0)

    ctx.ensure_object(dict)
    ctx.obj['config_file'] = config
    ctx.obj['preset'] = preset
    ctx.obj['verbose'] = verbose

    if ctx.invoked_subcommand is None and not version:
        click.echo(ctx.get_help())


@main.command()
@click.argument('system')
@click.argument('output', type=click.Path(), required=False)
@click.option('--width', '-w', type=int, help='Image width')
@click.option('--height', '-h', type=int, help='Image height')
@click.option('--points', '-n', type=int, help='Number of points to plot')
@click.option('--burn-in', type=int, help='Iterations discarded before plotting')
@click.option('--scale', type=float, help='Scale factor relative to the smaller image side')
@click.option('--offset', type=str, help='Pixel offset of the origin: "x,y"')
@click.option('--fit/--no-fit', default=None, help='Fit the attractor to the image')
@click.option('--flip-y/--no-flip-y', default=None, help='Draw with y increasing upwards')
@click.option('--seed', type=int, help='Random seed for reproducible renders')
@click.option('--color', help='Single color for every map (#RRGGBB or a color name)')
@click.option('--palette', help='Matplotlib colormap to color the maps')
@click.option('--background', help='Background color')
@click.pass_context
def render(ctx, system, output, **kwargs):
    """
    Render the attractor of a system.

    SYSTEM: System file, or a preset name (optionally written "preset:NAME")
    OUTPUT: Output image file path (default: output/<timestamp>.png)
    """
    try:
        render_config, _ = load_config_from_args(
            ctx.obj.get('config_file'),
            ctx.obj.get('preset')
        )

        rows, source, preset = resolve_system(system)

        overrides = {k: v for k, v in kwargs.items() if v is not None and k != 'offset'}

        if kwargs.get('offset'):
            try:
                offset = tuple(float(x.strip()) for x in kwargs['offset'].split(','))
                if len(offset) != 2:
                    raise ValueError
            except ValueError:
                click.echo("Error: Invalid offset format. Use 'x,y'", err=True)
                sys.exit(1)
            overrides['offset'] = offset

        if overrides.get('color'):
            render_config.palette = None
        elif overrides.get('palette'):
            render_config.color = None

        for key, value in overrides.items():
            setattr(render_config, key, value)

        if preset is not None:
            for key, value in preset.viewport_defaults(render_config.to_dict()).items():
                setattr(render_config, key, value)

        renderer = IfsRenderer(render_config)

        output_path = Path(output) if output else default_output_path()

        click.echo(f"Rendering {source} ({len(rows)} maps, {render_config.points:,} points)...")
        start_time = time.time()

        renderer.render(rows, output_path, source=source)

        render_time = time.time() - start_time
        click.echo(f"Render complete: {render_time:.2f}s")
        click.echo(f"Saved: {output_path}")

    except Exception as e:
        _fail(ctx, e)


@main.command()
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--output-dir', '-o', type=click.Path(), default='batch_output',
              help='Output directory for batch renders')
@click.option('--dry-run', is_flag=True, help='Show what would be rendered without actually rendering')
@click.pass_context
def batch(ctx, config_file, output_dir, dry_run):
    """
    Execute batch rendering jobs from a configuration file.

    CONFIG_FILE: YAML or JSON configuration with a 'batch_jobs' list
    """
    try:
        manager = ConfigManager()
        batch_config = manager.load_config(config_file)

        if 'batch_jobs' not in batch_config:
            click.echo("Error: No 'batch_jobs' section found in config file", err=True)
            sys.exit(1)

        output_path = Path(output_dir)
        base_config = manager.create_render_config(batch_config, ctx.obj.get('preset'))
        batch_renderer = BatchRenderer(base_config)

        for job_config in batch_config['batch_jobs']:
            if 'preset' in job_config:
                spec = PRESET_PREFIX + job_config['preset']
            else:
                spec = job_config['system']
            rows, _, preset = resolve_system(spec)

            overrides = dict(job_config.get('render', {}))
            if preset is not None:
                overrides.update(preset.viewport_defaults({**base_config.to_dict(), **overrides}))

            job_name = job_config.get('name', f"job_{len(batch_renderer.jobs)}")
            output_file = output_path / f"{job_name}.png"

            if dry_run:
                click.echo(f"Would render: {job_name} -> {output_file}")
                continue

            batch_renderer.add_job(rows, output_file, overrides, job_name,
                                   colors=job_config.get('colors'))

        if dry_run:
            click.echo(f"Dry run complete. {len(batch_config['batch_jobs'])} jobs would be executed.")
            return

        output_path.mkdir(parents=True, exist_ok=True)
        click.echo(f"Starting batch render: {len(batch_renderer.jobs)} jobs")

        def progress_callback(completed, total, result):
            click.echo(f"Completed {completed}/{total}: {result['job_name']} ({result['status']})")

        batch_renderer.run_batch(progress_callback)

        summary = batch_renderer.get_summary()
        click.echo(f"\nBatch complete:")
        click.echo(f"  Jobs completed: {summary['completed']}/{summary['total_jobs']}")
        click.echo(f"  Success rate: {summary['success_rate']*100:.1f}%")
        click.echo(f"  Total time: {summary['total_render_time']:.2f}s")

        if summary['failed']:
            sys.exit(1)

    except Exception as e:
        _fail(ctx, e)


@main.command()
@click.argument('system')
@click.pass_context
def validate(ctx, system):
    """
    Check that a system file is well formed.

    SYSTEM: System file or preset name
    """
    try:
        rows, source, _ = resolve_system(system)

        maps = build_maps(rows)

        click.echo(f"✓ {source}: {len(maps)} maps, "
                   f"{'weighted' if maps[0].weighted else 'uniform'} selection")

        for index, m in enumerate(maps):
            ratio = m.contraction_ratio()
            marker = '' if m.is_contraction() else '  (not a contraction)'
            line = f"  map {index}: ratio {ratio:.3f}"
            if m.weighted:
                line += f", weight {m.weight:g}"
            click.echo(line + marker)

    except Exception as e:
        _fail(ctx, e, "✗ Invalid system")


@main.command()
@click.option('--output', '-o', type=click.Path(), default='ifs_config.yaml',
              help='Output file path')
@click.option('--format', 'config_format', type=click.Choice(CONFIG_FORMATS),
              help='Output format (auto-detect if not specified)')
@click.option('--with-examples', is_flag=True, help='Include example batch jobs')
@click.pass_context
def init_config(ctx, output, config_format, with_examples):
    """
    Create a configuration template file.
    """
    try:
        output_path = Path(output)
        if not config_format:
            if not output_path.suffix:
                output_path = output_path.with_suffix('.yaml')
            config_format = detect_config_format(output_path)

        manager = ConfigManager()
        manager.export_config_template(output_path, with_examples, config_format)

        click.echo(f"Configuration template created: {output_path}")
        click.echo(f"Format: {config_format.upper()}")

    except Exception as e:
        _fail(ctx, e)


@main.command()
@click.argument('config_file', type=click.Path(exists=True))
@click.pass_context
def validate_config(ctx, config_file):
    """Validate a configuration file."""
    try:
        manager = ConfigManager()
        config_dict = manager.load_config(config_file)

        errors = manager.validate_config(config_dict)

        if not errors:
            click.echo(f"✓ Configuration file is valid: {config_file}")
        else:
            click.echo(f"✗ Configuration file has errors: {config_file}")
            for error in errors:
                click.echo(f"  Error: {error}")
            sys.exit(1)

    except Exception as e:
        _fail(ctx, e, "Error validating config")


@main.command()
@click.pass_context
def list_presets(ctx):
    """List built-in systems and configuration presets."""
    try:
        click.echo("Built-in systems:")
        for name, preset in SYSTEM_PRESETS.items():
            kind = 'weighted' if preset.weighted else 'uniform'
            click.echo(f"  {name} ({len(preset.rows)} maps, {kind})")
            if ctx.obj.get('verbose'):
                click.echo(f"    {preset.description}")

        manager = ConfigManager()
        config_dict = manager.load_config(ctx.obj.get('config_file'))
        click.echo("\nConfiguration presets:")
        for name in manager.list_presets(config_dict):
            description = config_dict['presets'][name].get('_description', '')
            click.echo(f"  {name}" + (f": {description}" if description else ''))

    except Exception as e:
        _fail(ctx, e)


@main.command(name='list-palettes')
@click.pass_context
def list_palettes_command(ctx):
    """List available color palettes."""
    try:
        click.echo("Available color palettes:")
        for palette in list_palettes():
            click.echo(f"  {palette}")

    except Exception as e:
        _fail(ctx, e)


if __name__ == '__main__':
    main()
