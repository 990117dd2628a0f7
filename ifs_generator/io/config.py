"""
Configuration file handling.

Configuration files are YAML (or JSON) documents with up to three sections::

    render:
      width: 800
      height: 800
      points: 200000
    presets:
      preview:
        _description: Small, fast render
        points: 50000
    batch_jobs:
      - name: fern
        preset: barnsley_fern

Files ending in ``.json`` are read as JSON; anything else goes through
PyYAML, which also accepts plain JSON.

``render`` overrides the RenderConfig defaults, ``presets`` holds named
override sets selected with ``--preset``, and ``batch_jobs`` is read by the
``batch`` command.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from ..api import RenderConfig

logger = logging.getLogger(__name__)

KNOWN_SECTIONS = ('render', 'presets', 'batch_jobs')
CONFIG_FORMATS = ('yaml', 'json')

DEFAULT_PRESETS = {
    'preview': {
        '_description': 'Small, fast render for checking a system',
        'width': 400,
        'height': 400,
        'points': 50_000,
        'fit': True,
    },
    'general': {
        '_description': 'Balanced quality and speed',
        'width': 1000,
        'height': 1000,
        'points': 1_000_000,
        'fit': True,
    },
    'high_quality': {
        '_description': 'Large, dense render',
        'width': 3000,
        'height': 3000,
        'points': 20_000_000,
        'burn_in': 100,
        'fit': True,
    },
}


def detect_config_format(path: Union[str, Path]) -> str:
    """'json' for ``.json`` files, 'yaml' otherwise."""
    return 'json' if Path(path).suffix.lower() == '.json' else 'yaml'


class ConfigManager:
    """Loads, validates and writes configuration files."""

    def __init__(self):
        self.defaults = {
            'render': RenderConfig().to_dict(),
            'presets': copy.deepcopy(DEFAULT_PRESETS),
        }

    def load_config(self, path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """
        Load a configuration file merged over the defaults.

        Args:
            path: YAML or JSON configuration file; None returns the defaults

        Returns:
            Configuration dictionary
        """
        config = copy.deepcopy(self.defaults)
        if path is None:
            return config

        path = Path(path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                if detect_config_format(path) == 'json':
                    loaded = json.load(f)
                else:
                    loaded = yaml.safe_load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e

        # An empty YAML document
        if loaded is None:
            loaded = {}

        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration in {path} must be a mapping of sections")

        for section, value in loaded.items():
            if section == 'render' and isinstance(value, dict):
                config['render'].update(value)
            elif section == 'presets' and isinstance(value, dict):
                config['presets'].update(value)
            else:
                config[section] = value

        logger.info(f"Loaded configuration: {path}")
        return config

    def list_presets(self, config_dict: Dict[str, Any]) -> List[str]:
        return sorted(config_dict.get('presets', {}).keys())

    def create_render_config(self, config_dict: Dict[str, Any],
                             preset: Optional[str] = None) -> RenderConfig:
        """
        Build a RenderConfig from a configuration dictionary.

        Args:
            config_dict: Dictionary returned by ``load_config``
            preset: Optional preset whose values override the render section

        Returns:
            Validated RenderConfig
        """
        values = dict(config_dict.get('render', {}))

        if preset:
            presets = config_dict.get('presets', {})
            if preset not in presets:
                available = ', '.join(sorted(presets)) or 'none'
                raise ValueError(f"Unknown preset '{preset}'. Available: {available}")
            values.update({k: v for k, v in presets[preset].items() if not k.startswith('_')})

        render_config = RenderConfig.from_dict(values)
        render_config.validate()
        return render_config

    def validate_config(self, config_dict: Dict[str, Any]) -> List[str]:
        """
        Check a configuration dictionary.

        Returns:
            List of error messages; empty when the configuration is valid
        """
        errors = []

        for section in config_dict:
            if section not in KNOWN_SECTIONS:
                errors.append(f"Unknown section '{section}'")

        if not isinstance(config_dict.get('render', {}), dict):
            errors.append("'render' must be an object")
            return errors

        try:
            self.create_render_config(config_dict)
        except (TypeError, ValueError) as e:
            errors.append(f"render: {e}")

        presets = config_dict.get('presets', {})
        if not isinstance(presets, dict):
            errors.append("'presets' must be an object")
        else:
            for name in presets:
                if not isinstance(presets[name], dict):
                    errors.append(f"preset '{name}': must be an object")
                    continue
                try:
                    self.create_render_config(config_dict, name)
                except (TypeError, ValueError) as e:
                    errors.append(f"preset '{name}': {e}")

        jobs = config_dict.get('batch_jobs', [])
        if not isinstance(jobs, list):
            errors.append("'batch_jobs' must be a list")
        else:
            for i, job in enumerate(jobs):
                if not isinstance(job, dict):
                    errors.append(f"batch job {i}: must be an object")
                elif ('system' in job) == ('preset' in job):
                    errors.append(f"batch job {i}: needs exactly one of 'system' or 'preset'")

        return errors

    def export_config_template(self, path: Union[str, Path], with_examples: bool = False,
                               config_format: Optional[str] = None) -> Path:
        """
        Write a configuration template.

        Args:
            path: Output file
            with_examples: Include example batch jobs
            config_format: 'yaml' or 'json'; detected from the suffix if None
        """
        path = Path(path)
        config_format = config_format or detect_config_format(path)
        if config_format not in CONFIG_FORMATS:
            raise ValueError(f"Unknown config format '{config_format}'")
        template = copy.deepcopy(self.defaults)
        if with_examples:
            template['batch_jobs'] = [
                {'name': 'fern', 'preset': 'barnsley_fern', 'render': {'palette': 'viridis'}},
                {'name': 'custom', 'system': 'systems/sierpinski.ifs', 'colors': ['#ff8080']},
            ]

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            if config_format == 'yaml':
                yaml.safe_dump(template, f, default_flow_style=False, sort_keys=False)
            else:
                json.dump(template, f, indent=2)
                f.write('\n')

        logger.info(f"Wrote configuration template: {path}")
        return path


def load_config_from_args(config_file: Optional[str] = None,
                          preset: Optional[str] = None) -> Tuple[RenderConfig, Dict[str, Any]]:
    """
    Load configuration the way the CLI does.

    Returns:
        Tuple of (render config, full configuration dictionary)
    """
    manager = ConfigManager()
    config_dict = manager.load_config(config_file)
    return manager.create_render_config(config_dict, preset), config_dict
