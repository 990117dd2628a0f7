"""
Main API classes for attractor rendering.

This module ties the chaos-game engine to rasterization and image export:
sample points from an IfsEngine, map them to pixels and save the result.
"""

import logging
import time
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from .core.engine import IfsEngine, Row
from .core.selection import NumpyRandomSource
from .rendering.coloring import palette_colors, parse_color
from .rendering.image_output import ImageExporter, RenderMetadata
from .rendering.raster import PointRasterizer, Viewport

logger = logging.getLogger(__name__)


@dataclass
class RenderConfig:
    """Configuration for attractor rendering."""

    # Image parameters
    width: int = 1000
    height: int = 1000

    # Sampling
    points: int = 1_000_000
    burn_in: int = 20
    seed: Optional[int] = None

    # Viewport
    scale: float = 1.0
    offset: Optional[Tuple[float, float]] = None
    # None follows the system: presets are fitted, files use the fixed viewport
    fit: Optional[bool] = None
    margin: float = 0.05
    flip_y: Optional[bool] = None

    # Coloring: a single color for every map, or a colormap sampled per map
    color: Optional[str] = None
    palette: Optional[str] = None
    background: str = "#000000"

    # Output
    jpeg_quality: int = 95
    save_metadata: bool = True

    def validate(self):
        """Validate configuration parameters."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Width and height must be positive")

        if self.points < 0:
            raise ValueError("points must be non-negative")

        if self.burn_in < 0:
            raise ValueError("burn_in must be non-negative")

        if self.scale <= 0:
            raise ValueError("scale must be positive")

        if self.offset is not None and len(self.offset) != 2:
            raise ValueError("offset must be (x, y)")

        if not 0 <= self.margin < 0.5:
            raise ValueError("margin must be in [0, 0.5)")

        if self.color and self.palette:
            raise ValueError("color and palette are mutually exclusive")

        if not 1 <= self.jpeg_quality <= 100:
            raise ValueError("jpeg_quality must be between 1 and 100")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if data['offset'] is not None:
            data['offset'] = list(data['offset'])
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderConfig':
        """Create a config from a dictionary, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown render options: {', '.join(sorted(unknown))}")
        data = dict(data)
        if data.get('offset') is not None:
            data['offset'] = tuple(data['offset'])
        return cls(**data)


class IfsRenderer:
    """Renders iterated function systems to images."""

    def __init__(self, config: Optional[RenderConfig] = None):
        """
        Initialize renderer.

        Args:
            config: Rendering configuration (uses defaults if None)
        """
        self.config = config or RenderConfig()
        self.config.validate()
        self.last_metadata: Optional[RenderMetadata] = None

        logger.info(f"IfsRenderer initialized: {self.config.width}x{self.config.height}, "
                    f"{self.config.points} points")

    def resolve_colors(self, count: int, colors: Optional[Sequence[Union[int, str]]] = None) -> List[int]:
        """Per-map colors from explicit colors, the config color or the config palette."""
        if colors:
            return [parse_color(c) for c in colors]
        if self.config.color:
            return [parse_color(self.config.color)] * count
        if self.config.palette:
            return palette_colors(self.config.palette, count)
        return []

    def create_engine(self, system: Sequence[Row],
                      colors: Optional[Sequence[Union[int, str]]] = None) -> IfsEngine:
        """Build an engine for ``system`` wired to this renderer's seed."""
        seed = self.config.seed
        resolved = self.resolve_colors(len(system), colors)
        return IfsEngine(system, colors=resolved,
                         random_source=NumpyRandomSource(seed),
                         color_seed=seed)

    def create_viewport(self, points: np.ndarray) -> Viewport:
        flip_y = bool(self.config.flip_y)
        if self.config.fit:
            return Viewport.fit(points, self.config.width, self.config.height,
                                margin=self.config.margin, flip_y=flip_y)
        return Viewport(self.config.width, self.config.height, scale=self.config.scale,
                        offset=self.config.offset, flip_y=flip_y)

    def render(self, system: Sequence[Row], output_path: Optional[Union[str, Path]] = None,
               colors: Optional[Sequence[Union[int, str]]] = None,
               source: str = "") -> np.ndarray:
        """
        Render a system to an RGB image.

        Args:
            system: Rows ``a b c d e f [weight]`` or AffineMap instances
            output_path: Optional output file path
            colors: Optional per-map colors (packed ints or color strings)
            source: Description of where the system came from, for metadata

        Returns:
            RGB image array (height, width, 3), uint8
        """
        start_time = time.time()
        engine = self.create_engine(system, colors)

        logger.info(f"Starting render: {len(engine)} maps, "
                    f"{'weighted' if engine.weighted else 'uniform'} selection")

        points, point_colors = engine.sample(self.config.points, burn_in=self.config.burn_in)

        viewport = self.create_viewport(points)
        rasterizer = PointRasterizer(viewport, background=parse_color(self.config.background))
        plotted = rasterizer.plot(points, point_colors)

        if self.config.points and plotted == 0:
            logger.warning("No points landed inside the image; try --fit or a smaller scale")

        render_time = time.time() - start_time
        self.last_metadata = self._build_metadata(engine, viewport, render_time, plotted, source)
        if output_path is not None:
            metadata = self.last_metadata if self.config.save_metadata else None
            exporter = ImageExporter(jpeg_quality=self.config.jpeg_quality)
            exporter.save_image(rasterizer.image, Path(output_path), metadata)

        logger.info(f"Render complete: {render_time:.2f}s, {plotted} points plotted")
        return rasterizer.image

    def _build_metadata(self, engine: IfsEngine, viewport: Viewport, render_time: float,
                        plotted: int, source: str) -> RenderMetadata:
        return RenderMetadata(
            system=[list(m.to_row()) for m in engine.maps],
            weighted=engine.weighted,
            colors=list(engine.colors[:len(engine)]),
            resolution=(self.config.width, self.config.height),
            points=self.config.points,
            burn_in=self.config.burn_in,
            scale=float(viewport.scale),
            offset=(float(viewport.offset[0]), float(viewport.offset[1])),
            seed=self.config.seed,
            render_time_seconds=render_time,
            points_plotted=plotted,
            source=source,
        )

    def update_config(self, **kwargs):
        """Update configuration parameters."""
        for key, value in kwargs.items():
            if not hasattr(self.config, key):
                raise ValueError(f"Unknown configuration parameter: {key}")
            setattr(self.config, key, value)
        self.config.validate()
        logger.info(f"Configuration updated: {kwargs}")


@dataclass
class BatchJob:
    """One queued render of a batch."""
    name: str
    system: Sequence[Row]
    output_path: Path
    overrides: Dict[str, Any] = field(default_factory=dict)
    colors: Optional[Sequence[Union[int, str]]] = None
    status: str = 'pending'


class BatchRenderer:
    """Renders a queue of systems, each with its own config overrides."""

    def __init__(self, base_config: Optional[RenderConfig] = None):
        self.base_config = base_config or RenderConfig()
        self.jobs: List[BatchJob] = []
        self.results: List[Dict[str, Any]] = []

    def add_job(self, system: Sequence[Row], output_path: Union[str, Path],
                config_overrides: Optional[Dict[str, Any]] = None,
                job_name: Optional[str] = None,
                colors: Optional[Sequence[Union[int, str]]] = None) -> BatchJob:
        """
        Queue a system for rendering.

        Args:
            system: System rows to render
            output_path: Output file path
            config_overrides: RenderConfig fields overriding the base config
            job_name: Optional name for the job
            colors: Optional per-map colors
        """
        job = BatchJob(
            name=job_name or f"job_{len(self.jobs)}",
            system=system,
            output_path=Path(output_path),
            overrides=dict(config_overrides or {}),
            colors=colors,
        )
        self.jobs.append(job)
        return job

    def job_config(self, job: BatchJob) -> RenderConfig:
        return RenderConfig.from_dict({**self.base_config.to_dict(), **job.overrides})

    def _run_job(self, job: BatchJob) -> Dict[str, Any]:
        config = self.job_config(job)
        renderer = IfsRenderer(config)
        renderer.render(job.system, job.output_path, colors=job.colors, source=job.name)
        metadata = renderer.last_metadata
        return {
            'job_name': job.name,
            'status': 'completed',
            'render_time': metadata.render_time_seconds,
            'points_plotted': metadata.points_plotted,
            'output_path': str(job.output_path),
            'config': config.to_dict(),
        }

    def run_batch(self, progress_callback: Optional[Callable[[int, int, Dict[str, Any]], None]] = None
                  ) -> List[Dict[str, Any]]:
        """
        Render every queued job in order.

        A job that raises is recorded as failed and the batch carries on.

        Args:
            progress_callback: Optional callback ``(completed, total, result)``

        Returns:
            One result dictionary per job
        """
        self.results = []
        total = len(self.jobs)

        for done, job in enumerate(self.jobs, start=1):
            logger.info(f"Rendering job {done}/{total}: {job.name}")
            try:
                result = self._run_job(job)
            except Exception as e:
                logger.error(f"Job {job.name} failed: {e}")
                result = {'job_name': job.name, 'status': 'failed', 'error': str(e)}

            job.status = result['status']
            self.results.append(result)
            if progress_callback:
                progress_callback(done, total, result)

        return self.results

    def get_summary(self) -> Dict[str, Any]:
        if not self.results:
            return {'status': 'not_run'}

        completed = [r for r in self.results if r['status'] == 'completed']
        render_time = sum(r['render_time'] for r in completed)
        return {
            'total_jobs': len(self.results),
            'completed': len(completed),
            'failed': len(self.results) - len(completed),
            'success_rate': len(completed) / len(self.results),
            'total_render_time': render_time,
            'average_render_time': render_time / len(completed) if completed else 0.0,
            'points_plotted': sum(r['points_plotted'] for r in completed),
        }
