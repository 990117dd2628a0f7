"""
Image export for rendered attractors.

Supports PNG, TIFF and JPEG output through Pillow, with the render
parameters embedded as metadata (PNG text chunks, TIFF description, or a
companion JSON file for JPEG).
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np
from PIL import Image, PngImagePlugin

logger = logging.getLogger(__name__)

SOFTWARE_VERSION = "1.0.0"


@dataclass
class RenderMetadata:
    """Metadata for attractor renders."""

    # System
    system: List[List[float]]
    weighted: bool
    colors: List[int]

    # Rendering parameters
    resolution: Tuple[int, int]  # width, height
    points: int
    burn_in: int
    scale: float
    offset: Tuple[float, float]
    seed: Optional[int] = None

    # Timing
    render_time_seconds: float = 0.0
    points_plotted: int = 0

    # Generation info
    source: str = ""
    timestamp: str = ""
    software_version: str = SOFTWARE_VERSION
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Set default timestamp if not provided."""
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        """Create metadata from dictionary."""
        data = dict(data)
        for key in ('resolution', 'offset'):
            if key in data and data[key] is not None:
                data[key] = tuple(data[key])
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        """Create metadata from JSON string."""
        return cls.from_dict(json.loads(json_str))


def default_output_path(directory: Union[str, Path] = "output", suffix: str = ".png") -> Path:
    """Timestamped output path inside ``directory``."""
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
    return Path(directory) / f"ifs-{stamp}{suffix}"


# File suffix -> Pillow format name
IMAGE_FORMATS = {
    '.png': 'PNG',
    '.tif': 'TIFF',
    '.tiff': 'TIFF',
    '.jpg': 'JPEG',
    '.jpeg': 'JPEG',
}


class ImageExporter:
    """Writes raster buffers to disk, embedding render metadata."""

    def __init__(self, jpeg_quality: int = 95):
        self.jpeg_quality = jpeg_quality

    def save_image(self, image_array: np.ndarray, filepath: Union[str, Path],
                   metadata: Optional[RenderMetadata] = None) -> Path:
        """
        Save an RGB image, choosing the format from the file suffix.

        Args:
            image_array: RGB image array (height, width, 3), uint8
            filepath: Output file path; parent directories are created
            metadata: Render metadata to embed

        Returns:
            The path written
        """
        filepath = Path(filepath)
        image_format = IMAGE_FORMATS.get(filepath.suffix.lower())
        if image_format is None:
            supported = ', '.join(IMAGE_FORMATS)
            raise ValueError(f"Unsupported format '{filepath.suffix}'. Supported: {supported}")

        image_array = np.asarray(image_array)
        if image_array.ndim != 3 or image_array.shape[2] != 3:
            raise ValueError(f"Expected RGB image array (H, W, 3), got {image_array.shape}")
        pil_image = Image.fromarray(np.ascontiguousarray(image_array, dtype=np.uint8))

        filepath.parent.mkdir(parents=True, exist_ok=True)
        if image_format == 'PNG':
            self._save_png(pil_image, filepath, metadata)
        elif image_format == 'TIFF':
            # ImageDescription tag
            description = metadata.to_json() if metadata else None
            pil_image.save(filepath, 'TIFF', compression='tiff_lzw',
                           **({'description': description} if description else {}))
        else:
            pil_image.save(filepath, 'JPEG', quality=self.jpeg_quality, optimize=True)
            if metadata:
                json_path = filepath.with_suffix('.json')
                json_path.write_text(metadata.to_json(), encoding="utf-8")
                logger.info(f"Saved metadata: {json_path}")

        logger.info(f"Saved image: {filepath} ({pil_image.size[0]}x{pil_image.size[1]})")
        return filepath

    @staticmethod
    def _save_png(pil_image: Image.Image, filepath: Path,
                  metadata: Optional[RenderMetadata]) -> None:
        pnginfo = PngImagePlugin.PngInfo()
        if metadata:
            pnginfo.add_text("Title", f"IFS attractor ({len(metadata.system)} maps)")
            pnginfo.add_text("Software", f"IFSGenerator v{metadata.software_version}")
            pnginfo.add_text("IFSMetadata", metadata.to_json())
        pil_image.save(filepath, "PNG", pnginfo=pnginfo)

    @staticmethod
    def read_metadata(filepath: Union[str, Path]) -> Optional[RenderMetadata]:
        """Read metadata back from a PNG written by this exporter."""
        with Image.open(filepath) as img:
            payload = img.info.get("IFSMetadata")
        if payload is None:
            return None
        return RenderMetadata.from_json(payload)
