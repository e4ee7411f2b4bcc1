"""Image I/O utilities for spot counting."""

import logging
import os
from pathlib import Path
from typing import Iterable

import numpy as np
from PIL import Image

from config import SUPPORTED_EXTS

# Try importing OpenCV for faster image loading (optional)
try:
    import cv2
    OPENCV_AVAILABLE = True
except ImportError:
    OPENCV_AVAILABLE = False
    cv2 = None

# Global flag to enable/disable OpenCV optimization
USE_OPENCV = OPENCV_AVAILABLE  # Can be toggled for testing

# Luma weights applied to red, green and blue
RED_WEIGHT = 0.299
GREEN_WEIGHT = 0.587
BLUE_WEIGHT = 0.114

logger = logging.getLogger(__name__)


def iter_images(images_dir: Path) -> Iterable[Path]:
    """Yield supported image files in a directory, sorted by name."""
    images_dir = Path(images_dir)
    try:
        with os.scandir(images_dir) as entries:
            paths = []
            for entry in entries:
                if entry.is_file():
                    path = Path(entry.path)
                    if path.suffix.lower() in SUPPORTED_EXTS:
                        paths.append(path)
    except (OSError, PermissionError):
        # Fallback to glob if scandir fails
        paths = [
            p for p in images_dir.glob("*") if p.suffix.lower() in SUPPORTED_EXTS and p.is_file()
        ]
    for path in sorted(paths):
        yield path


def ensure_output(output_dir: Path) -> None:
    """Ensure output directory exists."""
    output_dir.mkdir(parents=True, exist_ok=True)


def load_image(path: Path) -> np.ndarray:
    """Load an image as an RGB uint8 array of shape (height, width, 3).

    Uses OpenCV if available, otherwise falls back to PIL.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file cannot be decoded as an image
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Image not found: {path}")

    if USE_OPENCV:
        bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if bgr is None:
            raise ValueError(f"Failed to load image: {path}")
        return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)

    try:
        with Image.open(path) as img:
            return np.array(img.convert("RGB"))
    except (OSError, Image.UnidentifiedImageError) as exc:
        raise ValueError(f"Failed to load image: {path}") from exc


def to_greyscale(image: np.ndarray) -> np.ndarray:
    """Convert an RGB(A) image to a single-channel greyscale raster.

    Each pixel becomes the truncated weighted sum
    ``0.299 * R + 0.587 * G + 0.114 * B``. Alpha is ignored and a 2-D input is
    assumed to be greyscale already and copied.
    """
    arr = np.asarray(image)
    if arr.ndim == 2:
        return arr.astype(np.uint8, copy=True)
    if arr.ndim != 3 or arr.shape[2] < 3:
        raise ValueError(f"Expected an RGB image of shape (H, W, 3), got {arr.shape}")

    rgb = arr[:, :, :3].astype(np.float64)
    weighted = (
        rgb[:, :, 0] * RED_WEIGHT + rgb[:, :, 1] * GREEN_WEIGHT + rgb[:, :, 2] * BLUE_WEIGHT
    )
    return np.clip(np.floor(weighted), 0, 255).astype(np.uint8)


def output_path(source_path: Path, output_dir: Path, suffix: str, ext: str = ".png") -> Path:
    """Build ``<output_dir>/<source stem><suffix><ext>``."""
    return Path(output_dir) / f"{Path(source_path).stem}{suffix}{ext}"


def save_image(raster: np.ndarray, source_path: Path, output_dir: Path, suffix: str) -> Path:
    """Save a greyscale raster as PNG next to its siblings from the same source.

    Args:
        raster: uint8 raster to write
        source_path: Path of the original input image (its stem names the output)
        output_dir: Directory to write into (created if missing)
        suffix: Stage suffix appended to the stem, e.g. ``_ED``

    Returns:
        Path of the written file
    """
    ensure_output(Path(output_dir))
    out_path = output_path(source_path, output_dir, suffix)
    Image.fromarray(np.array(raster, dtype=np.uint8)).save(out_path, format="PNG")
    logger.debug("Saved %s", out_path)
    return out_path


def write_spot_count(source_path: Path, output_dir: Path, count: int) -> Path:
    """Write the spot count to ``<output_dir>/<source stem>.out``."""
    ensure_output(Path(output_dir))
    out_path = output_path(source_path, output_dir, "", ext=".out")
    out_path.write_text(f"{count}", encoding="utf-8")
    return out_path
