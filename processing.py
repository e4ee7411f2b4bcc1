"""Core processing pipeline functions."""

import logging
from enum import Enum
from pathlib import Path

import numpy as np

from detection import detect_spots, validate_bounds
from edge_detection import detect_edges
from image_io import load_image, to_greyscale
from models import PipelineResult
from noise_reduction import reduce_noise
from raster import check_same_shape

logger = logging.getLogger(__name__)


class ImageStage(Enum):
    """Processing stages, in pipeline order, with their output file suffixes."""
    GREYSCALE = "_GS"
    NOISE_REDUCED = "_NR"
    EDGE_DETECTED = "_ED"
    SPOT_DETECTED = "_SD"

    @property
    def suffix(self) -> str:
        return self.value


def run_pipeline(
    image: np.ndarray,
    epsilon: int,
    lower_bound: int = 4,
    upper_bound: int = 4,
    stage: ImageStage = ImageStage.SPOT_DETECTED,
) -> PipelineResult:
    """Run an image through the pipeline up to and including ``stage``.

    Args:
        image: RGB image (H, W, 3) or greyscale raster (H, W)
        epsilon: Edge detection threshold (0-255)
        lower_bound: Smallest spot radius to scan
        upper_bound: Largest spot radius to scan
        stage: Last stage to run

    Returns:
        PipelineResult with every raster up to ``stage``; later ones are None

    Raises:
        RadiusOutOfRange: If a bound is outside [4, 11] and the spot stage was
            requested; raised before any pixel work
    """
    if stage is ImageStage.SPOT_DETECTED:
        validate_bounds(lower_bound, upper_bound)

    result = PipelineResult(greyscale=to_greyscale(image))
    if stage is ImageStage.GREYSCALE:
        return result

    result.noise_reduced = reduce_noise(result.greyscale)
    if stage is ImageStage.NOISE_REDUCED:
        return result

    result.edges = detect_edges(result.noise_reduced, epsilon)
    check_same_shape(result.greyscale, result.edges)
    if stage is ImageStage.EDGE_DETECTED:
        return result

    result.spots = detect_spots(result.edges, lower_bound, upper_bound)
    return result


def stage_raster(result: PipelineResult, stage: ImageStage) -> np.ndarray:
    """Pick the raster a stage produces from a pipeline result."""
    if stage is ImageStage.GREYSCALE:
        return result.greyscale
    if stage is ImageStage.NOISE_REDUCED:
        return result.noise_reduced
    if stage is ImageStage.EDGE_DETECTED:
        return result.edges
    return result.spots.spot_map


def process_image(
    path: Path,
    epsilon: int,
    lower_bound: int = 4,
    upper_bound: int = 4,
    stage: ImageStage = ImageStage.SPOT_DETECTED,
) -> PipelineResult:
    """Load an image file and run it through the pipeline up to ``stage``."""
    image = load_image(path)
    logger.debug("Loaded %s (%dx%d)", path, image.shape[1], image.shape[0])
    return run_pipeline(image, epsilon, lower_bound, upper_bound, stage)
