"""Image annotation functions for spot counting."""

from typing import Sequence

import numpy as np
from PIL import Image, ImageDraw

from models import Spot, SpotResult


def annotate_image(
    img: Image.Image,
    spots: Sequence[Spot],
    show_windows: bool = False,
) -> Image.Image:
    """Annotate image with spot detections.

    Args:
        img: PIL Image to annotate
        spots: Detected spots
        show_windows: Whether to also outline each matched window

    Returns:
        Annotated PIL Image
    """
    annotated = img.copy().convert("RGB")
    draw = ImageDraw.Draw(annotated)

    for spot in spots:
        x, y, w, h = spot.bounding_box
        if show_windows:
            draw.rectangle([x, y, x + w - 1, y + h - 1], outline="yellow", width=1)
        # Circle through the ring the template was matched against.
        draw.ellipse([x, y, x + w - 1, y + h - 1], outline="red", width=2)
        cx, cy = spot.center
        draw.point((cx, cy), fill="red")

    return annotated


def render_claims(result: SpotResult) -> np.ndarray:
    """Render the claim grid as a raster: 255 where a spot owns the pixel, 0 elsewhere."""
    return np.where(result.claims, 255, 0).astype(np.uint8)
