import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ring_masks import create_mask  # noqa: E402


def place_ring(edges: np.ndarray, radius: int, center) -> np.ndarray:
    """Stamp the exact ring template for ``radius`` centered at (x, y), in place."""
    cx, cy = center
    mask = create_mask(radius)
    side = mask.shape[0]
    top, left = cy - radius, cx - radius
    edges[top : top + side, left : left + side] |= mask
    return edges


@pytest.fixture
def ring_raster():
    """Factory for edge rasters holding exact ring templates."""

    def build(size, rings):
        width, height = size if isinstance(size, tuple) else (size, size)
        edges = np.zeros((height, width), dtype=np.uint8)
        for radius, center in rings:
            place_ring(edges, radius, center)
        return edges

    return build
