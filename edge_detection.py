"""Threshold-difference edge detection over the von Neumann stencil.

:func:`is_edge` states the rule for a single pixel and serves as the
reference for :func:`detect_edges`, which applies it to a whole raster with
shifted slices.
"""

import logging

import numpy as np

from raster import NEIGHBOUR_OFFSETS, as_raster, freeze, offset_slices, raster_size

logger = logging.getLogger(__name__)

NO_EDGE = 0
EDGE = 255


def is_edge(center: int, neighbours, epsilon: int) -> bool:
    """Edge rule for a single pixel.

    A pixel sits on an edge when it differs from any in-bounds neighbour by at
    least ``epsilon``. Equal intensities never make an edge.
    """
    for value in neighbours:
        diff = abs(int(center) - int(value))
        if diff > 0 and diff >= epsilon:
            return True
    return False


def detect_edges(grey: np.ndarray, epsilon: int) -> np.ndarray:
    """Build a binary edge map from a greyscale raster.

    Border and corner pixels compare against the neighbours that exist, so
    every pixel gets a value. Raising ``epsilon`` can only remove edges.
    The caller is responsible for keeping ``epsilon`` within [0, 255].
    Equal intensities never count, so an ``epsilon`` of 0 behaves like 1:
    pixels are not marked just for having a neighbour, and a flat region
    stays ``NO_EDGE``.

    Args:
        grey: Greyscale raster, typically already noise-reduced
        epsilon: Minimum intensity difference that counts as an edge

    Returns:
        New read-only raster holding ``EDGE`` or ``NO_EDGE`` per pixel
    """
    grey = as_raster(grey)
    width, height = raster_size(grey)
    values = grey.astype(np.int16)
    threshold = max(int(epsilon), 1)

    edge_mask = np.zeros((height, width), dtype=bool)
    for dx, dy in NEIGHBOUR_OFFSETS[1:]:
        center_idx, neighbour_idx = offset_slices(width, height, dx, dy)
        diff = np.abs(values[center_idx] - values[neighbour_idx])
        edge_mask[center_idx] |= diff >= threshold

    edges = np.where(edge_mask, EDGE, NO_EDGE).astype(np.uint8)
    logger.debug(
        "Edge detection on %dx%d raster (epsilon=%d): %d edge pixel(s)",
        width,
        height,
        epsilon,
        int(edge_mask.sum()),
    )
    return freeze(edges)
