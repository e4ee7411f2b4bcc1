"""Raster model and von Neumann stencil helpers.

A raster is a 2-D ``uint8`` numpy array of intensities in row-major order, so
pixel ``(x, y)`` lives at ``raster[y, x]``.

The stages work on whole rasters through :func:`offset_slices`.
:func:`stencil` and :func:`within_bounds` walk the same neighbourhood one
pixel at a time and are the reference the whole-raster passes are checked
against.
"""

from typing import Iterator, Tuple

import numpy as np

from errors import ShapeMismatch

# (dx, dy) offsets: center first, then left, right, up, down. No diagonals.
NEIGHBOUR_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (0, 0),
    (-1, 0),
    (1, 0),
    (0, -1),
    (0, 1),
)


def as_raster(data) -> np.ndarray:
    """Validate ``data`` as a greyscale raster and return it as ``uint8``.

    Args:
        data: Array-like of intensities, shape (height, width)

    Returns:
        The raster as a ``uint8`` numpy array (a view when no conversion is needed)

    Raises:
        ShapeMismatch: If the input is not 2-D or is empty
        ValueError: If any value lies outside 0-255
    """
    arr = np.asarray(data)
    if arr.ndim != 2:
        raise ShapeMismatch(f"Expected a 2-D greyscale raster, got shape {arr.shape}")
    if arr.size == 0:
        raise ShapeMismatch("Raster must have at least one pixel")
    if arr.dtype == np.uint8:
        return arr
    if arr.min() < 0 or arr.max() > 255:
        raise ValueError(
            f"Raster intensities must lie in [0, 255], got [{arr.min()}, {arr.max()}]"
        )
    return arr.astype(np.uint8)


def freeze(raster: np.ndarray) -> np.ndarray:
    """Mark a stage output read-only."""
    raster.flags.writeable = False
    return raster


def raster_size(raster: np.ndarray) -> Tuple[int, int]:
    """Return (width, height)."""
    height, width = raster.shape
    return width, height


def check_same_shape(expected: np.ndarray, actual: np.ndarray) -> None:
    """Raise ShapeMismatch if two rasters differ in width or height."""
    if expected.shape != actual.shape:
        raise ShapeMismatch(
            f"Raster shape {actual.shape} does not match expected shape {expected.shape}"
        )


def within_bounds(x: int, y: int, width: int, height: int) -> bool:
    return 0 <= x < width and 0 <= y < height


def offset_slices(
    width: int, height: int, dx: int, dy: int
) -> Tuple[Tuple[slice, slice], Tuple[slice, slice]]:
    """Slices pairing each pixel with its (dx, dy) neighbour where both exist.

    Returns:
        Tuple of (center_index, neighbour_index), each a (rows, cols) slice pair
        usable directly on a raster of the given size
    """

    def axis(size: int, delta: int) -> Tuple[slice, slice]:
        if delta >= 0:
            return slice(0, size - delta), slice(delta, size)
        return slice(-delta, size), slice(0, size + delta)

    center_cols, neighbour_cols = axis(width, dx)
    center_rows, neighbour_rows = axis(height, dy)
    return (center_rows, center_cols), (neighbour_rows, neighbour_cols)


def stencil(x: int, y: int, width: int, height: int) -> Iterator[Tuple[int, int]]:
    """Yield the in-bounds stencil coordinates of (x, y), center first.

    Interior pixels get all five entries; border pixels drop the offsets that
    fall outside the raster (corners keep the center plus two neighbours).
    """
    for dx, dy in NEIGHBOUR_OFFSETS:
        nx, ny = x + dx, y + dy
        if within_bounds(nx, ny, width, height):
            yield nx, ny
