"""Ring (annulus) templates used by the spot detector."""

from functools import lru_cache
from types import MappingProxyType
from typing import Mapping

import numpy as np

from errors import RadiusOutOfRange
from models import MaskParam

MIN_RADIUS = 4
MAX_RADIUS = 11

MASK_PARAMS: Mapping[int, MaskParam] = MappingProxyType(
    {
        p.radius: p
        for p in (
            MaskParam(4, 6, 0, 4800),
            MaskParam(5, 9, 1, 6625),
            MaskParam(6, 12, 1, 11000),
            MaskParam(7, 15, 1, 15000),
            MaskParam(8, 18, 1, 19000),
            MaskParam(9, 21, 1, 23000),
            MaskParam(10, 24, 2, 28000),
            MaskParam(11, 27, 2, 35000),
        )
    }
)

MASK_ON = 255
MASK_OFF = 0


def mask_param(radius: int) -> MaskParam:
    """Look up the template parameters for ``radius``.

    Raises:
        RadiusOutOfRange: If radius is not in [4, 11]
    """
    try:
        return MASK_PARAMS[radius]
    except KeyError:
        raise RadiusOutOfRange(radius, MIN_RADIUS, MAX_RADIUS) from None


def build_ring_mask(radius: int, ring_width: int, delta: int) -> np.ndarray:
    """Carve an annulus into a (2 * radius + 1) square grid.

    A cell is on when its squared distance from the center lies strictly
    within ``ring_width`` of ``(radius - delta) ** 2``.

    Args:
        radius: Half the side length of the grid
        ring_width: Band half-width in squared-distance units
        delta: Amount the ring is pulled in from the grid edge

    Returns:
        uint8 array of ``MASK_ON`` / ``MASK_OFF`` values
    """
    side = 2 * radius + 1
    offsets = np.arange(side) - radius
    dist_sq = offsets[:, None] ** 2 + offsets[None, :] ** 2
    ring_sq = (radius - delta) ** 2
    on = (dist_sq > ring_sq - ring_width) & (dist_sq < ring_sq + ring_width)
    return np.where(on, MASK_ON, MASK_OFF).astype(np.uint8)


@lru_cache(maxsize=None)
def create_mask(radius: int) -> np.ndarray:
    """Return the cached, read-only ring template for ``radius``."""
    p = mask_param(radius)
    mask = build_ring_mask(radius, p.ring_width, p.delta)
    mask.flags.writeable = False
    return mask


def format_mask(mask: np.ndarray) -> str:
    """Render a mask as text, ``*`` for on cells and ``-`` for off cells."""
    return "\n".join("".join("*" if v == MASK_ON else "-" for v in row) for row in mask)
