"""Ring-template spot detection over an edge map.

Each radius in the requested range gets its own pass over the edge map, in
ascending order. A pass slides the ring template across every anchor position
(x outer, y inner) and registers a spot where the sum of absolute differences
(SAD) between the template and the edge window falls below that radius's
threshold. A claim grid shared by all passes of one run stops any later,
overlapping window from being counted again, so scan order decides which
detection owns a contested region.
"""

import logging
from typing import List, Tuple

import numpy as np

from edge_detection import NO_EDGE
from models import Spot, SpotResult
from raster import as_raster, freeze
from ring_masks import MASK_ON, create_mask, mask_param

logger = logging.getLogger(__name__)


def validate_bounds(lower_bound: int, upper_bound: int) -> None:
    """Check a radius range before any scanning starts.

    Raises:
        RadiusOutOfRange: If either bound lies outside [4, 11]
        ValueError: If lower_bound exceeds upper_bound
    """
    mask_param(lower_bound)
    mask_param(upper_bound)
    if lower_bound > upper_bound:
        raise ValueError(
            f"lower_bound ({lower_bound}) must not exceed upper_bound ({upper_bound})"
        )


def _window_sums(values: np.ndarray, side: int) -> np.ndarray:
    """Sum of every side x side window, indexed by the window's top-left corner."""
    height, width = values.shape
    integral = np.zeros((height + 1, width + 1), dtype=np.int64)
    integral[1:, 1:] = values.cumsum(axis=0).cumsum(axis=1)
    return (
        integral[side:, side:]
        - integral[:-side, side:]
        - integral[side:, :-side]
        + integral[:-side, :-side]
    )


def window_tables(edges: np.ndarray, mask: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Precompute emptiness and SAD for every window the mask fits in.

    The mask only holds 0 or ``MASK_ON`` and the edge map stays within 0-255,
    so per cell ``|e - m|`` is ``e`` where the mask is off and ``255 - e``
    where it is on. Summed over a window that gives
    ``sum(e) + 255 * n_on - 2 * sum(e under on cells)``.

    Args:
        edges: Edge raster (uint8)
        mask: Ring template of side ``s``

    Returns:
        Tuple of (empty, sad), both shaped (height - s + 1, width - s + 1) and
        indexed by the window's top-left (row, col); ``empty`` is True where
        every cell of the window is ``NO_EDGE``
    """
    side = mask.shape[0]
    height, width = edges.shape
    values = edges.astype(np.int64)

    totals = _window_sums(values, side)
    nonzero = _window_sums((edges != NO_EDGE).astype(np.int64), side)

    rows, cols = height - side + 1, width - side + 1
    under_ring = np.zeros((rows, cols), dtype=np.int64)
    on_cells = np.argwhere(mask == MASK_ON)
    for i, j in on_cells:
        under_ring += values[i : i + rows, j : j + cols]

    sad = totals + MASK_ON * len(on_cells) - 2 * under_ring
    return nonzero == 0, sad


def _scan_radius(
    edges: np.ndarray,
    radius: int,
    claims: np.ndarray,
    spot_map: np.ndarray,
    spots: List[Spot],
) -> int:
    """Run one radius pass, updating claims, spot_map and spots in place.

    Returns:
        Number of spots registered in this pass
    """
    height, width = edges.shape
    side = 2 * radius + 1
    threshold = mask_param(radius).sad_threshold

    x_stop = width - radius - 1
    y_stop = height - radius - 1
    if x_stop <= radius + 1 or y_stop <= radius + 1:
        logger.debug("Radius %d: raster %dx%d too small to scan", radius, width, height)
        return 0

    empty, sad = window_tables(edges, create_mask(radius))
    # Plain lists index much faster than numpy scalars in the scan loop.
    empty_rows = empty.tolist()
    sad_rows = sad.tolist()

    found = 0
    evaluated = 0
    for x in range(radius + 1, x_stop):
        left = x - radius - 1
        y = radius + 1
        while y < y_stop:
            top = y - radius - 1
            if empty_rows[top][left]:
                # Nothing to match here: jump a full window down. The skipped
                # anchors are never tested.
                y += side
            else:
                evaluated += 1
                window_sad = sad_rows[top][left]
                if window_sad < threshold and not claims[y, x]:
                    found += 1
                    claims[top : top + side, left : left + side] = True
                    spot_map[top : top + side, left : left + side] = edges[
                        top : top + side, left : left + side
                    ]
                    spots.append(
                        Spot(
                            anchor=(x, y),
                            radius=radius,
                            origin=(left, top),
                            size=side,
                            sad=int(window_sad),
                        )
                    )
            y += 1

    logger.debug(
        "Radius %d: evaluated %d window(s), registered %d spot(s)", radius, evaluated, found
    )
    return found


def detect_spots(edges: np.ndarray, lower_bound: int, upper_bound: int) -> SpotResult:
    """Count non-overlapping ring matches for every radius in [lower_bound, upper_bound].

    Args:
        edges: Binary edge raster (``NO_EDGE`` / ``EDGE``)
        lower_bound: Smallest ring radius to scan, 4-11
        upper_bound: Largest ring radius to scan, 4-11

    Returns:
        SpotResult holding the count, the spot map (raw edge windows at each
        match, background elsewhere), the claim grid and the matched spots

    Raises:
        RadiusOutOfRange: If either bound lies outside [4, 11]
        ValueError: If lower_bound exceeds upper_bound
    """
    validate_bounds(lower_bound, upper_bound)

    edges = as_raster(edges)
    height, width = edges.shape
    claims = np.zeros((height, width), dtype=bool)
    spot_map = np.zeros((height, width), dtype=np.uint8)
    spots: List[Spot] = []

    count = 0
    for radius in range(lower_bound, upper_bound + 1):
        count += _scan_radius(edges, radius, claims, spot_map, spots)

    logger.debug(
        "Spot detection on %dx%d raster, radii %d-%d: %d spot(s)",
        width,
        height,
        lower_bound,
        upper_bound,
        count,
    )
    return SpotResult(
        count=count,
        spot_map=freeze(spot_map),
        claims=freeze(claims),
        spots=spots,
        lower_bound=lower_bound,
        upper_bound=upper_bound,
    )
