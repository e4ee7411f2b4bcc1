"""Majority-vote noise reduction over the von Neumann stencil."""

import logging
from typing import Dict, Sequence

import numpy as np

from raster import NEIGHBOUR_OFFSETS, as_raster, freeze, raster_size

logger = logging.getLogger(__name__)


def majority_vote(samples: Sequence[int]) -> int:
    """Return the new intensity for one pixel from its stencil samples.

    ``samples[0]`` is the center pixel. Frequencies are tabulated in the order
    values are first seen. The winner changes when a value's frequency beats
    the current maximum, or ties it and equals the center value. A tie between
    values other than the center keeps whichever was seen first.

    Args:
        samples: Intensities in stencil order (center, left, right, up, down)

    Returns:
        The winning intensity
    """
    frequencies: Dict[int, int] = {}
    for value in samples:
        frequencies[value] = frequencies.get(value, 0) + 1

    center = samples[0]
    max_frequency = 0
    winner = -1
    for value, frequency in frequencies.items():
        if frequency > max_frequency:
            max_frequency = frequency
            winner = value
        elif frequency == max_frequency and value == center:
            winner = value
    return winner


def reduce_noise(grey: np.ndarray) -> np.ndarray:
    """Smooth a greyscale raster with the majority-vote rule.

    Border pixels are copied unchanged. Every interior pixel takes the value
    :func:`majority_vote` would pick for its five stencil samples; the rule is
    applied to the whole interior at once. The center comes first in the
    stencil and first-seen order follows sample order, so the winner is the
    first sample whose count reaches the maximum.

    Args:
        grey: Greyscale raster (uint8, shape (height, width))

    Returns:
        New read-only raster with the same shape
    """
    grey = as_raster(grey)
    width, height = raster_size(grey)
    reduced = grey.copy()
    if height < 3 or width < 3:
        logger.debug("Raster %dx%d has no interior; copying unchanged", width, height)
        return freeze(reduced)

    samples = np.stack(
        [
            grey[1 + dy : height - 1 + dy, 1 + dx : width - 1 + dx]
            for dx, dy in NEIGHBOUR_OFFSETS
        ]
    )
    counts = (samples[:, None, :, :] == samples[None, :, :, :]).sum(axis=1)
    best = counts.max(axis=0)
    winner = np.argmax(counts == best, axis=0)
    reduced[1:-1, 1:-1] = np.take_along_axis(samples, winner[None, :, :], axis=0)[0]

    changed = int(np.count_nonzero(reduced != grey))
    logger.debug("Noise reduction on %dx%d raster changed %d pixel(s)", width, height, changed)
    return freeze(reduced)
