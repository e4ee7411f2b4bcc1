"""Data models for spot counting."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class MaskParam:
    """Ring template parameters for one radius."""
    radius: int
    ring_width: int  # half-width of the annulus band, in squared-distance units
    delta: int  # shrinks the ring's nominal radius to radius - delta
    sad_threshold: int  # a window matches when its SAD is strictly below this


@dataclass(frozen=True)
class Spot:
    """A registered ring match."""
    anchor: Tuple[int, int]  # (x, y) scan position whose claim cell was checked
    radius: int
    origin: Tuple[int, int]  # (x, y) top-left corner of the matched window
    size: int  # side length of the window, 2 * radius + 1
    sad: int

    @property
    def center(self) -> Tuple[int, int]:
        """Center pixel of the matched window."""
        half = self.size // 2
        return self.origin[0] + half, self.origin[1] + half

    @property
    def bounding_box(self) -> Tuple[int, int, int, int]:
        """(x, y, width, height) of the matched window."""
        return self.origin[0], self.origin[1], self.size, self.size


@dataclass
class SpotResult:
    """Outcome of one spot detection run."""
    count: int
    spot_map: np.ndarray  # edge windows drawn at match locations, 0 elsewhere
    claims: np.ndarray  # bool, True where a counted spot owns the pixel
    spots: List[Spot] = field(default_factory=list)
    lower_bound: int = 4
    upper_bound: int = 4


@dataclass
class PipelineResult:
    """Intermediate rasters of a pipeline run; stages not reached stay None."""
    greyscale: np.ndarray
    noise_reduced: Optional[np.ndarray] = None
    edges: Optional[np.ndarray] = None
    spots: Optional[SpotResult] = None

    @property
    def spot_count(self) -> Optional[int]:
        return self.spots.count if self.spots is not None else None
