"""Error types raised by the spot counting pipeline."""


class RadiusOutOfRange(ValueError):
    """Raised when a ring radius falls outside the supported [4, 11] range."""

    def __init__(self, radius: int, low: int = 4, high: int = 11):
        self.radius = radius
        self.low = low
        self.high = high
        super().__init__(f"Radius {radius} out of range; expected {low} <= radius <= {high}")


class ShapeMismatch(ValueError):
    """Raised when a raster does not have the shape a stage expects."""
