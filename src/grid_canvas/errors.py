"""Exception hierarchy for the grid canvas.

Construction and flush failures are fatal to the call. Draw primitives never
raise: bad colors and off-grid coordinates are absorbed by the raster buffer.
"""

from src.utils.color import InvalidColorError  # noqa: F401  (re-export)


class GridCanvasError(Exception):
    """Base class for all grid canvas errors."""

    pass


class InvalidDimensionError(GridCanvasError, ValueError):
    """Raised when grid_dimension or cell_px is not a positive integer."""

    pass


class SurfaceNotFoundError(GridCanvasError, LookupError):
    """Raised when a flush targets an unknown or undrawable display surface."""

    def __init__(self, surface_id: str, reason: str = "no surface registered"):
        self.surface_id = surface_id
        self.reason = reason
        super().__init__(f"Display surface '{surface_id}' not available: {reason}")
