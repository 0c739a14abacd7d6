"""Double-buffered grid canvas for cellular automata and agent-based models.

All drawing goes to an off-screen RGBA buffer; update() then copies the whole
buffer onto a visible surface in a single blit, so a viewer never sees a
half-drawn frame.

Architecture:
    - Buffer: RasterBuffer of (grid_dimension * cell_px)² pixels, fixed for life
    - Draw primitives take grid coordinates; geometry maps them to pixels
    - update(surface_id) resolves the target through a SurfaceRegistry,
      blits (stretching if the sizes differ) and calls the surface's present()

Invariants:
    - Cell (x, y) covers pixels [x*c, x*c + c) × [y*c, y*c + c), c = cell_px
    - Cell center is (x*c + c//2, y*c + c//2)
    - Agent marker radius is c//2 - 1 (clamped at 0), outline solid black
    - Links are solid black, 1 px, center to center
    - The buffer is never cleared implicitly; clear() is the caller's call

Frame protocol:
    canvas = GridCanvas(100, cell_px=8)
    register_surface("view", ImageSurface(800, 800))
    for step in simulation:
        for (x, y), state in step.cells():
            canvas.draw_cell(x, y, palette[state], state.has_agent, agent_color)
        for a, b in step.links():
            canvas.draw_line(*a, *b)
        canvas.update("view")

Not thread-safe: callers serialize access to an instance.
"""

import logging
from numbers import Integral
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np

from src.utils import fs, geometry
from src.utils.color import BLACK, ColorSpec

from .errors import InvalidDimensionError
from .raster import RasterBuffer
from .surfaces import SurfaceRegistry, default_registry

logger = logging.getLogger(__name__)

DEFAULT_CELL_PX = 20


def _check_dimension(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise InvalidDimensionError(
            f"{name} must be a positive integer, got {value!r} ({type(value).__name__})"
        )
    if value <= 0:
        raise InvalidDimensionError(f"{name} must be a positive integer, got {value}")
    return int(value)


class GridCanvas:
    """Off-screen buffer with grid-coordinate draw primitives and a flush.

    Attributes
    ----------
    grid_dimension : int
        Cells per side (the grid is square)
    cell_px : int
        Edge length of one cell in pixels
    buffer : RasterBuffer
        Off-screen drawing target, owned exclusively by this instance
    registry : SurfaceRegistry
        Where update() looks display surfaces up
    """

    def __init__(
        self,
        grid_dimension: int,
        cell_px: int = DEFAULT_CELL_PX,
        *,
        antialias: bool = False,
        scale_interpolation: str = "nearest",
        registry: Optional[SurfaceRegistry] = None
    ):
        """Allocate the off-screen buffer.

        Parameters
        ----------
        grid_dimension : int
            Number of cells along one axis, > 0
        cell_px : int
            Pixels per cell edge, > 0, default 20
        antialias : bool
            Antialiased marker and link edges, default False (pixel-exact)
        scale_interpolation : str
            "nearest" (default) or "linear", used when the display size differs
        registry : SurfaceRegistry, optional
            Surface lookup for update(); defaults to the process-wide registry

        Raises
        ------
        InvalidDimensionError
            If grid_dimension or cell_px is not a positive integer
        """
        self._grid_dimension = _check_dimension("grid_dimension", grid_dimension)
        self._cell_px = _check_dimension("cell_px", cell_px)
        self.registry = registry if registry is not None else default_registry

        side = self._grid_dimension * self._cell_px
        self.buffer = RasterBuffer(
            side, side,
            antialias=antialias,
            scale_interpolation=scale_interpolation
        )

        logger.info(
            f"GridCanvas initialized: grid={self._grid_dimension}×{self._grid_dimension}, "
            f"cell={self._cell_px}px, buffer={side}×{side}px"
        )

    @classmethod
    def from_config(
        cls,
        cfg: Union[Dict[str, Any], Any],
        registry: Optional[SurfaceRegistry] = None
    ) -> "GridCanvas":
        """Build a canvas from a CanvasConfigV1 (or an equivalent dict).

        The configured background, if any, is painted into the buffer.
        """
        from src.utils.validators import CanvasConfigV1

        if isinstance(cfg, dict):
            cfg = CanvasConfigV1(**cfg)
        canvas = cls(
            cfg.grid_dimension,
            cfg.cell_px,
            antialias=cfg.antialias,
            scale_interpolation=cfg.scale_interpolation,
            registry=registry
        )
        if cfg.background is not None:
            canvas.clear(cfg.background)
        return canvas

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def grid_dimension(self) -> int:
        return self._grid_dimension

    @property
    def cell_px(self) -> int:
        return self._cell_px

    @property
    def size_px(self) -> Tuple[int, int]:
        """Buffer size (width, height) in pixels."""
        return self.buffer.width, self.buffer.height

    def cell_center(self, x: int, y: int) -> Tuple[int, int]:
        """Pixel center of cell (x, y), as used by markers and links."""
        return geometry.cell_center_px(x, y, self._cell_px)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def draw_cell(
        self,
        x: int,
        y: int,
        cell_color: ColorSpec,
        with_marker: bool = False,
        marker_color: ColorSpec = "#000000"
    ) -> int:
        """Fill one cell and optionally overlay an agent marker.

        Parameters
        ----------
        x, y : int
            Grid coordinates; not bounds-checked (off-grid cells are clipped)
        cell_color : str or tuple
            Cell background color
        with_marker : bool
            Draw an agent marker on top of the cell, default False. Only
            True (Python or numpy bool) counts; other truthy values are ignored
        marker_color : str or tuple
            Marker fill color, default black

        Returns
        -------
        int
            cell_px (convenience value, not a status)

        Notes
        -----
        The cell square is drawn unconditionally and overwrites earlier
        content for opaque colors. The marker is a filled circle of radius
        cell_px//2 - 1 at the cell center, outlined in black, and clipped to
        the cell so antialiased edges never reach a neighbour.
        Invalid colors do not raise; the buffer keeps its previous style.
        """
        c = self._cell_px
        px, py = geometry.cell_origin_px(x, y, c)
        self.buffer.fill_rect(px, py, c, c, cell_color)

        # Only a real boolean True asks for a marker; 1 or "yes" do not
        if isinstance(with_marker, (bool, np.bool_)) and with_marker:
            cx, cy = geometry.cell_center_px(x, y, c)
            r = geometry.marker_radius_px(c)
            cell = (px, py, c, c)
            self.buffer.fill_circle(cx, cy, r, marker_color, clip=cell)
            self.buffer.stroke_circle(cx, cy, r, BLACK, clip=cell)

        return c

    def draw_line(self, x1: int, y1: int, x2: int, y2: int) -> None:
        """Stroke a black segment between the centers of cells (x1, y1) and (x2, y2).

        Coordinates are not bounds-checked; off-buffer parts are clipped.
        """
        c = self._cell_px
        ax, ay = geometry.cell_center_px(x1, y1, c)
        bx, by = geometry.cell_center_px(x2, y2, c)
        self.buffer.stroke_line(ax, ay, bx, by, BLACK)

    def clear(self, color: Optional[ColorSpec] = None) -> None:
        """Erase the whole buffer to transparent, or fill it with color.

        The canvas never clears on its own; call this before a frame if
        stale cells must not show through.
        """
        self.buffer.clear(color)

    # ------------------------------------------------------------------
    # Flush
    # ------------------------------------------------------------------

    def update(self, surface_id: str) -> int:
        """Copy the entire buffer onto a visible surface in one blit.

        Parameters
        ----------
        surface_id : str
            Identifier registered in this canvas' SurfaceRegistry

        Returns
        -------
        int
            The surface's pixel width (convenience value, not a status)

        Raises
        ------
        SurfaceNotFoundError
            If the id is unknown or the surface is not drawable; nothing is copied

        Notes
        -----
        Source region is the full buffer, destination the full surface. When
        the sizes differ the buffer is stretched to fit (no crop, no letterbox).
        Cost is proportional to the surface area regardless of what changed.
        """
        surface = self.registry.get(surface_id)
        self.buffer.blit(surface.pixels)
        surface.present()
        logger.debug(
            f"Flushed {self.buffer.width}×{self.buffer.height} buffer to "
            f"'{surface_id}' ({surface.width}×{surface.height})"
        )
        return surface.width

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def snapshot(self) -> np.ndarray:
        """Copy of the buffer pixels, (H, W, 4) uint8 RGBA."""
        return self.buffer.pixels.copy()

    def save(self, path: Union[str, Path]) -> Path:
        """Write the buffer to an image file atomically; returns the path."""
        path = Path(path)
        fs.atomic_save_image(self.buffer.pixels, path)
        logger.info(f"Saved buffer to {path}")
        return path

    def __repr__(self) -> str:
        return (
            f"GridCanvas(grid_dimension={self._grid_dimension}, "
            f"cell_px={self._cell_px})"
        )
