"""Visible display surfaces and the id → surface registry.

GridCanvas.update(surface_id) resolves its target here, the way a page
script looks a canvas element up by id. The canvas never creates, sizes or
destroys surfaces; the hosting application does.

Surfaces:
    - ImageSurface: in-memory pixels (headless hosts, tests, embedding in other UIs)
    - FileSurface: writes a PNG atomically after every flush
    - WindowSurface: OpenCV HighGUI window, refreshed after every flush

Lookup rules:
    - Unknown id → SurfaceNotFoundError
    - Known id whose surface is not drawable (closed, zero-sized) → SurfaceNotFoundError

Usage:
    from src.grid_canvas.surfaces import ImageSurface, register_surface
    register_surface("main", ImageSurface(400, 400))
    canvas.update("main")
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import cv2
import numpy as np

from src.utils import fs
from src.utils.color import ColorSpec, parse_color

from .errors import SurfaceNotFoundError

logger = logging.getLogger(__name__)


class DisplaySurface:
    """Base visible surface: an RGBA pixel array plus a present() hook.

    Attributes
    ----------
    pixels : np.ndarray
        (height, width, 4) uint8 RGBA, written by GridCanvas.update()
    closed : bool
        Set by close(); a closed surface is no longer drawable
    frames_presented : int
        Number of completed flushes
    """

    def __init__(self, width: int, height: int, background: Optional[ColorSpec] = None):
        self.background = background
        self.closed = False
        self.frames_presented = 0
        self.pixels = self._allocate(width, height)

    def _allocate(self, width: int, height: int) -> np.ndarray:
        pixels = np.zeros((max(0, int(height)), max(0, int(width)), 4), dtype=np.uint8)
        if self.background is not None:
            pixels[...] = np.asarray(parse_color(self.background), dtype=np.uint8)
        return pixels

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def drawable(self) -> bool:
        return not self.closed and self.pixels.size > 0

    def resize(self, width: int, height: int) -> None:
        """Change the surface's pixel size; content is reset to the background."""
        self.pixels = self._allocate(width, height)

    def present(self) -> None:
        """Show the freshly blitted pixels. Called once per flush."""
        self.frames_presented += 1

    def close(self) -> None:
        self.closed = True

    def to_array(self) -> np.ndarray:
        return self.pixels.copy()


class ImageSurface(DisplaySurface):
    """In-memory surface; present() only counts frames."""

    pass


class FileSurface(DisplaySurface):
    """Surface mirrored to a PNG file after every flush.

    The write is atomic, so a viewer polling the file never sees a torn frame.
    """

    def __init__(
        self,
        path: Union[str, Path],
        width: int,
        height: int,
        background: Optional[ColorSpec] = None
    ):
        super().__init__(width, height, background)
        self.path = Path(path)

    def present(self) -> None:
        fs.atomic_save_image(self.pixels, self.path)
        super().present()
        logger.debug(f"Wrote frame {self.frames_presented} to {self.path}")


class WindowSurface(DisplaySurface):
    """OpenCV HighGUI window.

    Becomes undrawable once close() is called or the user closes the window.
    """

    def __init__(
        self,
        title: str,
        width: int,
        height: int,
        background: Optional[ColorSpec] = None,
        wait_ms: int = 1
    ):
        super().__init__(width, height, background)
        self.title = title
        self.wait_ms = wait_ms
        self._shown = False

    @property
    def drawable(self) -> bool:
        if not super().drawable:
            return False
        if self._shown and cv2.getWindowProperty(self.title, cv2.WND_PROP_VISIBLE) < 1:
            # Window closed by the user
            self.closed = True
            return False
        return True

    def present(self) -> None:
        cv2.imshow(self.title, cv2.cvtColor(self.pixels, cv2.COLOR_RGBA2BGRA))
        cv2.waitKey(self.wait_ms)
        self._shown = True
        super().present()

    def close(self) -> None:
        if self._shown and not self.closed:
            cv2.destroyWindow(self.title)
        super().close()


class SurfaceRegistry:
    """Maps string identifiers to display surfaces."""

    def __init__(self):
        self._surfaces: Dict[str, DisplaySurface] = {}

    def register(
        self,
        surface_id: str,
        surface: DisplaySurface,
        replace: bool = False
    ) -> DisplaySurface:
        """Register surface under surface_id and return it.

        Raises
        ------
        ValueError
            If the id is taken and replace is False
        """
        if surface_id in self._surfaces and not replace:
            raise ValueError(f"Surface id '{surface_id}' already registered")
        self._surfaces[surface_id] = surface
        logger.debug(
            f"Registered surface '{surface_id}' ({type(surface).__name__}, "
            f"{surface.width}×{surface.height})"
        )
        return surface

    def unregister(self, surface_id: str) -> Optional[DisplaySurface]:
        return self._surfaces.pop(surface_id, None)

    def get(self, surface_id: str) -> DisplaySurface:
        """Resolve a drawable surface.

        Raises
        ------
        SurfaceNotFoundError
            If no surface has that id, or it is not drawable
        """
        surface = self._surfaces.get(surface_id)
        if surface is None:
            raise SurfaceNotFoundError(surface_id)
        if not surface.drawable:
            raise SurfaceNotFoundError(surface_id, "surface is closed or has zero size")
        return surface

    def ids(self) -> List[str]:
        return list(self._surfaces)

    def clear(self) -> None:
        self._surfaces.clear()

    def __contains__(self, surface_id: object) -> bool:
        return surface_id in self._surfaces

    def __len__(self) -> int:
        return len(self._surfaces)


# Process-wide registry used when a GridCanvas is not given its own
default_registry = SurfaceRegistry()


def register_surface(
    surface_id: str,
    surface: DisplaySurface,
    replace: bool = False
) -> DisplaySurface:
    return default_registry.register(surface_id, surface, replace=replace)


def get_surface(surface_id: str) -> DisplaySurface:
    return default_registry.get(surface_id)


def unregister_surface(surface_id: str) -> Optional[DisplaySurface]:
    return default_registry.unregister(surface_id)
