"""Double-buffered grid renderer.

Public API:
    GridCanvas: off-screen buffer, draw_cell/draw_line in grid coordinates, update() flush
    RasterBuffer / RasterBackend: the pixel backend and its capability interface
    Scenes: canvas_for_scene, draw_scene for scene.v1 files
    Surfaces: ImageSurface, FileSurface, WindowSurface and the id registry
    Errors: GridCanvasError, InvalidDimensionError, SurfaceNotFoundError, InvalidColorError
"""

from .canvas import DEFAULT_CELL_PX, GridCanvas
from .errors import (
    GridCanvasError,
    InvalidColorError,
    InvalidDimensionError,
    SurfaceNotFoundError,
)
from .raster import RasterBackend, RasterBuffer
from .scene import canvas_for_scene, draw_scene
from .surfaces import (
    DisplaySurface,
    FileSurface,
    ImageSurface,
    SurfaceRegistry,
    WindowSurface,
    default_registry,
    get_surface,
    register_surface,
    unregister_surface,
)

__all__ = [
    'DEFAULT_CELL_PX',
    'GridCanvas',
    'GridCanvasError',
    'InvalidColorError',
    'InvalidDimensionError',
    'SurfaceNotFoundError',
    'RasterBackend',
    'RasterBuffer',
    'canvas_for_scene',
    'draw_scene',
    'DisplaySurface',
    'FileSurface',
    'ImageSurface',
    'SurfaceRegistry',
    'WindowSurface',
    'default_registry',
    'get_surface',
    'register_surface',
    'unregister_surface',
]
