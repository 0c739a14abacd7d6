"""Drawing validated scene files onto a GridCanvas.

A scene (scene.v1.yaml, see utils.validators.SceneV1) is one frame of draw
requests: cell fills with optional agents, then links. This is the simplest
external driver of the canvas and is what scripts/preview_grid.py runs.
"""

import logging
from typing import Optional

from src.utils.validators import CanvasConfigV1, SceneV1

from .canvas import GridCanvas
from .surfaces import SurfaceRegistry

logger = logging.getLogger(__name__)


def canvas_for_scene(
    scene: SceneV1,
    canvas_cfg: Optional[CanvasConfigV1] = None,
    registry: Optional[SurfaceRegistry] = None
) -> GridCanvas:
    """Create a canvas sized for scene.

    Grid size always comes from the scene. Cell size comes from the scene if
    set, else from canvas_cfg, else the default. Raster options
    (antialias, scale_interpolation) come from canvas_cfg.
    """
    cfg = canvas_cfg or CanvasConfigV1(grid_dimension=scene.grid_dimension)
    updates = {'grid_dimension': scene.grid_dimension}
    if scene.cell_px is not None:
        updates['cell_px'] = scene.cell_px
    if scene.background is not None:
        updates['background'] = scene.background
    return GridCanvas.from_config(cfg.model_copy(update=updates), registry=registry)


def draw_scene(canvas: GridCanvas, scene: SceneV1) -> int:
    """Draw every cell, then every link; returns the number of draw calls.

    The buffer is not cleared first; frames accumulate like any other draws.
    """
    for cell in scene.cells:
        canvas.draw_cell(cell.x, cell.y, cell.color, cell.agent, cell.agent_color)
    for link in scene.links:
        canvas.draw_line(*link.start, *link.end)

    n_calls = len(scene.cells) + len(scene.links)
    logger.debug(
        f"Drew scene: {len(scene.cells)} cells "
        f"({sum(c.agent for c in scene.cells)} agents), {len(scene.links)} links"
    )
    return n_calls
