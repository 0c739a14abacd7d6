"""Grid Canvas: double-buffered rendering for grid simulations.

This package renders square grids of cells, agent markers and links for
cellular automata and agent-based models, drawing off-screen and flushing
whole frames to a visible surface.

Architecture layers (strict one-way dependency):
    scripts/ → src/grid_canvas/ → src/utils/

Key invariants:
    - Buffer size is grid_dimension * cell_px per side, fixed for the canvas' life
    - Draw calls use grid coordinates; pixels only appear at the raster boundary
    - A flush copies the whole buffer in one blit (no dirty rectangles)
    - YAML-only configs, validated with pydantic
    - All pixel arrays are RGBA uint8, straight alpha
"""

__version__ = "1.0.0"
