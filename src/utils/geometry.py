"""Grid ↔ pixel geometry for cell-based rendering.

Provides:
    - Cell origin and center in pixel coordinates
    - Agent marker radius
    - Rectangle clipping against a raster (ROI extraction)
    - Segment clipping, so the rasterizer only ever sees in-range endpoints

Used by:
    - GridCanvas: every draw primitive maps grid coordinates through here
    - RasterBuffer: ROI clipping before compositing
    - Tests: expected pixel positions

Conventions:
    - Grid coordinates are cell units; pixel coordinates are raster columns/rows
    - Image frame: origin at top-left, +X right, +Y down
    - No bounds checking; off-grid cells map to off-raster pixels

Center rule: offset = cell_px // 2, so for even cell sizes the center sits on
the boundary between the two middle pixels, exactly as a 2D canvas would place it.
"""

from typing import Optional, Tuple


def center_offset(cell_px: int) -> int:
    """Offset from a cell's top-left pixel to its center (floor(cell_px / 2))."""
    return cell_px // 2


def cell_origin_px(x: float, y: float, cell_px: int) -> Tuple[int, int]:
    """Top-left pixel of cell (x, y).

    Parameters
    ----------
    x, y : float
        Grid coordinates (cell units); fractional values are truncated after scaling
    cell_px : int
        Cell edge length in pixels

    Returns
    -------
    Tuple[int, int]
        (px, py) pixel coordinates
    """
    return int(x * cell_px), int(y * cell_px)


def cell_center_px(x: float, y: float, cell_px: int) -> Tuple[int, int]:
    """Pixel center of cell (x, y), used for markers and link endpoints."""
    ox, oy = cell_origin_px(x, y, cell_px)
    off = center_offset(cell_px)
    return ox + off, oy + off


def marker_radius_px(cell_px: int) -> int:
    """Agent marker radius: center offset minus one, never negative.

    The one-pixel inset keeps the outline strictly inside the cell.
    For cell_px == 1 the raw value is -1; it clamps to 0 (single-pixel dot).
    """
    return max(0, center_offset(cell_px) - 1)


def clip_rect(
    x: int,
    y: int,
    w: int,
    h: int,
    bounds_w: int,
    bounds_h: int
) -> Optional[Tuple[int, int, int, int]]:
    """Intersect rectangle with [0, bounds_w) × [0, bounds_h).

    Parameters
    ----------
    x, y : int
        Top-left corner in pixels (may be negative)
    w, h : int
        Size in pixels
    bounds_w, bounds_h : int
        Raster size in pixels

    Returns
    -------
    Optional[Tuple[int, int, int, int]]
        (x0, y0, x1, y1) half-open pixel bounds, or None if fully outside
    """
    x0 = max(0, x)
    y0 = max(0, y)
    x1 = min(bounds_w, x + w)
    y1 = min(bounds_h, y + h)
    if x1 <= x0 or y1 <= y0:
        return None
    return x0, y0, x1, y1


def clip_segment(
    x1: int,
    y1: int,
    x2: int,
    y2: int,
    xmin: int,
    ymin: int,
    xmax: int,
    ymax: int
) -> Optional[Tuple[int, int, int, int]]:
    """Clip segment to the closed rectangle [xmin, xmax] × [ymin, ymax] (Liang-Barsky).

    Parameters
    ----------
    x1, y1, x2, y2 : int
        Segment endpoints in pixels, any magnitude
    xmin, ymin, xmax, ymax : int
        Inclusive clip bounds

    Returns
    -------
    Optional[Tuple[int, int, int, int]]
        Clipped endpoints, rounded to the nearest pixel, or None if the
        segment misses the rectangle. Endpoints already inside are returned
        unchanged, so rasterization of on-raster segments is unaffected.
    """
    dx = x2 - x1
    dy = y2 - y1
    t0, t1 = 0.0, 1.0

    for p, q in ((-dx, x1 - xmin), (dx, xmax - x1), (-dy, y1 - ymin), (dy, ymax - y1)):
        if p == 0:
            # Parallel to this edge
            if q < 0:
                return None
            continue
        t = q / p
        if p < 0:
            if t > t1:
                return None
            t0 = max(t0, t)
        else:
            if t < t0:
                return None
            t1 = min(t1, t)

    nx1, ny1 = (x1, y1) if t0 == 0.0 else (round(x1 + t0 * dx), round(y1 + t0 * dy))
    nx2, ny2 = (x2, y2) if t1 == 1.0 else (round(x1 + t1 * dx), round(y1 + t1 * dy))
    return int(nx1), int(ny1), int(nx2), int(ny2)
