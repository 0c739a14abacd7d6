"""Off-screen RGBA raster with canvas-style drawing primitives.

This is the drawing backend behind GridCanvas: a numpy pixel array plus the
five capabilities the canvas needs (fill_rect, fill_circle, stroke_circle,
stroke_line, blit) and clear().

Architecture:
    - Pixels: (H, W, 4) uint8 RGBA, straight alpha, initialized transparent
    - Shapes rasterized by OpenCV into a per-call coverage mask over a clipped ROI
    - Coverage composited onto the ROI with source-over (Porter-Duff "over")
    - Opaque colors with hard-edged masks take a direct-assignment fast path
    - blit: cv2.resize to the destination size, then source-over onto it

Canvas-compatible behavior:
    - Off-raster geometry is clipped, never an error
    - An unparseable color is ignored and the previous fill/stroke style is used,
      as assigning an invalid fillStyle does on an HTML canvas
    - Nothing is ever cleared implicitly

Invariants:
    - Raster size fixed at construction
    - All compositing happens in float32 and is rounded back to uint8
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Tuple

import cv2
import numpy as np

from src.utils import geometry
from src.utils.color import (
    BLACK,
    RGBA,
    TRANSPARENT,
    ColorSpec,
    InvalidColorError,
    is_opaque,
    parse_color,
)

logger = logging.getLogger(__name__)

# (x, y, w, h) in pixels
Rect = Tuple[int, int, int, int]

INTERPOLATIONS = {
    'nearest': cv2.INTER_NEAREST,
    'linear': cv2.INTER_LINEAR,
}


def composite_over(
    dst: np.ndarray,
    src: np.ndarray,
    coverage: Optional[np.ndarray] = None
) -> None:
    """Composite src over dst in place (straight-alpha source-over).

    Parameters
    ----------
    dst : np.ndarray
        Destination pixels, shape (h, w, 4), uint8; modified in place
    src : np.ndarray
        Source pixels, shape (h, w, 4) or a single (4,) color, uint8
    coverage : np.ndarray, optional
        Per-pixel coverage in [0, 255], shape (h, w); None means full coverage
    """
    hw = dst.shape[:2]
    src_a = np.broadcast_to(src[..., 3], hw).astype(np.float32) / 255.0
    if coverage is not None:
        src_a = src_a * (coverage.astype(np.float32) / 255.0)
    src_rgb = np.broadcast_to(src[..., :3], hw + (3,)).astype(np.float32)

    dst_a = dst[..., 3].astype(np.float32) / 255.0
    dst_rgb = dst[..., :3].astype(np.float32)

    keep = dst_a * (1.0 - src_a)
    out_a = src_a + keep
    num = src_rgb * src_a[..., np.newaxis] + dst_rgb * keep[..., np.newaxis]

    out_rgb = np.zeros_like(num)
    nz = out_a > 0
    out_rgb[nz] = num[nz] / out_a[nz][:, np.newaxis]

    dst[..., :3] = np.clip(np.rint(out_rgb), 0, 255).astype(np.uint8)
    dst[..., 3] = np.clip(np.rint(out_a * 255.0), 0, 255).astype(np.uint8)


class RasterBackend(ABC):
    """Capability interface a 2D backend must provide to GridCanvas.

    Coordinates are integer pixels, origin top-left, +Y down.
    """

    width: int
    height: int

    @abstractmethod
    def fill_rect(self, x: int, y: int, w: int, h: int, color: ColorSpec) -> None:
        ...

    @abstractmethod
    def fill_circle(
        self, cx: int, cy: int, r: int, color: ColorSpec, clip: Optional[Rect] = None
    ) -> None:
        ...

    @abstractmethod
    def stroke_circle(
        self, cx: int, cy: int, r: int, color: ColorSpec, thickness: int = 1,
        clip: Optional[Rect] = None
    ) -> None:
        ...

    @abstractmethod
    def stroke_line(
        self, x1: int, y1: int, x2: int, y2: int, color: ColorSpec, thickness: int = 1
    ) -> None:
        ...

    @abstractmethod
    def blit(self, target: np.ndarray) -> None:
        """Copy the whole raster onto target, stretched to its size."""
        ...

    @abstractmethod
    def clear(self, color: Optional[ColorSpec] = None) -> None:
        ...


class RasterBuffer(RasterBackend):
    """numpy + OpenCV implementation of RasterBackend.

    Attributes
    ----------
    pixels : np.ndarray
        (height, width, 4) uint8 RGBA
    antialias : bool
        Use cv2.LINE_AA for circles and lines (coverage-weighted edges)
    scale_interpolation : str
        "nearest" or "linear", filter used by blit when sizes differ
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        antialias: bool = False,
        scale_interpolation: str = "nearest"
    ):
        if scale_interpolation not in INTERPOLATIONS:
            raise ValueError(
                f"scale_interpolation must be one of {sorted(INTERPOLATIONS)}, "
                f"got {scale_interpolation!r}"
            )
        self.width = int(width)
        self.height = int(height)
        self.antialias = antialias
        self.scale_interpolation = scale_interpolation
        self.pixels = np.zeros((self.height, self.width, 4), dtype=np.uint8)

        # Current styles, as on a 2D context
        self._fill_rgba: RGBA = BLACK
        self._stroke_rgba: RGBA = BLACK

    @property
    def line_type(self) -> int:
        return cv2.LINE_AA if self.antialias else cv2.LINE_8

    # ------------------------------------------------------------------
    # Styles
    # ------------------------------------------------------------------

    def _use_fill(self, color: ColorSpec) -> RGBA:
        try:
            self._fill_rgba = parse_color(color)
        except InvalidColorError:
            logger.warning(f"Ignoring invalid fill color {color!r}; keeping {self._fill_rgba}")
        return self._fill_rgba

    def _use_stroke(self, color: ColorSpec) -> RGBA:
        try:
            self._stroke_rgba = parse_color(color)
        except InvalidColorError:
            logger.warning(f"Ignoring invalid stroke color {color!r}; keeping {self._stroke_rgba}")
        return self._stroke_rgba

    # ------------------------------------------------------------------
    # Compositing
    # ------------------------------------------------------------------

    def _paint_roi(
        self,
        roi: tuple,
        rgba: RGBA,
        coverage: Optional[np.ndarray] = None
    ) -> None:
        """Paint a color into ROI (x0, y0, x1, y1) through an optional mask."""
        x0, y0, x1, y1 = roi
        dst = self.pixels[y0:y1, x0:x1]
        color = np.asarray(rgba, dtype=np.uint8)

        if is_opaque(rgba):
            if coverage is None:
                dst[...] = color
                return
            if not self.antialias:
                dst[coverage > 0] = color
                return

        if coverage is not None and not coverage.any():
            return
        composite_over(dst, color, coverage)

    def _shape_roi(self, x0: int, y0: int, x1: int, y1: int) -> Optional[tuple]:
        return geometry.clip_rect(x0, y0, x1 - x0, y1 - y0, self.width, self.height)

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def fill_rect(self, x: int, y: int, w: int, h: int, color: ColorSpec) -> None:
        """Fill axis-aligned rectangle [x, x+w) × [y, y+h)."""
        rgba = self._use_fill(color)
        roi = geometry.clip_rect(int(x), int(y), int(w), int(h), self.width, self.height)
        if roi is None:
            return
        self._paint_roi(roi, rgba)

    def _circle_mask(
        self,
        cx: int,
        cy: int,
        r: int,
        thickness: int,
        clip: Optional[Rect] = None
    ) -> Optional[tuple]:
        pad = r + max(thickness, 1) + 1
        roi = self._shape_roi(cx - pad, cy - pad, cx + pad + 1, cy + pad + 1)
        if roi is not None and clip is not None:
            # Intersect with the clip rectangle (x, y, w, h)
            x0, y0, x1, y1 = roi
            cx0, cy0, cw, ch = (int(v) for v in clip)
            roi = geometry.clip_rect(cx0 - x0, cy0 - y0, cw, ch, x1 - x0, y1 - y0)
            if roi is not None:
                roi = (roi[0] + x0, roi[1] + y0, roi[2] + x0, roi[3] + y0)
        if roi is None:
            return None
        x0, y0, x1, y1 = roi
        mask = np.zeros((y1 - y0, x1 - x0), dtype=np.uint8)
        cv2.circle(mask, (cx - x0, cy - y0), r, 255, thickness, self.line_type)
        return roi, mask

    def fill_circle(
        self,
        cx: int,
        cy: int,
        r: int,
        color: ColorSpec,
        clip: Optional[Rect] = None
    ) -> None:
        """Fill disk of radius r centered on pixel (cx, cy). r < 0 is treated as 0.

        clip, an (x, y, w, h) rectangle, bounds the painted pixels; it keeps
        antialiased fringes from bleeding past a cell edge.
        """
        rgba = self._use_fill(color)
        hit = self._circle_mask(int(cx), int(cy), max(0, int(r)), cv2.FILLED, clip)
        if hit is not None:
            self._paint_roi(hit[0], rgba, hit[1])

    def stroke_circle(
        self,
        cx: int,
        cy: int,
        r: int,
        color: ColorSpec,
        thickness: int = 1,
        clip: Optional[Rect] = None
    ) -> None:
        """Stroke circle outline of radius r centered on pixel (cx, cy)."""
        rgba = self._use_stroke(color)
        hit = self._circle_mask(int(cx), int(cy), max(0, int(r)), max(1, int(thickness)), clip)
        if hit is not None:
            self._paint_roi(hit[0], rgba, hit[1])

    def stroke_line(
        self,
        x1: int,
        y1: int,
        x2: int,
        y2: int,
        color: ColorSpec,
        thickness: int = 1
    ) -> None:
        """Stroke straight segment between pixels (x1, y1) and (x2, y2)."""
        rgba = self._use_stroke(color)
        x1, y1, x2, y2 = int(x1), int(y1), int(x2), int(y2)
        thickness = max(1, int(thickness))
        pad = thickness + 1
        roi = self._shape_roi(
            min(x1, x2) - pad, min(y1, y2) - pad,
            max(x1, x2) + pad + 1, max(y1, y2) + pad + 1
        )
        if roi is None:
            return
        x0, y0, rx1, ry1 = roi
        mh, mw = ry1 - y0, rx1 - x0
        # cv2 needs endpoints that fit a C int; far off-raster ones are cut here
        seg = geometry.clip_segment(
            x1 - x0, y1 - y0, x2 - x0, y2 - y0,
            -pad, -pad, mw - 1 + pad, mh - 1 + pad
        )
        if seg is None:
            return
        mask = np.zeros((mh, mw), dtype=np.uint8)
        cv2.line(mask, seg[:2], seg[2:], 255, thickness, self.line_type)
        self._paint_roi(roi, rgba, mask)

    def clear(self, color: Optional[ColorSpec] = None) -> None:
        """Reset every pixel to transparent, or overwrite with color."""
        if color is None:
            self.pixels[...] = TRANSPARENT
            return
        try:
            rgba = parse_color(color)
        except InvalidColorError:
            logger.warning(f"Ignoring invalid clear color {color!r}; clearing to transparent")
            rgba = TRANSPARENT
        self.pixels[...] = np.asarray(rgba, dtype=np.uint8)

    def blit(self, target: np.ndarray) -> None:
        """Copy the whole raster onto target in one pass.

        Parameters
        ----------
        target : np.ndarray
            Destination pixels, (H', W', 4) uint8, modified in place.
            If (H', W') differs from the raster size the raster is stretched
            (not cropped) with the configured interpolation.
        """
        th, tw = target.shape[:2]
        if (th, tw) == (self.height, self.width):
            src = self.pixels
        else:
            src = cv2.resize(
                self.pixels, (tw, th),
                interpolation=INTERPOLATIONS[self.scale_interpolation]
            )

        if np.all(src[..., 3] == 255):
            np.copyto(target, src)
        else:
            composite_over(target, src)
