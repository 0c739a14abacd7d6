"""Unit tests for the RasterBuffer backend and source-over compositing.

Test suites:
1. composite_over (alpha math, coverage, transparent destination)
2. Primitives (fill_rect, circles, lines, clipping)
3. Style fallback on invalid colors
4. blit (copy, scale, composite)
"""

import cv2
import numpy as np
import pytest

from src.grid_canvas.raster import INTERPOLATIONS, RasterBackend, RasterBuffer, composite_over


@pytest.fixture
def raster():
    """32×24 transparent raster, hard edges."""
    return RasterBuffer(32, 24)


# ============================================================================
# TEST SUITE 1: composite_over
# ============================================================================

def test_composite_opaque_source_replaces():
    dst = np.full((2, 2, 4), 200, dtype=np.uint8)
    composite_over(dst, np.array([10, 20, 30, 255], dtype=np.uint8))
    assert (dst == [10, 20, 30, 255]).all()


def test_composite_transparent_source_is_noop():
    dst = np.full((2, 2, 4), 77, dtype=np.uint8)
    composite_over(dst, np.array([255, 255, 255, 0], dtype=np.uint8))
    assert (dst == 77).all()


def test_composite_half_alpha_over_opaque():
    """50% red over opaque white → pink, still opaque."""
    dst = np.zeros((1, 1, 4), dtype=np.uint8)
    dst[...] = [255, 255, 255, 255]
    composite_over(dst, np.array([255, 0, 0, 128], dtype=np.uint8))
    np.testing.assert_allclose(dst[0, 0].astype(int), [255, 127, 127, 255], atol=1)


def test_composite_over_transparent_keeps_straight_color():
    """Translucent source over nothing keeps its color and its alpha."""
    dst = np.zeros((1, 1, 4), dtype=np.uint8)
    composite_over(dst, np.array([0, 0, 255, 64], dtype=np.uint8))
    assert list(dst[0, 0]) == [0, 0, 255, 64]


def test_composite_coverage_mask():
    """Coverage scales source alpha per pixel."""
    dst = np.zeros((1, 3, 4), dtype=np.uint8)
    dst[...] = [255, 255, 255, 255]
    coverage = np.array([[0, 128, 255]], dtype=np.uint8)
    composite_over(dst, np.array([0, 0, 0, 255], dtype=np.uint8), coverage)

    assert list(dst[0, 0]) == [255, 255, 255, 255]
    assert abs(int(dst[0, 1, 0]) - 127) <= 1
    assert list(dst[0, 2]) == [0, 0, 0, 255]


def test_composite_per_pixel_source():
    """Full (h, w, 4) sources composite pixel by pixel."""
    dst = np.zeros((1, 2, 4), dtype=np.uint8)
    src = np.array([[[255, 0, 0, 255], [0, 255, 0, 0]]], dtype=np.uint8)
    composite_over(dst, src)
    assert list(dst[0, 0]) == [255, 0, 0, 255]
    assert list(dst[0, 1]) == [0, 0, 0, 0]


# ============================================================================
# TEST SUITE 2: Primitives
# ============================================================================

def test_raster_initial_state(raster):
    assert raster.pixels.shape == (24, 32, 4)
    assert not raster.pixels.any()
    assert isinstance(raster, RasterBackend)
    assert raster.line_type == cv2.LINE_8


def test_antialias_line_type():
    assert RasterBuffer(4, 4, antialias=True).line_type == cv2.LINE_AA


def test_unknown_interpolation_rejected():
    with pytest.raises(ValueError, match="scale_interpolation"):
        RasterBuffer(4, 4, scale_interpolation="cubic")


def test_interpolation_table():
    assert INTERPOLATIONS == {'nearest': cv2.INTER_NEAREST, 'linear': cv2.INTER_LINEAR}


def test_fill_rect_half_open(raster):
    """fill_rect covers [x, x+w) × [y, y+h)."""
    raster.fill_rect(2, 3, 4, 5, "red")
    alpha = raster.pixels[..., 3]
    assert (alpha[3:8, 2:6] == 255).all()
    assert np.count_nonzero(alpha) == 20


def test_fill_rect_clipped(raster):
    """Rectangles crossing the edge are clipped, fully outside ones ignored."""
    raster.fill_rect(-2, -2, 4, 4, "red")
    raster.fill_rect(30, 22, 10, 10, "red")
    raster.fill_rect(100, 100, 5, 5, "red")
    raster.fill_rect(5, 5, 0, 3, "red")
    alpha = raster.pixels[..., 3]
    assert np.count_nonzero(alpha) == 4 + 4


def test_fill_circle_symmetric(raster):
    """Filled disk is symmetric about its center."""
    raster.fill_circle(12, 12, 5, "blue")
    alpha = raster.pixels[..., 3][7:18, 7:18]
    assert alpha[5, 5] == 255
    np.testing.assert_array_equal(alpha, alpha[::-1, :])
    np.testing.assert_array_equal(alpha, alpha[:, ::-1])
    np.testing.assert_array_equal(alpha, alpha.T)


def test_stroke_circle_hollow(raster):
    """Stroked circle leaves its center untouched."""
    raster.stroke_circle(12, 12, 5, "black")
    alpha = raster.pixels[..., 3]
    assert alpha[12, 12] == 0
    assert alpha[12, 17] == 255
    assert alpha[7, 12] == 255


def test_negative_radius_treated_as_zero(raster):
    raster.fill_circle(4, 4, -3, "red")
    assert np.count_nonzero(raster.pixels[..., 3]) == 1
    assert raster.pixels[4, 4, 3] == 255


def test_circle_clipped_at_edge(raster):
    """Circle centered off the raster paints only its visible part."""
    raster.fill_circle(-2, 10, 5, "red")
    alpha = raster.pixels[..., 3]
    assert alpha[10, 0] == 255
    assert not alpha[:, 4:].any()


def test_stroke_line_thickness(raster):
    """Thicker strokes cover more pixels."""
    raster.stroke_line(2, 12, 28, 12, "black", thickness=1)
    thin = np.count_nonzero(raster.pixels[..., 3])
    raster.clear()
    raster.stroke_line(2, 12, 28, 12, "black", thickness=3)
    thick = np.count_nonzero(raster.pixels[..., 3])
    assert thin == 27
    assert thick > thin


def test_stroke_line_far_off_raster_endpoints(raster):
    """Endpoints beyond the C int range are clipped before rasterizing."""
    raster.stroke_line(0, 5, 2 * 10**9, 5, "black")
    assert (raster.pixels[5, :] == [0, 0, 0, 255]).all()
    assert np.count_nonzero(raster.pixels[..., 3]) == 32

    raster.clear()
    raster.stroke_line(-10**10, -10**10, 10**10, 10**10, "black")
    diag = np.arange(24)
    assert (raster.pixels[diag, diag] == [0, 0, 0, 255]).all()
    assert np.count_nonzero(raster.pixels[..., 3]) == 24


def test_stroke_line_far_away_draws_nothing(raster):
    raster.stroke_line(-3 * 10**12, 5, -10**12, 5, "black")
    raster.stroke_line(10**11, -10**11, 10**11 + 1, 10**11, "black")
    assert not raster.pixels.any()


def test_clear_to_color_and_back(raster):
    raster.clear("white")
    assert (raster.pixels == 255).all()
    raster.clear()
    assert not raster.pixels.any()


def test_clear_invalid_color_falls_back_to_transparent(raster):
    raster.fill_rect(0, 0, 4, 4, "red")
    raster.clear("definitely-not-a-color")
    assert not raster.pixels.any()


# ============================================================================
# TEST SUITE 3: Style Fallback
# ============================================================================

def test_fill_and_stroke_styles_are_independent(raster):
    """An invalid stroke color falls back to the last stroke, not the last fill."""
    raster.fill_rect(0, 0, 2, 2, "red")
    raster.stroke_line(0, 10, 5, 10, "lime")
    raster.stroke_line(0, 12, 5, 12, "garbage")
    raster.fill_rect(10, 0, 2, 2, "garbage")

    px = raster.pixels
    assert list(px[12, 0]) == [0, 255, 0, 255]
    assert list(px[0, 10]) == [255, 0, 0, 255]


def test_invalid_color_logs_warning(raster, caplog):
    with caplog.at_level("WARNING", logger="src.grid_canvas.raster"):
        raster.fill_rect(0, 0, 1, 1, "#12")
    assert "Ignoring invalid fill color" in caplog.text


# ============================================================================
# TEST SUITE 4: blit
# ============================================================================

def test_blit_same_size_opaque_copies(raster):
    raster.clear("gray")
    raster.fill_rect(0, 0, 3, 3, "red")
    target = np.zeros((24, 32, 4), dtype=np.uint8)
    raster.blit(target)
    np.testing.assert_array_equal(target, raster.pixels)


def test_blit_composites_translucent_pixels(raster):
    raster.fill_rect(0, 0, 1, 1, "rgba(0, 0, 0, 0.5)")
    target = np.full((24, 32, 4), 255, dtype=np.uint8)
    raster.blit(target)

    assert abs(int(target[0, 0, 0]) - 127) <= 1
    assert target[0, 0, 3] == 255
    assert (target[1:, :] == 255).all()


def test_blit_downscale_nearest():
    """Halving with nearest keeps every other pixel."""
    raster = RasterBuffer(4, 4)
    raster.clear("white")
    raster.fill_rect(0, 0, 2, 2, "black")
    target = np.zeros((2, 2, 4), dtype=np.uint8)
    raster.blit(target)

    assert list(target[0, 0]) == [0, 0, 0, 255]
    assert list(target[1, 1]) == [255, 255, 255, 255]


def test_blit_does_not_modify_raster(raster):
    raster.fill_rect(0, 0, 5, 5, "red")
    before = raster.pixels.copy()
    raster.blit(np.zeros((48, 64, 4), dtype=np.uint8))
    np.testing.assert_array_equal(raster.pixels, before)
