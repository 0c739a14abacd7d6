"""Test color specification parsing.

Tests for src.utils.color:
    - Hex, named and functional CSS colors
    - CSS rgba() with fractional alpha
    - Tuple inputs and channel clamping
    - Rejection of unparseable specifications

Run:
    pytest tests/test_color.py -v
"""

import pytest

from src.utils.color import BLACK, TRANSPARENT, InvalidColorError, is_opaque, parse_color


@pytest.mark.parametrize("spec,expected", [
    ("#ff0000", (255, 0, 0, 255)),
    ("#F00", (255, 0, 0, 255)),
    ("#00ff0080", (0, 255, 0, 128)),
    ("red", (255, 0, 0, 255)),
    ("Black", (0, 0, 0, 255)),
    ("rgb(1, 2, 3)", (1, 2, 3, 255)),
    ("  #0000ff  ", (0, 0, 255, 255)),
    ("transparent", (0, 0, 0, 0)),
])
def test_parse_color_strings(spec, expected):
    assert parse_color(spec) == expected


def test_css_rgba_fractional_alpha():
    """rgba() alpha is CSS-style, in [0, 1]."""
    assert parse_color("rgba(0, 0, 255, 0.5)") == (0, 0, 255, 128)
    assert parse_color("rgba(10, 20, 30, 1)") == (10, 20, 30, 255)
    assert parse_color("rgba(10, 20, 30, 0)") == (10, 20, 30, 0)
    assert parse_color("rgba(10,20,30,.25)") == (10, 20, 30, 64)


def test_css_rgba_alpha_clamped():
    assert parse_color("rgba(10, 20, 30, 7)") == (10, 20, 30, 255)


def test_parse_color_tuples():
    assert parse_color((1, 2, 3)) == (1, 2, 3, 255)
    assert parse_color([1, 2, 3, 4]) == (1, 2, 3, 4)


def test_tuple_channels_clamped():
    assert parse_color((300, -5, 128, 999)) == (255, 0, 128, 255)


@pytest.mark.parametrize("spec", [
    "not-a-color",
    "#12",
    "#gggggg",
    "",
    (1, 2),
    (1, 2, 3, 4, 5),
    ("a", "b", "c"),
    None,
])
def test_invalid_colors_raise(spec):
    with pytest.raises(InvalidColorError):
        parse_color(spec)


def test_invalid_color_is_value_error():
    with pytest.raises(ValueError, match="Unrecognized color"):
        parse_color("nope")


def test_constants_and_opacity():
    assert BLACK == (0, 0, 0, 255)
    assert TRANSPARENT == (0, 0, 0, 0)
    assert is_opaque(BLACK)
    assert not is_opaque(TRANSPARENT)
    assert not is_opaque(parse_color("rgba(0, 0, 0, 0.99)"))
