"""Color specification parsing for the raster buffer.

Provides:
    - parse_color: CSS-style color string or tuple → RGBA uint8 tuple
    - is_opaque: alpha check used by the compositing fast path
    - BLACK / TRANSPARENT constants

Accepted forms:
    - Named colors ("red", "rebeccapurple"), via Pillow's ImageColor table
    - Hex: "#rgb", "#rgba", "#rrggbb", "#rrggbbaa"
    - "rgb(r, g, b)", "hsl(h, s%, l%)", "hsv(...)" (Pillow grammar)
    - "rgba(r, g, b, a)" with CSS alpha in [0, 1] (Pillow only accepts 0-255)
    - "transparent"
    - Tuples (r, g, b) or (r, g, b, a) with 0-255 integer channels

Invariants:
    - Output is always a 4-tuple of ints in [0, 255], straight (non-premultiplied) alpha
    - Parsing is cached; color strings from simulations repeat constantly
"""

import re
from functools import lru_cache
from typing import Sequence, Tuple, Union

from PIL import ImageColor

RGBA = Tuple[int, int, int, int]
ColorSpec = Union[str, Sequence[int]]

BLACK: RGBA = (0, 0, 0, 255)
TRANSPARENT: RGBA = (0, 0, 0, 0)

# CSS rgba() with fractional alpha; Pillow's own rgba() wants 0-255 alpha
_CSS_RGBA = re.compile(
    r"^rgba\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*([0-9]*\.?[0-9]+)\s*\)$"
)


class InvalidColorError(ValueError):
    """Raised when a color specification cannot be parsed."""

    pass


def _clamp_channel(v: int) -> int:
    return max(0, min(255, int(v)))


@lru_cache(maxsize=1024)
def _parse_color_str(spec: str) -> RGBA:
    text = spec.strip().lower()
    if text == "transparent":
        return TRANSPARENT

    m = _CSS_RGBA.match(text)
    if m:
        r, g, b = (_clamp_channel(int(m.group(i))) for i in (1, 2, 3))
        a = min(max(float(m.group(4)), 0.0), 1.0)
        return (r, g, b, round(a * 255))

    try:
        rgb = ImageColor.getrgb(text)
    except ValueError as e:
        raise InvalidColorError(f"Unrecognized color specification: {spec!r}") from e

    if len(rgb) == 4:
        return tuple(int(c) for c in rgb)  # type: ignore[return-value]
    return (int(rgb[0]), int(rgb[1]), int(rgb[2]), 255)


def parse_color(spec: ColorSpec) -> RGBA:
    """Parse a color specification into an RGBA tuple.

    Parameters
    ----------
    spec : str or sequence of int
        CSS-style color string or (r, g, b[, a]) tuple with 0-255 channels

    Returns
    -------
    tuple of int
        (r, g, b, a), each in [0, 255]

    Raises
    ------
    InvalidColorError
        If the string is not recognized or the tuple has the wrong length

    Examples
    --------
    >>> parse_color("#ff0000")
    (255, 0, 0, 255)
    >>> parse_color("rgba(0, 0, 255, 0.5)")
    (0, 0, 255, 128)
    """
    if isinstance(spec, str):
        return _parse_color_str(spec)

    try:
        channels = [int(c) for c in spec]
    except (TypeError, ValueError) as e:
        raise InvalidColorError(f"Unrecognized color specification: {spec!r}") from e

    if len(channels) == 3:
        channels.append(255)
    if len(channels) != 4:
        raise InvalidColorError(
            f"Color tuple must have 3 or 4 channels, got {len(channels)}: {spec!r}"
        )
    return tuple(_clamp_channel(c) for c in channels)  # type: ignore[return-value]


def is_opaque(rgba: RGBA) -> bool:
    """True if the color fully covers whatever it is drawn over."""
    return rgba[3] == 255
