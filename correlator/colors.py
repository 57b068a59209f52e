"""
Color specifications accepted for the match rectangle.

Named colors, '#RRGGBB', '#RGB' or 'rgb(r,g,b)'; parsed to BGR for OpenCV.
"""

import re
from typing import Dict, Tuple

from common.errors import InvalidInputError


# RGB
NAMED_COLORS: Dict[str, Tuple[int, int, int]] = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "green": (0, 255, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "cyan": (0, 255, 255),
    "magenta": (255, 0, 255),
    "orange": (255, 165, 0),
    "violet": (238, 130, 238),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
}

_HEX6 = re.compile(r"^#([0-9a-fA-F]{6})$")
_HEX3 = re.compile(r"^#([0-9a-fA-F]{3})$")
_RGB = re.compile(r"^rgb\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*\)$", re.IGNORECASE)


def parse_color(spec: str) -> Tuple[int, int, int]:
    """
    Color spec -> BGR tuple for OpenCV.

    Accepts a name from NAMED_COLORS, '#RRGGBB', '#RGB' or 'rgb(r,g,b)'.
    """
    s = (spec or "").strip()
    rgb = NAMED_COLORS.get(s.lower())
    if rgb is None:
        m = _HEX6.match(s)
        if m:
            h = m.group(1)
            rgb = (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16))
    if rgb is None:
        m = _HEX3.match(s)
        if m:
            rgb = tuple(int(c * 2, 16) for c in m.group(1))  # type: ignore[assignment]
    if rgb is None:
        m = _RGB.match(s)
        if m:
            vals = tuple(int(v) for v in m.groups())
            if any(v > 255 for v in vals):
                raise InvalidInputError(f"color component out of range 0..255: {spec!r}")
            rgb = vals  # type: ignore[assignment]
    if rgb is None:
        raise InvalidInputError(
            f"unrecognized color {spec!r} (use a name such as {', '.join(sorted(NAMED_COLORS))}, #RRGGBB or rgb(r,g,b))"
        )
    r, g, b = rgb
    return (int(b), int(g), int(r))
