from __future__ import annotations
"""
Match rendering on a copy of the search image.

- draw:    unfilled rectangle from (x,y) to (x+w,y+h) in a stroke color
- overlay: half-transparent search image with the opaque template pasted
           at the match location (BGRA output)
"""

from typing import Tuple

import cv2
import numpy as np

from common.errors import InvalidInputError
from common.types import GrayImage, Match
from correlator.colors import parse_color
from correlator.config import RenderOptions


OVERLAY_ALPHA = 128


def _color_copy(img: GrayImage) -> np.ndarray:
    if img.color is not None:
        return img.color.copy()
    g = np.clip(np.rint(img.pixels * 255.0), 0, 255).astype(np.uint8)
    return cv2.cvtColor(g, cv2.COLOR_GRAY2BGR)


def draw_match(search: GrayImage, match: Match, size: Tuple[int, int], color: str = "black", thickness: int = 1) -> np.ndarray:
    """Copy of the search image with an unfilled rectangle around the match."""
    w, h = int(size[0]), int(size[1])
    canvas = _color_copy(search)
    cv2.rectangle(canvas, (match.x, match.y), (match.x + w, match.y + h), parse_color(color), int(thickness))
    return canvas


def overlay_match(search: GrayImage, template: GrayImage, match: Match) -> np.ndarray:
    """
    Half-transparent BGRA copy of the search image with the template
    composited opaquely at the match. Parts past the right/bottom edge are cut.
    """
    base = _color_copy(search)
    alpha = np.full(base.shape[:2], OVERLAY_ALPHA, dtype=np.uint8)
    canvas = np.dstack([base, alpha])

    tpl = _color_copy(template)
    x0, y0 = match.x, match.y
    x1 = min(search.width, x0 + template.width)
    y1 = min(search.height, y0 + template.height)
    canvas[y0:y1, x0:x1, :3] = tpl[: y1 - y0, : x1 - x0]
    canvas[y0:y1, x0:x1, 3] = 255
    return canvas


def render_match(search: GrayImage, template: GrayImage, match: Match, options: RenderOptions) -> np.ndarray:
    if options.mode == "draw":
        return draw_match(search, match, (template.width, template.height), options.color, options.thickness)
    if options.mode == "overlay":
        return overlay_match(search, template, match)
    raise InvalidInputError(f"unknown render mode {options.mode!r}")
