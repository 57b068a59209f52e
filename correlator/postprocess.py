from __future__ import annotations
"""
Turn a correlation surface into an output image:
- optional dynamic-range stretch (max -> top of the output range)
- optional pseudocolor through a fixed 7-stop gradient
- quantization to 8 or 16 bit
"""

from typing import List, Tuple

import numpy as np

from correlator.config import CorrelationOptions


# violet -> blue -> cyan -> green -> yellow -> orange -> red, as RGB 0..255
GRADIENT_STOPS: List[Tuple[int, int, int]] = [
    (138, 43, 226),
    (0, 0, 255),
    (0, 255, 255),
    (0, 255, 0),
    (255, 255, 0),
    (255, 165, 0),
    (255, 0, 0),
]


def stretch_surface(surface: np.ndarray, top: float = 1.0) -> np.ndarray:
    """
    Linear rescale so the maximum sample equals `top`. A surface whose
    maximum is <= 0 has nothing to stretch and is returned as a copy.
    """
    peak = float(np.max(surface)) if surface.size else 0.0
    if peak <= 0.0:
        return surface.astype(np.float64, copy=True)
    return surface * (float(top) / peak)


def gradient_lut(size: int = 256) -> np.ndarray:
    """(size,3) float RGB lookup table in [0,1] sampled evenly over the stops."""
    stops = np.asarray(GRADIENT_STOPS, dtype=np.float64) / 255.0
    xp = np.linspace(0.0, 1.0, len(stops))
    x = np.linspace(0.0, 1.0, int(size))
    return np.stack([np.interp(x, xp, stops[:, c]) for c in range(3)], axis=1)


def pseudocolor(surface: np.ndarray, size: int = 1025) -> np.ndarray:
    """
    Map samples (clipped to [0,1]) through the gradient.
    Returns (H,W,3) float BGR in [0,1], ready for quantize().
    """
    lut = gradient_lut(size)
    idx = np.rint(np.clip(surface, 0.0, 1.0) * (size - 1)).astype(np.intp)
    rgb = lut[idx]
    return rgb[..., ::-1]


def quantize(img: np.ndarray, depth: int = 8) -> np.ndarray:
    """Clip to [0,1] and scale to the full unsigned range of `depth` bits."""
    top = (1 << int(depth)) - 1
    dtype = np.uint8 if int(depth) == 8 else np.uint16
    return np.rint(np.clip(img, 0.0, 1.0) * top).astype(dtype)


def render_surface(surface: np.ndarray, options: CorrelationOptions) -> np.ndarray:
    """Apply the configured post-processing and return the image to write."""
    out = stretch_surface(surface) if options.stretch else surface
    if options.pseudocolor:
        out = pseudocolor(out)
    return quantize(out, options.depth)
