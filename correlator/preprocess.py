from __future__ import annotations
"""
Image loading & preprocessing for the correlator:
- Read from disk with OpenCV (any bit depth, with or without alpha)
- Strip alpha, keep a BGR color copy for rendering
- Grayscale conversion + normalization of samples to [0,1]
"""

import os
from typing import Tuple

import cv2
import numpy as np

from common.errors import InvalidInputError
from common.types import GrayImage


# -----------------------------
# Channel handling
# -----------------------------

def strip_alpha(img: np.ndarray) -> np.ndarray:
    """Drop the alpha channel of a BGRA image; other layouts pass through."""
    if img.ndim == 3 and img.shape[2] == 4:
        return img[:, :, :3]
    if img.ndim == 3 and img.shape[2] == 2:  # gray + alpha
        return img[:, :, 0]
    return img


def to_bgr(img: np.ndarray) -> np.ndarray:
    img = strip_alpha(img)
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    if img.shape[2] == 1:
        return cv2.cvtColor(img[:, :, 0], cv2.COLOR_GRAY2BGR)
    return img


def sample_range(dtype: np.dtype) -> float:
    """Full-scale value of a sample type: uint8 -> 255, uint16 -> 65535, float -> 1."""
    dt = np.dtype(dtype)
    if np.issubdtype(dt, np.integer):
        return float(np.iinfo(dt).max)
    return 1.0


def to_gray_float(img: np.ndarray) -> np.ndarray:
    """
    Grayscale float64 in [0,1] (for integer inputs). Color uses the
    ITU-R 601 luma weights via cv2.cvtColor.
    """
    img = strip_alpha(img)
    scale = sample_range(img.dtype)
    if img.ndim == 3 and img.shape[2] == 1:
        img = img[:, :, 0]
    if img.ndim == 3:
        src = img if img.dtype in (np.uint8, np.uint16) else img.astype(np.float32)
        g = cv2.cvtColor(src, cv2.COLOR_BGR2GRAY)
    else:
        g = img
    return g.astype(np.float64) / scale


def to_bgr_u8(img: np.ndarray) -> np.ndarray:
    """Display copy used by the renderer (8-bit BGR)."""
    bgr = to_bgr(img)
    if bgr.dtype == np.uint8:
        return bgr.copy()
    scale = sample_range(bgr.dtype)
    f = bgr.astype(np.float64) * (255.0 / scale)
    return np.clip(np.rint(f), 0, 255).astype(np.uint8)


# -----------------------------
# Loading
# -----------------------------

def read_image(path: str) -> np.ndarray:
    """Read an image file as stored (bit depth & channels preserved)."""
    if not os.path.isfile(path):
        raise InvalidInputError("file does not exist or is not a regular file", path=path)
    img = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if img is None or img.size == 0:
        raise InvalidInputError("file is not a readable image", path=path)
    return img


def load_gray(path: str) -> GrayImage:
    """Load a file into a GrayImage (with color copy retained for rendering)."""
    raw = read_image(path)
    return gray_from_array(raw, source=path)


def gray_from_array(raw: np.ndarray, source: str = "<memory>") -> GrayImage:
    """Build a GrayImage from an in-memory image as cv2 would return it."""
    if raw.ndim not in (2, 3) or raw.size == 0:
        raise InvalidInputError(f"unsupported image layout {raw.shape}", path=source)
    gray = to_gray_float(raw)
    h, w = gray.shape
    return GrayImage(pixels=gray, width=w, height=h, source=source, color=to_bgr_u8(raw))


def check_fits(template: GrayImage, search: GrayImage) -> Tuple[int, int]:
    """
    Ensure the template fits inside the search image. Returns (w, h) of the template.
    """
    for img in (template, search):
        if img.width <= 0 or img.height <= 0:
            raise InvalidInputError("image is empty", path=img.source)
    if template.width > search.width:
        raise InvalidInputError(
            f"template width {template.width} exceeds search image width {search.width} ({search.source})",
            path=template.source,
        )
    if template.height > search.height:
        raise InvalidInputError(
            f"template height {template.height} exceeds search image height {search.height} ({search.source})",
            path=template.source,
        )
    return template.width, template.height
