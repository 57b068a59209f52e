from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Any, Dict
import numpy as np


@dataclass(slots=True)
class GrayImage:
    """
    Single-channel image used by the correlator.

    Attributes:
        pixels: np.ndarray of shape (H,W), float64, samples normalized to [0,1].
        width, height: image dimensions in pixels.
        source: path or label the image was read from (used in error messages).
        color: optional (H,W,3) uint8 BGR copy of the original (alpha stripped),
            kept for rendering the match file.
    """
    pixels: np.ndarray = field(repr=False)
    width: int
    height: int
    source: str = "<memory>"
    color: Optional[np.ndarray] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.pixels, np.ndarray):
            raise TypeError("pixels must be a numpy ndarray")
        if self.pixels.ndim != 2:
            raise ValueError("pixels must be 2D (grayscale)")
        if self.pixels.shape[0] != self.height or self.pixels.shape[1] != self.width:
            raise ValueError("width/height do not match pixels shape")
        if self.pixels.dtype != np.float64:
            self.pixels = self.pixels.astype(np.float64)
        if self.color is not None and self.color.shape[:2] != self.pixels.shape:
            raise ValueError("color copy must have the same height/width as pixels")

    @classmethod
    def from_array(cls, arr: np.ndarray, source: str = "<memory>") -> "GrayImage":
        """Wrap an already-grayscale array (values taken as-is)."""
        a = np.asarray(arr, dtype=np.float64)
        return cls(pixels=a, width=int(a.shape[1]), height=int(a.shape[0]), source=source)

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.height, self.width)

    @property
    def size(self) -> int:
        return self.width * self.height

    def to_meta(self) -> Dict[str, Any]:
        """Metadata without pixel data (safe to log/serialize)."""
        return {"source": self.source, "width": self.width, "height": self.height}


@dataclass(frozen=True, slots=True)
class TemplateStats:
    """Mean / population std / sample count of the template, computed once."""
    mean: float
    std: float
    count: int


@dataclass(frozen=True, slots=True)
class Match:
    """Best match: top-left anchor (x,y) of the template and its NCC score."""
    x: int
    y: int
    score: float

    @property
    def xy(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y, "score": self.score}


@dataclass(slots=True)
class CorrelationResult:
    """
    Output of one correlation run.

    Attributes:
        surface: (H,W) float64 NCC surface, same size as the search image.
        match: arg-max location of `surface`.
        stats: template statistics used for normalization.
        template_size: (width, height) of the template.
    """
    surface: np.ndarray = field(repr=False)
    match: Match
    stats: TemplateStats
    template_size: Tuple[int, int]

    def __iter__(self):
        # allows `surface, match = correlate(...)`
        yield self.surface
        yield self.match
