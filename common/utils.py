from __future__ import annotations

from typing import Tuple
import time


def clamp(v: float, lo: float, hi: float) -> float:
    return float(min(hi, max(lo, v)))


def format_size(size: Tuple[int, int]) -> str:
    """(w, h) -> 'WxH'."""
    return f"{int(size[0])}x{int(size[1])}"


def timer_ms(func):
    """
    Decorator that returns (result, elapsed_ms) for benchmarking small functions.
    """
    def wrapper(*args, **kwargs):
        t0 = time.perf_counter()
        out = func(*args, **kwargs)
        dt_ms = (time.perf_counter() - t0) * 1e3
        return out, dt_ms
    return wrapper
