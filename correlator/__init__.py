# FILE: correlator/__init__.py
"""
Correlator: normalized cross-correlation template matching

This package provides:
- Frequency-domain NCC of a template against every anchor of a search image
- Best-match location (first maximum in row-major order)
- Surface post-processing (dynamic-range stretch, violet..red pseudocolor)
- Match rendering on the search image (rectangle or half-transparent overlay)

Entry point:
    python -m correlator [-s] [-p] [-m draw|overlay] [-c color] template search corr [match]
"""
from .correlate import correlate, ncc_surface, locate_max

__all__ = ["correlate", "ncc_surface", "locate_max"]
