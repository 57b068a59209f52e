from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from common.errors import ComputationError
from common.logging_setup import get_logger
from common.types import GrayImage, TemplateStats, Match, CorrelationResult
from correlator.config import CorrelationOptions
from correlator.preprocess import check_fits


log = get_logger("correlator.correlate")

# Scores this close to the maximum count as tied with it.
TIE_TOLERANCE = 1e-9
# Template std at or below this is treated as zero.
TEMPLATE_STD_EPS = 1e-12


def template_stats(template: np.ndarray) -> TemplateStats:
    """Mean and population std of the template samples."""
    t = np.asarray(template, dtype=np.float64)
    return TemplateStats(mean=float(t.mean()), std=float(t.std()), count=int(t.size))


def _pad_to(a: np.ndarray, shape: Tuple[int, int]) -> np.ndarray:
    """Zero-pad bottom/right out to `shape`."""
    out = np.zeros(shape, dtype=np.float64)
    out[: a.shape[0], : a.shape[1]] = a
    return out


def _xcorr(kernel_f: np.ndarray, signal_f: np.ndarray, shape: Tuple[int, int]) -> np.ndarray:
    """
    Circular cross-correlation from spectra: out[y,x] = sum k[i,j] * s[y+i, x+j].
    """
    return np.fft.irfft2(np.conj(kernel_f) * signal_f, s=shape)


def ncc_surface(
    template: np.ndarray,
    search: np.ndarray,
    *,
    variance_floor: float = 1e-10,
    stats: Optional[TemplateStats] = None,
) -> np.ndarray:
    """
    Normalized cross-correlation of `template` against every anchor of `search`,
    computed in the frequency domain.

    Args:
        template: (h,w) float samples, h/w no larger than the search image.
        search: (H,W) float samples.
        variance_floor: local search variance at or below which the score is
            undefined and reported as 0.
        stats: precomputed template statistics (computed here if omitted).

    Returns:
        (H,W) float64 surface; surface[y,x] scores the template anchored with
        its top-left corner at (x,y). Anchors that run past the right/bottom
        edge wrap around (circular correlation).

    Raises:
        ComputationError: zero template std or non-finite transform output.
    """
    t = np.asarray(template, dtype=np.float64)
    s = np.asarray(search, dtype=np.float64)
    shape = s.shape
    st = stats or template_stats(t)
    n = float(st.count)

    if not np.isfinite(st.std) or st.std <= TEMPLATE_STD_EPS:
        raise ComputationError(
            f"template has zero standard deviation (mean={st.mean:.6g}); correlation is undefined"
        )
    if not np.all(np.isfinite(s)):
        raise ComputationError("search image contains non-finite samples")

    # Removing the global mean leaves every NCC term unchanged and keeps the
    # B - C difference away from catastrophic cancellation.
    s = s - s.mean()

    t_f = np.fft.rfft2(_pad_to(t - st.mean, shape))
    ones_f = np.fft.rfft2(_pad_to(np.ones_like(t), shape))
    s_f = np.fft.rfft2(s)
    s2_f = np.fft.rfft2(s * s)

    term_a = _xcorr(t_f, s_f, shape)
    local_sum = _xcorr(ones_f, s_f, shape)
    term_b = n * _xcorr(ones_f, s2_f, shape)
    term_c = local_sum * local_sum

    denom_sq = term_b - term_c
    if not (np.all(np.isfinite(term_a)) and np.all(np.isfinite(denom_sq))):
        raise ComputationError("frequency transform produced non-finite values")

    valid = denom_sq > (n * n * variance_floor)
    surface = np.zeros(shape, dtype=np.float64)
    surface[valid] = term_a[valid] / (st.std * np.sqrt(denom_sq[valid]))
    np.clip(surface, -1.0, 1.0, out=surface)
    return surface


def locate_max(surface: np.ndarray) -> Match:
    """
    Arg-max of the surface. Samples within TIE_TOLERANCE of the maximum are
    tied; ties resolve to the first sample in row-major order.
    """
    if surface.size == 0:
        raise ComputationError("empty correlation surface")
    peak = float(surface.max())
    idx = int(np.flatnonzero(surface.ravel() >= peak - TIE_TOLERANCE)[0])
    y, x = np.unravel_index(idx, surface.shape)
    return Match(x=int(x), y=int(y), score=float(surface[y, x]))


def correlate(
    template: GrayImage,
    search: GrayImage,
    options: Optional[CorrelationOptions] = None,
) -> CorrelationResult:
    """
    Correlate `template` against `search`:

    Args:
        template: grayscale template (must fit inside the search image)
        search: grayscale search image
        options: CorrelationOptions (only variance_floor is used here;
            stretch/pseudocolor are output post-processing)

    Returns:
        CorrelationResult; unpacks as (surface, match).

    Raises:
        InvalidInputError: template larger than the search image / empty image.
        ComputationError: degenerate template statistics or transform failure.
    """
    opts = options or CorrelationOptions()
    tw, th = check_fits(template, search)
    stats = template_stats(template.pixels)

    log.debug(
        "Correlating",
        extra={"extra": {"template": template.to_meta(), "search": search.to_meta(),
                         "mean": stats.mean, "std": stats.std, "n": stats.count}},
    )
    surface = ncc_surface(template.pixels, search.pixels, variance_floor=opts.variance_floor, stats=stats)
    match = locate_max(surface)
    log.info("Best match", extra={"extra": match.to_dict()})
    return CorrelationResult(surface=surface, match=match, stats=stats, template_size=(tw, th))
