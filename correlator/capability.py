from __future__ import annotations

"""
Startup check of the numeric/transform backend.

Scores span [-1, 1] and are built from differences of large sums, so we need
full float64 samples and a float64 real FFT round-trip that is accurate. The
image codecs must also be present in the OpenCV build.
"""

from typing import Dict

import cv2
import numpy as np

from common.errors import UnsupportedEnvironmentError
from common.logging_setup import get_logger


log = get_logger("correlator.capability")

MIN_NUMPY = (1, 17)          # numpy.fft with rfft2/irfft2 `s=` semantics we rely on
_ROUNDTRIP_TOL = 1e-9


def _version_tuple(v: str) -> tuple:
    out = []
    for part in v.split(".")[:2]:
        digits = "".join(ch for ch in part if ch.isdigit())
        out.append(int(digits) if digits else 0)
    return tuple(out)


def check_capabilities() -> Dict[str, str]:
    """
    Fail fast with UnsupportedEnvironmentError when the backend cannot
    represent full-precision samples or run the transform we need.

    Returns a small dict describing the backend (logged by the CLI).
    """
    if _version_tuple(np.__version__) < MIN_NUMPY:
        raise UnsupportedEnvironmentError("numpy>=%d.%d" % MIN_NUMPY, f"found {np.__version__}")

    finfo = np.finfo(np.float64)
    if finfo.bits != 64 or finfo.eps > 1e-15:
        raise UnsupportedEnvironmentError("float64 samples", f"eps={finfo.eps}")

    # forward/inverse real transform on an odd-sized sample
    rng = np.random.default_rng(0)
    sample = rng.random((7, 5))
    try:
        back = np.fft.irfft2(np.fft.rfft2(sample), s=sample.shape)
    except Exception as exc:  # backend-specific failures
        raise UnsupportedEnvironmentError("float64 FFT", str(exc)) from exc
    err = float(np.max(np.abs(back - sample)))
    if back.dtype != np.float64 or not err < _ROUNDTRIP_TOL:
        raise UnsupportedEnvironmentError("float64 FFT", f"round-trip error {err:.3g}")

    for fn in ("imread", "imencode", "haveImageWriter", "cvtColor", "rectangle"):
        if not hasattr(cv2, fn):
            raise UnsupportedEnvironmentError(f"cv2.{fn}", f"OpenCV {getattr(cv2, '__version__', '?')}")

    info = {"numpy": np.__version__, "opencv": cv2.__version__, "fft_roundtrip_err": f"{err:.3g}"}
    log.debug("Backend capability check passed", extra={"extra": info})
    return info
