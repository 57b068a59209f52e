from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Sequence, Tuple

import cv2
import numpy as np

from common.errors import InvalidInputError
from common.logging_setup import get_logger


log = get_logger("correlator.output")

# Published files get the usual 0666 & ~umask mode, not mkstemp's 0600.
_UMASK = os.umask(0)
os.umask(_UMASK)

ALPHA_FORMATS = (".png", ".tif", ".tiff", ".webp")
DEEP_FORMATS = (".png", ".tif", ".tiff")


def check_destination(path: str, *, alpha: bool = False, deep: bool = False) -> str:
    """
    Validate an output path before any work is done: directory must exist,
    and the extension must be encodable (with alpha / 16 bit when needed).
    Returns the lower-cased extension.
    """
    p = Path(path)
    ext = p.suffix.lower()
    if not ext:
        raise InvalidInputError("output file needs an image extension (e.g. .png)", path=path)
    parent = p.parent if str(p.parent) else Path(".")
    if not parent.is_dir():
        raise InvalidInputError(f"output directory {str(parent)!r} does not exist", path=path)
    if not cv2.haveImageWriter(str(p)):
        raise InvalidInputError(f"no image writer for '{ext}'", path=path)
    if alpha and ext not in ALPHA_FORMATS:
        raise InvalidInputError(f"'{ext}' cannot store transparency; use one of {ALPHA_FORMATS}", path=path)
    if deep and ext not in DEEP_FORMATS:
        raise InvalidInputError(f"'{ext}' cannot store 16-bit samples; use one of {DEEP_FORMATS}", path=path)
    return ext


def encode_image(path: str, img: np.ndarray) -> bytes:
    ext = Path(path).suffix.lower()
    try:
        ok, buf = cv2.imencode(ext, img)
    except cv2.error as exc:
        raise InvalidInputError(f"failed to encode image as '{ext}': {exc}", path=path) from exc
    if not ok:
        raise InvalidInputError(f"failed to encode image as '{ext}'", path=path)
    return buf.tobytes()


@contextmanager
def staged_file(path: str) -> Iterator[Path]:
    """
    Yields a temporary sibling of `path`; on clean exit it is renamed onto
    `path`, on any exception it is removed and `path` is left untouched.
    """
    p = Path(path)
    fd, tmp = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".part", dir=str(p.parent if str(p.parent) else "."))
    os.close(fd)
    tmp_path = Path(tmp)
    try:
        yield tmp_path
        os.chmod(tmp_path, 0o666 & ~_UMASK)
        os.replace(tmp_path, p)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def write_images(items: Sequence[Tuple[str, np.ndarray]]) -> List[str]:
    """
    Encode every image first, then publish them. Nothing is written unless
    every item encodes successfully.
    """
    encoded = [(path, encode_image(path, img)) for path, img in items]
    written: List[str] = []
    for path, data in encoded:
        with staged_file(path) as tmp:
            tmp.write_bytes(data)
        written.append(path)
        log.info("Wrote output", extra={"extra": {"path": path, "bytes": len(data)}})
    return written
