#!/usr/bin/env python3
"""
Write a template/search image pair for trying the correlator by hand.

The search image is a textured field (noise + shapes); the template is cut
from it at --at, so the expected best match is exactly that coordinate.

Examples:
  python scripts/make_demo_images.py --out data/demo
  python scripts/make_demo_images.py --out data/demo --size 640x480 --template 48x32 --at 200,120
  python -m correlator -s data/demo/template.png data/demo/search.png data/demo/corr.png data/demo/match.png
"""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Tuple

import cv2
import numpy as np


def parse_pair(s: str, sep: str) -> Tuple[int, int]:
    parts = s.lower().replace(sep, ",").split(",")
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"expected A{sep}B, got {s!r}")
    return int(parts[0]), int(parts[1])


def synthesize_search(size: Tuple[int, int], seed: int = 1234) -> np.ndarray:
    """Textured BGR field: smooth noise, rectangles, circles."""
    w, h = size
    rng = np.random.default_rng(seed)
    base = rng.normal(128, 25, size=(h, w, 3)).clip(0, 255).astype(np.uint8)
    base = cv2.GaussianBlur(base, (0, 0), 1.0)

    for _ in range(max(4, (w * h) // 8000)):
        x1, y1 = int(rng.integers(0, w)), int(rng.integers(0, h))
        x2, y2 = int(rng.integers(0, w)), int(rng.integers(0, h))
        color = tuple(int(c) for c in rng.integers(30, 225, size=3))
        cv2.rectangle(base, (min(x1, x2), min(y1, y2)), (max(x1, x2), max(y1, y2)), color, 2)
    for _ in range(max(3, (w * h) // 12000)):
        c = (int(rng.integers(0, w)), int(rng.integers(0, h)))
        r = int(rng.integers(4, max(5, min(w, h) // 8)))
        cv2.circle(base, c, r, (240, 240, 240), 1)
    return base


def main() -> None:
    ap = argparse.ArgumentParser(description="Synthesize a template/search pair")
    ap.add_argument("--out", default="data/demo", help="Output directory")
    ap.add_argument("--size", type=lambda s: parse_pair(s, "x"), default=(320, 240), help="Search WxH")
    ap.add_argument("--template", type=lambda s: parse_pair(s, "x"), default=(32, 24), help="Template WxH")
    ap.add_argument("--at", type=lambda s: parse_pair(s, ","), default=(150, 90), help="Template top-left x,y")
    ap.add_argument("--seed", type=int, default=1234, help="Seed for the generator")
    args = ap.parse_args()

    (W, H), (w, h), (x, y) = args.size, args.template, args.at
    if x < 0 or y < 0 or x + w > W or y + h > H:
        ap.error("template region must lie inside the search image")

    out = Path(args.out)
    out.mkdir(parents=True, exist_ok=True)
    search = synthesize_search((W, H), seed=args.seed)
    template = search[y : y + h, x : x + w].copy()

    cv2.imwrite(str(out / "search.png"), search)
    cv2.imwrite(str(out / "template.png"), template)
    print(f"[ok] wrote {out / 'search.png'} ({W}x{H}) and {out / 'template.png'} ({w}x{h}); expect match at ({x},{y})")


if __name__ == "__main__":
    main()
