from __future__ import annotations

"""
End-to-end correlator run: load -> correlate -> post-process -> render -> write.

Examples:
  python -m correlator template.png search.png corr.png
  python -m correlator -s -p template.png search.png corr.png match.png
  python -m correlator -m overlay --config config/params.yaml template.png search.png corr.png match.png
"""

import argparse
import os
import sys
from typing import List, Optional, Sequence

from common.errors import CorrelatorError, InvalidInputError
from common.logging_setup import get_logger, setup_logging
from common.types import CorrelationResult, Match
from common.utils import clamp, format_size, timer_ms
from correlator.capability import check_capabilities
from correlator.config import Settings, apply_overrides, load_settings, RENDER_MODES, OUTPUT_DEPTHS
from correlator.correlate import correlate
from correlator.output import check_destination, write_images
from correlator.postprocess import render_surface
from correlator.preprocess import load_gray
from correlator.render import render_match


log = get_logger("correlator")

PROG = "normxcorr"


def _same_file(a: str, b: str) -> bool:
    return os.path.abspath(a) == os.path.abspath(b)


def _check_outputs(settings: Settings, inputs: Sequence[str], corr_out: str, match_out: Optional[str]) -> None:
    outs = [corr_out] + ([match_out] if match_out else [])
    for out in outs:
        if any(_same_file(out, src) for src in inputs):
            raise InvalidInputError("output would overwrite an input image", path=out)
    if match_out and _same_file(corr_out, match_out):
        raise InvalidInputError("correlation and match outputs must be different files", path=match_out)

    check_destination(corr_out, deep=settings.correlation.depth == 16)
    if match_out:
        check_destination(match_out, alpha=settings.render.mode == "overlay")


def run(
    template_path: str,
    search_path: str,
    corr_out: str,
    match_out: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> CorrelationResult:
    """
    Execute one correlation and write the requested outputs.

    All validation (backend, options, destinations, inputs) happens before
    anything is written; outputs are published only after every stage succeeded.

    Raises:
        InvalidInputError, UnsupportedEnvironmentError, ComputationError
    """
    S = settings or Settings()
    check_capabilities()
    _check_outputs(S, (template_path, search_path), corr_out, match_out)

    template = load_gray(template_path)
    search = load_gray(search_path)
    log.info(
        "Loaded images",
        extra={"extra": {"template": format_size((template.width, template.height)),
                         "search": format_size((search.width, search.height))}},
    )

    result, dt_ms = timer_ms(correlate)(template, search, S.correlation)
    log.info("Correlation done", extra={"extra": {"latency_ms": int(dt_ms), **result.match.to_dict()}})

    items = [(corr_out, render_surface(result.surface, S.correlation))]
    if match_out:
        items.append((match_out, render_match(search, template, result.match, S.render)))
    write_images(items)
    return result


def format_match(match: Match) -> str:
    score = clamp(match.score, 0.0, 1.0)
    return f"Match Coords: ({match.x},{match.y}) And Score In Range 0 to 1: ({score:.6f})"


class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors exit with status 1 like every other failure."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    ap = _ArgumentParser(
        prog=PROG,
        description="Normalized cross-correlation template matching (frequency domain)",
    )
    ap.add_argument("-s", "--stretch", action="store_true", help="Stretch the surface so its maximum hits full range")
    ap.add_argument("-p", "--pseudocolor", action="store_true", help="Color the surface with a violet..red gradient")
    ap.add_argument("-m", "--mode", choices=RENDER_MODES, default=None, help="Match file rendering (default: draw)")
    ap.add_argument("-c", "--color", default=None, help="Rectangle color for draw mode (default: black)")
    ap.add_argument("--depth", type=int, choices=OUTPUT_DEPTHS, default=None, help="Bit depth of the surface file")
    ap.add_argument("--config", default=None, help="YAML config (see config/params.yaml)")
    ap.add_argument("--log-level", default=None, help="DEBUG/INFO/WARNING/ERROR")
    ap.add_argument("template", help="Small image to search for")
    ap.add_argument("search", help="Larger image to search in")
    ap.add_argument("correlation_out", help="Correlation surface output file")
    ap.add_argument("match_out", nargs="?", default=None, help="Optional annotated match output file")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        S = apply_overrides(
            load_settings(args.config),
            stretch=args.stretch,
            pseudocolor=args.pseudocolor,
            depth=args.depth,
            mode=args.mode,
            color=args.color,
            log_level=args.log_level,
        )
        setup_logging(S.log_level)
        result = run(args.template, args.search, args.correlation_out, args.match_out, S)
    except CorrelatorError as exc:
        log.debug("Run failed", exc_info=True)
        print(f"{PROG}: error: {exc}", file=sys.stderr)
        return 1
    print(format_match(result.match))
    return 0


if __name__ == "__main__":
    sys.exit(main())
