from __future__ import annotations
"""
Configuration for a correlator run.

Defaults < YAML file (config/params.yaml layout) < command-line flags.

    correlation: {stretch, pseudocolor, depth, variance_floor}
    render:      {mode, color, thickness}
    logging:     {level}
"""

import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

import yaml

from common.errors import InvalidInputError
from correlator.colors import parse_color


RENDER_MODES = ("draw", "overlay")
OUTPUT_DEPTHS = (8, 16)
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class CorrelationOptions:
    stretch: bool = False
    pseudocolor: bool = False
    depth: int = 8                  # bit depth of the grayscale surface file
    variance_floor: float = 1e-10   # local variance (in [0,1]^2 units) treated as undefined

    def __post_init__(self) -> None:
        if int(self.depth) not in OUTPUT_DEPTHS:
            raise InvalidInputError(f"depth must be one of {OUTPUT_DEPTHS}, got {self.depth!r}")
        if not float(self.variance_floor) >= 0.0:
            raise InvalidInputError(f"variance_floor must be >= 0, got {self.variance_floor!r}")

    @property
    def top(self) -> int:
        """Top of the output range for the surface file."""
        return (1 << int(self.depth)) - 1


@dataclass(frozen=True)
class RenderOptions:
    mode: str = "draw"
    color: str = "black"
    thickness: int = 1

    def __post_init__(self) -> None:
        if self.mode not in RENDER_MODES:
            raise InvalidInputError(f"mode must be one of {RENDER_MODES}, got {self.mode!r}")
        if int(self.thickness) < 1:
            raise InvalidInputError(f"thickness must be >= 1, got {self.thickness!r}")
        parse_color(self.color)


@dataclass(frozen=True)
class Settings:
    correlation: CorrelationOptions = field(default_factory=CorrelationOptions)
    render: RenderOptions = field(default_factory=RenderOptions)
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if str(self.log_level).upper() not in LOG_LEVELS:
            raise InvalidInputError(f"log level must be one of {LOG_LEVELS}, got {self.log_level!r}")


def _load_yaml(path: str) -> Dict:
    if not os.path.isfile(path):
        raise InvalidInputError("config file not found", path=path)
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise InvalidInputError(f"invalid YAML: {exc}", path=path) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidInputError("config root must be a mapping", path=path)
    return data


def _flag(sec: Dict[str, Any], key: str, default: bool) -> bool:
    """YAML booleans only; a quoted "false" is not silently truthy."""
    v = sec.get(key, default)
    if not isinstance(v, bool):
        raise InvalidInputError(f"'{key}' must be true or false, got {v!r}")
    return v


def _section(D: Dict, name: str, allowed: Tuple[str, ...]) -> Dict[str, Any]:
    sec = D.get(name) or {}
    if not isinstance(sec, dict):
        raise InvalidInputError(f"config section '{name}' must be a mapping")
    unknown = sorted(set(sec) - set(allowed))
    if unknown:
        raise InvalidInputError(f"unknown keys in '{name}': {', '.join(unknown)}")
    return sec


def settings_from_dict(D: Dict) -> Settings:
    corr = _section(D, "correlation", ("stretch", "pseudocolor", "depth", "variance_floor"))
    rend = _section(D, "render", ("mode", "color", "thickness"))
    logs = _section(D, "logging", ("level",))
    base = Settings()
    try:
        c = CorrelationOptions(
            stretch=_flag(corr, "stretch", base.correlation.stretch),
            pseudocolor=_flag(corr, "pseudocolor", base.correlation.pseudocolor),
            depth=int(corr.get("depth", base.correlation.depth)),
            variance_floor=float(corr.get("variance_floor", base.correlation.variance_floor)),
        )
        r = RenderOptions(
            mode=str(rend.get("mode", base.render.mode)).lower(),
            color=str(rend.get("color", base.render.color)),
            thickness=int(rend.get("thickness", base.render.thickness)),
        )
    except InvalidInputError:
        raise
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"malformed config value: {exc}") from exc
    return Settings(correlation=c, render=r, log_level=str(logs.get("level", base.log_level)).upper())


def load_settings(path: Optional[str] = None) -> Settings:
    """Settings from `path`, or built-in defaults when no path is given."""
    if path is None:
        return Settings()
    return settings_from_dict(_load_yaml(path))


def apply_overrides(
    s: Settings,
    *,
    stretch: Optional[bool] = None,
    pseudocolor: Optional[bool] = None,
    depth: Optional[int] = None,
    mode: Optional[str] = None,
    color: Optional[str] = None,
    log_level: Optional[str] = None,
) -> Settings:
    """Layer command-line values (None = not given) over loaded settings."""
    corr = s.correlation
    if stretch:
        corr = replace(corr, stretch=True)
    if pseudocolor:
        corr = replace(corr, pseudocolor=True)
    if depth is not None:
        corr = replace(corr, depth=int(depth))
    rend = s.render
    if mode is not None:
        rend = replace(rend, mode=mode.lower())
    if color is not None:
        rend = replace(rend, color=color)
    return Settings(
        correlation=corr,
        render=rend,
        log_level=(log_level or s.log_level).upper(),
    )
