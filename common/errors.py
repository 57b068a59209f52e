from __future__ import annotations

"""Exception taxonomy shared by the correlator packages."""

from typing import Optional


class CorrelatorError(Exception):
    """Base exception for all correlator failures (CLI maps these to exit code 1)."""


class InvalidInputError(CorrelatorError, ValueError):
    """
    Missing/unreadable file, template larger than the search image,
    or a malformed option value.
    """

    def __init__(self, message: str, *, path: Optional[str] = None):
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


class UnsupportedEnvironmentError(CorrelatorError, RuntimeError):
    """The numeric / transform backend lacks a capability we depend on."""

    def __init__(self, capability: str, detail: Optional[str] = None):
        self.capability = capability
        message = f"required capability unavailable: {capability}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class ComputationError(CorrelatorError, ArithmeticError):
    """Degenerate statistics or a failed transform step."""
