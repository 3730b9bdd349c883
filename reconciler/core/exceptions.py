"""
Error taxonomy for stack reconciliation.

Every error carries a human message plus a ``detail`` dict with the raw
material an operator needs to diagnose it (exit codes, captured output,
the offending config).  The CLI catches ``ReconcilerError`` at the edge;
nothing in the core swallows these.
"""

from __future__ import annotations

from typing import Any


class ReconcilerError(Exception):
    """Base exception for the reconciler."""

    def __init__(self, message: str, detail: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = detail or {}

    def __str__(self) -> str:
        return self.message


class ConfigurationError(ReconcilerError):
    """Stack or project configuration is invalid or incomplete.

    The user has to fix their configuration. Not retried.
    """


class ParameterError(ReconcilerError):
    """An operator-supplied command invocation is malformed."""


class PluginError(ReconcilerError):
    """The external tool broke its process contract.

    Raised for exit codes outside the understood set and for output
    that cannot be decoded. Treated as an integration defect.
    """


class StackRuntimeError(ReconcilerError, RuntimeError):
    """An external command failed after actually running.

    Carries ``stdout``, ``stderr`` and the exit ``code`` in ``detail``.
    """
