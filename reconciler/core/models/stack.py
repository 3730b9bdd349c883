"""
Stack models — what a reconcilable unit is, and what we learn about it.

A stack is one Terraform root (the project's init root, or a module's
root) pinned to a Terraform version. The models here are transient: they
are built per reconciliation call and never persisted. The only durable
state is whatever Terraform itself keeps on disk, which we observe but
never model.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field


class StackSpec(BaseModel):
    """One reconcilable unit: a root directory plus its declared inputs."""

    model_config = ConfigDict(frozen=True)

    name: str = "root"
    root: Path
    version: str
    variables: dict[str, Any] = Field(default_factory=dict)
    auto_apply: bool = False
    dependencies: list[str] = Field(default_factory=list)


class StackStatus(BaseModel):
    """Externally visible result of a status check.

    ``outputs`` is empty whenever the stack state could not be read.
    """

    ready: bool
    outputs: dict[str, Any] = Field(default_factory=dict)


class Diagnostic(BaseModel):
    """A single entry of ``terraform validate -json`` diagnostics."""

    severity: str = "error"
    summary: str = ""
    detail: str | None = None

    def format(self) -> str:
        severity = self.severity[:1].upper() + self.severity[1:].lower()
        return f"{severity}: {self.summary}\n{self.detail or ''}"


class ValidationResult(BaseModel):
    """Decoded body of ``terraform validate -json``."""

    valid: bool
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @property
    def summaries(self) -> list[str]:
        return [d.summary for d in self.diagnostics]


@dataclass(frozen=True)
class ProcessResult:
    """Captured result of a non-interactive process run."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""


# ── Plan outcome (tagged union over the detailed exit code) ────────


@dataclass(frozen=True)
class UpToDate:
    """Plan exit code 0: no changes."""

    plan: ProcessResult


@dataclass(frozen=True)
class Errored:
    """Plan exit code 1: Terraform reported an error."""

    plan: ProcessResult


@dataclass(frozen=True)
class Drifted:
    """Plan exit code 2: changes are pending."""

    plan: ProcessResult


PlanOutcome = Union[UpToDate, Errored, Drifted]


@dataclass(frozen=True)
class Readiness:
    """What the auto-apply policy decided for a plan outcome."""

    ready: bool
    fetch_outputs: bool = False
    warn: bool = False
