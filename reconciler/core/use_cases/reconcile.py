"""
Reconcile use case — validate → plan → (apply) for one stack or a project.

Terraform's own state lock is disabled for plan, so this layer owns the
mutual exclusion: every reconciliation holds a per-root lock for the
whole sequence. Different roots run independently.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from reconciler.adapters.base import ProcessRunner
from reconciler.core.config.loader import module_stack_spec, root_stack_spec
from reconciler.core.exceptions import ConfigurationError
from reconciler.core.models.project import Project
from reconciler.core.models.stack import StackSpec, StackStatus
from reconciler.core.services.terraform_actions import LineCallback, apply_stack
from reconciler.core.services.terraform_ops import (
    DEFAULT_APPLY_COMMAND,
    apply_command_for,
    get_outputs,
    get_stack_status,
)

logger = logging.getLogger(__name__)


class RootLocks:
    """Thread-safe registry of one lock per resolved stack root."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._locks: dict[Path, threading.Lock] = {}

    def for_root(self, root: Path) -> threading.Lock:
        key = Path(root).resolve()
        with self._lock:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]


@dataclass
class ReconcileResult:
    """Outcome of reconciling one stack."""

    name: str
    ready: bool
    applied: bool = False
    outputs: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "ready": self.ready,
            "applied": self.applied,
            "outputs": self.outputs,
        }


def reconcile_stack(
    runner: ProcessRunner,
    spec: StackSpec,
    locks: RootLocks,
    on_line: LineCallback | None = None,
    apply_command: str = DEFAULT_APPLY_COMMAND,
) -> ReconcileResult:
    """Bring one stack up to date where policy allows.

    Not ready + ``auto_apply`` → apply, then read outputs. Not ready
    without ``auto_apply`` only happens when plan reported an error, and
    is returned as-is.
    """
    with locks.for_root(spec.root):
        status: StackStatus = get_stack_status(runner, spec, apply_command)

        if status.ready or not spec.auto_apply:
            return ReconcileResult(name=spec.name, ready=status.ready, outputs=status.outputs)

        logger.info("[%s] Applying to reconcile drift", spec.name)
        apply_stack(runner, spec.root, spec.variables, spec.version, on_line=on_line)
        outputs = get_outputs(runner, spec.version, spec.root)
        return ReconcileResult(name=spec.name, ready=True, applied=True, outputs=outputs)


def order_stacks(specs: list[StackSpec]) -> list[StackSpec]:
    """Sort stacks so every stack comes after its dependencies.

    Dependencies that don't name one of ``specs`` are ignored (they are
    satisfied elsewhere). Declaration order breaks ties.

    Raises:
        ConfigurationError: the dependencies form a cycle.
    """
    by_name = {s.name: s for s in specs}
    ordered: list[StackSpec] = []
    done: set[str] = set()
    visiting: list[str] = []

    def visit(spec: StackSpec) -> None:
        if spec.name in done:
            return
        if spec.name in visiting:
            cycle = visiting[visiting.index(spec.name):] + [spec.name]
            raise ConfigurationError(
                f"Circular dependency between stacks: {' → '.join(cycle)}",
                {"cycle": cycle},
            )
        visiting.append(spec.name)
        for dep in spec.dependencies:
            if dep in by_name:
                visit(by_name[dep])
        visiting.pop()
        done.add(spec.name)
        ordered.append(spec)

    for spec in specs:
        visit(spec)
    return ordered


def project_stack_specs(project: Project, root_dir: Path) -> list[StackSpec]:
    """Root stack (if ``init_root`` is set) followed by module stacks."""
    specs: list[StackSpec] = []
    if project.terraform.init_root:
        specs.append(root_stack_spec(project, root_dir))
    for module in project.terraform_modules():
        specs.append(module_stack_spec(project, module, root_dir))
    return specs


def reconcile_project(
    runner: ProcessRunner,
    project: Project,
    root_dir: Path,
    locks: RootLocks | None = None,
    on_line: LineCallback | None = None,
) -> list[ReconcileResult]:
    """Reconcile every stack of the project, in dependency order.

    Drift warnings name ``apply-root`` for the root stack and
    ``apply-module <name>`` for module stacks. Stops at the first error.
    """
    locks = locks or RootLocks()
    specs = project_stack_specs(project, root_dir)
    root_spec = specs[0] if project.terraform.init_root else None
    results: list[ReconcileResult] = []
    for spec in order_stacks(specs):
        command = apply_command_for(None if spec is root_spec else spec.name)
        results.append(reconcile_stack(runner, spec, locks, on_line=on_line, apply_command=command))
    return results
