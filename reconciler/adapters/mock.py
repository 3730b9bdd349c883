"""
Mock runner — test double for the Terraform process contract.

Returns canned results per subcommand (``validate``, ``plan`` ...)
without touching a real binary. Responses queue up: each call to a
subcommand consumes the next queued result, and the last one sticks.
Every call is recorded in ``call_log``.
"""

from __future__ import annotations

import io
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from reconciler.adapters.base import ProcessRunner
from reconciler.core.exceptions import StackRuntimeError
from reconciler.core.models.stack import ProcessResult


@dataclass
class RecordedCall:
    """One invocation received by the mock."""

    method: str
    args: list[str]
    cwd: Path
    version: str
    timeout: float | None = None
    ignore_error: bool = False

    @property
    def command(self) -> str:
        return self.args[0] if self.args else ""


@dataclass
class FakeChildProcess:
    """A finished child process whose streams replay canned text."""

    stdout_text: str = ""
    stderr_text: str = ""
    exit_code: int = 0
    stdout: io.StringIO | None = field(init=False)
    stderr: io.StringIO | None = field(init=False)

    def __post_init__(self) -> None:
        self.stdout = io.StringIO(self.stdout_text)
        self.stderr = io.StringIO(self.stderr_text)

    def wait(self, timeout: float | None = None) -> int:
        return self.exit_code


class MockRunner(ProcessRunner):
    """Configurable fake runner for tests."""

    def __init__(self, default_stdout: str = ""):
        self._default = ProcessResult(exit_code=0, stdout=default_stdout)
        self._responses: dict[str, list[ProcessResult]] = {}
        self._children: list[FakeChildProcess] = []
        self._spawn_error: OSError | None = None
        self._attached_exit_code = 0
        self._call_log: list[RecordedCall] = []

    @property
    def name(self) -> str:
        return "terraform"

    @property
    def call_log(self) -> list[RecordedCall]:
        return self._call_log

    def calls(self, command: str) -> list[RecordedCall]:
        """All recorded calls for one subcommand."""
        return [c for c in self._call_log if c.command == command]

    def call_count(self, command: str) -> int:
        return len(self.calls(command))

    # ── Configuration ──────────────────────────────────────────────

    def set_result(self, command: str, exit_code: int = 0, stdout: str = "", stderr: str = "") -> None:
        """Queue a captured result for a subcommand."""
        self._responses.setdefault(command, []).append(
            ProcessResult(exit_code=exit_code, stdout=stdout, stderr=stderr)
        )

    def set_json(self, command: str, body: Any, exit_code: int = 0) -> None:
        """Queue a JSON body for a subcommand."""
        self.set_result(command, exit_code=exit_code, stdout=json.dumps(body))

    def set_child(self, stdout: str = "", stderr: str = "", exit_code: int = 0) -> None:
        """Queue a child process for the next spawn()."""
        self._children.append(FakeChildProcess(stdout, stderr, exit_code))

    def set_spawn_error(self, error: OSError) -> None:
        self._spawn_error = error

    def set_attached_exit_code(self, code: int) -> None:
        self._attached_exit_code = code

    def reset(self) -> None:
        """Clear call log and configured responses."""
        self._call_log.clear()
        self._responses.clear()
        self._children.clear()
        self._spawn_error = None

    # ── ProcessRunner ──────────────────────────────────────────────

    def exec(
        self,
        args: list[str],
        *,
        cwd: Path,
        version: str,
        ignore_error: bool = False,
        timeout: float | None = None,
    ) -> ProcessResult:
        call = RecordedCall("exec", list(args), Path(cwd), version, timeout, ignore_error)
        self._call_log.append(call)

        queued = self._responses.get(call.command)
        if queued:
            result = queued.pop(0) if len(queued) > 1 else queued[0]
        else:
            result = self._default

        if result.exit_code != 0 and not ignore_error:
            raise StackRuntimeError(
                f"`terraform {' '.join(args)}` failed (exit {result.exit_code})",
                {"stdout": result.stdout, "stderr": result.stderr, "code": result.exit_code},
            )
        return result

    def spawn(self, args: list[str], *, cwd: Path, version: str) -> FakeChildProcess:
        self._call_log.append(RecordedCall("spawn", list(args), Path(cwd), version))
        if self._spawn_error is not None:
            raise self._spawn_error
        if self._children:
            return self._children.pop(0)
        return FakeChildProcess()

    def spawn_and_wait(self, args: list[str], *, cwd: Path, version: str) -> int:
        self._call_log.append(RecordedCall("spawn_and_wait", list(args), Path(cwd), version))
        return self._attached_exit_code
