"""
Process runner base — the contract between the reconciler and the tool.

The reconciliation services only ever talk to Terraform through this
interface, never through ``subprocess`` directly. That keeps the
exit-code and JSON interpretation testable: inject a runner that returns
canned results and no binary is needed.

Four ways to run a command:
    exec()            capture stdout/stderr, return a ProcessResult
    json()            exec() + decode stdout as JSON
    spawn()           start a live child and hand back its handle
    spawn_and_wait()  attach to the terminal, return the exit code
"""

from __future__ import annotations

import json as _json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, Any, Protocol

from reconciler.core.exceptions import PluginError
from reconciler.core.models.stack import ProcessResult


class ChildProcess(Protocol):
    """The slice of ``subprocess.Popen`` the apply executor relies on."""

    stdout: IO[str] | None
    stderr: IO[str] | None

    def wait(self, timeout: float | None = None) -> int: ...


class ProcessRunner(ABC):
    """Abstract base class for external tool runners.

    Args passed to every method exclude the binary itself; the runner
    resolves which binary to use from ``version``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The tool identifier (e.g. 'terraform')."""

    @abstractmethod
    def exec(
        self,
        args: list[str],
        *,
        cwd: Path,
        version: str,
        ignore_error: bool = False,
        timeout: float | None = None,
    ) -> ProcessResult:
        """Run the tool and capture its output.

        Raises:
            StackRuntimeError: non-zero exit and ``ignore_error`` is False,
                or the timeout expired.
        """

    @abstractmethod
    def spawn(self, args: list[str], *, cwd: Path, version: str) -> ChildProcess:
        """Start the tool as a live child with piped stdout/stderr.

        Raises:
            OSError: the process could not be started.
        """

    @abstractmethod
    def spawn_and_wait(self, args: list[str], *, cwd: Path, version: str) -> int:
        """Run the tool attached to the current terminal. Returns the exit code."""

    def json(
        self,
        args: list[str],
        *,
        cwd: Path,
        version: str,
        ignore_error: bool = False,
        timeout: float | None = None,
    ) -> Any:
        """Run the tool and decode its stdout as JSON."""
        result = self.exec(
            args, cwd=cwd, version=version, ignore_error=ignore_error, timeout=timeout,
        )
        try:
            return _json.loads(result.stdout)
        except _json.JSONDecodeError as e:
            raise PluginError(
                f"Could not parse JSON output from `{self.name} {' '.join(args)}`: {e}",
                {
                    "args": args,
                    "exitCode": result.exit_code,
                    "stdout": result.stdout,
                    "stderr": result.stderr,
                },
            ) from e

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
