"""
Terraform mutating actions — apply.

``terraform apply`` can run for a long time, so it is started as a live
child process instead of a one-shot capture. Its output is tee'd: every
line goes to a live status callback while the full text is kept per
stream for the error report.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Callable

from reconciler.adapters.base import ProcessRunner
from reconciler.core.exceptions import StackRuntimeError
from reconciler.core.services.terraform_vars import prepare_variables

logger = logging.getLogger(__name__)

LineCallback = Callable[[str], None]


@dataclass
class ApplyResult:
    """Full output of a successful apply."""

    stdout: str
    stderr: str


def _log_line(line: str) -> None:
    logger.info("→ %s", line)


class _StreamCollector:
    """Reads one stream to the end, forwarding lines and keeping the text."""

    def __init__(self, stream: IO[str], on_line: LineCallback, emit_lock: threading.Lock):
        self._stream = stream
        self._on_line = on_line
        self._emit_lock = emit_lock
        self._chunks: list[str] = []
        self.error: Exception | None = None
        self.thread = threading.Thread(target=self._pump, daemon=True)

    @property
    def text(self) -> str:
        return "".join(self._chunks)

    def start(self) -> None:
        self.thread.start()

    def join(self) -> None:
        self.thread.join()

    def _pump(self) -> None:
        try:
            for chunk in self._stream:
                self._chunks.append(chunk)
                if self.error is not None:
                    continue
                line = chunk.rstrip("\r\n")
                # One status line shared by both streams
                with self._emit_lock:
                    try:
                        self._on_line(line)
                    except Exception as e:
                        # Stop forwarding, keep draining: a full pipe blocks the child
                        self.error = e
        except Exception as e:
            self.error = self.error or e
        finally:
            self._stream.close()


def apply_stack(
    runner: ProcessRunner,
    root: Path,
    variables: dict[str, Any],
    version: str,
    on_line: LineCallback | None = None,
) -> ApplyResult:
    """Run ``terraform apply`` against ``root`` and wait for it to finish.

    Args:
        on_line: Receives every output line (stdout and stderr) as it
            arrives. Defaults to INFO logging.

    Raises:
        StackRuntimeError: apply exited non-zero. ``detail`` carries
            ``stdout``, ``stderr`` and ``code``.
        Exception: whatever ``on_line`` raised, once apply has finished
            and exited 0. Output keeps being read and buffered after the
            callback fails.
        OSError: the process could not be started.
    """
    args = ["apply", "-auto-approve", "-input=false", *prepare_variables(root, variables)]

    proc = runner.spawn(args, cwd=root, version=version)
    logger.info("→ Applying Terraform stack in %s...", root)

    emit = on_line or _log_line
    emit_lock = threading.Lock()
    collectors: dict[str, _StreamCollector] = {}
    for name, stream in (("stdout", proc.stdout), ("stderr", proc.stderr)):
        if stream is not None:
            collectors[name] = _StreamCollector(stream, emit, emit_lock)
            collectors[name].start()

    code = proc.wait()
    for collector in collectors.values():
        collector.join()

    stdout = collectors["stdout"].text if "stdout" in collectors else ""
    stderr = collectors["stderr"].text if "stderr" in collectors else ""
    reader_error = next((c.error for c in collectors.values() if c.error is not None), None)

    if code != 0:
        raise StackRuntimeError(
            f"Error when applying Terraform stack:\n{stderr}",
            {"stdout": stdout, "stderr": stderr, "code": code},
        ) from reader_error
    if reader_error is not None:
        raise reader_error

    logger.info("✅ Terraform stack applied (%s)", root)
    return ApplyResult(stdout=stdout, stderr=stderr)
