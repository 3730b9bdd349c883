"""
Terraform CLI runner — the real ``ProcessRunner`` backed by subprocess.

This is the single place where the reconciler starts ``terraform``
processes. Binary lookup for a requested version, in order:

    1. ``RECONCILER_TERRAFORM_BIN`` env var (explicit override)
    2. ``terraform-<version>`` on PATH (side-by-side installs)
    3. ``terraform`` on PATH

Downloading binaries is not this module's job.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import subprocess
import time
from pathlib import Path

from reconciler.adapters.base import ProcessRunner
from reconciler.core.exceptions import PluginError, StackRuntimeError
from reconciler.core.models.stack import ProcessResult

logger = logging.getLogger(__name__)

BINARY_ENV_VAR = "RECONCILER_TERRAFORM_BIN"


class TerraformCli(ProcessRunner):
    """Run Terraform commands for a given version."""

    def __init__(self, binary: str | None = None):
        self._binary = binary

    @property
    def name(self) -> str:
        return "terraform"

    # ── Binary resolution ──────────────────────────────────────────

    def resolve_binary(self, version: str) -> str:
        """Find the executable to use for ``version``.

        Raises:
            PluginError: no matching binary was found.
        """
        explicit = self._binary or os.environ.get(BINARY_ENV_VAR)
        if explicit:
            return explicit

        for candidate in (f"terraform-{version}", "terraform"):
            found = shutil.which(candidate)
            if found:
                return found

        raise PluginError(
            f"Could not find a terraform binary for version {version}. "
            f"Install terraform or set {BINARY_ENV_VAR}.",
            {"version": version},
        )

    def installed_version(self, version: str) -> str | None:
        """Version reported by the resolved binary, or None if unavailable."""
        try:
            binary = self.resolve_binary(version)
            result = subprocess.run(
                [binary, "version", "-json"],
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=10,
            )
        except (PluginError, OSError, subprocess.TimeoutExpired):
            return None

        if result.returncode != 0:
            return None
        try:
            return json.loads(result.stdout).get("terraform_version")
        except json.JSONDecodeError:
            # Very old binaries don't support -json
            first_line = result.stdout.strip().split("\n")[0]
            return first_line.removeprefix("Terraform v") or None

    def is_available(self, version: str) -> bool:
        return self.installed_version(version) is not None

    # ── Execution ──────────────────────────────────────────────────

    def exec(
        self,
        args: list[str],
        *,
        cwd: Path,
        version: str,
        ignore_error: bool = False,
        timeout: float | None = None,
    ) -> ProcessResult:
        cmd = [self.resolve_binary(version), *args]
        logger.debug("Executing: %s (cwd=%s)", " ".join(cmd), cwd)
        start = time.monotonic()

        try:
            completed = subprocess.run(
                cmd,
                cwd=str(cwd),
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise StackRuntimeError(
                f"`terraform {' '.join(args)}` timed out ({timeout}s)",
                {"args": args, "timeout": timeout},
            ) from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.debug(
            "terraform %s exited %d in %dms", args[0] if args else "", completed.returncode, elapsed_ms,
        )
        result = ProcessResult(
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )

        if result.exit_code != 0 and not ignore_error:
            raise StackRuntimeError(
                f"`terraform {' '.join(args)}` failed (exit {result.exit_code}):\n{result.stderr}",
                {"stdout": result.stdout, "stderr": result.stderr, "code": result.exit_code},
            )
        return result

    def spawn(self, args: list[str], *, cwd: Path, version: str) -> subprocess.Popen[str]:
        cmd = [self.resolve_binary(version), *args]
        logger.debug("Spawning: %s (cwd=%s)", " ".join(cmd), cwd)
        return subprocess.Popen(
            cmd,
            cwd=str(cwd),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            encoding="utf-8",
            errors="replace",
        )

    def spawn_and_wait(self, args: list[str], *, cwd: Path, version: str) -> int:
        cmd = [self.resolve_binary(version), *args]
        logger.debug("Running attached: %s (cwd=%s)", " ".join(cmd), cwd)
        # No pipes: the child inherits our terminal (colors, prompts).
        return subprocess.call(cmd, cwd=str(cwd))
