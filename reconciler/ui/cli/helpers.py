"""
Shared helpers for CLI commands — project lookup, runner, error output.
"""

from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import click

from reconciler.adapters.base import ProcessRunner
from reconciler.core.exceptions import ReconcilerError
from reconciler.core.models.project import Project


def resolve_project_root(ctx: click.Context) -> Path:
    """Resolve project root from the registered context, config path, or CWD."""
    from reconciler.core.context import get_project_root

    root = get_project_root()
    if root is not None:
        return root

    config_path: Path | None = ctx.obj.get("config_path")
    if config_path is None:
        from reconciler.core.config.loader import find_project_file

        config_path = find_project_file()
    return config_path.parent.resolve() if config_path else Path.cwd()


def load_project(ctx: click.Context) -> Project:
    from reconciler.core.config.loader import load_project as _load

    return _load(ctx.obj.get("config_path"))


def get_runner(ctx: click.Context) -> ProcessRunner:
    """The runner injected into ``ctx.obj`` (tests), else the real CLI."""
    runner = ctx.obj.get("runner")
    if runner is None:
        from reconciler.adapters.terraform import TerraformCli

        runner = TerraformCli()
        ctx.obj["runner"] = runner
    return runner


def echo_line(line: str) -> None:
    """Live status line for streamed Terraform output."""
    click.secho(f"   → {line}", fg="bright_black")


@contextmanager
def reported_errors() -> Iterator[None]:
    """Print reconciler errors in red and exit 1."""
    try:
        yield
    except ReconcilerError as e:
        click.secho(f"❌ {e.message}", fg="red", err=True)
        sys.exit(1)
