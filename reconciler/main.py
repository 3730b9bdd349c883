"""
Stack Reconciler — CLI entrypoint.

Usage:
    reconciler --help
    reconciler status [--module NAME]
    reconciler reconcile [--module NAME]
    reconciler terraform plan-module network -out=plan.bin
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import click

from reconciler import __version__
from reconciler.core.observability.logging_config import (
    LOG_FILE_ENV,
    LOG_FILE_LEVEL_ENV,
    resolve_level,
    setup_logging,
)
from reconciler.ui.cli.helpers import (
    echo_line,
    get_runner,
    load_project,
    reported_errors,
    resolve_project_root,
)


@click.group()
@click.version_option(version=__version__, prog_name="reconciler")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to project.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Stack Reconciler — keep Terraform stacks in line with your project."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    from reconciler.core.config.loader import find_project_file
    from reconciler.core.context import set_project_root

    cfg = ctx.obj["config_path"] or find_project_file()
    set_project_root(cfg.parent.resolve() if cfg else Path.cwd())

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(LOG_FILE_ENV),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_ENV),
        quiet_third_party=not debug,
    )


def _stack_spec(ctx: click.Context, module: str | None):
    from reconciler.core.config.loader import module_stack_spec, root_stack_spec
    from reconciler.core.services.terraform_commands import find_module

    project = load_project(ctx)
    root_dir = resolve_project_root(ctx)
    if module:
        return module_stack_spec(project, find_module(project, module), root_dir)
    return root_stack_spec(project, root_dir)


@cli.command()
@click.option("--module", "-m", "module", default=None, help="Module stack (default: root stack).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, module: str | None, as_json: bool) -> None:
    """Show whether a stack is ready, with its outputs."""
    from reconciler.core.services.terraform_ops import apply_command_for, get_stack_status

    with reported_errors():
        spec = _stack_spec(ctx, module)
        result = get_stack_status(get_runner(ctx), spec, apply_command_for(module))

    if as_json:
        click.echo(json.dumps(result.model_dump(), indent=2, default=str))
        return

    if result.ready:
        click.secho(f"✅ {spec.name}: ready", fg="green", bold=True)
    else:
        click.secho(f"⏳ {spec.name}: not ready", fg="yellow", bold=True)
    _echo_outputs(result.outputs)
    click.echo()


@cli.command()
@click.option("--module", "-m", "module", default=None, help="Only this module's stack.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def reconcile(ctx: click.Context, module: str | None, as_json: bool) -> None:
    """Validate, plan and (with auto_apply) apply project stacks."""
    from reconciler.core.services.terraform_ops import apply_command_for
    from reconciler.core.use_cases.reconcile import (
        RootLocks,
        reconcile_project,
        reconcile_stack,
    )

    on_line = None if as_json else echo_line
    with reported_errors():
        runner = get_runner(ctx)
        if module:
            spec = _stack_spec(ctx, module)
            results = [reconcile_stack(
                runner, spec, RootLocks(), on_line=on_line, apply_command=apply_command_for(module),
            )]
        else:
            results = reconcile_project(
                runner, load_project(ctx), resolve_project_root(ctx), on_line=on_line,
            )

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in results], indent=2, default=str))
        return

    for r in results:
        if r.applied:
            click.secho(f"   🚀 {r.name}: applied", fg="green")
        elif r.ready:
            click.secho(f"   ✓ {r.name}: ready", fg="green")
        else:
            click.secho(f"   ✗ {r.name}: not ready", fg="red")
    click.echo()


@cli.command()
@click.option("--module", "-m", "module", default=None, help="Module stack (default: root stack).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def outputs(ctx: click.Context, module: str | None, as_json: bool) -> None:
    """Print the outputs of a stack."""
    from reconciler.core.services.terraform_ops import get_outputs

    with reported_errors():
        spec = _stack_spec(ctx, module)
        values = get_outputs(get_runner(ctx), spec.version, spec.root)

    if as_json:
        click.echo(json.dumps(values, indent=2, default=str))
        return
    _echo_outputs(values)


def _echo_outputs(values: dict) -> None:
    if not values:
        click.echo("   (no outputs)")
        return
    for key, value in values.items():
        click.echo(f"   {key:<30} = {json.dumps(value, default=str)}")


# ── Register sub-command groups from reconciler/ui/cli/ ───────────

from reconciler.ui.cli.terraform import terraform

cli.add_command(terraform)


if __name__ == "__main__":
    cli()
