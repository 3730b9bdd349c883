"""
CLI commands for Terraform passthrough.

Thin wrappers over ``reconciler.core.services.terraform_commands``.
For every wrapped Terraform command there is a ``<command>-root`` and a
``<command>-module`` variant; trailing arguments go to Terraform as-is.
"""

from __future__ import annotations

import sys

import click

from reconciler.core.services.terraform_commands import COMMANDS_TO_WRAP
from reconciler.ui.cli.helpers import (
    get_runner,
    load_project,
    reported_errors,
    resolve_project_root,
)

_PASSTHROUGH_SETTINGS = {
    "ignore_unknown_options": True,
    "allow_interspersed_args": False,
}


@click.group("terraform")
def terraform() -> None:
    """Terraform — run commands against the root or a module stack."""


def _exit_with(code: int) -> None:
    if code != 0:
        sys.exit(code)


def _make_root_command(command_name: str) -> click.Command:
    @click.command(
        f"{command_name}-root",
        context_settings=_PASSTHROUGH_SETTINGS,
        help=(
            f"Runs terraform {command_name} for the provider root stack, with the "
            "provider variables automatically configured as inputs. Positional "
            "arguments are passed to the command."
        ),
    )
    @click.argument("args", nargs=-1, type=click.UNPROCESSED)
    @click.pass_context
    def command(ctx: click.Context, args: tuple[str, ...]) -> None:
        from reconciler.core.services.terraform_commands import run_root_command

        click.secho(f"Running terraform {command_name} for project root stack", fg="magenta", bold=True)
        with reported_errors():
            code = run_root_command(
                get_runner(ctx), load_project(ctx), resolve_project_root(ctx), command_name, list(args),
            )
        _exit_with(code)

    return command


def _make_module_command(command_name: str) -> click.Command:
    @click.command(
        f"{command_name}-module",
        context_settings=_PASSTHROUGH_SETTINGS,
        help=(
            f"Runs terraform {command_name} for the specified module, with the module "
            "variables automatically configured as inputs. Use the module name as "
            "first argument, followed by any arguments you want to pass to the command."
        ),
    )
    @click.argument("args", nargs=-1, type=click.UNPROCESSED)
    @click.pass_context
    def command(ctx: click.Context, args: tuple[str, ...]) -> None:
        from reconciler.core.services.terraform_commands import run_module_command

        module_name = args[0] if args else ""
        click.secho(f"Running terraform {command_name} for module {module_name}", fg="magenta", bold=True)
        with reported_errors():
            code = run_module_command(
                get_runner(ctx), load_project(ctx), resolve_project_root(ctx), command_name, list(args),
            )
        _exit_with(code)

    return command


for _name in COMMANDS_TO_WRAP:
    terraform.add_command(_make_root_command(_name))
    terraform.add_command(_make_module_command(_name))
