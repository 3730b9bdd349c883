"""
Terraform command passthrough — ad-hoc commands against a stack.

Lets an operator run ``terraform <command>`` against the project root
stack or a named module's stack, with that stack's variables already
wired in. The command runs attached to the terminal (colors, prompts);
this is a debugging path, not part of automated reconciliation.
"""

from __future__ import annotations

import logging
from pathlib import Path

from reconciler.adapters.base import ProcessRunner
from reconciler.core.config.loader import module_stack_spec, root_stack_spec
from reconciler.core.exceptions import ParameterError
from reconciler.core.models.project import TERRAFORM_TYPE, ModuleRef, Project
from reconciler.core.services.terraform_vars import prepare_variables

logger = logging.getLogger(__name__)

COMMANDS_TO_WRAP = ("apply", "plan")


def find_module(project: Project, name: str | None) -> ModuleRef:
    """Look up a Terraform-compatible module by name.

    Raises:
        ParameterError: no name, unknown name, or not a Terraform module.
    """
    if not name:
        raise ParameterError("The first command argument must be a module name.", {"name": name})

    module = project.get_module(name)
    if module is None:
        raise ParameterError(f"Could not find module {name}.", {"name": name})

    if not module.is_compatible(TERRAFORM_TYPE):
        raise ParameterError(
            f"Module {name} is not a terraform module.",
            {
                "name": name,
                "type": module.type,
                "compatibleTypes": module.compatible_types,
            },
        )

    return module


def run_root_command(
    runner: ProcessRunner,
    project: Project,
    root_dir: Path,
    command: str,
    args: list[str],
) -> int:
    """Run ``terraform <command> [args...]`` for the provider root stack.

    Returns:
        The exit code of the attached process.

    Raises:
        ConfigurationError: the provider has no ``init_root``.
    """
    spec = root_stack_spec(project, root_dir)
    full_args = [command, *prepare_variables(spec.root, spec.variables), *args]
    logger.info("Running terraform %s for project root stack", command)
    return runner.spawn_and_wait(full_args, cwd=spec.root, version=spec.version)


def run_module_command(
    runner: ProcessRunner,
    project: Project,
    root_dir: Path,
    command: str,
    args: list[str],
) -> int:
    """Run ``terraform <command> [args...]`` for a module's stack.

    ``args[0]`` names the module; the rest is forwarded verbatim.

    Returns:
        The exit code of the attached process.

    Raises:
        ParameterError: see ``find_module``.
    """
    module = find_module(project, args[0] if args else None)
    spec = module_stack_spec(project, module, root_dir)
    full_args = [command, *prepare_variables(spec.root, spec.variables), *args[1:]]
    logger.info("Running terraform %s for module %s", command, module.name)
    return runner.spawn_and_wait(full_args, cwd=spec.root, version=spec.version)
