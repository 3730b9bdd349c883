"""
Configuration loader — reads project.yml into domain models.

This is the primary entry point for loading project configuration.
It reads YAML, validates against Pydantic schemas, and returns
typed domain objects. It also turns declared stacks (the provider's
init root, each Terraform module) into ``StackSpec`` objects.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from reconciler.core.exceptions import ConfigurationError
from reconciler.core.models.project import ModuleRef, Project
from reconciler.core.models.stack import StackSpec

logger = logging.getLogger(__name__)

# Default config filename
PROJECT_CONFIG_FILE = "project.yml"


def find_project_file(start_dir: Path | None = None) -> Path | None:
    """Search for project.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to project.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / PROJECT_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_project(path: Path | None = None) -> Project:
    """Load and validate project configuration.

    Args:
        path: Explicit path to project.yml. If None, searches upward.

    Returns:
        Validated Project model.

    Raises:
        ConfigurationError: If the file is missing or invalid.
    """
    if path is None:
        path = find_project_file()

    if path is None:
        raise ConfigurationError(
            f"No {PROJECT_CONFIG_FILE} found. Specify one with --config."
        )

    if not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}", {"path": str(path)})

    logger.debug("Loading project config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a YAML mapping in {path}, got {type(data).__name__}"
        )

    # The YAML may wrap everything under a "project" key or be flat
    project_data = data.get("project", data) if "project" in data else data

    # Merge top-level keys that sit alongside "project"
    for key in ("version", "terraform", "modules"):
        if key in data and key not in project_data:
            project_data[key] = data[key]

    try:
        project = Project.model_validate(project_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid project configuration: {e}") from e

    logger.info("Loaded project '%s' with %d modules", project.name, len(project.modules))
    return project


def project_root(config_path: Path) -> Path:
    """Get the project root directory from a config file path."""
    return config_path.parent.resolve()


# ── Stack specs ─────────────────────────────────────────────────


def get_root(root_dir: Path, project: Project) -> Path:
    """The provider's Terraform root: ``init_root`` or the project root."""
    return (root_dir / (project.terraform.init_root or ".")).resolve()


def root_stack_spec(project: Project, root_dir: Path) -> StackSpec:
    """StackSpec for the provider root stack.

    Raises:
        ConfigurationError: no ``init_root`` is configured.
    """
    provider = project.terraform
    if not provider.init_root:
        raise ConfigurationError(
            "terraform provider does not have an init_root configured",
            {"config": provider.model_dump()},
        )
    return StackSpec(
        name="root",
        root=get_root(root_dir, project),
        version=provider.version,
        variables=provider.variables,
        auto_apply=provider.auto_apply,
    )


def module_stack_spec(project: Project, module: ModuleRef, root_dir: Path) -> StackSpec:
    """StackSpec for a module's own stack."""
    return StackSpec(
        name=module.name,
        root=(root_dir / module.path / module.root).resolve(),
        version=module.version or project.terraform.version,
        variables=module.variables,
        auto_apply=module.auto_apply,
        dependencies=module.dependencies,
    )
