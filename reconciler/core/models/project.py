"""
Project model — the root identity of a reconciled project.

Loaded from project.yml. Declares the project-level Terraform provider
(version, optional init root, shared variables) and the modules that
carry their own Terraform stacks.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator

TERRAFORM_TYPE = "terraform"


class TerraformProviderConfig(BaseModel):
    """Project-level Terraform settings."""

    version: str = "1.5.7"
    init_root: str | None = None
    auto_apply: bool = False
    variables: dict[str, Any] = Field(default_factory=dict)


class ModuleRef(BaseModel):
    """A module declared in project.yml.

    ``version`` falls back to the provider version when the loader
    builds a stack spec for the module.
    """

    name: str
    path: str
    type: str = TERRAFORM_TYPE
    compatible_types: list[str] = Field(default_factory=list)
    root: str = "."
    version: str | None = None
    auto_apply: bool = False
    variables: dict[str, Any] = Field(default_factory=dict)
    dependencies: list[str] = Field(default_factory=list)
    description: str = ""

    @model_validator(mode="after")
    def _default_compatible_types(self) -> ModuleRef:
        if not self.compatible_types:
            self.compatible_types = [self.type]
        return self

    def is_compatible(self, type_name: str) -> bool:
        return type_name in self.compatible_types


class Project(BaseModel):
    """Root project identity — loaded from project.yml."""

    version: int = 1

    name: str
    description: str = ""

    terraform: TerraformProviderConfig = Field(default_factory=TerraformProviderConfig)
    modules: list[ModuleRef] = Field(default_factory=list)

    def get_module(self, name: str) -> ModuleRef | None:
        """Look up a module reference by name."""
        for mod in self.modules:
            if mod.name == name:
                return mod
        return None

    def terraform_modules(self) -> list[ModuleRef]:
        """Modules that can be handled as Terraform stacks."""
        return [m for m in self.modules if m.is_compatible(TERRAFORM_TYPE)]
