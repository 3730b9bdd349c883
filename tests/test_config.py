"""
Tests for configuration loading — project.yml parsing and stack specs.
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from reconciler.core.config.loader import (
    find_project_file,
    get_root,
    load_project,
    module_stack_spec,
    project_root,
    root_stack_spec,
)
from reconciler.core.exceptions import ConfigurationError
from reconciler.core.models.project import ModuleRef, Project


class TestFindProjectFile:
    def test_finds_in_parent(self, project_file: Path):
        nested = project_file.parent / "modules" / "network"
        assert find_project_file(nested) == project_file

    def test_missing(self, tmp_path: Path):
        assert find_project_file(tmp_path) is None


class TestLoadProject:
    def test_loads_provider_and_modules(self, project_file: Path):
        project = load_project(project_file)
        assert project.name == "test-project"
        assert project.terraform.init_root == "infra"
        assert project.terraform.auto_apply is True
        assert project.terraform.variables == {"region": "eu-west-1"}
        assert [m.name for m in project.modules] == ["network", "database", "api"]
        assert [m.name for m in project.terraform_modules()] == ["network", "database"]

    def test_wrapped_under_project_key(self, tmp_path: Path):
        config = tmp_path / "project.yml"
        config.write_text(textwrap.dedent("""\
            project:
              name: wrapped
            terraform:
              version: "1.7.0"
        """))
        project = load_project(config)
        assert project.name == "wrapped"
        assert project.terraform.version == "1.7.0"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_project(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        config = tmp_path / "project.yml"
        config.write_text("name: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_project(config)

    def test_not_a_mapping(self, tmp_path: Path):
        config = tmp_path / "project.yml"
        config.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError, match="Expected a YAML mapping"):
            load_project(config)

    def test_schema_error(self, tmp_path: Path):
        config = tmp_path / "project.yml"
        config.write_text("description: no name\n")
        with pytest.raises(ConfigurationError, match="Invalid project configuration"):
            load_project(config)


class TestModuleRef:
    def test_compatible_types_default_to_type(self):
        assert ModuleRef(name="a", path="a").compatible_types == ["terraform"]
        assert ModuleRef(name="b", path="b", type="container").compatible_types == ["container"]

    def test_explicit_compatible_types(self):
        ref = ModuleRef(name="c", path="c", type="custom", compatible_types=["custom", "terraform"])
        assert ref.is_compatible("terraform")


class TestStackSpecs:
    def test_get_root_defaults_to_project_root(self, tmp_path: Path):
        assert get_root(tmp_path, Project(name="p")) == tmp_path.resolve()

    def test_root_stack_spec(self, project_file: Path):
        project = load_project(project_file)
        spec = root_stack_spec(project, project_root(project_file))
        assert spec.name == "root"
        assert spec.root == (project_file.parent / "infra").resolve()
        assert spec.version == "1.5.7"
        assert spec.auto_apply is True
        assert spec.variables == {"region": "eu-west-1"}

    def test_root_stack_spec_requires_init_root(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="init_root"):
            root_stack_spec(Project(name="p"), tmp_path)

    def test_module_stack_spec(self, project_file: Path):
        project = load_project(project_file)
        spec = module_stack_spec(project, project.get_module("database"), project_file.parent)
        assert spec.root == (project_file.parent / "modules" / "database").resolve()
        assert spec.version == "1.6.0"
        assert spec.dependencies == ["network"]
        assert spec.auto_apply is False
