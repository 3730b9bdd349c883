"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from reconciler.adapters.mock import MockRunner
from reconciler.core.models.stack import StackSpec


@pytest.fixture
def mock_runner() -> MockRunner:
    """A runner with no canned responses (everything exits 0, empty stdout)."""
    return MockRunner()


@pytest.fixture
def stack_root(tmp_path: Path) -> Path:
    root = tmp_path / "infra"
    root.mkdir()
    (root / "main.tf").write_text('resource "null_resource" "x" {}\n')
    return root


@pytest.fixture
def make_spec(stack_root: Path):
    """Factory for StackSpecs rooted at ``stack_root``."""

    def _make(**overrides) -> StackSpec:
        fields = {
            "name": "root",
            "root": stack_root,
            "version": "1.5.7",
            "variables": {},
            "auto_apply": False,
        }
        fields.update(overrides)
        return StackSpec(**fields)

    return _make


@pytest.fixture
def project_file(tmp_path: Path) -> Path:
    """A project.yml with a root stack, two terraform modules and a container module."""
    content = textwrap.dedent("""\
        name: test-project
        terraform:
          version: "1.5.7"
          init_root: infra
          auto_apply: true
          variables:
            region: eu-west-1
        modules:
          - name: network
            path: modules/network
            variables:
              cidr: 10.0.0.0/16
          - name: database
            path: modules/database
            version: "1.6.0"
            dependencies: [network]
          - name: api
            path: services/api
            type: container
    """)
    for sub in ("infra", "modules/network", "modules/database", "services/api"):
        (tmp_path / sub).mkdir(parents=True, exist_ok=True)
    config = tmp_path / "project.yml"
    config.write_text(content)
    return config
