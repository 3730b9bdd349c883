"""Adapters — process runners for the external tools we drive.

Public re-exports for convenient access.
"""

from reconciler.adapters.base import ChildProcess, ProcessRunner
from reconciler.adapters.mock import MockRunner
from reconciler.adapters.terraform import TerraformCli

__all__ = [
    "ChildProcess",
    "MockRunner",
    "ProcessRunner",
    "TerraformCli",
]
