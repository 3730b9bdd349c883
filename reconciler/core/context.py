"""
Project context — the single source of truth for "what project are we working on."

The root is set ONCE at startup by the CLI (``main.py``) and read by
anything that needs to resolve paths relative to the project.

    - CLI:   main.py  → context.set_project_root(root)
    - Tests: set it directly, or leave unset

get_project_root() returns None when unset.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


_project_root: Optional[Path] = None


def set_project_root(root: Path) -> None:
    """Register the project root for the current process."""
    global _project_root
    _project_root = root


def get_project_root() -> Optional[Path]:
    """Return the current project root, or None if not yet set."""
    return _project_root
