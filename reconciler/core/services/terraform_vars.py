"""
Terraform variable materialization.

Turns a variable map into the arguments that make Terraform read it,
via a JSON var-file written into the stack root.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

VAR_FILE_NAME = "garden.tfvars.json"


def prepare_variables(root: Path, variables: dict[str, Any] | None = None) -> list[str]:
    """Write ``variables`` to a var-file under ``root`` and return the CLI args.

    Returns an empty list and touches nothing when there are no
    variables. Any previous var-file at the same path is overwritten, so
    two concurrent calls against one root must not overlap.
    """
    if not variables:
        return []

    path = (Path(root) / VAR_FILE_NAME).resolve()
    path.write_text(json.dumps(variables), encoding="utf-8")
    logger.debug("Wrote %d variable(s) to %s", len(variables), path)

    return ["-var-file", str(path)]
