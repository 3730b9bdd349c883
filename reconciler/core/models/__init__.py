"""
Domain models — Pydantic types for the reconciler.

All models are re-exported here for convenient access:

    from reconciler.core.models import Project, StackSpec, StackStatus
"""

from reconciler.core.models.project import (
    TERRAFORM_TYPE,
    ModuleRef,
    Project,
    TerraformProviderConfig,
)
from reconciler.core.models.stack import (
    Diagnostic,
    Drifted,
    Errored,
    PlanOutcome,
    ProcessResult,
    Readiness,
    StackSpec,
    StackStatus,
    UpToDate,
    ValidationResult,
)

__all__ = [
    "Diagnostic",
    "Drifted",
    "Errored",
    # project.py
    "ModuleRef",
    "PlanOutcome",
    "ProcessResult",
    "Project",
    "Readiness",
    # stack.py
    "StackSpec",
    "StackStatus",
    "TERRAFORM_TYPE",
    "TerraformProviderConfig",
    "UpToDate",
    "ValidationResult",
]
