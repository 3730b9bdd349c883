"""
Terraform observe operations — validate, plan status, outputs.

Channel-independent: no click, no terminal assumptions. Everything runs
through a ``ProcessRunner`` so tests can inject canned results.

Nothing in here mutates infrastructure. ``get_stack_status`` may run
``terraform init`` as a one-off recovery step when validation reports
an uninitialized stack.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from reconciler.adapters.base import ProcessRunner
from reconciler.core.exceptions import ConfigurationError, PluginError
from reconciler.core.models.stack import (
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
from reconciler.core.services.terraform_vars import prepare_variables

logger = logging.getLogger(__name__)

# Diagnostic summaries that mean "run terraform init and try again"
RECOVERABLE_SUMMARIES = frozenset({
    "Could not satisfy plugin requirements",
    "Module not installed",
})

INIT_TIMEOUT = 300

DEFAULT_APPLY_COMMAND = "reconciler terraform apply-root"


def apply_command_for(module: str | None = None) -> str:
    """CLI command an operator runs to apply the root stack or ``module``."""
    if module:
        return f"reconciler terraform apply-module {module}"
    return DEFAULT_APPLY_COMMAND


def no_auto_apply_message(apply_command: str) -> str:
    return (
        "Terraform stack is not up-to-date and autoApply is not enabled. "
        f"Please run `{apply_command}` to make sure the stack is in the intended state."
    )


# ═══════════════════════════════════════════════════════════════════
#  Validate
# ═══════════════════════════════════════════════════════════════════


def _run_validate(
    runner: ProcessRunner, root: Path, args: list[str], version: str,
) -> ValidationResult:
    # Non-zero exit is expected for invalid configs; the body decides.
    body = runner.json(args, cwd=root, version=version, ignore_error=True)
    try:
        return ValidationResult.model_validate(body)
    except ValidationError as e:
        raise PluginError(
            f"Unexpected output from `terraform validate -json`: {e}",
            {"body": body},
        ) from e


def validation_error(result: ValidationResult) -> ConfigurationError:
    """Build the error listing every diagnostic Terraform reported."""
    errors = [d.format() for d in result.diagnostics]
    return ConfigurationError(
        "Failed validating Terraform configuration:\n\n" + "\n".join(errors),
        {"result": result.model_dump()},
    )


def validate_stack(
    runner: ProcessRunner,
    root: Path,
    variables: dict[str, Any],
    version: str,
) -> ValidationResult:
    """Validate the stack at ``root``, initializing it once if needed.

    Recovery is limited to diagnostics in ``RECOVERABLE_SUMMARIES``:
    run ``terraform init`` (bounded by ``INIT_TIMEOUT``) and validate
    one more time. Anything else fails straight away.

    Raises:
        ConfigurationError: the configuration is invalid.
        StackRuntimeError: ``terraform init`` failed or timed out.
    """
    args = ["validate", "-json", *prepare_variables(root, variables)]
    result = _run_validate(runner, root, args, version)

    if result.valid:
        return result

    if not RECOVERABLE_SUMMARIES.intersection(result.summaries):
        raise validation_error(result)

    logger.debug("Initializing Terraform in %s", root)
    runner.exec(["init"], cwd=root, version=version, timeout=INIT_TIMEOUT)

    retry = _run_validate(runner, root, args, version)
    if not retry.valid:
        raise validation_error(retry)
    return retry


# ═══════════════════════════════════════════════════════════════════
#  Outputs
# ═══════════════════════════════════════════════════════════════════


def get_outputs(runner: ProcessRunner, version: str, root: Path) -> dict[str, Any]:
    """Return the stack outputs as a flat ``{name: value}`` map."""
    body = runner.json(["output", "-json"], cwd=root, version=version)
    if not isinstance(body, dict):
        raise PluginError(
            "Unexpected output from `terraform output -json`: expected an object",
            {"body": body},
        )
    outputs: dict[str, Any] = {}
    for key, entry in body.items():
        if not isinstance(entry, dict):
            raise PluginError(
                f"Unexpected output from `terraform output -json`: entry {key!r} is not an object",
                {"body": body},
            )
        outputs[key] = entry.get("value")
    return outputs


# ═══════════════════════════════════════════════════════════════════
#  Plan status
# ═══════════════════════════════════════════════════════════════════


def classify_plan(plan: ProcessResult) -> PlanOutcome:
    """Map a ``plan -detailed-exitcode`` result to its outcome.

    Raises:
        PluginError: the exit code is outside {0, 1, 2}.
    """
    if plan.exit_code == 0:
        return UpToDate(plan)
    if plan.exit_code == 1:
        return Errored(plan)
    if plan.exit_code == 2:
        return Drifted(plan)
    raise PluginError(
        f"Unexpected exit code from `terraform plan`: {plan.exit_code}",
        {"exitCode": plan.exit_code, "stderr": plan.stderr, "stdout": plan.stdout},
    )


def resolve_readiness(outcome: PlanOutcome, auto_apply: bool) -> Readiness:
    """Apply the auto-apply policy to a plan outcome.

    Drift without auto-apply still counts as ready: the stack is usable
    as-is and the operator is warned to apply manually. With auto-apply,
    drift means "not ready" so the caller runs an apply.
    """
    if isinstance(outcome, UpToDate):
        return Readiness(ready=True, fetch_outputs=True)
    if isinstance(outcome, Errored):
        # The same error shows up again on the next real command.
        return Readiness(ready=False)
    if auto_apply:
        return Readiness(ready=False)
    return Readiness(ready=True, fetch_outputs=True, warn=True)


def plan_args(root: Path, variables: dict[str, Any]) -> list[str]:
    return [
        "plan",
        "-detailed-exitcode",
        "-input=false",
        # Trust the state; operators can refresh with a manual plan.
        "-refresh=false",
        # Read-only, and callers serialize per root.
        "-lock=false",
        *prepare_variables(root, variables),
    ]


def get_stack_status(
    runner: ProcessRunner,
    spec: StackSpec,
    apply_command: str = DEFAULT_APPLY_COMMAND,
) -> StackStatus:
    """Check whether a stack is ready and return its outputs if so.

    Setting ``auto_apply`` does not make this function apply anything;
    it only decides whether drift reports as not ready.

    Raises:
        ConfigurationError: validation failed.
        PluginError: ``terraform plan`` exited outside {0, 1, 2}.
    """
    validate_stack(runner, spec.root, spec.variables, spec.version)

    logger.info("[%s] Running plan...", spec.name)
    plan = runner.exec(
        plan_args(spec.root, spec.variables),
        cwd=spec.root,
        version=spec.version,
        ignore_error=True,
    )

    try:
        outcome = classify_plan(plan)
    except PluginError:
        logger.error("[%s] terraform plan exited with %d", spec.name, plan.exit_code)
        raise

    readiness = resolve_readiness(outcome, spec.auto_apply)

    if isinstance(outcome, UpToDate):
        logger.info("[%s] Stack up-to-date", spec.name)
    elif isinstance(outcome, Errored):
        logger.info("[%s] terraform plan reported an error", spec.name)
    elif isinstance(outcome, Drifted):
        logger.info("[%s] Not up-to-date", spec.name)

    if readiness.warn:
        logger.warning("⚠️  [%s] %s", spec.name, no_auto_apply_message(apply_command))

    outputs = get_outputs(runner, spec.version, spec.root) if readiness.fetch_outputs else {}
    return StackStatus(ready=readiness.ready, outputs=outputs)
