"""Cost center provisioning orchestration.

The run is an ordered list of declarative steps executed by one generic
runner:

1. create the cost center (fatal on failure, nothing else can proceed),
2. assign the user to it (warn and continue),
3. create the hard-cap budget (warn and continue).

Each step builds its request from the immutable `ProvisioningRequest` and the
state produced by earlier steps, then decodes the response into a typed
shape. Printing is left to the caller through `PipelineHooks`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable
from urllib.parse import quote

from pydantic import ValidationError

from core.domain.errors import BillingAPIError, ProvisioningAborted
from core.domain.models import (
    DRY_RUN_PLACEHOLDER_ID,
    PRODUCT_SKU,
    BudgetAlerting,
    BudgetResponse,
    CostCenterResponse,
    ProvisioningRequest,
    ResourceAssignmentResponse,
)
from core.interfaces.billing import BillingAPI

_LOG = logging.getLogger(__name__)


class Stage(str, Enum):
    CREATED = "created"
    COST_CENTER_CREATED = "cost_center_created"
    USER_ASSIGNED = "user_assigned"
    BUDGET_CREATED = "budget_created"
    DONE = "done"


class FailurePolicy(str, Enum):
    FATAL = "fatal"
    WARN = "warn"


@dataclass(frozen=True)
class BillingCall:
    method: str
    path: str
    payload: dict[str, Any] | None = None


@dataclass(frozen=True)
class ProvisioningState:
    """What the remote side has done so far in this run."""

    stage: Stage = Stage.CREATED
    cost_center_id: str | None = None
    budget_id: str | None = None
    reassigned: bool = False
    warnings: tuple[str, ...] = ()

    @property
    def cost_center_ref(self) -> str:
        return self.cost_center_id or DRY_RUN_PLACEHOLDER_ID

    @property
    def budget_ref(self) -> str:
        return self.budget_id or DRY_RUN_PLACEHOLDER_ID


@dataclass(frozen=True)
class StepOutcome:
    state: ProvisioningState
    message: str | None = None
    warnings: tuple[str, ...] = ()


class StepRejected(Exception):
    """The call succeeded but its response is not usable."""


@dataclass(frozen=True)
class ProvisioningStep:
    name: str
    title: Callable[[ProvisioningRequest], str]
    build: Callable[[ProvisioningRequest, ProvisioningState], BillingCall]
    extract: Callable[[dict[str, Any], ProvisioningRequest, ProvisioningState], StepOutcome]
    policy: FailurePolicy


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers (progress, warnings)."""

    step: Callable[[str], None] | None = None
    success: Callable[[str], None] | None = None
    warning: Callable[[str], None] | None = None


@dataclass
class ProvisioningResult:
    request: ProvisioningRequest
    state: ProvisioningState
    warnings: list[str] = field(default_factory=list)


def _notify(callback: Callable[[str], None] | None, message: str) -> None:
    if callback is not None:
        callback(message)


def format_raw(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    return json.dumps(raw, indent=2, sort_keys=True, default=str)


# ---------------------------------------------------------------------------
# Paths

def _billing_root(enterprise: str) -> str:
    return f"/enterprises/{quote(enterprise, safe='')}/settings/billing"


def cost_centers_path(enterprise: str) -> str:
    return f"{_billing_root(enterprise)}/cost-centers"


def cost_center_resource_path(enterprise: str, cost_center_id: str) -> str:
    return f"{cost_centers_path(enterprise)}/{quote(cost_center_id, safe='')}/resource"


def budgets_path(enterprise: str) -> str:
    return f"{_billing_root(enterprise)}/budgets"


# ---------------------------------------------------------------------------
# Step 1: cost center

def _build_cost_center(request: ProvisioningRequest, state: ProvisioningState) -> BillingCall:
    return BillingCall("POST", cost_centers_path(request.enterprise), {"name": request.cost_center_name})


def _extract_cost_center(
    raw: dict[str, Any],
    request: ProvisioningRequest,
    state: ProvisioningState,
) -> StepOutcome:
    response = CostCenterResponse.model_validate(raw)
    if not response.id and not request.dry_run:
        raise StepRejected("Failed to create cost center.")
    new_state = replace(state, stage=Stage.COST_CENTER_CREATED, cost_center_id=response.id)
    return StepOutcome(new_state, message=f"Cost center created (id: {new_state.cost_center_ref})")


# ---------------------------------------------------------------------------
# Step 2: user assignment

def _build_assignment(request: ProvisioningRequest, state: ProvisioningState) -> BillingCall:
    return BillingCall(
        "POST",
        cost_center_resource_path(request.enterprise, state.cost_center_ref),
        {"users": [request.username]},
    )


def _extract_assignment(
    raw: dict[str, Any],
    request: ProvisioningRequest,
    state: ProvisioningState,
) -> StepOutcome:
    response = ResourceAssignmentResponse.model_validate(raw)
    warnings: list[str] = []
    message: str | None = None
    new_state = state

    if response.has_error and not request.dry_run:
        warnings.append(f"Unexpected response when adding user:\n{format_raw(raw)}")
    else:
        new_state = replace(new_state, stage=Stage.USER_ASSIGNED)
        message = f'User "{request.username}" added to cost center'

    if response.reassigned_resources:
        new_state = replace(new_state, reassigned=True)
        warnings.append(
            "User was previously assigned to another cost center and has been reassigned."
        )
    return StepOutcome(new_state, message=message, warnings=tuple(warnings))


# ---------------------------------------------------------------------------
# Step 3: budget

def build_budget_payload(request: ProvisioningRequest, cost_center_ref: str) -> dict[str, Any]:
    return {
        "budget_type": "SkuPricing",
        "budget_product_sku": PRODUCT_SKU,
        "budget_scope": "cost_center",
        "budget_entity_name": cost_center_ref,
        "budget_amount": float(request.budget_amount),
        "prevent_further_usage": True,
        "budget_alerting": BudgetAlerting.for_recipient(request.alert_recipient).to_payload(),
    }


def _build_budget(request: ProvisioningRequest, state: ProvisioningState) -> BillingCall:
    return BillingCall("POST", budgets_path(request.enterprise), build_budget_payload(request, state.cost_center_ref))


def _extract_budget(
    raw: dict[str, Any],
    request: ProvisioningRequest,
    state: ProvisioningState,
) -> StepOutcome:
    response = BudgetResponse.model_validate(raw)
    budget_id = response.budget_id
    if not budget_id and not request.dry_run:
        raise StepRejected("Budget creation may have failed.")
    new_state = replace(state, stage=Stage.BUDGET_CREATED, budget_id=budget_id)
    return StepOutcome(new_state, message=f"Budget created (id: {new_state.budget_ref})")


STEPS: tuple[ProvisioningStep, ...] = (
    ProvisioningStep(
        name="create_cost_center",
        title=lambda r: f'Creating cost center "{r.cost_center_name}"',
        build=_build_cost_center,
        extract=_extract_cost_center,
        policy=FailurePolicy.FATAL,
    ),
    ProvisioningStep(
        name="assign_user",
        title=lambda r: f'Adding user "{r.username}" to cost center',
        build=_build_assignment,
        extract=_extract_assignment,
        policy=FailurePolicy.WARN,
    ),
    ProvisioningStep(
        name="create_budget",
        title=lambda r: f"Creating hard-cap premium request budget (${r.budget_amount})",
        build=_build_budget,
        extract=_extract_budget,
        policy=FailurePolicy.WARN,
    ),
)


def run_step(
    step: ProvisioningStep,
    *,
    request: ProvisioningRequest,
    state: ProvisioningState,
    api: BillingAPI,
    hooks: PipelineHooks,
) -> ProvisioningState:
    """Execute one step and apply its failure policy.

    FATAL steps raise `ProvisioningAborted`; WARN steps record a warning
    (with the raw response) and hand back the unchanged state.
    """

    call = step.build(request, state)
    _LOG.debug("step=%s method=%s path=%s", step.name, call.method, call.path)

    raw: Any = None
    try:
        raw = api.request(call.method, call.path, payload=call.payload)
        outcome = step.extract(raw, request, state)
    except BillingAPIError as exc:
        detail = exc.body or str(exc)
        message = f"{exc} Response:\n{detail}"
        failure_raw = detail
    except StepRejected as exc:
        failure_raw = format_raw(raw)
        message = f"{exc} Response:\n{failure_raw}"
    except ValidationError as exc:
        _LOG.debug("step=%s undecodable response: %s", step.name, exc)
        failure_raw = format_raw(raw)
        message = f"Unexpected response shape. Response:\n{failure_raw}"
    else:
        for warning in outcome.warnings:
            _notify(hooks.warning, warning)
        if outcome.message:
            _notify(hooks.success, outcome.message)
        return replace(outcome.state, warnings=state.warnings + outcome.warnings)

    if step.policy is FailurePolicy.FATAL:
        _LOG.debug("step=%s failed fatally", step.name)
        raise ProvisioningAborted(step.name, message, raw=failure_raw)

    _notify(hooks.warning, message)
    return replace(state, warnings=state.warnings + (message,))


def provision(
    request: ProvisioningRequest,
    *,
    api: BillingAPI,
    hooks: PipelineHooks | None = None,
    steps: tuple[ProvisioningStep, ...] = STEPS,
) -> ProvisioningResult:
    """Run every step in order against `api`.

    Raises `ProvisioningAborted` when a fatal step fails; no rollback is
    attempted for remote effects of earlier steps.
    """

    hooks = hooks or PipelineHooks()
    state = ProvisioningState()
    total = len(steps)

    for index, step in enumerate(steps, start=1):
        _notify(hooks.step, f"Step {index}/{total} — {step.title(request)}")
        state = run_step(step, request=request, state=state, api=api, hooks=hooks)

    state = replace(state, stage=Stage.DONE)
    return ProvisioningResult(request=request, state=state, warnings=list(state.warnings))


def summary_lines(result: ProvisioningResult) -> list[str]:
    """Plain-text summary of a finished run."""

    request = result.request
    lines = [
        f'Cost center: "{request.cost_center_name}" ({result.state.cost_center_ref})',
        f"User:        {request.username}",
        f"Budget:      ${request.budget_amount} USD — hard cap on {PRODUCT_SKU}",
    ]
    if request.converted_from_units:
        lines.append(f"(~{request.budget_units} PRUs at ${request.unit_rate}/PRU)")
    if request.alert_recipient:
        lines.append(f"Alerts sent to: {request.alert_recipient}")
    return lines
