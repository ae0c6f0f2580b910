"""Domain models (Pydantic v2).

- `ProvisioningRequest` is the single immutable input of a run.
- The response models decode only the fields the workflow reads; anything
  else the billing API returns is ignored.

These models describe *what* is sent and received, not *how*.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field, field_validator
from pydantic.config import ConfigDict

# Metered product the budget is scoped to.
PRODUCT_SKU = "copilot_premium_request"

# Identifier shown wherever a dry run has no real id to report.
DRY_RUN_PLACEHOLDER_ID = "DRY_RUN_ID"


class ProvisioningRequest(BaseModel):
    """Resolved input of one provisioning run.

    Built once by the input resolver and never mutated afterwards. The unit
    count and rate are kept for display only; `budget_amount` is what the
    budget is created with.
    """

    model_config = ConfigDict(frozen=True)

    enterprise: str = Field(
        ...,
        min_length=1,
        description="Enterprise slug the billing calls are scoped to.",
    )
    username: str = Field(
        ...,
        min_length=1,
        description="GitHub login assigned to the cost center.",
    )
    cost_center_name: str = Field(
        ...,
        min_length=1,
        description="Name of the cost center to create.",
    )
    budget_amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Hard-cap budget in USD, rounded to cents.",
    )
    budget_units: int | None = Field(
        default=None,
        ge=0,
        description="Premium request count the amount was derived from, if any.",
    )
    unit_rate: Decimal | None = Field(
        default=None,
        ge=0,
        description="USD per premium request used for the conversion, if any.",
    )
    alert_recipient: str | None = Field(
        default=None,
        description="GitHub login that receives budget alerts.",
    )
    dry_run: bool = Field(
        default=False,
        description="Describe the API calls instead of issuing them.",
    )

    @property
    def converted_from_units(self) -> bool:
        return self.budget_units is not None


class BudgetAlerting(BaseModel):
    """`budget_alerting` sub-object of the budget creation payload."""

    will_alert: bool = False
    alert_recipients: list[str] = Field(default_factory=list)

    @classmethod
    def for_recipient(cls, recipient: str | None) -> "BudgetAlerting":
        if recipient:
            return cls(will_alert=True, alert_recipients=[recipient])
        return cls()

    def to_payload(self) -> dict[str, Any]:
        if not self.will_alert:
            return {"will_alert": False}
        return {"will_alert": True, "alert_recipients": list(self.alert_recipients)}


def _id_as_text(value: Any) -> Any:
    # The API documents string ids; some endpoints answer with numbers.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


# Identifier as sent back by the billing API, normalized to text.
RemoteId = Annotated[str | None, BeforeValidator(_id_as_text)]


class CostCenterResponse(BaseModel):
    """Answer to the cost center creation call."""

    model_config = ConfigDict(extra="ignore")

    id: RemoteId = None
    name: str | None = None
    state: str | None = None


class ReassignedResource(BaseModel):
    model_config = ConfigDict(extra="ignore")

    resource_type: str | None = None
    name: str | None = None
    previous_cost_center: str | None = None


class ResourceAssignmentResponse(BaseModel):
    """Answer to the "add users to cost center" call.

    `message` is free-form (a string or an object, depending on the
    endpoint version) and is only shown, never interpreted.
    """

    model_config = ConfigDict(extra="ignore")

    message: Any = None
    reassigned_resources: list[ReassignedResource] = Field(default_factory=list)
    error: Any = None
    errors: Any = None

    @field_validator("reassigned_resources", mode="before")
    @classmethod
    def _null_means_none_moved(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def has_error(self) -> bool:
        return bool(self.error) or bool(self.errors)


class BudgetRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: RemoteId = None


class BudgetResponse(BaseModel):
    """Answer to the budget creation call.

    The id is read from the top level first, then from a nested `budget`
    object.
    """

    model_config = ConfigDict(extra="ignore")

    id: RemoteId = None
    message: Any = None
    budget: BudgetRecord | None = None

    @property
    def budget_id(self) -> str | None:
        if self.id:
            return self.id
        if self.budget is not None and self.budget.id:
            return self.budget.id
        return None
