"""Input resolution for a provisioning run.

Turns raw CLI values into one validated `ProvisioningRequest`, or fails with
`ConfigurationError` before anything touches the network. The only side
effect is the optional cost center name prompt, injected by the caller.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Callable

from pydantic import ValidationError

from core.domain.errors import ConfigurationError
from core.domain.models import ProvisioningRequest

_UNITS_RE = re.compile(r"^[0-9]+$")
_AMOUNT_RE = re.compile(r"^[0-9]+(\.[0-9]+)?$")
_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class ResolvedBudget:
    """Budget amount plus the unit count/rate it came from (if any)."""

    amount: Decimal
    units: int | None = None
    rate: Decimal | None = None


def convert_units(units: int, rate: Decimal) -> Decimal:
    """`round(units * rate, 2)`, half-up."""

    return (Decimal(units) * rate).quantize(_CENTS, rounding=ROUND_HALF_UP)


def _parse_rate(raw: str | Decimal) -> Decimal:
    if isinstance(raw, Decimal):
        rate = raw
    else:
        value = raw.strip()
        if not _AMOUNT_RE.match(value):
            raise ConfigurationError("--pru-rate must be a non-negative number.")
        rate = Decimal(value)
    if not rate.is_finite() or rate < 0:
        raise ConfigurationError("--pru-rate must be a non-negative number.")
    return rate


def resolve_budget(
    budget_usd: str | None,
    budget_units: str | None,
    unit_rate: str | Decimal,
) -> ResolvedBudget:
    """Validate the two budget forms and derive the USD amount.

    Exactly one of `budget_usd` / `budget_units` must be given.
    """

    usd = (budget_usd or "").strip()
    units_raw = (budget_units or "").strip()

    if usd and units_raw:
        raise ConfigurationError("Specify either --budget-usd or --budget-prus, not both.")
    if not usd and not units_raw:
        raise ConfigurationError("One of --budget-usd or --budget-prus is required.")

    units: int | None = None
    rate: Decimal | None = None
    if units_raw:
        if not _UNITS_RE.match(units_raw):
            raise ConfigurationError("--budget-prus must be a positive integer.")
        units = int(units_raw)
        rate = _parse_rate(unit_rate)
        amount = convert_units(units, rate)
    else:
        if not _AMOUNT_RE.match(usd):
            raise ConfigurationError("Budget amount must be a positive number.")
        try:
            amount = Decimal(usd).quantize(_CENTS, rounding=ROUND_HALF_UP)
        except InvalidOperation as exc:
            raise ConfigurationError("Budget amount must be a positive number.") from exc

    if amount <= 0:
        raise ConfigurationError("Budget amount must be a positive number.")

    return ResolvedBudget(amount=amount, units=units, rate=rate)


def resolve_cost_center_name(
    explicit: str | None,
    username: str,
    *,
    interactive: bool,
    dry_run: bool,
    prompt: Callable[[str], str] | None = None,
) -> str:
    """Pick the cost center name.

    Order: explicit value, then a single prompt when attended and not a dry
    run (an empty answer keeps the username), then the username.
    """

    name = (explicit or "").strip()
    if name:
        return name
    if interactive and not dry_run and prompt is not None:
        answer = (prompt(username) or "").strip()
        return answer or username
    return username


def resolve_identity(enterprise: str | None, username: str | None) -> tuple[str, str]:
    """Both values are required and non-blank; the API validates the rest."""

    enterprise = (enterprise or "").strip()
    username = (username or "").strip()
    if not enterprise:
        raise ConfigurationError("--enterprise is required.")
    if not username:
        raise ConfigurationError("--user is required.")
    return enterprise, username


def build_request(
    *,
    enterprise: str | None,
    username: str | None,
    budget: ResolvedBudget,
    cost_center_name: str,
    alert_recipient: str | None = None,
    dry_run: bool = False,
) -> ProvisioningRequest:
    enterprise, username = resolve_identity(enterprise, username)

    try:
        return ProvisioningRequest(
            enterprise=enterprise,
            username=username,
            cost_center_name=cost_center_name,
            budget_amount=budget.amount,
            budget_units=budget.units,
            unit_rate=budget.rate,
            alert_recipient=(alert_recipient or "").strip() or None,
            dry_run=dry_run,
        )
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
