"""Contract for billing API clients.

A Protocol keeps the orchestrator independent from httpx: the real client,
its dry-run mode and test fakes are interchangeable.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class BillingAPI(Protocol):
    """Minimal contract used by the provisioning pipeline.

    Rules:
    - One call per invocation, no retries.
    - Returns the decoded JSON object (empty dict for an empty body).
    - Raises `BillingAPIError` for transport failures and non-2xx answers.
    """

    def request(
        self,
        method: str,
        path: str,
        *,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        ...
