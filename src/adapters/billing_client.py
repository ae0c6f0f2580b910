"""Billing API client (GitHub Enterprise billing REST).

One call per `request`, no retries. In dry-run mode the call is described
through `echo` and an empty result is returned without any network I/O.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

import httpx

from core.domain.errors import BillingAPIError

_LOG = logging.getLogger(__name__)


def describe_call(method: str, path: str, payload: dict[str, Any] | None = None) -> str:
    """Human-readable form of a call, used by dry runs."""

    text = f"[DRY-RUN] {method.upper()} {path}"
    if payload is not None:
        text += " " + json.dumps(payload, sort_keys=True, default=str)
    return text


class BillingAPIClient:
    """Thin synchronous client around `httpx.Client`.

    Implements `core.interfaces.billing.BillingAPI`.
    """

    def __init__(
        self,
        *,
        client: httpx.Client | None = None,
        dry_run: bool = False,
        echo: Callable[[str], None] | None = None,
    ) -> None:
        if client is None and not dry_run:
            raise ValueError("An httpx.Client is required outside dry-run mode.")
        self._client = client
        self._dry_run = dry_run
        self._echo = echo

    def request(
        self,
        method: str,
        path: str,
        *,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if self._dry_run:
            description = describe_call(method, path, payload)
            _LOG.debug("%s", description)
            if self._echo is not None:
                self._echo(description)
            return {}

        client = self._client
        if client is None:
            raise RuntimeError("BillingAPIClient is closed.")
        _LOG.debug("%s %s", method.upper(), path)
        try:
            resp = client.request(method.upper(), path, json=payload)
        except httpx.RequestError as exc:
            raise BillingAPIError(
                f"{method.upper()} {path} failed: {exc.__class__.__name__}.",
                body=str(exc),
            ) from exc

        _LOG.debug("%s %s -> HTTP %s", method.upper(), path, resp.status_code)
        if resp.is_error:
            raise BillingAPIError(
                f"{method.upper()} {path} returned HTTP {resp.status_code}.",
                status_code=resp.status_code,
                body=resp.text,
            )

        if not resp.content.strip():
            return {}
        try:
            data = resp.json()
        except ValueError as exc:
            raise BillingAPIError(
                f"{method.upper()} {path} returned a non-JSON body.",
                status_code=resp.status_code,
                body=resp.text,
            ) from exc
        if not isinstance(data, dict):
            return {"data": data}
        return data

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "BillingAPIClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
