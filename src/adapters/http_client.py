"""httpx wrapper.

- Standardizes timeout, headers and auth for every billing call.
- Tests pass an `httpx.MockTransport` instead of reaching the network.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings

GITHUB_JSON = "application/vnd.github+json"


def default_headers(settings: AppSettings, *, token: str | None = None) -> dict[str, str]:
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": GITHUB_JSON,
        "X-GitHub-Api-Version": settings.api_version,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def build_client(
    settings: AppSettings | None = None,
    *,
    token: str | None = None,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Create an `httpx.Client` bound to the configured API root."""

    settings = settings or AppSettings()
    headers = default_headers(settings, token=token)
    return httpx.Client(
        base_url=settings.api_base_url,
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        headers=headers,
        transport=transport,
    )
