from __future__ import annotations

import os
from decimal import Decimal
from typing import Any

import pytest

from core.domain.models import ProvisioningRequest


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """No token, no .env files, no user config from the host machine."""

    for key in list(os.environ):
        if key.startswith("CCP_") or key in {"GITHUB_TOKEN", "GH_TOKEN"}:
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.chdir(tmp_path)
    yield


class FakeBillingAPI:
    """Replays canned responses (or raises canned errors) in order."""

    def __init__(self, *responses: Any) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, str, dict[str, Any] | None]] = []

    def request(self, method, path, *, payload=None):
        self.calls.append((method, path, payload))
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def make_request():
    def _make(**overrides: Any) -> ProvisioningRequest:
        data: dict[str, Any] = {
            "enterprise": "my-company",
            "username": "octocat",
            "cost_center_name": "octocat",
            "budget_amount": Decimal("40.00"),
            "budget_units": 1000,
            "unit_rate": Decimal("0.04"),
        }
        data.update(overrides)
        return ProvisioningRequest(**data)

    return _make


@pytest.fixture
def fake_api():
    return FakeBillingAPI
