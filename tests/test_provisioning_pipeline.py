from __future__ import annotations

from decimal import Decimal

import pytest

from adapters.billing_client import BillingAPIClient
from core.domain.errors import BillingAPIError, ProvisioningAborted
from core.services.provisioning_pipeline import (
    PipelineHooks,
    Stage,
    budgets_path,
    cost_center_resource_path,
    cost_centers_path,
    provision,
    summary_lines,
)


class Recorder:
    def __init__(self) -> None:
        self.steps: list[str] = []
        self.successes: list[str] = []
        self.warnings: list[str] = []

    def hooks(self) -> PipelineHooks:
        return PipelineHooks(step=self.steps.append, success=self.successes.append, warning=self.warnings.append)


def test_happy_path_runs_three_steps_in_order(fake_api, make_request):
    api = fake_api(
        {"id": "cc-1", "name": "octocat", "state": "active"},
        {"message": "Resources successfully added", "reassigned_resources": []},
        {"id": "b-1"},
    )
    rec = Recorder()

    result = provision(make_request(), api=api, hooks=rec.hooks())

    assert [path for _, path, _ in api.calls] == [
        "/enterprises/my-company/settings/billing/cost-centers",
        "/enterprises/my-company/settings/billing/cost-centers/cc-1/resource",
        "/enterprises/my-company/settings/billing/budgets",
    ]
    assert all(method == "POST" for method, _, _ in api.calls)
    assert api.calls[0][2] == {"name": "octocat"}
    assert api.calls[1][2] == {"users": ["octocat"]}
    assert result.state.stage is Stage.DONE
    assert result.state.cost_center_id == "cc-1"
    assert result.state.budget_id == "b-1"
    assert result.warnings == []
    assert rec.warnings == []
    assert rec.steps[0] == 'Step 1/3 — Creating cost center "octocat"'
    assert rec.steps[2] == "Step 3/3 — Creating hard-cap premium request budget ($40.00)"
    assert rec.successes[0] == "Cost center created (id: cc-1)"


def test_budget_payload_is_hard_cap_on_premium_requests(fake_api, make_request):
    api = fake_api({"id": "cc-1"}, {}, {"id": "b-1"})

    provision(make_request(), api=api)

    assert api.calls[2][2] == {
        "budget_type": "SkuPricing",
        "budget_product_sku": "copilot_premium_request",
        "budget_scope": "cost_center",
        "budget_entity_name": "cc-1",
        "budget_amount": 40.0,
        "prevent_further_usage": True,
        "budget_alerting": {"will_alert": False},
    }


def test_alert_recipient_enables_alerting(fake_api, make_request):
    api = fake_api({"id": "cc-1"}, {}, {"id": "b-1"})

    provision(make_request(alert_recipient="hubot"), api=api)

    assert api.calls[2][2]["budget_alerting"] == {"will_alert": True, "alert_recipients": ["hubot"]}


def test_missing_cost_center_id_aborts_before_other_steps(fake_api, make_request):
    api = fake_api({"message": "Validation Failed"})

    with pytest.raises(ProvisioningAborted) as excinfo:
        provision(make_request(), api=api)

    assert len(api.calls) == 1
    assert excinfo.value.step == "create_cost_center"
    assert "Failed to create cost center" in str(excinfo.value)
    assert "Validation Failed" in excinfo.value.raw


def test_cost_center_http_error_is_fatal(fake_api, make_request):
    error = BillingAPIError("POST ... returned HTTP 409.", status_code=409, body='{"message":"Name already exists"}')
    api = fake_api(error)

    with pytest.raises(ProvisioningAborted) as excinfo:
        provision(make_request(), api=api)

    assert len(api.calls) == 1
    assert "Name already exists" in str(excinfo.value)


def test_reassignment_warns_and_reaches_budget_step(fake_api, make_request):
    api = fake_api(
        {"id": "cc-1"},
        {
            "message": "Resources successfully added",
            "reassigned_resources": [
                {"resource_type": "User", "name": "octocat", "previous_cost_center": "legacy"}
            ],
        },
        {"id": "b-1"},
    )
    rec = Recorder()

    result = provision(make_request(), api=api, hooks=rec.hooks())

    assert len(api.calls) == 3
    assert result.state.reassigned
    assert any("reassigned" in w for w in rec.warnings)
    assert result.state.budget_id == "b-1"


def test_assignment_error_is_downgraded_to_warning(fake_api, make_request):
    api = fake_api({"id": "cc-1"}, {"error": "user not found"}, {"id": "b-1"})
    rec = Recorder()

    result = provision(make_request(), api=api, hooks=rec.hooks())

    assert len(api.calls) == 3
    assert rec.warnings[0].startswith("Unexpected response when adding user:")
    assert "user not found" in rec.warnings[0]
    assert not any("added to cost center" in s for s in rec.successes)
    assert result.state.budget_id == "b-1"
    assert len(result.warnings) == 1


def test_assignment_http_failure_continues(fake_api, make_request):
    api = fake_api(
        {"id": "cc-1"},
        BillingAPIError("POST ... returned HTTP 500.", status_code=500, body="upstream exploded"),
        {"id": "b-1"},
    )
    rec = Recorder()

    result = provision(make_request(), api=api, hooks=rec.hooks())

    assert len(api.calls) == 3
    assert "upstream exploded" in rec.warnings[0]
    assert result.state.stage is Stage.DONE


def test_missing_budget_id_is_a_warning(fake_api, make_request):
    api = fake_api({"id": "cc-1"}, {}, {"message": "accepted"})
    rec = Recorder()

    result = provision(make_request(), api=api, hooks=rec.hooks())

    assert result.state.budget_id is None
    assert rec.warnings[-1].startswith("Budget creation may have failed.")
    assert "accepted" in rec.warnings[-1]
    assert result.state.cost_center_id == "cc-1"


def test_nested_budget_id_is_read(fake_api, make_request):
    api = fake_api({"id": "cc-1"}, {}, {"message": "Budget created", "budget": {"id": "b-nested"}})

    result = provision(make_request(), api=api)

    assert result.state.budget_id == "b-nested"


def test_null_reassigned_resources_means_nothing_moved(fake_api, make_request):
    api = fake_api({"id": "cc-1"}, {"message": "ok", "reassigned_resources": None}, {"id": "b-1"})
    rec = Recorder()

    result = provision(make_request(), api=api, hooks=rec.hooks())

    assert len(api.calls) == 3
    assert rec.warnings == []
    assert not result.state.reassigned
    assert 'User "octocat" added to cost center' in rec.successes


def test_numeric_ids_are_read_as_text(fake_api, make_request):
    api = fake_api({"id": 12345}, {}, {"id": 67890})
    rec = Recorder()

    result = provision(make_request(), api=api, hooks=rec.hooks())

    assert api.calls[1][1] == "/enterprises/my-company/settings/billing/cost-centers/12345/resource"
    assert api.calls[2][2]["budget_entity_name"] == "12345"
    assert result.state.cost_center_id == "12345"
    assert result.state.budget_id == "67890"
    assert rec.successes[0] == "Cost center created (id: 12345)"


def test_object_message_with_errors_is_a_warning(fake_api, make_request):
    api = fake_api(
        {"id": "cc-1"},
        {"message": {"detail": "user is suspended"}, "errors": [{"code": "invalid"}]},
        {"id": "b-1"},
    )
    rec = Recorder()

    result = provision(make_request(), api=api, hooks=rec.hooks())

    assert len(api.calls) == 3
    assert rec.warnings[0].startswith("Unexpected response when adding user:")
    assert "user is suspended" in rec.warnings[0]
    assert result.state.budget_id == "b-1"


def test_malformed_assignment_response_warns_and_continues(fake_api, make_request):
    api = fake_api({"id": "cc-1"}, {"reassigned_resources": "octocat"}, {"id": "b-1"})
    rec = Recorder()

    result = provision(make_request(), api=api, hooks=rec.hooks())

    assert len(api.calls) == 3
    assert rec.warnings[0].startswith("Unexpected response shape.")
    assert '"reassigned_resources": "octocat"' in rec.warnings[0]
    assert result.state.stage is Stage.DONE
    assert result.state.budget_id == "b-1"


def test_malformed_budget_response_is_a_warning(fake_api, make_request):
    api = fake_api({"id": "cc-1"}, {}, {"budget": ["b-1"]})
    rec = Recorder()

    result = provision(make_request(), api=api, hooks=rec.hooks())

    assert result.state.budget_id is None
    assert rec.warnings[-1].startswith("Unexpected response shape.")
    assert '"b-1"' in rec.warnings[-1]
    assert len(result.warnings) == 1


def test_malformed_cost_center_response_aborts_with_raw_body(fake_api, make_request):
    api = fake_api({"id": {"value": 1}})

    with pytest.raises(ProvisioningAborted) as excinfo:
        provision(make_request(), api=api)

    assert len(api.calls) == 1
    assert excinfo.value.step == "create_cost_center"
    assert "Unexpected response shape" in str(excinfo.value)
    assert '"value": 1' in excinfo.value.raw


def test_dry_run_never_touches_the_network(make_request):
    echoed: list[str] = []
    api = BillingAPIClient(dry_run=True, echo=echoed.append)
    rec = Recorder()

    result = provision(make_request(dry_run=True), api=api, hooks=rec.hooks())

    assert len(echoed) == 3
    assert all(line.startswith("[DRY-RUN] POST /enterprises/my-company/") for line in echoed)
    assert "/cost-centers/DRY_RUN_ID/resource" in echoed[1]
    assert '"budget_entity_name": "DRY_RUN_ID"' in echoed[2]
    assert rec.warnings == []
    assert rec.successes[0] == "Cost center created (id: DRY_RUN_ID)"
    assert summary_lines(result)[0] == 'Cost center: "octocat" (DRY_RUN_ID)'


def test_summary_with_units_shows_conversion(fake_api, make_request):
    api = fake_api({"id": "cc-1"}, {}, {"id": "b-1"})

    lines = summary_lines(provision(make_request(alert_recipient="hubot"), api=api))

    assert lines == [
        'Cost center: "octocat" (cc-1)',
        "User:        octocat",
        "Budget:      $40.00 USD — hard cap on copilot_premium_request",
        "(~1000 PRUs at $0.04/PRU)",
        "Alerts sent to: hubot",
    ]


def test_summary_with_direct_amount_has_no_unit_line(fake_api, make_request):
    api = fake_api({"id": "cc-1"}, {}, {"id": "b-1"})
    request = make_request(budget_amount=Decimal("50.00"), budget_units=None, unit_rate=None)

    lines = summary_lines(provision(request, api=api))

    assert "Budget:      $50.00 USD — hard cap on copilot_premium_request" in lines
    assert not any("PRUs" in line for line in lines)


def test_paths_quote_segments():
    assert cost_centers_path("acme corp") == "/enterprises/acme%20corp/settings/billing/cost-centers"
    assert cost_center_resource_path("acme", "a/b").endswith("/cost-centers/a%2Fb/resource")
    assert budgets_path("acme") == "/enterprises/acme/settings/billing/budgets"
