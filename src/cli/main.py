"""CLI: provision a per-user cost center with a hard-cap PRU budget.

Creates a GitHub Enterprise cost center for one user, adds the user to it
and applies a hard-cap premium request budget.

Authentication comes from GITHUB_TOKEN / GH_TOKEN or the GitHub CLI's
stored session (`gh auth login`); the token needs enterprise billing
read & write.
"""

from __future__ import annotations

import sys

import typer
from rich.console import Console
from rich.text import Text

from adapters.billing_client import BillingAPIClient
from adapters.credentials import resolve_token
from adapters.http_client import build_client
from cli.logging_setup import configure_logging
from cli.ui_components import (
    build_request_table,
    build_summary_panel,
    print_banner,
    print_status,
    print_step,
)
from core.config import AppSettings
from core.domain.errors import (
    ConfigurationError,
    CredentialError,
    DependencyMissingError,
    ProvisioningAborted,
)
from core.domain.models import ProvisioningRequest
from core.services import provisioning_pipeline
from core.services.input_resolver import (
    build_request,
    resolve_budget,
    resolve_cost_center_name,
    resolve_identity,
)
from core.services.provisioning_pipeline import PipelineHooks

app = typer.Typer(
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

_console = Console(highlight=False)
_err_console = Console(stderr=True, highlight=False)

EXIT_FATAL = 1
EXIT_CONFIG = 2


def _is_interactive() -> bool:
    return sys.stdin.isatty()


def _prompt_cost_center_name(default: str) -> str:
    _console.print(Text.assemble(("Default cost center name:", "cyan"), f" {default}"))
    return typer.prompt(
        "Enter a custom name (or press Enter to use default)",
        default="",
        show_default=False,
    )


def _console_hooks() -> PipelineHooks:
    return PipelineHooks(
        step=lambda title: print_step(_console, title),
        success=lambda msg: print_status(_console, "ok", msg),
        warning=lambda msg: print_status(_console, "warn", msg),
    )


def _open_billing_client(settings: AppSettings, request: ProvisioningRequest) -> BillingAPIClient:
    if request.dry_run:
        return BillingAPIClient(
            dry_run=True,
            echo=lambda msg: print_status(_console, "dry-run", msg.removeprefix("[DRY-RUN] ")),
        )
    token = resolve_token(settings)
    return BillingAPIClient(client=build_client(settings, token=token.token))


def _fail(message: str, code: int) -> typer.Exit:
    print_status(_err_console, "error", message)
    return typer.Exit(code=code)


@app.command()
def provision(
    enterprise: str = typer.Option(..., "--enterprise", help="Enterprise slug."),
    user: str = typer.Option(..., "--user", help="GitHub username to provision."),
    budget_usd: str | None = typer.Option(None, "--budget-usd", help="Budget in USD, e.g. 40.00."),
    budget_prus: str | None = typer.Option(
        None, "--budget-prus", help="Budget in premium requests, converted with --pru-rate."
    ),
    pru_rate: str | None = typer.Option(
        None, "--pru-rate", help="USD per premium request (default: 0.04)."
    ),
    cost_center_name: str | None = typer.Option(
        None, "--cost-center-name", help="Cost center name (default: the username)."
    ),
    alert_recipient: str | None = typer.Option(
        None, "--alert-recipient", help="GitHub username that receives budget alerts."
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print API calls without executing them."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr."),
) -> None:
    """Create a cost center for one user and attach a hard-cap PRU budget."""

    settings = AppSettings()
    configure_logging(settings.log_level, verbose=verbose)

    try:
        enterprise, username = resolve_identity(enterprise, user)
        budget = resolve_budget(
            budget_usd,
            budget_prus,
            pru_rate if pru_rate is not None else settings.default_pru_rate,
        )
        if budget.units is not None:
            print_status(
                _console,
                "info",
                f"Converting {budget.units} PRUs × ${budget.rate}/PRU = ${budget.amount} USD",
            )
            print_status(
                _console,
                "warn",
                f"PRU cost varies by model. ${budget.rate}/PRU is the default base rate.",
            )
        name = resolve_cost_center_name(
            cost_center_name,
            username,
            interactive=_is_interactive(),
            dry_run=dry_run,
            prompt=_prompt_cost_center_name,
        )
        request = build_request(
            enterprise=enterprise,
            username=username,
            budget=budget,
            cost_center_name=name,
            alert_recipient=alert_recipient,
            dry_run=dry_run,
        )
    except ConfigurationError as exc:
        raise _fail(str(exc), EXIT_CONFIG) from None

    try:
        api = _open_billing_client(settings, request)
    except (DependencyMissingError, CredentialError) as exc:
        raise _fail(str(exc), EXIT_FATAL) from None

    print_banner(_console)
    _console.print(build_request_table(request))
    if request.dry_run:
        print_status(_console, "warn", "DRY-RUN mode — no API calls will be made.")

    try:
        with api:
            result = provisioning_pipeline.provision(request, api=api, hooks=_console_hooks())
    except ProvisioningAborted as exc:
        raise _fail(str(exc), EXIT_FATAL) from None

    _console.print()
    _console.print(
        build_summary_panel(provisioning_pipeline.summary_lines(result), warnings=len(result.warnings))
    )
    _console.print(
        f"View in GitHub: {settings.web_base_url.rstrip('/')}/enterprises/"
        f"{request.enterprise}/settings/billing/cost-centers",
        soft_wrap=True,
    )


def run() -> None:
    app()
