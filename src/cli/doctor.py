"""Doctor command for environment diagnostics."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

import httpx
import typer
from rich.console import Console
from rich.table import Table

from adapters.credentials import find_gh, resolve_token
from adapters.http_client import build_client
from core.config import AppSettings, write_user_env_vars
from core.domain.errors import CredentialError, DependencyMissingError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


def _check_api(settings: AppSettings, token: str | None) -> tuple[bool, str]:
    try:
        with build_client(settings, token=token) as client:
            response = client.get("/meta")
        return response.is_success, f"HTTP {response.status_code}"
    except httpx.HTTPError as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="Cost Center Provisioner Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    gh_path = find_gh(settings)
    if gh_path:
        table.add_row("GitHub CLI", "OK", gh_path)
    elif settings.github_token:
        table.add_row("GitHub CLI", "OPTIONAL", "Not found; token taken from the environment")
    else:
        table.add_row("GitHub CLI", "FAIL", "Install from https://cli.github.com or set GITHUB_TOKEN")

    token: str | None = None
    try:
        resolved = resolve_token(settings)
    except (DependencyMissingError, CredentialError) as exc:
        table.add_row("Token", "FAIL", str(exc))
    else:
        token = resolved.token
        table.add_row("Token", "OK", f"{resolved.masked} (from {resolved.source})")

    table.add_row("API base_url", "OK", settings.api_base_url)
    table.add_row("API version", "OK", settings.api_version)
    table.add_row("Default PRU rate", "OK", f"${settings.default_pru_rate}/PRU")

    ok_http, detail_http = _check_api(settings, token)
    table.add_row("API connectivity", "OK" if ok_http else "FAIL", detail_http)

    _console.print(table)

    if token is None:
        _console.print(
            "\n[yellow]Note:[/yellow] Live runs need a token. Use `gh auth login` or export GITHUB_TOKEN; "
            "`--dry-run` works without one."
        )


@app.command()
def configure() -> None:
    """Interactive setup (stores defaults in the user config .env)."""

    settings = AppSettings()

    api_base_url = typer.prompt("API base URL", default=settings.api_base_url, show_default=True).strip()
    web_base_url = typer.prompt("Web base URL", default=settings.web_base_url, show_default=True).strip()
    rate_raw = typer.prompt(
        "Default USD per premium request",
        default=str(settings.default_pru_rate),
        show_default=True,
    ).strip()

    if not api_base_url or not web_base_url:
        raise typer.BadParameter("API and web base URLs are required")
    try:
        rate = Decimal(rate_raw)
    except InvalidOperation as exc:
        raise typer.BadParameter("rate must be a number") from exc
    if not rate.is_finite() or rate < 0:
        raise typer.BadParameter("rate must be a non-negative number")

    env_path = write_user_env_vars(
        {
            "CCP_API_BASE_URL": api_base_url,
            "CCP_WEB_BASE_URL": web_base_url,
            "CCP_DEFAULT_PRU_RATE": str(rate),
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")
