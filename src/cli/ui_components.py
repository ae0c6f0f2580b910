"""UI components for the CLI (Rich).

Commands stay free of styling details; these helpers render the header,
the request plan, status lines and the final summary.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import ProvisioningRequest

_TAGS: dict[str, tuple[str, str]] = {
    "info": ("[INFO]", "cyan"),
    "ok": ("[OK]", "green"),
    "warn": ("[WARN]", "yellow"),
    "error": ("[ERROR]", "red"),
    "dry-run": ("[DRY-RUN]", "yellow"),
}


def print_banner(console: Console) -> None:
    console.print(Text("GitHub Enterprise Cost Center Provisioning", style="bold"))


def print_status(console: Console, level: str, message: str) -> None:
    """One tagged line, e.g. `[OK]    Cost center created`."""

    tag, style = _TAGS[level]
    console.print(Text.assemble((tag, style), " " * max(1, 8 - len(tag)), message), soft_wrap=True)


def print_step(console: Console, title: str) -> None:
    console.print()
    console.print(Text(title, style="bold"))


def build_request_table(request: ProvisioningRequest) -> Table:
    """Plan of the run, printed before the first call."""

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")

    table.add_row("Enterprise", request.enterprise)
    table.add_row("User", request.username)
    table.add_row("Cost center name", request.cost_center_name)
    table.add_row("Budget (USD)", f"${request.budget_amount}")
    if request.budget_units is not None:
        table.add_row("Budget (PRUs)", str(request.budget_units))
    if request.alert_recipient:
        table.add_row("Alert recipient", request.alert_recipient)
    return table


def build_summary_panel(lines: list[str], *, warnings: int = 0) -> Panel:
    body = Text("\n".join(lines))
    if warnings:
        title = Text(f"Done with {warnings} warning(s)", style="bold yellow")
        border = "yellow"
    else:
        title = Text("Done!", style="bold green")
        border = "green"
    return Panel(body, title=title, title_align="left", border_style=border)
