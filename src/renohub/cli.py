"""
RenoHub CLI — command-line interface.

Usage:
    renohub snapshot --config renohub.yaml --output snapshot.json
    renohub summarize --input snapshot.json
    renohub summarize --input snapshot.json --kind suggestion --milestone "Kitchen demo"
    renohub check-config
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from renohub import __version__
from renohub.errors import ConfigurationError, InvalidRequestError, RenoHubError, UpstreamError

app = typer.Typer(
    name="renohub",
    help="🏗 RenoHub — renovation project dashboard aggregator",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()

_EXIT_CODES: dict[type[RenoHubError], int] = {
    ConfigurationError: 1,
    UpstreamError: 2,
    InvalidRequestError: 3,
}


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold]RenoHub[/bold] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """🏗 RenoHub — Pull. Normalize. Derive."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _fail(error: RenoHubError) -> None:
    console.print_json(json.dumps(error.to_payload()))
    raise typer.Exit(_EXIT_CODES.get(type(error), 3))


@app.command()
def snapshot(
    config: str = typer.Option(
        "renohub.yaml",
        "--config",
        "-c",
        help="Path to config file",
    ),
    output: str = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the snapshot JSON here instead of stdout",
    ),
    now: str = typer.Option(
        None,
        "--now",
        help="Reference time (ISO 8601) for windows and countdowns",
    ),
) -> None:
    """Aggregate all collections into one dashboard snapshot."""
    from renohub.hub import RenovationHub

    config_path = config if Path(config).exists() else None
    hub = RenovationHub.from_config(config_path)

    reference = None
    if now:
        try:
            reference = datetime.fromisoformat(now)
        except ValueError:
            _fail(InvalidRequestError(f"--now is not an ISO timestamp: {now!r}"))

    try:
        if output:
            with console.status("[bold green]Aggregating...[/bold green]"):
                result = hub.aggregate_sync(reference)
        else:
            # stdout carries the JSON document only
            result = hub.aggregate_sync(reference)
    except RenoHubError as e:
        _fail(e)
        return

    if output:
        path = Path(output)
        path.write_text(result.to_json(indent=2))
        _display_kpis(result.to_dict())
        console.print(f"[green]✓[/green] Snapshot saved to [bold]{path}[/bold]")
    else:
        typer.echo(result.to_json(indent=2))


@app.command()
def summarize(
    input: str = typer.Option(
        ...,
        "--input",
        "-i",
        help="Snapshot JSON produced by `renohub snapshot`",
    ),
    kind: str = typer.Option(
        "summary",
        "--kind",
        "-k",
        help="summary or suggestion",
    ),
    milestone: str = typer.Option(
        None,
        "--milestone",
        "-m",
        help="Milestone title for a suggestion (defaults to the first at-risk one)",
    ),
    config: str = typer.Option(
        "renohub.yaml",
        "--config",
        "-c",
        help="Path to config file",
    ),
) -> None:
    """Ask the LLM for a weekly update or for actions on an at-risk milestone."""
    from renohub.hub import RenovationHub

    try:
        data = json.loads(Path(input).read_text())
    except (OSError, json.JSONDecodeError) as e:
        _fail(InvalidRequestError(f"Cannot read snapshot {input}: {e}"))
        return

    if kind == "suggestion":
        data = _suggestion_payload(data, milestone)

    config_path = config if Path(config).exists() else None
    hub = RenovationHub.from_config(config_path)

    try:
        with console.status("[bold green]Summarizing...[/bold green]"):
            text = asyncio.run(hub.summarize(kind, data))
    except RenoHubError as e:
        _fail(e)
        return

    console.print(text)


@app.command("check-config")
def check_config(
    config: str = typer.Option(
        "renohub.yaml",
        "--config",
        "-c",
        help="Path to config file",
    ),
) -> None:
    """List required settings that are missing."""
    from renohub.config import HubConfig

    cfg = HubConfig.load(config if Path(config).exists() else None)
    missing = cfg.missing_aggregation_settings()
    if not cfg.llm.api_key:
        console.print("[dim]No text-generation key set; summaries are disabled.[/dim]")
    if missing:
        _fail(ConfigurationError(missing))
    console.print("[green]✓[/green] All required settings present")


def _suggestion_payload(snapshot: dict[str, Any], title: str | None) -> dict[str, Any]:
    """Pick a milestone and describe its gate issue for the suggestion prompt."""
    milestones = snapshot.get("milestones") or []
    if title:
        chosen = next((m for m in milestones if m.get("title") == title), None)
    else:
        chosen = next((m for m in milestones if m.get("riskStatus") == "At Risk"), None)
    if chosen is None:
        _fail(InvalidRequestError("No matching milestone in snapshot"))

    phase = chosen.get("phase", "")
    gate = next((g for g in snapshot.get("gates") or [] if g.get("id") == phase), None)
    issue = ""
    if gate is not None and not gate.get("completeStrict"):
        issue = (
            f"Gate {phase}: {gate.get('requirementsApproved', 0)} of "
            f"{gate.get('requirementsTotal', 0)} required deliverables approved"
        )
    return {
        "title": chosen.get("title"),
        "indicator": chosen.get("indicator"),
        "gateIssue": issue,
    }


def _display_kpis(data: dict[str, Any]) -> None:
    """Display the KPI block in the terminal."""
    kpis = data["kpis"]
    table = Table(title="Project KPIs", show_lines=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Budget", f"RM {kpis['budgetMYR']:,}")
    table.add_row("Paid", f"RM {kpis['paidMYR']:,}")
    table.add_row("Remaining", f"RM {kpis['remainingMYR']:,}")
    table.add_row("Paid vs Budget", f"{kpis['paidVsBudget']:.1%}")
    table.add_row(
        "Deliverables Approved",
        f"{kpis['deliverablesApproved']}/{kpis['deliverablesTotal']}",
    )
    table.add_row("Milestones At Risk", str(kpis["milestonesAtRisk"]))
    table.add_row("Days To Launch", str(kpis["daysToLaunch"]))
    table.add_row(
        "Due Next 30 Days",
        f"RM {kpis['next30']['amount']:,.2f} ({kpis['next30']['count']})",
    )
    console.print(table)

    overdue = data["alerts"]["paymentsOverdue"]
    if overdue:
        console.print(f"[red]{len(overdue)} overdue payment(s)[/red]")
        for p in overdue[:5]:
            console.print(f"  • {p['title']} — {p['vendor']} — RM {p['amount']:,.2f} (due {p['dueDate']})")
    console.print()


if __name__ == "__main__":
    app()
