"""pagehand collect — Inventory a page's interactive elements."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from pagehand.cli.common import load_config
from pagehand.engine.affordances import Affordance

console = Console(stderr=True)
output_console = Console()  # stdout for machine-readable output


def render_affordances(affordances: list[Affordance], show_hidden: bool = False) -> Table:
    table = Table(title=f"Affordances ({len(affordances)})")
    table.add_column("Id", style="dim")
    table.add_column("Tag")
    table.add_column("Role")
    table.add_column("Name", overflow="fold")
    table.add_column("Visible")
    table.add_column("Enabled")
    table.add_column("Selector", style="cyan")
    for aff in affordances:
        if not aff.visible and not show_hidden:
            continue
        table.add_row(
            aff.id,
            aff.tag,
            aff.role or "",
            aff.label,
            "[green]yes[/green]" if aff.visible else "[dim]no[/dim]",
            "[green]yes[/green]" if aff.enabled else "[red]no[/red]",
            aff.selector,
        )
    return table


def collect(
    url: str = typer.Argument(..., help="Page URL (relative URLs resolve against base_url)."),
    max_count: Optional[int] = typer.Option(None, "--max", "-n", help="Maximum affordances to collect."),
    as_json: bool = typer.Option(False, "--json", help="Print affordances as JSON to stdout."),
    show_hidden: bool = typer.Option(False, "--all", "-a", help="Include invisible elements in the table."),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml."),
) -> None:
    """Open URL in a browser and list its affordances."""
    from pagehand.engine.browser_session import BrowserSession

    config = load_config(config_path)
    limit = max_count or config.max_affordances

    with BrowserSession(config) as session:
        session.open(url)
        affordances = session.collector.collect(limit)

    if as_json:
        output_console.print_json(json.dumps([a.to_dict() for a in affordances]))
        return
    output_console.print(render_affordances(affordances, show_hidden=show_hidden))
