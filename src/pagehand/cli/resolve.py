"""pagehand resolve — Resolve a user request into an intent, offline."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from pagehand.cli.common import config_error, load_config
from pagehand.config import PagehandConfigError, read_intent_catalog
from pagehand.engine.intents import IntentResolver
from pagehand.engine.tools import resolve_intent_tool

console = Console()


def resolve(
    request: str = typer.Argument(..., help='User request, e.g. "click the submit button".'),
    category: Optional[str] = typer.Option(None, "--category", help="Only match intents in this category."),
    intents_file: Optional[Path] = typer.Option(
        None, "--intents", "-i", help="Intent taxonomy (YAML or JSON). Defaults to config intents_file."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the raw tool payload."),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml."),
) -> None:
    """Resolve REQUEST and print the action, target and confidence."""
    config = load_config(config_path)
    try:
        if intents_file is not None:
            catalog = read_intent_catalog(intents_file)
        else:
            catalog = config.load_catalog()
    except PagehandConfigError as exc:
        config_error(str(exc))

    result = resolve_intent_tool(request, category=category, resolver=IntentResolver(catalog))

    if as_json:
        console.print_json(json.dumps(result))
        return

    if not result.get("success"):
        console.print(
            Panel(
                f"{result.get('message') or result.get('error')}\n\n[dim]{result.get('suggestion', '')}[/dim]",
                title="[yellow]No Intent[/yellow]",
                border_style="yellow",
            )
        )
        raise typer.Exit(code=1)

    if result["intentType"] == "structured":
        lines = [
            f"[bold]Intent:[/bold] {result['category']}/{result['intentName']}",
            f"[bold]Confidence:[/bold] {result['confidence']}",
            "[bold]Fields:[/bold]",
        ]
        lines += [f"  {k}: {v if v is not None else '[dim]-[/dim]'}" for k, v in result["fields"].items()]
        if result["missingFields"]:
            lines.append(f"[red]Missing required:[/red] {', '.join(result['missingFields'])}")
        title = "[green]Structured Intent[/green]"
    else:
        lines = [
            f"[bold]Action:[/bold] {result['action']}",
            f"[bold]Target:[/bold] {result['target'] or '[dim]-[/dim]'}",
            f"[bold]Confidence:[/bold] {result['confidence']}",
        ]
        if result.get("text"):
            lines.append(f"[bold]Text:[/bold] {result['text']}")
        title = "[cyan]Natural Language Intent[/cyan]"

    console.print(Panel("\n".join(lines), title=title, border_style="green"))
