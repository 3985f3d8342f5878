"""pagehand act — Run a YAML action script against a live page.

Script format (either form)::

    - action: click
      selector: "#submit"
    - action: type
      target: email          # matched against the page's affordances
      text: user@example.com

    message_id: checkout-1
    actions:
      - {action: scrollToBottom}

Steps with a ``target`` instead of a ``selector`` are bound to an affordance
with the selector matcher before they run.  All steps go through the
dispatch guard in order; a failed step does not stop the rest.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from pagehand.cli.common import config_error, load_config
from pagehand.engine.actions import ActionError, ActionRequest
from pagehand.engine.affordances import Affordance
from pagehand.engine.dispatch_guard import DispatchResult
from pagehand.engine.selector_matcher import SelectorMatch, match_selector

console = Console()


def _load_script(script: Path) -> tuple[str, list[dict[str, Any]]]:
    if not script.is_file():
        config_error(f"Script not found: {script}")
    try:
        data = yaml.safe_load(script.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        config_error(f"Invalid YAML in {script}:\n{exc}")

    message_id = script.stem
    if isinstance(data, dict):
        message_id = str(data.get("message_id", message_id))
        data = data.get("actions")
    if not isinstance(data, list) or not all(isinstance(step, dict) for step in data):
        config_error(f"{script} must contain a list of action mappings (or an 'actions' list).")
    return message_id, data


def _bind_targets(steps: list[dict[str, Any]], affordances: list[Affordance]) -> list[dict[str, Any]]:
    bound = []
    for i, step in enumerate(steps):
        target = step.get("target")
        if target and not step.get("selector"):
            result = match_selector(str(target), str(step.get("action", "click")), affordances)
            if not isinstance(result, SelectorMatch):
                config_error(f"Step {i + 1}: no element matches target {target!r}. {result.suggestion}")
            step = {**step, "selector": result.element.selector}
        bound.append(step)
    return bound


def _render_results(results: list[DispatchResult], requests: list[ActionRequest]) -> Table:
    table = Table(title="Action Results")
    table.add_column("#", justify="right")
    table.add_column("Action")
    table.add_column("Selector", style="cyan")
    table.add_column("Status")
    table.add_column("Duration", justify="right")
    table.add_column("Error", overflow="fold")

    status_styles = {"executed": "green", "failed": "red", "skipped": "yellow"}
    for i, (result, request) in enumerate(zip(results, requests), 1):
        outcome = result.outcome
        style = status_styles.get(result.status, "white")
        table.add_row(
            str(i),
            request.action.value,
            request.selector or "",
            f"[{style}]{result.status}[/{style}]",
            f"{outcome.duration_ms:.0f}ms" if outcome else "-",
            (outcome.error or "") if outcome else "",
        )
    return table


def act(
    url: str = typer.Argument(..., help="Page URL (relative URLs resolve against base_url)."),
    script: Path = typer.Argument(..., help="YAML file with the actions to run."),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml."),
) -> None:
    """Open URL, then run each action in SCRIPT exactly once."""
    from pagehand.engine.browser_session import BrowserSession

    config = load_config(config_path)
    message_id, steps = _load_script(script)

    with BrowserSession(config) as session:
        session.open(url)
        # Collection stamps identity attributes that affordance selectors rely on
        affordances = session.collector.collect(config.max_affordances)
        steps = _bind_targets(steps, affordances)

        requests: list[ActionRequest] = []
        for i, step in enumerate(steps):
            try:
                request = ActionRequest.from_dict(step)
                request.validate()
            except (ActionError, ValueError) as exc:
                config_error(f"Step {i + 1}: {exc}")
            requests.append(request)

        results = session.guard.dispatch_message(message_id, requests)

    console.print(_render_results(results, requests))
    failed = sum(1 for r in results if r.status == "failed")
    if failed:
        console.print(f"[red]{failed} of {len(results)} action(s) failed.[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]All {len(results)} action(s) completed.[/green]")
