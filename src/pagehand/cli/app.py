"""pagehand CLI — Main Typer entry point.

Registers all subcommands and provides --version / --verbose global options.
"""

from __future__ import annotations

import typer
from rich.console import Console

from pagehand import __version__

TAGLINE = "Find the element the user means. Act on it once."

console = Console()

# ── Version callback ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print("pagehand", style="bold cyan")
        console.print(f"  {TAGLINE}", style="dim")
        console.print(f"  v{__version__}\n", style="bold")
        raise typer.Exit()


# ── Main app ──────────────────────────────────────────────────────────────

app = typer.Typer(
    name="pagehand",
    help=f"pagehand -- {TAGLINE}",
    rich_markup_mode="rich",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show pagehand version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
) -> None:
    """pagehand -- affordance resolution and DOM actions for browser assistants."""
    if verbose:
        import logging

        logging.basicConfig(level=logging.DEBUG, format="%(name)s  %(message)s")


# ── Register subcommands ──────────────────────────────────────────────────

from pagehand.cli.act import act  # noqa: E402
from pagehand.cli.collect import collect  # noqa: E402
from pagehand.cli.match import match  # noqa: E402
from pagehand.cli.resolve import resolve  # noqa: E402

app.command(name="collect", help="List the interactive elements (affordances) on a page.")(collect)
app.command(name="resolve", help="Resolve a user request into an intent (no browser needed).")(resolve)
app.command(name="match", help="Match a target description against a page's affordances.")(match)
app.command(name="act", help="Run a YAML script of actions against a page.")(act)
