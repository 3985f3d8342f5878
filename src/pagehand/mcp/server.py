"""pagehand MCP Server — Model Context Protocol server for the conversation loop.

Exposes pagehand's planning tools so a model-driven tool loop can resolve
intents, bind them to page affordances and plan executable actions.  The
server never touches a browser; planned actions are run by the page-side
Actor.

Usage:
    pagehand-mcp            # stdio transport (default)
    python -m pagehand.mcp  # alternative invocation

Tools:

    pagehand_resolve_intent   Parse a user request into a structured action
    pagehand_match_selector   Pick the affordance matching a target description
    pagehand_plan_action      Validate an action and return its Actor descriptor
    pagehand_list_intents     List the configured intent taxonomy
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pagehand.config import PagehandConfig, PagehandConfigError
from pagehand.engine.intents import IntentCatalog, IntentResolver
from pagehand.engine.protocols import ToolUseSink
from pagehand.engine.tool_log import JsonlToolUseSink, NullToolUseSink
from pagehand.engine.tools import ToolRunner, plan_action_tool, resolve_intent_tool, select_element_tool

logger = logging.getLogger("pagehand.mcp")


def _resolve_project_dir(directory: str | None = None) -> Path:
    """Find the .pagehand/ project directory.

    Searches upward from *directory* (default: cwd) for a .pagehand/ folder.
    Returns start/.pagehand when none is found (it may not exist).
    """
    start = Path(directory).resolve() if directory else Path.cwd()

    for base in [start, *start.parents]:
        candidate = base / ".pagehand"
        if candidate.is_dir():
            return candidate

    return start / ".pagehand"


def _build_config(project_dir: Path) -> PagehandConfig:
    """Load config.yaml from *project_dir*, or defaults if it is absent."""
    config_path = project_dir / "config.yaml"
    if config_path.is_file():
        return PagehandConfig.from_file(config_path)
    config = PagehandConfig()
    config.project_dir = project_dir
    return config


def _build_sink(config: PagehandConfig) -> ToolUseSink:
    if config.tool_log is None:
        return NullToolUseSink()
    return JsonlToolUseSink(config.tool_log)


def _tool_error(message: str, code: str) -> str:
    return json.dumps({"error": message, "tool_error": True, "error_code": code})


def create_server(
    config: PagehandConfig | None = None,
    catalog: IntentCatalog | None = None,
    sink: ToolUseSink | None = None,
) -> Any:
    """Create and configure the pagehand MCP server.

    Collaborators are built once here and shared by every tool call.
    Explicit *catalog* / *sink* arguments take precedence over *config*.

    Returns:
        A FastMCP server instance with all tools registered.
    """
    try:
        from mcp.server.fastmcp import FastMCP
    except ImportError:
        raise ImportError(
            "The 'mcp' package is required for the pagehand MCP server.\n\n"
            "Install it:\n"
            "  pip install 'pagehand[mcp]'\n"
            "  # or: pip install 'mcp>=1.0.0,<2'"
        )

    if config is None:
        config = _build_config(_resolve_project_dir())
    if catalog is None:
        try:
            catalog = config.load_catalog()
        except PagehandConfigError as exc:
            logger.warning("Intent taxonomy unavailable, using heuristics only: %s", exc)
            catalog = IntentCatalog()
    if sink is None:
        sink = _build_sink(config)
    sink.connect()

    resolver = IntentResolver(catalog)
    runner = ToolRunner(sink)

    mcp = FastMCP(
        "pagehand",
        instructions=(
            "pagehand resolves what a user means into a concrete interactive "
            "element on the current page and plans browser actions against it. "
            "Resolve the request, match the target against the affordance list "
            "in context, then plan the action for the page-side executor."
        ),
    )

    # ── Tool: pagehand_resolve_intent ────────────────────────────────────

    @mcp.tool(
        name="pagehand_resolve_intent",
        description=(
            "Parse user intent and extract the action they want to perform and the "
            "target element. Checks the configured intent taxonomy first, then falls "
            "back to natural language parsing."
        ),
    )
    async def pagehand_resolve_intent(
        user_request: str,
        category: str | None = None,
        message_id: str = "",
    ) -> str:
        """Resolve a user request.

        Args:
            user_request: The user's request, e.g. "click the submit button".
            category: Optional intent category to narrow the search.
            message_id: Owning assistant message, for tool-use logs.

        Returns:
            JSON string with the structured or natural-language intent.
        """
        result = runner.call(
            "resolve_intent",
            resolve_intent_tool,
            message_id=message_id,
            user_request=user_request,
            category=category,
            resolver=resolver,
        )
        return json.dumps(result)

    # ── Tool: pagehand_match_selector ────────────────────────────────────

    @mcp.tool(
        name="pagehand_match_selector",
        description=(
            "Find the best matching element/selector for a target description "
            "from the affordances in context (lines like '- Name (TAG) - selector')."
        ),
    )
    async def pagehand_match_selector(
        intent: str,
        action: str,
        text: str | None = None,
        affordances_context: str | None = None,
        message_id: str = "",
    ) -> str:
        """Match a target description to one affordance.

        Args:
            intent: What the user wants to interact with, e.g. "email field".
            action: The intended action (click, type, clear, ...).
            text: Text to type, when the action types.
            affordances_context: Affordance lines from the conversation context.
            message_id: Owning assistant message, for tool-use logs.

        Returns:
            JSON string with the selected element or a no-match suggestion.
        """
        result = runner.call(
            "match_selector",
            select_element_tool,
            message_id=message_id,
            intent=intent,
            action=action,
            text=text,
            affordances_context=affordances_context,
        )
        return json.dumps(result)

    # ── Tool: pagehand_plan_action ───────────────────────────────────────

    @mcp.tool(
        name="pagehand_plan_action",
        description=(
            "Plan a DOM action (click, type, typeFast, clear, waitForElement, scroll "
            "variants, focus, blur) for the page-side executor. Validates required "
            "parameters and returns the executor method and parameters."
        ),
    )
    async def pagehand_plan_action(
        action: str,
        selector: str | None = None,
        text: str | None = None,
        x: float | None = None,
        y: float | None = None,
        timeout: int | None = None,
        simulate_typing: bool | None = None,
        scroll_options: dict[str, str] | None = None,
        message_id: str = "",
    ) -> str:
        """Plan one action.

        Args:
            action: One of the executor's action names.
            selector: Affordance selector (required for element actions).
            text: Text to type (required for type/typeFast).
            x: X coordinate or delta for scrollTo/scrollBy.
            y: Y coordinate or delta for scrollTo/scrollBy.
            timeout: Timeout in ms for waitForElement.
            simulate_typing: Type one character at a time.
            scroll_options: behavior/block/inline for scrollToElement.
            message_id: Owning assistant message, for tool-use logs.

        Returns:
            JSON string with ``executable``, ``actorMethod`` and ``actorParams``.
        """
        payload: dict[str, Any] = {
            "action": action,
            "selector": selector,
            "text": text,
            "x": x,
            "y": y,
            "timeout": timeout,
            "simulateTyping": simulate_typing,
            "scrollOptions": scroll_options,
        }
        result = runner.call("plan_action", plan_action_tool, message_id=message_id, payload=payload)
        return json.dumps(result)

    # ── Tool: pagehand_list_intents ──────────────────────────────────────

    @mcp.tool(
        name="pagehand_list_intents",
        description="List the configured intent categories, intents, fields and actions.",
    )
    async def pagehand_list_intents(category: str | None = None) -> str:
        """List the intent taxonomy.

        Args:
            category: Only list this category.

        Returns:
            JSON object mapping category -> intent name -> definition.
        """
        categories = [category] if category else catalog.categories()
        listing: dict[str, Any] = {}
        for cat in categories:
            intents = catalog.category_intents(cat)
            if intents is None:
                return _tool_error(f"Unknown intent category: {cat}", "CATEGORY_NOT_FOUND")
            listing[cat] = {name: defn.to_dict() for name, defn in intents.items()}
        return json.dumps(listing, indent=2)

    return mcp


def main() -> None:
    """Entry point for the pagehand-mcp command."""
    server = create_server()
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
