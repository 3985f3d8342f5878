"""pagehand tool boundary — The planning tools exchanged with the conversation loop.

Three tools, each returning a JSON-ready dict and never raising:

    resolve_intent_tool   user request -> structured or natural-language intent
    select_element_tool   target description + affordances -> one selector
    plan_action_tool      action payload -> executable descriptor for the Actor

The tools never touch the DOM.  ``plan_action_tool`` only validates and
describes the action; the page-side Actor runs it later.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Sequence

from pagehand.engine.actions import ActionError, ActionRequest
from pagehand.engine.affordances import Affordance, parse_affordance_context
from pagehand.engine.intents import IntentResolver, NaturalLanguageIntent, StructuredIntent
from pagehand.engine.protocols import ToolUseRecord, ToolUseSink
from pagehand.engine.selector_matcher import SelectorMatch, match_selector

logger = logging.getLogger("pagehand.engine.tools")


def _error_payload(exc: Exception, **extra: Any) -> dict[str, Any]:
    return {"success": False, "error": f"{type(exc).__name__}: {exc}", **extra}


# ---------------------------------------------------------------------------
# Intent resolution
# ---------------------------------------------------------------------------


def resolve_intent_tool(
    user_request: str,
    category: str | None = None,
    resolver: IntentResolver | None = None,
) -> dict[str, Any]:
    """Parse a user request into the action they want and the target element."""
    resolver = resolver or IntentResolver()
    try:
        result = resolver.resolve(user_request, category)
    except Exception as exc:
        logger.exception("Intent resolution failed for %r", user_request)
        return _error_payload(exc, originalRequest=user_request)

    if isinstance(result, StructuredIntent):
        catalog = resolver.catalog
        return {
            "success": True,
            "intentType": "structured",
            "category": result.category,
            "intentName": result.intent_name,
            "confidence": result.confidence,
            "fields": result.fields,
            "validation": result.validation.to_dict(),
            "missingFields": result.missing_fields,
            "actions": {
                name: {"description": a.description, "parameters": dict(a.parameters)}
                for name, a in result.actions.items()
            },
            "formattedIntent": catalog.format_for_display(result.category, result.intent_name),
            "message": f"Matched structured intent: {result.category}/{result.intent_name}",
            "originalRequest": user_request,
        }

    if isinstance(result, NaturalLanguageIntent):
        return {
            "success": True,
            "intentType": "natural_language",
            "message": f"Parsed user intent: {result.action} {result.target}".rstrip(),
            "action": result.action,
            "target": result.target,
            "text": result.text,
            "confidence": result.confidence,
            "originalRequest": user_request,
        }

    return {
        "success": False,
        "noMatch": True,
        "message": f"Could not interpret request: {result.reason}",
        "suggestion": result.suggestion,
        "originalRequest": user_request,
    }


# ---------------------------------------------------------------------------
# Selector matching
# ---------------------------------------------------------------------------


def select_element_tool(
    intent: str,
    action: str,
    text: str | None = None,
    affordances_context: str | None = None,
    affordances: Sequence[Affordance | dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Pick the affordance that best matches *intent* for *action*.

    Candidates come from *affordances* when given, otherwise from the
    ``- Name (TAG) - selector`` lines in *affordances_context*.
    """
    base = {"intent": intent, "action": action, "text": text}
    try:
        candidates: Sequence[Affordance | dict[str, Any]]
        if affordances is not None:
            candidates = affordances
        elif affordances_context:
            candidates = parse_affordance_context(affordances_context)
        else:
            candidates = []
        result = match_selector(intent, action, candidates)
    except Exception as exc:
        logger.exception("Selector matching failed for %r", intent)
        return _error_payload(exc, **base)

    if isinstance(result, SelectorMatch):
        el = result.element
        return {
            "success": True,
            "message": f"Found matching element: {el.name} ({el.tag}) with selector: {el.selector}",
            **base,
            "selectedElement": {"name": el.name, "tag": el.tag, "selector": el.selector},
            "confidence": result.confidence,
            "matchScore": result.score,
        }

    return {
        "success": False,
        "message": f"No suitable element found for intent: {intent}",
        **base,
        "suggestion": result.suggestion,
    }


# ---------------------------------------------------------------------------
# Action planning
# ---------------------------------------------------------------------------


def plan_action_tool(payload: dict[str, Any]) -> dict[str, Any]:
    """Validate an action payload and describe what the page-side Actor must run."""
    echo = {k: payload.get(k) for k in ("action", "selector", "text", "x", "y", "timeout", "simulateTyping")}
    try:
        request = ActionRequest.from_dict(payload)
        request.validate()
    except (ActionError, ValueError, TypeError) as exc:
        return {"success": False, "error": str(exc), **echo}

    return {
        "success": True,
        "message": f"Actor action '{request.action.value}' ready for execution",
        **echo,
        "executable": True,
        "actorMethod": request.action.value,
        "actorParams": request.actor_params(),
    }


# ---------------------------------------------------------------------------
# Runner with tool-use logging
# ---------------------------------------------------------------------------


class ToolRunner:
    """Invokes tools, times them, and reports each call to a ToolUseSink.

    Tool exceptions are converted to ``{success: False, error}`` so the
    conversation loop keeps going.  Sink failures are logged, not raised.
    """

    def __init__(self, sink: ToolUseSink, conversation_id: str = "") -> None:
        self._sink = sink
        self._conversation_id = conversation_id

    def call(
        self,
        tool_name: str,
        func: Callable[..., dict[str, Any]],
        message_id: str = "",
        **kwargs: Any,
    ) -> dict[str, Any]:
        start = time.monotonic()
        try:
            output = func(**kwargs)
        except Exception as exc:
            logger.exception("Tool %s raised", tool_name)
            output = _error_payload(exc)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        record = ToolUseRecord(
            tool_name=tool_name,
            input=json.loads(json.dumps(kwargs, default=str)),
            output=output,
            duration_ms=duration_ms,
            status="success" if output.get("success") else "error",
            conversation_id=self._conversation_id,
            message_id=message_id,
        )
        if self._sink.is_ready():
            try:
                self._sink.log_tool_use(record)
            except Exception:
                logger.warning("Failed to log tool use for %s", tool_name, exc_info=True)
        else:
            logger.debug("Tool-use sink not ready; dropping log for %s", tool_name)
        return output
