"""pagehand engine — affordance resolution and DOM action execution.

Provides the complete pipeline:
- AffordanceCollector: inventories interactive elements with stable identities
- IntentResolver: structured intent taxonomy match with heuristic fallback
- match_selector: binds a target description to one affordance
- Actor: runs click/type/clear/wait/scroll/focus actions inside the page
- DispatchGuard: at-most-once execution per action identity
- Tool functions: JSON-ready planning tools for the conversation loop
"""

from pagehand.engine.actions import (
    ActionError,
    ActionName,
    ActionOutcome,
    ActionRequest,
    ActionTimeoutError,
    ElementNotFoundError,
    InvalidActionError,
    MissingParameterError,
    ScrollOptions,
    UnsupportedElementError,
)
from pagehand.engine.actor import Actor
from pagehand.engine.affordances import Affordance, AffordanceCollector, format_affordance_context
from pagehand.engine.dispatch_guard import DispatchGuard, DispatchResult, action_identity
from pagehand.engine.intents import IntentCatalog, IntentResolver
from pagehand.engine.selector_matcher import SelectorMatch, match_selector
from pagehand.engine.tools import ToolRunner, plan_action_tool, resolve_intent_tool, select_element_tool

__all__ = [
    "ActionError",
    "ActionName",
    "ActionOutcome",
    "ActionRequest",
    "ActionTimeoutError",
    "Actor",
    "Affordance",
    "AffordanceCollector",
    "DispatchGuard",
    "DispatchResult",
    "ElementNotFoundError",
    "IntentCatalog",
    "IntentResolver",
    "InvalidActionError",
    "MissingParameterError",
    "ScrollOptions",
    "SelectorMatch",
    "ToolRunner",
    "UnsupportedElementError",
    "action_identity",
    "format_affordance_context",
    "match_selector",
    "plan_action_tool",
    "resolve_intent_tool",
    "select_element_tool",
]
