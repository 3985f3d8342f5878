"""pagehand action model — The closed action vocabulary and the request the Actor consumes.

An :class:`ActionRequest` is self-contained and replayable: it carries the
action name, an optional target selector, and action-specific parameters.
Nothing from the matching stage leaks into execution beyond the selector
string.
"""

from __future__ import annotations

import dataclasses
import enum
from typing import Any


class ActionName(str, enum.Enum):
    CLICK = "click"
    TYPE = "type"
    TYPE_FAST = "typeFast"
    CLEAR = "clear"
    WAIT_FOR_ELEMENT = "waitForElement"
    SCROLL_TO = "scrollTo"
    SCROLL_TO_TOP = "scrollToTop"
    SCROLL_TO_BOTTOM = "scrollToBottom"
    SCROLL_BY = "scrollBy"
    SCROLL_TO_ELEMENT = "scrollToElement"
    SCROLL_TO_ELEMENT_TOP = "scrollToElementTop"
    SCROLL_TO_ELEMENT_BOTTOM = "scrollToElementBottom"
    SCROLL_PAGE_DOWN = "scrollPageDown"
    SCROLL_PAGE_UP = "scrollPageUp"
    FOCUS = "focus"
    BLUR = "blur"


SELECTOR_ACTIONS = frozenset(
    {
        ActionName.CLICK,
        ActionName.TYPE,
        ActionName.TYPE_FAST,
        ActionName.CLEAR,
        ActionName.WAIT_FOR_ELEMENT,
        ActionName.SCROLL_TO_ELEMENT,
        ActionName.SCROLL_TO_ELEMENT_TOP,
        ActionName.SCROLL_TO_ELEMENT_BOTTOM,
        ActionName.FOCUS,
        ActionName.BLUR,
    }
)

TEXT_ACTIONS = frozenset({ActionName.TYPE, ActionName.TYPE_FAST})

SCROLL_BEHAVIORS = ("auto", "smooth")
SCROLL_ALIGNMENTS = ("start", "center", "end", "nearest")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ActionError(Exception):
    """Base class for action failures. Carries the action and selector involved."""

    def __init__(self, message: str, action: str = "", selector: str | None = None) -> None:
        super().__init__(message)
        self.action = action
        self.selector = selector


class ElementNotFoundError(ActionError):
    """The selector matched no node at locate time."""


class UnsupportedElementError(ActionError):
    """The located element lacks the capability the action needs."""


class MissingParameterError(ActionError):
    """A parameter required by the action is absent."""


class ActionTimeoutError(ActionError):
    """waitForElement exceeded its bound."""


class InvalidActionError(ActionError):
    """The action name is not part of the closed vocabulary."""


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class ScrollOptions:
    behavior: str = "smooth"
    block: str = "center"
    inline: str = "center"

    def __post_init__(self) -> None:
        if self.behavior not in SCROLL_BEHAVIORS:
            raise ValueError(f"Invalid scroll behavior: {self.behavior!r}")
        for key in ("block", "inline"):
            value = getattr(self, key)
            if value not in SCROLL_ALIGNMENTS:
                raise ValueError(f"Invalid scroll {key}: {value!r}")

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ScrollOptions:
        data = data or {}
        return cls(
            behavior=data.get("behavior") or "smooth",
            block=data.get("block") or "center",
            inline=data.get("inline") or "center",
        )

    def to_dict(self) -> dict[str, str]:
        return dataclasses.asdict(self)


def parse_action_name(value: str | ActionName) -> ActionName:
    """Coerce a wire action name into the closed enumeration."""
    if isinstance(value, ActionName):
        return value
    try:
        return ActionName(str(value).strip())
    except ValueError:
        valid = ", ".join(a.value for a in ActionName)
        raise InvalidActionError(f"Unknown action: {value!r}. Valid actions: {valid}", action=str(value)) from None


@dataclasses.dataclass(frozen=True)
class ActionRequest:
    """Everything the Actor needs to run one action."""

    action: ActionName
    selector: str | None = None
    text: str | None = None
    x: float | None = None
    y: float | None = None
    timeout: int | None = None
    simulate_typing: bool | None = None
    scroll_options: ScrollOptions | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActionRequest:
        """Build a request from the camelCase tool payload.

        Accepts either ``actorMethod``/``actorParams`` (a planned action) or
        flat ``action``/``selector``/... keys.
        """
        if "actorMethod" in data:
            params = dict(data.get("actorParams") or {})
            action = data["actorMethod"]
        else:
            params = data
            action = data.get("action", "")

        scroll = params.get("scrollOptions", params.get("scroll_options"))
        simulate = params.get("simulateTyping", params.get("simulate_typing"))
        return cls(
            action=parse_action_name(action),
            selector=params.get("selector") or None,
            text=params.get("text"),
            x=params.get("x"),
            y=params.get("y"),
            timeout=params.get("timeout"),
            simulate_typing=simulate,
            scroll_options=ScrollOptions.from_dict(scroll) if scroll else None,
        )

    def validate(self) -> None:
        """Fail fast before any DOM access.

        Raises MissingParameterError.
        """
        if self.action in SELECTOR_ACTIONS and not self.selector:
            raise MissingParameterError(
                f"Selector is required for {self.action.value} action", action=self.action.value
            )
        if self.action in TEXT_ACTIONS and not self.text:
            raise MissingParameterError(
                f"Text is required for {self.action.value} action",
                action=self.action.value,
                selector=self.selector,
            )

    def actor_params(self) -> dict[str, Any]:
        """Parameters as the page-side executor expects them (unset values omitted)."""
        params: dict[str, Any] = {}
        if self.selector:
            params["selector"] = self.selector
        if self.text:
            params["text"] = self.text
        if self.x is not None:
            params["x"] = self.x
        if self.y is not None:
            params["y"] = self.y
        if self.timeout is not None:
            params["timeout"] = self.timeout
        if self.simulate_typing is not None:
            params["simulateTyping"] = self.simulate_typing
        if self.scroll_options is not None:
            params["scrollOptions"] = self.scroll_options.to_dict()
        return params


@dataclasses.dataclass
class ActionOutcome:
    """Result of running one ActionRequest, for reporting."""

    success: bool
    action: str
    selector: str | None
    error: str | None = None
    duration_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)
