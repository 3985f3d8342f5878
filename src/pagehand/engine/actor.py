"""pagehand Actor — Executes DOM actions inside the live page.

Each public method maps to one name in :class:`ActionName` and runs a small
JavaScript routine through Playwright's ``page.evaluate``.  Page-side code
reports a status string ("ok", "not_found", "unsupported", ...) instead of
throwing, and this module turns non-"ok" statuses into the typed
:class:`ActionError` hierarchy.

Per-invocation flow: validate -> locate -> (optional wait) -> mutate DOM ->
dispatch synthetic events -> settle.  A missing element is terminal for the
invocation; only ``wait_for_element`` polls, and it does so with a
MutationObserver raced against a timer, never a loop.

Values are written through the element prototype's native ``value`` setter
so that frameworks which wrap the property (React controlled inputs and the
like) still observe the change through their own input/change listeners.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from pagehand.engine.actions import (
    ActionError,
    ActionName,
    ActionOutcome,
    ActionRequest,
    ActionTimeoutError,
    ElementNotFoundError,
    ScrollOptions,
    UnsupportedElementError,
)
from pagehand.models import DEFAULT_WAIT_TIMEOUT_MS, TYPING_DELAY_MS

if TYPE_CHECKING:
    from playwright.sync_api import Page

logger = logging.getLogger("pagehand.engine.actor")

# Shared page-side helpers, spliced into every routine below.
_HELPERS = r"""
    const locate = (selector) => {
        try {
            return document.querySelector(selector);
        } catch (err) {
            return undefined;
        }
    };
    const missing = (el) => (el === undefined ? 'invalid_selector' : 'not_found');
    const nativeSetter = (el) => {
        if (el instanceof HTMLInputElement) {
            return Object.getOwnPropertyDescriptor(HTMLInputElement.prototype, 'value').set;
        }
        if (el instanceof HTMLTextAreaElement) {
            return Object.getOwnPropertyDescriptor(HTMLTextAreaElement.prototype, 'value').set;
        }
        return null;
    };
    const isEditable = (el) => el instanceof HTMLElement && el.contentEditable === 'true';
    const fire = (el, type) => el.dispatchEvent(new Event(type, { bubbles: true, cancelable: true }));
    const fireChar = (el, ch) => el.dispatchEvent(new InputEvent('input', {
        data: ch, inputType: 'insertText', bubbles: true, cancelable: true,
    }));
    const sleep = (ms) => new Promise((resolve) => setTimeout(resolve, ms));
"""


def _routine(params: str, body: str, is_async: bool = False) -> str:
    prefix = "async " if is_async else ""
    return f"{prefix}({params}) => {{\n{_HELPERS}\n{body}\n}}"


_CLICK_JS = _routine(
    "{ selector }",
    r"""
    const el = locate(selector);
    if (!el) return missing(el);
    if (el instanceof HTMLElement) el.focus();
    el.dispatchEvent(new MouseEvent('click', { bubbles: true, cancelable: true, view: window }));
    return 'ok';
    """,
)

_TYPE_JS = _routine(
    "{ selector, text, simulate, delay }",
    r"""
    const el = locate(selector);
    if (!el) return missing(el);
    const setter = nativeSetter(el);
    const editable = !setter && isEditable(el);
    if (!setter && !editable) return 'unsupported';
    el.focus();

    if (simulate) {
        if (setter) setter.call(el, ''); else el.textContent = '';
        for (const ch of Array.from(text)) {
            if (setter) setter.call(el, el.value + ch); else el.textContent += ch;
            fireChar(el, ch);
            await sleep(delay);
        }
    } else {
        if (setter) setter.call(el, text); else el.textContent = text;
        fire(el, 'input');
    }
    if (setter) fire(el, 'change');
    return 'ok';
    """,
    is_async=True,
)

_CLEAR_JS = _routine(
    "{ selector }",
    r"""
    const el = locate(selector);
    if (!el) return missing(el);
    const setter = nativeSetter(el);
    if (setter) {
        el.focus();
        setter.call(el, '');
        fire(el, 'input');
        fire(el, 'change');
        return 'ok';
    }
    if (isEditable(el)) {
        el.focus();
        el.textContent = '';
        fire(el, 'input');
        return 'ok';
    }
    return 'unsupported';
    """,
)

# Observer and timer race; whichever settles first tears down the other.
_WAIT_JS = _routine(
    "{ selector, timeout }",
    r"""
    const first = locate(selector);
    if (first === undefined) return 'invalid_selector';
    if (first) return 'ok';
    return await new Promise((resolve) => {
        let timer = null;
        const observer = new MutationObserver(() => {
            if (locate(selector)) {
                observer.disconnect();
                clearTimeout(timer);
                resolve('ok');
            }
        });
        observer.observe(document.documentElement, { childList: true, subtree: true, attributes: true });
        timer = setTimeout(() => {
            observer.disconnect();
            resolve('timeout');
        }, timeout);
    });
    """,
    is_async=True,
)

_SCROLL_WINDOW_JS = r"""
({ mode, x, y }) => {
    if (mode === 'to') window.scrollTo(x, y);
    else if (mode === 'by') window.scrollBy(x, y);
    else if (mode === 'top') window.scrollTo(0, 0);
    else if (mode === 'bottom') window.scrollTo(0, document.documentElement.scrollHeight);
    else if (mode === 'pageDown') window.scrollBy(0, window.innerHeight);
    else if (mode === 'pageUp') window.scrollBy(0, -window.innerHeight);
    return 'ok';
}
"""

_SCROLL_ELEMENT_JS = _routine(
    "{ selector, options }",
    r"""
    const el = locate(selector);
    if (!el) return missing(el);
    el.scrollIntoView(options);
    return 'ok';
    """,
)

_FOCUS_JS = _routine(
    "{ selector, blur }",
    r"""
    const el = locate(selector);
    if (!el) return missing(el);
    if (el instanceof HTMLElement) {
        if (blur) el.blur(); else el.focus();
    }
    return 'ok';
    """,
)

_SCROLL_POSITION_JS = r"""
() => ({
    x: window.pageXOffset || document.documentElement.scrollLeft,
    y: window.pageYOffset || document.documentElement.scrollTop,
})
"""

_IN_VIEWPORT_JS = _routine(
    "{ selector }",
    r"""
    const el = locate(selector);
    if (!el) return false;
    const rect = el.getBoundingClientRect();
    const h = window.innerHeight || document.documentElement.clientHeight;
    const w = window.innerWidth || document.documentElement.clientWidth;
    return rect.top >= 0 && rect.left >= 0 && rect.bottom <= h && rect.right <= w;
    """,
)


class Actor:
    """Runs ActionRequests against a Playwright page.

    Every method either completes or raises an :class:`ActionError` subclass
    naming the action and selector.  Nothing is retried here.
    """

    # Inter-character delay for simulated typing (ms)
    TYPING_DELAY_MS = TYPING_DELAY_MS

    def __init__(self, page: Page, wait_timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS) -> None:
        self._page = page
        self.wait_timeout_ms = wait_timeout_ms

    # -- Dispatch ------------------------------------------------------------

    def execute(self, request: ActionRequest) -> None:
        """Validate and run one request. Raises ActionError on failure."""
        request.validate()
        action = request.action
        selector = request.selector or ""
        logger.debug("Executing %s on %s", action.value, selector or "<page>")

        if action is ActionName.CLICK:
            self.click(selector)
        elif action is ActionName.TYPE:
            self.type(selector, request.text or "", simulate_typing=bool(request.simulate_typing))
        elif action is ActionName.TYPE_FAST:
            self.type_fast(selector, request.text or "")
        elif action is ActionName.CLEAR:
            self.clear(selector)
        elif action is ActionName.WAIT_FOR_ELEMENT:
            timeout = request.timeout if request.timeout is not None else self.wait_timeout_ms
            self.wait_for_element(selector, timeout)
        elif action is ActionName.SCROLL_TO:
            self.scroll_to(request.x or 0, request.y or 0)
        elif action is ActionName.SCROLL_TO_TOP:
            self.scroll_to_top()
        elif action is ActionName.SCROLL_TO_BOTTOM:
            self.scroll_to_bottom()
        elif action is ActionName.SCROLL_BY:
            self.scroll_by(request.x or 0, request.y or 0)
        elif action is ActionName.SCROLL_TO_ELEMENT:
            self.scroll_to_element(selector, request.scroll_options)
        elif action is ActionName.SCROLL_TO_ELEMENT_TOP:
            self.scroll_to_element_top(selector)
        elif action is ActionName.SCROLL_TO_ELEMENT_BOTTOM:
            self.scroll_to_element_bottom(selector)
        elif action is ActionName.SCROLL_PAGE_DOWN:
            self.scroll_page_down()
        elif action is ActionName.SCROLL_PAGE_UP:
            self.scroll_page_up()
        elif action is ActionName.FOCUS:
            self.focus(selector)
        elif action is ActionName.BLUR:
            self.blur(selector)
        else:  # pragma: no cover - the enum is closed
            raise ActionError(f"Unhandled action: {action!r}", action=str(action), selector=selector)

    def run(self, request: ActionRequest) -> ActionOutcome:
        """Execute a request and capture the result instead of raising."""
        start = time.monotonic()
        try:
            self.execute(request)
        except ActionError as exc:
            return ActionOutcome(
                success=False,
                action=request.action.value,
                selector=request.selector,
                error=f"{type(exc).__name__}: {exc}",
                duration_ms=round((time.monotonic() - start) * 1000, 1),
            )
        return ActionOutcome(
            success=True,
            action=request.action.value,
            selector=request.selector,
            duration_ms=round((time.monotonic() - start) * 1000, 1),
        )

    # -- Element actions -----------------------------------------------------

    def click(self, selector: str) -> None:
        """Focus the element, then dispatch a bubbling, cancelable synthetic click."""
        status = self._page.evaluate(_CLICK_JS, {"selector": selector})
        self._check(status, ActionName.CLICK, selector)

    def type(self, selector: str, text: str, simulate_typing: bool = False) -> None:
        """Write *text* into an input, textarea or contenteditable element.

        Instant mode sets the whole value and fires one ``input`` and one
        ``change``.  Simulated mode clears, then appends one character at a
        time with an ``input`` event per character and a fixed delay, and
        finishes with ``change``.  Contenteditable elements never get
        ``change``.
        """
        self._write(ActionName.TYPE, selector, text, simulate_typing)

    def type_fast(self, selector: str, text: str) -> None:
        self._write(ActionName.TYPE_FAST, selector, text, False)

    def _write(self, action: ActionName, selector: str, text: str, simulate: bool) -> None:
        status = self._page.evaluate(
            _TYPE_JS,
            {
                "selector": selector,
                "text": text,
                "simulate": simulate,
                "delay": self.TYPING_DELAY_MS,
            },
        )
        self._check(status, action, selector)

    def clear(self, selector: str) -> None:
        status = self._page.evaluate(_CLEAR_JS, {"selector": selector})
        self._check(status, ActionName.CLEAR, selector)

    def wait_for_element(self, selector: str, timeout: int = DEFAULT_WAIT_TIMEOUT_MS) -> None:
        """Return once *selector* matches, or raise ActionTimeoutError after *timeout* ms."""
        status = self._page.evaluate(_WAIT_JS, {"selector": selector, "timeout": timeout})
        if status == "timeout":
            raise ActionTimeoutError(
                f"{ActionName.WAIT_FOR_ELEMENT.value}: element with selector {selector!r} "
                f"not found within {timeout}ms",
                action=ActionName.WAIT_FOR_ELEMENT.value,
                selector=selector,
            )
        self._check(status, ActionName.WAIT_FOR_ELEMENT, selector)

    def focus(self, selector: str) -> None:
        status = self._page.evaluate(_FOCUS_JS, {"selector": selector, "blur": False})
        self._check(status, ActionName.FOCUS, selector)

    def blur(self, selector: str) -> None:
        status = self._page.evaluate(_FOCUS_JS, {"selector": selector, "blur": True})
        self._check(status, ActionName.BLUR, selector)

    # -- Scrolling -----------------------------------------------------------
    # Fire-and-forget: the browser's own scroll animation is not awaited.

    def scroll_to(self, x: float, y: float) -> None:
        self._scroll_window("to", x, y)

    def scroll_by(self, x: float, y: float) -> None:
        self._scroll_window("by", x, y)

    def scroll_to_top(self) -> None:
        self._scroll_window("top")

    def scroll_to_bottom(self) -> None:
        self._scroll_window("bottom")

    def scroll_page_down(self) -> None:
        self._scroll_window("pageDown")

    def scroll_page_up(self) -> None:
        self._scroll_window("pageUp")

    def scroll_to_element(self, selector: str, options: ScrollOptions | None = None) -> None:
        opts = options or ScrollOptions()
        status = self._page.evaluate(_SCROLL_ELEMENT_JS, {"selector": selector, "options": opts.to_dict()})
        self._check(status, ActionName.SCROLL_TO_ELEMENT, selector)

    def scroll_to_element_top(self, selector: str) -> None:
        self.scroll_to_element(selector, ScrollOptions(block="start"))

    def scroll_to_element_bottom(self, selector: str) -> None:
        self.scroll_to_element(selector, ScrollOptions(block="end"))

    # -- Reads ---------------------------------------------------------------

    def get_scroll_position(self) -> dict[str, float]:
        pos = self._page.evaluate(_SCROLL_POSITION_JS) or {}
        return {"x": pos.get("x", 0), "y": pos.get("y", 0)}

    def is_element_in_viewport(self, selector: str) -> bool:
        return bool(self._page.evaluate(_IN_VIEWPORT_JS, {"selector": selector}))

    # -- Internals -----------------------------------------------------------

    def _scroll_window(self, mode: str, x: float = 0, y: float = 0) -> None:
        self._page.evaluate(_SCROLL_WINDOW_JS, {"mode": mode, "x": x, "y": y})

    @staticmethod
    def _check(status: Any, action: ActionName, selector: str) -> None:
        if status == "ok":
            return
        name = action.value
        if status == "not_found":
            raise ElementNotFoundError(
                f"{name}: element not found with selector: {selector}", action=name, selector=selector
            )
        if status == "invalid_selector":
            raise ElementNotFoundError(f"{name}: invalid selector: {selector}", action=name, selector=selector)
        if status == "unsupported":
            raise UnsupportedElementError(
                f'{name}: element with selector "{selector}" is not a supported input element '
                "(input, textarea, or contenteditable)",
                action=name,
                selector=selector,
            )
        raise ActionError(f"{name}: unexpected page result {status!r} for selector {selector}", name, selector)
