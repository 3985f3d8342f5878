"""Tests for pagehand.engine.actor.

Two layers:
    Fake page tests  — dispatch, parameter passing and status -> error mapping
                        against a recording stand-in for the Playwright page.
    Browser tests    — real DOM behavior in headless Chromium (skipped when no
                        browser can be launched).
"""

from __future__ import annotations

import time

import pytest

from pagehand.engine.actions import (
    ActionError,
    ActionName,
    ActionRequest,
    ActionTimeoutError,
    ElementNotFoundError,
    MissingParameterError,
    ScrollOptions,
    UnsupportedElementError,
)
from pagehand.engine.actor import _WAIT_JS, Actor
from pagehand.models import DEFAULT_WAIT_TIMEOUT_MS, TYPING_DELAY_MS


# ---------------------------------------------------------------------------
# 1. Status mapping (fake page)
# ---------------------------------------------------------------------------

class TestStatusMapping:

    def test_ok_returns_none(self, fake_page):
        Actor(fake_page).click("#go")
        assert fake_page.last_arg == {"selector": "#go"}

    def test_not_found(self, make_page):
        actor = Actor(make_page(default="not_found"))
        with pytest.raises(ElementNotFoundError, match="click: element not found with selector: #nope") as exc_info:
            actor.click("#nope")
        assert exc_info.value.action == "click"
        assert exc_info.value.selector == "#nope"

    def test_invalid_selector_is_not_found(self, make_page):
        actor = Actor(make_page(default="invalid_selector"))
        with pytest.raises(ElementNotFoundError, match="invalid selector"):
            actor.focus("##bad")

    def test_unsupported(self, make_page):
        actor = Actor(make_page(default="unsupported"))
        with pytest.raises(UnsupportedElementError, match="not a supported input element"):
            actor.type("#div", "x")

    def test_type_fast_failure_names_its_own_action(self, make_page):
        actor = Actor(make_page(default="not_found"))
        with pytest.raises(ElementNotFoundError, match="^typeFast: element not found") as exc_info:
            actor.type_fast("#nope", "x")
        assert exc_info.value.action == "typeFast"

    def test_unexpected_status(self, make_page):
        actor = Actor(make_page(default="weird"))
        with pytest.raises(ActionError, match="unexpected page result"):
            actor.clear("#x")

    def test_wait_timeout(self, make_page):
        actor = Actor(make_page(default="timeout"))
        with pytest.raises(ActionTimeoutError, match="not found within 100ms"):
            actor.wait_for_element(".late", timeout=100)


# ---------------------------------------------------------------------------
# 2. Dispatch (fake page)
# ---------------------------------------------------------------------------

class TestExecute:

    def test_validation_happens_before_page_access(self, fake_page):
        with pytest.raises(MissingParameterError):
            Actor(fake_page).execute(ActionRequest(action=ActionName.CLICK))
        assert fake_page.calls == []

    def test_type_defaults_to_instant(self, fake_page):
        Actor(fake_page).execute(ActionRequest(action=ActionName.TYPE, selector="#q", text="abc"))
        assert fake_page.last_arg == {"selector": "#q", "text": "abc", "simulate": False, "delay": TYPING_DELAY_MS}

    def test_type_simulated(self, fake_page):
        Actor(fake_page).execute(
            ActionRequest(action=ActionName.TYPE, selector="#q", text="abc", simulate_typing=True)
        )
        assert fake_page.last_arg["simulate"] is True

    def test_type_fast_is_always_instant(self, fake_page):
        Actor(fake_page).execute(
            ActionRequest(action=ActionName.TYPE_FAST, selector="#q", text="abc", simulate_typing=True)
        )
        assert fake_page.last_arg["simulate"] is False

    def test_wait_uses_actor_default_timeout(self, fake_page):
        Actor(fake_page).execute(ActionRequest(action=ActionName.WAIT_FOR_ELEMENT, selector=".m"))
        assert fake_page.last_arg == {"selector": ".m", "timeout": DEFAULT_WAIT_TIMEOUT_MS}

    def test_wait_uses_configured_timeout(self, fake_page):
        Actor(fake_page, wait_timeout_ms=1234).execute(
            ActionRequest(action=ActionName.WAIT_FOR_ELEMENT, selector=".m")
        )
        assert fake_page.last_arg["timeout"] == 1234

    def test_wait_request_timeout_wins(self, fake_page):
        Actor(fake_page, wait_timeout_ms=1234).execute(
            ActionRequest(action=ActionName.WAIT_FOR_ELEMENT, selector=".m", timeout=10)
        )
        assert fake_page.last_arg["timeout"] == 10

    @pytest.mark.parametrize(
        "action, mode",
        [
            (ActionName.SCROLL_TO_TOP, "top"),
            (ActionName.SCROLL_TO_BOTTOM, "bottom"),
            (ActionName.SCROLL_PAGE_DOWN, "pageDown"),
            (ActionName.SCROLL_PAGE_UP, "pageUp"),
        ],
    )
    def test_window_scrolls(self, fake_page, action: ActionName, mode: str):
        Actor(fake_page).execute(ActionRequest(action=action))
        assert fake_page.last_arg["mode"] == mode

    def test_scroll_by_coordinates(self, fake_page):
        Actor(fake_page).execute(ActionRequest(action=ActionName.SCROLL_BY, x=0, y=250))
        assert fake_page.last_arg == {"mode": "by", "x": 0, "y": 250}

    def test_scroll_to_missing_coordinates_default_to_zero(self, fake_page):
        Actor(fake_page).execute(ActionRequest(action=ActionName.SCROLL_TO))
        assert fake_page.last_arg == {"mode": "to", "x": 0, "y": 0}

    def test_scroll_to_element_default_options(self, fake_page):
        Actor(fake_page).execute(ActionRequest(action=ActionName.SCROLL_TO_ELEMENT, selector="#s"))
        assert fake_page.last_arg["options"] == {"behavior": "smooth", "block": "center", "inline": "center"}

    @pytest.mark.parametrize(
        "action, block",
        [(ActionName.SCROLL_TO_ELEMENT_TOP, "start"), (ActionName.SCROLL_TO_ELEMENT_BOTTOM, "end")],
    )
    def test_scroll_to_element_edges(self, fake_page, action: ActionName, block: str):
        Actor(fake_page).execute(ActionRequest(action=action, selector="#s"))
        assert fake_page.last_arg["options"]["block"] == block

    @pytest.mark.parametrize("action, blur", [(ActionName.FOCUS, False), (ActionName.BLUR, True)])
    def test_focus_and_blur(self, fake_page, action: ActionName, blur: bool):
        Actor(fake_page).execute(ActionRequest(action=action, selector="#f"))
        assert fake_page.last_arg == {"selector": "#f", "blur": blur}

    def test_run_captures_failure(self, make_page):
        outcome = Actor(make_page(default="not_found")).run(ActionRequest(action=ActionName.CLICK, selector="#x"))
        assert outcome.success is False
        assert outcome.error.startswith("ElementNotFoundError: ")
        assert outcome.selector == "#x"

    def test_run_reports_success(self, fake_page):
        outcome = Actor(fake_page).run(ActionRequest(action=ActionName.SCROLL_TO_TOP))
        assert outcome.success is True
        assert outcome.error is None


class TestReads:

    def test_scroll_position(self, make_page):
        actor = Actor(make_page(results=[{"x": 0, "y": 420}]))
        assert actor.get_scroll_position() == {"x": 0, "y": 420}

    def test_scroll_position_tolerates_empty(self, make_page):
        assert Actor(make_page(default=None)).get_scroll_position() == {"x": 0, "y": 0}

    def test_in_viewport(self, make_page):
        assert Actor(make_page(default=True)).is_element_in_viewport("#x") is True
        assert Actor(make_page(default=False)).is_element_in_viewport("#x") is False


# ---------------------------------------------------------------------------
# 3. Real DOM behavior (Chromium)
# ---------------------------------------------------------------------------

FORM_HTML = """
<input id="name">
<textarea id="bio"></textarea>
<div id="editor" contenteditable="true"></div>
<div id="plain">plain</div>
<button id="go">Go</button>
<script>
  window.events = [];
  for (const id of ['name', 'bio', 'editor']) {
    const el = document.getElementById(id);
    for (const type of ['input', 'change']) {
      el.addEventListener(type, (e) => window.events.push(id + ':' + type + ':' + (e.data || '')));
    }
  }
  window.clicks = 0;
  document.getElementById('go').addEventListener('click', () => { window.clicks += 1; });
</script>
"""


def _events(page, prefix: str) -> list[str]:
    return [e for e in page.evaluate("() => window.events") if e.startswith(prefix)]


@pytest.mark.browser
class TestActorInBrowser:

    def test_instant_type_sets_value_with_one_input_and_change(self, browser_page):
        browser_page.set_content(FORM_HTML)
        Actor(browser_page).type("#name", "abc")

        assert browser_page.eval_on_selector("#name", "el => el.value") == "abc"
        assert _events(browser_page, "name:") == ["name:input:", "name:change:"]

    def test_simulated_type_fires_input_per_character(self, browser_page):
        browser_page.set_content(FORM_HTML)
        Actor(browser_page).type("#name", "abc", simulate_typing=True)

        assert browser_page.eval_on_selector("#name", "el => el.value") == "abc"
        assert _events(browser_page, "name:") == [
            "name:input:a",
            "name:input:b",
            "name:input:c",
            "name:change:",
        ]

    def test_simulated_type_replaces_existing_value(self, browser_page):
        browser_page.set_content(FORM_HTML)
        browser_page.fill("#bio", "old")
        Actor(browser_page).type("#bio", "new", simulate_typing=True)

        assert browser_page.eval_on_selector("#bio", "el => el.value") == "new"

    def test_contenteditable_gets_no_change_event(self, browser_page):
        browser_page.set_content(FORM_HTML)
        Actor(browser_page).type("#editor", "hi")

        assert browser_page.eval_on_selector("#editor", "el => el.textContent") == "hi"
        assert _events(browser_page, "editor:") == ["editor:input:"]

    def test_type_into_plain_div_is_unsupported(self, browser_page):
        browser_page.set_content(FORM_HTML)
        with pytest.raises(UnsupportedElementError):
            Actor(browser_page).type("#plain", "x")

    def test_clear_fires_one_input_and_one_change(self, browser_page):
        browser_page.set_content(FORM_HTML)
        browser_page.fill("#name", "something")
        browser_page.evaluate("() => { window.events = []; }")

        Actor(browser_page).clear("#name")

        assert browser_page.eval_on_selector("#name", "el => el.value") == ""
        assert _events(browser_page, "name:") == ["name:input:", "name:change:"]

    def test_click_runs_listener_and_focuses(self, browser_page):
        browser_page.set_content(FORM_HTML)
        Actor(browser_page).click("#go")

        assert browser_page.evaluate("() => window.clicks") == 1
        assert browser_page.evaluate("() => document.activeElement.id") == "go"

    def test_missing_element_raises(self, browser_page):
        browser_page.set_content(FORM_HTML)
        with pytest.raises(ElementNotFoundError):
            Actor(browser_page).click("#nope")

    def test_invalid_selector_raises_not_found(self, browser_page):
        browser_page.set_content(FORM_HTML)
        with pytest.raises(ElementNotFoundError, match="invalid selector"):
            Actor(browser_page).click("##bad[")

    def test_focus_then_blur(self, browser_page):
        browser_page.set_content(FORM_HTML)
        actor = Actor(browser_page)

        actor.focus("#name")
        assert browser_page.evaluate("() => document.activeElement.id") == "name"
        actor.blur("#name")
        assert browser_page.evaluate("() => document.activeElement === document.body")

    def test_wait_for_element_added_later(self, browser_page):
        browser_page.set_content(
            """
            <div id="root"></div>
            <script>
              setTimeout(() => {
                const el = document.createElement('div');
                el.className = 'late';
                document.getElementById('root').appendChild(el);
              }, 50);
            </script>
            """
        )
        Actor(browser_page).wait_for_element(".late", timeout=2000)

    def test_wait_for_element_times_out(self, browser_page):
        browser_page.set_content("<div></div>")
        start = time.monotonic()
        with pytest.raises(ActionTimeoutError):
            Actor(browser_page).wait_for_element(".never", timeout=100)
        elapsed = time.monotonic() - start
        # 150ms bound plus room for the Playwright round trip
        assert 0.09 <= elapsed < 0.5

    def test_wait_timeout_fires_within_bound_in_page(self, browser_page):
        browser_page.set_content("<div></div>")
        timed = (
            "async (args) => { const run = " + _WAIT_JS + ";"
            " const t0 = performance.now(); const status = await run(args);"
            " return [status, performance.now() - t0]; }"
        )

        status, elapsed_ms = browser_page.evaluate(timed, {"selector": ".never", "timeout": 100})

        assert status == "timeout"
        assert 100 <= elapsed_ms < 150

    def test_scrolling(self, browser_page):
        browser_page.set_content(
            '<div style="height: 4000px">tall</div><button id="far">Far</button>'
        )
        actor = Actor(browser_page)

        assert actor.is_element_in_viewport("#far") is False
        actor.scroll_to_bottom()
        assert actor.get_scroll_position()["y"] > 0
        assert actor.is_element_in_viewport("#far") is True

        actor.scroll_to_top()
        assert actor.get_scroll_position()["y"] == 0

        actor.scroll_to_element("#far", ScrollOptions(behavior="auto"))
        assert actor.is_element_in_viewport("#far") is True
