"""Shared fixtures for pagehand unit tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

import pytest
import yaml


# ---------------------------------------------------------------------------
# Fixture: sample intent taxonomy
# ---------------------------------------------------------------------------

SAMPLE_INTENTS: dict[str, Any] = {
    "intents": {
        "account": {
            "create-account": {
                "fields": {
                    "email": {"type": "string", "required": True},
                    "name": {"type": "string", "required": True},
                    "age": {"type": "number", "required": False},
                },
                "actions": {
                    "submit": {"description": "Submit the registration form", "parameters": {}},
                },
            },
            "reset-password": {
                "fields": {"email": {"type": "string", "required": True}},
                "actions": {
                    "send": {"description": "Send password reset link", "parameters": {"channel": "email"}},
                },
            },
        },
        "shop": {
            "add-to-cart": {
                "fields": {
                    "product": {"type": "string", "required": True},
                    "quantity": {"type": "number", "required": False},
                },
                "actions": {"add": {"description": "Add item to shopping cart", "parameters": {}}},
            },
        },
    }
}


@pytest.fixture
def sample_intents() -> dict[str, Any]:
    """Return the intent taxonomy document as a dict."""
    return SAMPLE_INTENTS


@pytest.fixture
def sample_catalog():
    from pagehand.engine.intents import IntentCatalog

    return IntentCatalog.from_dict(SAMPLE_INTENTS)


# ---------------------------------------------------------------------------
# Fixture: temporary project directory with .pagehand/ structure
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Create a temporary .pagehand/ project directory with config and intents."""
    pagehand_dir = tmp_path / ".pagehand"
    pagehand_dir.mkdir()

    (pagehand_dir / "intents.yaml").write_text(
        yaml.dump(SAMPLE_INTENTS, default_flow_style=False), encoding="utf-8"
    )
    config_data = {
        "base_url": "http://localhost:3000",
        "headless": True,
        "viewport": {"width": 1280, "height": 720},
        "intents_file": "intents.yaml",
        "tool_log": "logs/tool-use.jsonl",
        "max_affordances": 50,
    }
    (pagehand_dir / "config.yaml").write_text(
        yaml.dump(config_data, default_flow_style=False), encoding="utf-8"
    )
    return pagehand_dir


# ---------------------------------------------------------------------------
# Fake Playwright page for unit tests
# ---------------------------------------------------------------------------

class FakePage:
    """Records evaluate() calls and replays scripted results.

    ``results`` is consumed in order; once exhausted, ``default`` is returned.
    """

    def __init__(self, results: list[Any] | None = None, default: Any = "ok") -> None:
        self.results = list(results or [])
        self.default = default
        self.calls: list[tuple[str, Any]] = []

    def evaluate(self, expression: str, arg: Any = None) -> Any:
        self.calls.append((expression, arg))
        if self.results:
            return self.results.pop(0)
        return self.default

    @property
    def last_arg(self) -> Any:
        return self.calls[-1][1]


@pytest.fixture
def fake_page() -> FakePage:
    return FakePage()


@pytest.fixture
def make_page():
    """Factory for FakePage instances with scripted results."""
    return FakePage


# ---------------------------------------------------------------------------
# Real Chromium page (skipped when no browser can be launched)
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module")
def _chromium() -> Iterator[Any]:
    sync_api = pytest.importorskip("playwright.sync_api")
    try:
        pw = sync_api.sync_playwright().start()
    except Exception as exc:
        pytest.skip(f"Playwright unavailable: {exc}")
    try:
        browser = pw.chromium.launch(headless=True)
    except Exception as exc:
        pw.stop()
        pytest.skip(f"Chromium cannot be launched: {exc}")
    yield browser
    browser.close()
    pw.stop()


@pytest.fixture
def browser_page(_chromium: Any) -> Iterator[Any]:
    """A fresh 1280x720 page; load markup with ``page.set_content(html)``."""
    context = _chromium.new_context(viewport={"width": 1280, "height": 720})
    page = context.new_page()
    yield page
    context.close()
