"""pagehand Browser Session — Playwright browser lifecycle for the CLI.

Launches Chromium, opens a single page at the configured viewport, and wires
an :class:`AffordanceCollector`, an :class:`Actor` and a
:class:`DispatchGuard` to it.  The session is the one place that constructs
these collaborators; everything downstream receives them by reference.
"""

from __future__ import annotations

import logging
from typing import Any

from pagehand.config import PagehandConfig
from pagehand.engine.actor import Actor
from pagehand.engine.affordances import AffordanceCollector
from pagehand.engine.dispatch_guard import DispatchGuard

logger = logging.getLogger("pagehand.engine.browser_session")


class BrowserSession:
    """Owns one Playwright browser, context and page."""

    # Timeout for initial navigation (ms)
    NAVIGATION_TIMEOUT_MS = 30_000

    def __init__(self, config: PagehandConfig | None = None) -> None:
        self._config = config or PagehandConfig()

        # Managed browser lifecycle -- set by start()/stop()
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None
        self._page: Any = None

        self.collector: AffordanceCollector | None = None
        self.actor: Actor | None = None
        self.guard: DispatchGuard | None = None

    # -- Lifecycle -----------------------------------------------------------

    def start(self) -> None:
        """Launch the Playwright browser. Call once before open()."""
        from playwright.sync_api import sync_playwright

        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(headless=self._config.headless)
        width, height = self._config.viewport
        self._context = self._browser.new_context(viewport={"width": width, "height": height})
        self._page = self._context.new_page()

        self.collector = AffordanceCollector(self._page)
        self.actor = Actor(self._page, wait_timeout_ms=self._config.wait_timeout_ms)
        self.guard = DispatchGuard(self.actor)
        logger.info("Browser started (headless=%s, viewport=%dx%d)", self._config.headless, width, height)

    def stop(self) -> None:
        """Close the browser and Playwright."""
        try:
            if self._context is not None:
                self._context.close()
        except Exception:
            logger.debug("Context close failed", exc_info=True)
        try:
            if self._browser is not None:
                self._browser.close()
        except Exception:
            logger.debug("Browser close failed", exc_info=True)
        try:
            if self._playwright is not None:
                self._playwright.stop()
        except Exception:
            logger.debug("Playwright stop failed", exc_info=True)
        self._context = None
        self._browser = None
        self._playwright = None
        self._page = None
        self.collector = None
        self.actor = None
        self.guard = None

    def __enter__(self) -> BrowserSession:
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()

    # -- Navigation ----------------------------------------------------------

    @property
    def page(self) -> Any:
        if self._page is None:
            raise RuntimeError("Browser session not started. Call start() first.")
        return self._page

    def open(self, url: str) -> Any:
        """Navigate the session page to *url* (relative URLs resolve against base_url)."""
        if url.startswith("/") and self._config.base_url:
            url = self._config.base_url.rstrip("/") + url
        self.page.goto(url, wait_until="domcontentloaded", timeout=self.NAVIGATION_TIMEOUT_MS)
        # A new document means a new conversation render
        if self.guard is not None:
            self.guard.reset()
        logger.info("Opened %s", url)
        return self._page
