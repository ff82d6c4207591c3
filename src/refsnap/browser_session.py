# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Minimal Playwright browser session for the snapshot CLI.

Launches headless Chromium with a fixed viewport, opens one page and hands
out a PageSource for it. The snapshot core never imports this module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from .config import DEFAULT_EVAL_TIMEOUT_MS, DEFAULT_VIEWPORT, SnapshotSettings
from .errors import BrowserError
from .page_source import PlaywrightPageSource

logger = logging.getLogger(__name__)

DEFAULT_NAVIGATION_TIMEOUT_MS = 30_000


@dataclass
class BrowserConfig:
    """Browser launch configuration."""

    headless: bool = True
    viewport_width: int = DEFAULT_VIEWPORT[0]
    viewport_height: int = DEFAULT_VIEWPORT[1]
    locale: str = "en-US"
    eval_timeout_ms: int = DEFAULT_EVAL_TIMEOUT_MS
    navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS

    @classmethod
    def from_settings(cls, settings: SnapshotSettings) -> BrowserConfig:
        return cls(
            headless=settings.headless,
            viewport_width=settings.viewport_width,
            viewport_height=settings.viewport_height,
            eval_timeout_ms=settings.eval_timeout_ms,
        )


def chromium_launch_args(config: BrowserConfig) -> list[str]:
    """Chromium launch arguments for unattended snapshotting."""
    return [
        "--disable-blink-features=AutomationControlled",
        f"--lang={config.locale}",
        "--disable-extensions",
        "--disable-dev-shm-usage",
        "--disable-background-networking",
        "--disable-sync",
        "--disable-gpu",
        "--no-first-run",
        "--noerrdialogs",
    ]


class BrowserSession:
    """One Chromium instance with a single page.

    Usage::

        async with BrowserSession(BrowserConfig()) as session:
            await session.navigate("https://example.com")
            snapshot = await get_enhanced_snapshot(session.page_source())
    """

    def __init__(self, config: BrowserConfig | None = None) -> None:
        self.config = config or BrowserConfig()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise BrowserError("Browser session not started")
        return self._page

    async def start(self) -> None:
        """Launch browser and create the page."""
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=self.config.headless,
                args=chromium_launch_args(self.config),
            )
        except Exception as exc:
            await self._playwright.stop()
            self._playwright = None
            if "executable doesn't exist" in str(exc).lower():
                raise BrowserError("Chromium is not installed. Please run: playwright install chromium") from exc
            raise BrowserError(f"Failed to launch Chromium: {exc}") from exc

        try:
            self._context = await self._browser.new_context(
                viewport={
                    "width": self.config.viewport_width,
                    "height": self.config.viewport_height,
                },
                locale=self.config.locale,
                accept_downloads=False,
            )
            self._page = await self._context.new_page()
        except Exception as exc:
            await self.stop()
            raise BrowserError(f"Failed to open a browser page: {exc}") from exc
        logger.info(
            "Browser session started (headless=%s, viewport=%dx%d)",
            self.config.headless,
            self.config.viewport_width,
            self.config.viewport_height,
        )

    async def navigate(self, url: str) -> None:
        try:
            await self.page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.config.navigation_timeout_ms,
            )
        except BrowserError:
            raise
        except Exception as exc:
            raise BrowserError(f"Navigation to {url} failed: {exc}") from exc
        logger.debug("Navigated to %s", url)

    async def set_content(self, html: str) -> None:
        await self.page.set_content(html)

    def page_source(self) -> PlaywrightPageSource:
        return PlaywrightPageSource(self.page, timeout_ms=self.config.eval_timeout_ms)

    async def stop(self) -> None:
        """Close context, browser and the playwright driver (idempotent)."""
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        self._page = None
        logger.info("Browser session stopped")

    async def __aenter__(self) -> BrowserSession:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
