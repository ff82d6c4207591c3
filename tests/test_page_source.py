# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for the Playwright PageSource adapter (mocked Page, no browser)."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from refsnap import RefEntry
from refsnap.errors import AcquisitionError
from refsnap.page_source import PageSource, PlaywrightPageSource, resolve_locator


def _page(aria=None, evaluate=None):
    page = MagicMock()
    locator = MagicMock()
    locator.aria_snapshot = aria or AsyncMock(return_value='- button "OK"')
    page.locator = MagicMock(return_value=locator)
    page.evaluate = evaluate or AsyncMock(return_value=[])
    return page


async def _hang(*args, **kwargs):
    await asyncio.sleep(5)


class TestPlaywrightPageSource:
    def test_satisfies_protocol(self):
        assert isinstance(PlaywrightPageSource(_page()), PageSource)

    async def test_whole_page_uses_root(self):
        page = _page()
        source = PlaywrightPageSource(page)
        assert await source.aria_snapshot() == '- button "OK"'
        page.locator.assert_called_once_with(":root")

    async def test_scoped(self):
        page = _page()
        await PlaywrightPageSource(page).aria_snapshot("#panel-center")
        page.locator.assert_called_once_with("#panel-center")

    async def test_evaluate_passes_arg(self):
        page = _page(evaluate=AsyncMock(return_value={"shell": None}))
        result = await PlaywrightPageSource(page).evaluate("() => 1", {"a": 1})
        assert result == {"shell": None}
        page.evaluate.assert_awaited_once_with("() => 1", {"a": 1})

    async def test_aria_timeout(self):
        source = PlaywrightPageSource(_page(aria=AsyncMock(side_effect=_hang)), timeout_ms=10)
        with pytest.raises(AcquisitionError, match="timed out") as exc_info:
            await source.aria_snapshot("#slow")
        assert exc_info.value.scope == "#slow"

    async def test_evaluate_timeout(self):
        source = PlaywrightPageSource(_page(evaluate=AsyncMock(side_effect=_hang)), timeout_ms=10)
        with pytest.raises(AcquisitionError, match="timed out"):
            await source.evaluate("() => 1")

    async def test_playwright_error_wrapped(self):
        aria = AsyncMock(side_effect=PlaywrightError("strict mode violation"))
        with pytest.raises(AcquisitionError, match="strict mode violation") as exc_info:
            await PlaywrightPageSource(_page(aria=aria)).aria_snapshot(".dup")
        assert isinstance(exc_info.value.__cause__, PlaywrightError)

    async def test_evaluate_error_wrapped(self):
        page = _page(evaluate=AsyncMock(side_effect=PlaywrightError("Execution context was destroyed")))
        with pytest.raises(AcquisitionError, match="page query failed"):
            await PlaywrightPageSource(page).evaluate("() => 1")


class TestResolveLocator:
    def test_named_role_with_nth(self):
        page = MagicMock()
        entry = RefEntry(selector="getByRole('button', { name: \"Delete\", exact: true })", role="button", name="Delete", nth=1)
        resolve_locator(page, entry)
        page.get_by_role.assert_called_once_with("button", name="Delete", exact=True)
        page.get_by_role.return_value.nth.assert_called_once_with(1)

    def test_unique_role_no_nth(self):
        page = MagicMock()
        entry = RefEntry(selector="getByRole('textbox')", role="textbox")
        assert resolve_locator(page, entry) is page.get_by_role.return_value
        page.get_by_role.assert_called_once_with("textbox")

    def test_cursor_entry_uses_css(self):
        page = MagicMock()
        entry = RefEntry(selector="div.card > span", role="clickable", name="Open")
        assert resolve_locator(page, entry) is page.locator.return_value
        page.locator.assert_called_once_with("div.card > span")
