# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Page access seam: accessibility-tree text and read-only DOM queries.

The snapshot core only talks to a PageSource. PlaywrightPageSource adapts a
Playwright Page or Frame; tests use AsyncMock fakes with the same two methods.
Every round trip is bounded by a timeout and any failure surfaces as
AcquisitionError, which the core turns into an empty scope.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol, runtime_checkable

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Frame, Locator, Page

from . import RefEntry
from .config import DEFAULT_EVAL_TIMEOUT_MS
from .errors import AcquisitionError

logger = logging.getLogger(__name__)

ROOT_SELECTOR = ":root"


@runtime_checkable
class PageSource(Protocol):
    async def aria_snapshot(self, selector: str | None = None) -> str:
        """Accessibility-tree text for *selector* (None = whole document)."""
        ...

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        """Run a read-only *script* in the page and return its JSON result."""
        ...


class PlaywrightPageSource:
    """PageSource over a Playwright Page or Frame."""

    def __init__(self, target: Page | Frame, *, timeout_ms: int = DEFAULT_EVAL_TIMEOUT_MS) -> None:
        self._target = target
        self._timeout_s = timeout_ms / 1000

    @property
    def target(self) -> Page | Frame:
        return self._target

    async def aria_snapshot(self, selector: str | None = None) -> str:
        scope = selector or ROOT_SELECTOR
        locator = self._target.locator(scope)
        try:
            return await asyncio.wait_for(locator.aria_snapshot(), timeout=self._timeout_s)
        except asyncio.TimeoutError as e:
            raise AcquisitionError(f"aria snapshot timed out after {self._timeout_s:.1f}s", scope=scope) from e
        except PlaywrightError as e:
            # strict-mode violations and detached frames land here
            raise AcquisitionError(f"aria snapshot failed: {e}", scope=scope) from e

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        try:
            return await asyncio.wait_for(self._target.evaluate(script, arg), timeout=self._timeout_s)
        except asyncio.TimeoutError as e:
            raise AcquisitionError(f"page query timed out after {self._timeout_s:.1f}s") from e
        except PlaywrightError as e:
            raise AcquisitionError(f"page query failed: {e}") from e


def resolve_locator(target: Page | Frame, entry: RefEntry) -> Locator:
    """Playwright Locator for a ref entry.

    Role entries resolve with an exact role+name query (``nth`` picks among
    duplicates); cursor entries resolve by their structural CSS selector.
    """
    if entry.selector.startswith("getByRole("):
        if entry.name:
            locator = target.get_by_role(entry.role, name=entry.name, exact=True)
        else:
            locator = target.get_by_role(entry.role)
        return locator.nth(entry.nth) if entry.nth is not None else locator
    return target.locator(entry.selector)
