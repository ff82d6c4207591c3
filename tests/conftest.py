# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import refsnap  # noqa: F401
except ImportError:
    raise ImportError("refsnap is not installed. Run: pip install -e '.[dev]'") from None

from unittest.mock import AsyncMock

import pytest

from refsnap.cursor_detector import CURSOR_CANDIDATES_JS
from refsnap.icons import IconResolver
from refsnap.refs import SnapshotContext
from refsnap.regions import REGION_QUERY_JS


class FakePageSource:
    """In-memory PageSource.

    trees: selector (None = whole page) -> aria snapshot text, or an
    Exception instance to raise.
    regions / cursor: canned results of the two page queries, keyed like
    ``trees`` for cursor (selector -> list of records).
    """

    def __init__(self, trees=None, regions=None, cursor=None):
        self.trees = dict(trees or {})
        self.regions = regions
        self.cursor = dict(cursor or {})
        self.aria_calls: list[str | None] = []
        self.evaluate_calls: list[tuple[str, object]] = []

    async def aria_snapshot(self, selector=None):
        self.aria_calls.append(selector)
        tree = self.trees.get(selector, "")
        if isinstance(tree, Exception):
            raise tree
        return tree

    async def evaluate(self, script, arg=None):
        self.evaluate_calls.append((script, arg))
        if script == REGION_QUERY_JS:
            if isinstance(self.regions, Exception):
                raise self.regions
            return self.regions if self.regions is not None else {"shell": None, "regions": {}, "fab": []}
        if script == CURSOR_CANDIDATES_JS:
            root = (arg or {}).get("root")
            records = self.cursor.get(None if root == "body" else root, [])
            if isinstance(records, Exception):
                raise records
            return records
        raise AssertionError(f"unexpected script: {script[:40]!r}")


@pytest.fixture
def ctx():
    return SnapshotContext()


@pytest.fixture
def resolver():
    return IconResolver()


@pytest.fixture
def fake_source():
    return FakePageSource


@pytest.fixture
def mock_source():
    """AsyncMock PageSource with an empty tree and no query results."""
    source = AsyncMock()
    source.aria_snapshot = AsyncMock(return_value="")
    source.evaluate = AsyncMock(return_value=None)
    return source
