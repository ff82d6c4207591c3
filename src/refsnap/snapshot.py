# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Enhanced snapshot: accessibility tree with refs for deterministic element selection.

Example output::

    - heading "Example Domain" [ref=e1] [level=1]
    - paragraph: Some text content
    - button "Submit" [ref=e2]
    - textbox "Email" [ref=e3]

Flow per call:
  1. Without an explicit selector, ask the region partitioner whether the
     page is a known multi-pane shell. If so, snapshot each region selector
     and stitch ``# <Title>:`` sections.
  2. Otherwise snapshot the whole scope once.
  3. With ``cursor``, append cursor-interactive elements to the same ref space.

Partial failures never abort a snapshot: a failed tree or page query makes
that scope empty and is logged.
"""

from __future__ import annotations

import functools
import logging
import time
import uuid

import tiktoken

from . import EnhancedSnapshot, RefMap, SnapshotOptions, SnapshotStats
from .aria_tree import INTERACTIVE_ROLES
from .cursor_detector import append_cursor_section, find_cursor_interactive_elements, render_cursor_elements
from .icons import IconResolver
from .logging_config import snapshot_log_context
from .page_source import PageSource
from .refs import SnapshotContext
from .regions import DEFAULT_SHELLS, ShellDefinition, detect_regions
from .tree_filter import empty_marker, is_empty_tree, process_aria_tree

logger = logging.getLogger(__name__)


async def snapshot_scope(
    source: PageSource,
    options: SnapshotOptions,
    ctx: SnapshotContext,
    resolver: IconResolver,
) -> str:
    """Annotated tree for one scope (``options.selector`` or the whole page)."""
    try:
        aria_tree = await source.aria_snapshot(options.selector)
    except Exception as e:
        # scoped region selectors may vanish or match twice between detection and snapshot
        logger.warning("Accessibility tree unavailable for %s: %s", options.selector or "page", e)
        aria_tree = ""

    if aria_tree and aria_tree.strip():
        tree = process_aria_tree(aria_tree, ctx, options, resolver)
    else:
        tree = empty_marker(options)

    if options.cursor:
        candidates = await find_cursor_interactive_elements(source, options.selector)
        tree = append_cursor_section(tree, render_cursor_elements(candidates, ctx, resolver))

    return tree


async def _region_section(
    source: PageSource,
    options: SnapshotOptions,
    ctx: SnapshotContext,
    resolver: IconResolver,
    selectors: tuple[str, ...],
) -> str:
    parts: list[str] = []
    # sequential on purpose: every scope mutates the shared allocator/tracker
    for selector in selectors:
        tree = await snapshot_scope(source, options.scoped(selector), ctx, resolver)
        if not is_empty_tree(tree):
            parts.append(tree)
    return "\n".join(parts) if parts else empty_marker(options)


async def get_enhanced_snapshot(
    source: PageSource,
    options: SnapshotOptions | None = None,
    *,
    shells: tuple[ShellDefinition, ...] | list[ShellDefinition] = DEFAULT_SHELLS,
    resolver: IconResolver | None = None,
) -> EnhancedSnapshot:
    """Snapshot *source* with refs.

    Each call owns a fresh SnapshotContext, so refs restart at e1. Callers
    serialize snapshot calls that target the same page.
    """
    options = options or SnapshotOptions()
    resolver = resolver or IconResolver()
    ctx = SnapshotContext()
    started = time.monotonic()

    with snapshot_log_context(uuid.uuid4().hex[:12]):
        regions = [] if options.selector else await detect_regions(source, shells)

        if regions:
            sections = []
            for region in regions:
                body = await _region_section(source, options, ctx, resolver, region.selectors)
                sections.append(f"# {region.title}:\n{body}")
            tree = "\n\n".join(sections)
        else:
            tree = await snapshot_scope(source, options, ctx, resolver)

        refs = ctx.finalize()
        logger.info(
            "Snapshot: %d refs, %d regions, %.1fms",
            len(refs),
            len(regions),
            (time.monotonic() - started) * 1000,
        )
    return EnhancedSnapshot(tree=tree, refs=refs)


# ── Statistics ──────────────────────────────────────────────────────


@functools.lru_cache(maxsize=1)
def _encoder() -> tiktoken.Encoding:
    return tiktoken.get_encoding("cl100k_base")


def count_tokens(text: str) -> int:
    """Token count using cl100k_base."""
    return len(_encoder().encode(text))


def get_snapshot_stats(tree: str, refs: RefMap) -> SnapshotStats:
    return SnapshotStats(
        lines=len(tree.split("\n")),
        chars=len(tree),
        tokens=count_tokens(tree),
        refs=len(refs),
        interactive=sum(1 for entry in refs.values() if entry.role in INTERACTIVE_ROLES),
    )
