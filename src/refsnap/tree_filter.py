# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Ref annotation and filtering of accessibility-tree text.

Two modes:
  interactive: flat list of interactive entries, everything else dropped.
  full: structure preserved, subject to max_depth and compact mode.

Refs go to interactive entries and to named content entries::

    - heading "Example Domain" [ref=e1] [level=1]
    - button "Delete" [ref=e2]
    - button "Delete" [ref=e3] [nth=1]

Pure text processing: no I/O, all state lives in the SnapshotContext.
"""

from __future__ import annotations

from . import SnapshotOptions
from .aria_tree import AriaLine, RoleKind, indent_level, is_metadata_line, parse_line
from .icons import IconResolver
from .refs import SnapshotContext

EMPTY_TREE = "(empty)"
NO_INTERACTIVE = "(no interactive elements)"

_EMPTY_MARKERS = frozenset({EMPTY_TREE, NO_INTERACTIVE, ""})


def is_empty_tree(tree: str | None) -> bool:
    return tree is None or tree in _EMPTY_MARKERS


def empty_marker(options: SnapshotOptions) -> str:
    return NO_INTERACTIVE if options.interactive else EMPTY_TREE


def process_aria_tree(
    aria_tree: str,
    ctx: SnapshotContext,
    options: SnapshotOptions,
    resolver: IconResolver | None = None,
) -> str:
    """Annotate *aria_tree* with refs and apply the option filters.

    Refs are added to ``ctx.refs`` with a tentative nth; call
    ``ctx.finalize()`` once the whole snapshot has been processed.
    """
    resolver = resolver or IconResolver()

    if options.interactive:
        return _process_interactive(aria_tree, ctx, resolver)

    result: list[str] = []
    for line in aria_tree.split("\n"):
        processed = _process_line(line, ctx, options, resolver)
        if processed is not None:
            result.append(processed)

    tree = "\n".join(result)
    if options.compact:
        tree = compact_tree(tree)
    return tree if tree.strip() else EMPTY_TREE


def _annotated(entry: AriaLine, ref: str, nth: int, resolver: IconResolver, *, indented: bool) -> str:
    line = f"{entry.head(indented=indented)} [ref={ref}]"
    # nth=0 stays implicit for readability
    if nth > 0:
        line += f" [nth={nth}]"
    line += resolver.label_annotation(entry.name)
    return line


def _process_interactive(aria_tree: str, ctx: SnapshotContext, resolver: IconResolver) -> str:
    result: list[str] = []
    for line in aria_tree.split("\n"):
        entry = parse_line(line)
        if entry is None or entry.kind is not RoleKind.INTERACTIVE:
            continue

        role = entry.role_lower
        ref, nth = ctx.assign_role_ref(role, entry.name)
        enhanced = _annotated(entry, ref, nth, resolver, indented=False)
        # keep attribute brackets ([checked], [level=2]); drop bare ":" child markers
        if "[" in entry.suffix:
            enhanced += resolver.annotate_inline_text(entry.suffix)
        result.append(enhanced)

    return "\n".join(result) or NO_INTERACTIVE


def _process_line(
    line: str,
    ctx: SnapshotContext,
    options: SnapshotOptions,
    resolver: IconResolver,
) -> str | None:
    """Annotate one full-mode line; None drops it."""
    if options.max_depth is not None and indent_level(line) > options.max_depth:
        return None

    if is_metadata_line(line):
        return line

    entry = parse_line(line)
    if entry is None:
        return resolver.annotate_text_line(line)

    kind = entry.kind
    name = entry.name

    if options.compact and kind is RoleKind.STRUCTURAL and not name:
        return None

    if kind is RoleKind.INTERACTIVE or (kind is RoleKind.CONTENT and name):
        ref, nth = ctx.assign_role_ref(entry.role_lower, name)
        annotated = _annotated(entry, ref, nth, resolver, indented=True)
        return annotated + resolver.annotate_inline_text(entry.suffix)

    return resolver.annotate_text_line(line)


def compact_tree(tree: str) -> str:
    """Drop lines that carry no ref, no inline text, and no ref-bearing descendant."""
    lines = tree.split("\n")
    result: list[str] = []

    for i, line in enumerate(lines):
        if "[ref=" in line:
            result.append(line)
            continue

        # "- paragraph: text" carries content; "- list:" alone does not
        if ":" in line and not line.endswith(":"):
            result.append(line)
            continue

        current = indent_level(line)
        for child in lines[i + 1 :]:
            if indent_level(child) <= current:
                break
            if "[ref=" in child:
                result.append(line)
                break

    return "\n".join(result)
