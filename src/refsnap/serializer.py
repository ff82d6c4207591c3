# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""EnhancedSnapshot serialization: JSON and agent prompt formats.

Two output formats:
- JSON: tree + ref map for programmatic ref resolution
- Agent prompt: the tree plus a one-line ref usage hint
"""

from __future__ import annotations

import json
from typing import Any

from . import EnhancedSnapshot, RefMap, SnapshotStats


def refs_to_dict(refs: RefMap) -> dict[str, dict[str, Any]]:
    return {ref: entry.to_dict() for ref, entry in refs.items()}


def to_dict(snapshot: EnhancedSnapshot, stats: SnapshotStats | None = None) -> dict[str, Any]:
    data: dict[str, Any] = {
        "tree": snapshot.tree,
        "refs": refs_to_dict(snapshot.refs),
    }
    if stats is not None:
        data["stats"] = {
            "lines": stats.lines,
            "chars": stats.chars,
            "tokens": stats.tokens,
            "refs": stats.refs,
            "interactive": stats.interactive,
        }
    return data


def to_json(snapshot: EnhancedSnapshot, stats: SnapshotStats | None = None, indent: int = 2) -> str:
    """Serialize a snapshot to a JSON string (non-ASCII kept, icon glyphs included)."""
    return json.dumps(to_dict(snapshot, stats), ensure_ascii=False, indent=indent)


def to_agent_prompt(snapshot: EnhancedSnapshot) -> str:
    """Tree text with a usage footer when refs are present."""
    if not snapshot.refs:
        return snapshot.tree
    return f"{snapshot.tree}\n\n(Use @eN to reference an element; {len(snapshot.refs)} refs.)"


def format_stats(stats: SnapshotStats) -> str:
    return (
        f"lines={stats.lines} chars={stats.chars} tokens={stats.tokens} "
        f"refs={stats.refs} interactive={stats.interactive}"
    )
