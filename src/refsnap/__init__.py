# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""refsnap: ref-addressable accessibility snapshots for AI agent web tasks.

Turns a page's accessibility-tree text into a compact annotated tree where
every actionable element carries a short ref (``e1``, ``e2``, ...):
- tree: the annotated text an agent reads
- refs: ref -> locator descriptor map used to act on ``@e1``-style references
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class RefEntry:
    """Locator descriptor for one ref."""

    selector: str  # getByRole(...) descriptor or structural CSS path
    role: str  # lowercased role, or clickable/focusable for cursor refs
    name: str | None = None
    nth: int | None = None  # only kept when (role, name) is duplicated

    def to_dict(self) -> dict:
        data: dict = {"selector": self.selector, "role": self.role}
        if self.name is not None:
            data["name"] = self.name
        if self.nth is not None:
            data["nth"] = self.nth
        return data


# ref id -> entry, insertion order = discovery order
RefMap = dict[str, RefEntry]


@dataclass(frozen=True)
class SnapshotOptions:
    """Snapshot filters and scope."""

    interactive: bool = False  # only interactive roles
    cursor: bool = False  # append cursor-interactive elements
    max_depth: int | None = None  # indentation level cutoff (0 = root only)
    compact: bool = False  # drop empty structural branches
    selector: str | None = None  # CSS scope; disables region partitioning

    def __post_init__(self) -> None:
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")

    def scoped(self, selector: str) -> SnapshotOptions:
        """Same filters, narrowed to *selector*."""
        return SnapshotOptions(
            interactive=self.interactive,
            cursor=self.cursor,
            max_depth=self.max_depth,
            compact=self.compact,
            selector=selector,
        )


@dataclass
class EnhancedSnapshot:
    """Annotated tree plus the refs it mentions."""

    tree: str
    refs: RefMap = field(default_factory=dict)

    @property
    def ref_count(self) -> int:
        return len(self.refs)


@dataclass(frozen=True)
class SnapshotStats:
    lines: int
    chars: int
    tokens: int
    refs: int
    interactive: int
