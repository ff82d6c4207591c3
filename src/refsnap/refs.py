# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Ref allocation, (role, name) duplicate tracking, and locator descriptors.

A SnapshotContext bundles the three pieces of per-snapshot mutable state
(allocator, tracker, ref map). Every pipeline stage takes the context
explicitly, so one snapshot's refs can never leak into another's.

Not safe for concurrent use: callers await stages one at a time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from . import RefEntry, RefMap

_REF_ID_RE = re.compile(r"^e\d+$")


class RefAllocator:
    """Sequential ref ids: e1, e2, ..."""

    __slots__ = ("_counter",)

    def __init__(self) -> None:
        self._counter = 0

    def reset(self) -> None:
        self._counter = 0

    def next(self) -> str:
        self._counter += 1
        return f"e{self._counter}"

    @property
    def issued(self) -> int:
        return self._counter


def _key(role: str, name: str | None) -> str:
    return f"{role}:{name or ''}"


class RoleNameTracker:
    """Counts (role, name) pairs so duplicates can be told apart with nth.

    nth is assigned tentatively for every ref and stripped in a final pass
    (strip_unique_nth) because duplication is only known after the whole
    snapshot has been scanned.
    """

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}
        self._refs_by_key: dict[str, list[str]] = {}

    def next_index(self, role: str, name: str | None) -> int:
        """0-based occurrence index for this pair. Call once per ref."""
        key = _key(role, name)
        current = self._counts.get(key, 0)
        self._counts[key] = current + 1
        return current

    def track_ref(self, role: str, name: str | None, ref: str) -> None:
        self._refs_by_key.setdefault(_key(role, name), []).append(ref)

    def duplicate_keys(self) -> set[str]:
        return {key for key, refs in self._refs_by_key.items() if len(refs) > 1}

    def refs_for(self, role: str, name: str | None) -> list[str]:
        return list(self._refs_by_key.get(_key(role, name), []))

    def strip_unique_nth(self, refs: RefMap) -> None:
        """Drop nth from entries whose (role, name) occurred exactly once."""
        duplicates = self.duplicate_keys()
        for entry in refs.values():
            if _key(entry.role, entry.name) not in duplicates:
                entry.nth = None


@dataclass
class SnapshotContext:
    """Per-snapshot state shared by every scope of one top-level call."""

    allocator: RefAllocator = field(default_factory=RefAllocator)
    tracker: RoleNameTracker = field(default_factory=RoleNameTracker)
    refs: RefMap = field(default_factory=dict)

    def assign_role_ref(self, role: str, name: str | None) -> tuple[str, int]:
        """Allocate a ref for an accessibility-tree entry.

        Returns (ref, nth). nth is stored on the entry and may later be
        stripped by finalize().
        """
        ref = self.allocator.next()
        nth = self.tracker.next_index(role, name)
        self.tracker.track_ref(role, name, ref)
        self.refs[ref] = RefEntry(
            selector=build_role_selector(role, name),
            role=role,
            name=name,
            nth=nth,
        )
        return ref, nth

    def assign_cursor_ref(self, role: str, name: str, selector: str) -> str:
        """Allocate a ref for a cursor-detected element (structural selector, no nth)."""
        ref = self.allocator.next()
        self.refs[ref] = RefEntry(selector=selector, role=role, name=name)
        return ref

    def finalize(self) -> RefMap:
        self.tracker.strip_unique_nth(self.refs)
        return self.refs


def build_role_selector(role: str, name: str | None = None) -> str:
    """Locator descriptor resolvable as a Playwright role query."""
    if name:
        escaped = name.replace('"', '\\"')
        return f"getByRole('{role}', {{ name: \"{escaped}\", exact: true }})"
    return f"getByRole('{role}')"


def parse_ref(arg: str) -> str | None:
    """Extract a ref id from ``@e1``, ``ref=e1`` or ``e1``.

    Returns None when *arg* is not a ref reference.
    """
    if arg.startswith("@"):
        candidate = arg[1:]
    elif arg.startswith("ref="):
        candidate = arg[4:]
    else:
        candidate = arg
    return candidate if _REF_ID_RE.match(candidate) else None


def lookup_ref(refs: RefMap, arg: str) -> RefEntry | None:
    """Entry for an ``@e1``-style argument, or None."""
    ref = parse_ref(arg)
    return refs.get(ref) if ref else None
