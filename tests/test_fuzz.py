# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Property-based fuzz tests using Hypothesis.

Verifies ref allocation and filtering invariants hold for arbitrary
accessibility trees.
"""

from __future__ import annotations

try:
    from hypothesis import HealthCheck, given, settings
    from hypothesis import strategies as st
except ImportError:
    import pytest

    pytest.skip("hypothesis not installed", allow_module_level=True)

import re
from collections import Counter

import pytest

from refsnap import SnapshotOptions
from refsnap.aria_tree import CONTENT_ROLES, INTERACTIVE_ROLES, STRUCTURAL_ROLES
from refsnap.refs import SnapshotContext
from refsnap.tree_filter import process_aria_tree

# ---------------------------------------------------------------------------
# Module-level strategies
# ---------------------------------------------------------------------------

ROLES = sorted(INTERACTIVE_ROLES | CONTENT_ROLES | STRUCTURAL_ROLES | {"paragraph", "img", "text", "banner"})

NAMES = st.one_of(
    st.none(),
    st.text(alphabet="abcXYZ 12\U000f0156\U000f0415\U000fffa0", min_size=1, max_size=12),
    st.sampled_from(["OK", "Delete", "Home"]),
)

SUFFIXES = st.sampled_from(["", ":", " [level=2]", " [checked]", ": inline text"])


@st.composite
def aria_lines(draw):
    depth = draw(st.integers(0, 5))
    role = draw(st.sampled_from(ROLES))
    name = draw(NAMES)
    suffix = draw(SUFFIXES)
    line = "  " * depth + "- " + role
    if name is not None:
        line += f' "{name}"'
    return line + suffix


ARIA_TREES = st.lists(
    st.one_of(aria_lines(), st.just("  - /url: https://example.com")),
    min_size=0,
    max_size=40,
).map("\n".join)

_REF_RE = re.compile(r"\[ref=(e\d+)\]")

# ---------------------------------------------------------------------------
# Shared settings
# ---------------------------------------------------------------------------

_fuzz_settings = settings(
    max_examples=200,
    suppress_health_check=[HealthCheck.too_slow],
)


def _snapshot(tree: str, **kwargs):
    ctx = SnapshotContext()
    out = process_aria_tree(tree, ctx, SnapshotOptions(**kwargs))
    return out, ctx.finalize()


# ---------------------------------------------------------------------------
# TestFuzzRefs
# ---------------------------------------------------------------------------


@pytest.mark.fuzz
class TestFuzzRefs:
    @_fuzz_settings
    @given(tree=ARIA_TREES)
    def test_refs_unique_and_sequential(self, tree):
        out, refs = _snapshot(tree)
        mentioned = _REF_RE.findall(out)
        assert len(mentioned) == len(set(mentioned))
        assert mentioned == list(refs)
        assert list(refs) == [f"e{i}" for i in range(1, len(refs) + 1)]

    @_fuzz_settings
    @given(tree=ARIA_TREES)
    def test_nth_only_for_duplicates(self, tree):
        _, refs = _snapshot(tree)
        counts = Counter((e.role, e.name or "") for e in refs.values())
        seen: Counter = Counter()
        for entry in refs.values():
            key = (entry.role, entry.name or "")
            if counts[key] > 1:
                assert entry.nth == seen[key]
            else:
                assert entry.nth is None
            seen[key] += 1

    @_fuzz_settings
    @given(tree=ARIA_TREES)
    def test_every_ref_is_addressable(self, tree):
        _, refs = _snapshot(tree)
        for entry in refs.values():
            assert entry.role in INTERACTIVE_ROLES or (entry.role in CONTENT_ROLES and entry.name)
            assert entry.selector.startswith(f"getByRole('{entry.role}'")


# ---------------------------------------------------------------------------
# TestFuzzFilters
# ---------------------------------------------------------------------------


@pytest.mark.fuzz
class TestFuzzFilters:
    @_fuzz_settings
    @given(tree=ARIA_TREES, depth=st.integers(0, 5))
    def test_max_depth_monotonic(self, tree, depth):
        _, shallow = _snapshot(tree, max_depth=depth)
        _, deeper = _snapshot(tree, max_depth=depth + 1)
        _, full = _snapshot(tree)
        assert len(shallow) <= len(deeper) <= len(full)

    @_fuzz_settings
    @given(tree=ARIA_TREES)
    def test_compact_keeps_refs_and_shrinks(self, tree):
        full_out, full_refs = _snapshot(tree)
        compact_out, compact_refs = _snapshot(tree, compact=True)
        assert len(compact_out.split("\n")) <= len(full_out.split("\n"))
        assert [(e.role, e.name) for e in compact_refs.values()] == [(e.role, e.name) for e in full_refs.values()]

    @_fuzz_settings
    @given(tree=ARIA_TREES)
    def test_interactive_subset_of_full(self, tree):
        out, interactive = _snapshot(tree, interactive=True)
        _, full = _snapshot(tree)
        assert all(e.role in INTERACTIVE_ROLES for e in interactive.values())
        full_interactive = [(e.role, e.name) for e in full.values() if e.role in INTERACTIVE_ROLES]
        assert [(e.role, e.name) for e in interactive.values()] == full_interactive
        assert all(not line.startswith(" ") for line in out.split("\n"))
