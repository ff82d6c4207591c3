# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for refsnap.aria_tree: role taxonomy and line grammar."""

from __future__ import annotations

import pytest

from refsnap.aria_tree import (
    CONTENT_ROLES,
    INTERACTIVE_ROLES,
    STRUCTURAL_ROLES,
    RoleKind,
    classify_role,
    indent_level,
    is_metadata_line,
    parse_line,
)


class TestRoleTaxonomy:
    def test_sets_are_disjoint(self):
        assert not INTERACTIVE_ROLES & CONTENT_ROLES
        assert not INTERACTIVE_ROLES & STRUCTURAL_ROLES
        assert not CONTENT_ROLES & STRUCTURAL_ROLES

    @pytest.mark.parametrize(
        "role,kind",
        [
            ("button", RoleKind.INTERACTIVE),
            ("BUTTON", RoleKind.INTERACTIVE),
            ("treeitem", RoleKind.INTERACTIVE),
            ("heading", RoleKind.CONTENT),
            ("navigation", RoleKind.CONTENT),
            ("generic", RoleKind.STRUCTURAL),
            ("none", RoleKind.STRUCTURAL),
            ("paragraph", RoleKind.OTHER),
            ("img", RoleKind.OTHER),
        ],
    )
    def test_classify_role(self, role, kind):
        assert classify_role(role) is kind


class TestIndentLevel:
    @pytest.mark.parametrize(
        "line,level",
        [
            ("- button", 0),
            ("  - button", 1),
            ("    - button", 2),
            ("   - odd", 1),
            ("", 0),
        ],
    )
    def test_levels(self, line, level):
        assert indent_level(line) == level


class TestMetadataLines:
    @pytest.mark.parametrize("line", ["  - /url: https://example.com", "/url: x", "    - /placeholder: Search"])
    def test_metadata(self, line):
        assert is_metadata_line(line)
        assert parse_line(line) is None

    def test_entry_is_not_metadata(self):
        assert not is_metadata_line('- link "a/b"')


class TestParseLine:
    def test_named_entry_with_attributes(self):
        entry = parse_line('  - heading "Example Domain" [level=1]')
        assert entry is not None
        assert entry.prefix == "  - "
        assert entry.role == "heading"
        assert entry.name == "Example Domain"
        assert entry.suffix == " [level=1]"
        assert entry.depth == 1
        assert entry.kind is RoleKind.CONTENT

    def test_unnamed_entry_with_children(self):
        entry = parse_line("- list:")
        assert entry.role == "list"
        assert entry.name is None
        assert entry.suffix == ":"
        assert not entry.has_inline_text

    def test_inline_text(self):
        entry = parse_line("- paragraph: Some text content")
        assert entry.name is None
        assert entry.has_inline_text

    def test_escaped_quotes_in_name(self):
        entry = parse_line('- button "Say \\"hi\\"" [pressed]')
        assert entry.raw_name == 'Say \\"hi\\"'
        assert entry.name == 'Say "hi"'
        assert entry.suffix == " [pressed]"
        assert entry.head() == '- button "Say \\"hi\\""'

    def test_empty_name_is_none(self):
        entry = parse_line('- button ""')
        assert entry.name is None
        assert entry.head() == "- button"

    def test_role_case_preserved(self):
        entry = parse_line('- Button "OK"')
        assert entry.role == "Button"
        assert entry.role_lower == "button"
        assert entry.kind is RoleKind.INTERACTIVE

    def test_head_unindented(self):
        entry = parse_line('      - link "Home":')
        assert entry.head(indented=False) == '- link "Home"'
        assert entry.head() == '      - link "Home"'

    @pytest.mark.parametrize("line", ["", "plain text", "   ", "-"])
    def test_non_entries(self, line):
        assert parse_line(line) is None
