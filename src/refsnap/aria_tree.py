# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Accessibility-tree text grammar and role taxonomy.

Playwright's aria snapshot is YAML-like text, one entry per line::

    - heading "Example Domain" [level=1]
    - paragraph: Some text content
    - link "More information...":
      - /url: https://www.iana.org/domains/example

Grammar of an entry line: ``<indent>- <role>[ "<name>"]<suffix>``. The
suffix keeps everything after the name verbatim (``[level=1]``, ``: text``,
a trailing ``:``). Lines that do not match are text or metadata lines.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

# ── Role taxonomy ───────────────────────────────────────────────────

# Roles that are interactive and always get refs
INTERACTIVE_ROLES = frozenset(
    {
        "button",
        "link",
        "textbox",
        "checkbox",
        "radio",
        "combobox",
        "listbox",
        "menuitem",
        "menuitemcheckbox",
        "menuitemradio",
        "option",
        "searchbox",
        "slider",
        "spinbutton",
        "switch",
        "tab",
        "treeitem",
    }
)

# Roles that get refs only when named (text extraction targets)
CONTENT_ROLES = frozenset(
    {
        "heading",
        "cell",
        "gridcell",
        "columnheader",
        "rowheader",
        "listitem",
        "article",
        "region",
        "main",
        "navigation",
    }
)

# Purely structural roles (collapsible in compact mode)
STRUCTURAL_ROLES = frozenset(
    {
        "generic",
        "group",
        "list",
        "table",
        "row",
        "rowgroup",
        "grid",
        "treegrid",
        "menu",
        "menubar",
        "toolbar",
        "tablist",
        "tree",
        "directory",
        "document",
        "application",
        "presentation",
        "none",
    }
)


class RoleKind(enum.Enum):
    INTERACTIVE = "interactive"
    CONTENT = "content"
    STRUCTURAL = "structural"
    OTHER = "other"


def classify_role(role: str) -> RoleKind:
    role = role.lower()
    if role in INTERACTIVE_ROLES:
        return RoleKind.INTERACTIVE
    if role in CONTENT_ROLES:
        return RoleKind.CONTENT
    if role in STRUCTURAL_ROLES:
        return RoleKind.STRUCTURAL
    return RoleKind.OTHER


# ── Line grammar ────────────────────────────────────────────────────

INDENT_WIDTH = 2

# prefix (indent + dash), role token, optional quoted name (\" escapes allowed), rest
_ENTRY_RE = re.compile(r'^(\s*-\s*)(\w+)(?:\s+"((?:[^"\\]|\\.)*)")?(.*)$')
_METADATA_RE = re.compile(r"^\s*(?:-\s*)?/")
_LEADING_WS_RE = re.compile(r"^(\s*)")
_UNESCAPE_RE = re.compile(r"\\(.)")


def indent_level(line: str) -> int:
    """Nesting depth: leading whitespace width // 2."""
    return len(_LEADING_WS_RE.match(line).group(1)) // INDENT_WIDTH


def is_metadata_line(line: str) -> bool:
    """``- /url: ...`` style annotation lines."""
    return bool(_METADATA_RE.match(line))


@dataclass(frozen=True, slots=True)
class AriaLine:
    """One parsed entry line."""

    prefix: str  # indent + "- "
    role: str  # as written (case preserved)
    raw_name: str | None  # quoted text as written, escapes intact
    suffix: str  # everything after the name
    depth: int

    @property
    def role_lower(self) -> str:
        return self.role.lower()

    @property
    def name(self) -> str | None:
        """Unescaped accessible name; None when absent or empty."""
        if not self.raw_name:
            return None
        return _UNESCAPE_RE.sub(r"\1", self.raw_name)

    @property
    def kind(self) -> RoleKind:
        return classify_role(self.role)

    @property
    def has_inline_text(self) -> bool:
        """``- paragraph: text`` carries content after the colon."""
        return ":" in self.suffix and not self.suffix.rstrip().endswith(":")

    def head(self, *, indented: bool = True) -> str:
        """``- role "name"`` part of the line."""
        text = f"{self.prefix if indented else '- '}{self.role}"
        if self.raw_name:
            text += f' "{self.raw_name}"'
        return text


def parse_line(line: str) -> AriaLine | None:
    """Parse an entry line; None for text/metadata lines."""
    if is_metadata_line(line):
        return None
    m = _ENTRY_RE.match(line)
    if m is None:
        return None
    prefix, role, raw_name, suffix = m.groups()
    return AriaLine(
        prefix=prefix,
        role=role,
        raw_name=raw_name,
        suffix=suffix,
        depth=indent_level(line),
    )
