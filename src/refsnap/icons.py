# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Private-use-area icon glyph resolution.

Icon fonts (MDI, Font Awesome, ...) render symbols from Unicode private-use
codepoints, so an icon-only button's accessible name is an unreadable glyph.
The resolver never rewrites the quoted name (exact-text locators must keep
working); it adds a bracketed description instead:

    - button "\U000F0415" [ref=e1] [icon-desc=<plus>]
    - text: \U000F024B Files [icon-descs=<folder>]
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from .errors import IconTableError
from .icon_codepoints import MDI_CODEPOINT_NAMES, load_mdi_meta

logger = logging.getLogger(__name__)

# (start, end) inclusive
PUA_RANGES: tuple[tuple[int, int], ...] = (
    (0xE000, 0xF8FF),
    (0xF0000, 0xFFFFD),
    (0x100000, 0x10FFFD),
)


def is_pua(codepoint: int) -> bool:
    return any(start <= codepoint <= end for start, end in PUA_RANGES)


def fallback_name(codepoint: int) -> str:
    """``<icon-u+f0156>``: lowercase hex, no zero padding."""
    return f"<icon-u+{codepoint:x}>"


class IconResolver:
    """Maps PUA glyphs to ``<name>`` descriptions via a codepoint table."""

    def __init__(self, table: Mapping[int, str] | None = None) -> None:
        self._table: Mapping[int, str] = MDI_CODEPOINT_NAMES if table is None else table

    @classmethod
    def from_settings(cls, settings) -> IconResolver:
        """Built-in table, extended by REFSNAP_ICON_TABLE when set.

        An unreadable metadata file is logged and ignored.
        """
        if settings.icon_table is None:
            return cls()

        try:
            extra = load_mdi_meta(settings.icon_table)
        except IconTableError as e:
            logger.warning("Icon table ignored: %s", e)
            return cls()
        return cls({**MDI_CODEPOINT_NAMES, **extra})

    def __len__(self) -> int:
        return len(self._table)

    # ── Detection ──

    def find_glyphs(self, text: str) -> list[int]:
        """PUA codepoints in *text*, left to right."""
        return [ord(ch) for ch in text if is_pua(ord(ch))]

    def has_glyphs(self, text: str | None) -> bool:
        return bool(text) and any(is_pua(ord(ch)) for ch in text)

    def is_icon_only(self, text: str | None) -> bool:
        """True when *text* is nothing but glyphs (whitespace ignored)."""
        if not text:
            return False
        visible = [ch for ch in text if not ch.isspace()]
        return bool(visible) and all(is_pua(ord(ch)) for ch in visible)

    # ── Naming ──

    def glyph_name(self, codepoint: int) -> str:
        name = self._table.get(codepoint)
        return f"<{name}>" if name else fallback_name(codepoint)

    def describe(self, text: str | None) -> list[str]:
        """Resolved name of every glyph in *text*, in order."""
        if not text:
            return []
        return [self.glyph_name(cp) for cp in self.find_glyphs(text)]

    def semantic_label(self, text: str | None) -> str | None:
        """Readable replacement for an icon-only label, else None.

        All glyphs mapped -> their names joined by spaces (``<close>``);
        otherwise the fallback form of the first unmapped glyph.
        """
        if not self.is_icon_only(text):
            return None
        glyphs = self.find_glyphs(text)
        unmapped = [cp for cp in glyphs if cp not in self._table]
        if unmapped:
            return fallback_name(unmapped[0])
        return " ".join(self.glyph_name(cp) for cp in glyphs)

    # ── Line annotation ──

    def label_annotation(self, label: str | None) -> str:
        """`` [icon-desc=...]`` for a labeled element line, or "".

        Icon-only labels use their semantic form; mixed labels list every glyph.
        """
        semantic = self.semantic_label(label)
        if semantic is not None:
            return f" [icon-desc={semantic}]"
        names = self.describe(label)
        if not names:
            return ""
        return f" [icon-desc={', '.join(names)}]"

    def annotate_text_line(self, line: str) -> str:
        """Append ``[icon-descs=...]`` to a plain text line, keeping its text.

        A trailing ``:`` (entry with children) stays last.
        """
        if not self.has_glyphs(line):
            return line
        tag = f"[icon-descs={', '.join(self.describe(line))}]"
        stripped = line.rstrip()
        if stripped.endswith(":"):
            return f"{stripped[:-1]} {tag}:"
        return f"{stripped} {tag}"

    def annotate_inline_text(self, suffix: str) -> str:
        """Describe glyphs in the ``: text`` tail of an element line.

        The quoted name is covered by :meth:`label_annotation`; this only
        looks at what follows it.
        """
        if not self.has_glyphs(suffix):
            return suffix
        return self.annotate_text_line(suffix)
