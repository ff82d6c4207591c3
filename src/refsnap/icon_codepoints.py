# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Material Design Icons codepoint -> icon-name table.

MDI_CODEPOINT_NAMES is a curated subset of the icons most often seen in app
shells. The full table can be loaded at runtime from ``@mdi/svg``'s
``meta.json`` (load_mdi_meta) or regenerated into a module with
``refsnap gen-icons`` (render_codepoint_module).
"""

from __future__ import annotations

import json
from pathlib import Path

from .errors import IconTableError

# fmt: off
MDI_CODEPOINT_NAMES: dict[int, str] = {
    0xF0004: "account", 0xF0009: "account-circle", 0xF0026: "alert", 0xF0028: "alert-circle",
    0xF0045: "arrow-down", 0xF004D: "arrow-left", 0xF0054: "arrow-right", 0xF005D: "arrow-up",
    0xF0066: "attachment", 0xF009A: "bell", 0xF00ED: "calendar", 0xF012C: "check",
    0xF0131: "checkbox-blank-outline", 0xF0140: "chevron-down", 0xF0141: "chevron-left",
    0xF0142: "chevron-right", 0xF0143: "chevron-up", 0xF0150: "clock-outline", 0xF0156: "close",
    0xF0159: "close-circle", 0xF018F: "content-copy", 0xF0193: "content-save", 0xF01B4: "delete",
    0xF01D8: "dots-horizontal", 0xF01D9: "dots-vertical", 0xF01DA: "download", 0xF01EE: "email",
    0xF0208: "eye", 0xF0209: "eye-off", 0xF0233: "filter", 0xF024B: "folder", 0xF028C: "forum",
    0xF02D7: "help-circle", 0xF02D8: "hexagon", 0xF02DC: "home", 0xF02FC: "information",
    0xF0337: "link", 0xF0341: "lock", 0xF0342: "login", 0xF0343: "logout", 0xF0349: "magnify",
    0xF035C: "menu", 0xF035D: "menu-down", 0xF035E: "menu-left", 0xF035F: "menu-right",
    0xF0360: "menu-up", 0xF0374: "minus", 0xF03D6: "open-in-new", 0xF03E2: "paperclip",
    0xF03E4: "pause", 0xF03EB: "pencil", 0xF040A: "play", 0xF0415: "plus", 0xF0417: "plus-circle",
    0xF0450: "refresh", 0xF048A: "send", 0xF0493: "cog", 0xF04CE: "star", 0xF0552: "upload",
}
# fmt: on

_ENTRIES_PER_LINE = 4


def load_mdi_meta(path: str | Path) -> dict[int, str]:
    """Read ``@mdi/svg/meta.json`` into a codepoint -> name map.

    Deprecated icons and entries without a codepoint or name are skipped.

    Raises:
        IconTableError: file missing, not JSON, or not a list of icon records.
    """
    path = Path(path)
    try:
        meta = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise IconTableError(f"Cannot read icon metadata {path}: {e}") from e

    if not isinstance(meta, list):
        raise IconTableError(f"Icon metadata {path} must be a JSON list, got {type(meta).__name__}")

    table: dict[int, str] = {}
    for entry in meta:
        if not isinstance(entry, dict) or entry.get("deprecated"):
            continue
        codepoint = entry.get("codepoint")
        name = entry.get("name")
        if not codepoint or not name:
            continue
        try:
            table[int(str(codepoint), 16)] = str(name)
        except ValueError:
            continue
    return dict(sorted(table.items()))


def render_codepoint_module(table: dict[int, str], source: str = "@mdi/svg meta.json") -> str:
    """Render *table* as the source of a drop-in replacement for this module's table."""
    entries = sorted(table.items())
    lines = [
        "# Copyright (C) 2025-2026 Retio AI",
        "# SPDX-License-Identifier: AGPL-3.0-only",
        "",
        f'"""Auto-generated MDI codepoint -> icon-name map ({len(entries)} icons, from {source}).',
        "",
        "Regenerate with: refsnap gen-icons META_JSON OUTPUT",
        '"""',
        "",
        "# fmt: off",
        "MDI_CODEPOINT_NAMES: dict[int, str] = {",
    ]
    for i in range(0, len(entries), _ENTRIES_PER_LINE):
        chunk = entries[i : i + _ENTRIES_PER_LINE]
        lines.append("    " + " ".join(f"0x{cp:X}: {json.dumps(name)}," for cp, name in chunk))
    lines.append("}")
    lines.append("# fmt: on")
    lines.append("")
    return "\n".join(lines)
