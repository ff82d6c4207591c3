# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Multi-pane app shell detection and region partitioning.

Chat/workspace apps render sidebar, contents and drawer panes side by side.
A single accessibility tree interleaves them, so the snapshot is split into
``# Sidebar:`` / ``# Contents:`` / ``# Drawer:`` / ``# FAB:`` sections, one per
on-screen pane.

Shells are data (ShellDefinition): literal CSS selectors per region plus the
selector groups that must all be present for the shell to match. They are
per-application adapters, not a general layout detector; add new ones via
``shells=`` or a YAML file (REFSNAP_SHELLS_FILE) rather than new code.

One page.evaluate() call reports on-screen matches with containment and
geometry; containment dedup and the floating-action-button heuristic run
here on plain data.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ShellDefinitionError
from .page_source import PageSource

logger = logging.getLogger(__name__)

RegionKey = Literal["sidebar", "contents", "drawer", "fab"]

# ── FAB heuristic thresholds ────────────────────────────────────────

FAB_MIN_SIZE = 32  # px, smaller dimension lower bound
FAB_MAX_SIZE = 120  # px, larger dimension upper bound
FAB_CORNER_DISTANCE = 200  # px from the viewport's right and bottom edges
FAB_MIN_Z_INDEX = 20  # absolute positioning counts as floating from here
FAB_ROUND_RATIO = 0.35  # border radius / smaller dimension

FAB_TOKEN_RE = re.compile(r"(^|[-_])fab($|[-_])", re.IGNORECASE)
CIRCLE_TOKEN_RE = re.compile(r"(^|[-_])circle($|[-_])", re.IGNORECASE)
_LEADING_NUMBER_RE = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:e[-+]?\d+)?)", re.IGNORECASE)

_FLOATING_POSITIONS = frozenset({"fixed", "sticky"})
_INTERACTIVE_TAGS = frozenset({"button", "a"})
_INTERACTIVE_ROLES = frozenset({"button", "link"})


# ── Shell definitions ───────────────────────────────────────────────


class RegionDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: Literal["sidebar", "contents", "drawer"]
    title: str
    candidates: list[str] = Field(min_length=1)


class ShellDefinition(BaseModel):
    """One recognizable app layout.

    detect_groups: every group needs at least one matching selector.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    detect_groups: list[list[str]] = Field(min_length=1)
    regions: list[RegionDefinition] = Field(min_length=1)
    fab: bool = True
    fab_title: str = "FAB"


PANES_SHELL = ShellDefinition(
    name="panes",
    detect_groups=[
        ["#panel-center", "#contents-center", ".component.reverb.threads", ".component.reverb.messages"],
        ["#sidebar-center", "#drawer-container", ".component.reverb.sidebar"],
    ],
    regions=[
        RegionDefinition(
            key="sidebar",
            title="Sidebar",
            candidates=["#sidebar-header", "#sidebar-center", "#sidebar-footer", ".component.reverb.sidebar"],
        ),
        RegionDefinition(
            key="contents",
            title="Contents",
            candidates=[
                "#panel-header",
                "#panel-center",
                "#panel-footer",
                "#contents-header",
                "#contents-center",
                "#contents-footer",
                ".component.reverb.threads",
                ".component.reverb.messages",
            ],
        ),
        RegionDefinition(
            key="drawer",
            title="Drawer",
            candidates=["#drawer-container", "#drawer-header", "#drawer-center", "#drawer-footer"],
        ),
    ],
)

DEFAULT_SHELLS: tuple[ShellDefinition, ...] = (PANES_SHELL,)


def load_shells(path: str | Path) -> list[ShellDefinition]:
    """Load shell definitions from YAML::

        shells:
          - name: mail
            detect_groups: [["#inbox"], ["#folders"]]
            regions:
              - {key: sidebar, title: Folders, candidates: ["#folders"]}
              - {key: contents, title: Inbox, candidates: ["#inbox"]}

    Raises:
        ShellDefinitionError: unreadable file or invalid definitions.
    """
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ShellDefinitionError(f"Cannot read shell definitions {path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("shells"), list):
        raise ShellDefinitionError(f"{path}: expected a top-level 'shells' list")

    try:
        return [ShellDefinition.model_validate(item) for item in data["shells"]]
    except ValidationError as e:
        raise ShellDefinitionError(f"{path}: invalid shell definition: {e}") from e


def shells_from_settings(settings) -> tuple[ShellDefinition, ...]:
    """File-defined shells first (they win ties), then the built-ins."""
    if settings.shells_file is None:
        return DEFAULT_SHELLS
    return (*load_shells(settings.shells_file), *DEFAULT_SHELLS)


# ── Results ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Region:
    key: RegionKey
    title: str
    selectors: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class RegionElement:
    """On-screen element reported by the region query."""

    id: int
    depth: int
    selector: str
    ancestors: frozenset[int] = frozenset()

    @classmethod
    def from_raw(cls, raw: dict) -> RegionElement:
        return cls(
            id=int(raw["id"]),
            depth=int(raw.get("depth") or 0),
            selector=str(raw["selector"]),
            ancestors=frozenset(int(a) for a in raw.get("ancestors") or ()),
        )


@dataclass(frozen=True, slots=True)
class FloatingElement:
    """FAB candidate with the geometry and style the heuristic needs."""

    element: RegionElement
    tag: str
    element_id: str = ""
    classes: tuple[str, ...] = ()
    role: str = ""
    position: str = "static"
    z_index: str = "auto"
    border_radius: str = ""
    cursor: str = ""
    has_onclick: bool = False
    tabindex: str | None = None
    left: float = 0.0
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @classmethod
    def from_raw(cls, raw: dict) -> FloatingElement:
        rect = raw.get("rect") or {}
        tabindex = raw.get("tabindex")
        return cls(
            element=RegionElement.from_raw(raw),
            tag=str(raw.get("tag") or "").lower(),
            element_id=str(raw.get("elementId") or ""),
            classes=tuple(str(c) for c in raw.get("classes") or ()),
            role=str(raw.get("role") or "").lower(),
            position=str(raw.get("position") or "static"),
            z_index=str(raw.get("zIndex") or "auto"),
            border_radius=str(raw.get("borderRadius") or ""),
            cursor=str(raw.get("cursor") or ""),
            has_onclick=bool(raw.get("hasOnClick")),
            tabindex=None if tabindex is None else str(tabindex),
            left=float(rect.get("left", 0)),
            top=float(rect.get("top", 0)),
            right=float(rect.get("right", 0)),
            bottom=float(rect.get("bottom", 0)),
        )


# ── Pure helpers ────────────────────────────────────────────────────


def _parse_number(raw: str) -> float | None:
    m = _LEADING_NUMBER_RE.match(raw or "")
    return float(m.group(1)) if m else None


def parse_radius(raw: str, min_dimension: float) -> float:
    """First border-radius token in px; percentages resolve against *min_dimension*."""
    if not raw or not raw.split():
        return 0.0
    token = raw.split()[0]
    value = _parse_number(token.rstrip("%"))
    if value is None:
        return 0.0
    if token.endswith("%"):
        return value / 100 * min_dimension
    return value


def has_fab_token(el: FloatingElement) -> bool:
    return bool(FAB_TOKEN_RE.search(el.element_id)) or any(FAB_TOKEN_RE.search(c) for c in el.classes)


def _is_interactive(el: FloatingElement) -> bool:
    if el.tag in _INTERACTIVE_TAGS or el.role in _INTERACTIVE_ROLES:
        return True
    if el.cursor == "pointer" or el.has_onclick:
        return True
    if el.tabindex is not None:
        tabindex = _parse_number(el.tabindex)
        return tabindex is not None and tabindex >= 0
    return False


def is_fab_like(el: FloatingElement, viewport_width: float, viewport_height: float) -> bool:
    """Floating, button-sized, rounded, interactive, parked in the bottom-right corner."""
    z_index = _parse_number(el.z_index)
    floating = el.position in _FLOATING_POSITIONS or (
        el.position == "absolute" and z_index is not None and int(z_index) >= FAB_MIN_Z_INDEX
    )
    if not floating:
        return False

    min_dim = min(el.width, el.height)
    max_dim = max(el.width, el.height)
    if min_dim < FAB_MIN_SIZE or max_dim > FAB_MAX_SIZE:
        return False

    near_corner = (
        el.right >= viewport_width - FAB_CORNER_DISTANCE and el.bottom >= viewport_height - FAB_CORNER_DISTANCE
    )
    if not near_corner:
        return False

    if not _is_interactive(el):
        return False

    if any(CIRCLE_TOKEN_RE.search(c) for c in el.classes):
        return True
    return parse_radius(el.border_radius, min_dim) >= min_dim * FAB_ROUND_RATIO


def dedupe_top_level(elements: list[RegionElement]) -> list[RegionElement]:
    """Outermost elements only, shallowest first."""
    unique: dict[int, RegionElement] = {}
    for el in elements:
        unique.setdefault(el.id, el)
    ordered = sorted(unique.values(), key=lambda e: e.depth)

    selected: list[RegionElement] = []
    for candidate in ordered:
        if any(picked.id in candidate.ancestors for picked in selected):
            continue
        selected.append(candidate)
    return selected


def build_regions(result: dict, shells: tuple[ShellDefinition, ...] | list[ShellDefinition]) -> list[Region]:
    """Turn the page query result into ordered, non-empty regions."""
    index = result.get("shell")
    if index is None or not 0 <= int(index) < len(shells):
        return []
    shell = shells[int(index)]

    matches = result.get("regions") or {}
    regions: list[Region] = []
    for definition in shell.regions:
        elements = [RegionElement.from_raw(r) for r in matches.get(definition.key) or ()]
        selectors = tuple(el.selector for el in dedupe_top_level(elements))
        if selectors:
            regions.append(Region(key=definition.key, title=definition.title, selectors=selectors))

    if shell.fab:
        viewport = result.get("viewport") or {}
        width = float(viewport.get("width", 0))
        height = float(viewport.get("height", 0))
        floating = [FloatingElement.from_raw(r) for r in result.get("fab") or ()]
        fabs = [f.element for f in floating if has_fab_token(f) or is_fab_like(f, width, height)]
        selectors = tuple(el.selector for el in dedupe_top_level(fabs))
        if selectors:
            regions.append(Region(key="fab", title=shell.fab_title, selectors=selectors))

    return regions


# ── In-page query ───────────────────────────────────────────────────

REGION_QUERY_JS = """\
(args) => {
  const escapeCss = (v) => (globalThis.CSS && CSS.escape) ? CSS.escape(v) : v.replace(/["\\\\]/g, "\\\\$&");
  const safeAll = (sel) => { try { return Array.from(document.querySelectorAll(sel)); } catch (e) { return []; } };
  const safeOne = (sel) => { try { return document.querySelector(sel); } catch (e) { return null; } };

  const shellIndex = args.shells.findIndex(
    (shell) => shell.detect_groups.every((group) => group.some((sel) => !!safeOne(sel)))
  );
  const viewport = { width: window.innerWidth, height: window.innerHeight };
  if (shellIndex < 0) return { shell: null, regions: {}, fab: [], viewport };
  const shell = args.shells[shellIndex];

  const getDepth = (el) => {
    let depth = 0;
    for (let cur = el; cur && cur.parentElement; cur = cur.parentElement) depth += 1;
    return depth;
  };

  const isOnScreenAndVisible = (el) => {
    if (!el || el.nodeType !== 1) return false;
    const style = getComputedStyle(el);
    if (style.display === "none" || style.visibility === "hidden" || style.opacity === "0" ||
        style.pointerEvents === "none") return false;
    const rect = el.getBoundingClientRect();
    if (rect.width <= 0 || rect.height <= 0) return false;
    const w = Math.min(rect.right, window.innerWidth) - Math.max(rect.left, 0);
    const h = Math.min(rect.bottom, window.innerHeight) - Math.max(rect.top, 0);
    return w > 1 && h > 1;
  };

  const buildUniqueSelector = (el) => {
    if (el.id) {
      const idSel = "#" + escapeCss(el.id);
      if (safeAll(idSel).length === 1) return idSel;
    }
    const testId = el.getAttribute("data-testid");
    if (testId) {
      const testIdSel = "[data-testid=" + JSON.stringify(testId) + "]";
      if (safeAll(testIdSel).length === 1) return testIdSel;
    }
    const path = [];
    let cur = el;
    while (cur && cur !== document.body && cur.nodeType === 1) {
      let seg = cur.tagName.toLowerCase();
      const firstClass = Array.from(cur.classList || []).find((c) => c.trim().length > 0);
      if (firstClass) seg += "." + escapeCss(firstClass);
      const parent = cur.parentElement;
      if (parent) {
        const sibs = Array.from(parent.children).filter((s) => s.tagName === cur.tagName);
        if (sibs.length > 1) seg += ":nth-of-type(" + (sibs.indexOf(cur) + 1) + ")";
      }
      path.unshift(seg);
      cur = cur.parentElement;
    }
    return path.length ? path.join(" > ") : el.tagName.toLowerCase();
  };

  const ids = new Map();
  const idOf = (el) => {
    if (!ids.has(el)) ids.set(el, ids.size);
    return ids.get(el);
  };

  const describe = (elements) => {
    const unique = Array.from(new Set(elements));
    const members = new Set(unique);
    return unique.map((el) => {
      const ancestors = [];
      for (let cur = el.parentElement; cur; cur = cur.parentElement) {
        if (members.has(cur)) ancestors.push(idOf(cur));
      }
      return { el, record: { id: idOf(el), depth: getDepth(el), selector: buildUniqueSelector(el), ancestors } };
    });
  };

  const regions = {};
  for (const region of shell.regions) {
    const matches = [];
    for (const sel of region.candidates) {
      for (const el of safeAll(sel)) {
        if (isOnScreenAndVisible(el)) matches.push(el);
      }
    }
    regions[region.key] = describe(matches).map((d) => d.record);
  }

  let fab = [];
  if (shell.fab) {
    const floating = safeAll("*").filter((el) => {
      if (!isOnScreenAndVisible(el)) return false;
      const tokens = (String(el.id || "") + " " + Array.from(el.classList || []).join(" ")).toLowerCase();
      if (tokens.includes("fab")) return true;
      const position = getComputedStyle(el).position;
      return position === "fixed" || position === "sticky" || position === "absolute";
    });
    fab = describe(floating).map(({ el, record }) => {
      const style = getComputedStyle(el);
      const rect = el.getBoundingClientRect();
      return {
        ...record,
        tag: el.tagName.toLowerCase(),
        elementId: String(el.id || ""),
        classes: Array.from(el.classList || []),
        role: el.getAttribute("role") || "",
        position: style.position,
        zIndex: style.zIndex || "auto",
        borderRadius: style.borderRadius || style.borderTopLeftRadius || "",
        cursor: style.cursor,
        hasOnClick: el.hasAttribute("onclick") || typeof el.onclick === "function",
        tabindex: el.getAttribute("tabindex"),
        rect: { left: rect.left, top: rect.top, right: rect.right, bottom: rect.bottom },
      };
    });
  }

  return { shell: shellIndex, regions, fab, viewport };
}
"""


async def detect_regions(
    source: PageSource,
    shells: tuple[ShellDefinition, ...] | list[ShellDefinition] = DEFAULT_SHELLS,
) -> list[Region]:
    """Regions of the first shell the page matches; [] when none match or the query fails."""
    if not shells:
        return []
    args = {"shells": [shell.model_dump() for shell in shells]}
    try:
        result = await source.evaluate(REGION_QUERY_JS, args)
    except Exception as e:
        logger.warning("Region detection failed: %s", e)
        return []

    if not isinstance(result, dict):
        return []

    try:
        regions = build_regions(result, shells)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Region detection returned malformed data: %s", e)
        return []

    if regions:
        logger.info(
            "Shell %r matched: %s",
            shells[int(result["shell"])].name,
            ", ".join(f"{r.key}={len(r.selectors)}" for r in regions),
        )
    return regions
