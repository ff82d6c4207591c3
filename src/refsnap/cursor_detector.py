# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Cursor-interactive element detection.

Finds elements that are clickable by behaviour but invisible to ARIA roles:
``cursor: pointer`` divs, ``onclick`` spans, ``tabindex`` widgets. Native
controls (a, button, input, ...) and explicit interactive roles are left to
the accessibility tree.

One page.evaluate() call collects eligible candidates (style and geometry
need the live DOM). Scoring and containment deduplication run here in
Python on plain data, so the weights below pin the tie-break behaviour in
unit tests. The weights are tuned on real app shells, not derived.
"""

from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass

from .aria_tree import INTERACTIVE_ROLES
from .icons import IconResolver
from .page_source import PageSource
from .refs import SnapshotContext
from .tree_filter import is_empty_tree

logger = logging.getLogger(__name__)

# ── Scoring weights (higher wins) ───────────────────────────────────

SCORE_TITLE = 16
SCORE_ARIA_LABEL = 8  # only when there is no title
SCORE_DIRECT_CURSOR = 4  # cursor:pointer in the element's own inline style
SCORE_ONCLICK = 2
SCORE_TABINDEX = 1

MAX_LABEL_LENGTH = 100
MAX_SELECTOR_SEGMENTS = 6

NATIVE_INTERACTIVE_TAGS = ("a", "button", "input", "select", "textarea", "details", "summary")

CURSOR_SECTION_HEADING = "# Cursor-interactive elements:"

# unpaired UTF-16 halves cannot be encoded for output
_LONE_SURROGATE_RE = re.compile("[\ud800-\udfff]")

# ── In-page candidate collection ────────────────────────────────────

CURSOR_CANDIDATES_JS = """\
(args) => {
  const interactiveRoles = new Set(args.interactiveRoles);
  const interactiveTags = new Set(args.interactiveTags);
  const escapeCss = (v) => (globalThis.CSS && CSS.escape) ? CSS.escape(v) : v.replace(/["\\\\]/g, "\\\\$&");
  const normalizeText = (v) => (v || "").replace(/\\s+/g, " ").trim();

  const getBestText = (el) => {
    const title = normalizeText(el.getAttribute("title"));
    if (title) return title;
    const ariaLabel = normalizeText(el.getAttribute("aria-label"));
    if (ariaLabel) return ariaLabel;
    const visible = typeof el.innerText === "string" ? normalizeText(el.innerText) : "";
    if (visible) return visible;
    return normalizeText(el.textContent);
  };

  const getDepth = (el) => {
    let depth = 0;
    for (let cur = el; cur && cur.parentElement; cur = cur.parentElement) depth += 1;
    return depth;
  };

  const buildSelector = (el) => {
    const testId = el.getAttribute("data-testid");
    if (testId) return "[data-testid=" + JSON.stringify(testId) + "]";
    if (el.id) return "#" + escapeCss(el.id);
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
      if (path.length >= args.maxSegments) break;
    }
    return path.length ? path.join(" > ") : el.tagName.toLowerCase();
  };

  const root = (args.root && document.querySelector(args.root)) || document.body;
  if (!root) return [];
  const all = [root, ...root.querySelectorAll("*")];
  const found = [];
  const orderOf = new Map();

  for (const el of all) {
    if (!el || el.nodeType !== 1) continue;
    const tagName = el.tagName.toLowerCase();
    if (interactiveTags.has(tagName)) continue;
    const role = el.getAttribute("role");
    if (role && interactiveRoles.has(role.toLowerCase())) continue;

    const style = getComputedStyle(el);
    const hasCursorPointer = style.cursor === "pointer";
    const hasDirectCursorPointer = !!el.style && el.style.cursor === "pointer";
    const hasOnClick = el.hasAttribute("onclick") || typeof el.onclick === "function";
    const tabIndex = el.getAttribute("tabindex");
    const hasTabIndex = tabIndex !== null && Number.parseInt(tabIndex, 10) >= 0;
    if (!hasCursorPointer && !hasOnClick && !hasTabIndex) continue;

    if (style.display === "none" || style.visibility === "hidden" || style.opacity === "0") continue;
    const rect = el.getBoundingClientRect();
    if (rect.width === 0 || rect.height === 0) continue;

    const text = Array.from(getBestText(el)).slice(0, args.maxLabel).join("");
    if (!text) continue;

    const order = found.length;
    orderOf.set(el, order);
    found.push({
      el,
      record: {
        order,
        selector: buildSelector(el),
        text,
        tagName,
        hasOnClick,
        hasCursorPointer,
        hasDirectCursorPointer,
        hasTabIndex,
        hasTitle: normalizeText(el.getAttribute("title")).length > 0,
        hasAriaLabel: normalizeText(el.getAttribute("aria-label")).length > 0,
        depth: getDepth(el),
        ancestors: [],
      },
    });
  }

  for (const { el, record } of found) {
    for (let cur = el.parentElement; cur; cur = cur.parentElement) {
      const order = orderOf.get(cur);
      if (order !== undefined) record.ancestors.push(order);
    }
  }
  return found.map((f) => f.record);
}
"""


@dataclass(frozen=True, slots=True)
class Candidate:
    """Cursor-interactive element as reported by the page."""

    order: int  # discovery order (document order within the scope)
    selector: str
    text: str
    tag_name: str
    has_onclick: bool = False
    has_cursor_pointer: bool = False
    has_direct_cursor_pointer: bool = False
    has_tabindex: bool = False
    has_title: bool = False
    has_aria_label: bool = False
    depth: int = 0
    ancestors: frozenset[int] = frozenset()  # orders of candidate ancestors

    @classmethod
    def from_raw(cls, raw: dict) -> Candidate | None:
        """Build from a page record; None for unusable records."""
        try:
            text = _LONE_SURROGATE_RE.sub("", str(raw.get("text") or "")).strip()
            if not text:
                return None
            return cls(
                order=int(raw["order"]),
                selector=str(raw.get("selector") or ""),
                text=text[:MAX_LABEL_LENGTH],
                tag_name=str(raw.get("tagName") or ""),
                has_onclick=bool(raw.get("hasOnClick")),
                has_cursor_pointer=bool(raw.get("hasCursorPointer")),
                has_direct_cursor_pointer=bool(raw.get("hasDirectCursorPointer")),
                has_tabindex=bool(raw.get("hasTabIndex")),
                has_title=bool(raw.get("hasTitle")),
                has_aria_label=bool(raw.get("hasAriaLabel")),
                depth=int(raw.get("depth") or 0),
                ancestors=frozenset(int(a) for a in raw.get("ancestors") or ()),
            )
        except (KeyError, TypeError, ValueError):
            return None

    @property
    def is_labeled(self) -> bool:
        return self.has_title or self.has_aria_label

    def overlaps(self, other: Candidate) -> bool:
        """One contains the other in the DOM."""
        return other.order in self.ancestors or self.order in other.ancestors


def score_candidate(candidate: Candidate) -> int:
    score = 0
    if candidate.has_title:
        score += SCORE_TITLE
    elif candidate.has_aria_label:
        score += SCORE_ARIA_LABEL
    if candidate.has_direct_cursor_pointer:
        score += SCORE_DIRECT_CURSOR
    if candidate.has_onclick:
        score += SCORE_ONCLICK
    if candidate.has_tabindex:
        score += SCORE_TABINDEX
    return score


def _compare(a: Candidate, b: Candidate) -> int:
    diff = score_candidate(b) - score_candidate(a)
    if diff:
        return diff
    if a.is_labeled and b.is_labeled:
        # labeled wrappers beat their labeled children
        if a.depth != b.depth:
            return a.depth - b.depth
    elif a.depth != b.depth:
        # unlabeled: the innermost element is the real target
        return b.depth - a.depth
    return a.order - b.order


def select_candidates(candidates: list[Candidate]) -> list[Candidate]:
    """Best candidate per DOM containment chain, in document order."""
    ranked = sorted(candidates, key=functools.cmp_to_key(_compare))
    selected: list[Candidate] = []
    for candidate in ranked:
        if any(candidate.overlaps(chosen) for chosen in selected):
            continue
        selected.append(candidate)
    selected.sort(key=lambda c: c.order)
    return selected


def cursor_role(candidate: Candidate) -> str:
    return "clickable" if candidate.has_cursor_pointer or candidate.has_onclick else "focusable"


def cursor_hints(candidate: Candidate) -> list[str]:
    hints = []
    if candidate.has_cursor_pointer:
        hints.append("cursor:pointer")
    if candidate.has_onclick:
        hints.append("onclick")
    if candidate.has_tabindex:
        hints.append("tabindex")
    return hints


async def find_cursor_interactive_elements(source: PageSource, selector: str | None = None) -> list[Candidate]:
    """Query the page and return deduplicated candidates.

    Failures are logged and yield an empty list.
    """
    args = {
        "root": selector or "body",
        "interactiveRoles": sorted(INTERACTIVE_ROLES),
        "interactiveTags": list(NATIVE_INTERACTIVE_TAGS),
        "maxLabel": MAX_LABEL_LENGTH,
        "maxSegments": MAX_SELECTOR_SEGMENTS,
    }
    try:
        raw = await source.evaluate(CURSOR_CANDIDATES_JS, args)
    except Exception as e:
        logger.warning("Cursor-interactive detection failed for %s: %s", selector or "page", e)
        return []

    if not isinstance(raw, list):
        logger.warning("Cursor-interactive detection: unexpected result type %s", type(raw).__name__)
        return []

    candidates = [c for c in (Candidate.from_raw(r) for r in raw if isinstance(r, dict)) if c is not None]
    selected = select_candidates(candidates)
    logger.debug("Cursor detection: %d candidates -> %d selected", len(candidates), len(selected))
    return selected


def render_cursor_elements(
    candidates: list[Candidate],
    ctx: SnapshotContext,
    resolver: IconResolver | None = None,
) -> list[str]:
    """Assign refs and render ``- clickable "Label" [ref=eN] [cursor:pointer]`` lines."""
    resolver = resolver or IconResolver()
    lines = []
    for candidate in candidates:
        role = cursor_role(candidate)
        ref = ctx.assign_cursor_ref(role, candidate.text, candidate.selector)
        label = candidate.text.replace("\\", "\\\\").replace('"', '\\"')
        line = f'- {role} "{label}" [ref={ref}] [{", ".join(cursor_hints(candidate))}]'
        lines.append(line + resolver.label_annotation(candidate.text))
    return lines


def append_cursor_section(base_tree: str, cursor_lines: list[str]) -> str:
    """Attach cursor lines under their heading, or alone for an empty base tree."""
    if not cursor_lines:
        return base_tree
    body = "\n".join(cursor_lines)
    if is_empty_tree(base_tree):
        return body
    return f"{base_tree}\n{CURSOR_SECTION_HEADING}\n{body}"
