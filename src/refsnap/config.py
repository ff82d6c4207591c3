# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Runtime settings from REFSNAP_* environment variables.

Leaf module. Invalid values fall back to defaults with a warning so a bad
environment never blocks a snapshot.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_EVAL_TIMEOUT_MS = 10_000
DEFAULT_VIEWPORT = (1280, 800)

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})
_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class SnapshotSettings:
    """Snapshot engine and CLI configuration."""

    eval_timeout_ms: int = DEFAULT_EVAL_TIMEOUT_MS  # per page round trip
    log_level: str = "INFO"
    log_json: bool = False
    shells_file: Path | None = None  # extra shell definitions (YAML)
    icon_table: Path | None = None  # @mdi/svg meta.json extending the built-in table
    headless: bool = True
    viewport_width: int = DEFAULT_VIEWPORT[0]
    viewport_height: int = DEFAULT_VIEWPORT[1]

    @property
    def eval_timeout_s(self) -> float:
        return self.eval_timeout_ms / 1000

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SnapshotSettings:
        env = os.environ if environ is None else environ

        timeout_ms = _parse_int(env, "REFSNAP_EVAL_TIMEOUT_MS", DEFAULT_EVAL_TIMEOUT_MS)
        if timeout_ms <= 0:
            logger.warning("REFSNAP_EVAL_TIMEOUT_MS must be positive, using %d", DEFAULT_EVAL_TIMEOUT_MS)
            timeout_ms = DEFAULT_EVAL_TIMEOUT_MS

        level = env.get("REFSNAP_LOG_LEVEL", "").strip().upper() or "INFO"
        if level not in _LEVELS:
            logger.warning("Unknown REFSNAP_LOG_LEVEL %r, using INFO", level)
            level = "INFO"

        width, height = _parse_viewport(env.get("REFSNAP_VIEWPORT", ""))

        return cls(
            eval_timeout_ms=timeout_ms,
            log_level=level,
            log_json=_parse_bool(env, "REFSNAP_LOG_JSON", False),
            shells_file=_parse_path(env, "REFSNAP_SHELLS_FILE"),
            icon_table=_parse_path(env, "REFSNAP_ICON_TABLE"),
            headless=_parse_bool(env, "REFSNAP_HEADLESS", True),
            viewport_width=width,
            viewport_height=height,
        )


def _parse_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using %d", key, raw, default)
        return default


def _parse_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    logger.warning("Invalid %s=%r, using %s", key, raw, default)
    return default


def _parse_path(env: Mapping[str, str], key: str) -> Path | None:
    raw = env.get(key, "").strip()
    return Path(raw).expanduser() if raw else None


def _parse_viewport(raw: str) -> tuple[int, int]:
    """Parse ``WIDTHxHEIGHT`` (e.g. ``1280x800``)."""
    raw = raw.strip().lower()
    if not raw:
        return DEFAULT_VIEWPORT
    width, sep, height = raw.partition("x")
    try:
        size = (int(width), int(height))
    except ValueError:
        size = (0, 0)
    if not sep or size[0] <= 0 or size[1] <= 0:
        logger.warning("Invalid REFSNAP_VIEWPORT=%r, using %dx%d", raw, *DEFAULT_VIEWPORT)
        return DEFAULT_VIEWPORT
    return size
