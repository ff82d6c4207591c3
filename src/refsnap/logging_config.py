# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""structlog + stdlib bridge for refsnap.

Console output for terminals, JSON lines for pipelines. Logs always go to a
stream other than stdout, which carries the snapshot itself. Records emitted
inside :func:`snapshot_log_context` carry the snapshot id.

Leaf module: no refsnap imports. Safe to call early in startup.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

_SHARED_PROCESSORS: tuple = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
)


def _renderer(json_output: bool):
    if json_output:
        # ref names are often non-ASCII (icon glyphs, CJK labels)
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer()


def build_formatter(*, json_output: bool = False) -> structlog.stdlib.ProcessorFormatter:
    """Formatter rendering both structlog and plain ``logging`` records."""
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(json_output),
        ],
        foreign_pre_chain=list(_SHARED_PROCESSORS),
    )


def configure(*, json_output: bool = False, level: str = "INFO", stream: TextIO | None = None) -> None:
    """Configure structlog with stdlib bridge.

    Args:
        json_output: True for JSON lines, False for human-readable console output.
        level: Root logger level (default INFO); unknown names fall back to INFO.
        stream: Log destination, stderr when None. Must not be stdout.
    """
    stream = sys.stderr if stream is None else stream
    if stream is sys.stdout:
        raise ValueError("stdout is reserved for snapshot output")

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(build_formatter(json_output=json_output))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def configure_from_settings(settings, stream: TextIO | None = None) -> None:
    """Apply REFSNAP_LOG_* settings (see refsnap.config.SnapshotSettings)."""
    configure(json_output=settings.log_json, level=settings.log_level, stream=stream)


def snapshot_log_context(snapshot_id: str, **fields):
    """Bind *snapshot_id* (plus *fields*) to every log record emitted inside the block.

    stdlib ``logging`` calls pick the fields up through ``merge_contextvars``
    in the shared processor chain.
    """
    return structlog.contextvars.bound_contextvars(snapshot_id=snapshot_id, **fields)
