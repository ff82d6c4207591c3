# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""refsnap exception hierarchy.

All refsnap-specific errors inherit from RefSnapError, allowing callers
to catch the base class for any refsnap failure or specific subclasses
for targeted handling.
"""

from __future__ import annotations


class RefSnapError(Exception):
    """Base exception for all refsnap errors."""


class AcquisitionError(RefSnapError):
    """Accessibility tree or in-page query round trip failed or timed out.

    Raised by PageSource adapters. The snapshot core recovers from it and
    treats the affected scope as empty.
    """

    def __init__(self, message: str, *, scope: str = "") -> None:
        super().__init__(message)
        self.scope = scope


class ShellDefinitionError(RefSnapError):
    """Shell definitions file is missing, unreadable, or invalid."""


class IconTableError(RefSnapError):
    """Icon codepoint metadata is unreadable or malformed."""


class BrowserError(RefSnapError):
    """Browser launch or navigation failure (CLI only)."""
