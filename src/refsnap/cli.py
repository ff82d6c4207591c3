# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""refsnap CLI: snapshot a URL, regenerate the icon codepoint table.

Usage:
    refsnap snapshot URL [-i] [-C] [-d N] [-c] [-s SELECTOR] [--json] [--stats]
    refsnap gen-icons META_JSON OUTPUT

The snapshot (text or JSON) goes to stdout; logs and stats go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import sys
from pathlib import Path

from . import SnapshotOptions
from .config import SnapshotSettings
from .errors import RefSnapError


async def _snapshot_url(args: argparse.Namespace, settings: SnapshotSettings):
    from .browser_session import BrowserConfig, BrowserSession
    from .icons import IconResolver
    from .regions import shells_from_settings
    from .snapshot import get_enhanced_snapshot

    options = SnapshotOptions(
        interactive=args.interactive,
        cursor=args.cursor,
        max_depth=args.depth,
        compact=args.compact,
        selector=args.selector,
    )
    shells = shells_from_settings(settings)
    resolver = IconResolver.from_settings(settings)

    async with BrowserSession(BrowserConfig.from_settings(settings)) as session:
        await session.navigate(args.url)
        return await get_enhanced_snapshot(session.page_source(), options, shells=shells, resolver=resolver)


def cmd_snapshot(args: argparse.Namespace, settings: SnapshotSettings) -> None:
    """Open URL in Chromium and print its enhanced snapshot."""
    from .serializer import format_stats, to_json
    from .snapshot import get_snapshot_stats

    snapshot = asyncio.run(_snapshot_url(args, settings))
    stats = get_snapshot_stats(snapshot.tree, snapshot.refs) if args.stats else None

    if args.json:
        print(to_json(snapshot, stats))
    else:
        print(snapshot.tree)
        if stats is not None:
            print(format_stats(stats), file=sys.stderr)


def cmd_gen_icons(args: argparse.Namespace, settings: SnapshotSettings) -> None:
    """Regenerate the codepoint table module from an @mdi/svg meta.json."""
    from .icon_codepoints import load_mdi_meta, render_codepoint_module

    table = load_mdi_meta(args.meta_json)
    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(render_codepoint_module(table, source=Path(args.meta_json).name), encoding="utf-8")
    print(f"Wrote {len(table)} icons to {output}", file=sys.stderr)


def _non_negative_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid depth: {raw!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError("depth must be >= 0")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Accessibility-tree snapshots with stable element refs",
        prog="refsnap",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    _snapshot_epilog = """\
examples:
  %(prog)s https://example.com                 Full annotated tree
  %(prog)s https://example.com -i -C           Interactive elements, cursor pass
  %(prog)s https://example.com -s main -d 3    Scope to <main>, three levels deep
  %(prog)s https://example.com --json --stats  Tree + refs + stats as JSON
"""
    p_snapshot = subparsers.add_parser(
        "snapshot",
        help="Snapshot a URL",
        epilog=_snapshot_epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p_snapshot.add_argument("url", metavar="URL")
    p_snapshot.add_argument("-i", "--interactive", action="store_true", help="Only interactive elements")
    p_snapshot.add_argument("-C", "--cursor", action="store_true", help="Append cursor-interactive elements")
    p_snapshot.add_argument("-d", "--depth", type=_non_negative_int, default=None, metavar="N", help="Max depth")
    p_snapshot.add_argument("-c", "--compact", action="store_true", help="Drop unnamed structural lines")
    p_snapshot.add_argument("-s", "--selector", type=str, default=None, help="Scope to a CSS selector")
    p_snapshot.add_argument("--json", action="store_true", help="Print tree and refs as JSON")
    p_snapshot.add_argument("--stats", action="store_true", help="Report line/char/token/ref counts")

    p_icons = subparsers.add_parser("gen-icons", help="Generate the MDI codepoint table module")
    p_icons.add_argument("meta_json", metavar="META_JSON", help="Path to @mdi/svg meta.json")
    p_icons.add_argument("output", metavar="OUTPUT", help="Python module to write")

    return parser


commands = {
    "snapshot": cmd_snapshot,
    "gen-icons": cmd_gen_icons,
}


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    from .logging_config import configure_from_settings

    parser = build_parser()
    args = parser.parse_args(argv)

    settings = SnapshotSettings.from_env()
    if args.verbose:
        settings = dataclasses.replace(settings, log_level="DEBUG")
    configure_from_settings(settings)

    try:
        commands[args.command](args, settings)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except SystemExit:
        raise
    except RefSnapError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"error: {type(e).__name__}: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc(file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
