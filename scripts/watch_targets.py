#!/usr/bin/env python3
"""Live reconciliation watcher.

Prints the reconciled AIS/GPS counts on every poll and every feed-flag
transition until interrupted.

Configuration is read from the environment (see ``ReconConfig.from_env``):
- FLEETRECON_PROJECT_ID
- FLEETRECON_DATABASE_URL
- FLEETRECON_AUTH_TOKEN (optional)

Usage:
    python scripts/watch_targets.py [--interval 30] [--once] [--toggle]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from fleetrecon import (  # noqa: E402
    FeedState,
    FleetReconClient,
    ReconciliationResult,
    ReconConfig,
    ReconError,
)


def _format_age(result: ReconciliationResult) -> str:
    age = result.age_seconds()
    if age is None:
        return "-"
    secs = round(age)
    if secs < 60:
        return f"{secs}s ago"
    return f"{round(secs / 60)}m ago"


def _print_result(result: ReconciliationResult) -> None:
    stamp = datetime.now(UTC).strftime("%H:%M:%S")
    partial = f" partial(missing={','.join(sorted(result.unavailable_sources))})" if result.is_partial else ""
    print(
        f"[{stamp}] total={result.total_targets} ais_only={result.ais_only} "
        f"gps_only={result.gps_only} merged={result.merged} last_ais={_format_age(result)}{partial}"
    )


def _print_feed(state: FeedState) -> None:
    suffix = " (toggling)" if state.toggling else ""
    print(f"feed: {state.status}{suffix}")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--interval", type=float, default=None, help="Poll interval in seconds")
    parser.add_argument("--once", action="store_true", help="Reconcile once and exit")
    parser.add_argument("--toggle", action="store_true", help="Toggle the feed flag once it resolves")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


async def _main(args: argparse.Namespace) -> int:
    config = ReconConfig.from_env()
    async with FleetReconClient(config) as client:
        if args.once:
            _print_result(await client.compute_reconciliation())
            return 0

        resolved = asyncio.Event()

        def on_feed(state: FeedState) -> None:
            _print_feed(state)
            if state.is_resolved:
                resolved.set()

        client.subscribe_feed_state(on_feed)
        client.start_polling(
            _print_result,
            interval=args.interval,
            on_error=lambda exc: print(f"poll failed: {exc}", file=sys.stderr),
        )

        if args.toggle:
            await resolved.wait()
            try:
                print(f"feed toggled to {await client.toggle_feed_state()}")
            except ReconError as exc:
                print(f"toggle failed: {exc}", file=sys.stderr)

        await asyncio.Event().wait()
    return 0


def main() -> int:
    args = _parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        return asyncio.run(_main(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
