"""Command-line interface for the LP range monitor."""
from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path

from .config import load_config
from .logging_setup import configure_logging
from .services import Monitor, MonitorState, StateStore


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="lp-range-monitor",
        description="Out-of-range monitor for concentrated-liquidity positions",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("check", help="Run a single sweep (for an external scheduler)")
    sub.add_parser("status", help="Show stored out-of-range entries and cooldowns")

    monitor_parser = sub.add_parser("monitor", help="Continuous monitoring loop")
    monitor_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Sweep interval in minutes (overrides config)",
    )

    return parser


def _format_ts(ts: float) -> str:
    return datetime.fromtimestamp(ts, timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def format_status(state: MonitorState) -> str:
    """Plain-text dump of a state document."""
    lines = [f"Out-of-range positions: {len(state)}"]
    for e in sorted(state.entries, key=lambda e: (e.username, e.network, e.token_id)):
        lines.append(
            f"  {e.username} · {e.network} · {e.address} · token {e.token_id} "
            f"· tick {e.current_tick} not in [{e.tick_lower}, {e.tick_upper}] "
            f"· seen {_format_ts(e.detected_at)}"
        )
    lines.append(f"Last notifications: {len(state.last_notified)}")
    for username, ts in sorted(state.last_notified.items()):
        lines.append(f"  {username}: {_format_ts(ts)}")
    return "\n".join(lines)


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "status":
        print(format_status(StateStore(Path(config.monitor.state_file)).load()))
        return

    monitor = Monitor(config)

    if args.command == "check":
        await monitor.run_sweep()
    elif args.command == "monitor":
        await monitor.run_continuous(args.interval)
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    asyncio.run(_run(args))


if __name__ == "__main__":
    main()
