"""THEIA command-line monitor.

Usage:
    theia -c            # connections only
    theia -p            # processes only
    theia -c -p         # both
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from theia.config import Settings, settings
from theia.engine import Poller, detect_os
from theia.models.record import Kind
from theia.render.console import CYAN, GRAY, RESET, ConsoleRenderer

logger = logging.getLogger("theia")


def positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than zero: {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="theia",
        description="THEIA - Red Team Host Monitor",
    )
    parser.add_argument("-c", "--connections", action="store_true", help="Monitor network connections")
    parser.add_argument("-p", "--processes", action="store_true", help="Monitor running processes")
    parser.add_argument("--interval", type=positive_float, default=None, help="Seconds between polls")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.connections and not args.processes:
        parser.error("you must select at least one monitoring option (-c and/or -p)")
    return args


def selected_kinds(args: argparse.Namespace) -> list[Kind]:
    kinds: list[Kind] = []
    if args.connections:
        kinds.append(Kind.CONNECTIONS)
    if args.processes:
        kinds.append(Kind.PROCESSES)
    return kinds


async def run(args: argparse.Namespace, cfg: Settings) -> None:
    if args.interval is not None:
        cfg = cfg.model_copy(update={"poll_interval": args.interval})
    poller = Poller.from_settings(
        cfg,
        kinds=selected_kinds(args),
        renderers=[ConsoleRenderer()],
    )
    await poller.start()
    try:
        # the poller task runs until cancelled
        await asyncio.Event().wait()
    finally:
        await poller.stop()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if (args.debug or settings.debug) else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    print(f"{CYAN}Starting THEIA...{RESET}")
    print(f"{GRAY}Detected OS: {detect_os()}{RESET}\n")
    try:
        asyncio.run(run(args, settings))
    except KeyboardInterrupt:
        print(f"\n\n{CYAN}THEIA monitoring stopped.{RESET}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
