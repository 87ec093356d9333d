"""
Command line entry point.

    python -m nexus_watch watch SWEETGRASS   # наблюдение в консоли, Ctrl+C — стоп
    python -m nexus_watch bot                # управление через Telegram
    python -m nexus_watch locations
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from typing import Optional, Sequence

from pydantic import ValidationError

from .bot import run_bot
from .browser import NexusBrowser
from .config import Settings, get_settings
from .locations import Location
from .models import WatchOutcome, WatchSession
from .notifier import PageAudioNotifier
from .utils import setup_logging
from .watcher import WatchController

logger = logging.getLogger(__name__)


EXIT_CODES = {
    WatchOutcome.FOUND: 0,
    WatchOutcome.CLOSED: 1,
    WatchOutcome.ERROR_BUDGET_EXHAUSTED: 1,
    WatchOutcome.CANCELLED: 130,
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nexus_watch",
        description="Watch the NEXUS / Global Entry scheduler for a free interview slot",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    watch = sub.add_parser("watch", help="Watch one enrollment center in this console")
    watch.add_argument("location", help="Center code (US30) or name (SWEETGRASS)")

    sub.add_parser("bot", help="Run the Telegram control bot")
    sub.add_parser("locations", help="List enrollment centers")
    return parser


async def _console_text(text: str) -> None:
    print(text, flush=True)


async def run_console_watch(settings: Settings, location: Location) -> WatchSession:
    async with NexusBrowser(settings.browser).session() as browser:
        controller = WatchController(
            service=browser,
            actions=browser,
            notifier=PageAudioNotifier(browser.play_sound, settings.watch.alert_audio_url),
            config=settings.watch,
            on_text=_console_text,
        )
        await _console_text(f"Watching {location.display_name} ({location.code}). Press Ctrl+C to stop.")
        session = await controller.watch(location)

        if session.outcome is WatchOutcome.ERROR_BUDGET_EXHAUSTED:
            path = settings.logging.logs_dir / f"watch_error_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}.png"
            try:
                await browser.screenshot(path)
                logger.info("Debug screenshot saved: %s", path)
            except Exception as e:  # noqa: BLE001
                logger.warning("Failed to capture debug screenshot: %s", e)
        return session


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.command == "locations":
        for location in Location:
            print(f"{location.code}  {location.display_name}")
        return 0

    try:
        settings = get_settings()
    except (ValidationError, ValueError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    setup_logging(settings.logging)

    if args.command == "bot":
        asyncio.run(run_bot(settings))
        return 0

    try:
        location = Location.parse(args.location)
    except ValueError as e:
        print(f"{e}. Run `python -m nexus_watch locations` for the list.", file=sys.stderr)
        return 2

    try:
        session = asyncio.run(run_console_watch(settings, location))
    except KeyboardInterrupt:
        print("Execution stopped", file=sys.stderr)
        return EXIT_CODES[WatchOutcome.CANCELLED]

    if session.outcome is None:
        logger.error("Watch for %s ended without an outcome", location.code)
        return 1
    return EXIT_CODES[session.outcome]


if __name__ == "__main__":
    raise SystemExit(main())
