"""
Alert notifiers.

Звуковой сигнал в вкладке планировщика и сообщение в Telegram.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from .interfaces import Notifier

logger = logging.getLogger(__name__)


class PageAudioNotifier:
    """Plays the alert sound ``pulse_count`` times, ``pulse_spacing`` seconds apart."""

    def __init__(self, play: Callable[[str], Awaitable[None]], audio_url: str) -> None:
        self._play = play
        self._audio_url = audio_url

    async def emit_alert(self, pulse_count: int, pulse_spacing: float) -> None:
        for pulse in range(pulse_count):
            try:
                await self._play(self._audio_url)
            except Exception as e:  # noqa: BLE001
                # Чаще всего браузер блокирует autoplay
                logger.warning("Alert pulse %s/%s failed: %s", pulse + 1, pulse_count, e)
            await asyncio.sleep(pulse_spacing)


class TextNotifier:
    """Sends a single text message per alert."""

    def __init__(self, send: Callable[[str], Awaitable[None]], text: str) -> None:
        self._send = send
        self._text = text

    async def emit_alert(self, pulse_count: int, pulse_spacing: float) -> None:
        await self._send(self._text)


class FanOutNotifier:
    """Runs several notifiers concurrently; failures are logged, never raised."""

    def __init__(self, notifiers: Sequence[Notifier]) -> None:
        self._notifiers = list(notifiers)

    async def emit_alert(self, pulse_count: int, pulse_spacing: float) -> None:
        results = await asyncio.gather(
            *(n.emit_alert(pulse_count, pulse_spacing) for n in self._notifiers),
            return_exceptions=True,
        )
        for notifier, result in zip(self._notifiers, results):
            if isinstance(result, Exception):
                logger.warning("%s failed: %s", type(notifier).__name__, result)


__all__ = ["PageAudioNotifier", "TextNotifier", "FanOutNotifier"]
