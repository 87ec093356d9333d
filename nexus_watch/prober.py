"""
Availability prober: one classified check of the opened location panel.

Ждём, пока пропадёт спиннер, затем читаем текст сводки и дату
ближайшей записи.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Optional

from .interfaces import SchedulingService
from .models import ProbeResult

logger = logging.getLogger(__name__)


APPOINTMENTS_NOT_AVAILABLE = "Appointments not available for this location"
APPOINTMENTS_FULL = "Appointments full thru"
SUMMARY_NOT_LOADED = "appointment summary did not load"

_DATE_FORMATS = (
    "%B %d, %Y",
    "%b %d, %Y",
    "%A, %B %d, %Y",
    "%a, %b %d, %Y",
    "%Y-%m-%d",
    "%m/%d/%Y",
)


def parse_appointment_date(text: str) -> date:
    """
    Parse the "next appointment" label shown by the scheduler.

    Raises ValueError if no known format matches.
    """
    cleaned = " ".join(text.split())
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognised appointment date: {text!r}")


class AvailabilityProber:
    """Answers "is there an appointment right now" for the open panel."""

    def __init__(
        self,
        service: SchedulingService,
        *,
        poll_interval: float = 0.1,
        loading_timeout: Optional[float] = 60.0,
    ) -> None:
        self._service = service
        self._poll_interval = poll_interval
        # 0 / None — ждём бесконечно, как исходный скрипт в консоли
        self._loading_timeout = loading_timeout or None

    async def _wait_until_loaded(self) -> bool:
        loop = asyncio.get_running_loop()
        deadline = None
        if self._loading_timeout is not None:
            deadline = loop.time() + self._loading_timeout

        while await self._service.is_loading():
            if deadline is not None and loop.time() >= deadline:
                return False
            await asyncio.sleep(self._poll_interval)
        return True

    async def probe(self) -> ProbeResult:
        if not await self._wait_until_loaded():
            return ProbeResult.transient_error(
                f"loading indicator did not clear within {self._loading_timeout:g}s"
            )

        summary = await self._service.read_availability_summary()
        if summary is None:
            return ProbeResult.transient_error(SUMMARY_NOT_LOADED)

        if APPOINTMENTS_NOT_AVAILABLE in summary:
            return ProbeResult.location_closed()
        if APPOINTMENTS_FULL in summary:
            logger.debug("No slots: %s", summary.strip())
            return ProbeResult.unavailable()

        date_text = await self._service.read_next_appointment_date()
        if not date_text:
            return ProbeResult.transient_error("next appointment date did not load")
        try:
            next_date = parse_appointment_date(date_text)
        except ValueError as e:
            return ProbeResult.transient_error(str(e))
        return ProbeResult.available(next_date)


__all__ = [
    "APPOINTMENTS_NOT_AVAILABLE",
    "APPOINTMENTS_FULL",
    "SUMMARY_NOT_LOADED",
    "AvailabilityProber",
    "parse_appointment_date",
]
