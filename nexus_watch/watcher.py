"""
Watch loop for one enrollment center.

Сервис наблюдения:
- циклические проверки выбранного центра с фиксированной паузой
- бюджет подряд идущих ошибок, после которого наблюдение прекращается
- однократный переход к бронированию и звуковой сигнал при найденном слоте
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Awaitable, Callable, Optional

from .calendar_grid import WEEK_STARTS, calendar_cell
from .config import WatchConfig
from .interfaces import Notifier, SchedulingActions, SchedulingService
from .locations import Location
from .models import CalendarCell, ProbeKind, ProbeResult, WatchOutcome, WatchSession
from .prober import AvailabilityProber

logger = logging.getLogger(__name__)


NotifyFunc = Callable[[str], Awaitable[None]]


class WatchAlreadyRunning(RuntimeError):
    """Raised when a second watch is started while one is in progress."""


@dataclass
class WatchController:
    """Owns the watch session and drives the probe/retry cycle."""

    service: SchedulingService
    actions: SchedulingActions
    notifier: Notifier
    config: WatchConfig = field(default_factory=WatchConfig)
    on_text: Optional[NotifyFunc] = None
    prober: Optional[AvailabilityProber] = None
    _session: Optional[WatchSession] = None
    _task: Optional[asyncio.Task[WatchSession]] = None
    _stop_event: asyncio.Event = field(default_factory=asyncio.Event)

    def __post_init__(self) -> None:
        self._prober: AvailabilityProber = self.prober or AvailabilityProber(
            self.service,
            poll_interval=self.config.loading_poll_interval,
            loading_timeout=self.config.loading_timeout,
        )
        self.prober = self._prober
        self._first_weekday = WEEK_STARTS[self.config.week_starts_on]

    @property
    def session(self) -> Optional[WatchSession]:
        return self._session

    @property
    def is_running(self) -> bool:
        return bool(self._task and not self._task.done())

    # region background control
    async def start(self, location: Location) -> None:
        if self.is_running:
            raise WatchAlreadyRunning(
                f"Already watching {self._session.location.display_name if self._session else 'a location'}"
            )
        self._stop_event.clear()
        self._task = asyncio.create_task(
            self.watch(location, self._stop_event),
            name=f"nexus-watch-{location.code}",
        )
        self._task.add_done_callback(self._on_task_done)
        await self._report(f"Watching {location.display_name} ({location.code}) for appointments.")

    @staticmethod
    def _on_task_done(task: asyncio.Task) -> None:
        # После FOUND в режиме бота задачу никто не ждёт
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Watch task crashed: %s", exc, exc_info=exc)

    def cancel(self) -> None:
        """
        Ask the loop to stop at the next cycle boundary.

        Проверка, которая уже идёт, доводится до конца: найденный слот
        всё равно передаётся оператору.
        """
        self._stop_event.set()

    async def stop(self, timeout: float = 30.0) -> None:
        if not self._task:
            return
        self.cancel()
        try:
            await asyncio.wait_for(self._task, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Watch task did not stop within timeout")
        except Exception as e:  # noqa: BLE001
            # Уже залогировано в _on_task_done
            logger.debug("Watch task had ended with %s", e)
        self._task = None

    # endregion

    async def watch(
        self,
        location: Location,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> WatchSession:
        """Run one watch until it reaches a terminal state."""
        if cancel_event is None:
            self._stop_event.clear()
            cancel_event = self._stop_event

        session = WatchSession(location=location)
        self._session = session
        logger.info("Watch started for %s (%s)", location.display_name, location.code)

        try:
            await self._run(session, cancel_event)
        except asyncio.CancelledError:
            # Задачу сняли снаружи (таймаут stop(), Ctrl+C) посреди проверки
            if session.outcome is None:
                session.active = False
                await self._finish(session, WatchOutcome.CANCELLED, "Watch stopped by operator.")
            raise
        finally:
            session.active = False
            session.terminated = True
            session.finished_at = datetime.utcnow()
        return session

    async def _run(self, session: WatchSession, cancel_event: asyncio.Event) -> None:
        location = session.location
        budget = self.config.error_budget

        while True:
            if cancel_event.is_set() or not session.active:
                session.active = False
                await self._finish(session, WatchOutcome.CANCELLED, "Watch stopped by operator.")
                return

            try:
                await self.actions.open_location_panel(location)
                result = await self._prober.probe()
            except Exception as e:  # noqa: BLE001
                # Любая ошибка разметки/поиска элемента — временная
                result = ProbeResult.transient_error(f"{type(e).__name__}: {e}")
            session.probes_count += 1

            if result.kind is ProbeKind.AVAILABLE and result.next_date is None:
                result = ProbeResult.transient_error("available slot reported without a date")

            if result.kind is ProbeKind.AVAILABLE and result.next_date is not None:
                session.consecutive_error_count = 0
                session.found_date = result.next_date
                if await self.hand_off(session, result.next_date):
                    return
                continue

            if result.kind is ProbeKind.LOCATION_CLOSED:
                session.active = False
                await self._finish(
                    session,
                    WatchOutcome.CLOSED,
                    f"{location.display_name} is not accepting appointments, please choose another location.",
                )
                return

            if result.kind is ProbeKind.TRANSIENT_ERROR:
                session.consecutive_error_count += 1
                session.last_error = result.cause
                logger.warning(
                    "Probe failed for %s: %s (%s/%s)",
                    location.code,
                    result.cause,
                    session.consecutive_error_count,
                    budget,
                )
                if session.consecutive_error_count < budget:
                    logger.info("Retrying")
                    continue
                session.active = False
                await self._finish(
                    session,
                    WatchOutcome.ERROR_BUDGET_EXHAUSTED,
                    f"Errored {session.consecutive_error_count} times in a row "
                    f"(last error: {result.cause}). Watch terminated.",
                    level=logging.ERROR,
                )
                return

            # UNAVAILABLE
            session.consecutive_error_count = 0
            logger.debug("No appointments at %s yet", location.code)
            if cancel_event.is_set() or not session.active:
                continue

            await asyncio.sleep(self.config.probe_delay)
            try:
                await self.actions.close_location_panel(location)
            except Exception as e:  # noqa: BLE001
                logger.warning("Failed to close panel for %s: %s", location.code, e)

    async def hand_off(self, session: WatchSession, next_date: date) -> bool:
        """
        Advance the page to booking and alert the operator, at most once per session.

        Флаг active снимается до любых побочных эффектов.
        """
        if not session.active:
            logger.info("Handoff skipped: watch for %s is no longer active", session.location.code)
            return False
        session.active = False

        cell = calendar_cell(next_date, self._first_weekday)
        logger.info("Appointment available on %s, selecting %s", next_date.isoformat(), cell.element_id)

        booking = asyncio.create_task(
            self._advance_booking(session.location, cell), name="nexus-booking-advance"
        )
        alert = asyncio.create_task(self._alert(), name="nexus-alert")
        advanced, _ = await asyncio.gather(booking, alert)

        if advanced:
            message = (
                f"Appointment available at {session.location.display_name} on "
                f"{next_date:%A, %B %d, %Y}. Date selected, finish the booking now!"
            )
        else:
            message = (
                f"Appointment available at {session.location.display_name} on "
                f"{next_date:%A, %B %d, %Y}, but the date could not be selected. Book it manually now!"
            )
        await self._finish(session, WatchOutcome.FOUND, message)
        return True

    async def _advance_booking(self, location: Location, cell: CalendarCell) -> bool:
        try:
            await self.actions.schedule_appointment(location)
            await self.actions.select_calendar_cell(cell)
            await self.actions.confirm_selected_date()
        except Exception as e:  # noqa: BLE001
            logger.exception("Failed to advance booking for %s: %s", location.code, e)
            return False
        return True

    async def _alert(self) -> None:
        try:
            await self.notifier.emit_alert(self.config.alert_pulses, self.config.alert_spacing)
        except Exception as e:  # noqa: BLE001
            logger.warning("Alert failed: %s", e)

    async def _finish(
        self,
        session: WatchSession,
        outcome: WatchOutcome,
        message: str,
        level: int = logging.INFO,
    ) -> None:
        session.outcome = outcome
        logger.log(level, "Watch for %s ended (%s): %s", session.location.code, outcome.value, message)
        await self._report(message)

    async def _report(self, text: str) -> None:
        if self.on_text is None:
            return
        try:
            await self.on_text(text)
        except Exception as e:  # noqa: BLE001
            logger.warning("Failed to deliver status message: %s", e)


__all__ = ["WatchController", "WatchAlreadyRunning", "NotifyFunc"]
