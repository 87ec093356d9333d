from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, Union

import pytest

from nexus_watch.config import WatchConfig
from nexus_watch.locations import Location
from nexus_watch.models import CalendarCell, ProbeResult


Step = Union[ProbeResult, Exception, Callable[[], ProbeResult]]


class StubProber:
    """Returns scripted results; an exception in the script is raised instead."""

    def __init__(self, steps: Sequence[Step]) -> None:
        self.steps = list(steps)
        self.calls = 0

    async def probe(self) -> ProbeResult:
        step = self.steps[min(self.calls, len(self.steps) - 1)]
        self.calls += 1
        await asyncio.sleep(0)
        if isinstance(step, Exception):
            raise step
        if callable(step):
            return step()
        return step


@dataclass
class FakeActions:
    calls: list[tuple] = field(default_factory=list)
    fail_on: Optional[str] = None

    async def _record(self, name: str, *args: object) -> None:
        self.calls.append((name, *args))
        await asyncio.sleep(0)
        if self.fail_on == name:
            raise RuntimeError(f"{name} failed")

    async def open_location_panel(self, location: Location) -> None:
        await self._record("open", location)

    async def close_location_panel(self, location: Location) -> None:
        await self._record("close", location)

    async def schedule_appointment(self, location: Location) -> None:
        await self._record("schedule", location)

    async def select_calendar_cell(self, cell: CalendarCell) -> None:
        await self._record("select", cell)

    async def confirm_selected_date(self) -> None:
        await self._record("confirm")

    def named(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]


@dataclass
class FakeNotifier:
    alerts: list[tuple[int, float]] = field(default_factory=list)
    error: Optional[Exception] = None

    async def emit_alert(self, pulse_count: int, pulse_spacing: float) -> None:
        self.alerts.append((pulse_count, pulse_spacing))
        if self.error is not None:
            raise self.error


@dataclass
class FakeSchedulerPage:
    """
    Scheduler page stand-in implementing both service and actions.

    Each open_location_panel() shows the next scripted panel:
    (loading polls, summary text or None, next date text or None).
    """

    panels: list[tuple[int, Optional[str], Optional[str]]]
    opened: int = 0
    loading_left: int = 0
    summary: Optional[str] = None
    next_date: Optional[str] = None
    actions: FakeActions = field(default_factory=FakeActions)

    async def is_loading(self) -> bool:
        if self.loading_left > 0:
            self.loading_left -= 1
            return True
        return False

    async def read_availability_summary(self) -> Optional[str]:
        return self.summary

    async def read_next_appointment_date(self) -> Optional[str]:
        return self.next_date

    async def open_location_panel(self, location: Location) -> None:
        panel = self.panels[min(self.opened, len(self.panels) - 1)]
        self.opened += 1
        self.loading_left, self.summary, self.next_date = panel
        await self.actions.open_location_panel(location)

    async def close_location_panel(self, location: Location) -> None:
        await self.actions.close_location_panel(location)

    async def schedule_appointment(self, location: Location) -> None:
        await self.actions.schedule_appointment(location)

    async def select_calendar_cell(self, cell: CalendarCell) -> None:
        await self.actions.select_calendar_cell(cell)

    async def confirm_selected_date(self) -> None:
        await self.actions.confirm_selected_date()


@pytest.fixture
def fast_config() -> WatchConfig:
    return WatchConfig(loading_poll_interval=0.001, probe_delay=0, alert_spacing=0)


@pytest.fixture
def actions() -> FakeActions:
    return FakeActions()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()
