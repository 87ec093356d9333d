"""
Collaborator protocols consumed by the prober and the watch controller.

Браузерная реализация — в browser.py, в тестах используются фейки.
"""

from __future__ import annotations

from typing import Optional, Protocol

from .locations import Location
from .models import CalendarCell


class SchedulingService(Protocol):
    """Read-only view of the scheduler page."""

    async def is_loading(self) -> bool: ...

    async def read_availability_summary(self) -> Optional[str]: ...

    async def read_next_appointment_date(self) -> Optional[str]: ...


class SchedulingActions(Protocol):
    """Mutating operations on the scheduler page."""

    async def open_location_panel(self, location: Location) -> None: ...

    async def close_location_panel(self, location: Location) -> None: ...

    async def schedule_appointment(self, location: Location) -> None: ...

    async def select_calendar_cell(self, cell: CalendarCell) -> None: ...

    async def confirm_selected_date(self) -> None: ...


class Notifier(Protocol):
    async def emit_alert(self, pulse_count: int, pulse_spacing: float) -> None: ...


__all__ = ["SchedulingService", "SchedulingActions", "Notifier"]
