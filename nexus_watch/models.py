"""
Pydantic models for the availability watch domain.

Pydantic-модели: результат проверки, состояние наблюдения, ячейка календаря.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .locations import Location


class ProbeKind(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    LOCATION_CLOSED = "location_closed"
    TRANSIENT_ERROR = "transient_error"


class ProbeResult(BaseModel):
    """Outcome of one availability check."""

    kind: ProbeKind
    next_date: Optional[date] = None
    cause: Optional[str] = None

    @classmethod
    def available(cls, next_date: date) -> "ProbeResult":
        return cls(kind=ProbeKind.AVAILABLE, next_date=next_date)

    @classmethod
    def unavailable(cls) -> "ProbeResult":
        return cls(kind=ProbeKind.UNAVAILABLE)

    @classmethod
    def location_closed(cls) -> "ProbeResult":
        return cls(kind=ProbeKind.LOCATION_CLOSED)

    @classmethod
    def transient_error(cls, cause: str) -> "ProbeResult":
        return cls(kind=ProbeKind.TRANSIENT_ERROR, cause=cause)


class WatchOutcome(str, Enum):
    FOUND = "found"
    CLOSED = "closed"
    ERROR_BUDGET_EXHAUSTED = "error_budget_exhausted"
    CANCELLED = "cancelled"


class WatchSession(BaseModel):
    """Mutable run state of one watch, owned by the controller."""

    location: Location
    active: bool = True
    consecutive_error_count: int = Field(default=0, ge=0)
    terminated: bool = False
    outcome: Optional[WatchOutcome] = None
    probes_count: int = 0
    last_error: Optional[str] = None
    found_date: Optional[date] = None
    started_at: datetime = Field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None


class CalendarCell(BaseModel):
    """Position of a day in the scheduler's month grid."""

    month_name: str
    week_of_month: int = Field(ge=0)
    day_of_week: int = Field(ge=0, le=6)
    day_of_month: int = Field(ge=1, le=31)

    @property
    def calendar_id(self) -> str:
        return (
            f"GENERAL_REUSABLE.MONTHS.{self.month_name}{self.week_of_month}"
            f"_{self.day_of_week}_{self.day_of_month}"
        )

    @property
    def element_id(self) -> str:
        return f"day{self.calendar_id}"


__all__ = [
    "ProbeKind",
    "ProbeResult",
    "WatchOutcome",
    "WatchSession",
    "CalendarCell",
]
