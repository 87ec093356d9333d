"""
Calendar helpers: map a date to the scheduler's month-grid cell.

Планировщик раскладывает дни по строкам сетки месяца; id ячейки
кодирует строку, день недели и число. Ошибка на единицу — клик не туда.
"""

from __future__ import annotations

import calendar as _stdlib_calendar
import math
from datetime import date

from .models import CalendarCell

SUNDAY = _stdlib_calendar.SUNDAY
MONDAY = _stdlib_calendar.MONDAY

WEEK_STARTS = {"sunday": SUNDAY, "monday": MONDAY}

_MONTH_NAMES = [
    "JANUARY",
    "FEBRUARY",
    "MARCH",
    "APRIL",
    "MAY",
    "JUNE",
    "JULY",
    "AUGUST",
    "SEPTEMBER",
    "OCTOBER",
    "NOVEMBER",
    "DECEMBER",
]


def day_of_week(d: date, first_weekday: int = SUNDAY) -> int:
    """Days since the first weekday of the grid (0-based)."""
    return (d.weekday() - first_weekday) % 7


def week_of_month(d: date, first_weekday: int = SUNDAY) -> int:
    """Zero-based row of ``d`` in its month grid."""
    week = math.ceil((d.day - 1 - day_of_week(d, first_weekday)) / 7)
    # ceil() of a small negative fraction is zero, keep it a plain 0
    return week if week > 0 else 0


def calendar_cell(d: date, first_weekday: int = SUNDAY) -> CalendarCell:
    return CalendarCell(
        month_name=_MONTH_NAMES[d.month - 1],
        week_of_month=week_of_month(d, first_weekday),
        day_of_week=day_of_week(d, first_weekday),
        day_of_month=d.day,
    )


__all__ = ["SUNDAY", "MONDAY", "WEEK_STARTS", "day_of_week", "week_of_month", "calendar_cell"]
