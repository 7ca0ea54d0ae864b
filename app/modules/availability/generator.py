# app/modules/availability/generator.py
"""
Bookable calendar dates for a doctor.

Dates come from the doctor's weekly recurring rules over a lookahead
horizon. Booking always starts tomorrow; today is never offered.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, List, Protocol


class WeeklyRule(Protocol):
    day_of_week: int
    is_active: bool


def sunday_weekday(d: date) -> int:
    """Weekday of `d` with 0 = Sunday .. 6 = Saturday."""
    return (d.weekday() + 1) % 7


def active_days(rules: Iterable[WeeklyRule]) -> set[int]:
    return {r.day_of_week for r in rules if getattr(r, "is_active", True)}


def generate_available_dates(
    rules: Iterable[WeeklyRule],
    today: date,
    horizon_days: int = 60,
) -> List[str]:
    """
    Return ISO dates in (today, today + horizon_days] whose weekday matches
    an active rule. With no active rules every date in the horizon is open,
    so doctors without a schedule can still be booked.
    """
    days = active_days(rules)
    dates: List[str] = []
    for offset in range(1, horizon_days + 1):
        d = today + timedelta(days=offset)
        if not days or sunday_weekday(d) in days:
            dates.append(d.isoformat())
    return dates


def is_offered_date(
    rules: Iterable[WeeklyRule],
    on_date: date,
    today: date,
    horizon_days: int = 60,
) -> bool:
    """Same rule as generate_available_dates, for a single date."""
    if not today < on_date <= today + timedelta(days=horizon_days):
        return False
    days = active_days(rules)
    return not days or sunday_weekday(on_date) in days
