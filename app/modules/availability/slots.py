# app/modules/availability/slots.py
"""
Time-of-day slots for one doctor on one date.

Two strategies share one interface:

- CatalogSlots: a fixed half-hour catalog, used while the doctor has no
  active weekly rules.
- RuleExpansionSlots: each matching rule's [start, end) window cut into
  fixed increments, overlaps merged.

SlotEnumerator.for_rules() is the only place that picks between them.
Booked times are removed in both cases.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Protocol, Sequence, Set

from app.modules.availability.generator import sunday_weekday


class TimedRule(Protocol):
    day_of_week: int
    start_time: time
    end_time: time
    is_active: bool


def parse_hhmm(value: str) -> time:
    return datetime.strptime(value, "%H:%M").time()


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def _normalize(times: Iterable[time | str]) -> Set[str]:
    out: Set[str] = set()
    for t in times:
        if t is None:
            continue
        out.add(t[:5] if isinstance(t, str) else format_hhmm(t))
    return out


class SlotStrategy(Protocol):
    name: str

    def candidates(self, on_date: Optional[date]) -> Set[str]:
        ...


class CatalogSlots:
    name = "catalog"

    def __init__(self, catalog: Sequence[str]):
        self.catalog = _normalize(parse_hhmm(s) for s in catalog)

    def candidates(self, on_date: Optional[date]) -> Set[str]:
        return set(self.catalog)


class RuleExpansionSlots:
    name = "rules"

    def __init__(self, rules: Iterable[TimedRule], interval_minutes: int = 30):
        self.rules = [r for r in rules if getattr(r, "is_active", True)]
        self.step = timedelta(minutes=interval_minutes)

    def _expand(self, rule: TimedRule) -> Set[str]:
        # Anchor on an arbitrary day; only the time part matters
        anchor = date(2000, 1, 1)
        current = datetime.combine(anchor, rule.start_time)
        end = datetime.combine(anchor, rule.end_time)
        out: Set[str] = set()
        while current + self.step <= end:
            out.add(format_hhmm(current.time()))
            current += self.step
        return out

    def candidates(self, on_date: Optional[date]) -> Set[str]:
        out: Set[str] = set()
        for rule in self.rules:
            if on_date is not None and rule.day_of_week != sunday_weekday(on_date):
                continue
            out |= self._expand(rule)
        return out


class SlotEnumerator:
    def __init__(self, strategy: SlotStrategy):
        self.strategy = strategy

    @classmethod
    def for_rules(
        cls,
        rules: Iterable[TimedRule],
        catalog: Sequence[str],
        interval_minutes: int = 30,
    ) -> "SlotEnumerator":
        active = [r for r in rules if getattr(r, "is_active", True)]
        if active:
            return cls(RuleExpansionSlots(active, interval_minutes))
        return cls(CatalogSlots(catalog))

    def offered(self, on_date: Optional[date] = None) -> List[str]:
        """All slots for the date, ignoring bookings."""
        return sorted(self.strategy.candidates(on_date))

    def available(
        self, booked_times: Iterable[time | str], on_date: Optional[date] = None
    ) -> List[str]:
        booked = _normalize(booked_times)
        return sorted(self.strategy.candidates(on_date) - booked)


def enumerate_slots(
    rules: Iterable[TimedRule],
    booked_times: Iterable[time | str],
    catalog: Sequence[str],
    on_date: Optional[date] = None,
    interval_minutes: int = 30,
) -> List[str]:
    """
    Sorted unique HH:MM slots still free for booking.
    `booked_times` must only hold times of scheduled appointments.
    """
    enumerator = SlotEnumerator.for_rules(rules, catalog, interval_minutes)
    return enumerator.available(booked_times, on_date)
