from datetime import date, time, timedelta
from types import SimpleNamespace

import pytest

from conftest import TODAY, hm
from app.modules.availability.generator import generate_available_dates, sunday_weekday
from app.modules.availability.service import get_available_dates, get_available_times
from app.modules.availability.slots import (
    CatalogSlots,
    RuleExpansionSlots,
    SlotEnumerator,
    enumerate_slots,
)
from app.core.config import DEFAULT_TIME_SLOTS


def rule(dow, start="09:00", end="11:00", active=True):
    return SimpleNamespace(day_of_week=dow, start_time=hm(start), end_time=hm(end), is_active=active)


# ---- dates ----

def test_sunday_indexed_weekday():
    assert sunday_weekday(date(2025, 6, 1)) == 0  # Sunday
    assert sunday_weekday(date(2025, 6, 2)) == 1  # Monday
    assert sunday_weekday(date(2025, 6, 7)) == 6  # Saturday


def test_no_rules_opens_whole_horizon_but_not_today():
    dates = generate_available_dates([], TODAY, horizon_days=60)
    assert len(dates) == 60
    assert TODAY.isoformat() not in dates
    assert dates[0] == (TODAY + timedelta(days=1)).isoformat()
    assert dates[-1] == (TODAY + timedelta(days=60)).isoformat()


def test_dates_follow_rule_weekdays():
    dates = generate_available_dates([rule(1), rule(3)], TODAY, horizon_days=14)
    assert dates == ["2025-06-02", "2025-06-04", "2025-06-09", "2025-06-11"]


def test_inactive_rules_are_ignored():
    # only an inactive rule -> behaves like no schedule
    dates = generate_available_dates([rule(1, active=False)], TODAY, horizon_days=7)
    assert len(dates) == 7


@pytest.mark.parametrize("horizon", [1, 7, 60])
def test_horizon_bounds(horizon):
    dates = [date.fromisoformat(d) for d in generate_available_dates([rule(d) for d in range(7)], TODAY, horizon)]
    assert all(TODAY < d <= TODAY + timedelta(days=horizon) for d in dates)
    assert dates == sorted(dates)


# ---- slots ----

def test_rule_expansion_scenario_a():
    slots = enumerate_slots([rule(1, "09:00", "11:00")], set(), DEFAULT_TIME_SLOTS, on_date=date(2025, 6, 2))
    assert slots == ["09:00", "09:30", "10:00", "10:30"]


def test_rule_for_other_weekday_gives_no_slots():
    slots = enumerate_slots([rule(1)], set(), DEFAULT_TIME_SLOTS, on_date=date(2025, 6, 3))
    assert slots == []


def test_overlapping_rules_are_deduplicated():
    rules = [rule(1, "09:00", "10:30"), rule(1, "10:00", "11:00")]
    slots = enumerate_slots(rules, set(), DEFAULT_TIME_SLOTS, on_date=date(2025, 6, 2))
    assert slots == ["09:00", "09:30", "10:00", "10:30"]


def test_last_slot_must_fit_before_end():
    slots = enumerate_slots([rule(1, "09:00", "10:45")], set(), DEFAULT_TIME_SLOTS, on_date=date(2025, 6, 2))
    assert slots == ["09:00", "09:30", "10:00"]


def test_booked_times_removed_in_both_modes():
    booked = {time(9, 0), "10:00:00"}
    by_rules = enumerate_slots([rule(1)], booked, DEFAULT_TIME_SLOTS, on_date=date(2025, 6, 2))
    assert by_rules == ["09:30", "10:30"]

    by_catalog = enumerate_slots([], booked, DEFAULT_TIME_SLOTS)
    assert "09:00" not in by_catalog and "10:00" not in by_catalog
    assert len(by_catalog) == len(DEFAULT_TIME_SLOTS) - 2
    assert by_catalog == sorted(by_catalog)


def test_strategy_selection():
    assert isinstance(SlotEnumerator.for_rules([], DEFAULT_TIME_SLOTS).strategy, CatalogSlots)
    assert isinstance(SlotEnumerator.for_rules([rule(1)], DEFAULT_TIME_SLOTS).strategy, RuleExpansionSlots)
    inactive_only = SlotEnumerator.for_rules([rule(1, active=False)], DEFAULT_TIME_SLOTS)
    assert isinstance(inactive_only.strategy, CatalogSlots)


# ---- service wrappers (DB) ----

@pytest.mark.asyncio
async def test_get_available_times_scenario_a(session, doctor, add_rule):
    await add_rule(doctor.user_id, 1, hm("09:00"), hm("11:00"))
    times = await get_available_times(session, doctor.user_id, date(2025, 6, 2), today=TODAY)
    assert times == ["09:00", "09:30", "10:00", "10:30"]
    # no mutation in between -> same answer
    assert await get_available_times(session, doctor.user_id, date(2025, 6, 2), today=TODAY) == times


@pytest.mark.asyncio
async def test_get_available_dates_uses_rules(session, doctor, add_rule):
    await add_rule(doctor.user_id, 1, hm("09:00"), hm("11:00"))
    dates = await get_available_dates(session, doctor.user_id, today=TODAY)
    assert dates[0] == "2025-06-02"
    assert all(sunday_weekday(date.fromisoformat(d)) == 1 for d in dates)


@pytest.mark.asyncio
async def test_doctor_without_rules_uses_catalog(session, doctor):
    times = await get_available_times(session, doctor.user_id, date(2025, 6, 10), today=TODAY)
    assert times == DEFAULT_TIME_SLOTS


@pytest.mark.asyncio
async def test_times_empty_on_dates_the_calendar_does_not_offer(session, doctor, add_rule):
    # catalog mode: no rules, every date inside the horizon is open
    assert await get_available_times(session, doctor.user_id, TODAY, today=TODAY) == []
    assert await get_available_times(session, doctor.user_id, date(2025, 5, 20), today=TODAY) == []
    beyond = TODAY + timedelta(days=61)
    assert await get_available_times(session, doctor.user_id, beyond, today=TODAY) == []
    last = TODAY + timedelta(days=60)
    assert await get_available_times(session, doctor.user_id, last, today=TODAY) == DEFAULT_TIME_SLOTS

    # with a Monday rule, a Tuesday is a day off
    await add_rule(doctor.user_id, 1, hm("09:00"), hm("11:00"))
    assert await get_available_times(session, doctor.user_id, date(2025, 6, 3), today=TODAY) == []
