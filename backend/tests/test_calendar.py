from __future__ import annotations

from datetime import date, datetime, time, timezone

from tradeleague.domain import (
    generate_calendar_entries,
    is_market_open_at,
    is_trading_day_date,
    next_trading_day_date,
    previous_trading_day_date,
)
from tradeleague.models import TradingCalendarDay
from tradeleague.services import TradingCalendarService


def _open(instant: datetime) -> bool:
    return is_market_open_at(
        instant, timezone_name="Europe/London", session=(time(8, 0), time(16, 30))
    )


def test_weekends_and_bank_holidays_are_closed():
    assert is_trading_day_date(date(2025, 12, 24))
    assert not is_trading_day_date(date(2025, 12, 25))
    assert not is_trading_day_date(date(2025, 12, 26))
    assert not is_trading_day_date(date(2025, 1, 11))  # Saturday
    assert not is_trading_day_date(date(2025, 1, 12))  # Sunday


def test_next_trading_day_returns_same_day_when_trading():
    assert next_trading_day_date(date(2025, 1, 7)) == date(2025, 1, 7)
    assert next_trading_day_date(date(2025, 1, 11)) == date(2025, 1, 13)


def test_easter_weekend_is_skipped_in_both_directions():
    assert next_trading_day_date(date(2025, 4, 18)) == date(2025, 4, 22)
    assert previous_trading_day_date(date(2025, 4, 22)) == date(2025, 4, 17)


def test_previous_trading_day_is_strictly_earlier():
    assert previous_trading_day_date(date(2025, 1, 6)) == date(2025, 1, 3)
    assert previous_trading_day_date(date(2025, 1, 7)) == date(2025, 1, 6)


def test_generate_calendar_entries_for_2025():
    entries = generate_calendar_entries(2025)

    assert len(entries) == 365
    assert sum(1 for entry in entries if entry.is_trading_day) == 253

    new_year, second = entries[0], entries[1]
    assert not new_year.is_trading_day
    assert new_year.prev_trading_day == date(2024, 12, 31)
    assert new_year.next_trading_day == date(2025, 1, 2)
    assert second.is_trading_day
    assert second.prev_trading_day == date(2024, 12, 31)
    assert second.next_trading_day == date(2025, 1, 3)


def test_market_session_uses_london_time_across_daylight_saving():
    # GMT in winter: 08:00 UTC is the open, 16:30 UTC is already closed.
    assert _open(datetime(2025, 1, 6, 8, 0, tzinfo=timezone.utc))
    assert not _open(datetime(2025, 1, 6, 7, 59, tzinfo=timezone.utc))
    assert not _open(datetime(2025, 1, 6, 16, 30, tzinfo=timezone.utc))
    # BST in summer: 07:30 UTC is 08:30 local.
    assert _open(datetime(2025, 7, 1, 7, 30, tzinfo=timezone.utc))
    assert not _open(datetime(2025, 7, 1, 15, 45, tzinfo=timezone.utc))


def test_market_closed_on_weekend_and_holiday():
    assert not _open(datetime(2025, 1, 11, 12, 0, tzinfo=timezone.utc))
    assert not _open(datetime(2025, 12, 25, 12, 0, tzinfo=timezone.utc))


def test_naive_instants_are_treated_as_utc():
    assert _open(datetime(2025, 1, 6, 12, 0))


def test_populate_year_is_safe_to_rerun(session):
    service = TradingCalendarService(session)

    first = service.populate_year(2025)
    second = service.populate_year(2025)

    assert (first.year, first.total_days, first.trading_days) == (2025, 365, 253)
    assert (second.total_days, second.trading_days) == (365, 253)
    assert session.query(TradingCalendarDay).count() == 365


def test_service_prefers_persisted_rows(session):
    # Mark an ordinary Tuesday as closed; the stored row overrides the rule.
    session.add(
        TradingCalendarDay(
            calendar_date=date(2025, 1, 7),
            is_trading_day=False,
            prev_trading_day=date(2025, 1, 6),
            next_trading_day=date(2025, 1, 8),
        )
    )
    session.flush()
    service = TradingCalendarService(session)

    assert not service.is_trading_day(date(2025, 1, 7))
    assert service.next_trading_day(date(2025, 1, 7)) == date(2025, 1, 8)
    assert service.previous_trading_day(date(2025, 1, 7)) == date(2025, 1, 6)


def test_service_falls_back_to_rules_outside_table(session):
    service = TradingCalendarService(session)

    assert service.is_trading_day(date(2031, 3, 4))
    assert service.next_trading_day(date(2031, 3, 8)) == date(2031, 3, 10)
    assert service.previous_trading_day(date(2031, 3, 10)) == date(2031, 3, 7)


def test_service_market_open_uses_configured_session(session):
    service = TradingCalendarService(session)

    assert service.is_market_open(datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc))
    assert not service.is_market_open(datetime(2025, 1, 6, 18, 0, tzinfo=timezone.utc))
