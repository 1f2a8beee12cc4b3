"""Pure trading-calendar rules: weekends and bank holidays are closed."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from dateutil import tz

from .holidays import is_bank_holiday

ONE_DAY = timedelta(days=1)


@dataclass(slots=True)
class CalendarEntry:
    calendar_date: date
    is_trading_day: bool
    prev_trading_day: date | None
    next_trading_day: date | None


def is_trading_day_date(day: date) -> bool:
    return day.weekday() < 5 and not is_bank_holiday(day)


def next_trading_day_date(day: date) -> date:
    """Return ``day`` itself when it trades, otherwise the following trading day."""

    candidate = day
    while not is_trading_day_date(candidate):
        candidate += ONE_DAY
    return candidate


def previous_trading_day_date(day: date) -> date:
    """Return the closest trading day strictly before ``day``."""

    candidate = day - ONE_DAY
    while not is_trading_day_date(candidate):
        candidate -= ONE_DAY
    return candidate


def generate_calendar_entries(year: int) -> list[CalendarEntry]:
    """Classify every date of ``year`` with strictly-earlier/later trading links."""

    first = date(year, 1, 1)
    last = date(year, 12, 31)
    entries: list[CalendarEntry] = []
    current = first
    while current <= last:
        entries.append(
            CalendarEntry(
                calendar_date=current,
                is_trading_day=is_trading_day_date(current),
                prev_trading_day=previous_trading_day_date(current),
                next_trading_day=next_trading_day_date(current + ONE_DAY),
            )
        )
        current += ONE_DAY
    return entries


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps (SQLite drops tzinfo on round-trip)."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_date(value: datetime) -> date:
    return ensure_utc(value).date()


def is_market_open_at(
    instant: datetime,
    *,
    timezone_name: str,
    session: tuple[time, time],
) -> bool:
    """Whether the exchange session covers ``instant`` (open inclusive, close exclusive)."""

    zone = tz.gettz(timezone_name)
    if zone is None:
        raise ValueError(f"Unknown market timezone: {timezone_name}")
    local = ensure_utc(instant).astimezone(zone)
    if not is_trading_day_date(local.date()):
        return False
    opens_at, closes_at = session
    return opens_at <= local.time() < closes_at


__all__ = [
    "CalendarEntry",
    "ONE_DAY",
    "ensure_utc",
    "generate_calendar_entries",
    "is_market_open_at",
    "is_trading_day_date",
    "next_trading_day_date",
    "previous_trading_day_date",
    "utc_date",
]
