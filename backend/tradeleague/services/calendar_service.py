"""Trading-day lookups backed by the persisted calendar with a rule fallback."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from loguru import logger
from sqlalchemy.orm import Session

from tradeleague.core.config import settings
from tradeleague.domain import (
    generate_calendar_entries,
    is_market_open_at,
    is_trading_day_date,
    next_trading_day_date,
    previous_trading_day_date,
)
from tradeleague.repositories import CalendarRepository


@dataclass(slots=True)
class CalendarPopulation:
    year: int
    total_days: int
    trading_days: int


class TradingCalendarService:
    """Answer calendar questions for any date.

    Rows in ``trading_calendar`` win when present; dates outside the populated
    range fall back to the weekday and bank-holiday rule, so every lookup is
    total.
    """

    def __init__(self, session: Session) -> None:
        self._repo = CalendarRepository(session)

    def is_trading_day(self, day: date) -> bool:
        row = self._repo.get_day(day)
        if row is not None:
            return bool(row.is_trading_day)
        return is_trading_day_date(day)

    def next_trading_day(self, day: date) -> date:
        row = self._repo.get_day(day)
        if row is not None:
            if row.is_trading_day:
                return day
            if row.next_trading_day is not None:
                return row.next_trading_day
        return next_trading_day_date(day)

    def previous_trading_day(self, day: date) -> date:
        row = self._repo.get_day(day)
        if row is not None and row.prev_trading_day is not None:
            return row.prev_trading_day
        return previous_trading_day_date(day)

    def is_market_open(self, instant: datetime) -> bool:
        return is_market_open_at(
            instant,
            timezone_name=settings.market_timezone,
            session=settings.market_session,
        )

    def populate_year(self, year: int) -> CalendarPopulation:
        entries = generate_calendar_entries(year)
        self._repo.upsert_entries(entries)
        trading = sum(1 for entry in entries if entry.is_trading_day)
        logger.info("Populated trading calendar for {} ({} trading days)", year, trading)
        return CalendarPopulation(year=year, total_days=len(entries), trading_days=trading)


__all__ = ["CalendarPopulation", "TradingCalendarService"]
