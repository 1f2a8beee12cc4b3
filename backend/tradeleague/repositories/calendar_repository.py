"""Persisted trading calendar rows."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from sqlalchemy.orm import Session

from tradeleague.domain import CalendarEntry
from tradeleague.models import TradingCalendarDay


class CalendarRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_day(self, calendar_date: date) -> TradingCalendarDay | None:
        return self._session.get(TradingCalendarDay, calendar_date)

    def upsert_entries(self, entries: Iterable[CalendarEntry]) -> int:
        written = 0
        for entry in entries:
            row = self._session.get(TradingCalendarDay, entry.calendar_date)
            if row is None:
                row = TradingCalendarDay(calendar_date=entry.calendar_date)
                self._session.add(row)
            row.is_trading_day = entry.is_trading_day
            row.prev_trading_day = entry.prev_trading_day
            row.next_trading_day = entry.next_trading_day
            written += 1
        self._session.flush()
        return written


__all__ = ["CalendarRepository"]
