"""End-of-day adjusted close storage keyed by (symbol, date)."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tradeleague.models import PriceDaily, utcnow


class PriceRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Mutations

    def upsert_close(
        self,
        symbol: str,
        price_date: date,
        adj_close: Decimal,
        *,
        fetched_at: datetime | None = None,
    ) -> PriceDaily:
        """Insert or overwrite one bar; re-writing a bar refreshes ``fetched_at``."""

        existing = self._session.get(PriceDaily, (symbol, price_date))
        if existing is None:
            existing = PriceDaily(symbol=symbol, price_date=price_date)
            self._session.add(existing)
        existing.adj_close = adj_close
        existing.fetched_at = fetched_at or utcnow()
        return existing

    # ------------------------------------------------------------------
    # Queries

    def closes_on(self, symbols: Iterable[str], price_date: date) -> dict[str, Decimal]:
        wanted = sorted(set(symbols))
        if not wanted:
            return {}
        stmt = select(PriceDaily.symbol, PriceDaily.adj_close).where(
            PriceDaily.price_date == price_date, PriceDaily.symbol.in_(wanted)
        )
        return {symbol: Decimal(close) for symbol, close in self._session.execute(stmt)}

    def closes_for_date(self, price_date: date) -> dict[str, Decimal]:
        stmt = select(PriceDaily.symbol, PriceDaily.adj_close).where(
            PriceDaily.price_date == price_date
        )
        return {symbol: Decimal(close) for symbol, close in self._session.execute(stmt)}

    def latest_price_date(self, symbol: str) -> date | None:
        stmt = select(func.max(PriceDaily.price_date)).where(PriceDaily.symbol == symbol)
        return self._session.scalar(stmt)

    def price_dates_between(self, start: date, end: date) -> list[date]:
        stmt = (
            select(PriceDaily.price_date)
            .where(PriceDaily.price_date >= start, PriceDaily.price_date <= end)
            .distinct()
            .order_by(PriceDaily.price_date)
        )
        return list(self._session.scalars(stmt))


__all__ = ["PriceRepository"]
