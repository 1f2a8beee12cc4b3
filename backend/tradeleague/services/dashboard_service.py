"""Price-annotated read models: a team's holdings and the day's biggest movers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.orm import Session

from tradeleague.domain import percent_change
from tradeleague.repositories import PriceRepository

from .calendar_service import TradingCalendarService
from .holdings_service import HoldingsService

MOVERS_LIMIT_MAX = 25
PRICE_QUANT = Decimal("0.01")


@dataclass(slots=True)
class HoldingPrice:
    symbol: str
    tier: int
    tier_cost: int
    added_date: date
    current_price: Decimal | None
    previous_price: Decimal | None
    daily_return_pct: Decimal | None


@dataclass(slots=True)
class Mover:
    symbol: str
    current_price: Decimal
    change_pct: Decimal


class DashboardService:
    def __init__(self, session: Session) -> None:
        self._prices = PriceRepository(session)
        self._calendar = TradingCalendarService(session)
        self._holdings = HoldingsService(session)

    def holdings_with_prices(self, team_id: str, on_date: date) -> list[HoldingPrice]:
        """Holdings on ``on_date`` with that day's and the previous trading day's closes.

        A missing close leaves the price and the return as ``None``.
        """

        holdings = self._holdings.holdings_at(team_id, on_date)
        if not holdings:
            return []
        previous_date = self._calendar.previous_trading_day(on_date)
        today = self._prices.closes_on(holdings, on_date)
        previous = self._prices.closes_on(holdings, previous_date)

        rows: list[HoldingPrice] = []
        for holding in sorted(holdings.values(), key=lambda item: (item.tier, item.symbol)):
            current_price = today.get(holding.symbol)
            previous_price = previous.get(holding.symbol)
            rows.append(
                HoldingPrice(
                    symbol=holding.symbol,
                    tier=holding.tier,
                    tier_cost=holding.tier_cost,
                    added_date=holding.added_date,
                    current_price=current_price,
                    previous_price=previous_price,
                    daily_return_pct=(
                        percent_change(current_price, previous_price)
                        if current_price is not None
                        else None
                    ),
                )
            )
        return rows

    def global_movers(self, on_date: date, limit: int = 8) -> list[Mover]:
        """Symbols with the largest absolute close-to-close change on ``on_date``."""

        bounded = min(max(int(limit), 1), MOVERS_LIMIT_MAX)
        today = self._prices.closes_for_date(on_date)
        previous = self._prices.closes_for_date(self._calendar.previous_trading_day(on_date))

        movers: list[Mover] = []
        for symbol, close in today.items():
            change = percent_change(close, previous.get(symbol))
            if change is None:
                continue
            movers.append(
                Mover(
                    symbol=symbol,
                    current_price=close.quantize(PRICE_QUANT, rounding=ROUND_HALF_UP),
                    change_pct=change,
                )
            )
        movers.sort(key=lambda mover: (-abs(mover.change_pct), mover.symbol))
        return movers[:bounded]


__all__ = ["DashboardService", "HoldingPrice", "MOVERS_LIMIT_MAX", "Mover"]
