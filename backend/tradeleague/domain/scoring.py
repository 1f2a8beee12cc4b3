"""Daily points arithmetic over a holding set and two closes per symbol."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from .models import DayScore, Holding, ScoringConfig

POINTS_QUANT = Decimal("0.0001")
PERCENT_QUANT = Decimal("0.01")
HUNDRED = Decimal(100)
ZERO = Decimal("0")


def round_points(value: Decimal) -> Decimal:
    """Round to four places, halves away from zero."""

    return value.quantize(POINTS_QUANT, rounding=ROUND_HALF_UP)


def percent_change(current: Decimal, previous: Decimal | None) -> Decimal | None:
    """Close-to-close change in percent, two places; ``None`` without a usable base."""

    if previous is None or previous == 0:
        return None
    change = (current - previous) / previous * HUNDRED
    return change.quantize(PERCENT_QUANT, rounding=ROUND_HALF_UP)


def symbol_points(
    today_close: Decimal,
    previous_close: Decimal,
    *,
    first_day: bool,
    config: ScoringConfig,
) -> Decimal:
    daily_return = (today_close - previous_close) / previous_close
    points = daily_return * HUNDRED * config.multiplier
    if first_day:
        points *= config.first_day_penalty
    return round_points(points)


def compute_day_score(
    team_id: str,
    score_date: date,
    holdings: Mapping[str, Holding],
    closes_today: Mapping[str, Decimal],
    closes_previous: Mapping[str, Decimal],
    config: ScoringConfig,
) -> DayScore:
    """Score ``holdings`` for one trading day.

    A symbol without both closes, or with a zero previous close, contributes
    zero and is reported in ``missing_symbols`` instead of raising.
    """

    breakdown: dict[str, Decimal] = {}
    missing: list[str] = []
    for symbol in sorted(holdings):
        today_close = closes_today.get(symbol)
        previous_close = closes_previous.get(symbol)
        if today_close is None or previous_close is None or previous_close == 0:
            missing.append(symbol)
            breakdown[symbol] = round_points(ZERO)
            continue
        breakdown[symbol] = symbol_points(
            Decimal(today_close),
            Decimal(previous_close),
            first_day=holdings[symbol].added_date == score_date,
            config=config,
        )

    total = round_points(sum(breakdown.values(), ZERO))
    return DayScore(
        team_id=team_id,
        score_date=score_date,
        points=total,
        breakdown=breakdown,
        missing_symbols=missing,
        is_trading_day=True,
    )


def non_trading_score(team_id: str, score_date: date) -> DayScore:
    return DayScore(
        team_id=team_id,
        score_date=score_date,
        points=round_points(ZERO),
        is_trading_day=False,
    )


__all__ = [
    "POINTS_QUANT",
    "compute_day_score",
    "non_trading_score",
    "percent_change",
    "round_points",
    "symbol_points",
]
