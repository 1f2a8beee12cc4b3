from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
from dateutil import tz
from loguru import logger

from tradeleague.core.config import settings


@dataclass(frozen=True, slots=True)
class DailyBar:
    symbol: str
    price_date: date
    adj_close: Decimal


def _epoch(day: date) -> int:
    return int(datetime(day.year, day.month, day.day, tzinfo=timezone.utc).timestamp())


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite() or number <= 0:
        return None
    return number


def parse_chart_payload(symbol: str, payload: Any, *, timezone_name: str) -> list[DailyBar]:
    """Extract adjusted daily closes from a chart response.

    Bars are dated in the exchange's local timezone. Rows without a usable
    adjusted close fall back to the raw close, and are skipped if neither is
    present.
    """

    if not isinstance(payload, dict):
        return []
    chart = payload.get("chart") or {}
    results = chart.get("result") or []
    if not results or not isinstance(results[0], dict):
        return []
    result = results[0]
    timestamps = result.get("timestamp") or []
    indicators = result.get("indicators") or {}
    adjclose = ((indicators.get("adjclose") or [{}])[0] or {}).get("adjclose") or []
    closes = ((indicators.get("quote") or [{}])[0] or {}).get("close") or []

    zone = tz.gettz(timezone_name) or timezone.utc
    bars: dict[date, DailyBar] = {}
    for index, stamp in enumerate(timestamps):
        value = _to_decimal(adjclose[index] if index < len(adjclose) else None)
        if value is None:
            value = _to_decimal(closes[index] if index < len(closes) else None)
        if value is None:
            continue
        local_day = datetime.fromtimestamp(int(stamp), tz=timezone.utc).astimezone(zone).date()
        bars[local_day] = DailyBar(symbol=symbol, price_date=local_day, adj_close=value)
    return [bars[day] for day in sorted(bars)]


@dataclass(frozen=True, slots=True)
class InstrumentProfile:
    symbol: str
    name: str
    market_cap: Decimal


def parse_quote_payload(symbol: str, payload: Any) -> InstrumentProfile | None:
    """Read name and market cap for ``symbol`` from a quote response.

    Returns ``None`` when the symbol is absent or has no positive market cap.
    """

    if not isinstance(payload, dict):
        return None
    results = (payload.get("quoteResponse") or {}).get("result") or []
    for row in results:
        if not isinstance(row, dict) or str(row.get("symbol", "")).upper() != symbol.upper():
            continue
        market_cap = _to_decimal(row.get("marketCap"))
        if market_cap is None:
            return None
        name = row.get("longName") or row.get("shortName") or symbol
        return InstrumentProfile(symbol=symbol, name=str(name), market_cap=market_cap)
    return None


class QuoteClient:
    """Thin wrapper around the end-of-day chart and quote endpoints."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        chart_path: str | None = None,
        profile_path: str | None = None,
        timeout: float | None = None,
        retry_schedule: tuple[float, ...] | None = None,
    ) -> None:
        self.base_url = base_url or str(settings.quote_base_url)
        self.chart_path = chart_path or settings.quote_chart_path
        self.profile_path = profile_path or settings.quote_profile_path
        self.timeout = timeout or settings.quote_timeout_seconds
        self.retry_schedule = (
            settings.price_fetch_retry_schedule if retry_schedule is None else retry_schedule
        )
        self.client = httpx.Client(base_url=self.base_url, timeout=self.timeout)

    def _get_json(self, symbol: str, path: str, params: dict[str, Any]) -> Any:
        attempts = len(self.retry_schedule) + 1
        for attempt in range(1, attempts + 1):
            try:
                logger.debug("Quote GET {} params={} attempt={}", path, params, attempt)
                response = self.client.get(path, params=params)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPError as exc:
                if attempt >= attempts:
                    raise
                delay = self.retry_schedule[attempt - 1]
                logger.warning(
                    "Quote request for {} failed ({}); retrying in {}s", symbol, exc, delay
                )
                time.sleep(delay)
        return None

    def fetch_daily_bars(self, symbol: str, start: date, end: date) -> list[DailyBar]:
        if end < start:
            return []
        params = {
            "period1": _epoch(start),
            "period2": _epoch(end + timedelta(days=1)),
            "interval": "1d",
            "events": "history",
        }
        payload = self._get_json(symbol, self.chart_path.format(symbol=symbol), params)
        bars = parse_chart_payload(symbol, payload, timezone_name=settings.market_timezone)
        return [bar for bar in bars if start <= bar.price_date <= end]

    def fetch_profile(self, symbol: str) -> InstrumentProfile | None:
        payload = self._get_json(symbol, self.profile_path, {"symbols": symbol})
        return parse_quote_payload(symbol, payload)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "QuoteClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
