from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

import httpx
import pytest

from pricefeed.client import (
    DailyBar,
    InstrumentProfile,
    QuoteClient,
    parse_chart_payload,
    parse_quote_payload,
)
from pricefeed.service import PriceSyncService, fetch_instrument_candidates
from tradeleague.core.config import settings
from tradeleague.repositories import PriceRepository

CHART_PAYLOAD = {
    "chart": {
        "result": [
            {
                # 08:00 UTC on 6, 7, 8 and 9 January 2025
                "timestamp": [1736150400, 1736236800, 1736323200, 1736409600],
                "indicators": {
                    "quote": [{"close": [101.0, 102.0, None, 7.5]}],
                    "adjclose": [{"adjclose": [100.5, 101.25, None, None]}],
                },
            }
        ],
        "error": None,
    }
}


class StubQuoteClient:
    def __init__(
        self,
        bars: dict[str, list[DailyBar]] | None = None,
        failing=(),
        profiles: dict[str, InstrumentProfile] | None = None,
    ) -> None:
        self._bars = bars or {}
        self._profiles = profiles or {}
        self._failing = set(failing)
        self.calls: list[tuple[str, date | None, date | None]] = []

    def fetch_daily_bars(self, symbol: str, start: date, end: date) -> list[DailyBar]:
        self.calls.append((symbol, start, end))
        if symbol in self._failing:
            raise httpx.ConnectError("connection refused")
        return list(self._bars.get(symbol, []))

    def fetch_profile(self, symbol: str) -> InstrumentProfile | None:
        self.calls.append((symbol, None, None))
        if symbol in self._failing:
            raise httpx.ConnectError("connection refused")
        return self._profiles.get(symbol)


def _bar(symbol: str, day: date, close: str) -> DailyBar:
    return DailyBar(symbol=symbol, price_date=day, adj_close=Decimal(close))


# ----------------------------------------------------------------------
# Payload parsing


def test_parse_chart_payload_prefers_adjusted_close():
    bars = parse_chart_payload("AAA.L", CHART_PAYLOAD, timezone_name="Europe/London")

    assert bars == [
        _bar("AAA.L", date(2025, 1, 6), "100.5"),
        _bar("AAA.L", date(2025, 1, 7), "101.25"),
        _bar("AAA.L", date(2025, 1, 9), "7.5"),
    ]


@pytest.mark.parametrize(
    "payload",
    [None, {}, {"chart": {"result": []}}, {"chart": {"result": [None]}}, ["unexpected"]],
)
def test_parse_chart_payload_tolerates_empty_responses(payload):
    assert parse_chart_payload("AAA.L", payload, timezone_name="Europe/London") == []


def test_parse_chart_payload_dates_bars_in_exchange_timezone():
    # 23:30 UTC on 5 January is already 6 January in Tokyo.
    payload = {
        "chart": {
            "result": [
                {
                    "timestamp": [1736119800],
                    "indicators": {"adjclose": [{"adjclose": [12.0]}]},
                }
            ]
        }
    }

    london = parse_chart_payload("X", payload, timezone_name="Europe/London")
    tokyo = parse_chart_payload("X", payload, timezone_name="Asia/Tokyo")

    assert london[0].price_date == date(2025, 1, 5)
    assert tokyo[0].price_date == date(2025, 1, 6)


def test_parse_chart_payload_skips_non_positive_prices():
    payload = {
        "chart": {
            "result": [
                {
                    "timestamp": [1736150400, 1736236800],
                    "indicators": {"adjclose": [{"adjclose": [0, "nan"]}]},
                }
            ]
        }
    }

    assert parse_chart_payload("X", payload, timezone_name="Europe/London") == []


def test_parse_quote_payload_reads_name_and_market_cap():
    payload = {
        "quoteResponse": {
            "result": [
                {"symbol": "BBA.L", "marketCap": 5},
                {"symbol": "AAA.L", "marketCap": 123456789, "shortName": "AAA", "longName": "AAA plc"},
            ]
        }
    }

    profile = parse_quote_payload("AAA.L", payload)

    assert profile == InstrumentProfile(symbol="AAA.L", name="AAA plc", market_cap=Decimal("123456789"))


@pytest.mark.parametrize(
    "payload",
    [
        None,
        {"quoteResponse": {"result": []}},
        {"quoteResponse": {"result": [{"symbol": "AAA.L", "marketCap": 0}]}},
        {"quoteResponse": {"result": [{"symbol": "AAA.L", "shortName": "AAA"}]}},
    ],
)
def test_parse_quote_payload_without_market_cap(payload):
    assert parse_quote_payload("AAA.L", payload) is None


# ----------------------------------------------------------------------
# HTTP client


def _client_with(handler, **kwargs) -> QuoteClient:
    client = QuoteClient(base_url="https://quotes.test", **kwargs)
    client.client.close()
    client.client = httpx.Client(
        base_url="https://quotes.test", transport=httpx.MockTransport(handler)
    )
    return client


def test_fetch_daily_bars_requests_inclusive_window():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=CHART_PAYLOAD)

    with _client_with(handler, retry_schedule=()) as client:
        bars = client.fetch_daily_bars("AAA.L", date(2025, 1, 6), date(2025, 1, 7))

    assert [bar.price_date for bar in bars] == [date(2025, 1, 6), date(2025, 1, 7)]
    request = seen[0]
    assert request.url.path == "/v8/finance/chart/AAA.L"
    assert request.url.params["period1"] == "1736121600"
    assert request.url.params["period2"] == "1736294400"
    assert request.url.params["interval"] == "1d"


def test_fetch_daily_bars_retries_with_backoff(monkeypatch):
    sleeps: list[float] = []
    monkeypatch.setattr("pricefeed.client.time.sleep", sleeps.append)
    responses = iter([httpx.Response(503), httpx.Response(200, json=CHART_PAYLOAD)])

    with _client_with(lambda request: next(responses), retry_schedule=(0.5, 1.0)) as client:
        bars = client.fetch_daily_bars("AAA.L", date(2025, 1, 6), date(2025, 1, 9))

    assert sleeps == [0.5]
    assert len(bars) == 3


def test_fetch_daily_bars_raises_after_last_retry(monkeypatch):
    sleeps: list[float] = []
    monkeypatch.setattr("pricefeed.client.time.sleep", sleeps.append)

    with _client_with(lambda request: httpx.Response(500), retry_schedule=(0.1, 0.2)) as client:
        with pytest.raises(httpx.HTTPStatusError):
            client.fetch_daily_bars("AAA.L", date(2025, 1, 6), date(2025, 1, 7))

    assert sleeps == [0.1, 0.2]


def test_fetch_daily_bars_with_empty_window_makes_no_request():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with _client_with(handler, retry_schedule=()) as client:
        assert client.fetch_daily_bars("AAA.L", date(2025, 1, 7), date(2025, 1, 6)) == []


# ----------------------------------------------------------------------
# Sync service


def test_sync_fetches_lookback_window_for_new_symbols(session):
    through = date(2025, 1, 7)
    stub = StubQuoteClient({"AAA.L": [_bar("AAA.L", date(2025, 1, 6), "10"), _bar("AAA.L", through, "11")]})

    report = PriceSyncService(session, stub, delay_seconds=0).ensure_fresh_through(through, ["AAA.L"])

    assert stub.calls == [("AAA.L", through - timedelta(days=settings.price_lookback_days), through)]
    assert (report.attempted, report.fetched, report.skipped) == (1, 1, 0)
    prices = PriceRepository(session)
    assert prices.latest_price_date("AAA.L") == through
    assert prices.closes_on(["AAA.L"], through) == {"AAA.L": Decimal("11")}


def test_sync_resumes_after_latest_stored_price(session, factory):
    factory.prices(date(2025, 1, 6), {"AAA.L": "10"})
    stub = StubQuoteClient({"AAA.L": [_bar("AAA.L", date(2025, 1, 7), "10.5")]})

    PriceSyncService(session, stub, delay_seconds=0).ensure_fresh_through(date(2025, 1, 8), ["AAA.L"])

    assert stub.calls == [("AAA.L", date(2025, 1, 7), date(2025, 1, 8))]


def test_sync_skips_fresh_symbols_and_empty_responses(session, factory):
    factory.prices(date(2025, 1, 7), {"AAA.L": "10"})
    stub = StubQuoteClient()

    report = PriceSyncService(session, stub, delay_seconds=0).ensure_fresh_through(
        date(2025, 1, 7), ["AAA.L", "BBA.L"]
    )

    assert [call[0] for call in stub.calls] == ["BBA.L"]
    assert (report.attempted, report.fetched, report.skipped) == (2, 0, 2)


def test_sync_records_failures_and_continues(session):
    through = date(2025, 1, 7)
    stub = StubQuoteClient({"BBA.L": [_bar("BBA.L", through, "4")]}, failing={"AAA.L"})

    report = PriceSyncService(session, stub, delay_seconds=0).ensure_fresh_through(
        through, ["BBA.L", "AAA.L"]
    )

    assert [failure.symbol for failure in report.failed] == ["AAA.L"]
    assert "connection refused" in report.failed[0].error
    assert report.fetched == 1
    assert PriceRepository(session).latest_price_date("BBA.L") == through


def test_sync_defaults_to_symbols_of_live_seasons(session, factory):
    factory.season()
    factory.season(name="Archive", status="COMPLETED")
    stub = StubQuoteClient()

    report = PriceSyncService(session, stub, delay_seconds=0).ensure_fresh_through(date(2025, 1, 7))

    assert report.attempted == 19
    assert [call[0] for call in stub.calls] == sorted(call[0] for call in stub.calls)


def test_sync_pauses_between_symbols(session, monkeypatch):
    sleeps: list[float] = []
    monkeypatch.setattr("pricefeed.service.time.sleep", sleeps.append)

    PriceSyncService(session, StubQuoteClient(), delay_seconds=0.2).ensure_fresh_through(
        date(2025, 1, 7), ["AAA.L", "BBA.L", "CCA.L"]
    )

    assert sleeps == [0.2, 0.2]


def test_fetch_profile_queries_quote_endpoint():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"quoteResponse": {"result": [{"symbol": "AAA.L", "marketCap": 42, "shortName": "AAA"}]}},
        )

    with _client_with(handler, retry_schedule=()) as client:
        profile = client.fetch_profile("AAA.L")

    assert profile.name == "AAA"
    assert seen[0].url.path == settings.quote_profile_path
    assert seen[0].url.params["symbols"] == "AAA.L"


# ----------------------------------------------------------------------
# Season candidates


def test_candidates_keep_failed_lookups_without_market_cap():
    stub = StubQuoteClient(
        profiles={"AAA.L": InstrumentProfile("AAA.L", "AAA plc", Decimal("900"))},
        failing={"BBA.L"},
    )

    candidates = fetch_instrument_candidates(stub, ["aaa.l", " BBA.L", "", "CCA.L"], delay_seconds=0)

    assert [(c.symbol, c.name, c.market_cap) for c in candidates] == [
        ("AAA.L", "AAA plc", Decimal("900")),
        ("BBA.L", "BBA.L", None),
        ("CCA.L", "CCA.L", None),
    ]


def test_candidates_respect_symbol_limit():
    stub = StubQuoteClient()
    symbols = [f"S{index:02d}.L" for index in range(10)]

    candidates = fetch_instrument_candidates(stub, symbols, symbol_limit=6, delay_seconds=0)

    assert [c.symbol for c in candidates] == symbols[:6]
    assert len(stub.calls) == 6
