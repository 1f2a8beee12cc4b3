from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from tradeleague.core.errors import NotFoundError
from tradeleague.services import DashboardService

MONDAY = date(2025, 1, 6)
TUESDAY = date(2025, 1, 7)


def test_holdings_carry_current_and_previous_close(session, factory, duplicate_league):
    factory.flat_prices(MONDAY, "100")
    closes = {symbol: "100" for symbol in ["BBA.L", "CCA.L", "CCB.L", "DDA.L", "DDB.L", "EEB.L"]}
    factory.prices(TUESDAY, {"AAA.L": "110", **closes})

    rows = DashboardService(session).holdings_with_prices(duplicate_league.team_a.team_id, TUESDAY)

    assert [row.symbol for row in rows] == [
        "AAA.L", "BBA.L", "CCA.L", "CCB.L", "DDA.L", "DDB.L", "EEA.L", "EEB.L"
    ]
    first = rows[0]
    assert (first.tier, first.tier_cost, first.added_date) == (1, 20, MONDAY)
    assert (first.current_price, first.previous_price) == (Decimal("110"), Decimal("100"))
    assert first.daily_return_pct == Decimal("10.00")

    missing = rows[6]
    assert missing.symbol == "EEA.L"
    assert missing.current_price is None
    assert missing.previous_price == Decimal("100")
    assert missing.daily_return_pct is None


def test_holdings_return_rounds_half_up(session, factory, duplicate_league):
    factory.prices(MONDAY, {"AAA.L": "800"})
    factory.prices(TUESDAY, {"AAA.L": "800.04"})

    rows = DashboardService(session).holdings_with_prices(duplicate_league.team_a.team_id, TUESDAY)

    # 0.005 % rounds away from zero.
    assert rows[0].daily_return_pct == Decimal("0.01")


def test_holdings_before_draft_are_empty(session, duplicate_league):
    rows = DashboardService(session).holdings_with_prices(
        duplicate_league.team_a.team_id, date(2025, 1, 3)
    )

    assert rows == []


def test_holdings_unknown_team(session):
    with pytest.raises(NotFoundError):
        DashboardService(session).holdings_with_prices("missing", TUESDAY)


def test_global_movers_rank_by_absolute_change(session, factory):
    factory.prices(MONDAY, {"AAA.L": "100", "BBA.L": "200", "CCA.L": "50", "EEA.L": "10"})
    factory.prices(
        TUESDAY,
        {"AAA.L": "110", "BBA.L": "185", "CCA.L": "50.5", "EEA.L": "10", "DDA.L": "7.123"},
    )

    movers = DashboardService(session).global_movers(TUESDAY)

    # DDA.L has no previous close and is left out.
    assert [(m.symbol, m.change_pct) for m in movers] == [
        ("AAA.L", Decimal("10.00")),
        ("BBA.L", Decimal("-7.50")),
        ("CCA.L", Decimal("1.00")),
        ("EEA.L", Decimal("0.00")),
    ]
    assert movers[2].current_price == Decimal("50.50")


def test_global_movers_limit_is_bounded(session, factory):
    factory.flat_prices(MONDAY, "100")
    factory.flat_prices(TUESDAY, "101")
    service = DashboardService(session)

    assert len(service.global_movers(TUESDAY, limit=3)) == 3
    assert len(service.global_movers(TUESDAY, limit=0)) == 1
    assert len(service.global_movers(TUESDAY, limit=100)) == 19


def test_global_movers_compare_with_previous_trading_day(session, factory):
    factory.prices(date(2025, 1, 3), {"AAA.L": "100"})
    factory.prices(MONDAY, {"AAA.L": "95"})

    movers = DashboardService(session).global_movers(MONDAY)

    assert [(m.symbol, m.change_pct) for m in movers] == [("AAA.L", Decimal("-5.00"))]
