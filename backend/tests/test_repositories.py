from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from tradeleague.domain import DayScore
from tradeleague.models import MoveKind, PriceDaily, RosterMove
from tradeleague.repositories import PriceRepository, ScoreRepository, to_move_record


def test_upsert_close_overwrites_and_refreshes_fetched_at(session):
    repo = PriceRepository(session)
    first = datetime(2025, 1, 6, 22, 0, tzinfo=timezone.utc)
    second = datetime(2025, 1, 7, 22, 0, tzinfo=timezone.utc)

    repo.upsert_close("AAA.L", date(2025, 1, 6), Decimal("10.5"), fetched_at=first)
    session.flush()
    repo.upsert_close("AAA.L", date(2025, 1, 6), Decimal("10.75"), fetched_at=second)
    session.flush()

    rows = session.query(PriceDaily).all()
    assert len(rows) == 1
    assert rows[0].adj_close == Decimal("10.75")
    assert rows[0].fetched_at.replace(tzinfo=timezone.utc) == second


def test_price_dates_between_is_distinct_and_ordered(session, factory):
    factory.prices(date(2025, 1, 7), {"AAA.L": "1", "BBA.L": "2"})
    factory.prices(date(2025, 1, 6), {"AAA.L": "1"})
    factory.prices(date(2025, 1, 10), {"AAA.L": "1"})

    dates = PriceRepository(session).price_dates_between(date(2025, 1, 6), date(2025, 1, 8))

    assert dates == [date(2025, 1, 6), date(2025, 1, 7)]


def test_score_upsert_overwrites_row(session, duplicate_league):
    repo = ScoreRepository(session)
    team_id = duplicate_league.team_a.team_id
    day = date(2025, 1, 7)

    repo.upsert(DayScore(team_id=team_id, score_date=day, points=Decimal("1.0000")))
    repo.upsert(
        DayScore(
            team_id=team_id,
            score_date=day,
            points=Decimal("2.5000"),
            breakdown={"AAA.L": Decimal("2.5000")},
            missing_symbols=["BBA.L"],
        )
    )

    cached = repo.get(team_id, day)
    assert cached.points == Decimal("2.5")
    assert cached.breakdown == {"AAA.L": Decimal("2.5000")}
    assert cached.missing_symbols == ["BBA.L"]


def test_delete_range_filters_by_team_and_dates(session, duplicate_league):
    repo = ScoreRepository(session)
    alpha = duplicate_league.team_a.team_id
    bravo = duplicate_league.team_b.team_id
    for team_id in (alpha, bravo):
        for day in (date(2025, 1, 6), date(2025, 1, 7), date(2025, 1, 8)):
            repo.upsert(DayScore(team_id=team_id, score_date=day, points=Decimal("1")))

    assert repo.delete_range(team_id=alpha, from_date=date(2025, 1, 7)) == 2
    assert repo.delete_range(to_date=date(2025, 1, 6)) == 2
    assert repo.totals_through([alpha, bravo], date(2025, 1, 31)) == {
        alpha: Decimal("0"),
        bravo: Decimal("2"),
    }


def test_trade_rows_without_direction_are_rejected(duplicate_league):
    row = RosterMove(
        move_id=1,
        team_id=duplicate_league.team_a.team_id,
        kind=MoveKind.TRADE.value,
        symbol="AAA.L",
        effective_date=date(2025, 1, 7),
        details={"source": "TRADE", "trade_id": 3},
        created_at=datetime(2025, 1, 6, 18, 0, tzinfo=timezone.utc),
    )

    with pytest.raises(ValueError, match="direction"):
        to_move_record(row)
