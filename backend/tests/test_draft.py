from __future__ import annotations

import pytest

from conftest import ROSTER_A, ROSTER_B, SEASON_START
from tradeleague.core.errors import RuleViolation
from tradeleague.models import LeagueStatus, MoveKind, OwnershipMode, RosterMove
from tradeleague.services import DraftService, HoldingsService


@pytest.fixture
def draft_league(factory):
    season = factory.season()
    league = factory.league(season, status=LeagueStatus.DRAFT_PENDING)
    return season, league, factory.team(league, "Alpha"), factory.team(league, "Bravo")


def test_submit_portfolio_appends_draft_moves(session, draft_league):
    season, league, alpha, _ = draft_league
    service = DraftService(session)

    result = service.submit_portfolio(alpha.team_id, [s.lower() for s in ROSTER_A])

    assert result.symbols == ROSTER_A
    assert result.effective_date == SEASON_START
    assert result.league_status == LeagueStatus.DRAFTING.value
    moves = session.query(RosterMove).filter_by(team_id=alpha.team_id).all()
    assert len(moves) == 8
    assert {m.kind for m in moves} == {MoveKind.DRAFT.value}
    holdings = HoldingsService(session).holdings_at(alpha.team_id, SEASON_START)
    assert sorted(holdings) == sorted(ROSTER_A)


def test_league_becomes_active_when_every_team_has_drafted(session, draft_league):
    _, league, alpha, bravo = draft_league
    service = DraftService(session)

    service.submit_portfolio(alpha.team_id, ROSTER_A)
    result = service.submit_portfolio(bravo.team_id, ROSTER_B)

    assert result.league_status == LeagueStatus.ACTIVE.value
    assert league.status == LeagueStatus.ACTIVE.value


@pytest.mark.parametrize(
    "symbols, message",
    [
        (ROSTER_A[:7], "exactly 8"),
        (ROSTER_A[:7] + ["AAA.L"], "duplicate"),
        (ROSTER_A[:7] + ["NOPE.L"], "Unknown symbols"),
        (
            ["AAA.L", "AAB.L", "AAC.L", "BBA.L", "CCA.L", "DDA.L", "EEA.L", "EEB.L"],
            "Roster cost 104 exceeds budget 100",
        ),
        (
            ["AAA.L", "BBA.L", "CCA.L", "CCB.L", "DDA.L", "DDB.L", "DDC.L", "CCC.L"],
            "Tier 5",
        ),
    ],
)
def test_validate_portfolio_rejects_illegal_rosters(session, draft_league, symbols, message):
    season, league, alpha, _ = draft_league

    check = DraftService(session).validate_portfolio(
        symbols, season, league=league, team_id=alpha.team_id
    )

    assert not check.is_valid
    assert any(message in error for error in check.errors)


def test_unique_league_rejects_symbols_drafted_elsewhere(session, draft_league):
    _, _, alpha, bravo = draft_league
    service = DraftService(session)
    service.submit_portfolio(alpha.team_id, ROSTER_A)

    clash = ["AAA.L"] + ROSTER_B[1:]
    with pytest.raises(RuleViolation, match="Already drafted by another team: AAA.L"):
        service.submit_portfolio(bravo.team_id, clash)


def test_duplicate_league_allows_shared_symbols(session, factory):
    season = factory.season()
    league = factory.league(
        season, mode=OwnershipMode.DUPLICATES, status=LeagueStatus.DRAFT_PENDING
    )
    alpha = factory.team(league, "Alpha")
    bravo = factory.team(league, "Bravo")
    service = DraftService(session)

    service.submit_portfolio(alpha.team_id, ROSTER_A)
    result = service.submit_portfolio(bravo.team_id, ROSTER_A)

    assert result.league_status == LeagueStatus.ACTIVE.value


def test_team_cannot_draft_twice(session, draft_league):
    _, _, alpha, _ = draft_league
    service = DraftService(session)
    service.submit_portfolio(alpha.team_id, ROSTER_A)

    with pytest.raises(RuleViolation, match="already submitted"):
        service.submit_portfolio(alpha.team_id, ROSTER_A)


def test_active_league_rejects_draft(session, unique_league):
    with pytest.raises(RuleViolation, match="not accepting"):
        DraftService(session).submit_portfolio(unique_league.team_a.team_id, ROSTER_A)


def test_available_instruments_flags_owned_symbols(session, unique_league):
    rows = DraftService(session).available_instruments(unique_league.league.league_id)

    by_symbol = {row.symbol: row for row in rows}
    assert len(rows) == 19
    assert not by_symbol["AAA.L"].is_available
    assert by_symbol["AAA.L"].owner_team_id == unique_league.team_a.team_id
    assert by_symbol["EEE.L"].is_available
    assert by_symbol["EEE.L"].owner_team_id is None
