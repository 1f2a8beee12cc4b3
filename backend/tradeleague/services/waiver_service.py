"""Batch resolution of contested waiver claims for one league and day."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from loguru import logger
from sqlalchemy.orm import Session

from tradeleague.core.errors import RuleViolation
from tradeleague.domain import WaiverDetails, ensure_utc, project_holdings, validate_roster
from tradeleague.models import MoveKind, OwnershipMode, WaiverClaim, WaiverClaimStatus
from tradeleague.repositories import LeagueRepository, RosterRepository, TransactionRepository

from .holdings_service import HoldingsService
from .scoring_service import ScoringService


@dataclass(slots=True)
class WaiverAward:
    claim_id: int
    team_id: str
    add_symbol: str
    drop_symbol: str
    faab_bid: int


@dataclass(slots=True)
class WaiverResolution:
    league_id: str
    effective_date: date
    processed: int = 0
    won: int = 0
    lost: int = 0
    winners: list[WaiverAward] = field(default_factory=list)


class WaiverService:
    """Settle pending FAAB claims.

    Claims for the same symbol are ranked by bid (high first), then standing
    points as of the effective date (low first), then submission time, then
    claim id. Symbols settle in the order of their earliest claim. Ownership,
    holdings and budgets are tracked in memory while the ranking is walked so
    that each award sees every earlier one.
    """

    def __init__(self, session: Session) -> None:
        self._leagues = LeagueRepository(session)
        self._moves = RosterRepository(session)
        self._transactions = TransactionRepository(session)
        self._holdings = HoldingsService(session)
        self._scoring = ScoringService(session)

    def resolve_claims(self, league_id: str, effective_date: date) -> WaiverResolution:
        league = self._leagues.require_league(league_id)
        if league.ownership_mode != OwnershipMode.UNIQUE.value:
            raise RuleViolation("Waiver claims are only used in unique-ownership leagues")

        season = league.season
        result = WaiverResolution(league_id=league.league_id, effective_date=effective_date)
        claims = self._transactions.pending_claims(league.league_id, effective_date)
        if not claims:
            return result

        instruments = self._leagues.instrument_map(season.season_id)
        teams = {team.team_id: team for team in self._leagues.teams_for_league(league.league_id)}
        budgets = {team_id: team.faab_budget for team_id, team in teams.items()}
        standing = self._scoring.cumulative_points(league.league_id, effective_date)
        ownership = self._holdings.league_ownership(league, effective_date, instruments)
        holdings = ownership.holdings_by_team
        owners = ownership.owner_by_symbol

        groups: dict[str, list[WaiverClaim]] = defaultdict(list)
        for claim in claims:
            groups[claim.add_symbol].append(claim)

        def rank(claim: WaiverClaim) -> tuple:
            return (
                -claim.faab_bid,
                standing.get(claim.team_id, Decimal("0")),
                ensure_utc(claim.created_at),
                claim.claim_id,
            )

        def first_submission(symbol: str) -> tuple:
            return min((ensure_utc(claim.created_at), claim.claim_id) for claim in groups[symbol])

        # Each symbol settles in the order its first claim arrived.
        for symbol in sorted(groups, key=first_submission):
            winner: WaiverClaim | None = None
            for claim in sorted(groups[symbol], key=rank):
                team_holdings = holdings.setdefault(claim.team_id, {})
                if budgets.get(claim.team_id, 0) < claim.faab_bid:
                    continue
                if symbol in owners:
                    continue
                if claim.drop_symbol not in team_holdings or symbol in team_holdings:
                    continue
                projected = project_holdings(
                    team_holdings,
                    remove=[claim.drop_symbol],
                    add=[symbol],
                    added_on=effective_date,
                    instruments=instruments,
                )
                if not validate_roster(projected.values(), season.budget).is_valid:
                    continue
                winner = claim
                holdings[claim.team_id] = projected
                if owners.get(claim.drop_symbol) == claim.team_id:
                    del owners[claim.drop_symbol]
                owners[symbol] = claim.team_id
                budgets[claim.team_id] -= claim.faab_bid
                break

            for claim in groups[symbol]:
                result.processed += 1
                if claim is winner:
                    self._award(claim, effective_date)
                    result.won += 1
                    result.winners.append(
                        WaiverAward(
                            claim_id=claim.claim_id,
                            team_id=claim.team_id,
                            add_symbol=claim.add_symbol,
                            drop_symbol=claim.drop_symbol,
                            faab_bid=claim.faab_bid,
                        )
                    )
                else:
                    claim.status = WaiverClaimStatus.LOST.value
                    result.lost += 1

        for team_id, team in teams.items():
            team.faab_budget = budgets[team_id]

        logger.info(
            "Resolved {} waiver claims for league {} on {}: {} won, {} lost",
            result.processed,
            league.league_id,
            effective_date,
            result.won,
            result.lost,
        )
        return result

    def _award(self, claim: WaiverClaim, effective_date: date) -> None:
        details = WaiverDetails(claim_id=claim.claim_id, faab_bid=claim.faab_bid)
        for kind, symbol in ((MoveKind.DROP, claim.drop_symbol), (MoveKind.ADD, claim.add_symbol)):
            self._moves.append_move(
                team_id=claim.team_id,
                kind=kind,
                symbol=symbol,
                effective_date=effective_date,
                details=details,
            )
        claim.status = WaiverClaimStatus.WON.value


__all__ = ["WaiverAward", "WaiverResolution", "WaiverService"]
