"""Persistence for the derived per-team daily score cache."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from tradeleague.domain import DayScore, round_points
from tradeleague.models import TeamDayScore, utcnow


def to_day_score(row: TeamDayScore) -> DayScore:
    return DayScore(
        team_id=row.team_id,
        score_date=row.score_date,
        points=Decimal(row.points),
        breakdown={symbol: Decimal(value) for symbol, value in (row.breakdown or {}).items()},
        missing_symbols=list(row.missing_symbols or []),
        is_trading_day=bool(row.is_trading_day),
        computed_at=row.computed_at,
    )


class ScoreRepository:
    """Upserts and range deletes over ``team_day_scores``; never appends duplicates."""

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Mutations

    def upsert(self, score: DayScore) -> TeamDayScore:
        row = self._session.get(TeamDayScore, (score.team_id, score.score_date))
        if row is None:
            row = TeamDayScore(team_id=score.team_id, score_date=score.score_date)
            self._session.add(row)
        row.points = score.points
        # JSON keeps the exact decimal text so a cached row reads back unchanged.
        row.breakdown = {symbol: str(value) for symbol, value in score.breakdown.items()}
        row.missing_symbols = list(score.missing_symbols)
        row.is_trading_day = score.is_trading_day
        row.computed_at = score.computed_at or utcnow()
        self._session.flush()
        return row

    def delete_range(
        self,
        *,
        team_id: str | None = None,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> int:
        stmt = delete(TeamDayScore)
        if team_id is not None:
            stmt = stmt.where(TeamDayScore.team_id == team_id)
        if from_date is not None:
            stmt = stmt.where(TeamDayScore.score_date >= from_date)
        if to_date is not None:
            stmt = stmt.where(TeamDayScore.score_date <= to_date)
        result = self._session.execute(stmt.execution_options(synchronize_session="fetch"))
        return int(result.rowcount or 0)

    # ------------------------------------------------------------------
    # Queries

    def get(self, team_id: str, score_date: date) -> DayScore | None:
        row = self._session.get(TeamDayScore, (team_id, score_date))
        return to_day_score(row) if row is not None else None

    def totals_through(self, team_ids: Iterable[str], up_to: date) -> dict[str, Decimal]:
        ids = list(team_ids)
        totals = {team_id: Decimal("0") for team_id in ids}
        if not ids:
            return totals
        stmt = (
            select(TeamDayScore.team_id, func.sum(TeamDayScore.points))
            .where(TeamDayScore.team_id.in_(ids), TeamDayScore.score_date <= up_to)
            .group_by(TeamDayScore.team_id)
        )
        for team_id, total in self._session.execute(stmt):
            totals[team_id] = round_points(Decimal(str(total or 0)))
        return totals

    def points_on(self, team_ids: Iterable[str], score_date: date) -> dict[str, Decimal]:
        ids = list(team_ids)
        if not ids:
            return {}
        stmt = select(TeamDayScore.team_id, TeamDayScore.points).where(
            TeamDayScore.team_id.in_(ids), TeamDayScore.score_date == score_date
        )
        return {team_id: Decimal(points) for team_id, points in self._session.execute(stmt)}

    def history(self, team_id: str, start: date, end: date) -> list[DayScore]:
        stmt = (
            select(TeamDayScore)
            .where(
                TeamDayScore.team_id == team_id,
                TeamDayScore.score_date >= start,
                TeamDayScore.score_date <= end,
            )
            .order_by(TeamDayScore.score_date)
        )
        return [to_day_score(row) for row in self._session.scalars(stmt)]


__all__ = ["ScoreRepository", "to_day_score"]
