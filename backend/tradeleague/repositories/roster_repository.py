"""Append-only roster move log."""

from __future__ import annotations

from datetime import date, datetime
from typing import Sequence

from sqlalchemy import asc, desc, func, select
from sqlalchemy.orm import Session

from tradeleague.domain import MoveDetails, MoveRecord, details_to_payload, parse_move_details
from tradeleague.models import MoveKind, RosterMove, Team, utcnow


def to_move_record(row: RosterMove) -> MoveRecord:
    kind = MoveKind(row.kind)
    return MoveRecord(
        move_id=row.move_id,
        team_id=row.team_id,
        kind=kind,
        symbol=row.symbol,
        effective_date=row.effective_date,
        created_at=row.created_at,
        details=parse_move_details(kind, row.details),
    )


class RosterRepository:
    """Insert and replay-order reads over ``roster_moves``; rows are never changed."""

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Mutations

    def append_move(
        self,
        *,
        team_id: str,
        kind: MoveKind,
        symbol: str,
        effective_date: date,
        details: MoveDetails,
        created_at: datetime | None = None,
    ) -> RosterMove:
        move = RosterMove(
            team_id=team_id,
            kind=kind.value,
            symbol=symbol,
            effective_date=effective_date,
            details=details_to_payload(details),
            created_at=created_at or utcnow(),
        )
        self._session.add(move)
        self._session.flush()
        return move

    # ------------------------------------------------------------------
    # Queries

    def _replay_stmt(self):
        return select(RosterMove).order_by(
            asc(RosterMove.effective_date),
            asc(RosterMove.created_at),
            asc(RosterMove.move_id),
        )

    def moves_for_team(self, team_id: str, up_to: date | None = None) -> list[MoveRecord]:
        stmt = self._replay_stmt().where(RosterMove.team_id == team_id)
        if up_to is not None:
            stmt = stmt.where(RosterMove.effective_date <= up_to)
        return [to_move_record(row) for row in self._session.scalars(stmt)]

    def moves_for_league(self, league_id: str, up_to: date | None = None) -> list[MoveRecord]:
        stmt = (
            self._replay_stmt()
            .join(Team, Team.team_id == RosterMove.team_id)
            .where(Team.league_id == league_id)
        )
        if up_to is not None:
            stmt = stmt.where(RosterMove.effective_date <= up_to)
        return [to_move_record(row) for row in self._session.scalars(stmt)]

    def count_moves(
        self,
        team_id: str,
        kind: MoveKind,
        *,
        created_from: datetime,
        created_before: datetime,
    ) -> int:
        stmt = select(func.count(RosterMove.move_id)).where(
            RosterMove.team_id == team_id,
            RosterMove.kind == kind.value,
            RosterMove.created_at >= created_from,
            RosterMove.created_at < created_before,
        )
        return int(self._session.scalar(stmt) or 0)

    def has_drafted(self, team_id: str) -> bool:
        return self.count_kind(team_id, MoveKind.DRAFT) > 0

    def count_kind(self, team_id: str, kind: MoveKind) -> int:
        stmt = select(func.count(RosterMove.move_id)).where(
            RosterMove.team_id == team_id, RosterMove.kind == kind.value
        )
        return int(self._session.scalar(stmt) or 0)

    def recent_moves(self, team_id: str, limit: int) -> Sequence[RosterMove]:
        stmt = (
            select(RosterMove)
            .where(RosterMove.team_id == team_id)
            .order_by(desc(RosterMove.created_at), desc(RosterMove.move_id))
            .limit(limit)
        )
        return list(self._session.scalars(stmt))


__all__ = ["RosterRepository", "to_move_record"]
