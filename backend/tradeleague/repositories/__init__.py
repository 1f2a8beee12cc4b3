"""Repository abstractions for database interactions."""

from .calendar_repository import CalendarRepository
from .league_repository import LeagueRepository
from .price_repository import PriceRepository
from .roster_repository import RosterRepository, to_move_record
from .score_repository import ScoreRepository, to_day_score
from .transaction_repository import TransactionRepository

__all__ = [
    "CalendarRepository",
    "LeagueRepository",
    "PriceRepository",
    "RosterRepository",
    "ScoreRepository",
    "TransactionRepository",
    "to_day_score",
    "to_move_record",
]
