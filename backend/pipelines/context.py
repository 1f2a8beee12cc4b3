from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from tradeleague.core.config import Settings


@dataclass(slots=True)
class SettlementContext:
    """Runtime context shared by every step of one settlement run."""

    run_id: str
    run_date: date
    as_of: date
    claims_effective_date: date
    settings: Settings
    dry_run: bool
