"""England & Wales bank holidays observed by the London Stock Exchange."""

from __future__ import annotations

from datetime import date

_BANK_HOLIDAYS: dict[int, tuple[str, ...]] = {
    2024: ("01-01", "03-29", "04-01", "05-06", "05-27", "08-26", "12-25", "12-26"),
    2025: ("01-01", "04-18", "04-21", "05-05", "05-26", "08-25", "12-25", "12-26"),
    2026: ("01-01", "04-03", "04-06", "05-04", "05-25", "08-31", "12-25", "12-28"),
    2027: ("01-01", "03-26", "03-29", "05-03", "05-31", "08-30", "12-27", "12-28"),
    2028: ("01-03", "04-14", "04-17", "05-01", "05-29", "08-28", "12-25", "12-26"),
    2029: ("01-01", "03-30", "04-02", "05-07", "05-28", "08-27", "12-25", "12-26"),
    2030: ("01-01", "04-19", "04-22", "05-06", "05-27", "08-26", "12-25", "12-26"),
}


def _expand(table: dict[int, tuple[str, ...]]) -> frozenset[date]:
    days: set[date] = set()
    for year, entries in table.items():
        for entry in entries:
            month, day = entry.split("-")
            days.add(date(year, int(month), int(day)))
    return frozenset(days)


UK_BANK_HOLIDAYS: frozenset[date] = _expand(_BANK_HOLIDAYS)


def is_bank_holiday(day: date) -> bool:
    return day in UK_BANK_HOLIDAYS


__all__ = ["UK_BANK_HOLIDAYS", "is_bank_holiday"]
