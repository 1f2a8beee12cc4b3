from __future__ import annotations

from datetime import time

import pytest
from pydantic import ValidationError

from tradeleague.core.config import Settings


def test_market_session_parses_clock_values():
    settings = Settings(market_open_time="07:45", market_close_time="16:35")

    assert settings.market_session == (time(7, 45), time(16, 35))


@pytest.mark.parametrize("value", ["8:00", "24:00", "08:60", "ab:cd"])
def test_invalid_clock_values_are_rejected(value):
    with pytest.raises(ValidationError):
        Settings(market_open_time=value)


def test_retry_backoff_accepts_comma_separated_string():
    settings = Settings(price_fetch_retry_backoff_seconds="1, 2.5,4")

    assert settings.price_fetch_retry_schedule == (1.0, 2.5, 4.0)


def test_retry_backoff_defaults_when_blank():
    settings = Settings(price_fetch_retry_backoff_seconds="")

    assert settings.price_fetch_retry_schedule == (0.25, 0.5, 0.75)


@pytest.mark.parametrize("value", ["0.5,-1", "fast", ","])
def test_retry_backoff_rejects_bad_values(value):
    with pytest.raises(ValidationError):
        Settings(price_fetch_retry_backoff_seconds=value)


def test_postgres_urls_are_normalized_for_psycopg():
    settings = Settings(database_url="postgres://user:pw@db.example.com:5432/league")

    assert settings.resolved_database_url == (
        "postgresql+psycopg://user:pw@db.example.com:5432/league?target_session_attrs=read-write"
    )


def test_sqlite_urls_are_left_alone():
    settings = Settings(database_url="sqlite:///./data/test.db")

    assert settings.resolved_database_url == "sqlite:///./data/test.db"
