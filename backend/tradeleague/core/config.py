from datetime import time
from functools import lru_cache
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from pydantic import AnyUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _ensure_sqlalchemy_postgres_scheme(value: str) -> str:
    if not value.lower().startswith("postgres"):
        return value

    parsed = urlparse(value)
    scheme = parsed.scheme.lower()

    if scheme == "postgres":
        scheme = "postgresql"

    if scheme == "postgresql":
        scheme = "postgresql+psycopg"

    if scheme not in {"postgresql+psycopg", "postgresql+asyncpg"}:
        scheme = "postgresql+psycopg"

    query_params = dict(parse_qsl(parsed.query, keep_blank_values=True))
    query_params.setdefault("target_session_attrs", "read-write")
    new_query = urlencode(query_params, doseq=True)

    return urlunparse(parsed._replace(scheme=scheme, query=new_query))


def _parse_clock(value: str, field_name: str) -> time:
    if len(value) != 5 or value[2] != ":":
        raise ValueError(f"{field_name} must be formatted as HH:MM")
    hours, minutes = value.split(":", 1)
    if not (hours.isdigit() and minutes.isdigit()):
        raise ValueError(f"{field_name} must contain numeric hour and minute")
    hour_int = int(hours)
    minute_int = int(minutes)
    if not 0 <= hour_int < 24 or not 0 <= minute_int < 60:
        raise ValueError(f"{field_name} hour must be 0-23 and minute 0-59")
    return time(hour_int, minute_int)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    debug: bool = Field(False, description="Enable FastAPI debug mode and SQL echo")
    environment: str = Field(
        default="development",
        description="Runtime environment (development|staging|production)",
    )
    database_url: AnyUrl | str = Field(
        default="sqlite:///./data/tradeleague.db",
        description="SQLAlchemy compatible database URL",
    )
    market_timezone: str = Field(
        default="Europe/London",
        description="IANA timezone of the exchange whose session gates roster changes",
    )
    market_open_time: str = Field(
        default="08:00",
        description="Local exchange open time in HH:MM (24h)",
    )
    market_close_time: str = Field(
        default="16:30",
        description="Local exchange close time in HH:MM (24h), exclusive",
    )
    quote_base_url: AnyUrl | str = Field(
        default="https://query1.finance.yahoo.com",
        description="Base URL for the end-of-day quote provider",
    )
    quote_chart_path: str = Field(
        default="/v8/finance/chart/{symbol}",
        description="Relative chart endpoint; {symbol} is substituted per request",
    )
    quote_profile_path: str = Field(
        default="/v7/finance/quote",
        description="Relative quote endpoint used for instrument name and market cap",
    )
    quote_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout applied to every quote provider request",
        gt=0,
    )
    price_lookback_days: int = Field(
        default=90,
        description="Days of history fetched for a symbol with no stored prices",
        ge=1,
    )
    price_fetch_delay_seconds: float = Field(
        default=0.15,
        description="Pause between consecutive symbol fetches",
        ge=0,
    )
    price_fetch_retry_backoff_seconds: list[float] | tuple[float, ...] | str = Field(
        default_factory=lambda: [0.25, 0.5, 0.75],
        description="Comma-separated list or array of backoff delays (seconds) between quote retries",
    )
    default_faab_budget: int = Field(
        default=100,
        description="Free-agent acquisition budget granted to newly created teams",
        ge=0,
    )

    @field_validator("market_open_time", "market_close_time")
    @classmethod
    def _validate_clock(cls, value: str, info) -> str:
        _parse_clock(value, info.field_name)
        return value

    @field_validator("database_url", mode="before")
    @classmethod
    def _normalize_postgres_urls(cls, value: Any) -> Any:
        if value is None or not isinstance(value, str):
            return value

        if value.startswith("postgresql+psycopg://") or value.startswith(
            "postgresql+asyncpg://"
        ):
            return value

        normalized = value
        if normalized.startswith("postgres://"):
            normalized = "postgresql://" + normalized[len("postgres://") :]

        return normalized

    @field_validator("price_fetch_retry_backoff_seconds", mode="before")
    @classmethod
    def _parse_retry_backoff(cls, value: Any) -> list[float]:
        if value in (None, "", []):
            return [0.25, 0.5, 0.75]
        if isinstance(value, str):
            tokens = [token.strip() for token in value.split(",") if token.strip()]
            if not tokens:
                raise ValueError("PRICE_FETCH_RETRY_BACKOFF_SECONDS must contain at least one value")
            value = tokens
        if isinstance(value, (list, tuple)):
            backoff: list[float] = []
            for item in value:
                try:
                    delay = float(item)
                except (TypeError, ValueError) as exc:
                    raise ValueError("PRICE_FETCH_RETRY_BACKOFF_SECONDS entries must be numeric") from exc
                if delay <= 0:
                    raise ValueError("PRICE_FETCH_RETRY_BACKOFF_SECONDS entries must be positive")
                backoff.append(delay)
            if not backoff:
                raise ValueError("PRICE_FETCH_RETRY_BACKOFF_SECONDS must contain at least one value")
            return backoff
        raise ValueError(
            "PRICE_FETCH_RETRY_BACKOFF_SECONDS must be provided as a comma-separated string or list of numbers"
        )

    @property
    def resolved_database_url(self) -> str:
        return _ensure_sqlalchemy_postgres_scheme(str(self.database_url))

    @property
    def market_session(self) -> tuple[time, time]:
        return (
            _parse_clock(self.market_open_time, "market_open_time"),
            _parse_clock(self.market_close_time, "market_close_time"),
        )

    @property
    def price_fetch_retry_schedule(self) -> tuple[float, ...]:
        sequence = tuple(float(value) for value in self.price_fetch_retry_backoff_seconds)
        if not sequence:
            return (0.25,)
        return sequence


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
