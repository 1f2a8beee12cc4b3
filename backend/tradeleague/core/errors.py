"""Error types raised by the settlement services."""

from __future__ import annotations


class RuleViolation(ValueError):
    """Raised when a roster change breaks a game rule; the message is user-facing."""


class NotFoundError(LookupError):
    """Raised when a referenced team, league, season, claim or trade does not exist."""


__all__ = ["NotFoundError", "RuleViolation"]
