"""Market-cap tiering of a season's instrument universe."""

from __future__ import annotations

import math

from .models import TIER_COSTS, TIER_COUNT


def tier_for_index(index: int, total: int) -> int:
    """Map a position in the market-cap ranking (largest first) to a tier.

    The ranking is cut into ``TIER_COUNT`` buckets of ``ceil(total / 5)``
    instruments; a short universe leaves the lower tiers empty.
    """

    bucket = max(1, math.ceil(total / TIER_COUNT))
    return min(TIER_COUNT, index // bucket + 1)


def tier_cost(tier: int) -> int:
    return TIER_COSTS.get(tier, 0)


__all__ = ["tier_cost", "tier_for_index"]
