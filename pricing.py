"""Demand/supply multiplier.

More open tasks than active users raises rewards, more users than tasks
lowers them. Values are exact fractions so rewards are reproducible.
"""

from __future__ import annotations

from fractions import Fraction


DEMAND_HIGH = "high"
DEMAND_LOW = "low"
DEMAND_BALANCED = "balanced"

HIGH_DEMAND_MULTIPLIER = Fraction(6, 5)   # 1.20
LOW_DEMAND_MULTIPLIER = Fraction(9, 10)   # 0.90
BALANCED_MULTIPLIER = Fraction(1)

_MULTIPLIERS = {
    DEMAND_HIGH: HIGH_DEMAND_MULTIPLIER,
    DEMAND_LOW: LOW_DEMAND_MULTIPLIER,
    DEMAND_BALANCED: BALANCED_MULTIPLIER,
}


def demand_level(num_tasks: int, num_users: int) -> str:
    if num_tasks > num_users:
        return DEMAND_HIGH
    if num_users > num_tasks:
        return DEMAND_LOW
    return DEMAND_BALANCED


def multiplier(num_tasks: int, num_users: int) -> Fraction:
    return _MULTIPLIERS[demand_level(num_tasks, num_users)]
