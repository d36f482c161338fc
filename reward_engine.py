"""Reward engine: one deterministic ledger-slot transition.

    reward = round_half_up(base_reward * multiplier * scaling_factor / 2 ** decay_exponent)

All arithmetic is exact (fractions and integer shifts). The engine never
touches storage; callers load the prior entry, call `apply`, and persist the
returned entry only if no error was raised.
"""

from __future__ import annotations

import logging
from fractions import Fraction
from typing import NamedTuple, Optional

from anti_farming import advance
from pricing import multiplier
from reward_config import ActivityConfig, get_activity_config, get_scaling_factor
from reward_errors import ConfigError, InvalidRequest, Overflow
from reward_ledger import U64_MAX, RewardLedgerEntry, RewardRequest

logger = logging.getLogger(__name__)


def round_half_up(value, shift: int = 0) -> int:
    """Round the non-negative rational ``value / 2**shift`` to the nearest int, ties up.

    Large shifts short-circuit to 0 instead of building a 2**shift integer.
    """
    value = Fraction(value)
    if value < 0:
        raise ValueError("round_half_up expects a non-negative value")
    if shift < 0:
        raise ValueError("shift must be non-negative")

    numerator, denominator = value.numerator, value.denominator
    # numerator < 2**bit_length, so the quotient is below 1/4 here.
    if shift >= numerator.bit_length() + 2:
        return 0
    denominator <<= shift
    return (2 * numerator + denominator) // (2 * denominator)


class RewardQuote(NamedTuple):
    base_reward: Fraction
    multiplier: Fraction
    consecutive_count: int
    decay_exponent: int
    scaled_reward: Fraction   # before decay and rounding
    reward_amount: int


class RewardEngine:
    def __init__(self, activity_config: Optional[ActivityConfig] = None, scaling_factor: Optional[int] = None):
        self.activity_config = activity_config if activity_config is not None else get_activity_config()
        if scaling_factor is None:
            scaling_factor = get_scaling_factor()
        if isinstance(scaling_factor, bool) or not isinstance(scaling_factor, int) or scaling_factor <= 0:
            raise ConfigError(f"scaling_factor must be a positive integer, got {scaling_factor!r}")
        self.scaling_factor = scaling_factor

    def quote(self, request: RewardRequest, prior_entry: Optional[RewardLedgerEntry] = None) -> RewardQuote:
        """Compute the full reward breakdown without building an entry."""
        if not isinstance(request, RewardRequest):
            raise InvalidRequest(f"Expected a RewardRequest, got {type(request).__name__}")

        base_reward = self.activity_config.lookup(request.activity)
        mult = multiplier(request.num_tasks, request.num_users)
        streak = advance(prior_entry, request.activity)

        scaled = base_reward * mult * self.scaling_factor
        amount = round_half_up(scaled, streak.decay_exponent)
        if amount > U64_MAX:
            raise Overflow(f"Reward {amount} for {request.activity!r} exceeds {U64_MAX}")

        return RewardQuote(
            base_reward=base_reward,
            multiplier=mult,
            consecutive_count=streak.consecutive_count,
            decay_exponent=streak.decay_exponent,
            scaled_reward=scaled,
            reward_amount=amount,
        )

    def apply(self, request: RewardRequest, prior_entry: Optional[RewardLedgerEntry] = None) -> RewardLedgerEntry:
        return self.entry_from_quote(request, self.quote(request, prior_entry))

    def entry_from_quote(self, request: RewardRequest, quote: RewardQuote) -> RewardLedgerEntry:
        entry = RewardLedgerEntry(
            owner=request.user,
            activity=request.activity,
            num_tasks=request.num_tasks,
            num_users=request.num_users,
            consecutive_count=quote.consecutive_count,
            reward_amount=quote.reward_amount,
        )
        logger.debug(
            "reward applied owner=%s activity=%s streak=%d amount=%d",
            entry.owner, entry.activity, entry.consecutive_count, entry.reward_amount,
        )
        return entry
