"""Anti-farming streak tracking.

Repeating the same activity against one ledger slot grows a streak. The
first two occurrences are free; from the third on every repeat halves the
reward again. Switching activity resets the streak completely.
"""

from __future__ import annotations

from fractions import Fraction
from typing import NamedTuple, Optional

from reward_errors import InvalidEntry, Overflow
from reward_ledger import U32_MAX, RewardLedgerEntry


UNPENALIZED_STREAK = 2


class StreakAdvance(NamedTuple):
    consecutive_count: int
    decay_exponent: int

    @property
    def decay(self) -> Fraction:
        """Divisor applied to the reward, 2 ** decay_exponent."""
        return Fraction(1 << self.decay_exponent)


def decay_exponent(consecutive_count: int) -> int:
    return max(0, consecutive_count - UNPENALIZED_STREAK)


def advance(prior_entry: Optional[RewardLedgerEntry], requested_activity: str) -> StreakAdvance:
    if prior_entry is None:
        return StreakAdvance(1, 0)
    if not isinstance(prior_entry, RewardLedgerEntry):
        raise InvalidEntry(f"Expected a RewardLedgerEntry, got {type(prior_entry).__name__}")
    if prior_entry.activity != requested_activity:
        return StreakAdvance(1, 0)

    count = prior_entry.consecutive_count + 1
    if count > U32_MAX:
        raise Overflow(f"Streak for {requested_activity!r} would exceed {U32_MAX}")
    return StreakAdvance(count, decay_exponent(count))
