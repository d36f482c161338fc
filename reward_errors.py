"""Errors raised by the reward core.

None of these are transient: callers should surface them unchanged and must
not persist anything when one is raised.
"""


class RewardError(Exception):
    """Base class for every reward computation failure."""


class ConfigError(RewardError):
    """Unknown activity, or the activity catalogue itself is malformed."""


class Overflow(RewardError):
    """Streak counter or reward amount does not fit its integer width."""


class InvalidEntry(RewardError):
    """A stored ledger entry violates its invariants (upstream corruption)."""


class InvalidRequest(RewardError):
    """Request fields are missing, of the wrong type, or out of range."""
