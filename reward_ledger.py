"""Reward request and ledger entry value types.

A ledger entry is the latest state of one ledger slot. It is rebuilt from
scratch on every application; nothing here mutates an existing entry.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from reward_errors import InvalidEntry, InvalidRequest


U32_MAX = 2**32 - 1
U64_MAX = 2**64 - 1

ENTRY_FIELDS = (
    "owner",
    "activity",
    "num_tasks",
    "num_users",
    "consecutive_count",
    "reward_amount",
)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_text(error, name: str, value) -> None:
    if not isinstance(value, str) or not value.strip():
        raise error(f"{name} must be a non-empty string")


def _check_range(error, name: str, value, low: int, high: int) -> None:
    if not _is_int(value):
        raise error(f"{name} must be an integer, got {type(value).__name__}")
    if value < low or value > high:
        raise error(f"{name}={value} is outside [{low}, {high}]")


@dataclass(frozen=True)
class RewardRequest:
    """An authenticated request to reward `user` for `activity`."""

    user: str
    activity: str
    num_tasks: int
    num_users: int

    def __post_init__(self):
        _check_text(InvalidRequest, "user", self.user)
        _check_text(InvalidRequest, "activity", self.activity)
        _check_range(InvalidRequest, "num_tasks", self.num_tasks, 0, U64_MAX)
        _check_range(InvalidRequest, "num_users", self.num_users, 0, U64_MAX)


@dataclass(frozen=True)
class RewardLedgerEntry:
    owner: str
    activity: str
    num_tasks: int
    num_users: int
    consecutive_count: int
    reward_amount: int

    def __post_init__(self):
        _check_text(InvalidEntry, "owner", self.owner)
        _check_text(InvalidEntry, "activity", self.activity)
        _check_range(InvalidEntry, "num_tasks", self.num_tasks, 0, U64_MAX)
        _check_range(InvalidEntry, "num_users", self.num_users, 0, U64_MAX)
        _check_range(InvalidEntry, "consecutive_count", self.consecutive_count, 1, U32_MAX)
        _check_range(InvalidEntry, "reward_amount", self.reward_amount, 0, U64_MAX)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data) -> "RewardLedgerEntry":
        if not isinstance(data, dict):
            raise InvalidEntry("Ledger entry must be a mapping")
        missing = [name for name in ENTRY_FIELDS if name not in data]
        if missing:
            raise InvalidEntry(f"Ledger entry is missing fields: {', '.join(missing)}")
        return cls(**{name: data[name] for name in ENTRY_FIELDS})
