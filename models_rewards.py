"""Reward ledger storage.

One row per ledger slot. The slot key is chosen by the caller and is opaque;
each write overwrites the row in place, so only the latest entry is kept.
Timestamps live here only: the reward core never sees the clock.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Column, DateTime, Index, Numeric, String
from sqlalchemy.types import TypeDecorator

from extensions import db
from reward_ledger import RewardLedgerEntry


class U64(TypeDecorator):
    """Unsigned 64-bit integer stored exactly.

    NUMERIC(20, 0) where the backend has exact decimals; SQLite would round
    through a float, so it gets the decimal digits as text.
    """

    impl = Numeric(20, 0)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(20))
        return dialect.type_descriptor(Numeric(20, 0))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "sqlite":
            return str(int(value))
        return int(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


class RewardLedgerSlot(db.Model):
    __tablename__ = "reward_ledger_slots"

    slot_key = Column(String(64), primary_key=True)
    owner = Column(String(64), nullable=False, index=True)
    activity = Column(String(64), nullable=False)
    # u64 values do not fit a signed BIGINT
    num_tasks = Column(U64(), nullable=False, default=0)
    num_users = Column(U64(), nullable=False, default=0)
    consecutive_count = Column(BigInteger, nullable=False, default=1)
    reward_amount = Column(U64(), nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_reward_slots_owner_updated", "owner", "updated_at"),
    )

    def to_entry(self) -> RewardLedgerEntry:
        """Rebuild the core entry; raises InvalidEntry if the row is corrupt."""
        return RewardLedgerEntry(
            owner=self.owner,
            activity=self.activity,
            num_tasks=int(self.num_tasks or 0),
            num_users=int(self.num_users or 0),
            consecutive_count=int(self.consecutive_count or 0),
            reward_amount=int(self.reward_amount or 0),
        )

    def write_entry(self, entry: RewardLedgerEntry, now: datetime | None = None) -> None:
        now = now or datetime.utcnow()
        self.owner = entry.owner
        self.activity = entry.activity
        self.num_tasks = entry.num_tasks
        self.num_users = entry.num_users
        self.consecutive_count = entry.consecutive_count
        self.reward_amount = entry.reward_amount
        if self.created_at is None:
            self.created_at = now
        self.updated_at = now

    def to_dict(self):
        return {
            "slot": self.slot_key,
            "owner": self.owner,
            "activity": self.activity,
            "num_tasks": int(self.num_tasks or 0),
            "num_users": int(self.num_users or 0),
            "consecutive_count": int(self.consecutive_count or 0),
            "reward_amount": int(self.reward_amount or 0),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
