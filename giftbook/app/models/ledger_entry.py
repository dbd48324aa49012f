"""
Ledger Entry database model.

One recorded monetary gift, given or received, at a life event.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, Numeric, Date, DateTime, ForeignKey, Enum
from giftbook.app.db.session import Base
from giftbook.app.models.enums import TransactionType


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LedgerEntry(Base):
    """
    Ledger Entry model.

    Every entry belongs to exactly one owner; owner_id is never changed
    after creation and every query filters on it.
    Amounts are whole currency units (scale 0).
    """
    __tablename__ = "gift_ledger_entries"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership
    owner_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # Event
    event_date = Column(Date, nullable=False, index=True)
    event_type = Column(String(50), nullable=False)
    transaction_type = Column(
        Enum(TransactionType, name="transaction_type"),
        default=TransactionType.RECEIVED,
        nullable=False
    )

    # Counterparty
    counterparty_name = Column(String(100), nullable=False, index=True)
    relation = Column(String(50), nullable=True)
    contact = Column(String(50), nullable=True)

    # Financials
    amount = Column(Numeric(12, 0), nullable=False)
    memo = Column(Text, nullable=True)

    # Timestamps (set in Python so they are available without a refresh)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    def __repr__(self):
        return (
            f"<LedgerEntry(id={self.id}, owner_id={self.owner_id}, "
            f"type='{self.transaction_type}', amount={self.amount})>"
        )
