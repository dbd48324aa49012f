"""
Ledger Store access layer.

Every read and write of ledger entries goes through here, always scoped
to one owner. Database failures are logged with full detail and re-raised
as StorageError, after the session has been rolled back.
"""

from contextlib import asynccontextmanager
from datetime import date
from typing import List, Optional, Sequence, Tuple
import logging

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from giftbook.app.core.exceptions import StorageError
from giftbook.app.models.enums import TransactionType
from giftbook.app.models.ledger_entry import LedgerEntry

logger = logging.getLogger(__name__)


def owner_filters(
    owner_id: int,
    search: Optional[str] = None,
    transaction_type: Optional[TransactionType] = None,
) -> list:
    """
    Compose the WHERE clauses for an owner-scoped entry query.

    The owner clause is always present; the type and name filters are only
    added when given, so every search/type combination shares one query.
    """
    clauses = [LedgerEntry.owner_id == owner_id]

    if transaction_type is not None:
        clauses.append(LedgerEntry.transaction_type == transaction_type)

    if search:
        clauses.append(LedgerEntry.counterparty_name.contains(search, autoescape=True))

    return clauses


class LedgerStore:
    """Owner-scoped persistence for ledger entries on one session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def _guard(self, operation: str):
        try:
            yield
        except SQLAlchemyError as exc:
            logger.exception("Ledger store operation '%s' failed", operation)
            await self.db.rollback()
            raise StorageError(operation) from exc

    async def get(self, owner_id: int, entry_id: int) -> Optional[LedgerEntry]:
        """Entry with this id owned by owner_id, else None."""
        async with self._guard("get"):
            result = await self.db.execute(
                select(LedgerEntry).where(
                    LedgerEntry.id == entry_id,
                    *owner_filters(owner_id)
                )
            )
            return result.scalar_one_or_none()

    async def page(
        self,
        owner_id: int,
        offset: int,
        limit: int,
        search: Optional[str] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> Tuple[List[LedgerEntry], int]:
        """One page of entries, newest event first, plus the filtered total."""
        clauses = owner_filters(owner_id, search, transaction_type)

        async with self._guard("page"):
            total_result = await self.db.execute(
                select(func.count(LedgerEntry.id)).where(*clauses)
            )
            total = total_result.scalar() or 0

            query = select(LedgerEntry).where(*clauses).order_by(
                LedgerEntry.event_date.desc(),
                LedgerEntry.id.desc()
            ).offset(offset).limit(limit)

            result = await self.db.execute(query)
            return list(result.scalars().all()), total

    async def statistics_rows(self, owner_id: int, since: Optional[date] = None) -> Sequence:
        """
        Snapshot of the columns the aggregation engine needs.

        A single SELECT, so a concurrent import is seen either entirely or
        not at all.
        """
        clauses = owner_filters(owner_id)
        if since is not None:
            clauses.append(LedgerEntry.event_date >= since)

        async with self._guard("statistics_rows"):
            result = await self.db.execute(
                select(
                    LedgerEntry.id,
                    LedgerEntry.event_date,
                    LedgerEntry.event_type,
                    LedgerEntry.transaction_type,
                    LedgerEntry.counterparty_name,
                    LedgerEntry.relation,
                    LedgerEntry.amount,
                ).where(*clauses)
            )
            return result.all()

    async def add(self, entry: LedgerEntry) -> LedgerEntry:
        """Insert one entry and commit."""
        async with self._guard("add"):
            self.db.add(entry)
            await self.db.commit()
        return entry

    async def add_all(self, entries: List[LedgerEntry]) -> int:
        """Insert every entry in a single transaction; nothing is kept on failure."""
        async with self._guard("add_all"):
            self.db.add_all(entries)
            await self.db.commit()
        return len(entries)

    async def save(self, entry: LedgerEntry) -> LedgerEntry:
        """Commit pending changes to an entry loaded from this store."""
        async with self._guard("save"):
            await self.db.commit()
        return entry

    async def delete(self, entry: LedgerEntry) -> None:
        """Hard-delete an entry loaded from this store."""
        async with self._guard("delete"):
            await self.db.delete(entry)
            await self.db.commit()
