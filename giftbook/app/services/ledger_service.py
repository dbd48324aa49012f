"""
Ledger Service (entry lifecycle).

Single-entry create/read/update/delete and paginated listing, all scoped
to one owner. An entry addressed with another owner's id behaves exactly
like a missing entry.
"""

from typing import Optional
import logging
import math

from sqlalchemy.ext.asyncio import AsyncSession

from giftbook.app.core.exceptions import LedgerEntryNotFoundError, ValidationError
from giftbook.app.models.enums import TransactionType
from giftbook.app.models.ledger_entry import LedgerEntry, utc_now
from giftbook.app.schemas.ledger import LedgerEntryDraft, LedgerEntryPage, LedgerEntryResponse
from giftbook.app.services.ledger_store import LedgerStore
from giftbook.app.services.owner_resolver import ensure_owner

logger = logging.getLogger(__name__)


def _apply_draft(entry: LedgerEntry, draft: LedgerEntryDraft) -> None:
    """Overwrite every mutable field of entry with the draft's values."""
    entry.event_date = draft.event_date
    entry.event_type = draft.event_type
    entry.transaction_type = draft.transaction_type
    entry.counterparty_name = draft.counterparty_name
    entry.relation = draft.relation
    entry.amount = draft.amount
    entry.contact = draft.contact
    entry.memo = draft.memo


class LedgerService:

    @staticmethod
    async def create(db: AsyncSession, owner_id: int, draft: LedgerEntryDraft) -> LedgerEntry:
        """
        Record a new entry for the owner.

        Raises:
            OwnerNotFoundError: owner does not exist or is inactive
        """
        await ensure_owner(db, owner_id)

        entry = LedgerEntry(owner_id=owner_id)
        _apply_draft(entry, draft)

        await LedgerStore(db).add(entry)
        logger.info("Ledger entry %s created for owner %s", entry.id, owner_id)
        return entry

    @staticmethod
    async def get(db: AsyncSession, owner_id: int, entry_id: int) -> LedgerEntry:
        """Fetch one of the owner's entries or raise LedgerEntryNotFoundError."""
        entry = await LedgerStore(db).get(owner_id, entry_id)
        if entry is None:
            raise LedgerEntryNotFoundError(entry_id)
        return entry

    @staticmethod
    async def update(db: AsyncSession, owner_id: int, entry_id: int, draft: LedgerEntryDraft) -> LedgerEntry:
        """
        Replace all mutable fields of an entry.

        updated_at is refreshed even when the new values equal the old ones.
        """
        await ensure_owner(db, owner_id)

        store = LedgerStore(db)
        entry = await store.get(owner_id, entry_id)
        if entry is None:
            raise LedgerEntryNotFoundError(entry_id)

        _apply_draft(entry, draft)
        entry.updated_at = utc_now()

        await store.save(entry)
        logger.info("Ledger entry %s updated for owner %s", entry_id, owner_id)
        return entry

    @staticmethod
    async def delete(db: AsyncSession, owner_id: int, entry_id: int) -> None:
        """Hard-delete one of the owner's entries."""
        await ensure_owner(db, owner_id)

        store = LedgerStore(db)
        entry = await store.get(owner_id, entry_id)
        if entry is None:
            raise LedgerEntryNotFoundError(entry_id)

        await store.delete(entry)
        logger.info("Ledger entry %s deleted for owner %s", entry_id, owner_id)

    @staticmethod
    async def list(
        db: AsyncSession,
        owner_id: int,
        page: int,
        size: int,
        search: Optional[str] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> LedgerEntryPage:
        """
        List the owner's entries, newest event first (ties: higher id first).

        Args:
            page: zero-based page index; past the end yields an empty page
            size: positive page size
            search: case-sensitive substring of counterparty_name; blank is ignored
            transaction_type: restrict to RECEIVED or SENT
        """
        if page < 0 or size < 1:
            raise ValidationError("페이지는 0 이상, 페이지 크기는 1 이상이어야 합니다")

        if search is not None and not search.strip():
            search = None

        entries, total = await LedgerStore(db).page(
            owner_id,
            offset=page * size,
            limit=size,
            search=search,
            transaction_type=transaction_type,
        )

        return LedgerEntryPage(
            entries=[LedgerEntryResponse.model_validate(e) for e in entries],
            total=total,
            page=page,
            size=size,
            total_pages=math.ceil(total / size) if size else 0,
        )
