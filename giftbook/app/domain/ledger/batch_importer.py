"""
Batch Importer (Domain Logic).

Validates every row of an uploaded table and commits all of them or none.
Must be transactional: a batch with any invalid row persists nothing.
"""

from typing import List
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from giftbook.app.core.exceptions import BatchImportError, RowParseError
from giftbook.app.domain.ledger.row_parser import parse_row
from giftbook.app.domain.ledger.table_reader import TableReader
from giftbook.app.models.ledger_entry import LedgerEntry
from giftbook.app.schemas.ledger import BatchImportResult, LedgerEntryDraft
from giftbook.app.services.ledger_store import LedgerStore
from giftbook.app.services.owner_resolver import ensure_owner

logger = logging.getLogger(__name__)

HEADER_ROW_INDEX = 0


class BatchImporter:

    @staticmethod
    async def import_batch(db: AsyncSession, owner_id: int, table: TableReader) -> BatchImportResult:
        """
        Import every data row of table for the owner.

        Flow:
        1. Resolve the owner (fails before any row is read)
        2. Parse every non-blank row after the header, collecting row errors
        3. Any error: persist nothing, raise BatchImportError with all of them
        4. Otherwise: insert all entries in one transaction

        Args:
            db: Database session; the owner lookup and the insert share its transaction
            owner_id: Owner the rows are imported for
            table: Source rows (header first)

        Returns:
            BatchImportResult with success_count = rows persisted

        Raises:
            OwnerNotFoundError: owner missing or inactive
            TableReadError: the table itself could not be read
            BatchImportError: at least one row was invalid
            StorageError: the insert failed (already rolled back)
        """
        # 1. Owner must exist
        await ensure_owner(db, owner_id)

        # 2. Parse everything first; errors accumulate
        drafts: List[LedgerEntryDraft] = []
        errors: List[dict] = []

        for row in table.rows():
            if row.index == HEADER_ROW_INDEX or row.is_blank:
                continue
            try:
                drafts.append(parse_row(row))
            except RowParseError as exc:
                logger.debug("Import row %s rejected for owner %s: %s", exc.row, owner_id, exc.reason)
                errors.append({"row": exc.row, "reason": exc.reason})

        # 3. All or nothing
        if errors:
            logger.info(
                "Batch import rejected for owner %s: %s invalid of %s rows",
                owner_id, len(errors), len(errors) + len(drafts)
            )
            # End the read-only transaction opened by the owner lookup
            await db.rollback()
            raise BatchImportError(errors)

        # 4. Single atomic write
        entries = [
            LedgerEntry(
                owner_id=owner_id,
                event_date=draft.event_date,
                event_type=draft.event_type,
                transaction_type=draft.transaction_type,
                counterparty_name=draft.counterparty_name,
                relation=draft.relation,
                amount=draft.amount,
                contact=draft.contact,
                memo=draft.memo,
            )
            for draft in drafts
        ]

        if entries:
            await LedgerStore(db).add_all(entries)
        else:
            await db.rollback()

        logger.info("Batch import committed %s entries for owner %s", len(entries), owner_id)
        return BatchImportResult(success_count=len(entries), fail_count=0, errors=[])
