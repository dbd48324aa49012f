"""
Ledger API Endpoints.

Entry CRUD, paginated listing and batch upload for the authenticated owner.
Every route is owner-scoped: another owner's entry id is answered with 404.
"""

import os
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from giftbook.app.core.config import settings
from giftbook.app.core.dependencies import get_current_owner_id
from giftbook.app.core.exceptions import ValidationError
from giftbook.app.db.session import get_db
from giftbook.app.domain.ledger.batch_importer import BatchImporter
from giftbook.app.domain.ledger.table_reader import SUPPORTED_EXTENSIONS, open_table
from giftbook.app.models.enums import TransactionType
from giftbook.app.schemas.ledger import (
    BatchImportResult,
    LedgerEntryDraft,
    LedgerEntryPage,
    LedgerEntryResponse,
)
from giftbook.app.services.ledger_service import LedgerService

router = APIRouter(prefix="/ledger", tags=["Ledger"])


@router.post("/entries", response_model=LedgerEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(
    draft: LedgerEntryDraft,
    owner_id: int = Depends(get_current_owner_id),
    db: AsyncSession = Depends(get_db)
):
    """Record a single gift-money entry."""
    entry = await LedgerService.create(db, owner_id, draft)
    return LedgerEntryResponse.model_validate(entry)


@router.get("/entries", response_model=LedgerEntryPage)
async def list_entries(
    page: int = Query(0, ge=0, description="Zero-based page index"),
    size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Items per page"),
    search: Optional[str] = Query(None, description="Substring of the counterparty name"),
    transaction_type: Optional[TransactionType] = Query(None, description="RECEIVED or SENT"),
    owner_id: int = Depends(get_current_owner_id),
    db: AsyncSession = Depends(get_db)
):
    """
    List the owner's entries, newest event first.

    search and transaction_type may be combined.
    """
    return await LedgerService.list(db, owner_id, page, size, search, transaction_type)


@router.post("/entries/upload", response_model=BatchImportResult)
async def upload_entries(
    file: UploadFile = File(..., description="Excel (.xlsx) or CSV file in the template layout"),
    owner_id: int = Depends(get_current_owner_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Import every row of an uploaded sheet.

    All rows are stored or none are: a single invalid row rejects the whole
    file and the response lists every invalid row.
    """
    data = await file.read()

    if not data:
        raise ValidationError("파일이 비어있습니다")

    if len(data) > settings.max_upload_size_bytes:
        limit_mb = settings.max_upload_size_bytes // (1024 * 1024)
        raise ValidationError(f"파일 크기는 {limit_mb}MB 이하여야 합니다")

    extension = os.path.splitext(file.filename or "")[1].lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise ValidationError(
            "Excel(.xlsx) 또는 CSV 파일만 업로드 가능합니다",
            details={"filename": file.filename}
        )

    table = open_table(data, file.filename)
    return await BatchImporter.import_batch(db, owner_id, table)


@router.get("/entries/{entry_id}", response_model=LedgerEntryResponse)
async def get_entry(
    entry_id: int,
    owner_id: int = Depends(get_current_owner_id),
    db: AsyncSession = Depends(get_db)
):
    """Get one of the owner's entries."""
    entry = await LedgerService.get(db, owner_id, entry_id)
    return LedgerEntryResponse.model_validate(entry)


@router.put("/entries/{entry_id}", response_model=LedgerEntryResponse)
async def update_entry(
    entry_id: int,
    draft: LedgerEntryDraft,
    owner_id: int = Depends(get_current_owner_id),
    db: AsyncSession = Depends(get_db)
):
    """Replace every field of one of the owner's entries."""
    entry = await LedgerService.update(db, owner_id, entry_id, draft)
    return LedgerEntryResponse.model_validate(entry)


@router.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_id: int,
    owner_id: int = Depends(get_current_owner_id),
    db: AsyncSession = Depends(get_db)
):
    """Delete one of the owner's entries."""
    await LedgerService.delete(db, owner_id, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
