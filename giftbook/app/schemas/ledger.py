"""
Ledger Pydantic schemas.

Defines the entry draft used by create/update and by every import row,
plus the response models for entries, pages and batch imports.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

from giftbook.app.models.enums import TransactionType

# Money is Decimal in Python; JSON gets plain numbers.
Amount = Annotated[Decimal, PlainSerializer(lambda v: int(v), return_type=int, when_used="json")]
Average = Annotated[Decimal, PlainSerializer(lambda v: float(v), return_type=float, when_used="json")]

EVENT_TYPE_MAX_LENGTH = 50
COUNTERPARTY_NAME_MAX_LENGTH = 100
RELATION_MAX_LENGTH = 50

# Numeric(12, 0) column
AMOUNT_MAX = Decimal("999999999999")

CONTACT_PATTERN = re.compile(r"^\d{2,3}-\d{3,4}-\d{4}$")
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_iso_date(value: str) -> date:
    """Parse a strict ``yyyy-MM-dd`` string."""
    text = value.strip()
    if not ISO_DATE_PATTERN.match(text):
        raise ValueError("올바른 날짜 형식이 아닙니다 (yyyy-MM-dd)")
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise ValueError("올바른 날짜 형식이 아닙니다 (yyyy-MM-dd)") from None


class LedgerEntryDraft(BaseModel):
    """
    Schema for creating or fully replacing a ledger entry.

    Validation messages are user-facing; the batch importer reports them
    verbatim as row error reasons.
    """
    event_date: Optional[date] = Field(None, validate_default=True, description="Event date (yyyy-MM-dd)")
    event_type: Optional[str] = Field(None, validate_default=True, description="Event type, e.g. 결혼식")
    transaction_type: TransactionType = Field(
        default=TransactionType.RECEIVED, validate_default=True, description="RECEIVED or SENT"
    )
    counterparty_name: Optional[str] = Field(None, validate_default=True, description="Counterparty name")
    relation: Optional[str] = Field(None, description="Relation to the owner")
    amount: Optional[Decimal] = Field(None, validate_default=True, description="Positive whole amount")
    contact: Optional[str] = Field(None, description="Phone number, e.g. 010-1234-5678")
    memo: Optional[str] = Field(None, description="Free text memo")

    @field_validator("event_date", mode="before")
    @classmethod
    def _check_event_date(cls, value):
        if _blank(value):
            raise ValueError("행사 날짜는 필수입니다")
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            return parse_iso_date(value)
        raise ValueError("올바른 날짜 형식이 아닙니다")

    @field_validator("event_type", mode="before")
    @classmethod
    def _check_event_type(cls, value):
        if _blank(value):
            raise ValueError("행사 유형은 필수입니다")
        value = str(value).strip()
        if len(value) > EVENT_TYPE_MAX_LENGTH:
            raise ValueError(f"행사 유형은 {EVENT_TYPE_MAX_LENGTH}자 이내여야 합니다")
        return value

    @field_validator("transaction_type", mode="before")
    @classmethod
    def _check_transaction_type(cls, value):
        if _blank(value):
            return TransactionType.RECEIVED
        try:
            return TransactionType(value)
        except ValueError:
            raise ValueError("거래 유형은 RECEIVED 또는 SENT만 가능합니다") from None

    @field_validator("counterparty_name", mode="before")
    @classmethod
    def _check_counterparty_name(cls, value):
        if _blank(value):
            raise ValueError("이름은 필수입니다")
        value = str(value).strip()
        if len(value) > COUNTERPARTY_NAME_MAX_LENGTH:
            raise ValueError(f"이름은 {COUNTERPARTY_NAME_MAX_LENGTH}자 이내여야 합니다")
        return value

    @field_validator("relation", mode="before")
    @classmethod
    def _check_relation(cls, value):
        if _blank(value):
            return None
        value = str(value).strip()
        if len(value) > RELATION_MAX_LENGTH:
            raise ValueError(f"관계는 {RELATION_MAX_LENGTH}자 이내여야 합니다")
        return value

    @field_validator("amount", mode="before")
    @classmethod
    def _check_amount(cls, value):
        if _blank(value):
            raise ValueError("금액은 필수입니다")
        if isinstance(value, bool):
            raise ValueError("올바른 금액 형식이 아닙니다")
        try:
            amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError("올바른 금액 형식이 아닙니다") from None
        if not amount.is_finite():
            raise ValueError("올바른 금액 형식이 아닙니다")
        if amount <= 0:
            raise ValueError("금액은 양수여야 합니다")
        if amount != amount.to_integral_value():
            raise ValueError("금액은 원 단위 정수여야 합니다")
        if amount > AMOUNT_MAX:
            raise ValueError(f"금액은 {AMOUNT_MAX:,}원 이하여야 합니다")
        return amount

    @field_validator("contact", mode="before")
    @classmethod
    def _check_contact(cls, value):
        if _blank(value):
            return None
        value = str(value).strip()
        if not CONTACT_PATTERN.match(value):
            raise ValueError("올바른 전화번호 형식이 아닙니다")
        return value

    @field_validator("memo", mode="before")
    @classmethod
    def _check_memo(cls, value):
        if _blank(value):
            return None
        return str(value)


class LedgerEntryResponse(BaseModel):
    """Schema for ledger entry response."""
    id: int
    owner_id: int
    event_date: date
    event_type: str
    transaction_type: TransactionType
    counterparty_name: str
    relation: Optional[str]
    amount: Amount
    contact: Optional[str]
    memo: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LedgerEntryPage(BaseModel):
    """Schema for a page of ledger entries (page is zero-based)."""
    entries: List[LedgerEntryResponse]
    total: int
    page: int
    size: int
    total_pages: int


class ImportRowError(BaseModel):
    """One rejected import row (row is the 1-based sheet row number)."""
    row: int
    reason: str


class BatchImportResult(BaseModel):
    """Outcome of a committed batch import."""
    success_count: int
    fail_count: int = 0
    errors: List[ImportRowError] = Field(default_factory=list)
