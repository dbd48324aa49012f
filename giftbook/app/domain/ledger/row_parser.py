"""
Import row parsing.

Turns one sheet row into a validated LedgerEntryDraft using the fixed
column order of the import template. Any failure is raised as a
RowParseError carrying the 1-based row number and a user-facing reason.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from pydantic import ValidationError as SchemaValidationError

from giftbook.app.core.exceptions import RowParseError
from giftbook.app.domain.ledger.table_reader import CellKind, TableCell, TableRow
from giftbook.app.models.enums import TransactionType
from giftbook.app.schemas.ledger import LedgerEntryDraft, parse_iso_date

# Template header, in column order
IMPORT_COLUMNS = (
    "event_date",
    "event_type",
    "giver_name",
    "giver_relation",
    "amount",
    "contact",
    "memo",
)

COL_EVENT_DATE = 0
COL_EVENT_TYPE = 1
COL_COUNTERPARTY_NAME = 2
COL_RELATION = 3
COL_AMOUNT = 4
COL_CONTACT = 5
COL_MEMO = 6

_NON_AMOUNT_CHARS = re.compile(r"[^0-9.]")


def cell_text(cell: TableCell) -> Optional[str]:
    """Stringify any cell kind; None for blank cells."""
    if cell.is_blank:
        return None
    if cell.kind == CellKind.NUMERIC:
        number = cell.as_number()
        if isinstance(number, float) and not number.is_integer():
            return str(number)
        return str(int(number))
    if cell.kind == CellKind.BOOLEAN:
        return "true" if cell.as_boolean() else "false"
    if cell.kind == CellKind.DATE:
        return cell.as_date().isoformat()
    if cell.kind == CellKind.FORMULA:
        return cell.as_formula()
    return cell.as_text()


def _event_date(cell: TableCell):
    if cell.is_blank:
        raise ValueError("행사 날짜는 필수입니다")
    if cell.kind == CellKind.DATE:
        return cell.as_date()
    if cell.kind == CellKind.TEXT:
        return parse_iso_date(cell.as_text())
    raise ValueError("올바른 날짜 형식이 아닙니다")


def _amount(cell: TableCell) -> Decimal:
    if cell.is_blank:
        raise ValueError("금액은 필수입니다")
    if cell.kind == CellKind.NUMERIC:
        amount = Decimal(str(cell.as_number()))
    elif cell.kind == CellKind.TEXT:
        text = cell.as_text().strip()
        # Stripping below would silently turn "-5" into 5
        if "-" in text:
            raise ValueError("금액은 양수여야 합니다")
        digits = _NON_AMOUNT_CHARS.sub("", text)
        try:
            amount = Decimal(digits)
        except InvalidOperation:
            raise ValueError("올바른 금액 형식이 아닙니다") from None
    else:
        raise ValueError("올바른 금액 형식이 아닙니다")

    if not amount.is_finite():
        raise ValueError("올바른 금액 형식이 아닙니다")
    if amount <= 0:
        raise ValueError("금액은 양수여야 합니다")
    return amount


def _required_text(cell: TableCell, message: str) -> str:
    text = cell_text(cell)
    if text is None:
        raise ValueError(message)
    return text


def _first_reason(exc: SchemaValidationError) -> str:
    error = exc.errors()[0]
    ctx_error = (error.get("ctx") or {}).get("error")
    return str(ctx_error) if ctx_error is not None else error["msg"]


def parse_row(row: TableRow) -> LedgerEntryDraft:
    """
    Parse one data row into a draft.

    Imported entries are always RECEIVED; the template has no direction
    column.

    Raises:
        RowParseError: on the first missing or invalid value in the row
    """
    try:
        values = {
            "event_date": _event_date(row.cell(COL_EVENT_DATE)),
            "event_type": _required_text(row.cell(COL_EVENT_TYPE), "행사 유형은 필수입니다"),
            "counterparty_name": _required_text(row.cell(COL_COUNTERPARTY_NAME), "보낸 사람 이름은 필수입니다"),
            "relation": cell_text(row.cell(COL_RELATION)),
            "amount": _amount(row.cell(COL_AMOUNT)),
            "contact": cell_text(row.cell(COL_CONTACT)),
            "memo": cell_text(row.cell(COL_MEMO)),
            "transaction_type": TransactionType.RECEIVED,
        }
    except ValueError as exc:
        raise RowParseError(row.number, str(exc)) from exc

    try:
        return LedgerEntryDraft.model_validate(values)
    except SchemaValidationError as exc:
        raise RowParseError(row.number, _first_reason(exc)) from exc
