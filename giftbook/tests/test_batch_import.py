"""
Integration tests for batch import.

Tests all-or-nothing uploads, per-row error reporting, amount parsing and
the upload guards.
"""

import csv
import io
from datetime import date

import openpyxl
import pytest
from sqlalchemy import func, select

from giftbook.app.core.exceptions import BatchImportError, OwnerNotFoundError
from giftbook.app.domain.ledger.batch_importer import BatchImporter
from giftbook.app.domain.ledger.row_parser import IMPORT_COLUMNS
from giftbook.app.domain.ledger.table_reader import CsvTableReader
from giftbook.app.models.enums import TransactionType
from giftbook.app.models.ledger_entry import LedgerEntry
from giftbook.app.services.template import build_template_csv

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def build_xlsx(rows, header=IMPORT_COLUMNS) -> bytes:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.append(list(header))
    for row in rows:
        ws.append(list(row))
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def build_csv(rows, header=IMPORT_COLUMNS) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue().encode("utf-8")


def valid_rows(count=5):
    return [
        (date(2024, 3, day + 1), "결혼식", f"하객{day}", "친구", 50000 + day * 10000, "010-1234-5678", "")
        for day in range(count)
    ]


async def upload(client, headers, data, filename="entries.xlsx", mime=XLSX_MIME):
    return await client.post(
        "/v1/ledger/entries/upload",
        files={"file": (filename, data, mime)},
        headers=headers,
    )


async def count_entries(db_session, owner_id):
    result = await db_session.execute(
        select(func.count(LedgerEntry.id)).where(LedgerEntry.owner_id == owner_id)
    )
    return result.scalar()


# --- Atomicity ---

async def test_valid_batch_commits_every_row(client, owner, owner_headers, db_session):
    response = await upload(client, owner_headers, build_xlsx(valid_rows()))

    assert response.status_code == 200, response.text
    assert response.json() == {"success_count": 5, "fail_count": 0, "errors": []}
    assert await count_entries(db_session, owner.id) == 5


async def test_one_bad_row_rejects_whole_batch(client, owner, owner_headers, db_session):
    """Test that a non-positive amount on the third data row stores nothing."""
    rows = valid_rows()
    rows[2] = rows[2][:4] + (0,) + rows[2][5:]

    response = await upload(client, owner_headers, build_xlsx(rows))

    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "ERR_IMPORT_001"
    assert body["details"]["success_count"] == 0
    assert body["details"]["fail_count"] == 1
    # Header is sheet row 1, so the third data row is row 4
    assert body["details"]["errors"] == [{"row": 4, "reason": "금액은 양수여야 합니다"}]
    assert "4행: 금액은 양수여야 합니다" in body["message"]
    assert await count_entries(db_session, owner.id) == 0

    # Corrected file goes through in full
    fixed = await upload(client, owner_headers, build_xlsx(valid_rows()))
    assert fixed.json()["success_count"] == 5
    assert await count_entries(db_session, owner.id) == 5


async def test_every_bad_row_is_reported(client, owner_headers):
    rows = [
        (date(2024, 1, 1), "결혼식", "홍길동", "친구", 10000, None, None),
        (None, "장례식", "김철수", None, 20000, None, None),
        (date(2024, 1, 3), None, "이영희", None, 30000, None, None),
        (date(2024, 1, 4), "돌잔치", None, None, 40000, None, None),
        (date(2024, 1, 5), "개업", "박민수", None, None, None, None),
    ]

    response = await upload(client, owner_headers, build_xlsx(rows))

    errors = response.json()["details"]["errors"]
    assert errors == [
        {"row": 3, "reason": "행사 날짜는 필수입니다"},
        {"row": 4, "reason": "행사 유형은 필수입니다"},
        {"row": 5, "reason": "보낸 사람 이름은 필수입니다"},
        {"row": 6, "reason": "금액은 필수입니다"},
    ]


async def test_blank_rows_are_skipped(client, owner, owner_headers, db_session):
    rows = valid_rows(2)
    rows.insert(1, (None,) * 7)

    response = await upload(client, owner_headers, build_xlsx(rows))

    assert response.json()["success_count"] == 2
    assert await count_entries(db_session, owner.id) == 2


async def test_header_only_file_imports_nothing(client, owner_headers):
    response = await upload(client, owner_headers, build_xlsx([]))

    assert response.status_code == 200
    assert response.json()["success_count"] == 0


# --- Cell parsing ---

async def test_amount_text_with_thousands_separator(client, owner, owner_headers, db_session):
    rows = [("2024-04-01", "결혼식", "홍길동", "친구", "1,000", "010-1234-5678", "")]

    response = await upload(client, owner_headers, build_xlsx(rows))

    assert response.json()["success_count"] == 1
    entry = (await db_session.execute(select(LedgerEntry))).scalar_one()
    assert entry.amount == 1000
    assert entry.event_date == date(2024, 4, 1)
    assert entry.transaction_type == TransactionType.RECEIVED
    assert entry.owner_id == owner.id


@pytest.mark.parametrize("amount, reason", [
    ("-5", "금액은 양수여야 합니다"),
    (0, "금액은 양수여야 합니다"),
    (-5, "금액은 양수여야 합니다"),
    ("abc", "올바른 금액 형식이 아닙니다"),
    (1000.5, "금액은 원 단위 정수여야 합니다"),
    ("1,000,000,000,000", "금액은 999,999,999,999원 이하여야 합니다"),
    (10 ** 12, "금액은 999,999,999,999원 이하여야 합니다"),
])
async def test_invalid_amounts(client, owner_headers, amount, reason):
    rows = [("2024-04-01", "결혼식", "홍길동", "친구", amount, None, None)]

    response = await upload(client, owner_headers, build_xlsx(rows))

    assert response.status_code == 400
    assert response.json()["details"]["errors"] == [{"row": 2, "reason": reason}]


async def test_invalid_date_text(client, owner_headers):
    rows = [("2024.04.01", "결혼식", "홍길동", "친구", 10000, None, None)]

    response = await upload(client, owner_headers, build_xlsx(rows))

    assert response.json()["details"]["errors"] == [
        {"row": 2, "reason": "올바른 날짜 형식이 아닙니다 (yyyy-MM-dd)"}
    ]


async def test_invalid_contact(client, owner_headers):
    rows = [("2024-04-01", "결혼식", "홍길동", "친구", 10000, "1234", None)]

    response = await upload(client, owner_headers, build_xlsx(rows))

    assert response.json()["details"]["errors"] == [
        {"row": 2, "reason": "올바른 전화번호 형식이 아닙니다"}
    ]


async def test_numeric_and_formula_cells_become_text(client, owner_headers, db_session):
    rows = [(date(2024, 4, 1), "결혼식", "홍길동", "=A1", 10000, None, 12345)]

    response = await upload(client, owner_headers, build_xlsx(rows))

    assert response.json()["success_count"] == 1
    entry = (await db_session.execute(select(LedgerEntry))).scalar_one()
    assert entry.relation == "A1"
    assert entry.memo == "12345"


# --- CSV and the template ---

async def test_csv_upload(client, owner, owner_headers, db_session):
    data = build_csv([
        ("2024-05-01", "장례식", "김철수", "가족", "200000", "010-9876-5432", "삼촌"),
        ("2024-05-02", "돌잔치", "이영희", "", "50000", "", ""),
    ])

    response = await upload(client, owner_headers, data, filename="entries.csv", mime="text/csv")

    assert response.json()["success_count"] == 2
    assert await count_entries(db_session, owner.id) == 2


async def test_csv_quoted_amount_with_thousands_separator(client, owner_headers, db_session):
    data = build_csv([("2024-05-03", "개업", "박민수", "", "1,000", "", "")])
    assert b'"1,000"' in data

    response = await upload(client, owner_headers, data, filename="entries.csv", mime="text/csv")

    assert response.json() == {"success_count": 1, "fail_count": 0, "errors": []}
    entry = (await db_session.execute(select(LedgerEntry))).scalar_one()
    assert entry.amount == 1000
    assert entry.contact is None


async def test_downloaded_template_uploads_cleanly(client, owner_headers):
    """Test that the template's sample rows are themselves a valid upload."""
    template = await client.get("/v1/template/download")

    response = await upload(client, owner_headers, template.content, filename="gift_money_template.csv", mime="text/csv")

    assert response.status_code == 200
    assert response.json()["success_count"] == 3


# --- Upload guards ---

async def test_empty_file_rejected(client, owner_headers):
    response = await upload(client, owner_headers, b"")

    assert response.status_code == 400
    assert response.json()["message"] == "파일이 비어있습니다"


async def test_oversized_file_rejected(client, owner_headers, mocker):
    mocker.patch("giftbook.app.api.v1.endpoints.ledger.settings.max_upload_size_bytes", 10)

    response = await upload(client, owner_headers, build_csv(valid_rows(1)), filename="entries.csv")

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION_001"


async def test_unsupported_extension_rejected(client, owner_headers):
    response = await upload(client, owner_headers, b"a,b,c", filename="entries.txt", mime="text/plain")

    assert response.status_code == 400
    assert response.json()["details"]["filename"] == "entries.txt"


async def test_corrupt_xlsx_rejected(client, owner_headers):
    response = await upload(client, owner_headers, b"PK\x03\x04not really a workbook")

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_IMPORT_002"


async def test_upload_for_unknown_owner(client, auth_headers):
    response = await upload(client, auth_headers(9999), build_xlsx(valid_rows(1)))

    assert response.status_code == 404


# --- Importer directly ---

async def test_importer_raises_with_all_errors(db_session, owner):
    table = CsvTableReader(build_csv([
        ("2024-05-01", "결혼식", "홍길동", "", "-5", "", ""),
        ("2024-05-02", "결혼식", "김철수", "", "1,000", "", ""),
    ]))

    with pytest.raises(BatchImportError) as exc_info:
        await BatchImporter.import_batch(db_session, owner.id, table)

    assert exc_info.value.errors == [{"row": 2, "reason": "금액은 양수여야 합니다"}]
    assert await count_entries(db_session, owner.id) == 0


async def test_importer_checks_owner_first(db_session):
    with pytest.raises(OwnerNotFoundError):
        await BatchImporter.import_batch(db_session, 9999, CsvTableReader(b""))
