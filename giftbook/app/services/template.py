"""
Import template.

Builds the downloadable CSV template for batch uploads. The header matches
the column order the row parser reads, so a template filled in by hand can
be uploaded as-is.
"""

import csv
import io
from datetime import date, timedelta
from typing import Optional

from giftbook.app.domain.ledger.row_parser import IMPORT_COLUMNS
from giftbook.app.schemas.template import TemplateFormatInfo

TEMPLATE_FILENAME = "gift_money_template.csv"
TEMPLATE_MEDIA_TYPE = "text/csv; charset=utf-8"

UTF8_BOM = "\ufeff"

# (days after today, remaining columns)
SAMPLE_ROWS = (
    (0, ("결혼식", "홍길동", "친구", "100000", "010-1234-5678", "대학 동기")),
    (5, ("장례식", "김철수", "가족", "200000", "010-9876-5432", "삼촌")),
    (15, ("돌잔치", "이영희", "직장동료", "50000", "010-5555-1234", "같은 팀")),
)

FORMAT_DESCRIPTIONS = {
    "event_date": "행사 날짜 (yyyy-MM-dd 형식)",
    "event_type": "행사 유형 (결혼식, 장례식, 돌잔치, 개업, 기타)",
    "giver_name": "보낸 사람 이름",
    "giver_relation": "관계 (친구, 가족, 직장동료 등)",
    "amount": "금액 (숫자만, 쉼표 없이)",
    "contact": "연락처 (010-1234-5678 형식)",
    "memo": "메모 (선택 사항)",
}


def build_template_csv(today: Optional[date] = None) -> bytes:
    """UTF-8 (with BOM) CSV: header plus three sample rows dated from today."""
    today = today or date.today()

    buffer = io.StringIO()
    buffer.write(UTF8_BOM)
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(IMPORT_COLUMNS)
    for offset, values in SAMPLE_ROWS:
        writer.writerow(((today + timedelta(days=offset)).isoformat(),) + values)

    return buffer.getvalue().encode("utf-8")


def format_info() -> TemplateFormatInfo:
    return TemplateFormatInfo(
        columns=list(IMPORT_COLUMNS),
        descriptions={column: FORMAT_DESCRIPTIONS[column] for column in IMPORT_COLUMNS},
    )
