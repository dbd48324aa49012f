"""
Tabular upload readers.

The batch importer only sees rows of typed cells through this narrow
contract; it never touches a particular file format. Two readers exist:
openpyxl for .xlsx workbooks and the csv module for the downloadable
template format.

Architecture: file decoding only, no DB imports.
"""

from __future__ import annotations

import csv
import enum
import io
import zipfile
from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import PurePath
from typing import Any, Iterator, Optional, Protocol, runtime_checkable

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from giftbook.app.core.exceptions import TableReadError

XLSX_EXTENSION = ".xlsx"
CSV_EXTENSION = ".csv"
SUPPORTED_EXTENSIONS = (XLSX_EXTENSION, CSV_EXTENSION)

_ZIP_MAGIC = b"PK\x03\x04"


class CellKind(str, enum.Enum):
    TEXT = "TEXT"
    NUMERIC = "NUMERIC"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    FORMULA = "FORMULA"
    BLANK = "BLANK"


@dataclass(frozen=True)
class TableCell:
    """A single cell: its kind plus the raw value for that kind."""

    kind: CellKind
    value: Any = None

    @property
    def is_blank(self) -> bool:
        if self.kind == CellKind.BLANK:
            return True
        return self.kind == CellKind.TEXT and not str(self.value).strip()

    def _expect(self, kind: CellKind) -> Any:
        if self.kind != kind:
            raise TypeError(f"cell is {self.kind.value}, not {kind.value}")
        return self.value

    def as_text(self) -> str:
        return self._expect(CellKind.TEXT)

    def as_number(self) -> int | float:
        return self._expect(CellKind.NUMERIC)

    def as_boolean(self) -> bool:
        return self._expect(CellKind.BOOLEAN)

    def as_date(self) -> date:
        return self._expect(CellKind.DATE)

    def as_formula(self) -> str:
        return self._expect(CellKind.FORMULA)


BLANK_CELL = TableCell(CellKind.BLANK)


@dataclass(frozen=True)
class TableRow:
    """One sheet row; ``index`` is 0-based (the header row is index 0)."""

    index: int
    cells: tuple[TableCell, ...]

    def cell(self, column: int) -> TableCell:
        if 0 <= column < len(self.cells):
            return self.cells[column]
        return BLANK_CELL

    @property
    def is_blank(self) -> bool:
        return all(cell.is_blank for cell in self.cells)

    @property
    def number(self) -> int:
        """1-based row number as shown by spreadsheet tools."""
        return self.index + 1


@runtime_checkable
class TableReader(Protocol):
    """Protocol for anything that yields rows of typed cells in sheet order."""

    def rows(self) -> Iterator[TableRow]:
        ...


def _xlsx_cell(cell: Any) -> TableCell:
    value = getattr(cell, "value", None)
    if value is None:
        return BLANK_CELL
    if getattr(cell, "data_type", None) == "f" or (isinstance(value, str) and value.startswith("=")):
        return TableCell(CellKind.FORMULA, str(value).lstrip("="))
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return TableCell(CellKind.BOOLEAN, value)
    if isinstance(value, datetime):
        return TableCell(CellKind.DATE, value.date())
    if isinstance(value, date):
        return TableCell(CellKind.DATE, value)
    if isinstance(value, time):
        return TableCell(CellKind.TEXT, value.isoformat())
    if isinstance(value, (int, float)):
        return TableCell(CellKind.NUMERIC, value)
    return TableCell(CellKind.TEXT, str(value))


class XlsxTableReader:
    """
    Read the first worksheet of an .xlsx workbook.

    Formulas are kept as formulas (``data_only=False``) so that they surface
    as FORMULA cells rather than cached results.
    """

    def __init__(self, data: bytes):
        self._data = data

    def rows(self) -> Iterator[TableRow]:
        try:
            wb = openpyxl.load_workbook(io.BytesIO(self._data), read_only=True, data_only=False)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as exc:
            raise TableReadError() from exc

        try:
            if not wb.worksheets:
                return
            sheet = wb.worksheets[0]
            for index, row in enumerate(sheet.iter_rows()):
                yield TableRow(index=index, cells=tuple(_xlsx_cell(cell) for cell in row))
        finally:
            wb.close()


class CsvTableReader:
    """Read a UTF-8 CSV (byte-order mark optional); every value is text."""

    def __init__(self, data: bytes, delimiter: str = ","):
        self._data = data
        self._delimiter = delimiter

    def rows(self) -> Iterator[TableRow]:
        try:
            text = self._data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise TableReadError("CSV 파일은 UTF-8 인코딩이어야 합니다") from exc

        reader = csv.reader(io.StringIO(text, newline=""), delimiter=self._delimiter)
        try:
            for index, values in enumerate(reader):
                cells = tuple(
                    TableCell(CellKind.TEXT, value) if value != "" else BLANK_CELL
                    for value in values
                )
                yield TableRow(index=index, cells=cells)
        except csv.Error as exc:
            raise TableReadError() from exc


def open_table(data: bytes, filename: Optional[str] = None) -> TableReader:
    """
    Pick a reader for an uploaded file.

    The extension decides; without one, ZIP magic means .xlsx and anything
    else is read as CSV.
    """
    suffix = PurePath(filename).suffix.lower() if filename else ""
    if suffix == XLSX_EXTENSION:
        return XlsxTableReader(data)
    if suffix == CSV_EXTENSION:
        return CsvTableReader(data)
    if data.startswith(_ZIP_MAGIC):
        return XlsxTableReader(data)
    return CsvTableReader(data)
