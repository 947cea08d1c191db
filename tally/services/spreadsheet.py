"""Read uploaded CSV / .xlsx files into a header row plus string-valued rows."""

from __future__ import annotations

import csv
import io
import logging
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

logger = logging.getLogger(__name__)

CSV_EXTENSIONS = {".csv"}
XLSX_EXTENSIONS = {".xlsx"}
LEGACY_XLS_EXTENSIONS = {".xls"}


class SpreadsheetError(Exception):
    """The file could not be read as a table."""


@dataclass
class Table:
    headers: list[str]
    rows: list[dict[str, str | None]] = field(default_factory=list)


def decode_bytes(raw: bytes) -> str:
    for encoding in ("utf-8-sig", "utf-8", "latin-1"):
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise SpreadsheetError("Could not decode file content.")


def cell_text(value: Any) -> str | None:
    """Stringify one cell; blanks become None and integral floats lose their `.0`."""
    if value is None:
        return None
    if isinstance(value, bool):
        text = "TRUE" if value else "FALSE"
    elif isinstance(value, float) and value.is_integer():
        text = str(int(value))
    elif isinstance(value, (datetime, date)):
        text = value.isoformat()
    else:
        text = str(value)
    text = text.replace("\xa0", " ").strip()
    return text or None


def _build_table(raw_rows: list[list[Any]], max_rows: int | None) -> Table:
    if not raw_rows:
        raise SpreadsheetError("The file is empty; expected a header row.")

    headers: list[str] = []
    for index, value in enumerate(raw_rows[0]):
        headers.append(cell_text(value) or f"Column {index + 1}")
    if not any(cell_text(v) for v in raw_rows[0]):
        raise SpreadsheetError("The first row must contain column headers.")

    table = Table(headers=headers)
    for raw in raw_rows[1:]:
        if max_rows is not None and len(table.rows) >= max_rows:
            break
        values = [cell_text(v) for v in raw]
        values += [None] * (len(headers) - len(values))
        table.rows.append(dict(zip(headers, values)))
    return table


def _read_csv(path: Path) -> list[list[Any]]:
    text = decode_bytes(path.read_bytes())
    return [row for row in csv.reader(io.StringIO(text))]


def _read_xlsx(path: Path, max_rows: int | None) -> list[list[Any]]:
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError) as exc:
        raise SpreadsheetError(f"Could not open workbook: {exc}") from exc
    try:
        if not workbook.worksheets:
            return []
        sheet = workbook.worksheets[0]
        rows: list[list[Any]] = []
        for row in sheet.iter_rows(values_only=True):
            rows.append(list(row))
            # +1 for the header row
            if max_rows is not None and len(rows) > max_rows:
                break
        return rows
    finally:
        workbook.close()


def read_table(path: str | Path, *, max_rows: int | None = None) -> Table:
    """Parse the first sheet of a workbook (or a CSV) into a `Table`.

    The first row is the header row. `max_rows` limits the number of data rows
    returned, which keeps previews cheap on large files.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in LEGACY_XLS_EXTENSIONS:
        raise SpreadsheetError(
            "Legacy .xls workbooks cannot be read. Save the file as .xlsx or .csv and upload it again."
        )
    try:
        if suffix in CSV_EXTENSIONS:
            raw_rows = _read_csv(path)
        elif suffix in XLSX_EXTENSIONS:
            raw_rows = _read_xlsx(path, max_rows)
        else:
            raise SpreadsheetError(f"Unsupported file type '{suffix or path.name}'.")
    except (OSError, csv.Error) as exc:
        raise SpreadsheetError(str(exc)) from exc

    logger.debug("Read %d raw rows from %s", len(raw_rows), path.name)
    return _build_table(raw_rows, max_rows)
