"""Read tabular ledger exports into a 2-D grid of raw cell values."""

import csv
from pathlib import Path
from typing import Any

from ledgerline.domain.errors import NotFoundError, UnsupportedFileTypeError, ValidationError


DELIMITED_EXTENSIONS = frozenset({".csv", ".tsv", ".txt"})
WORKBOOK_EXTENSIONS = frozenset({".xlsx", ".xlsm"})
SUPPORTED_EXTENSIONS = DELIMITED_EXTENSIONS | WORKBOOK_EXTENSIONS


def check_file_type(path: Path) -> str:
    """Return the lowercased extension, rejecting unsupported types up front."""
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileTypeError(
            f"Unsupported file type '{suffix or path.name}'. "
            f"Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )
    return suffix


def _trim(grid: list[list[Any]]) -> list[list[Any]]:
    """Drop trailing empty cells and trailing empty rows."""
    trimmed = []
    for row in grid:
        cells = list(row)
        while cells and (cells[-1] is None or (isinstance(cells[-1], str) and not cells[-1].strip())):
            cells.pop()
        trimmed.append(cells)
    while trimmed and not trimmed[-1]:
        trimmed.pop()
    return trimmed


def read_delimited(path: Path) -> list[list[Any]]:
    """Read a CSV/TSV file, sniffing the delimiter."""
    try:
        return _read_delimited(path)
    except UnicodeDecodeError:
        raise ValidationError(f"File is not UTF-8 text: {path}")


def _read_delimited(path: Path) -> list[list[Any]]:
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        sample = f.read(4096)
        f.seek(0)
        if not sample.strip():
            return []
        if path.suffix.lower() == ".tsv":
            delimiter = "\t"
        else:
            try:
                delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
            except csv.Error:
                delimiter = ","
        return _trim([row for row in csv.reader(f, delimiter=delimiter)])


def read_workbook(path: Path) -> list[list[Any]]:
    """Read the active sheet of an Excel workbook (values only)."""
    import openpyxl

    wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
    try:
        sheet = wb.active
        return _trim([list(row) for row in sheet.iter_rows(values_only=True)])
    finally:
        wb.close()


def read_grid(file_path: str | Path) -> list[list[Any]]:
    """Read a supported file into rows of raw cell values.

    Raises:
        UnsupportedFileTypeError: If the extension is not supported
        NotFoundError: If the file does not exist
    """
    path = Path(file_path)
    suffix = check_file_type(path)
    if not path.exists():
        raise NotFoundError(f"File not found: {file_path}")
    if suffix in WORKBOOK_EXTENSIONS:
        return read_workbook(path)
    return read_delimited(path)
