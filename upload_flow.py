from __future__ import annotations

import csv
import io
import pathlib
import zipfile
from dataclasses import dataclass

import openpyxl

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}
CSV_SUFFIXES = {".csv"}


@dataclass(frozen=True)
class ParsingError:
    code: str
    message: str
    row: int | None = None


class UploadValidationError(Exception):
    def __init__(self, errors: list[ParsingError]) -> None:
        super().__init__("Upload validation failed")
        self.errors = errors

    def user_messages(self) -> list[dict[str, str | int]]:
        return [
            {
                "code": error.code,
                "message": error.message,
                "row": error.row or 0,
            }
            for error in self.errors
        ]


def read_upload_rows(file_bytes: bytes, original_filename: str) -> list[list[object]]:
    """Read the first sheet of an uploaded workbook (or a CSV file) as raw rows."""

    suffix = pathlib.PurePath(original_filename).suffix.lower()
    if suffix in EXCEL_SUFFIXES:
        rows = _read_xlsx(file_bytes)
    elif suffix in CSV_SUFFIXES:
        rows = _read_csv(file_bytes)
    else:
        raise UploadValidationError(
            [
                ParsingError(
                    code="unsupported_format",
                    message="Please upload a valid Excel file (.xlsx) or CSV file.",
                )
            ]
        )

    if not any(row for row in rows):
        raise UploadValidationError(
            [
                ParsingError(
                    code="empty_file",
                    message="The uploaded file contains no data.",
                )
            ]
        )
    return rows


def _read_xlsx(file_bytes: bytes) -> list[list[object]]:
    try:
        workbook = openpyxl.load_workbook(
            io.BytesIO(file_bytes), read_only=True, data_only=True
        )
    except (zipfile.BadZipFile, KeyError, ValueError, OSError) as exc:
        raise UploadValidationError(
            [
                ParsingError(
                    code="unreadable_workbook",
                    message=f"Error processing Excel file: {exc}",
                )
            ]
        ) from exc
    try:
        sheet = workbook.worksheets[0]
        return [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _read_csv(file_bytes: bytes) -> list[list[object]]:
    try:
        text = file_bytes.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise UploadValidationError(
            [
                ParsingError(
                    code="invalid_encoding",
                    message="CSV file must be UTF-8 encoded.",
                )
            ]
        ) from exc
    sample = text[:4096]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=",;\t")
    except csv.Error:
        dialect = csv.excel
    reader = csv.reader(io.StringIO(text, newline=""), dialect)
    return [[cell.strip() for cell in row] for row in reader]
