"""Export helpers for TT outcomes."""

from __future__ import annotations

import csv
import io
from typing import Any, Dict, List

import openpyxl
from openpyxl.utils import get_column_letter

from .config import EXPORT_HEADERS


def _row(entry: Dict[str, Any]) -> List[Any]:
    return [
        entry["id"],
        entry["content"],
        entry["transformed_content"],
        entry.get("reason") or "",
        "yes" if entry.get("degraded") else "no",
    ]


def to_csv(entries: List[Dict[str, Any]]) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_HEADERS)
    for entry in entries:
        writer.writerow(_row(entry))
    return buffer.getvalue().encode("utf-8-sig")


def to_xlsx(entries: List[Dict[str, Any]]) -> bytes:
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.title = "Text Transformation"

    sheet.append(EXPORT_HEADERS)
    for entry in entries:
        sheet.append(_row(entry))

    for index, column_title in enumerate(EXPORT_HEADERS, start=1):
        column = sheet.column_dimensions[get_column_letter(index)]
        column.width = max(len(column_title) + 2, 18)

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
