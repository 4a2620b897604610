"""
Upload-time validation and preview of spreadsheet documents.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from workbook_ingestion.normalization import cell_text
from workbook_ingestion.schema_resolver import DEFAULT_HEADER_SCAN_ROWS, resolve_header
from workbook_ingestion.schemas import DocumentType, TabularDocument

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".xlsx", ".xlsm", ".csv")
DEFAULT_MAX_BYTES = 10 * 1024 * 1024


class UploadValidationError(ValueError):
    """Rejected upload (wrong extension, too large, empty)."""


def validate_upload(filename: Optional[str], size_bytes: int, max_bytes: int = DEFAULT_MAX_BYTES) -> None:
    """
    Raises:
        UploadValidationError: when the file cannot be accepted
    """
    name = Path(filename or "").name
    if not name:
        raise UploadValidationError("No file name given")
    if size_bytes <= 0:
        raise UploadValidationError(f"File '{name}' is empty")
    if size_bytes > max_bytes:
        limit_mb = max_bytes / (1024 * 1024)
        raise UploadValidationError(f"File size exceeds {limit_mb:g}MB limit")
    if not name.lower().endswith(ALLOWED_EXTENSIONS):
        raise UploadValidationError(
            f"Please select a valid spreadsheet file ({', '.join(ALLOWED_EXTENSIONS)})"
        )


def preview_document(
    doc: TabularDocument,
    doc_type: DocumentType,
    limit: int = 30,
    header_scan_rows: int = DEFAULT_HEADER_SCAN_ROWS,
) -> Dict[str, Any]:
    """
    Summary of a parsed document: chosen sheet, resolved header and the first
    ``limit`` data rows as text.
    """
    resolved = resolve_header(doc, doc_type, max_scan=header_scan_rows)
    data_rows = resolved.data_rows(doc)
    rows: List[List[str]] = [[cell_text(c) for c in row] for row in data_rows[:limit]]

    return {
        "document_type": doc_type.value,
        "sheet_name": doc.sheet_name,
        "row_count": len(data_rows),
        "column_count": doc.column_count,
        "header": resolved.to_dict(),
        "rows": rows,
        "truncated": len(data_rows) > limit,
    }
