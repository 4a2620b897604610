"""
MRP error taxonomy.

Fatal conditions only. Degraded inputs (bad numbers, missing optional
columns, unmatched week-plan rows) are absorbed where they occur.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Sequence

from workbook_ingestion.normalization import cell_text

HEADER_PREVIEW_LIMIT = 25


class MrpDataError(Exception):
    """Base class for errors that abort an MRP run before any computation."""

    title = "MRP data error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": type(self).__name__, "title": self.title, "message": self.message}


class MissingSourceError(MrpDataError):
    """BOM or production plan absent or empty."""

    title = "Missing source document"

    def __init__(self, source: str):
        self.source = source
        super().__init__(f"{source} document is missing or empty. Upload it before running MRP.")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["source"] = self.source
        return data


class MissingReferenceError(MrpDataError):
    """Material master and/or supplier details absent or empty."""

    title = "Missing reference data"

    def __init__(self, sources: Iterable[str]):
        self.sources = list(sources)
        super().__init__(
            f"Reference data missing: {', '.join(self.sources)}. Upload these documents before running MRP."
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["sources"] = self.sources
        return data


class ColumnNotFoundError(MrpDataError):
    """A required column role could not be resolved on the chosen sheet."""

    title = "Required column not found"

    def __init__(self, document_type: str, role: str, sheet_name: str, headers: Sequence[Any]):
        self.document_type = document_type
        self.role = role
        self.sheet_name = sheet_name
        self.headers = [t for t in (cell_text(h) for h in headers) if t]
        preview = ", ".join(self.headers[:HEADER_PREVIEW_LIMIT])
        if len(self.headers) > HEADER_PREVIEW_LIMIT:
            preview += ", ..."
        self.header_preview = preview
        super().__init__(
            f"Could not find a '{role}' column in {document_type} sheet '{sheet_name}'. "
            f"Detected headers: {preview or '(none)'}"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            document_type=self.document_type,
            role=self.role,
            sheet_name=self.sheet_name,
            headers=self.headers,
        )
        return data
