"""
════════════════════════════════════════════════════════════════════════════════
MRP DATA SERVICE - Carregamento dos documentos + execução do MRP
════════════════════════════════════════════════════════════════════════════════

Fluxo:
1. ingest_upload: valida -> lê workbook -> escolhe folha -> guarda -> cache
2. load_document: último upload da fonte; falha/ausência -> cache
3. load_all: fan-out dos 5 documentos num ThreadPoolExecutor (barreira)
4. run: load_all -> compute_mrp -> filtros de visualização

Documentos indisponíveis degradam para "sem documento"; as pré-condições
do MRP decidem depois se isso é fatal.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from mrp.filters import filter_rows
from mrp.mrp_engine import MrpDocuments, MrpPlan, MrpRow, compute_mrp
from mrp.periods import PeriodWindow
from settings import MrpSettings, MrpSettingsConfig
from workbook_ingestion.document_store import (
    DirectoryDocumentSource,
    DocumentCache,
    DocumentRecord,
    DocumentSource,
    JsonDocumentCache,
)
from workbook_ingestion.sheet_selector import select_sheet
from workbook_ingestion.schemas import DocumentType, TabularDocument
from workbook_ingestion.uploads import UploadValidationError, preview_document, validate_upload
from workbook_ingestion.workbook_reader import WorkbookReadError, read_workbook

logger = logging.getLogger(__name__)


class LoadStatus(str, Enum):
    PENDING = "pending"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class DocumentState:
    """Outcome of the last load of one document type."""
    status: LoadStatus = LoadStatus.PENDING
    origin: Optional[str] = None  # "source" | "cache"
    sheet_name: Optional[str] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "origin": self.origin,
            "sheet_name": self.sheet_name,
            "message": self.message,
        }


@dataclass
class MrpRunResult:
    plan: MrpPlan
    rows: List[MrpRow]
    display_periods: List[str]
    document_status: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": [r.to_dict() for r in self.rows],
            "all_periods": list(self.plan.all_periods),
            "selected_periods": list(self.plan.selected_periods),
            "display_periods": list(self.display_periods),
            "summary": self.plan.summary(),
            "documents": self.document_status,
        }


class MrpDataService:
    """
    Orchestrates document retrieval, parsing and the MRP computation.

    Args:
        source: File-retrieval collaborator
        cache: Last parsed document per type (offline fallback)
        settings: Scan bounds, upload limit, worker count
    """

    def __init__(
        self,
        source: DocumentSource,
        cache: DocumentCache,
        settings: Optional[MrpSettingsConfig] = None,
    ):
        self.source = source
        self.cache = cache
        self.settings = settings or MrpSettings.get_config()
        self._states: Dict[DocumentType, DocumentState] = {t: DocumentState() for t in DocumentType}
        self._lock = threading.Lock()

    # ───────────────────────────────────────────────────────────────────────────
    # Status
    # ───────────────────────────────────────────────────────────────────────────

    def _set_state(self, doc_type: DocumentType, **changes: Any) -> None:
        with self._lock:
            state = self._states[doc_type]
            for key, value in changes.items():
                setattr(state, key, value)

    def status(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {t.value: s.to_dict() for t, s in self._states.items()}

    def documents_overview(self) -> List[Dict[str, Any]]:
        """Latest stored upload and load status per document type."""
        status = self.status()
        overview = []
        for doc_type in DocumentType:
            records = self.source.list(doc_type, limit=1)
            overview.append({
                "document_type": doc_type.value,
                "latest": records[0].to_dict() if records else None,
                **status[doc_type.value],
            })
        return overview

    # ───────────────────────────────────────────────────────────────────────────
    # Ingestion
    # ───────────────────────────────────────────────────────────────────────────

    def _parse(self, doc_type: DocumentType, filename: str, content: bytes) -> TabularDocument:
        workbook = read_workbook(content, filename)
        return select_sheet(workbook, doc_type, scan_rows=self.settings.sheet_scan_rows)

    def ingest_upload(self, doc_type: DocumentType, filename: str, content: bytes) -> Tuple[DocumentRecord, Dict[str, Any]]:
        """
        Validate, parse and store an upload.

        Returns:
            (stored record, preview of the chosen sheet)

        Raises:
            UploadValidationError: rejected file, unreadable workbook or no usable sheet
        """
        validate_upload(filename, len(content), max_bytes=self.settings.upload_max_bytes)

        try:
            doc = self._parse(doc_type, filename, content)
        except WorkbookReadError as e:
            raise UploadValidationError(str(e)) from e
        if doc.is_empty:
            raise UploadValidationError(f"No usable sheet found in '{filename}' for {doc_type.value}")

        record = self.source.save(doc_type, filename, content)
        self.cache.put(doc_type, doc)
        self._set_state(doc_type, status=LoadStatus.SUCCESS, origin="source", sheet_name=doc.sheet_name, message=None)
        logger.info(f"Ingested {doc_type.value} upload '{record.filename}' (sheet '{doc.sheet_name}', {doc.row_count} rows)")

        preview = preview_document(
            doc, doc_type,
            limit=self.settings.preview_rows,
            header_scan_rows=self.settings.header_scan_rows,
        )
        return record, preview

    # ───────────────────────────────────────────────────────────────────────────
    # Loading
    # ───────────────────────────────────────────────────────────────────────────

    def load_document(self, doc_type: DocumentType) -> Optional[TabularDocument]:
        """
        Latest upload of ``doc_type`` parsed into a TabularDocument.

        Falls back to the cache when the source has nothing or the content
        cannot be parsed. Returns None when neither yields a document.
        """
        self._set_state(doc_type, status=LoadStatus.LOADING, message=None)
        failure: Optional[str] = None

        try:
            latest = self.source.latest(doc_type)
        except OSError as e:
            latest = None
            failure = f"Document source unavailable: {e}"
            logger.warning(f"{doc_type.value}: {failure}")

        if latest is not None:
            record, content = latest
            try:
                doc = self._parse(doc_type, record.filename, content)
            except WorkbookReadError as e:
                doc = None
                failure = str(e)
            if doc is not None and not doc.is_empty:
                self.cache.put(doc_type, doc)
                self._set_state(doc_type, status=LoadStatus.SUCCESS, origin="source", sheet_name=doc.sheet_name)
                return doc
            failure = failure or f"No usable sheet in '{record.filename}'"
        elif failure is None:
            failure = "No document uploaded"

        cached = self.cache.get(doc_type)
        if cached is not None and not cached.is_empty:
            logger.warning(f"{doc_type.value}: {failure}; using cached document (sheet '{cached.sheet_name}')")
            self._set_state(
                doc_type, status=LoadStatus.SUCCESS, origin="cache", sheet_name=cached.sheet_name, message=failure,
            )
            return cached

        logger.warning(f"{doc_type.value}: {failure}")
        self._set_state(doc_type, status=LoadStatus.ERROR, origin=None, sheet_name=None, message=failure)
        return None

    def load_all(self) -> Dict[DocumentType, Optional[TabularDocument]]:
        """Load every document type concurrently and wait for all of them."""
        doc_types = list(DocumentType)
        for doc_type in doc_types:
            self._set_state(doc_type, status=LoadStatus.PENDING)

        with ThreadPoolExecutor(max_workers=self.settings.load_workers) as executor:
            docs = list(executor.map(self.load_document, doc_types))

        return dict(zip(doc_types, docs))

    def preview(self, doc_type: DocumentType, limit: Optional[int] = None) -> Optional[Dict[str, Any]]:
        doc = self.load_document(doc_type)
        if doc is None:
            return None
        return preview_document(
            doc, doc_type,
            limit=limit or self.settings.preview_rows,
            header_scan_rows=self.settings.header_scan_rows,
        )

    # ───────────────────────────────────────────────────────────────────────────
    # Run
    # ───────────────────────────────────────────────────────────────────────────

    def run(
        self,
        window: PeriodWindow,
        material: Optional[str] = None,
        po_date_from: Optional[str] = None,
        po_date_to: Optional[str] = None,
    ) -> MrpRunResult:
        """
        Raises:
            MrpDataError: missing documents or required BOM column
        """
        documents = MrpDocuments.from_mapping(self.load_all())
        plan = compute_mrp(documents, window, header_scan_rows=self.settings.header_scan_rows)
        rows, display_periods = filter_rows(plan, material, po_date_from, po_date_to)
        return MrpRunResult(plan=plan, rows=rows, display_periods=display_periods, document_status=self.status())


# Global service instance (lazy loaded)
_global_service: Optional[MrpDataService] = None


def get_mrp_data_service() -> MrpDataService:
    """Obtém instância global do serviço MRP (fonte em disco + cache JSON)."""
    global _global_service
    if _global_service is None:
        config = MrpSettings.get_config()
        _global_service = MrpDataService(
            source=DirectoryDocumentSource(config.data_dir),
            cache=JsonDocumentCache(config.cache_dir),
            settings=config,
        )
    return _global_service


def set_mrp_data_service(service: Optional[MrpDataService]) -> None:
    """Replace the global service (tests / embedding)."""
    global _global_service
    _global_service = service
