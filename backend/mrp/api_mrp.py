"""
════════════════════════════════════════════════════════════════════════════════
MRP API - Endpoints REST para documentos e execução do MRP
════════════════════════════════════════════════════════════════════════════════

Endpoints:
- GET  /mrp/documents                        - Estado + último upload por tipo
- POST /mrp/documents/{doc_type}/upload      - Upload -> preview da folha escolhida
- GET  /mrp/documents/{doc_type}/preview     - Preview do último documento
- POST /mrp/run                              - Executar MRP para uma janela de semanas
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from pydantic import BaseModel, Field, ValidationError

from mrp.errors import MrpDataError
from mrp.periods import PeriodWindow
from mrp.service import MrpDataService, get_mrp_data_service
from workbook_ingestion.schemas import DocumentType
from workbook_ingestion.uploads import UploadValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mrp", tags=["MRP"])


# ═══════════════════════════════════════════════════════════════════════════════
# REQUEST/RESPONSE MODELS
# ═══════════════════════════════════════════════════════════════════════════════

class MrpRunRequest(BaseModel):
    """Request para executar o MRP."""
    year: Optional[int] = Field(default=None, description="Ano (default: ano atual)")
    start_week: Optional[float] = Field(default=None, description="Semana inicial (1-53)")
    end_week: Optional[float] = Field(default=None, description="Semana final (1-53)")
    material: Optional[str] = Field(default=None, description="Filtro por código de material")
    po_date_from: Optional[date] = Field(default=None, description="Data de PO inicial (inclusiva)")
    po_date_to: Optional[date] = Field(default=None, description="Data de PO final (inclusiva)")


class MrpRunResponse(BaseModel):
    """Response do MRP."""
    rows: List[Dict[str, Any]]
    all_periods: List[str]
    selected_periods: List[str]
    display_periods: List[str]
    summary: Dict[str, Any]
    documents: Dict[str, Dict[str, Any]]


class UploadResponse(BaseModel):
    record: Dict[str, Any]
    preview: Dict[str, Any]


def _document_type(doc_type: str) -> DocumentType:
    try:
        return DocumentType.parse(doc_type)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown document type: {doc_type}")


# ═══════════════════════════════════════════════════════════════════════════════
# ENDPOINTS
# ═══════════════════════════════════════════════════════════════════════════════

@router.get("/documents")
async def list_documents(service: MrpDataService = Depends(get_mrp_data_service)):
    """Lista os tipos de documento com o último upload e o estado de carregamento."""
    return {"documents": service.documents_overview()}


@router.post("/documents/{doc_type}/upload", response_model=UploadResponse)
async def upload_document(
    doc_type: str,
    file: UploadFile = File(...),
    service: MrpDataService = Depends(get_mrp_data_service),
):
    """
    Carrega um documento.

    - Valida extensão e tamanho
    - Escolhe a folha mais provável para o tipo
    - Devolve o cabeçalho resolvido e as primeiras linhas
    """
    document_type = _document_type(doc_type)
    content = await file.read()

    try:
        record, preview = service.ingest_upload(document_type, file.filename or "", content)
    except UploadValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return UploadResponse(record=record.to_dict(), preview=preview)


@router.get("/documents/{doc_type}/preview")
async def preview_document(
    doc_type: str,
    limit: Optional[int] = Query(None, ge=1, le=500, description="Linhas de dados a devolver"),
    service: MrpDataService = Depends(get_mrp_data_service),
):
    """Preview do último documento (fonte ou cache)."""
    document_type = _document_type(doc_type)
    preview = service.preview(document_type, limit=limit)
    if preview is None:
        raise HTTPException(status_code=404, detail=f"No {document_type.value} document available")
    return preview


@router.post("/run", response_model=MrpRunResponse)
async def run_mrp(
    request: MrpRunRequest,
    service: MrpDataService = Depends(get_mrp_data_service),
):
    """
    Executa o MRP.

    Carrega os cinco documentos, calcula procura, netting, lotes e datas de
    PO, e aplica os filtros de visualização.
    """
    settings = service.settings
    try:
        window = PeriodWindow(
            year=request.year if request.year is not None else datetime.now().year,
            start_week=request.start_week if request.start_week is not None else settings.default_start_week,
            end_week=request.end_week if request.end_week is not None else settings.default_end_week,
        )
    except ValidationError as e:
        detail = [{"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]} for err in e.errors()]
        raise HTTPException(status_code=422, detail=detail)

    try:
        result = service.run(
            window,
            material=request.material,
            po_date_from=request.po_date_from.isoformat() if request.po_date_from else None,
            po_date_to=request.po_date_to.isoformat() if request.po_date_to else None,
        )
    except MrpDataError as e:
        logger.warning(f"MRP run rejected: {e.message}")
        raise HTTPException(status_code=422, detail=e.to_dict())

    return MrpRunResponse(**result.to_dict())
