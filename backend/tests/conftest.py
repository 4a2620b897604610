"""
Fixtures comuns para todos os testes do backend.

Conjunto de dados de referência (janela 2024, semanas 5-6):

    BOM:   FG-100 -> CMP-A ×2, CMP-B ×1 ; FG-200 -> CMP-A ×3, CMP-C ×0 (excluída)
    IDP:   FG-100 05.2024=10 07.2024=5 01.2025=8 ; FG-200 05.2024=4 06.2024=6
    MM:    CMP-A mpq 25, stock 30 + PO 10 ; CMP-B moq 100 ; CMP-C reorder 50
    SD:    CMP-A ACME 10+4 (SLOWCO 20+5 ignorado) ; CMP-B BETA 7+0
    Week:  06.2024 começa a 2024-02-05
"""
import io
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence

import pandas as pd
import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).parent.parent))

from mrp.mrp_engine import MrpDocuments
from mrp.periods import PeriodWindow
from mrp.service import MrpDataService, get_mrp_data_service
from settings import MrpSettingsConfig
from workbook_ingestion.document_store import InMemoryDocumentCache, InMemoryDocumentSource
from workbook_ingestion.schemas import DocumentType, TabularDocument

try:
    from api import app
    HAS_APP = True
except ImportError:
    HAS_APP = False
    app = None


# ═══════════════════════════════════════════════════════════════════════════════
# RAW ROWS
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def bom_rows() -> List[List[Any]]:
    """BOM com uma linha de título antes do cabeçalho."""
    return [
        ["Bill of Materials - Plant 1"],
        ["Derived Material", "Child Part", "Quantity Per Kit", "UOM"],
        ["FG-100", "CMP-A", 2, "PCS"],
        ["FG-100", "CMP-B", 1, "KG"],
        ["FG-200", "CMP-A", 3, "PCS"],
        ["FG-200", "CMP-C", 0, "PCS"],
    ]


@pytest.fixture
def material_master_rows() -> List[List[Any]]:
    return [
        ["Child Part", "Description", "MPQ", "MOQ", "Reorder", "Instock", "Pending PO"],
        ["CMP-A", "Bracket", 25, 0, 0, 30, 10],
        ["CMP-B", "Resin", 0, 100, 0, 0, 0],
        ["CMP-C", "Bolt", 0, 0, 50, 0, 0],
    ]


@pytest.fixture
def supplier_rows() -> List[List[Any]]:
    return [
        ["Material", "Vendor Name", "Vendor Lead-Time", "Transport Time"],
        ["CMP-A", "ACME", 10, 4],
        ["CMP-A", "SLOWCO", 20, 5],
        ["CMP-B", "BETA", 7, 0],
    ]


@pytest.fixture
def idp_rows() -> List[List[Any]]:
    return [
        ["Derived Material", "Description", "05.2024", "06.2024", "07.2024", "01.2025"],
        ["FG-100", "Assembly 100", 10, 0, 5, 8],
        ["FG-200", "Assembly 200", 4, 6, "", 0],
        ["FG-999", "Not in BOM", 100, 100, 100, 100],
    ]


@pytest.fixture
def week_plan_rows() -> List[List[Any]]:
    return [
        ["Week", "Start Date", "End Date"],
        ["06.2024", datetime(2024, 2, 5), datetime(2024, 2, 11)],
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# DOCUMENTS
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def bom_doc(bom_rows) -> TabularDocument:
    return TabularDocument.from_rows("BOM", bom_rows)


@pytest.fixture
def material_master_doc(material_master_rows) -> TabularDocument:
    return TabularDocument.from_rows("Material Master", material_master_rows)


@pytest.fixture
def supplier_doc(supplier_rows) -> TabularDocument:
    return TabularDocument.from_rows("Supplier Details", supplier_rows)


@pytest.fixture
def idp_doc(idp_rows) -> TabularDocument:
    return TabularDocument.from_rows("IDP", idp_rows)


@pytest.fixture
def week_plan_doc(week_plan_rows) -> TabularDocument:
    return TabularDocument.from_rows("Week Plan", week_plan_rows)


@pytest.fixture
def mrp_documents(bom_doc, material_master_doc, supplier_doc, idp_doc, week_plan_doc) -> MrpDocuments:
    return MrpDocuments(
        bom=bom_doc,
        material_master=material_master_doc,
        production_plan=idp_doc,
        supplier_details=supplier_doc,
        week_plan=week_plan_doc,
    )


@pytest.fixture
def window_2024() -> PeriodWindow:
    return PeriodWindow(year=2024, start_week=5, end_week=6)


# ═══════════════════════════════════════════════════════════════════════════════
# WORKBOOK FILES
# ═══════════════════════════════════════════════════════════════════════════════

def _xlsx_bytes(sheets: Dict[str, Sequence[Sequence[Any]]]) -> bytes:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for name, rows in sheets.items():
            pd.DataFrame([list(r) for r in rows]).to_excel(writer, sheet_name=name, header=False, index=False)
    return buffer.getvalue()


@pytest.fixture
def build_xlsx() -> Callable[[Dict[str, Sequence[Sequence[Any]]]], bytes]:
    """Constrói um .xlsx em memória: {nome da folha: linhas}."""
    return _xlsx_bytes


@pytest.fixture
def upload_files(bom_rows, material_master_rows, supplier_rows, idp_rows, week_plan_rows, build_xlsx):
    """Um workbook por tipo, com folhas extra para obrigar à escolha da folha."""
    notes = [["Notes"], ["Exported from ERP"]]
    return {
        DocumentType.BOM: ("bom_export.xlsx", build_xlsx({"Notes": notes, "BOM": bom_rows})),
        DocumentType.MATERIAL_MASTER: ("material_master.xlsx", build_xlsx({"Material Master": material_master_rows})),
        DocumentType.SUPPLIER_DETAILS: ("suppliers.xlsx", build_xlsx({"Cover": notes, "Supplier Details": supplier_rows})),
        DocumentType.PRODUCTION_PLAN: ("idp.xlsx", build_xlsx({"IDP": idp_rows})),
        DocumentType.WEEK_PLAN: ("week_plan.xlsx", build_xlsx({"Week Plan": week_plan_rows})),
    }


# ═══════════════════════════════════════════════════════════════════════════════
# SERVICE / CLIENT
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mrp_settings(tmp_path) -> MrpSettingsConfig:
    return MrpSettingsConfig(data_dir=tmp_path / "uploads", cache_dir=tmp_path / "cache")


@pytest.fixture
def mrp_service(mrp_settings) -> MrpDataService:
    """Serviço com colaboradores em memória (sem disco)."""
    return MrpDataService(
        source=InMemoryDocumentSource(),
        cache=InMemoryDocumentCache(),
        settings=mrp_settings,
    )


@pytest.fixture
def loaded_service(mrp_service, upload_files) -> MrpDataService:
    """Serviço com os cinco documentos já carregados."""
    for doc_type, (filename, content) in upload_files.items():
        mrp_service.ingest_upload(doc_type, filename, content)
    return mrp_service


@pytest.fixture(scope="function")
def test_client(mrp_service):
    """Cliente de teste FastAPI."""
    if not HAS_APP:
        pytest.skip("FastAPI app not available")
    app.dependency_overrides[get_mrp_data_service] = lambda: mrp_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
