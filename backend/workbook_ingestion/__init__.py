"""
════════════════════════════════════════════════════════════════════════════════
                    WORKBOOK INGESTION
════════════════════════════════════════════════════════════════════════════════

Folhas de cálculo exportadas (BOM, Material Master, IDP, Supplier Details,
Week Plan) sem ordem de colunas fixa:

1. **Leitura**: binário -> RawWorkbook (nome da folha -> grelha)
2. **Escolha da folha**: pontuação ponderada por tipo de documento
3. **Cabeçalho**: linha de cabeçalho + papéis das colunas por matchers
4. **Uploads**: validação, preview, fonte de ficheiros e cache
"""

from workbook_ingestion.schema_resolver import resolve_header
from workbook_ingestion.schemas import ColumnRole, DocumentType, ResolvedHeader, TabularDocument
from workbook_ingestion.sheet_selector import select_sheet
from workbook_ingestion.workbook_reader import WorkbookReadError, read_workbook

__all__ = [
    "ColumnRole",
    "DocumentType",
    "ResolvedHeader",
    "TabularDocument",
    "WorkbookReadError",
    "read_workbook",
    "resolve_header",
    "select_sheet",
]
