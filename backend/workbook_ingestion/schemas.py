"""
════════════════════════════════════════════════════════════════════════════════
WORKBOOK SCHEMAS - Tipos partilhados pela ingestão de folhas de cálculo
════════════════════════════════════════════════════════════════════════════════

Tipos:
- DocumentType: tipo declarado do documento carregado (BOM, Material Master, ...)
- ColumnRole: papel semântico de uma coluna
- TabularDocument: folha escolhida + grelha de células em bruto
- ResolvedHeader: linha de cabeçalho detetada + índices das colunas resolvidas
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Sequence, Tuple

import pandas as pd

from workbook_ingestion.normalization import cell_text

Row = Tuple[Any, ...]
Grid = Tuple[Row, ...]

# Sheet name -> grid, in workbook order
RawWorkbook = Mapping[str, Grid]

NOT_FOUND = -1


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class DocumentType(str, Enum):
    """Declared type of an uploaded spreadsheet."""
    BOM = "bom"
    MATERIAL_MASTER = "material_master"
    PRODUCTION_PLAN = "production_plan"
    SUPPLIER_DETAILS = "supplier_details"
    WEEK_PLAN = "week_plan"

    @classmethod
    def parse(cls, value: str) -> "DocumentType":
        """Accepts enum values, names and the legacy ``idp`` alias."""
        key = str(value or "").strip().lower().replace("-", "_")
        aliases = {
            "idp": cls.PRODUCTION_PLAN,
            "production": cls.PRODUCTION_PLAN,
            "supplier": cls.SUPPLIER_DETAILS,
            "week": cls.WEEK_PLAN,
        }
        if key in aliases:
            return aliases[key]
        for member in cls:
            if member.value == key or member.name.lower() == key:
                return member
        raise ValueError(f"Unknown document type: {value!r}")


class ColumnRole(str, Enum):
    """Semantic role of a column. The roles valid for each type live in the schema table."""
    # BOM
    CHILD_PART = "child_part"
    DERIVED_MATERIAL = "derived_material"
    QUANTITY_PER_UNIT = "quantity_per_unit"
    UOM = "uom"
    # Material master / supplier details
    MATERIAL = "material"
    MPQ = "mpq"
    MOQ = "moq"
    REORDER_POINT = "reorder_point"
    ON_HAND = "on_hand"
    PENDING_PO = "pending_po"
    VENDOR = "vendor"
    VENDOR_LEAD_TIME = "vendor_lead_time"
    TRANSPORT_DAYS = "transport_days"
    # Week plan
    WEEK_NUMBER = "week_number"
    START_DATE = "start_date"
    END_DATE = "end_date"


# ═══════════════════════════════════════════════════════════════════════════════
# DOCUMENTS
# ═══════════════════════════════════════════════════════════════════════════════

def _json_cell(value: Any) -> Any:
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return cell_text(value)


@dataclass(frozen=True)
class TabularDocument:
    """A chosen sheet and its raw cells. No header row identified yet."""
    sheet_name: str
    grid: Grid = ()

    @classmethod
    def from_rows(cls, sheet_name: str, rows: Sequence[Sequence[Any]]) -> "TabularDocument":
        return cls(sheet_name=sheet_name, grid=tuple(tuple(r) for r in rows))

    @property
    def is_empty(self) -> bool:
        return len(self.grid) == 0

    @property
    def row_count(self) -> int:
        return len(self.grid)

    @property
    def column_count(self) -> int:
        return max((len(r) for r in self.grid), default=0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sheet_name": self.sheet_name,
            "grid": [[_json_cell(c) for c in row] for row in self.grid],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TabularDocument":
        grid = data.get("grid")
        if not isinstance(grid, list):
            raise ValueError("Cached document has no grid")
        return cls.from_rows(str(data.get("sheet_name") or ""), [r if isinstance(r, list) else [] for r in grid])


@dataclass(frozen=True)
class ResolvedHeader:
    """Header row location and the column index resolved for each role."""
    document_type: DocumentType
    header_row_index: int
    headers: Row
    columns: Dict[ColumnRole, int] = field(default_factory=dict)
    missing_required: Tuple[ColumnRole, ...] = ()

    def column(self, role: ColumnRole) -> int:
        return self.columns.get(role, NOT_FOUND)

    def has(self, role: ColumnRole) -> bool:
        return self.column(role) != NOT_FOUND

    def header_labels(self) -> List[str]:
        """Non-empty header strings, in column order."""
        return [t for t in (cell_text(h) for h in self.headers) if t]

    def data_rows(self, doc: TabularDocument) -> Grid:
        return doc.grid[self.header_row_index + 1:]

    def cell(self, row: Sequence[Any], role: ColumnRole) -> Any:
        """Cell for ``role`` in ``row``; missing roles and short rows read as blank."""
        idx = self.column(role)
        if idx == NOT_FOUND or idx >= len(row):
            return ""
        return row[idx]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document_type": self.document_type.value,
            "header_row_index": self.header_row_index,
            "headers": [cell_text(h) for h in self.headers],
            "columns": {role.value: idx for role, idx in self.columns.items()},
            "missing_required": [role.value for role in self.missing_required],
        }
