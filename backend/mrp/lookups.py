"""
════════════════════════════════════════════════════════════════════════════════
LOOKUP BUILDERS - Documentos resolvidos -> mapas tipados
════════════════════════════════════════════════════════════════════════════════

Mapas construídos a partir das linhas de dados (após o cabeçalho):
- Material -> MaterialMasterEntry (MPQ, MOQ, reorder point, stock, PO pendente)
- Material -> SupplierEntry (fornecedor, lead time do fornecedor + transporte)
- Parent material -> [BomEdge]

Regras:
- Linhas com a chave em branco são ignoradas
- Valores numéricos inválidos/não finitos -> 0 (política "dado em falta = zero")
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List

from workbook_ingestion.normalization import cell_text, to_number
from workbook_ingestion.schemas import ColumnRole, ResolvedHeader, TabularDocument

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# ENTRIES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class MaterialMasterEntry:
    """Lot-sizing policy and inventory position of one material."""
    mpq: float = 0.0
    moq: float = 0.0
    reorder_point: float = 0.0
    on_hand: float = 0.0
    pending_po: float = 0.0

    @property
    def excess_qty(self) -> float:
        return max(0.0, self.on_hand + self.pending_po)


@dataclass(frozen=True)
class SupplierEntry:
    vendor_name: str
    vendor_lead_time_days: float = 0.0
    transport_days: float = 0.0

    @property
    def total_lead_time(self) -> float:
        return self.vendor_lead_time_days + self.transport_days


@dataclass(frozen=True)
class BomEdge:
    """Parent -> child with quantity per parent unit (always > 0)."""
    parent_material: str
    child_material: str
    quantity_per_unit: float


def _non_negative(value: object) -> float:
    return max(0.0, to_number(value))


# ═══════════════════════════════════════════════════════════════════════════════
# BUILDERS
# ═══════════════════════════════════════════════════════════════════════════════

def build_material_master(doc: TabularDocument, header: ResolvedHeader) -> Dict[str, MaterialMasterEntry]:
    """
    Material master lookup. A repeated material overwrites the earlier row
    (last row wins).
    """
    entries: Dict[str, MaterialMasterEntry] = {}
    for row in header.data_rows(doc):
        material = cell_text(header.cell(row, ColumnRole.MATERIAL))
        if not material:
            continue
        entries[material] = MaterialMasterEntry(
            mpq=_non_negative(header.cell(row, ColumnRole.MPQ)),
            moq=_non_negative(header.cell(row, ColumnRole.MOQ)),
            reorder_point=_non_negative(header.cell(row, ColumnRole.REORDER_POINT)),
            on_hand=to_number(header.cell(row, ColumnRole.ON_HAND)),
            pending_po=to_number(header.cell(row, ColumnRole.PENDING_PO)),
        )

    logger.info(f"Material master lookup: {len(entries)} materials from sheet '{doc.sheet_name}'")
    return entries


def build_supplier_details(doc: TabularDocument, header: ResolvedHeader) -> Dict[str, SupplierEntry]:
    """
    Supplier lookup. When a material is listed more than once the entry with
    the smallest total lead time is kept; on ties the first one stays.
    """
    entries: Dict[str, SupplierEntry] = {}
    for row in header.data_rows(doc):
        material = cell_text(header.cell(row, ColumnRole.MATERIAL))
        if not material:
            continue
        entry = SupplierEntry(
            vendor_name=cell_text(header.cell(row, ColumnRole.VENDOR)),
            vendor_lead_time_days=_non_negative(header.cell(row, ColumnRole.VENDOR_LEAD_TIME)),
            transport_days=_non_negative(header.cell(row, ColumnRole.TRANSPORT_DAYS)),
        )
        current = entries.get(material)
        if current is None or entry.total_lead_time < current.total_lead_time:
            entries[material] = entry

    logger.info(f"Supplier lookup: {len(entries)} materials from sheet '{doc.sheet_name}'")
    return entries


def build_bom_edges(doc: TabularDocument, header: ResolvedHeader) -> List[BomEdge]:
    """BOM edges. Rows with a blank parent or child, or quantity <= 0, are excluded."""
    edges: List[BomEdge] = []
    skipped = 0
    for row in header.data_rows(doc):
        parent = cell_text(header.cell(row, ColumnRole.DERIVED_MATERIAL))
        child = cell_text(header.cell(row, ColumnRole.CHILD_PART))
        qty = to_number(header.cell(row, ColumnRole.QUANTITY_PER_UNIT))
        if not parent or not child or qty <= 0:
            skipped += 1
            continue
        edges.append(BomEdge(parent_material=parent, child_material=child, quantity_per_unit=qty))

    if skipped:
        logger.debug(f"BOM: skipped {skipped} row(s) without parent/child or with quantity <= 0")
    logger.info(f"BOM lookup: {len(edges)} edges from sheet '{doc.sheet_name}'")
    return edges


def index_bom_by_parent(edges: List[BomEdge]) -> Dict[str, List[BomEdge]]:
    """Parent material -> its edges, in BOM row order."""
    index: Dict[str, List[BomEdge]] = {}
    for edge in edges:
        index.setdefault(edge.parent_material, []).append(edge)
    return index


def bom_child_materials(doc: TabularDocument, header: ResolvedHeader) -> List[str]:
    """Distinct child materials of the BOM, in first-seen order."""
    seen: "OrderedDict[str, None]" = OrderedDict()
    for row in header.data_rows(doc):
        child = cell_text(header.cell(row, ColumnRole.CHILD_PART))
        if child:
            seen.setdefault(child, None)
    return list(seen)


def bom_uom_map(doc: TabularDocument, header: ResolvedHeader) -> Dict[str, str]:
    """Child material -> UOM of its first BOM row ("" when the column is absent)."""
    uoms: Dict[str, str] = {}
    for row in header.data_rows(doc):
        child = cell_text(header.cell(row, ColumnRole.CHILD_PART))
        if child and child not in uoms:
            uoms[child] = cell_text(header.cell(row, ColumnRole.UOM))
    return uoms
