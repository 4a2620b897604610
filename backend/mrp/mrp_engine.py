"""
════════════════════════════════════════════════════════════════════════════════
MRP ENGINE - Orquestração: documentos + janela -> plano MRP por componente
════════════════════════════════════════════════════════════════════════════════

Pipeline:
1. Pré-condições (falha rápida, antes de qualquer cálculo)
   - BOM e plano de produção não vazios     -> MissingSourceError
   - Material master e supplier details     -> MissingReferenceError
   - Coluna "child part" resolvida no BOM   -> ColumnNotFoundError
2. Resolução de cabeçalhos + lookups
3. Explosão da procura (períodos selecionados)
4. Netting + lot sizing por material (fold sequencial)
5. Datas de PO (week plan opcional, fallback determinístico)

Uma linha por componente distinto do BOM, mesmo sem procura.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from mrp.demand import DemandExploder, total_demand
from mrp.errors import ColumnNotFoundError, MissingReferenceError, MissingSourceError
from mrp.lookups import (
    MaterialMasterEntry,
    SupplierEntry,
    bom_child_materials,
    bom_uom_map,
    build_bom_edges,
    build_material_master,
    build_supplier_details,
)
from mrp.lot_sizing import LotSizingPolicy, net_and_size
from mrp.periods import Period, PeriodWindow, find_period_columns, select_periods
from mrp.po_scheduler import NO_PO_DATE, PODateScheduler
from workbook_ingestion.schema_resolver import DEFAULT_HEADER_SCAN_ROWS, resolve_header
from workbook_ingestion.schemas import DocumentType, TabularDocument

logger = logging.getLogger(__name__)

SOURCE_LABELS = {
    DocumentType.BOM: "BOM",
    DocumentType.PRODUCTION_PLAN: "Production Plan (IDP)",
    DocumentType.MATERIAL_MASTER: "Material Master",
    DocumentType.SUPPLIER_DETAILS: "Supplier Details",
    DocumentType.WEEK_PLAN: "Week Plan",
}


# ═══════════════════════════════════════════════════════════════════════════════
# DATA STRUCTURES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class MrpDocuments:
    """Inputs of one MRP run. The week plan is optional."""
    bom: Optional[TabularDocument] = None
    material_master: Optional[TabularDocument] = None
    production_plan: Optional[TabularDocument] = None
    supplier_details: Optional[TabularDocument] = None
    week_plan: Optional[TabularDocument] = None

    @classmethod
    def from_mapping(cls, docs: Mapping[DocumentType, Optional[TabularDocument]]) -> "MrpDocuments":
        return cls(
            bom=docs.get(DocumentType.BOM),
            material_master=docs.get(DocumentType.MATERIAL_MASTER),
            production_plan=docs.get(DocumentType.PRODUCTION_PLAN),
            supplier_details=docs.get(DocumentType.SUPPLIER_DETAILS),
            week_plan=docs.get(DocumentType.WEEK_PLAN),
        )


def _is_empty(doc: Optional[TabularDocument]) -> bool:
    return doc is None or doc.is_empty


@dataclass
class MrpRow:
    """MRP result for one BOM child material."""
    material: str
    uom: str
    supplier_code: str
    mpq: float
    moq: float
    reorder: float
    instock: float
    pending_po: float
    excess_qty: float
    lead_time: float
    weekly_demand: Dict[str, float] = field(default_factory=dict)
    weekly_mrp_qty: Dict[str, float] = field(default_factory=dict)
    weekly_po_date: Dict[str, str] = field(default_factory=dict)
    total_demand: float = 0.0

    def demand_for(self, period: str) -> float:
        return self.weekly_demand.get(period, 0.0)

    def mrp_qty_for(self, period: str) -> float:
        return self.weekly_mrp_qty.get(period, 0.0)

    def po_date_for(self, period: str) -> str:
        return self.weekly_po_date.get(period, NO_PO_DATE)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MrpPlan:
    """
    Output of compute_mrp.

    ``all_periods`` holds every period column of the production plan so the
    caller can widen the window without re-reading the source files.
    """
    rows: List[MrpRow]
    all_periods: List[str]
    selected_periods: List[str]
    window: PeriodWindow

    def summary(self) -> Dict[str, Any]:
        return {
            "total_materials": len(self.rows),
            "materials_with_demand": sum(1 for r in self.rows if r.total_demand > 0),
            "year": self.window.year,
            "start_week": self.window.start_week,
            "end_week": self.window.end_week,
            "selected_period_count": len(self.selected_periods),
            "total_period_count": len(self.all_periods),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": [r.to_dict() for r in self.rows],
            "all_periods": list(self.all_periods),
            "selected_periods": list(self.selected_periods),
            "summary": self.summary(),
        }


# ═══════════════════════════════════════════════════════════════════════════════
# MRP ENGINE
# ═══════════════════════════════════════════════════════════════════════════════

class MRPEngine:
    """
    Spreadsheet-driven MRP.

    Implements:
    1. Demand explosion through the BOM
    2. Netting against on hand + pending PO
    3. Lot sizing (reorder point / MOQ / MPQ)
    4. Offsetting (supplier lead time -> PO date)
    """

    def __init__(self, header_scan_rows: int = DEFAULT_HEADER_SCAN_ROWS):
        self.header_scan_rows = header_scan_rows

    @staticmethod
    def check_documents(documents: MrpDocuments) -> None:
        """Raise the first fatal input error, if any."""
        if _is_empty(documents.bom):
            raise MissingSourceError(SOURCE_LABELS[DocumentType.BOM])
        if _is_empty(documents.production_plan):
            raise MissingSourceError(SOURCE_LABELS[DocumentType.PRODUCTION_PLAN])

        missing = []
        if _is_empty(documents.material_master):
            missing.append(SOURCE_LABELS[DocumentType.MATERIAL_MASTER])
        if _is_empty(documents.supplier_details):
            missing.append(SOURCE_LABELS[DocumentType.SUPPLIER_DETAILS])
        if missing:
            raise MissingReferenceError(missing)

    def run(self, documents: MrpDocuments, window: PeriodWindow) -> MrpPlan:
        """
        Compute the MRP plan.

        Raises:
            MissingSourceError, MissingReferenceError, ColumnNotFoundError:
                before any computation; no partial plan is produced
        """
        self.check_documents(documents)
        bom, plan = documents.bom, documents.production_plan

        bom_header = resolve_header(bom, DocumentType.BOM, max_scan=self.header_scan_rows)
        if bom_header.missing_required:
            raise ColumnNotFoundError(
                document_type=SOURCE_LABELS[DocumentType.BOM],
                role=bom_header.missing_required[0].value,
                sheet_name=bom.sheet_name,
                headers=bom_header.headers,
            )

        mm_header = resolve_header(documents.material_master, DocumentType.MATERIAL_MASTER, max_scan=self.header_scan_rows)
        sd_header = resolve_header(documents.supplier_details, DocumentType.SUPPLIER_DETAILS, max_scan=self.header_scan_rows)
        plan_header = resolve_header(plan, DocumentType.PRODUCTION_PLAN, max_scan=self.header_scan_rows)

        scheduler = PODateScheduler()
        if not _is_empty(documents.week_plan):
            wp_header = resolve_header(documents.week_plan, DocumentType.WEEK_PLAN, max_scan=self.header_scan_rows)
            scheduler = PODateScheduler(documents.week_plan, wp_header)
        else:
            logger.info("No week plan available; PO dates use the calendar fallback")

        # Periods
        all_periods: List[Period] = [p for _, p in find_period_columns(plan_header.headers)]
        selected: List[Period] = select_periods(all_periods, window)

        # Lookups
        materials = bom_child_materials(bom, bom_header)
        uoms = bom_uom_map(bom, bom_header)
        edges = build_bom_edges(bom, bom_header)
        mm_map = build_material_master(documents.material_master, mm_header)
        sd_map = build_supplier_details(documents.supplier_details, sd_header)

        demand = DemandExploder(edges).explode(plan, plan_header, selected)

        rows = [
            self._material_row(material, uoms.get(material, ""), mm_map, sd_map, demand.get(material, {}), selected, scheduler)
            for material in materials
        ]

        result = MrpPlan(
            rows=rows,
            all_periods=[p.key for p in all_periods],
            selected_periods=[p.key for p in selected],
            window=window,
        )
        summary = result.summary()
        logger.info(
            f"MRP run {window.label()}: {summary['total_materials']} materials, "
            f"{summary['materials_with_demand']} with demand, {len(selected)} selected periods"
        )
        return result

    def _material_row(
        self,
        material: str,
        uom: str,
        mm_map: Mapping[str, MaterialMasterEntry],
        sd_map: Mapping[str, SupplierEntry],
        demand_by_period: Mapping[str, float],
        selected: List[Period],
        scheduler: PODateScheduler,
    ) -> MrpRow:
        mm = mm_map.get(material) or MaterialMasterEntry()
        sd = sd_map.get(material) or SupplierEntry(vendor_name="")
        policy = LotSizingPolicy(mpq=mm.mpq, moq=mm.moq, reorder_point=mm.reorder_point)

        netting = net_and_size(demand_by_period, mm.excess_qty, policy)
        lead_time = sd.total_lead_time

        weekly_mrp_qty: Dict[str, float] = {}
        weekly_po_date: Dict[str, str] = {}
        for step in netting.steps:
            weekly_mrp_qty[step.period] = step.required_qty
            weekly_po_date[step.period] = scheduler.schedule(step.period, lead_time, step.required_qty)

        return MrpRow(
            material=material,
            uom=uom,
            supplier_code=sd.vendor_name,
            mpq=mm.mpq,
            moq=mm.moq,
            reorder=mm.reorder_point,
            instock=mm.on_hand,
            pending_po=mm.pending_po,
            excess_qty=mm.excess_qty,
            lead_time=lead_time,
            weekly_demand=dict(demand_by_period),
            weekly_mrp_qty=weekly_mrp_qty,
            weekly_po_date=weekly_po_date,
            total_demand=total_demand(demand_by_period, selected),
        )


def compute_mrp(
    documents: MrpDocuments,
    window: PeriodWindow,
    header_scan_rows: int = DEFAULT_HEADER_SCAN_ROWS,
) -> MrpPlan:
    """Single entry point: documents + window -> MrpPlan (or a raised MrpDataError)."""
    return MRPEngine(header_scan_rows=header_scan_rows).run(documents, window)
