"""
════════════════════════════════════════════════════════════════════════════════
DEMAND EXPLODER - Plano de produção x BOM -> procura bruta por componente
════════════════════════════════════════════════════════════════════════════════

Para cada linha do plano de produção (IDP) e cada coluna de período
selecionada com quantidade > 0:

    demand[child][period] += produced_qty × quantity_per_unit(parent, child)

Fan-out: um componente recebe contribuições de vários pais e várias linhas
no mesmo período; tudo é somado. A ordem de inserção dos períodos segue a
ordem das colunas do cabeçalho (esquerda -> direita).
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from mrp.lookups import BomEdge, index_bom_by_parent
from mrp.periods import Period, find_period_columns
from workbook_ingestion.normalization import cell_text, to_number
from workbook_ingestion.schemas import ColumnRole, ResolvedHeader, TabularDocument

logger = logging.getLogger(__name__)

# material -> (period key -> gross demand), insertion ordered
DemandMap = Dict[str, Dict[str, float]]


class DemandExploder:
    """
    Single-level BOM explosion of a production plan.

    Usage:
        exploder = DemandExploder(edges)
        demand = exploder.explode(plan_doc, plan_header, selected_periods)
    """

    def __init__(self, edges: Iterable[BomEdge]):
        self._by_parent: Mapping[str, List[BomEdge]] = index_bom_by_parent(list(edges))

    @property
    def parent_count(self) -> int:
        return len(self._by_parent)

    def children_of(self, parent: str) -> List[BomEdge]:
        return list(self._by_parent.get(parent, []))

    def explode(
        self,
        plan_doc: TabularDocument,
        plan_header: ResolvedHeader,
        selected_periods: Iterable[Period],
    ) -> DemandMap:
        """
        Args:
            plan_doc: Production plan document
            plan_header: Its resolved header (derived material + period columns)
            selected_periods: Only these periods contribute demand

        Returns:
            DemandMap with strictly positive quantities
        """
        selected = {p.key for p in selected_periods}
        period_columns = [
            (idx, period) for idx, period in find_period_columns(plan_header.headers)
            if period.key in selected
        ]

        demand: DemandMap = {}
        if not plan_header.has(ColumnRole.DERIVED_MATERIAL):
            logger.warning(
                f"Production plan sheet '{plan_doc.sheet_name}' has no derived material column; no demand exploded"
            )
            return demand

        unmatched_parents = set()
        for row in plan_header.data_rows(plan_doc):
            parent = cell_text(plan_header.cell(row, ColumnRole.DERIVED_MATERIAL))
            if not parent:
                continue
            edges = self._by_parent.get(parent)
            if not edges:
                unmatched_parents.add(parent)
                continue

            for idx, period in period_columns:
                produced = to_number(row[idx]) if idx < len(row) else 0.0
                if produced <= 0:
                    continue
                for edge in edges:
                    per_period = demand.setdefault(edge.child_material, {})
                    per_period[period.key] = per_period.get(period.key, 0.0) + produced * edge.quantity_per_unit

        if unmatched_parents:
            logger.debug(f"{len(unmatched_parents)} production plan material(s) have no BOM entry")
        logger.info(
            f"Exploded demand for {len(demand)} materials over {len(period_columns)} selected period column(s)"
        )
        return demand


def explode_demand(
    plan_doc: TabularDocument,
    plan_header: ResolvedHeader,
    edges: Iterable[BomEdge],
    selected_periods: Iterable[Period],
) -> DemandMap:
    """Convenience wrapper around DemandExploder."""
    return DemandExploder(edges).explode(plan_doc, plan_header, selected_periods)


def total_demand(per_period: Mapping[str, float], periods: Optional[Iterable[Period]] = None) -> float:
    """Sum of demand, optionally restricted to ``periods``. Each period key counts once."""
    if periods is None:
        return float(sum(per_period.values()))
    keys = {p.key for p in periods}
    return float(sum(qty for key, qty in per_period.items() if key in keys))
