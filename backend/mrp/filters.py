"""
Display filters over a computed MrpPlan.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from mrp.mrp_engine import MrpPlan, MrpRow
from mrp.po_scheduler import parse_po_date_to_iso

logger = logging.getLogger(__name__)


def filter_rows(
    plan: MrpPlan,
    material_query: Optional[str] = None,
    po_date_from: Optional[str] = None,
    po_date_to: Optional[str] = None,
) -> Tuple[List[MrpRow], List[str]]:
    """
    Filter plan rows for display.

    Args:
        plan: Computed plan
        material_query: Case-insensitive substring of the material code
        po_date_from: ISO date (YYYY-MM-DD), inclusive
        po_date_to: ISO date (YYYY-MM-DD), inclusive

    Returns:
        (rows, display_periods). The PO date range applies only when both
        bounds are given; display periods are then narrowed to the selected
        periods that matched (left unchanged when none matched).
    """
    rows = list(plan.rows)
    display_periods = list(plan.selected_periods)

    query = (material_query or "").strip().lower()
    if query:
        rows = [r for r in rows if query in r.material.lower()]

    if po_date_from and po_date_to:
        matching_periods = set()
        kept: List[MrpRow] = []
        for row in rows:
            row_matches = False
            for period in plan.selected_periods:
                iso = parse_po_date_to_iso(row.weekly_po_date.get(period))
                if iso is not None and po_date_from <= iso <= po_date_to:
                    matching_periods.add(period)
                    row_matches = True
            if row_matches:
                kept.append(row)
        rows = kept
        if matching_periods:
            display_periods = [p for p in plan.selected_periods if p in matching_periods]

    logger.debug(f"Filtered MRP rows: {len(rows)}/{len(plan.rows)}, {len(display_periods)} display periods")
    return rows, display_periods
