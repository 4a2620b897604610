"""
════════════════════════════════════════════════════════════════════════════════
PO DATE SCHEDULER - Período + lead time -> data de encomenda (DD-Mon-YY)
════════════════════════════════════════════════════════════════════════════════

Data necessária (required-by):
1. Week plan (opcional): linha cuja semana corresponde ao período -> start date
   - número de série Excel (época 1899-12-30 + N dias)
   - texto de data interpretável
2. Fallback determinístico: 1 de janeiro do ano + semana × 7 dias

Data de PO = data necessária - lead time (não finito -> 0).
Quantidade <= 0 ou qualquer exceção -> "-".
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional

import pandas as pd

from mrp.periods import Period
from workbook_ingestion.normalization import cell_text, is_blank, to_number
from workbook_ingestion.schemas import ColumnRole, ResolvedHeader, TabularDocument

logger = logging.getLogger(__name__)

NO_PO_DATE = "-"
EXCEL_EPOCH = datetime(1899, 12, 30)

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_MONTH_NUMBERS = {name: idx + 1 for idx, name in enumerate(_MONTHS)}


# ═══════════════════════════════════════════════════════════════════════════════
# DATE HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def format_po_date(value: date) -> str:
    """``DD-Mon-YY`` with English month abbreviations, independent of locale."""
    return f"{value.day:02d}-{_MONTHS[value.month - 1]}-{value.year % 100:02d}"


def parse_po_date_to_iso(po_date: Optional[str]) -> Optional[str]:
    """
    ``DD-Mon-YY`` -> ``YYYY-MM-DD`` (year 20YY). Returns None for ``-``,
    blanks and anything that does not have that shape.
    """
    if not po_date or po_date == NO_PO_DATE:
        return None
    parts = po_date.split("-")
    if len(parts) != 3:
        return None
    day, month_name, year = parts
    month = _MONTH_NUMBERS.get(month_name)
    if month is None or not day.isdigit() or not year.isdigit():
        return None
    return f"20{year.zfill(2)}-{month:02d}-{day.zfill(2)}"


def excel_serial_to_datetime(serial: float) -> datetime:
    return EXCEL_EPOCH + timedelta(days=float(serial))


def cell_to_datetime(value: Any) -> Optional[datetime]:
    """Start-date cell -> datetime. Serial numbers and date strings are supported."""
    if is_blank(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            return None
        return excel_serial_to_datetime(value)

    parsed = pd.to_datetime(cell_text(value), errors="coerce")
    if parsed is None or pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def fallback_required_date(period: Period) -> datetime:
    """January 1 of the period's year plus ``week × 7`` days."""
    return datetime(period.year, 1, 1) + timedelta(days=period.week * 7)


# ═══════════════════════════════════════════════════════════════════════════════
# SCHEDULER
# ═══════════════════════════════════════════════════════════════════════════════

class PODateScheduler:
    """
    Lead-time offsetting against an optional week plan.

    Usage:
        scheduler = PODateScheduler(week_plan_doc, week_plan_header)
        scheduler.schedule("05.2024", lead_time_days=14, required_qty=120)
    """

    def __init__(
        self,
        week_plan: Optional[TabularDocument] = None,
        week_plan_header: Optional[ResolvedHeader] = None,
    ):
        self._by_key: Dict[str, Any] = {}
        self._by_week: Dict[int, Any] = {}
        if week_plan is not None and week_plan_header is not None:
            self._index_week_plan(week_plan, week_plan_header)

    def _index_week_plan(self, doc: TabularDocument, header: ResolvedHeader) -> None:
        if not (header.has(ColumnRole.WEEK_NUMBER) and header.has(ColumnRole.START_DATE)):
            logger.warning(
                f"Week plan sheet '{doc.sheet_name}' lacks week/start date columns; using fallback PO dates"
            )
            return

        for row in header.data_rows(doc):
            week_cell = header.cell(row, ColumnRole.WEEK_NUMBER)
            start_cell = header.cell(row, ColumnRole.START_DATE)
            key = cell_text(week_cell)
            if not key:
                continue
            self._by_key.setdefault(key, start_cell)
            number = to_number(week_cell)
            if number > 0 and float(number).is_integer():
                self._by_week.setdefault(int(number), start_cell)

        logger.info(f"Week plan indexed: {len(self._by_key)} week rows from sheet '{doc.sheet_name}'")

    @property
    def has_week_plan(self) -> bool:
        return bool(self._by_key)

    def required_date(self, period: Period) -> datetime:
        """Required-by date: week plan start date if it resolves, else the fallback rule."""
        cell = self._by_key.get(period.key)
        if cell is None:
            cell = self._by_week.get(period.week)
        resolved = cell_to_datetime(cell) if cell is not None else None
        return resolved if resolved is not None else fallback_required_date(period)

    def schedule(self, period_key: str, lead_time_days: float, required_qty: float) -> str:
        """
        Args:
            period_key: ``WW.YYYY``
            lead_time_days: Total supplier lead time
            required_qty: Order quantity of the period

        Returns:
            ``DD-Mon-YY`` or ``-`` when no order is needed or the date cannot be computed
        """
        try:
            if required_qty <= 0:
                return NO_PO_DATE
            period = Period.parse(period_key)
            if period is None:
                return NO_PO_DATE
            lead = float(lead_time_days) if math.isfinite(float(lead_time_days)) else 0.0
            po_date = self.required_date(period) - timedelta(days=lead)
            return format_po_date(po_date)
        except Exception as e:
            logger.debug(f"PO date for {period_key!r} could not be computed: {e}")
            return NO_PO_DATE


def schedule_po_date(
    period_key: str,
    lead_time_days: float,
    required_qty: float,
    week_plan: Optional[TabularDocument] = None,
    week_plan_header: Optional[ResolvedHeader] = None,
) -> str:
    """One-off scheduling without keeping a PODateScheduler around."""
    return PODateScheduler(week_plan, week_plan_header).schedule(period_key, lead_time_days, required_qty)
