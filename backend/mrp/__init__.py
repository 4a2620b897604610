"""
════════════════════════════════════════════════════════════════════════════════
                    MRP - Material Requirements Planning
════════════════════════════════════════════════════════════════════════════════

Plano de necessidades por componente e por semana (``WW.YYYY``):

    IDP × BOM -> procura bruta -> netting (stock + PO pendente)
              -> lot sizing (reorder / MOQ / MPQ) -> data de PO (DD-Mon-YY)
"""

from mrp.errors import ColumnNotFoundError, MissingReferenceError, MissingSourceError, MrpDataError
from mrp.mrp_engine import MRPEngine, MrpDocuments, MrpPlan, MrpRow, compute_mrp
from mrp.periods import Period, PeriodWindow

__all__ = [
    "ColumnNotFoundError",
    "MissingReferenceError",
    "MissingSourceError",
    "MrpDataError",
    "MRPEngine",
    "MrpDocuments",
    "MrpPlan",
    "MrpRow",
    "Period",
    "PeriodWindow",
    "compute_mrp",
]
