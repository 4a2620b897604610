"""
════════════════════════════════════════════════════════════════════════════════
SCHEMA RESOLVER - Linha de cabeçalho + mapeamento flexível de colunas
════════════════════════════════════════════════════════════════════════════════

Funcionalidades:
- Deteta a linha de cabeçalho (não necessariamente a linha 0) nas primeiras
  N linhas (default 10), com predicados por tipo de documento
- Resolve o papel semântico de cada coluna por matchers ordenados
  (match exato preferido a match parcial)
- Campos obrigatórios não resolvidos são reportados em ``missing_required``;
  campos opcionais degradam para "não encontrado"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from workbook_ingestion.normalization import is_period_label, normalize_header_value
from workbook_ingestion.schemas import (
    NOT_FOUND,
    ColumnRole,
    DocumentType,
    ResolvedHeader,
    Row,
    TabularDocument,
)

logger = logging.getLogger(__name__)

DEFAULT_HEADER_SCAN_ROWS = 10

RowPredicate = Callable[[Row], bool]


# ═══════════════════════════════════════════════════════════════════════════════
# MATCHERS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class HeaderMatcher:
    """Matches a normalised header either exactly or by substring."""
    text: str
    exact: bool = False

    def __call__(self, header: str) -> bool:
        if self.exact:
            return header == self.text
        return self.text in header


def exact(text: str) -> HeaderMatcher:
    return HeaderMatcher(text=text, exact=True)


def contains(text: str) -> HeaderMatcher:
    return HeaderMatcher(text=text, exact=False)


def row_contains(*needles: str) -> RowPredicate:
    """Row predicate: some cell contains any of ``needles``."""
    def _predicate(row: Row) -> bool:
        return any(n in normalize_header_value(c) for c in row for n in needles)
    return _predicate


def row_has_period(row: Row) -> bool:
    return any(is_period_label(c) for c in row)


@dataclass(frozen=True)
class RoleRule:
    """
    Resolution rule of one column role.

    ``fallback_index`` is the positional column used when no matcher hits
    (material master and supplier exports keep the key in fixed columns).
    """
    role: ColumnRole
    matchers: Tuple[HeaderMatcher, ...]
    required: bool = False
    fallback_index: Optional[int] = None


@dataclass(frozen=True)
class DocumentSchema:
    header_predicates: Tuple[RowPredicate, ...]
    roles: Tuple[RoleRule, ...]


# ═══════════════════════════════════════════════════════════════════════════════
# SCHEMA TABLE
# ═══════════════════════════════════════════════════════════════════════════════

DOCUMENT_SCHEMAS: Dict[DocumentType, DocumentSchema] = {
    DocumentType.BOM: DocumentSchema(
        header_predicates=(row_contains("child"), row_contains("derived")),
        roles=(
            RoleRule(
                ColumnRole.CHILD_PART,
                (exact("child part"), exact("child"), exact("childpart"), contains("child part"),
                 contains("childpart"), contains("component"), contains("comp part")),
                required=True,
            ),
            RoleRule(
                ColumnRole.DERIVED_MATERIAL,
                (exact("derived material"), contains("derived material"), exact("derived"),
                 contains("derived"), contains("parent")),
            ),
            RoleRule(
                ColumnRole.QUANTITY_PER_UNIT,
                (exact("quantity"), contains("quantity"), contains("per kit"), exact("qty")),
            ),
            RoleRule(ColumnRole.UOM, (exact("uom"), contains(" uom"), contains("unit"))),
        ),
    ),
    DocumentType.MATERIAL_MASTER: DocumentSchema(
        header_predicates=(row_contains("mpq", "moq", "reorder"),),
        roles=(
            RoleRule(
                ColumnRole.MATERIAL,
                (exact("child part"), exact("material"), exact("material code"), contains("child part"),
                 contains("childpart"), exact("part no"), exact("part number")),
                fallback_index=0,
            ),
            RoleRule(ColumnRole.MPQ, (exact("mpq"), contains("mpq"))),
            RoleRule(ColumnRole.MOQ, (exact("moq"), contains("moq"))),
            RoleRule(ColumnRole.REORDER_POINT, (exact("reorder"), contains("reorder"))),
            RoleRule(ColumnRole.ON_HAND, (exact("instock"), contains("instock"), contains("in stock"), contains("on hand"))),
            RoleRule(ColumnRole.PENDING_PO, (exact("pending po"), contains("pending po"))),
        ),
    ),
    DocumentType.SUPPLIER_DETAILS: DocumentSchema(
        header_predicates=(row_contains("lead-time", "lead time"),),
        roles=(
            RoleRule(
                ColumnRole.MATERIAL,
                (exact("material"), exact("child part"), exact("material code"), exact("part"),
                 contains("child part"), contains("material code")),
                fallback_index=0,
            ),
            RoleRule(
                ColumnRole.VENDOR,
                (exact("vendor"), exact("supplier"), exact("vendor name"), exact("supplier code"),
                 contains("vendor name"), contains("supplier code"), contains("supplier name")),
                fallback_index=1,
            ),
            RoleRule(
                ColumnRole.VENDOR_LEAD_TIME,
                (contains("vendor lead-time"), contains("vendor lead time"), contains("lead-time"), contains("lead time")),
            ),
            RoleRule(ColumnRole.TRANSPORT_DAYS, (contains("transport time"), contains("transport"))),
        ),
    ),
    DocumentType.PRODUCTION_PLAN: DocumentSchema(
        header_predicates=(row_has_period,),
        roles=(
            RoleRule(
                ColumnRole.DERIVED_MATERIAL,
                (exact("derived material"), contains("derived material"), exact("derived"),
                 contains("derived"), contains("parent material"), exact("material")),
            ),
        ),
    ),
    DocumentType.WEEK_PLAN: DocumentSchema(
        header_predicates=(row_contains("week"), row_contains("start date")),
        roles=(
            RoleRule(
                ColumnRole.WEEK_NUMBER,
                (exact("week"), exact("week no"), exact("week number"), contains("week no"), contains("week")),
            ),
            RoleRule(ColumnRole.START_DATE, (exact("start date"), contains("start date"))),
            RoleRule(ColumnRole.END_DATE, (exact("end date"), contains("end date"))),
        ),
    ),
}


# ═══════════════════════════════════════════════════════════════════════════════
# RESOLUTION
# ═══════════════════════════════════════════════════════════════════════════════

def find_header_row_index(
    rows: Sequence[Row],
    predicates: Sequence[RowPredicate],
    max_scan: int = DEFAULT_HEADER_SCAN_ROWS,
) -> int:
    """First row within ``max_scan`` satisfying every predicate, else 0."""
    for idx, row in enumerate(rows[:max_scan]):
        if all(p(row) for p in predicates):
            return idx
    return 0


def find_column_index(headers: Sequence[object], matchers: Sequence[HeaderMatcher]) -> int:
    """
    Resolve a column by trying ``matchers`` in priority order, each scanning
    the header left-to-right. Blank headers never match.
    """
    normalized = [normalize_header_value(h) for h in headers]
    for matcher in matchers:
        for idx, header in enumerate(normalized):
            if header and matcher(header):
                return idx
    return NOT_FOUND


def resolve_header(
    doc: TabularDocument,
    doc_type: DocumentType,
    max_scan: int = DEFAULT_HEADER_SCAN_ROWS,
) -> ResolvedHeader:
    """
    Locate the header row of ``doc`` and resolve its column roles.

    Returns:
        ResolvedHeader. Unresolved roles map to NOT_FOUND; unresolved
        required roles are listed in ``missing_required``.
    """
    schema = DOCUMENT_SCHEMAS[doc_type]
    header_idx = find_header_row_index(doc.grid, schema.header_predicates, max_scan=max_scan)
    headers: Row = doc.grid[header_idx] if header_idx < len(doc.grid) else ()

    columns: Dict[ColumnRole, int] = {}
    missing: List[ColumnRole] = []
    taken: set = set()

    for rule in schema.roles:
        idx = find_column_index(headers, rule.matchers)
        if idx == NOT_FOUND and rule.fallback_index is not None and rule.fallback_index < len(headers):
            if rule.fallback_index not in taken:
                idx = rule.fallback_index
                logger.debug(f"{doc_type.value}: {rule.role.value} falls back to column {idx}")
        columns[rule.role] = idx
        if idx != NOT_FOUND:
            taken.add(idx)
        elif rule.required:
            missing.append(rule.role)
        else:
            logger.debug(f"{doc_type.value}: optional column {rule.role.value} not found")

    if missing:
        logger.warning(
            f"{doc_type.value} sheet '{doc.sheet_name}': required column(s) not found: "
            f"{[r.value for r in missing]}"
        )

    logger.info(f"Resolved {doc_type.value} header at row {header_idx} in sheet '{doc.sheet_name}'")
    return ResolvedHeader(
        document_type=doc_type,
        header_row_index=header_idx,
        headers=tuple(headers),
        columns=columns,
        missing_required=tuple(missing),
    )
