"""
════════════════════════════════════════════════════════════════════════════════
SHEET SELECTOR - Escolha da folha certa num workbook arbitrário
════════════════════════════════════════════════════════════════════════════════

Cada folha recebe uma pontuação por palavras-chave ponderadas, por tipo de
documento, avaliadas sobre:
- o nome da folha
- o texto das células nas primeiras N linhas (default 15)

Vence a pontuação estritamente mais alta; empates mantêm a primeira folha
(ordem do workbook).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Pattern, Sequence, Tuple

from workbook_ingestion.normalization import PERIOD_PATTERN, cell_text, normalize_header_value
from workbook_ingestion.schemas import DocumentType, Grid, RawWorkbook, TabularDocument

logger = logging.getLogger(__name__)

DEFAULT_SCAN_ROWS = 15
NO_SCORE = -1


# ═══════════════════════════════════════════════════════════════════════════════
# SCORING RULES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ScoreRule:
    """
    One weighted keyword rule. The weight is added once when any of the
    alternatives is found.
    """
    weight: int
    sheet_name: Tuple[str, ...] = ()
    cell: Tuple[str, ...] = ()
    cell_pattern: Optional[Pattern[str]] = None


def _name(weight: int, *needles: str) -> ScoreRule:
    return ScoreRule(weight=weight, sheet_name=needles)


def _cell(weight: int, *needles: str) -> ScoreRule:
    return ScoreRule(weight=weight, cell=needles)


SCORING_RULES: Dict[DocumentType, Tuple[ScoreRule, ...]] = {
    DocumentType.BOM: (
        _name(5, "bom"),
        _cell(2, "derived"),
        _cell(3, "child"),
        _cell(1, "quantity", "per kit"),
        _cell(1, "uom"),
    ),
    DocumentType.MATERIAL_MASTER: (
        _name(3, "material"),
        _name(2, "master"),
        _cell(4, "child part", "childpart"),
        _cell(2, "mpq"),
        _cell(2, "moq"),
        _cell(2, "reorder"),
        _cell(1, "instock", "in stock"),
        _cell(1, "pending po"),
    ),
    DocumentType.SUPPLIER_DETAILS: (
        _name(4, "supplier"),
        _name(2, "vendor"),
        _cell(2, "vendor"),
        _cell(2, "lead-time", "lead time"),
        _cell(1, "transport"),
    ),
    DocumentType.WEEK_PLAN: (
        _name(4, "week"),
        _name(2, "plan"),
        _cell(2, "week"),
        _cell(2, "start date"),
        _cell(1, "end date"),
    ),
    DocumentType.PRODUCTION_PLAN: (
        _name(2, "production"),
        _name(2, "plan"),
        _name(4, "idp"),
        _cell(2, "derived"),
        ScoreRule(weight=4, cell_pattern=PERIOD_PATTERN),
    ),
}


# ═══════════════════════════════════════════════════════════════════════════════
# SCORING
# ═══════════════════════════════════════════════════════════════════════════════

def _rule_hit(rule: ScoreRule, sheet_name: str, texts: Sequence[str], raw_texts: Sequence[str]) -> bool:
    if rule.sheet_name and any(n in sheet_name for n in rule.sheet_name):
        return True
    if rule.cell and any(n in t for t in texts for n in rule.cell):
        return True
    if rule.cell_pattern is not None and any(rule.cell_pattern.match(t) for t in raw_texts):
        return True
    return False


def score_sheet(
    doc_type: DocumentType,
    sheet_name: str,
    grid: Grid,
    scan_rows: int = DEFAULT_SCAN_ROWS,
) -> int:
    """Non-negative score of one sheet for ``doc_type``."""
    rows = grid[:scan_rows]
    texts = [normalize_header_value(c) for row in rows for c in row]
    raw_texts = [cell_text(c) for row in rows for c in row]
    normalized_name = normalize_header_value(sheet_name)

    return sum(
        rule.weight
        for rule in SCORING_RULES[doc_type]
        if _rule_hit(rule, normalized_name, texts, raw_texts)
    )


def select_sheet(
    workbook: RawWorkbook,
    doc_type: DocumentType,
    scan_rows: int = DEFAULT_SCAN_ROWS,
) -> TabularDocument:
    """
    Pick the sheet of ``workbook`` that best matches ``doc_type``.

    Returns:
        TabularDocument of the winning sheet. When nothing scores above the
        sentinel (empty workbook) the first sheet name is returned with an
        empty grid, which callers treat as "no usable sheet".
    """
    sheet_names = list(workbook.keys())
    best_name = sheet_names[0] if sheet_names else "Sheet1"
    best_score = NO_SCORE
    best_grid: Optional[Grid] = None
    scores: Dict[str, int] = {}

    for name in sheet_names:
        grid = workbook[name]
        score = score_sheet(doc_type, name, grid, scan_rows=scan_rows)
        scores[name] = score
        if score > best_score:
            best_score = score
            best_name = name
            best_grid = grid

    if best_grid is None:
        logger.warning(f"No usable sheet found for {doc_type.value}")
        return TabularDocument(sheet_name=best_name, grid=())

    logger.info(f"Selected sheet '{best_name}' for {doc_type.value} (score={best_score}, scores={scores})")
    return TabularDocument(sheet_name=best_name, grid=best_grid)
