"""
════════════════════════════════════════════════════════════════════════════════
WORKBOOK READER - Excel/CSV binário -> RawWorkbook
════════════════════════════════════════════════════════════════════════════════

Lê todas as folhas sem assumir linha de cabeçalho (header=None): a deteção do
cabeçalho é feita depois pelo SchemaResolver.

- Células vazias/NaN -> ""
- Timestamps -> datetime
- Números inteiros guardados como float -> int
- Linhas totalmente vazias são descartadas
"""

from __future__ import annotations

import io
import logging
import math
from pathlib import Path
from typing import Any, Dict, List

import numpy as np
import pandas as pd

from workbook_ingestion.normalization import is_blank
from workbook_ingestion.schemas import Grid, RawWorkbook

logger = logging.getLogger(__name__)

EXCEL_EXTENSIONS = (".xlsx", ".xlsm")
CSV_EXTENSIONS = (".csv",)


class WorkbookReadError(Exception):
    """Raised when binary content cannot be parsed as a workbook."""


def _clean_cell(value: Any) -> Any:
    if is_blank(value):
        return ""
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def frame_to_grid(df: pd.DataFrame) -> Grid:
    """Convert a header-less DataFrame into an immutable grid, skipping blank rows."""
    rows: List[tuple] = []
    for values in df.itertuples(index=False, name=None):
        cells = [_clean_cell(v) for v in values]
        while cells and cells[-1] == "":
            cells.pop()
        if not cells:
            continue
        rows.append(tuple(cells))
    return tuple(rows)


def read_workbook(content: bytes, filename: str = "") -> RawWorkbook:
    """
    Parse binary spreadsheet content into ``sheet name -> grid``.

    Args:
        content: File bytes
        filename: Original name, used to pick the CSV reader and name CSV sheets

    Returns:
        Ordered mapping of sheet name to grid (workbook order)

    Raises:
        WorkbookReadError: content is empty or not a readable workbook
    """
    if not content:
        raise WorkbookReadError("Empty workbook content")

    suffix = Path(filename).suffix.lower()

    try:
        if suffix in CSV_EXTENSIONS:
            df = pd.read_csv(io.BytesIO(content), header=None, dtype=object, skip_blank_lines=True)
            frames: Dict[str, pd.DataFrame] = {Path(filename).stem or "Sheet1": df}
        else:
            frames = pd.read_excel(io.BytesIO(content), sheet_name=None, header=None, dtype=object)
    except Exception as exc:
        logger.warning(f"Failed to read workbook '{filename}': {exc}")
        raise WorkbookReadError(f"Could not read workbook '{filename}': {exc}") from exc

    workbook: Dict[str, Grid] = {}
    for sheet_name, df in frames.items():
        workbook[str(sheet_name)] = frame_to_grid(df)

    logger.info(f"Read workbook '{filename}' with {len(workbook)} sheet(s): {list(workbook)}")
    return workbook
