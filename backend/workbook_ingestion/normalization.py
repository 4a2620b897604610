"""
Cell normalisation helpers shared by the sheet scorer, the schema resolver
and the lookup builders.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any

import numpy as np
import pandas as pd

# Period column signature: two-digit week, dot, four-digit year (e.g. "05.2024")
PERIOD_PATTERN = re.compile(r"^[0-9]{2}\.[0-9]{4}$")

_WHITESPACE = re.compile(r"\s+")


def is_blank(value: Any) -> bool:
    """True for None, NaN/NaT and empty strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (float, np.floating)):
        return math.isnan(value)
    return value is pd.NaT


def cell_text(value: Any) -> str:
    """String form of a cell, trimmed. Integral floats render without ``.0``."""
    if is_blank(value):
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (float, np.floating)) and math.isfinite(value) and float(value).is_integer():
        return str(int(value))
    if isinstance(value, np.integer):
        return str(int(value))
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def normalize_header_value(value: Any) -> str:
    """
    Lowercase, collapse whitespace, underscores to spaces.

    The same normalisation is used when scoring sheets and when resolving
    columns, so both layers agree on what a header "contains".
    """
    text = cell_text(value).lower()
    text = _WHITESPACE.sub(" ", text)
    return text.replace("_", " ")


def is_period_label(value: Any) -> bool:
    return bool(PERIOD_PATTERN.match(cell_text(value)))


def to_number(value: Any) -> float:
    """
    Coerce a cell to a number.

    Native numbers are used as-is, anything else goes through
    trimmed-string parsing. Non-finite or unparsable input yields 0.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
    else:
        text = "" if is_blank(value) else str(value).strip()
        if text == "":
            return 0.0
        if "_" in text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    return number if math.isfinite(number) else 0.0
