"""
Period keys (``WW.YYYY``) and the selected planning window.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

from workbook_ingestion.normalization import PERIOD_PATTERN, cell_text
from workbook_ingestion.schemas import Row

MIN_WEEK = 1
MAX_WEEK = 53


@dataclass(frozen=True)
class Period:
    """A week-year bucket. ``key`` keeps the exact header text (e.g. ``05.2024``)."""
    key: str
    week: int
    year: int

    @classmethod
    def parse(cls, value: object) -> Optional["Period"]:
        text = cell_text(value)
        if not PERIOD_PATTERN.match(text):
            return None
        week, year = text.split(".")
        return cls(key=text, week=int(week), year=int(year))


def clamp_week(value: float) -> int:
    """Floor to an integer week and clamp into [1, 53]."""
    return int(min(MAX_WEEK, max(MIN_WEEK, math.floor(value))))


class PeriodWindow(BaseModel):
    """Selected planning window: one year and an inclusive week range."""

    year: int = Field(..., ge=1900, le=9999, description="Ano do plano")
    start_week: int = Field(1, description="Semana inicial (1-53)")
    end_week: int = Field(20, description="Semana final (1-53)")

    @field_validator("start_week", "end_week", mode="before")
    @classmethod
    def clamp(cls, v):
        if v is None or isinstance(v, bool):
            raise ValueError("week must be a number")
        try:
            number = float(v)
        except (TypeError, ValueError):
            raise ValueError(f"week must be a number, got {v!r}")
        if not math.isfinite(number):
            raise ValueError("week must be finite")
        return clamp_week(number)

    @model_validator(mode="after")
    def check_order(self):
        if self.start_week > self.end_week:
            raise ValueError(f"start_week ({self.start_week}) must be <= end_week ({self.end_week})")
        return self

    def contains(self, period: Period) -> bool:
        return period.year == self.year and self.start_week <= period.week <= self.end_week

    def label(self) -> str:
        return f"W{self.start_week:02d}-W{self.end_week:02d} {self.year}"


def find_period_columns(headers: Row) -> List[Tuple[int, Period]]:
    """Period columns of a header row, left-to-right."""
    columns: List[Tuple[int, Period]] = []
    for idx, header in enumerate(headers):
        period = Period.parse(header)
        if period is not None:
            columns.append((idx, period))
    return columns


def select_periods(all_periods: Sequence[Period], window: PeriodWindow) -> List[Period]:
    """Periods inside ``window``, keeping header order."""
    return [p for p in all_periods if window.contains(p)]
