from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from bloodsugar.models import EMPTY_STATS, DashboardStats, GroupStats, Reading, ReadingType


NOT_AVAILABLE = "N/A"


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(float(value)).quantize(q, rounding=ROUND_HALF_UP))


def partition_readings(readings: Iterable[Reading]) -> Tuple[List[Reading], List[Reading]]:
    readings = list(readings)
    fasting = [r for r in readings if r.type == ReadingType.FASTING]
    random = [r for r in readings if r.type == ReadingType.RANDOM]
    return fasting, random


def compute_group_stats(levels: Sequence[float]) -> GroupStats:
    series = pd.Series(list(levels), dtype="float64")
    if series.empty:
        return EMPTY_STATS
    return GroupStats(
        average=round_half_up(series.mean(), 1),
        max=float(series.max()),
        min=float(series.min()),
        count=int(series.size),
    )


def compute_stats(readings: Iterable[Reading]) -> DashboardStats:
    readings = list(readings)
    fasting, random = partition_readings(readings)
    return DashboardStats(
        overall=compute_group_stats([r.sugar_level for r in readings]),
        fasting=compute_group_stats([r.sugar_level for r in fasting]),
        random=compute_group_stats([r.sugar_level for r in random]),
    )


def format_stat(value: object, decimals: Optional[int] = None) -> str:
    if value is None or pd.isna(value):
        return NOT_AVAILABLE
    v = float(value)
    if decimals is not None:
        return f"{v:.{decimals}f}"
    return f"{v:.15g}"
