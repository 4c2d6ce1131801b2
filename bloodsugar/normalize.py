from __future__ import annotations

import math
import re
from datetime import date
from typing import Dict, Iterable, List, Optional, Set

import pandas as pd

from bloodsugar.models import RawRecord, Reading, ReadingType


INVALID_DATE_LABEL = "Invalid Date"

READING_COLUMNS = ["position", "index", "date", "date_label", "display_label", "sugar_level", "type", "time", "notes"]

_LEADING_NUMBER = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


def parse_sugar_level(value: object) -> float:
    """Leading-number parse ("95 mg/dL" -> 95.0); anything unparseable is 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        out = float(value)
    else:
        match = _LEADING_NUMBER.match(str(value))
        if not match:
            return 0.0
        out = float(match.group(0))
    if math.isnan(out) or math.isinf(out):
        return 0.0
    return out


def parse_timestamp(value: Optional[str]) -> Optional[pd.Timestamp]:
    """Full timestamp as written; a zone offset is dropped so the wall-clock time is kept."""
    if not value:
        return None
    ts = pd.to_datetime(value, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts


def parse_date(value: Optional[str]) -> Optional[date]:
    ts = parse_timestamp(value)
    return ts.date() if ts is not None else None


def day_label(d: Optional[date]) -> str:
    if d is None:
        return INVALID_DATE_LABEL
    return f"{d:%b} {d.day}"


def normalize_readings(records: Iterable[RawRecord]) -> List[Reading]:
    records = list(records)
    if not records:
        return []

    timestamps = [parse_timestamp(r.date) for r in records]
    df = pd.DataFrame(
        {
            "row": [r.row for r in records],
            "timestamp": pd.to_datetime(pd.Series(timestamps, dtype=object), errors="coerce"),
            "date": [ts.date() if ts is not None else None for ts in timestamps],
            "sugar_level": [parse_sugar_level(r.sugar_level) for r in records],
            "type": [ReadingType.from_value(r.type) for r in records],
            "time": [r.time or "" for r in records],
            "notes": [r.notes or "" for r in records],
        }
    )
    df = df[df["sugar_level"] > 0].copy()
    if df.empty:
        return []

    # Undated rows go last; mergesort keeps row order for equal timestamps.
    df = df.sort_values("timestamp", kind="mergesort", na_position="last")

    day_counts: Dict[str, int] = {}
    used: Dict[str, Set[str]] = {}
    readings: List[Reading] = []
    for row in df.itertuples(index=False):
        d = row.date if isinstance(row.date, date) else None
        base = day_label(d)
        day_counts[base] = day_counts.get(base, 0) + 1
        n = day_counts[base]
        seen = used.setdefault(base, set())

        if n == 1:
            label = base
        else:
            label = f"{base} ({row.time})" if row.time else f"{base} #{n}"
            if label in seen:
                label = f"{label} #{n}"
        seen.add(label)

        readings.append(
            Reading(
                index=int(row.row),
                date=d,
                date_label=base,
                display_label=label,
                sugar_level=float(row.sugar_level),
                type=row.type,
                time=row.time,
                notes=row.notes,
            )
        )
    return readings


def readings_frame(readings: Iterable[Reading]) -> pd.DataFrame:
    rows = []
    for position, r in enumerate(readings):
        rows.append(
            {
                "position": position,
                "index": r.index,
                "date": r.date.isoformat() if r.date is not None else None,
                "date_label": r.date_label,
                "display_label": r.display_label,
                "sugar_level": r.sugar_level,
                "type": r.type.value,
                "time": r.time,
                "notes": r.notes,
            }
        )
    return pd.DataFrame(rows, columns=READING_COLUMNS)
