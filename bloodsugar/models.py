from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union


class ReadingType(str, Enum):
    FASTING = "FASTING"
    RANDOM = "RANDOM"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "ReadingType":
        # Exact, case-sensitive match; anything else is UNKNOWN.
        if value == cls.FASTING.value:
            return cls.FASTING
        if value == cls.RANDOM.value:
            return cls.RANDOM
        return cls.UNKNOWN


def _text(value: object) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    s = str(value).strip()
    return s or None


def _label(value: object) -> Optional[str]:
    # time/notes: a numeric zero counts as blank
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0:
        return None
    return _text(value)


def _level(value: object) -> Optional[Union[float, str]]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return _text(value)


@dataclass(frozen=True)
class RawRecord:
    """One CSV row, validated at the parser boundary. Extra columns are dropped."""

    row: int
    date: Optional[str] = None
    sugar_level: Optional[Union[float, str]] = None
    type: Optional[str] = None
    time: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_row(cls, row: int, values: Mapping[str, Any]) -> "RawRecord":
        return cls(
            row=row,
            date=_text(values.get("date")),
            sugar_level=_level(values.get("sugarLevel")),
            type=_text(values.get("type")),
            time=_label(values.get("time")),
            notes=_label(values.get("notes")),
        )


def records_from_rows(rows: Iterable[Mapping[str, Any]]) -> List[RawRecord]:
    return [RawRecord.from_row(i, values) for i, values in enumerate(rows)]


@dataclass(frozen=True)
class Reading:
    index: int
    date: Optional[date]
    date_label: str
    display_label: str
    sugar_level: float
    type: ReadingType
    time: str = ""
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["date"] = self.date.isoformat() if self.date is not None else None
        out["type"] = self.type.value
        return out


@dataclass(frozen=True)
class GroupStats:
    average: Optional[float]
    max: Optional[float]
    min: Optional[float]
    count: int = 0

    @property
    def available(self) -> bool:
        return self.count > 0


EMPTY_STATS = GroupStats(average=None, max=None, min=None, count=0)


@dataclass(frozen=True)
class DashboardStats:
    overall: GroupStats = EMPTY_STATS
    fasting: GroupStats = EMPTY_STATS
    random: GroupStats = EMPTY_STATS

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return asdict(self)
