from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class GroupStatsModel(BaseModel):
    average: Optional[float] = None
    max: Optional[float] = None
    min: Optional[float] = None
    count: int = 0


class DashboardStatsModel(BaseModel):
    overall: GroupStatsModel = Field(default_factory=GroupStatsModel)
    fasting: GroupStatsModel = Field(default_factory=GroupStatsModel)
    random: GroupStatsModel = Field(default_factory=GroupStatsModel)


class ReadingModel(BaseModel):
    index: int
    date: Optional[str] = None
    date_label: str
    display_label: str
    sugar_level: float
    type: str
    time: str = ""
    notes: str = ""


class StatsResponse(BaseModel):
    state: str
    source: Optional[str] = None
    stats: DashboardStatsModel


class ReadingsResponse(BaseModel):
    state: str
    source: Optional[str] = None
    count: int
    readings: List[ReadingModel]


class ErrorResponse(BaseModel):
    error: str
    type: str
    hint: Optional[str] = None


class ThresholdsModel(BaseModel):
    normal_fasting: float = 100.0
    diabetic_fasting: float = 126.0
    pre_diabetic_random: float = 140.0
    diabetic_random: float = 200.0


class ReferenceModel(BaseModel):
    thresholds: ThresholdsModel = Field(default_factory=ThresholdsModel)
    ranges: Dict[str, List[Dict[str, str]]] = Field(default_factory=dict)
