from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional


PROJECT_DIR = Path(__file__).resolve().parents[1]
LOCAL_CSV_RELATIVE = Path("public") / "data" / "bloodsugar-data.csv"
LOCAL_CSV_PATH = PROJECT_DIR / LOCAL_CSV_RELATIVE

SHEET_ID_ENV = "BLOODSUGAR_SHEET_ID"
CHART_VIEW_ENV = "BLOODSUGAR_CHART_VIEW"
REQUIRED_COLUMNS = ("date", "sugarLevel", "type", "time", "notes")
CHART_VIEWS = ("line", "bar")


@dataclass(frozen=True)
class ReferenceThresholds:
    normal_fasting: float = 100.0
    diabetic_fasting: float = 126.0
    pre_diabetic_random: float = 140.0
    diabetic_random: float = 200.0


REFERENCE = ReferenceThresholds()

REFERENCE_RANGES: Dict[str, List[Dict[str, str]]] = {
    "fasting": [
        {"level": "normal", "label": "Normal", "range": "Less than 100 mg/dL"},
        {"level": "pre_diabetes", "label": "Pre-diabetes", "range": "100-125 mg/dL"},
        {"level": "diabetes", "label": "Diabetes", "range": "126 mg/dL or higher"},
    ],
    "random": [
        {"level": "normal", "label": "Normal", "range": "Less than 140 mg/dL"},
        {"level": "pre_diabetes", "label": "Pre-diabetes", "range": "140-199 mg/dL"},
        {"level": "diabetes", "label": "Diabetes", "range": "200 mg/dL or higher"},
    ],
}


@dataclass(frozen=True)
class DashboardConfig:
    sheet_id: Optional[str] = None
    sheet_gid: int = 0
    local_csv_path: Path = LOCAL_CSV_PATH
    timeout_seconds: float = 10.0
    chart_view: str = "line"
    thresholds: ReferenceThresholds = field(default_factory=ReferenceThresholds)

    @property
    def remote_configured(self) -> bool:
        return bool(self.sheet_id)


def _as_float(value: object, default: float) -> float:
    try:
        out = float(value)  # type: ignore[arg-type]
    except Exception:
        return default
    return out if out > 0 else default


def normalize_config(raw: Mapping[str, object]) -> DashboardConfig:
    sheet_id = raw.get("sheet_id")
    sheet_id = str(sheet_id).strip() if sheet_id is not None else ""

    sheet_gid = raw.get("sheet_gid", 0)
    try:
        sheet_gid = max(0, int(sheet_gid))  # type: ignore[arg-type]
    except Exception:
        sheet_gid = 0

    local_csv_path = raw.get("local_csv_path") or LOCAL_CSV_PATH
    local_csv_path = Path(str(local_csv_path))
    if not local_csv_path.is_absolute():
        local_csv_path = PROJECT_DIR / local_csv_path

    chart_view = str(raw.get("chart_view") or "line").strip().lower()
    if chart_view not in CHART_VIEWS:
        chart_view = "line"

    return DashboardConfig(
        sheet_id=sheet_id or None,
        sheet_gid=sheet_gid,
        local_csv_path=local_csv_path,
        timeout_seconds=_as_float(raw.get("timeout_seconds", 10.0), 10.0),
        chart_view=chart_view,
    )


def load_config(environ: Optional[Mapping[str, str]] = None, **overrides: object) -> DashboardConfig:
    """Build the config from the process environment (sheet id and default chart view)."""
    env = os.environ if environ is None else environ
    raw: Dict[str, object] = {
        "sheet_id": env.get(SHEET_ID_ENV, ""),
        "chart_view": env.get(CHART_VIEW_ENV, ""),
    }
    raw.update(overrides)
    return normalize_config(raw)
