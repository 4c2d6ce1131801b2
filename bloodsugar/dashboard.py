from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import httpx

from bloodsugar.charts import build_charts
from bloodsugar.config import CHART_VIEWS, LOCAL_CSV_RELATIVE, REFERENCE_RANGES, REQUIRED_COLUMNS, DashboardConfig
from bloodsugar.errors import DashboardError
from bloodsugar.loader import fetch_csv_text
from bloodsugar.models import DashboardStats, GroupStats, RawRecord, Reading
from bloodsugar.normalize import normalize_readings, readings_frame
from bloodsugar.parser import ParseWarning, parse_csv
from bloodsugar.stats import compute_stats, format_stat, partition_readings


logger = logging.getLogger(__name__)

ERROR_HINT = (
    "Make sure your Google Sheet is publicly accessible or that your CSV file is located at "
    f"{LOCAL_CSV_RELATIVE.as_posix()} and contains the expected columns: {', '.join(REQUIRED_COLUMNS)}"
)
NO_DATA_MESSAGE = "No valid blood sugar data was found in the CSV file."


class LoadState(str, Enum):
    ERROR = "error"
    NO_DATA = "no_data"
    READY = "ready"


@dataclass(frozen=True)
class DashboardData:
    state: LoadState
    source: Optional[str] = None
    location: Optional[str] = None
    records: List[RawRecord] = field(default_factory=list)
    readings: List[Reading] = field(default_factory=list)
    stats: DashboardStats = field(default_factory=DashboardStats)
    warnings: List[ParseWarning] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def fasting(self) -> List[Reading]:
        return partition_readings(self.readings)[0]

    @property
    def random(self) -> List[Reading]:
        return partition_readings(self.readings)[1]


def derive(records: List[RawRecord]) -> Tuple[List[Reading], DashboardStats]:
    """Recompute readings and statistics from raw records; pure, no caching."""
    readings = normalize_readings(records)
    return readings, compute_stats(readings)


def build_dashboard(config: DashboardConfig, client: Optional[httpx.Client] = None) -> DashboardData:
    try:
        loaded = fetch_csv_text(config, client=client)
        parsed = parse_csv(loaded.text, source=loaded.source_label)
    except DashboardError as exc:
        logger.error("Dashboard load failed: %s", exc)
        return DashboardData(state=LoadState.ERROR, error=str(exc))

    records = parsed.records
    readings, stats = derive(records)
    if not readings:
        logger.info("No valid readings in %d records from %s", len(records), loaded.location)
    return DashboardData(
        state=LoadState.READY if readings else LoadState.NO_DATA,
        source=loaded.source,
        location=loaded.location,
        records=records,
        readings=readings,
        stats=stats,
        warnings=list(parsed.warnings),
    )


def _stats_display(group: GroupStats) -> Dict[str, str]:
    return {
        "average": format_stat(group.average, decimals=1),
        "max": format_stat(group.max),
        "min": format_stat(group.min),
        "count": str(group.count),
    }


def compute_dashboard(
    data: DashboardData, view: Optional[str] = None, config: Optional[DashboardConfig] = None
) -> Dict[str, Any]:
    config = config or DashboardConfig()
    view = view if view in CHART_VIEWS else config.chart_view

    charts: Dict[str, Any] = {}
    if data.state == LoadState.READY:
        charts = build_charts(readings_frame(data.readings), view=view, thresholds=config.thresholds)

    return {
        "state": data.state.value,
        "source": data.source,
        "location": data.location,
        "error": data.error,
        "hint": ERROR_HINT if data.state == LoadState.ERROR else None,
        "message": NO_DATA_MESSAGE if data.state == LoadState.NO_DATA else None,
        "view": view,
        "warnings": [asdict(w) for w in data.warnings],
        "stats": data.stats.to_dict(),
        "stats_display": {
            "overall": _stats_display(data.stats.overall),
            "fasting": _stats_display(data.stats.fasting),
            "random": _stats_display(data.stats.random),
        },
        "readings": [r.to_dict() for r in data.readings],
        "charts": charts,
        "reference": {"thresholds": asdict(config.thresholds), "ranges": REFERENCE_RANGES},
    }
