from __future__ import annotations

import logging
import math
from dataclasses import asdict
from typing import Literal, Optional

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import ErrorResponse, ReadingModel, ReadingsResponse, ReferenceModel, StatsResponse
from bloodsugar.config import REFERENCE_RANGES, DashboardConfig, load_config
from bloodsugar.dashboard import ERROR_HINT, DashboardData, LoadState, build_dashboard, compute_dashboard
from bloodsugar.normalize import readings_frame


app = FastAPI(title="Blood Sugar Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:8501", "http://127.0.0.1:8501", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


def get_config() -> DashboardConfig:
    return load_config()


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _load_error(data: DashboardData) -> JSONResponse:
    return _json({"error": data.error, "type": "LoadError", "hint": ERROR_HINT}, status_code=502)


@app.get("/reference", response_model=ReferenceModel)
def reference(config: DashboardConfig = Depends(get_config)):
    return _json({"thresholds": asdict(config.thresholds), "ranges": REFERENCE_RANGES})


@app.get("/dashboard", responses={502: {"model": ErrorResponse}})
def dashboard(
    view: Optional[Literal["line", "bar"]] = Query(default=None),
    config: DashboardConfig = Depends(get_config),
):
    try:
        data = build_dashboard(config)
        if data.state == LoadState.ERROR:
            return _load_error(data)
        return _json(compute_dashboard(data, view=view or config.chart_view, config=config))
    except Exception as exc:
        logger.exception("dashboard failed")
        return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/stats", response_model=StatsResponse, responses={502: {"model": ErrorResponse}})
def stats(config: DashboardConfig = Depends(get_config)):
    try:
        data = build_dashboard(config)
        if data.state == LoadState.ERROR:
            return _load_error(data)
        return _json({"state": data.state.value, "source": data.source, "stats": data.stats.to_dict()})
    except Exception as exc:
        logger.exception("stats failed")
        return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/readings", response_model=ReadingsResponse, responses={502: {"model": ErrorResponse}})
def readings(
    reading_type: Optional[Literal["FASTING", "RANDOM", "UNKNOWN"]] = Query(default=None, alias="type"),
    config: DashboardConfig = Depends(get_config),
):
    try:
        data = build_dashboard(config)
        if data.state == LoadState.ERROR:
            return _load_error(data)
        rows = [r for r in data.readings if reading_type is None or r.type.value == reading_type]
        payload = ReadingsResponse(
            state=data.state.value,
            source=data.source,
            count=len(rows),
            readings=[ReadingModel(**r.to_dict()) for r in rows],
        )
        return _json(payload.model_dump())
    except Exception as exc:
        logger.exception("readings failed")
        return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/export/readings.csv")
def export_readings(config: DashboardConfig = Depends(get_config)):
    data = build_dashboard(config)
    if data.state == LoadState.ERROR:
        return _load_error(data)
    export_df = readings_frame(data.readings).drop(columns=["position"])
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(
        content=csv_bytes,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=bloodsugar-readings.csv"},
    )
