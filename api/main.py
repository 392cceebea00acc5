from __future__ import annotations

import asyncio
import logging
import math
from functools import lru_cache
from typing import AsyncIterator, Optional

import httpx
import numpy as np
from fastapi import Depends, FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import FredSeriesResponse, IndicatorChangeModel, RangeChangeModel, SurfaceResponse
from econdash.config import Settings, configure_logging, load_settings
from econdash.indicators import DEFAULT_GROUPS, DEFAULT_SURFACES
from econdash.loader import FredSeriesLoader
from econdash.orchestrator import Dashboard, IndicatorChanged, Phase, RangeChanged
from econdash.ranges import RANGE_CHOICES, range_label
from econdash.sink import ChartStore
from econdash.slicing import MONTHLY, QUARTERLY
from econdash.timeline import Missing


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


_settings = get_settings()
configure_logging(_settings.log_level)

app = FastAPI(title="Economic Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_dashboard: Optional[Dashboard] = None
_dashboard_lock = asyncio.Lock()


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects and missing markers."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                Missing: lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.ndarray: lambda arr: arr.tolist(),
            },
        ),
    )


def _error(status_code: int, exc: BaseException) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


async def get_http_client(settings: Settings = Depends(get_settings)) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(timeout=settings.timeout) as client:
        yield client


def build_loader(settings: Settings) -> FredSeriesLoader:
    return FredSeriesLoader(settings.backend_base, timeout=settings.timeout)


async def get_dashboard(settings: Settings = Depends(get_settings)) -> Dashboard:
    """One dashboard per process, initialized on first use. A failed load stays failed."""
    global _dashboard
    async with _dashboard_lock:
        if _dashboard is None:
            loader = build_loader(settings)
            dashboard = Dashboard(
                loader,
                ChartStore(),
                keep={MONTHLY: settings.keep_monthly, QUARTERLY: settings.keep_quarterly},
            )
            _dashboard = dashboard
            try:
                await dashboard.initialize()
            except Exception:
                # Logged and kept on dashboard.error; handlers answer 503.
                if dashboard.phase is not Phase.FAILED:
                    raise
            finally:
                await loader.aclose()
    return _dashboard


def _unavailable(dashboard: Dashboard) -> Optional[JSONResponse]:
    if dashboard.phase is Phase.READY:
        return None
    if dashboard.error is not None:
        return _error(503, dashboard.error)
    return JSONResponse(status_code=503, content={"error": f"dashboard is {dashboard.phase.value}", "type": "RuntimeError"})


def _store(dashboard: Dashboard) -> ChartStore:
    return dashboard.sink  # type: ignore[return-value]


def _dashboard_payload(dashboard: Dashboard) -> dict:
    store = _store(dashboard)
    return {
        "phase": dashboard.phase.value,
        "indicator": dashboard.current_indicator,
        "ranges": {k: range_label(v) for k, v in dashboard.ranges.items()},
        "surfaces": {s: store.payload(s, include_spec=True) for s in dashboard.surfaces},
    }


@app.get("/api/fred", response_model=FredSeriesResponse)
async def fred_observations(
    series_id: str = Query(..., min_length=1),
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
):
    if not settings.fred_api_key:
        return JSONResponse(status_code=500, content={"error": "FRED_API_KEY not set", "type": "ConfigError"})
    params = {"series_id": series_id, "api_key": settings.fred_api_key, "file_type": "json"}
    try:
        resp = await client.get(f"{settings.fred_api_base}/series/observations", params=params)
    except httpx.HTTPError as exc:
        logger.exception("fred request failed for %s", series_id)
        return _error(502, exc)
    if not resp.is_success:
        logger.warning("fred returned HTTP %s for %s", resp.status_code, series_id)
        return JSONResponse(
            status_code=502,
            content={"error": f"FRED HTTP error {resp.status_code} for {series_id}", "type": "DataFetchError"},
        )
    try:
        body = resp.json()
    except ValueError as exc:
        logger.exception("fred returned invalid JSON for %s", series_id)
        return _error(502, exc)
    raw_obs = body.get("observations") if isinstance(body, dict) else None
    if not isinstance(raw_obs, list):
        return JSONResponse(status_code=502, content={"error": f"FRED response for {series_id} has no observations", "type": "DataFetchError"})
    observations = [
        {"date": str(obs.get("date", "")), "value": str(obs.get("value", ""))}
        for obs in raw_obs
        if isinstance(obs, dict)
    ]
    return {"series_id": series_id, "observations": observations}


@app.get("/meta/indicators")
def meta_indicators():
    groups = [
        {
            "name": g.name,
            "frequency": g.frequency,
            "master": g.master_key,
            "indicators": [{"key": i.key, "series_id": i.series_id, "name": i.name} for i in g.indicators],
        }
        for g in DEFAULT_GROUPS
    ]
    return _json({"groups": groups})


@app.get("/meta/ranges")
def meta_ranges():
    defaults = {s.name: s.default_range for s in DEFAULT_SURFACES}
    return _json({"choices": list(RANGE_CHOICES), "defaults": defaults})


@app.get("/dashboard")
async def dashboard_state(dashboard: Dashboard = Depends(get_dashboard)):
    unavailable = _unavailable(dashboard)
    if unavailable is not None:
        return unavailable
    try:
        return _json(_dashboard_payload(dashboard))
    except Exception as exc:
        logger.exception("dashboard failed")
        return _error(500, exc)


@app.post("/dashboard/range", response_model=SurfaceResponse)
async def change_range(change: RangeChangeModel, dashboard: Dashboard = Depends(get_dashboard)):
    unavailable = _unavailable(dashboard)
    if unavailable is not None:
        return unavailable
    try:
        update = dashboard.dispatch(RangeChanged(surface=change.surface, range=change.range))
    except KeyError as exc:
        return JSONResponse(status_code=404, content={"error": f"unknown surface {change.surface!r}", "type": type(exc).__name__})
    except ValueError as exc:
        return _error(422, exc)
    return _store(dashboard).payload(update.surface, include_spec=True)


@app.post("/dashboard/indicator", response_model=SurfaceResponse)
async def change_indicator(change: IndicatorChangeModel, dashboard: Dashboard = Depends(get_dashboard)):
    unavailable = _unavailable(dashboard)
    if unavailable is not None:
        return unavailable
    try:
        update = dashboard.dispatch(IndicatorChanged(indicator=change.indicator))
    except KeyError as exc:
        return JSONResponse(status_code=404, content={"error": f"unknown indicator {change.indicator!r}", "type": type(exc).__name__})
    return _store(dashboard).payload(update.surface, include_spec=True)


@app.get("/export/{surface}")
async def export_surface(surface: str, dashboard: Dashboard = Depends(get_dashboard)):
    unavailable = _unavailable(dashboard)
    if unavailable is not None:
        return unavailable
    if surface not in dashboard.surfaces:
        return JSONResponse(status_code=404, content={"error": f"unknown surface {surface!r}", "type": "KeyError"})

    export_df = _store(dashboard).table(surface)
    filename = f"{surface}.csv"
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
