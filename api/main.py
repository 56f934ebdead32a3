from __future__ import annotations

import logging
import math
import os
from contextlib import asynccontextmanager
from datetime import date, datetime
from decimal import Decimal

from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.refresh import DashboardRefresher, RefreshConfig
from api.schemas import ErrorResponse, SnapshotModel
from api.sources import AppsScriptClient, fetch_snapshot
from reconcile.charts import category_pie, revenue_chart, status_bar, to_vega_spec
from reconcile.config import EngineConfig, normalize_config
from reconcile.dashboard import DashboardResult, SourceUnavailable, compute_dashboard
from reconcile.errors import SnapshotError

logger = logging.getLogger(__name__)


def engine_config_from_env() -> EngineConfig:
    return normalize_config(
        {
            "currency": os.environ.get("CURRENCY", "INR"),
            "timezone": os.environ.get("TIMEZONE", "UTC"),
            "dedup_key": os.environ.get("DEDUP_KEY", "name_date"),
        }
    )


def build_refresher() -> DashboardRefresher:
    client = AppsScriptClient()
    return DashboardRefresher(
        lambda: fetch_snapshot(client),
        engine_config=engine_config_from_env(),
        refresh_config=RefreshConfig.from_env(),
    )


refresher = build_refresher()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if os.environ.get("APPS_SCRIPT_URL"):
        refresher.start()
    else:
        logger.warning("APPS_SCRIPT_URL not set; scheduled refresh disabled")
    yield
    refresher.shutdown()


app = FastAPI(title="Studio Dashboard API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_RESPONSES = {500: {"model": ErrorResponse}}


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with Decimal money as floats and NaN/inf as null."""

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
                Decimal: _safe_float,
                float: _safe_float,
                datetime: lambda dt: dt.isoformat(),
                date: lambda d: d.isoformat(),
            },
        ),
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _latest_or_503() -> DashboardResult | JSONResponse:
    result = refresher.latest
    if result is None:
        return JSONResponse(status_code=503, content={"error": "dashboard not ready", "type": "NotReady"})
    return result


CHARTS = {
    "revenue": lambda r: revenue_chart(r.revenue),
    "leads-by-type": lambda r: category_pie(r.leads_by_type),
    "payment-status": lambda r: status_bar(r.payment_status),
    "leads-by-source": lambda r: category_pie(r.leads_by_source, title="Leads by source"),
    "top-packages": lambda r: category_pie(r.top_packages, title="Top packages"),
}


@app.get("/health")
def health():
    last = refresher.last_refresh
    return _json({"status": "ok", "last_refresh": last.isoformat() if last else None})


@app.get("/dashboard", responses=ERROR_RESPONSES)
def dashboard():
    try:
        result = _latest_or_503()
        if isinstance(result, JSONResponse):
            return result
        return _json(result.to_dict())
    except Exception as exc:
        logger.exception("dashboard failed")
        return _error(exc)


@app.post("/dashboard/compute", responses=ERROR_RESPONSES)
def dashboard_compute(snapshot: SnapshotModel):
    try:
        unavailable = set(snapshot.unavailable)

        def collection(name: str):
            if name in unavailable:
                return SourceUnavailable(reason="reported unavailable by caller")
            return getattr(snapshot, name)

        result = compute_dashboard(
            collection("leads"),
            collection("events"),
            collection("payments"),
            collection("photographers"),
            config=normalize_config(snapshot.config.model_dump()),
            today=snapshot.today,
        )
        return _json(result.to_dict())
    except SnapshotError as exc:
        return _error(exc, status_code=422)
    except Exception as exc:
        logger.exception("dashboard_compute failed")
        return _error(exc)


@app.get("/ledgers/{lead_id}", responses=ERROR_RESPONSES)
def ledger(lead_id: str):
    try:
        result = _latest_or_503()
        if isinstance(result, JSONResponse):
            return result
        found = result.ledger(lead_id)
        if found is None:
            return JSONResponse(status_code=404, content={"error": f"no ledger for lead {lead_id}", "type": "NotFound"})
        return _json(found.to_dict())
    except Exception as exc:
        logger.exception("ledger failed")
        return _error(exc)


@app.get("/charts/{name}", responses=ERROR_RESPONSES)
def chart(name: str):
    try:
        build = CHARTS.get(name)
        if build is None:
            return JSONResponse(status_code=404, content={"error": f"unknown chart {name}", "type": "NotFound"})
        result = _latest_or_503()
        if isinstance(result, JSONResponse):
            return result
        return _json(to_vega_spec(build(result)))
    except Exception as exc:
        logger.exception("chart failed")
        return _error(exc)


@app.post("/refresh", responses=ERROR_RESPONSES)
def refresh_now():
    try:
        result = refresher.refresh()
        if result is None:
            return JSONResponse(status_code=409, content={"error": "refresh superseded by a newer one", "type": "Superseded"})
        return _json(result.to_dict())
    except Exception as exc:
        logger.exception("refresh failed")
        return _error(exc)
