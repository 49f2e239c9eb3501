"""Mission Control: FastAPI application entry point."""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from missioncontrol.aggregator import aggregator
from missioncontrol.config import settings
from missioncontrol.logging_config import setup_logging
from missioncontrol.observability.metrics import metrics
from missioncontrol.store.factory import prepare_store

from missioncontrol.api.dashboard import router as dashboard_router
from missioncontrol.api.websocket import manager as ws_manager, router as websocket_router
from missioncontrol.workers.scheduler import scheduler

logger = logging.getLogger("missioncontrol")

# Rate limiter
limiter = Limiter(key_func=get_remote_address, default_limits=["120/minute"])


def _startup_checks() -> None:
    """Log warnings for misconfigured or missing settings."""
    startup_errors: list[str] = []

    if settings.is_production and not settings.cors_origins_list:
        startup_errors.append("APP_ENV=production but CORS_ORIGINS is empty")

    if settings.is_production and not settings.uses_supabase:
        startup_errors.append("APP_ENV=production without SUPABASE_URL/key; serving the local database")

    if settings.supabase_url and not settings.supabase_key:
        startup_errors.append("SUPABASE_URL is set but no SUPABASE_SERVICE_ROLE_KEY or SUPABASE_ANON_KEY")

    if settings.uses_supabase and not settings.supabase_service_role_key:
        logger.info("○ Using the anon key; marking risks resolved needs an update policy on risk_assessments")

    for msg in startup_errors:
        logger.warning(f"⚠  {msg}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    setup_logging(settings.log_level)
    _startup_checks()

    await prepare_store(aggregator.store)
    aggregator.add_listener(ws_manager.on_dashboard_event)
    logger.info("✦ Mission Control API started")
    logger.info(f"  Store: {aggregator.store.store_name}")
    logger.info(f"  Refresh interval: {settings.refresh_interval_seconds}s")

    await scheduler.start()

    yield

    await scheduler.stop()
    aggregator.remove_listener(ws_manager.on_dashboard_event)
    logger.info("✦ Mission Control API shutting down")


app = FastAPI(
    title="Mission Control",
    description="Engineering ops dashboard: risks, team pulse, delivery and client signals",
    version="0.3.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request tracing + access log middleware
@app.middleware("http")
async def request_context(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    start = time.perf_counter()

    response: Response = await call_next(request)

    duration_ms = round((time.perf_counter() - start) * 1000, 2)
    response.headers["X-Request-ID"] = request_id
    metrics.observe_request(request.url.path, response.status_code, duration_ms)
    logger.info(
        "request completed",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response


# Routers
app.include_router(dashboard_router)
app.include_router(websocket_router)


@app.get("/")
async def root():
    return JSONResponse(
        {
            "service": "missioncontrol-api",
            "status": "ok",
            "endpoints": {
                "dashboard": "/api/dashboard",
                "health": "/api/health",
                "docs": "/docs",
            },
        }
    )


@app.get("/api/health")
async def health_check():
    store_ready = await aggregator.store.health_check()

    return {
        "status": "healthy" if store_ready and aggregator.status.value != "error" else "degraded",
        "service": "missioncontrol",
        "version": app.version,
        "store": aggregator.store.store_name,
        "store_ready": store_ready,
        "dashboard": aggregator.state(),
        "websocket_connections": ws_manager.connection_count,
        "scheduler_active": scheduler.running,
    }


@app.get("/api/health/live")
async def liveness_check():
    return {"status": "alive", "service": "missioncontrol"}


@app.get("/api/metrics")
async def get_metrics():
    return {
        "service": "missioncontrol",
        "version": app.version,
        "metrics": metrics.snapshot(),
    }


@app.get("/api/health/ready")
async def readiness_check(response: Response):
    store_ready = await aggregator.store.health_check()
    has_data = aggregator.last_updated is not None
    ready = store_ready and has_data and scheduler.running

    if not ready:
        response.status_code = 503

    return {
        "status": "ready" if ready else "not_ready",
        "checks": {
            "store": store_ready,
            "data_loaded": has_data,
            "scheduler": scheduler.running,
        },
    }
