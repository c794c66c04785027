"""
main.py
=======

LRS API entry point.

This module:
- creates the FastAPI application,
- configures CORS,
- registers the route modules,
- starts / stops the statement event publisher with the app lifespan,
- exposes simple info and health endpoints.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lrs_api.api.routes_learning_events import router as learning_events_router
from lrs_api.api.routes_reports import router as reports_router
from lrs_api.api.routes_statements import router as statements_router
from lrs_api.config import ENV, LOG_LEVEL, LRS_STORE_BACKEND, XAPI_VERSION
from lrs_api.deps import get_event_publisher, get_statement_store
from lrs_api.models import utc_now

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

APP_NAME = "Learning Record Store API"
APP_VERSION = "1.0.0"


# ============================================================================
# Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    publisher = get_event_publisher()
    publisher.start()
    logger.info(f"{APP_NAME} started (env={ENV}, store={LRS_STORE_BACKEND})")
    try:
        yield
    finally:
        await publisher.stop()


# ============================================================================
# Application Setup
# ============================================================================

app = FastAPI(
    title=APP_NAME,
    description=(
        "xAPI learning record store. Accepts canonical statements and simplified "
        "learning events, and serves activity / actor / verb / trend reports."
    ),
    version=APP_VERSION,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# Routers
# ============================================================================

app.include_router(statements_router)
app.include_router(learning_events_router)
app.include_router(reports_router)


# ============================================================================
# Info / Health Endpoints
# ============================================================================


@app.get("/")
async def root():
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "xapiVersion": XAPI_VERSION,
        "endpoints": [
            "/api/statements",
            "/api/learning-events",
            "/api/learning-events/batch",
            "/api/reports/comprehensive",
            "/api/reports/activity/{activityId}",
            "/api/reports/actor/{actorId}",
            "/api/reports/verbs",
            "/api/reports/daily-trends",
            "/api/reports/top-performers",
            "/api/reports/popular-activities",
            "/health",
        ],
    }


@app.get("/health")
async def health():
    """
    Health check: API, statement store and notification worker.

    status is "ok" when the store answers, "degraded" otherwise.
    """
    store_alive = get_statement_store().ping()
    publisher = get_event_publisher()

    details = {
        "api": "alive",
        "store": "alive" if store_alive else "dead",
        "notifications": "running" if publisher.running else "stopped",
        "droppedNotifications": publisher.dropped,
    }

    return {
        "status": "ok" if store_alive else "degraded",
        "service": APP_NAME,
        "version": APP_VERSION,
        "timestamp": utc_now().isoformat(),
        "details": details,
    }
