"""
deps.py
=======

Shared service instances for the route modules.

Every getter builds its object once per process and is used through
FastAPI's Depends(), so tests can swap any of them with
app.dependency_overrides.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from lrs_api.config import LRS_STORE_BACKEND, XAPI_NAMESPACES
from lrs_api.services.interpretation_service import InterpretationService
from lrs_api.services.notification_service import (
    StatementEventPublisher,
    build_default_listeners,
)
from lrs_api.services.report_service import ReportService
from lrs_api.services.statement_service import StatementService
from lrs_api.services.statement_store import (
    InMemoryStatementStore,
    MongoStatementStore,
    StatementStore,
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_statement_store() -> StatementStore:
    if LRS_STORE_BACKEND == "memory":
        logger.info("Using in-memory statement store")
        return InMemoryStatementStore()

    if LRS_STORE_BACKEND != "mongo":
        logger.warning(f"Unknown LRS_STORE_BACKEND {LRS_STORE_BACKEND!r}, using mongo")
    logger.info("Using MongoDB statement store")
    return MongoStatementStore()


@lru_cache(maxsize=1)
def get_event_publisher() -> StatementEventPublisher:
    return StatementEventPublisher(build_default_listeners())


@lru_cache(maxsize=1)
def get_interpretation_service() -> InterpretationService:
    return InterpretationService(XAPI_NAMESPACES)


def get_statement_service() -> StatementService:
    return StatementService(get_statement_store(), get_event_publisher())


def get_report_service() -> ReportService:
    return ReportService(get_statement_store())


__all__ = [
    "get_statement_store",
    "get_event_publisher",
    "get_interpretation_service",
    "get_statement_service",
    "get_report_service",
]
