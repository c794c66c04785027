"""
api/routes_statements.py
========================

Canonical statement endpoints.

Endpoints:
- POST   /api/statements                      → store a statement
- GET    /api/statements                      → all statements
- GET    /api/statements/date-range           → statements with start <= timestamp <= end
- GET    /api/statements/actor/{actor_name}   → statements by actor name
- GET    /api/statements/verb/{verb_id}       → statements by verb id (URI)
- GET    /api/statements/{statement_id}       → one statement
- DELETE /api/statements/{statement_id}       → delete one statement

Every response carries StatementResponse projections, never the stored entity.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query

from lrs_api.deps import get_statement_service
from lrs_api.models import StatementDraft, to_utc
from lrs_api.services.statement_service import StatementNotFoundError, StatementService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/statements", tags=["statements"])


# ============================================================================
# CREATE
# ============================================================================


@router.post("", status_code=201)
async def create_statement(
    draft: StatementDraft,
    service: StatementService = Depends(get_statement_service),
) -> Dict[str, Any]:
    logger.info(f"Received statement creation request for verb: {draft.verb.id}")
    statement = service.create(draft)

    return {
        "status": "ok",
        "message": "Statement created successfully",
        "data": statement.to_payload(),
    }


# ============================================================================
# READ
# ============================================================================


@router.get("")
async def list_statements(
    service: StatementService = Depends(get_statement_service),
) -> Dict[str, Any]:
    statements = service.list_all()
    return {
        "status": "ok",
        "message": f"{len(statements)} statements",
        "data": [s.to_payload() for s in statements],
    }


@router.get("/date-range")
async def list_statements_by_date_range(
    start: datetime = Query(..., description="Range start (inclusive, ISO-8601)"),
    end: datetime = Query(..., description="Range end (inclusive, ISO-8601)"),
    service: StatementService = Depends(get_statement_service),
) -> Dict[str, Any]:
    if to_utc(start) > to_utc(end):
        raise HTTPException(status_code=400, detail="start must not be after end")

    statements = service.list_by_date_range(start, end)
    return {
        "status": "ok",
        "message": f"{len(statements)} statements",
        "data": [s.to_payload() for s in statements],
    }


@router.get("/actor/{actor_name}")
async def list_statements_by_actor(
    actor_name: str,
    service: StatementService = Depends(get_statement_service),
) -> Dict[str, Any]:
    statements = service.list_by_actor(actor_name)
    return {
        "status": "ok",
        "message": f"{len(statements)} statements",
        "data": [s.to_payload() for s in statements],
    }


@router.get("/verb/{verb_id:path}")
async def list_statements_by_verb(
    verb_id: str,
    service: StatementService = Depends(get_statement_service),
) -> Dict[str, Any]:
    """verb_id is a full URI, e.g. /api/statements/verb/http://adlnet.gov/expapi/verbs/completed"""
    statements = service.list_by_verb(verb_id)
    return {
        "status": "ok",
        "message": f"{len(statements)} statements",
        "data": [s.to_payload() for s in statements],
    }


@router.get("/{statement_id}")
async def get_statement(
    statement_id: str,
    service: StatementService = Depends(get_statement_service),
) -> Dict[str, Any]:
    statement = service.get(statement_id)
    if statement is None:
        raise HTTPException(status_code=404, detail=f"Statement not found: {statement_id}")

    return {
        "status": "ok",
        "message": "Statement found",
        "data": statement.to_payload(),
    }


# ============================================================================
# DELETE
# ============================================================================


@router.delete("/{statement_id}")
async def delete_statement(
    statement_id: str,
    service: StatementService = Depends(get_statement_service),
) -> Dict[str, Any]:
    try:
        service.delete(statement_id)
    except StatementNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return {
        "status": "ok",
        "message": f"Statement deleted: {statement_id}",
        "data": None,
    }
