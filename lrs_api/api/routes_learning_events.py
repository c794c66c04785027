"""
api/routes_learning_events.py
=============================

Interpretation layer API: simplified learning events from frontends are
validated, converted to xAPI statements and stored.

Endpoints:
- POST /api/learning-events        → one event (201, 400 when invalid)
- POST /api/learning-events/batch  → {"events": [...]}, per-event outcome

Request body (single):
```json
{
    "learnerName": "Ama",
    "action": "completed",
    "activityName": "Intro to Algebra",
    "score": 85
}
```
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException

from lrs_api.deps import get_interpretation_service, get_statement_service
from lrs_api.models import (
    BatchInterpretationResponse,
    BatchLearningEventsRequest,
    InterpretationResponse,
    SimplifiedLearningEvent,
    utc_now,
)
from lrs_api.services.interpretation_service import InterpretationService
from lrs_api.services.statement_service import StatementService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/learning-events", tags=["learning-events"])


@router.post("", status_code=201)
async def submit_learning_event(
    event: Optional[SimplifiedLearningEvent] = None,
    interpreter: InterpretationService = Depends(get_interpretation_service),
    statements: StatementService = Depends(get_statement_service),
) -> Dict[str, Any]:
    if event is not None:
        logger.info(
            f"Received learning event: {event.learner_name} - "
            f"{event.action} - {event.activity_name}"
        )

    if not interpreter.validate(event):
        raise HTTPException(
            status_code=400,
            detail="Invalid learning event: missing required fields",
        )

    draft = interpreter.interpret(event)
    statement = statements.create(draft)

    response = InterpretationResponse(
        success=True,
        message="Learning event processed successfully",
        statement_id=statement.id,
        timestamp=utc_now(),
        validated_statement=statement,
    )

    logger.info(f"Learning event processed successfully: {statement.id}")
    return {
        "status": "ok",
        "message": "Learning event recorded successfully",
        "data": response.to_payload(),
    }


@router.post("/batch")
async def submit_learning_events_batch(
    request: BatchLearningEventsRequest,
    interpreter: InterpretationService = Depends(get_interpretation_service),
    statements: StatementService = Depends(get_statement_service),
) -> Dict[str, Any]:
    """
    Each event is processed on its own: a failed event is reported in its
    response entry and the rest of the batch continues.
    """
    logger.info(f"Received batch learning events: {len(request.events)} events")

    responses = []
    success_count = 0
    failure_count = 0

    for event in request.events:
        if not interpreter.validate(event):
            failure_count += 1
            responses.append(InterpretationResponse(success=False, message="Validation failed"))
            continue

        try:
            statement = statements.create(interpreter.interpret(event))
        except Exception as e:
            logger.error(f"Error processing event in batch: {e}")
            failure_count += 1
            responses.append(
                InterpretationResponse(success=False, message=f"Processing error: {e}")
            )
            continue

        success_count += 1
        responses.append(
            InterpretationResponse(
                success=True,
                message="Success",
                statement_id=statement.id,
                timestamp=utc_now(),
            )
        )

    batch = BatchInterpretationResponse(
        total_events=len(request.events),
        success_count=success_count,
        failure_count=failure_count,
        responses=responses,
    )

    logger.info(f"Batch processing complete: {success_count} success, {failure_count} failures")
    return {
        "status": "ok",
        "message": "Batch processed",
        "data": batch.to_payload(),
    }
