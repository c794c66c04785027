"""
Statement Service
=================

Create / read / delete for canonical statements.

- create(draft)  → Statement entity → store.save → StatementResponse
                   → publisher.publish (fire-and-forget, exactly once)
- read paths     → StatementResponse projections (None when not found)
- delete(id)     → StatementNotFoundError when the id is unknown

The stored entity never leaves this service; callers always receive the
StatementResponse projection.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from lrs_api.config import XAPI_VERSION
from lrs_api.models import (
    Statement,
    StatementDraft,
    StatementResponse,
    utc_now,
)
from lrs_api.services.notification_service import StatementEventPublisher
from lrs_api.services.statement_store import StatementStore

logger = logging.getLogger(__name__)


class StatementNotFoundError(LookupError):
    """Update / delete on an unknown statement id."""

    def __init__(self, statement_id: str):
        super().__init__(f"Statement not found: {statement_id}")
        self.statement_id = statement_id


class StatementService:
    def __init__(
        self,
        store: StatementStore,
        publisher: Optional[StatementEventPublisher] = None,
        version: str = XAPI_VERSION,
    ):
        self.store = store
        self.publisher = publisher
        self.version = version

    # ---------- write ----------

    def create(self, draft: StatementDraft) -> StatementResponse:
        logger.debug(f"Creating statement for actor: {draft.actor.name or '<none>'}")

        now = utc_now()
        timestamp = draft.timestamp or now
        if timestamp > now:
            # Event time may not be after write time
            logger.warning(f"Statement timestamp {timestamp.isoformat()} is in the future, clamping to now")
            timestamp = now

        actor = draft.actor
        if not actor.id:
            actor = actor.model_copy(update={"id": str(uuid.uuid4())})

        statement = Statement(
            actor=actor,
            verb=draft.verb,
            object=draft.object,
            result=draft.result,
            context=draft.context,
            timestamp=timestamp,
            stored=now,
            authority=draft.authority,
            version=self.version,
            attachments=draft.attachments,
        )

        saved = self.store.save(statement)
        response = StatementResponse.from_statement(saved)

        if self.publisher is not None:
            self._notify(response)

        return response

    def _notify(self, response: StatementResponse) -> None:
        try:
            self.publisher.publish(response)
        except Exception as e:
            logger.error(f"Could not publish statement created event {response.id}: {e}")

    def delete(self, statement_id: str) -> None:
        logger.debug(f"Deleting statement with id: {statement_id}")
        if not self.store.delete_by_id(statement_id):
            raise StatementNotFoundError(statement_id)

    # ---------- read ----------

    def get(self, statement_id: str) -> Optional[StatementResponse]:
        logger.debug(f"Fetching statement by id: {statement_id}")
        statement = self.store.find_by_id(statement_id)
        return StatementResponse.from_statement(statement) if statement else None

    def list_all(self) -> List[StatementResponse]:
        logger.debug("Fetching all statements")
        return self._project(self.store.find_all())

    def list_by_actor(self, actor_name: str) -> List[StatementResponse]:
        logger.debug(f"Fetching statements for actor: {actor_name}")
        return self._project(self.store.find_by_actor_name(actor_name))

    def list_by_verb(self, verb_id: str) -> List[StatementResponse]:
        logger.debug(f"Fetching statements by verb: {verb_id}")
        return self._project(self.store.find_by_verb_id(verb_id))

    def list_by_date_range(self, start: datetime, end: datetime) -> List[StatementResponse]:
        logger.debug(f"Fetching statements between {start} and {end}")
        return self._project(self.store.find_by_timestamp_range(start, end))

    @staticmethod
    def _project(statements: List[Statement]) -> List[StatementResponse]:
        return [StatementResponse.from_statement(s) for s in statements]


__all__ = [
    "StatementService",
    "StatementNotFoundError",
]
