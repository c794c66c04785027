"""
Statement Store
===============

Persistence boundary for canonical statements.

- StatementStore          → abstract interface the services depend on
- InMemoryStatementStore  → dict-backed store (local runs, tests)
- MongoStatementStore     → LRS statements collection (pymongo)

save() assigns id / stored when absent. Range queries are inclusive on both
ends. delete_by_id() reports whether something was deleted.
"""

from __future__ import annotations

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from lrs_api.models import Statement, to_utc, utc_now

logger = logging.getLogger(__name__)


def _with_server_fields(statement: Statement) -> Statement:
    update: Dict[str, Any] = {}
    if not statement.id:
        update["id"] = str(uuid.uuid4())
    if statement.stored is None:
        update["stored"] = utc_now()
    if not update:
        return statement
    return statement.model_copy(update=update)


class StatementStore(ABC):
    """Keyed statement collection with a few indexed queries."""

    @abstractmethod
    def save(self, statement: Statement) -> Statement:
        ...

    @abstractmethod
    def find_by_id(self, statement_id: str) -> Optional[Statement]:
        ...

    @abstractmethod
    def find_all(self) -> List[Statement]:
        ...

    @abstractmethod
    def find_by_actor_name(self, actor_name: str) -> List[Statement]:
        ...

    @abstractmethod
    def find_by_verb_id(self, verb_id: str) -> List[Statement]:
        ...

    @abstractmethod
    def find_by_timestamp_range(self, start: datetime, end: datetime) -> List[Statement]:
        ...

    @abstractmethod
    def delete_by_id(self, statement_id: str) -> bool:
        ...

    def ping(self) -> bool:
        return True


# ============================================================================
# In-memory store
# ============================================================================


class InMemoryStatementStore(StatementStore):
    """
    Insertion-ordered dict store. Thread-safe for the API thread pool.

    Statements go in and come out as deep copies; callers never hold a
    reference into the stored objects.
    """

    def __init__(self):
        self._statements: Dict[str, Statement] = {}
        self._lock = threading.RLock()

    def save(self, statement: Statement) -> Statement:
        saved = _with_server_fields(statement)
        with self._lock:
            self._statements[saved.id] = saved.model_copy(deep=True)
        return saved

    def find_by_id(self, statement_id: str) -> Optional[Statement]:
        with self._lock:
            statement = self._statements.get(statement_id)
        return statement.model_copy(deep=True) if statement is not None else None

    def find_all(self) -> List[Statement]:
        with self._lock:
            stored = list(self._statements.values())
        return [s.model_copy(deep=True) for s in stored]

    def find_by_actor_name(self, actor_name: str) -> List[Statement]:
        return [s for s in self.find_all() if s.actor.name == actor_name]

    def find_by_verb_id(self, verb_id: str) -> List[Statement]:
        return [s for s in self.find_all() if s.verb.id == verb_id]

    def find_by_timestamp_range(self, start: datetime, end: datetime) -> List[Statement]:
        start, end = to_utc(start), to_utc(end)
        return [
            s
            for s in self.find_all()
            if s.timestamp is not None and start <= s.timestamp <= end
        ]

    def delete_by_id(self, statement_id: str) -> bool:
        with self._lock:
            return self._statements.pop(statement_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._statements.clear()


# ============================================================================
# MongoDB store
# ============================================================================


class MongoStatementStore(StatementStore):
    """
    LRS statements collection.

    - _id        → statement id
    - timestamp  → BSON date (range queries)
    - stored     → BSON date
    """

    def __init__(self, collection=None):
        if collection is None:
            from pymongo import MongoClient

            from lrs_api.config import LRS_MONGO_COLLECTION, LRS_MONGO_DB, LRS_MONGO_URI

            client = MongoClient(LRS_MONGO_URI, tz_aware=True)
            collection = client[LRS_MONGO_DB][LRS_MONGO_COLLECTION]
        self.statements = collection

    # ---------- document mapping ----------

    @staticmethod
    def _to_document(statement: Statement) -> Dict[str, Any]:
        doc = statement.model_dump(mode="json", by_alias=True, exclude_none=True)
        doc["_id"] = doc.pop("id")
        # Keep dates as BSON dates, not ISO strings
        if statement.timestamp is not None:
            doc["timestamp"] = statement.timestamp
        if statement.stored is not None:
            doc["stored"] = statement.stored
        return doc

    @staticmethod
    def _from_document(doc: Dict[str, Any]) -> Statement:
        data = dict(doc)
        data["id"] = str(data.pop("_id", ""))
        return Statement.model_validate(data)

    def _find(self, query: Dict[str, Any]) -> List[Statement]:
        return [self._from_document(doc) for doc in self.statements.find(query)]

    # ---------- StatementStore ----------

    def save(self, statement: Statement) -> Statement:
        saved = _with_server_fields(statement)
        self.statements.replace_one(
            {"_id": saved.id},
            self._to_document(saved),
            upsert=True,
        )
        return saved

    def find_by_id(self, statement_id: str) -> Optional[Statement]:
        doc = self.statements.find_one({"_id": statement_id})
        return self._from_document(doc) if doc else None

    def find_all(self) -> List[Statement]:
        return self._find({})

    def find_by_actor_name(self, actor_name: str) -> List[Statement]:
        return self._find({"actor.name": actor_name})

    def find_by_verb_id(self, verb_id: str) -> List[Statement]:
        return self._find({"verb.id": verb_id})

    def find_by_timestamp_range(self, start: datetime, end: datetime) -> List[Statement]:
        return self._find(
            {"timestamp": {"$gte": to_utc(start), "$lte": to_utc(end)}}
        )

    def delete_by_id(self, statement_id: str) -> bool:
        result = self.statements.delete_one({"_id": statement_id})
        return result.deleted_count > 0

    def ping(self) -> bool:
        try:
            self.statements.database.client.admin.command("ping")
            return True
        except Exception as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False


__all__ = [
    "StatementStore",
    "InMemoryStatementStore",
    "MongoStatementStore",
]
