"""
Pytest configuration for the LRS tests.

This module provides:
1. Test environment (in-memory store, no webhook) set before any app import
2. Async test support without pytest-asyncio
3. Statement factories and an API client fixture
"""

import asyncio
import functools
import os
from datetime import datetime, timezone
from typing import Optional

import pytest

os.environ["LRS_STORE_BACKEND"] = "memory"
os.environ["NOTIFY_WEBHOOK_URL"] = ""
os.environ["REPORT_TIMEZONE"] = "UTC"

from lrs_api.models import (  # noqa: E402
    Actor,
    Definition,
    Result,
    Score,
    Statement,
    StatementObject,
    Verb,
)

VERB_NS = "http://adlnet.gov/expapi/verbs/"


# -----------------------------------------------------------------------------
# Async Test Support
# -----------------------------------------------------------------------------
def async_test(func):
    """
    Decorator to run async tests without pytest-asyncio.

    Usage:
        @async_test
        async def test_something(self):
            result = await some_async_function()
            assert result is not None
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        return asyncio.run(func(*args, **kwargs))
    return wrapper


# -----------------------------------------------------------------------------
# Statement Factories
# -----------------------------------------------------------------------------
def make_statement(
    actor_id: str = "learner-1",
    verb: str = "completed",
    activity_id: str = "http://example.com/activities/algebra",
    activity_name: Optional[str] = "Intro to Algebra",
    scaled: Optional[float] = None,
    completion: Optional[bool] = None,
    success: Optional[bool] = None,
    duration: Optional[str] = None,
    timestamp: Optional[datetime] = datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc),
    actor_name: Optional[str] = None,
    mbox: Optional[str] = None,
    statement_id: Optional[str] = None,
) -> Statement:
    """Build a stored-looking statement with only the given parts set."""
    result = None
    if any(v is not None for v in (scaled, completion, success, duration)):
        result = Result(
            score=Score(scaled=scaled) if scaled is not None else None,
            completion=completion,
            success=success,
            duration=duration,
        )

    return Statement(
        id=statement_id,
        actor=Actor(id=actor_id, name=actor_name or actor_id, mbox=mbox),
        verb=Verb(id=f"{VERB_NS}{verb}", display={"en-US": verb}),
        object=StatementObject(
            id=activity_id,
            definition=Definition(name={"en-US": activity_name}) if activity_name else None,
        ),
        result=result,
        timestamp=timestamp,
    )


@pytest.fixture
def statement_factory():
    return make_statement


# -----------------------------------------------------------------------------
# API Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def memory_store():
    """The shared in-memory store used by the app, emptied per test."""
    from lrs_api.deps import get_statement_store

    store = get_statement_store()
    store.clear()
    yield store
    store.clear()


@pytest.fixture
def client(memory_store):
    """TestClient with the app lifespan (event publisher) running."""
    from fastapi.testclient import TestClient

    from lrs_api.main import app

    with TestClient(app) as test_client:
        yield test_client
