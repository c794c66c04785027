"""
models.py
=========

Central model definitions.

- Canonical xAPI statement model (Actor, Verb, StatementObject, Result, Context,
  Statement) shared by the interpretation layer, the store and the reports
- External API request/response models (Pydantic BaseModel)
- Report models produced by the aggregation layer

NOTE: JSON field names follow xAPI (camelCase, "objectType", "mbox_sha1sum"),
      Python attribute names stay snake_case. Both are accepted on input.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


# ============================================================================
# Helpers
# ============================================================================


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Naive datetimes are taken as UTC, aware datetimes are converted to UTC.

    Mongo and query-string datetimes arrive naive while statements are
    compared against a timezone-aware "now".
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _coerce_enum(enum_cls: Type[E], value: Any, default: E) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning(
            f"Unknown {enum_cls.__name__} value {value!r}, defaulting to {default.value}"
        )
        return default


# ============================================================================
# Type discriminants
# ============================================================================


class ActorType(str, Enum):
    """Actor objectType. Unknown values fall back to Agent."""

    AGENT = "Agent"
    GROUP = "Group"

    @classmethod
    def coerce(cls, value: Any) -> "ActorType":
        return _coerce_enum(cls, value, cls.AGENT)


class ObjectType(str, Enum):
    """Statement object objectType. Unknown values fall back to Activity."""

    ACTIVITY = "Activity"
    AGENT = "Agent"
    GROUP = "Group"
    SUB_STATEMENT = "SubStatement"
    STATEMENT_REF = "StatementRef"

    @classmethod
    def coerce(cls, value: Any) -> "ObjectType":
        return _coerce_enum(cls, value, cls.ACTIVITY)


# ============================================================================
# Canonical Statement Model
# ============================================================================


class XapiModel(BaseModel):
    """Base for xAPI structures: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Account(XapiModel):
    home_page: Optional[str] = None
    name: Optional[str] = None


class Actor(XapiModel):
    """
    Statement subject.

    Exactly one of mbox / mbox_sha1sum / openid / account is expected as the
    primary identity, but this is advisory and not enforced.
    """

    id: Optional[str] = None
    name: Optional[str] = None
    mbox: Optional[str] = None
    mbox_sha1sum: Optional[str] = Field(default=None, alias="mbox_sha1sum")
    openid: Optional[str] = Field(default=None, alias="openid")
    account: Optional[Account] = None
    object_type: Optional[ActorType] = None

    @field_validator("object_type", mode="before")
    @classmethod
    def _coerce_object_type(cls, value: Any) -> Optional[ActorType]:
        if value is None:
            return None
        return ActorType.coerce(value)


class Verb(XapiModel):
    id: str
    display: Optional[Dict[str, str]] = None


class Definition(XapiModel):
    name: Optional[Dict[str, str]] = None
    description: Optional[Dict[str, str]] = None
    type: Optional[str] = None
    more_info: Optional[str] = None
    extensions: Optional[Dict[str, Any]] = None


class StatementObject(XapiModel):
    id: str
    object_type: Optional[ObjectType] = None
    definition: Optional[Definition] = None

    @field_validator("object_type", mode="before")
    @classmethod
    def _coerce_object_type(cls, value: Any) -> Optional[ObjectType]:
        if value is None:
            return None
        return ObjectType.coerce(value)


class Score(XapiModel):
    # Plain numbers, no range enforcement
    scaled: Optional[float] = None
    raw: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None


class Result(XapiModel):
    score: Optional[Score] = None
    success: Optional[bool] = None
    completion: Optional[bool] = None
    response: Optional[str] = None
    duration: Optional[str] = None
    extensions: Optional[Dict[str, Any]] = None


class Context(XapiModel):
    registration: Optional[str] = None
    instructor_id: Optional[str] = None
    team_id: Optional[str] = None
    context_activities: Optional[Dict[str, List[StatementObject]]] = None
    revision: Optional[str] = None
    platform: Optional[str] = None
    language: Optional[str] = None
    statement: Optional[str] = None
    extensions: Optional[Dict[str, Any]] = None

    def is_empty(self) -> bool:
        """True when every field (extensions / contextActivities included) is empty."""
        return not any(
            [
                self.registration,
                self.instructor_id,
                self.team_id,
                self.context_activities,
                self.revision,
                self.platform,
                self.language,
                self.statement,
                self.extensions,
            ]
        )


class StatementDraft(XapiModel):
    """
    Statement before it is stored.

    Produced by the interpretation layer or posted directly to /api/statements.
    id / stored are assigned on save.
    """

    actor: Actor
    verb: Verb
    object: StatementObject
    result: Optional[Result] = None
    context: Optional[Context] = None
    timestamp: Optional[datetime] = None
    authority: Optional[Actor] = None
    attachments: Optional[List[Dict[str, Any]]] = None

    @field_validator("timestamp", mode="after")
    @classmethod
    def _timestamp_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_utc(value)


class Statement(XapiModel):
    """
    Stored statement (storage entity). Immutable once stored.

    Invariant: timestamp <= stored.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    actor: Actor
    verb: Verb
    object: StatementObject
    result: Optional[Result] = None
    context: Optional[Context] = None
    timestamp: Optional[datetime] = None
    stored: Optional[datetime] = None
    authority: Optional[Actor] = None
    version: Optional[str] = None
    attachments: Optional[List[Dict[str, Any]]] = None

    @field_validator("timestamp", "stored", mode="after")
    @classmethod
    def _datetimes_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_utc(value)


class StatementResponse(XapiModel):
    """
    External projection of a stored statement.

    Routes always return this projection, never the Statement entity itself.
    """

    id: str
    actor: Actor
    verb: Verb
    object: StatementObject
    result: Optional[Result] = None
    context: Optional[Context] = None
    timestamp: Optional[datetime] = None
    stored: Optional[datetime] = None
    authority: Optional[Actor] = None
    version: Optional[str] = None
    attachments: Optional[List[Dict[str, Any]]] = None

    @classmethod
    def from_statement(cls, statement: Statement) -> "StatementResponse":
        return cls(
            id=statement.id,
            actor=statement.actor.model_copy(deep=True),
            verb=statement.verb.model_copy(deep=True),
            object=statement.object.model_copy(deep=True),
            result=statement.result.model_copy(deep=True) if statement.result else None,
            context=statement.context.model_copy(deep=True) if statement.context else None,
            timestamp=statement.timestamp,
            stored=statement.stored,
            authority=statement.authority.model_copy(deep=True) if statement.authority else None,
            version=statement.version,
            attachments=list(statement.attachments) if statement.attachments else None,
        )


# ============================================================================
# Interpretation Layer Models
# ============================================================================


class SimplifiedLearningEvent(XapiModel):
    """
    Business-friendly learning event sent by frontends.

      {
        "learnerName": "Ama",
        "learnerEmail": "ama@example.com",
        "action": "completed",
        "activityName": "Intro to Algebra",
        "score": 85,
        "duration": "5400"
      }
    """

    # Who did it?
    learner_id: Optional[str] = None
    learner_name: Optional[str] = None
    learner_email: Optional[str] = None

    # What did they do? ("completed", "started", "passed", "viewed", ...)
    action: Optional[str] = None
    activity_id: Optional[str] = None
    activity_name: Optional[str] = None
    activity_type: Optional[str] = None

    # How did they do? score is 0-100, duration is seconds or ISO-8601
    score: Optional[float] = None
    passed: Optional[bool] = None
    completed: Optional[bool] = None
    duration: Optional[str] = None

    # Context
    platform: Optional[str] = None
    course_id: Optional[str] = None
    course_name: Optional[str] = None
    instructor_id: Optional[str] = None
    session_id: Optional[str] = None

    metadata: Optional[Dict[str, Any]] = None


class BatchLearningEventsRequest(XapiModel):
    events: List[Optional[SimplifiedLearningEvent]] = Field(default_factory=list)


class InterpretationResponse(XapiModel):
    success: bool
    message: str
    statement_id: Optional[str] = None
    timestamp: Optional[datetime] = None
    validated_statement: Optional[StatementResponse] = None


class BatchInterpretationResponse(XapiModel):
    total_events: int
    success_count: int
    failure_count: int
    responses: List[InterpretationResponse]


# ============================================================================
# Report Models
# ============================================================================


class ReportModel(BaseModel):
    """Read-only derived views. Recomputed per call, never persisted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class VerbReport(ReportModel):
    verb_id: str
    verb_display: str
    count: int
    percentage: float


class ActorReport(ReportModel):
    actor_id: str
    actor_name: Optional[str] = None
    actor_email: Optional[str] = None
    total_statements: int = 0
    activities_completed: int = 0
    activities_attempted: int = 0
    average_score: float = 0.0
    completion_rate: float = 0.0
    total_time_spent: Optional[str] = None
    first_activity: Optional[datetime] = None
    last_activity: Optional[datetime] = None


class ActivityReport(ReportModel):
    activity_id: str
    activity_name: Optional[str] = None
    total_statements: int = 0
    completed_count: int = 0
    success_count: int = 0
    average_score: float = 0.0
    completion_rate: float = 0.0
    success_rate: float = 0.0
    first_attempt: Optional[datetime] = None
    last_attempt: Optional[datetime] = None


class DailyActivityReport(ReportModel):
    day: date = Field(alias="date")
    total_statements: int = 0
    unique_actors: int = 0
    unique_activities: int = 0
    completions: int = 0
    average_score: float = 0.0


class ComprehensiveReport(ReportModel):
    report_generated_at: datetime
    report_start_date: datetime
    report_end_date: datetime

    # Overview
    total_statements: int = 0
    total_actors: int = 0
    total_activities: int = 0
    total_verbs: int = 0

    # Performance
    overall_average_score: float = 0.0
    overall_completion_rate: float = 0.0
    overall_success_rate: float = 0.0

    # Breakdowns
    verb_breakdown: List[VerbReport] = Field(default_factory=list)
    top_performers: List[ActorReport] = Field(default_factory=list)
    most_popular_activities: List[ActivityReport] = Field(default_factory=list)
    daily_trends: List[DailyActivityReport] = Field(default_factory=list)


# ============================================================================
# __all__
# ============================================================================

__all__ = [
    # Helpers
    "to_utc",
    "utc_now",
    # Discriminants
    "ActorType",
    "ObjectType",
    # Canonical model
    "Account",
    "Actor",
    "Verb",
    "Definition",
    "StatementObject",
    "Score",
    "Result",
    "Context",
    "StatementDraft",
    "Statement",
    "StatementResponse",
    # Interpretation
    "SimplifiedLearningEvent",
    "BatchLearningEventsRequest",
    "InterpretationResponse",
    "BatchInterpretationResponse",
    # Reports
    "VerbReport",
    "ActorReport",
    "ActivityReport",
    "DailyActivityReport",
    "ComprehensiveReport",
]
