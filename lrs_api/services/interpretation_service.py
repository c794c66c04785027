"""
Interpretation Service
======================

Simplified learning events → canonical xAPI statement drafts.

Flow:
- validate(event)   → are the minimum fields present?
- interpret(event)  → StatementDraft (actor, verb, object, result, context)

interpret() is a pure function of the event and the injected namespaces:
no I/O, no store access. The draft is stored by StatementService.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional, Tuple

from lrs_api.config import XAPI_NAMESPACES, XapiNamespaces
from lrs_api.models import (
    Actor,
    ActorType,
    Context,
    Definition,
    ObjectType,
    Result,
    Score,
    SimplifiedLearningEvent,
    StatementDraft,
    StatementObject,
    Verb,
)
from lrs_api.services.durations import normalize_duration

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================

DISPLAY_LANGUAGE = "en-US"
DEFAULT_ACTIVITY_NAME = "Learning Activity"
DEFAULT_ACTIVITY_TYPE = "course"
SESSION_EXTENSION_KEY = "sessionId"
COURSE_CONTEXT_CATEGORY = "parent"

# action (lower-case) → (verb token, display text)
VERB_SYNONYMS: Dict[str, Tuple[str, str]] = {
    "completed": ("completed", "completed"),
    "finished": ("completed", "completed"),
    "started": ("initialized", "started"),
    "began": ("initialized", "started"),
    "initiated": ("initialized", "started"),
    "passed": ("passed", "passed"),
    "failed": ("failed", "failed"),
    "viewed": ("viewed", "viewed"),
    "watched": ("viewed", "viewed"),
    "attempted": ("attempted", "attempted"),
    "answered": ("answered", "answered"),
    "scored": ("scored", "scored"),
}


class InterpretationService:
    """
    Learning event interpreter.

    - namespaces → verb / activity / activity type / extension URI prefixes
    """

    def __init__(self, namespaces: Optional[XapiNamespaces] = None):
        self.namespaces = namespaces or XAPI_NAMESPACES

    # ---------- Validation ----------

    def validate(self, event: Optional[SimplifiedLearningEvent]) -> bool:
        """
        Minimum field check.

        Fails when:
        - event is missing
        - both learnerName and learnerId are missing
        - action is missing or blank
        - both activityName and activityId are missing

        Everything else is optional; interpret() degrades gracefully.
        """
        if event is None:
            logger.error("Event is null")
            return False

        if event.learner_name is None and event.learner_id is None:
            logger.error("Either learnerName or learnerId must be provided")
            return False

        if event.action is None or not event.action.strip():
            logger.error("Action is required")
            return False

        if event.activity_name is None and event.activity_id is None:
            logger.error("Either activityName or activityId must be provided")
            return False

        return True

    # ---------- Interpretation ----------

    def interpret(self, event: SimplifiedLearningEvent) -> StatementDraft:
        """Convert a simplified learning event to a statement draft."""
        logger.info(
            f"Interpreting learning event: {event.learner_name} - "
            f"{event.action} - {event.activity_name}"
        )

        return StatementDraft(
            actor=self._build_actor(event),
            verb=self.build_verb(event.action or ""),
            object=self._build_activity(event),
            result=self._build_result(event),
            context=self._build_context(event),
        )

    def _build_actor(self, event: SimplifiedLearningEvent) -> Actor:
        actor_id = event.learner_id if event.learner_id is not None else str(uuid.uuid4())
        mbox = f"mailto:{event.learner_email}" if event.learner_email is not None else None

        return Actor(
            id=actor_id,
            name=event.learner_name,
            mbox=mbox,
            object_type=ActorType.AGENT,
        )

    def build_verb(self, action: str) -> Verb:
        """
        Free-text action → xAPI verb.

        Total mapping: unknown actions become "<verb ns><action>" with the
        lower-cased action as display text.
        """
        key = action.lower()
        token, display = VERB_SYNONYMS.get(key, (key, key))

        return Verb(
            id=f"{self.namespaces.verb}{token}",
            display={DISPLAY_LANGUAGE: display},
        )

    def _build_activity(self, event: SimplifiedLearningEvent) -> StatementObject:
        activity_id = (
            event.activity_id
            if event.activity_id is not None
            else f"{self.namespaces.activity}{uuid.uuid4()}"
        )
        name = event.activity_name if event.activity_name is not None else DEFAULT_ACTIVITY_NAME
        activity_type = event.activity_type if event.activity_type is not None else DEFAULT_ACTIVITY_TYPE

        return StatementObject(
            id=activity_id,
            object_type=ObjectType.ACTIVITY,
            definition=Definition(
                name={DISPLAY_LANGUAGE: name},
                type=f"{self.namespaces.activity_type}{activity_type}",
            ),
        )

    def _build_result(self, event: SimplifiedLearningEvent) -> Optional[Result]:
        # Only when there is outcome data
        if (
            event.score is None
            and event.passed is None
            and event.completed is None
            and event.duration is None
        ):
            return None

        score = None
        if event.score is not None:
            # 0-100 → 0-1
            score = Score(
                scaled=event.score / 100.0,
                raw=event.score,
                min=0.0,
                max=100.0,
            )

        return Result(
            score=score,
            success=event.passed,
            completion=event.completed,
            duration=normalize_duration(event.duration),
        )

    def _build_context(self, event: SimplifiedLearningEvent) -> Optional[Context]:
        extensions: Dict[str, Any] = {}

        for key, value in (event.metadata or {}).items():
            extensions[f"{self.namespaces.extension}{key}"] = value

        if event.session_id is not None:
            extensions[f"{self.namespaces.extension}{SESSION_EXTENSION_KEY}"] = event.session_id

        context_activities = None
        if event.course_id is not None:
            course = StatementObject(
                id=self._course_uri(event.course_id),
                object_type=ObjectType.ACTIVITY,
                definition=(
                    Definition(name={DISPLAY_LANGUAGE: event.course_name})
                    if event.course_name is not None
                    else None
                ),
            )
            context_activities = {COURSE_CONTEXT_CATEGORY: [course]}

        context = Context(
            registration=event.session_id,
            instructor_id=event.instructor_id,
            platform=event.platform,
            context_activities=context_activities,
            extensions=extensions or None,
        )

        # All-empty context is omitted, not emitted as an empty object
        if context.is_empty():
            return None
        return context

    def _course_uri(self, course_id: str) -> str:
        if "://" in course_id:
            return course_id
        return f"{self.namespaces.activity}{DEFAULT_ACTIVITY_TYPE}/{course_id}"


__all__ = [
    "InterpretationService",
    "VERB_SYNONYMS",
    "DEFAULT_ACTIVITY_NAME",
    "DEFAULT_ACTIVITY_TYPE",
]
