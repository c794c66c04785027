"""
Report Metrics
==============

Pure aggregation functions over a list of canonical statements.

- count_unique_*            → distinct non-null actor / activity / verb ids
- average_score             → mean of result.score.scaled (0.0 when none)
- completion_rate / success_rate → percentage of statements with the flag set
- verb_breakdown            → VerbReport list (count desc, verb id asc)
- build_actor_report / build_activity_report
- top_performers / most_popular_activities → ranked, limited report lists
- daily_trends              → DailyActivityReport per calendar date
- build_comprehensive_report

Nothing here touches the store and nothing here raises on degenerate input:
empty sets give zero numbers and empty lists.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone, tzinfo
from typing import Callable, Dict, Iterable, List, Optional, Sequence, TypeVar
from zoneinfo import ZoneInfo

from lrs_api.config import REPORT_TIMEZONE, TOP_N_DEFAULT
from lrs_api.models import (
    ActivityReport,
    ActorReport,
    ComprehensiveReport,
    DailyActivityReport,
    Statement,
    VerbReport,
    utc_now,
)
from lrs_api.services.durations import sum_durations

logger = logging.getLogger(__name__)

DISPLAY_LANGUAGE = "en-US"

K = TypeVar("K")


# ============================================================================
# Helpers
# ============================================================================


def report_timezone(name: str = REPORT_TIMEZONE) -> tzinfo:
    if not name or name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def _group_by(
    statements: Iterable[Statement],
    key: Callable[[Statement], Optional[K]],
) -> Dict[K, List[Statement]]:
    # Insertion-ordered; statements with a null key are skipped
    groups: Dict[K, List[Statement]] = {}
    for s in statements:
        k = key(s)
        if k is None:
            continue
        groups.setdefault(k, []).append(s)
    return groups


def _scaled_score(s: Statement) -> Optional[float]:
    if s.result is None or s.result.score is None:
        return None
    return s.result.score.scaled


def _completed(s: Statement) -> bool:
    return s.result is not None and s.result.completion is True


def _succeeded(s: Statement) -> bool:
    return s.result is not None and s.result.success is True


def _timestamps(statements: Iterable[Statement]) -> List[datetime]:
    return [s.timestamp for s in statements if s.timestamp is not None]


def _percentage(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return part * 100.0 / whole


# ============================================================================
# Scalar metrics
# ============================================================================


def count_unique_actors(statements: Sequence[Statement]) -> int:
    return len({s.actor.id for s in statements if s.actor.id is not None})


def count_unique_activities(statements: Sequence[Statement]) -> int:
    return len({s.object.id for s in statements if s.object.id is not None})


def count_unique_verbs(statements: Sequence[Statement]) -> int:
    return len({s.verb.id for s in statements if s.verb.id is not None})


def average_score(statements: Sequence[Statement]) -> float:
    """Mean of result.score.scaled over the statements that carry one."""
    scores = [v for v in (_scaled_score(s) for s in statements) if v is not None]
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def completion_rate(statements: Sequence[Statement]) -> float:
    return _percentage(sum(1 for s in statements if _completed(s)), len(statements))


def success_rate(statements: Sequence[Statement]) -> float:
    return _percentage(sum(1 for s in statements if _succeeded(s)), len(statements))


# ============================================================================
# Verb breakdown
# ============================================================================


def verb_breakdown(statements: Sequence[Statement]) -> List[VerbReport]:
    """
    One VerbReport per verb id.

    Display text comes from the first statement of the group (en-US), the
    verb id otherwise. Ordered by count desc, then verb id asc.
    """
    total = len(statements)
    reports: List[VerbReport] = []

    for verb_id, group in _group_by(statements, lambda s: s.verb.id).items():
        display = (group[0].verb.display or {}).get(DISPLAY_LANGUAGE) or verb_id
        reports.append(
            VerbReport(
                verb_id=verb_id,
                verb_display=display,
                count=len(group),
                percentage=_percentage(len(group), total),
            )
        )

    reports.sort(key=lambda r: (-r.count, r.verb_id))
    return reports


# ============================================================================
# Actor / activity reports
# ============================================================================


def build_actor_report(actor_id: str, statements: Sequence[Statement]) -> ActorReport:
    """
    Report for one actor's statements.

    An empty list gives a zeroed report carrying only the actor id.
    """
    if not statements:
        return ActorReport(actor_id=actor_id)

    first = statements[0]
    attempted = count_unique_activities(statements)
    completed = sum(1 for s in statements if _completed(s))
    timestamps = _timestamps(statements)

    return ActorReport(
        actor_id=actor_id,
        actor_name=first.actor.name,
        actor_email=first.actor.mbox,
        total_statements=len(statements),
        activities_completed=completed,
        activities_attempted=attempted,
        average_score=average_score(statements),
        completion_rate=_percentage(completed, attempted),
        total_time_spent=sum_durations(
            s.result.duration for s in statements if s.result is not None
        ),
        first_activity=min(timestamps) if timestamps else None,
        last_activity=max(timestamps) if timestamps else None,
    )


def _activity_name(activity_id: str, statements: Sequence[Statement]) -> str:
    for s in statements:
        definition = s.object.definition
        if definition is not None and definition.name:
            return definition.name.get(DISPLAY_LANGUAGE) or activity_id
    return activity_id


def build_activity_report(activity_id: str, statements: Sequence[Statement]) -> ActivityReport:
    if not statements:
        return ActivityReport(activity_id=activity_id, activity_name=activity_id)

    completed = sum(1 for s in statements if _completed(s))
    succeeded = sum(1 for s in statements if _succeeded(s))
    timestamps = _timestamps(statements)

    return ActivityReport(
        activity_id=activity_id,
        activity_name=_activity_name(activity_id, statements),
        total_statements=len(statements),
        completed_count=completed,
        success_count=succeeded,
        average_score=average_score(statements),
        completion_rate=_percentage(completed, len(statements)),
        success_rate=_percentage(succeeded, len(statements)),
        first_attempt=min(timestamps) if timestamps else None,
        last_attempt=max(timestamps) if timestamps else None,
    )


def actor_reports(statements: Sequence[Statement]) -> List[ActorReport]:
    return [
        build_actor_report(actor_id, group)
        for actor_id, group in _group_by(statements, lambda s: s.actor.id).items()
    ]


def activity_reports(statements: Sequence[Statement]) -> List[ActivityReport]:
    return [
        build_activity_report(activity_id, group)
        for activity_id, group in _group_by(statements, lambda s: s.object.id).items()
    ]


# ============================================================================
# Rankings
# ============================================================================


def top_performers(statements: Sequence[Statement], limit: int = TOP_N_DEFAULT) -> List[ActorReport]:
    """Actors by average score desc, actor id asc. limit <= 0 → []."""
    if limit <= 0:
        return []
    reports = actor_reports(statements)
    reports.sort(key=lambda r: (-r.average_score, r.actor_id))
    return reports[:limit]


def most_popular_activities(
    statements: Sequence[Statement],
    limit: int = TOP_N_DEFAULT,
) -> List[ActivityReport]:
    """Activities by statement count desc, activity id asc. limit <= 0 → []."""
    if limit <= 0:
        return []
    reports = activity_reports(statements)
    reports.sort(key=lambda r: (-r.total_statements, r.activity_id))
    return reports[:limit]


# ============================================================================
# Daily trends
# ============================================================================


def daily_trends(
    statements: Sequence[Statement],
    tz: Optional[tzinfo] = None,
) -> List[DailyActivityReport]:
    """
    Statements bucketed by the calendar date of their timestamp in `tz`.

    Statements without a timestamp are left out.
    """
    tz = tz or report_timezone()

    undated = sum(1 for s in statements if s.timestamp is None)
    if undated:
        logger.debug(f"Daily trends: skipping {undated} statements without timestamp")

    buckets: Dict[date, List[Statement]] = _group_by(
        statements,
        lambda s: s.timestamp.astimezone(tz).date() if s.timestamp is not None else None,
    )

    return [
        DailyActivityReport(
            day=day,
            total_statements=len(group),
            unique_actors=count_unique_actors(group),
            unique_activities=count_unique_activities(group),
            completions=sum(1 for s in group if _completed(s)),
            average_score=average_score(group),
        )
        for day, group in sorted(buckets.items())
    ]


# ============================================================================
# Comprehensive report
# ============================================================================


def build_comprehensive_report(
    statements: Sequence[Statement],
    start: datetime,
    end: datetime,
    limit: int = TOP_N_DEFAULT,
    tz: Optional[tzinfo] = None,
    generated_at: Optional[datetime] = None,
) -> ComprehensiveReport:
    return ComprehensiveReport(
        report_generated_at=generated_at or utc_now(),
        report_start_date=start,
        report_end_date=end,
        total_statements=len(statements),
        total_actors=count_unique_actors(statements),
        total_activities=count_unique_activities(statements),
        total_verbs=count_unique_verbs(statements),
        overall_average_score=average_score(statements),
        overall_completion_rate=completion_rate(statements),
        overall_success_rate=success_rate(statements),
        verb_breakdown=verb_breakdown(statements),
        top_performers=top_performers(statements, limit),
        most_popular_activities=most_popular_activities(statements, limit),
        daily_trends=daily_trends(statements, tz),
    )


__all__ = [
    "report_timezone",
    "count_unique_actors",
    "count_unique_activities",
    "count_unique_verbs",
    "average_score",
    "completion_rate",
    "success_rate",
    "verb_breakdown",
    "build_actor_report",
    "build_activity_report",
    "actor_reports",
    "activity_reports",
    "top_performers",
    "most_popular_activities",
    "daily_trends",
    "build_comprehensive_report",
]
