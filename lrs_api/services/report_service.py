"""
Report Service
==============

Store-backed report endpoints. Each call loads its statement set from the
store and hands it to the pure functions in report_metrics; nothing is
cached between calls.
"""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from typing import List, Optional

from lrs_api.config import TOP_N_DEFAULT
from lrs_api.models import (
    ActivityReport,
    ActorReport,
    ComprehensiveReport,
    DailyActivityReport,
    VerbReport,
    to_utc,
)
from lrs_api.services import report_metrics
from lrs_api.services.statement_store import StatementStore

logger = logging.getLogger(__name__)


class ReportService:
    """
    Report queries.

    - time-range reports  → store.find_by_timestamp_range(start, end)
    - per-entity/rankings → store.find_all()
    """

    def __init__(
        self,
        store: StatementStore,
        tz: Optional[tzinfo] = None,
        top_n: int = TOP_N_DEFAULT,
    ):
        self.store = store
        self.tz = tz or report_metrics.report_timezone()
        self.top_n = top_n

    def comprehensive_report(self, start: datetime, end: datetime) -> ComprehensiveReport:
        start, end = to_utc(start), to_utc(end)
        logger.info(f"Generating comprehensive report from {start} to {end}")

        statements = self.store.find_by_timestamp_range(start, end)
        return report_metrics.build_comprehensive_report(
            statements,
            start,
            end,
            limit=self.top_n,
            tz=self.tz,
        )

    def activity_report(self, activity_id: str) -> ActivityReport:
        logger.info(f"Generating activity report for: {activity_id}")
        statements = [s for s in self.store.find_all() if s.object.id == activity_id]
        return report_metrics.build_activity_report(activity_id, statements)

    def actor_report(self, actor_id: str) -> ActorReport:
        logger.info(f"Generating actor report for: {actor_id}")
        statements = [s for s in self.store.find_all() if s.actor.id == actor_id]
        return report_metrics.build_actor_report(actor_id, statements)

    def verb_breakdown(self, start: datetime, end: datetime) -> List[VerbReport]:
        statements = self.store.find_by_timestamp_range(to_utc(start), to_utc(end))
        return report_metrics.verb_breakdown(statements)

    def daily_trends(self, start: datetime, end: datetime) -> List[DailyActivityReport]:
        statements = self.store.find_by_timestamp_range(to_utc(start), to_utc(end))
        return report_metrics.daily_trends(statements, self.tz)

    def top_performers(self, limit: Optional[int] = None) -> List[ActorReport]:
        limit = self.top_n if limit is None else limit
        return report_metrics.top_performers(self.store.find_all(), limit)

    def most_popular_activities(self, limit: Optional[int] = None) -> List[ActivityReport]:
        limit = self.top_n if limit is None else limit
        return report_metrics.most_popular_activities(self.store.find_all(), limit)


__all__ = ["ReportService"]
