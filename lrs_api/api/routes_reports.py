"""
api/routes_reports.py
=====================

Report endpoints. Every report is recomputed from the statement store on
each request.

Endpoints:
- GET /api/reports/comprehensive?startDate&endDate
- GET /api/reports/activity/{activity_id}
- GET /api/reports/actor/{actor_id}
- GET /api/reports/verbs?startDate&endDate
- GET /api/reports/daily-trends?startDate&endDate
- GET /api/reports/top-performers?limit=10
- GET /api/reports/popular-activities?limit=10

Dates are ISO-8601 date-times; naive values are taken as UTC.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query

from lrs_api.config import TOP_N_DEFAULT
from lrs_api.deps import get_report_service
from lrs_api.models import to_utc
from lrs_api.services.report_service import ReportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["reports"])


def _check_range(start: datetime, end: datetime) -> None:
    if to_utc(start) > to_utc(end):
        raise HTTPException(status_code=400, detail="startDate must not be after endDate")


# ============================================================================
# TIME-RANGE REPORTS
# ============================================================================


@router.get("/comprehensive")
async def get_comprehensive_report(
    start_date: datetime = Query(..., alias="startDate", description="e.g. 2025-01-01T00:00:00"),
    end_date: datetime = Query(..., alias="endDate", description="e.g. 2025-12-31T23:59:59"),
    service: ReportService = Depends(get_report_service),
) -> Dict[str, Any]:
    """
    All statistics for a date range: overview counts, overall rates, verb
    breakdown, top performers, popular activities and daily trends.
    """
    logger.info(f"Received request for comprehensive report from {start_date} to {end_date}")
    _check_range(start_date, end_date)

    report = service.comprehensive_report(start_date, end_date)
    return {
        "status": "ok",
        "message": "Comprehensive report generated successfully",
        "data": report.to_payload(),
    }


@router.get("/verbs")
async def get_verb_breakdown(
    start_date: datetime = Query(..., alias="startDate"),
    end_date: datetime = Query(..., alias="endDate"),
    service: ReportService = Depends(get_report_service),
) -> Dict[str, Any]:
    logger.info(f"Received request for verb breakdown from {start_date} to {end_date}")
    _check_range(start_date, end_date)

    reports = service.verb_breakdown(start_date, end_date)
    return {
        "status": "ok",
        "message": "Verb breakdown generated successfully",
        "data": [r.to_payload() for r in reports],
    }


@router.get("/daily-trends")
async def get_daily_trends(
    start_date: datetime = Query(..., alias="startDate"),
    end_date: datetime = Query(..., alias="endDate"),
    service: ReportService = Depends(get_report_service),
) -> Dict[str, Any]:
    logger.info(f"Received request for daily trends from {start_date} to {end_date}")
    _check_range(start_date, end_date)

    reports = service.daily_trends(start_date, end_date)
    return {
        "status": "ok",
        "message": "Daily trends generated successfully",
        "data": [r.to_payload() for r in reports],
    }


# ============================================================================
# ENTITY REPORTS
# ============================================================================


@router.get("/activity/{activity_id:path}")
async def get_activity_report(
    activity_id: str,
    service: ReportService = Depends(get_report_service),
) -> Dict[str, Any]:
    logger.info(f"Received request for activity report: {activity_id}")
    report = service.activity_report(activity_id)
    return {
        "status": "ok",
        "message": "Activity report generated successfully",
        "data": report.to_payload(),
    }


@router.get("/actor/{actor_id}")
async def get_actor_report(
    actor_id: str,
    service: ReportService = Depends(get_report_service),
) -> Dict[str, Any]:
    logger.info(f"Received request for actor report: {actor_id}")
    report = service.actor_report(actor_id)
    return {
        "status": "ok",
        "message": "Actor report generated successfully",
        "data": report.to_payload(),
    }


# ============================================================================
# RANKINGS
# ============================================================================


@router.get("/top-performers")
async def get_top_performers(
    limit: int = Query(TOP_N_DEFAULT, description="Number of actors to return"),
    service: ReportService = Depends(get_report_service),
) -> Dict[str, Any]:
    logger.info(f"Received request for top {limit} performers")
    reports = service.top_performers(limit)
    return {
        "status": "ok",
        "message": "Top performers retrieved successfully",
        "data": [r.to_payload() for r in reports],
    }


@router.get("/popular-activities")
async def get_popular_activities(
    limit: int = Query(TOP_N_DEFAULT, description="Number of activities to return"),
    service: ReportService = Depends(get_report_service),
) -> Dict[str, Any]:
    logger.info(f"Received request for top {limit} popular activities")
    reports = service.most_popular_activities(limit)
    return {
        "status": "ok",
        "message": "Most popular activities retrieved successfully",
        "data": [r.to_payload() for r in reports],
    }
