"""
Report payloads → DataFrames
============================

Pure pandas helpers used by the reports dashboard.

- *_frame(payload)     → DataFrame with the columns the dashboard plots
- detect_chart_type()  → (chart type, x column, y column) for a table
- overview_metrics()   → headline numbers of a comprehensive report

No Streamlit here, so everything can be tested without a running app.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Tuple

import pandas as pd

ChartType = Literal["bar", "line", "none"]

# Category columns (x axis / index) in preference order
CATEGORICAL_COLUMNS = ("verbDisplay", "actorName", "activityName", "verbId", "actorId", "activityId")

# Time columns (trend)
TIME_COLUMNS = {"date"}

# Value columns in preference order
NUMERIC_COLUMNS = [
    "count",
    "totalStatements",
    "averageScore",
    "completionRate",
    "successRate",
    "percentage",
    "uniqueActors",
    "uniqueActivities",
    "completions",
]

VERB_COLUMNS = ["verbDisplay", "verbId", "count", "percentage"]
PERFORMER_COLUMNS = [
    "actorName",
    "actorId",
    "averageScore",
    "completionRate",
    "activitiesCompleted",
    "activitiesAttempted",
    "totalStatements",
    "totalTimeSpent",
]
ACTIVITY_COLUMNS = [
    "activityName",
    "activityId",
    "totalStatements",
    "completionRate",
    "successRate",
    "averageScore",
]
TREND_COLUMNS = [
    "date",
    "totalStatements",
    "uniqueActors",
    "uniqueActivities",
    "completions",
    "averageScore",
]


def _frame(rows: Optional[List[Dict[str, Any]]], columns: List[str]) -> pd.DataFrame:
    if not rows:
        return pd.DataFrame(columns=columns)
    df = pd.DataFrame(rows)
    return df[[c for c in columns if c in df.columns]]


def verb_frame(rows: Optional[List[Dict[str, Any]]]) -> pd.DataFrame:
    return _frame(rows, VERB_COLUMNS)


def performers_frame(rows: Optional[List[Dict[str, Any]]]) -> pd.DataFrame:
    df = _frame(rows, PERFORMER_COLUMNS)
    if not df.empty and "averageScore" in df.columns:
        # scaled 0-1 → percent for display
        df = df.assign(averageScore=(df["averageScore"] * 100).round(1))
    return df


def activities_frame(rows: Optional[List[Dict[str, Any]]]) -> pd.DataFrame:
    return _frame(rows, ACTIVITY_COLUMNS)


def trends_frame(rows: Optional[List[Dict[str, Any]]]) -> pd.DataFrame:
    """Daily trend rows, indexed by date and sorted ascending."""
    df = _frame(rows, TREND_COLUMNS)
    if df.empty:
        return df.set_index("date")
    df = df.assign(date=pd.to_datetime(df["date"]))
    return df.sort_values("date").set_index("date")


def overview_metrics(report: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    report = report or {}
    return {
        "totalStatements": int(report.get("totalStatements") or 0),
        "totalActors": int(report.get("totalActors") or 0),
        "totalActivities": int(report.get("totalActivities") or 0),
        "totalVerbs": int(report.get("totalVerbs") or 0),
        "overallAverageScore": float(report.get("overallAverageScore") or 0.0) * 100,
        "overallCompletionRate": float(report.get("overallCompletionRate") or 0.0),
        "overallSuccessRate": float(report.get("overallSuccessRate") or 0.0),
    }


def detect_chart_type(df: pd.DataFrame) -> Tuple[ChartType, Optional[str], Optional[str]]:
    """
    Picks a chart for a report table by its columns.

    Returns:
        (chart_type, x_column, y_column)

    Example:
        ("bar", "verbDisplay", "count")
        ("line", "date", "totalStatements")
        ("none", None, None)
    """
    if df.empty:
        return ("none", None, None)

    cols = set(df.columns)
    if df.index.name in TIME_COLUMNS:
        cols.add(df.index.name)

    value_col = next((c for c in NUMERIC_COLUMNS if c in cols), None)
    if value_col is None:
        return ("none", None, None)

    # Date + numeric → line (trend)
    time_col = next((c for c in TIME_COLUMNS if c in cols), None)
    if time_col:
        return ("line", time_col, value_col)

    # Category + numeric → bar
    cat_col = next((c for c in CATEGORICAL_COLUMNS if c in cols), None)
    if cat_col:
        return ("bar", cat_col, value_col)

    return ("none", None, None)


__all__ = [
    "ChartType",
    "verb_frame",
    "performers_frame",
    "activities_frame",
    "trends_frame",
    "overview_metrics",
    "detect_chart_type",
]
