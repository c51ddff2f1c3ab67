"""Dashboard Resources - Library Statistics

Computed on every read; nothing is cached, since overdue state changes
with the clock alone.

Resources:
- library://stats - Total books, active loans and overdue loans
- library://recent-activities - Latest borrow and return events
- library://overdue-items - Loans past their due date
"""

import logging
from typing import Any

from ..database import DatabaseManager, ReportRepository
from .common import resource_error

logger = logging.getLogger(__name__)


async def stats_handler(db: DatabaseManager) -> dict[str, Any]:
    try:
        with db.session_scope() as session:
            stats = ReportRepository(session).stats()
        return stats.model_dump(mode="json")
    except Exception as e:
        raise resource_error("Failed to calculate library statistics", e) from e


async def recent_activities_handler(db: DatabaseManager, limit: int = 10) -> dict[str, Any]:
    """Borrow and return events, newest first. Labels: 대여 (borrow), 반납 (return)."""
    try:
        with db.session_scope() as session:
            activities = ReportRepository(session).recent_activities(limit=limit)
        return {
            "activities": [activity.model_dump(mode="json") for activity in activities],
            "limit": limit,
        }
    except Exception as e:
        raise resource_error("Failed to retrieve recent activities", e) from e


async def overdue_items_handler(db: DatabaseManager) -> dict[str, Any]:
    try:
        with db.session_scope() as session:
            items = ReportRepository(session).overdue_items()
        return {
            "items": [item.model_dump(mode="json") for item in items],
            "total": len(items),
        }
    except Exception as e:
        raise resource_error("Failed to retrieve overdue items", e) from e


def dashboard_resources(db: DatabaseManager, recent_activity_limit: int = 10) -> list[dict[str, Any]]:
    """Resource definitions bound to a database."""

    async def get_stats() -> dict[str, Any]:
        return await stats_handler(db)

    async def get_recent_activities() -> dict[str, Any]:
        return await recent_activities_handler(db, recent_activity_limit)

    async def get_overdue_items() -> dict[str, Any]:
        return await overdue_items_handler(db)

    return [
        {
            "uri": "library://stats",
            "name": "Library Statistics",
            "description": "Total books, books currently borrowed and overdue loans.",
            "mime_type": "application/json",
            "handler": get_stats,
        },
        {
            "uri": "library://recent-activities",
            "name": "Recent Activity",
            "description": (
                f"The latest {recent_activity_limit} borrow and return events, newest first."
            ),
            "mime_type": "application/json",
            "handler": get_recent_activities,
        },
        {
            "uri": "library://overdue-items",
            "name": "Overdue Items",
            "description": (
                "Active loans past their due date with student, book and days overdue, "
                "longest overdue first."
            ),
            "mime_type": "application/json",
            "handler": get_overdue_items,
        },
    ]
