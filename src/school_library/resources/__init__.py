"""School Library MCP Resources Package

Resources are the read-only side of the server: catalog, roster, loan
history and dashboard reports. Changes go through tools.
"""

from typing import Any

from ..database import DatabaseManager
from .books import book_resources
from .borrow_records import borrow_record_resources
from .dashboard import dashboard_resources
from .students import student_resources


def all_resources(db: DatabaseManager, recent_activity_limit: int = 10) -> list[dict[str, Any]]:
    # Fixed paths are listed before the templates that could shadow them
    return (
        book_resources(db)
        + student_resources(db)
        + borrow_record_resources(db)
        + dashboard_resources(db, recent_activity_limit)
    )


__all__ = [
    "all_resources",
    "book_resources",
    "borrow_record_resources",
    "dashboard_resources",
    "student_resources",
]
