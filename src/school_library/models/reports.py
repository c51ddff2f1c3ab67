"""Read-side models for the dashboard: statistics, activity feed, overdue list."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

# Shown when a record references a book or student that no longer exists
UNKNOWN_LABEL = "Unknown"


class ActivityAction(str, Enum):
    BORROW = "borrow"
    RETURN = "return"

    @property
    def label(self) -> str:
        return "대여" if self is ActivityAction.BORROW else "반납"


class LibraryStats(BaseModel):
    """Dashboard counters."""

    total_books: int = Field(..., description="Number of catalog entries")
    borrowed_books: int = Field(..., description="Active borrow records")
    overdue_books: int = Field(..., description="Active borrow records past due")


class RecentActivity(BaseModel):
    """One borrow or return event."""

    id: str = Field(..., description="Event id: '<record id>-borrow' or '<record id>-return'")
    record_id: str
    student_name: str
    book_title: str
    action: ActivityAction
    action_label: str
    timestamp: datetime


class OverdueItem(BaseModel):
    """An active loan past its due date."""

    id: str = Field(..., description="Borrow record id")
    student_name: str = Field(..., description="Student display label")
    book_title: str
    due_date: datetime
    days_overdue: int = Field(..., ge=0)
