"""
School Library Models.

Pydantic models for the core entities and the dashboard read models:
- Book: catalog entries with quantity/availability
- Student: borrowers
- BorrowRecord: loans and their derived overdue state
- Reports: statistics, recent activity and overdue items
"""

from .book import (
    Book,
    BookCategory,
    BookCreate,
    BookUpdate,
    categories_matching,
    category_label,
)
from .borrow import BorrowCreate, BorrowRecord, BorrowStatus, days_overdue, is_overdue
from .reports import (
    UNKNOWN_LABEL,
    ActivityAction,
    LibraryStats,
    OverdueItem,
    RecentActivity,
)
from .student import Student, StudentCreate, StudentUpdate, student_display_label

__all__ = [
    "UNKNOWN_LABEL",
    "ActivityAction",
    "Book",
    "BookCategory",
    "BookCreate",
    "BookUpdate",
    "BorrowCreate",
    "BorrowRecord",
    "BorrowStatus",
    "LibraryStats",
    "OverdueItem",
    "RecentActivity",
    "Student",
    "StudentCreate",
    "StudentUpdate",
    "categories_matching",
    "category_label",
    "days_overdue",
    "is_overdue",
    "student_display_label",
]
