"""JSON payloads for entities, shared by tool responses and resources."""

from datetime import datetime
from typing import Any

from .models import Book, BorrowRecord, Student


def book_payload(book: Book) -> dict[str, Any]:
    data = book.model_dump(mode="json")
    data["category_label"] = book.category_label
    data["borrowed_count"] = book.borrowed_count
    return data


def student_payload(student: Student) -> dict[str, Any]:
    data = student.model_dump(mode="json")
    data["display_label"] = student.display_label
    return data


def record_payload(record: BorrowRecord, now: datetime | None = None) -> dict[str, Any]:
    """Record fields plus overdue state as of ``now``."""
    now = now or datetime.now()
    data = record.model_dump(mode="json")
    data["is_overdue"] = record.is_overdue(now)
    data["days_overdue"] = record.days_overdue(now)
    return data
