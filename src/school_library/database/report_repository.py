"""
Report repository: dashboard statistics, recent activity and overdue loans.

Reports are pure reads computed on demand. Overdue state depends on the
clock, so every report takes "now" from the injectable clock at call time.
Records that reference a deleted book or student are still reported, with
the placeholder label in place of the missing name or title.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..errors import EntityValidationError
from ..models.borrow import BorrowStatus, days_overdue, to_local_naive
from ..models.reports import (
    UNKNOWN_LABEL,
    ActivityAction,
    LibraryStats,
    OverdueItem,
    RecentActivity,
)
from ..models.student import student_display_label
from .borrow_repository import active_borrow_filter
from .schema import Book as BookDB
from .schema import BorrowRecord as BorrowDB
from .schema import Student as StudentDB
from .session import safe_query

logger = logging.getLogger(__name__)


class ReportRepository:
    """Read-only aggregations over books, students and borrow records."""

    def __init__(self, session: Session, clock: Callable[[], datetime] = datetime.now):
        self.session = session
        self.clock = clock

    def _now(self) -> datetime:
        return to_local_naive(self.clock())

    def _scalar(self, query, error_msg: str) -> int:
        return safe_query(self.session, lambda s: s.execute(query).scalar(), error_msg) or 0

    def stats(self) -> LibraryStats:
        """Catalog size, active loans and overdue loans."""
        now = self._now()
        total_books = self._scalar(
            select(func.count()).select_from(BookDB), "Failed to count books"
        )
        borrowed = self._scalar(
            select(func.count(BorrowDB.id)).where(active_borrow_filter()),
            "Failed to count active loans",
        )
        overdue = self._scalar(
            select(func.count(BorrowDB.id)).where(active_borrow_filter(), BorrowDB.due_date < now),
            "Failed to count overdue loans",
        )
        return LibraryStats(total_books=total_books, borrowed_books=borrowed, overdue_books=overdue)

    def _events(self, action: ActivityAction, limit: int) -> list[RecentActivity]:
        timestamp = BorrowDB.borrow_date if action is ActivityAction.BORROW else BorrowDB.return_date
        query = (
            select(BorrowDB.id, timestamp, StudentDB.name, BookDB.title)
            .outerjoin(StudentDB, StudentDB.id == BorrowDB.student_id)
            .outerjoin(BookDB, BookDB.id == BorrowDB.book_id)
            .order_by(timestamp.desc(), BorrowDB.id.desc())
            .limit(limit)
        )
        if action is ActivityAction.RETURN:
            query = query.where(BorrowDB.status == BorrowStatus.RETURNED)

        rows = safe_query(
            self.session, lambda s: s.execute(query).all(), "Failed to load recent activity"
        )
        return [
            RecentActivity(
                id=f"{record_id}-{action.value}",
                record_id=record_id,
                student_name=student_name if student_name is not None else UNKNOWN_LABEL,
                book_title=book_title if book_title is not None else UNKNOWN_LABEL,
                action=action,
                action_label=action.label,
                timestamp=event_time,
            )
            for record_id, event_time, student_name, book_title in rows
        ]

    def recent_activities(self, limit: int = 10) -> list[RecentActivity]:
        """
        Latest borrow and return events, newest first.

        A returned record contributes two events. The newest ``limit`` events
        of either kind are among the newest ``limit`` of their own kind, so
        each kind is fetched with the same limit and the merge is truncated.

        Raises:
            EntityValidationError: If limit is below 1
        """
        if limit < 1:
            raise EntityValidationError(f"limit must be at least 1, got {limit}")

        events = self._events(ActivityAction.BORROW, limit) + self._events(
            ActivityAction.RETURN, limit
        )
        # On equal timestamps a return is listed before its borrow
        events.sort(
            key=lambda e: (e.timestamp, e.action is ActivityAction.RETURN, e.record_id),
            reverse=True,
        )
        return events[:limit]

    def overdue_items(self) -> list[OverdueItem]:
        """Active loans past their due date, longest overdue first."""
        now = self._now()
        query = (
            select(
                BorrowDB.id,
                BorrowDB.due_date,
                StudentDB.name,
                StudentDB.grade,
                StudentDB.class_number,
                BookDB.title,
            )
            .outerjoin(StudentDB, StudentDB.id == BorrowDB.student_id)
            .outerjoin(BookDB, BookDB.id == BorrowDB.book_id)
            .where(active_borrow_filter(), BorrowDB.due_date < now)
            .order_by(BorrowDB.due_date, BorrowDB.id)
        )
        rows = safe_query(
            self.session, lambda s: s.execute(query).all(), "Failed to load overdue loans"
        )

        items = []
        for record_id, due_date, name, grade, class_number, title in rows:
            if name is None:
                student_name = UNKNOWN_LABEL
            else:
                student_name = student_display_label(name, grade, class_number)
            items.append(
                OverdueItem(
                    id=record_id,
                    student_name=student_name,
                    book_title=title if title is not None else UNKNOWN_LABEL,
                    due_date=due_date,
                    days_overdue=days_overdue(due_date, now),
                )
            )

        if items:
            logger.debug("%d overdue loans as of %s", len(items), now.isoformat())
        return items
