"""
Read access to borrow records.

Records are created and returned only through the circulation engine, so
this repository exposes lookups and filtered listings but no writes.
"""

from typing import Any

from sqlalchemy import and_, exists, func, select
from sqlalchemy.orm import Session

from ..errors import RecordNotFoundError
from ..models.borrow import BorrowRecord as BorrowRecordModel
from ..models.borrow import BorrowStatus
from .repository import BaseRepository
from .schema import BorrowRecord as BorrowDB
from .session import safe_query


def active_borrow_filter(student_id: str | None = None, book_id: str | None = None) -> Any:
    """WHERE clause matching active records, optionally for one student or book."""
    conditions = [BorrowDB.status == BorrowStatus.BORROWED]
    if student_id is not None:
        conditions.append(BorrowDB.student_id == student_id)
    if book_id is not None:
        conditions.append(BorrowDB.book_id == book_id)
    return and_(*conditions)


def count_active_borrows(
    session: Session, student_id: str | None = None, book_id: str | None = None
) -> int:
    query = select(func.count(BorrowDB.id)).where(active_borrow_filter(student_id, book_id))
    return (
        safe_query(session, lambda s: s.execute(query).scalar(), "Failed to count active borrows")
        or 0
    )


def without_active_borrows(student_id: Any = None, book_id: Any = None) -> Any:
    """NOT EXISTS guard over active records; accepts columns for correlation."""
    return ~exists().where(active_borrow_filter(student_id, book_id))


class BorrowRecordRepository(BaseRepository[BorrowDB, BorrowRecordModel]):
    """Borrow record lookups and listings."""

    not_found_error = RecordNotFoundError

    @property
    def model_class(self):
        return BorrowDB

    @property
    def response_schema(self):
        return BorrowRecordModel

    @property
    def default_order(self) -> list[Any]:
        # Newest loans first
        return [BorrowDB.borrow_date.desc(), BorrowDB.id]

    def list_records(
        self,
        student_id: str | None = None,
        book_id: str | None = None,
        active_only: bool = False,
    ) -> list[BorrowRecordModel]:
        """
        List borrow records, optionally filtered.

        Active-only listings are ordered by due date, soonest first; all
        other listings by borrow date, newest first.
        """
        query = select(BorrowDB)
        if student_id is not None:
            query = query.where(BorrowDB.student_id == student_id)
        if book_id is not None:
            query = query.where(BorrowDB.book_id == book_id)
        if active_only:
            query = query.where(BorrowDB.status == BorrowStatus.BORROWED).order_by(
                BorrowDB.due_date, BorrowDB.id
            )
        else:
            query = query.order_by(*self.default_order)
        return self._list(query)

    def count_active(self, student_id: str | None = None, book_id: str | None = None) -> int:
        """Number of records currently on loan."""
        return count_active_borrows(self.session, student_id=student_id, book_id=book_id)
