"""
Circulation repository: the borrow/return engine.

Each borrow record moves through one lifecycle::

    [nonexistent] --borrow--> borrowed --return--> returned (terminal)

This repository is the only writer of ``status`` and ``return_date``. Both
operations run as one transaction together with the matching availability
ledger change: either the record and the book counter change together, or
nothing is written.

Concurrent callers are serialized by the database. The ledger's conditional
UPDATE lets exactly one of two simultaneous borrows take the last copy, and
the conditional status UPDATE below lets exactly one of two simultaneous
returns succeed.
"""

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from sqlalchemy import exists, select, update
from sqlalchemy.orm import Session

from ..errors import (
    AlreadyReturnedError,
    BusinessRuleError,
    NotFoundError,
    RecordNotFoundError,
    StudentNotFoundError,
)
from ..models.borrow import BorrowCreate, BorrowStatus, to_local_naive
from ..models.borrow import BorrowRecord as BorrowRecordModel
from .availability_ledger import AvailabilityLedger
from .repository import validate_input
from .schema import BorrowRecord as BorrowDB
from .schema import Student as StudentDB
from .session import rollback_and_raise, safe_commit, safe_query

logger = logging.getLogger(__name__)


class CirculationRepository:
    """
    Borrow and return operations.

    Args:
        session: Database session; each operation commits or rolls it back
        clock: Source of "now", replaceable in tests
    """

    def __init__(self, session: Session, clock: Callable[[], datetime] = datetime.now):
        self.session = session
        self.clock = clock
        self.ledger = AvailabilityLedger(session)

    def _now(self) -> datetime:
        return to_local_naive(self.clock())

    def _to_model(self, record: BorrowDB) -> BorrowRecordModel:
        return BorrowRecordModel.model_validate(record, from_attributes=True)

    def _require_student(self, student_id: str) -> None:
        found = safe_query(
            self.session,
            lambda s: s.scalar(select(exists().where(StudentDB.id == student_id))),
            "Failed to load student",
        )
        if not found:
            raise StudentNotFoundError(student_id)

    def _log_rejection(self, operation: str, error: Exception) -> None:
        if isinstance(error, BusinessRuleError | NotFoundError):
            logger.info("%s rejected: %s", operation, error)

    def borrow_book(self, data: BorrowCreate | Mapping[str, Any]) -> BorrowRecordModel:
        """
        Lend one copy of a book to a student.

        Creates a ``borrowed`` record with ``borrow_date = now`` and the
        caller's due date, and takes one copy off the shelf.

        Raises:
            EntityValidationError: If the request is malformed
            StudentNotFoundError: If the student does not exist
            BookNotFoundError: If the book does not exist
            BookUnavailableError: If no copy is available (no waitlist)
        """
        request = validate_input(BorrowCreate, data)
        try:
            self._require_student(request.student_id)

            self.ledger.reserve_copy(request.book_id)

            # The reserve holds the write lock, so a delete that committed
            # after the first check is visible here and a later one waits.
            self._require_student(request.student_id)

            now = self._now()
            record = BorrowDB(
                student_id=request.student_id,
                book_id=request.book_id,
                borrow_date=now,
                due_date=request.due_date,
                status=BorrowStatus.BORROWED,
                created_at=now,
            )
            self.session.add(record)
            safe_commit(self.session, "borrow book")
        except Exception as e:
            self._log_rejection("Borrow", e)
            rollback_and_raise(self.session, "Borrow book", e)

        logger.info(
            "Book %s borrowed by student %s (record %s, due %s)",
            record.book_id,
            record.student_id,
            record.id,
            record.due_date.isoformat(),
        )
        return self._to_model(record)

    def return_book(self, record_id: str) -> BorrowRecordModel:
        """
        Close an active loan and put the copy back on the shelf.

        A second return of the same record is an error, not a no-op.

        Raises:
            RecordNotFoundError: If the record does not exist
            AlreadyReturnedError: If the record is already returned
        """
        now = self._now()
        statement = (
            update(BorrowDB)
            .where(BorrowDB.id == record_id, BorrowDB.status == BorrowStatus.BORROWED)
            .values(status=BorrowStatus.RETURNED, return_date=now)
            .execution_options(synchronize_session=False)
        )
        try:
            updated = safe_query(
                self.session,
                lambda s: s.execute(statement).rowcount,
                "Failed to update borrow record",
            )
            record = safe_query(
                self.session,
                lambda s: s.get(BorrowDB, record_id, populate_existing=True),
                "Failed to load borrow record",
            )
            if not updated:
                if record is None:
                    raise RecordNotFoundError(record_id)
                raise AlreadyReturnedError(record_id)

            self.ledger.release_copy(record.book_id)
            safe_commit(self.session, "return book")
        except Exception as e:
            self._log_rejection("Return", e)
            rollback_and_raise(self.session, "Return book", e)

        logger.info("Book %s returned (record %s)", record.book_id, record.id)
        return self._to_model(record)
