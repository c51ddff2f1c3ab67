"""
Availability ledger: the only writer of ``books.available``.

Every mutation is a single conditional UPDATE whose WHERE clause states the
precondition, so the check and the write cannot be separated by a concurrent
caller. A statement that matches no row is then diagnosed by re-reading the
book. The ledger never commits; it runs inside the caller's transaction and
the caller rolls back on any raised error.
"""

import logging

from pydantic import BaseModel
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ..errors import (
    AvailabilityInvariantError,
    BookNotFoundError,
    BookUnavailableError,
    EntityValidationError,
    QuantityBelowBorrowedError,
)
from .borrow_repository import active_borrow_filter, count_active_borrows
from .schema import Book as BookDB
from .schema import BorrowRecord as BorrowDB
from .session import safe_query

logger = logging.getLogger(__name__)


class AvailabilityDiscrepancy(BaseModel):
    """A book whose stored availability disagrees with its active loans."""

    book_id: str
    title: str
    quantity: int
    available: int
    expected_available: int
    active_borrows: int


class AvailabilityLedger:
    """Keeps ``available = quantity - active loans`` for every book."""

    def __init__(self, session: Session):
        self.session = session

    def _execute(self, statement, error_msg: str) -> int:
        result = safe_query(
            self.session,
            lambda s: s.execute(statement.execution_options(synchronize_session=False)),
            error_msg,
        )
        return result.rowcount

    def _reload(self, book_id: str) -> BookDB | None:
        """Fetch the current row, overwriting any stale identity-map copy."""
        return safe_query(
            self.session,
            lambda s: s.get(BookDB, book_id, populate_existing=True),
            "Failed to load book",
        )

    def reserve_copy(self, book_id: str) -> None:
        """
        Take one copy off the shelf for a borrow.

        Raises:
            BookNotFoundError: If the book does not exist
            BookUnavailableError: If no copy is available
        """
        statement = (
            update(BookDB)
            .where(BookDB.id == book_id, BookDB.available > 0)
            .values(available=BookDB.available - 1)
        )
        if self._execute(statement, "Failed to reserve copy"):
            self._reload(book_id)
            return

        book = self._reload(book_id)
        if book is None:
            raise BookNotFoundError(book_id)
        raise BookUnavailableError(book_id, book.title)

    def release_copy(self, book_id: str) -> None:
        """
        Put one copy back on the shelf for a return.

        Raises:
            BookNotFoundError: If the book does not exist
            AvailabilityInvariantError: If every copy is already available
        """
        statement = (
            update(BookDB)
            .where(BookDB.id == book_id, BookDB.available < BookDB.quantity)
            .values(available=BookDB.available + 1)
        )
        if self._execute(statement, "Failed to release copy"):
            self._reload(book_id)
            return

        book = self._reload(book_id)
        if book is None:
            raise BookNotFoundError(book_id)
        logger.error(
            "Release of book %s rejected: available %d already equals quantity %d",
            book_id,
            book.available,
            book.quantity,
        )
        raise AvailabilityInvariantError(
            f"Cannot release a copy of book {book_id}: all {book.quantity} copies are available"
        )

    def change_quantity(self, book_id: str, new_quantity: int) -> None:
        """
        Set a new owned-copy count, keeping the number of borrowed copies.

        ``available`` becomes ``new_quantity - (quantity - available)``.

        Raises:
            EntityValidationError: If new_quantity is below 1
            BookNotFoundError: If the book does not exist
            QuantityBelowBorrowedError: If more copies are borrowed than requested
        """
        if new_quantity < 1:
            raise EntityValidationError(
                f"Quantity must be at least 1, got {new_quantity}",
                errors=[
                    {
                        "type": "greater_than_equal",
                        "loc": ("quantity",),
                        "msg": "Input should be greater than or equal to 1",
                    }
                ],
            )

        statement = (
            update(BookDB)
            .where(BookDB.id == book_id, BookDB.quantity - BookDB.available <= new_quantity)
            .values(
                available=new_quantity - (BookDB.quantity - BookDB.available),
                quantity=new_quantity,
            )
        )
        if self._execute(statement, "Failed to change quantity"):
            self._reload(book_id)
            return

        book = self._reload(book_id)
        if book is None:
            raise BookNotFoundError(book_id)
        raise QuantityBelowBorrowedError(book_id, book.quantity - book.available, new_quantity)

    def borrowed_count(self, book_id: str) -> int:
        """Copies of a book currently on loan, counted from active records."""
        return count_active_borrows(self.session, book_id=book_id)

    def audit(self) -> list[AvailabilityDiscrepancy]:
        """
        Recompute every book's availability from its active loans.

        Returns:
            Books whose stored ``available`` differs from the recomputed
            value, ordered by book id. Empty when the ledger is consistent.
        """
        active = (
            select(BorrowDB.book_id, func.count(BorrowDB.id).label("active"))
            .where(active_borrow_filter())
            .group_by(BorrowDB.book_id)
            .subquery()
        )
        query = (
            select(BookDB, func.coalesce(active.c.active, 0))
            .outerjoin(active, active.c.book_id == BookDB.id)
            .order_by(BookDB.id)
        )
        rows = safe_query(
            self.session, lambda s: s.execute(query).all(), "Failed to audit availability"
        )

        discrepancies = []
        for book, active_borrows in rows:
            expected = book.quantity - active_borrows
            if expected != book.available:
                discrepancies.append(
                    AvailabilityDiscrepancy(
                        book_id=book.id,
                        title=book.title,
                        quantity=book.quantity,
                        available=book.available,
                        expected_available=expected,
                        active_borrows=active_borrows,
                    )
                )

        if discrepancies:
            logger.warning("Availability audit found %d discrepancies", len(discrepancies))
        return discrepancies
