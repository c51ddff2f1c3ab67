"""
Circulation tools: borrow and return books.

These are the only tools that change loan state. Both run a single
circulation engine call; concurrent calls on the same book or record are
serialized by the database, so at most one of two borrows of the last copy
succeeds and a record is returned at most once.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..database import CirculationRepository, DatabaseManager
from ..database.repository import validate_input
from ..models.borrow import BorrowCreate
from ..payloads import record_payload
from .responses import error_response, success_response

logger = logging.getLogger(__name__)


class BorrowBookInput(BaseModel):
    """Input schema for the borrow_book tool."""

    model_config = ConfigDict(extra="forbid")

    student_id: str = Field(..., min_length=1, description="Borrowing student")
    book_id: str = Field(..., min_length=1, description="Book to lend")
    due_date: datetime | date | None = Field(
        default=None,
        description="When the book is due back. Defaults to the standard loan period.",
        examples=["2024-03-15", "2024-03-15T09:00:00"],
    )


class ReturnBookInput(BaseModel):
    """Input schema for the return_book tool."""

    model_config = ConfigDict(extra="forbid")

    record_id: str = Field(..., min_length=1, description="Borrow record to close")


async def borrow_book_handler(
    db: DatabaseManager, arguments: dict[str, Any], loan_period_days: int = 14
) -> dict[str, Any]:
    """
    Lend a book to a student.

    Fails with ``not_found`` for an unknown student or book and with
    ``conflict`` when no copy is available.
    """
    try:
        params = validate_input(BorrowBookInput, arguments or {})
        due_date = params.due_date or datetime.now() + timedelta(days=loan_period_days)
        request = validate_input(
            BorrowCreate,
            {"student_id": params.student_id, "book_id": params.book_id, "due_date": due_date},
        )
        with db.session_scope() as session:
            record = CirculationRepository(session).borrow_book(request)
    except Exception as e:
        return error_response("Borrow book", e)

    return success_response(
        f"Book {record.book_id} lent to student {record.student_id}. "
        f"Due {record.due_date.strftime('%Y-%m-%d')}",
        {"record": record_payload(record)},
    )


async def return_book_handler(db: DatabaseManager, arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Return a borrowed book.

    Returning a record twice fails with ``conflict``.
    """
    try:
        params = validate_input(ReturnBookInput, arguments or {})
        with db.session_scope() as session:
            record = CirculationRepository(session).return_book(params.record_id)
    except Exception as e:
        return error_response("Return book", e)

    message = f"Book {record.book_id} returned (record {record.id})"
    if record.return_date and record.return_date > record.due_date:
        message += f", {(record.return_date - record.due_date).days} days late"
    return success_response(message, {"record": record_payload(record)})


def circulation_tools(db: DatabaseManager, loan_period_days: int = 14) -> list[dict[str, Any]]:
    """Tool definitions bound to a database."""

    async def borrow_book(arguments: dict[str, Any]) -> dict[str, Any]:
        return await borrow_book_handler(db, arguments, loan_period_days)

    async def return_book(arguments: dict[str, Any]) -> dict[str, Any]:
        return await return_book_handler(db, arguments)

    return [
        {
            "name": "borrow_book",
            "description": (
                "Lend a book to a student. Requires student_id and book_id; due_date "
                f"defaults to {loan_period_days} days from now. Fails if no copy is available."
            ),
            "handler": borrow_book,
        },
        {
            "name": "return_book",
            "description": (
                "Return a borrowed book by record_id. The copy becomes available again. "
                "A record can be returned only once."
            ),
            "handler": return_book,
        },
    ]
