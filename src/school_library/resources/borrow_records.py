"""Borrow Record Resources - Loan History

Every record carries its overdue state computed at read time.

Resources:
- library://borrow-records - All records, newest borrow first
- library://borrow-records/active - Records on loan, soonest due first
- library://borrow-records/student/{student_id} - One student's records
- library://borrow-records/book/{book_id} - One book's records
- library://borrow-records/{record_id} - One record
"""

import logging
from datetime import datetime
from typing import Any

from ..database import BorrowRecordRepository, DatabaseManager
from ..payloads import record_payload
from .common import resource_error

logger = logging.getLogger(__name__)


async def list_records_handler(
    db: DatabaseManager,
    student_id: str | None = None,
    book_id: str | None = None,
    active_only: bool = False,
) -> dict[str, Any]:
    try:
        now = datetime.now()
        with db.session_scope() as session:
            records = BorrowRecordRepository(session).list_records(
                student_id=student_id, book_id=book_id, active_only=active_only
            )
        return {
            "records": [record_payload(record, now) for record in records],
            "total": len(records),
            "as_of": now.isoformat(),
        }
    except Exception as e:
        raise resource_error("Failed to retrieve borrow records", e) from e


async def get_record_handler(db: DatabaseManager, record_id: str) -> dict[str, Any]:
    try:
        with db.session_scope() as session:
            record = BorrowRecordRepository(session).get(record_id)
        return {"record": record_payload(record)}
    except Exception as e:
        raise resource_error("Failed to retrieve borrow record", e) from e


def borrow_record_resources(db: DatabaseManager) -> list[dict[str, Any]]:
    """Resource definitions bound to a database."""

    async def list_records() -> dict[str, Any]:
        return await list_records_handler(db)

    async def list_active_records() -> dict[str, Any]:
        return await list_records_handler(db, active_only=True)

    async def list_student_records(student_id: str) -> dict[str, Any]:
        return await list_records_handler(db, student_id=student_id)

    async def list_book_records(book_id: str) -> dict[str, Any]:
        return await list_records_handler(db, book_id=book_id)

    async def get_record(record_id: str) -> dict[str, Any]:
        return await get_record_handler(db, record_id)

    return [
        {
            "uri": "library://borrow-records",
            "name": "Borrow Records",
            "description": "All borrow records, newest borrow first.",
            "mime_type": "application/json",
            "handler": list_records,
        },
        {
            "uri": "library://borrow-records/active",
            "name": "Active Loans",
            "description": "Records still on loan, soonest due date first, with overdue flags.",
            "mime_type": "application/json",
            "handler": list_active_records,
        },
        {
            "uri_template": "library://borrow-records/student/{student_id}",
            "name": "Student Loan History",
            "description": "Borrow records of one student, newest first.",
            "mime_type": "application/json",
            "handler": list_student_records,
        },
        {
            "uri_template": "library://borrow-records/book/{book_id}",
            "name": "Book Loan History",
            "description": "Borrow records of one book, newest first.",
            "mime_type": "application/json",
            "handler": list_book_records,
        },
        {
            "uri_template": "library://borrow-records/{record_id}",
            "name": "Borrow Record Details",
            "description": "One borrow record by id.",
            "mime_type": "application/json",
            "handler": get_record,
        },
    ]
