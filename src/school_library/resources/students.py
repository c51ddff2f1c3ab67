"""Student Resources - Borrower Roster

Resources:
- library://students - Every student by grade, class and number
- library://students/search/{query} - Students whose name matches
- library://students/{student_id} - One student
- library://students/{student_id}/borrow-count - A student and their active loan count
"""

import logging
from typing import Any

from ..database import DatabaseManager, StudentRepository
from ..payloads import student_payload
from .common import resource_error

logger = logging.getLogger(__name__)


async def list_students_handler(db: DatabaseManager, query: str | None = None) -> dict[str, Any]:
    try:
        with db.session_scope() as session:
            students = StudentRepository(session).list_students(search=query)
        return {
            "students": [student_payload(student) for student in students],
            "total": len(students),
            "query": query,
        }
    except Exception as e:
        raise resource_error("Failed to retrieve student list", e) from e


async def get_student_handler(db: DatabaseManager, student_id: str) -> dict[str, Any]:
    try:
        with db.session_scope() as session:
            student = StudentRepository(session).get(student_id)
        return {"student": student_payload(student)}
    except Exception as e:
        raise resource_error("Failed to retrieve student", e) from e


async def get_student_borrow_count_handler(
    db: DatabaseManager, student_id: str
) -> dict[str, Any]:
    """Returns the student together with the number of books they have on loan."""
    try:
        with db.session_scope() as session:
            repo = StudentRepository(session)
            student = repo.get(student_id)
            borrowed_count = repo.borrowed_count(student_id)
        return {"student": student_payload(student), "borrowed_count": borrowed_count}
    except Exception as e:
        raise resource_error("Failed to retrieve borrow count", e) from e


def student_resources(db: DatabaseManager) -> list[dict[str, Any]]:
    """Resource definitions bound to a database."""

    async def list_students() -> dict[str, Any]:
        return await list_students_handler(db)

    async def search_students(query: str) -> dict[str, Any]:
        return await list_students_handler(db, query)

    async def get_student(student_id: str) -> dict[str, Any]:
        return await get_student_handler(db, student_id)

    async def get_student_borrow_count(student_id: str) -> dict[str, Any]:
        return await get_student_borrow_count_handler(db, student_id)

    return [
        {
            "uri": "library://students",
            "name": "Student Roster",
            "description": "All students ordered by grade, class and number.",
            "mime_type": "application/json",
            "handler": list_students,
        },
        {
            "uri_template": "library://students/search/{query}",
            "name": "Student Search",
            "description": "Students whose name contains the query (case-insensitive).",
            "mime_type": "application/json",
            "handler": search_students,
        },
        {
            "uri_template": "library://students/{student_id}",
            "name": "Student Details",
            "description": "One student by id.",
            "mime_type": "application/json",
            "handler": get_student,
        },
        {
            "uri_template": "library://students/{student_id}/borrow-count",
            "name": "Student Borrow Count",
            "description": "A student and the number of books they currently have on loan.",
            "mime_type": "application/json",
            "handler": get_student_borrow_count,
        },
    ]
