"""
Catalog tools: create, update and delete books and students.

Each handler runs one repository call in its own transaction and turns
library errors into error envelopes. Update tools take the entity id next
to the changed fields, e.g.::

    {"book_id": "...", "quantity": 5, "title": "코스모스"}
"""

import logging
from typing import Any

from ..database import BookRepository, DatabaseManager, StudentRepository
from ..errors import BookNotFoundError, EntityValidationError, StudentNotFoundError
from ..payloads import book_payload, student_payload
from .responses import error_response, success_response

logger = logging.getLogger(__name__)


def _split_id(arguments: dict[str, Any] | None, key: str) -> tuple[str, dict[str, Any]]:
    """Separate the target id from the remaining fields."""
    fields = dict(arguments or {})
    entity_id = fields.pop(key, None)
    if not isinstance(entity_id, str) or not entity_id.strip():
        raise EntityValidationError(
            f"{key} is required",
            errors=[{"type": "missing", "loc": (key,), "msg": "Field required"}],
        )
    return entity_id.strip(), fields


async def create_book_handler(db: DatabaseManager, arguments: dict[str, Any]) -> dict[str, Any]:
    """Add a book to the catalog. All copies start available."""
    try:
        with db.session_scope() as session:
            book = BookRepository(session).create(arguments or {})
    except Exception as e:
        return error_response("Create book", e)

    return success_response(
        f"Added '{book.title}' by {book.author} ({book.quantity} copies)",
        {"book": book_payload(book)},
    )


async def update_book_handler(db: DatabaseManager, arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Update catalog fields of a book.

    Changing ``quantity`` keeps the number of borrowed copies and adjusts
    availability; it fails with a conflict if more copies are on loan than
    the new quantity.
    """
    try:
        book_id, changes = _split_id(arguments, "book_id")
        with db.session_scope() as session:
            book = BookRepository(session).update(book_id, changes)
    except Exception as e:
        return error_response("Update book", e)

    return success_response(
        f"Updated '{book.title}' ({book.available}/{book.quantity} copies available)",
        {"book": book_payload(book)},
    )


async def delete_book_handler(db: DatabaseManager, arguments: dict[str, Any]) -> dict[str, Any]:
    """Remove a book. Books with copies on loan cannot be removed."""
    try:
        book_id, _ = _split_id(arguments, "book_id")
        with db.session_scope() as session:
            deleted = BookRepository(session).delete(book_id)
        if not deleted:
            raise BookNotFoundError(book_id)
    except Exception as e:
        return error_response("Delete book", e)

    return success_response(f"Deleted book {book_id}", {"book_id": book_id, "deleted": True})


async def create_student_handler(db: DatabaseManager, arguments: dict[str, Any]) -> dict[str, Any]:
    """Register a student. ``class`` is accepted as an alias of ``class_number``."""
    try:
        with db.session_scope() as session:
            student = StudentRepository(session).create(arguments or {})
    except Exception as e:
        return error_response("Create student", e)

    return success_response(f"Registered {student.display_label}", {"student": student_payload(student)})


async def update_student_handler(db: DatabaseManager, arguments: dict[str, Any]) -> dict[str, Any]:
    try:
        student_id, changes = _split_id(arguments, "student_id")
        with db.session_scope() as session:
            student = StudentRepository(session).update(student_id, changes)
    except Exception as e:
        return error_response("Update student", e)

    return success_response(f"Updated {student.display_label}", {"student": student_payload(student)})


async def delete_student_handler(db: DatabaseManager, arguments: dict[str, Any]) -> dict[str, Any]:
    """Remove a student. Students with books on loan cannot be removed."""
    try:
        student_id, _ = _split_id(arguments, "student_id")
        with db.session_scope() as session:
            deleted = StudentRepository(session).delete(student_id)
        if not deleted:
            raise StudentNotFoundError(student_id)
    except Exception as e:
        return error_response("Delete student", e)

    return success_response(
        f"Deleted student {student_id}", {"student_id": student_id, "deleted": True}
    )


def catalog_tools(db: DatabaseManager) -> list[dict[str, Any]]:
    """Tool definitions bound to a database."""

    async def create_book(arguments: dict[str, Any]) -> dict[str, Any]:
        return await create_book_handler(db, arguments)

    async def update_book(arguments: dict[str, Any]) -> dict[str, Any]:
        return await update_book_handler(db, arguments)

    async def delete_book(arguments: dict[str, Any]) -> dict[str, Any]:
        return await delete_book_handler(db, arguments)

    async def create_student(arguments: dict[str, Any]) -> dict[str, Any]:
        return await create_student_handler(db, arguments)

    async def update_student(arguments: dict[str, Any]) -> dict[str, Any]:
        return await update_student_handler(db, arguments)

    async def delete_student(arguments: dict[str, Any]) -> dict[str, Any]:
        return await delete_student_handler(db, arguments)

    return [
        {
            "name": "create_book",
            "description": (
                "Add a book to the catalog. Requires title, author and category "
                "(fiction, science, history, art, etc). Optional: isbn, publisher, "
                "publication_year, description, quantity (default 1)."
            ),
            "handler": create_book,
        },
        {
            "name": "update_book",
            "description": (
                "Update a book by book_id. Pass only the fields to change. Changing "
                "quantity keeps borrowed copies and fails if it would drop below them."
            ),
            "handler": update_book,
        },
        {
            "name": "delete_book",
            "description": "Delete a book by book_id. Fails while copies are on loan.",
            "handler": delete_book,
        },
        {
            "name": "create_student",
            "description": "Register a student with name, grade, class and number.",
            "handler": create_student,
        },
        {
            "name": "update_student",
            "description": "Update a student by student_id. Pass only the fields to change.",
            "handler": update_student,
        },
        {
            "name": "delete_student",
            "description": "Delete a student by student_id. Fails while the student has books on loan.",
            "handler": delete_student,
        },
    ]
