"""Book Resources - Library Catalog Access

Exposes the catalog via read-only resources.

Resources:
- library://books - Every book in creation order
- library://books/search/{query} - Books whose title, author or category matches
- library://books/{book_id} - One book with its availability
"""

import logging
from typing import Any

from pydantic import BaseModel, Field

from ..database import BookRepository, DatabaseManager
from ..payloads import book_payload
from .common import resource_error

logger = logging.getLogger(__name__)


class BookListResponse(BaseModel):
    """Response schema for book listings."""

    books: list[dict[str, Any]] = Field(..., description="Matching books")
    total: int = Field(..., description="Number of matching books")
    query: str | None = Field(default=None, description="Search text, if any")


async def list_books_handler(db: DatabaseManager, query: str | None = None) -> dict[str, Any]:
    """Returns the catalog, optionally filtered by a search text."""
    try:
        logger.debug("Resource request - books (query=%r)", query)
        with db.session_scope() as session:
            books = BookRepository(session).list_books(search=query)
        return BookListResponse(
            books=[book_payload(book) for book in books],
            total=len(books),
            query=query,
        ).model_dump()
    except Exception as e:
        raise resource_error("Failed to retrieve book list", e) from e


async def get_book_handler(db: DatabaseManager, book_id: str) -> dict[str, Any]:
    """Returns one book. Unknown ids raise ResourceError."""
    try:
        logger.debug("Resource request - books/%s", book_id)
        with db.session_scope() as session:
            book = BookRepository(session).get(book_id)
        return {"book": book_payload(book)}
    except Exception as e:
        raise resource_error("Failed to retrieve book", e) from e


def book_resources(db: DatabaseManager) -> list[dict[str, Any]]:
    """Resource definitions bound to a database."""

    async def list_books() -> dict[str, Any]:
        return await list_books_handler(db)

    async def search_books(query: str) -> dict[str, Any]:
        return await list_books_handler(db, query)

    async def get_book(book_id: str) -> dict[str, Any]:
        return await get_book_handler(db, book_id)

    return [
        {
            "uri": "library://books",
            "name": "Book Catalog",
            "description": "All books with quantity, available copies and category.",
            "mime_type": "application/json",
            "handler": list_books,
        },
        {
            "uri_template": "library://books/search/{query}",
            "name": "Book Search",
            "description": (
                "Books whose title, author or category contains the query "
                "(case-insensitive). Category labels such as 과학 also match."
            ),
            "mime_type": "application/json",
            "handler": search_books,
        },
        {
            "uri_template": "library://books/{book_id}",
            "name": "Book Details",
            "description": "One book by id, including available and borrowed copies.",
            "mime_type": "application/json",
            "handler": get_book,
        },
    ]
