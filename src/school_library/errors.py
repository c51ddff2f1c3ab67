"""
Error taxonomy for the school library core.

Every failure of a store, ledger, engine or report operation is raised as one
of these classes. Each class carries a ``kind`` that the transport layer maps
to a response status:

- ``validation``: input violates declared field constraints (400)
- ``not_found``: a referenced entity does not exist (404)
- ``conflict``: a business rule rejects the operation (409)
- ``internal``: unexpected storage failure or broken invariant (500)
"""

from typing import Any


class LibraryError(Exception):
    """Base exception for library operations."""

    kind = "internal"


class EntityValidationError(LibraryError):
    """Input violates declared field constraints."""

    kind = "validation"

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


class NotFoundError(LibraryError):
    """Raised when a referenced entity is not found."""

    kind = "not_found"
    entity = "Entity"

    def __init__(self, entity_id: str):
        super().__init__(f"{self.entity} {entity_id} not found")
        self.entity_id = entity_id


class BookNotFoundError(NotFoundError):
    entity = "Book"


class StudentNotFoundError(NotFoundError):
    entity = "Student"


class RecordNotFoundError(NotFoundError):
    entity = "Borrow record"


class BusinessRuleError(LibraryError):
    """Base class for rejected operations on valid, existing entities."""

    kind = "conflict"


class BookUnavailableError(BusinessRuleError):
    """Borrow attempted while no copy is available."""

    def __init__(self, book_id: str, title: str | None = None):
        label = f"'{title}'" if title else book_id
        super().__init__(f"Book unavailable - no copies of {label} available")
        self.book_id = book_id


class AlreadyReturnedError(BusinessRuleError):
    """Return attempted on a record that is already returned."""

    def __init__(self, record_id: str):
        super().__init__(f"Borrow record {record_id} has already been returned")
        self.record_id = record_id


class QuantityBelowBorrowedError(BusinessRuleError):
    """Quantity update would leave fewer copies than are on loan."""

    def __init__(self, book_id: str, borrowed: int, requested: int):
        super().__init__(
            f"Cannot reduce quantity of book {book_id} to {requested}: "
            f"{borrowed} copies are currently borrowed"
        )
        self.book_id = book_id
        self.borrowed = borrowed
        self.requested = requested


class ActiveBorrowsError(BusinessRuleError):
    """Delete attempted on a book or student with active borrow records."""

    def __init__(self, entity: str, entity_id: str, active: int):
        super().__init__(
            f"Cannot delete {entity} {entity_id}: {active} active borrow record(s)"
        )
        self.entity_id = entity_id
        self.active = active


class AvailabilityInvariantError(LibraryError):
    """A ledger mutation would break 0 <= available <= quantity."""


class StorageError(LibraryError):
    """Unexpected database failure."""
