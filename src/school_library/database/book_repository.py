"""
Book repository: catalog CRUD and search.

Quantity changes are handed to the availability ledger inside the update
transaction, so ``available`` is never written from here directly.
"""

from typing import Any

from sqlalchemy import or_, select

from ..errors import ActiveBorrowsError, BookNotFoundError
from ..models.book import Book as BookModel
from ..models.book import BookCategory, BookCreate, BookUpdate, categories_matching
from .availability_ledger import AvailabilityLedger
from .borrow_repository import count_active_borrows, without_active_borrows
from .repository import CrudRepository
from .schema import Book as BookDB


class BookRepository(CrudRepository[BookDB, BookCreate, BookUpdate, BookModel]):
    """
    Repository for catalog entries.

    Listings are in creation order. Search is a case-insensitive substring
    match on title and author, and on category value or display label.
    """

    not_found_error = BookNotFoundError

    @property
    def model_class(self):
        return BookDB

    @property
    def response_schema(self):
        return BookModel

    @property
    def create_schema(self):
        return BookCreate

    @property
    def update_schema(self):
        return BookUpdate

    def _create_values(self, data: BookCreate) -> dict[str, Any]:
        values = data.model_dump()
        # Every copy starts on the shelf
        values["available"] = data.quantity
        return values

    def _apply_update(self, db_obj: BookDB, changes: dict[str, Any]) -> None:
        changes = dict(changes)
        quantity = changes.pop("quantity", None)
        if quantity is not None and quantity != db_obj.quantity:
            # Refreshes db_obj, so it runs before the other fields are set
            AvailabilityLedger(self.session).change_quantity(db_obj.id, quantity)
        super()._apply_update(db_obj, changes)

    def _delete_guards(self) -> list[Any]:
        return [without_active_borrows(book_id=BookDB.id)]

    def _reject_delete(self, id: str) -> None:
        raise ActiveBorrowsError("book", id, count_active_borrows(self.session, book_id=id))

    def list_books(
        self,
        search: str | None = None,
        category: BookCategory | str | None = None,
        available_only: bool = False,
    ) -> list[BookModel]:
        """
        List books in creation order.

        Args:
            search: Substring to match; blank means no filter
            category: Only books in this category
            available_only: Only books with at least one copy on the shelf
        """
        query = select(BookDB)
        if search and search.strip():
            query = query.where(self._search_clause(search))
        if category is not None:
            query = query.where(BookDB.category == BookCategory(category))
        if available_only:
            query = query.where(BookDB.available > 0)
        return self._list(query.order_by(*self.default_order))

    def search(self, text: str) -> list[BookModel]:
        """Case-insensitive search over title, author and category."""
        return self.list_books(search=text)

    def _search_clause(self, text: str):
        needle = text.strip()
        clauses = [
            BookDB.title.icontains(needle, autoescape=True),
            BookDB.author.icontains(needle, autoescape=True),
        ]
        categories = categories_matching(text)
        if categories:
            clauses.append(BookDB.category.in_(categories))
        return or_(*clauses)
