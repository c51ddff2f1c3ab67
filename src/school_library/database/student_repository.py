"""Student repository: borrower CRUD, name search and loan counts."""

from typing import Any

from sqlalchemy import select

from ..errors import ActiveBorrowsError, StudentNotFoundError
from ..models.student import Student as StudentModel
from ..models.student import StudentCreate, StudentUpdate
from .borrow_repository import count_active_borrows, without_active_borrows
from .repository import CrudRepository
from .schema import Student as StudentDB


class StudentRepository(CrudRepository[StudentDB, StudentCreate, StudentUpdate, StudentModel]):
    """Repository for students, ordered by classroom position."""

    not_found_error = StudentNotFoundError

    @property
    def model_class(self):
        return StudentDB

    @property
    def response_schema(self):
        return StudentModel

    @property
    def create_schema(self):
        return StudentCreate

    @property
    def update_schema(self):
        return StudentUpdate

    @property
    def default_order(self) -> list[Any]:
        return [StudentDB.grade, StudentDB.class_number, StudentDB.number, StudentDB.id]

    def _delete_guards(self) -> list[Any]:
        return [without_active_borrows(student_id=StudentDB.id)]

    def _reject_delete(self, id: str) -> None:
        raise ActiveBorrowsError("student", id, count_active_borrows(self.session, student_id=id))

    def list_students(self, search: str | None = None) -> list[StudentModel]:
        """List students by (grade, class, number), optionally filtered by name."""
        query = select(StudentDB)
        if search and search.strip():
            query = query.where(StudentDB.name.icontains(search.strip(), autoescape=True))
        return self._list(query.order_by(*self.default_order))

    def search(self, text: str) -> list[StudentModel]:
        """Case-insensitive substring match on the student's name."""
        return self.list_students(search=text)

    def borrowed_count(self, id: str) -> int:
        """
        Number of books the student currently has on loan.

        Raises:
            StudentNotFoundError: If the student does not exist
        """
        if not self.exists(id):
            raise StudentNotFoundError(id)
        return count_active_borrows(self.session, student_id=id)
