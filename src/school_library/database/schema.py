"""
SQLAlchemy database schema for the School Library.

Tables mirror the pydantic models. Counter and lifecycle invariants are
repeated as CHECK constraints so that a faulty write path fails at commit
instead of persisting a broken row:

- books: quantity >= 1, 0 <= available <= quantity
- borrow_records: return_date is set iff status = 'returned'

Borrow records reference books and students through plain indexed columns.
Returned history outlives a deleted book or student and is reported with a
placeholder label.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

from ..models.book import BookCategory
from ..models.borrow import BorrowStatus

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class Book(Base):
    """
    Books table - the library catalog.

    ``available`` is written only by the availability ledger.
    """

    __tablename__ = "books"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(500), nullable=False, index=True)
    author = Column(String(200), nullable=False, index=True)
    isbn = Column(String(20), nullable=True)
    publisher = Column(String(200), nullable=True)
    category = Column(
        Enum(
            BookCategory,
            name="book_category",
            values_callable=_enum_values,
            create_constraint=True,
        ),
        nullable=False,
    )
    publication_year = Column(Integer, nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    available = Column(Integer, nullable=False, default=1)
    description = Column(Text, nullable=True)

    # Microsecond timestamps keep creation order stable for listings
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    __table_args__ = (
        Index("idx_book_created_at", "created_at"),
        CheckConstraint("quantity >= 1", name="check_quantity_positive"),
        CheckConstraint("available >= 0", name="check_available_non_negative"),
        CheckConstraint("available <= quantity", name="check_available_not_exceed_quantity"),
    )


class Student(Base):
    """Students table - library borrowers."""

    __tablename__ = "students"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(100), nullable=False, index=True)
    grade = Column(Integer, nullable=False)
    class_number = Column("class", Integer, nullable=False)
    number = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    __table_args__ = (
        CheckConstraint("grade >= 1", name="check_grade_positive"),
        CheckConstraint('"class" >= 1', name="check_class_positive"),
        CheckConstraint("number >= 1", name="check_number_positive"),
    )


# Default student ordering: (grade, class, number)
Index("idx_student_position", Student.grade, Student.class_number, Student.number)


class BorrowRecord(Base):
    """
    Borrow records table - one row per loan.

    Created by a borrow, mutated once by a return, never deleted.
    """

    __tablename__ = "borrow_records"

    id = Column(String(36), primary_key=True, default=_new_id)
    student_id = Column(String(36), nullable=False)
    book_id = Column(String(36), nullable=False)
    borrow_date = Column(DateTime, nullable=False, default=datetime.now)
    due_date = Column(DateTime, nullable=False)
    return_date = Column(DateTime, nullable=True)
    status = Column(
        Enum(
            BorrowStatus,
            name="borrow_status",
            values_callable=_enum_values,
            create_constraint=True,
        ),
        nullable=False,
        default=BorrowStatus.BORROWED,
    )
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    __table_args__ = (
        Index("idx_borrow_student", "student_id"),
        Index("idx_borrow_book", "book_id"),
        Index("idx_borrow_status_due", "status", "due_date"),
        Index("idx_borrow_date", "borrow_date"),
        CheckConstraint(
            "(status = 'returned' AND return_date IS NOT NULL)"
            " OR (status = 'borrowed' AND return_date IS NULL)",
            name="check_return_date_matches_status",
        ),
    )
