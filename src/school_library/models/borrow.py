"""
Borrow record models for the School Library.

A borrow record follows a two-step lifecycle:

    [nonexistent] --borrow--> borrowed --return--> returned (terminal)

Overdue is not a status. It is derived from the current time on every read
through :func:`is_overdue`, which is the single implementation shared by the
models, the report repository and any presentation layer.
"""

from datetime import date, datetime, time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class BorrowStatus(str, Enum):
    """Stored status of a borrow record."""

    BORROWED = "borrowed"
    RETURNED = "returned"


def is_overdue(status: BorrowStatus | str, due_date: datetime, now: datetime) -> bool:
    """A record is overdue iff it is still borrowed and its due date has passed."""
    return BorrowStatus(status) == BorrowStatus.BORROWED and due_date < now


def days_overdue(due_date: datetime, now: datetime) -> int:
    """Whole days elapsed since the due date, 0 if not yet due."""
    if due_date >= now:
        return 0
    return (now - due_date).days


def to_local_naive(value: datetime) -> datetime:
    """Timestamps are stored as naive local time."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class BorrowCreate(BaseModel):
    """Schema for a borrow request.

    The due date is supplied by the caller. Past due dates are accepted; such
    a loan is overdue as soon as it is created.
    """

    model_config = ConfigDict(extra="forbid")

    student_id: str = Field(..., min_length=1, description="Borrowing student")
    book_id: str = Field(..., min_length=1, description="Borrowed book")
    due_date: datetime = Field(
        ...,
        description="When the book is due back",
        examples=["2024-03-15T00:00:00"],
    )

    @field_validator("due_date", mode="before")
    @classmethod
    def accept_plain_dates(cls, v: object) -> object:
        # Bare dates are due at midnight
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime.combine(v, time.min)
        return v

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v: datetime) -> datetime:
        return to_local_naive(v)


class BorrowRecord(BaseModel):
    """A stored borrow record."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    book_id: str
    borrow_date: datetime
    due_date: datetime
    return_date: datetime | None = None
    status: BorrowStatus = BorrowStatus.BORROWED
    created_at: datetime

    @model_validator(mode="after")
    def validate_return_state(self) -> "BorrowRecord":
        """return_date is set if and only if the record is returned."""
        if (self.status == BorrowStatus.RETURNED) != (self.return_date is not None):
            raise ValueError("return_date must be set exactly when status is 'returned'")
        return self

    @property
    def is_active(self) -> bool:
        return self.status == BorrowStatus.BORROWED

    def is_overdue(self, now: datetime | None = None) -> bool:
        return is_overdue(self.status, self.due_date, now or datetime.now())

    def days_overdue(self, now: datetime | None = None) -> int:
        now = now or datetime.now()
        if not self.is_overdue(now):
            return 0
        return days_overdue(self.due_date, now)
