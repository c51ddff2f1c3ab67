"""
Book model for the School Library.

A book is a catalog entry with a number of owned copies (``quantity``) and
the number of copies currently on the shelf (``available``). ``available``
is owned by the availability ledger: it is never accepted from callers and
only changes through borrow, return and quantity updates.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class BookCategory(str, Enum):
    """Fixed set of catalog categories."""

    FICTION = "fiction"
    SCIENCE = "science"
    HISTORY = "history"
    ART = "art"
    ETC = "etc"


CATEGORY_LABELS: dict[BookCategory, str] = {
    BookCategory.FICTION: "문학",
    BookCategory.SCIENCE: "과학",
    BookCategory.HISTORY: "역사",
    BookCategory.ART: "예술",
    BookCategory.ETC: "기타",
}


def category_label(category: BookCategory | str) -> str:
    """Return the display label for a category value."""
    return CATEGORY_LABELS[BookCategory(category)]


def categories_matching(text: str) -> list[BookCategory]:
    """Categories whose value or display label contains ``text`` (case-insensitive)."""
    needle = text.strip().lower()
    if not needle:
        return []
    return [
        category
        for category, label in CATEGORY_LABELS.items()
        if needle in category.value or needle in label.lower()
    ]


def _parse_category(value: object) -> object:
    """Accept category values case-insensitively, or by display label."""
    if isinstance(value, str):
        normalized = value.strip().lower()
        for category, label in CATEGORY_LABELS.items():
            if normalized == label:
                return category.value
        return normalized
    return value


def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _check_publication_year(year: int | None) -> int | None:
    """Reject years later than next year, measured at validation time."""
    if year is not None and year > datetime.now().year + 1:
        raise ValueError(f"Publication year cannot be later than {datetime.now().year + 1}")
    return year


class BookFields(BaseModel):
    """Descriptive fields shared by the create schema and the stored book."""

    title: str = Field(
        ...,
        description="The title of the book",
        min_length=1,
        max_length=500,
        examples=["어린 왕자", "코스모스"],
    )

    author: str = Field(
        ...,
        description="Author name",
        min_length=1,
        max_length=200,
        examples=["생텍쥐페리", "칼 세이건"],
    )

    isbn: str | None = Field(
        None,
        description="ISBN, free-form",
        max_length=20,
        examples=["9788932917245"],
    )

    publisher: str | None = Field(None, description="Publisher name", max_length=200)

    category: BookCategory = Field(
        ...,
        description="Catalog category",
        examples=["fiction", "science"],
    )

    publication_year: int | None = Field(
        None,
        description="Year the book was published",
        ge=0,
        examples=[1943, 1980],
    )

    description: str | None = Field(
        None,
        description="Brief description of the book",
        max_length=2000,
    )

    @field_validator("title", "author", mode="before")
    @classmethod
    def strip_required_text(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("isbn", "publisher", "description", mode="before")
    @classmethod
    def normalize_optional_text(cls, v: object) -> object:
        v = _blank_to_none(v)
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v: object) -> object:
        return _parse_category(v)

    @field_validator("publication_year")
    @classmethod
    def validate_publication_year(cls, v: int | None) -> int | None:
        return _check_publication_year(v)


class BookCreate(BookFields):
    """Schema for creating a book. ``available`` starts equal to ``quantity``."""

    model_config = ConfigDict(extra="forbid")

    quantity: int = Field(
        default=1,
        description="Total number of copies owned by the library",
        ge=1,
        examples=[1, 3, 10],
    )


class BookUpdate(BaseModel):
    """Schema for updating a book - all fields optional.

    ``available`` is deliberately absent: quantity changes are translated into
    availability changes by the ledger.
    """

    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    author: str | None = None
    isbn: str | None = None
    publisher: str | None = None
    category: BookCategory | None = None
    publication_year: int | None = None
    description: str | None = None
    quantity: int | None = Field(None, ge=1)

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v: object) -> object:
        return _parse_category(v)

    @field_validator("publication_year")
    @classmethod
    def validate_publication_year(cls, v: int | None) -> int | None:
        return _check_publication_year(v)


class Book(BookFields):
    """A stored book, including generated fields and availability."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Opaque unique identifier")

    quantity: int = Field(..., description="Total copies owned", ge=1)

    available: int = Field(..., description="Copies not currently on loan", ge=0)

    created_at: datetime = Field(..., description="When the book was added")

    @model_validator(mode="after")
    def validate_copies(self) -> "Book":
        """Ensure available copies doesn't exceed total copies."""
        if self.available > self.quantity:
            raise ValueError("Available copies cannot exceed quantity")
        return self

    @property
    def borrowed_count(self) -> int:
        """Copies currently on loan."""
        return self.quantity - self.available

    @property
    def is_available(self) -> bool:
        return self.available > 0

    @property
    def category_label(self) -> str:
        return category_label(self.category)
