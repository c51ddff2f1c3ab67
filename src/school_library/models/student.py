"""
Student model for the School Library.

Students are identified by an opaque id; grade, class and number together
describe a classroom position and are not required to be unique.
"""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def student_display_label(name: str, grade: int, class_number: int) -> str:
    """Label used wherever a student is shown next to a loan."""
    return f"{name} ({grade}학년 {class_number}반)"


class StudentFields(BaseModel):
    name: str = Field(
        ...,
        description="Student name",
        min_length=1,
        max_length=100,
        examples=["김민준", "이서연"],
    )

    grade: int = Field(..., description="School grade", ge=1, le=12, examples=[3])

    class_number: int = Field(
        ...,
        description="Class within the grade",
        ge=1,
        validation_alias=AliasChoices("class_number", "class"),
        examples=[2],
    )

    number: int = Field(..., description="Roll number within the class", ge=1, examples=[5])

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip()
        return v


class StudentCreate(StudentFields):
    """Schema for registering a student."""

    model_config = ConfigDict(extra="forbid")


class StudentUpdate(BaseModel):
    """Schema for updating a student - all fields optional."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    grade: int | None = None
    class_number: int | None = Field(
        None, validation_alias=AliasChoices("class_number", "class")
    )
    number: int | None = None


class Student(StudentFields):
    """A stored student."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Opaque unique identifier")
    created_at: datetime

    @property
    def display_label(self) -> str:
        return student_display_label(self.name, self.grade, self.class_number)
