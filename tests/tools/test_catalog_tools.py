"""Tests for the catalog tools (book and student management)."""

from datetime import datetime, timedelta

from school_library.database import CirculationRepository
from school_library.tools.catalog import (
    catalog_tools,
    create_book_handler,
    create_student_handler,
    delete_book_handler,
    delete_student_handler,
    update_book_handler,
    update_student_handler,
)


def borrow(db, student_id, book_id):
    with db.session_scope() as session:
        return CirculationRepository(session).borrow_book(
            {
                "student_id": student_id,
                "book_id": book_id,
                "due_date": datetime.now() + timedelta(days=7),
            }
        )


class TestBookTools:
    async def test_create_book(self, db):
        result = await create_book_handler(
            db, {"title": "코스모스", "author": "칼 세이건", "category": "과학", "quantity": 2}
        )
        assert "isError" not in result
        book = result["data"]["book"]
        assert book["quantity"] == 2
        assert book["available"] == 2
        assert book["category"] == "science"
        assert book["category_label"] == "과학"
        assert book["borrowed_count"] == 0
        assert "코스모스" in result["content"][0]["text"]

    async def test_create_book_validation_error(self, db):
        result = await create_book_handler(db, {"title": "t", "category": "art", "quantity": 0})
        assert result["isError"] is True
        assert result["errorKind"] == "validation"
        assert {tuple(e["loc"]) for e in result["errors"]} == {("author",), ("quantity",)}

    async def test_update_book_quantity(self, db, sample_book, sample_student):
        borrow(db, sample_student.id, sample_book.id)
        result = await update_book_handler(db, {"book_id": sample_book.id, "quantity": 6})
        book = result["data"]["book"]
        assert (book["quantity"], book["available"], book["borrowed_count"]) == (6, 5, 1)

    async def test_update_book_conflict(self, db, sample_book, sample_student):
        borrow(db, sample_student.id, sample_book.id)
        borrow(db, sample_student.id, sample_book.id)
        result = await update_book_handler(db, {"book_id": sample_book.id, "quantity": 1})
        assert result["isError"] is True
        assert result["errorKind"] == "conflict"

    async def test_update_requires_book_id(self, db):
        result = await update_book_handler(db, {"title": "t"})
        assert result["errorKind"] == "validation"

    async def test_update_unknown_book(self, db):
        result = await update_book_handler(db, {"book_id": "missing", "title": "t"})
        assert result["errorKind"] == "not_found"

    async def test_delete_book(self, db, sample_book):
        result = await delete_book_handler(db, {"book_id": sample_book.id})
        assert result["data"] == {"book_id": sample_book.id, "deleted": True}

        again = await delete_book_handler(db, {"book_id": sample_book.id})
        assert again["errorKind"] == "not_found"

    async def test_delete_book_on_loan(self, db, sample_book, sample_student):
        borrow(db, sample_student.id, sample_book.id)
        result = await delete_book_handler(db, {"book_id": sample_book.id})
        assert result["errorKind"] == "conflict"


class TestStudentTools:
    async def test_create_student_with_class_alias(self, db):
        result = await create_student_handler(
            db, {"name": "박지호", "grade": 5, "class": 3, "number": 11}
        )
        student = result["data"]["student"]
        assert student["class_number"] == 3
        assert student["display_label"] == "박지호 (5학년 3반)"

    async def test_update_student(self, db, sample_student):
        result = await update_student_handler(db, {"student_id": sample_student.id, "grade": 4})
        assert result["data"]["student"]["grade"] == 4

    async def test_delete_student(self, db, sample_student, sample_book):
        record = borrow(db, sample_student.id, sample_book.id)
        blocked = await delete_student_handler(db, {"student_id": sample_student.id})
        assert blocked["errorKind"] == "conflict"

        with db.session_scope() as session:
            CirculationRepository(session).return_book(record.id)
        result = await delete_student_handler(db, {"student_id": sample_student.id})
        assert result["data"]["deleted"] is True


async def test_catalog_tool_definitions(db):
    tools = catalog_tools(db)
    assert [tool["name"] for tool in tools] == [
        "create_book",
        "update_book",
        "delete_book",
        "create_student",
        "update_student",
        "delete_student",
    ]

    by_name = {tool["name"]: tool["handler"] for tool in tools}
    result = await by_name["create_student"]({"name": "a", "grade": 1, "class": 1, "number": 1})
    assert result["data"]["student"]["name"] == "a"
