"""
Concurrent borrow and return calls.

Each worker thread opens its own session on the shared database file, the
way two simultaneous tool calls would.
"""

import threading
from datetime import datetime, timedelta

import pytest

from school_library.database import (
    AvailabilityLedger,
    BookRepository,
    BorrowRecordRepository,
    CirculationRepository,
    StudentRepository,
)
from school_library.errors import (
    AlreadyReturnedError,
    BookUnavailableError,
    StudentNotFoundError,
)


def run_concurrently(db, operation, arguments):
    """Run ``operation(session, argument)`` for each argument in its own thread."""
    barrier = threading.Barrier(len(arguments))
    results = []
    lock = threading.Lock()

    def worker(argument):
        barrier.wait()
        try:
            with db.session_scope() as session:
                outcome = operation(session, argument)
        except Exception as e:
            outcome = e
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=worker, args=(argument,)) for argument in arguments]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return results


def split(results, error_type):
    errors = [r for r in results if isinstance(r, error_type)]
    successes = [r for r in results if not isinstance(r, Exception)]
    return successes, errors


class TestConcurrentCirculation:
    def test_two_borrows_of_last_copy(self, db, session, sample_student, other_student):
        book = BookRepository(session).create({"title": "t", "author": "a", "category": "art"})
        due = datetime.now() + timedelta(days=7)

        def borrow(worker_session, student_id):
            return CirculationRepository(worker_session).borrow_book(
                {"student_id": student_id, "book_id": book.id, "due_date": due}
            )

        results = run_concurrently(db, borrow, [sample_student.id, other_student.id])

        successes, errors = split(results, BookUnavailableError)
        assert len(successes) == 1
        assert len(errors) == 1

        with db.session_scope() as check:
            assert BookRepository(check).get(book.id).available == 0
            assert BorrowRecordRepository(check).count_active(book_id=book.id) == 1
            assert AvailabilityLedger(check).audit() == []

    def test_many_borrows_never_oversell(self, db, session, sample_book, sample_student):
        due = datetime.now() + timedelta(days=7)

        def borrow(worker_session, _):
            return CirculationRepository(worker_session).borrow_book(
                {"student_id": sample_student.id, "book_id": sample_book.id, "due_date": due}
            )

        results = run_concurrently(db, borrow, list(range(6)))

        successes, errors = split(results, BookUnavailableError)
        assert len(successes) == 3
        assert len(errors) == 3

        with db.session_scope() as check:
            assert BookRepository(check).get(sample_book.id).available == 0
            assert AvailabilityLedger(check).audit() == []

    def test_two_returns_of_same_record(self, db, session, sample_book, sample_student):
        record = CirculationRepository(session).borrow_book(
            {
                "student_id": sample_student.id,
                "book_id": sample_book.id,
                "due_date": datetime.now() + timedelta(days=7),
            }
        )

        def return_book(worker_session, record_id):
            return CirculationRepository(worker_session).return_book(record_id)

        results = run_concurrently(db, return_book, [record.id, record.id])

        successes, errors = split(results, AlreadyReturnedError)
        assert len(successes) == 1
        assert len(errors) == 1

        with db.session_scope() as check:
            assert BookRepository(check).get(sample_book.id).available == 3
            assert AvailabilityLedger(check).audit() == []

    def test_student_deleted_during_borrow(self, db, session, sample_book, sample_student):
        engine = CirculationRepository(session)
        reserve_copy = engine.ledger.reserve_copy

        def delete_student_then_reserve(book_id):
            with db.session_scope() as other:
                assert StudentRepository(other).delete(sample_student.id) is True
            reserve_copy(book_id)

        engine.ledger.reserve_copy = delete_student_then_reserve

        with pytest.raises(StudentNotFoundError):
            engine.borrow_book(
                {
                    "student_id": sample_student.id,
                    "book_id": sample_book.id,
                    "due_date": datetime.now() + timedelta(days=7),
                }
            )

        with db.session_scope() as check:
            assert BookRepository(check).get(sample_book.id).available == 3
            assert BorrowRecordRepository(check).count_active(book_id=sample_book.id) == 0
            assert AvailabilityLedger(check).audit() == []
