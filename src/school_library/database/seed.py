"""
Demo data for the School Library.

Generates a Korean school catalog, a roster of students and a borrow
history with Faker. Everything is written through the repositories and the
circulation engine, so the seeded data satisfies the same invariants as
data entered by users: availability matches the active loans, and every
returned record was borrowed first.

Borrow and return timestamps are spread over the past weeks by giving the
engine a fixed clock per operation. Some loans end up overdue.
"""

import logging
import random
from datetime import datetime, timedelta

from faker import Faker

from ..errors import BookUnavailableError
from ..models.book import BookCategory
from .book_repository import BookRepository
from .circulation_repository import CirculationRepository
from .session import DatabaseManager
from .student_repository import StudentRepository

logger = logging.getLogger(__name__)


def generate_book(fake: Faker, rng: random.Random) -> dict:
    """Field values for one catalog entry."""
    return {
        "title": fake.catch_phrase(),
        "author": fake.name(),
        "isbn": fake.numerify("979##########"),
        "publisher": fake.company() if rng.random() > 0.2 else None,
        "category": rng.choice(list(BookCategory)),
        "publication_year": rng.randint(1950, datetime.now().year),
        "quantity": rng.randint(1, 4),
        "description": fake.sentence() if rng.random() > 0.5 else None,
    }


def generate_student(fake: Faker, rng: random.Random) -> dict:
    return {
        "name": fake.name(),
        "grade": rng.randint(1, 6),
        "class_number": rng.randint(1, 5),
        "number": rng.randint(1, 30),
    }


def seed_database(
    db: DatabaseManager,
    books: int = 30,
    students: int = 40,
    borrows: int = 25,
    seed: int | None = 42,
    loan_period_days: int = 14,
) -> dict[str, int]:
    """
    Populate the database with demo data.

    Args:
        db: Database to seed; its schema must already exist
        books: Number of catalog entries
        students: Number of students
        borrows: Number of borrow attempts; attempts on a book with no copy
            left are skipped
        seed: Seed for reproducible data, None for random data
        loan_period_days: Days between borrow and due date

    Returns:
        Counts of created books, students, borrows, returns and overdue loans
    """
    fake = Faker("ko_KR")
    rng = random.Random(seed)
    if seed is not None:
        fake.seed_instance(seed)

    now = datetime.now().replace(microsecond=0)
    summary = {"books": 0, "students": 0, "borrows": 0, "returns": 0, "overdue": 0}

    with db.session_scope() as session:
        book_repo = BookRepository(session)
        student_repo = StudentRepository(session)

        book_ids = [book_repo.create(generate_book(fake, rng)).id for _ in range(books)]
        student_ids = [
            student_repo.create(generate_student(fake, rng)).id for _ in range(students)
        ]
        summary["books"] = len(book_ids)
        summary["students"] = len(student_ids)
        logger.info("Seeded %d books and %d students", len(book_ids), len(student_ids))

        if not book_ids or not student_ids:
            return summary

        # Replay the history in time order
        borrow_times = sorted(
            now - timedelta(days=rng.randint(1, 45), minutes=rng.randint(0, 600))
            for _ in range(borrows)
        )
        for borrowed_at in borrow_times:
            circulation = CirculationRepository(session, clock=lambda t=borrowed_at: t)
            try:
                record = circulation.borrow_book(
                    {
                        "student_id": rng.choice(student_ids),
                        "book_id": rng.choice(book_ids),
                        "due_date": borrowed_at + timedelta(days=loan_period_days),
                    }
                )
            except BookUnavailableError:
                continue
            summary["borrows"] += 1

            returned_at = borrowed_at + timedelta(days=rng.randint(1, 20))
            if returned_at < now and rng.random() < 0.6:
                CirculationRepository(session, clock=lambda t=returned_at: t).return_book(
                    record.id
                )
                summary["returns"] += 1
            elif record.due_date < now:
                summary["overdue"] += 1

    logger.info(
        "Seeded %d borrows (%d returned, %d overdue)",
        summary["borrows"],
        summary["returns"],
        summary["overdue"],
    )
    return summary
