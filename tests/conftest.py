"""Test configuration and fixtures for the School Library.

Every test that touches storage gets its own SQLite file in a temporary
directory. A file database (rather than in-memory) lets concurrency tests
open independent connections the way separate server requests would.
"""

import os
from collections.abc import Generator
from pathlib import Path

import pytest
from sqlalchemy.orm import Session

from school_library.config import LibraryConfig, reset_config
from school_library.database import BookRepository, DatabaseManager, StudentRepository
from school_library.models import Book, Student

# === Test Database Fixtures ===


@pytest.fixture
def test_db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path for each test."""
    return tmp_path / "test_library.db"


@pytest.fixture
def db(test_db_path: Path) -> Generator[DatabaseManager, None, None]:
    """A DatabaseManager over a fresh, initialized database file."""
    manager = DatabaseManager(f"sqlite:///{test_db_path}", busy_timeout=5.0)
    manager.init_database()
    yield manager
    manager.close()


@pytest.fixture
def session(db: DatabaseManager) -> Generator[Session, None, None]:
    """A session on the test database. Repositories commit per call."""
    session = db.create_session()
    try:
        yield session
    finally:
        session.close()


# === Configuration Fixtures ===


@pytest.fixture
def test_config(test_db_path: Path) -> Generator[LibraryConfig, None, None]:
    """Configuration pointing at the test database."""
    reset_config()

    config = LibraryConfig(
        server_name="test-school-library",
        server_version="0.0.1-test",
        database_path=test_db_path,
        debug=True,
        log_level="DEBUG",
        recent_activity_limit=5,
        loan_period_days=7,
    )

    yield config

    reset_config()


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Provide an environment without SCHOOL_LIBRARY_* variables."""
    original_env = os.environ.copy()

    for key in list(os.environ.keys()):
        if key.startswith("SCHOOL_LIBRARY_"):
            del os.environ[key]

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture(autouse=True)
def cleanup_after_test():
    """Reset the process-wide configuration after each test."""
    yield
    reset_config()


# === Test Data Fixtures ===


@pytest.fixture
def sample_book(session: Session) -> Book:
    """A science book with three copies."""
    return BookRepository(session).create(
        {
            "title": "코스모스",
            "author": "칼 세이건",
            "isbn": "9788983711892",
            "publisher": "사이언스북스",
            "category": "science",
            "publication_year": 1980,
            "quantity": 3,
        }
    )


@pytest.fixture
def sample_student(session: Session) -> Student:
    return StudentRepository(session).create(
        {"name": "김민준", "grade": 3, "class_number": 2, "number": 5}
    )


@pytest.fixture
def other_student(session: Session) -> Student:
    return StudentRepository(session).create(
        {"name": "이서연", "grade": 4, "class_number": 1, "number": 12}
    )
