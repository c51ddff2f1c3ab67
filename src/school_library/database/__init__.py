"""
Database package for the School Library.

This package provides:
- SQLAlchemy schema definitions (schema.py)
- Session management and connection handling (session.py)
- Repositories for books, students and borrow records
- The availability ledger, the circulation engine and report queries
- Demo data generation (seed.py)
"""

from .availability_ledger import AvailabilityDiscrepancy, AvailabilityLedger
from .book_repository import BookRepository
from .borrow_repository import BorrowRecordRepository
from .circulation_repository import CirculationRepository
from .report_repository import ReportRepository
from .repository import BaseRepository, CrudRepository, validate_input
from .schema import Base, Book, BorrowRecord, Student
from .session import DatabaseManager, safe_commit, safe_query
from .student_repository import StudentRepository

__all__ = [
    "AvailabilityDiscrepancy",
    "AvailabilityLedger",
    "Base",
    "BaseRepository",
    "Book",
    "BookRepository",
    "BorrowRecord",
    "BorrowRecordRepository",
    "CirculationRepository",
    "CrudRepository",
    "DatabaseManager",
    "ReportRepository",
    "StudentRepository",
    "safe_commit",
    "safe_query",
    "validate_input",
]
