"""Tests for dashboard reports: statistics, recent activity and overdue loans."""

from datetime import datetime, timedelta

import pytest

from school_library.database import (
    BookRepository,
    CirculationRepository,
    ReportRepository,
    StudentRepository,
)
from school_library.errors import EntityValidationError
from school_library.models import UNKNOWN_LABEL, ActivityAction

NOW = datetime(2024, 3, 15, 12, 0, 0)


def at(moment):
    return lambda: moment


def borrow_at(session, moment, student, book, due):
    return CirculationRepository(session, clock=at(moment)).borrow_book(
        {"student_id": student.id, "book_id": book.id, "due_date": due}
    )


def return_at(session, moment, record):
    return CirculationRepository(session, clock=at(moment)).return_book(record.id)


class TestStats:
    def test_empty_library(self, session):
        stats = ReportRepository(session, clock=at(NOW)).stats()
        assert (stats.total_books, stats.borrowed_books, stats.overdue_books) == (0, 0, 0)

    def test_counts(self, session, sample_book, sample_student, other_student):
        BookRepository(session).create({"title": "t", "author": "a", "category": "art"})
        borrow_at(session, NOW - timedelta(days=20), sample_student, sample_book, NOW - timedelta(days=6))
        borrow_at(session, NOW - timedelta(days=2), other_student, sample_book, NOW + timedelta(days=12))
        returned = borrow_at(
            session, NOW - timedelta(days=30), other_student, sample_book, NOW - timedelta(days=16)
        )
        return_at(session, NOW - timedelta(days=10), returned)

        stats = ReportRepository(session, clock=at(NOW)).stats()
        assert stats.total_books == 2
        assert stats.borrowed_books == 2
        assert stats.overdue_books == 1

    def test_overdue_follows_the_clock(self, session, sample_book, sample_student):
        borrow_at(session, NOW, sample_student, sample_book, NOW + timedelta(days=1))
        assert ReportRepository(session, clock=at(NOW)).stats().overdue_books == 0
        later = NOW + timedelta(days=1, seconds=1)
        assert ReportRepository(session, clock=at(later)).stats().overdue_books == 1


class TestRecentActivities:
    def test_borrow_and_return_are_two_events(self, session, sample_book, sample_student):
        record = borrow_at(session, NOW - timedelta(days=2), sample_student, sample_book, NOW)
        return_at(session, NOW - timedelta(days=1), record)

        activities = ReportRepository(session).recent_activities()
        assert [a.action for a in activities] == [ActivityAction.RETURN, ActivityAction.BORROW]
        assert [a.action_label for a in activities] == ["반납", "대여"]
        assert [a.id for a in activities] == [f"{record.id}-return", f"{record.id}-borrow"]
        assert activities[0].timestamp == NOW - timedelta(days=1)
        assert activities[1].timestamp == NOW - timedelta(days=2)
        assert {a.student_name for a in activities} == {"김민준"}
        assert {a.book_title for a in activities} == {"코스모스"}

    def test_newest_first_across_records(self, session, sample_book, sample_student, other_student):
        first = borrow_at(session, NOW - timedelta(hours=5), sample_student, sample_book, NOW)
        second = borrow_at(session, NOW - timedelta(hours=3), other_student, sample_book, NOW)
        return_at(session, NOW - timedelta(hours=4), first)
        return_at(session, NOW - timedelta(hours=1), second)

        activities = ReportRepository(session).recent_activities()
        assert [a.id for a in activities] == [
            f"{second.id}-return",
            f"{second.id}-borrow",
            f"{first.id}-return",
            f"{first.id}-borrow",
        ]

    def test_return_listed_before_borrow_at_same_time(self, session, sample_book, sample_student):
        record = borrow_at(session, NOW, sample_student, sample_book, NOW)
        return_at(session, NOW, record)

        activities = ReportRepository(session).recent_activities()
        assert [a.action for a in activities] == [ActivityAction.RETURN, ActivityAction.BORROW]

    def test_limit(self, session, sample_book, sample_student):
        for hours in range(1, 4):
            record = borrow_at(session, NOW - timedelta(hours=hours * 2), sample_student, sample_book, NOW)
            return_at(session, NOW - timedelta(hours=hours * 2 - 1), record)

        reports = ReportRepository(session)
        assert len(reports.recent_activities()) == 6
        latest = reports.recent_activities(limit=2)
        assert [a.timestamp for a in latest] == [NOW - timedelta(hours=1), NOW - timedelta(hours=2)]

        with pytest.raises(EntityValidationError):
            reports.recent_activities(limit=0)

    def test_deleted_entities_show_placeholder(self, session, sample_book, sample_student):
        record = borrow_at(session, NOW - timedelta(days=2), sample_student, sample_book, NOW)
        return_at(session, NOW - timedelta(days=1), record)
        BookRepository(session).delete(sample_book.id)
        StudentRepository(session).delete(sample_student.id)

        activities = ReportRepository(session).recent_activities()
        assert len(activities) == 2
        assert {a.student_name for a in activities} == {UNKNOWN_LABEL}
        assert {a.book_title for a in activities} == {UNKNOWN_LABEL}


class TestOverdueItems:
    def test_lists_only_active_past_due_loans(self, session, sample_book, sample_student, other_student):
        very_late = borrow_at(
            session, NOW - timedelta(days=20), other_student, sample_book, NOW - timedelta(days=5, hours=1)
        )
        late = borrow_at(
            session, NOW - timedelta(days=10), sample_student, sample_book, NOW - timedelta(hours=2)
        )
        borrow_at(session, NOW, sample_student, sample_book, NOW + timedelta(days=14))

        items = ReportRepository(session, clock=at(NOW)).overdue_items()
        assert [item.id for item in items] == [very_late.id, late.id]
        assert items[0].student_name == "이서연 (4학년 1반)"
        assert items[0].book_title == "코스모스"
        assert items[0].days_overdue == 5
        assert items[1].student_name == "김민준 (3학년 2반)"
        assert items[1].days_overdue == 0

    def test_empty_when_nothing_is_late(self, session, sample_book, sample_student):
        borrow_at(session, NOW, sample_student, sample_book, NOW + timedelta(days=1))
        assert ReportRepository(session, clock=at(NOW)).overdue_items() == []
