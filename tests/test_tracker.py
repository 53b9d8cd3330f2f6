"""End-to-end tests for a tracker session."""
import sqlite3
from datetime import date, datetime, timedelta

import pytest

from gst_tracker.config import Settings
from gst_tracker.db import SqliteStore
from gst_tracker.errors import NotFoundError, PreconditionError
from gst_tracker.models import ExamInput, ExamStatus, ExamType, StatusType, TrackerState
from gst_tracker.tracker import StudyTracker

VECTOR = "Physics 1st: Vector"


def vector_quiz(correct=85, wrong=0, total=100):
    return ExamInput(
        subject="Physics", exam_type=ExamType.V_QB, date=datetime(2026, 2, 1, 8),
        status=ExamStatus.COMPLETED, topics=[VECTOR],
        total_marks=total, correct_answers=correct, wrong_answers=wrong,
    )


def complete_vector(tracker):
    for task in ("class", "uni", "gst"):
        tracker.toggle_chapter_task("Physics", VECTOR, task)
    return tracker.record_exam(vector_quiz())


class BrokenStore:
    def __init__(self):
        self.attempts = 0

    def load(self, user_key):
        return {"exams": [], "progress": []}

    def save(self, user_key, state):
        self.attempts += 1
        raise sqlite3.OperationalError("database is locked")


def test_completion_schedules_first_revision(tracker, clock):
    complete_vector(tracker)
    progress = tracker.get_progress("Physics", VECTOR)
    assert progress.completed_at == clock.now
    assert progress.scheduled_first_revision_at == clock.now + timedelta(days=3)
    assert tracker.get_chapter_status("Physics", VECTOR).status_type is StatusType.COMPLETED


def test_full_revision_cycle_reaches_mastery(tracker, clock):
    complete_vector(tracker)

    clock.now += timedelta(days=3)
    assert [r.chapter for r in tracker.list_due_revisions()] == [VECTOR]
    tracker.toggle_chapter_task("Physics", VECTOR, "rev1")
    progress = tracker.get_progress("Physics", VECTOR)
    assert progress.scheduled_second_revision_at == clock.now + timedelta(days=7)
    assert tracker.list_due_revisions() == []

    clock.now += timedelta(days=7)
    tracker.toggle_chapter_task("Physics", VECTOR, "rev2")
    status = tracker.get_chapter_status("Physics", VECTOR)
    assert status.is_mastered
    assert status.status_type is StatusType.MASTERED


def test_unticking_core_task_clears_schedule(tracker):
    complete_vector(tracker)
    tracker.toggle_chapter_task("Physics", VECTOR, "uni")
    progress = tracker.get_progress("Physics", VECTOR)
    assert progress.completed_at is None
    assert progress.scheduled_first_revision_at is None
    assert progress.scheduled_second_revision_at is None


def test_deleting_only_exam_uncompletes_chapter(tracker):
    exam = complete_vector(tracker)
    tracker.delete_exam(exam.id)
    assert tracker.get_progress("Physics", VECTOR).completed_at is None
    assert not tracker.get_chapter_status("Physics", VECTOR).is_completed


def test_first_revision_rejected_before_completion(tracker):
    tracker.toggle_chapter_task("Physics", VECTOR, "class")
    with pytest.raises(PreconditionError):
        tracker.toggle_chapter_task("Physics", VECTOR, "rev1")


def test_unknown_chapter(tracker):
    with pytest.raises(NotFoundError):
        tracker.toggle_chapter_task("Physics", "Not A Chapter", "class")
    with pytest.raises(NotFoundError):
        tracker.get_chapter_status("Biology", "Cells")
    assert tracker.state.progress == []


def test_overdue_revision_is_behind(tracker, clock):
    complete_vector(tracker)
    clock.now += timedelta(days=8)
    status = tracker.get_chapter_status("Physics", VECTOR)
    assert status.status_type is StatusType.BEHIND
    assert status.reminders == ["Behind: 1st revision due 5d ago"]
    due = tracker.list_due_revisions()
    assert due[0].overdue
    assert due[0].due_date == date(2026, 2, 4)


def test_upcoming_revisions(tracker):
    complete_vector(tracker)
    assert [r.chapter for r in tracker.list_upcoming_revisions(days=7)] == [VECTOR]
    assert tracker.list_upcoming_revisions(days=1) == []


def test_state_persists_across_sessions(tmp_db, catalog, settings, clock):
    store = SqliteStore(tmp_db)
    first = StudyTracker.open(store, "alice", catalog=catalog, settings=settings, clock=clock)
    exam = complete_vector(first)
    first.close()

    second = StudyTracker.open(store, "alice", catalog=catalog, settings=settings, clock=clock)
    assert second.get_exam(exam.id).obtained_marks == 85
    assert second.get_progress("Physics", VECTOR).completed_at == clock.now
    assert second.export_state() == first.export_state()
    second.close()

    other = StudyTracker.open(store, "bob", catalog=catalog, settings=settings, clock=clock)
    assert other.list_exams() == []
    other.close()


def test_failed_save_keeps_memory_state(catalog, settings, clock):
    store = BrokenStore()
    tracker = StudyTracker.open(store, "alice", catalog=catalog, settings=settings, clock=clock)
    exam = tracker.record_exam(vector_quiz())
    assert store.attempts >= 1
    assert tracker.get_exam(exam.id) is exam
    tracker.close()


def test_debounced_passes_are_flushed_before_reads(catalog, clock):
    tracker = StudyTracker(
        TrackerState(), catalog=catalog, settings=Settings(debounce_ms=60_000), clock=clock,
    )
    complete_vector(tracker)
    assert tracker.scheduler.pending
    assert tracker.state.progress[0].completed_at is None
    assert tracker.get_progress("Physics", VECTOR).completed_at == clock.now
    assert not tracker.scheduler.pending
    tracker.close()


def test_reports(tracker):
    complete_vector(tracker)
    tracker.record_exam(ExamInput(
        subject="Chemistry", exam_type=ExamType.GST_QB, date=datetime(2026, 1, 20),
        status=ExamStatus.COMPLETED, topics=["Chemistry 2nd: Electrochemistry"],
        total_marks=50, correct_answers=20, wrong_answers=8,
    ))
    stats = tracker.exam_stats()
    assert stats["completed"] == 2
    analysis = tracker.analysis()
    assert analysis["weak_subjects"][0]["name"] == "Chemistry"
    assert analysis["weak_chapters"][0]["name"] == "Chemistry 2nd: Electrochemistry"

    summary = tracker.get_readiness_summary()
    assert summary.fully_completed == 1
    assert [e.subject for e in tracker.list_exams()] == ["Chemistry", "Physics"]
    assert [e.subject for e in tracker.list_exams(search="chem")] == ["Chemistry"]


def test_toggle_returns_scheduled_record(tracker, clock):
    tracker.record_exam(vector_quiz())
    tracker.toggle_chapter_task("Physics", VECTOR, "class")
    tracker.toggle_chapter_task("Physics", VECTOR, "uni")
    returned = tracker.toggle_chapter_task("Physics", VECTOR, "gst")
    stored = tracker.get_progress("Physics", VECTOR)
    assert returned.completed_at == stored.completed_at == clock.now
    assert returned.scheduled_first_revision_at == stored.scheduled_first_revision_at
    assert returned is stored


def test_toggle_returns_scheduled_record_with_debounce(catalog, clock):
    tracker = StudyTracker(
        TrackerState(), catalog=catalog, settings=Settings(debounce_ms=60_000), clock=clock,
    )
    tracker.record_exam(vector_quiz())
    for task in ("class", "uni"):
        tracker.toggle_chapter_task("Physics", VECTOR, task)
    returned = tracker.toggle_chapter_task("Physics", VECTOR, "gst")
    assert returned.scheduled_first_revision_at == clock.now + timedelta(days=3)
    tracker.close()
