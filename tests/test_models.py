"""Tests for data model classes."""
from datetime import datetime

from gst_tracker.models import (
    ChapterProgress, ExamKind, ExamRecord, ExamSection, ExamStatus, ExamType, TrackerState,
)


def test_exam_type_kinds():
    assert ExamType.V_QB.kind is ExamKind.CHAPTER_QUIZ
    assert ExamType.GST_QB.kind is ExamKind.CHAPTER_QUIZ
    assert ExamType.PH_EXAM.kind is ExamKind.CHAPTER_QUIZ
    assert ExamType.PAPER_FINAL.kind is ExamKind.PAPER_FINAL
    assert ExamType.SUBJECT_FINAL.kind is ExamKind.SUBJECT_FINAL
    assert ExamType.FULL_MOCK.kind is ExamKind.FULL_MOCK
    assert ExamType.FULL_MOCK.is_mock
    assert not ExamType.V_QB.is_mock


def test_chapter_progress_defaults():
    p = ChapterProgress(subject="Physics", chapter_name="Physics 1st: Vector")
    assert p.is_class_done is False
    assert p.is_uni_qb_done is False
    assert p.is_gst_qb_done is False
    assert p.completed_at is None
    assert p.scheduled_first_revision_at is None
    assert p.core_tasks_done is False


def test_exam_accuracy():
    exam = ExamRecord(
        id="x", subject="Physics", exam_type=ExamType.V_QB,
        date=datetime(2026, 1, 1), status=ExamStatus.COMPLETED,
        total_marks=100, obtained_marks=85,
    )
    assert exam.is_scored
    assert exam.accuracy == 0.85


def test_exam_accuracy_unscored():
    exam = ExamRecord(
        id="x", subject="Physics", exam_type=ExamType.V_QB,
        date=datetime(2026, 1, 1), status=ExamStatus.COMPLETED,
    )
    assert exam.accuracy is None
    zero = ExamRecord(
        id="y", subject="Physics", exam_type=ExamType.V_QB,
        date=datetime(2026, 1, 1), status=ExamStatus.COMPLETED,
        total_marks=0, obtained_marks=0,
    )
    assert zero.accuracy is None


def test_tracker_state_serializes_to_plain_json_types():
    state = TrackerState(
        exams=[ExamRecord(
            id="m1", subject="GST Full Mock Test", exam_type=ExamType.FULL_MOCK,
            date=datetime(2026, 3, 1, 10), status=ExamStatus.COMPLETED,
            total_marks=50, obtained_marks=35, negative_marks=3, grade="Superior",
            sections=[ExamSection(name="Physics", correct=20, wrong=4, total=25)],
        )],
        progress=[ChapterProgress(
            subject="Physics", chapter_name="Physics 1st: Vector",
            is_class_done=True, first_revision_at=datetime(2026, 2, 3, 8),
        )],
    )
    data = state.to_dict()
    assert data["exams"][0]["exam_type"] == "Full Mock"
    assert data["exams"][0]["sections"][0]["name"] == "Physics"
    assert data["progress"][0]["first_revision_at"] == "2026-02-03T08:00:00"
    assert data["progress"][0]["completed_at"] is None

    restored = TrackerState.from_dict(data)
    assert restored == state
