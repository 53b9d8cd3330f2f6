"""Weak area identification from scored exams."""
from gst_tracker.models import ExamRecord
from gst_tracker.scoring import grade_for_accuracy


def _scored(exams: list[ExamRecord]) -> list[ExamRecord]:
    return [e for e in exams if e.is_scored]


def _accumulate(stats: dict, key, exam: ExamRecord) -> None:
    entry = stats.setdefault(key, {"obtained": 0.0, "total": 0.0, "count": 0})
    entry["obtained"] += exam.obtained_marks
    entry["total"] += exam.total_marks
    entry["count"] += 1


def _accuracy(entry: dict) -> float:
    return entry["obtained"] / entry["total"] * 100


def subject_grades(exams: list[ExamRecord]) -> list[dict]:
    """Per-subject accuracy and grade, best subject first."""
    stats = {}
    for exam in _scored(exams):
        _accumulate(stats, exam.subject, exam)
    rows = [
        {
            "name": subject,
            "accuracy": round(_accuracy(entry), 1),
            "grade": grade_for_accuracy(_accuracy(entry)),
            "total_exams": entry["count"],
        }
        for subject, entry in stats.items()
    ]
    return sorted(rows, key=lambda r: r["accuracy"], reverse=True)


def get_weak_subjects(exams: list[ExamRecord], limit: int = 1) -> list[dict]:
    """Lowest-accuracy subjects."""
    return sorted(subject_grades(exams), key=lambda r: r["accuracy"])[:limit]


def get_weak_chapters(exams: list[ExamRecord], limit: int = 3) -> list[dict]:
    """Chapters with the lowest accuracy across every exam that covered them."""
    stats = {}
    for exam in _scored(exams):
        for topic in exam.topics:
            _accumulate(stats, (exam.subject, topic), exam)
    rows = [
        {
            "subject": subject,
            "name": chapter,
            "accuracy": round(_accuracy(entry), 1),
            "count": entry["count"],
        }
        for (subject, chapter), entry in stats.items()
    ]
    return sorted(rows, key=lambda r: r["accuracy"])[:limit]


def exam_type_performance(exams: list[ExamRecord]) -> list[dict]:
    """Chapter accuracy grouped by exam type, then subject."""
    grouped: dict = {}
    for exam in _scored(exams):
        by_subject = grouped.setdefault(exam.exam_type.value, {})
        by_chapter = by_subject.setdefault(exam.subject, {})
        for topic in exam.topics:
            _accumulate(by_chapter, topic, exam)

    return [
        {
            "type": exam_type,
            "subjects": [
                {
                    "subject": subject,
                    "chapters": [
                        {
                            "name": chapter,
                            "accuracy": round(_accuracy(entry), 1),
                            "grade": grade_for_accuracy(_accuracy(entry)),
                            "count": entry["count"],
                        }
                        for chapter, entry in chapters.items()
                    ],
                }
                for subject, chapters in subjects.items()
            ],
        }
        for exam_type, subjects in grouped.items()
    ]
