"""Readiness roll-up: completion, mastery and exam coverage percentages."""
from dataclasses import dataclass, field
from datetime import date

from gst_tracker.catalog import chapter_count, iter_chapters
from gst_tracker.exams import exams_for_chapter
from gst_tracker.models import ExamRecord, ExamStatus, ExamType, TrackerState
from gst_tracker.progress import find_progress, has_high_scored_exam
from gst_tracker.scoring import grade_for_accuracy

COMPLETION_TASKS = 4
MASTERY_TASKS = 3
ON_TRACK_COMPLETION_PCT = 20.0


@dataclass
class Coverage:
    name: str
    covered: int
    total: int

    @property
    def percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return self.covered / self.total * 100


@dataclass
class ReadinessSummary:
    completion_pct: float
    mastery_pct: float
    combined_pct: float
    fully_completed: int = 0
    fully_mastered: int = 0
    per_subject: list[Coverage] = field(default_factory=list)
    per_exam_type: list[Coverage] = field(default_factory=list)


def _pct(count: int, denominator: int) -> float:
    if denominator == 0:
        return 0.0
    return count / denominator * 100


def readiness_summary(catalog: dict, state: TrackerState) -> ReadinessSummary:
    """Roll chapter progress and the exam log up against the whole catalog.

    Only catalog chapters are counted, so every ratio stays within 0-100
    without clamping.
    """
    total_chapters = chapter_count(catalog)
    completion_tasks = 0
    mastery_tasks = 0
    fully_completed = 0
    fully_mastered = 0
    covered_by_subject = {subject: 0 for subject in catalog}
    covered_by_type = {exam_type: set() for exam_type in ExamType}

    for chapter in iter_chapters(catalog):
        chapter_exams = exams_for_chapter(state.exams, chapter.subject, chapter.name)
        record = find_progress(state, chapter.subject, chapter.name)
        has_exam = bool(chapter_exams)
        high_scored = has_high_scored_exam(chapter_exams)

        done = [has_exam]
        revised = [high_scored]
        if record is not None:
            done += [record.is_class_done, record.is_uni_qb_done, record.is_gst_qb_done]
            revised += [record.first_revision_at is not None, record.second_revision_at is not None]
        completion_tasks += sum(done)
        mastery_tasks += sum(revised)
        if sum(done) == COMPLETION_TASKS:
            fully_completed += 1
        if sum(revised) == MASTERY_TASKS:
            fully_mastered += 1

        if has_exam:
            covered_by_subject[chapter.subject] += 1
        for exam in chapter_exams:
            covered_by_type[exam.exam_type].add(chapter)

    return ReadinessSummary(
        completion_pct=_pct(completion_tasks, total_chapters * COMPLETION_TASKS),
        mastery_pct=_pct(mastery_tasks, total_chapters * MASTERY_TASKS),
        combined_pct=_pct(
            completion_tasks + mastery_tasks,
            total_chapters * (COMPLETION_TASKS + MASTERY_TASKS),
        ),
        fully_completed=fully_completed,
        fully_mastered=fully_mastered,
        per_subject=[
            Coverage(name=subject, covered=covered_by_subject[subject], total=len(chapters))
            for subject, chapters in catalog.items()
        ],
        per_exam_type=[
            Coverage(name=exam_type.value, covered=len(chapters), total=total_chapters)
            for exam_type, chapters in covered_by_type.items()
        ],
    )


def is_on_track(summary: ReadinessSummary) -> bool:
    return summary.completion_pct >= ON_TRACK_COMPLETION_PCT


# (minimum percentage, label, rich color), highest first. The lowest bar
# is the completion pace needed to stay on schedule.
READINESS_BANDS = [
    (75.0, "EXAM READY", "green"),
    (50.0, "REVISING", "yellow"),
    (ON_TRACK_COMPLETION_PCT, "ON PACE", "cyan"),
]
BEHIND_BAND = ("BEHIND", "red")


def _band(score: float) -> tuple[str, str]:
    for threshold, label, color in READINESS_BANDS:
        if score >= threshold:
            return label, color
    return BEHIND_BAND


def get_readiness_label(score: float) -> str:
    return _band(score)[0]


def get_readiness_color(score: float) -> str:
    return _band(score)[1]


def exam_stats(exams: list[ExamRecord]) -> dict:
    """Counts by status plus average accuracy and overall grade of scored exams."""
    scored = [e.accuracy * 100 for e in exams if e.accuracy is not None]
    avg_accuracy = sum(scored) / len(scored) if scored else 0.0
    return {
        "upcoming": sum(1 for e in exams if e.status is ExamStatus.UPCOMING),
        "completed": sum(1 for e in exams if e.status is ExamStatus.COMPLETED),
        "cancelled": sum(1 for e in exams if e.status is ExamStatus.CANCELLED),
        "scored": len(scored),
        "avg_accuracy": round(avg_accuracy, 1),
        "overall_grade": grade_for_accuracy(avg_accuracy),
    }


def days_until(target: date, today: date | None = None) -> int:
    """Whole days left before the target exam day; never negative."""
    today = today or date.today()
    return max(0, (target - today).days)
