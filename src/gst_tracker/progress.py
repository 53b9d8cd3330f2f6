"""Chapter progress: task toggles and derived completion/mastery status."""
import logging
from datetime import date, datetime
from enum import Enum

from gst_tracker.errors import PreconditionError, ValidationError
from gst_tracker.exams import exams_for_chapter
from gst_tracker.models import ChapterProgress, DerivedStatus, ExamRecord, StatusType, TrackerState
from gst_tracker.scheduler import days_until, is_chapter_completed, is_overdue

logger = logging.getLogger(__name__)

HIGH_SCORE_RATIO = 0.8


class Task(str, Enum):
    CLASS = "class"
    UNI_QB = "uni"
    GST_QB = "gst"
    REVISION_1 = "rev1"
    REVISION_2 = "rev2"


class ChapterFilter(str, Enum):
    ALL = "ALL"
    IN_PROGRESS = "IN_PROGRESS"
    NEEDS_REVISION = "NEEDS_REVISION"
    COMPLETED = "COMPLETED"


_CORE_FIELDS = {
    Task.CLASS: "is_class_done",
    Task.UNI_QB: "is_uni_qb_done",
    Task.GST_QB: "is_gst_qb_done",
}


def find_progress(state: TrackerState, subject: str, chapter: str) -> ChapterProgress | None:
    for p in state.progress:
        if p.subject == subject and p.chapter_name == chapter:
            return p
    return None


def get_progress(state: TrackerState, subject: str, chapter: str) -> ChapterProgress:
    """Stored record, or a blank one that is not added to state."""
    return find_progress(state, subject, chapter) or ChapterProgress(subject=subject, chapter_name=chapter)


def _clear_completion(record: ChapterProgress) -> None:
    record.completed_at = None
    record.scheduled_first_revision_at = None
    record.scheduled_second_revision_at = None


def toggle_task(
    state: TrackerState,
    subject: str,
    chapter: str,
    task: Task | str,
    now: datetime | None = None,
) -> ChapterProgress:
    """Flip one task for a chapter, creating its record on first use."""
    try:
        task = Task(task)
    except ValueError:
        raise ValidationError(f"Unknown task: {task}") from None
    now = now or datetime.now()

    existing = find_progress(state, subject, chapter)
    record = existing or ChapterProgress(subject=subject, chapter_name=chapter)

    if task in _CORE_FIELDS:
        field_name = _CORE_FIELDS[task]
        setattr(record, field_name, not getattr(record, field_name))
        if not is_chapter_completed(record, state.exams) and record.completed_at is not None:
            _clear_completion(record)
    elif task is Task.REVISION_1:
        if record.first_revision_at is None:
            if not is_chapter_completed(record, state.exams):
                raise PreconditionError(f"{chapter} must be completed before its first revision")
            record.first_revision_at = now
        else:
            record.first_revision_at = None
            record.second_revision_at = None
            record.scheduled_second_revision_at = None
    elif task is Task.REVISION_2:
        if record.second_revision_at is None:
            if record.first_revision_at is None:
                raise PreconditionError(f"{chapter} needs its first revision before the second")
            record.second_revision_at = now
        else:
            record.second_revision_at = None

    if existing is None:
        state.progress.append(record)
    logger.debug("Toggled %s for %s / %s", task.value, subject, chapter)
    return record


def has_high_scored_exam(exams: list[ExamRecord]) -> bool:
    return any(e.accuracy is not None and e.accuracy >= HIGH_SCORE_RATIO for e in exams)


def _revision_reminder(label: str, due: datetime, today: date) -> str:
    days = days_until(due, today)
    if is_overdue(due, today):
        return f"Behind: {label} revision due {-days}d ago"
    if days == 0:
        return f"{label} revision due today"
    return f"{label} revision in {days} days"


def derive_status(
    progress: ChapterProgress,
    chapter_exams: list[ExamRecord],
    today: date | None = None,
) -> DerivedStatus:
    """Classify a chapter from its tasks and the completed exams covering it."""
    today = today or date.today()
    completed_exams = exams_for_chapter(chapter_exams, progress.subject, progress.chapter_name)

    has_taken_exam = bool(completed_exams)
    high_scored = has_high_scored_exam(completed_exams)
    is_completed = progress.core_tasks_done and has_taken_exam
    both_revisions = progress.first_revision_at is not None and progress.second_revision_at is not None
    is_mastered = both_revisions and high_scored

    warnings = []
    if progress.is_class_done:
        if not progress.is_uni_qb_done:
            warnings.append("Missing University QB solving")
        if not progress.is_gst_qb_done:
            warnings.append("Missing GST QB solving")
    if progress.core_tasks_done and not has_taken_exam:
        warnings.append("Missing: at least one exam required for completion")
    if both_revisions and not high_scored:
        warnings.append("Mastery gate: an exam scored 80% or higher is required")

    reminders = []
    behind = False
    scheduled_ahead = False
    pending = []
    if progress.scheduled_first_revision_at and not progress.first_revision_at:
        pending.append(("1st", progress.scheduled_first_revision_at))
    if progress.scheduled_second_revision_at and not progress.second_revision_at:
        pending.append(("2nd", progress.scheduled_second_revision_at))
    for label, due in pending:
        reminders.append(_revision_reminder(label, due, today))
        if is_overdue(due, today):
            behind = True
        else:
            scheduled_ahead = True

    if is_mastered:
        status_type = StatusType.MASTERED
    elif behind:
        status_type = StatusType.BEHIND
    elif is_completed:
        status_type = StatusType.COMPLETED
    elif progress.is_class_done or scheduled_ahead:
        status_type = StatusType.ON_TRACK
    else:
        status_type = StatusType.IDLE

    return DerivedStatus(
        is_completed=is_completed,
        is_mastered=is_mastered,
        has_high_scored_exam=high_scored,
        status_type=status_type,
        warnings=warnings,
        reminders=reminders,
    )


def chapter_status(state: TrackerState, subject: str, chapter: str, today: date | None = None) -> DerivedStatus:
    record = get_progress(state, subject, chapter)
    return derive_status(record, exams_for_chapter(state.exams, subject, chapter), today)


def filter_chapters(
    state: TrackerState,
    catalog: dict,
    subject: str,
    chapter_filter: ChapterFilter | str = ChapterFilter.ALL,
    today: date | None = None,
) -> list[tuple[str, DerivedStatus]]:
    """Chapters of a subject with their status, narrowed by a tracker tab filter."""
    chapter_filter = ChapterFilter(chapter_filter)
    rows = []
    for chapter in catalog.get(subject, []):
        status = chapter_status(state, subject, chapter, today)
        if chapter_filter is ChapterFilter.IN_PROGRESS and status.is_completed:
            continue
        if chapter_filter is ChapterFilter.NEEDS_REVISION and (not status.is_completed or status.is_mastered):
            continue
        if chapter_filter is ChapterFilter.COMPLETED and not status.is_mastered:
            continue
        rows.append((chapter, status))
    return rows
