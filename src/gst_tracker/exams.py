"""Exam log: recording, editing and querying exam attempts."""
import logging
import uuid
from datetime import datetime

from gst_tracker import scoring
from gst_tracker.config import Settings
from gst_tracker.errors import NotFoundError, ValidationError
from gst_tracker.models import ExamInput, ExamRecord, ExamStatus, ExamType, TrackerState

logger = logging.getLogger(__name__)


def _unique_topics(topics: list[str]) -> list[str]:
    seen = []
    for topic in topics:
        name = topic.strip()
        if name and name not in seen:
            seen.append(name)
    return seen


def _naive_local(when: datetime) -> datetime:
    # Aware timestamps (e.g. ISO strings ending in "Z") are stored as naive local time.
    if when.tzinfo is None:
        return when
    return when.astimezone().replace(tzinfo=None)


def _has_flat_marks(exam_input: ExamInput) -> bool:
    return any(
        value is not None
        for value in (exam_input.total_marks, exam_input.correct_answers, exam_input.wrong_answers)
    )


def _check_topics(exam_input: ExamInput, topics: list[str], catalog: dict) -> None:
    if exam_input.exam_type.is_mock:
        return
    if exam_input.subject not in catalog:
        raise ValidationError(f"Unknown subject: {exam_input.subject}")
    unknown = [t for t in topics if t not in catalog[exam_input.subject]]
    if unknown:
        raise ValidationError(f"Unknown chapters for {exam_input.subject}: {', '.join(unknown)}")


def _score_flat(exam_input: ExamInput, settings: Settings) -> dict:
    total = exam_input.total_marks
    correct = exam_input.correct_answers
    wrong = exam_input.wrong_answers
    if total is None or correct is None or wrong is None:
        raise ValidationError("Total marks, correct answers and wrong answers must be given together")
    scoring.validate_answer_counts(correct, wrong, total, strict=settings.strict_answer_counts)
    obtained = scoring.score(correct, wrong)
    scoring.validate_marks(obtained, total, floor=settings.negative_floor)
    return {
        "total_marks": total,
        "correct_answers": correct,
        "wrong_answers": wrong,
        "negative_marks": scoring.negative_marks(wrong),
        "obtained_marks": obtained,
        "grade": scoring.grade(obtained, total, mock=False),
    }


def _score_mock(exam_input: ExamInput, catalog: dict, settings: Settings) -> dict:
    sections = exam_input.sections
    names = [s.name for s in sections]
    if len(set(names)) != len(names):
        raise ValidationError("Full mock sections must be unique per subject")
    for section in sections:
        if section.name not in catalog:
            raise ValidationError(f"Unknown section subject: {section.name}")
        if section.total < 0:
            raise ValidationError(f"Section {section.name} has negative total marks")
        scoring.validate_answer_counts(
            section.correct, section.wrong, section.total, strict=settings.strict_answer_counts,
        )
    result = scoring.score_sections(sections)
    scoring.validate_marks(result.obtained, result.total, floor=settings.negative_floor)
    return {
        "total_marks": result.total,
        "correct_answers": sum(s.correct for s in sections),
        "wrong_answers": sum(s.wrong for s in sections),
        "negative_marks": result.negative,
        "obtained_marks": result.obtained,
        "grade": scoring.grade(result.obtained, result.total, mock=True),
    }


def build_exam(
    exam_input: ExamInput,
    catalog: dict,
    settings: Settings,
    exam_id: str | None = None,
) -> ExamRecord:
    """Validate input and derive its scores into an ExamRecord."""
    if not exam_input.subject or not exam_input.subject.strip():
        raise ValidationError("Subject is required")
    if not isinstance(exam_input.exam_type, ExamType):
        raise ValidationError(f"Unknown exam type: {exam_input.exam_type}")
    if not isinstance(exam_input.status, ExamStatus):
        raise ValidationError(f"Unknown exam status: {exam_input.status}")
    if not isinstance(exam_input.date, datetime):
        raise ValidationError("Exam date must be a datetime")

    topics = _unique_topics(exam_input.topics)
    _check_topics(exam_input, topics, catalog)

    is_mock = exam_input.exam_type.is_mock
    has_flat = _has_flat_marks(exam_input)
    has_sections = exam_input.sections is not None
    if is_mock and has_flat:
        raise ValidationError("Full mock exams are scored by sections, not flat totals")
    if not is_mock and has_sections:
        raise ValidationError("Only full mock exams carry sections")
    if (has_flat or has_sections) and exam_input.status is not ExamStatus.COMPLETED:
        raise ValidationError("Scores can only be recorded for completed exams")

    scores = {}
    if has_sections:
        scores = _score_mock(exam_input, catalog, settings)
    elif has_flat:
        scores = _score_flat(exam_input, settings)

    return ExamRecord(
        id=exam_id or uuid.uuid4().hex,
        subject=exam_input.subject.strip(),
        exam_type=exam_input.exam_type,
        date=_naive_local(exam_input.date),
        status=exam_input.status,
        topics=topics,
        sections=list(exam_input.sections) if has_sections else None,
        location=exam_input.location,
        target_grade=exam_input.target_grade,
        notes=exam_input.notes,
        **scores,
    )


def _index_of(state: TrackerState, exam_id: str) -> int:
    for i, exam in enumerate(state.exams):
        if exam.id == exam_id:
            return i
    raise NotFoundError(f"No exam with id {exam_id}")


def get_exam(state: TrackerState, exam_id: str) -> ExamRecord:
    return state.exams[_index_of(state, exam_id)]


def record_exam(state: TrackerState, exam_input: ExamInput, catalog: dict, settings: Settings) -> ExamRecord:
    exam = build_exam(exam_input, catalog, settings)
    state.exams.append(exam)
    logger.debug("Recorded %s exam %s for %s", exam.exam_type.value, exam.id, exam.subject)
    return exam


def update_exam(
    state: TrackerState, exam_id: str, exam_input: ExamInput, catalog: dict, settings: Settings,
) -> ExamRecord:
    index = _index_of(state, exam_id)
    exam = build_exam(exam_input, catalog, settings, exam_id=exam_id)
    state.exams[index] = exam
    logger.debug("Updated exam %s", exam_id)
    return exam


def delete_exam(state: TrackerState, exam_id: str) -> None:
    index = _index_of(state, exam_id)
    del state.exams[index]
    logger.debug("Deleted exam %s", exam_id)


def exams_for_chapter(exams: list[ExamRecord], subject: str, chapter: str) -> list[ExamRecord]:
    """Completed exams of ``subject`` that cover ``chapter``."""
    return [
        e for e in exams
        if e.status is ExamStatus.COMPLETED and e.covers(subject, chapter)
    ]


def filter_exams(
    exams: list[ExamRecord],
    search: str = "",
    status: ExamStatus | None = None,
    exam_type: ExamType | None = None,
) -> list[ExamRecord]:
    """Exams matching a subject search and optional status/type, oldest first."""
    needle = search.strip().lower()
    matches = [
        e for e in exams
        if needle in e.subject.lower()
        and (status is None or e.status is status)
        and (exam_type is None or e.exam_type is exam_type)
    ]
    return sorted(matches, key=lambda e: e.date)


def preset_exam_input(subject: str, chapter: str, exam_type: ExamType, when: datetime | None = None) -> ExamInput:
    """A completed single-chapter exam, ready for marks to be filled in."""
    return ExamInput(
        subject=subject,
        exam_type=exam_type,
        date=when or datetime.now(),
        status=ExamStatus.COMPLETED,
        topics=[chapter],
    )
