"""Spaced revision scheduling for completed chapters."""
import logging
import threading
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Callable

from gst_tracker.exams import exams_for_chapter
from gst_tracker.models import ChapterProgress, DueRevision, ExamRecord, RevisionKind

logger = logging.getLogger(__name__)

FIRST_REVISION_DELAY = timedelta(days=3)
SECOND_REVISION_DELAY = timedelta(days=7)


def is_chapter_completed(progress: ChapterProgress, exams: list[ExamRecord]) -> bool:
    """All three core tasks done and at least one completed exam on the chapter."""
    if not progress.core_tasks_done:
        return False
    return bool(exams_for_chapter(exams, progress.subject, progress.chapter_name))


def is_overdue(due: datetime, today: date) -> bool:
    """Due dates are compared by calendar day: overdue once the due day has passed."""
    return due.date() < today


def days_until(due: datetime, today: date) -> int:
    return (due.date() - today).days


def _recompute_one(progress: ChapterProgress, exams: list[ExamRecord], now: datetime) -> ChapterProgress:
    completed = is_chapter_completed(progress, exams)
    updated = progress

    if completed and updated.completed_at is None:
        updated = replace(
            updated,
            completed_at=now,
            scheduled_first_revision_at=now + FIRST_REVISION_DELAY,
        )
    elif not completed and updated.completed_at is not None:
        updated = replace(
            updated,
            completed_at=None,
            scheduled_first_revision_at=None,
            scheduled_second_revision_at=None,
        )

    if updated.first_revision_at is not None and updated.scheduled_second_revision_at is None:
        updated = replace(
            updated,
            scheduled_second_revision_at=updated.first_revision_at + SECOND_REVISION_DELAY,
        )
    elif updated.first_revision_at is None and updated.scheduled_second_revision_at is not None:
        updated = replace(updated, scheduled_second_revision_at=None)

    return updated


def recompute(
    progress: list[ChapterProgress],
    exams: list[ExamRecord],
    now: datetime,
) -> tuple[list[ChapterProgress], bool]:
    """Run one scheduling pass over every progress record.

    Returns a new list together with whether anything changed. Only
    ``completed_at`` and the two ``scheduled_*`` fields are ever written.
    """
    changed = False
    result = []
    for record in progress:
        updated = _recompute_one(record, exams, now)
        if updated != record:
            changed = True
            logger.info(
                "Rescheduled %s / %s (completed_at=%s)",
                record.subject, record.chapter_name, updated.completed_at,
            )
        result.append(updated)
    return result, changed


def _pending(progress: ChapterProgress):
    if progress.scheduled_first_revision_at and not progress.first_revision_at:
        yield RevisionKind.FIRST, progress.scheduled_first_revision_at
    if progress.scheduled_second_revision_at and not progress.second_revision_at:
        yield RevisionKind.SECOND, progress.scheduled_second_revision_at


def list_due_revisions(progress: list[ChapterProgress], as_of: datetime | date) -> list[DueRevision]:
    """Revisions not yet done whose due day is on or before ``as_of``."""
    today = as_of.date() if isinstance(as_of, datetime) else as_of
    due = []
    for p in progress:
        for kind, scheduled in _pending(p):
            if scheduled.date() <= today:
                due.append(DueRevision(
                    subject=p.subject,
                    chapter=p.chapter_name,
                    kind=kind,
                    due_date=scheduled.date(),
                    overdue=is_overdue(scheduled, today),
                ))
    return sorted(due, key=lambda r: (r.due_date, r.subject, r.chapter))


def list_upcoming_revisions(
    progress: list[ChapterProgress], as_of: datetime | date, days: int = 7,
) -> list[DueRevision]:
    """Revisions falling due after ``as_of`` but within ``days`` days."""
    today = as_of.date() if isinstance(as_of, datetime) else as_of
    horizon = today + timedelta(days=days)
    upcoming = []
    for p in progress:
        for kind, scheduled in _pending(p):
            if today < scheduled.date() <= horizon:
                upcoming.append(DueRevision(
                    subject=p.subject,
                    chapter=p.chapter_name,
                    kind=kind,
                    due_date=scheduled.date(),
                    overdue=False,
                ))
    return sorted(upcoming, key=lambda r: (r.due_date, r.subject, r.chapter))


class RevisionScheduler:
    """Debounced recomputation of revision schedules.

    ``request()`` is called after every mutation; bursts within ``delay``
    seconds collapse into a single pass. ``flush()`` runs any pending pass
    immediately and must be called before state is read.
    """

    def __init__(self, run_pass: Callable[[], bool], delay: float = 0.1) -> None:
        self._run_pass = run_pass
        self._delay = delay
        self._lock = threading.RLock()
        self._timer: threading.Timer | None = None
        self._pending = False

    @property
    def lock(self) -> threading.RLock:
        """Held by a running pass; hold it while mutating the scheduled state."""
        return self._lock

    @property
    def pending(self) -> bool:
        return self._pending

    def request(self) -> None:
        with self._lock:
            self._pending = True
            if self._delay <= 0:
                self._run()
                return
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._delay, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> bool:
        """Run a pending pass now. Returns whether state changed."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if not self._pending:
                return False
            return self._run()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _run(self) -> bool:
        self._pending = False
        return self._run_pass()
