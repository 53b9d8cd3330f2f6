"""Study tracker session: owns the in-memory state for one user."""
from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime
from typing import Callable

from gst_tracker import exams as exam_log
from gst_tracker import progress as chapter_progress
from gst_tracker import review
from gst_tracker.catalog import load_catalog, require_chapter
from gst_tracker.config import Settings
from gst_tracker.models import (
    ChapterProgress, DerivedStatus, DueRevision, ExamInput, ExamRecord, ExamStatus, ExamType,
    TrackerState,
)
from gst_tracker.readiness import ReadinessSummary, exam_stats, readiness_summary
from gst_tracker.scheduler import RevisionScheduler, list_due_revisions, list_upcoming_revisions, recompute

logger = logging.getLogger(__name__)


class StudyTracker:
    """Coordinates the exam log, chapter progress and revision scheduling.

    Every mutating call requests a scheduling pass and saves through the
    store. Reads flush any pending pass first, so they never observe a stale
    schedule.
    """

    def __init__(
        self,
        state: TrackerState,
        store=None,
        user_key: str = "default",
        catalog: dict | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.state = state
        self.store = store
        self.user_key = user_key
        self.catalog = catalog if catalog is not None else load_catalog()
        self.settings = settings or Settings()
        self.clock = clock
        self.scheduler = RevisionScheduler(self._run_schedule_pass, delay=self.settings.debounce_seconds)

    @classmethod
    def open(
        cls,
        store,
        user_key: str,
        catalog: dict | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> StudyTracker:
        """Load a user's state from the store and start a session."""
        state = TrackerState.from_dict(store.load(user_key))
        tracker = cls(state, store=store, user_key=user_key, catalog=catalog, settings=settings, clock=clock)
        logger.debug(
            "Opened session for %s: %d exams, %d progress records",
            user_key, len(state.exams), len(state.progress),
        )
        # Bring schedules loaded from storage up to date before the first read.
        tracker.scheduler.request()
        return tracker

    # -- persistence -------------------------------------------------------

    def _save(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save(self.user_key, self.state.to_dict())
        except (sqlite3.Error, OSError) as exc:
            logger.warning("Could not save state for %s: %s", self.user_key, exc)

    def _run_schedule_pass(self) -> bool:
        updated, changed = recompute(self.state.progress, self.state.exams, self.clock())
        if changed:
            self.state.progress = updated
            self._save()
        return changed

    def _mutated(self) -> None:
        self._save()
        self.scheduler.request()

    def flush(self) -> None:
        self.scheduler.flush()

    def close(self) -> None:
        self.scheduler.flush()
        self.scheduler.cancel()

    # -- exams -------------------------------------------------------------

    def record_exam(self, exam_input: ExamInput) -> ExamRecord:
        with self.scheduler.lock:
            exam = exam_log.record_exam(self.state, exam_input, self.catalog, self.settings)
            self._mutated()
        return exam

    def update_exam(self, exam_id: str, exam_input: ExamInput) -> ExamRecord:
        with self.scheduler.lock:
            exam = exam_log.update_exam(self.state, exam_id, exam_input, self.catalog, self.settings)
            self._mutated()
        return exam

    def delete_exam(self, exam_id: str) -> None:
        with self.scheduler.lock:
            exam_log.delete_exam(self.state, exam_id)
            self._mutated()

    def validate_exam(self, exam_input: ExamInput) -> ExamRecord:
        """Build the record an input would produce, without storing it."""
        return exam_log.build_exam(exam_input, self.catalog, self.settings)

    def get_exam(self, exam_id: str) -> ExamRecord:
        return exam_log.get_exam(self.state, exam_id)

    def list_exams(
        self,
        search: str = "",
        status: ExamStatus | None = None,
        exam_type: ExamType | None = None,
    ) -> list[ExamRecord]:
        return exam_log.filter_exams(self.state.exams, search=search, status=status, exam_type=exam_type)

    # -- chapters ----------------------------------------------------------

    def toggle_chapter_task(self, subject: str, chapter: str, task) -> ChapterProgress:
        require_chapter(self.catalog, subject, chapter)
        with self.scheduler.lock:
            # Preconditions are judged against an up-to-date schedule.
            self.flush()
            chapter_progress.toggle_task(self.state, subject, chapter, task, now=self.clock())
            self._mutated()
            # Scheduling passes replace progress records with new objects.
            self.flush()
            return chapter_progress.find_progress(self.state, subject, chapter)

    def get_progress(self, subject: str, chapter: str) -> ChapterProgress:
        require_chapter(self.catalog, subject, chapter)
        self.flush()
        return chapter_progress.get_progress(self.state, subject, chapter)

    def get_chapter_status(self, subject: str, chapter: str) -> DerivedStatus:
        require_chapter(self.catalog, subject, chapter)
        self.flush()
        return chapter_progress.chapter_status(self.state, subject, chapter, self._today())

    def filter_chapters(self, subject: str, chapter_filter="ALL") -> list[tuple[str, DerivedStatus]]:
        self.flush()
        return chapter_progress.filter_chapters(
            self.state, self.catalog, subject, chapter_filter, self._today(),
        )

    # -- reports -----------------------------------------------------------

    def get_readiness_summary(self) -> ReadinessSummary:
        self.flush()
        return readiness_summary(self.catalog, self.state)

    def list_due_revisions(self, as_of: datetime | date | None = None) -> list[DueRevision]:
        self.flush()
        return list_due_revisions(self.state.progress, as_of or self.clock())

    def list_upcoming_revisions(self, days: int = 7) -> list[DueRevision]:
        self.flush()
        return list_upcoming_revisions(self.state.progress, self.clock(), days=days)

    def exam_stats(self) -> dict:
        return exam_stats(self.state.exams)

    def analysis(self) -> dict:
        exams = self.state.exams
        return {
            "subject_grades": review.subject_grades(exams),
            "weak_subjects": review.get_weak_subjects(exams),
            "weak_chapters": review.get_weak_chapters(exams),
            "exam_types": review.exam_type_performance(exams),
        }

    def export_state(self) -> dict:
        self.flush()
        return self.state.to_dict()

    def _today(self) -> date:
        return self.clock().date()
