"""Data classes for exams, chapter progress and derived status."""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class ExamStatus(str, Enum):
    UPCOMING = "UPCOMING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ExamKind(str, Enum):
    CHAPTER_QUIZ = "CHAPTER_QUIZ"
    PAPER_FINAL = "PAPER_FINAL"
    SUBJECT_FINAL = "SUBJECT_FINAL"
    FULL_MOCK = "FULL_MOCK"


class ExamType(str, Enum):
    V_QB = "V.QB"
    GST_QB = "GST QB"
    PH_EXAM = "PH EXAM"
    PAPER_FINAL = "Paper Final"
    SUBJECT_FINAL = "Subject Final"
    FULL_MOCK = "Full Mock"

    @property
    def kind(self) -> ExamKind:
        return _KIND_BY_TYPE[self]

    @property
    def is_mock(self) -> bool:
        return self.kind is ExamKind.FULL_MOCK


_KIND_BY_TYPE = {
    ExamType.V_QB: ExamKind.CHAPTER_QUIZ,
    ExamType.GST_QB: ExamKind.CHAPTER_QUIZ,
    ExamType.PH_EXAM: ExamKind.CHAPTER_QUIZ,
    ExamType.PAPER_FINAL: ExamKind.PAPER_FINAL,
    ExamType.SUBJECT_FINAL: ExamKind.SUBJECT_FINAL,
    ExamType.FULL_MOCK: ExamKind.FULL_MOCK,
}


class StatusType(str, Enum):
    IDLE = "IDLE"
    ON_TRACK = "ON_TRACK"
    BEHIND = "BEHIND"
    COMPLETED = "COMPLETED"
    MASTERED = "MASTERED"


class RevisionKind(str, Enum):
    FIRST = "FIRST"
    SECOND = "SECOND"


def _dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class Chapter:
    subject: str
    name: str


@dataclass
class ExamSection:
    name: str
    correct: int
    wrong: int
    total: float

    def to_dict(self) -> dict:
        return {"name": self.name, "correct": self.correct, "wrong": self.wrong, "total": self.total}

    @classmethod
    def from_dict(cls, data: dict) -> "ExamSection":
        return cls(
            name=data["name"],
            correct=int(data["correct"]),
            wrong=int(data["wrong"]),
            total=float(data["total"]),
        )


@dataclass
class ExamInput:
    """Fields a caller supplies when logging or editing an exam."""
    subject: str
    exam_type: ExamType
    date: datetime
    status: ExamStatus = ExamStatus.UPCOMING
    topics: list[str] = field(default_factory=list)
    total_marks: Optional[float] = None
    correct_answers: Optional[int] = None
    wrong_answers: Optional[int] = None
    sections: Optional[list[ExamSection]] = None
    location: str = ""
    target_grade: str = ""
    notes: str = ""


@dataclass
class ExamRecord:
    id: str
    subject: str
    exam_type: ExamType
    date: datetime
    status: ExamStatus
    topics: list[str] = field(default_factory=list)
    total_marks: Optional[float] = None
    correct_answers: Optional[int] = None
    wrong_answers: Optional[int] = None
    negative_marks: Optional[float] = None
    obtained_marks: Optional[float] = None
    grade: Optional[str] = None
    sections: Optional[list[ExamSection]] = None
    location: str = ""
    target_grade: str = ""
    notes: str = ""

    @property
    def is_scored(self) -> bool:
        return self.obtained_marks is not None and bool(self.total_marks)

    @property
    def accuracy(self) -> Optional[float]:
        """Obtained over total marks, or None when the exam carries no usable score."""
        if not self.is_scored:
            return None
        return self.obtained_marks / self.total_marks

    def covers(self, subject: str, chapter: str) -> bool:
        return self.subject == subject and chapter in self.topics

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "subject": self.subject,
            "exam_type": self.exam_type.value,
            "date": self.date.isoformat(),
            "status": self.status.value,
            "topics": list(self.topics),
            "total_marks": self.total_marks,
            "correct_answers": self.correct_answers,
            "wrong_answers": self.wrong_answers,
            "negative_marks": self.negative_marks,
            "obtained_marks": self.obtained_marks,
            "grade": self.grade,
            "sections": [s.to_dict() for s in self.sections] if self.sections is not None else None,
            "location": self.location,
            "target_grade": self.target_grade,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExamRecord":
        sections = data.get("sections")
        return cls(
            id=data["id"],
            subject=data["subject"],
            exam_type=ExamType(data["exam_type"]),
            date=datetime.fromisoformat(data["date"]),
            status=ExamStatus(data["status"]),
            topics=list(data.get("topics") or []),
            total_marks=data.get("total_marks"),
            correct_answers=data.get("correct_answers"),
            wrong_answers=data.get("wrong_answers"),
            negative_marks=data.get("negative_marks"),
            obtained_marks=data.get("obtained_marks"),
            grade=data.get("grade"),
            sections=[ExamSection.from_dict(s) for s in sections] if sections is not None else None,
            location=data.get("location", ""),
            target_grade=data.get("target_grade", ""),
            notes=data.get("notes", ""),
        )


@dataclass
class ChapterProgress:
    subject: str
    chapter_name: str
    is_class_done: bool = False
    is_uni_qb_done: bool = False
    is_gst_qb_done: bool = False
    completed_at: Optional[datetime] = None
    first_revision_at: Optional[datetime] = None
    second_revision_at: Optional[datetime] = None
    # Written only by the revision scheduler.
    scheduled_first_revision_at: Optional[datetime] = None
    scheduled_second_revision_at: Optional[datetime] = None

    @property
    def core_tasks_done(self) -> bool:
        return self.is_class_done and self.is_uni_qb_done and self.is_gst_qb_done

    def to_dict(self) -> dict:
        return {
            "subject": self.subject,
            "chapter_name": self.chapter_name,
            "is_class_done": self.is_class_done,
            "is_uni_qb_done": self.is_uni_qb_done,
            "is_gst_qb_done": self.is_gst_qb_done,
            "completed_at": _iso(self.completed_at),
            "first_revision_at": _iso(self.first_revision_at),
            "second_revision_at": _iso(self.second_revision_at),
            "scheduled_first_revision_at": _iso(self.scheduled_first_revision_at),
            "scheduled_second_revision_at": _iso(self.scheduled_second_revision_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChapterProgress":
        return cls(
            subject=data["subject"],
            chapter_name=data["chapter_name"],
            is_class_done=bool(data.get("is_class_done", False)),
            is_uni_qb_done=bool(data.get("is_uni_qb_done", False)),
            is_gst_qb_done=bool(data.get("is_gst_qb_done", False)),
            completed_at=_dt(data.get("completed_at")),
            first_revision_at=_dt(data.get("first_revision_at")),
            second_revision_at=_dt(data.get("second_revision_at")),
            scheduled_first_revision_at=_dt(data.get("scheduled_first_revision_at")),
            scheduled_second_revision_at=_dt(data.get("scheduled_second_revision_at")),
        )


@dataclass
class DerivedStatus:
    is_completed: bool
    is_mastered: bool
    has_high_scored_exam: bool
    status_type: StatusType
    warnings: list[str] = field(default_factory=list)
    reminders: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DueRevision:
    subject: str
    chapter: str
    kind: RevisionKind
    due_date: date
    overdue: bool


@dataclass
class TrackerState:
    """The full record set for one user."""
    exams: list[ExamRecord] = field(default_factory=list)
    progress: list[ChapterProgress] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "exams": [e.to_dict() for e in self.exams],
            "progress": [p.to_dict() for p in self.progress],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TrackerState":
        return cls(
            exams=[ExamRecord.from_dict(e) for e in data.get("exams", [])],
            progress=[ChapterProgress.from_dict(p) for p in data.get("progress", [])],
        )
