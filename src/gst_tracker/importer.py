"""Bulk import of exam history from JSON, YAML or CSV files."""
import csv
import json
import logging
from datetime import datetime
from pathlib import Path

import yaml

from gst_tracker.errors import ValidationError
from gst_tracker.models import ExamInput, ExamSection, ExamStatus, ExamType

logger = logging.getLogger(__name__)


def read_entries(file_path: str) -> list[dict]:
    """Read raw exam entries from a file, keyed by its suffix."""
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
    elif suffix in (".yaml", ".yml"):
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    elif suffix == ".csv":
        with path.open(newline="", encoding="utf-8") as fh:
            data = [_csv_row(row) for row in csv.DictReader(fh)]
    else:
        raise ValidationError(f"Unsupported import format: {suffix or path.name}")

    if isinstance(data, dict):
        data = data.get("exams", [])
    if not isinstance(data, list):
        raise ValidationError("Import file must contain a list of exams")
    return data


def _csv_row(row: dict) -> dict:
    # Topics are ';'-separated in a single CSV column.
    entry = {k: v for k, v in row.items() if v not in (None, "")}
    if "topics" in entry:
        entry["topics"] = [t.strip() for t in entry["topics"].split(";") if t.strip()]
    return entry


def _optional(entry: dict, key: str, cast):
    value = entry.get(key)
    if value is None or value == "":
        return None
    return cast(value)


def exam_input_from_dict(entry: dict) -> ExamInput:
    """Convert one raw entry to an ExamInput, raising ValueError/KeyError on bad fields."""
    when = entry["date"]
    if not isinstance(when, datetime):
        when = datetime.fromisoformat(str(when))
    sections = entry.get("sections")
    return ExamInput(
        subject=str(entry["subject"]),
        exam_type=ExamType(entry["exam_type"]),
        date=when,
        status=ExamStatus(str(entry.get("status", ExamStatus.COMPLETED.value)).upper()),
        topics=list(entry.get("topics") or []),
        total_marks=_optional(entry, "total_marks", float),
        correct_answers=_optional(entry, "correct_answers", int),
        wrong_answers=_optional(entry, "wrong_answers", int),
        sections=[ExamSection.from_dict(s) for s in sections] if sections else None,
        location=str(entry.get("location", "")),
        target_grade=str(entry.get("target_grade", "")),
        notes=str(entry.get("notes", "")),
    )


def parse_file(file_path: str) -> list[ExamInput]:
    inputs = []
    for index, entry in enumerate(read_entries(file_path), 1):
        if not isinstance(entry, dict):
            raise ValidationError(f"Entry {index}: expected a mapping")
        try:
            inputs.append(exam_input_from_dict(entry))
        except KeyError as exc:
            raise ValidationError(f"Entry {index}: missing field {exc}") from exc
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Entry {index}: {exc}") from exc
    return inputs


def import_file(tracker, file_path: str) -> dict:
    """Record every exam in a file. Nothing is recorded if any entry is invalid."""
    inputs = parse_file(file_path)
    for index, exam_input in enumerate(inputs, 1):
        try:
            tracker.validate_exam(exam_input)
        except ValidationError as exc:
            raise ValidationError(f"Entry {index}: {exc}") from exc
    recorded = [tracker.record_exam(exam_input) for exam_input in inputs]
    logger.info("Imported %d exams from %s", len(recorded), Path(file_path).name)
    return {"filename": Path(file_path).name, "count": len(recorded), "ids": [e.id for e in recorded]}
