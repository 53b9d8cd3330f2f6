"""Curriculum catalog: the fixed subjects and their ordered chapters."""
import json
from pathlib import Path
from typing import Iterator

from gst_tracker.errors import NotFoundError
from gst_tracker.models import Chapter

CONTENT_DIR = Path(__file__).parent / "content"


def load_catalog(path: str | Path | None = None) -> dict[str, list[str]]:
    """Load ``{subject: [chapter, ...]}`` from curriculum.json."""
    source = Path(path) if path else CONTENT_DIR / "curriculum.json"
    data = json.loads(source.read_text(encoding="utf-8"))
    return {subject["name"]: list(subject["chapters"]) for subject in data["subjects"]}


def subjects(catalog: dict[str, list[str]]) -> list[str]:
    return list(catalog)


def chapter_count(catalog: dict[str, list[str]]) -> int:
    return sum(len(chapters) for chapters in catalog.values())


def iter_chapters(catalog: dict[str, list[str]]) -> Iterator[Chapter]:
    for subject, chapters in catalog.items():
        for name in chapters:
            yield Chapter(subject=subject, name=name)


def has_chapter(catalog: dict[str, list[str]], subject: str, name: str) -> bool:
    return name in catalog.get(subject, ())


def require_chapter(catalog: dict[str, list[str]], subject: str, name: str) -> Chapter:
    if subject not in catalog:
        raise NotFoundError(f"Unknown subject: {subject}")
    if name not in catalog[subject]:
        raise NotFoundError(f"Unknown chapter for {subject}: {name}")
    return Chapter(subject=subject, name=name)
