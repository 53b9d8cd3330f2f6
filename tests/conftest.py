from datetime import datetime

import pytest

from gst_tracker.catalog import load_catalog
from gst_tracker.config import Settings
from gst_tracker.models import TrackerState
from gst_tracker.tracker import StudyTracker


class FakeClock:
    """Settable stand-in for datetime.now."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_tracker.db")
    return db_path


@pytest.fixture
def catalog():
    return load_catalog()


@pytest.fixture
def settings(tmp_db):
    return Settings(db_path=tmp_db, debounce_ms=0)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 2, 1, 9, 30))


@pytest.fixture
def tracker(catalog, settings, clock):
    """In-memory tracker with synchronous scheduling and a fixed clock."""
    t = StudyTracker(TrackerState(), catalog=catalog, settings=settings, clock=clock)
    yield t
    t.close()
