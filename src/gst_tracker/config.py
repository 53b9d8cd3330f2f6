"""Runtime settings loaded from the environment."""
import logging
import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from dotenv import load_dotenv
from rich.logging import RichHandler

DEFAULT_DB_PATH = str(Path.home() / ".gst_tracker" / "tracker.db")
DEFAULT_USER_KEY = "default"
DEFAULT_DEBOUNCE_MS = 100
DEFAULT_NEGATIVE_FLOOR = -25.0
DEFAULT_EXAM_DATE = date(2026, 4, 10)
DEFAULT_MODEL = "gemini-3-flash-preview"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


class ConfigError(ValueError):
    """Raised when an environment variable holds an unusable value."""


@dataclass
class Settings:
    db_path: str = DEFAULT_DB_PATH
    user_key: str = DEFAULT_USER_KEY
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    negative_floor: float = DEFAULT_NEGATIVE_FLOOR
    # Reject exams whose correct + wrong answers exceed the total marks.
    strict_answer_counts: bool = False
    exam_date: date = DEFAULT_EXAM_DATE
    log_level: str = "WARNING"
    gemini_api_key: str | None = None
    model: str = DEFAULT_MODEL

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


def _get_int(env, key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from None


def _get_float(env, key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from None


def _get_bool(env, key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{key} must be a boolean, got {raw!r}")


def _get_date(env, key: str, default: date) -> date:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return date.fromisoformat(raw.strip())
    except ValueError:
        raise ConfigError(f"{key} must be an ISO date (YYYY-MM-DD), got {raw!r}") from None


def load_settings(env=None, dotenv_path: str | None = None) -> Settings:
    """Build Settings from environment variables.

    A ``.env`` file is loaded first when ``env`` is not given explicitly.
    """
    if env is None:
        load_dotenv(dotenv_path)
        env = os.environ

    debounce_ms = _get_int(env, "GST_TRACKER_DEBOUNCE_MS", DEFAULT_DEBOUNCE_MS)
    if debounce_ms < 0:
        raise ConfigError("GST_TRACKER_DEBOUNCE_MS must not be negative")
    floor = _get_float(env, "GST_TRACKER_NEGATIVE_FLOOR", DEFAULT_NEGATIVE_FLOOR)
    if floor > 0:
        raise ConfigError("GST_TRACKER_NEGATIVE_FLOOR must be zero or negative")
    log_level = env.get("GST_TRACKER_LOG_LEVEL", "WARNING").strip().upper()
    if log_level not in logging.getLevelNamesMapping():
        raise ConfigError(f"Unknown log level: {log_level}")

    return Settings(
        db_path=env.get("GST_TRACKER_DB") or DEFAULT_DB_PATH,
        user_key=env.get("GST_TRACKER_USER") or DEFAULT_USER_KEY,
        debounce_ms=debounce_ms,
        negative_floor=floor,
        strict_answer_counts=_get_bool(env, "GST_TRACKER_STRICT_ANSWERS", False),
        exam_date=_get_date(env, "GST_TRACKER_EXAM_DATE", DEFAULT_EXAM_DATE),
        log_level=log_level,
        gemini_api_key=env.get("GEMINI_API_KEY") or None,
        model=env.get("GST_TRACKER_MODEL") or DEFAULT_MODEL,
    )


def configure_logging(level: str = "WARNING") -> None:
    """Route log records through rich so they sit alongside console output."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
