"""Database initialization and per-user state storage."""
import json
import sqlite3
from datetime import datetime
from pathlib import Path

from gst_tracker.config import DEFAULT_DB_PATH

SCHEMA = """
CREATE TABLE IF NOT EXISTS user_data (
    user_key TEXT PRIMARY KEY,
    exams_json TEXT NOT NULL DEFAULT '[]',
    progress_json TEXT NOT NULL DEFAULT '[]',
    updated_at TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


class SqliteStore:
    """Stores each user's serialized exams and chapter progress as JSON."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH) -> None:
        self.db_path = db_path
        init_db(db_path)

    def load(self, user_key: str) -> dict:
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT exams_json, progress_json FROM user_data WHERE user_key = ?", (user_key,)
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return {"exams": [], "progress": []}
        return {
            "exams": json.loads(row["exams_json"]),
            "progress": json.loads(row["progress_json"]),
        }

    def save(self, user_key: str, state: dict) -> None:
        exams_json = json.dumps(state.get("exams", []))
        progress_json = json.dumps(state.get("progress", []))
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                """INSERT INTO user_data (user_key, exams_json, progress_json, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(user_key) DO UPDATE SET
                    exams_json = excluded.exams_json,
                    progress_json = excluded.progress_json,
                    updated_at = excluded.updated_at""",
                (user_key, exams_json, progress_json, datetime.now().isoformat()),
            )
            conn.commit()
        finally:
            conn.close()

    def delete(self, user_key: str) -> bool:
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("DELETE FROM user_data WHERE user_key = ?", (user_key,))
            conn.commit()
        finally:
            conn.close()
        return cursor.rowcount > 0

    def user_keys(self) -> list[str]:
        conn = get_connection(self.db_path)
        try:
            rows = conn.execute("SELECT user_key FROM user_data ORDER BY user_key").fetchall()
        finally:
            conn.close()
        return [row["user_key"] for row in rows]
