"""
SQLiteStore - persist learner progress in a SQLite database.

Stores per-learner state only; the curriculum and achievement catalogs are
configuration and are never written here:
- Learners
- Unit progress (one row per learner/unit)
- Projects and posts
- Achievement unlocks (one row per learner/achievement, enforced by the key)
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from cyberpath.errors import StoreUnavailableError
from cyberpath.schemas import Learner, Post, Progress, Project, UnlockRecord, utcnow

from .base import ProgressStore

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS learners (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    email TEXT NOT NULL UNIQUE,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS unit_progress (
    learner_id INTEGER NOT NULL,
    unit_id TEXT NOT NULL,
    completed INTEGER NOT NULL DEFAULT 0,
    percent INTEGER NOT NULL DEFAULT 0,
    last_accessed TEXT NOT NULL,
    PRIMARY KEY (learner_id, unit_id)
);

CREATE TABLE IF NOT EXISTS projects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    learner_id INTEGER NOT NULL,
    title TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    tools JSON NOT NULL DEFAULT '[]',
    result TEXT,
    unit_id TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS posts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    learner_id INTEGER NOT NULL,
    title TEXT NOT NULL,
    content TEXT NOT NULL DEFAULT '',
    published INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS unlock_records (
    learner_id INTEGER NOT NULL,
    achievement_id INTEGER NOT NULL,
    unlocked_at TEXT NOT NULL,
    PRIMARY KEY (learner_id, achievement_id)
);

CREATE INDEX IF NOT EXISTS idx_projects_learner ON projects(learner_id);
CREATE INDEX IF NOT EXISTS idx_posts_learner ON posts(learner_id);
"""


class SQLiteStore(ProgressStore):
    """
    ProgressStore backed by SQLite.

    Each method opens its own connection, so one store can be shared across
    threads. Any sqlite3.Error is re-raised as StoreUnavailableError.
    """

    def __init__(self, db_path: Path):
        """
        Initialize the store, creating the database file and tables if needed.

        Args:
            db_path: Path to the progress database
        """
        self.db_path = Path(db_path)
        self._ensure_database()

    def _ensure_database(self):
        """Create database and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection; commit on success, always close."""
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=10)
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Cannot open {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Store operation failed: {e}")
            raise StoreUnavailableError(str(e)) from e
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Learners
    # -------------------------------------------------------------------------

    def get_learner(self, learner_id: int) -> Optional[Learner]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, username, email, created_at FROM learners WHERE id = ?",
                (learner_id,)
            ).fetchone()
        if not row:
            return None
        return Learner(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def create_learner(self, username: str, email: str) -> Learner:
        now = utcnow()
        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT INTO learners (username, email, created_at) VALUES (?, ?, ?)",
                (username, email, now.isoformat())
            )
            learner_id = cursor.lastrowid
        return Learner(id=learner_id, username=username, email=email, created_at=now)

    def find_learner(self, username: str) -> Optional[Learner]:
        """Look a learner up by username."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id FROM learners WHERE username = ?",
                (username,)
            ).fetchone()
        return self.get_learner(row["id"]) if row else None

    # -------------------------------------------------------------------------
    # Unit progress
    # -------------------------------------------------------------------------

    @staticmethod
    def _row_to_progress(row: sqlite3.Row) -> Progress:
        return Progress(
            learner_id=row["learner_id"],
            unit_id=row["unit_id"],
            completed=bool(row["completed"]),
            percent=row["percent"],
            last_accessed=datetime.fromisoformat(row["last_accessed"]),
        )

    def get_progress(self, learner_id: int) -> list[Progress]:
        with self._connect() as conn:
            rows = conn.execute(
                """SELECT learner_id, unit_id, completed, percent, last_accessed
                   FROM unit_progress
                   WHERE learner_id = ?
                   ORDER BY rowid""",
                (learner_id,)
            ).fetchall()
        return [self._row_to_progress(row) for row in rows]

    def get_unit_progress(self, learner_id: int, unit_id: str) -> Optional[Progress]:
        with self._connect() as conn:
            row = conn.execute(
                """SELECT learner_id, unit_id, completed, percent, last_accessed
                   FROM unit_progress
                   WHERE learner_id = ? AND unit_id = ?""",
                (learner_id, unit_id)
            ).fetchone()
        return self._row_to_progress(row) if row else None

    def upsert_progress(
        self,
        learner_id: int,
        unit_id: str,
        completed: Optional[bool] = None,
        percent: Optional[int] = None,
    ) -> Progress:
        if percent is not None and not 0 <= percent <= 100:
            raise ValueError(f"percent must be within [0, 100], got {percent}")
        completed_value = int(completed) if completed is not None else None
        now = utcnow().isoformat()
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO unit_progress (learner_id, unit_id, completed, percent, last_accessed)
                   VALUES (?, ?, COALESCE(?, 0), COALESCE(?, 0), ?)
                   ON CONFLICT(learner_id, unit_id) DO UPDATE SET
                     completed = COALESCE(?, completed),
                     percent = COALESCE(?, percent),
                     last_accessed = ?""",
                (learner_id, unit_id, completed_value, percent, now,
                 completed_value, percent, now)
            )
            row = conn.execute(
                """SELECT learner_id, unit_id, completed, percent, last_accessed
                   FROM unit_progress
                   WHERE learner_id = ? AND unit_id = ?""",
                (learner_id, unit_id)
            ).fetchone()
        return self._row_to_progress(row)

    # -------------------------------------------------------------------------
    # Projects and posts
    # -------------------------------------------------------------------------

    @staticmethod
    def _row_to_project(row: sqlite3.Row) -> Project:
        return Project(
            id=row["id"],
            learner_id=row["learner_id"],
            title=row["title"],
            description=row["description"],
            tools=json.loads(row["tools"]),
            result=row["result"],
            unit_id=row["unit_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    @staticmethod
    def _row_to_post(row: sqlite3.Row) -> Post:
        return Post(
            id=row["id"],
            learner_id=row["learner_id"],
            title=row["title"],
            content=row["content"],
            published=bool(row["published"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get_projects(self, learner_id: int) -> list[Project]:
        with self._connect() as conn:
            rows = conn.execute(
                """SELECT id, learner_id, title, description, tools, result, unit_id, created_at
                   FROM projects
                   WHERE learner_id = ?
                   ORDER BY id""",
                (learner_id,)
            ).fetchall()
        return [self._row_to_project(row) for row in rows]

    def create_project(
        self,
        learner_id: int,
        title: str,
        description: str = "",
        tools: Optional[list[str]] = None,
        result: Optional[str] = None,
        unit_id: Optional[str] = None,
    ) -> Project:
        now = utcnow()
        tools = tools or []
        with self._connect() as conn:
            cursor = conn.execute(
                """INSERT INTO projects (learner_id, title, description, tools, result, unit_id, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (learner_id, title, description, json.dumps(tools), result, unit_id, now.isoformat())
            )
            project_id = cursor.lastrowid
        return Project(
            id=project_id,
            learner_id=learner_id,
            title=title,
            description=description,
            tools=tools,
            result=result,
            unit_id=unit_id,
            created_at=now,
        )

    def update_project(
        self,
        project_id: int,
        title: Optional[str] = None,
        description: Optional[str] = None,
        tools: Optional[list[str]] = None,
        result: Optional[str] = None,
        unit_id: Optional[str] = None,
    ) -> Optional[Project]:
        tools_json = json.dumps(tools) if tools is not None else None
        with self._connect() as conn:
            conn.execute(
                """UPDATE projects SET
                     title = COALESCE(?, title),
                     description = COALESCE(?, description),
                     tools = COALESCE(?, tools),
                     result = COALESCE(?, result),
                     unit_id = COALESCE(?, unit_id)
                   WHERE id = ?""",
                (title, description, tools_json, result, unit_id, project_id)
            )
            row = conn.execute(
                """SELECT id, learner_id, title, description, tools, result, unit_id, created_at
                   FROM projects
                   WHERE id = ?""",
                (project_id,)
            ).fetchone()
        return self._row_to_project(row) if row else None

    def delete_project(self, project_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        return cursor.rowcount > 0

    def get_posts(self, learner_id: int) -> list[Post]:
        with self._connect() as conn:
            rows = conn.execute(
                """SELECT id, learner_id, title, content, published, created_at, updated_at
                   FROM posts
                   WHERE learner_id = ?
                   ORDER BY id""",
                (learner_id,)
            ).fetchall()
        return [self._row_to_post(row) for row in rows]

    def create_post(self, learner_id: int, title: str, content: str = "", published: bool = False) -> Post:
        now = utcnow()
        with self._connect() as conn:
            cursor = conn.execute(
                """INSERT INTO posts (learner_id, title, content, published, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (learner_id, title, content, int(published), now.isoformat(), now.isoformat())
            )
            post_id = cursor.lastrowid
        return Post(
            id=post_id,
            learner_id=learner_id,
            title=title,
            content=content,
            published=published,
            created_at=now,
            updated_at=now,
        )

    def update_post(
        self,
        post_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
        published: Optional[bool] = None,
    ) -> Optional[Post]:
        published_value = int(published) if published is not None else None
        with self._connect() as conn:
            conn.execute(
                """UPDATE posts SET
                     title = COALESCE(?, title),
                     content = COALESCE(?, content),
                     published = COALESCE(?, published),
                     updated_at = ?
                   WHERE id = ?""",
                (title, content, published_value, utcnow().isoformat(), post_id)
            )
            row = conn.execute(
                """SELECT id, learner_id, title, content, published, created_at, updated_at
                   FROM posts
                   WHERE id = ?""",
                (post_id,)
            ).fetchone()
        return self._row_to_post(row) if row else None

    def delete_post(self, post_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM posts WHERE id = ?", (post_id,))
        return cursor.rowcount > 0

    # -------------------------------------------------------------------------
    # Achievement unlocks
    # -------------------------------------------------------------------------

    def get_unlock_records(self, learner_id: int) -> list[UnlockRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                """SELECT learner_id, achievement_id, unlocked_at
                   FROM unlock_records
                   WHERE learner_id = ?
                   ORDER BY unlocked_at""",
                (learner_id,)
            ).fetchall()
        return [
            UnlockRecord(
                learner_id=row["learner_id"],
                achievement_id=row["achievement_id"],
                unlocked_at=datetime.fromisoformat(row["unlocked_at"]),
            )
            for row in rows
        ]

    def insert_unlock(self, learner_id: int, achievement_id: int) -> tuple[UnlockRecord, bool]:
        """Insert guarded by the (learner_id, achievement_id) primary key."""
        now = utcnow().isoformat()
        with self._connect() as conn:
            cursor = conn.execute(
                """INSERT INTO unlock_records (learner_id, achievement_id, unlocked_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(learner_id, achievement_id) DO NOTHING""",
                (learner_id, achievement_id, now)
            )
            created = cursor.rowcount == 1
            row = conn.execute(
                """SELECT learner_id, achievement_id, unlocked_at
                   FROM unlock_records
                   WHERE learner_id = ? AND achievement_id = ?""",
                (learner_id, achievement_id)
            ).fetchone()
        record = UnlockRecord(
            learner_id=row["learner_id"],
            achievement_id=row["achievement_id"],
            unlocked_at=datetime.fromisoformat(row["unlocked_at"]),
        )
        return record, created
