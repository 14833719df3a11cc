from __future__ import annotations

import logging
import sqlite3
from contextlib import closing, contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Union

from core.errors import DuplicateUsername, StoreError

logger = logging.getLogger(__name__)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
      id INTEGER PRIMARY KEY AUTOINCREMENT,
      username TEXT UNIQUE NOT NULL,
      password TEXT NOT NULL,
      role TEXT DEFAULT 'user',
      member_id INTEGER,
      created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS activity_logs (
      id INTEGER PRIMARY KEY AUTOINCREMENT,
      username TEXT NOT NULL,
      activity TEXT NOT NULL,
      activity_date DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


@dataclass(frozen=True)
class CredentialRecord:
    id: int
    username: str
    password_hash: str
    role: str
    member_id: Optional[int]
    created_at: Optional[str]

    def public(self) -> dict:
        return {"id": self.id, "username": self.username, "role": self.role, "member_id": self.member_id}


@dataclass(frozen=True)
class ActivityEntry:
    id: int
    username: str
    activity: str
    activity_date: str


def utc_timestamp(when: Optional[datetime] = None) -> str:
    return (when or datetime.now(timezone.utc)).strftime(TIMESTAMP_FORMAT)


class CredentialStore:
    """Users and activity log tables in one SQLite file.

    Each operation opens its own connection, so an instance can be shared by
    request handlers running on different threads.
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            with closing(sqlite3.connect(str(self.db_path))) as conn:
                conn.row_factory = sqlite3.Row
                with conn:
                    yield conn
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as exc:
            raise StoreError(f"Database error on {self.db_path}: {exc}") from exc

    def init_schema(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            for statement in SCHEMA:
                conn.execute(statement)
        logger.info("Database tables initialized at %s", self.db_path)

    # ---------------- users ----------------
    def add_user(
        self,
        username: str,
        password_hash: str,
        role: str = "user",
        member_id: Optional[int] = None,
    ) -> int:
        try:
            with self._connect() as conn:
                cur = conn.execute(
                    "INSERT INTO users (username, password, role, member_id) VALUES (?, ?, ?, ?)",
                    (username, password_hash, role, member_id),
                )
                return int(cur.lastrowid)
        except sqlite3.IntegrityError as exc:
            raise DuplicateUsername(f"Username already exists: {username}") from exc

    def get_user(self, username: str) -> Optional[CredentialRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE username = ?", (username,)).fetchone()
        if row is None:
            return None
        return CredentialRecord(
            id=row["id"],
            username=row["username"],
            password_hash=row["password"],
            role=row["role"],
            member_id=row["member_id"],
            created_at=row["created_at"],
        )

    def count_users(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS count FROM users").fetchone()
        return int(row["count"])

    # ---------------- activity ----------------
    def append_activity(self, username: str, activity: str, when: Optional[datetime] = None) -> int:
        try:
            with self._connect() as conn:
                cur = conn.execute(
                    "INSERT INTO activity_logs (username, activity, activity_date) VALUES (?, ?, ?)",
                    (username, activity, utc_timestamp(when)),
                )
                return int(cur.lastrowid)
        except sqlite3.IntegrityError as exc:
            raise StoreError(f"Could not record activity for {username!r}: {exc}") from exc

    def recent_activity(self, limit: int = 50) -> List[ActivityEntry]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM activity_logs ORDER BY activity_date DESC, id DESC LIMIT ?",
                (int(limit),),
            ).fetchall()
        return [
            ActivityEntry(id=r["id"], username=r["username"], activity=r["activity"], activity_date=r["activity_date"])
            for r in rows
        ]
