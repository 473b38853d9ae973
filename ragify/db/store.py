"""
store.py - SQLite persistence for users and their legal queries.

Tables:
- users:   id, name, email, phone, platform, password_hash, created_at
- queries: id, user_id, query_text, topic, language, created_at
"""

import sqlite3
import threading
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, List, Optional

from ..utils.logger import get_logger


logger = get_logger("db.store")


SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT,
    email TEXT UNIQUE,
    phone TEXT UNIQUE,
    platform TEXT NOT NULL DEFAULT 'web',
    password_hash TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS queries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    query_text TEXT NOT NULL,
    topic TEXT,
    language TEXT NOT NULL DEFAULT 'en',
    created_at TEXT NOT NULL,
    FOREIGN KEY (user_id) REFERENCES users (id)
);

CREATE INDEX IF NOT EXISTS idx_queries_user_created
    ON queries (user_id, created_at);
"""


@dataclass
class UserRecord:
    id: int
    name: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    platform: str
    password_hash: Optional[str]
    created_at: str

    def public_dict(self) -> dict:
        """User fields that are safe to return to clients."""
        data = asdict(self)
        data.pop("password_hash")
        return data


@dataclass
class QueryRecord:
    id: int
    user_id: int
    query_text: str
    topic: Optional[str]
    language: str
    created_at: str

    def to_dict(self) -> dict:
        return asdict(self)


def _now() -> str:
    return datetime.utcnow().isoformat()


class Database:
    """
    Thin wrapper around one SQLite connection.

    The connection is shared between request threads, so every statement
    runs under a lock.
    """

    def __init__(self, path: str = "ragify.db"):
        self.path = path
        self._lock = threading.Lock()
        self.conn = sqlite3.connect(path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self.init_schema()
        logger.info(f"Database connected successfully ({path})")

    def init_schema(self):
        with self._lock:
            self.conn.executescript(SCHEMA)
            self.conn.commit()

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        with self._lock:
            cursor = self.conn.execute(sql, params)
            self.conn.commit()
            return cursor

    def fetchone(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        with self._lock:
            return self.conn.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        with self._lock:
            return self.conn.execute(sql, params).fetchall()

    def close(self):
        self.conn.close()


class UserRepository:
    """Users from the web app and from WhatsApp."""

    def __init__(self, db: Database):
        self.db = db

    def create(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        platform: str = "web",
        password_hash: Optional[str] = None,
    ) -> UserRecord:
        cursor = self.db.execute(
            "INSERT INTO users (name, email, phone, platform, password_hash, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (name, email, phone, platform, password_hash, _now()),
        )
        return self.get_by_id(cursor.lastrowid)

    def get_by_id(self, user_id: int) -> Optional[UserRecord]:
        row = self.db.fetchone("SELECT * FROM users WHERE id = ?", (user_id,))
        return UserRecord(**dict(row)) if row else None

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        row = self.db.fetchone(
            "SELECT * FROM users WHERE lower(email) = lower(?)", (email,)
        )
        return UserRecord(**dict(row)) if row else None

    def find_by_phone(self, phone: str) -> Optional[UserRecord]:
        row = self.db.fetchone("SELECT * FROM users WHERE phone = ?", (phone,))
        return UserRecord(**dict(row)) if row else None


class QueryRepository:
    """Stored legal queries."""

    def __init__(self, db: Database):
        self.db = db

    def create(self, user_id: int, query_text: str, topic: Optional[str], language: str) -> QueryRecord:
        cursor = self.db.execute(
            "INSERT INTO queries (user_id, query_text, topic, language, created_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (user_id, query_text, topic, language, _now()),
        )
        return self.get_by_id(cursor.lastrowid)

    def get_by_id(self, query_id: int) -> Optional[QueryRecord]:
        row = self.db.fetchone("SELECT * FROM queries WHERE id = ?", (query_id,))
        return QueryRecord(**dict(row)) if row else None

    def get_user_queries(self, user_id: int, limit: int = 10, offset: int = 0) -> List[QueryRecord]:
        """A user's queries, newest first."""
        rows = self.db.fetchall(
            "SELECT * FROM queries WHERE user_id = ? "
            "ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
            (user_id, limit, offset),
        )
        return [QueryRecord(**dict(row)) for row in rows]

    def analytics(self, user_id: Optional[int] = None) -> Dict:
        """
        Aggregate query statistics.

        Args:
            user_id: Restrict to one user's queries; None covers everyone.

        Returns:
            total_queries, average_query_length, top_topics,
            language_distribution and a per-day timeline.
        """
        where, params = ("WHERE user_id = ?", (user_id,)) if user_id is not None else ("", ())

        totals = self.db.fetchone(
            f"SELECT COUNT(*) AS total, AVG(LENGTH(query_text)) AS avg_len FROM queries {where}",
            params,
        )
        topics = self.db.fetchall(
            f"SELECT topic, COUNT(*) AS count FROM queries {where} "
            "GROUP BY topic ORDER BY count DESC, topic",
            params,
        )
        languages = self.db.fetchall(
            f"SELECT language, COUNT(*) AS count FROM queries {where} "
            "GROUP BY language ORDER BY count DESC, language",
            params,
        )
        timeline = self.db.fetchall(
            f"SELECT substr(created_at, 1, 10) AS date, COUNT(*) AS count FROM queries {where} "
            "GROUP BY date ORDER BY date",
            params,
        )

        return {
            "total_queries": totals["total"],
            "average_query_length": round(totals["avg_len"] or 0.0, 1),
            "top_topics": [{"topic": r["topic"], "count": r["count"]} for r in topics],
            "language_distribution": [
                {"language": r["language"], "count": r["count"]} for r in languages
            ],
            "queries_timeline": [{"date": r["date"], "count": r["count"]} for r in timeline],
        }
