from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import os
from pathlib import Path
import sqlite3
from typing import Any

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    WORK = "WORK"
    REST = "REST"

    def other(self) -> Mode:
        return Mode.REST if self is Mode.WORK else Mode.WORK


class SessionStoreError(RuntimeError):
    """读写会话记录失败（磁盘、配额、数据库锁等）。"""


@dataclass(frozen=True)
class SessionRecord:
    id: str
    mode: Mode
    duration_sec: int
    timestamp_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "mode": self.mode.value,
            "durationSeconds": self.duration_sec,
            "timestampMillis": self.timestamp_ms,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> SessionRecord:
        return cls(
            id=str(payload["id"]),
            mode=Mode(str(payload["mode"]).upper()),
            duration_sec=int(payload["durationSeconds"]),
            timestamp_ms=int(payload["timestampMillis"]),
        )


class SessionStore:
    """Append-only SQLite log of completed intervals.

    Every append runs in its own transaction, so a concurrent reader sees
    either the whole record or nothing.
    """

    def __init__(self, db_path: Path, journal_mode: str | None = None) -> None:
        self.db_path = Path(db_path)
        raw_mode = (journal_mode or os.getenv("FOCUSOS_JOURNAL_MODE") or "MEMORY").strip()
        self.journal_mode = raw_mode.upper() if raw_mode else "MEMORY"
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.init_schema()
        except (sqlite3.Error, OSError) as exc:
            raise SessionStoreError(f"无法打开会话数据库 {self.db_path}: {exc}") from exc

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        self._apply_journal_mode(conn)
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    def _apply_journal_mode(self, conn: sqlite3.Connection) -> None:
        try:
            conn.execute(f"PRAGMA journal_mode={self.journal_mode}")
        except sqlite3.OperationalError:
            conn.execute("PRAGMA journal_mode=MEMORY")

    def init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    mode TEXT NOT NULL CHECK (mode IN ('WORK', 'REST')),
                    duration_sec INTEGER NOT NULL CHECK (duration_sec > 0),
                    timestamp_ms INTEGER NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_sessions_timestamp
                ON sessions(timestamp_ms)
                """
            )
            conn.commit()

    def append(self, record: SessionRecord) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO sessions (id, mode, duration_sec, timestamp_ms)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        record.id,
                        record.mode.value,
                        int(record.duration_sec),
                        int(record.timestamp_ms),
                    ),
                )
                conn.commit()
        except (sqlite3.Error, OSError) as exc:
            raise SessionStoreError(f"写入会话 {record.id} 失败: {exc}") from exc
        logger.debug("appended session %s (%s, %ss)", record.id, record.mode.value, record.duration_sec)

    def all(self) -> list[SessionRecord]:
        query = "SELECT id, mode, duration_sec, timestamp_ms FROM sessions ORDER BY seq ASC"
        return self._read_sessions(query, [])

    def recent(self, limit: int = 20) -> list[SessionRecord]:
        safe_limit = max(1, min(2000, int(limit)))
        query = (
            "SELECT id, mode, duration_sec, timestamp_ms FROM sessions "
            "ORDER BY seq DESC LIMIT ?"
        )
        return self._read_sessions(query, [safe_limit])

    def get(self, session_id: str) -> SessionRecord | None:
        query = "SELECT id, mode, duration_sec, timestamp_ms FROM sessions WHERE id = ?"
        items = self._read_sessions(query, [session_id])
        return items[0] if items else None

    def _read_sessions(self, query: str, params: list[object]) -> list[SessionRecord]:
        try:
            with self._connect() as conn:
                rows = conn.execute(query, params).fetchall()
        except (sqlite3.Error, OSError) as exc:
            raise SessionStoreError(f"读取会话失败: {exc}") from exc

        return [
            SessionRecord(
                id=row["id"],
                mode=Mode(row["mode"]),
                duration_sec=int(row["duration_sec"]),
                timestamp_ms=int(row["timestamp_ms"]),
            )
            for row in rows
        ]


def default_db_path() -> Path:
    return Path(__file__).resolve().parent / "data" / "focusos.sqlite"
