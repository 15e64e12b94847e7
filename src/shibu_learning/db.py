"""SQLite key-value slots backing the persisted progress snapshot."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional


@dataclass(slots=True)
class SlotRow:
    key: str
    value_json: str
    updated_at: int


class SQLiteStore:
    """Simple SQLite wrapper storing one JSON document per key."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._init()

    def _init(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                PRAGMA journal_mode=WAL;
                CREATE TABLE IF NOT EXISTS slots (
                    key TEXT PRIMARY KEY,
                    value_json TEXT NOT NULL,
                    updated_at INTEGER NOT NULL
                );
                """
            )

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def get_slot(self, key: str) -> Optional[SlotRow]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM slots WHERE key=?",
                (key,),
            ).fetchone()
        if row is None:
            return None
        return SlotRow(**row)

    def put_slot(self, key: str, value: dict, timestamp: int) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO slots(key,value_json,updated_at)
                VALUES(?,?,?)
                ON CONFLICT(key) DO UPDATE SET
                    value_json=excluded.value_json,
                    updated_at=excluded.updated_at
                """,
                (key, json.dumps(value, separators=(",", ":"), ensure_ascii=False), timestamp),
            )

    def delete_slot(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM slots WHERE key=?", (key,))


__all__ = ["SQLiteStore", "SlotRow"]
