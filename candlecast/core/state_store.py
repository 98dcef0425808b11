"""Small persistent state for the engine (currently the error log).

Values are JSON documents stored zlib-compressed in a single SQLite table.
"""
import datetime as dt
import json
import sqlite3
import zlib
from pathlib import Path
from typing import Any

MEMORY = ":memory:"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS state (
    name TEXT PRIMARY KEY,
    document BLOB NOT NULL,
    saved_at TEXT NOT NULL
)
"""


def pack(document: Any) -> bytes:
    return zlib.compress(json.dumps(document, separators=(",", ":")).encode("utf-8"))


def unpack(blob: bytes) -> Any:
    return json.loads(zlib.decompress(blob).decode("utf-8"))


class StateStore:
    def __init__(self, db_path: str = MEMORY) -> None:
        if db_path != MEMORY:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path)
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute(_SCHEMA)
        self._conn.commit()

    def __enter__(self) -> "StateStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def get(self, name: str, default: Any = None) -> Any:
        row = self._conn.execute("SELECT document FROM state WHERE name = ?", (name,)).fetchone()
        return default if row is None else unpack(row[0])

    def set(self, name: str, document: Any) -> None:
        saved_at = dt.datetime.now(dt.timezone.utc).isoformat()
        with self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO state (name, document, saved_at) VALUES (?, ?, ?)",
                (name, pack(document), saved_at),
            )

    def delete(self, name: str) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM state WHERE name = ?", (name,))

    def close(self) -> None:
        self._conn.close()
