"""
SQLite-backed KeyValue store for round state.

Features
--------
- Simple byte-oriented KV: (key BLOB PRIMARY KEY, value BLOB NOT NULL)
- Prefix iteration using range scans (lower/upper bound).
- WAL journal with synchronous=FULL: a committed round survives power loss,
  which matters more here than write throughput.

Notes
-----
Keys are arbitrary bytes. Prefix iteration relies on lexicographic byte
ordering of BLOBs. To iterate a prefix `p`, we select:
  key >= p AND key < next_prefix(p)
"""

from __future__ import annotations

import os
import sqlite3
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple


def _ensure_dir(path: str) -> None:
    d = os.path.dirname(os.path.abspath(path))
    if d and not os.path.exists(d):
        os.makedirs(d, exist_ok=True)


def _apply_pragmas(conn: sqlite3.Connection) -> None:
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=FULL;")


def _init_schema(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS kv (
            key   BLOB PRIMARY KEY,
            value BLOB NOT NULL
        );
        """
    )


def _next_prefix(prefix: bytes) -> Optional[bytes]:
    """
    Smallest byte-string strictly greater than all keys starting with
    `prefix`; None if prefix is empty or all 0xFF (no upper bound).
    """
    if not prefix:
        return None
    b = bytearray(prefix)
    for i in range(len(b) - 1, -1, -1):
        if b[i] != 0xFF:
            b[i] += 1
            return bytes(b[: i + 1])
    return None


@dataclass
class SQLiteKeyValue:
    """
    SQLite-backed implementation of the KeyValue protocol.

    Example
    -------
    >>> kv = SQLiteKeyValue("/tmp/rounds.db")
    >>> kv.put(b"hello", b"world")
    >>> kv.get(b"hello")
    b'world'
    >>> kv.close()
    """

    path: str

    def __post_init__(self) -> None:
        _ensure_dir(self.path)
        # isolation_level=None -> autocommit
        self._conn = sqlite3.connect(self.path, isolation_level=None, timeout=30.0)
        _apply_pragmas(self._conn)
        _init_schema(self._conn)

    def __enter__(self) -> "SQLiteKeyValue":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- KV API --------------------------------------------------------------

    def put(self, key: bytes, value: bytes) -> None:
        if not isinstance(key, (bytes, bytearray)) or not isinstance(value, (bytes, bytearray)):
            raise TypeError("key and value must be bytes")
        self._conn.execute(
            "INSERT OR REPLACE INTO kv(key, value) VALUES(?, ?)", (bytes(key), bytes(value))
        )

    def get(self, key: bytes) -> Optional[bytes]:
        row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (bytes(key),)).fetchone()
        return bytes(row[0]) if row else None

    def delete(self, key: bytes) -> None:
        self._conn.execute("DELETE FROM kv WHERE key = ?", (bytes(key),))

    def has(self, key: bytes) -> bool:
        row = self._conn.execute("SELECT 1 FROM kv WHERE key = ?", (bytes(key),)).fetchone()
        return row is not None

    def iter_prefix(self, prefix: bytes) -> Iterable[Tuple[bytes, bytes]]:
        upper = _next_prefix(prefix)
        if upper is not None:
            sql = "SELECT key, value FROM kv WHERE key >= ? AND key < ? ORDER BY key ASC"
            args: tuple = (bytes(prefix), upper)
        else:
            sql = "SELECT key, value FROM kv WHERE key >= ? ORDER BY key ASC"
            args = (bytes(prefix),)

        for row in self._conn.execute(sql, args).fetchall():
            k = bytes(row[0])
            if not k.startswith(prefix):
                break
            yield k, bytes(row[1])

    def close(self) -> None:
        self._conn.close()


__all__ = ["SQLiteKeyValue"]
