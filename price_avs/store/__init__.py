"""
price_avs.store
===============

Round state persistence. Commit and reveal may run in different processes,
minutes apart; the store is the only thing linking them.

Layers:
- `KeyValue`   : minimal byte-oriented protocol implemented by the backends
                 (memory, file directory, SQLite).
- `codec`      : strict fixed-width encoding of a `RoundRecord`.
- `RoundStore` : typed round API on top of a `KeyValue`.

`open_store(uri)` picks a backend from a URI:
    memory://
    file://./state
    sqlite://./state/rounds.db
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol, Tuple


class KeyValue(Protocol):
    """Minimal byte-oriented KV interface.

    Keys and values are raw bytes. Namespacing is done by the caller via
    prefixed keys (see `price_avs.store.rounds`).
    """

    def get(self, key: bytes) -> Optional[bytes]:
        """Return value for key, or None if missing."""
        ...

    def put(self, key: bytes, value: bytes) -> None:
        """Insert or replace key with value, durably."""
        ...

    def delete(self, key: bytes) -> None:
        """Remove key if present (no-op if absent)."""
        ...

    def has(self, key: bytes) -> bool:
        ...

    def iter_prefix(self, prefix: bytes) -> Iterable[Tuple[bytes, bytes]]:
        """Yield (key, value) pairs whose keys start with prefix, ordered by key."""
        ...

    def close(self) -> None:
        ...


from .rounds import RoundStore  # noqa: E402


def open_store(uri: str) -> "RoundStore":
    """Open a `RoundStore` for a storage URI."""
    if "://" not in uri:
        raise ValueError(f"storage location must be a URI (e.g. file://...), got {uri!r}")
    scheme, _, path = uri.partition("://")
    scheme = scheme.lower()
    if scheme == "memory":
        from .memory import MemoryKeyValue

        return RoundStore(MemoryKeyValue())
    if not path:
        raise ValueError(f"{scheme}:// storage URI needs a path")
    if scheme == "file":
        from .file import FileKeyValue

        return RoundStore(FileKeyValue(path))
    if scheme == "sqlite":
        from .sqlite import SQLiteKeyValue

        return RoundStore(SQLiteKeyValue(path))
    raise ValueError(f"unsupported storage scheme {scheme!r} (memory, file, sqlite)")


__all__ = ["KeyValue", "RoundStore", "open_store"]
