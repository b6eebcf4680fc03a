"""
Directory-backed KeyValue store: one file per key.

Each key maps to ``<root>/<hex(key)>.bin``. Writes go to a temporary file in
the same directory, are fsync'd, then atomically renamed over the target, so a
reader (possibly a different process, much later) sees either the old value
or the complete new one, never a torn write.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Iterable, Optional, Tuple

_SUFFIX = ".bin"


class FileKeyValue:
    """
    Parameters
    ----------
    root : str | Path
        Directory holding the values. Created if missing.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).expanduser()
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: bytes) -> Path:
        if not isinstance(key, (bytes, bytearray)) or not key:
            raise TypeError("key must be non-empty bytes")
        return self.root / (bytes(key).hex() + _SUFFIX)

    def get(self, key: bytes) -> Optional[bytes]:
        try:
            return self._path(key).read_bytes()
        except FileNotFoundError:
            return None

    def put(self, key: bytes, value: bytes) -> None:
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError("value must be bytes")
        target = self._path(key)
        fd, tmp = tempfile.mkstemp(dir=self.root, prefix=".tmp-", suffix=_SUFFIX)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(bytes(value))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, target)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        self._fsync_dir()

    def delete(self, key: bytes) -> None:
        self._path(key).unlink(missing_ok=True)

    def has(self, key: bytes) -> bool:
        return self._path(key).is_file()

    def iter_prefix(self, prefix: bytes) -> Iterable[Tuple[bytes, bytes]]:
        hp = bytes(prefix).hex()
        names = sorted(
            p.name for p in self.root.iterdir()
            if p.name.endswith(_SUFFIX) and not p.name.startswith(".") and p.name.startswith(hp)
        )
        for name in names:
            try:
                key = bytes.fromhex(name[: -len(_SUFFIX)])
            except ValueError:
                continue  # not one of ours
            value = self.get(key)
            if value is not None:
                yield key, value

    def _fsync_dir(self) -> None:
        # Persist the rename itself; not supported on every platform.
        if os.name != "posix":
            return
        dfd = os.open(self.root, os.O_RDONLY)
        try:
            os.fsync(dfd)
        finally:
            os.close(dfd)

    def close(self) -> None:
        pass


__all__ = ["FileKeyValue"]
