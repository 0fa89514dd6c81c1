"""
DevMob Onboarding Bot - JSON Store Base
=======================================

Whole-file JSON persistence keyed by member id.

DESIGN:
    Each store owns one file and one asyncio.Lock. Every mutation is a
    read-modify-write of the whole document under that lock, written to a
    temporary file and moved into place with os.replace, so two concurrent
    saves never drop each other's entries and a crash mid-write leaves the
    previous file intact.

    Reads of a missing file return an empty mapping. A file that fails to
    parse (bad JSON, bad UTF-8, not an object) reads as empty for lookups,
    but mutate() refuses to write over it and raises PersistenceError, so
    the stored entries survive until someone repairs the file.

Server: the DevMob
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, TypeVar

from devmob.core.errors import PersistenceError
from devmob.core.logger import logger

T = TypeVar("T")


class JsonStore:
    """
    A JSON object on disk mapping member id strings to values.

    Attributes:
        path: Location of the JSON file.
        name: Human-readable name for log entries.
    """

    def __init__(self, path: Path, name: str) -> None:
        self.path = Path(path)
        self.name = name
        self._lock = asyncio.Lock()

    # =========================================================================
    # Disk Access
    # =========================================================================

    def _read(self, strict: bool = False) -> Dict[str, Any]:
        """
        Load the document.

        With ``strict``, an unparseable file raises PersistenceError instead
        of reading as empty.
        """
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            problem = f"{type(e).__name__}: {str(e)[:100]}"
            data = None
        else:
            problem = None if isinstance(data, dict) else f"top level is {type(data).__name__}"

        if problem is None:
            return data

        if strict:
            raise PersistenceError(f"Refusing to overwrite unreadable {self.path} ({problem})")
        logger.warning(f"{self.name} File Corrupt, Treating As Empty", [
            ("Path", str(self.path)),
            ("Problem", problem),
        ])
        return {}

    def _write(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.path}: {e}") from e

    # =========================================================================
    # Operations
    # =========================================================================

    async def load_all(self) -> Dict[str, Any]:
        """Snapshot of the whole document."""
        async with self._lock:
            return self._read()

    async def get_raw(self, key: int) -> Any:
        async with self._lock:
            return self._read().get(str(key))

    async def mutate(self, fn: Callable[[Dict[str, Any]], T]) -> T:
        """
        Apply ``fn`` to the document and write it back, all under the lock.

        ``fn`` edits the dict in place and returns a value that is passed
        through to the caller. Raises PersistenceError if the file cannot
        be parsed or the write fails.
        """
        async with self._lock:
            data = self._read(strict=True)
            result = fn(data)
            self._write(data)
            return result


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["JsonStore"]
