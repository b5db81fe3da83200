"""
Local File Storage Implementation

DESIGN DECISION: A plain JSON file per key is used as the storage backend
because:
1. Users can inspect and back up their data directly
2. No database setup required
3. The data set is small (one person's expenses)

TRADEOFFS:
- The whole file is rewritten on every mutation
- No concurrent writers (there is exactly one user)

Writes go to a temporary file in the same directory and are moved into
place with os.replace, so a crash mid-write leaves the previous file intact.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from expense_tracker.services.storage.interface import (
    StorageBackend,
    StorageReadError,
    StorageWriteError,
)


class LocalFileStorage(StorageBackend):
    """
    Stores each key as `<directory>/<key>.json`.

    The directory is created on first write.
    """

    def __init__(self, directory: Union[str, Path]):
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        """File path a key is stored at."""
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._directory / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageReadError(f"Could not read {path}: {e}") from e

    def write(self, key: str, blob: str) -> None:
        path = self.path_for(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._directory,
                prefix=f".{key}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(blob)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageWriteError(f"Could not write {path}: {e}") from e

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as e:
            raise StorageWriteError(f"Could not delete {path}: {e}") from e
        return True
