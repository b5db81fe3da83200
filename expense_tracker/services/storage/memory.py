"""In-memory storage backend for tests and throwaway sessions."""

from typing import Optional

from expense_tracker.services.storage.interface import StorageBackend


class InMemoryStorage(StorageBackend):
    """Dict-backed blob storage. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._blobs: dict[str, str] = dict(initial or {})
        self.write_count = 0

    def read(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    def write(self, key: str, blob: str) -> None:
        self._blobs[key] = blob
        self.write_count += 1

    def delete(self, key: str) -> bool:
        return self._blobs.pop(key, None) is not None
