"""
Abstract Storage Interface

DESIGN DECISION: Persistence is a key -> blob mapping.
The whole expense collection is serialized into one blob and written
under a fixed key after every mutation. This allows us to:
1. Swap the local file for another backend later
2. Use in-memory storage for testing
3. Keep the store's (de)serialization logic independent of where bytes live

The interface is intentionally tiny - no partial updates, no transactions.
"""

from abc import ABC, abstractmethod
from typing import Optional


class StorageBackend(ABC):
    """
    Abstract interface for blob storage.

    Any backend (local file, browser-like key/value store, etc.)
    must implement these methods.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """
        Read the blob stored under a key.

        Args:
            key: Storage key

        Returns:
            The stored text, or None if nothing is stored under the key

        Raises:
            StorageReadError: If the data exists but cannot be read
        """
        pass

    @abstractmethod
    def write(self, key: str, blob: str) -> None:
        """
        Replace the blob stored under a key.

        Args:
            key: Storage key
            blob: Full serialized content

        Raises:
            StorageWriteError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove the blob stored under a key.

        Returns:
            True if something was removed
        """
        pass

    def exists(self, key: str) -> bool:
        """Check whether anything is stored under a key."""
        return self.read(key) is not None


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """Stored data exists but could not be read."""
    pass


class StorageWriteError(StorageError):
    """Data could not be written to the backend."""
    pass
