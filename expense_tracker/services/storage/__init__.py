"""
Storage Services Package

Provides the abstract blob interface and concrete implementations.
Currently implements a local JSON file backend, but designed to be swappable.
"""

from expense_tracker.services.storage.interface import (
    StorageBackend,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from expense_tracker.services.storage.local_file import LocalFileStorage
from expense_tracker.services.storage.memory import InMemoryStorage

__all__ = [
    # Interfaces
    "StorageBackend",
    # Exceptions
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Implementations
    "InMemoryStorage",
    "LocalFileStorage",
]
