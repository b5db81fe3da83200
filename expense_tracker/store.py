"""
Expense Store

DESIGN DECISION: The store is an explicitly owned, injectable object.
It holds the one in-memory copy of the expense collection and the backend
that persists it. There is no ambient global storage.

RULES:
- Order is newest insertion first; display ordering is derived elsewhere
- Mutations are add (prepend) and remove-by-id, nothing else
- The full collection is written after every mutation
- Malformed persisted data loads as an empty collection, never an error
- Persisted data that failed to load is never silently overwritten: it is
  copied to a backup key first, or writes are refused if it could not be read
"""

import json
import time
from collections.abc import Callable
from decimal import Decimal
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from expense_tracker.audit import AuditLogger
from expense_tracker.models.expense import Expense, ExpenseDraft
from expense_tracker.services.storage import StorageBackend, StorageError, StorageWriteError
from expense_tracker.validation import InvalidExpenseError, is_storable_amount


DEFAULT_STORAGE_KEY = "expenses"

_collection_adapter = TypeAdapter(list[Expense])


def _millis() -> int:
    return time.time_ns() // 1_000_000


def serialize_expenses(records: list[Expense]) -> str:
    """Encode a collection in the persisted JSON format."""
    return json.dumps(
        [r.to_storage_dict() for r in records],
        ensure_ascii=False,
    )


def deserialize_expenses(blob: str) -> list[Expense]:
    """
    Decode a persisted collection.

    Floats are parsed straight into Decimal so amounts keep the exact
    digits that were written.

    Raises:
        ValueError: If the blob is not valid JSON or fails validation
    """
    data = json.loads(blob, parse_float=Decimal)
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of expenses, got {type(data).__name__}")
    records = _collection_adapter.validate_python(data)
    ids = [r.id for r in records]
    if len(ids) != len(set(ids)):
        raise ValueError("Duplicate expense ids in persisted data")
    return records


class ExpenseStore:
    """
    The ordered expense collection plus its persistence behavior.

    Usage:
        store = ExpenseStore(LocalFileStorage("data"))
        store.load()
        expense = store.add(draft)
        store.remove(expense.id)
    """

    def __init__(
        self,
        backend: StorageBackend,
        storage_key: str = DEFAULT_STORAGE_KEY,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Args:
            backend: Where the serialized collection lives
            storage_key: Fixed key the collection is stored under
            audit_logger: Optional audit trail
            clock: Returns the current time in milliseconds (for ids)
        """
        self._backend = backend
        self._key = storage_key
        self._audit_logger = audit_logger
        self._clock = clock or _millis
        self._records: list[Expense] = []
        # Set by a failed load; cleared once the data is safe to overwrite
        self._unreadable_blob: Optional[str] = None
        self._read_failed = False

    @property
    def storage_key(self) -> str:
        return self._key

    @property
    def records(self) -> tuple[Expense, ...]:
        """Snapshot of the collection, newest insertion first."""
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(tuple(self._records))

    def load(self) -> list[Expense]:
        """
        Replace the in-memory collection with the persisted one.

        Absent data yields an empty collection. Malformed data also yields
        an empty collection and is reported to the audit log; it is kept
        aside so the next write can back it up instead of destroying it.
        """
        self._records = []
        self._unreadable_blob = None
        self._read_failed = False

        try:
            blob = self._backend.read(self._key)
        except StorageError as e:
            self._read_failed = True
            if self._audit_logger:
                self._audit_logger.log_store_load_failed(self._key, str(e))
            return []

        try:
            records = deserialize_expenses(blob) if blob and blob.strip() else []
        except (ValueError, ValidationError) as e:
            self._unreadable_blob = blob
            if self._audit_logger:
                self._audit_logger.log_store_load_failed(self._key, str(e))
            return []

        self._records = records
        if self._audit_logger:
            self._audit_logger.log_store_loaded(self._key, len(records))
        return list(records)

    def get(self, expense_id: int) -> Optional[Expense]:
        for record in self._records:
            if record.id == expense_id:
                return record
        return None

    def recent(self, limit: int = 5) -> list[Expense]:
        """The most recently added expenses."""
        return self._records[:limit]

    def add(self, draft: ExpenseDraft) -> Expense:
        """
        Create an expense from a draft, prepend it and persist.

        Raises:
            InvalidExpenseError: If the amount is not greater than zero, or
                is not a whole number of cents the persisted format can hold
            StorageError: If persisting fails (the store is left unchanged)
        """
        if draft.amount <= 0:
            raise InvalidExpenseError.for_amount(draft.amount)
        if not is_storable_amount(draft.amount):
            raise InvalidExpenseError.for_precision(draft.amount)

        expense = Expense(
            id=self._next_id(),
            **draft.model_dump(),
        )

        previous = self._records
        self._records = [expense] + previous
        try:
            self._persist()
        except StorageError:
            self._records = previous
            raise

        return expense

    def remove(self, expense_id: int) -> bool:
        """
        Remove the expense with this id and persist.

        Removing an id that is not present is a no-op, not an error.

        Returns:
            True if a record was removed
        """
        previous = self._records
        remaining = [r for r in previous if r.id != expense_id]
        removed = len(remaining) != len(previous)

        self._records = remaining
        try:
            self._persist()
        except StorageError:
            self._records = previous
            raise

        return removed

    def _next_id(self) -> int:
        """Creation timestamp, bumped so ids strictly increase."""
        candidate = self._clock()
        highest = max((r.id for r in self._records), default=0)
        return max(candidate, highest + 1)

    def _protect_unreadable_data(self) -> None:
        """Make sure a failed load cannot be followed by a destructive write."""
        if self._read_failed:
            raise StorageWriteError(
                f"Stored expenses under '{self._key}' could not be read; "
                "refusing to overwrite them"
            )
        if self._unreadable_blob is not None:
            backup_key = f"{self._key}-unreadable-{self._clock()}"
            self._backend.write(backup_key, self._unreadable_blob)
            self._unreadable_blob = None
            if self._audit_logger:
                self._audit_logger.log_store_backed_up(self._key, backup_key)

    def _persist(self) -> None:
        try:
            self._protect_unreadable_data()
            self._backend.write(self._key, serialize_expenses(self._records))
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_store_save_failed(self._key, str(e))
            raise

        if self._audit_logger:
            self._audit_logger.log_store_saved(self._key, len(self._records))
