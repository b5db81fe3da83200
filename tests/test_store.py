"""
Tests for the expense store and its storage backends.
"""

import json
from datetime import date
from decimal import Decimal

import pytest

from expense_tracker.models.audit import AuditEventType
from expense_tracker.models.expense import Category, ExpenseDraft, PaymentMethod
from expense_tracker.services.storage import (
    InMemoryStorage,
    LocalFileStorage,
    StorageReadError,
    StorageWriteError,
)
from expense_tracker.store import ExpenseStore, deserialize_expenses, serialize_expenses
from expense_tracker.validation import InvalidExpenseError

FIXED_MILLIS = 1_700_000_000_000


def draft(amount="12.50", day=date(2024, 3, 5), category=Category.FOOD, **kwargs):
    return ExpenseDraft(date=day, category=category, amount=Decimal(amount), **kwargs)


def event_types(audit_logger):
    return [e.event_type for e in audit_logger.recent_events()]


class FailingStorage(InMemoryStorage):
    """Backend whose writes always fail."""

    def write(self, key, blob):
        raise StorageWriteError("disk full")


class BrokenReadStorage(InMemoryStorage):
    def read(self, key):
        raise StorageReadError("permission denied")


class TestAdd:
    """Tests for ExpenseStore.add."""

    def test_add_assigns_id_and_prepends(self, store):
        first = store.add(draft("10", description="first"))
        second = store.add(draft("20", description="second"))

        assert first.id == FIXED_MILLIS
        assert second.id == FIXED_MILLIS + 1
        assert [e.description for e in store.records] == ["second", "first"]

    def test_ids_strictly_increase_with_real_clock(self, backend):
        store = ExpenseStore(backend)
        ids = [store.add(draft()).id for _ in range(20)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 20

    def test_add_persists_whole_collection(self, store, backend):
        store.add(draft("10"))
        store.add(draft("20"))

        assert backend.write_count == 2
        persisted = json.loads(backend.read("expenses"))
        assert [r["amount"] for r in persisted] == [20, 10]

    @pytest.mark.parametrize("amount", ["-5", "0"])
    def test_non_positive_amount_rejected(self, store, backend, amount):
        """Test that the store refuses amounts that are not greater than zero."""
        store.add(draft("10"))

        with pytest.raises(InvalidExpenseError) as exc_info:
            store.add(draft(amount))

        assert "greater than zero" in str(exc_info.value)
        assert len(store) == 1
        assert backend.write_count == 1

    @pytest.mark.parametrize("amount", [
        "1234567.123456789012345",
        "12.345",
        "10000000000000",
    ])
    def test_amount_the_file_cannot_hold_is_rejected(self, store, backend, amount):
        """Test that sub-cent or oversized amounts never reach the saved file."""
        store.add(draft("10"))

        with pytest.raises(InvalidExpenseError):
            store.add(draft(amount))

        assert len(store) == 1
        assert backend.write_count == 1

    def test_write_failure_rolls_back(self, audit_logger):
        store = ExpenseStore(FailingStorage(), audit_logger=audit_logger)

        with pytest.raises(StorageWriteError):
            store.add(draft())

        assert len(store) == 0
        assert AuditEventType.STORE_SAVE_FAILED in event_types(audit_logger)

    def test_recent(self, store):
        for n in range(1, 8):
            store.add(draft(str(n)))
        assert [e.amount for e in store.recent(3)] == [Decimal("7"), Decimal("6"), Decimal("5")]


class TestRemove:
    """Tests for ExpenseStore.remove."""

    def test_remove_then_remove_again(self, store):
        expense = store.add(draft())
        other = store.add(draft("3"))

        assert store.remove(expense.id) is True
        assert store.remove(expense.id) is False
        assert [e.id for e in store.records] == [other.id]

    def test_remove_unknown_id_is_noop(self, store):
        store.add(draft())
        assert store.remove(42) is False
        assert len(store) == 1

    def test_remove_failure_rolls_back(self, make_expense):
        backend = FailingStorage({"expenses": serialize_expenses([make_expense()])})
        store = ExpenseStore(backend)
        store.load()

        with pytest.raises(StorageWriteError):
            store.remove(1)

        assert len(store) == 1


class TestLoad:
    """Tests for ExpenseStore.load."""

    def test_round_trip(self, store, backend):
        store.add(draft("12.50", description="Lunch", payment_method=PaymentMethod.UPI))
        store.add(draft("8", category=Category.TRANSPORT))
        store.add(draft("99.99", receipt="data:image/png;base64,iVBORw0KGgo="))

        reloaded = ExpenseStore(backend)
        reloaded.load()

        assert [e.model_dump() for e in reloaded.records] == [
            e.model_dump() for e in store.records
        ]

    def test_absent_data_is_empty(self, store, audit_logger):
        assert store.load() == []
        assert AuditEventType.STORE_LOADED in event_types(audit_logger)

    def test_blank_blob_is_empty(self, audit_logger):
        store = ExpenseStore(InMemoryStorage({"expenses": "  "}), audit_logger=audit_logger)
        assert store.load() == []

    @pytest.mark.parametrize("blob", [
        "{not json",
        '{"id": 1}',
        '[{"id": 1, "date": "2024-03-05", "category": "Crypto", "amount": 5}]',
        '[{"id": 1, "date": "2024-03-05", "category": "Food", "amount": 5},'
        ' {"id": 1, "date": "2024-03-06", "category": "Food", "amount": 6}]',
    ])
    def test_malformed_data_loads_empty(self, audit_logger, blob):
        """Test that unreadable data never raises and is reported."""
        store = ExpenseStore(InMemoryStorage({"expenses": blob}), audit_logger=audit_logger)

        assert store.load() == []
        assert len(store) == 0
        assert AuditEventType.STORE_LOAD_FAILED in event_types(audit_logger)

    def test_read_error_loads_empty(self, audit_logger):
        store = ExpenseStore(BrokenReadStorage(), audit_logger=audit_logger)
        assert store.load() == []
        assert AuditEventType.STORE_LOAD_FAILED in event_types(audit_logger)

    def test_load_replaces_collection(self, make_expense):
        backend = InMemoryStorage()
        store = ExpenseStore(backend)
        store.add(draft())
        backend.write("expenses", serialize_expenses([make_expense("1"), make_expense("2")]))

        store.load()

        assert [e.amount for e in store.records] == [Decimal("1"), Decimal("2")]

    def test_legacy_format(self):
        """Test data saved by earlier versions: float amounts and camelCase keys."""
        blob = json.dumps([
            {
                "id": 1709712000123,
                "date": "2024-03-06",
                "category": "Food",
                "amount": 12.5,
                "description": "Lunch",
                "paymentMethod": "UPI",
                "receipt": None,
            },
            {
                "id": 1709625600000,
                "date": "2024-03-05",
                "category": "Transport",
                "amount": 20,
                "description": "",
                "paymentMethod": "Cash",
                "receipt": "",
            },
        ])
        store = ExpenseStore(InMemoryStorage({"expenses": blob}))
        records = store.load()

        assert records[0].amount == Decimal("12.5")
        assert records[0].payment_method == PaymentMethod.UPI
        assert records[1].amount == Decimal("20")
        assert records[1].receipt is None

    def test_large_amounts_round_trip_exactly(self, store, backend):
        for amount in ["0.01", "1234567.89", "9999999999999.99"]:
            store.add(draft(amount))

        reloaded = ExpenseStore(backend)
        reloaded.load()

        assert [str(e.amount) for e in reloaded.records] == [
            "9999999999999.99", "1234567.89", "0.01",
        ]

    def test_long_legacy_description_survives_add(self, backend):
        """Test that one long saved description neither empties the load nor gets lost."""
        backend.write("expenses", json.dumps([
            {"id": 2, "date": "2024-03-06", "category": "Food", "amount": 5,
             "description": "x" * 600, "paymentMethod": "Cash"},
            {"id": 1, "date": "2024-03-05", "category": "Food", "amount": 7,
             "description": "Lunch", "paymentMethod": "Cash"},
        ]))
        store = ExpenseStore(backend, clock=lambda: FIXED_MILLIS)

        assert len(store.load()) == 2
        store.add(draft("3"))

        persisted = json.loads(backend.read("expenses"))
        assert len(persisted) == 3
        assert persisted[1]["description"] == "x" * 600

    def test_float_amounts_keep_exact_digits(self):
        records = deserialize_expenses(
            '[{"id": 1, "date": "2024-03-05", "category": "Food", "amount": 0.1}]'
        )
        assert records[0].amount == Decimal("0.1")

    def test_serialized_shape(self, make_expense):
        blob = serialize_expenses([make_expense("12.5", description="Lunch")])
        assert json.loads(blob) == [{
            "id": 1,
            "date": "2024-03-05",
            "category": "Food",
            "amount": 12.5,
            "description": "Lunch",
            "paymentMethod": "Cash",
            "receipt": None,
        }]


class TestUnreadableData:
    """Tests for writes that follow a failed load."""

    def test_malformed_data_backed_up_before_overwrite(self, audit_logger):
        backend = InMemoryStorage({"expenses": "{not json"})
        store = ExpenseStore(backend, audit_logger=audit_logger, clock=lambda: FIXED_MILLIS)
        store.load()

        store.add(draft("10"))

        assert backend.read(f"expenses-unreadable-{FIXED_MILLIS}") == "{not json"
        assert len(json.loads(backend.read("expenses"))) == 1
        assert AuditEventType.STORE_BACKED_UP in event_types(audit_logger)

    def test_backup_written_only_once(self):
        backend = InMemoryStorage({"expenses": "[1, 2"})
        store = ExpenseStore(backend, clock=lambda: FIXED_MILLIS)
        store.load()

        store.add(draft("10"))
        store.add(draft("20"))

        # one backup plus two saves
        assert backend.write_count == 3

    def test_unreadable_backend_refuses_writes(self, audit_logger):
        backend = BrokenReadStorage()
        store = ExpenseStore(backend, audit_logger=audit_logger)
        store.load()

        with pytest.raises(StorageWriteError):
            store.add(draft())

        assert len(store) == 0
        assert backend.write_count == 0
        assert AuditEventType.STORE_SAVE_FAILED in event_types(audit_logger)

    def test_successful_reload_allows_writes_again(self, make_expense):
        backend = InMemoryStorage({"expenses": "{not json"})
        store = ExpenseStore(backend)
        store.load()

        backend.write("expenses", serialize_expenses([make_expense("1")]))
        store.load()
        store.add(draft("2"))

        assert backend.write_count == 2
        assert len(json.loads(backend.read("expenses"))) == 2


class TestLocalFileStorage:
    """Tests for the JSON file backend."""

    def test_read_missing_key(self, tmp_path):
        assert LocalFileStorage(tmp_path).read("expenses") is None

    def test_write_then_read(self, tmp_path):
        storage = LocalFileStorage(tmp_path / "nested")
        storage.write("expenses", '[{"a": "ü"}]')

        assert storage.read("expenses") == '[{"a": "ü"}]'
        assert (tmp_path / "nested" / "expenses.json").exists()
        assert storage.exists("expenses")

    def test_write_leaves_no_temp_files(self, tmp_path):
        storage = LocalFileStorage(tmp_path)
        storage.write("expenses", "[]")
        storage.write("expenses", "[1]")

        assert [p.name for p in tmp_path.iterdir()] == ["expenses.json"]

    def test_delete(self, tmp_path):
        storage = LocalFileStorage(tmp_path)
        storage.write("expenses", "[]")

        assert storage.delete("expenses") is True
        assert storage.delete("expenses") is False
        assert not storage.exists("expenses")

    @pytest.mark.parametrize("key", ["", "../etc", "a/b", ".hidden"])
    def test_invalid_keys(self, tmp_path, key):
        with pytest.raises(ValueError):
            LocalFileStorage(tmp_path).path_for(key)

    def test_store_survives_restart(self, tmp_path):
        store = ExpenseStore(LocalFileStorage(tmp_path))
        saved = store.add(draft("42", description="Groceries"))

        restarted = ExpenseStore(LocalFileStorage(tmp_path))
        restarted.load()

        assert restarted.get(saved.id).description == "Groceries"
        assert restarted.get(saved.id).amount == Decimal("42")
