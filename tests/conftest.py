"""Shared fixtures for the Expense Tracker tests."""

import itertools
from datetime import date
from decimal import Decimal
from io import BytesIO

import pytest
from PIL import Image

from expense_tracker.audit import AuditLogger
from expense_tracker.models.expense import Category, Expense, PaymentMethod
from expense_tracker.services.storage import InMemoryStorage
from expense_tracker.store import ExpenseStore


FIXED_MILLIS = 1_700_000_000_000


@pytest.fixture
def make_expense():
    """Factory for stored expenses with sequential ids."""
    ids = itertools.count(1)

    def _make(
        amount="10",
        day=date(2024, 3, 5),
        category=Category.FOOD,
        description="",
        payment_method=PaymentMethod.CASH,
        **kwargs,
    ):
        return Expense(
            id=kwargs.pop("id", next(ids)),
            date=day,
            category=category,
            amount=Decimal(str(amount)),
            description=description,
            payment_method=payment_method,
            **kwargs,
        )

    return _make


@pytest.fixture
def backend():
    return InMemoryStorage()


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def store(backend, audit_logger):
    """A store whose clock never moves, so ids come from the bump rule."""
    return ExpenseStore(backend, audit_logger=audit_logger, clock=lambda: FIXED_MILLIS)


@pytest.fixture
def png_bytes():
    def _png(size=(20, 10), color="red"):
        buffer = BytesIO()
        Image.new("RGB", size, color).save(buffer, format="PNG")
        return buffer.getvalue()

    return _png
