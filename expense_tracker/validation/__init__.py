"""Input validation package."""

from expense_tracker.validation.validator import (
    ExpenseValidator,
    InvalidExpenseError,
    is_storable_amount,
)

__all__ = ["ExpenseValidator", "InvalidExpenseError", "is_storable_amount"]
