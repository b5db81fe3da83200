"""
Data Models Package

This package contains all Pydantic models used in the Expense Tracker.
All data flowing through the system must conform to these schemas.
"""

from expense_tracker.models.expense import (
    ALL,
    CATEGORY_ICONS,
    Category,
    Expense,
    ExpenseDraft,
    ExpenseFilter,
    PaymentMethod,
    SortKey,
    ValidationIssue,
    ValidationResult,
)
from expense_tracker.models.receipt import ReceiptFile, ReceiptUpload
from expense_tracker.models.views import (
    DailyTotal,
    DashboardSummary,
    HistoryView,
    ReportSummary,
    ReportView,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "ALL",
    "CATEGORY_ICONS",
    "Category",
    "Expense",
    "ExpenseDraft",
    "ExpenseFilter",
    "PaymentMethod",
    "SortKey",
    "ValidationIssue",
    "ValidationResult",
    # Receipt models
    "ReceiptFile",
    "ReceiptUpload",
    # View models
    "DailyTotal",
    "DashboardSummary",
    "HistoryView",
    "ReportSummary",
    "ReportView",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
