"""
Main Orchestrator for Expense Tracker

This module ties together all the components and defines the flows the
presentation layer calls:
1. Add expense (form → validate → attach receipt → store → audit)
2. Delete expense
3. Dashboard, history and report views (store → aggregation engine)
4. PDF export (report view → exporter → artifact or reported failure)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is stored without passing validation
- Views never mutate the store
- Export failures are reported, never raised into the UI
- Every mutation is audited
"""

from collections.abc import Mapping
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from expense_tracker.aggregation import (
    available_months,
    build_dashboard,
    describe_filter,
    filter_expenses,
    sort_expenses,
    sum_amount,
    summarize,
)
from expense_tracker.audit import AuditLogger
from expense_tracker.config import Settings, get_settings
from expense_tracker.models.expense import Expense, ExpenseFilter, SortKey
from expense_tracker.models.receipt import ReceiptFile
from expense_tracker.models.views import DashboardSummary, HistoryView, ReportView
from expense_tracker.services.receipts import ReceiptError, ReceiptService
from expense_tracker.services.report import (
    ExportArtifact,
    PdfReportExporter,
    ReportExportError,
)
from expense_tracker.services.storage import (
    InMemoryStorage,
    LocalFileStorage,
    StorageBackend,
)
from expense_tracker.store import ExpenseStore
from expense_tracker.validation import ExpenseValidator, InvalidExpenseError


class ReceiptUploadData(BaseModel):
    """A file picked in the add form."""

    content: bytes
    filename: str
    mime_type: str


class AddExpenseOutcome(BaseModel):
    """Result of an add attempt, shaped for the UI."""
    model_config = ConfigDict(frozen=True)

    success: bool
    expense: Optional[Expense] = None
    message: str
    warnings: list[str] = Field(default_factory=list)


class ExportOutcome(BaseModel):
    """Result of a PDF export attempt, shaped for the UI."""
    model_config = ConfigDict(frozen=True)

    success: bool
    artifact: Optional[ExportArtifact] = None
    error_message: Optional[str] = None


class ExpenseTracker:
    """
    Application facade over the store and the services.

    Flow for adding an expense:
    1. Validate raw form input (errors block, warnings pass through)
    2. Encode the receipt, if any
    3. Add to the store (assigns id, persists)
    4. Audit
    """

    def __init__(
        self,
        store: ExpenseStore,
        validator: Optional[ExpenseValidator] = None,
        receipt_service: Optional[ReceiptService] = None,
        exporter: Optional[PdfReportExporter] = None,
        audit_logger: Optional[AuditLogger] = None,
        weekly_window_days: int = 7,
    ):
        self._store = store
        self._validator = validator or ExpenseValidator()
        self._receipt_service = receipt_service or ReceiptService()
        self._exporter = exporter or PdfReportExporter()
        self._audit_logger = audit_logger
        self._weekly_window_days = weekly_window_days

    @property
    def store(self) -> ExpenseStore:
        return self._store

    @property
    def validator(self) -> ExpenseValidator:
        return self._validator

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_expense(
        self,
        form: Mapping[str, Any],
        receipt_upload: Optional[ReceiptUploadData] = None,
        today: Optional[date] = None,
    ) -> AddExpenseOutcome:
        """
        Validate and store a new expense.

        Input errors (invalid amount, unreadable receipt, ...) come back as a
        failed outcome with a user-facing message; the store is unchanged.
        Storage failures propagate.
        """
        receipt = None
        if receipt_upload is not None:
            try:
                receipt = self._receipt_service.attach(
                    receipt_upload.content,
                    receipt_upload.filename,
                    receipt_upload.mime_type,
                )
            except ReceiptError as e:
                if self._audit_logger:
                    self._audit_logger.log_receipt_rejected(receipt_upload.filename, str(e))
                return AddExpenseOutcome(success=False, message=str(e))

            if self._audit_logger:
                self._audit_logger.log_receipt_attached(
                    receipt_upload.filename,
                    receipt_upload.mime_type,
                    len(receipt),
                )

        try:
            draft, result = self._validator.build_draft(form, receipt=receipt, today=today)
            expense = self._store.add(draft)
        except InvalidExpenseError as e:
            if self._audit_logger:
                self._audit_logger.log_expense_rejected([
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in e.issues
                ])
            return AddExpenseOutcome(success=False, message=e.user_message)

        if self._audit_logger:
            self._audit_logger.log_expense_added(
                expense_id=expense.id,
                category=expense.category.value,
                amount=str(expense.amount),
                has_receipt=expense.has_receipt,
            )

        return AddExpenseOutcome(
            success=True,
            expense=expense,
            message="Expense added",
            warnings=result.warnings,
        )

    def delete_expense(self, expense_id: int) -> bool:
        """Delete an expense. Unknown ids are a silent no-op."""
        removed = self._store.remove(expense_id)
        if self._audit_logger:
            self._audit_logger.log_expense_deleted(expense_id, removed)
        return removed

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def recent_expenses(self, limit: int = 5) -> list[Expense]:
        return self._store.recent(limit)

    def dashboard(self, today: Optional[date] = None) -> DashboardSummary:
        return build_dashboard(
            self._store.records,
            today=today,
            window_days=self._weekly_window_days,
        )

    def history(
        self,
        criteria: Optional[ExpenseFilter] = None,
        sort_key: SortKey = SortKey.DATE_DESC,
    ) -> HistoryView:
        """Filtered, sorted history plus its running total."""
        criteria = criteria or ExpenseFilter()
        records = self._store.records
        matching = sort_expenses(filter_expenses(records, criteria), sort_key)
        return HistoryView(
            filter=criteria,
            sort_key=sort_key,
            expenses=matching,
            total=sum_amount(matching),
            months=available_months(records),
        )

    def report(
        self,
        criteria: Optional[ExpenseFilter] = None,
        generated_at: Optional[datetime] = None,
    ) -> ReportView:
        """Filtered report in store order with its summary."""
        criteria = criteria or ExpenseFilter()
        matching = filter_expenses(self._store.records, criteria)
        return ReportView(
            filter=criteria,
            expenses=matching,
            summary=summarize(matching),
            generated_at=generated_at or datetime.now(),
            filter_description=describe_filter(criteria),
        )

    def export_report(
        self,
        criteria: Optional[ExpenseFilter] = None,
        generated_at: Optional[datetime] = None,
    ) -> ExportOutcome:
        """
        Export a filtered report to PDF.

        Rendering failures are audited and returned as a failed outcome.
        """
        report = self.report(criteria, generated_at=generated_at)
        try:
            artifact = self._exporter.export(report)
        except ReportExportError as e:
            if self._audit_logger:
                self._audit_logger.log_report_export_failed(str(e))
            return ExportOutcome(
                success=False,
                error_message="Failed to generate PDF",
            )

        if self._audit_logger:
            self._audit_logger.log_report_exported(
                artifact.filename,
                artifact.record_count,
                artifact.page_count,
            )
        return ExportOutcome(success=True, artifact=artifact)

    def receipt_for(self, expense_id: int) -> Optional[ReceiptFile]:
        """Downloadable receipt for an expense, or None if there is none."""
        expense = self._store.get(expense_id)
        if expense is None or not expense.has_receipt:
            return None
        try:
            return self._receipt_service.download(expense)
        except ReceiptError as e:
            if self._audit_logger:
                self._audit_logger.log_error(
                    error_type="receipt_unreadable",
                    error_message=str(e),
                    details={"expense_id": expense_id},
                )
            return None


def create_app_components(
    settings: Optional[Settings] = None,
    in_memory: bool = False,
    backend: Optional[StorageBackend] = None,
) -> tuple[ExpenseTracker, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use (defaults to get_settings())
        in_memory: Keep data in memory only (nothing is written to disk)
        backend: Explicit storage backend, overrides in_memory

    Returns:
        (tracker, audit_logger) with the store already loaded
    """
    settings = settings or get_settings()
    storage_settings = settings.storage
    app_settings = settings.app

    audit_logger = AuditLogger()

    if backend is None:
        backend = (
            InMemoryStorage()
            if in_memory
            else LocalFileStorage(Path(storage_settings.data_dir))
        )

    store = ExpenseStore(
        backend,
        storage_key=storage_settings.storage_key,
        audit_logger=audit_logger,
    )
    store.load()

    tracker = ExpenseTracker(
        store=store,
        validator=ExpenseValidator(
            max_amount=app_settings.max_expense_amount,
            future_date_tolerance_days=app_settings.future_date_tolerance_days,
        ),
        receipt_service=ReceiptService(settings.receipts),
        exporter=PdfReportExporter(settings.report),
        audit_logger=audit_logger,
        weekly_window_days=app_settings.weekly_window_days,
    )

    return tracker, audit_logger
