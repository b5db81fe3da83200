"""
Audit Logger

DESIGN DECISION: Every mutation of the store and every rejected input
is logged. This provides:
1. Complete traceability
2. Debugging capability
3. A recent-activity feed the UI can show

The audit logger:
- Writes structured JSON lines through structlog
- Gracefully handles failures (doesn't crash the app if logging fails)
- Keeps a bounded in-memory history of recent events
"""

from collections import deque
from typing import Optional

import structlog

from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditSeverity,
)


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An in-memory ring buffer (for the activity feed)
    """

    def __init__(self, history_size: int = 200):
        """
        Initialize audit logger.

        Args:
            history_size: How many recent events to keep in memory.
        """
        self._history: deque[AuditEvent] = deque(maxlen=history_size)
        self._logger = structlog.get_logger("expense_tracker.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the local log write succeeded. The event is kept
        in history either way.
        """
        self._history.append(event)
        log_dict = event.to_log_dict()

        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            # Logging must never break a user action
            return False

        return True

    def recent_events(self, limit: int = 50) -> list[AuditEvent]:
        """Most recent events, newest first."""
        events = list(self._history)
        events.reverse()
        return events[:limit]

    def log_store_loaded(self, storage_key: str, record_count: int) -> None:
        self.log(AuditEventBuilder.store_loaded(storage_key, record_count))

    def log_store_load_failed(self, storage_key: str, reason: str) -> None:
        self.log(AuditEventBuilder.store_load_failed(storage_key, reason))

    def log_store_saved(self, storage_key: str, record_count: int) -> None:
        self.log(AuditEventBuilder.store_saved(storage_key, record_count))

    def log_store_save_failed(self, storage_key: str, reason: str) -> None:
        self.log(AuditEventBuilder.store_save_failed(storage_key, reason))

    def log_store_backed_up(self, storage_key: str, backup_key: str) -> None:
        self.log(AuditEventBuilder.store_backed_up(storage_key, backup_key))

    def log_expense_added(
        self,
        expense_id: int,
        category: str,
        amount: str,
        has_receipt: bool,
    ) -> None:
        """Log a newly stored expense."""
        self.log(AuditEventBuilder.expense_added(
            expense_id=expense_id,
            category=category,
            amount=amount,
            has_receipt=has_receipt,
        ))

    def log_expense_rejected(self, issues: list[dict]) -> None:
        """Log an add attempt that failed validation."""
        self.log(AuditEventBuilder.expense_rejected(issues))

    def log_expense_deleted(self, expense_id: int, existed: bool) -> None:
        self.log(AuditEventBuilder.expense_deleted(expense_id, existed))

    def log_receipt_attached(self, filename: str, mime_type: str, size: int) -> None:
        self.log(AuditEventBuilder.receipt_attached(filename, mime_type, size))

    def log_receipt_rejected(self, filename: str, reason: str) -> None:
        self.log(AuditEventBuilder.receipt_rejected(filename, reason))

    def log_report_exported(
        self,
        filename: str,
        record_count: int,
        page_count: int,
    ) -> None:
        self.log(AuditEventBuilder.report_exported(filename, record_count, page_count))

    def log_report_export_failed(self, reason: str) -> None:
        self.log(AuditEventBuilder.report_export_failed(reason))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an unexpected error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        ))
