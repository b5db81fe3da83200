"""
Audit Models for Expense Tracker

Every mutation, rejection and failure is recorded as an audit event.
This provides:
1. Traceability of every change to the store
2. Debugging information when things go wrong
3. A recent-activity feed for the UI

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Store lifecycle
    STORE_LOADED = "store_loaded"
    STORE_LOAD_FAILED = "store_load_failed"
    STORE_SAVED = "store_saved"
    STORE_SAVE_FAILED = "store_save_failed"
    STORE_BACKED_UP = "store_backed_up"

    # Mutations
    EXPENSE_ADDED = "expense_added"
    EXPENSE_REJECTED = "expense_rejected"
    EXPENSE_DELETED = "expense_deleted"

    # Receipts
    RECEIPT_ATTACHED = "receipt_attached"
    RECEIPT_REJECTED = "receipt_rejected"

    # Reports
    REPORT_EXPORTED = "report_exported"
    REPORT_EXPORT_FAILED = "report_export_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = Field(default=AuditSeverity.INFO)

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'store', 'report')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(expense_id, category, amount)
        event = AuditEventBuilder.store_load_failed(key, reason)
    """

    @staticmethod
    def store_loaded(storage_key: str, record_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOADED,
            entity_type="store",
            entity_id=storage_key,
            description=f"Loaded {record_count} expenses",
            details={"record_count": record_count},
        )

    @staticmethod
    def store_load_failed(storage_key: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="store",
            entity_id=storage_key,
            description="Persisted expenses were unreadable; starting empty",
            error_message=reason,
        )

    @staticmethod
    def store_saved(storage_key: str, record_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_SAVED,
            severity=AuditSeverity.DEBUG,
            entity_type="store",
            entity_id=storage_key,
            description=f"Saved {record_count} expenses",
            details={"record_count": record_count},
        )

    @staticmethod
    def store_save_failed(storage_key: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="store",
            entity_id=storage_key,
            description="Failed to persist expenses",
            error_message=reason,
        )

    @staticmethod
    def store_backed_up(storage_key: str, backup_key: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_BACKED_UP,
            severity=AuditSeverity.WARNING,
            entity_type="store",
            entity_id=storage_key,
            description=f"Unreadable expenses copied to {backup_key} before overwrite",
            details={"backup_key": backup_key},
        )

    @staticmethod
    def expense_added(
        expense_id: int,
        category: str,
        amount: str,
        has_receipt: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=str(expense_id),
            description=f"Expense added: {category} - {amount}",
            details={
                "category": category,
                "amount": amount,
                "has_receipt": has_receipt,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_rejected(issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            description=f"Expense rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(expense_id: int, existed: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=str(expense_id),
            description=(
                f"Expense {expense_id} deleted"
                if existed
                else f"Expense {expense_id} not found; nothing deleted"
            ),
            details={"existed": existed},
            is_user_action=True,
        )

    @staticmethod
    def receipt_attached(filename: str, mime_type: str, size: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_ATTACHED,
            entity_type="receipt",
            description=f"Receipt attached: {filename}",
            details={
                "filename": filename,
                "mime_type": mime_type,
                "encoded_size_bytes": size,
            },
            is_user_action=True,
        )

    @staticmethod
    def receipt_rejected(filename: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="receipt",
            description=f"Receipt rejected: {filename}",
            error_message=reason,
            details={"filename": filename},
            is_user_action=True,
        )

    @staticmethod
    def report_exported(filename: str, record_count: int, page_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_EXPORTED,
            entity_type="report",
            entity_id=filename,
            description=f"Report exported: {filename} ({page_count} pages)",
            details={
                "record_count": record_count,
                "page_count": page_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def report_export_failed(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_EXPORT_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="report",
            description="Report export failed",
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
