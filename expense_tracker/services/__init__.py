"""Services package."""

from expense_tracker.services.receipts import (
    InvalidReceiptError,
    ReceiptError,
    ReceiptService,
    ReceiptTooLargeError,
    UnsupportedReceiptTypeError,
)
from expense_tracker.services.report import (
    ExportArtifact,
    PdfReportExporter,
    ReportExportError,
)
from expense_tracker.services.storage import (
    InMemoryStorage,
    LocalFileStorage,
    StorageBackend,
    StorageError,
    StorageReadError,
    StorageWriteError,
)

__all__ = [
    # Receipt services
    "InvalidReceiptError",
    "ReceiptError",
    "ReceiptService",
    "ReceiptTooLargeError",
    "UnsupportedReceiptTypeError",
    # Report services
    "ExportArtifact",
    "PdfReportExporter",
    "ReportExportError",
    # Storage services
    "InMemoryStorage",
    "LocalFileStorage",
    "StorageBackend",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
]
