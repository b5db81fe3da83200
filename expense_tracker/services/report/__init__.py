"""Report export services package."""

from expense_tracker.services.report.pdf_exporter import (
    ExportArtifact,
    PdfReportExporter,
    ReportExportError,
)

__all__ = [
    "ExportArtifact",
    "PdfReportExporter",
    "ReportExportError",
]
