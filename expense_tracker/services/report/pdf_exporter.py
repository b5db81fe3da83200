"""
PDF Report Exporter

Renders a finalized ReportView into a paginated A4 PDF using reportlab's
platypus layout engine. Content that does not fit on one page flows onto
the next; the expense table repeats its header row on every page.

The exporter's only contract with the rest of the system:
- Input: a filtered report (records + summary + filter description)
- Output: an ExportArtifact, or ReportExportError on any rendering failure
"""

from datetime import date
from io import BytesIO
from typing import Optional
from xml.sax.saxutils import escape

from pydantic import BaseModel, ConfigDict, Field
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from expense_tracker.config import ReportSettings, get_settings
from expense_tracker.models.views import ReportView


PAGE_MARGIN = 50
CONTENT_WIDTH = A4[0] - 2 * PAGE_MARGIN


class ReportExportError(Exception):
    """The report could not be rendered."""
    pass


class ExportArtifact(BaseModel):
    """A downloadable export."""
    model_config = ConfigDict(frozen=True)

    filename: str
    content: bytes
    media_type: str = "application/pdf"
    page_count: int = Field(ge=1)
    record_count: int = Field(ge=0)


class PdfReportExporter:
    """
    Builds expense report PDFs.

    Layout:
    1. Title, generation time and active filters
    2. Summary table (total, average, count)
    3. Category breakdown
    4. Detailed expense table
    """

    def __init__(self, settings: Optional[ReportSettings] = None):
        self._settings = settings or get_settings().report
        self._styles = getSampleStyleSheet()
        self._styles.add(ParagraphStyle(
            name="Muted",
            parent=self._styles["Normal"],
            textColor=colors.HexColor("#4B5563"),
        ))
        self._styles.add(ParagraphStyle(
            name="Cell",
            parent=self._styles["Normal"],
            fontSize=9,
            leading=11,
        ))

    def filename_for(self, export_date: date) -> str:
        return f"{self._settings.filename_prefix}-{export_date.isoformat()}.pdf"

    def _money(self, amount) -> str:
        return f"{self._settings.currency_symbol}{amount:,.2f}"

    def _build_story(self, report: ReportView) -> list:
        styles = self._styles
        story = []

        story.append(Paragraph(escape(self._settings.title), styles["Title"]))
        story.append(Paragraph(
            report.generated_at.strftime("Generated on %d %b %Y at %H:%M"),
            styles["Muted"],
        ))
        if report.filter_description:
            story.append(Paragraph(
                f"Filters: {escape(report.filter_description)}",
                styles["Muted"],
            ))
        story.append(Spacer(1, 18))

        if report.is_empty:
            story.append(Paragraph("No expenses found", styles["Heading2"]))
            story.append(Paragraph("Try adjusting your filters", styles["Muted"]))
            return story

        summary = report.summary

        totals = Table(
            [
                ["Total Expense", "Average Expense", "Total Transactions"],
                [self._money(summary.total), self._money(summary.average), str(summary.count)],
            ],
            colWidths=[CONTENT_WIDTH / 3] * 3,
        )
        totals.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor("#E5E7EB")),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTNAME', (0, 1), (-1, 1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 1), (-1, 1), 14),
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('TOPPADDING', (0, 1), (-1, 1), 8),
            ('BOTTOMPADDING', (0, 1), (-1, 1), 8),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor("#9CA3AF")),
        ]))
        story.append(totals)
        story.append(Spacer(1, 18))

        if summary.by_category:
            story.append(Paragraph("By Category", styles["Heading3"]))
            rows = [["Category", "Amount"]]
            rows += [
                [category.value, self._money(amount)]
                for category, amount in summary.by_category.items()
            ]
            breakdown = Table(rows, colWidths=[CONTENT_WIDTH * 0.6, CONTENT_WIDTH * 0.4])
            breakdown.setStyle(TableStyle([
                ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor("#E5E7EB")),
                ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
                ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
                ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor("#9CA3AF")),
            ]))
            story.append(breakdown)
            story.append(Spacer(1, 18))

        story.append(Paragraph("Detailed Expenses", styles["Heading3"]))
        rows = [["Date", "Description", "Category", "Payment", "Amount"]]
        for expense in report.expenses:
            rows.append([
                expense.date.strftime("%d %b %Y"),
                Paragraph(escape(expense.description or "-"), styles["Cell"]),
                expense.category.value,
                expense.payment_method.value,
                self._money(expense.amount),
            ])
        rows.append(["", "", "", "Total", self._money(summary.total)])

        detail = Table(
            rows,
            colWidths=[70, CONTENT_WIDTH - 310, 80, 80, 80],
            repeatRows=1,
        )
        detail.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor("#E5E7EB")),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('ALIGN', (-1, 0), (-1, -1), 'RIGHT'),
            ('LINEBELOW', (0, 0), (-1, 0), 1, colors.black),
            ('LINEBELOW', (0, 1), (-1, -2), 0.25, colors.HexColor("#D1D5DB")),
            ('LINEABOVE', (0, -1), (-1, -1), 1, colors.black),
        ]))
        story.append(detail)

        return story

    def render(self, report: ReportView) -> tuple[bytes, int]:
        """
        Render a report to PDF bytes.

        Returns: (pdf_bytes, page_count)
        """
        buffer = BytesIO()
        pages = []

        def draw_footer(canvas, doc):
            pages.append(doc.page)
            canvas.saveState()
            canvas.setFont("Helvetica", 8)
            canvas.setFillColor(colors.HexColor("#6B7280"))
            canvas.drawRightString(A4[0] - PAGE_MARGIN, 25, f"Page {doc.page}")
            canvas.restoreState()

        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=PAGE_MARGIN,
            rightMargin=PAGE_MARGIN,
            topMargin=PAGE_MARGIN,
            bottomMargin=PAGE_MARGIN,
            title=self._settings.title,
        )
        doc.build(
            self._build_story(report),
            onFirstPage=draw_footer,
            onLaterPages=draw_footer,
        )
        return buffer.getvalue(), max(pages, default=1)

    def export(
        self,
        report: ReportView,
        export_date: Optional[date] = None,
    ) -> ExportArtifact:
        """
        Render a report into a named, downloadable artifact.

        Raises:
            ReportExportError: If rendering fails for any reason
        """
        export_date = export_date or report.generated_at.date()
        try:
            content, page_count = self.render(report)
        except Exception as e:
            raise ReportExportError(f"Failed to generate PDF: {e}") from e

        return ExportArtifact(
            filename=self.filename_for(export_date),
            content=content,
            page_count=page_count,
            record_count=len(report.expenses),
        )
