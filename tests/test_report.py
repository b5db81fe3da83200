"""
Tests for PDF report export.
"""

from datetime import date, datetime

import pytest

from expense_tracker.aggregation import describe_filter, filter_expenses, summarize
from expense_tracker.config import ReportSettings
from expense_tracker.models.expense import Category, ExpenseFilter
from expense_tracker.models.views import ReportView
from expense_tracker.services.report import PdfReportExporter, ReportExportError


GENERATED_AT = datetime(2024, 3, 15, 18, 30)


def make_report(records, criteria=None):
    criteria = criteria or ExpenseFilter()
    matching = filter_expenses(records, criteria)
    return ReportView(
        filter=criteria,
        expenses=matching,
        summary=summarize(matching),
        generated_at=GENERATED_AT,
        filter_description=describe_filter(criteria),
    )


@pytest.fixture
def exporter():
    return PdfReportExporter(ReportSettings())


class TestPdfExport:
    """Tests for PdfReportExporter."""

    def test_export_produces_pdf(self, exporter, make_expense):
        report = make_report([
            make_expense("12.50", description="Lunch"),
            make_expense("30", category=Category.TRANSPORT, description="Taxi"),
        ])

        artifact = exporter.export(report)

        assert artifact.content.startswith(b"%PDF")
        assert artifact.media_type == "application/pdf"
        assert artifact.filename == "expense-report-2024-03-15.pdf"
        assert artifact.page_count == 1
        assert artifact.record_count == 2

    def test_explicit_export_date(self, exporter, make_expense):
        artifact = exporter.export(make_report([make_expense()]), export_date=date(2024, 5, 6))
        assert artifact.filename == "expense-report-2024-05-06.pdf"

    def test_filename_prefix_setting(self):
        exporter = PdfReportExporter(ReportSettings(filename_prefix="spending"))
        assert exporter.filename_for(date(2024, 1, 2)) == "spending-2024-01-02.pdf"

    def test_long_report_spans_pages(self, exporter, make_expense):
        records = [
            make_expense(str(n + 1), description=f"Item {n}")
            for n in range(200)
        ]

        artifact = exporter.export(make_report(records))

        assert artifact.page_count > 1
        assert artifact.record_count == 200

    def test_empty_report(self, exporter, make_expense):
        report = make_report(
            [make_expense()],
            ExpenseFilter(category=Category.HEALTH),
        )

        artifact = exporter.export(report)

        assert report.is_empty
        assert artifact.content.startswith(b"%PDF")
        assert artifact.page_count == 1
        assert artifact.record_count == 0

    def test_markup_in_descriptions_is_escaped(self, exporter, make_expense):
        report = make_report(
            [make_expense(description="<b>Fish & Chips</b> <unclosed")],
            ExpenseFilter(text_query="<b>"),
        )
        artifact = exporter.export(report)
        assert artifact.record_count == 1

    def test_rendering_failure_wrapped(self, exporter, make_expense, monkeypatch):
        def broken_story(report):
            raise RuntimeError("font missing")

        monkeypatch.setattr(exporter, "_build_story", broken_story)

        with pytest.raises(ReportExportError) as exc_info:
            exporter.export(make_report([make_expense()]))

        assert "font missing" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
