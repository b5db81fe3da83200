"""
Derived View Models

Read-only results computed from the full record set by the aggregation
engine. Nothing here is persisted; every view is rebuilt on demand.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from expense_tracker.models.expense import (
    Category,
    Expense,
    ExpenseFilter,
    SortKey,
)


class DailyTotal(BaseModel):
    """Spending for one calendar day."""
    model_config = ConfigDict(frozen=True)

    date: date
    label: str = Field(
        ...,
        description="Abbreviated weekday name, e.g. 'Mon'"
    )
    total: Decimal = Decimal("0")


class ReportSummary(BaseModel):
    """Totals shown at the top of a report."""
    model_config = ConfigDict(frozen=True)

    total: Decimal = Decimal("0")
    count: int = Field(default=0, ge=0)
    average: Decimal = Decimal("0")
    by_category: dict[Category, Decimal] = Field(
        default_factory=dict,
        description="Category totals, largest first"
    )


class DashboardSummary(BaseModel):
    """
    Current month overview.

    `change_percent` follows the month-over-month policy: it is 0 when the
    previous month had no spending.
    """
    model_config = ConfigDict(frozen=True)

    month_key: str
    previous_month_key: str
    current_total: Decimal = Decimal("0")
    previous_total: Decimal = Decimal("0")
    change_percent: Decimal = Decimal("0")
    category_breakdown: dict[Category, Decimal] = Field(default_factory=dict)
    weekly: list[DailyTotal] = Field(default_factory=list)

    @property
    def is_increase(self) -> bool:
        return self.change_percent >= 0

    @property
    def max_weekly_total(self) -> Decimal:
        """Largest daily total, never below 1 so bar heights stay defined."""
        return max([d.total for d in self.weekly] + [Decimal("1")])

    def weekly_bar_heights(self) -> list[float]:
        """Each day's total as a fraction of the busiest day, in 0..1."""
        peak = self.max_weekly_total
        return [float(d.total / peak) for d in self.weekly]

    def category_share(self, category: Category) -> Decimal:
        """Percentage of this month's spending in one category."""
        if not self.current_total:
            return Decimal("0")
        amount = self.category_breakdown.get(category, Decimal("0"))
        return amount / self.current_total * 100


class HistoryView(BaseModel):
    """Filtered and sorted history list."""
    model_config = ConfigDict(frozen=True)

    filter: ExpenseFilter
    sort_key: SortKey
    expenses: list[Expense] = Field(default_factory=list)
    total: Decimal = Decimal("0")
    months: list[str] = Field(
        default_factory=list,
        description="Month keys present in the full record set, newest first"
    )


class ReportView(BaseModel):
    """A finalized, filtered report ready for display or export."""
    model_config = ConfigDict(frozen=True)

    filter: ExpenseFilter
    expenses: list[Expense] = Field(default_factory=list)
    summary: ReportSummary
    generated_at: datetime
    filter_description: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.expenses
