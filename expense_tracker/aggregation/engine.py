"""
Aggregation Engine

DESIGN DECISION: Aggregation is a set of PURE functions.
Every view (dashboard, history, report) recomputes its slice from the full
record set with these same primitives instead of keeping derived caches.
The record set is one person's expenses, so recomputation is cheap and
there is no cache to invalidate.

GUARANTEES:
- Input sequences are never mutated
- Sorting is stable (ties keep their existing relative order)
- Empty input yields zero totals, never an error
"""

from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from expense_tracker.models.expense import (
    Category,
    Expense,
    ExpenseFilter,
    SortKey,
)
from expense_tracker.models.views import (
    DailyTotal,
    DashboardSummary,
    ReportSummary,
)


ZERO = Decimal("0")
ONE_DECIMAL = Decimal("0.1")


# =============================================================================
# MONTH KEYS
# =============================================================================

def month_key(day: date) -> str:
    """Calendar month of a date as YYYY-MM."""
    return day.strftime("%Y-%m")


def previous_month_key(day: date) -> str:
    """Month key of the month before the one containing `day`."""
    first_of_month = day.replace(day=1)
    return month_key(first_of_month - timedelta(days=1))


def available_months(records: Iterable[Expense]) -> list[str]:
    """Distinct month keys present in the records, newest first."""
    return sorted({r.month_key for r in records}, reverse=True)


# =============================================================================
# FILTER / SORT
# =============================================================================

def _matches(record: Expense, criteria: ExpenseFilter) -> bool:
    if criteria.text_query:
        needle = criteria.text_query.lower()
        if (
            needle not in record.description.lower()
            and needle not in record.category.value.lower()
        ):
            return False

    if criteria.category is not None and record.category != criteria.category:
        return False

    if criteria.month_key is not None and record.month_key != criteria.month_key:
        return False

    # Dates carry no time, so an inclusive end date covers the whole day
    if criteria.date_from is not None and record.date < criteria.date_from:
        return False
    if criteria.date_to is not None and record.date > criteria.date_to:
        return False

    return True


def filter_expenses(
    records: Sequence[Expense],
    criteria: Optional[ExpenseFilter] = None,
) -> list[Expense]:
    """
    Return the records satisfying every supplied predicate, in input order.

    No criteria (or an empty filter) returns a copy of the input.
    """
    if criteria is None or criteria.is_empty:
        return list(records)
    return [r for r in records if _matches(r, criteria)]


def sort_expenses(
    records: Sequence[Expense],
    key: SortKey = SortKey.DATE_DESC,
) -> list[Expense]:
    """
    Stable sort by date or amount.

    `sorted(..., reverse=True)` keeps equal elements in their original
    order, so descending sorts are stable too.
    """
    key = SortKey(key)
    if key == SortKey.DATE_DESC:
        return sorted(records, key=lambda r: r.date, reverse=True)
    if key == SortKey.DATE_ASC:
        return sorted(records, key=lambda r: r.date)
    if key == SortKey.AMOUNT_DESC:
        return sorted(records, key=lambda r: r.amount, reverse=True)
    if key == SortKey.AMOUNT_ASC:
        return sorted(records, key=lambda r: r.amount)
    raise ValueError(f"Unsupported sort key: {key}")


# =============================================================================
# REDUCTIONS
# =============================================================================

def sum_amount(records: Iterable[Expense]) -> Decimal:
    """Total amount; 0 for empty input."""
    return sum((r.amount for r in records), ZERO)


def average(records: Sequence[Expense]) -> Decimal:
    """Mean amount; 0 for empty input."""
    if not records:
        return ZERO
    return sum_amount(records) / len(records)


def by_category(records: Iterable[Expense]) -> dict[Category, Decimal]:
    """
    Category totals, largest first.

    Categories without records are omitted. Equal totals keep the order
    in which their category first appeared.
    """
    totals: dict[Category, Decimal] = {}
    for record in records:
        totals[record.category] = totals.get(record.category, ZERO) + record.amount
    return dict(sorted(totals.items(), key=lambda item: item[1], reverse=True))


def by_day_of_week(
    records: Iterable[Expense],
    window_days: int = 7,
    anchor_date: Optional[date] = None,
) -> list[DailyTotal]:
    """
    Daily totals over a trailing window ending at `anchor_date` (inclusive).

    Every day in the window is present; days without expenses total 0.
    Output is chronological.
    """
    if window_days < 1:
        raise ValueError("window_days must be at least 1")

    anchor = anchor_date or date.today()
    days = [anchor - timedelta(days=offset) for offset in range(window_days - 1, -1, -1)]
    totals = {day: ZERO for day in days}

    for record in records:
        if record.date in totals:
            totals[record.date] += record.amount

    return [
        DailyTotal(date=day, label=day.strftime("%a"), total=totals[day])
        for day in days
    ]


def month_over_month_change(current_total: Decimal, previous_total: Decimal) -> Decimal:
    """
    Percentage change from the previous month, rounded to one decimal.

    POLICY: When the previous total is 0 the percentage is undefined;
    we report 0 so the dashboard has something to show. Callers that need
    to tell "no change" from "no baseline" must check previous_total.
    """
    current = Decimal(current_total)
    previous = Decimal(previous_total)
    if previous == 0:
        return ZERO
    change = (current - previous) / previous * 100
    return change.quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)


# =============================================================================
# COMPOSITE VIEWS
# =============================================================================

def summarize(records: Sequence[Expense]) -> ReportSummary:
    """Totals block for a report."""
    return ReportSummary(
        total=sum_amount(records),
        count=len(records),
        average=average(records),
        by_category=by_category(records),
    )


def build_dashboard(
    records: Sequence[Expense],
    today: Optional[date] = None,
    window_days: int = 7,
) -> DashboardSummary:
    """
    Current month overview: totals, comparison with last month,
    category breakdown for this month and the trailing daily series.
    """
    today = today or date.today()
    current_key = month_key(today)
    previous_key = previous_month_key(today)

    current = filter_expenses(records, ExpenseFilter(month_key=current_key))
    previous = filter_expenses(records, ExpenseFilter(month_key=previous_key))

    current_total = sum_amount(current)
    previous_total = sum_amount(previous)

    return DashboardSummary(
        month_key=current_key,
        previous_month_key=previous_key,
        current_total=current_total,
        previous_total=previous_total,
        change_percent=month_over_month_change(current_total, previous_total),
        category_breakdown=by_category(current),
        weekly=by_day_of_week(records, window_days=window_days, anchor_date=today),
    )


def describe_filter(criteria: ExpenseFilter) -> Optional[str]:
    """
    Human-readable description of a filter for report headers.

    Returns None when the filter is empty.
    """
    if criteria.is_empty:
        return None

    parts = []
    if criteria.date_from and criteria.date_to:
        parts.append(
            f"From {criteria.date_from.strftime('%d %b %Y')} "
            f"to {criteria.date_to.strftime('%d %b %Y')}"
        )
    elif criteria.date_from:
        parts.append(f"From {criteria.date_from.strftime('%d %b %Y')}")
    elif criteria.date_to:
        parts.append(f"Until {criteria.date_to.strftime('%d %b %Y')}")

    if criteria.month_key:
        year, month = criteria.month_key.split("-")
        parts.append(f"Month: {date(int(year), int(month), 1).strftime('%B %Y')}")
    if criteria.category:
        parts.append(f"Category: {criteria.category.value}")
    if criteria.text_query:
        parts.append(f'Search: "{criteria.text_query}"')

    return " | ".join(parts)
