"""Aggregation engine package."""

from expense_tracker.aggregation.engine import (
    available_months,
    average,
    build_dashboard,
    by_category,
    by_day_of_week,
    describe_filter,
    filter_expenses,
    month_key,
    month_over_month_change,
    previous_month_key,
    sort_expenses,
    sum_amount,
    summarize,
)

__all__ = [
    "available_months",
    "average",
    "build_dashboard",
    "by_category",
    "by_day_of_week",
    "describe_filter",
    "filter_expenses",
    "month_key",
    "month_over_month_change",
    "previous_month_key",
    "sort_expenses",
    "sum_amount",
    "summarize",
]
