"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation of form input happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Amount is numeric, finite and positive
- Date is an ISO calendar date
- Category and payment method belong to their closed sets

STAGE 2 - SEMANTIC VALIDATION:
- Future date detection
- Absurd amount detection
- These only produce warnings; the user may still save

IMPORTANT: Validation NEVER silently fixes issues.
It reports them; errors block creation of the expense.
"""

import re
from collections.abc import Mapping
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from expense_tracker.config import get_settings
from expense_tracker.models.expense import (
    Category,
    ExpenseDraft,
    PaymentMethod,
    ValidationIssue,
    ValidationResult,
)


ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MAX_DESCRIPTION_LENGTH = 500

CENT = Decimal("0.01")
# Whole cents below this have at most 15 significant digits, which the JSON
# number format round-trips exactly
MAX_STORABLE_AMOUNT = Decimal("1e13")


def is_storable_amount(amount: Decimal) -> bool:
    """True if the amount is whole cents and small enough to persist exactly."""
    if not amount.is_finite() or abs(amount) >= MAX_STORABLE_AMOUNT:
        return False
    return amount == amount.quantize(CENT)


class InvalidExpenseError(ValueError):
    """Expense input was rejected; no record was created."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        errors = [i.message for i in issues if i.severity == "error"]
        super().__init__("; ".join(errors) or "Invalid expense")

    @classmethod
    def for_amount(cls, amount: Any) -> "InvalidExpenseError":
        return cls([
            ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message=f"Amount must be greater than zero (got {amount})",
                severity="error",
                suggested_fix="Please enter a valid amount",
            )
        ])

    @classmethod
    def for_precision(cls, amount: Any) -> "InvalidExpenseError":
        return cls([_precision_issue(amount)])

    @property
    def user_message(self) -> str:
        return str(self)


def _precision_issue(amount: Any) -> ValidationIssue:
    if isinstance(amount, Decimal) and amount.is_finite() and abs(amount) >= MAX_STORABLE_AMOUNT:
        message = f"Amount is too large (got {amount})"
    else:
        message = f"Amount can have at most two decimal places (got {amount})"
    return ValidationIssue(
        field="amount",
        issue_type="invalid_precision",
        message=message,
        severity="error",
        suggested_fix="Please enter the amount in whole cents, e.g. 12.50",
    )


def _parse_amount(raw: Any) -> tuple[Optional[Decimal], Optional[ValidationIssue]]:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None, ValidationIssue(
            field="amount",
            issue_type="missing",
            message="Amount is required",
            severity="error",
            suggested_fix="Please enter a valid amount",
        )
    if isinstance(raw, bool):
        raw = "invalid"
    try:
        amount = Decimal(str(raw).strip())
    except InvalidOperation:
        return None, ValidationIssue(
            field="amount",
            issue_type="invalid_format",
            message=f"Amount '{raw}' is not a number",
            severity="error",
            suggested_fix="Please enter a valid amount",
        )
    if not amount.is_finite():
        return None, ValidationIssue(
            field="amount",
            issue_type="invalid_format",
            message=f"Amount '{raw}' is not a number",
            severity="error",
            suggested_fix="Please enter a valid amount",
        )
    if amount <= 0:
        return amount, ValidationIssue(
            field="amount",
            issue_type="invalid_value",
            message="Amount must be greater than zero",
            severity="error",
            suggested_fix="Please enter a valid amount",
        )
    if not is_storable_amount(amount):
        return amount, _precision_issue(amount)
    return amount, None


def _parse_date(raw: Any) -> tuple[Optional[date], Optional[ValidationIssue]]:
    if raw is None or raw == "":
        return None, ValidationIssue(
            field="date",
            issue_type="missing",
            message="Date is required",
            severity="error",
        )
    if isinstance(raw, date):
        return raw, None
    text = str(raw).strip()
    if ISO_DATE.match(text):
        try:
            return date.fromisoformat(text), None
        except ValueError:
            pass
    return None, ValidationIssue(
        field="date",
        issue_type="invalid_format",
        message=f"Date '{raw}' is not a valid YYYY-MM-DD date",
        severity="error",
    )


class ExpenseValidator:
    """
    Validates raw expense form input through a two-stage pipeline.

    Stage 1: Schema validation
    Stage 2: Semantic validation (only when stage 1 passes)
    """

    def __init__(
        self,
        max_amount: Optional[float] = None,
        future_date_tolerance_days: Optional[int] = None,
    ):
        app = get_settings().app
        self._max_amount = Decimal(str(
            max_amount if max_amount is not None else app.max_expense_amount
        ))
        self._future_tolerance = (
            future_date_tolerance_days
            if future_date_tolerance_days is not None
            else app.future_date_tolerance_days
        )

    def _validate_schema(
        self,
        form: Mapping[str, Any],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        _, amount_issue = _parse_amount(form.get("amount"))
        if amount_issue:
            issues.append(amount_issue)

        _, date_issue = _parse_date(form.get("date"))
        if date_issue:
            issues.append(date_issue)

        category = form.get("category")
        try:
            Category(category)
        except ValueError:
            issues.append(ValidationIssue(
                field="category",
                issue_type="invalid_value",
                message=f"Unknown category: {category}",
                severity="error",
                suggested_fix=f"Choose one of: {', '.join(c.value for c in Category)}",
            ))

        method = form.get("payment_method", form.get("paymentMethod"))
        if method is not None:
            try:
                PaymentMethod(method)
            except ValueError:
                issues.append(ValidationIssue(
                    field="payment_method",
                    issue_type="invalid_value",
                    message=f"Unknown payment method: {method}",
                    severity="error",
                    suggested_fix=(
                        f"Choose one of: {', '.join(m.value for m in PaymentMethod)}"
                    ),
                ))

        description = form.get("description") or ""
        if len(str(description)) > MAX_DESCRIPTION_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description is longer than {MAX_DESCRIPTION_LENGTH} characters",
                severity="error",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        form: Mapping[str, Any],
        today: date,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        amount, _ = _parse_amount(form.get("amount"))
        expense_date, _ = _parse_date(form.get("date"))

        max_future_date = today + timedelta(days=self._future_tolerance)
        if expense_date and expense_date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Expense date ({expense_date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        if amount is not None and amount > self._max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(
        self,
        form: Mapping[str, Any],
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            form: Raw form values (strings or already-typed values)
            today: Reference date for future-date checks

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(form)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(
                form, today or date.today()
            )
            all_issues.extend(semantic_issues)

        warnings = [i.message for i in all_issues if i.severity == "warning"]

        return ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def build_draft(
        self,
        form: Mapping[str, Any],
        receipt: Optional[str] = None,
        today: Optional[date] = None,
    ) -> tuple[ExpenseDraft, ValidationResult]:
        """
        Validate form input and convert it into an ExpenseDraft.

        Raises:
            InvalidExpenseError: If any error-level issue was found
        """
        result = self.validate(form, today=today)
        if result.has_errors:
            raise InvalidExpenseError(result.issues)

        amount, _ = _parse_amount(form.get("amount"))
        expense_date, _ = _parse_date(form.get("date"))
        method = form.get("payment_method", form.get("paymentMethod")) or PaymentMethod.CASH

        draft = ExpenseDraft(
            date=expense_date,
            category=Category(form["category"]),
            amount=amount.quantize(CENT),
            description=form.get("description") or "",
            payment_method=PaymentMethod(method),
            receipt=receipt,
        )
        return draft, result

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a user-friendly summary of validation results.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed!"

        lines = []

        if not result.schema_valid:
            lines.append("❌ Please fix the following:")
            for issue in result.errors:
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
