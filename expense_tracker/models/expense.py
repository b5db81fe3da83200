"""
Core Data Models for Expense Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable in the persisted JSON format
4. Stay immutable once created

DESIGN DECISION: Persisted field names are kept exactly as previously saved
data has them (`paymentMethod`, numeric `id` and `amount`). Python code uses
snake_case attributes; aliases handle the storage format.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Category(str, Enum):
    """
    Supported expense categories.

    DESIGN DECISION: Categories are a closed set. Rendering code maps every
    member explicitly; an unknown category is an error, never a fallback icon.
    """
    FOOD = "Food"
    TRANSPORT = "Transport"
    BILLS = "Bills"
    ENTERTAINMENT = "Entertainment"
    HEALTH = "Health"
    SHOPPING = "Shopping"
    OTHER = "Other"

    @property
    def icon(self) -> str:
        return CATEGORY_ICONS[self]


CATEGORY_ICONS: dict[Category, str] = {
    Category.FOOD: "🍔",
    Category.TRANSPORT: "🚗",
    Category.BILLS: "📄",
    Category.ENTERTAINMENT: "🎬",
    Category.HEALTH: "💊",
    Category.SHOPPING: "🛍️",
    Category.OTHER: "📌",
}

_unmapped = set(Category) - set(CATEGORY_ICONS)
if _unmapped:
    raise RuntimeError(f"Categories without an icon: {sorted(c.value for c in _unmapped)}")


class PaymentMethod(str, Enum):
    """How an expense was paid."""
    CASH = "Cash"
    CREDIT_CARD = "Credit Card"
    DEBIT_CARD = "Debit Card"
    UPI = "UPI"
    BANK_TRANSFER = "Bank Transfer"


class SortKey(str, Enum):
    """Display orderings offered by the history view."""
    DATE_DESC = "date-desc"
    DATE_ASC = "date-asc"
    AMOUNT_DESC = "amount-desc"
    AMOUNT_ASC = "amount-asc"

    @property
    def label(self) -> str:
        return SORT_LABELS[self]


SORT_LABELS: dict[SortKey, str] = {
    SortKey.DATE_DESC: "Newest First",
    SortKey.DATE_ASC: "Oldest First",
    SortKey.AMOUNT_DESC: "Highest Amount",
    SortKey.AMOUNT_ASC: "Lowest Amount",
}

# Sentinel the UI uses for "no category/month filter"
ALL = "All"


# =============================================================================
# EXPENSE RECORDS
# =============================================================================

class ExpenseDraft(BaseModel):
    """
    Expense input that has not been assigned an id yet.

    The amount is deliberately unconstrained here: the store is the
    component that rejects non-positive amounts at creation time.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    date: date
    category: Category
    amount: Decimal
    description: str = Field(
        default="",
        description="Free-text description; length is limited at input, not on load"
    )
    payment_method: PaymentMethod = Field(
        default=PaymentMethod.CASH,
        alias="paymentMethod",
    )
    receipt: Optional[str] = Field(
        default=None,
        description="Inline receipt payload as a base64 data URL"
    )

    @field_validator('description', mode='before')
    @classmethod
    def none_description_is_empty(cls, v: Optional[str]) -> str:
        return "" if v is None else v

    @field_validator('receipt')
    @classmethod
    def validate_receipt(cls, v: Optional[str]) -> Optional[str]:
        """Receipts are data URLs; an empty value means no receipt."""
        if not v:
            return None
        if not v.startswith("data:") or ";base64," not in v:
            raise ValueError("Receipt must be a base64 data URL")
        return v


class Expense(ExpenseDraft):
    """
    A stored expense record.

    CRITICAL: Records are immutable. They are created once by the store and
    only ever removed, never edited.
    """

    id: int = Field(
        ...,
        gt=0,
        description="Creation-time identifier, unique and increasing"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive amount in the configured currency"
    )

    @field_serializer('amount', when_used='json')
    def serialize_amount(self, v: Decimal) -> Union[int, float]:
        """
        Previously saved data stores amounts as JSON numbers.

        New amounts are whole cents with at most 15 significant digits
        (enforced by the validator and the store), so the float written
        here reads back as exactly the same Decimal.
        """
        if v == v.to_integral_value():
            return int(v)
        return float(v)

    @property
    def month_key(self) -> str:
        return self.date.strftime("%Y-%m")

    @property
    def display_title(self) -> str:
        return self.description or self.category.value

    @property
    def has_receipt(self) -> bool:
        return self.receipt is not None

    def to_storage_dict(self) -> dict:
        """Convert to the persisted JSON shape."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# FILTER CONFIGURATION
# =============================================================================

class ExpenseFilter(BaseModel):
    """
    Immutable filter parameters for the aggregation engine.

    All supplied predicates are combined with AND. An empty filter
    matches every record; an end date before the start date matches none.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    text_query: str = Field(
        default="",
        description="Case-insensitive substring of description or category"
    )
    category: Optional[Category] = None
    month_key: Optional[str] = Field(
        default=None,
        pattern=r"^\d{4}-(0[1-9]|1[0-2])$",
        description="Calendar month as YYYY-MM"
    )
    date_from: Optional[date] = Field(
        default=None,
        description="Inclusive start date"
    )
    date_to: Optional[date] = Field(
        default=None,
        description="Inclusive end date"
    )

    @field_validator('text_query', mode='before')
    @classmethod
    def none_query_is_empty(cls, v: Optional[str]) -> str:
        return "" if v is None else v

    @field_validator('category', 'month_key', mode='before')
    @classmethod
    def all_means_unset(cls, v):
        """The UI passes "All" (or nothing) to disable a selector."""
        if v is None or v == "" or v == ALL:
            return None
        return v

    @field_validator('date_from', 'date_to', mode='before')
    @classmethod
    def blank_date_is_unset(cls, v):
        if v == "":
            return None
        return v

    @property
    def is_empty(self) -> bool:
        return not (
            self.text_query
            or self.category
            or self.month_key
            or self.date_from
            or self.date_to
        )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (types, required fields)
    Stage 2: Semantic validation (plausibility checks)
    """

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool

    issues: list[ValidationIssue] = Field(default_factory=list)

    # Warnings don't block but should be shown
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]
