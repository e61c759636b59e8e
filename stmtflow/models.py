"""Data models for stmtflow."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator


class TransactionType(str, Enum):
    """Direction of money movement."""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Category(str, Enum):
    """Spending / income categories assigned by the taxonomy."""

    # Income
    SALARY = "SALARY"
    FREELANCE = "FREELANCE"
    BUSINESS = "BUSINESS"
    OTHER_INCOME = "OTHER_INCOME"

    # Shared by both directions
    INVESTMENT = "INVESTMENT"
    FRIENDS_TRANSFERS = "FRIENDS_TRANSFERS"

    # Expense
    FOOD = "FOOD"
    TRANSPORTATION = "TRANSPORTATION"
    ENTERTAINMENT = "ENTERTAINMENT"
    SHOPPING = "SHOPPING"
    UTILITIES = "UTILITIES"
    HEALTHCARE = "HEALTHCARE"
    EDUCATION = "EDUCATION"
    TRAVEL = "TRAVEL"
    RENT = "RENT"
    INSURANCE = "INSURANCE"
    OTHER_EXPENSE = "OTHER_EXPENSE"


INCOME_CATEGORIES = frozenset(
    {
        Category.SALARY,
        Category.FREELANCE,
        Category.INVESTMENT,
        Category.BUSINESS,
        Category.FRIENDS_TRANSFERS,
        Category.OTHER_INCOME,
    }
)

EXPENSE_CATEGORIES = frozenset(
    {
        Category.FOOD,
        Category.TRANSPORTATION,
        Category.ENTERTAINMENT,
        Category.SHOPPING,
        Category.UTILITIES,
        Category.HEALTHCARE,
        Category.EDUCATION,
        Category.TRAVEL,
        Category.RENT,
        Category.INSURANCE,
        Category.INVESTMENT,
        Category.FRIENDS_TRANSFERS,
        Category.OTHER_EXPENSE,
    }
)


def categories_for(direction: TransactionType) -> frozenset[Category]:
    """Categories a transaction of the given direction may carry."""
    return INCOME_CATEGORIES if direction == TransactionType.INCOME else EXPENSE_CATEGORIES


def fallback_category(direction: TransactionType) -> Category:
    """The generic bucket for a direction."""
    return Category.OTHER_INCOME if direction == TransactionType.INCOME else Category.OTHER_EXPENSE


class ProviderId(str, Enum):
    """Statement-issuing providers the caller can declare."""

    PHONEPE = "PHONEPE"
    KOTAK_BANK = "KOTAK_BANK"
    GOOGLEPAY = "GOOGLEPAY"
    BHIM_UPI = "BHIM_UPI"
    PAYTM = "PAYTM"
    BANK_STATEMENT = "BANK_STATEMENT"


class ParsedTransaction(BaseModel):
    """A normalized transaction extracted from a statement."""

    amount: Decimal = Field(gt=0)
    description: str = Field(min_length=1)
    type: TransactionType
    category: Category
    transaction_date: datetime
    original_description: str | None = None  # Raw description from statement
    counter_party: str | None = None  # UPI handle or merchant name
    reference_number: str | None = None  # UTR / bank reference
    transaction_id: str | None = None  # Provider transaction ID
    source_format: str | None = None  # e.g. "PDF-PhonePe-Enhanced"
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    is_duplicate: bool | None = None
    notes: str | None = None  # Account line or parsing notes

    @field_validator("description")
    @classmethod
    def _description_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("description must not be blank")
        return value

    @model_validator(mode="after")
    def _category_matches_direction(self) -> "ParsedTransaction":
        if self.category not in categories_for(self.type):
            raise ValueError(f"category {self.category.value} is not valid for {self.type.value}")
        return self


class StatementMetadata(BaseModel):
    """Summary of a parse invocation."""

    file_name: str | None = None
    file_format: str | None = None
    file_size_bytes: int = 0
    total_transactions: int = 0
    parsed_transactions: int = 0
    duplicate_transactions: int = 0
    error_transactions: int = 0
    date_range_start: date | None = None
    date_range_end: date | None = None

    @property
    def date_range(self) -> str | None:
        """Human-readable span, e.g. "2025-05-01 to 2025-05-30"."""
        if self.date_range_start is None or self.date_range_end is None:
            return None
        return f"{self.date_range_start.isoformat()} to {self.date_range_end.isoformat()}"


class ParseResult(BaseModel):
    """Response of a statement parse."""

    success: bool
    message: str
    transactions: list[ParsedTransaction] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    metadata: StatementMetadata = Field(default_factory=StatementMetadata)

    @classmethod
    def ok(
        cls,
        transactions: list[ParsedTransaction],
        metadata: StatementMetadata,
        warnings: list[str] | None = None,
        errors: list[str] | None = None,
    ) -> "ParseResult":
        message = "Statement parsed successfully" if transactions else "No transactions found in the statement"
        return cls(
            success=True,
            message=message,
            transactions=transactions,
            warnings=warnings or [],
            errors=errors or [],
            metadata=metadata,
        )

    @classmethod
    def failure(cls, message: str, metadata: StatementMetadata | None = None) -> "ParseResult":
        return cls(
            success=False,
            message=message,
            errors=[message],
            metadata=metadata or StatementMetadata(),
        )
