"""
Keyword-based transaction categorization.

Categories are checked in a fixed order and the first keyword hit wins.
Several keywords appear under more than one category ("hotel" is both FOOD
and TRAVEL, "mobile" is both SHOPPING and UTILITIES), so the order of the
rule tables decides the outcome.
"""

import logging
from collections.abc import Iterable, Sequence
from decimal import Decimal

from stmtflow.config import settings
from stmtflow.models import Category, TransactionType, fallback_category

logger = logging.getLogger(__name__)

CategoryRule = tuple[Category, tuple[str, ...]]


INCOME_RULES: tuple[CategoryRule, ...] = (
    (Category.SALARY, ("salary", "wages", "payroll")),
    (Category.FREELANCE, ("freelance", "consulting")),
    (
        Category.INVESTMENT,
        ("dividend", "interest", "profit", "returns", "mutual fund", "int.pd", "cashback"),
    ),
    (Category.BUSINESS, ("business", "revenue", "sales")),
    # UPI money received from people
    (Category.FRIENDS_TRANSFERS, ("received from", "transfer from")),
)


EXPENSE_RULES: tuple[CategoryRule, ...] = (
    (
        Category.FOOD,
        (
            # Delivery platforms and chains
            "swiggy", "zomato", "kfc", "mcdonald", "domino", "pizza", "burger",
            # Regional food
            "bhojnalay", "biryani", "dabeli", "roll", "juice", "idli", "vada",
            "pav", "dosa", "misal", "chicken", "bhel", "sandwich", "snacks",
            # Places to eat
            "prasad mess", "canteen", "hotel",
        ),
    ),
    (
        Category.TRANSPORTATION,
        (
            "uber", "ola", "redbus", "metro", "fuel", "petrol", "diesel",
            "parking", "toll", "bus", "auto", "rickshaw", "rapido", "cab",
        ),
    ),
    (
        Category.SHOPPING,
        (
            # E-commerce
            "amazon", "flipkart", "myntra", "ajio",
            # Electronics
            "reliance digital", "croma", "electronics", "mobile", "gadget", "device",
            # Groceries
            "dmart", "grocery", "vegetable", "fruit", "blinkit", "zepto", "grofers",
            "star bazaar", "bigbasket",
            "shopping",
        ),
    ),
    (
        Category.UTILITIES,
        (
            "electricity", "msedcl", "water", "gas", "wifi", "broadband",
            "mobile recharge", "airtel", "vi", "jio", "vodafone", "idea", "bsnl",
            "recharge", "bill payment",
        ),
    ),
    (
        Category.TRAVEL,
        ("travel", "flight", "ticket", "oyo", "resort", "lodge", "hotel", "accommodation", "trip"),
    ),
    (
        Category.EDUCATION,
        ("school", "college", "fees", "course", "training", "udemy", "byju", "academy", "learning"),
    ),
    (
        Category.HEALTHCARE,
        ("hospital", "clinic", "pharmacy", "medical", "medicine", "chemist"),
    ),
    (
        Category.INVESTMENT,
        ("groww", "zerodha", "upstox", "sip", "investment", "stocks", "mutual fund", "rd", "fd"),
    ),
)

# Generic terms of the friends/transfer bucket; personal names come from settings.
TRANSFER_KEYWORDS: tuple[str, ...] = ("transfer", "upi/")


def _first_match(desc: str, rules: Iterable[CategoryRule]) -> Category | None:
    for category, keywords in rules:
        if any(keyword in desc for keyword in keywords):
            return category
    return None


def transfer_rule(contacts: Sequence[str] | None = None) -> CategoryRule:
    """Build the friends/transfer rule from the generic terms plus a contact roster."""
    names = settings.transfer_contacts if contacts is None else contacts
    roster = tuple(name.strip().lower() for name in names if name and name.strip())
    return (Category.FRIENDS_TRANSFERS, TRANSFER_KEYWORDS + roster)


def categorize(
    description: str | None,
    amount: Decimal | None,
    direction: TransactionType,
    contacts: Sequence[str] | None = None,
) -> Category:
    """
    Assign a category to a transaction description.

    Args:
        description: Transaction description (matched case-insensitively)
        amount: Transaction amount (not used by the keyword rules)
        direction: INCOME or EXPENSE; selects the rule table
        contacts: Personal names for the transfer rule (defaults to settings)

    Returns:
        The first matching category, or the direction's OTHER bucket
    """
    if not description or not description.strip():
        return fallback_category(direction)

    desc = description.lower()

    if direction == TransactionType.INCOME:
        return _first_match(desc, INCOME_RULES) or Category.OTHER_INCOME

    rules = EXPENSE_RULES + (transfer_rule(contacts),)
    return _first_match(desc, rules) or Category.OTHER_EXPENSE


def safe_categorize(
    description: str | None,
    amount: Decimal | None,
    direction: TransactionType,
    contacts: Sequence[str] | None = None,
) -> Category:
    """Categorize, falling back to the OTHER bucket on any failure."""
    try:
        return categorize(description, amount, direction, contacts)
    except Exception as e:
        logger.warning(f"Failed to categorize transaction, using default: {e}")
        return fallback_category(direction)
