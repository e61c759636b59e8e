"""Duplicate flagging and confidence scoring for parsed transactions."""

import hashlib
import logging
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from stmtflow.models import ParsedTransaction

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.5
BRAND_BONUS = 0.3
HANDLE_BONUS = 0.2

# Well-known merchants and payment apps
BRAND_TOKENS: tuple[str, ...] = (
    "swiggy",
    "zomato",
    "amazon",
    "flipkart",
    "uber",
    "ola",
    "paytm",
    "phonepe",
    "gpay",
)

HANDLE_TOKENS: tuple[str, ...] = ("@", "upi")


class ExistenceOracle(Protocol):
    """Answers whether an equivalent transaction is already stored for an owner."""

    def exists(self, owner_id: str | None, amount: Decimal, description: str, timestamp: datetime) -> bool: ...


class NullOracle:
    """Oracle for callers without a transaction store: nothing is a duplicate."""

    def exists(self, owner_id: str | None, amount: Decimal, description: str, timestamp: datetime) -> bool:
        return False


def compute_transaction_hash(
    owner_id: str | None,
    timestamp: datetime,
    description: str,
    amount: Decimal,
) -> str:
    """
    Compute a unique hash for a transaction.

    Two transactions with the same owner, timestamp, description and amount
    hash the same regardless of which statement they came from.
    """
    # Normalize the data for consistent hashing
    normalized = f"{owner_id or ''}|{timestamp.isoformat()}|{description.strip().lower()}|{amount:.2f}"
    return hashlib.sha256(normalized.encode()).hexdigest()


def compute_confidence(description: str | None) -> float:
    """
    Score how recognisable a description is.

    Base 0.5, +0.3 for a known brand, +0.2 for a payment handle, capped at 1.0.
    """
    confidence = BASE_CONFIDENCE
    desc = (description or "").lower()

    if any(token in desc for token in BRAND_TOKENS):
        confidence += BRAND_BONUS
    if any(token in desc for token in HANDLE_TOKENS):
        confidence += HANDLE_BONUS

    return round(min(confidence, 1.0), 2)


def annotate(
    txn: ParsedTransaction,
    oracle: ExistenceOracle,
    owner_id: str | None = None,
    warnings: list[str] | None = None,
) -> ParsedTransaction:
    """
    Return a copy of txn with is_duplicate and confidence set.

    Confidence is scored on the raw statement text when there is one, so
    payment handles stripped during cleaning still count. An oracle failure
    marks the transaction as not duplicate and appends a warning instead of
    failing the batch.
    """
    try:
        duplicate = bool(oracle.exists(owner_id, txn.amount, txn.description, txn.transaction_date))
    except Exception as e:
        logger.warning(f"Duplicate check failed for '{txn.description}': {e}")
        if warnings is not None:
            warnings.append(f"Duplicate check failed for '{txn.description}': {e}")
        duplicate = False

    return txn.model_copy(
        update={
            "is_duplicate": duplicate,
            "confidence": compute_confidence(txn.original_description or txn.description),
        }
    )


def annotate_all(
    transactions: Iterable[ParsedTransaction],
    oracle: ExistenceOracle | None = None,
    owner_id: str | None = None,
) -> tuple[list[ParsedTransaction], list[str]]:
    """
    Annotate a batch in order.

    Returns:
        (annotated transactions, warnings from failed duplicate checks)
    """
    oracle = oracle or NullOracle()
    warnings: list[str] = []
    annotated = [annotate(txn, oracle, owner_id, warnings) for txn in transactions]
    return annotated, warnings
