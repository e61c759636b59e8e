"""Reduce an anchor date plus extracted fields to a ParsedTransaction."""

import re
from datetime import datetime

from stmtflow.models import ParsedTransaction, TransactionType
from stmtflow.parsers.cascade import looks_like_description
from stmtflow.parsers.document_types import FieldAccumulator
from stmtflow.parsers.lexicon import parse_time
from stmtflow.parsers.validation import logger, normalize_whitespace, validate_amount
from stmtflow.services.categorizer import safe_categorize

UNKNOWN_DESCRIPTION = "Unknown Transaction"

_LEADING_VERB = re.compile(r"^(Paid to|Received from|Paid -)\s*")


def clean_description(description: str | None) -> str | None:
    """Collapse whitespace and drop a leading "Paid to" / "Received from" / "Paid -"."""
    if description is None or not description.strip():
        return None
    cleaned = _LEADING_VERB.sub("", normalize_whitespace(description))
    return cleaned or None


def determine_description(fields: FieldAccumulator) -> str:
    """
    Pick the best description for a block.

    Order: the cascade's description, then the first raw line that looks
    like a description and is not an amount / ID line, then a placeholder.
    """
    if fields.description and fields.description.strip():
        return fields.description

    for line in fields.raw_lines:
        if looks_like_description(line) and "INR" not in line and "Transaction ID" not in line:
            return line

    return UNKNOWN_DESCRIPTION


def assemble(
    anchor_date: datetime,
    fields: FieldAccumulator,
    source_format: str | None = None,
) -> ParsedTransaction | None:
    """
    Build a ParsedTransaction from a block's fields.

    Returns:
        The transaction, or None when the block has no positive amount
    """
    if not validate_amount(fields.amount):
        logger.debug(f"Transaction rejected: invalid amount {fields.amount}")
        return None

    description = determine_description(fields)
    cleaned = clean_description(description) or UNKNOWN_DESCRIPTION
    direction = fields.type or TransactionType.EXPENSE

    timestamp = anchor_date
    time_of_day = parse_time(fields.time)
    if time_of_day is not None:
        timestamp = datetime.combine(anchor_date.date(), time_of_day)

    return ParsedTransaction(
        amount=fields.amount,
        description=cleaned,
        type=direction,
        category=safe_categorize(description, fields.amount, direction),
        transaction_date=timestamp,
        original_description=description,
        counter_party=cleaned,
        reference_number=fields.utr_no,
        transaction_id=fields.transaction_id,
        source_format=source_format,
        notes=fields.account_info,
    )
