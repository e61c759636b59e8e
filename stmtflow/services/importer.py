"""Caller-side selection of parsed transactions for import."""

import calendar
import logging
from collections.abc import Iterable
from datetime import date, datetime

from stmtflow.models import ParsedTransaction

logger = logging.getLogger(__name__)


def shift_to_month(timestamp: datetime, today: date) -> datetime:
    """
    Move a timestamp into today's year and month.

    The day is clamped to the target month's length; hour and minute are kept.
    """
    last_day = calendar.monthrange(today.year, today.month)[1]
    return timestamp.replace(
        year=today.year,
        month=today.month,
        day=min(timestamp.day, last_day),
        second=0,
        microsecond=0,
    )


def select_for_import(
    transactions: Iterable[ParsedTransaction],
    skip_duplicates: bool = True,
    shift_to_current_month: bool = False,
    today: date | None = None,
) -> list[ParsedTransaction]:
    """
    Pick the transactions a caller should persist.

    Args:
        transactions: Transactions from a ParseResult
        skip_duplicates: Drop transactions the annotator flagged as duplicates
        shift_to_current_month: Re-date transactions into the current month
        today: Reference date for shifting (defaults to date.today())

    Returns:
        New transaction objects; the input is not modified
    """
    today = today or date.today()
    selected: list[ParsedTransaction] = []
    skipped = 0

    for txn in transactions:
        if skip_duplicates and txn.is_duplicate:
            skipped += 1
            continue

        update = {}
        if shift_to_current_month:
            update["transaction_date"] = shift_to_month(txn.transaction_date, today)
        selected.append(txn.model_copy(update=update))

    logger.info(f"Selected {len(selected)} transactions for import, skipped {skipped} duplicates")
    return selected
