"""
Kotak Mahindra Bank statement grammar.

Bank statements are row-oriented. Each row starts with a dd-mm-yyyy date and
ends with the amount and running balance, each marked (Dr) or (Cr):

    01-12-2023 UPI/JohnDoe/Payment UPI-998877 500.00(Dr) 10,000.00(Cr)

Long narrations wrap onto following lines without repeating the date.
"""

import re
from collections.abc import Sequence
from datetime import datetime

from stmtflow.models import ParsedTransaction, TransactionType
from stmtflow.parsers.document_types import RawDocument, SourceFormat
from stmtflow.parsers.lexicon import parse_amount
from stmtflow.parsers.tabular import parse_debit_credit_grid
from stmtflow.parsers.validation import (
    GrammarResult,
    log_parse_result,
    logger,
    normalize_whitespace,
    validate_amount,
)
from stmtflow.services.categorizer import safe_categorize

ROW_PATTERN = re.compile(r"^(\d{2}-\d{2}-\d{4})\s+(.+)")
AMOUNT_MARKER = re.compile(r"([\d,]+\.\d{2})\((Dr|Cr)\)")
REFERENCE_PATTERN = re.compile(r"\b([A-Z]{2,}-\d+|\d{12,})\b")

SKIP_PREFIXES = ("Date", "Page")
SKIP_MARKERS = ("Statement Summary", "Opening Balance", "Branch", "IFSC", "Period :")

_TRAILING_NOISE = (
    re.compile(r"/Payment\s+from\s+Ph$"),
    re.compile(r"/NO\s+REMARKS$"),
    re.compile(r"/UPI$"),
)

FALLBACK_DESCRIPTION = "Transaction"


def is_noise(line: str) -> bool:
    """Header, footer and summary lines that never hold a transaction."""
    return line.startswith(SKIP_PREFIXES) or any(marker in line for marker in SKIP_MARKERS)


def merge_continuation(lines: Sequence[str], start: int) -> tuple[str, int]:
    """
    Join a dated row with its wrapped continuation lines.

    Returns:
        (merged text, index of the last line consumed)
    """
    merged = lines[start].strip()
    index = start

    while index + 1 < len(lines):
        following = lines[index + 1].strip()
        if not following or ROW_PATTERN.match(following) or is_noise(following):
            break
        merged = f"{merged} {following}"
        index += 1

    return merged, index


def upi_counter_party(description: str) -> str | None:
    """Name segment of a "UPI/<name>/<note>" narration."""
    if not description.startswith("UPI/"):
        return None
    parts = [part.strip() for part in description.split("/")[1:] if part.strip()]
    return parts[0] if parts else None


def clean_kotak_description(description: str) -> str:
    """Turn a raw narration into a readable description."""
    cleaned = normalize_whitespace(description)
    for pattern in _TRAILING_NOISE:
        cleaned = pattern.sub("", cleaned)

    if cleaned.startswith("UPI/"):
        parts = [part.strip() for part in cleaned.split("/")[1:] if part.strip()]
        if not parts:
            return cleaned
        name = parts[0]
        if len(parts) > 1 and not parts[1].isdigit():
            return f"{name} - {parts[1]}"
        return name

    if cleaned.startswith("MB:"):
        cleaned = f"Mobile Banking: {cleaned[3:].strip()}"

    return cleaned.strip() or FALLBACK_DESCRIPTION


def parse_row(date_str: str, details: str, tag: str) -> ParsedTransaction | None:
    """
    Apply the column grammar to a merged row.

    Returns:
        The transaction, or None when the row has no usable amount marker
    """
    txn_date = datetime.strptime(date_str, "%d-%m-%Y")

    markers = AMOUNT_MARKER.findall(details)
    if not markers:
        return None

    # First pair is the transaction amount; a second pair is the running balance.
    amount_str, marker = markers[0]
    amount = parse_amount(amount_str)
    if not validate_amount(amount):
        return None

    direction = TransactionType.EXPENSE if marker == "Dr" else TransactionType.INCOME

    narration = normalize_whitespace(AMOUNT_MARKER.sub("", details))
    reference = None
    ref_match = REFERENCE_PATTERN.search(narration)
    if ref_match:
        reference = ref_match.group(1)
        narration = normalize_whitespace(narration.replace(reference, ""))

    narration = narration or FALLBACK_DESCRIPTION
    description = clean_kotak_description(narration)

    return ParsedTransaction(
        amount=amount,
        description=description,
        type=direction,
        category=safe_categorize(narration, amount, direction),
        transaction_date=txn_date,
        original_description=narration,
        counter_party=upi_counter_party(narration),
        reference_number=reference,
        source_format=tag,
    )


def parse_kotak_lines(lines: Sequence[str], source_format: SourceFormat) -> GrammarResult:
    """Parse bank statement text line by line."""
    result = GrammarResult()
    tag = f"{source_format.label}-Kotak-Bank"
    lines = [line.strip() for line in lines]

    index = 0
    while index < len(lines):
        line = lines[index]
        if not line or is_noise(line) or not ROW_PATTERN.match(line):
            index += 1
            continue

        merged, last = merge_continuation(lines, index)
        line_number = index + 1
        index = last + 1

        result.units_attempted += 1
        date_str, details = ROW_PATTERN.match(merged).groups()

        try:
            txn = parse_row(date_str, details, tag)
        except ValueError as e:
            result.reject(f"Line {line_number}: Invalid row '{merged}': {e}")
            continue

        if txn is None:
            result.reject(f"Line {line_number}: No amount found in '{merged}'")
            continue

        logger.debug(f"Kotak row {line_number}: {txn.description} {txn.amount} {txn.type.value}")
        result.transactions.append(txn)

    log_parse_result(result, tag)
    return result


def parse_kotak(document: RawDocument) -> GrammarResult:
    """Bank grammar entry point for any routed document."""
    if document.is_grid:
        return parse_debit_credit_grid(document)
    return parse_kotak_lines(document.lines or (), document.source_format)
