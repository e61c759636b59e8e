"""
Row-oriented grammars: header-mapped grids and single-line text rows.

Grids come from CSV files and spreadsheets without a wallet banner; the
single-line grammar covers text documents whose rows carry no wallet date
anchor (typically HTML transaction tables).
"""

import re
from collections.abc import Iterable, Sequence

from stmtflow.models import ParsedTransaction, TransactionType
from stmtflow.parsers.document_types import RawDocument, SourceFormat
from stmtflow.parsers.lexicon import parse_amount, parse_date
from stmtflow.parsers.validation import (
    GrammarResult,
    log_parse_result,
    logger,
    normalize_whitespace,
    validate_description,
)
from stmtflow.services.categorizer import safe_categorize

GENERIC_LINE_PATTERN = re.compile(r"(\d{1,2}[/-]\d{1,2}[/-]\d{2,4})\s+([-+]?[₹$]?[\d,]+\.?\d*)\s+(.+)")
REFERENCE_DIGITS = re.compile(r"(\d{12,16})")
UPI_HANDLE = re.compile(r"([\w.-]+@[\w.-]+)")

# Header keyword → logical column. First keyword group that matches a header wins.
SIGNED_COLUMNS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("date", ("date", "time")),
    ("amount", ("amount", "value")),
    ("description", ("description", "details", "narration")),
    ("type", ("type", "dr/cr")),
)

DEBIT_CREDIT_COLUMNS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("date", ("date", "txn date", "transaction date")),
    ("description", ("description", "narration", "particulars")),
    ("debit", ("debit", "withdrawal")),
    ("credit", ("credit", "deposit")),
    ("balance", ("balance",)),
    ("reference", ("chq", "cheque", "ref")),
)

SIGNED_HEADER_KEYWORDS = ("date", "amount", "description")
DEBIT_CREDIT_HEADER_KEYWORDS = ("date", "debit", "credit", "description", "narration", "particulars")

_LEADING_VERB = re.compile(r"^(Paid to|Received from|Paid -)\s*")


def _clean_description(description: str) -> str:
    return _LEADING_VERB.sub("", normalize_whitespace(description))


def direction_from_type(type_str: str | None) -> TransactionType | None:
    """Read a Debit/Credit (or Dr/Cr) type cell; None when it says neither."""
    marker = (type_str or "").strip().lower()
    if marker.startswith(("debit", "dr")):
        return TransactionType.EXPENSE
    if marker.startswith(("credit", "cr")):
        return TransactionType.INCOME
    return None


def build_column_map(
    header: Sequence[str], columns: Iterable[tuple[str, tuple[str, ...]]]
) -> dict[str, int]:
    """
    Map logical column names to header positions.

    Each header cell is assigned to the first logical column whose keywords
    it contains; a later header cell for the same column overrides an earlier one.
    """
    columns = tuple(columns)
    column_map: dict[str, int] = {}

    for index, cell in enumerate(header):
        name = (cell or "").lower().strip()
        if not name:
            continue
        for column, keywords in columns:
            if any(keyword in name for keyword in keywords):
                column_map[column] = index
                break

    return column_map


def is_header_row(row: Sequence[str], keywords: Sequence[str]) -> bool:
    """Check whether any cell of a row carries a header keyword."""
    return any(keyword in (cell or "").lower() for cell in row for keyword in keywords)


def _cell(row: Sequence[str], column_map: dict[str, int], column: str) -> str | None:
    index = column_map.get(column)
    if index is None or index >= len(row):
        return None
    value = (row[index] or "").strip()
    return value or None


def extract_additional_info(line: str) -> tuple[str | None, str | None]:
    """
    Pull a reference number and a UPI handle out of a free-text row.

    Returns:
        (reference_number, counter_party)
    """
    reference = REFERENCE_DIGITS.search(line)
    handle = UPI_HANDLE.search(line)
    return (reference.group(1) if reference else None, handle.group(1) if handle else None)


def parse_generic_lines(lines: Iterable[str], source_format: SourceFormat) -> GrammarResult:
    """
    Parse rows of the form "<date> <signed amount> <description>".

    Negative amounts are expenses, positive amounts income.
    """
    result = GrammarResult()
    tag = source_format.label

    for line_number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line:
            continue

        match = GENERIC_LINE_PATTERN.search(line)
        if not match:
            continue

        result.units_attempted += 1
        date_str, amount_str, description = match.groups()

        txn_date = parse_date(date_str)
        if txn_date is None:
            result.reject(f"Line {line_number}: Invalid date '{date_str}'")
            continue

        amount = parse_amount(amount_str)
        if amount is None or amount == 0:
            result.reject(f"Line {line_number}: Invalid amount '{amount_str}'")
            continue

        cleaned = _clean_description(description)
        if not validate_description(cleaned):
            result.reject(f"Line {line_number}: Invalid description")
            continue

        direction = TransactionType.INCOME if amount > 0 else TransactionType.EXPENSE
        reference, counter_party = extract_additional_info(line)

        try:
            result.transactions.append(
                ParsedTransaction(
                    amount=abs(amount),
                    description=cleaned,
                    type=direction,
                    category=safe_categorize(description, amount, direction),
                    transaction_date=txn_date,
                    original_description=description,
                    counter_party=counter_party,
                    reference_number=reference,
                    source_format=tag,
                )
            )
        except ValueError as e:
            result.units_rejected += 1
            result.errors.append(f"Line {line_number}: Parse error - {e}")

    log_parse_result(result, f"{tag} rows")
    return result


def parse_signed_grid(document: RawDocument) -> GrammarResult:
    """
    Parse a header + rows grid with a single signed amount column.

    Expected columns (matched by keyword): date, amount, description. An
    optional type column (Debit/Credit) overrides the sign of the amount.
    """
    result = GrammarResult()
    tag = document.source_format.label

    if document.header is None:
        logger.warning(f"{tag}: No header row found")
        result.errors.append("No header row found")
        return result

    column_map = build_column_map(document.header, SIGNED_COLUMNS)
    missing = [column for column in ("date", "amount", "description") if column not in column_map]
    if missing:
        logger.warning(f"{tag}: Missing expected columns: {missing}")
        result.errors.append(f"Missing required columns: {', '.join(missing)}")
        return result

    for row_number, row in enumerate(document.rows or (), start=1):
        if not any((cell or "").strip() for cell in row):
            continue

        result.units_attempted += 1
        date_str = _cell(row, column_map, "date")
        amount_str = _cell(row, column_map, "amount")
        description = _cell(row, column_map, "description")

        if not date_str or not amount_str or not description:
            result.reject(f"Row {row_number}: Missing required field")
            continue

        txn_date = parse_date(date_str)
        if txn_date is None:
            result.reject(f"Row {row_number}: Invalid date '{date_str}'")
            continue

        amount = parse_amount(amount_str)
        if amount is None or amount == 0:
            result.reject(f"Row {row_number}: Invalid amount '{amount_str}'")
            continue

        cleaned = _clean_description(description)
        if not validate_description(cleaned):
            result.reject(f"Row {row_number}: Invalid description")
            continue

        direction = direction_from_type(_cell(row, column_map, "type"))
        if direction is None:
            direction = TransactionType.INCOME if amount > 0 else TransactionType.EXPENSE
        signed = -abs(amount) if direction == TransactionType.EXPENSE else abs(amount)

        try:
            result.transactions.append(
                ParsedTransaction(
                    amount=abs(amount),
                    description=cleaned,
                    type=direction,
                    category=safe_categorize(description, signed, direction),
                    transaction_date=txn_date,
                    original_description=description,
                    source_format=tag.upper(),
                )
            )
        except ValueError as e:
            result.units_rejected += 1
            result.errors.append(f"Row {row_number}: Parse error - {e}")

    log_parse_result(result, f"{tag} grid")
    return result


def parse_debit_credit_grid(document: RawDocument) -> GrammarResult:
    """
    Parse a bank export grid with separate debit and credit columns.

    A non-zero debit is an expense; otherwise a non-zero credit is income.
    """
    result = GrammarResult()
    tag = f"{document.source_format.label}-Kotak-Bank"

    if document.header is None:
        logger.warning(f"{tag}: Could not find header row")
        result.errors.append("Could not find header row")
        return result

    column_map = build_column_map(document.header, DEBIT_CREDIT_COLUMNS)
    logger.info(f"{tag}: columns identified: {column_map}")
    if "date" not in column_map or ("debit" not in column_map and "credit" not in column_map):
        result.errors.append("Missing required columns: date and debit/credit")
        return result

    for row_number, row in enumerate(document.rows or (), start=1):
        date_str = _cell(row, column_map, "date")
        if not date_str:
            continue

        result.units_attempted += 1
        txn_date = parse_date(date_str)
        if txn_date is None:
            result.reject(f"Row {row_number}: Invalid date '{date_str}'")
            continue

        debit = parse_amount(_cell(row, column_map, "debit"))
        credit = parse_amount(_cell(row, column_map, "credit"))

        if debit is not None and debit != 0:
            amount, direction = abs(debit), TransactionType.EXPENSE
        elif credit is not None and credit != 0:
            amount, direction = abs(credit), TransactionType.INCOME
        else:
            result.reject(f"Row {row_number}: No debit or credit amount")
            continue

        description = _cell(row, column_map, "description") or "Transaction"

        try:
            result.transactions.append(
                ParsedTransaction(
                    amount=amount,
                    description=_clean_description(description) or "Transaction",
                    type=direction,
                    category=safe_categorize(description, amount, direction),
                    transaction_date=txn_date,
                    original_description=description,
                    reference_number=_cell(row, column_map, "reference"),
                    source_format=tag,
                )
            )
        except ValueError as e:
            result.units_rejected += 1
            result.errors.append(f"Row {row_number}: Parse error - {e}")

    log_parse_result(result, tag)
    return result
