"""
Field extraction cascade for multi-line wallet statement blocks.

Each follow-line of a block is offered to RULES in order; the first rule
that accepts the line updates the FieldAccumulator and consumes the line.
Rules are data so their precedence can be read and tested directly.
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace

from stmtflow.models import TransactionType
from stmtflow.parsers.document_types import FieldAccumulator
from stmtflow.parsers.lexicon import TIME_PATTERN, parse_amount
from stmtflow.parsers.validation import logger

TRANSACTION_ID_PATTERN = re.compile(r"Transaction ID\s*:\s*([A-Za-z0-9]+)")
UTR_PATTERN = re.compile(r"UTR No\.?\s*:\s*([0-9]+)")
ACCOUNT_PATTERN = re.compile(r"(Debited from|Credited to)\s+(XX\d+|UPI Lite|Account)")
AMOUNT_PATTERN = re.compile(r"(Debit|Credit)\s+INR\s+([\d,]+\.?\d*)")

# Stripped from the start of a description line; the direction is applied
# only when the block has not set one yet.
DESCRIPTION_PREFIXES: tuple[tuple[str, TransactionType], ...] = (
    ("Paid to ", TransactionType.EXPENSE),
    ("Received from ", TransactionType.INCOME),
    ("Paid - ", TransactionType.EXPENSE),
    ("Paid", TransactionType.EXPENSE),
)

_PAGE_FOOTER = re.compile(r"^Page \d+ of \d+$", re.IGNORECASE)
_BARE_NUMBER = re.compile(r"^\d+$")
_THREE_LETTERS = re.compile(r"[A-Za-z]{3,}")

BOILERPLATE_MARKERS = (
    "This is a system generated statement",
    "Date Transaction Details Type Amount",
    "https://",
    "http://",
    "www.",
)

RuleAction = Callable[[FieldAccumulator, "re.Match[str] | None", str, list[str]], "FieldAccumulator | None"]


@dataclass(frozen=True)
class ExtractionRule:
    """One step of the cascade: a pattern plus what to do when it matches."""

    name: str
    pattern: re.Pattern[str] | None
    action: RuleAction

    def apply(self, fields: FieldAccumulator, line: str, warnings: list[str]) -> FieldAccumulator | None:
        """Return the updated fields, or None if this rule does not consume the line."""
        match = None
        if self.pattern is not None:
            match = self.pattern.search(line)
            if match is None:
                return None
        return self.action(fields, match, line, warnings)


def looks_like_description(line: str) -> bool:
    """Heuristic filter for lines that could be a payee / merchant description."""
    line = line.strip()
    if len(line) < 3:
        return False
    if _PAGE_FOOTER.match(line) or _BARE_NUMBER.match(line):
        return False
    if any(marker in line for marker in BOILERPLATE_MARKERS):
        return False
    return _THREE_LETTERS.search(line) is not None


def _set_time(fields, match, line, warnings):
    return replace(fields, time=line)


def _set_transaction_id(fields, match, line, warnings):
    return replace(fields, transaction_id=match.group(1))


def _set_utr(fields, match, line, warnings):
    return replace(fields, utr_no=match.group(1))


def _set_account(fields, match, line, warnings):
    return replace(fields, account_info=line)


def _set_amount(fields, match, line, warnings):
    direction_word, amount_str = match.group(1), match.group(2)
    amount = parse_amount(amount_str)
    if amount is None:
        logger.warning(f"Failed to parse amount: {amount_str}")
        warnings.append(f"Unparseable amount '{amount_str}' in line: {line}")
        return None
    direction = TransactionType.EXPENSE if direction_word == "Debit" else TransactionType.INCOME
    return replace(fields, amount=amount, type=direction, raw_amount_line=line)


def _set_description(fields, match, line, warnings):
    if fields.description is not None:
        return None

    for prefix, direction in DESCRIPTION_PREFIXES:
        if line.startswith(prefix):
            description = line[len(prefix):].strip()
            if not description:
                return None
            return replace(fields, description=description, type=fields.type or direction)

    if "Recharge" in line:
        return replace(fields, description="Mobile Recharge", type=fields.type or TransactionType.EXPENSE)

    if looks_like_description(line):
        return replace(fields, description=line)

    return None


RULES: tuple[ExtractionRule, ...] = (
    ExtractionRule("time", TIME_PATTERN, _set_time),
    ExtractionRule("transaction_id", TRANSACTION_ID_PATTERN, _set_transaction_id),
    ExtractionRule("utr", UTR_PATTERN, _set_utr),
    ExtractionRule("account", ACCOUNT_PATTERN, _set_account),
    ExtractionRule("amount", AMOUNT_PATTERN, _set_amount),
    ExtractionRule("description", None, _set_description),
)


def classify_line(
    line: str, fields: FieldAccumulator | None = None, warnings: list[str] | None = None
) -> tuple[str | None, FieldAccumulator]:
    """
    Run one line through the cascade.

    Returns:
        (name of the rule that consumed the line or None, updated fields)
    """
    fields = fields or FieldAccumulator()
    warnings = warnings if warnings is not None else []

    for rule in RULES:
        updated = rule.apply(fields, line, warnings)
        if updated is not None:
            return rule.name, updated

    return None, fields


def extract_fields(lines: Iterable[str]) -> tuple[FieldAccumulator, list[str]]:
    """
    Fold a block's follow-lines into a FieldAccumulator.

    Blank lines are skipped. Every other line is kept in raw_lines so the
    assembler can recover a description later.
    """
    fields = FieldAccumulator()
    warnings: list[str] = []

    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        fields = replace(fields, raw_lines=fields.raw_lines + (line,))
        _, fields = classify_line(line, fields, warnings)

    return fields, warnings
