"""Shared validation utilities for statement grammars."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from stmtflow.models import ParsedTransaction

# Configure logging for parsers
logger = logging.getLogger("stmtflow.parsers")


@dataclass
class GrammarResult:
    """Result of running one provider grammar over a document."""

    transactions: list[ParsedTransaction] = field(default_factory=list)
    units_attempted: int = 0  # blocks or rows that looked like a transaction
    units_rejected: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        """Calculate the parsing success rate."""
        if self.units_attempted == 0:
            return 0.0
        return (len(self.transactions) / self.units_attempted) * 100

    def reject(self, warning: str) -> None:
        """Record a dropped block/row."""
        self.units_rejected += 1
        self.warnings.append(warning)

    def extend(self, other: "GrammarResult") -> None:
        self.transactions.extend(other.transactions)
        self.units_attempted += other.units_attempted
        self.units_rejected += other.units_rejected
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)


class ValidationError(Exception):
    """Raised when a document fails validation before parsing."""

    pass


class EmptyDocument(ValidationError):
    """The uploaded document has no bytes."""

    pass


class FileTooLarge(ValidationError):
    """The uploaded document exceeds the configured size cap."""

    pass


def validate_file_contents(contents: bytes, max_size: int, min_size: int = 1) -> None:
    """
    Validate file contents before parsing.

    Args:
        contents: Raw file bytes
        max_size: Maximum allowed size in bytes
        min_size: Minimum expected file size in bytes

    Raises:
        ValidationError: If validation fails
    """
    if not contents:
        raise EmptyDocument("File is empty")

    if len(contents) < min_size:
        raise ValidationError(f"File too small ({len(contents)} bytes), minimum {min_size} bytes expected")

    if len(contents) > max_size:
        raise FileTooLarge(f"File size must be less than {max_size // (1024 * 1024)}MB ({len(contents)} bytes)")


def decode_text(contents: bytes) -> str:
    """
    Decode text contents trying common encodings.

    Raises:
        ValidationError: If no encoding works
    """
    for encoding in ["utf-8-sig", "utf-8", "latin-1", "cp1252"]:
        try:
            return contents.decode(encoding)
        except UnicodeDecodeError:
            continue

    raise ValidationError("Could not decode file with any supported encoding (utf-8, latin-1, cp1252)")


def validate_amount(amount: Decimal | None, max_val: Decimal | None = None) -> bool:
    """
    Validate that a transaction amount is positive and finite.

    Args:
        amount: The amount to validate
        max_val: Optional upper bound; statement grammars pass none

    Returns:
        True if valid, False otherwise
    """
    if amount is None:
        return False

    if not amount.is_finite():
        return False

    if amount <= 0:
        return False

    return max_val is None or amount <= max_val


def validate_description(description: str | None, min_length: int = 1, max_length: int = 500) -> bool:
    """Validate a transaction description."""
    if not description:
        return False

    length = len(description.strip())
    return min_length <= length <= max_length


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces."""
    return " ".join(text.split())


def log_parse_result(result: GrammarResult, parser_name: str) -> None:
    """
    Log parsing results for debugging.

    Args:
        result: The grammar result
        parser_name: Name of the grammar
    """
    logger.info(
        f"{parser_name}: Parsed {len(result.transactions)} transactions "
        f"(attempted {result.units_attempted}, "
        f"rejected {result.units_rejected}, success rate {result.success_rate:.1f}%)"
    )

    if result.errors:
        for error in result.errors[:5]:  # Log first 5 errors
            logger.warning(f"{parser_name}: {error}")

    if result.warnings:
        for warning in result.warnings[:5]:  # Log first 5 warnings
            logger.debug(f"{parser_name}: {warning}")
