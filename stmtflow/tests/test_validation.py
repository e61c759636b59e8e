"""Tests for the parser validation module."""

from decimal import Decimal

import pytest

from stmtflow.models import Category, ParsedTransaction, ParseResult, StatementMetadata, TransactionType
from stmtflow.parsers.validation import (
    EmptyDocument,
    FileTooLarge,
    GrammarResult,
    ValidationError,
    decode_text,
    log_parse_result,
    normalize_whitespace,
    validate_amount,
    validate_description,
    validate_file_contents,
)


class TestValidateFileContents:
    """Test file contents validation."""

    def test_rejects_empty_contents(self):
        """Should reject empty file contents."""
        with pytest.raises(EmptyDocument, match="empty"):
            validate_file_contents(b"", max_size=100)

    def test_rejects_too_small_contents(self):
        """Should reject files smaller than minimum size."""
        with pytest.raises(ValidationError, match="too small"):
            validate_file_contents(b"abc", max_size=100, min_size=10)

    def test_rejects_oversized_contents(self):
        """Should reject files over the size cap."""
        with pytest.raises(FileTooLarge):
            validate_file_contents(b"x" * 101, max_size=100)

    def test_accepts_valid_contents(self):
        """Should accept valid file contents."""
        validate_file_contents(b"Valid file contents here", max_size=100, min_size=10)


class TestDecodeText:
    """Test text decoding."""

    def test_decodes_utf8(self):
        assert decode_text("₹250".encode("utf-8")) == "₹250"

    def test_strips_utf8_bom(self):
        """Should handle UTF-8 BOM."""
        assert decode_text(b"\xef\xbb\xbfDate,Amount").startswith("Date")

    def test_falls_back_to_latin1(self):
        assert decode_text(b"caf\xe9") == "café"


class TestValidateAmount:
    """Test amount validation."""

    def test_accepts_positive(self):
        assert validate_amount(Decimal("0.01")) is True
        assert validate_amount(Decimal("250000")) is True

    def test_rejects_zero_negative_and_missing(self):
        assert validate_amount(Decimal("0")) is False
        assert validate_amount(Decimal("-5")) is False
        assert validate_amount(None) is False

    def test_no_upper_bound_by_default(self):
        assert validate_amount(Decimal("2000000000")) is True

    def test_explicit_upper_bound(self):
        assert validate_amount(Decimal("2000000000"), max_val=Decimal("1000000000")) is False
        assert validate_amount(Decimal("1000000000"), max_val=Decimal("1000000000")) is True

    def test_rejects_non_finite(self):
        assert validate_amount(Decimal("Infinity")) is False
        assert validate_amount(Decimal("NaN")) is False


class TestValidateDescription:
    def test_accepts_normal(self):
        assert validate_description("Example Store") is True

    def test_rejects_blank_and_long(self):
        assert validate_description("   ") is False
        assert validate_description(None) is False
        assert validate_description("x" * 501) is False


class TestNormalizeWhitespace:
    def test_collapses(self):
        assert normalize_whitespace("  a \t b\n c ") == "a b c"


class TestGrammarResult:
    """Test the internal grammar result."""

    def test_success_rate(self):
        result = GrammarResult(units_attempted=4)
        result.transactions.extend([object(), object(), object()])  # type: ignore[list-item]
        assert result.success_rate == 75.0

    def test_success_rate_when_empty(self):
        assert GrammarResult().success_rate == 0.0

    def test_summary_logs_success_rate(self, caplog):
        result = GrammarResult(units_attempted=4, units_rejected=1)
        result.transactions.extend([object(), object(), object()])  # type: ignore[list-item]

        with caplog.at_level("INFO", logger="stmtflow.parsers"):
            log_parse_result(result, "CSV grid")

        assert "success rate 75.0%" in caplog.text

    def test_reject(self):
        result = GrammarResult()
        result.reject("bad row")
        assert result.units_rejected == 1
        assert result.warnings == ["bad row"]

    def test_extend(self):
        first = GrammarResult(units_attempted=1, warnings=["a"])
        second = GrammarResult(units_attempted=2, units_rejected=1, errors=["e"])
        first.extend(second)
        assert first.units_attempted == 3
        assert first.units_rejected == 1
        assert first.warnings == ["a"]
        assert first.errors == ["e"]


class TestParsedTransactionModel:
    """Model-level invariants."""

    def _kwargs(self, **overrides):
        data = dict(
            amount=Decimal("10"),
            description="Shop",
            type=TransactionType.EXPENSE,
            category=Category.OTHER_EXPENSE,
            transaction_date="2025-05-30T10:15:00",
        )
        data.update(overrides)
        return data

    def test_valid(self):
        assert ParsedTransaction(**self._kwargs()).amount == Decimal("10")

    def test_rejects_non_positive_amount(self):
        with pytest.raises(ValueError):
            ParsedTransaction(**self._kwargs(amount=Decimal("0")))

    def test_rejects_blank_description(self):
        with pytest.raises(ValueError):
            ParsedTransaction(**self._kwargs(description="   "))

    def test_rejects_category_from_other_direction(self):
        with pytest.raises(ValueError):
            ParsedTransaction(**self._kwargs(category=Category.SALARY))

    def test_shared_categories_allowed_for_both(self):
        for direction in TransactionType:
            txn = ParsedTransaction(**self._kwargs(type=direction, category=Category.INVESTMENT))
            assert txn.category == Category.INVESTMENT


class TestParseResult:
    def test_ok_messages(self):
        assert ParseResult.ok([], StatementMetadata()).message == "No transactions found in the statement"

    def test_failure(self):
        result = ParseResult.failure("boom")
        assert result.success is False
        assert result.errors == ["boom"]
        assert result.transactions == []

    def test_date_range_absent(self):
        assert StatementMetadata().date_range is None
