"""Tests for the PhonePe wallet grammar."""

from datetime import datetime
from decimal import Decimal

from stmtflow.models import Category, TransactionType
from stmtflow.parsers.document_types import RawDocument, SourceFormat
from stmtflow.parsers.phonepe import PDF_SOURCE_TAG, parse_phonepe, parse_phonepe_lines

STATEMENT_LINES = [
    "Transaction Statement for 9876543210",
    "May 01, 2025 - May 30, 2025",
    "Date Transaction Details Type Amount",
    "May 30, 2025",
    "10:15 AM",
    "Paid to Swiggy",
    "Transaction ID : T2505301015A",
    "UTR No : 512345678901",
    "Debited from XX1234",
    "Debit INR 349.00",
    "May 29, 2025",
    "06:40 PM",
    "Received from Jane Smith",
    "Transaction ID : T2505291840B",
    "Credited to XX1234",
    "Credit INR 1,500.00",
    "Page 1 of 2",
    "This is a system generated statement",
    "May 28, 2025",
    "09:00 AM",
    "Airtel Prepaid Recharge",
    "Transaction ID : T2505280900C",
    "Debit INR 299",
]


class TestScenarios:
    """Behaviour required of the wallet grammar."""

    def test_single_block(self):
        """A full block becomes one expense with its fields."""
        lines = ["May 30, 2025", "10:15 AM", "Paid to Example Store", "Transaction ID : T123", "Debit INR 250.00"]
        result = parse_phonepe_lines(lines, SourceFormat.PDF)

        assert len(result.transactions) == 1
        txn = result.transactions[0]
        assert txn.amount == Decimal("250.00")
        assert txn.type == TransactionType.EXPENSE
        assert txn.description == "Example Store"
        assert txn.category in (Category.SHOPPING, Category.OTHER_EXPENSE)
        assert txn.reference_number is None
        assert txn.transaction_id == "T123"
        assert txn.source_format == PDF_SOURCE_TAG

    def test_digit_line_is_not_a_description(self):
        """A digits-only line never becomes the description."""
        lines = ["May 30, 2025", "00000000", "Debit INR 10.00"]
        result = parse_phonepe_lines(lines, SourceFormat.PDF)

        assert len(result.transactions) == 1
        assert result.transactions[0].description == "Unknown Transaction"

    def test_block_without_amount(self):
        """A dated block with no amount yields nothing and one warning."""
        lines = ["May 30, 2025", "10:15 AM", "Paid to Example Store", "Transaction ID : T123"]
        result = parse_phonepe_lines(lines, SourceFormat.PDF)

        assert result.transactions == []
        assert len(result.warnings) == 1
        assert result.units_rejected == 1


class TestParsePhonePeLines:
    """Test a multi-transaction statement."""

    def test_parses_all_blocks(self):
        result = parse_phonepe_lines(STATEMENT_LINES, SourceFormat.PDF)

        assert len(result.transactions) == 3
        assert result.units_attempted == 3
        assert result.errors == []

    def test_block_fields(self):
        swiggy, jane, recharge = parse_phonepe_lines(STATEMENT_LINES, SourceFormat.PDF).transactions

        assert swiggy.description == "Swiggy"
        assert swiggy.category == Category.FOOD
        assert swiggy.reference_number == "512345678901"
        assert swiggy.transaction_date == datetime(2025, 5, 30, 10, 15)
        assert swiggy.notes == "Debited from XX1234"

        assert jane.type == TransactionType.INCOME
        assert jane.amount == Decimal("1500.00")
        assert jane.transaction_date == datetime(2025, 5, 29, 18, 40)

        assert recharge.description == "Mobile Recharge"
        # "mobile" is a SHOPPING keyword, which is checked before UTILITIES
        assert recharge.category == Category.SHOPPING
        assert recharge.amount == Decimal("299")

    def test_footer_does_not_leak_into_description(self):
        """Page footers and boilerplate between blocks are ignored."""
        recharge = parse_phonepe_lines(STATEMENT_LINES, SourceFormat.PDF).transactions[2]
        assert "Page" not in recharge.description
        assert "system generated" not in recharge.description

    def test_every_block_accounted_for(self):
        """Each anchor ends as a transaction or a rejection."""
        lines = STATEMENT_LINES + ["May 27, 2025", "Paid to Nobody"]
        result = parse_phonepe_lines(lines, SourceFormat.PDF)

        assert result.units_attempted == 4
        assert len(result.transactions) + result.units_rejected == 4

    def test_invalid_anchor_date_rejected(self):
        result = parse_phonepe_lines(["Feb 30, 2025", "Debit INR 10"], SourceFormat.PDF)
        assert result.transactions == []
        assert result.units_rejected == 1
        assert "invalid date" in result.warnings[0]

    def test_non_pdf_tag(self):
        lines = ["May 30, 2025", "Paid to Shop", "Debit INR 10"]
        result = parse_phonepe_lines(lines, SourceFormat.XLSX)
        assert result.transactions[0].source_format == "Excel-PhonePe"

    def test_large_amount_kept(self):
        lines = ["May 30, 2025", "Paid to Corp", "Debit INR 2,000,000,000.00"]
        result = parse_phonepe_lines(lines, SourceFormat.PDF)

        assert result.warnings == []
        assert result.transactions[0].amount == Decimal("2000000000.00")


class TestSingleLineFallback:
    """Documents without wallet anchors use the single-line grammar."""

    def test_html_rows(self):
        lines = ["Date Amount Description", "01/05/2025 -120.50 Paid to cafe@okaxis", "02/05/2025 +2000 Salary"]
        result = parse_phonepe_lines(lines, SourceFormat.HTML)

        assert len(result.transactions) == 2
        cafe, salary = result.transactions
        assert cafe.type == TransactionType.EXPENSE
        assert cafe.amount == Decimal("120.50")
        assert cafe.counter_party == "cafe@okaxis"
        assert cafe.source_format == "HTML"
        assert salary.type == TransactionType.INCOME
        assert salary.category == Category.SALARY


class TestParsePhonePeGrid:
    """Grid documents use the signed-amount grid grammar."""

    def test_grid(self):
        document = RawDocument.from_grid(
            SourceFormat.CSV,
            ["Date", "Description", "Amount"],
            [["30/05/2025", "Zomato order", "-450.00"]],
        )
        result = parse_phonepe(document)

        assert len(result.transactions) == 1
        assert result.transactions[0].category == Category.FOOD
        assert result.transactions[0].source_format == "CSV"
