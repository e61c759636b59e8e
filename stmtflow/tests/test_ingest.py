"""End-to-end tests for parse_statement."""

from datetime import date
from decimal import Decimal

import pytest

from stmtflow.models import ProviderId
from stmtflow.parsers import router
from stmtflow.services.ingest import extension_of, parse_statement

PHONEPE_LINES = [
    "Transaction Statement for 9876543210",
    "May 30, 2025",
    "10:15 AM",
    "Paid to Example Store",
    "Transaction ID : T123",
    "Debit INR 250.00",
    "May 28, 2025",
    "08:00 PM",
    "Received from Jane Smith",
    "Transaction ID : T456",
    "Credit INR 1,000.00",
    "May 27, 2025",
    "Paid to Nobody",
]

KOTAK_CSV = (
    b"Date,Narration,Chq/Ref No,Withdrawal (Dr),Deposit (Cr),Balance\n"
    b"01-12-2023,UPI/Uber/Ride,UPI-1,320.00,,9680.00\n"
    b"02-12-2023,Salary Dec,,,50000.00,59680.00\n"
)


@pytest.fixture
def phonepe_pdf(monkeypatch):
    """Route every PDF to a fixed PhonePe statement text."""
    monkeypatch.setattr(router, "decode_pdf", lambda contents: list(PHONEPE_LINES))
    return b"%PDF-1.4 fake"


class FlagStoreOracle:
    def exists(self, owner_id, amount, description, timestamp):
        return description == "Example Store"


class TestParseStatement:
    """Test the full ingestion path."""

    def test_wallet_pdf(self, phonepe_pdf):
        result = parse_statement(phonepe_pdf, "statement.pdf", provider="PHONEPE")

        assert result.success is True
        assert result.message == "Statement parsed successfully"
        assert [txn.amount for txn in result.transactions] == [Decimal("250.00"), Decimal("1000.00")]
        assert len(result.warnings) == 1
        assert result.errors == []

    def test_metadata(self, phonepe_pdf):
        metadata = parse_statement(phonepe_pdf, "statement.pdf").metadata

        assert metadata.file_name == "statement.pdf"
        assert metadata.file_format == "PDF"
        assert metadata.file_size_bytes == len(phonepe_pdf)
        assert metadata.total_transactions == 2
        assert metadata.parsed_transactions == 2
        assert metadata.error_transactions == 1
        assert metadata.duplicate_transactions == 0
        assert metadata.date_range_start == date(2025, 5, 28)
        assert metadata.date_range_end == date(2025, 5, 30)
        assert metadata.date_range == "2025-05-28 to 2025-05-30"

    def test_idempotent(self, phonepe_pdf):
        """Same bytes and provider give the same result."""
        first = parse_statement(phonepe_pdf, "statement.pdf", provider="PHONEPE")
        second = parse_statement(phonepe_pdf, "statement.pdf", provider="PHONEPE")
        assert first == second

    def test_stub_provider_falls_back(self, phonepe_pdf):
        """Stub providers produce the wallet grammar's transactions plus a warning."""
        wallet = parse_statement(phonepe_pdf, "statement.pdf", provider=ProviderId.PHONEPE)
        paytm = parse_statement(phonepe_pdf, "statement.pdf", provider=ProviderId.PAYTM)

        assert paytm.transactions == wallet.transactions
        assert paytm.warnings[0] == "PAYTM parsing not yet implemented, falling back to PhonePe parsing"
        assert paytm.warnings[1:] == wallet.warnings

    def test_unknown_provider_falls_back(self, phonepe_pdf):
        result = parse_statement(phonepe_pdf, "statement.pdf", provider="SOMEBANK")
        assert len(result.transactions) == 2
        assert "falling back to PhonePe parsing" in result.warnings[0]

    def test_duplicates_flagged(self, phonepe_pdf):
        result = parse_statement(phonepe_pdf, "statement.pdf", oracle=FlagStoreOracle(), owner_id="u1")

        assert [txn.is_duplicate for txn in result.transactions] == [True, False]
        assert result.metadata.duplicate_transactions == 1

    def test_every_transaction_annotated(self, phonepe_pdf):
        result = parse_statement(phonepe_pdf, "statement.pdf")
        assert all(txn.confidence is not None for txn in result.transactions)
        assert all(txn.is_duplicate is False for txn in result.transactions)

    def test_bank_csv(self):
        result = parse_statement(KOTAK_CSV, "kotak.csv", provider="KOTAK_BANK")

        assert result.success is True
        assert len(result.transactions) == 2
        assert result.transactions[0].source_format == "CSV-Kotak-Bank"
        assert result.metadata.file_format == "CSV"

    def test_explicit_extension_wins(self):
        result = parse_statement(KOTAK_CSV, "download", extension=".csv", provider="KOTAK_BANK")
        assert result.success is True
        assert len(result.transactions) == 2

    def test_no_transactions(self):
        result = parse_statement(b"Date,Description,Amount\n", "empty.csv")

        assert result.success is True
        assert result.transactions == []
        assert result.message == "No transactions found in the statement"


class TestParseStatementFailures:
    """Fatal problems give success=False and no transactions."""

    def test_unsupported_extension(self):
        result = parse_statement(b"PK\x03\x04 document", "letter.docx")

        assert result.success is False
        assert result.transactions == []
        assert "Unsupported file format" in result.errors[0]

    def test_empty_file(self):
        result = parse_statement(b"", "statement.csv")
        assert result.success is False
        assert result.errors == ["File is empty"]

    def test_decode_failure(self):
        result = parse_statement(b"garbage", "statement.pdf")
        assert result.success is False
        assert result.transactions == []

    def test_unexpected_error(self, monkeypatch):
        from stmtflow.services import ingest

        def explode(document, provider):
            raise RuntimeError("kaboom")

        monkeypatch.setattr(ingest, "parse_document", explode)
        result = parse_statement(b"Date,Description,Amount\n", "x.csv")

        assert result.success is False
        assert result.errors == ["Failed to parse statement: kaboom"]


class TestExtensionOf:
    def test_extension_of(self):
        assert extension_of("Statement.PDF") == "pdf"
        assert extension_of("archive.tar.xlsx") == "xlsx"
        assert extension_of("noext") == ""
        assert extension_of(None) == ""
