"""Statement ingestion: bytes in, ParseResult out."""

import logging
from pathlib import PurePath

from stmtflow.config import settings
from stmtflow.models import ParsedTransaction, ParseResult, ProviderId, StatementMetadata
from stmtflow.parsers.dispatch import parse_document
from stmtflow.parsers.router import DecodeFailure, UnsupportedFormat, normalize_extension, route
from stmtflow.parsers.validation import ValidationError
from stmtflow.services.dedup import ExistenceOracle, annotate_all

logger = logging.getLogger(__name__)


def extension_of(filename: str | None) -> str:
    """File extension without the dot, lower-cased ("" when there is none)."""
    if not filename:
        return ""
    return normalize_extension(PurePath(filename).suffix)


def build_metadata(
    filename: str | None,
    file_format: str,
    contents: bytes,
    transactions: list[ParsedTransaction],
    rejected: int = 0,
) -> StatementMetadata:
    """Summarise one parse invocation."""
    metadata = StatementMetadata(
        file_name=filename,
        file_format=file_format.upper() if file_format else None,
        file_size_bytes=len(contents or b""),
        total_transactions=len(transactions),
        parsed_transactions=len(transactions),
        duplicate_transactions=sum(1 for txn in transactions if txn.is_duplicate),
        error_transactions=rejected,
    )

    if transactions:
        dates = [txn.transaction_date.date() for txn in transactions]
        metadata.date_range_start = min(dates)
        metadata.date_range_end = max(dates)

    return metadata


def parse_statement(
    contents: bytes,
    filename: str | None,
    extension: str | None = None,
    provider: ProviderId | str | None = None,
    oracle: ExistenceOracle | None = None,
    owner_id: str | None = None,
) -> ParseResult:
    """
    Parse a statement document into annotated transactions.

    Args:
        contents: Raw document bytes
        filename: Original file name (used for metadata and, if extension is
            not given, to infer the format)
        extension: File extension, with or without the leading dot
        provider: Statement provider; defaults to settings.default_provider
        oracle: Duplicate lookup; nothing is a duplicate when omitted
        owner_id: Passed through to the oracle

    Returns:
        ParseResult. Fatal problems (unsupported format, unreadable or
        oversized document) give success=False with the reason in errors.
    """
    ext = normalize_extension(extension) if extension else extension_of(filename)
    provider = provider or settings.default_provider
    failed_metadata = StatementMetadata(
        file_name=filename,
        file_format=ext.upper() or None,
        file_size_bytes=len(contents or b""),
    )

    logger.info(f"Parsing {filename or '(unnamed)'} as {ext or '(no extension)'} for provider {provider}")

    try:
        document = route(contents, ext, provider)
        grammar_result = parse_document(document, provider)
        transactions, oracle_warnings = annotate_all(grammar_result.transactions, oracle, owner_id)
    except UnsupportedFormat as e:
        logger.warning(f"Unsupported format for {filename}: {e}")
        return ParseResult.failure(str(e), failed_metadata)
    except (DecodeFailure, ValidationError) as e:
        logger.error(f"Could not read {filename}: {e}")
        return ParseResult.failure(str(e), failed_metadata)
    except Exception as e:
        logger.exception(f"Unexpected error parsing {filename}")
        return ParseResult.failure(f"Failed to parse statement: {e}", failed_metadata)

    metadata = build_metadata(filename, ext, contents, transactions, grammar_result.units_rejected)
    logger.info(
        f"Parsed {len(transactions)} transactions from {filename} "
        f"({metadata.duplicate_transactions} duplicates, {metadata.error_transactions} rejected)"
    )

    return ParseResult.ok(
        transactions,
        metadata,
        warnings=grammar_result.warnings + oracle_warnings,
        errors=grammar_result.errors,
    )
