"""
PhonePe statement grammar.

PhonePe statements are multi-line: each transaction opens with a date line
("Jan 15, 2025") followed by a variable number of lines holding the time,
payee, transaction ID, UTR, account and "Debit INR 250.00" amount.

Example block (PDF text):
    Jan 15, 2025
    10:30 AM
    Paid to Example Store
    Transaction ID : T2501151030ABC
    UTR No : 123456789012
    Debited from XX1234
    Debit INR 250.00
"""

from collections.abc import Iterable

from stmtflow.models import ParsedTransaction
from stmtflow.parsers.assembler import assemble
from stmtflow.parsers.cascade import extract_fields
from stmtflow.parsers.document_types import RawDocument, SourceFormat, TransactionBlock
from stmtflow.parsers.lexicon import WALLET_DATE_PATTERN, parse_wallet_date
from stmtflow.parsers.segmenter import segment
from stmtflow.parsers.tabular import parse_generic_lines, parse_signed_grid
from stmtflow.parsers.validation import GrammarResult, log_parse_result, logger

PDF_SOURCE_TAG = "PDF-PhonePe-Enhanced"


def source_tag(source_format: SourceFormat) -> str:
    """Tag stored on transactions recovered from wallet blocks."""
    if source_format == SourceFormat.PDF:
        return PDF_SOURCE_TAG
    return f"{source_format.label}-PhonePe"


class BlockRejected(ValueError):
    """A block that opened with a date but could not become a transaction."""

    pass


def parse_block(block: TransactionBlock, tag: str) -> tuple[ParsedTransaction, list[str]]:
    """
    Turn one anchored block into a transaction.

    Returns:
        (transaction, warnings raised while extracting)

    Raises:
        BlockRejected: If the anchor date is invalid or no positive amount was found
    """
    line_number = block.anchor_index + 1
    anchor_date = parse_wallet_date(block.anchor)
    if anchor_date is None:
        raise BlockRejected(f"Skipped transaction at line {line_number}: invalid date '{block.anchor}'")

    fields, warnings = extract_fields(block.lines)
    logger.debug(f"Block at line {line_number}: {fields}")

    txn = assemble(anchor_date, fields, tag)
    if txn is None:
        raise BlockRejected(
            f"Skipped transaction dated '{block.anchor}' at line {line_number}: no valid amount found"
        )
    return txn, warnings


def parse_phonepe_lines(lines: Iterable[str], source_format: SourceFormat) -> GrammarResult:
    """
    Parse wallet statement text.

    Documents with no date anchors at all (e.g. HTML tables of single-line
    rows) are handed to the single-line grammar instead.
    """
    lines = list(lines)
    blocks = list(segment(lines, WALLET_DATE_PATTERN))

    if not blocks:
        logger.info("No PhonePe date anchors found, trying single-line rows")
        return parse_generic_lines(lines, source_format)

    result = GrammarResult()
    tag = source_tag(source_format)

    for block in blocks:
        result.units_attempted += 1
        try:
            txn, warnings = parse_block(block, tag)
        except BlockRejected as e:
            result.reject(str(e))
            continue
        except (ValueError, ArithmeticError) as e:
            result.units_rejected += 1
            result.errors.append(f"Error parsing transaction at line {block.anchor_index + 1}: {e}")
            logger.error(f"Error parsing block '{block.anchor}': {e}")
            continue

        result.warnings.extend(warnings)
        result.transactions.append(txn)

    log_parse_result(result, "PhonePe")
    return result


def parse_phonepe(document: RawDocument) -> GrammarResult:
    """Wallet grammar entry point for any routed document."""
    if document.is_grid:
        return parse_signed_grid(document)
    return parse_phonepe_lines(document.lines or (), document.source_format)
