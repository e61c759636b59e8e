"""
Format router: validate a document, pick its decoder and shape the result.

Spreadsheets are sniffed for a wallet banner. Wallet exports are flattened
into pseudo-lines for the block grammar; everything else stays a grid with a
located header row.
"""

from collections.abc import Sequence

from stmtflow.config import settings
from stmtflow.models import ProviderId
from stmtflow.parsers.decoders import (
    DecodeFailure,
    decode_csv,
    decode_html,
    decode_pdf,
    decode_spreadsheet,
)
from stmtflow.parsers.dispatch import BankGrammar, resolve_grammar
from stmtflow.parsers.document_types import RawDocument, SourceFormat
from stmtflow.parsers.tabular import DEBIT_CREDIT_HEADER_KEYWORDS, SIGNED_HEADER_KEYWORDS, is_header_row
from stmtflow.parsers.validation import ValidationError, logger, validate_file_contents

__all__ = [
    "DecodeFailure",
    "UnsupportedFormat",
    "detect_source_format",
    "find_header_row",
    "has_wallet_banner",
    "normalize_extension",
    "route",
]

EXTENSIONS: dict[str, SourceFormat] = {
    "pdf": SourceFormat.PDF,
    "csv": SourceFormat.CSV,
    "html": SourceFormat.HTML,
    "htm": SourceFormat.HTML,
    "xlsx": SourceFormat.XLSX,
    "xls": SourceFormat.XLS,
}

WALLET_BANNERS = ("phonepe", "transaction statement")


class UnsupportedFormat(ValidationError):
    """The document extension is not one the router can decode."""

    pass


def normalize_extension(extension: str | None) -> str:
    """".PDF" → "pdf"."""
    return (extension or "").strip().lower().lstrip(".")


def detect_source_format(extension: str | None) -> SourceFormat:
    """
    Map a file extension to a SourceFormat.

    Raises:
        UnsupportedFormat: If the extension is not supported
    """
    ext = normalize_extension(extension)
    try:
        return EXTENSIONS[ext]
    except KeyError:
        raise UnsupportedFormat(
            f"Unsupported file format: {ext or '(none)'}. Supported formats: PDF, CSV, HTML, XLSX, XLS"
        ) from None


def has_wallet_banner(grid: Sequence[Sequence[str]], sniff_rows: int | None = None) -> bool:
    """Check the top rows of a spreadsheet for PhonePe export markers."""
    sniff_rows = sniff_rows or settings.spreadsheet_sniff_rows
    for row in grid[:sniff_rows]:
        for cell in row:
            text = (cell or "").lower()
            if any(banner in text for banner in WALLET_BANNERS):
                return True
            if "paid to" in text and "transaction id" in text:
                return True
    return False


def find_header_row(
    grid: Sequence[Sequence[str]], keywords: Sequence[str], sniff_rows: int | None = None
) -> int | None:
    """Index of the first row among the top rows that carries a header keyword."""
    sniff_rows = sniff_rows or settings.spreadsheet_sniff_rows
    for index, row in enumerate(grid[:sniff_rows]):
        if is_header_row(row, keywords):
            return index
    return None


def flatten_grid(grid: Sequence[Sequence[str]]) -> list[str]:
    """Join each row's non-empty cells into one pseudo-line."""
    lines = []
    for row in grid:
        cells = [cell.strip() for cell in row if cell and cell.strip()]
        if cells:
            lines.append(" ".join(cells))
    return lines


def shape_grid(
    grid: list[list[str]], source_format: SourceFormat, bank: bool, sniff_rows: int | None = None
) -> RawDocument:
    """Split a decoded grid into header + rows, or flatten a wallet export."""
    if source_format.is_spreadsheet and not bank and has_wallet_banner(grid, sniff_rows):
        logger.info("Detected PhonePe spreadsheet export, flattening rows")
        return RawDocument.from_lines(source_format, flatten_grid(grid))

    keywords = DEBIT_CREDIT_HEADER_KEYWORDS if bank else SIGNED_HEADER_KEYWORDS
    header_index = find_header_row(grid, keywords, sniff_rows)
    if header_index is None:
        logger.warning(f"No header row found in the first rows of the {source_format.label} document")
        return RawDocument.from_grid(source_format, None, grid)

    return RawDocument.from_grid(source_format, grid[header_index], grid[header_index + 1:])


def route(contents: bytes, extension: str | None, provider: ProviderId | str | None = None) -> RawDocument:
    """
    Validate and decode a document.

    Args:
        contents: Raw document bytes
        extension: File extension, with or without the leading dot
        provider: Declared statement provider; decides how grids are shaped

    Returns:
        RawDocument holding lines or a header + rows grid

    Raises:
        UnsupportedFormat: Unknown extension
        ValidationError: Empty or oversized document
        DecodeFailure: The decoder could not read the document
    """
    source_format = detect_source_format(extension)
    validate_file_contents(contents, settings.max_file_size_bytes)

    bank = isinstance(resolve_grammar(provider or settings.default_provider), BankGrammar)

    try:
        if source_format == SourceFormat.PDF:
            return RawDocument.from_lines(source_format, decode_pdf(contents))
        if source_format == SourceFormat.HTML:
            return RawDocument.from_lines(source_format, decode_html(contents))
        if source_format == SourceFormat.CSV:
            grid = decode_csv(contents)
        else:
            grid = decode_spreadsheet(contents, source_format)
    except (DecodeFailure, ValidationError):
        raise
    except Exception as e:
        logger.error(f"Failed to decode {source_format.label} document: {e}")
        raise DecodeFailure(f"Failed to read {source_format.label} document: {e}") from e

    return shape_grid(grid, source_format, bank)
