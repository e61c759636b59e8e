"""Turn raw document bytes into text lines or a cell grid."""

import csv
import io
import math
from datetime import date, datetime

import pandas as pd
import pdfplumber
from lxml import html as lxml_html

from stmtflow.parsers.document_types import SourceFormat
from stmtflow.parsers.validation import decode_text, logger, normalize_whitespace

MIN_HTML_CELLS = 3


class DecodeFailure(Exception):
    """A document could not be read by its format's decoder."""

    pass


def decode_pdf(contents: bytes) -> list[str]:
    """Extract the text of every page and split it into lines."""
    pages: list[str] = []
    with pdfplumber.open(io.BytesIO(contents)) as pdf:
        for page_num, page in enumerate(pdf.pages, start=1):
            text = page.extract_text()
            if text:
                pages.append(text)
            else:
                logger.debug(f"PDF page {page_num} has no extractable text")

    if not pages:
        raise DecodeFailure("PDF appears to be empty or unreadable (scanned documents are not supported)")

    return "\n".join(pages).split("\n")


def decode_csv(contents: bytes) -> list[list[str]]:
    """Read delimited text into rows of cells; fully blank rows are dropped."""
    text = decode_text(contents)
    reader = csv.reader(io.StringIO(text))
    return [[cell.strip() for cell in row] for row in reader if any(cell.strip() for cell in row)]


def decode_html(contents: bytes) -> list[str]:
    """
    Flatten HTML table rows into text lines.

    Rows with fewer than three non-empty cells are treated as layout and skipped.
    """
    tree = lxml_html.fromstring(contents)
    lines: list[str] = []

    for row in tree.iter("tr"):
        cells = [
            normalize_whitespace(cell.text_content())
            for cell in row
            if isinstance(cell.tag, str) and cell.tag.lower() in ("td", "th")
        ]
        cells = [cell for cell in cells if cell]
        if len(cells) >= MIN_HTML_CELLS:
            lines.append(" ".join(cells))

    return lines


def cell_to_text(value) -> str:
    """Render one spreadsheet cell as the text a statement reader would see."""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    if value is pd.NaT:
        return ""
    if isinstance(value, datetime):
        if (value.hour, value.minute, value.second) == (0, 0, 0):
            return value.date().isoformat()
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def decode_spreadsheet(contents: bytes, source_format: SourceFormat) -> list[list[str]]:
    """Read the first sheet of a workbook as a grid of strings, without assuming a header."""
    engine = "openpyxl" if source_format == SourceFormat.XLSX else "xlrd"
    frame = pd.read_excel(io.BytesIO(contents), sheet_name=0, header=None, dtype=object, engine=engine)

    grid = [[cell_to_text(value) for value in row] for row in frame.itertuples(index=False, name=None)]
    return [row for row in grid if any(row)]
