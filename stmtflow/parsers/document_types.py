"""Intermediate structures that live only for one parse invocation."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from stmtflow.models import TransactionType


class SourceFormat(str, Enum):
    """Document kinds the router accepts."""

    PDF = "pdf"
    CSV = "csv"
    HTML = "html"
    XLSX = "xlsx"
    XLS = "xls"

    @property
    def is_spreadsheet(self) -> bool:
        return self in (SourceFormat.XLSX, SourceFormat.XLS)

    @property
    def label(self) -> str:
        """Prefix used in ParsedTransaction.source_format tags."""
        if self.is_spreadsheet:
            return "Excel"
        return self.value.upper()


@dataclass(frozen=True)
class RawDocument:
    """Decoded document: either flat text lines or a header + rows grid."""

    source_format: SourceFormat
    lines: tuple[str, ...] | None = None
    header: tuple[str, ...] | None = None
    rows: tuple[tuple[str, ...], ...] | None = None

    @property
    def is_grid(self) -> bool:
        return self.rows is not None

    @classmethod
    def from_lines(cls, source_format: SourceFormat, lines: list[str]) -> "RawDocument":
        return cls(source_format=source_format, lines=tuple(lines))

    @classmethod
    def from_grid(
        cls, source_format: SourceFormat, header: list[str] | None, rows: list[list[str]]
    ) -> "RawDocument":
        return cls(
            source_format=source_format,
            header=tuple(header) if header is not None else None,
            rows=tuple(tuple(row) for row in rows),
        )


@dataclass(frozen=True)
class TransactionBlock:
    """An anchor line plus the lines that follow it up to the next anchor."""

    anchor: str
    anchor_index: int
    lines: tuple[str, ...] = ()


@dataclass(frozen=True)
class FieldAccumulator:
    """Fields recovered from one block, built by folding the extraction cascade."""

    time: str | None = None
    description: str | None = None
    transaction_id: str | None = None
    utr_no: str | None = None
    account_info: str | None = None
    amount: Decimal | None = None
    type: TransactionType | None = None
    raw_amount_line: str | None = None
    raw_lines: tuple[str, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        return (
            f"FieldAccumulator(desc={self.description!r}, amount={self.amount}, "
            f"type={self.type.value if self.type else None}, txn_id={self.transaction_id!r})"
        )
