"""Split a statement's lines into per-transaction blocks."""

import re
from collections.abc import Iterable, Iterator
from enum import Enum

from stmtflow.parsers.document_types import TransactionBlock


class SegmenterState(Enum):
    SCANNING = "scanning"
    IN_BLOCK = "in_block"


def is_anchor(line: str, anchor: re.Pattern[str]) -> bool:
    """Check whether a (stripped) line opens a new transaction block."""
    return anchor.match(line.strip()) is not None


def segment(lines: Iterable[str], anchor: re.Pattern[str]) -> Iterator[TransactionBlock]:
    """
    Yield one TransactionBlock per anchor line.

    Lines before the first anchor are noise and dropped. Blank lines are
    ignored and never close a block. A block runs until the next anchor or
    the end of input, so block length may vary per transaction.
    """
    state = SegmenterState.SCANNING
    anchor_line = ""
    anchor_index = -1
    follow: list[str] = []

    for index, raw in enumerate(lines):
        line = raw.strip()
        if not line:
            continue

        if is_anchor(line, anchor):
            if state is SegmenterState.IN_BLOCK:
                yield TransactionBlock(anchor=anchor_line, anchor_index=anchor_index, lines=tuple(follow))
            state = SegmenterState.IN_BLOCK
            anchor_line, anchor_index, follow = line, index, []
        elif state is SegmenterState.IN_BLOCK:
            follow.append(line)

    if state is SegmenterState.IN_BLOCK:
        yield TransactionBlock(anchor=anchor_line, anchor_index=anchor_index, lines=tuple(follow))
