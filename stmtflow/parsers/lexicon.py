"""Date, time and amount recognition shared by all grammars."""

import re
from datetime import datetime, time
from decimal import Decimal, InvalidOperation

MONTHS = "Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec"

# PhonePe anchor line: "May 30, 2025"
WALLET_DATE_PATTERN = re.compile(rf"^({MONTHS})\s+(\d{{1,2}}),\s+(\d{{4}})$")

# Wallet date embedded in a longer string
EMBEDDED_WALLET_DATE = re.compile(rf"({MONTHS})\s+(\d{{1,2}}),\s+(\d{{4}})")

TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})\s+(AM|PM)$", re.IGNORECASE)

# Tried in order after the wallet format
DATE_FORMATS = [
    "%d/%m/%Y",  # 30/05/2025
    "%d-%m-%Y",  # 30-05-2025
    "%d %b %Y",  # 30 May 2025
    "%d-%b-%Y",  # 30-May-2025
    "%Y-%m-%d",  # 2025-05-30
    "%m/%d/%Y",  # 05/30/2025
    "%d.%m.%Y",  # 30.05.2025
    "%d/%m/%y",  # 30/05/25
    "%d-%m-%y",  # 30-05-25
]

_CURRENCY_NOISE = re.compile(r"[₹$,\s]|INR|Rs\.?", re.IGNORECASE)


def parse_wallet_date(text: str) -> datetime | None:
    """Parse a "MMM d, yyyy" date line, e.g. "May 30, 2025"."""
    match = WALLET_DATE_PATTERN.match(text.strip())
    if not match:
        return None
    month, day, year = match.groups()
    try:
        return datetime.strptime(f"{month} {day} {year}", "%b %d %Y")
    except ValueError:
        return None


def parse_date(text: str | None) -> datetime | None:
    """
    Parse a calendar date in any supported format.

    Returns:
        Midnight of the parsed date, or None if unparseable
    """
    if not text or not text.strip():
        return None

    text = text.strip()

    match = EMBEDDED_WALLET_DATE.search(text)
    if match:
        month, day, year = match.groups()
        try:
            return datetime.strptime(f"{month} {day} {year}", "%b %d %Y")
        except ValueError:
            pass

    # Spreadsheet decoders render datetimes as "2025-05-30 00:00:00"
    candidate = text.split(" ")[0] if re.match(r"^\d{4}-\d{2}-\d{2}\s", text) else text

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(candidate, fmt)
        except ValueError:
            continue

    return None


def parse_time(text: str | None) -> time | None:
    """Parse a "10:15 AM" style time-of-day token."""
    if not text:
        return None
    match = TIME_PATTERN.match(text.strip())
    if not match:
        return None
    hour, minute, meridiem = int(match.group(1)), int(match.group(2)), match.group(3).upper()
    if not (1 <= hour <= 12 and 0 <= minute <= 59):
        return None
    if meridiem == "AM":
        hour = 0 if hour == 12 else hour
    else:
        hour = 12 if hour == 12 else hour + 12
    return time(hour, minute)


def parse_amount(text: str | None) -> Decimal | None:
    """
    Parse a monetary amount, stripping currency symbols and grouping separators.

    Signs are preserved; "(123.45)" and "123.45-" are read as negative.

    Returns:
        The amount, or None if unparseable
    """
    if text is None:
        return None

    cleaned = _CURRENCY_NOISE.sub("", str(text)).strip()
    if not cleaned:
        return None

    if cleaned.startswith("(") and cleaned.endswith(")"):
        cleaned = "-" + cleaned[1:-1]
    if cleaned.endswith("-"):
        cleaned = "-" + cleaned[:-1]
    if cleaned.startswith("+"):
        cleaned = cleaned[1:]

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None

    if not amount.is_finite():
        return None
    return amount
