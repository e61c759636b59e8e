"""SQLite-backed existence oracle for duplicate detection."""

import sqlite3
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from stmtflow.config import settings
from stmtflow.models import ParsedTransaction
from stmtflow.services.dedup import compute_transaction_hash

# SQL schema
SCHEMA = """
CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id TEXT NOT NULL DEFAULT '',
    transaction_hash TEXT NOT NULL UNIQUE,
    transaction_date TEXT NOT NULL,
    description TEXT NOT NULL,
    amount TEXT NOT NULL,
    type TEXT NOT NULL,
    category TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_transactions_owner ON transactions(owner_id);
CREATE INDEX IF NOT EXISTS idx_transactions_lookup
    ON transactions(owner_id, amount, transaction_date);
"""


def _amount_key(amount: Decimal) -> str:
    return f"{amount:.2f}"


class SQLiteExistenceOracle:
    """
    Answers "is this transaction already stored?" from a local SQLite file.

    The parsing engine only reads through exists(); record() is for the host
    application after it imports a batch.
    """

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or settings.db_path
        if db_path is None:
            settings.ensure_directories()
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the database schema."""
        with self._get_connection() as conn:
            conn.executescript(SCHEMA)
            conn.commit()

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def exists(self, owner_id: str | None, amount: Decimal, description: str, timestamp: datetime) -> bool:
        """Check for a stored transaction with the same owner, amount, description and timestamp."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT 1 FROM transactions
                WHERE owner_id = ? AND amount = ? AND description = ? AND transaction_date = ?
                LIMIT 1
                """,
                (owner_id or "", _amount_key(amount), description, timestamp.isoformat()),
            )
            return cursor.fetchone() is not None

    def record(self, owner_id: str | None, txn: ParsedTransaction) -> bool:
        """Store a transaction. Returns True if added, False if already present."""
        transaction_hash = compute_transaction_hash(owner_id, txn.transaction_date, txn.description, txn.amount)
        with self._get_connection() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO transactions (owner_id, transaction_hash, transaction_date,
                    description, amount, type, category) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        owner_id or "",
                        transaction_hash,
                        txn.transaction_date.isoformat(),
                        txn.description,
                        _amount_key(txn.amount),
                        txn.type.value,
                        txn.category.value,
                    ),
                )
                conn.commit()
                return True
            except sqlite3.IntegrityError:
                # Duplicate transaction_hash
                return False

    def record_batch(self, owner_id: str | None, transactions: Iterable[ParsedTransaction]) -> tuple[int, int]:
        """Store multiple transactions. Returns (added_count, skipped_count)."""
        added = 0
        skipped = 0
        for txn in transactions:
            if self.record(owner_id, txn):
                added += 1
            else:
                skipped += 1
        return added, skipped

    def count(self, owner_id: str | None = None) -> int:
        """Number of stored transactions, optionally for one owner."""
        with self._get_connection() as conn:
            if owner_id is None:
                cursor = conn.execute("SELECT COUNT(*) as count FROM transactions")
            else:
                cursor = conn.execute("SELECT COUNT(*) as count FROM transactions WHERE owner_id = ?", (owner_id,))
            return cursor.fetchone()["count"]
