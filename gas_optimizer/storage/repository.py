"""
Repository pattern for data access.

Handles database operations and data persistence logic.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from .db import DEFAULT_DB_PATH, get_connection
from .models import TransactionRecord

# Integer amounts are stored as TEXT: wei-sized values overflow SQLite's 64-bit INTEGER.
_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS transaction_record (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        sender TEXT NOT NULL,
        recipient TEXT NOT NULL,
        value TEXT NOT NULL,
        gas_used TEXT NOT NULL,
        gas_price TEXT NOT NULL,
        timestamp TEXT NOT NULL,
        category TEXT NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_transaction_record_sender
    ON transaction_record (sender, id)
    """,
    """
    CREATE TABLE IF NOT EXISTS baseline (
        category TEXT PRIMARY KEY,
        gas TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS budget (
        account TEXT PRIMARY KEY,
        amount TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS savings (
        account TEXT PRIMARY KEY,
        total_saved TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS optimizer_meta (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    )
    """,
]

_INSERT_RECORD = """
    INSERT INTO transaction_record
    (sender, recipient, value, gas_used, gas_price, timestamp, category)
    VALUES (?, ?, ?, ?, ?, ?, ?)
"""

_SELECT_RECORDS = """
    SELECT sender, recipient, value, gas_used, gas_price, timestamp, category
    FROM transaction_record
"""

OPTIMIZATION_COUNT_KEY = "optimization_count"
ANALYSIS_FEE_KEY = "analysis_fee"


def _record_params(record: TransactionRecord) -> Tuple:
    return (
        record.sender,
        record.to,
        str(record.value),
        str(record.gas_used),
        str(record.gas_price),
        record.timestamp.isoformat(),
        record.category,
    )


def _row_to_record(row) -> TransactionRecord:
    return TransactionRecord(
        sender=row[0],
        to=row[1],
        value=int(row[2]),
        gas_used=int(row[3]),
        gas_price=int(row[4]),
        timestamp=datetime.fromisoformat(row[5]),
        category=row[6],
    )


class LedgerRepository:
    """Durable store for the ledger, baselines, budgets and savings tallies.

    Transaction records are append-only: rows in ``transaction_record``
    are never updated or deleted. Every write runs in its own transaction
    and is rolled back on failure.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the repository with a database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    def initialize_schema(self) -> None:
        initialize_schema(self.db_path)

    def insert_records(self, records: List[TransactionRecord]) -> None:
        insert_records(records, self.db_path)

    def fetch_all_records(self) -> Dict[str, List[TransactionRecord]]:
        """All records grouped by sender, each list in insertion order."""
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(_SELECT_RECORDS + " ORDER BY id ASC")
            grouped: Dict[str, List[TransactionRecord]] = {}
            for row in cursor.fetchall():
                record = _row_to_record(row)
                grouped.setdefault(record.sender, []).append(record)
            return grouped
        finally:
            conn.close()

    def save_baseline(self, category: str, gas: int) -> None:
        self._upsert("baseline", "category", "gas", category, gas)

    def fetch_baselines(self) -> Dict[str, int]:
        return self._fetch_mapping("baseline", "category", "gas")

    def save_budget(self, account: str, amount: int) -> None:
        self._upsert("budget", "account", "amount", account, amount)

    def fetch_budgets(self) -> Dict[str, int]:
        return self._fetch_mapping("budget", "account", "amount")

    def add_savings(self, account: str, amount: int) -> None:
        """Add reported savings and bump the global optimization count atomically."""
        conn = get_connection(self.db_path)
        try:
            conn.execute("BEGIN TRANSACTION")
            row = conn.execute(
                "SELECT total_saved FROM savings WHERE account = ?", (account,)
            ).fetchone()
            total = (int(row[0]) if row else 0) + amount
            conn.execute(
                "INSERT OR REPLACE INTO savings (account, total_saved) VALUES (?, ?)",
                (account, str(total)),
            )
            row = conn.execute(
                "SELECT value FROM optimizer_meta WHERE key = ?",
                (OPTIMIZATION_COUNT_KEY,),
            ).fetchone()
            count = (int(row[0]) if row else 0) + 1
            conn.execute(
                "INSERT OR REPLACE INTO optimizer_meta (key, value) VALUES (?, ?)",
                (OPTIMIZATION_COUNT_KEY, str(count)),
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def fetch_savings(self) -> Dict[str, int]:
        return self._fetch_mapping("savings", "account", "total_saved")

    def save_meta(self, key: str, value: int) -> None:
        self._upsert("optimizer_meta", "key", "value", key, value)

    def fetch_meta(self, key: str, default: Optional[int] = None) -> Optional[int]:
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT value FROM optimizer_meta WHERE key = ?", (key,)
            ).fetchone()
            return int(row[0]) if row else default
        finally:
            conn.close()

    def _upsert(self, table: str, key_col: str, value_col: str, key: str, value: int) -> None:
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                f"INSERT OR REPLACE INTO {table} ({key_col}, {value_col}) VALUES (?, ?)",
                (key, str(value)),
            )
            conn.commit()
        finally:
            conn.close()

    def _fetch_mapping(self, table: str, key_col: str, value_col: str) -> Dict[str, int]:
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(f"SELECT {key_col}, {value_col} FROM {table}")
            return {row[0]: int(row[1]) for row in cursor.fetchall()}
        finally:
            conn.close()


def initialize_schema(db_path: str = DEFAULT_DB_PATH) -> None:
    """Create the ledger tables if they don't exist.

    ``transaction_record`` is an append-only ledger of immutable records.
    No UPDATE or DELETE operations should ever be performed on it.

    Args:
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        for statement in _SCHEMA:
            conn.execute(statement)
        conn.commit()
    finally:
        conn.close()


def insert_record(record: TransactionRecord, db_path: str = DEFAULT_DB_PATH) -> None:
    """Insert a single record into the append-only ledger.

    Args:
        record: The transaction record to store
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.execute(_INSERT_RECORD, _record_params(record))
        conn.commit()
    finally:
        conn.close()


def insert_records(records: Iterable[TransactionRecord], db_path: str = DEFAULT_DB_PATH) -> None:
    """Insert multiple records atomically into the append-only ledger.

    All records are inserted in a single transaction: either every record
    is stored or none is.

    Args:
        records: Transaction records to store
        db_path: Path to SQLite database file
    """
    records = list(records)
    if not records:
        return

    conn = get_connection(db_path)
    try:
        conn.execute("BEGIN TRANSACTION")
        for record in records:
            conn.execute(_INSERT_RECORD, _record_params(record))
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetch_account_records(account: str, db_path: str = DEFAULT_DB_PATH) -> List[TransactionRecord]:
    """Fetch every record sent by ``account`` in insertion order.

    Args:
        account: Sender address
        db_path: Path to SQLite database file

    Returns:
        List of records, oldest first
    """
    conn = get_connection(db_path)
    try:
        cursor = conn.execute(
            _SELECT_RECORDS + " WHERE sender = ? ORDER BY id ASC", (account,)
        )
        return [_row_to_record(row) for row in cursor.fetchall()]
    finally:
        conn.close()
