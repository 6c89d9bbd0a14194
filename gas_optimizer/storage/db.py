"""
Database connection management.

Provides SQLite connection for ledger persistence.
"""

import os
import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = "gas_optimizer.db"


def default_db_path() -> str:
    """Database path from GAS_OPTIMIZER_DB, falling back to the default file."""
    return os.environ.get("GAS_OPTIMIZER_DB") or DEFAULT_DB_PATH


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Create and return a SQLite database connection with foreign keys enabled.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLite connection with foreign key constraints enabled
    """
    path = Path(db_path)
    conn = sqlite3.connect(str(path))
    conn.execute("PRAGMA foreign_keys = ON")
    return conn
