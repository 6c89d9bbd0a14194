"""
Unit tests for storage layer.

Tests schema creation, record insertion, and retrieval operations.
"""

import os
import tempfile
from datetime import datetime
from unittest.mock import patch

import pytest

from gas_optimizer.storage.db import default_db_path, get_connection
from gas_optimizer.storage.models import TransactionRecord
from gas_optimizer.storage.repository import (
    OPTIMIZATION_COUNT_KEY,
    LedgerRepository,
    fetch_account_records,
    initialize_schema,
    insert_record,
    insert_records,
)

ALICE = "0x00000000000000000000000000000000000000a1"
BOB = "0x00000000000000000000000000000000000000b0"


def make_record(sender=ALICE, gas_used=21000, minute=0):
    return TransactionRecord(
        sender=sender,
        to=BOB,
        value=10**18,
        gas_used=gas_used,
        gas_price=30 * 10**9,
        timestamp=datetime(2024, 1, 1, 12, minute, 0),
        category="transfer",
    )


@pytest.fixture
def db_path():
    with tempfile.TemporaryDirectory() as temp_dir:
        path = os.path.join(temp_dir, "test.db")
        initialize_schema(path)
        yield path


class TestStorageSchema:
    """Test database schema creation and structure."""

    def test_schema_creation(self, db_path):
        conn = get_connection(db_path)
        try:
            cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row[0] for row in cursor.fetchall()}
            assert {"transaction_record", "baseline", "budget", "savings", "optimizer_meta"} <= tables

            cursor = conn.execute("PRAGMA table_info(transaction_record)")
            column_names = [col[1] for col in cursor.fetchall()]
            assert column_names == [
                'id', 'sender', 'recipient', 'value', 'gas_used',
                'gas_price', 'timestamp', 'category'
            ]
        finally:
            conn.close()

    def test_schema_creation_is_idempotent(self, db_path):
        insert_record(make_record(), db_path)
        initialize_schema(db_path)
        assert len(fetch_account_records(ALICE, db_path)) == 1

    def test_default_db_path_from_environment(self):
        with patch.dict(os.environ, {"GAS_OPTIMIZER_DB": "/tmp/ledger.db"}):
            assert default_db_path() == "/tmp/ledger.db"


class TestRecordInsertion:
    """Test ledger record insertion operations."""

    def test_insert_single_record(self, db_path):
        record = make_record()

        insert_record(record, db_path)

        assert fetch_account_records(ALICE, db_path) == [record]

    def test_insert_multiple_records_in_order(self, db_path):
        records = [make_record(gas_used=g, minute=i) for i, g in enumerate((300, 100, 200))]

        insert_records(records, db_path)

        assert [r.gas_used for r in fetch_account_records(ALICE, db_path)] == [300, 100, 200]

    def test_insert_empty_list(self, db_path):
        insert_records([], db_path)
        assert fetch_account_records(ALICE, db_path) == []

    def test_batch_rolls_back_on_failure(self, db_path):
        class Broken:
            sender = ALICE

        with pytest.raises(AttributeError):
            insert_records([make_record(), Broken()], db_path)

        assert fetch_account_records(ALICE, db_path) == []

    def test_large_integers_round_trip(self, db_path):
        record = TransactionRecord(ALICE, BOB, 2**200, 2**70, 2**65, datetime(2024, 1, 1), "transfer")

        insert_record(record, db_path)

        assert fetch_account_records(ALICE, db_path) == [record]


class TestLedgerRepository:
    """Test the repository class."""

    def test_fetch_all_records_grouped_by_sender(self, db_path):
        repository = LedgerRepository(db_path)
        repository.insert_records([make_record(ALICE), make_record(BOB), make_record(ALICE, gas_used=5)])

        grouped = repository.fetch_all_records()

        assert set(grouped) == {ALICE, BOB}
        assert [r.gas_used for r in grouped[ALICE]] == [21000, 5]

    def test_baselines_and_budgets(self, db_path):
        repository = LedgerRepository(db_path)
        repository.save_baseline("transfer", 22000)
        repository.save_baseline("transfer", 23000)
        repository.save_budget(ALICE, 10**20)

        assert repository.fetch_baselines() == {"transfer": 23000}
        assert repository.fetch_budgets() == {ALICE: 10**20}

    def test_add_savings_updates_total_and_counter(self, db_path):
        repository = LedgerRepository(db_path)
        repository.add_savings(ALICE, 10)
        repository.add_savings(ALICE, 5)
        repository.add_savings(BOB, 1)

        assert repository.fetch_savings() == {ALICE: 15, BOB: 1}
        assert repository.fetch_meta(OPTIMIZATION_COUNT_KEY) == 3

    def test_fetch_meta_default(self, db_path):
        assert LedgerRepository(db_path).fetch_meta("missing", 7) == 7
