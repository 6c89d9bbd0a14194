"""
Unit tests for read-only reports.

Tests totals, extremes, baseline comparison, range queries,
efficiency scoring and savings estimates.
"""

from datetime import datetime, timedelta

import pytest

from gas_optimizer.core.baseline import BaselineRegistry
from gas_optimizer.core.report import (
    compare_against_baseline,
    efficiency_score,
    estimate_max_potential_savings,
    generate_report,
    total_gas_cost,
    transactions_in_range,
)
from gas_optimizer.storage.models import MAX_UINT256, TransactionRecord

ALICE = "0x00000000000000000000000000000000000000a1"
BOB = "0x00000000000000000000000000000000000000b0"
START = datetime(2024, 1, 1, 12, 0, 0)


def make_record(gas_used, gas_price=1, category="transfer", minutes=0):
    """Create a test record."""
    return TransactionRecord(
        sender=ALICE,
        to=BOB,
        value=0,
        gas_used=gas_used,
        gas_price=gas_price,
        timestamp=START + timedelta(minutes=minutes),
        category=category,
    )


@pytest.fixture
def registry():
    return BaselineRegistry()


class TestTotals:
    """Test totals and the aggregate report."""

    def test_total_gas_cost_empty(self):
        assert total_gas_cost([]) == 0

    def test_report_for_known_records(self):
        records = [make_record(10), make_record(20), make_record(30)]

        report = generate_report(records)

        assert total_gas_cost(records) == 60
        assert report.count == 3
        assert report.total_gas_consumed == 60
        assert report.total_gas_cost == 60
        assert report.average_gas_price == 1
        assert report.most_expensive_tx_cost == 30
        assert report.cheapest_tx_cost == 10

    def test_empty_report_uses_max_sentinel_for_cheapest(self):
        report = generate_report([])

        assert report.count == 0
        assert report.total_gas_consumed == 0
        assert report.total_gas_cost == 0
        assert report.average_gas_price == 0
        assert report.most_expensive_tx_cost == 0
        assert report.cheapest_tx_cost == MAX_UINT256

    def test_average_gas_price_truncates(self):
        records = [make_record(1, gas_price=1), make_record(1, gas_price=2)]
        assert generate_report(records).average_gas_price == 1

    def test_free_transaction_reports_zero_cheapest(self):
        report = generate_report([make_record(0), make_record(5)])
        assert report.cheapest_tx_cost == 0

    def test_large_values_do_not_overflow(self):
        record = make_record(2**64, gas_price=2**64)
        assert total_gas_cost([record]) == 2**128


class TestCompareAgainstBaseline:
    """Test category comparisons."""

    def test_no_matching_records(self, registry):
        result = compare_against_baseline([make_record(100, category="deployment")], "transfer", registry.get)

        assert result.average_gas == 0
        assert result.baseline == 21000
        assert result.is_optimal is False

    def test_baseline_reflects_current_registry_value(self, registry):
        registry.set("transfer", 30000)
        result = compare_against_baseline([], "transfer", registry.get)
        assert result.baseline == 30000

    def test_within_ten_percent_is_optimal(self, registry):
        records = [make_record(23100), make_record(23100)]
        result = compare_against_baseline(records, "transfer", registry.get)

        assert result.average_gas == 23100
        assert result.is_optimal is True

    def test_above_ten_percent_is_not_optimal(self, registry):
        result = compare_against_baseline([make_record(23101)], "transfer", registry.get)
        assert result.is_optimal is False

    def test_category_match_is_exact(self, registry):
        records = [make_record(100, category="Transfer"), make_record(200, category="transfer")]
        result = compare_against_baseline(records, "transfer", registry.get)
        assert result.average_gas == 200

    def test_unknown_category_has_zero_baseline(self, registry):
        result = compare_against_baseline([make_record(1, category="swap")], "swap", registry.get)
        assert result.baseline == 0
        assert result.is_optimal is False


class TestTransactionsInRange:
    """Test time-range filtering."""

    def test_inclusive_bounds_and_order(self):
        records = [make_record(1, minutes=m) for m in (0, 5, 10, 15)]

        result = transactions_in_range(
            records, START + timedelta(minutes=5), START + timedelta(minutes=10)
        )

        assert [r.timestamp for r in result] == [
            START + timedelta(minutes=5),
            START + timedelta(minutes=10),
        ]

    def test_inverted_range_is_empty(self):
        records = [make_record(1, minutes=m) for m in (0, 5)]
        assert transactions_in_range(records, START + timedelta(minutes=5), START) == []

    def test_no_match_is_empty(self):
        assert transactions_in_range([make_record(1)], START + timedelta(days=1), START + timedelta(days=2)) == []


class TestEfficiencyScore:
    """Test baseline-relative efficiency scoring."""

    @pytest.mark.parametrize("gas_used,expected", [(21000, 100), (42000, 50), (10500, 100)])
    def test_single_transfer(self, registry, gas_used, expected):
        assert efficiency_score([make_record(gas_used)], registry.get) == expected

    def test_no_records(self, registry):
        assert efficiency_score([], registry.get) == 0

    def test_records_without_baseline_are_excluded(self, registry):
        records = [make_record(42000), make_record(999999, category="swap")]
        assert efficiency_score(records, registry.get) == 50

    def test_only_unknown_categories_scores_zero(self, registry):
        assert efficiency_score([make_record(1, category="swap")], registry.get) == 0

    def test_zero_gas_records_are_excluded(self, registry):
        records = [make_record(0), make_record(42000)]
        assert efficiency_score(records, registry.get) == 50

    def test_only_zero_gas_records_scores_zero(self, registry):
        assert efficiency_score([make_record(0)], registry.get) == 0

    def test_average_over_scored_records(self, registry):
        records = [make_record(21000), make_record(42000), make_record(84000)]
        # (100 + 50 + 25) // 3
        assert efficiency_score(records, registry.get) == 58


class TestMaxPotentialSavings:
    """Test savings estimate over baseline excess."""

    def test_sums_excess_cost(self, registry):
        records = [
            make_record(31000, gas_price=2),
            make_record(60000, gas_price=3, category="contract_call"),
        ]
        assert estimate_max_potential_savings(records, registry.get) == 10000 * 2 + 10000 * 3

    def test_at_or_below_baseline_contributes_nothing(self, registry):
        records = [make_record(21000, gas_price=5), make_record(1000, gas_price=5)]
        assert estimate_max_potential_savings(records, registry.get) == 0

    def test_unknown_category_contributes_nothing(self, registry):
        assert estimate_max_potential_savings([make_record(10**6, category="swap")], registry.get) == 0
