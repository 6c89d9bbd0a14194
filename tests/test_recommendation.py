"""
Unit tests for gas limit recommendations.
"""

from datetime import datetime

from gas_optimizer.core.recommendation import NO_RECOMMENDATION, recommend
from gas_optimizer.storage.models import TransactionRecord


def make_record(gas_used):
    return TransactionRecord(
        sender="0xa1",
        to="0xb0",
        value=0,
        gas_used=gas_used,
        gas_price=1,
        timestamp=datetime(2024, 1, 1),
        category="transfer",
    )


class TestRecommend:
    """Test the recommendation formula."""

    def test_no_records(self):
        result = recommend([])

        assert result == NO_RECOMMENDATION
        assert result.has_recommendation is False
        assert result.average_gas_used == 0
        assert result.recommended_gas_limit == 0
        assert result.potential_savings == 0
        assert result.transaction_count == 0

    def test_uniform_history_has_no_savings(self):
        result = recommend([make_record(100)] * 4)

        assert result.has_recommendation is True
        assert result.average_gas_used == 100
        assert result.recommended_gas_limit == 120
        assert result.potential_savings == 0
        assert result.transaction_count == 4

    def test_savings_multiply_worst_excess_by_count(self):
        # average 200, limit 240, max excess 160, times 3 transactions
        result = recommend([make_record(100), make_record(100), make_record(400)])

        assert result.average_gas_used == 200
        assert result.recommended_gas_limit == 240
        assert result.potential_savings == 160 * 3

    def test_integer_truncation(self):
        # average 10 // 3 = 3, limit 3 + 3 * 20 // 100 = 3
        result = recommend([make_record(3), make_record(3), make_record(4)])

        assert result.average_gas_used == 3
        assert result.recommended_gas_limit == 3
        assert result.potential_savings == (4 - 3) * 3
