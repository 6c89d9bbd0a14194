"""
Tests for the savings tally.
"""

import threading

import pytest

from gas_optimizer.core.errors import InvalidAmount
from gas_optimizer.core.tally import OptimizationStats, OptimizationTally


class TestOptimizationTally:
    """Test savings reports and counters."""

    def test_initial_stats(self):
        assert OptimizationTally().stats("0xa1") == OptimizationStats(0, 0)

    def test_report_accumulates_per_account(self):
        tally = OptimizationTally()
        tally.report("0xa1", 100)
        total = tally.report("0xa1", 50)
        tally.report("0xb0", 7)

        assert total == 150
        assert tally.stats("0xa1") == OptimizationStats(total_saved=150, global_optimization_count=3)
        assert tally.stats("0xb0").total_saved == 7

    @pytest.mark.parametrize("amount", [0, -1, True])
    def test_invalid_amount_rejected(self, amount):
        tally = OptimizationTally()

        with pytest.raises(InvalidAmount):
            tally.report("0xa1", amount)

        assert tally.stats("0xa1") == OptimizationStats(0, 0)

    def test_preloaded_state(self):
        tally = OptimizationTally(savings={"0xa1": 10}, optimization_count=4)
        assert tally.stats("0xa1") == OptimizationStats(10, 4)

    def test_concurrent_reports_are_counted_once_each(self):
        tally = OptimizationTally()

        def worker():
            for _ in range(250):
                tally.report("0xa1", 2)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert tally.stats("0xa1") == OptimizationStats(total_saved=2000, global_optimization_count=1000)
