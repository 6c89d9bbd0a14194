"""
Read-only reports over one account's ledger slice.

Every function here is pure: it takes a sequence of records (and a
baseline lookup where needed) and never touches engine state. All
arithmetic is integer arithmetic with truncating division.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Sequence

from gas_optimizer.storage.models import MAX_UINT256, TransactionRecord

BaselineLookup = Callable[[str], int]

# Average gas within 110% of baseline counts as optimal
OPTIMAL_TOLERANCE_PERCENT = 110
MAX_EFFICIENCY_SCORE = 100


@dataclass(frozen=True)
class GasReport:
    """Aggregate statistics for an account.

    ``cheapest_tx_cost`` is MAX_UINT256 when there are no records, so an
    empty ledger is never mistaken for a free transaction.
    """
    count: int
    total_gas_consumed: int
    total_gas_cost: int
    average_gas_price: int
    most_expensive_tx_cost: int
    cheapest_tx_cost: int


@dataclass(frozen=True)
class BaselineComparison:
    """Average gas for one category compared to its baseline."""
    average_gas: int
    baseline: int
    is_optimal: bool


def total_gas_cost(records: Sequence[TransactionRecord]) -> int:
    """Sum of gas_used * gas_price over all records (0 when empty)."""
    return sum(record.cost for record in records)


def generate_report(records: Sequence[TransactionRecord]) -> GasReport:
    """Single pass over the records computing totals, extremes and average price."""
    total_gas = 0
    total_cost = 0
    total_price = 0
    most_expensive = 0
    cheapest = MAX_UINT256

    for record in records:
        cost = record.cost
        total_gas += record.gas_used
        total_cost += cost
        total_price += record.gas_price
        if cost > most_expensive:
            most_expensive = cost
        if cost < cheapest:
            cheapest = cost

    count = len(records)
    return GasReport(
        count=count,
        total_gas_consumed=total_gas,
        total_gas_cost=total_cost,
        average_gas_price=total_price // count if count else 0,
        most_expensive_tx_cost=most_expensive,
        cheapest_tx_cost=cheapest,
    )


def compare_against_baseline(
    records: Sequence[TransactionRecord],
    category: str,
    baseline_for: BaselineLookup,
) -> BaselineComparison:
    """Compare average gas of ``category`` records against the category baseline.

    Categories match by exact string equality. With no matching records
    the comparison is never optimal.
    """
    baseline = baseline_for(category)
    matching = [record.gas_used for record in records if record.category == category]
    if not matching:
        return BaselineComparison(average_gas=0, baseline=baseline, is_optimal=False)

    average_gas = sum(matching) // len(matching)
    threshold = baseline * OPTIMAL_TOLERANCE_PERCENT // 100
    return BaselineComparison(
        average_gas=average_gas,
        baseline=baseline,
        is_optimal=average_gas <= threshold,
    )


def transactions_in_range(
    records: Sequence[TransactionRecord],
    start: datetime,
    end: datetime,
) -> List[TransactionRecord]:
    """Records with start <= timestamp <= end, in insertion order.

    An inverted range simply matches nothing.
    """
    return [record for record in records if start <= record.timestamp <= end]


def efficiency_score(
    records: Sequence[TransactionRecord],
    baseline_for: BaselineLookup,
) -> int:
    """Average per-record efficiency in [0, 100].

    Each record whose category has a non-zero baseline scores
    min(100, baseline * 100 / gas_used). Records without a baseline are
    skipped, as are records with gas_used == 0, which have no meaningful
    ratio. Returns 0 when no record could be scored.
    """
    total_score = 0
    scored = 0
    for record in records:
        baseline = baseline_for(record.category)
        if baseline == 0 or record.gas_used == 0:
            continue
        total_score += min(MAX_EFFICIENCY_SCORE, baseline * 100 // record.gas_used)
        scored += 1

    if scored == 0:
        return 0
    return total_score // scored


def estimate_max_potential_savings(
    records: Sequence[TransactionRecord],
    baseline_for: BaselineLookup,
) -> int:
    """Cost of the gas used above baseline, summed over all records."""
    savings = 0
    for record in records:
        baseline = baseline_for(record.category)
        if baseline > 0 and record.gas_used > baseline:
            savings += (record.gas_used - baseline) * record.gas_price
    return savings
