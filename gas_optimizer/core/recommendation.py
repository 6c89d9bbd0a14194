"""
Gas limit recommendations from an account's history.
"""

from dataclasses import dataclass
from typing import Sequence

from gas_optimizer.storage.models import TransactionRecord

# Headroom added on top of the average when suggesting a gas limit
GAS_LIMIT_HEADROOM_PERCENT = 20


@dataclass(frozen=True)
class Recommendation:
    """Suggested gas limit and the savings it would have produced."""
    average_gas_used: int
    recommended_gas_limit: int
    potential_savings: int
    transaction_count: int
    has_recommendation: bool


NO_RECOMMENDATION = Recommendation(
    average_gas_used=0,
    recommended_gas_limit=0,
    potential_savings=0,
    transaction_count=0,
    has_recommendation=False,
)


def recommend(records: Sequence[TransactionRecord]) -> Recommendation:
    """Recommend a gas limit of average + 20%.

    ``potential_savings`` is the largest observed excess over the
    recommended limit multiplied by the number of transactions. It is a
    coarse upper estimate, not a per-record sum.
    """
    count = len(records)
    if count == 0:
        return NO_RECOMMENDATION

    total_gas = 0
    max_gas = 0
    for record in records:
        total_gas += record.gas_used
        if record.gas_used > max_gas:
            max_gas = record.gas_used

    average = total_gas // count
    recommended_limit = average + average * GAS_LIMIT_HEADROOM_PERCENT // 100

    potential_savings = 0
    if max_gas > recommended_limit:
        potential_savings = (max_gas - recommended_limit) * count

    return Recommendation(
        average_gas_used=average,
        recommended_gas_limit=recommended_limit,
        potential_savings=potential_savings,
        transaction_count=count,
        has_recommendation=True,
    )
