# gas_optimizer/demo/seed_demo_data.py

from typing import List

from gas_optimizer.core.engine import GasOptimizer
from gas_optimizer.core.ledger import BatchEntry
from gas_optimizer.storage.models import TransactionRecord

DEMO_RECIPIENT = "0x00000000000000000000000000000000000000de"

DEMO_TRANSACTIONS = [
    BatchEntry(DEMO_RECIPIENT, 10**17, 21000, 20 * 10**9, "transfer"),
    BatchEntry(DEMO_RECIPIENT, 0, 48000, 22 * 10**9, "contract_call"),
    BatchEntry(DEMO_RECIPIENT, 0, 95000, 35 * 10**9, "contract_call"),  # spike
    BatchEntry(DEMO_RECIPIENT, 0, 1_450_000, 18 * 10**9, "deployment"),
    BatchEntry(DEMO_RECIPIENT, 5 * 10**16, 26000, 25 * 10**9, "transfer"),
]


def seed_demo_data(engine: GasOptimizer, account: str) -> List[TransactionRecord]:
    """Append the demo transactions to ``account``'s ledger in one batch."""
    return engine.batch_append(account, DEMO_TRANSACTIONS)


if __name__ == "__main__":
    from gas_optimizer.config.loader import default_config
    from gas_optimizer.storage.repository import LedgerRepository

    config = default_config()
    demo_engine = GasOptimizer(
        is_administrator=config.is_administrator,
        repository=LedgerRepository(config.database),
    )
    seed_demo_data(demo_engine, "0x00000000000000000000000000000000000000a1")
    print("Demo usage data inserted")
