"""
Gas optimizer engine.

Wires the ledger, baseline registry, budget monitor and savings tally
together and exposes every operation to the outer layer. The engine
never authenticates: callers arrive as already-verified account
identities, and administrator checks are delegated to a predicate.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Iterable, List, Mapping, Optional, Sequence

from .baseline import BaselineRegistry
from .budget import BudgetMonitor, BudgetState
from .errors import InvalidAmount, Unauthorized
from .events import (
    BaselineUpdated,
    FeeUpdated,
    GasOptimized,
    NotificationLog,
    TransactionAnalyzed,
)
from .ledger import TransactionLedger
from .recommendation import Recommendation, recommend
from .report import (
    BaselineComparison,
    GasReport,
    compare_against_baseline,
    efficiency_score,
    estimate_max_potential_savings,
    generate_report,
    total_gas_cost,
    transactions_in_range,
)
from .tally import OptimizationStats, OptimizationTally
from gas_optimizer.storage.models import TransactionRecord
from gas_optimizer.storage.repository import (
    ANALYSIS_FEE_KEY,
    OPTIMIZATION_COUNT_KEY,
    LedgerRepository,
)

logger = logging.getLogger(__name__)

AdminCheck = Callable[[str], bool]


class GasOptimizer:
    """Ledger and analytics engine for per-account transaction observations.

    With a ``repository`` the engine loads its state on construction and
    writes every mutation through before applying it in memory; a failed
    write leaves the engine unchanged. Without one it is purely in-memory.
    """

    def __init__(
        self,
        is_administrator: AdminCheck,
        baselines: Optional[Mapping[str, int]] = None,
        analysis_fee: int = 0,
        repository: Optional[LedgerRepository] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the engine.

        Args:
            is_administrator: Predicate deciding who may run admin operations
            baselines: Baseline overrides merged over the defaults
            analysis_fee: Initial analysis fee (a stored fee takes precedence)
            repository: Optional durable store
            clock: Source of record timestamps
        """
        self._is_administrator = is_administrator
        self._repository = repository
        self.notifications = NotificationLog()

        initial_baselines = dict(baselines or {})
        records = None
        budgets = None
        savings = None
        optimization_count = 0
        if repository is not None:
            repository.initialize_schema()
            initial_baselines.update(repository.fetch_baselines())
            records = repository.fetch_all_records()
            budgets = repository.fetch_budgets()
            savings = repository.fetch_savings()
            optimization_count = repository.fetch_meta(OPTIMIZATION_COUNT_KEY, 0)
            analysis_fee = repository.fetch_meta(ANALYSIS_FEE_KEY, analysis_fee)

        self._fee_lock = threading.Lock()
        self._analysis_fee = analysis_fee
        self.baselines = BaselineRegistry(
            initial_baselines,
            writer=repository.save_baseline if repository else None,
        )
        self.ledger = TransactionLedger(
            clock=clock,
            writer=repository.insert_records if repository else None,
            records=records,
        )
        self.budgets = BudgetMonitor(
            self.ledger,
            self.notifications,
            writer=repository.save_budget if repository else None,
            budgets=budgets,
        )
        self.tally = OptimizationTally(
            writer=repository.add_savings if repository else None,
            savings=savings,
            optimization_count=optimization_count,
        )

    # Ledger

    def append(
        self,
        caller: str,
        to: str,
        value: int,
        gas_used: int,
        gas_price: int,
        category: str,
    ) -> TransactionRecord:
        """Record one transaction for ``caller`` and run the budget check."""
        record = self.ledger.append(caller, to, value, gas_used, gas_price, category)
        self._analyzed(record)
        self.budgets.check_after_append(caller)
        return record

    def batch_append(self, caller: str, entries: Iterable[Sequence]) -> List[TransactionRecord]:
        """Record several transactions atomically; one budget check for the batch."""
        records = self.ledger.batch_append(caller, entries)
        if not records:
            return records
        for record in records:
            self._analyzed(record)
        self.budgets.check_after_append(caller)
        return records

    def get_count(self, account: str) -> int:
        return self.ledger.count(account)

    def transactions(self, account: str) -> Sequence[TransactionRecord]:
        return self.ledger.records(account)

    # Reports

    def total_gas_cost(self, account: str) -> int:
        return total_gas_cost(self.ledger.records(account))

    def generate_report(self, account: str) -> GasReport:
        return generate_report(self.ledger.records(account))

    def compare_against_baseline(self, account: str, category: str) -> BaselineComparison:
        return compare_against_baseline(self.ledger.records(account), category, self.baselines.get)

    def transactions_in_range(
        self, account: str, start: datetime, end: datetime
    ) -> List[TransactionRecord]:
        return transactions_in_range(self.ledger.records(account), start, end)

    def efficiency_score(self, account: str) -> int:
        return efficiency_score(self.ledger.records(account), self.baselines.get)

    def estimate_max_potential_savings(self, account: str) -> int:
        return estimate_max_potential_savings(self.ledger.records(account), self.baselines.get)

    def recommend(self, account: str) -> Recommendation:
        return recommend(self.ledger.records(account))

    # Budgets and savings

    def set_budget(self, account: str, amount: int) -> None:
        self.budgets.set_budget(account, amount)

    def budget_state(self, account: str) -> Optional[BudgetState]:
        return self.budgets.state(account)

    def report_savings(self, account: str, amount: int) -> OptimizationStats:
        """Add user-reported savings and emit a GasOptimized notification."""
        total = self.tally.report(account, amount)
        self.notifications.emit(GasOptimized, account=account, amount=amount, total_saved=total)
        return self.tally.stats(account)

    def stats(self, account: str) -> OptimizationStats:
        return self.tally.stats(account)

    # Administration

    def get_baseline(self, category: str) -> int:
        return self.baselines.get(category)

    def set_baseline(self, caller: str, category: str, value: int) -> None:
        """Update a category baseline.

        Raises:
            Unauthorized: If ``caller`` is not an administrator
            ValueError: If the category is empty or the value negative
        """
        self._require_administrator(caller, "set baselines")
        previous = self.baselines.set(category, value)
        logger.info("Baseline for %s changed from %d to %d by %s", category, previous, value, caller)
        self.notifications.emit(
            BaselineUpdated, category=category, previous=previous, baseline=value
        )

    @property
    def analysis_fee(self) -> int:
        return self._analysis_fee

    def set_analysis_fee(self, caller: str, fee: int) -> None:
        """Configure the analysis fee.

        Raises:
            Unauthorized: If ``caller`` is not an administrator
            InvalidAmount: If ``fee`` is negative or not an integer
        """
        self._require_administrator(caller, "set the analysis fee")
        if isinstance(fee, bool) or not isinstance(fee, int) or fee < 0:
            raise InvalidAmount(f"Fee cannot be negative, got {fee!r}")
        with self._fee_lock:
            if self._repository is not None:
                self._repository.save_meta(ANALYSIS_FEE_KEY, fee)
            previous = self._analysis_fee
            self._analysis_fee = fee
        logger.info("Analysis fee changed from %d to %d by %s", previous, fee, caller)
        self.notifications.emit(FeeUpdated, previous=previous, fee=fee)

    def _require_administrator(self, caller: str, operation: str) -> None:
        if not self._is_administrator(caller):
            raise Unauthorized(caller, operation)

    def _analyzed(self, record: TransactionRecord) -> None:
        self.notifications.emit(
            TransactionAnalyzed,
            account=record.sender,
            to=record.to,
            gas_used=record.gas_used,
            gas_price=record.gas_price,
            category=record.category,
            timestamp=record.timestamp,
        )
