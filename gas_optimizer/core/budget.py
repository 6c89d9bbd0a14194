"""
Advisory per-account spending ceilings.

Budgets never block an append. After records are committed the monitor
compares the account's cumulative gas cost against its ceiling and
emits a notification when it has been exceeded.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional

from .errors import InvalidAmount
from .events import BudgetExceeded, NotificationLog
from .ledger import TransactionLedger
from .report import total_gas_cost

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetState:
    """Current budget state for an account."""
    spent: int
    budget: int

    @property
    def remaining(self) -> int:
        return self.budget - self.spent

    @property
    def exceeded(self) -> bool:
        return self.spent > self.budget


class BudgetMonitor:
    """Tracks optional budgets and checks them against ledger totals."""

    def __init__(
        self,
        ledger: TransactionLedger,
        notifications: NotificationLog,
        writer: Optional[Callable[[str, int], None]] = None,
        budgets: Optional[Mapping[str, int]] = None,
    ):
        self._ledger = ledger
        self._notifications = notifications
        self._writer = writer
        self._lock = threading.Lock()
        self._budgets: Dict[str, int] = dict(budgets or {})

    def set_budget(self, account: str, amount: int) -> None:
        """Configure ``account``'s ceiling on cumulative gas cost.

        Raises:
            InvalidAmount: If ``amount`` is not a positive integer
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidAmount(f"Budget must be greater than zero, got {amount!r}")
        with self._lock:
            if self._writer is not None:
                self._writer(account, amount)
            self._budgets[account] = amount
        logger.info("Budget for %s set to %d", account, amount)

    def get_budget(self, account: str) -> Optional[int]:
        """Configured budget, or None when the account has none."""
        with self._lock:
            return self._budgets.get(account)

    def state(self, account: str) -> Optional[BudgetState]:
        budget = self.get_budget(account)
        if budget is None:
            return None
        return BudgetState(spent=total_gas_cost(self._ledger.records(account)), budget=budget)

    def check_after_append(self, account: str) -> Optional[BudgetExceeded]:
        """Emit a BudgetExceeded notification if ``account`` is over budget.

        Returns:
            The emitted notification, or None when no budget is set or it holds
        """
        state = self.state(account)
        if state is None or not state.exceeded:
            return None
        logger.warning(
            "Budget exceeded for %s: spent %d of %d", account, state.spent, state.budget
        )
        return self._notifications.emit(
            BudgetExceeded, account=account, spent=state.spent, budget=state.budget
        )
