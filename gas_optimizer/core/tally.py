"""
Counters for user-reported gas savings.

These are fed by explicit savings reports and are independent of the
ledger contents.
"""

import threading
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional

from .errors import InvalidAmount


@dataclass(frozen=True)
class OptimizationStats:
    total_saved: int
    global_optimization_count: int


class OptimizationTally:
    """Per-account cumulative savings plus a global optimization counter."""

    def __init__(
        self,
        writer: Optional[Callable[[str, int], None]] = None,
        savings: Optional[Mapping[str, int]] = None,
        optimization_count: int = 0,
    ):
        self._writer = writer
        self._lock = threading.Lock()
        self._savings: Dict[str, int] = dict(savings or {})
        self._optimization_count = optimization_count

    def report(self, account: str, amount: int) -> int:
        """Add ``amount`` to ``account``'s savings and count one optimization.

        Returns:
            The account's new cumulative savings

        Raises:
            InvalidAmount: If ``amount`` is not a positive integer
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidAmount(f"Savings must be greater than zero, got {amount!r}")
        with self._lock:
            if self._writer is not None:
                self._writer(account, amount)
            total = self._savings.get(account, 0) + amount
            self._savings[account] = total
            self._optimization_count += 1
            return total

    def stats(self, account: str) -> OptimizationStats:
        with self._lock:
            return OptimizationStats(
                total_saved=self._savings.get(account, 0),
                global_optimization_count=self._optimization_count,
            )
