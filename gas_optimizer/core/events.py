"""
Notification records for state changes.

The engine produces these as discrete, ordered records. Delivery to
external observers is left to subscribers registered on the log.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Type, TypeVar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """Base notification; ``sequence`` orders all notifications of one engine."""
    sequence: int


@dataclass(frozen=True)
class TransactionAnalyzed(Notification):
    account: str
    to: str
    gas_used: int
    gas_price: int
    category: str
    timestamp: datetime


@dataclass(frozen=True)
class BaselineUpdated(Notification):
    category: str
    previous: int
    baseline: int


@dataclass(frozen=True)
class BudgetExceeded(Notification):
    account: str
    spent: int
    budget: int


@dataclass(frozen=True)
class GasOptimized(Notification):
    account: str
    amount: int
    total_saved: int


@dataclass(frozen=True)
class FeeUpdated(Notification):
    previous: int
    fee: int


N = TypeVar("N", bound=Notification)
Subscriber = Callable[[Notification], None]


class NotificationLog:
    """Thread-safe, ordered log of emitted notifications.

    Subscribers are called synchronously, in registration order, after the
    notification has been recorded. A subscriber that raises propagates its
    error to the caller of the operation that emitted the notification; the
    state change itself has already been committed at that point.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._history: List[Notification] = []
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        with self._lock:
            self._subscribers.append(callback)

    def emit(self, event_type: Type[N], **fields) -> N:
        with self._lock:
            notification = event_type(sequence=len(self._history) + 1, **fields)
            self._history.append(notification)
            subscribers = list(self._subscribers)
        logger.debug("Emitted %s", notification)
        for callback in subscribers:
            callback(notification)
        return notification

    def history(self) -> List[Notification]:
        """Snapshot of every notification emitted so far, oldest first."""
        with self._lock:
            return list(self._history)
