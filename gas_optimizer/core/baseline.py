"""
Baseline registry for transaction categories.

Maps a category tag to the gas a typical transaction of that kind is
expected to consume. Analytics compare observed gas against it.
"""

import threading
from typing import Callable, Dict, Mapping, Optional

# Expected gas per category; unknown categories have no baseline.
DEFAULT_BASELINES: Dict[str, int] = {
    "transfer": 21000,
    "contract_call": 50000,
    "deployment": 200000,
}


class BaselineRegistry:
    """Mutable category -> baseline gas mapping seeded with defaults.

    A missing category reads as 0, which analytics treat as "no baseline".
    Administrator gating happens in the engine; the registry only stores.
    """

    def __init__(
        self,
        baselines: Optional[Mapping[str, int]] = None,
        writer: Optional[Callable[[str, int], None]] = None,
    ):
        self._writer = writer
        self._lock = threading.Lock()
        self._baselines: Dict[str, int] = dict(DEFAULT_BASELINES)
        if baselines:
            for category, value in baselines.items():
                _validate(category, value)
                self._baselines[category] = value

    def get(self, category: str) -> int:
        with self._lock:
            return self._baselines.get(category, 0)

    def set(self, category: str, value: int) -> int:
        """Store a baseline and return the previous value (0 if none)."""
        _validate(category, value)
        with self._lock:
            previous = self._baselines.get(category, 0)
            if self._writer is not None:
                self._writer(category, value)
            self._baselines[category] = value
            return previous

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._baselines)


def _validate(category: str, value: int) -> None:
    if not isinstance(category, str) or not category:
        raise ValueError("category must be a non-empty string")
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError("baseline must be a non-negative integer")
