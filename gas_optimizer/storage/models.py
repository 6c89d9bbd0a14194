"""
Data models for storage layer.

Defines the immutable transaction record and address helpers.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

ZERO_ADDRESS = "0x" + "0" * 40

# Sentinel for "no minimum observed" in reports
MAX_UINT256 = 2**256 - 1


def is_zero_address(address: Optional[str]) -> bool:
    """Return True for a null, empty, or all-zero hex address."""
    if address is None:
        return True
    normalized = address.strip().lower()
    if not normalized:
        return True
    if normalized.startswith("0x"):
        digits = normalized[2:]
        return not digits or set(digits) == {"0"}
    return False


@dataclass(frozen=True)
class TransactionRecord:
    """Immutable record of one observed transaction.

    Append-only entries that make up an account's ledger.
    Once written, these records must never be modified.
    """
    sender: str
    to: str
    value: int
    gas_used: int
    gas_price: int
    timestamp: datetime
    category: str

    def __post_init__(self):
        """Validate amounts are non-negative integers."""
        for name in ("value", "gas_used", "gas_price"):
            amount = getattr(self, name)
            if isinstance(amount, bool) or not isinstance(amount, int):
                raise ValueError(f"{name} must be an integer")
            if amount < 0:
                raise ValueError(f"{name} cannot be negative")
        if not isinstance(self.category, str) or not self.category:
            raise ValueError("category must be a non-empty string")

    @property
    def cost(self) -> int:
        """Gas cost of the transaction (gas_used * gas_price)."""
        return self.gas_used * self.gas_price
