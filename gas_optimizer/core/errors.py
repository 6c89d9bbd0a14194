"""
Error kinds raised by the optimizer engine.

All errors are raised before any state changes, so a failed call
leaves the ledger, registry and tallies untouched.
"""


class GasOptimizerError(Exception):
    """Base class for engine errors."""


class InvalidRecipient(GasOptimizerError):
    """Raised when a transaction targets the zero/null address."""


class InvalidAmount(GasOptimizerError):
    """Raised when a positive amount is required and was not given."""


class Unauthorized(GasOptimizerError):
    """Raised when a non-administrator calls an administrator-only operation."""

    def __init__(self, caller: str, operation: str):
        super().__init__(f"{caller} is not allowed to {operation}")
        self.caller = caller
        self.operation = operation


class ArityMismatch(GasOptimizerError):
    """Raised when batch input has missing or mismatched fields."""
