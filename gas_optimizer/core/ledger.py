"""
Append-only, per-account transaction ledger.

The ledger is the single source of truth every analytic is computed
from. Records are only ever appended; an account's sequence is kept in
insertion order and is never pruned.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from .errors import ArityMismatch, InvalidRecipient
from gas_optimizer.storage.models import TransactionRecord, is_zero_address

logger = logging.getLogger(__name__)


class BatchEntry(NamedTuple):
    """One item of a batch append; every field is mandatory."""
    to: str
    value: int
    gas_used: int
    gas_price: int
    category: str


def entries_from_columns(
    to: Sequence[str],
    values: Sequence[int],
    gas_used: Sequence[int],
    gas_prices: Sequence[int],
    categories: Sequence[str],
) -> List[BatchEntry]:
    """Zip parallel field sequences into batch entries.

    Raises:
        ArityMismatch: If the sequences differ in length
    """
    lengths = {len(to), len(values), len(gas_used), len(gas_prices), len(categories)}
    if len(lengths) != 1:
        raise ArityMismatch(
            f"Batch columns have mismatched lengths: "
            f"to={len(to)}, values={len(values)}, gas_used={len(gas_used)}, "
            f"gas_prices={len(gas_prices)}, categories={len(categories)}"
        )
    return [BatchEntry(*fields) for fields in zip(to, values, gas_used, gas_prices, categories)]


def _as_entry(index: int, entry: Sequence) -> BatchEntry:
    if isinstance(entry, BatchEntry):
        return entry
    if len(entry) != len(BatchEntry._fields):
        raise ArityMismatch(
            f"Batch entry at index {index} has {len(entry)} fields, "
            f"expected {len(BatchEntry._fields)}"
        )
    return BatchEntry(*entry)


# Called with the records about to be committed; raising aborts the append.
RecordWriter = Callable[[List[TransactionRecord]], None]


class TransactionLedger:
    """Thread-safe append-only ledger keyed by sender account.

    Writers are serialized by a single lock. Readers get a tuple snapshot
    taken under the same lock, so they only ever observe whole appends
    (a batch is visible entirely or not at all).
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = datetime.now,
        writer: Optional[RecordWriter] = None,
        records: Optional[Mapping[str, Iterable[TransactionRecord]]] = None,
    ):
        """Initialize the ledger.

        Args:
            clock: Source of record timestamps
            writer: Optional durable sink, called before records become visible
            records: Previously stored records to preload, per account
        """
        self._clock = clock
        self._writer = writer
        self._lock = threading.RLock()
        self._records: Dict[str, List[TransactionRecord]] = {}
        for account, account_records in (records or {}).items():
            self._records[account] = list(account_records)

    def append(
        self,
        caller: str,
        to: str,
        value: int,
        gas_used: int,
        gas_price: int,
        category: str,
    ) -> TransactionRecord:
        """Append one record to ``caller``'s sequence.

        Raises:
            InvalidRecipient: If ``to`` is the zero/null address
            ValueError: If an amount is negative or not an integer
        """
        if is_zero_address(to):
            raise InvalidRecipient(f"Invalid recipient address: {to!r}")

        with self._lock:
            record = TransactionRecord(
                sender=caller,
                to=to,
                value=value,
                gas_used=gas_used,
                gas_price=gas_price,
                timestamp=self._clock(),
                category=category,
            )
            self._commit(caller, [record])

        logger.debug("Appended %s record for %s (gas_used=%d)", category, caller, gas_used)
        return record

    def batch_append(self, caller: str, entries: Iterable[Sequence]) -> List[TransactionRecord]:
        """Append several records to ``caller``'s sequence, all or nothing.

        Every entry is validated before anything is committed. All records
        of one batch share the same timestamp.

        Raises:
            ArityMismatch: If an entry does not have exactly five fields
            InvalidRecipient: If any entry targets the zero/null address
            ValueError: If an amount is negative or not an integer
        """
        batch = [_as_entry(index, entry) for index, entry in enumerate(entries)]
        for index, entry in enumerate(batch):
            if is_zero_address(entry.to):
                raise InvalidRecipient(
                    f"Invalid recipient address at batch index {index}: {entry.to!r}"
                )
        if not batch:
            return []

        with self._lock:
            now = self._clock()
            records = [
                TransactionRecord(
                    sender=caller,
                    to=entry.to,
                    value=entry.value,
                    gas_used=entry.gas_used,
                    gas_price=entry.gas_price,
                    timestamp=now,
                    category=entry.category,
                )
                for entry in batch
            ]
            self._commit(caller, records)

        logger.debug("Appended batch of %d records for %s", len(records), caller)
        return records

    def count(self, account: str) -> int:
        with self._lock:
            return len(self._records.get(account, ()))

    def records(self, account: str) -> Tuple[TransactionRecord, ...]:
        """Consistent snapshot of ``account``'s records in insertion order."""
        with self._lock:
            return tuple(self._records.get(account, ()))

    def accounts(self) -> List[str]:
        with self._lock:
            return list(self._records)

    def _commit(self, account: str, records: List[TransactionRecord]) -> None:
        # Caller holds the lock; the durable write must succeed before memory changes.
        if self._writer is not None:
            self._writer(records)
        self._records.setdefault(account, []).extend(records)
