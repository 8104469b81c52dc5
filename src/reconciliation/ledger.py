import threading
from datetime import datetime, timezone

from src.models.transaction import TransactionRecord, TransactionState


class TransactionLedger:
    """In-memory order_id -> TransactionRecord map with one lock per order.

    Callers hold ``lock_for(order_id)`` across any read-modify-write of a
    record, including the upstream call that drives the transition.
    """

    def __init__(self):
        self._records: dict[str, TransactionRecord] = {}
        self._order_locks: dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def lock_for(self, order_id: str) -> threading.Lock:
        with self._lock:
            lock = self._order_locks.get(order_id)
            if lock is None:
                lock = self._order_locks[order_id] = threading.Lock()
            return lock

    def get(self, order_id: str) -> TransactionRecord | None:
        with self._lock:
            return self._records.get(order_id)

    def get_or_create(self, order_id: str) -> tuple[TransactionRecord, bool]:
        with self._lock:
            record = self._records.get(order_id)
            if record is not None:
                return record, False
            record = self._records[order_id] = TransactionRecord(order_id=order_id)
            return record, True

    def transition(
        self,
        record: TransactionRecord,
        state: TransactionState,
        **changes,
    ) -> TransactionRecord:
        for name, value in changes.items():
            setattr(record, name, value)
        record.state = state
        record.updated_at = datetime.now(timezone.utc)
        record.history.append(state)
        return record

    def find(self, state: TransactionState | None = None) -> list[TransactionRecord]:
        with self._lock:
            if state is None:
                return list(self._records.values())
            return [r for r in self._records.values() if r.state is state]

    def needs_attention(self) -> list[TransactionRecord]:
        with self._lock:
            return [r for r in self._records.values() if r.needs_attention]

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._order_locks.clear()
