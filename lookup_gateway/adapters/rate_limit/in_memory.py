"""In-memory rate limit store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit,
  and state is lost on restart.
- Thread-safe: each key has its own lock; the table itself is guarded by a
  separate lock used only to create per-key locks.
- Reads and writes are individually atomic. The admission check and the
  later record step are not: two concurrent lookups from one client can both
  pass the check before either is recorded, so a client may slightly exceed
  its quota or cooldown under concurrent load.
"""

from __future__ import annotations

import threading
from dataclasses import replace

from lookup_gateway.adapters.rate_limit.base import AbstractRateLimitStore, ClientRecord


class InMemoryRateLimitStore(AbstractRateLimitStore):
    """Dictionary-backed store of ClientRecord values keyed by client id."""

    def __init__(self) -> None:
        self._records: dict[str, ClientRecord] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._table_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def _lock_for(self, key: str) -> threading.Lock:
        with self._table_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def get(self, key: str) -> ClientRecord:
        """Return the record for key, creating an empty one on first access.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        with self._lock_for(key):
            record = self._records.get(key)
            if record is None:
                record = ClientRecord()
                self._records[key] = record
            return record

    def record(self, key: str, *, now: float) -> ClientRecord:
        """Increment the request count of key and stamp it with now.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        with self._lock_for(key):
            current = self._records.get(key) or ClientRecord()
            updated = replace(
                current,
                request_count=current.request_count + 1,
                last_request_at=now,
            )
            self._records[key] = updated
            return updated
