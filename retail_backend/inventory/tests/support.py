# inventory/tests/support.py

"""Shared builders for engine tests (in-memory storage, deterministic clock)."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from inventory.engine import InventoryService
from inventory.engine.memory import InMemoryStore

T0 = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


def day(n: int) -> datetime:
    """Purchase timestamp n days after T0."""
    return T0 + timedelta(days=n)


class TickingClock:
    """Each call returns a timestamp one second later than the previous one."""

    def __init__(self, start: datetime = T0):
        self._now = start
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            self._now = self._now + timedelta(seconds=1)
            return self._now


def make_engine(*, max_retries: int = 3, lock_timeout: float = 5.0):
    store = InMemoryStore(lock_timeout=lock_timeout)
    service = InventoryService(store.unit_of_work, max_retries=max_retries, clock=TickingClock())
    return store, service


def batch_total(store: InMemoryStore, product_id) -> Decimal:
    return sum(
        (b.quantity_remaining for b in store.batches.values() if b.product_id == product_id),
        Decimal("0"),
    )
