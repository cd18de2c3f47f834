"""Per-key mutual exclusion and transaction scoping for ledger writes.

Create/repay/deposit/withdraw for one borrower run one at a time. Pool-wide
decisions (liquidity) additionally hold POOL_KEY so the liquidity read and
the loan write form one atomic unit within this process; the database row
lock taken by the pool repository covers other processes.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List

POOL_KEY = "__pool__"
VAULT_KEY = "__vault__"


class KeyedLock:
    """Re-entrant lock per key, dropped once no holder or waiter references it"""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, List] = {}  # key -> [RLock, refcount]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, key: str) -> threading.RLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.RLock(), 0]
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: str) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        # Sorted acquisition order keeps multi-key holders deadlock-free
        ordered = sorted({k.lower() for k in keys})
        acquired = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                lock.acquire()
                acquired.append((key, lock))
            yield
        finally:
            for key, lock in reversed(acquired):
                lock.release()
                self._checkin(key)


ledger_locks = KeyedLock()


@contextmanager
def atomic(store) -> Iterator[None]:
    """Commit the store on success, roll it back on any error"""
    try:
        yield
    except Exception:
        store.rollback()
        raise
    store.commit()
