"""
Per-user serialization of trades.

Trades read the balance and holding, then write them back. Running two
of them at once for the same user loses one update. The registry hands
out one lock per user so the whole read-validate-write sequence of a
trade runs alone for that user. Trades of different users still run
in parallel.

The registry protects a single process only.
"""

import threading
import weakref
from contextlib import contextmanager
from typing import Iterator
from uuid import UUID


class UserLockRegistry:
    """Hands out a lock per user id, created on first use.

    Locks are held weakly: once no trade holds or waits on a user's
    lock it is dropped, so the registry only tracks users with trades
    in flight.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[UUID, threading.Lock] = (
            weakref.WeakValueDictionary()
        )

    def __len__(self) -> int:
        return len(self._locks)

    def lock_for(self, user_id: UUID) -> threading.Lock:
        """Return the lock dedicated to ``user_id``.

        Callers must keep the returned reference for as long as they
        need the lock to stay shared.
        """
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[user_id] = lock
            return lock

    @contextmanager
    def hold(self, user_id: UUID) -> Iterator[None]:
        """Hold the user's lock for the duration of the block."""
        lock = self.lock_for(user_id)
        with lock:
            yield
