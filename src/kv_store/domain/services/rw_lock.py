"""Single-writer / multiple-reader lock for the store.

Reads take the lock in SHARED mode and run concurrently with each other.
Writes take it in EXCLUSIVE mode, so at most one write transaction is in
flight at any time.

The lock is writer-preferring: once a writer is waiting, new readers
queue behind it. This keeps a steady stream of reads from starving
writes.

Usage:
    lock = ReadWriteLock()

    with lock.shared():
        ...  # read

    with lock.exclusive():
        ...  # write + commit
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from kv_store.domain.value_objects import LockMode


class ReadWriteLock:
    """Writer-preferring read/write lock built on a condition variable.

    Thread Safety:
        All state is guarded by one internal mutex. Not reentrant: a
        thread holding the lock in either mode must not acquire it again.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer_active = False
        self._writers_waiting = 0

    @property
    def readers(self) -> int:
        """Number of current shared holders."""
        with self._cond:
            return self._readers

    @property
    def writer_active(self) -> bool:
        """Whether an exclusive holder is active."""
        with self._cond:
            return self._writer_active

    @property
    def writers_waiting(self) -> int:
        """Number of threads blocked in acquire_exclusive()."""
        with self._cond:
            return self._writers_waiting

    def acquire_shared(self) -> None:
        """Block until the lock can be held in shared mode."""
        with self._cond:
            while self._writer_active or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_shared(self) -> None:
        """Release one shared hold.

        Raises:
            RuntimeError: If the lock is not held in shared mode.
        """
        with self._cond:
            if self._readers == 0:
                raise RuntimeError("release_shared() called without a shared hold")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_exclusive(self) -> None:
        """Block until the lock can be held in exclusive mode."""
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer_active or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer_active = True

    def release_exclusive(self) -> None:
        """Release the exclusive hold.

        Raises:
            RuntimeError: If the lock is not held in exclusive mode.
        """
        with self._cond:
            if not self._writer_active:
                raise RuntimeError("release_exclusive() called without an exclusive hold")
            self._writer_active = False
            self._cond.notify_all()

    def acquire(self, mode: LockMode) -> None:
        """Acquire the lock in the given mode."""
        if mode is LockMode.SHARED:
            self.acquire_shared()
        else:
            self.acquire_exclusive()

    def release(self, mode: LockMode) -> None:
        """Release a hold in the given mode."""
        if mode is LockMode.SHARED:
            self.release_shared()
        else:
            self.release_exclusive()

    @contextmanager
    def locked(self, mode: LockMode) -> Iterator[None]:
        """Hold the lock in the given mode for the duration of the block."""
        self.acquire(mode)
        try:
            yield
        finally:
            self.release(mode)

    def shared(self):
        """Context manager holding the lock in shared mode."""
        return self.locked(LockMode.SHARED)

    def exclusive(self):
        """Context manager holding the lock in exclusive mode."""
        return self.locked(LockMode.EXCLUSIVE)
