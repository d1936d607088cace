"""Synchronization primitives shared by the graph store and the cycle audit."""

import threading
from contextlib import contextmanager
from typing import Callable, Dict, Generic, Hashable, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class RWLock:
    """
    Readers-writer lock with writer preference.

    Any number of readers may hold the lock at once; a writer holds it
    alone. Waiting writers block new readers so that a steady stream of
    readers cannot starve them. Neither side is reentrant.

    Example:
        >>> lock = RWLock()
        >>> with lock.read():
        ...     pass
        >>> with lock.write():
        ...     pass
    """

    def __init__(self) -> None:
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        """Hold the lock in shared mode for the duration of the block."""
        with self._condition:
            while self._writer or self._waiting_writers:
                self._condition.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._condition:
                self._readers -= 1
                if self._readers == 0:
                    self._condition.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        """Hold the lock exclusively for the duration of the block."""
        with self._condition:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._condition.wait()
                self._writer = True
            finally:
                self._waiting_writers -= 1
        try:
            yield
        finally:
            with self._condition:
                self._writer = False
                self._condition.notify_all()

    @property
    def reader_count(self) -> int:
        """Number of readers currently holding the lock."""
        with self._condition:
            return self._readers

    @property
    def writer_active(self) -> bool:
        """True while a writer holds the lock."""
        with self._condition:
            return self._writer


class ConcurrentSet(Generic[T]):
    """
    A mutex-guarded set with an atomic check-and-insert.

    If ``key`` is given, membership is decided on ``key(item)`` and the
    first item stored under a key is the one kept.
    """

    def __init__(self, key: Optional[Callable[[T], Hashable]] = None):
        self._lock = threading.Lock()
        self._items: Dict[Hashable, T] = {}
        self._key = key

    def _key_of(self, item: T) -> Hashable:
        return self._key(item) if self._key is not None else item

    def add(self, item: T) -> bool:
        """
        Insert ``item`` unless an equal one is already present.

        Returns:
            True if this call stored the item, False if it was already there.
        """
        k = self._key_of(item)
        with self._lock:
            if k in self._items:
                return False
            self._items[k] = item
            return True

    def snapshot(self) -> List[T]:
        """Return a copy of the stored items."""
        with self._lock:
            return list(self._items.values())

    def __contains__(self, item: T) -> bool:
        k = self._key_of(item)
        with self._lock:
            return k in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
