"""
Per-key mutual exclusion.

Used to serialize work on the same access grant and to guard find-or-create
of groups by display name, which the workspace does not enforce as unique.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator

logger = logging.getLogger(__name__)


class KeyedLock:
    """
    A map of locks, one per key in use.

    A key's lock lives only while some thread holds or waits for it, so the
    map stays as small as the set of keys currently being worked on.

    Usage:
        locks = KeyedLock()
        with locks.acquire("access-g1"):
            # exclusive for this key, other keys proceed concurrently
            pass
    """

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {}
        self._users: Dict[str, int] = {}
        self._manager_lock = threading.Lock()  # Protects _locks and _users

    def __len__(self) -> int:
        with self._manager_lock:
            return len(self._locks)

    def __contains__(self, key: str) -> bool:
        with self._manager_lock:
            return key in self._locks

    def _checkout(self, key: str) -> threading.Lock:
        with self._manager_lock:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
                logger.debug(f"Created lock for {key}")
            self._users[key] = self._users.get(key, 0) + 1
            return self._locks[key]

    def _release(self, key: str) -> None:
        with self._manager_lock:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]
                logger.debug(f"Removed lock for {key}")

    @contextmanager
    def acquire(self, key: str) -> Iterator[None]:
        lock = self._checkout(key)
        try:
            with lock:
                yield
        finally:
            self._release(key)
