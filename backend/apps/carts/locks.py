from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List

from apps.common import get_logger

logger = get_logger(__name__).bind(component="carts", layer="lock")


class KeyedLock:
    """
    One re-entrant lock per key, created on demand and dropped once nobody holds
    or waits for it. Serializes cart mutations per owner inside this process;
    the database constraints cover writers in other processes.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: Dict[str, List] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = [threading.RLock(), 0]
            entry[1] += 1
        lock = entry[0]
        if not lock.acquire(blocking=False):
            logger.debug("Waiting for cart lock", key=key)
            lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    self._entries.pop(key, None)

    def active_keys(self) -> List[str]:
        with self._guard:
            return sorted(self._entries)


cart_locks = KeyedLock()
