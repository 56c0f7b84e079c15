"""
In-process lock registries.

One re-entrant lock per key, created on first use. ``hold`` takes several
keys in a stable order so that two units of work never wait on each other
in a cycle. When a unit of work needs both, user locks are taken before
journey locks.
"""

import threading
import uuid
from contextlib import ExitStack, contextmanager
from typing import Dict, Iterator, Optional


class LockRegistry:
    """Process-wide registry of one lock per key"""

    def __init__(self):
        self._locks: Dict[uuid.UUID, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    def lock_for(self, key: uuid.UUID) -> threading.RLock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, *keys: Optional[uuid.UUID]) -> Iterator[None]:
        """Hold the locks of the given keys, taken in sorted order"""
        ordered = sorted({key for key in keys if key is not None}, key=str)
        with ExitStack() as stack:
            for key in ordered:
                stack.enter_context(self.lock_for(key))
            yield

    def discard(self, key: uuid.UUID) -> None:
        with self._registry_lock:
            self._locks.pop(key, None)

    def __contains__(self, key: uuid.UUID) -> bool:
        return key in self._locks

    def __len__(self) -> int:
        return len(self._locks)


journey_locks = LockRegistry()
user_locks = LockRegistry()
