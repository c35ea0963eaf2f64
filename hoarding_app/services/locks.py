"""Process-local mutual exclusion keyed by row id.

``advertisement_locks`` and ``hoarding_locks`` serialize the writers that
must not interleave with a booking: the allocator holds both (advertisement
first, then hoarding), deletes hold the one for their row, and the
availability sync holds the hoarding lock while it rewrites a cached flag.
Across processes the same writers rely on ``SELECT ... FOR UPDATE``.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterator


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    refs: int = 0


class KeyedLockRegistry:
    """One lock per key.

    Entries are created under a global lock and dropped once no caller holds
    or waits on them, so the registry does not grow with the inventory.
    """

    def __init__(self, name: str = "rows"):
        self.name = name
        self._entries: Dict[Hashable, _LockEntry] = {}
        self._global_lock = threading.Lock()

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._global_lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = _LockEntry()
                self._entries[key] = entry
            entry.refs += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._global_lock:
                entry.refs -= 1
                if entry.refs == 0:
                    self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


advertisement_locks = KeyedLockRegistry("advertisements")
hoarding_locks = KeyedLockRegistry("hoardings")

__all__ = ["KeyedLockRegistry", "advertisement_locks", "hoarding_locks"]
