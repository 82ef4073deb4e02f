"""
session_store.py
================
Keyed storage with idle-time eviction.

The engine never owns a process-wide registry; it is handed a KeyedStore
for sessions and another for player progress. InMemoryStore is the
single-process implementation. Its clock is injectable so tests can move
time forward without sleeping.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, Generic, Iterator, List, Optional, Protocol, Tuple, TypeVar

V = TypeVar("V")

logger = logging.getLogger("truth_seeker.session_store")


class KeyedStore(Protocol[V]):
    """Capability the engine needs from any session / progress backend."""

    def get(self, key: str) -> Optional[V]: ...

    def set(self, key: str, value: V) -> None: ...

    def delete(self, key: str) -> None: ...

    def sweep_expired(self) -> int: ...

    def __len__(self) -> int: ...


class InMemoryStore(Generic[V]):
    """
    Dict-backed KeyedStore.

    Every get() or set() refreshes the key's last-access time. sweep_expired()
    drops keys idle for longer than `ttl_seconds`; with ``ttl_seconds=None``
    nothing ever expires (used for player progress).

    A lock guards the map so a background sweep can run beside request
    handlers. The values themselves are not locked: one in-flight operation
    per session is assumed.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock:       Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[V, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[V]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, _ = entry
            self._entries[key] = (value, self._clock())
            return value

    def set(self, key: str, value: V) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock())

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def sweep_expired(self) -> int:
        """Remove idle entries. Returns how many were removed."""
        if self.ttl_seconds is None:
            return 0
        now = self._clock()
        with self._lock:
            expired: List[str] = [
                key for key, (_, last_access) in self._entries.items()
                if now - last_access > self.ttl_seconds
            ]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.info("Swept %d expired entr%s.", len(expired), "y" if len(expired) == 1 else "ies")
        return len(expired)

    def keys(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._entries))

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
