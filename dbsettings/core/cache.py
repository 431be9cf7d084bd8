"""In-memory cache of typed setting values with absolute expiry."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from dbsettings.core.exceptions import TypeMismatchError

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    value: Any
    value_type: Any
    expires_at: float


@dataclass
class _Fill:
    """A load in progress for one key. Other callers wait on ``done``."""
    value_type: Any
    done: threading.Event = field(default_factory=threading.Event)
    value: Any = None
    error: Optional[BaseException] = None
    stale: bool = False


class ExpiringCache:
    """
    Thread-safe key -> (value, type, expiry) store.

    The map itself is guarded by a short-held lock. Loading a missing key
    happens outside that lock, and concurrent misses on the same key share a
    single load: the first caller runs the loader, the others wait for its
    result.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._inflight: Dict[str, _Fill] = {}
        self._lock = threading.Lock()

    def get_or_load(self, key: str, value_type: Any, loader: Callable[[], Any]) -> Any:
        with self._lock:
            entry = self._live_entry(key)
            if entry is not None:
                if entry.value_type != value_type:
                    raise TypeMismatchError(key, entry.value_type, value_type)
                logger.debug(f"Setting cache hit: {key}")
                return entry.value

            fill = self._inflight.get(key)
            leader = fill is None
            if leader:
                fill = _Fill(value_type=value_type)
                self._inflight[key] = fill

        if not leader:
            fill.done.wait()
            if fill.error is not None:
                raise fill.error
            if fill.value_type != value_type:
                raise TypeMismatchError(key, fill.value_type, value_type)
            return fill.value

        try:
            fill.value = loader()
        except BaseException as e:
            fill.error = e
            raise
        else:
            with self._lock:
                if not fill.stale:
                    self._entries[key] = CacheEntry(
                        value=fill.value,
                        value_type=value_type,
                        expires_at=self._clock() + self.ttl_seconds,
                    )
            logger.debug(f"Setting cache filled: {key}")
            return fill.value
        finally:
            with self._lock:
                if self._inflight.get(key) is fill:
                    del self._inflight[key]
            fill.done.set()

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Return the live entry for ``key`` without loading anything."""
        with self._lock:
            return self._live_entry(key)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
            fill = self._inflight.pop(key, None)
            if fill is not None:
                # The value being loaded was read before this invalidation
                fill.stale = True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            for fill in self._inflight.values():
                fill.stale = True
            self._inflight.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for key in list(self._entries) if self._live_entry(key) is not None)

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        # Caller holds self._lock
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry
