"""
Key-Value Cache — Injectable TTL Store
========================================
Analysis results are cached per player (``full:{steam_id}``) and per model
interpretation (``model:{steam_id}``). Callers receive a store instance
instead of reaching for a process-wide global, so tests can use a fresh store
with a fake clock.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


class KeyValueStore(ABC):

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        ...

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ...

    @abstractmethod
    def expire(self, key: str) -> bool:
        """Drop ``key``; returns True if it was present."""

    @abstractmethod
    def cleanup(self) -> int:
        """Drop every expired entry; returns how many were removed."""

    @abstractmethod
    def clear(self) -> None:
        ...

    @abstractmethod
    def __len__(self) -> int:
        ...


class InMemoryTTLStore(KeyValueStore):
    """
    Dict-backed store. Entries hold ``(value, expires_at)``; expired entries
    are dropped lazily on ``get`` and eagerly by ``cleanup``. When
    ``max_size`` is reached the entry closest to expiry is evicted.
    """

    def __init__(
        self,
        default_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_size: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._store: Dict[str, Tuple[Any, float]] = {}
        self._default_ttl = default_ttl_seconds
        self._max_size = max_size
        self._clock = clock

    def get(self, key: str) -> Optional[Any]:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._store[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        if self._max_size and key not in self._store and len(self._store) >= self._max_size:
            oldest = min(self._store, key=lambda k: self._store[k][1])
            del self._store[oldest]
            logger.debug(f"Cache full, evicted {oldest}")
        self._store[key] = (value, self._clock() + ttl)

    def expire(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    def cleanup(self) -> int:
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._store.items() if now >= expires_at]
        for key in expired:
            del self._store[key]
        if expired:
            logger.debug(f"Cache cleanup removed {len(expired)} entries")
        return len(expired)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
