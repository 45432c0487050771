"""
Dedup cache - suppresses repeated observations.

One small abstraction reused for raw gateway messages and weather samples.
An observation (key, fingerprint) is accepted when:

- the key was never seen (or its entry was evicted), or
- the fingerprint differs from the cached one, or
- the cached entry is at least `min_interval` seconds old.

The cached timestamp is refreshed only on accepted observations. Entries older
than `retention` seconds are evicted lazily on each access; there is no
background sweep.

Raw-message dedup passes no fingerprint, so only the interval matters.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)


@dataclass
class DedupEntry:
    fingerprint: Optional[str]
    timestamp: float


class DedupCache(Generic[K]):
    """
    Time-windowed dedup cache keyed by K.

    Example:
        >>> cache = DedupCache(min_interval=1.0, retention=10.0)
        >>> cache.accept(("AABBCC", "position-update"))
        True
        >>> cache.accept(("AABBCC", "position-update"))  # same second
        False
    """

    def __init__(
        self,
        min_interval: float,
        retention: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if min_interval < 0:
            raise ValueError(f"min_interval must be >= 0, got {min_interval}")
        if retention < min_interval:
            raise ValueError(
                f"retention ({retention}) must be >= min_interval ({min_interval})"
            )
        self.min_interval = min_interval
        self.retention = retention
        self._clock = clock
        self._entries: Dict[K, DedupEntry] = {}

    def accept(self, key: K, fingerprint: Optional[str] = None) -> bool:
        """
        Decide whether an observation is new.

        Returns:
            True if accepted (the entry is refreshed), False if a duplicate.
        """
        now = self._clock()
        self._evict(now)

        entry = self._entries.get(key)
        if (
            entry is not None
            and entry.fingerprint == fingerprint
            and now - entry.timestamp < self.min_interval
        ):
            return False

        self._entries[key] = DedupEntry(fingerprint=fingerprint, timestamp=now)
        return True

    def forget(self, key: K) -> None:
        self._entries.pop(key, None)

    def _evict(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if now - e.timestamp > self.retention]
        for key in expired:
            del self._entries[key]

    def __contains__(self, key: K) -> bool:
        self._evict(self._clock())
        return key in self._entries

    def __len__(self) -> int:
        self._evict(self._clock())
        return len(self._entries)
