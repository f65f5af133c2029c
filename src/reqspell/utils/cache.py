"""
Memoization of derived values per event.

Some values are expensive to derive from an event and requested many
times (decoding a spell event every time a list is re-rendered, for
example). [ComputationCache][reqspell.utils.cache.ComputationCache] keeps
them in a map owned by the caller, keyed by ``(event_id, tag)`` where the
tag names the computation. Events are content-addressed, so an entry never
goes stale; the cache is bounded and evicts least recently used entries.

Examples:
    ```python
    cache = ComputationCache(max_entries=1000)
    spell = cache.get_or_compute(event["id"], "spell", lambda: decode(event))
    ```
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import TYPE_CHECKING, Any, TypeVar


if TYPE_CHECKING:
    from collections.abc import Callable


_T = TypeVar("_T")

CacheKey = tuple[str, str]


class ComputationCache:
    """Bounded LRU map from ``(event_id, tag)`` to a computed value.

    Thread-safe. The factory passed to
    [get_or_compute()][reqspell.utils.cache.ComputationCache.get_or_compute]
    runs outside the lock, so two threads racing on the same key may both
    compute; the first stored value wins. Exceptions raised by the factory
    propagate and nothing is cached.
    """

    def __init__(self, max_entries: int = 4096) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._entries: OrderedDict[CacheKey, Any] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get_or_compute(self, event_id: str, tag: str, factory: Callable[[], _T]) -> _T:
        """Return the cached value for ``(event_id, tag)``, computing it once."""
        key = (event_id, tag)
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                self.hits += 1
                return self._entries[key]  # type: ignore[no-any-return]
            self.misses += 1

        value = factory()

        with self._lock:
            if key in self._entries:
                return self._entries[key]  # type: ignore[no-any-return]
            self._entries[key] = value
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)
        return value

    def invalidate(self, event_id: str, tag: str | None = None) -> None:
        """Drop one entry, or every entry of *event_id* when *tag* is None."""
        with self._lock:
            if tag is not None:
                self._entries.pop((event_id, tag), None)
                return
            for key in [key for key in self._entries if key[0] == event_id]:
                del self._entries[key]

    def clear(self) -> None:
        """Drop every entry and reset the hit/miss counters."""
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0
