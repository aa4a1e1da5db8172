"""Rendered-page cache with soft revalidation.

An entry older than its revalidate interval is *stale*: it is still served,
and the next request that sees it regenerates the page. Entries are never
evicted on age alone; once `max_entries` is reached the least recently used
entry is dropped.
"""

from __future__ import annotations

import os
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

DEFAULT_MAX_ENTRIES = int(os.getenv("PAGE_CACHE_MAX_ENTRIES", "1024"))


@dataclass(frozen=True, slots=True)
class CachedPage:
    body: str
    status: int
    generated_at: float
    revalidate: int | None


class PageCache:
    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._clock = clock
        self.max_entries = max_entries
        self._entries: OrderedDict[str, CachedPage] = OrderedDict()
        self._in_flight: set[str] = set()
        self._lock = threading.Lock()

    def get(self, key: str) -> CachedPage | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                self._entries.move_to_end(key)
            return entry

    def put(self, key: str, body: str, status: int = 200, revalidate: int | None = None) -> CachedPage:
        entry = CachedPage(body=body, status=status, generated_at=self._clock(), revalidate=revalidate)
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
        return entry

    def is_stale(self, entry: CachedPage) -> bool:
        if entry.revalidate is None:
            return False
        return self._clock() - entry.generated_at >= entry.revalidate

    def try_begin(self, key: str) -> bool:
        """Claim regeneration of `key`; False if another request holds it."""
        with self._lock:
            if key in self._in_flight:
                return False
            self._in_flight.add(key)
            return True

    def finish(self, key: str) -> None:
        with self._lock:
            self._in_flight.discard(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
