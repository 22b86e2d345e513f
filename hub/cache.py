"""In-process, time-expiring cache of candidate records keyed by email.

Backed by ``cachetools.TLRUCache`` so each entry carries its own
time-to-live; ``maxsize`` adds LRU eviction on top. The cache is not
thread-safe on its own: the upsert pipeline only touches it while holding
its lock.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable

from cachetools import TLRUCache

from .config import settings
from .models import CandidateRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Entry:
    record: CandidateRecord
    ttl: float


def _time_to_use(key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


def _seconds(ttl: float | timedelta) -> float:
    return ttl.total_seconds() if isinstance(ttl, timedelta) else float(ttl)


class CandidateCache:
    """Email → ``CandidateRecord`` store with per-entry expiry.

    Records are frozen dataclasses, so handing the same instance to several
    callers cannot leak mutations back into the cache.
    """

    def __init__(
        self,
        max_entries: int | None = None,
        default_ttl: float | timedelta | None = None,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.max_entries = max_entries or settings.cache.max_entries
        self.default_ttl = _seconds(
            default_ttl if default_ttl is not None else settings.cache.ttl_seconds
        )
        self._data: TLRUCache = TLRUCache(
            maxsize=self.max_entries,
            ttu=_time_to_use,
            timer=timer,
        )

    def get(self, key: str) -> CandidateRecord | None:
        entry = self._data.get(key)
        return entry.record if entry is not None else None

    def set(self, key: str, value: CandidateRecord, ttl: float | timedelta | None = None) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""
        seconds = self.default_ttl if ttl is None else _seconds(ttl)
        if seconds <= 0:
            raise ValueError(f"Cache ttl must be positive, got {seconds}")
        self._data[key] = _Entry(record=value, ttl=seconds)
        logger.debug(f"Cached candidate {value.id} for {seconds:.0f}s")

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        self._data.expire()
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data
