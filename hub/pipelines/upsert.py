"""Candidate upsert pipeline: validate, resolve identity, persist, re-cache.

The email is the natural key. A candidate already seen within the cache
window is resolved from the cache; otherwise the store is asked. Either way
the existing identity keeps its id and email and takes every other field
from the incoming payload.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import timedelta
from functools import lru_cache
from typing import Protocol

from hub.cache import CandidateCache
from hub.config import settings
from hub.models import CandidateRecord
from hub.validation import FieldError, validate_candidate

logger = logging.getLogger(__name__)


class ValidationFailedError(Exception):
    """Raised when a candidate breaks one or more field rules."""

    def __init__(self, errors: list[FieldError]):
        super().__init__(f"{len(errors)} validation error(s)")
        self.errors = errors

    def by_field(self) -> dict[str, list[str]]:
        """Group messages per field, preserving rule order."""
        grouped: dict[str, list[str]] = {}
        for error in self.errors:
            grouped.setdefault(error.field, []).append(error.message)
        return grouped


class Store(Protocol):
    """What the pipeline needs from persistence (see ``hub.store.CandidateStore``)."""

    async def find_by_email(self, email: str) -> CandidateRecord | None: ...

    async def insert(self, candidate: CandidateRecord) -> CandidateRecord: ...

    async def update(self, candidate: CandidateRecord) -> None: ...

    async def commit(self) -> None: ...


def merge_into(existing: CandidateRecord, incoming: CandidateRecord) -> CandidateRecord:
    """Overwrite every mutable field of ``existing`` with the incoming values.

    ``id`` and ``email`` always come from ``existing``.
    """
    return replace(existing, **incoming.mutable_values())


class CandidateUpserter:
    """Serializes upserts behind one process-wide lock.

    The lock covers lookup, merge, persist and re-cache, so two concurrent
    requests for the same email cannot both miss and both insert.
    """

    def __init__(
        self,
        cache: CandidateCache | None = None,
        *,
        ttl: float | timedelta | None = None,
        lock: asyncio.Lock | None = None,
    ):
        self.cache = cache if cache is not None else CandidateCache()
        self.ttl = ttl if ttl is not None else settings.cache.ttl_seconds
        self.lock = lock or asyncio.Lock()

    async def upsert(self, store: Store, candidate: CandidateRecord) -> CandidateRecord:
        """Insert or update ``candidate`` and return it with its definitive id.

        Raises:
            ValidationFailedError: payload broke field rules; nothing was touched
            StorePersistError: the store failed; the cache was left as it was
        """
        errors = validate_candidate(candidate)
        if errors:
            raise ValidationFailedError(errors)

        # Callers never choose the identity.
        candidate = replace(candidate, id=None)

        async with self.lock:
            existing = await self._resolve_existing(store, candidate.email)

            if existing is not None:
                final = merge_into(existing, candidate)
                await store.update(final)
                await store.commit()
                logger.info(f"Updated candidate {final.id}", extra={"candidate_id": final.id, "operation": "update"})
            else:
                final = await store.insert(candidate)
                await store.commit()
                logger.info(f"Created candidate {final.id}", extra={"candidate_id": final.id, "operation": "insert"})

            self.cache.set(candidate.email, final, self.ttl)

        return final

    async def _resolve_existing(self, store: Store, email: str) -> CandidateRecord | None:
        """Read-through lookup: cache first, then the store."""
        cached = self.cache.get(email)
        if cached is not None:
            logger.debug(f"Cache hit for candidate {cached.id}")
            return cached
        return await store.find_by_email(email)


@lru_cache(maxsize=1)
def get_upserter() -> CandidateUpserter:
    """Process-wide upserter (one cache, one lock)."""
    return CandidateUpserter(
        CandidateCache(max_entries=settings.cache.max_entries, default_ttl=settings.cache.ttl_seconds),
        ttl=settings.cache.ttl_seconds,
    )
