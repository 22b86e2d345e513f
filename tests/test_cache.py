"""Candidate cache: per-entry expiry, replacement, size cap."""

from datetime import timedelta

import pytest

from hub.cache import CandidateCache


def test_get_missing_key_returns_none(cache):
    assert cache.get("nobody@example.com") is None


def test_set_then_get(cache, new_candidate):
    record = new_candidate(id=1)
    cache.set(record.email, record)
    assert cache.get(record.email) == record
    assert record.email in cache


def test_entry_expires_after_ttl(cache, clock, new_candidate):
    record = new_candidate(id=1)
    cache.set(record.email, record, ttl=timedelta(minutes=10))

    clock.advance(599)
    assert cache.get(record.email) == record

    clock.advance(1)
    assert cache.get(record.email) is None
    assert len(cache) == 0


def test_set_replaces_entry_and_refreshes_expiry(cache, clock, new_candidate):
    first = new_candidate(id=1, first_name="John")
    cache.set(first.email, first, ttl=60)
    clock.advance(50)

    second = new_candidate(id=1, first_name="Jane")
    cache.set(second.email, second, ttl=60)
    clock.advance(50)

    assert cache.get(first.email) == second


def test_keys_are_case_sensitive(cache, new_candidate):
    record = new_candidate(id=1, email="Mixed@Example.com")
    cache.set(record.email, record)
    assert cache.get("mixed@example.com") is None


def test_delete_and_clear(cache, new_candidate):
    a = new_candidate(id=1, email="a@example.com")
    b = new_candidate(id=2, email="b@example.com")
    cache.set(a.email, a)
    cache.set(b.email, b)

    cache.delete(a.email)
    cache.delete("missing@example.com")
    assert cache.get(a.email) is None
    assert len(cache) == 1

    cache.clear()
    assert len(cache) == 0


def test_max_entries_evicts_least_recently_used(clock, new_candidate):
    cache = CandidateCache(max_entries=2, default_ttl=600, timer=clock)
    for i, email in enumerate(["a@example.com", "b@example.com", "c@example.com"], start=1):
        cache.set(email, new_candidate(id=i, email=email))

    assert cache.get("a@example.com") is None
    assert cache.get("c@example.com").id == 3


def test_non_positive_ttl_rejected(cache, new_candidate):
    with pytest.raises(ValueError):
        cache.set("a@example.com", new_candidate(id=1), ttl=0)
