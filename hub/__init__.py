"""Backend package: candidate model, validation, cache, store, API.

This package implements the candidate upsert service: a single endpoint that
inserts or updates a candidate keyed by email and keeps a short-lived cache
of the result.
"""
