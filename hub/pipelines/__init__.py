"""Request pipelines built on the validator, cache and store.

Each step should be callable independently so the HTTP layer and scripts
can share them.
"""
