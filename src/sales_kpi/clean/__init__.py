"""Cleaning utilities for the pipeline.

Provides functions to project caller-specific columns onto the canonical
transaction schema (`period`, `group_key`, `entity_id`, `amount`), normalize
text keys, and fail fast on malformed rows.
"""
