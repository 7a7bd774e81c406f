"""Ingestion helpers.

Readers that turn CSV exports, MongoDB collections or in-memory records into
Dask DataFrames. The pipeline only ever reads from its sources.
"""
