"""
entdb-variation test suite.

This package contains:
- unit/: Unit tests (in-memory store, no files)
- integration/: Integration tests (SQLite and in-memory stores, full variation flow)
- models.py: Record classes shared by both
"""
