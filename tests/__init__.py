"""
CineDB Test Suite.

This package contains:
- unit/: Unit tests (in-memory model, documents under tmp_path)
"""
