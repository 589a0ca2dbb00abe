"""
flatdoc Test Suite.

This package contains:
- unit/: Unit tests (in-memory and temporary-file SQLite)
- integration/: File-backed stores across sessions
"""
