"""
Store module for flatdoc.

This module handles:
- Opening or adopting the SQLite connection (Database)
- Per-name table views (Table)
- Path-keyed insert/update/get/delete over flattened documents

Invariants:
    - path is unique within a table
    - insert rejects existing paths, update replaces them
    - A Table forwards every call to its Database
"""

from .database import Database, Record
from .table import Table

__all__ = [
    "Database",
    "Record",
    "Table",
]
