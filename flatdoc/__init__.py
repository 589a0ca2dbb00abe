"""
flatdoc - nested documents stored as flat (path, value) rows in SQLite.

Example:
    >>> from flatdoc import Database
    >>>
    >>> db = Database("app.db")
    >>> users = db.create("users")
    >>> users.insert({"member": {"name": "John", "age": 25}})
    >>> users.get_value("age", ["member"])
    '25'

Invariants:
    - Every terminal value is stored under its dotted key chain
    - Values are read back as strings
"""

__version__ = "0.1.0"

from .config import StoreSettings
from .errors import (
    AmbiguousPathError,
    DuplicateKeyError,
    FlatDocError,
    InvalidSourceError,
    InvalidTableNameError,
    NotFoundError,
    TableNotFoundError,
)
from .logging_setup import setup_logging
from .paths import first_match_paths, flatten, join_path, unflatten
from .source import ConfigSource, HandleSource, PathSource, resolve_source
from .store import Database, Record, Table

__all__ = [
    # Version
    "__version__",
    # Store
    "Database",
    "Table",
    "Record",
    # Sources and configuration
    "StoreSettings",
    "PathSource",
    "ConfigSource",
    "HandleSource",
    "resolve_source",
    "setup_logging",
    # Paths
    "flatten",
    "first_match_paths",
    "join_path",
    "unflatten",
    # Errors
    "FlatDocError",
    "InvalidSourceError",
    "DuplicateKeyError",
    "NotFoundError",
    "TableNotFoundError",
    "InvalidTableNameError",
    "AmbiguousPathError",
]
