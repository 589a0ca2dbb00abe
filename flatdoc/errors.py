"""
Error types for flatdoc.

This module defines all exception types raised by the store:
- FlatDocError: Base exception
- InvalidSourceError: Database built from an unsupported source
- DuplicateKeyError: Insert hit an existing path
- NotFoundError: Path-qualified lookup matched nothing
- TableNotFoundError: Unknown table name
- InvalidTableNameError: Table name is not a safe SQL identifier
- AmbiguousPathError: Two keys flatten to the same dotted path

Invariants:
    - All errors inherit from FlatDocError
    - Errors include context for debugging
"""

from __future__ import annotations

from typing import Any


class FlatDocError(Exception):
    """Base exception for all flatdoc errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "FLATDOC_ERROR"
        self.details = details or {}


class InvalidSourceError(FlatDocError):
    """Database was constructed from an unsupported source."""

    def __init__(self, source: Any) -> None:
        super().__init__(
            f"Invalid source: {source!r}",
            code="INVALID_SOURCE",
            details={"source_type": type(source).__name__},
        )
        self.source = source


class DuplicateKeyError(FlatDocError):
    """Insert attempted on a path that already exists.

    Raised when:
    - Scalar insert repeats an existing key
    - A flattened mapping produces a path already stored
    """

    def __init__(self, table: str, path: str) -> None:
        super().__init__(
            f"Duplicated key '{path}' in table '{table}'",
            code="DUPLICATE_KEY",
            details={"table": table, "path": path},
        )
        self.table = table
        self.path = path


class NotFoundError(FlatDocError):
    """No row matched a path-qualified lookup."""

    def __init__(self, table: str, path: str, code: str = "NOT_FOUND") -> None:
        super().__init__(
            f"No value found for '{path}' in table '{table}'",
            code=code,
            details={"table": table, "path": path},
        )
        self.table = table
        self.path = path


class TableNotFoundError(NotFoundError):
    """Table is neither registered nor present in the backing file."""

    def __init__(self, table: str) -> None:
        super().__init__(table, "", code="TABLE_NOT_FOUND")
        self.message = f"Table not found: {table}"
        self.args = (self.message,)


class InvalidTableNameError(FlatDocError):
    """Table name cannot be used as an SQL identifier."""

    def __init__(self, table: Any) -> None:
        super().__init__(
            f"Invalid table name: {table!r}",
            code="INVALID_TABLE_NAME",
            details={"table": table},
        )
        self.table = table


class AmbiguousPathError(FlatDocError):
    """Two distinct key chains resolve to the same dotted path.

    Raised when:
    - A key containing '.' collides with a nested key chain
    - A path is both a leaf and the prefix of another path
    """

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Ambiguous path: {path}",
            code="AMBIGUOUS_PATH",
            details={"path": path},
        )
        self.path = path
