"""
Database sources.

A Database can be opened from a file path, a StoreSettings object, or an
already-open sqlite3 connection. resolve_source() tags the raw argument
with one of the variants below.
"""

from __future__ import annotations

import os
import sqlite3
from dataclasses import dataclass
from typing import Any, Union

from .config import StoreSettings
from .errors import InvalidSourceError


@dataclass(frozen=True)
class PathSource:
    """Open (or create) the SQLite file at `path`."""

    path: str


@dataclass(frozen=True)
class ConfigSource:
    """Open the file named by `settings.name` with those settings."""

    settings: StoreSettings


@dataclass(frozen=True)
class HandleSource:
    """Adopt an open connection. The caller keeps ownership.

    `settings` supplies row shape and write behaviour for the store; the
    connection-level fields (name, pragmas) are not applied. None loads
    StoreSettings from the environment.
    """

    connection: sqlite3.Connection
    settings: StoreSettings | None = None


Source = Union[PathSource, ConfigSource, HandleSource]


def resolve_source(source: Any) -> Source:
    """Map a constructor argument to a Source variant.

    Args:
        source: str / os.PathLike path, StoreSettings, sqlite3.Connection,
            or an already tagged Source

    Returns:
        The matching Source variant

    Raises:
        InvalidSourceError: For any other input
    """
    if isinstance(source, (PathSource, ConfigSource, HandleSource)):
        return source
    if isinstance(source, str):
        if not source:
            raise InvalidSourceError(source)
        return PathSource(source)
    if isinstance(source, os.PathLike):
        return PathSource(os.fspath(source))
    if isinstance(source, StoreSettings):
        return ConfigSource(source)
    if isinstance(source, sqlite3.Connection):
        return HandleSource(source)
    raise InvalidSourceError(source)
