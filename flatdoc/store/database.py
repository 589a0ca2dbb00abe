"""
SQLite-backed document store for flatdoc.

A Database owns (or adopts) one SQLite connection and hands out Table
views bound to it. Each table is a relation of (path, value) rows where
path is the dotted key chain of a terminal value in a flattened mapping.

Invariants:
    - path is the primary key of every table
    - insert never overwrites; update always does (REPLACE INTO)
    - Values are stored as TEXT; reads return strings
    - Table names are validated identifiers before being put into SQL
    - An adopted connection is never closed by the store

Consistency:
    Mapping-form insert/update issue one statement per pair and are not
    wrapped in a transaction unless atomic=True (or the atomic_writes
    setting) is used. Without it, a DuplicateKeyError part way through
    leaves the earlier pairs of the same call committed.

Table schema:
    <table_name>:
        - path TEXT PRIMARY KEY
        - value TEXT
"""

from __future__ import annotations

import logging
import re
import sqlite3
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from ..config import StoreSettings
from ..errors import DuplicateKeyError, InvalidTableNameError, NotFoundError, TableNotFoundError
from ..paths import coerce_value, first_match_paths, flatten, join_path, unflatten
from ..source import ConfigSource, HandleSource, resolve_source
from .table import Table

logger = logging.getLogger(__name__)

Row = Union[tuple, dict]

_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Marks an omitted value so that an explicit None can be stored as NULL
_MISSING: Any = object()


@dataclass(frozen=True)
class Record:
    """One stored row.

    Attributes:
        path: Dotted key chain
        value: Stored string value (None for NULL)
    """

    path: str
    value: str | None


class Database:
    """Document store over a single SQLite connection.

    Example:
        >>> db = Database("app.db")
        >>> users = db.create("users")
        >>> users.insert({"member": {"name": "John", "age": 25}})
        >>> users.get("name", "member")
        [('John',)]
        >>> users.document()
        {'member': {'name': 'John', 'age': '25'}}
    """

    def __init__(self, source: Any = None, settings: StoreSettings | None = None) -> None:
        """Open the store.

        Args:
            source: File path, StoreSettings, open sqlite3.Connection or a
                Source variant. None loads StoreSettings from the environment.
            settings: Settings for a path or connection source. For a path
                the path replaces settings.name. Not allowed with a
                StoreSettings/ConfigSource source.

        Raises:
            InvalidSourceError: If source has an unsupported shape
            ValueError: If settings is given twice
        """
        resolved = resolve_source(StoreSettings() if source is None else source)

        if isinstance(resolved, HandleSource):
            self.settings = settings or resolved.settings or StoreSettings()
            self._conn = resolved.connection
            self._owns_connection = False
        else:
            if isinstance(resolved, ConfigSource):
                if settings is not None:
                    raise ValueError("settings given both as source and as keyword")
                self.settings = resolved.settings
            elif settings is not None:
                self.settings = settings.model_copy(update={"name": resolved.path})
            else:
                self.settings = StoreSettings(name=resolved.path)
            self._conn = self._connect(self.settings)
            self._owns_connection = True

        self._tables: dict[str, Table] = {}
        self._tx_depth = 0
        self._closed = False

        logger.info(
            "Opened store",
            extra={
                "source": type(resolved).__name__,
                "db_name": self.settings.name if self._owns_connection else None,
                "results_as_hash": self.results_as_hash,
            },
        )

    @property
    def connection(self) -> sqlite3.Connection:
        """The underlying SQLite connection."""
        return self._conn

    @property
    def results_as_hash(self) -> bool:
        return self.settings.results_as_hash

    def _connect(self, settings: StoreSettings) -> sqlite3.Connection:
        """Open and configure a connection for `settings.name`."""
        if settings.name != ":memory:" and not settings.name.startswith("file:"):
            Path(settings.name).parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(
            settings.name,
            timeout=settings.busy_timeout_ms / 1000.0,
            isolation_level=None,  # Autocommit by default, explicit transactions
        )
        conn.execute(f"PRAGMA busy_timeout = {settings.busy_timeout_ms}")
        conn.execute(f"PRAGMA cache_size = {settings.cache_size_pages}")
        if settings.wal_mode:
            conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA synchronous = NORMAL")
        return conn

    def _check_name(self, table_name: Any) -> str:
        if not isinstance(table_name, str) or not _TABLE_NAME.match(table_name):
            raise InvalidTableNameError(table_name)
        return table_name

    def _execute(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        """Run one statement.

        Outside transaction(), a transaction implicitly opened by the
        statement (adopted connections in legacy isolation mode) is
        committed straight away, or rolled back if the statement fails.
        """
        was_in_transaction = self._conn.in_transaction
        try:
            cursor = self._conn.execute(sql, params)
        except Exception:
            if not self._tx_depth and not was_in_transaction and self._conn.in_transaction:
                self._conn.rollback()
            raise
        if not self._tx_depth and not was_in_transaction and self._conn.in_transaction:
            self._conn.commit()
        return cursor

    def _rows(self, cursor: sqlite3.Cursor) -> list[Row]:
        """Shape fetched rows as tuples or column->value dicts."""
        rows = cursor.fetchall()
        if self.results_as_hash:
            columns = [column[0] for column in cursor.description]
            return [dict(zip(columns, row)) for row in rows]
        return [tuple(row) for row in rows]

    def _is_document_table(self, table_name: str) -> bool:
        """True if the relation exists with the (path PRIMARY KEY, value) layout."""
        cursor = self._conn.execute(f'PRAGMA table_info("{table_name}")')
        # (cid, name, type, notnull, dflt_value, pk)
        columns = {row[1]: row[5] for row in cursor.fetchall()}
        return set(columns) == {"path", "value"} and columns["path"] == 1

    def _pairs(self, key_or_mapping: Any, value: Any) -> list[tuple[str, str | None]]:
        """Resolve the two calling forms of insert/update to (path, value) pairs."""
        if isinstance(key_or_mapping, Mapping):
            if value is not _MISSING:
                raise ValueError("value must be omitted when inserting a mapping")
            if self.settings.legacy_paths:
                return first_match_paths(key_or_mapping)
            return flatten(key_or_mapping)

        if value is _MISSING:
            raise ValueError(f"value is required for key {key_or_mapping!r}")
        return [(str(key_or_mapping), coerce_value(value))]

    @contextmanager
    def transaction(self) -> Iterator[Database]:
        """Run the enclosed statements in one transaction.

        Commits on success, rolls back and re-raises on any exception.
        Nested use joins the outer transaction.
        """
        if self._tx_depth:
            self._tx_depth += 1
            try:
                yield self
            finally:
                self._tx_depth -= 1
            return

        self._conn.execute("BEGIN IMMEDIATE")
        self._tx_depth = 1
        try:
            yield self
            self._conn.execute("COMMIT")
        except Exception:
            self._conn.execute("ROLLBACK")
            raise
        finally:
            self._tx_depth = 0

    def create(self, table_name: str) -> Table:
        """Create a table if it does not exist and return its view.

        Args:
            table_name: Name of the table

        Returns:
            The registered Table for this name

        Raises:
            InvalidTableNameError: If the name is not a plain identifier
        """
        self._check_name(table_name)
        self._execute(
            f'CREATE TABLE IF NOT EXISTS "{table_name}" ('
            "path TEXT PRIMARY KEY, value TEXT)"
        )

        table = self._tables.get(table_name)
        if table is None:
            table = Table(self, table_name)
            self._tables[table_name] = table
            logger.info(f"Created table: {table_name}")
        return table

    def table(self, table_name: str) -> Table:
        """Look up a table by name.

        Tables created through another store on the same file are
        registered on first lookup.

        Raises:
            TableNotFoundError: If no relation with the (path, value)
                layout has this name
        """
        self._check_name(table_name)
        table = self._tables.get(table_name)
        if table is not None:
            return table
        if not self._is_document_table(table_name):
            raise TableNotFoundError(table_name)

        table = Table(self, table_name)
        self._tables[table_name] = table
        return table

    def __getitem__(self, table_name: str) -> Table:
        return self.table(table_name)

    def __contains__(self, table_name: object) -> bool:
        if not isinstance(table_name, str) or not _TABLE_NAME.match(table_name):
            return False
        return table_name in self._tables or self._is_document_table(table_name)

    def tables(self) -> list[str]:
        """Names of the (path, value) tables in the backing file, sorted.

        Other relations sharing the file are not listed.
        """
        cursor = self._conn.execute(
            "SELECT name FROM sqlite_master "
            "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return [
            row[0]
            for row in cursor.fetchall()
            if _TABLE_NAME.match(row[0]) and self._is_document_table(row[0])
        ]

    def insert(
        self,
        table_name: str,
        key_or_mapping: Any,
        value: Any = _MISSING,
        *,
        atomic: bool | None = None,
    ) -> int:
        """Insert a key/value pair or a flattened mapping.

        Args:
            table_name: Target table
            key_or_mapping: Key (with value) or nested mapping (without)
            value: Value for the scalar form
            atomic: Wrap a multi-pair call in a transaction
                (defaults to settings.atomic_writes)

        Returns:
            Number of rows written

        Raises:
            DuplicateKeyError: If a path already exists. Without atomic,
                pairs written earlier in the same call stay committed.
        """
        self._check_name(table_name)
        pairs = self._pairs(key_or_mapping, value)
        atomic = self.settings.atomic_writes if atomic is None else atomic
        scope = self.transaction() if atomic and len(pairs) > 1 else nullcontext()

        written = 0
        with scope:
            for path, stored in pairs:
                try:
                    self._execute(
                        f'INSERT INTO "{table_name}" (path, value) VALUES (?, ?)',
                        (path, stored),
                    )
                except sqlite3.IntegrityError as exc:
                    if written and not atomic:
                        logger.warning(
                            "Insert stopped part way, earlier rows remain",
                            extra={"table": table_name, "path": path, "written": written},
                        )
                    raise DuplicateKeyError(table_name, path) from exc
                written += 1
                logger.debug("Inserted row", extra={"table": table_name, "path": path})
        return written

    def update(
        self,
        table_name: str,
        key_or_mapping: Any,
        value: Any = _MISSING,
        *,
        atomic: bool | None = None,
    ) -> int:
        """Insert or replace a key/value pair or a flattened mapping.

        Same calling forms as insert(). Existing paths are overwritten.

        Returns:
            Number of rows written
        """
        self._check_name(table_name)
        pairs = self._pairs(key_or_mapping, value)
        atomic = self.settings.atomic_writes if atomic is None else atomic
        scope = self.transaction() if atomic and len(pairs) > 1 else nullcontext()

        with scope:
            for path, stored in pairs:
                self._execute(
                    f'REPLACE INTO "{table_name}" (path, value) VALUES (?, ?)',
                    (path, stored),
                )
                logger.debug("Replaced row", extra={"table": table_name, "path": path})
        return len(pairs)

    def get(
        self,
        table_name: str,
        key: Any,
        path: str | Sequence[Any] | None = None,
    ) -> list[Row]:
        """Get the rows stored under a key.

        Args:
            table_name: Table to read
            key: Full dotted path, or the terminal key when `path` is given
            path: Parent path as a dotted string or a sequence of segments

        Returns:
            Matching rows (one `value` column). Empty when nothing matches
            and `path` is None.

        Raises:
            NotFoundError: If `path` is given and nothing matches
        """
        self._check_name(table_name)
        full_path = join_path(key, path)
        cursor = self._execute(
            f'SELECT value FROM "{table_name}" WHERE path = ?',
            (full_path,),
        )
        rows = self._rows(cursor)
        if path is not None and not rows:
            raise NotFoundError(table_name, full_path)
        return rows

    def get_value(
        self,
        table_name: str,
        key: Any,
        path: str | Sequence[Any] | None = None,
    ) -> str | None:
        """Like get(), but return the single stored value (None if absent)."""
        rows = self.get(table_name, key, path)
        if not rows:
            return None
        row = rows[0]
        return row["value"] if isinstance(row, dict) else row[0]

    def delete(
        self,
        table_name: str,
        key: Any,
        path: str | Sequence[Any] | None = None,
    ) -> bool:
        """Delete the row stored under a key.

        Returns:
            True if a row was deleted, False if nothing matched
        """
        self._check_name(table_name)
        full_path = join_path(key, path)
        cursor = self._execute(
            f'DELETE FROM "{table_name}" WHERE path = ?',
            (full_path,),
        )
        logger.debug(
            "Deleted row",
            extra={"table": table_name, "path": full_path, "deleted": cursor.rowcount},
        )
        return cursor.rowcount > 0

    def all(self, table_name: str) -> list[Row]:
        """Every (path, value) row in the table, in storage order."""
        self._check_name(table_name)
        cursor = self._execute(f'SELECT path, value FROM "{table_name}"')
        return self._rows(cursor)

    def find(self, table_name: str, value: Any) -> list[Row]:
        """Rows whose stored value equals `value` (compared as a string)."""
        self._check_name(table_name)
        cursor = self._execute(
            f'SELECT path, value FROM "{table_name}" WHERE value IS ?',
            (coerce_value(value),),
        )
        return self._rows(cursor)

    def records(self, table_name: str) -> list[Record]:
        self._check_name(table_name)
        cursor = self._execute(f'SELECT path, value FROM "{table_name}"')
        return [Record(path=row[0], value=row[1]) for row in cursor.fetchall()]

    def document(self, table_name: str) -> dict[str, Any]:
        """Rebuild the nested mapping stored in a table.

        Raises:
            AmbiguousPathError: If a stored path is both a leaf and a parent
        """
        return unflatten((record.path, record.value) for record in self.records(table_name))

    def count(self, table_name: str) -> int:
        self._check_name(table_name)
        cursor = self._execute(f'SELECT COUNT(*) FROM "{table_name}"')
        return cursor.fetchone()[0]

    def close(self) -> None:
        """Close the connection if the store opened it."""
        if self._closed:
            return
        self._closed = True
        if self._owns_connection:
            self._conn.close()
            logger.info(f"Closed store: {self.settings.name}")

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
