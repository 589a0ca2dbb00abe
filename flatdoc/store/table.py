"""
Table views for flatdoc.

A Table is a Database plus a table name. Every method forwards to the
Database method of the same name with the table name filled in; a Table
holds no other state, so two views with the same name on the same
Database are interchangeable.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .database import Database, Record, Row


@dataclass(frozen=True)
class Table:
    """Named view over one table of a Database.

    Attributes:
        database: Owning store
        name: Table name
    """

    database: Database = field(repr=False)
    name: str

    def insert(self, key_or_mapping: Any, *value: Any, atomic: bool | None = None) -> int:
        return self.database.insert(self.name, key_or_mapping, *value, atomic=atomic)

    def update(self, key_or_mapping: Any, *value: Any, atomic: bool | None = None) -> int:
        return self.database.update(self.name, key_or_mapping, *value, atomic=atomic)

    def get(self, key: Any, path: str | Sequence[Any] | None = None) -> list[Row]:
        return self.database.get(self.name, key, path)

    def get_value(self, key: Any, path: str | Sequence[Any] | None = None) -> str | None:
        return self.database.get_value(self.name, key, path)

    def delete(self, key: Any, path: str | Sequence[Any] | None = None) -> bool:
        return self.database.delete(self.name, key, path)

    def all(self) -> list[Row]:
        return self.database.all(self.name)

    def find(self, value: Any) -> list[Row]:
        return self.database.find(self.name, value)

    def records(self) -> list[Record]:
        return self.database.records(self.name)

    def document(self) -> dict[str, Any]:
        return self.database.document(self.name)

    def count(self) -> int:
        return self.database.count(self.name)
