"""
Unit tests for Table views.
"""

import sqlite3

import pytest

from flatdoc.errors import DuplicateKeyError, NotFoundError
from flatdoc.store import Database, Record, Table


class TestTable:
    """Tests for Table."""

    @pytest.fixture
    def db(self):
        """In-memory store on an adopted connection."""
        conn = sqlite3.connect(":memory:", isolation_level=None)
        yield Database(conn)
        conn.close()

    @pytest.fixture
    def users(self, db):
        """Created 'users' table."""
        return db.create("users")

    def test_views_with_same_name_are_equal(self, db, users):
        """Two views of one table compare equal."""
        assert Table(db, "users") == users
        assert hash(Table(db, "users")) == hash(users)
        assert Table(db, "other") != users

    def test_views_of_different_stores_differ(self, db, users):
        """Same name on another store is a different view."""
        conn = sqlite3.connect(":memory:")
        try:
            assert Table(Database(conn), "users") != users
        finally:
            conn.close()

    def test_insert_and_get(self, users):
        """insert/get forward with the table name."""
        users.insert({"member": {"name": "John", "age": 25}})
        users.insert("one", 1)

        assert users.get("name", "member") == [("John",)]
        assert users.get_value("age", ["member"]) == "25"
        assert users.get("one") == [("1",)]

    def test_insert_duplicate(self, users):
        """Duplicate insert raises through the view."""
        users.insert("a", "1")

        with pytest.raises(DuplicateKeyError):
            users.insert("a", "2")

    def test_atomic_forwarded(self, users):
        """atomic= is forwarded to the store."""
        users.insert("b", "old")

        with pytest.raises(DuplicateKeyError):
            users.insert({"a": 1, "b": 2}, atomic=True)

        assert users.count() == 1

    def test_update(self, users):
        """update() upserts through the view."""
        users.update("a", "2")
        users.update("a", "3")

        assert users.get_value("a") == "3"

    def test_get_with_path_not_found(self, users):
        """Path-qualified miss raises NotFoundError."""
        with pytest.raises(NotFoundError):
            users.get("name", "member")

    def test_delete_and_all(self, users):
        """delete() and all() forward with the table name."""
        users.insert({"one": 1, "two": 2})

        assert users.delete("one") is True
        assert users.delete("missing") is False
        assert users.all() == [("two", "2")]

    def test_find_records_document(self, users):
        """Read helpers forward with the table name."""
        users.insert({"member": {"name": "John"}, "alias": "John"})

        assert sorted(users.find("John")) == [("alias", "John"), ("member.name", "John")]
        assert Record(path="alias", value="John") in users.records()
        assert users.document() == {"member": {"name": "John"}, "alias": "John"}

    def test_view_shares_store_state(self, db, users):
        """Writes through the store are visible through the view."""
        db.insert("users", "a", "1")

        assert users.get_value("a") == "1"
        assert db["users"].all() == users.all()
