"""
Integration tests for file-backed stores.

Tests cover:
- Data surviving close/reopen
- Two stores on the same file
- Round trip of nested documents through get()
"""

import os
import tempfile

import pytest

from flatdoc import Database, StoreSettings
from flatdoc.errors import DuplicateKeyError


class TestPersistence:
    """Integration tests for Database on a WAL-mode SQLite file."""

    @pytest.fixture
    def data_dir(self):
        """Create temporary data directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield tmpdir

    @pytest.fixture
    def settings(self, data_dir):
        """Settings for a WAL-mode file."""
        return StoreSettings(name=os.path.join(data_dir, "docs.db"), wal_mode=True)

    def test_reopen_keeps_data(self, settings):
        """Rows written in one session are read in the next."""
        with Database(settings) as db:
            test = db.create("test")
            test.insert({"one": 1})
            test.insert({"member": {"name": "John", "age": 25}})
            test.delete("one")

        with Database(settings) as db:
            assert "test" in db
            assert db["test"].document() == {"member": {"name": "John", "age": "25"}}

    def test_two_stores_same_file(self, settings):
        """Writes from one store are visible to another on the same file."""
        with Database(settings) as writer, Database(settings) as reader:
            writer.create("x")
            writer.insert("x", "a", "1")

            assert reader["x"].get_value("a") == "1"

            with pytest.raises(DuplicateKeyError):
                reader.insert("x", "a", "2")

            reader.update("x", "a", "2")
            assert writer.get_value("x", "a") == "2"

    def test_nested_round_trip(self, settings):
        """Every terminal is readable by its full dotted path."""
        document = {
            "user": {
                "name": "John",
                "age": 25,
                "address": {"city": "Oslo", "zip": 150, "geo": {"lat": 59.9, "lon": 10.7}},
            },
            "active": True,
        }
        expected = {
            "user.name": "John",
            "user.age": "25",
            "user.address.city": "Oslo",
            "user.address.zip": "150",
            "user.address.geo.lat": "59.9",
            "user.address.geo.lon": "10.7",
            "active": "True",
        }

        with Database(settings) as db:
            db.create("docs")
            assert db.insert("docs", document) == len(expected)

            for path, value in expected.items():
                assert db.get("docs", path) == [(value,)]

            assert db.get_value("docs", "lat", ["user", "address", "geo"]) == "59.9"
            assert db.get_value("docs", "city", "user.address") == "Oslo"
            assert db.count("docs") == len(expected)
