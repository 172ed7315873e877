"""Tests for storage module."""

import os
import stat
from datetime import datetime
from unittest.mock import patch

import pytest

from pairctl.errors import StorageError
from pairctl.storage import SessionRecord, SessionStore


class TestSessionRecord:
    """Test SessionRecord dataclass."""

    def test_defaults(self):
        """New record is waiting with timestamps set."""
        before = datetime.now()
        record = SessionRecord(code="AB12CD")
        after = datetime.now()

        assert record.status == "waiting"
        assert before <= record.created_at <= after

    def test_to_dict(self):
        record = SessionRecord(
            code="AB12CD",
            status="paired",
            created_at=datetime(2025, 1, 1, 12, 0, 0),
            updated_at=datetime(2025, 1, 1, 12, 5, 0),
        )
        assert record.to_dict() == {
            "code": "AB12CD",
            "status": "paired",
            "created_at": "2025-01-01T12:00:00",
            "updated_at": "2025-01-01T12:05:00",
        }

    def test_from_dict_without_updated_at(self):
        """Missing updated_at falls back to created_at."""
        record = SessionRecord.from_dict(
            {"code": "AB12CD", "created_at": "2025-01-01T12:00:00"}
        )
        assert record.status == "waiting"
        assert record.updated_at == record.created_at


class TestSessionStore:
    """Test SessionStore."""

    @pytest.fixture
    def store(self, tmp_path):
        return SessionStore(tmp_path / "nested" / "session.json")

    def test_load_missing_returns_none(self, store):
        assert store.load() is None

    def test_save_and_load(self, store):
        store.save(SessionRecord(code="AB12CD", status="paired"))
        loaded = store.load()
        assert loaded.code == "AB12CD"
        assert loaded.status == "paired"

    def test_save_creates_directory(self, store):
        store.save(SessionRecord(code="AB12CD"))
        assert store.path.exists()

    def test_file_permissions(self, store):
        """Session file is readable by owner only."""
        store.save(SessionRecord(code="AB12CD"))
        mode = stat.S_IMODE(os.stat(store.path).st_mode)
        assert mode == 0o600

    def test_save_overwrites(self, store):
        store.save(SessionRecord(code="AAAAAA"))
        store.save(SessionRecord(code="BB"))
        assert store.load().code == "BB"

    def test_clear(self, store):
        store.save(SessionRecord(code="AB12CD"))
        assert store.clear() is True
        assert store.load() is None
        assert store.clear() is False

    def test_save_leaves_no_temp_files(self, store):
        """Save renames its temporary file into place."""
        store.save(SessionRecord(code="AAAAAA"))
        store.save(SessionRecord(code="BBBBBB", status="paired"))

        assert [p.name for p in store.path.parent.iterdir()] == ["session.json"]

    def test_failed_save_keeps_previous_record(self, store):
        """A write that fails before the rename leaves the old file intact."""
        store.save(SessionRecord(code="AAAAAA"))

        with patch("pairctl.storage.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                store.save(SessionRecord(code="BBBBBB"))

        assert store.load().code == "AAAAAA"
        assert [p.name for p in store.path.parent.iterdir()] == ["session.json"]

    @pytest.mark.parametrize("content", ["{not json", "[]", '{"status": "paired"}'])
    def test_corrupt_file_raises(self, store, content):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(content)
        with pytest.raises(StorageError):
            store.load()
