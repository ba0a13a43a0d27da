"""Unit tests for snapshot storage."""

from datetime import datetime
from pathlib import Path

import pytest

from news_aggregator.exceptions import StorageIOError
from news_aggregator.storage import Storage, snapshot_source


class TestSnapshotSource:
    """Test snapshot_source."""

    @pytest.mark.parametrize(
        ("file_name", "expected"),
        [
            ("bbc-world_20240620.xml", "bbc-world"),
            ("abc_news_20240101.xml", "abc_news"),
            ("notes_draft.txt", "notes"),
            ("README", None),
        ],
    )
    def test_source_part(self, file_name: str, expected: str | None) -> None:
        """Test dated names and the first-underscore fallback."""
        assert snapshot_source(file_name) == expected


class TestStorage:
    """Test Storage."""

    def test_creates_directory(self, tmp_path: Path) -> None:
        """Test the base directory is created on construction."""
        base = tmp_path / "deep" / "storage"
        Storage(base)
        assert base.is_dir()

    def test_unwritable_location(self, tmp_path: Path) -> None:
        """Test a file in the way is a storage error."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        with pytest.raises(StorageIOError):
            Storage(blocker / "storage")

    def test_write_snapshot_name(self, storage: Storage) -> None:
        """Test snapshot files are named <source>_<YYYYMMDD>.<ext>."""
        path = storage.write_snapshot("bbc-world", "xml", b"<rss/>")
        assert path.name == "bbc-world_20240620.xml"
        assert path.read_bytes() == b"<rss/>"

    def test_same_day_overwrites(self, storage: Storage) -> None:
        """Test a second write on the same day replaces the first."""
        storage.write_snapshot("bbc-world", "xml", b"first")
        storage.write_snapshot("bbc-world", "xml", b"second")
        assert storage.read_source("bbc-world") == [b"second"]

    def test_older_days_are_kept(self, storage_dir: Path) -> None:
        """Test snapshots of different days accumulate in name order."""
        Storage(storage_dir, clock=lambda: datetime(2024, 6, 19)).write_snapshot("bbc-world", "xml", b"old")
        Storage(storage_dir, clock=lambda: datetime(2024, 6, 20)).write_snapshot("bbc-world", "xml", b"new")

        storage = Storage(storage_dir)
        assert storage.read_source("bbc-world") == [b"old", b"new"]
        assert storage.read_concatenated("bbc-world") == b"oldnew"

    def test_sources_with_shared_prefix_stay_apart(self, storage: Storage) -> None:
        """Test abc and abc_news snapshots are not mixed."""
        storage.write_snapshot("abc", "xml", b"a")
        storage.write_snapshot("abc_news", "xml", b"b")

        assert storage.read_source("abc") == [b"a"]
        assert storage.read_source("abc_news") == [b"b"]

    def test_available_sources(self, storage: Storage) -> None:
        """Test sorted, deduplicated source names."""
        storage.write_snapshot("nbc-news", "json", b"{}")
        storage.write_snapshot("bbc-world", "xml", b"<rss/>")
        storage.write_snapshot("bbc-world", "html", b"<html/>")

        assert storage.available_sources() == ["bbc-world", "nbc-news"]

    def test_empty_storage(self, storage: Storage) -> None:
        """Test nothing stored yet."""
        assert storage.available_sources() == []
        assert storage.read_source("bbc-world") == []
