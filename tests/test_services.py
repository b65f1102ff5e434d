"""Tests for tinypool services and discovery."""
from datetime import datetime
from pathlib import Path

import pytest

from tinypool.errors import DiscoveryError, KeyListError
from tinypool.orchestrator.file_collector import FileCollector, is_image
from tinypool.services.keys import KeyPool, load_keys, mask_key
from tinypool.services.reports import FileReportWriter


class TestLoadKeys:
    def test_reads_keys_in_order(self, tmp_path):
        keys_file = tmp_path / "keys.txt"
        keys_file.write_text("key-one\n\n  key-two  \nkey-three\n", encoding="utf-8")

        pool = load_keys(keys_file)

        assert list(pool) == ["key-one", "key-two", "key-three"]
        assert len(pool) == 3

    def test_duplicates_kept_once(self, tmp_path):
        keys_file = tmp_path / "keys.txt"
        keys_file.write_text("a\nb\na\n", encoding="utf-8")
        assert load_keys(keys_file).keys == ("a", "b")

    def test_empty_file_is_fatal(self, tmp_path):
        keys_file = tmp_path / "keys.txt"
        keys_file.write_text("\n   \n", encoding="utf-8")
        with pytest.raises(KeyListError, match="empty"):
            load_keys(keys_file)

    def test_missing_file_is_fatal(self, tmp_path):
        with pytest.raises(KeyListError, match="Failed to read"):
            load_keys(tmp_path / "nope.txt")

    def test_empty_pool_rejected(self):
        with pytest.raises(KeyListError):
            KeyPool(())

    def test_mask_key(self):
        assert mask_key("short") == "short"
        assert mask_key("abcdefghijklmnop") == "abcd...mnop"


class TestFileReportWriter:
    @staticmethod
    def _clock():
        return datetime(2024, 10, 15, 9, 5, 3)

    def test_writes_timestamped_report(self, tmp_path):
        writer = FileReportWriter(Path("reports"), base_dir=tmp_path, clock=self._clock)

        writer.write("42", "count_compressed.txt")

        report = tmp_path / "reports" / "2024-10-15T09-05-03-count_compressed.txt"
        assert report.read_text(encoding="utf-8") == "42"

    def test_report_dir_created_lazily(self, tmp_path):
        FileReportWriter(Path("reports"), base_dir=tmp_path)
        assert not (tmp_path / "reports").exists()

    def test_falls_back_to_base_dir(self, tmp_path):
        (tmp_path / "reports").write_text("occupied")
        writer = FileReportWriter(Path("reports"), base_dir=tmp_path, clock=self._clock)

        writer.write("a\nb", "failed_keys.txt")

        assert writer.report_path == tmp_path
        assert (tmp_path / "2024-10-15T09-05-03-failed_keys.txt").read_text(encoding="utf-8") == "a\nb"

    def test_write_errors_are_swallowed(self, tmp_path, caplog):
        writer = FileReportWriter(tmp_path, clock=self._clock)
        (tmp_path / "2024-10-15T09-05-03-files_by_key.txt").mkdir()

        writer.write("k - 1", "files_by_key.txt")

        assert "Failed writing report files_by_key.txt" in caplog.text


class TestFileCollector:
    def test_is_image(self):
        assert is_image(Path("photo.PNG")) is True
        assert is_image(Path("photo.avif")) is True
        assert is_image(Path("clip.mp4")) is False

    def test_collect(self, source_tree):
        result = FileCollector().collect(source_tree)

        names = [descriptor.name for descriptor in result.files]
        assert sorted(names) == ["a.png", "b.JPG", "c.webp", "d.jpeg"]
        assert result.total_files == 4
        assert result.source_root == source_tree
        assert result.directories[0] == source_tree
        assert source_tree / "albums" / "summer" in result.directories
        assert source_tree / "empty" in result.directories

    def test_missing_source_is_fatal(self, tmp_path):
        with pytest.raises(DiscoveryError, match="does not exist"):
            FileCollector().collect(tmp_path / "missing")

    def test_file_source_is_fatal(self, tmp_path):
        path = tmp_path / "a.png"
        path.write_bytes(b"x")
        with pytest.raises(DiscoveryError, match="not a directory"):
            FileCollector().collect(path)
