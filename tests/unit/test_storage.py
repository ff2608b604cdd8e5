"""
Unit tests for the file store.
"""

from pathlib import Path

import pytest

from rawhttpd.storage import FileStore, StorageError, FileNotFoundInStore


class TestFileStore:
    """Tests for FileStore class."""

    def test_root_resolved(self, tmp_path: Path):
        store = FileStore(str(tmp_path / "." / ""))
        assert store.root_dir == tmp_path.resolve()

    def test_write_then_read(self, file_store: FileStore):
        file_store.write("foo.txt", b"hello")
        assert file_store.read("foo.txt") == b"hello"

    def test_binary_roundtrip_is_exact(self, file_store: FileStore):
        data = bytes(range(256))
        file_store.write("bin", data)
        assert file_store.read("bin") == data

    def test_write_creates_file_in_root(self, file_store: FileStore, tmp_path: Path):
        file_store.write("a", b"x")
        assert (tmp_path / "a").read_bytes() == b"x"

    def test_leading_slash_ignored(self, file_store: FileStore, tmp_path: Path):
        file_store.write("/slashed", b"y")
        assert (tmp_path / "slashed").read_bytes() == b"y"

    def test_read_missing(self, file_store: FileStore):
        with pytest.raises(FileNotFoundInStore):
            file_store.read("missing")

    def test_not_found_is_storage_error(self, file_store: FileStore):
        with pytest.raises(StorageError):
            file_store.read("missing")

    def test_read_directory(self, file_store: FileStore, tmp_path: Path):
        (tmp_path / "dir").mkdir()

        with pytest.raises(FileNotFoundInStore):
            file_store.read("dir")

    def test_empty_name(self, file_store: FileStore):
        with pytest.raises(StorageError):
            file_store.read("")

    @pytest.mark.parametrize("name", ["..", "../outside", "a/../../outside"])
    def test_traversal_refused(self, file_store: FileStore, tmp_path: Path, name: str):
        with pytest.raises(StorageError) as exc_info:
            file_store.write(name, b"x")

        assert not isinstance(exc_info.value, FileNotFoundInStore)
        assert not (tmp_path.parent / "outside").exists()

    def test_write_into_missing_directory(self, file_store: FileStore):
        with pytest.raises(StorageError):
            file_store.write("no/such/dir/file", b"x")

    @pytest.mark.parametrize("name", ["a\x00b", "\x00"])
    def test_null_byte_refused(self, file_store: FileStore, name: str):
        """Names the OS cannot represent fail as StorageError, not ValueError."""
        with pytest.raises(StorageError):
            file_store.read(name)

        with pytest.raises(StorageError):
            file_store.write(name, b"x")
