"""Tests for whole-file binary I/O."""

from pathlib import Path

import pytest

from xbl.api.files import read_binary, write_binary
from xbl.shared.errors import ErrorKind, FileAccessError


class TestFiles:
    """Test read_binary and write_binary."""

    def test_write_then_read(self, tmp_path: Path) -> None:
        target = tmp_path / "doc.xbl"

        write_binary(target, b"\x0a\x00\x00\x0b")

        assert read_binary(target) == b"\x0a\x00\x00\x0b"
        assert read_binary(str(target)) == b"\x0a\x00\x00\x0b"

    def test_write_replaces_content(self, tmp_path: Path) -> None:
        target = tmp_path / "doc.xbl"
        target.write_bytes(b"old content")

        write_binary(target, b"new")

        assert target.read_bytes() == b"new"

    def test_read_missing(self, tmp_path: Path) -> None:
        missing = tmp_path / "missing.xbl"

        with pytest.raises(FileAccessError, match="Failed to find file") as exc_info:
            read_binary(missing)

        assert exc_info.value.kind is ErrorKind.FILE_ACCESS
        assert exc_info.value.path == str(missing)

    def test_read_directory(self, tmp_path: Path) -> None:
        with pytest.raises(FileAccessError, match="Failed to read file"):
            read_binary(tmp_path)

    def test_write_into_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(FileAccessError, match="File cannot be opened/written"):
            write_binary(tmp_path / "nope" / "doc.xbl", b"")
