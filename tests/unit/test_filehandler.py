"""
test_filehandler.py
-------------------
Unit tests for byte sources, sinks and text decoding.
"""
import pytest

from shelfcase.errors import DownloadError
from shelfcase.filehandler import (
    BytesSink,
    BytesSource,
    FileSink,
    FileSource,
    as_sink,
    as_source,
    decode_text,
    read_text,
)


class TestSources:
    """Test reading bytes."""

    def test_file_source(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_bytes(b"abc")
        assert FileSource(path).read() == b"abc"

    def test_missing_file(self, tmp_path):
        with pytest.raises(DownloadError) as exc:
            FileSource(tmp_path / "nope.xml").read()
        assert "nope.xml" in str(exc.value.source)

    def test_as_source(self, tmp_path):
        assert isinstance(as_source(tmp_path / "x"), FileSource)
        assert isinstance(as_source(b"x"), BytesSource)
        src = BytesSource("text", name="clip")
        assert as_source(src) is src
        assert src.read() == b"text"

    def test_read_text(self):
        assert read_text("Café".encode("cp1252")) == "Café"


class TestSinks:
    """Test writing bytes."""

    def test_file_sink_creates_folders(self, tmp_path):
        path = tmp_path / "out" / "doc.xml"
        FileSink(path).write(b"one")
        assert path.read_bytes() == b"one"

    def test_backup_of_existing_file(self, tmp_path):
        path = tmp_path / "doc.xml"
        path.write_bytes(b"old")
        FileSink(path).write(b"new")
        assert path.read_bytes() == b"new"
        assert (tmp_path / "doc.xml~").read_bytes() == b"old"

    def test_no_backup(self, tmp_path):
        path = tmp_path / "doc.xml"
        path.write_bytes(b"old")
        FileSink(path, backup=False).write(b"new")
        assert not (tmp_path / "doc.xml~").exists()

    def test_no_temporary_files_left(self, tmp_path):
        FileSink(tmp_path / "doc.xml").write(b"x")
        assert [p.name for p in tmp_path.iterdir()] == ["doc.xml"]

    def test_bytes_sink(self):
        sink = as_sink(BytesSink())
        sink.write(b"data")
        assert sink.data == b"data"


class TestDecodeText:
    """Test encoding detection."""

    def test_utf8_bom_removed(self):
        text, enc = decode_text("\ufeffabc".encode("utf-8"))
        assert text == "abc"
        assert enc == "utf-8-sig"

    def test_cp1252_fallback(self):
        text, enc = decode_text(b"\x93quoted\x94")
        assert text == "“quoted”"
        assert enc == "cp1252"

    def test_latin1_last_resort(self):
        # 0x81 is undefined in cp1252
        text, enc = decode_text(b"\x81")
        assert enc == "latin-1"
        assert text == "\x81"
