"""
Byte sources and sinks used by the document and the translators.

The core never opens files itself: it is handed a source to read bytes
from and a sink to write bytes to, and either call succeeds or raises one
of the typed ``DocumentError`` subclasses.
"""
from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Protocol, Tuple, Union

from .errors import DownloadError, ReadError, ShelfcaseError


logger = logging.getLogger(__name__)

# tried in order; latin-1 never fails so it closes the list
ENCODINGS_TO_TRY = ["utf-8-sig", "utf-8", "cp1252", "latin-1"]


class ByteSource(Protocol):
    name: str

    def read(self) -> bytes:
        ...


class ByteSink(Protocol):
    name: str

    def write(self, data: bytes) -> None:
        ...


class FileSource:
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path).expanduser()
        self.name = str(self.path)

    def read(self) -> bytes:
        if not self.path.exists():
            raise DownloadError("file does not exist", source=self.name)
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise ReadError(f"could not read file: {e}", source=self.name) from e


class BytesSource:
    """In-memory source, for data that was fetched elsewhere."""

    def __init__(self, data: Union[bytes, str], name: str = "<memory>") -> None:
        self._data = data.encode("utf-8") if isinstance(data, str) else data
        self.name = name

    def read(self) -> bytes:
        return self._data


class FileSink:
    """
    Writes to a temporary file next to the destination and moves it into
    place, so a failed write never truncates the old file. An existing
    destination is first copied to ``<name>~``.
    """

    def __init__(self, path: Union[str, Path], *, backup: bool = True) -> None:
        self.path = Path(path).expanduser()
        self.name = str(self.path)
        self.backup = backup

    def _backup(self) -> None:
        if not self.backup or not self.path.exists():
            return
        bak = self.path.with_name(self.path.name + "~")
        try:
            shutil.copy2(self.path, bak)
        except OSError as e:
            logger.warning("could not back up %s: %s", self.path, e)

    def write(self, data: bytes) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ShelfcaseError(f"could not create {self.path.parent}: {e}") from e

        self._backup()
        fd, tmp = tempfile.mkstemp(prefix=".shelfcase_", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp, self.path)
        except OSError as e:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise ShelfcaseError(f"could not write {self.path}: {e}") from e
        logger.debug("wrote %d bytes to %s", len(data), self.path)


class BytesSink:
    def __init__(self, name: str = "<memory>") -> None:
        self.name = name
        self.data: Optional[bytes] = None

    def write(self, data: bytes) -> None:
        self.data = data


def as_source(source: Union[str, Path, bytes, ByteSource]) -> ByteSource:
    if isinstance(source, (str, Path)):
        return FileSource(source)
    if isinstance(source, bytes):
        return BytesSource(source)
    return source


def as_sink(target: Union[str, Path, ByteSink]) -> ByteSink:
    if isinstance(target, (str, Path)):
        return FileSink(target)
    return target


def decode_text(data: bytes) -> Tuple[str, str]:
    """
    Decode text with best-effort encoding guessing.
    Returns (text, encoding_used).
    """
    for enc in ENCODINGS_TO_TRY:
        try:
            return data.decode(enc), enc
        except UnicodeDecodeError:
            continue
    return data.decode("utf-8", errors="replace"), "utf-8(replace)"


def read_text(source: Union[str, Path, bytes, ByteSource]) -> str:
    src = as_source(source)
    text, enc = decode_text(src.read())
    logger.debug("read %s as %s", src.name, enc)
    return text
