"""Read capability: turns a path into a byte stream.

The cache only talks to a `Reader`, so tests can hand it in-memory content
instead of files on disk.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import BinaryIO, Dict, Mapping, Protocol

from tandem.audio.errors import SourceReadError

logger = logging.getLogger(__name__)


class Reader(Protocol):
    def open(self, path: str) -> BinaryIO: ...


class FileReader:
    """Reads the whole file into memory and returns it as a stream."""

    def open(self, path: str) -> BinaryIO:
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise SourceReadError(f"cannot read audio source {path}: {exc}") from exc
        logger.debug("Read %d bytes from %s", len(data), path)
        return io.BytesIO(data)


class MemoryReader:
    """Serves content from a path -> bytes mapping."""

    def __init__(self, files: Mapping[str, bytes]) -> None:
        self._files: Dict[str, bytes] = {str(path): bytes(data) for path, data in files.items()}

    def open(self, path: str) -> BinaryIO:
        try:
            return io.BytesIO(self._files[str(path)])
        except KeyError:
            raise SourceReadError(f"cannot read audio source {path}: no such entry") from None


class StaticReader:
    """Returns the same bytes for every path."""

    def __init__(self, contents: bytes) -> None:
        self.contents = bytes(contents)

    def open(self, path: str) -> BinaryIO:
        del path
        return io.BytesIO(self.contents)
