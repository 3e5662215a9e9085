from __future__ import annotations

import logging
import os
import shutil
import threading
import weakref
from typing import BinaryIO, Iterator, Optional, Union

from .constants import (
    COPY_CHUNK_SIZE,
    DEFAULT_MAX_HEADER_SIZE,
    EXECUTABLE_MODE,
    HEADER_OFFSET,
    HEADER_SIZE_STRUCT,
    PROLOGUE_SIZE,
)
from .errors import AsarError, HeaderSizeError, StreamBusyError, TruncatedArchiveError
from .header import Directory, Entry, FileMetadata, loads_header
from .pathutil import iter_file_paths, resolve, split_path
from .stream import ArchiveFile


logger = logging.getLogger(__name__)

Source = Union[str, "os.PathLike[str]", BinaryIO]


def _read_exact(f: BinaryIO, n: int) -> bytes:
    buf = bytearray()
    while len(buf) < n:
        chunk = f.read(n - len(buf))
        if not chunk:
            break
        buf += chunk
    return bytes(buf)


def _safe_chmod(path: str, mode: int) -> None:
    """Best-effort chmod that never raises."""
    try:
        os.chmod(path, mode)
    except OSError as exc:
        logger.warning("failed to set mode on %s: %s", path, exc)


class ArchiveReader:
    """Read-only access to an asar archive.

    `source` is either a filesystem path, which the reader opens and owns, or
    a seekable binary file object, which the reader borrows and never closes.

    The archive has a single read cursor, so at most one ArchiveFile may be
    live at a time. `get()` raises StreamBusyError while another stream is
    still open and has bytes left to deliver.
    """

    def __init__(self, source: Source, *, max_header_size: int = DEFAULT_MAX_HEADER_SIZE):
        if isinstance(source, (str, os.PathLike)):
            self.path: Optional[str] = os.fspath(source)
            self._source: Optional[BinaryIO] = None
        else:
            self.path = getattr(source, "name", None)
            self._source = source
        self.f: Optional[BinaryIO] = None
        self.header: Optional[Directory] = None
        self.header_size: int = 0
        self.data_offset: int = 0
        self.max_header_size = max_header_size
        self._guard = threading.Lock()
        self._live: Optional[weakref.ref] = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        self.f = self._source if self._source is not None else open(self.path, "rb")
        try:
            self._load_header()
        except (AsarError, OSError, ValueError):
            # Leave the reader unopened and release an owned handle
            self.close()
            raise

    def close(self):
        # A stream still holding the cursor is closed with the reader
        live = self._live() if self._live is not None else None
        if live is not None:
            live.close()
        self._live = None
        if self.f is not None and self._source is None:
            self.f.close()
        self.f = None
        self.header = None

    def list(self) -> Iterator[str]:
        """Return a fresh lazy iterator over the paths of all files in the archive."""
        header = self._require_open()
        return iter_file_paths(header)

    def lookup(self, path: str) -> Optional[Entry]:
        header = self._require_open()
        return resolve(header, path)

    def get(self, path: str) -> Optional[ArchiveFile]:
        """Open a bounded stream over the file at `path`.

        Returns None when nothing exists at `path` or when it names a directory.
        """
        header = self._require_open()
        segments = split_path(path)
        entry = resolve(header, segments)
        if not isinstance(entry, FileMetadata):
            return None
        if not self._guard.acquire(blocking=False):
            raise StreamBusyError("Another file stream is still open on this archive")
        try:
            self.f.seek(self.data_offset + entry.offset)
        except BaseException:
            self._guard.release()
            raise
        full_path = "/".join(segments)
        logger.debug("streaming %s (%d bytes at %d)", full_path, entry.size, self.data_offset + entry.offset)
        stream = ArchiveFile(self.f, full_path, entry, release=self._guard.release)
        self._live = weakref.ref(stream)
        return stream

    def read_bytes(self, path: str) -> Optional[bytes]:
        stream = self.get(path)
        if stream is None:
            return None
        with stream:
            return stream.read()

    def extract(self, path: str, out_path: str) -> bool:
        """Copy one file out of the archive.

        Returns False when `path` does not name a file. Executable entries get
        mode 0o755 on a best-effort basis.
        """
        stream = self.get(path)
        if stream is None:
            return False
        with stream:
            os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
            with open(out_path, "wb") as wf:
                shutil.copyfileobj(stream, wf, COPY_CHUNK_SIZE)
        if stream.executable:
            _safe_chmod(out_path, EXECUTABLE_MODE)
        return True

    # internals
    def _require_open(self) -> Directory:
        if self.f is None or self.header is None:
            raise RuntimeError("Archive not open")
        return self.header

    def _load_header(self):
        """
        Reads the header length and header document that follow the prologue.

        Layout:
        - [0, 12): prologue, not interpreted
        - [12, 16): u32 little-endian header length N
        - [16, 16 + N): UTF-8 JSON header
        - [16 + N, ...): data region, file offsets are relative to its start
        """
        assert self.f is not None
        self.f.seek(PROLOGUE_SIZE)
        raw = _read_exact(self.f, HEADER_SIZE_STRUCT.size)
        if len(raw) != HEADER_SIZE_STRUCT.size:
            raise TruncatedArchiveError("Archive too short to hold a header length")
        (header_size,) = HEADER_SIZE_STRUCT.unpack(raw)
        if header_size > self.max_header_size:
            raise HeaderSizeError(f"Header size {header_size} exceeds safety bound {self.max_header_size}")
        header_bytes = _read_exact(self.f, header_size)
        if len(header_bytes) != header_size:
            raise TruncatedArchiveError(f"Header truncated: expected {header_size} bytes, got {len(header_bytes)}")
        self.header = loads_header(header_bytes)
        self.header_size = header_size
        self.data_offset = HEADER_OFFSET + header_size
        logger.debug("opened archive %s: header %d bytes, data at %d", self.path, header_size, self.data_offset)
