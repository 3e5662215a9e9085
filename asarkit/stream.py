from __future__ import annotations

import io
from typing import BinaryIO, Callable, List, Optional

from .constants import COPY_CHUNK_SIZE
from .errors import TruncatedArchiveError
from .header import FileMetadata, Integrity


class ArchiveFile(io.RawIOBase):
    """Read-only view of one file's bytes inside an open archive.

    The view borrows the archive's file handle, which must already be
    positioned at the first byte of the file. At most `size` bytes are ever
    delivered; once the budget is spent reads return b"" without touching the
    handle. `release` is called exactly once, when the budget runs out or the
    view is closed, whichever happens first.
    """

    def __init__(
        self,
        f: BinaryIO,
        path: str,
        metadata: FileMetadata,
        release: Optional[Callable[[], None]] = None,
    ):
        super().__init__()
        self._f = f
        self._path = path
        self._metadata = metadata
        self._remaining = metadata.size
        self._release = release
        if self._remaining == 0:
            self._release_handle()

    def __repr__(self) -> str:
        return f"<ArchiveFile path={self._path!r} size={self.size} remaining={self._remaining}>"

    @property
    def name(self) -> str:
        return self._path.rsplit("/", 1)[-1]

    @property
    def path(self) -> str:
        return self._path

    @property
    def size(self) -> int:
        return self._metadata.size

    @property
    def executable(self) -> bool:
        return self._metadata.executable

    @property
    def integrity(self) -> Optional[Integrity]:
        return self._metadata.integrity

    @property
    def remaining(self) -> int:
        return self._remaining

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed file.")
        if self._remaining <= 0:
            return 0
        view = memoryview(b).cast("B")
        want = min(len(view), self._remaining)
        if want == 0:
            return 0
        data = self._f.read(want)
        if not data:
            raise TruncatedArchiveError(
                f"{self._path}: archive ended with {self._remaining} of {self.size} bytes unread"
            )
        n = len(data)
        view[:n] = data
        self._remaining -= n
        if self._remaining == 0:
            self._release_handle()
        return n

    def readall(self) -> bytes:
        chunks: List[bytes] = []
        while self._remaining > 0:
            chunks.append(self.read(min(self._remaining, COPY_CHUNK_SIZE)))
        return b"".join(chunks)

    def close(self) -> None:
        if not self.closed:
            self._release_handle()
        super().close()

    def _release_handle(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()
