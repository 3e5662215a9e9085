"""
asarkit — read-only access to asar archives.

Features:

- Parses the length-prefixed JSON header into an immutable directory tree.
- Resolves slash paths against the tree and lists every contained file.
- Hands out bounded, single-use streams over one file's bytes at a time,
  without loading the archive into memory.
- Exposes per-file integrity metadata (SHA256 whole-file and block hashes);
  verification is left to the caller.

Unpacked entries (bytes stored beside the archive) are not supported.
"""

from .errors import (
    AsarError,
    HeaderSizeError,
    InvalidOffsetError,
    MalformedHeaderError,
    StreamBusyError,
    TruncatedArchiveError,
)
from .header import Algorithm, Directory, FileMetadata, Integrity
from .reader import ArchiveReader
from .stream import ArchiveFile

__version__ = "0.1"

__all__ = [
    "ArchiveReader",
    "ArchiveFile",
    "Algorithm",
    "Directory",
    "FileMetadata",
    "Integrity",
    "AsarError",
    "HeaderSizeError",
    "InvalidOffsetError",
    "MalformedHeaderError",
    "StreamBusyError",
    "TruncatedArchiveError",
]
