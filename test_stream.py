from __future__ import annotations

import io
import unittest

from asarkit.errors import TruncatedArchiveError
from asarkit.header import Algorithm, FileMetadata, Integrity
from asarkit.stream import ArchiveFile


def _stream(data: bytes, start: int, size: int, **meta):
    src = io.BytesIO(data)
    src.seek(start)
    releases = []
    f = ArchiveFile(src, "dir/sub/file.bin", FileMetadata(offset=start, size=size, **meta), release=lambda: releases.append(1))
    return f, src, releases


class BoundedReadTests(unittest.TestCase):
    def test_never_reads_past_size(self):
        f, src, _ = _stream(b"0123456789", 2, 4)
        self.assertEqual(f.read(100), b"2345")
        self.assertEqual(f.read(100), b"")
        self.assertEqual(src.tell(), 6)

    def test_exact_read_then_eof(self):
        f, src, _ = _stream(b"abcdefgh", 0, 3)
        self.assertEqual(f.read(3), b"abc")
        self.assertEqual(f.read(), b"")
        self.assertEqual(f.read(1), b"")
        self.assertEqual(src.tell(), 3)

    def test_readall(self):
        f, _, _ = _stream(b"abcdefgh", 1, 5)
        self.assertEqual(f.read(), b"bcdef")
        self.assertEqual(f.remaining, 0)

    def test_readinto_clips_buffer(self):
        f, _, _ = _stream(b"abcdefgh", 0, 4)
        buf = bytearray(10)
        self.assertEqual(f.readinto(buf), 4)
        self.assertEqual(bytes(buf[:4]), b"abcd")
        self.assertEqual(bytes(buf[4:]), b"\x00" * 6)
        self.assertEqual(f.readinto(buf), 0)

    def test_incremental_reads(self):
        f, _, _ = _stream(b"abcdefgh", 0, 7)
        parts = []
        while True:
            chunk = f.read(3)
            if not chunk:
                break
            parts.append(chunk)
        self.assertEqual(parts, [b"abc", b"def", b"g"])

    def test_works_with_buffered_reader(self):
        f, _, _ = _stream(b"line1\nline2\nrest", 0, 12)
        lines = list(io.BufferedReader(f))
        self.assertEqual(lines, [b"line1\n", b"line2\n"])

    def test_truncated_source(self):
        f, _, _ = _stream(b"abc", 1, 5)
        self.assertEqual(f.read(2), b"bc")
        with self.assertRaises(TruncatedArchiveError):
            f.read(2)

    def test_closed_stream_rejects_reads(self):
        f, _, _ = _stream(b"abc", 0, 3)
        f.close()
        with self.assertRaises(ValueError):
            f.read(1)


class ReleaseTests(unittest.TestCase):
    def test_release_on_exhaustion(self):
        f, _, releases = _stream(b"abc", 0, 3)
        f.read(2)
        self.assertEqual(releases, [])
        f.read(2)
        self.assertEqual(releases, [1])
        f.close()
        self.assertEqual(releases, [1])

    def test_release_on_close(self):
        f, _, releases = _stream(b"abc", 0, 3)
        with f:
            f.read(1)
        self.assertEqual(releases, [1])
        f.close()
        self.assertEqual(releases, [1])

    def test_zero_size_releases_immediately(self):
        f, src, releases = _stream(b"abc", 1, 0)
        self.assertEqual(releases, [1])
        self.assertEqual(f.read(), b"")
        self.assertEqual(src.tell(), 1)

    def test_source_not_closed(self):
        f, src, _ = _stream(b"abc", 0, 3)
        f.close()
        self.assertFalse(src.closed)


class MetadataTests(unittest.TestCase):
    def test_accessors(self):
        integrity = Integrity(algorithm=Algorithm.SHA256, hash="aa" * 32, block_size=4, blocks=["bb" * 32])
        f, _, _ = _stream(b"abcd", 0, 4, executable=True, integrity=integrity)
        self.assertEqual(f.name, "file.bin")
        self.assertEqual(f.path, "dir/sub/file.bin")
        self.assertEqual(f.size, 4)
        self.assertTrue(f.executable)
        self.assertIs(f.integrity, integrity)
        self.assertTrue(f.readable())
        self.assertFalse(f.seekable())
        self.assertFalse(f.writable())

    def test_defaults(self):
        f, _, _ = _stream(b"abcd", 0, 4)
        self.assertFalse(f.executable)
        self.assertIsNone(f.integrity)
        self.assertEqual(f.remaining, 4)


if __name__ == "__main__":
    unittest.main()
