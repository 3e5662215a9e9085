"""
Header model for asar archives.

The header is a UTF-8 JSON document describing a directory tree. Nodes are not
tagged; a node is told apart by the keys it carries.

Directory
- files: object mapping child name -> node

File
- offset: decimal string, byte offset relative to the start of the data region
- size: integer byte count
- executable: boolean (optional, default false)
- integrity: object (optional)

Integrity
- algorithm: "SHA256"
- hash: hex digest of the whole file
- blockSize: integer size of each hashed block
- blocks: list of hex digests, one per block (last block may be shorter)

Offsets are string-encoded so that values beyond 2**53 - 1 survive JSON
number handling; both offset and size are still bounded by 2**53 - 1 here.
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .constants import ALGO_SHA256, MAX_SAFE_INTEGER, MAX_U32, MAX_U64, MAX_U64_DIGITS
from .errors import InvalidOffsetError, MalformedHeaderError


class Algorithm(str, enum.Enum):
    """Hashing algorithm named in integrity metadata. Only SHA256 is used."""

    SHA256 = ALGO_SHA256


@dataclass(frozen=True)
class Integrity:
    algorithm: Algorithm
    hash: str
    block_size: int
    blocks: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "blocks", tuple(self.blocks))


@dataclass(frozen=True)
class FileMetadata:
    offset: int
    size: int
    executable: bool = False
    integrity: Optional[Integrity] = None


@dataclass(frozen=True)
class Directory:
    files: Mapping[str, "Entry"] = field(default_factory=dict)

    def __post_init__(self):
        # Read-only view over a private copy
        object.__setattr__(self, "files", MappingProxyType(dict(self.files)))


Entry = Union[Directory, FileMetadata]


def _json_int(text: str) -> int:
    if len(text.lstrip("-")) > MAX_U64_DIGITS:
        raise InvalidOffsetError(f"integer {text[:24]}... has more digits than any 64-bit value")
    return int(text)


def loads_header(data: bytes) -> Directory:
    """Decode raw header bytes into the root directory of the tree.

    Any JSON integer longer than a 64-bit value can be (such as an oversized
    `size`) raises InvalidOffsetError rather than MalformedHeaderError.
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedHeaderError(f"Header is not valid UTF-8: {exc}") from exc
    try:
        doc = json.loads(text, parse_int=_json_int)
    except InvalidOffsetError:
        raise
    except (ValueError, RecursionError) as exc:
        raise MalformedHeaderError(f"Header is not valid JSON: {exc}") from exc
    try:
        root = parse_entry(doc)
    except RecursionError as exc:
        raise MalformedHeaderError("Header tree nested too deeply") from exc
    if not isinstance(root, Directory):
        raise MalformedHeaderError("Header root must be a directory")
    return root


def parse_entry(node: Any, path: str = "") -> Entry:
    """Build a Directory or FileMetadata from one decoded JSON node.

    A node carrying both "files" and "offset" is rejected as ambiguous.
    Otherwise "files" selects a directory and "offset"/"size" select a file.
    Keys not named by either schema are ignored.
    """
    where = path or "/"
    if not isinstance(node, dict):
        raise MalformedHeaderError(f"{where}: entry must be an object")
    if "files" in node and "offset" in node:
        raise MalformedHeaderError(f"{where}: ambiguous entry has both 'files' and 'offset'")
    if "files" in node:
        return _parse_directory(node["files"], path)
    if "offset" in node or "size" in node:
        return _parse_file(node, path)
    raise MalformedHeaderError(f"{where}: entry is neither a directory nor a file")


def _parse_directory(children: Any, path: str) -> Directory:
    if not isinstance(children, dict):
        raise MalformedHeaderError(f"{path or '/'}: 'files' must be an object")
    files: Dict[str, Entry] = {}
    for name, child in children.items():
        if not name or "/" in name:
            raise MalformedHeaderError(f"{path or '/'}: invalid entry name {name!r}")
        files[name] = parse_entry(child, f"{path}/{name}" if path else name)
    return Directory(files=files)


def _parse_file(node: Dict[str, Any], path: str) -> FileMetadata:
    if "offset" not in node:
        raise MalformedHeaderError(f"{path}: file entry missing 'offset'")
    if "size" not in node:
        raise MalformedHeaderError(f"{path}: file entry missing 'size'")
    offset = _parse_offset(node["offset"], path)
    size = _parse_size(node["size"], path)
    executable = node.get("executable", False)
    if not isinstance(executable, bool):
        raise MalformedHeaderError(f"{path}: 'executable' must be a boolean")
    integrity = None
    if node.get("integrity") is not None:
        integrity = _parse_integrity(node["integrity"], path)
    return FileMetadata(offset=offset, size=size, executable=executable, integrity=integrity)


def _parse_offset(value: Any, path: str) -> int:
    if not isinstance(value, str) or not value.isascii() or not value.isdigit():
        raise InvalidOffsetError(f"{path}: offset must be a decimal string, got {value!r}")
    if len(value.lstrip("0")) > MAX_U64_DIGITS:
        raise InvalidOffsetError(f"{path}: offset has {len(value)} digits, more than any 64-bit value")
    offset = int(value, 10)
    if offset > MAX_U64:
        raise InvalidOffsetError(f"{path}: offset {value} does not fit in 64 bits")
    if offset > MAX_SAFE_INTEGER:
        raise InvalidOffsetError(f"{path}: offset {value} exceeds {MAX_SAFE_INTEGER}")
    return offset


def _parse_size(value: Any, path: str) -> int:
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidOffsetError(f"{path}: size must be a non-negative integer, got {value!r}")
    if value > MAX_SAFE_INTEGER:
        raise InvalidOffsetError(f"{path}: size {value} exceeds {MAX_SAFE_INTEGER}")
    return value


def _parse_integrity(node: Any, path: str) -> Integrity:
    if not isinstance(node, dict):
        raise MalformedHeaderError(f"{path}: 'integrity' must be an object")
    for key in ("algorithm", "hash", "blockSize", "blocks"):
        if key not in node:
            raise MalformedHeaderError(f"{path}: integrity missing '{key}'")
    try:
        algorithm = Algorithm(node["algorithm"])
    except ValueError:
        raise MalformedHeaderError(f"{path}: unsupported integrity algorithm {node['algorithm']!r}") from None
    digest = node["hash"]
    if not isinstance(digest, str):
        raise MalformedHeaderError(f"{path}: integrity hash must be a string")
    block_size = node["blockSize"]
    if isinstance(block_size, bool) or not isinstance(block_size, int) or not 0 <= block_size <= MAX_U32:
        raise MalformedHeaderError(f"{path}: integrity blockSize must be an unsigned 32-bit integer")
    blocks = node["blocks"]
    if not isinstance(blocks, list) or not all(isinstance(b, str) for b in blocks):
        raise MalformedHeaderError(f"{path}: integrity blocks must be a list of strings")
    return Integrity(algorithm=algorithm, hash=digest, block_size=block_size, blocks=tuple(blocks))


def entry_to_dict(entry: Entry) -> Dict[str, Any]:
    if isinstance(entry, Directory):
        return {"files": {name: entry_to_dict(child) for name, child in entry.files.items()}}
    out: Dict[str, Any] = {"offset": str(entry.offset), "size": entry.size}
    if entry.executable:
        out["executable"] = True
    if entry.integrity is not None:
        out["integrity"] = {
            "algorithm": entry.integrity.algorithm.value,
            "hash": entry.integrity.hash,
            "blockSize": entry.integrity.block_size,
            "blocks": list(entry.integrity.blocks),
        }
    return out


def dumps_header(root: Directory) -> bytes:
    """Encode a tree back into compact header bytes."""
    return json.dumps(entry_to_dict(root), separators=(",", ":")).encode("utf-8")
