from __future__ import annotations

from typing import Iterator, List, Optional, Sequence, Union

from .header import Directory, Entry, FileMetadata


def split_path(path: str) -> List[str]:
    """Split an archive path into segments.

    Rules:
    - Split on '/'
    - Drop empty segments (leading, trailing or repeated slashes)
    - No '.' or '..' handling; segments are matched literally
    """
    return [seg for seg in path.split("/") if seg]


def resolve(root: Entry, path: Union[str, Sequence[str]]) -> Optional[Entry]:
    segments = split_path(path) if isinstance(path, str) else path
    node = root
    for seg in segments:
        if isinstance(node, FileMetadata):
            return None
        node = node.files.get(seg)
        if node is None:
            return None
    return node


def iter_file_paths(directory: Directory, prefix: str = "") -> Iterator[str]:
    """Yield the slash-joined path of every file below `directory`, depth first."""
    for name, child in directory.files.items():
        full = f"{prefix}/{name}" if prefix else name
        if isinstance(child, Directory):
            yield from iter_file_paths(child, full)
        else:
            yield full
