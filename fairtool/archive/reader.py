"""Read-only access to zip-based app archives (.zip and .ipa)."""

from __future__ import annotations

import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List


class ArchiveOpenError(RuntimeError):
    """Raised when an archive container cannot be opened or is corrupt."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Error opening archive {path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True)
class ArchiveEntry:
    """Metadata for a single archive member; contents are read on demand."""

    path: str
    uncompressed_size: int
    checksum: int
    _loader: Callable[[], bytes] = field(repr=False, compare=False)
    index: int = field(default=-1, compare=False)

    @property
    def is_directory(self) -> bool:
        return self.path.endswith("/")

    def read(self) -> bytes:
        """Return the decompressed bytes of this entry."""
        return self._loader()


class ArchiveReader:
    """Owns an open archive handle and yields its entries in physical order.

    Use as a context manager so the underlying file handle is released on
    every exit path::

        with ArchiveReader(path) as reader:
            for entry in reader.entries():
                ...
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        try:
            self._zip = zipfile.ZipFile(self.path, mode="r")
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as exc:
            raise ArchiveOpenError(self.path, str(exc)) from exc
        self._entries: List[ArchiveEntry] | None = None

    def entries(self) -> List[ArchiveEntry]:
        if self._entries is None:
            self._entries = [self._make_entry(index, info) for index, info in enumerate(self._zip.infolist())]
        return list(self._entries)

    def extract(self, entry: ArchiveEntry) -> bytes:
        """Read the bytes for ``entry``; the entry must belong to this archive.

        Members are addressed by position so duplicate names read the right copy.
        """
        members = self._zip.infolist()
        if not 0 <= entry.index < len(members) or members[entry.index].filename != entry.path:
            raise ArchiveOpenError(self.path, f"entry {entry.path} does not belong to this archive")
        try:
            return self._zip.read(members[entry.index])
        except (KeyError, zipfile.BadZipFile) as exc:
            raise ArchiveOpenError(self.path, f"unreadable entry {entry.path}: {exc}") from exc

    def close(self) -> None:
        self._zip.close()

    def __enter__(self) -> "ArchiveReader":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def _make_entry(self, index: int, info: zipfile.ZipInfo) -> ArchiveEntry:
        entry_path = info.filename

        def _load() -> bytes:
            return self.extract(holder[0])

        holder: List[ArchiveEntry] = []
        entry = ArchiveEntry(
            path=entry_path,
            uncompressed_size=info.file_size,
            checksum=info.CRC,
            _loader=_load,
            index=index,
        )
        holder.append(entry)
        return entry


__all__ = ["ArchiveEntry", "ArchiveOpenError", "ArchiveReader"]
