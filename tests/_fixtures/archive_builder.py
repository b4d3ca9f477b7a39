"""Helper utilities for constructing app archives in tests."""

from __future__ import annotations

import plistlib
import zipfile
from pathlib import Path
from typing import Dict, Mapping

# 64-bit arm Mach-O header magic followed by a deterministic body.
EXECUTABLE = bytes.fromhex("cffaedfe0c000001") + bytes(range(256)) * 4


def info_plist(name: str, **extra: object) -> bytes:
    values: Dict[str, object] = {
        "CFBundleIdentifier": f"app.{name}",
        "CFBundleName": name,
        "CFBundleExecutable": name,
        "CFBundleShortVersionString": "1.0.0",
    }
    values.update(extra)
    return plistlib.dumps(values)


def mac_app(
    name: str = "Demo",
    *,
    executable: bytes = EXECUTABLE,
    extra: Mapping[str, bytes] | None = None,
) -> Dict[str, bytes]:
    """Return the entries of a minimal ``Name.app`` bundle, in archive order."""
    files: Dict[str, bytes] = {
        f"{name}.app/": b"",
        f"{name}.app/Contents/Info.plist": info_plist(name),
        f"{name}.app/Contents/MacOS/{name}": executable,
        f"{name}.app/Contents/Resources/strings.txt": b"hello",
    }
    files.update(extra or {})
    return files


def ios_app(name: str = "Demo", *, executable: bytes = EXECUTABLE) -> Dict[str, bytes]:
    return {
        "Payload/": b"",
        f"Payload/{name}.app/Info.plist": info_plist(name),
        f"Payload/{name}.app/{name}": executable,
    }


class ArchiveBuilder:
    """Writes zip archives with entries in the order they are given."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "archives"
        self.root.mkdir()

    def write(self, name: str, files: Mapping[str, bytes | str]) -> Path:
        path = self.root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for entry, content in files.items():
                data = content.encode("utf-8") if isinstance(content, str) else content
                archive.writestr(entry, data)
        return path


__all__ = ["EXECUTABLE", "ArchiveBuilder", "info_plist", "ios_app", "mac_app"]
