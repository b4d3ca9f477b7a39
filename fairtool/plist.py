"""Typed access to property lists (Info.plist, entitlements)."""

from __future__ import annotations

import plistlib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Iterator, Optional


class PropertyListError(ValueError):
    """Raised when property list data cannot be decoded."""


class PropertyList(Mapping):
    """Read-only mapping over a decoded property list.

    Well-known bundle keys have typed accessors that treat empty strings as
    missing; anything else is reachable through normal mapping lookup.
    """

    def __init__(self, values: Dict[str, Any] | None = None) -> None:
        self._values: Dict[str, Any] = dict(values or {})

    @classmethod
    def from_bytes(cls, data: bytes, *, source: str = "<bytes>") -> "PropertyList":
        try:
            loaded = plistlib.loads(data)
        except (plistlib.InvalidFileException, ValueError, TypeError) as exc:
            raise PropertyListError(f"Unable to parse property list {source}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise PropertyListError(f"Property list {source} must contain a dictionary at the root")
        return cls(loaded)

    @classmethod
    def from_path(cls, path: Path) -> "PropertyList":
        return cls.from_bytes(Path(path).read_bytes(), source=str(path))

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"PropertyList({self._values!r})"

    @property
    def bundle_identifier(self) -> Optional[str]:
        return self._non_empty_string("CFBundleIdentifier")

    @property
    def bundle_name(self) -> Optional[str]:
        return self._non_empty_string("CFBundleName")

    @property
    def bundle_executable(self) -> Optional[str]:
        return self._non_empty_string("CFBundleExecutable")

    @property
    def bundle_version(self) -> Optional[str]:
        return self._non_empty_string("CFBundleVersion")

    @property
    def short_version(self) -> Optional[str]:
        return self._non_empty_string("CFBundleShortVersionString")

    @property
    def fair_usage(self) -> Dict[str, Any]:
        """The ``FairUsage`` dictionary; empty when absent or malformed."""
        value = self._values.get("FairUsage")
        return value if isinstance(value, dict) else {}

    def _non_empty_string(self, key: str) -> Optional[str]:
        value = self._values.get(key)
        if isinstance(value, str) and value:
            return value
        return None


__all__ = ["PropertyList", "PropertyListError"]
