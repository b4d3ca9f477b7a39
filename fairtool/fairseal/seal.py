"""The fairseal attestation record and its JSON form."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse

_SHA256_PATTERN = re.compile(r"^[0-9a-fA-F]{64}$")
_TINT_PATTERN = re.compile(r"^[0-9a-fA-F]{6}([0-9a-fA-F]{2})?$")


class FairsealError(RuntimeError):
    """Raised when a fairseal cannot be assembled."""


class FairsealFormatError(ValueError):
    """Raised when text is not a well-formed fairseal document."""


@dataclass(frozen=True)
class FairsealAsset:
    """A released file (artifact, screenshot, readme) and its content hash."""

    url: str
    sha256: str
    size: int

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "sha256": self.sha256, "size": self.size}


@dataclass(frozen=True)
class Fairseal:
    """Attestation that ``url`` is equivalent to a trusted build.

    ``url`` and ``sha256`` describe the distributed artifact; ``permissions``
    is the entitlement bitset and ``tint`` an optional RRGGBB[AA] colour.
    """

    url: str
    sha256: str
    permissions: int = 0
    core_size: Optional[int] = None
    tint: Optional[str] = None
    assets: Tuple[FairsealAsset, ...] = field(default=())

    def __post_init__(self) -> None:
        if not _SHA256_PATTERN.match(self.sha256):
            raise FairsealError(f"Invalid sha256 for {self.url}: {self.sha256!r}")
        if self.tint is not None and not _TINT_PATTERN.match(self.tint):
            raise FairsealError(f"Invalid tint color: {self.tint!r}")
        if self.permissions < 0:
            raise FairsealError("Permissions bitset must not be negative")

    @property
    def app_org(self) -> Optional[str]:
        """The owning organization: the first path component of ``url``."""
        parts = [part for part in urlparse(self.url).path.split("/") if part]
        return parts[0] if parts else None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "url": self.url,
            "sha256": self.sha256,
            "permissions": self.permissions,
        }
        if self.core_size is not None:
            payload["coreSize"] = self.core_size
        if self.tint is not None:
            payload["tint"] = self.tint
        if self.assets:
            payload["assets"] = [asset.to_dict() for asset in self.assets]
        return payload

    def to_json(self, *, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, indent=indent)

    @classmethod
    def from_dict(cls, data: Any) -> "Fairseal":
        if not isinstance(data, dict):
            raise FairsealFormatError("Fairseal must be a JSON object")
        url = data.get("url")
        sha256 = data.get("sha256")
        if not isinstance(url, str) or not url:
            raise FairsealFormatError("Fairseal is missing a url")
        if not isinstance(sha256, str):
            raise FairsealFormatError("Fairseal is missing a sha256")
        permissions = data.get("permissions", 0)
        core_size = data.get("coreSize")
        tint = data.get("tint")
        if not _is_int(permissions):
            raise FairsealFormatError("Fairseal permissions must be an integer")
        if core_size is not None and not _is_int(core_size):
            raise FairsealFormatError("Fairseal coreSize must be an integer")
        if tint is not None and not isinstance(tint, str):
            raise FairsealFormatError("Fairseal tint must be a string")
        assets = tuple(_parse_asset(item) for item in data.get("assets") or ())
        try:
            return cls(
                url=url,
                sha256=sha256.lower(),
                permissions=permissions,
                core_size=core_size,
                tint=tint,
                assets=assets,
            )
        except FairsealError as exc:
            raise FairsealFormatError(str(exc)) from exc

    @classmethod
    def from_json(cls, text: str) -> "Fairseal":
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, TypeError) as exc:
            raise FairsealFormatError(f"Fairseal is not valid JSON: {exc}") from exc
        return cls.from_dict(data)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_asset(item: Any) -> FairsealAsset:
    if not isinstance(item, dict):
        raise FairsealFormatError("Fairseal asset must be a JSON object")
    url, sha256, size = item.get("url"), item.get("sha256"), item.get("size")
    if not isinstance(url, str) or not isinstance(sha256, str) or not _is_int(size):
        raise FairsealFormatError("Fairseal asset requires url, sha256 and size")
    if not _SHA256_PATTERN.match(sha256):
        raise FairsealFormatError(f"Invalid sha256 for asset {url}")
    return FairsealAsset(url=url, sha256=sha256.lower(), size=size)


__all__ = ["Fairseal", "FairsealAsset", "FairsealError", "FairsealFormatError"]
