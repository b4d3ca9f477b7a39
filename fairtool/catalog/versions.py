"""Semantic release versions used for release tags."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

_VERSION_PATTERN = re.compile(r"^(0|[1-9][0-9]*)\.(0|[1-9][0-9]*)\.(0|[1-9][0-9]*)$")


@dataclass(frozen=True, order=True)
class AppVersion:
    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, text: str | None) -> Optional["AppVersion"]:
        """Return the version for ``X.Y.Z`` tags, or ``None`` when the tag is not one."""
        if not text:
            return None
        match = _VERSION_PATTERN.match(text.strip())
        if match is None:
            return None
        return cls(*(int(part) for part in match.groups()))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


__all__ = ["AppVersion"]
