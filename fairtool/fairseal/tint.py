"""Icon tint resolution from build settings or the accent colour asset."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from ..logging import get_logger

_LOGGER = get_logger("fairseal.tint")

_SYSTEM_COLORS: Dict[str, Tuple[str, str, str]] = {
    "systemBlueColor": ("0x00", "0x7A", "0xFF"),
    "systemBrownColor": ("0xA2", "0x84", "0x5E"),
    "systemCyanColor": ("0x32", "0xAD", "0xE6"),
    "systemGrayColor": ("0x8E", "0x8E", "0x93"),
    "systemGreenColor": ("0x34", "0xC7", "0x59"),
    "systemIndigoColor": ("0x58", "0x56", "0xD6"),
    "systemMintColor": ("0x00", "0xC7", "0xBE"),
    "systemOrangeColor": ("0xFF", "0x95", "0x00"),
    "systemPinkColor": ("0xFF", "0x2D", "0x55"),
    "systemPurpleColor": ("0xAF", "0x52", "0xDE"),
    "systemRedColor": ("0xFF", "0x3B", "0x30"),
    "systemTealColor": ("0x30", "0xB0", "0xC7"),
    "systemYellowColor": ("0xFF", "0xCC", "0x00"),
}


@dataclass(frozen=True)
class HexColor:
    r: int
    g: int
    b: int
    a: Optional[int] = None

    @classmethod
    def parse(cls, text: str) -> Optional["HexColor"]:
        """Parse ``RRGGBB`` or ``RRGGBBAA`` with an optional leading ``#``."""
        value = text.strip()
        if value.startswith("#"):
            value = value[1:]
        if len(value) not in (6, 8):
            return None
        try:
            channels = [int(value[index : index + 2], 16) for index in range(0, len(value), 2)]
        except ValueError:
            return None
        alpha = channels[3] if len(channels) == 4 else None
        return cls(channels[0], channels[1], channels[2], alpha)

    def color_string(self, *, hash_prefix: bool = False) -> str:
        prefix = "#" if hash_prefix else ""
        if self.a is not None:
            return f"{prefix}{self.r:02X}{self.g:02X}{self.b:02X}{self.a:02X}"
        return f"{prefix}{self.r:02X}{self.g:02X}{self.b:02X}"


def parse_build_settings(text: str) -> Dict[str, str]:
    """Parse ``KEY = VALUE`` lines of an xcconfig file, ignoring ``//`` comments."""
    settings: Dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.split("//", 1)[0].strip()
        if not line or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if key:
            settings[key] = value.strip()
    return settings


def accent_color_rgba(contents: Any) -> Optional[Tuple[float, float, float, float]]:
    """Return the first RGBA colour from an ``AccentColor.colorset/Contents.json`` payload."""
    if not isinstance(contents, dict):
        return None
    for entry in contents.get("colors") or ():
        color = entry.get("color") if isinstance(entry, dict) else None
        if not isinstance(color, dict):
            continue
        reference = color.get("reference")
        if reference in _SYSTEM_COLORS:
            return _rgba(*_SYSTEM_COLORS[reference])
        components = color.get("components")
        if isinstance(components, dict):
            return _rgba(
                str(components.get("red", "")),
                str(components.get("green", "")),
                str(components.get("blue", "")),
                str(components.get("alpha", "0xFF")),
            )
    return None


def resolve_tint(
    fair_properties: Path | None = None,
    accent_color: Path | None = None,
) -> Optional[str]:
    """Resolve the seal tint: ``ICON_TINT`` first, then the accent colour."""
    if fair_properties is not None and fair_properties.exists():
        settings = parse_build_settings(fair_properties.read_text(encoding="utf-8"))
        tint = settings.get("ICON_TINT")
        color = HexColor.parse(tint) if tint else None
        if color is not None:
            return color.color_string()

    if accent_color is not None and accent_color.exists():
        try:
            contents = json.loads(accent_color.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            _LOGGER.warning("Ignoring unreadable accent color %s: %s", accent_color, exc)
            return None
        rgba = accent_color_rgba(contents)
        if rgba is not None:
            red, green, blue, _ = rgba
            tint = f"{int(red * 255):02X}{int(green * 255):02X}{int(blue * 255):02X}"
            _LOGGER.debug("Parsed tint color %s: %s", rgba, tint)
            return tint

    return None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _coerce_component(text: str) -> Optional[float]:
    text = text.strip()
    try:
        if text.startswith("0x") and len(text) == 4:
            return int(text[2:], 16) / 255.0
        if "." in text:
            return float(text)
        return int(text) / 255.0
    except ValueError:
        return None


def _rgba(red: str, green: str, blue: str, alpha: str = "0xFF") -> Tuple[float, float, float, float]:
    def pick(value: Optional[float], default: float) -> float:
        return default if value is None else value

    return (
        pick(_coerce_component(red), 0.5),
        pick(_coerce_component(green), 0.5),
        pick(_coerce_component(blue), 0.5),
        pick(_coerce_component(alpha), 1.0),
    )


__all__ = ["HexColor", "accent_color_rgba", "parse_build_settings", "resolve_tint"]
