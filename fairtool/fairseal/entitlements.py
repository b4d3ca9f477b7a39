"""Sandbox entitlement checks and the permissions bitset."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping

from ..plist import PropertyList

SANDBOX_KEY = "com.apple.security.app-sandbox"


class EntitlementError(RuntimeError):
    """Raised when declared entitlements are not acceptable for a fair app."""


class SandboxRequired(EntitlementError):
    def __init__(self) -> None:
        super().__init__(
            f'The Sandbox.entitlements must activate sandboxing with the "{SANDBOX_KEY}" property'
        )


class ForbiddenEntitlement(EntitlementError):
    def __init__(self, key: str) -> None:
        super().__init__(f'The entitlement "{key}" is not permitted.')
        self.key = key


class MissingUsageDescription(EntitlementError):
    def __init__(self, entitlement: "AppEntitlement") -> None:
        super().__init__(
            f'The entitlement "{entitlement.key}" requires a corresponding usage description '
            "property in the Info.plist FairUsage dictionary"
        )
        self.entitlement = entitlement


class Usage(enum.Enum):
    REQUIRED = "required"
    NOT_REQUIRED = "not-required"
    FORBIDDEN = "forbidden"


class AppEntitlement(enum.Enum):
    """Known sandbox entitlements; declaration order fixes the bit position."""

    def __new__(cls, key: str, usage: Usage) -> "AppEntitlement":
        member = object.__new__(cls)
        member._value_ = key
        member.bit = len(cls.__members__)
        member.usage = usage
        return member

    @property
    def key(self) -> str:
        return self.value

    APP_SANDBOX = (SANDBOX_KEY, Usage.NOT_REQUIRED)
    NETWORK_CLIENT = ("com.apple.security.network.client", Usage.REQUIRED)
    NETWORK_SERVER = ("com.apple.security.network.server", Usage.REQUIRED)
    DEVICE_CAMERA = ("com.apple.security.device.camera", Usage.REQUIRED)
    DEVICE_MICROPHONE = ("com.apple.security.device.microphone", Usage.REQUIRED)
    DEVICE_USB = ("com.apple.security.device.usb", Usage.REQUIRED)
    PRINT = ("com.apple.security.print", Usage.REQUIRED)
    DEVICE_BLUETOOTH = ("com.apple.security.device.bluetooth", Usage.REQUIRED)
    DEVICE_AUDIO_VIDEO_BRIDGING = ("com.apple.security.device.audio-video-bridging", Usage.REQUIRED)
    DEVICE_FIREWIRE = ("com.apple.security.device.firewire", Usage.REQUIRED)
    DEVICE_SERIAL = ("com.apple.security.device.serial", Usage.REQUIRED)
    DEVICE_AUDIO_INPUT = ("com.apple.security.device.audio-input", Usage.REQUIRED)
    PERSONAL_INFORMATION_ADDRESSBOOK = ("com.apple.security.personal-information.addressbook", Usage.REQUIRED)
    PERSONAL_INFORMATION_LOCATION = ("com.apple.security.personal-information.location", Usage.REQUIRED)
    PERSONAL_INFORMATION_CALENDARS = ("com.apple.security.personal-information.calendars", Usage.REQUIRED)
    FILES_USER_SELECTED_READ_ONLY = ("com.apple.security.files.user-selected.read-only", Usage.REQUIRED)
    FILES_USER_SELECTED_READ_WRITE = ("com.apple.security.files.user-selected.read-write", Usage.REQUIRED)
    FILES_USER_SELECTED_EXECUTABLE = ("com.apple.security.files.user-selected.executable", Usage.REQUIRED)
    FILES_DOWNLOADS_READ_ONLY = ("com.apple.security.files.downloads.read-only", Usage.REQUIRED)
    FILES_DOWNLOADS_READ_WRITE = ("com.apple.security.files.downloads.read-write", Usage.REQUIRED)
    ASSETS_PICTURES_READ_ONLY = ("com.apple.security.assets.pictures.read-only", Usage.REQUIRED)
    ASSETS_PICTURES_READ_WRITE = ("com.apple.security.assets.pictures.read-write", Usage.REQUIRED)
    ASSETS_MUSIC_READ_ONLY = ("com.apple.security.assets.music.read-only", Usage.REQUIRED)
    ASSETS_MUSIC_READ_WRITE = ("com.apple.security.assets.music.read-write", Usage.REQUIRED)
    ASSETS_MOVIES_READ_ONLY = ("com.apple.security.assets.movies.read-only", Usage.REQUIRED)
    ASSETS_MOVIES_READ_WRITE = ("com.apple.security.assets.movies.read-write", Usage.REQUIRED)
    FILES_ALL = ("com.apple.security.files.all", Usage.FORBIDDEN)
    CS_ALLOW_JIT = ("com.apple.security.cs.allow-jit", Usage.NOT_REQUIRED)
    CS_DEBUGGER = ("com.apple.security.cs.debugger", Usage.FORBIDDEN)
    CS_DISABLE_LIBRARY_VALIDATION = ("com.apple.security.cs.disable-library-validation", Usage.REQUIRED)
    APPLICATION_GROUPS = ("com.apple.security.application-groups", Usage.NOT_REQUIRED)
    TEMPORARY_EXCEPTION_ABSOLUTE_PATH = (
        "com.apple.security.temporary-exception.files.absolute-path.read-only",
        Usage.FORBIDDEN,
    )
    TEMPORARY_EXCEPTION_HOME_RELATIVE_PATH = (
        "com.apple.security.temporary-exception.files.home-relative-path.read-only",
        Usage.FORBIDDEN,
    )


@dataclass(frozen=True)
class AppPermission:
    entitlement: AppEntitlement
    usage: str


def check_entitlements(
    entitlements: Mapping[str, Any],
    info: PropertyList,
    *,
    require_sandbox: bool = True,
) -> List[AppPermission]:
    """Match declared entitlements against the Info.plist ``FairUsage`` entries.

    False-valued entitlements are treated as unset. Forbidden entitlements
    raise :class:`ForbiddenEntitlement`; entitlements that need a justification
    raise :class:`MissingUsageDescription` unless ``FairUsage`` carries a
    non-blank string under the entitlement key.
    """
    if entitlements.get(SANDBOX_KEY) is not True and require_sandbox:
        raise SandboxRequired()

    usage_map = info.fair_usage
    permissions: List[AppPermission] = []
    for entitlement in AppEntitlement:
        value = entitlements.get(entitlement.key)
        if value is None or value is False:
            continue
        if entitlement.usage is Usage.FORBIDDEN:
            raise ForbiddenEntitlement(entitlement.key)
        if entitlement.usage is Usage.NOT_REQUIRED:
            continue
        usage = usage_map.get(entitlement.key)
        if not isinstance(usage, str) or not usage.strip():
            raise MissingUsageDescription(entitlement)
        permissions.append(AppPermission(entitlement=entitlement, usage=usage))
    return permissions


def permissions_bitset(permissions: Iterable[AppPermission]) -> int:
    bits = 0
    for permission in permissions:
        bits |= 1 << permission.entitlement.bit
    return bits


__all__ = [
    "SANDBOX_KEY",
    "AppEntitlement",
    "AppPermission",
    "EntitlementError",
    "ForbiddenEntitlement",
    "MissingUsageDescription",
    "SandboxRequired",
    "Usage",
    "check_entitlements",
    "permissions_bitset",
]
