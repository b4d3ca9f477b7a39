"""Tests for property list access."""

from __future__ import annotations

import plistlib
from pathlib import Path

import pytest

from fairtool.plist import PropertyList, PropertyListError


def test_from_bytes_exposes_bundle_keys() -> None:
    data = plistlib.dumps(
        {
            "CFBundleIdentifier": "app.Demo",
            "CFBundleName": "",
            "CFBundleShortVersionString": "1.2.3",
            "FairUsage": {"com.apple.security.network.client": "Sync"},
        }
    )

    info = PropertyList.from_bytes(data)

    assert info.bundle_identifier == "app.Demo"
    assert info.bundle_name is None
    assert info.short_version == "1.2.3"
    assert info.bundle_version is None
    assert info.fair_usage == {"com.apple.security.network.client": "Sync"}
    assert info["CFBundleIdentifier"] == "app.Demo"
    assert len(info) == 4


def test_binary_plists_are_supported(tmp_path: Path) -> None:
    path = tmp_path / "Info.plist"
    path.write_bytes(plistlib.dumps({"CFBundleExecutable": "Demo"}, fmt=plistlib.FMT_BINARY))

    assert PropertyList.from_path(path).bundle_executable == "Demo"


def test_malformed_fair_usage_is_empty() -> None:
    assert PropertyList({"FairUsage": "nope"}).fair_usage == {}


def test_invalid_data_raises() -> None:
    with pytest.raises(PropertyListError):
        PropertyList.from_bytes(b"not a plist")


def test_non_dictionary_root_raises() -> None:
    with pytest.raises(PropertyListError, match="dictionary"):
        PropertyList.from_bytes(plistlib.dumps(["a", "b"]))
