"""Assemble fairseal records from a passing archive comparison."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Iterable, List, Optional, Sequence
from urllib.parse import quote, unquote, urlparse

from ..archive.compare import ComparisonResult
from .entitlements import AppPermission, permissions_bitset
from .seal import Fairseal, FairsealAsset, FairsealError
from ..logging import get_logger

_LOGGER = get_logger("fairseal.builder")
_CHUNK_SIZE = 1024 * 1024


def sha256_file(path: Path) -> str:
    digest = hashlib.sha256()
    with Path(path).open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def sibling_url(artifact_url: str, file_name: str) -> str:
    """Return the URL of ``file_name`` in the same release folder as ``artifact_url``."""
    base, _, _ = artifact_url.rpartition("/")
    return f"{base}/{quote(file_name)}"


class FairsealBuilder:
    """Builds immutable fairseals for artifacts that passed comparison."""

    def stage_assets(
        self,
        artifact_url: str,
        untrusted_path: Path,
        staging_folders: Iterable[Path] = (),
    ) -> List[FairsealAsset]:
        """Hash the release assets in ``staging_folders``.

        The primary artifact is always hashed from the untrusted download,
        since that is the file actually distributed; it is listed first.
        """
        artifact_name = _last_component(artifact_url)
        primary = FairsealAsset(
            url=artifact_url,
            sha256=sha256_file(untrusted_path),
            size=Path(untrusted_path).stat().st_size,
        )
        _LOGGER.info("Hash for artifact %s: %s", artifact_name, primary.sha256)

        assets: List[FairsealAsset] = [primary]
        for folder in staging_folders:
            folder = Path(folder)
            if not folder.is_dir():
                _LOGGER.warning("Staging folder %s does not exist", folder)
                continue
            for local in sorted(folder.iterdir(), key=lambda item: item.name):
                if not local.is_file() or local.name == artifact_name:
                    continue
                assets.append(
                    FairsealAsset(
                        url=sibling_url(artifact_url, local.name),
                        sha256=sha256_file(local),
                        size=local.stat().st_size,
                    )
                )
        _LOGGER.debug("Staged %d assets for %s", len(assets), artifact_url)
        return assets

    def build(
        self,
        result: ComparisonResult,
        artifact_url: str,
        assets: Sequence[FairsealAsset],
        permissions: Sequence[AppPermission] = (),
        *,
        tint: Optional[str] = None,
    ) -> Fairseal:
        result.raise_for_status()
        if result.info_plist is None:
            raise FairsealError("Missing property list")

        primary = next((asset for asset in assets if asset.url == artifact_url), None)
        if primary is None:
            raise FairsealError(f"No staged asset matches the artifact URL {artifact_url}")

        seal = Fairseal(
            url=artifact_url,
            sha256=primary.sha256,
            permissions=permissions_bitset(permissions),
            core_size=result.core_size,
            tint=tint,
            assets=tuple(assets),
        )
        _LOGGER.info("Generated fairseal for %s (%d bytes)", artifact_url, len(seal.to_json()))
        return seal


def _last_component(url: str) -> str:
    return unquote(urlparse(url).path.rstrip("/").rpartition("/")[2])


__all__ = ["FairsealBuilder", "sha256_file", "sibling_url"]
