"""Tests for orchestrated catalog, fairseal and verification flows."""

from __future__ import annotations

import hashlib
import plistlib
from pathlib import Path

import pytest

from fairtool.archive import ArchiveComparator
from fairtool.config import ConfigError, FairtoolConfig
from fairtool.fairseal.entitlements import MissingUsageDescription, SandboxRequired
from fairtool.hub import HubClient
from fairtool.hub.download import ArtifactDownloader
from fairtool.orchestrator import Orchestrator
from fairtool.validation import RepositoryInvalidError, ValidationFailure
from tests._fixtures.archive_builder import EXECUTABLE, ArchiveBuilder, info_plist, mac_app
from tests._fixtures.hub_payloads import (
    ISSUER,
    artifact_url,
    catalog_page,
    comment_posted,
    fork_node,
    organization_payload,
    pull_request,
    pull_request_page,
    seal_comment,
)
from tests._fixtures.hub_stub import ScriptedTransport, json_response

NETWORK = "com.apple.security.network.client"
SANDBOX = "com.apple.security.app-sandbox"


def _entitlements(tmp_path: Path, values: dict) -> Path:
    path = tmp_path / "Sandbox.entitlements"
    path.write_bytes(plistlib.dumps(values))
    return path


def _orchestrator(tmp_path: Path, *payloads, **options) -> tuple[Orchestrator, ScriptedTransport]:
    config = FairtoolConfig(root=tmp_path)
    config.fairseal.entitlements = _entitlements(tmp_path, {SANDBOX: True})
    config.hub.token = "t"
    config.hub.fairseal_issuer = ISSUER
    transport = ScriptedTransport([json_response(payload) for payload in payloads])
    options.setdefault("comparator", ArchiveComparator())
    orchestrator = Orchestrator(
        config,
        client_factory=lambda hub_config: HubClient(hub_config, transport=transport),
        **options,
    )
    return orchestrator, transport


class _RecordingDownloader(ArtifactDownloader):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.paths: list[Path] = []

    def fetch(self, url: str, destination: Path, **kwargs) -> Path:
        path = super().fetch(url, destination, **kwargs)
        self.paths.append(path)
        return path


def _app_with_usage(**usage: str):
    files = mac_app()
    files["Demo.app/Contents/Info.plist"] = info_plist("Demo", FairUsage=dict(usage))
    return files


def test_run_catalog_builds_from_forks(tmp_path: Path) -> None:
    url = artifact_url("fork-a")
    page = catalog_page([fork_node("fork-a", comments=[seal_comment(url)]), fork_node("fork-b")])
    orchestrator, transport = _orchestrator(tmp_path, page)

    catalog = orchestrator.run_catalog()

    assert [app.bundle_identifier for app in catalog.apps] == ["app.fork-a"]
    assert catalog.name == "appfair"
    assert len(transport.requests) == 1


def test_compare_rejects_identical_paths(tmp_path: Path, archive_builder: ArchiveBuilder) -> None:
    path = archive_builder.write("same.zip", mac_app())
    orchestrator, _ = _orchestrator(tmp_path)

    with pytest.raises(ConfigError):
        orchestrator.compare_artifacts(path, path)


def test_compare_uses_configured_threshold(tmp_path: Path, archive_builder: ArchiveBuilder) -> None:
    trusted = archive_builder.write("trusted.zip", mac_app())
    patched = EXECUTABLE[:20] + b"\x00" + EXECUTABLE[21:]
    untrusted = archive_builder.write("untrusted.zip", mac_app(executable=patched))
    orchestrator, _ = _orchestrator(tmp_path)

    assert orchestrator.compare_artifacts(trusted, untrusted).passed is False

    orchestrator.config.fairseal.threshold = 16
    assert orchestrator.compare_artifacts(trusted, untrusted).passed is True


def test_run_fairseal_posts_to_pull_request(tmp_path: Path, archive_builder: ArchiveBuilder) -> None:
    trusted = archive_builder.write("trusted.zip", mac_app())
    untrusted = archive_builder.write("untrusted.zip", mac_app())
    url = artifact_url("Fork-A")
    comment_url = "https://github.com/appfair/App/pull/3#issuecomment-1"
    orchestrator, transport = _orchestrator(
        tmp_path,
        pull_request_page([pull_request("Fork-A", number=3)]),
        comment_posted(comment_url),
    )

    outcome = orchestrator.run_fairseal(trusted, url, untrusted=untrusted)

    assert outcome.posted_url == comment_url
    assert outcome.seal.sha256 == hashlib.sha256(untrusted.read_bytes()).hexdigest()
    assert outcome.seal.core_size == len(EXECUTABLE)
    assert outcome.comparison.passed is True
    assert len(transport.requests) == 2


def test_run_fairseal_without_pull_request(tmp_path: Path, archive_builder: ArchiveBuilder) -> None:
    trusted = archive_builder.write("trusted.zip", mac_app())
    untrusted = archive_builder.write("untrusted.zip", mac_app())
    orchestrator, _ = _orchestrator(tmp_path, pull_request_page([]))

    outcome = orchestrator.run_fairseal(trusted, artifact_url("Fork-A"), untrusted=untrusted)

    assert outcome.posted_url is None


def test_run_fairseal_downloads_artifact(tmp_path: Path, archive_builder: ArchiveBuilder) -> None:
    trusted = archive_builder.write("trusted.zip", mac_app())
    released = archive_builder.write("released.zip", mac_app()).read_bytes()
    downloader = _RecordingDownloader(fetcher=lambda url, timeout: (200, released))
    orchestrator, _ = _orchestrator(tmp_path, downloader=downloader)

    outcome = orchestrator.run_fairseal(trusted, artifact_url("Fork-A"), publish=False)

    assert outcome.seal.sha256 == hashlib.sha256(released).hexdigest()
    assert outcome.posted_url is None
    [downloaded] = downloader.paths
    assert downloaded.name == "Fork-A-macOS.zip"
    assert not downloaded.parent.exists()


def test_run_fairseal_requires_entitlements_file(tmp_path: Path, archive_builder: ArchiveBuilder) -> None:
    trusted = archive_builder.write("trusted.zip", mac_app())
    untrusted = archive_builder.write("untrusted.zip", mac_app())
    orchestrator, _ = _orchestrator(tmp_path)
    orchestrator.config.fairseal.entitlements = None

    with pytest.raises(ConfigError, match="Missing entitlements file"):
        orchestrator.run_fairseal(trusted, artifact_url("Fork-A"), untrusted=untrusted, publish=False)

    orchestrator.config.fairseal.entitlements = tmp_path / "absent.entitlements"
    with pytest.raises(ConfigError, match="not found"):
        orchestrator.run_fairseal(trusted, artifact_url("Fork-A"), untrusted=untrusted, publish=False)


def test_run_fairseal_requires_sandbox(tmp_path: Path, archive_builder: ArchiveBuilder) -> None:
    trusted = archive_builder.write("trusted.zip", mac_app())
    untrusted = archive_builder.write("untrusted.zip", mac_app())
    orchestrator, _ = _orchestrator(tmp_path)
    _entitlements(tmp_path, {SANDBOX: False})

    with pytest.raises(SandboxRequired):
        orchestrator.run_fairseal(trusted, artifact_url("Fork-A"), untrusted=untrusted, publish=False)


def test_run_fairseal_posts_to_numbered_pull_request(tmp_path: Path, archive_builder: ArchiveBuilder) -> None:
    trusted = archive_builder.write("trusted.zip", mac_app())
    untrusted = archive_builder.write("untrusted.zip", mac_app())
    comment_url = "https://github.com/appfair/App/pull/9#issuecomment-2"
    orchestrator, transport = _orchestrator(
        tmp_path,
        {"data": {"repository": {"pullRequest": {"id": "PR_9", "number": 9}}}},
        comment_posted(comment_url),
    )

    outcome = orchestrator.run_fairseal(trusted, artifact_url("Fork-A"), untrusted=untrusted, pull_request_number=9)

    assert outcome.posted_url == comment_url
    assert "pullRequest(number: 9)" in transport.queries[0]


def test_run_fairseal_checks_entitlements(tmp_path: Path, archive_builder: ArchiveBuilder) -> None:
    orchestrator, _ = _orchestrator(tmp_path)
    _entitlements(tmp_path, {SANDBOX: True, NETWORK: True})

    files = _app_with_usage(**{NETWORK: "Syncs feeds"})
    trusted = archive_builder.write("trusted.zip", files)
    untrusted = archive_builder.write("untrusted.zip", files)
    outcome = orchestrator.run_fairseal(trusted, artifact_url("Fork-A"), untrusted=untrusted, publish=False)
    assert outcome.seal.permissions == 1 << 1

    bare_trusted = archive_builder.write("bare-trusted.zip", mac_app())
    bare_untrusted = archive_builder.write("bare-untrusted.zip", mac_app())
    with pytest.raises(MissingUsageDescription):
        orchestrator.run_fairseal(bare_trusted, artifact_url("Fork-A"), untrusted=bare_untrusted, publish=False)


def test_run_fairseal_applies_tint(tmp_path: Path, archive_builder: ArchiveBuilder) -> None:
    settings = tmp_path / "appfair.xcconfig"
    settings.write_text("ICON_TINT = #336699\n", encoding="utf-8")
    orchestrator, _ = _orchestrator(tmp_path)
    orchestrator.config.fairseal.fair_properties = settings
    trusted = archive_builder.write("trusted.zip", mac_app())
    untrusted = archive_builder.write("untrusted.zip", mac_app())

    outcome = orchestrator.run_fairseal(trusted, artifact_url("Fork-A"), untrusted=untrusted, publish=False)

    assert outcome.seal.tint == "336699"


def test_verify_repository(tmp_path: Path) -> None:
    orchestrator, _ = _orchestrator(
        tmp_path,
        organization_payload("Fork-A"),
        organization_payload("Fork-A", isPrivate=True, hasIssuesEnabled=False),
    )

    assert orchestrator.verify_repository("Fork-A") == ValidationFailure.NONE
    with pytest.raises(RepositoryInvalidError) as excinfo:
        orchestrator.verify_repository("Fork-A")

    assert ValidationFailure.IS_PRIVATE in excinfo.value.failures
    assert ValidationFailure.NO_ISSUES in excinfo.value.failures


def test_authorize_commit(tmp_path: Path) -> None:
    commit = {
        "data": {
            "repository": {
                "object": {
                    "oid": "abc",
                    "author": {"name": "Dev", "email": "dev@fork-a.example"},
                    "signature": {"email": "dev@fork-a.example", "isValid": True, "state": "VALID"},
                }
            }
        }
    }
    orchestrator, transport = _orchestrator(tmp_path, commit)

    assert orchestrator.authorize_commit("Fork-A", "abc") == "Dev <dev@fork-a.example>"
    assert 'object(oid: "abc")' in transport.queries[0]
