"""Tests for the FastAPI service mode."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from fairtool import __version__
from fairtool.archive import ArchiveOpenError, ComparisonResult, CountMismatch, EntryOutcome, InvalidPropertyList
from fairtool.models import CATALOG_URL, AppCatalogItem, FairAppCatalog
from fairtool.service import create_app
from fairtool.validation import RepositoryInvalidError, ValidationFailure


class _StubOrchestrator:
    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []

    def run_catalog(self, artifact_extensions=None) -> FairAppCatalog:
        self.calls.append(("catalog", artifact_extensions))
        return FairAppCatalog(
            name="appfair",
            identifier="appfair",
            source_url=CATALOG_URL,
            apps=[AppCatalogItem(name="fork a", bundle_identifier="app.fork-a", download_url="https://x")],
        )

    def compare_artifacts(self, trusted: Path, untrusted: Path, *, threshold=None) -> ComparisonResult:
        self.calls.append(("compare", (trusted, untrusted, threshold)))
        if trusted.name == "missing.zip":
            raise ArchiveOpenError(trusted, "No such file")
        if trusted.name == "short.zip":
            raise CountMismatch(3, 4)
        if trusted.name == "broken.zip":
            raise InvalidPropertyList("Demo.app/Contents/Info.plist", "Invalid file")
        return ComparisonResult(
            app_name="Demo",
            core_size=10,
            outcomes=[EntryOutcome("Demo.app/Contents/MacOS/Demo", "tolerated", 2)],
        )

    def verify_repository(self, org: str, repo: str = "App") -> ValidationFailure:
        self.calls.append(("verify", (org, repo)))
        if org == "Bad-Org":
            raise RepositoryInvalidError(ValidationFailure.IS_ARCHIVED, org, repo)
        return ValidationFailure.NONE


@pytest.fixture
def orchestrator() -> _StubOrchestrator:
    return _StubOrchestrator()


@pytest.fixture
def client(orchestrator: _StubOrchestrator) -> TestClient:
    return TestClient(create_app(lambda: orchestrator))


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": __version__}


def test_catalog_endpoint(client: TestClient, orchestrator: _StubOrchestrator) -> None:
    response = client.post("/catalog", json={"artifact_extensions": ["macOS.zip"]})

    assert response.status_code == 200
    assert response.json()["apps"][0]["bundleIdentifier"] == "app.fork-a"
    assert orchestrator.calls == [("catalog", ["macOS.zip"])]


def test_compare_endpoint(client: TestClient, orchestrator: _StubOrchestrator) -> None:
    response = client.post("/compare", json={"trusted": "a.zip", "untrusted": "b.zip", "threshold": 8})

    assert response.status_code == 200
    payload = response.json()
    assert payload["passed"] is True
    assert payload["entries"] == [{"path": "Demo.app/Contents/MacOS/Demo", "status": "tolerated", "total_changes": 2}]
    assert orchestrator.calls == [("compare", (Path("a.zip"), Path("b.zip"), 8))]


def test_compare_maps_missing_archive_to_404(client: TestClient) -> None:
    response = client.post("/compare", json={"trusted": "missing.zip", "untrusted": "b.zip"})

    assert response.status_code == 404


def test_compare_maps_structural_mismatch_to_422(client: TestClient) -> None:
    response = client.post("/compare", json={"trusted": "short.zip", "untrusted": "b.zip"})

    assert response.status_code == 422
    assert "(3 vs. 4)" in response.json()["detail"]


def test_compare_maps_unreadable_info_plist_to_422(client: TestClient) -> None:
    response = client.post("/compare", json={"trusted": "broken.zip", "untrusted": "b.zip"})

    assert response.status_code == 422
    assert "Unreadable property list" in response.json()["detail"]


def test_verify_endpoint(client: TestClient) -> None:
    assert client.post("/verify", json={"org": "Good-Org"}).json() == {
        "status": "ok",
        "org": "Good-Org",
        "repo": "App",
    }

    response = client.post("/verify", json={"org": "Bad-Org"})
    assert response.status_code == 400
    assert "must not be archived" in response.json()["detail"]
