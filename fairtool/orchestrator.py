"""Pipeline orchestration for catalog, fairseal and verification flows."""

from __future__ import annotations

import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .archive import ArchiveComparator, ArchiveReader, ComparisonResult, TolerancePolicy
from .catalog import CatalogBuilder
from .config import ConfigError, FairtoolConfig, load_config
from .fairseal import (
    AppPermission,
    Fairseal,
    FairsealBuilder,
    FairsealError,
    FairsealPublisher,
    SignatureStripper,
    check_entitlements,
    resolve_tint,
)
from .hub.client import HubClient, HubConfig
from .hub.download import ArtifactDownloader
from .hub.queries import GetCommitQuery, RepositoryQuery
from .hub.retry import retrying
from .logging import get_logger
from .models import FairAppCatalog
from .plist import PropertyList
from .validation import RepositoryInvalidError, ValidationFailure, ValidationRules


@dataclass
class FairsealOutcome:
    """Result of a fairseal run."""

    seal: Fairseal
    comparison: ComparisonResult
    posted_url: Optional[str]


class Orchestrator:
    """Wires configuration to the hub client, rules, comparator and builders."""

    def __init__(
        self,
        config: FairtoolConfig | None = None,
        *,
        client_factory: Callable[[HubConfig], HubClient] | None = None,
        comparator: ArchiveComparator | None = None,
        downloader: ArtifactDownloader | None = None,
        seal_builder: FairsealBuilder | None = None,
    ) -> None:
        self.config = config or load_config(Path.cwd())
        self._client_factory = client_factory or (lambda hub_config: HubClient(hub_config))
        self._client: HubClient | None = None
        self.comparator = comparator or ArchiveComparator(strip_signature=SignatureStripper.for_platform())
        self.downloader = downloader or ArtifactDownloader(self.config.hub.to_hub_config().retry_policy)
        self.seal_builder = seal_builder or FairsealBuilder()
        self.logger = get_logger("orchestrator")

    @property
    def client(self) -> HubClient:
        if self._client is None:
            self._client = self._client_factory(self.config.hub.to_hub_config())
        return self._client

    @property
    def rules(self) -> ValidationRules:
        settings = self.config.validation
        return ValidationRules(
            allow_name=settings.allow_name,
            deny_name=settings.deny_name,
            allow_from=settings.allow_from,
            deny_from=settings.deny_from,
            allow_license=settings.allow_license,
        )

    def run_catalog(self, artifact_extensions: Sequence[str] | None = None) -> FairAppCatalog:
        """Build the catalog, retrying the whole pass within the retry budget."""
        settings = self.config.catalog
        extensions = list(artifact_extensions or settings.artifact_extensions)
        builder = CatalogBuilder(
            self.client,
            self.rules,
            self.config.hub.fairseal_issuer,
            owner=settings.owner,
            name=settings.name,
            catalog_name=settings.title or self.config.hub.org,
            page_size=settings.page_size,
            max_batches=settings.max_batches,
        )
        self.logger.info("Building catalog for %s/%s (%s)", settings.owner, settings.name, ", ".join(extensions))
        catalog = retrying(lambda: builder.build(extensions), self.config.hub.to_hub_config().retry_policy)
        self.logger.info("Catalog contains %d apps", len(catalog.apps))
        return catalog

    def compare_artifacts(self, trusted: Path, untrusted: Path, *, threshold: Optional[int] = None) -> ComparisonResult:
        """Compare two local archives; structural mismatches raise immediately."""
        if Path(trusted).resolve() == Path(untrusted).resolve():
            raise ConfigError("Trusted and untrusted artifacts may not be the same")
        if threshold is None:
            threshold = self.config.fairseal.threshold
        policy = TolerancePolicy(threshold=threshold)
        with ArchiveReader(trusted) as trusted_reader, ArchiveReader(untrusted) as untrusted_reader:
            result = self.comparator.compare(trusted_reader.entries(), untrusted_reader.entries(), policy)
        self.logger.info(
            "Compared %d entries for %s: %s",
            len(result.outcomes),
            result.app_name,
            "passed" if result.passed else f"{len(result.failures)} failures",
        )
        return result

    def run_fairseal(
        self,
        trusted: Path,
        artifact_url: str,
        *,
        untrusted: Path | None = None,
        publish: bool = True,
        pull_request_number: Optional[int] = None,
    ) -> FairsealOutcome:
        """Compare the trusted build with the published artifact and seal it.

        Downloaded artifacts live in a scratch directory removed once the seal
        has been built.
        """
        with tempfile.TemporaryDirectory(prefix="fairtool-") as workdir:
            untrusted_path = untrusted or self.downloader.fetch(artifact_url, Path(workdir))
            result = self.compare_artifacts(trusted, untrusted_path).raise_for_status()
            permissions = self._check_entitlements(result)

            settings = self.config.fairseal
            assets = self.seal_builder.stage_assets(artifact_url, untrusted_path, settings.staging_folders)
            tint = resolve_tint(settings.fair_properties, settings.accent_color)
            seal = self.seal_builder.build(result, artifact_url, assets, permissions, tint=tint)

        posted_url = None
        if publish:
            publisher = FairsealPublisher(self.client, owner=self.config.catalog.owner, name=self.config.catalog.name)
            posted_url = publisher.post(seal, pull_request_number=pull_request_number)
            if posted_url is None:
                self.logger.warning("Unable to post fairseal for %s", artifact_url)
        return FairsealOutcome(seal=seal, comparison=result, posted_url=posted_url)

    def verify_repository(self, org: str, repo: str = "App") -> ValidationFailure:
        """Check an organization's repository against the fair-ground invariants."""
        info = self.client.request(RepositoryQuery(owner=org, name=repo)).get()
        failures = self.rules.validate_organization(info)
        if failures:
            raise RepositoryInvalidError(failures, org, repo)
        self.logger.info("Repository %s/%s is valid", org, repo)
        return failures

    def authorize_commit(self, org: str, ref: str, repo: str = "App") -> str:
        commit = self.client.request(GetCommitQuery(owner=org, name=repo, ref=ref)).get()
        author = self.rules.authorize_commit(commit)
        self.logger.info("Validated commit author: %s", author)
        return author

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_entitlements(self, result: ComparisonResult) -> List[AppPermission]:
        settings = self.config.fairseal
        if result.info_plist is None:
            raise FairsealError("Missing property list")
        if settings.entitlements is None:
            raise ConfigError("Missing entitlements file: set fairseal.entitlements in .fairtool.yml")
        if not settings.entitlements.is_file():
            raise ConfigError(f"Entitlements file not found: {settings.entitlements}")
        entitlements = PropertyList.from_path(settings.entitlements)
        permissions = check_entitlements(entitlements, result.info_plist, require_sandbox=settings.require_sandbox)
        for permission in permissions:
            self.logger.info("Entitlement: %s usage: %s", permission.entitlement.key, permission.usage)
        return permissions


__all__ = ["FairsealOutcome", "Orchestrator"]
