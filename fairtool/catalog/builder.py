"""Assemble the app catalog from forks of the base repository."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .categories import categories_for_topics
from .versions import AppVersion
from ..config import ConfigError
from ..fairseal.seal import Fairseal, FairsealFormatError
from ..hub.client import HubClient
from ..hub.nodes import ForkRepository, IssueComment, Release
from ..hub.queries import CatalogQuery
from ..logging import get_logger
from ..models import CATALOG_URL, CATALOG_URL_IOS, AppCatalogItem, FairAppCatalog
from ..validation.rules import ORIGIN_ORG, RuleViolation, ValidationRules

_LOGGER = get_logger("catalog.builder")

MAX_APPS = 250_000


class CatalogBuilder:
    """Walks forks newest-pushed first and keeps one sealed release per fork."""

    def __init__(
        self,
        client: HubClient,
        rules: ValidationRules,
        fairseal_issuer: Optional[str],
        *,
        owner: str = ORIGIN_ORG,
        name: str = "App",
        catalog_name: Optional[str] = None,
        page_size: int = 100,
        max_batches: Optional[int] = None,
    ) -> None:
        if not fairseal_issuer:
            raise ConfigError("Missing fairseal issuer")
        self.client = client
        self.rules = rules
        self.fairseal_issuer = fairseal_issuer
        self.owner = owner
        self.name = name
        self.catalog_name = catalog_name or owner
        self.page_size = page_size
        self.max_batches = max_batches if max_batches is not None else MAX_APPS // 200

    def fetch_forks(self) -> List[ForkRepository]:
        query = CatalogQuery(owner=self.owner, name=self.name, count=self.page_size)
        batches = self.client.request_batches(query, max_batches=self.max_batches)
        forks: List[ForkRepository] = []
        for batch in batches:
            forks.extend(batch.get().forks)
        _LOGGER.debug("Fetched %d forks in %d batches", len(forks), len(batches))
        return forks

    def build(self, artifact_extensions: Sequence[str]) -> FairAppCatalog:
        apps: List[AppCatalogItem] = []
        for fork in self.fetch_forks():
            item = self.catalog_item(fork, artifact_extensions)
            if item is None:
                _LOGGER.warning("No fairseal found for %s", fork.name_with_owner)
                continue
            apps.append(item)

        # Sorted by bundle identifier so successive catalogs diff minimally.
        apps.sort(key=lambda app: app.bundle_identifier)
        desktop = any(extension.endswith("zip") for extension in artifact_extensions)
        return FairAppCatalog(
            name=self.catalog_name,
            identifier=self.catalog_name,
            source_url=CATALOG_URL if desktop else CATALOG_URL_IOS,
            apps=apps,
            news=None,
        )

    def catalog_item(self, fork: ForkRepository, artifact_extensions: Sequence[str]) -> Optional[AppCatalogItem]:
        """Return the entry for the newest eligible sealed release of ``fork``."""
        _LOGGER.debug("Checking app fork: %s", fork.name_with_owner)
        seals = self.seals_by_url(fork.comments)
        for release in fork.releases:
            version = AppVersion.parse(release.tag_name)
            if version is None:
                _LOGGER.debug("Invalid release tag for %s: %s", fork.name_with_owner, release.tag_name)
                continue
            developer = self._developer_info(fork, release)
            if developer is None:
                continue
            for extension in artifact_extensions:
                item = self._item_for_artifact(fork, release, version, developer, extension, seals)
                if item is not None:
                    return item
        return None

    def seals_by_url(self, comments: Sequence[IssueComment]) -> Dict[str, Fairseal]:
        """Parse seals posted by the issuer; free-form comments are skipped."""
        seals: Dict[str, Fairseal] = {}
        for comment in comments:
            if comment.author_login != self.fairseal_issuer:
                continue
            try:
                seal = Fairseal.from_json(comment.body_text)
            except FairsealFormatError as exc:
                _LOGGER.debug("Error parsing seal: %s", exc)
                continue
            seals[seal.url] = seal
        return seals

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _developer_info(self, fork: ForkRepository, release: Release) -> Optional[str]:
        label = fork.name_with_owner
        commit_email = release.author_email
        org_email = fork.owner.email
        if not commit_email:
            _LOGGER.debug("%s: no email for commit", label)
            return None
        try:
            self.rules.validate_email(commit_email)
        except RuleViolation as exc:
            _LOGGER.debug("%s: invalid committer email: %s", label, exc)
            return None
        if not org_email:
            _LOGGER.debug("%s: missing org email", label)
            return None
        try:
            self.rules.validate_email(org_email)
        except RuleViolation as exc:
            _LOGGER.debug("%s: invalid owner email: %s", label, exc)
            return None
        if org_email != commit_email:
            _LOGGER.debug("%s: org email must match commit email", label)
            return None
        try:
            self.rules.validate_name(fork.owner.login)
        except RuleViolation as exc:
            _LOGGER.debug("%s: invalid app name: %s", label, exc)
            return None

        if release.author_name:
            return f"{release.author_name} <{commit_email}>"
        return commit_email

    def _item_for_artifact(
        self,
        fork: ForkRepository,
        release: Release,
        version: AppVersion,
        developer: str,
        extension: str,
        seals: Dict[str, Fairseal],
    ) -> Optional[AppCatalogItem]:
        artifact = next((asset for asset in release.assets if asset.name.endswith(extension)), None)
        if artifact is None:
            return None
        seal = seals.get(artifact.download_url)
        _LOGGER.debug("Checking url %s fairseal: %s", artifact.download_url, "found" if seal else "none")
        if seal is None:
            return None

        login = fork.owner.login
        source_size = next((asset.size for asset in release.assets if asset.download_url.endswith(".tgz")), None)
        icon_url = next((asset.download_url for asset in release.assets if asset.name == f"{login}.png"), None)
        return AppCatalogItem(
            name=fork.owner.app_name_with_space,
            bundle_identifier=f"app.{login}",
            download_url=artifact.download_url,
            version=str(version),
            version_date=release.created_at,
            subtitle=fork.description or "",
            developer_name=developer,
            localized_description=fork.description or "",
            version_description=release.description,
            size=artifact.size,
            icon_url=icon_url,
            tint_color=seal.tint,
            beta=release.is_prerelease,
            categories=categories_for_topics(fork.topics),
            download_count=artifact.download_count,
            star_count=fork.star_count,
            watcher_count=fork.watcher_count,
            issue_count=fork.issue_count,
            source_size=source_size,
            core_size=seal.core_size,
            sha256=seal.sha256,
            permissions=seal.permissions,
        )


__all__ = ["MAX_APPS", "CatalogBuilder"]
