"""Catalog data models shared across fairtool components."""

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Dict, List, Optional

# Catalog documents published for desktop (zip) and mobile (ipa) artifacts.
CATALOG_URL = "https://www.appfair.net/fairapps.json"
CATALOG_URL_IOS = "https://www.appfair.net/fairapps-iOS.json"


def _isoformat(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class AppCatalogItem:
    """One application entry in the published catalog."""

    name: str
    bundle_identifier: str
    download_url: str
    version: Optional[str] = None
    version_date: Optional[datetime] = None
    subtitle: Optional[str] = None
    developer_name: Optional[str] = None
    localized_description: Optional[str] = None
    version_description: Optional[str] = None
    size: Optional[int] = None
    icon_url: Optional[str] = None
    screenshot_urls: List[str] = field(default_factory=list)
    tint_color: Optional[str] = None
    beta: Optional[bool] = None
    categories: List[str] = field(default_factory=list)
    download_count: Optional[int] = None
    star_count: Optional[int] = None
    watcher_count: Optional[int] = None
    issue_count: Optional[int] = None
    source_size: Optional[int] = None
    core_size: Optional[int] = None
    sha256: Optional[str] = None
    permissions: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "bundleIdentifier": self.bundle_identifier,
            "downloadURL": self.download_url,
            "version": self.version,
            "versionDate": _isoformat(self.version_date) if self.version_date else None,
            "subtitle": self.subtitle,
            "developerName": self.developer_name,
            "localizedDescription": self.localized_description,
            "versionDescription": self.version_description,
            "size": self.size,
            "iconURL": self.icon_url,
            "screenshotURLs": list(self.screenshot_urls),
            "tintColor": self.tint_color,
            "beta": self.beta,
            "categories": list(self.categories),
            "downloadCount": self.download_count,
            "starCount": self.star_count,
            "watcherCount": self.watcher_count,
            "issueCount": self.issue_count,
            "sourceSize": self.source_size,
            "coreSize": self.core_size,
            "sha256": self.sha256,
            "permissions": self.permissions,
        }
        return {key: value for key, value in payload.items() if value is not None}


@dataclass
class NewsPost:
    identifier: str
    title: str
    caption: str
    date: datetime
    app_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "identifier": self.identifier,
            "title": self.title,
            "caption": self.caption,
            "date": _isoformat(self.date),
        }
        if self.app_id is not None:
            payload["appID"] = self.app_id
        return payload


@dataclass
class FairAppCatalog:
    """The aggregated catalog document."""

    name: str
    identifier: str
    source_url: str
    apps: List[AppCatalogItem] = field(default_factory=list)
    news: Optional[List[NewsPost]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "identifier": self.identifier,
            "sourceURL": self.source_url,
            "apps": [app.to_dict() for app in self.apps],
        }
        if self.news is not None:
            payload["news"] = [post.to_dict() for post in self.news]
        return payload

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, indent=indent, ensure_ascii=False)


__all__ = ["CATALOG_URL", "CATALOG_URL_IOS", "AppCatalogItem", "FairAppCatalog", "NewsPost"]
