"""Configuration loading for fairtool (.fairtool.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import urlparse

import yaml

from .hub.client import DEFAULT_ENDPOINT, HubConfig

CONFIG_FILE_NAME = ".fairtool.yml"
TOKEN_ENV_KEYS = ("GH_TOKEN", "GITHUB_TOKEN")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or is invalid."""


@dataclass
class HubSettings:
    """Hub connection settings."""

    host_org: str = "github.com/appfair"
    token: Optional[str] = None
    endpoint: str = DEFAULT_ENDPOINT
    fairseal_issuer: Optional[str] = None
    timeout: float = 60.0
    retry_duration: float = 0.0
    retry_wait: float = 30.0
    request_limit: Optional[int] = None

    @property
    def org(self) -> str:
        return parse_host_org(self.host_org)[1]

    def to_hub_config(self) -> HubConfig:
        return HubConfig(
            endpoint=self.endpoint,
            token=self.token,
            timeout=self.timeout,
            retry_duration=self.retry_duration,
            retry_wait=self.retry_wait,
            request_limit=self.request_limit,
        )


@dataclass
class ValidationSettings:
    """Allow/deny patterns for app names, e-mail addresses and licenses."""

    allow_name: List[str] = field(default_factory=list)
    deny_name: List[str] = field(default_factory=list)
    allow_from: List[str] = field(default_factory=list)
    deny_from: List[str] = field(default_factory=list)
    allow_license: List[str] = field(default_factory=list)


@dataclass
class CatalogSettings:
    owner: str = "appfair"
    name: str = "App"
    artifact_extensions: List[str] = field(default_factory=lambda: ["macOS.zip"])
    title: Optional[str] = None
    page_size: int = 100
    max_batches: Optional[int] = None


@dataclass
class FairsealSettings:
    """Settings for comparing archives and sealing artifacts."""

    threshold: Optional[int] = None
    staging_folders: List[Path] = field(default_factory=list)
    entitlements: Optional[Path] = None
    fair_properties: Optional[Path] = None
    accent_color: Optional[Path] = None
    require_sandbox: bool = True


@dataclass
class FairtoolConfig:
    """Represents the high-level settings defined in .fairtool.yml."""

    root: Path
    hub: HubSettings = field(default_factory=HubSettings)
    validation: ValidationSettings = field(default_factory=ValidationSettings)
    catalog: CatalogSettings = field(default_factory=CatalogSettings)
    fairseal: FairsealSettings = field(default_factory=FairsealSettings)


def load_config(config_path: Path, *, environ: Mapping[str, str] | None = None) -> FairtoolConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    environ = os.environ if environ is None else environ
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILE_NAME} must contain a mapping at the root")

    hub_data = _as_dict(data.get("hub"))
    hub = HubSettings()
    hub.host_org = _as_str(hub_data.get("host_org")) or hub.host_org
    hub.endpoint = _as_str(hub_data.get("endpoint")) or hub.endpoint
    hub.token = _as_str(hub_data.get("token")) or _env_token(environ)
    hub.fairseal_issuer = _as_str(hub_data.get("fairseal_issuer"))
    hub.timeout = _as_float(hub_data.get("timeout")) or hub.timeout
    hub.retry_duration = _as_float(hub_data.get("retry_duration")) or hub.retry_duration
    retry_wait = _as_float(hub_data.get("retry_wait"))
    hub.retry_wait = hub.retry_wait if retry_wait is None else retry_wait
    hub.request_limit = _as_int(hub_data.get("request_limit"))

    validation_data = _as_dict(data.get("validation"))
    validation = ValidationSettings(
        allow_name=_as_str_list(validation_data.get("allow_name")),
        deny_name=_as_str_list(validation_data.get("deny_name")),
        allow_from=_as_str_list(validation_data.get("allow_from")),
        deny_from=_as_str_list(validation_data.get("deny_from")),
        allow_license=_as_str_list(validation_data.get("allow_license")),
    )

    catalog_data = _as_dict(data.get("catalog"))
    catalog = CatalogSettings()
    if catalog_data:
        catalog.owner = _as_str(catalog_data.get("owner")) or catalog.owner
        catalog.name = _as_str(catalog_data.get("name")) or catalog.name
        catalog.artifact_extensions = (
            _as_str_list(catalog_data.get("artifact_extensions")) or catalog.artifact_extensions
        )
        catalog.title = _as_str(catalog_data.get("title"))
        catalog.page_size = _as_int(catalog_data.get("page_size")) or catalog.page_size
        catalog.max_batches = _as_int(catalog_data.get("max_batches"))

    fairseal_data = _as_dict(data.get("fairseal"))
    fairseal = FairsealSettings()
    if fairseal_data:
        fairseal.threshold = _as_int(fairseal_data.get("threshold"))
        fairseal.staging_folders = [root / item for item in _as_str_list(fairseal_data.get("staging_folders"))]
        fairseal.entitlements = _as_path(root, fairseal_data.get("entitlements"))
        fairseal.fair_properties = _as_path(root, fairseal_data.get("fair_properties"))
        fairseal.accent_color = _as_path(root, fairseal_data.get("accent_color"))
        require_sandbox = _as_bool(fairseal_data.get("require_sandbox"))
        fairseal.require_sandbox = True if require_sandbox is None else require_sandbox

    config = FairtoolConfig(root=root, hub=hub, validation=validation, catalog=catalog, fairseal=fairseal)
    validate_hub_settings(config.hub)
    return config


def parse_host_org(host_org: str) -> tuple[str, str]:
    """Split ``github.com/appfair`` into its API base URL and organization.

    The API base must be a top-level https URL and the organization must not
    be empty.
    """
    parsed = urlparse("https://api." + host_org.strip().strip("/"))
    if not parsed.netloc or parsed.netloc == "api.":
        raise ConfigError(f"Invalid fairground host/org: {host_org}")
    parts = [part for part in parsed.path.split("/") if part]
    if not parts:
        raise ConfigError(f'Missing organization name in URL: "{parsed.geturl()}"')
    if len(parts) > 1:
        raise ConfigError(f'Not a top-level URL: "{parsed.geturl()}"')
    if parsed.scheme != "https":  # pragma: no cover - scheme is fixed above
        raise ConfigError(f'Bad URL scheme: "{parsed.geturl()}"')
    return f"{parsed.scheme}://{parsed.netloc}/", parts[0]


def validate_hub_settings(settings: HubSettings) -> None:
    parse_host_org(settings.host_org)
    if settings.token is not None and not settings.token.strip():
        raise ConfigError("No authorization token specified")
    if settings.retry_wait < 0 or settings.retry_duration < 0:
        raise ConfigError("Retry duration and wait must not be negative")
    if settings.request_limit is not None and settings.request_limit <= 0:
        raise ConfigError("request_limit must be a positive integer")


def _env_token(environ: Mapping[str, str]) -> Optional[str]:
    for key in TOKEN_ENV_KEYS:
        value = environ.get(key)
        if value:
            return value
    return None


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILE_NAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


def _as_path(root: Path, value: Any) -> Optional[Path]:
    text = _as_str(value)
    if not text:
        return None
    path = Path(text).expanduser()
    return path if path.is_absolute() else root / path


__all__ = [
    "CONFIG_FILE_NAME",
    "CatalogSettings",
    "ConfigError",
    "FairsealSettings",
    "FairtoolConfig",
    "HubSettings",
    "ValidationSettings",
    "load_config",
    "parse_host_org",
    "validate_hub_settings",
]
