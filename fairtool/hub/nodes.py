"""Typed views over decoded GraphQL response payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional


def _get(data: Any, *keys: str) -> Any:
    current = data
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _nodes(connection: Any) -> List[Dict[str, Any]]:
    """Return the elements of a ``nodes`` or ``edges { node }`` connection."""
    if not isinstance(connection, Mapping):
        return []
    nodes = connection.get("nodes")
    if isinstance(nodes, list):
        return [node for node in nodes if isinstance(node, Mapping)]
    edges = connection.get("edges")
    if isinstance(edges, list):
        return [edge["node"] for edge in edges if isinstance(edge, Mapping) and isinstance(edge.get("node"), Mapping)]
    return []


def _count(connection: Any) -> int:
    value = _get(connection, "totalCount")
    return value if isinstance(value, int) else 0


def _int(value: Any, default: int = 0) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) else default


def _str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def parse_datetime(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _end_cursor(connection: Any) -> Optional[str]:
    page_info = _get(connection, "pageInfo")
    if not isinstance(page_info, Mapping):
        return None
    if page_info.get("hasNextPage") is False:
        return None
    return _str(page_info.get("endCursor"))


# ---------------------------------------------------------------------------
# Repository and release data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RepositoryOwner:
    login: str
    type_name: str = "User"
    email: Optional[str] = None
    is_verified: bool = False

    @property
    def is_organization(self) -> bool:
        return self.type_name == "Organization"

    @property
    def app_name_with_space(self) -> str:
        return self.login.replace("-", " ")

    @classmethod
    def from_dict(cls, data: Any) -> "RepositoryOwner":
        return cls(
            login=_str(_get(data, "login")) or "",
            type_name=_str(_get(data, "__typename")) or "User",
            email=_str(_get(data, "email")) or None,
            is_verified=_get(data, "isVerified") is True,
        )


@dataclass(frozen=True)
class ReleaseAsset:
    name: str
    download_url: str
    size: int = 0
    content_type: Optional[str] = None
    download_count: int = 0
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Any) -> "ReleaseAsset":
        return cls(
            name=_str(_get(data, "name")) or "",
            download_url=_str(_get(data, "downloadUrl")) or "",
            size=_int(_get(data, "size")),
            content_type=_str(_get(data, "contentType")),
            download_count=_int(_get(data, "downloadCount")),
            created_at=parse_datetime(_get(data, "createdAt")),
        )


@dataclass(frozen=True)
class Release:
    tag_name: str
    created_at: Optional[datetime] = None
    is_prerelease: bool = False
    description: Optional[str] = None
    assets: List[ReleaseAsset] = field(default_factory=list)
    author_name: Optional[str] = None
    author_email: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Release":
        return cls(
            tag_name=_str(_get(data, "tag", "name")) or "",
            created_at=parse_datetime(_get(data, "createdAt")),
            is_prerelease=_get(data, "isPrerelease") is True,
            description=_str(_get(data, "description")),
            assets=[ReleaseAsset.from_dict(node) for node in _nodes(_get(data, "releaseAssets"))],
            author_name=_str(_get(data, "tagCommit", "author", "name")),
            author_email=_str(_get(data, "tagCommit", "author", "email")),
        )


@dataclass(frozen=True)
class IssueComment:
    author_login: Optional[str]
    body_text: str

    @classmethod
    def from_dict(cls, data: Any) -> "IssueComment":
        return cls(
            author_login=_str(_get(data, "author", "login")),
            body_text=_str(_get(data, "bodyText")) or "",
        )


@dataclass(frozen=True)
class ForkRepository:
    name: str
    name_with_owner: str
    owner: RepositoryOwner
    description: Optional[str] = None
    star_count: int = 0
    watcher_count: int = 0
    issue_count: int = 0
    topics: List[str] = field(default_factory=list)
    releases: List[Release] = field(default_factory=list)
    comments: List[IssueComment] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "ForkRepository":
        comments: List[IssueComment] = []
        pull_requests = _nodes(_get(data, "defaultBranchRef", "associatedPullRequests"))
        for pull_request in pull_requests:
            comments.extend(IssueComment.from_dict(node) for node in _nodes(_get(pull_request, "comments")))
        return cls(
            name=_str(_get(data, "name")) or "",
            name_with_owner=_str(_get(data, "nameWithOwner")) or "",
            owner=RepositoryOwner.from_dict(_get(data, "owner")),
            description=_str(_get(data, "description")),
            star_count=_int(_get(data, "stargazerCount")),
            watcher_count=_count(_get(data, "watchers")),
            issue_count=_count(_get(data, "issues")),
            topics=[
                name
                for name in (_str(_get(node, "topic", "name")) for node in _nodes(_get(data, "repositoryTopics")))
                if name
            ],
            releases=[Release.from_dict(node) for node in _nodes(_get(data, "releases"))],
            comments=comments,
        )


@dataclass(frozen=True)
class CatalogPage:
    forks: List[ForkRepository]
    total_count: int = 0
    end_cursor: Optional[str] = None

    @property
    def element_count(self) -> int:
        return len(self.forks)

    @classmethod
    def from_dict(cls, data: Any) -> "CatalogPage":
        forks = _get(data, "repository", "forks")
        return cls(
            forks=[ForkRepository.from_dict(node) for node in _nodes(forks)],
            total_count=_count(forks),
            end_cursor=_end_cursor(forks),
        )


# ---------------------------------------------------------------------------
# Pull requests and comments
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PullRequestSummary:
    id: str
    number: int
    state: str
    url: Optional[str] = None
    head_name_with_owner: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "PullRequestSummary":
        return cls(
            id=_str(_get(data, "id")) or "",
            number=_int(_get(data, "number")),
            state=_str(_get(data, "state")) or "",
            url=_str(_get(data, "url")),
            head_name_with_owner=_str(_get(data, "headRepository", "nameWithOwner")),
        )


@dataclass(frozen=True)
class PullRequestPage:
    pull_requests: List[PullRequestSummary]
    total_count: int = 0
    end_cursor: Optional[str] = None

    @property
    def element_count(self) -> int:
        return len(self.pull_requests)

    @classmethod
    def from_dict(cls, data: Any) -> "PullRequestPage":
        connection = _get(data, "repository", "pullRequests")
        return cls(
            pull_requests=[PullRequestSummary.from_dict(node) for node in _nodes(connection)],
            total_count=_count(connection),
            end_cursor=_end_cursor(connection),
        )


@dataclass(frozen=True)
class PullRequestRef:
    id: str
    number: int

    @classmethod
    def from_dict(cls, data: Any) -> "PullRequestRef":
        pull_request = _get(data, "repository", "pullRequest")
        return cls(id=_str(_get(pull_request, "id")) or "", number=_int(_get(pull_request, "number")))


@dataclass(frozen=True)
class PostedComment:
    url: Optional[str]
    body: str

    @classmethod
    def from_dict(cls, data: Any) -> "PostedComment":
        node = _get(data, "addComment", "commentEdge", "node")
        return cls(url=_str(_get(node, "url")), body=_str(_get(node, "body")) or "")


# ---------------------------------------------------------------------------
# Organization and commit facts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RepositoryInfo:
    is_private: bool = False
    is_archived: bool = False
    is_disabled: bool = False
    has_issues_enabled: bool = True
    discussion_category_count: int = 0
    license_spdx_id: Optional[str] = None
    visibility: Optional[str] = None
    star_count: int = 0
    fork_count: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> "RepositoryInfo":
        return cls(
            is_private=_get(data, "isPrivate") is True,
            is_archived=_get(data, "isArchived") is True,
            is_disabled=_get(data, "isDisabled") is True,
            has_issues_enabled=_get(data, "hasIssuesEnabled") is True,
            discussion_category_count=_count(_get(data, "discussionCategories")),
            license_spdx_id=_str(_get(data, "licenseInfo", "spdxId")),
            visibility=_str(_get(data, "visibility")),
            star_count=_int(_get(data, "stargazerCount")),
            fork_count=_int(_get(data, "forkCount")),
        )


@dataclass(frozen=True)
class OrganizationInfo:
    login: str
    type_name: str
    repository: RepositoryInfo
    name: Optional[str] = None
    email: Optional[str] = None
    is_verified: bool = False

    @property
    def is_organization(self) -> bool:
        return self.type_name == "Organization"

    @classmethod
    def from_dict(cls, data: Any) -> "OrganizationInfo":
        organization = _get(data, "organization")
        return cls(
            login=_str(_get(organization, "login")) or "",
            type_name=_str(_get(organization, "__typename")) or "User",
            repository=RepositoryInfo.from_dict(_get(organization, "repository")),
            name=_str(_get(organization, "name")),
            email=_str(_get(organization, "email")) or None,
            is_verified=_get(organization, "isVerified") is True,
        )


@dataclass(frozen=True)
class CommitSignature:
    state: str
    is_valid: bool
    email: Optional[str] = None


@dataclass(frozen=True)
class CommitInfo:
    oid: str
    author_name: Optional[str] = None
    author_email: Optional[str] = None
    signature: Optional[CommitSignature] = None

    @classmethod
    def from_dict(cls, data: Any) -> "CommitInfo":
        commit = _get(data, "repository", "object")
        signature_data = _get(commit, "signature")
        signature = None
        if isinstance(signature_data, Mapping):
            signature = CommitSignature(
                state=_str(signature_data.get("state")) or "",
                is_valid=signature_data.get("isValid") is True,
                email=_str(signature_data.get("email")),
            )
        return cls(
            oid=_str(_get(commit, "oid")) or "",
            author_name=_str(_get(commit, "author", "name")),
            author_email=_str(_get(commit, "author", "email")),
            signature=signature,
        )


__all__ = [
    "CatalogPage",
    "CommitInfo",
    "CommitSignature",
    "ForkRepository",
    "IssueComment",
    "OrganizationInfo",
    "PostedComment",
    "PullRequestPage",
    "PullRequestRef",
    "PullRequestSummary",
    "Release",
    "ReleaseAsset",
    "RepositoryInfo",
    "RepositoryOwner",
    "parse_datetime",
]
