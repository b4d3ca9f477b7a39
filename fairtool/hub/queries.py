"""GraphQL queries and mutations issued against the hub."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional

from .nodes import (
    CatalogPage,
    CommitInfo,
    OrganizationInfo,
    PostedComment,
    PullRequestPage,
    PullRequestRef,
)

_ESCAPES = {
    "\b": "\\b",
    "\f": "\\f",
    '"': '\\"',
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def escape_graphql_string(value: str) -> str:
    """Escape ``value`` per the GraphQL StringValue grammar."""
    output = []
    for char in value:
        escaped = _ESCAPES.get(char)
        if escaped is not None:
            output.append(escaped)
        elif ord(char) < 0x20:
            output.append(f"\\u{ord(char):04x}")
        else:
            output.append(char)
    return "".join(output)


def quoted_or_null(value: Optional[str]) -> str:
    if value is None:
        return "null"
    return '"' + escape_graphql_string(value) + '"'


class GraphQLQuery:
    """Base for hub requests: renders a POST body and decodes the ``data`` payload.

    Mutations set ``idempotent = False`` so the client never repeats them.
    """

    query_name: ClassVar[str] = ""
    idempotent: ClassVar[bool] = True

    def render(self) -> str:  # pragma: no cover - abstract
        raise NotImplementedError

    def post_data(self) -> Dict[str, str]:
        return {"query": self.render()}

    def decode(self, data: Any) -> Any:  # pragma: no cover - abstract
        raise NotImplementedError


class CursoredQuery(GraphQLQuery):
    """A query whose results arrive in pages linked by an opaque cursor."""

    cursor: Optional[str]
    count: int

    def with_cursor(self, cursor: Optional[str]):
        return dataclasses.replace(self, cursor=cursor)


@dataclass(frozen=True)
class CatalogQuery(CursoredQuery):
    """Forks of the base repository with their releases and PR comments."""

    query_name: ClassVar[str] = "CatalogQuery"

    owner: str = "appfair"
    name: str = "App"
    count: int = 100
    release_count: int = 5
    asset_count: int = 50
    pr_count: int = 5
    comment_count: int = 5
    topic_count: int = 5
    cursor: Optional[str] = None

    def render(self) -> str:
        return f"""
query {self.query_name} {{
  __typename
  repository(owner: {quoted_or_null(self.owner)}, name: {quoted_or_null(self.name)}) {{
    __typename
    forks(after: {quoted_or_null(self.cursor)}, first: {self.count}, isLocked: false, privacy: PUBLIC, orderBy: {{field: PUSHED_AT, direction: DESC}}) {{
      totalCount
      pageInfo {{ endCursor hasNextPage }}
      edges {{
        node {{
          __typename
          name
          nameWithOwner
          owner {{
            __typename
            login
            ... on Organization {{ email isVerified }}
          }}
          description
          stargazerCount
          watchers {{ totalCount }}
          issues {{ totalCount }}
          repositoryTopics(first: {self.topic_count}) {{ nodes {{ topic {{ name }} }} }}
          releases(first: {self.release_count}, orderBy: {{field: CREATED_AT, direction: DESC}}) {{
            nodes {{
              createdAt
              isPrerelease
              isDraft
              description
              tag {{ name }}
              tagCommit {{ author {{ name email date }} }}
              releaseAssets(first: {self.asset_count}) {{
                edges {{ node {{ name size contentType downloadCount downloadUrl createdAt }} }}
              }}
            }}
          }}
          defaultBranchRef {{
            associatedPullRequests(states: [CLOSED], last: {self.pr_count}) {{
              nodes {{
                comments(first: {self.comment_count}) {{
                  nodes {{ author {{ login }} bodyText }}
                }}
              }}
            }}
          }}
        }}
      }}
    }}
  }}
}}
""".strip()

    def decode(self, data: Any) -> CatalogPage:
        return CatalogPage.from_dict(data)


@dataclass(frozen=True)
class FindPullRequests(CursoredQuery):
    query_name: ClassVar[str] = "FindPullRequests"

    owner: str = "appfair"
    name: str = "App"
    state: str = "OPEN"
    count: int = 100
    cursor: Optional[str] = None

    def render(self) -> str:
        return f"""
query {self.query_name} {{
  __typename
  repository(owner: {quoted_or_null(self.owner)}, name: {quoted_or_null(self.name)}) {{
    pullRequests(states: [{self.state}], orderBy: {{field: UPDATED_AT, direction: DESC}}, first: {self.count}, after: {quoted_or_null(self.cursor)}) {{
      totalCount
      pageInfo {{ hasNextPage endCursor }}
      edges {{
        node {{
          id
          number
          url
          state
          headRepository {{ nameWithOwner }}
        }}
      }}
    }}
  }}
}}
""".strip()

    def decode(self, data: Any) -> PullRequestPage:
        return PullRequestPage.from_dict(data)


@dataclass(frozen=True)
class PostCommentMutation(GraphQLQuery):
    query_name: ClassVar[str] = "AddComment"
    idempotent: ClassVar[bool] = False

    subject_id: str
    body: Optional[str]

    def render(self) -> str:
        return f"""
mutation {self.query_name} {{
  __typename
  addComment(input: {{subjectId: {quoted_or_null(self.subject_id)}, body: {quoted_or_null(self.body)}}}) {{
    commentEdge {{ node {{ body url }} }}
  }}
}}
""".strip()

    def decode(self, data: Any) -> PostedComment:
        return PostedComment.from_dict(data)


@dataclass(frozen=True)
class RepositoryQuery(GraphQLQuery):
    """Organization and repository facts used for validation."""

    query_name: ClassVar[str] = "RepositoryQuery"

    owner: str
    name: str

    def render(self) -> str:
        return f"""
query {self.query_name} {{
  __typename
  organization(login: {quoted_or_null(self.owner)}) {{
    __typename
    name
    login
    email
    isVerified
    repository(name: {quoted_or_null(self.name)}) {{
      visibility
      isPrivate
      isArchived
      isDisabled
      forkCount
      stargazerCount
      hasIssuesEnabled
      discussionCategories {{ totalCount }}
      licenseInfo {{ spdxId }}
    }}
  }}
}}
""".strip()

    def decode(self, data: Any) -> OrganizationInfo:
        return OrganizationInfo.from_dict(data)


@dataclass(frozen=True)
class GetCommitQuery(GraphQLQuery):
    query_name: ClassVar[str] = "GetCommitQuery"

    owner: str
    name: str
    ref: str

    def render(self) -> str:
        return f"""
query {self.query_name} {{
  __typename
  repository(owner: {quoted_or_null(self.owner)}, name: {quoted_or_null(self.name)}) {{
    object(oid: {quoted_or_null(self.ref)}) {{
      ... on Commit {{
        oid
        author {{ name email date }}
        signature {{ email isValid state }}
      }}
    }}
  }}
}}
""".strip()

    def decode(self, data: Any) -> CommitInfo:
        return CommitInfo.from_dict(data)


@dataclass(frozen=True)
class LookupPRNumberQuery(GraphQLQuery):
    query_name: ClassVar[str] = "LookupPRNumberQuery"

    owner: Optional[str]
    name: Optional[str]
    number: int

    def render(self) -> str:
        return (
            f"query {self.query_name} {{ __typename, repository(owner: {quoted_or_null(self.owner)}, "
            f"name: {quoted_or_null(self.name)}) {{ pullRequest(number: {self.number}) {{ id, number }} }} }}"
        )

    def decode(self, data: Any) -> PullRequestRef:
        return PullRequestRef.from_dict(data)


__all__ = [
    "CatalogQuery",
    "CursoredQuery",
    "FindPullRequests",
    "GetCommitQuery",
    "GraphQLQuery",
    "LookupPRNumberQuery",
    "PostCommentMutation",
    "RepositoryQuery",
    "escape_graphql_string",
    "quoted_or_null",
]
