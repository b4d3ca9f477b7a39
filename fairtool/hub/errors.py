"""Failure types for the git-hosting hub API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Mapping, Optional, Tuple, Union

RATE_LIMIT_TYPES = frozenset({"RATE_LIMITED", "RATE_LIMIT"})


@dataclass(frozen=True)
class GraphQLError:
    """A single error object, typically returned for syntax problems."""

    message: str
    type: Optional[str] = None
    path: Tuple[str, ...] = ()
    documentation_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GraphQLError":
        path = data.get("path") or ()
        return cls(
            message=str(data.get("message") or ""),
            type=data.get("type") if isinstance(data.get("type"), str) else None,
            path=tuple(str(item) for item in path) if isinstance(path, (list, tuple)) else (),
            documentation_url=data.get("documentation_url"),
        )

    @property
    def first_failure_reason(self) -> str:
        return self.message

    @property
    def is_rate_limit_error(self) -> bool:
        return self.type in RATE_LIMIT_TYPES or "rate limit" in self.message.lower()


@dataclass(frozen=True)
class GraphQLErrorList:
    """One or more errors, typically returned for structural problems."""

    errors: Tuple[GraphQLError, ...] = field(default=())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GraphQLErrorList":
        items = data.get("errors") or ()
        return cls(tuple(GraphQLError.from_dict(item) for item in items if isinstance(item, Mapping)))

    @property
    def first_failure_reason(self) -> str:
        return self.errors[0].message if self.errors else "Unknown service error"

    @property
    def is_rate_limit_error(self) -> bool:
        return any(error.is_rate_limit_error for error in self.errors)


GraphQLFailure = Union[GraphQLError, GraphQLErrorList]


@dataclass(frozen=True)
class RateLimit:
    """Rate-limit state reported by ``x-ratelimit-*`` response headers."""

    limit: int
    used: int
    remaining: int
    reset: datetime

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> Optional["RateLimit"]:
        lowered = {str(key).lower(): value for key, value in headers.items()}
        try:
            return cls(
                limit=int(lowered["x-ratelimit-limit"]),
                used=int(lowered["x-ratelimit-used"]),
                remaining=int(lowered["x-ratelimit-remaining"]),
                reset=datetime.fromtimestamp(float(lowered["x-ratelimit-reset"]), tz=UTC),
            )
        except (KeyError, TypeError, ValueError):
            return None

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0


class HubError(RuntimeError):
    """Base class for hub transport and service failures."""

    retryable = False


class HubTransportError(HubError):
    """Raised when the endpoint cannot be reached at all."""

    retryable = True

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Unable to reach {url}: {reason}")
        self.url = url
        self.reason = reason


class HubHTTPError(HubError):
    """Raised for HTTP responses outside the 2xx range."""

    def __init__(
        self,
        status: int,
        url: str,
        body: str = "",
        rate_limit: Optional[RateLimit] = None,
    ) -> None:
        detail = f": {body.strip()[:200]}" if body.strip() else ""
        super().__init__(f"Bad HTTP response {status} for {url}{detail}")
        self.status = status
        self.url = url
        self.body = body
        self.rate_limit = rate_limit

    @property
    def rate_limited(self) -> bool:
        if self.status == 429:
            return True
        return self.status == 403 and self.rate_limit is not None and self.rate_limit.exhausted

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.rate_limited or self.status >= 500


class HubServiceError(HubError):
    """Raised when a GraphQL payload carries a failure instead of data."""

    def __init__(self, failure: GraphQLFailure) -> None:
        super().__init__(failure.first_failure_reason)
        self.failure = failure

    @property
    def first_failure_reason(self) -> str:
        return self.failure.first_failure_reason

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.failure.is_rate_limit_error


class HubRequestLimitError(HubError):
    """Raised when a client exceeds its configured request budget."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"Request limit of {limit} exceeded")
        self.limit = limit


__all__ = [
    "GraphQLError",
    "GraphQLErrorList",
    "GraphQLFailure",
    "HubError",
    "HubHTTPError",
    "HubRequestLimitError",
    "HubServiceError",
    "HubTransportError",
    "RateLimit",
]
