"""GraphQL client for the git-hosting hub with cursor pagination and retry."""

from __future__ import annotations

import itertools
import json
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Tuple, TypeVar
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .errors import (
    GraphQLError,
    GraphQLErrorList,
    GraphQLFailure,
    HubError,
    HubHTTPError,
    HubRequestLimitError,
    HubServiceError,
    HubTransportError,
    RateLimit,
)
from .queries import CursoredQuery, GraphQLQuery
from .retry import RetryPolicy, retrying
from ..logging import get_logger

_LOGGER = get_logger("hub.client")

DEFAULT_ENDPOINT = "https://api.github.com/graphql"

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class HubConfig:
    """Connection settings handed to :class:`HubClient`."""

    endpoint: str = DEFAULT_ENDPOINT
    token: Optional[str] = None
    timeout: float = 60.0
    retry_duration: float = 0.0
    retry_wait: float = 30.0
    request_limit: Optional[int] = None

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(duration=self.retry_duration, wait=self.retry_wait)


@dataclass(frozen=True)
class HubRequest:
    url: str
    method: str
    headers: Dict[str, str]
    body: Optional[bytes]
    timeout: float


@dataclass(frozen=True)
class HubResponse:
    """Raw transport response: status, headers and undecoded body."""

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""


Transport = Callable[[HubRequest], HubResponse]


@dataclass(frozen=True)
class GraphQLResponse(Generic[T]):
    """Either decoded ``data`` or a service ``failure``; never both."""

    data: Optional[T] = None
    failure: Optional[GraphQLFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def get(self) -> T:
        if self.failure is not None:
            raise HubServiceError(self.failure)
        return self.data  # type: ignore[return-value]

    @property
    def end_cursor(self) -> Optional[str]:
        if self.failure is not None or self.data is None:
            return None
        return getattr(self.data, "end_cursor", None)

    @property
    def element_count(self) -> int:
        if self.failure is not None or self.data is None:
            return 0
        return int(getattr(self.data, "element_count", 0))


BatchHandler = Callable[[int, HubResponse, GraphQLResponse[Any]], Optional[R]]


class HubClient:
    """Executes hub GraphQL queries.

    Requests are issued sequentially; transport failures, 5xx responses and
    rate-limit signals are retried with a fixed wait until the configured
    retry duration runs out, after which the last error propagates.
    """

    def __init__(
        self,
        config: HubConfig | None = None,
        *,
        transport: Transport | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or HubConfig()
        self._transport = transport or urllib_transport
        self._sleep = sleep
        self._clock = clock
        self.request_count = 0
        self.rate_limit: Optional[RateLimit] = None

    @property
    def headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "Content-Type": "application/json",
        }
        if self.config.token:
            headers["Authorization"] = f"token {self.config.token}"
        return headers

    def request(self, query: GraphQLQuery) -> GraphQLResponse[Any]:
        """Execute a single query and return its decoded response."""
        _, response = self._fetch(query)
        return response

    def request_first_batch(self, query: CursoredQuery, handler: BatchHandler[R]) -> Optional[R]:
        """Follow the cursor until ``handler`` returns a value or results run out."""
        for index in itertools.count():
            raw, batch = self._fetch(query)
            stop = handler(index, raw, batch)
            if stop is not None:
                return stop
            cursor = batch.end_cursor
            if cursor is None:
                return None
            _LOGGER.debug("Requesting next cursor for %s", query.query_name)
            query = query.with_cursor(cursor)
        return None  # pragma: no cover - unreachable

    def request_batches(self, query: CursoredQuery, max_batches: int) -> List[GraphQLResponse[Any]]:
        """Collect up to ``max_batches`` consecutive pages for ``query``."""
        batches: List[GraphQLResponse[Any]] = []

        def collect(_: int, __: HubResponse, batch: GraphQLResponse[Any]) -> Optional[bool]:
            batches.append(batch)
            return True if len(batches) >= max_batches else None

        if max_batches > 0:
            self.request_first_batch(query, collect)
        return batches

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fetch(self, query: GraphQLQuery) -> Tuple[HubResponse, GraphQLResponse[Any]]:
        # A failed mutation may still have been applied server-side.
        policy = self.config.retry_policy if query.idempotent else RetryPolicy()
        return retrying(
            lambda: self._execute(query),
            policy,
            should_retry=_is_retryable,
            sleep=self._sleep,
            clock=self._clock,
        )

    def _execute(self, query: GraphQLQuery) -> Tuple[HubResponse, GraphQLResponse[Any]]:
        limit = self.config.request_limit
        if limit is not None and self.request_count >= limit:
            raise HubRequestLimitError(limit)
        self.request_count += 1

        body = json.dumps(query.post_data()).encode("utf-8")
        request = HubRequest(
            url=self.config.endpoint,
            method="POST",
            headers=self.headers,
            body=body,
            timeout=self.config.timeout,
        )
        _LOGGER.debug("Requesting: POST %s %s (%d bytes)", request.url, query.query_name, len(body))

        raw = self._transport(request)
        rate_limit = RateLimit.from_headers(raw.headers)
        if rate_limit is not None:
            self.rate_limit = rate_limit
            _LOGGER.debug(
                "Rate limit: %d/%d (%d remaining) resets: %s",
                rate_limit.used,
                rate_limit.limit,
                rate_limit.remaining,
                rate_limit.reset.isoformat(),
            )

        if not 200 <= raw.status < 300:
            raise HubHTTPError(
                raw.status,
                request.url,
                raw.body.decode("utf-8", errors="ignore"),
                rate_limit,
            )

        response = decode_payload(query, raw.body)
        if response.failure is not None and response.failure.is_rate_limit_error:
            raise HubServiceError(response.failure)
        return raw, response


def decode_payload(query: GraphQLQuery, body: bytes) -> GraphQLResponse[Any]:
    """Decode a response body into data or a tagged failure."""
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise HubError(f"Invalid JSON response for {query.query_name}: {exc}") from exc
    if not isinstance(payload, dict):
        raise HubError(f"Unexpected response for {query.query_name}: {type(payload).__name__}")

    if payload.get("errors"):
        return GraphQLResponse(failure=GraphQLErrorList.from_dict(payload))
    if "data" not in payload and "message" in payload:
        return GraphQLResponse(failure=GraphQLError.from_dict(payload))
    data = payload.get("data")
    if data is None:
        return GraphQLResponse(failure=GraphQLError(message=f"No data returned for {query.query_name}"))
    return GraphQLResponse(data=query.decode(data))


def urllib_transport(request: HubRequest) -> HubResponse:
    """Default transport built on ``urllib.request``."""
    http_request = Request(request.url, data=request.body, headers=request.headers, method=request.method)
    try:
        with urlopen(http_request, timeout=request.timeout) as response:  # type: ignore[arg-type]
            return HubResponse(
                status=response.status,
                headers=dict(response.headers.items()),
                body=response.read(),
            )
    except HTTPError as exc:  # pragma: no cover - depends on network
        body = exc.read() if hasattr(exc, "read") else b""
        headers = dict(exc.headers.items()) if exc.headers is not None else {}
        return HubResponse(status=exc.code, headers=headers, body=body or b"")
    except (URLError, TimeoutError, OSError) as exc:  # pragma: no cover - depends on network
        reason = getattr(exc, "reason", exc)
        raise HubTransportError(request.url, str(reason)) from exc


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, HubError) and bool(exc.retryable)


__all__ = [
    "DEFAULT_ENDPOINT",
    "BatchHandler",
    "GraphQLResponse",
    "HubClient",
    "HubConfig",
    "HubRequest",
    "HubResponse",
    "Transport",
    "decode_payload",
    "urllib_transport",
]
