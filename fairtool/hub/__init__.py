"""Client for the git-hosting hub's GraphQL API."""

from .client import GraphQLResponse, HubClient, HubConfig, HubRequest, HubResponse
from .errors import (
    GraphQLError,
    GraphQLErrorList,
    HubError,
    HubHTTPError,
    HubRequestLimitError,
    HubServiceError,
    HubTransportError,
    RateLimit,
)
from .retry import RetryPolicy, retrying

__all__ = [
    "GraphQLError",
    "GraphQLErrorList",
    "GraphQLResponse",
    "HubClient",
    "HubConfig",
    "HubError",
    "HubHTTPError",
    "HubRequest",
    "HubRequestLimitError",
    "HubResponse",
    "HubServiceError",
    "HubTransportError",
    "RateLimit",
    "RetryPolicy",
    "retrying",
]
