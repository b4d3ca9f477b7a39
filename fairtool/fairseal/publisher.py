"""Post fairseals as comments on the fork's open pull request."""

from __future__ import annotations

from typing import Optional

from .seal import Fairseal
from ..hub.client import GraphQLResponse, HubClient, HubResponse
from ..hub.nodes import PullRequestPage, PullRequestSummary
from ..hub.queries import FindPullRequests, LookupPRNumberQuery, PostCommentMutation
from ..logging import get_logger
from ..validation.rules import ORIGIN_ORG

_LOGGER = get_logger("fairseal.publisher")


class FairsealPublisher:
    """Finds the open pull request from the sealed artifact's fork and comments on it."""

    def __init__(self, client: HubClient, *, owner: str = ORIGIN_ORG, name: str = "App") -> None:
        self.client = client
        self.owner = owner
        self.name = name

    def find_pull_request(self, app_org: str) -> Optional[PullRequestSummary]:
        head = f"{app_org}/{self.name}"

        def match(_: int, __: HubResponse, batch: GraphQLResponse[PullRequestPage]) -> Optional[PullRequestSummary]:
            page = batch.get()
            return next(
                (
                    pull_request
                    for pull_request in page.pull_requests
                    if pull_request.state == "OPEN" and pull_request.head_name_with_owner == head
                ),
                None,
            )

        return self.client.request_first_batch(FindPullRequests(owner=self.owner, name=self.name), match)

    def lookup_pull_request(self, number: int) -> Optional[str]:
        """Return the node id of pull request ``number`` in the base repository."""
        ref = self.client.request(LookupPRNumberQuery(owner=self.owner, name=self.name, number=number)).get()
        return ref.id or None

    def post(self, seal: Fairseal, *, pull_request_number: Optional[int] = None) -> Optional[str]:
        """Post ``seal`` and return the comment URL, or ``None`` when no PR matches.

        A known ``pull_request_number`` skips the search over open pull requests.
        """
        if pull_request_number is not None:
            subject_id = self.lookup_pull_request(pull_request_number)
            if subject_id is None:
                _LOGGER.warning("Pull request #%d not found; fairseal not posted", pull_request_number)
                return None
        else:
            app_org = seal.app_org
            if not app_org:
                _LOGGER.warning("No app org for seal: %s", seal.url)
                return None

            pull_request = self.find_pull_request(app_org)
            if pull_request is None:
                _LOGGER.warning("No open pull request found for %s; fairseal not posted", app_org)
                return None
            subject_id = pull_request.id

        comment = self.client.request(PostCommentMutation(subject_id=subject_id, body=seal.to_json(indent=2))).get()
        _LOGGER.info("Posted fairseal for %s to %s", seal.url, comment.url)
        return comment.url


__all__ = ["FairsealPublisher"]
