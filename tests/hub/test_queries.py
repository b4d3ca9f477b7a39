"""Tests for GraphQL query rendering and response decoding."""

from __future__ import annotations

from fairtool.hub.nodes import CatalogPage, CommitInfo, OrganizationInfo, PostedComment, PullRequestPage
from fairtool.hub.queries import (
    CatalogQuery,
    FindPullRequests,
    GetCommitQuery,
    LookupPRNumberQuery,
    PostCommentMutation,
    escape_graphql_string,
    quoted_or_null,
)
from tests._fixtures.hub_payloads import (
    SHA,
    artifact_url,
    catalog_page,
    comment_posted,
    fork_node,
    organization_payload,
    pull_request,
    pull_request_page,
    release_node,
    seal_comment,
)


def test_escape_graphql_string() -> None:
    assert escape_graphql_string('say "hi"\\\n\t') == 'say \\"hi\\"\\\\\\n\\t'
    assert escape_graphql_string("\x01") == "\\u0001"
    assert escape_graphql_string("plain ünïcode") == "plain ünïcode"


def test_quoted_or_null() -> None:
    assert quoted_or_null(None) == "null"
    assert quoted_or_null('a"b') == '"a\\"b"'


def test_catalog_query_renders_parameters() -> None:
    text = CatalogQuery(owner="appfair", name="App", count=25).render()

    assert text.startswith("query CatalogQuery {")
    assert 'repository(owner: "appfair", name: "App")' in text
    assert "after: null, first: 25" in text
    assert "orderBy: {field: PUSHED_AT, direction: DESC}" in text


def test_with_cursor_returns_copy() -> None:
    query = CatalogQuery()
    advanced = query.with_cursor("abc")

    assert query.cursor is None
    assert advanced.cursor == "abc"
    assert advanced.count == query.count
    assert 'after: "abc"' in advanced.render()


def test_post_comment_escapes_body() -> None:
    mutation = PostCommentMutation(subject_id="PR_1", body='{"url": "x"}\n')

    text = mutation.render()

    assert text.startswith("mutation AddComment {")
    assert 'subjectId: "PR_1"' in text
    assert 'body: "{\\"url\\": \\"x\\"}\\n"' in text
    assert mutation.post_data() == {"query": text}


def test_other_queries_render_arguments() -> None:
    assert 'object(oid: "abc123")' in GetCommitQuery(owner="o", name="App", ref="abc123").render()
    assert "pullRequest(number: 42)" in LookupPRNumberQuery(owner="o", name="App", number=42).render()
    assert "states: [OPEN]" in FindPullRequests(owner="appfair", name="App").render()


def test_catalog_page_decodes_forks() -> None:
    url = artifact_url("Fork-A")
    payload = catalog_page(
        [fork_node("Fork-A", topics=["appfair-utilities"], comments=[seal_comment(url)])],
        cursor="c1",
        has_next=True,
        total=9,
    )

    page = CatalogQuery().decode(payload["data"])

    assert isinstance(page, CatalogPage)
    assert page.total_count == 9
    assert page.end_cursor == "c1"
    assert page.element_count == 1
    fork = page.forks[0]
    assert fork.name_with_owner == "Fork-A/App"
    assert fork.owner.is_organization is True
    assert fork.owner.app_name_with_space == "Fork A"
    assert fork.watcher_count == 2
    assert fork.topics == ["appfair-utilities"]
    assert fork.comments[0].author_login == "appfairbot"
    assert SHA in fork.comments[0].body_text
    release = fork.releases[0]
    assert release.tag_name == "1.2.3"
    assert release.author_email == "dev@Fork-A.example"
    assert release.created_at is not None and release.created_at.year == 2023
    assert [asset.name for asset in release.assets][0] == "Fork-A-macOS.zip"


def test_end_cursor_cleared_on_last_page() -> None:
    payload = catalog_page([], cursor="stale", has_next=False)

    assert CatalogPage.from_dict(payload["data"]).end_cursor is None


def test_release_without_tag_commit() -> None:
    node = release_node("x")
    del node["tagCommit"]

    page = CatalogPage.from_dict(catalog_page([fork_node("x", releases=[node])])["data"])

    assert page.forks[0].releases[0].author_email is None


def test_pull_request_page_decodes() -> None:
    payload = pull_request_page([pull_request("Fork-A", number=7)])

    page = FindPullRequests().decode(payload["data"])

    assert isinstance(page, PullRequestPage)
    assert page.pull_requests[0].id == "PR_7"
    assert page.pull_requests[0].head_name_with_owner == "Fork-A/App"


def test_comment_and_organization_decoding() -> None:
    comment = PostCommentMutation(subject_id="x", body="y").decode(comment_posted("https://c.example/1")["data"])
    assert comment == PostedComment(url="https://c.example/1", body="{}")

    org = OrganizationInfo.from_dict(organization_payload("Fork-A", isPrivate=True)["data"])
    assert org.login == "Fork-A"
    assert org.repository.is_private is True
    assert org.repository.discussion_category_count == 4
    assert org.repository.license_spdx_id == "AGPL-3.0"


def test_commit_decoding() -> None:
    data = {
        "repository": {
            "object": {
                "oid": "abc",
                "author": {"name": "Dev", "email": "dev@example.org"},
                "signature": {"email": "dev@example.org", "isValid": True, "state": "VALID"},
            }
        }
    }

    commit = CommitInfo.from_dict(data)

    assert commit.oid == "abc"
    assert commit.signature is not None
    assert commit.signature.is_valid is True
