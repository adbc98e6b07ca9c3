"""
Unit tests for the GitHub GraphQL client.

Uses httpx.MockTransport so every request is answered in-process:
- request shape (bearer header, {query, variables} body)
- translation of HTTP and GraphQL failures into typed errors
- the anti-corruption layer turning raw nodes into domain objects
"""

import asyncio
import json

import httpx
import pytest

from leaderboard.domain.entities import ContributionKind, RepoRef
from leaderboard.domain.errors import (
    CredentialError,
    GitHubAPIError,
    GitHubAuthError,
    GraphQLError,
    RateLimitError,
)
from leaderboard.infrastructure.github_client import GitHubClient, validate_token


def run_with_client(handler, coro_factory, token="ghp_test_token"):
    async def runner():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = GitHubClient(token=token, client=http)
            return await coro_factory(client)

    return asyncio.run(runner())


def json_handler(payload, status_code=200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)

    return handler


# ============================================================================
# Credential validation
# ============================================================================

class TestValidateToken:

    @pytest.mark.parametrize("token", [None, "", "   "])
    def test_missing_token_is_fatal(self, token):
        with pytest.raises(CredentialError):
            validate_token(token)

    def test_token_with_whitespace_is_fatal(self):
        with pytest.raises(CredentialError):
            validate_token("ghp abc")

    def test_valid_token_returned(self):
        assert validate_token("ghp_abc123") == "ghp_abc123"

    def test_client_refuses_bad_token_before_any_request(self):
        seen = []
        with pytest.raises(CredentialError):
            run_with_client(json_handler({"data": {}}, seen=seen), lambda c: c.execute("query {}"), token="")
        assert seen == []


# ============================================================================
# execute()
# ============================================================================

class TestExecute:

    def test_sends_bearer_token_and_graphql_body(self):
        seen = []
        data = run_with_client(
            json_handler({"data": {"viewer": {"login": "me"}}}, seen=seen),
            lambda c: c.execute("query Q { viewer { login } }", {"x": 1}),
        )

        assert data == {"viewer": {"login": "me"}}
        request = seen[0]
        assert request.method == "POST"
        assert request.headers["Authorization"] == "Bearer ghp_test_token"
        body = json.loads(request.content)
        assert body == {"query": "query Q { viewer { login } }", "variables": {"x": 1}}

    def test_errors_array_is_hard_failure(self):
        payload = {"data": None, "errors": [{"message": "Something broke"}]}
        with pytest.raises(GraphQLError) as exc_info:
            run_with_client(json_handler(payload), lambda c: c.execute("query {}"))
        assert exc_info.value.errors == [{"message": "Something broke"}]

    def test_errors_even_with_partial_data_fail(self):
        payload = {"data": {"repository": {}}, "errors": [{"message": "partial"}]}
        with pytest.raises(GraphQLError):
            run_with_client(json_handler(payload), lambda c: c.execute("query {}"))

    def test_rate_limited_error_type(self):
        payload = {"errors": [{"type": "RATE_LIMITED", "message": "API rate limit exceeded"}]}
        with pytest.raises(RateLimitError):
            run_with_client(json_handler(payload), lambda c: c.execute("query {}"))

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_failures(self, status):
        with pytest.raises(GitHubAuthError) as exc_info:
            run_with_client(json_handler({"message": "Bad credentials"}, status), lambda c: c.execute("query {}"))
        assert exc_info.value.status_code == status

    def test_server_error_is_api_error(self):
        with pytest.raises(GitHubAPIError) as exc_info:
            run_with_client(json_handler({}, 502), lambda c: c.execute("query {}"))
        assert exc_info.value.status_code == 502
        assert not isinstance(exc_info.value, GitHubAuthError)

    def test_transport_error_is_api_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GitHubAPIError):
            run_with_client(handler, lambda c: c.execute("query {}"))

    def test_non_json_body_is_api_error(self):
        def handler(request):
            return httpx.Response(200, text="<html>oops</html>")

        with pytest.raises(GitHubAPIError):
            run_with_client(handler, lambda c: c.execute("query {}"))


# ============================================================================
# Gateway operations
# ============================================================================

ACTIVITY_PAYLOAD = {
    "data": {
        "repository": {
            "pullRequests": {
                "nodes": [
                    {"state": "MERGED", "createdAt": "2024-05-01T10:00:00Z",
                     "author": {"login": "alice", "avatarUrl": "https://a/alice"}},
                    {"state": "OPEN", "createdAt": "2024-05-02T10:00:00Z",
                     "author": {"login": "alice", "avatarUrl": "https://a/alice"}},
                    {"state": "MERGED", "createdAt": "2024-05-03T10:00:00Z", "author": None},
                ]
            },
            "issues": {
                "nodes": [
                    {"createdAt": "2024-05-04T10:00:00Z",
                     "author": {"login": "bob", "avatarUrl": "https://a/bob"}},
                    {"createdAt": "2024-05-05T10:00:00Z", "author": None},
                ]
            },
        }
    }
}


class TestGatewayOperations:

    def test_fetch_repo_activity_classifies_and_drops_authorless(self):
        seen = []
        events = run_with_client(
            json_handler(ACTIVITY_PAYLOAD, seen=seen),
            lambda c: c.fetch_repo_activity(RepoRef("o", "r")),
        )

        assert [(e.author_login, e.kind) for e in events] == [
            ("alice", ContributionKind.MERGED_PR),
            ("alice", ContributionKind.OPEN_PR),
            ("bob", ContributionKind.ISSUE),
        ]
        assert events[0].created_at.tzinfo is not None
        variables = json.loads(seen[0].content)["variables"]
        assert variables == {"owner": "o", "name": "r", "first": 100}

    def test_fetch_repo_activity_missing_repository(self):
        events = run_with_client(
            json_handler({"data": {"repository": None}}),
            lambda c: c.fetch_repo_activity(RepoRef("o", "gone")),
        )
        assert events == []

    def test_list_org_repos_excludes_archived(self):
        payload = {"data": {"organization": {"repositories": {"nodes": [
            {"name": "live", "owner": {"login": "orgX"}, "isArchived": False},
            {"name": "old", "owner": {"login": "orgX"}, "isArchived": True},
            {"name": "also-live", "owner": {"login": "orgX"}, "isArchived": False},
        ]}}}}
        repos = run_with_client(json_handler(payload), lambda c: c.list_org_repos("orgX"))
        assert repos == [RepoRef("orgX", "live"), RepoRef("orgX", "also-live")]

    def test_list_org_repos_unknown_org_raises(self):
        with pytest.raises(GitHubAPIError):
            run_with_client(json_handler({"data": {"organization": None}}), lambda c: c.list_org_repos("nope"))

    def test_fetch_config_issue_body(self):
        seen = []
        payload = {"data": {"repository": {"issues": {"nodes": [{"body": "hello"}]}}}}
        body = run_with_client(
            json_handler(payload, seen=seen),
            lambda c: c.fetch_config_issue_body("o", "r", "leaderboard-config"),
        )
        assert body == "hello"
        assert json.loads(seen[0].content)["variables"]["labels"] == ["leaderboard-config"]

    def test_fetch_config_issue_body_none_when_no_issue(self):
        payload = {"data": {"repository": {"issues": {"nodes": []}}}}
        body = run_with_client(json_handler(payload), lambda c: c.fetch_config_issue_body("o", "r", "x"))
        assert body is None

    def test_timestamp_without_offset_is_utc(self):
        payload = {"data": {"repository": {
            "pullRequests": {"nodes": [
                {"state": "OPEN", "createdAt": "2024-05-01T10:00:00", "author": {"login": "alice"}},
            ]},
            "issues": {"nodes": []},
        }}}
        [event] = run_with_client(json_handler(payload), lambda c: c.fetch_repo_activity(RepoRef("o", "r")))
        assert event.created_at.utcoffset().total_seconds() == 0

    @pytest.mark.parametrize("node", [
        {"state": "MERGED", "createdAt": None, "author": {"login": "alice"}},
        {"state": "MERGED", "createdAt": 1714557600, "author": {"login": "alice"}},
        {"state": "MERGED", "createdAt": "2024-05-01T10:00:00Z", "author": "alice"},
        {"state": "MERGED", "createdAt": "2024-05-01T10:00:00Z", "author": ["alice"]},
        "not-a-node",
    ])
    def test_malformed_nodes_are_dropped(self, node):
        payload = {"data": {"repository": {"pullRequests": {"nodes": [node]}, "issues": {"nodes": []}}}}
        events = run_with_client(json_handler(payload), lambda c: c.fetch_repo_activity(RepoRef("o", "r")))
        assert events == []

    @pytest.mark.parametrize("payload", [
        {"data": {"repository": "oops"}},
        {"data": {"repository": {"pullRequests": {"nodes": {"unexpected": True}}}}},
        {"data": ["not", "an", "object"]},
        ["not", "an", "object"],
    ])
    def test_unexpected_shape_is_api_error(self, payload):
        with pytest.raises(GitHubAPIError):
            run_with_client(json_handler(payload), lambda c: c.fetch_repo_activity(RepoRef("o", "r")))
