from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx

from leaderboard.domain.entities import ContributionEvent, ContributionKind, RepoRef
from leaderboard.domain.errors import (
    CredentialError,
    GitHubAPIError,
    GitHubAuthError,
    GraphQLError,
    RateLimitError,
)
from leaderboard.domain.interfaces import IGitHubGateway

log = logging.getLogger(__name__)

GITHUB_API_URL  = "https://api.github.com/graphql"
PAGE_SIZE       = 100
REQUEST_TIMEOUT = 30.0

CONFIG_ISSUE_QUERY = """
query ConfigIssue($owner: String!, $name: String!, $labels: [String!]) {
  repository(owner: $owner, name: $name) {
    issues(first: 1, labels: $labels, states: OPEN) {
      nodes {
        body
      }
    }
  }
}
"""

ORG_REPOS_QUERY = """
query OrgRepos($org: String!, $first: Int!) {
  organization(login: $org) {
    repositories(first: $first, orderBy: {field: UPDATED_AT, direction: DESC}) {
      nodes {
        name
        owner { login }
        isArchived
      }
    }
  }
}
"""

REPO_ACTIVITY_QUERY = """
query RepoActivity($owner: String!, $name: String!, $first: Int!) {
  repository(owner: $owner, name: $name) {
    pullRequests(first: $first, states: [MERGED, OPEN], orderBy: {field: CREATED_AT, direction: DESC}) {
      nodes {
        state
        createdAt
        author { login avatarUrl }
      }
    }
    issues(first: $first, states: [OPEN, CLOSED], orderBy: {field: CREATED_AT, direction: DESC}) {
      nodes {
        createdAt
        author { login avatarUrl }
      }
    }
  }
}
"""


def validate_token(token: str | None) -> str:
    """
    Structural check of the bearer token. Raises CredentialError if the
    token is missing, blank, or contains whitespace (which would corrupt
    the Authorization header).
    """
    if not token or not token.strip():
        raise CredentialError("GitHub token is missing")
    if any(ch.isspace() for ch in token):
        raise CredentialError("GitHub token contains whitespace")
    return token


class GitHubClient(IGitHubGateway):
    """
    Concrete implementation of IGitHubGateway for GitHub's GraphQL API.

    The constructor receives an httpx.AsyncClient (injected) rather than
    creating one internally. This lets callers control the client lifecycle
    and makes testing trivial: pass a client built on httpx.MockTransport.

    Every call is one request. There is no retry and no backoff; a failed
    call raises GitHubAPIError and the caller decides what that costs.
    """

    def __init__(self, token: str, client: httpx.AsyncClient, api_url: str = GITHUB_API_URL) -> None:
        self._client  = client
        self._api_url = api_url
        self._headers = {
            "Authorization": f"Bearer {validate_token(token)}",
            "Content-Type":  "application/json",
        }

    async def execute(self, query: str, variables: dict | None = None) -> dict:
        """
        POST one GraphQL document and return its `data` payload.

        Raises:
            GitHubAuthError  401/403 from GitHub
            GitHubAPIError   transport failure or any other non-2xx status
            RateLimitError   `errors` array containing a RATE_LIMITED entry
            GraphQLError     any other `errors` array
        """
        try:
            response = await self._client.post(
                self._api_url,
                headers=self._headers,
                json={"query": query, "variables": variables or {}},
                timeout=REQUEST_TIMEOUT,
            )
        except httpx.RequestError as exc:
            raise GitHubAPIError(f"Transport error talking to GitHub: {exc}") from exc

        if response.status_code in (401, 403):
            raise GitHubAuthError(
                f"GitHub rejected the token ({response.status_code})",
                status_code=response.status_code,
            )
        if response.is_error:
            raise GitHubAPIError(
                f"GitHub API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise GitHubAPIError("GitHub returned a non-JSON body") from exc

        if not isinstance(payload, dict):
            raise GitHubAPIError("GitHub returned an unexpected response shape")

        # GraphQL-level errors (different from HTTP errors)
        errors = payload.get("errors")
        if errors:
            if any(isinstance(err, dict) and err.get("type") == "RATE_LIMITED" for err in errors):
                raise RateLimitError(errors)
            raise GraphQLError(errors)

        data = payload.get("data") or {}
        if not isinstance(data, dict):
            raise GitHubAPIError("GitHub returned an unexpected response shape")
        return data

    # Anti-Corruption Layer
    @staticmethod
    def _parse_datetime(value: str) -> datetime:
        """
        Convert GitHub's ISO datetime string to an aware Python datetime.
        Timestamps without an offset are taken as UTC.
        """
        if not isinstance(value, str):
            raise TypeError(f"expected an ISO timestamp, got {type(value).__name__}")
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    @staticmethod
    def _nodes(container, *path: str) -> list:
        """
        Walk `path` down a response object and return the `nodes` list at
        the end. Missing levels give an empty list; anything that is not an
        object or list where one is expected raises GitHubAPIError.
        """
        current = container
        for key in (*path, "nodes"):
            if current is None:
                return []
            if not isinstance(current, dict):
                raise GitHubAPIError(f"Unexpected response shape at '{key}'")
            current = current.get(key)
        if current is None:
            return []
        if not isinstance(current, list):
            raise GitHubAPIError("Unexpected response shape at 'nodes'")
        return current

    def _parse_event(self, node, kind: ContributionKind) -> ContributionEvent | None:
        """
        Translate one PR/issue node into a ContributionEvent.

        Nodes whose author is null (deleted accounts show up as "ghost"
        with no author object) are dropped, as are malformed nodes.
        """
        try:
            author = node.get("author") if node else None
            if not author or not author.get("login"):
                return None
            return ContributionEvent(
                author_login      = author["login"],
                author_avatar_url = author.get("avatarUrl"),
                created_at        = self._parse_datetime(node.get("createdAt")),
                kind              = kind,
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            log.debug("Skipping malformed contribution node: %s", exc)
            return None

    # IGitHubGateway implementation
    async def fetch_config_issue_body(self, owner: str, name: str, label: str) -> str | None:
        data = await self.execute(
            CONFIG_ISSUE_QUERY,
            {"owner": owner, "name": name, "labels": [label]},
        )
        nodes = self._nodes(data, "repository", "issues")
        if not nodes or not isinstance(nodes[0], dict):
            return None
        body = nodes[0].get("body")
        return body if isinstance(body, str) and body else None

    async def list_org_repos(self, org: str) -> list[RepoRef]:
        data = await self.execute(ORG_REPOS_QUERY, {"org": org, "first": PAGE_SIZE})
        if data.get("organization") is None:
            raise GitHubAPIError(f"Organization not found: {org}")

        repos: list[RepoRef] = []
        for node in self._nodes(data, "organization", "repositories"):
            try:
                if not node or node.get("isArchived"):
                    continue
                repos.append(RepoRef(owner=node["owner"]["login"], name=node["name"]))
            except (AttributeError, KeyError, TypeError) as exc:
                log.debug("Skipping malformed repository node in %s: %s", org, exc)
        return repos

    async def fetch_repo_activity(self, repo: RepoRef) -> list[ContributionEvent]:
        data = await self.execute(
            REPO_ACTIVITY_QUERY,
            {"owner": repo.owner, "name": repo.name, "first": PAGE_SIZE},
        )
        if data.get("repository") is None:
            log.warning("Repository %s not visible to this token, skipping", repo.full_name)
            return []

        events: list[ContributionEvent] = []
        for pr in self._nodes(data, "repository", "pullRequests"):
            state = pr.get("state") if isinstance(pr, dict) else None
            kind = ContributionKind.MERGED_PR if state == "MERGED" else ContributionKind.OPEN_PR
            if (event := self._parse_event(pr, kind)) is not None:
                events.append(event)
        for issue in self._nodes(data, "repository", "issues"):
            if (event := self._parse_event(issue, ContributionKind.ISSUE)) is not None:
                events.append(event)
        return events
