from __future__ import annotations


class LeaderboardError(Exception):
    """Base class for every error the pipeline raises on purpose."""


class CredentialError(LeaderboardError):
    """The bearer token is missing or structurally invalid. Fatal."""


class ConfigError(LeaderboardError):
    """A config document was readable but did not match the schema."""


class GitHubAPIError(LeaderboardError):
    """A single GraphQL call did not succeed (transport, HTTP status or body)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GitHubAuthError(GitHubAPIError):
    """GitHub rejected the token (401/403)."""


class GraphQLError(GitHubAPIError):
    """The response body carried an `errors` array."""

    def __init__(self, errors: list) -> None:
        super().__init__(f"GraphQL errors: {errors}")
        self.errors = errors


class RateLimitError(GraphQLError):
    """Raised when GitHub explicitly returns a RATE_LIMITED error."""
