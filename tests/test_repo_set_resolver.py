import asyncio

from conftest import FakeGateway
from leaderboard.application.repo_set_resolver import RepoSetResolver, dedupe_repos, parse_repo_refs
from leaderboard.domain.entities import Config, RepoRef
from leaderboard.domain.errors import GitHubAPIError


def resolve(gateway, config):
    return asyncio.run(RepoSetResolver(gateway).resolve(config))


def test_duplicate_refs_collapse_to_one():
    repos = resolve(FakeGateway(), Config(repos=("a/b", "a/b", "a/b")))
    assert repos == [RepoRef(owner="a", name="b")]


def test_malformed_refs_are_dropped():
    assert parse_repo_refs(["a/b", "nope", "x/", "/y", "a/b/c", "", "c/d"]) == [
        RepoRef("a", "b"),
        RepoRef("c", "d"),
    ]


def test_dedupe_is_case_sensitive_and_keeps_first_seen_order():
    repos = [RepoRef("a", "b"), RepoRef("A", "b"), RepoRef("c", "d"), RepoRef("a", "b")]
    assert dedupe_repos(repos) == [RepoRef("a", "b"), RepoRef("A", "b"), RepoRef("c", "d")]


def test_explicit_repos_come_before_org_repos():
    gateway = FakeGateway(orgs={
        "orgX": [RepoRef("orgX", "one"), RepoRef("a", "b")],
        "orgY": [RepoRef("orgY", "two")],
    })

    repos = resolve(gateway, Config(repos=("a/b",), orgs=("orgX", "orgY")))

    assert repos == [RepoRef("a", "b"), RepoRef("orgX", "one"), RepoRef("orgY", "two")]
    assert gateway.org_calls == ["orgX", "orgY"]


def test_failing_org_contributes_nothing(caplog):
    gateway = FakeGateway(orgs={
        "broken": GitHubAPIError("GitHub API error: 500"),
        "fine": [RepoRef("fine", "repo")],
    })

    with caplog.at_level("WARNING"):
        repos = resolve(gateway, Config(repos=("o/r",), orgs=("broken", "fine")))

    assert repos == [RepoRef("o", "r"), RepoRef("fine", "repo")]
    assert "broken" in caplog.text
