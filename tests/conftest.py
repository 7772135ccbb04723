from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from provisioner.config import Settings
from provisioner.github_client import AuthResult, CreateRepoOptions, GitHubError, RepoInfo
from provisioner.models import Visibility


@dataclass
class FakeProvider:
    """In-memory stand-in for GitHub that records every call."""

    caller: str = "octocat"
    orgs: set[str] = field(default_factory=set)
    memberships: set[str] = field(default_factory=set)
    repos: dict[tuple[str, str], Visibility] = field(default_factory=dict)
    tokens: dict[str, tuple[str, frozenset[str]]] = field(default_factory=dict)
    create_error: GitHubError | None = None
    calls: list[tuple] = field(default_factory=list)

    def whoami(self) -> str:
        self.calls.append(("whoami",))
        return self.caller

    def org_exists(self, org: str) -> bool:
        self.calls.append(("org_exists", org))
        return org in self.orgs

    def is_member(self, org: str) -> bool:
        self.calls.append(("is_member", org))
        return org in self.memberships

    def get_repo(self, owner: str, name: str) -> RepoInfo | None:
        self.calls.append(("get_repo", owner, name))
        visibility = self.repos.get((owner, name))
        if visibility is None:
            return None
        return RepoInfo(owner=owner, name=name, html_url=f"https://github.com/{owner}/{name}", visibility=visibility)

    def create_repo(self, owner: str, name: str, opts: CreateRepoOptions) -> RepoInfo:
        self.calls.append(("create_repo", owner, name, opts))
        if self.create_error is not None:
            raise self.create_error
        self.repos[(owner, name)] = opts.visibility
        return RepoInfo(owner=owner, name=name, html_url=f"https://github.com/{owner}/{name}", visibility=opts.visibility)

    def authenticate(self, secret: str) -> AuthResult:
        self.calls.append(("authenticate",))
        if secret not in self.tokens:
            raise GitHubError("GitHub API error 401 GET /user: Bad credentials", 401)
        return AuthResult(login=self.tokens[secret][0])

    def scopes_of(self, secret: str) -> frozenset[str]:
        self.calls.append(("scopes_of",))
        return self.tokens[secret][1]

    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]


def scripted(*answers: bool):
    """confirm() replacement answering from a fixed script; records questions."""
    remaining = list(answers)
    asked: list[str] = []

    def confirm(question: str) -> bool:
        asked.append(question)
        if not remaining:
            raise AssertionError(f"unexpected prompt: {question}")
        return remaining.pop(0)

    confirm.asked = asked  # type: ignore[attr-defined]
    return confirm


TOKEN = "ghp_" + "a" * 36


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider(tokens={TOKEN: ("octocat", frozenset({"repo", "write:packages", "read:packages"}))})


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        organization="acme",
        repository="pkg-a",
        maven_settings=tmp_path / "m2" / "settings.xml",
        gradle_properties=tmp_path / "gradle" / "gradle.properties",
        summary_file=tmp_path / ".github-package-config",
        pom_file=tmp_path / "pom.xml",
    )
