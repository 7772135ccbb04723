"""
github_client.py

Responsibility: Isolate all direct GitHub interaction.

This module must be the only place that:
- Constructs GitHub REST endpoints
- Sends HTTP requests to api.github.com
- Interprets GitHub API responses / error payloads / response headers
- Shells out to the `gh` CLI (only to borrow its stored operator token)

The provisioning steps depend on the `Provider` protocol, not on this client,
so tests can substitute a fake.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import Any, Protocol

import requests

from provisioner.errors import AuthenticationError, ToolMissingError
from provisioner.logging import get_logger
from provisioner.models import Visibility

log = get_logger("github")

_ORGS_PAGE_SIZE = 100


class GitHubError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class RepoInfo:
    owner: str
    name: str
    html_url: str
    visibility: Visibility


@dataclass(frozen=True)
class CreateRepoOptions:
    visibility: Visibility = Visibility.PRIVATE
    description: str = ""
    auto_init: bool = True


@dataclass(frozen=True)
class AuthResult:
    login: str


class Provider(Protocol):
    def whoami(self) -> str: ...

    def org_exists(self, org: str) -> bool: ...

    def is_member(self, org: str) -> bool: ...

    def get_repo(self, owner: str, name: str) -> RepoInfo | None: ...

    def create_repo(self, owner: str, name: str, opts: CreateRepoOptions) -> RepoInfo: ...

    def authenticate(self, secret: str) -> AuthResult: ...

    def scopes_of(self, secret: str) -> frozenset[str]: ...


def parse_scopes_header(value: str | None) -> frozenset[str]:
    """
    Parse an `X-OAuth-Scopes` header value ("repo, write:packages").

    Fine-grained tokens send no such header; that yields an empty set.
    """
    if not value:
        return frozenset()
    return frozenset(part.strip() for part in value.split(",") if part.strip())


def _visibility_of(data: dict[str, Any]) -> Visibility:
    raw = str(data.get("visibility") or "").lower()
    if raw == "public":
        return Visibility.PUBLIC
    if raw == "private" or raw == "internal":
        return Visibility.PRIVATE
    return Visibility.PRIVATE if data.get("private", True) else Visibility.PUBLIC


class GitHubClient:
    def __init__(self, token: str, api_base: str = "https://api.github.com") -> None:
        if not token.strip():
            raise GitHubError("GitHub token is required.")
        self._token = token
        self._api_base = api_base.rstrip("/")
        self._viewer: str | None = None

    def _headers(self, token: str | None = None) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token or self._token}",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "gpr-provision",
        }

    def _send(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        token: str | None = None,
    ) -> requests.Response:
        url = f"{self._api_base}{path}"
        log.debug("%s %s", method, url)
        try:
            r = requests.request(
                method, url, headers=self._headers(token), json=json_body, params=params, timeout=30
            )
        except requests.RequestException as e:
            raise GitHubError(f"GitHub API request failed {method} {path}: {e}") from e
        log.debug("%s %s -> %s", method, url, r.status_code)
        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"message": r.text}
            message = payload.get("message", payload) if isinstance(payload, dict) else payload
            raise GitHubError(f"GitHub API error {r.status_code} {method} {path}: {message}", r.status_code)
        return r

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        token: str | None = None,
    ) -> Any:
        r = self._send(method, path, json_body=json_body, params=params, token=token)
        if r.status_code == 204:
            return None
        return r.json()

    def whoami(self) -> str:
        if self._viewer is None:
            viewer = self._request("GET", "/user")
            self._viewer = str(viewer.get("login") or "")
        return self._viewer

    def org_exists(self, org: str) -> bool:
        try:
            self._request("GET", f"/orgs/{org}")
        except GitHubError as e:
            if e.status_code == 404:
                return False
            raise
        return True

    def is_member(self, org: str) -> bool:
        page = 1
        while True:
            batch = self._request("GET", "/user/orgs", params={"per_page": _ORGS_PAGE_SIZE, "page": page})
            if any(str(item.get("login") or "") == org for item in batch):
                return True
            if len(batch) < _ORGS_PAGE_SIZE:
                return False
            page += 1

    def get_repo(self, owner: str, name: str) -> RepoInfo | None:
        """
        Return RepoInfo if the repo exists and is accessible; otherwise None.
        """
        try:
            data = self._request("GET", f"/repos/{owner}/{name}")
        except GitHubError as e:
            if e.status_code == 404:
                return None
            raise
        return RepoInfo(owner=owner, name=name, html_url=data["html_url"], visibility=_visibility_of(data))

    def create_repo(self, owner: str, name: str, opts: CreateRepoOptions) -> RepoInfo:
        """
        Create a new repository under either:
        - the authenticated user (if owner matches the viewer login), OR
        - an organization (if owner is an org).
        """
        body = {
            "name": name,
            "private": opts.visibility is Visibility.PRIVATE,
            "description": opts.description,
            "auto_init": opts.auto_init,
        }

        if owner == self.whoami():
            data = self._request("POST", "/user/repos", json_body=body)
        else:
            data = self._request("POST", f"/orgs/{owner}/repos", json_body=body)

        return RepoInfo(owner=owner, name=name, html_url=data["html_url"], visibility=_visibility_of(data))

    def authenticate(self, secret: str) -> AuthResult:
        data = self._request("GET", "/user", token=secret)
        login = str((data or {}).get("login") or "")
        if not login:
            raise GitHubError("GitHub /user response carried no login")
        return AuthResult(login=login)

    def scopes_of(self, secret: str) -> frozenset[str]:
        r = self._send("HEAD", "/user", token=secret)
        return parse_scopes_header(r.headers.get("X-OAuth-Scopes"))


def _gh_auth_token(gh_cmd: str = "gh") -> str:
    if shutil.which(gh_cmd) is None:
        raise ToolMissingError(
            "GitHub CLI (gh) is not installed and GITHUB_TOKEN is not set",
            field=gh_cmd,
            hint="install gh (https://github.com/cli/cli#installation) or export GITHUB_TOKEN",
        )
    try:
        cp = subprocess.run([gh_cmd, "auth", "token"], check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    except subprocess.CalledProcessError as e:
        raise AuthenticationError(
            "GitHub CLI is not authenticated",
            field=gh_cmd,
            hint="run `gh auth login` and grant repo, write:packages, read:packages",
        ) from e
    return cp.stdout.strip()


def resolve_operator_token(explicit: str | None = None, env: dict[str, str] | None = None) -> str:
    """
    Token used for the operator's own API calls (org/repo lookups, creation).

    Order: explicit value, GITHUB_TOKEN, then `gh auth token`.
    """
    if explicit and explicit.strip():
        return explicit.strip()
    environ = os.environ if env is None else env
    from_env = (environ.get("GITHUB_TOKEN") or "").strip()
    if from_env:
        return from_env
    token = _gh_auth_token()
    if not token:
        raise AuthenticationError(
            "GitHub CLI returned an empty token",
            field="gh",
            hint="run `gh auth login`",
        )
    return token
