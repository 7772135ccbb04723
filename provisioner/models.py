"""
models.py

Responsibility: Plain value types passed between the provisioning steps.

Nothing here talks to GitHub or the filesystem. Each run builds these once and
hands them explicitly from step to step.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

REQUIRED_SCOPES: tuple[str, ...] = ("write:packages", "read:packages")
OPTIONAL_SCOPES: tuple[str, ...] = ("repo", "delete:packages")

_SCOPE_HINTS = {
    "write:packages": "you may not be able to publish packages (grant write:packages)",
    "read:packages": "you may not be able to download packages (grant read:packages)",
    "repo": "needed when the package repository is private (grant repo)",
    "delete:packages": "optional, only needed to delete package versions",
}


class Visibility(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"


@dataclass(frozen=True)
class Identity:
    """The GitHub account (organization or personal) the run operates on."""

    account_name: str
    is_organization: bool

    def __post_init__(self) -> None:
        if not self.account_name.strip():
            raise ValueError("Identity.account_name must not be empty")

    @property
    def server_id(self) -> str:
        # Shared id for the Maven server, profile and repository entries.
        return f"github-{self.account_name}"


@dataclass(frozen=True)
class RepositoryRef:
    owner: Identity
    name: str
    exists: bool
    visibility: Visibility | None = None
    html_url: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.owner.account_name}/{self.name}"


@dataclass(frozen=True)
class Credential:
    """A validated Personal Access Token. `secret` is kept out of repr()."""

    secret: str = field(repr=False)
    login: str
    granted_scopes: frozenset[str] = frozenset()

    @property
    def masked(self) -> str:
        if len(self.secret) <= 8:
            return "[REDACTED]"
        return f"{self.secret[:4]}...[REDACTED]"


@dataclass(frozen=True)
class ScopeReport:
    granted: frozenset[str]
    missing_required: tuple[str, ...]
    missing_optional: tuple[str, ...]

    @classmethod
    def partition(cls, granted: frozenset[str]) -> "ScopeReport":
        return cls(
            granted=granted,
            missing_required=tuple(s for s in REQUIRED_SCOPES if s not in granted),
            missing_optional=tuple(s for s in OPTIONAL_SCOPES if s not in granted),
        )

    @property
    def complete(self) -> bool:
        return not self.missing_required and not self.missing_optional

    def warnings(self) -> list[str]:
        return [
            f"Token is missing scope {scope}: {_SCOPE_HINTS[scope]}"
            for scope in (*self.missing_required, *self.missing_optional)
        ]
