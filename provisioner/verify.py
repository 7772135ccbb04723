"""
verify.py

Responsibility: Read-only re-run of the provisioning checks.

Nothing here writes files or calls a mutating endpoint. Each check yields a
`CheckResult`; informational lines go into `details` and do not affect the score.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from provisioner.config import Settings
from provisioner.config_merger import (
    GRADLE_KEY_KEY,
    GRADLE_USER_KEY,
    read_pom_repositories,
    read_properties,
    read_summary,
)
from provisioner.errors import PersistenceError
from provisioner.github_client import GitHubError, Provider
from provisioner.logging import get_logger
from provisioner.models import OPTIONAL_SCOPES, REQUIRED_SCOPES, ScopeReport

log = get_logger("verify")

PLACEHOLDER_MARKER = "YOUR_GITHUB"


@dataclass(frozen=True)
class CheckResult:
    description: str
    passed: bool
    details: tuple[str, ...] = ()


@dataclass
class VerificationReport:
    organization: str
    repository: str
    checks: list[CheckResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.checks)

    @property
    def passed(self) -> int:
        return sum(1 for c in self.checks if c.passed)

    @property
    def success_rate(self) -> int:
        if not self.checks:
            return 0
        return self.passed * 100 // self.total

    @property
    def verdict(self) -> str:
        rate = self.success_rate
        if rate == 100:
            return "All checks passed! You're ready to deploy."
        if rate >= 80:
            return "Setup is mostly complete. Review the warnings above before deploying."
        if rate >= 50:
            return "Setup is partially complete. Please address the failed checks before deploying."
        return "Setup is incomplete. Please run `gpr-provision setup` first."

    def add(self, description: str, passed: bool, *details: str) -> CheckResult:
        result = CheckResult(description, passed, tuple(details))
        self.checks.append(result)
        log.debug("check %s: %s", description, "passed" if passed else "failed")
        return result


def _check_tools(report: VerificationReport, which: Callable[[str], str | None]) -> None:
    for label, cmd in (("Java installation", "java"), ("Maven installation", "mvn"), ("GitHub CLI installation", "gh")):
        path = which(cmd)
        report.add(label, path is not None, *([f"Found at {path}"] if path else []))


def _check_maven_settings(report: VerificationReport, path: Path, server_id: str) -> None:
    if not path.is_file():
        report.add("Maven settings.xml exists", False, f"Not found: {path}")
        return
    text = path.read_text(encoding="utf-8", errors="replace")
    details: list[str] = []
    if f"<id>{server_id}</id>" in text:
        details.append(f"Contains {server_id} server configuration")
        if PLACEHOLDER_MARKER in text:
            details.append("Contains placeholder values (YOUR_GITHUB_USERNAME/TOKEN); update with actual credentials")
        else:
            details.append("No placeholder values found")
    else:
        details.append(f"Missing {server_id} server configuration")
    report.add("Maven settings.xml exists", True, *details)


def _check_gradle_properties(report: VerificationReport, path: Path) -> None:
    if not path.is_file():
        report.add("Gradle properties exists", False, f"Not found: {path}")
        return
    props = read_properties(path)
    details: list[str] = []
    if GRADLE_USER_KEY in props:
        details.append(f"Contains {GRADLE_USER_KEY}: {props[GRADLE_USER_KEY]}")
    else:
        details.append(f"Missing {GRADLE_USER_KEY} property")
    if GRADLE_KEY_KEY in props:
        details.append(f"Contains {GRADLE_KEY_KEY}: [REDACTED]")
    else:
        details.append(f"Missing {GRADLE_KEY_KEY} property")
    report.add("Gradle properties exists", True, *details)


def _check_github(report: VerificationReport, provider: Provider | None, org: str, repo: str) -> str | None:
    if provider is None:
        report.add("GitHub authentication", False, "No operator token (run `gh auth login` or export GITHUB_TOKEN)")
        return None
    try:
        caller = provider.whoami()
    except GitHubError as e:
        report.add("GitHub authentication", False, str(e))
        return None
    report.add("GitHub authentication", True, f"Authenticated as: {caller}")

    try:
        info = provider.get_repo(org, repo)
    except GitHubError as e:
        report.add(f"Repository {org}/{repo} exists", False, str(e))
        info = None
    else:
        if info is None:
            report.add(f"Repository {org}/{repo} exists", False)
        else:
            report.add(
                f"Repository {org}/{repo} exists",
                True,
                f"Visibility: {info.visibility.value}",
                f"URL: {info.html_url}",
            )

    if org != caller:
        try:
            member = provider.is_member(org)
        except GitHubError as e:
            report.add(f"Organization {org} membership", False, str(e))
        else:
            report.add(
                f"Organization {org} membership",
                member,
                f"You are a member of {org}" if member else "You may need additional permissions from the organization admin",
            )
    return caller


def _check_token(report: VerificationReport, provider: Provider | None, token: str) -> None:
    if provider is None:
        return
    try:
        provider.authenticate(token)
    except GitHubError:
        report.add("Token validity", False, "Token appears to be invalid")
        return
    try:
        scopes = provider.scopes_of(token)
    except GitHubError as e:
        report.add("Token validity", True, f"Could not read scopes: {e}")
        return
    details = [f"Token scopes: {', '.join(sorted(scopes)) or 'none'}"]
    for scope in (*REQUIRED_SCOPES, *OPTIONAL_SCOPES):
        details.append(f"{scope}: {'granted' if scope in scopes else 'missing (may be needed)'}")
    if ScopeReport.partition(scopes).complete:
        details.append("All expected scopes granted")
    report.add("Token validity", True, *details)


def _check_pom(report: VerificationReport, path: Path, server_id: str) -> None:
    if not path.is_file():
        report.add("pom.xml exists", False, f"Not found: {path}")
        return
    try:
        repos = read_pom_repositories(path)
    except PersistenceError as e:
        report.add("pom.xml exists", True, f"Could not parse: {e}")
        return
    matches = [r for r in repos if r.section.startswith("distributionManagement/") and r.id == server_id]
    if matches:
        report.add(
            "pom.xml exists",
            True,
            f"Distribution management configured for {server_id}",
            f"Repository URL: {matches[0].url}",
        )
    else:
        report.add("pom.xml exists", True, f"Distribution management not configured for {server_id}")


def run_verification(
    settings: Settings,
    provider: Provider | None,
    *,
    env: Mapping[str, str] | None = None,
    which: Callable[[str], str | None] = shutil.which,
) -> VerificationReport:
    org, repo = settings.organization, settings.repository
    if settings.summary_file.is_file():
        summary = read_summary(settings.summary_file)
        org = summary.get("GITHUB_ORG") or org
        repo = summary.get("GITHUB_REPO") or repo
        log.info("Loaded configuration from %s", settings.summary_file)

    server_id = f"github-{org}"
    report = VerificationReport(organization=org, repository=repo)

    _check_tools(report, which)
    _check_github(report, provider, org, repo)
    _check_maven_settings(report, settings.maven_settings, server_id)
    _check_gradle_properties(report, settings.gradle_properties)

    token = ((env or {}).get("GITHUB_TOKEN") or "").strip()
    if token:
        _check_token(report, provider, token)

    _check_pom(report, settings.pom_file, server_id)
    return report
