"""
workflow.py

Responsibility: Run the provisioning steps in order.

High-level flow:
1) Resolve the account (organization or personal) -> `Identity`
2) Ensure the package repository exists under it -> `RepositoryRef`
3) Validate the Personal Access Token -> `Credential`
4) Write Maven settings, merge Gradle properties, retarget pom.xml
5) Save the shell-sourceable summary for sibling scripts

Any ProvisioningError aborts the run where it is raised. Files written by an
earlier step are left in place; re-running the workflow is the recovery path.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from provisioner.access import resolve_access
from provisioner.config import DEFAULT_ORGANIZATION, Settings
from provisioner.config_merger import merge_gradle_properties, retarget_pom, write_maven_settings, write_summary
from provisioner.github_client import Provider
from provisioner.logging import get_logger
from provisioner.models import Credential, Identity, RepositoryRef, ScopeReport
from provisioner.repository import ensure_repository
from provisioner.tokens import validate_token

log = get_logger("workflow")


@dataclass
class SetupResult:
    identity: Identity
    caller: str
    repository: RepositoryRef
    credential: Credential
    scopes: ScopeReport
    written: list[Path] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def run_setup(
    provider: Provider,
    settings: Settings,
    confirm: Callable[[str], bool],
    read_token: Callable[[], str],
    *,
    default_org: str = DEFAULT_ORGANIZATION,
) -> SetupResult:
    access = resolve_access(provider, settings.organization, confirm)
    identity = access.identity

    repo = ensure_repository(provider, identity, settings.repository, confirm, description=settings.description)
    warnings = list(access.warnings)
    if not repo.exists:
        warnings.append(f"Repository {repo.full_name} does not exist; publishing will fail until it is created")

    validation = validate_token(provider, read_token())
    credential = validation.credential
    warnings.extend(validation.report.warnings())

    written = [
        write_maven_settings(settings.maven_settings, identity, credential),
        merge_gradle_properties(settings.gradle_properties, credential),
    ]
    if retarget_pom(settings.pom_file, identity, settings.repository, default_org):
        written.append(settings.pom_file)
    written.append(write_summary(settings.summary_file, identity, settings.repository, access.caller))

    log.info("Setup complete for %s", repo.full_name)
    return SetupResult(
        identity=identity,
        caller=access.caller,
        repository=repo,
        credential=credential,
        scopes=validation.report,
        written=written,
        warnings=warnings,
    )
