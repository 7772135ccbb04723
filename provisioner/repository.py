"""
repository.py

Responsibility: Make sure the package repository exists under the resolved account.

Existing repositories are never modified. Creation only happens after an
explicit confirmation and always uses the same policy (private, fixed
description, initialized with a README).
"""

from __future__ import annotations

from collections.abc import Callable

from provisioner.errors import RepositoryCreationError
from provisioner.github_client import CreateRepoOptions, GitHubError, Provider
from provisioner.logging import get_logger
from provisioner.models import Identity, RepositoryRef, Visibility

log = get_logger("repository")

DEFAULT_DESCRIPTION = "FlatBuffers Java package for internal use"


def ensure_repository(
    provider: Provider,
    identity: Identity,
    name: str,
    confirm: Callable[[str], bool],
    *,
    description: str = DEFAULT_DESCRIPTION,
) -> RepositoryRef:
    owner = identity.account_name
    full_name = f"{owner}/{name}"

    try:
        existing = provider.get_repo(owner, name)
    except GitHubError as e:
        raise RepositoryCreationError(
            f"Could not look up repository {full_name}: {e}",
            field=full_name,
            hint="check your network connection and the operator token",
        ) from e
    if existing is not None:
        log.info("Repository %s already exists (%s)", full_name, existing.html_url)
        return RepositoryRef(
            owner=identity,
            name=name,
            exists=True,
            visibility=existing.visibility,
            html_url=existing.html_url,
        )

    log.info("Repository %s does not exist", full_name)
    if not confirm(f"Create repository {full_name}?"):
        log.warning("Repository %s was not created; continuing without it", full_name)
        return RepositoryRef(owner=identity, name=name, exists=False)

    opts = CreateRepoOptions(visibility=Visibility.PRIVATE, description=description, auto_init=True)
    try:
        created = provider.create_repo(owner, name, opts)
    except GitHubError as e:
        raise RepositoryCreationError(
            f"Failed to create repository {full_name}: {e}",
            field=full_name,
            hint=f"make sure you have permission to create repositories in {owner}",
        ) from e

    log.info("Repository %s created: %s", full_name, created.html_url)
    return RepositoryRef(
        owner=identity,
        name=name,
        exists=True,
        visibility=created.visibility,
        html_url=created.html_url,
    )
