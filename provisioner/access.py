"""
access.py

Responsibility: Decide which GitHub account the run operates against.

The preferred organization may not exist, may be invisible to the caller, or
the caller may not be a member. Only an unusable organization combined with a
declined personal-account fallback is fatal.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from provisioner.errors import ResolutionError
from provisioner.github_client import Provider
from provisioner.logging import get_logger
from provisioner.models import Identity

log = get_logger("access")

Confirm = Callable[[str], bool]


@dataclass(frozen=True)
class AccessResult:
    identity: Identity
    caller: str
    is_member: bool
    warnings: tuple[str, ...] = ()


def resolve_access(provider: Provider, preferred_org: str, confirm: Confirm) -> AccessResult:
    caller = provider.whoami()
    if not caller:
        raise ResolutionError("Could not determine the authenticated GitHub user", field="caller")
    log.info("Authenticated as %s", caller)

    org = preferred_org.strip()
    if not org or org == caller:
        return AccessResult(identity=Identity(caller, is_organization=False), caller=caller, is_member=True)

    if provider.org_exists(org):
        log.info("Organization '%s' found", org)
        if provider.is_member(org):
            return AccessResult(identity=Identity(org, is_organization=True), caller=caller, is_member=True)
        warning = f"You don't appear to be a member of {org}; you may need to request access from the organization admin"
        log.warning(warning)
        return AccessResult(
            identity=Identity(org, is_organization=True),
            caller=caller,
            is_member=False,
            warnings=(warning,),
        )

    log.warning("Organization '%s' not found or not accessible", org)
    if confirm(f"Organization '{org}' is not accessible. Use your personal account '{caller}' instead?"):
        log.info("Proceeding with personal account: %s", caller)
        return AccessResult(identity=Identity(caller, is_organization=False), caller=caller, is_member=True)

    raise ResolutionError(
        f"Organization '{org}' not found or not accessible and personal-account fallback was declined",
        field=org,
        hint="create the organization at https://github.com/organizations/new or accept the personal account",
    )
