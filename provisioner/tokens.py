"""
tokens.py

Responsibility: Validate a Personal Access Token and report its scopes.

Only a failed authentication is fatal. Missing scopes are reported as warnings:
fine-grained tokens list scopes differently from classic ones, and a token
that really lacks rights will fail loudly at publish time anyway.
"""

from __future__ import annotations

from dataclasses import dataclass

from provisioner.errors import AuthenticationError
from provisioner.github_client import GitHubError, Provider
from provisioner.logging import get_logger
from provisioner.models import Credential, ScopeReport

log = get_logger("tokens")


@dataclass(frozen=True)
class TokenValidation:
    credential: Credential
    report: ScopeReport


def validate_token(provider: Provider, secret: str) -> TokenValidation:
    secret = secret.strip()
    if not secret:
        raise AuthenticationError("No token provided", field="token", hint="paste a token from https://github.com/settings/tokens/new")

    try:
        auth = provider.authenticate(secret)
    except GitHubError as e:
        if e.status_code is None:
            message = f"Could not validate token: {e}"
        else:
            message = f"Token is invalid or expired ({e.status_code})"
        raise AuthenticationError(
            message,
            field="token",
            hint="generate a new token at https://github.com/settings/tokens/new",
        ) from e
    log.info("Token is valid (login %s)", auth.login)

    try:
        granted = provider.scopes_of(secret)
    except GitHubError as e:
        log.warning("Could not read token scopes: %s", e)
        granted = frozenset()

    report = ScopeReport.partition(granted)
    log.info("Token scopes: %s", ", ".join(sorted(granted)) or "none")
    if report.complete:
        log.info("Token grants every expected scope")
    for warning in report.warnings():
        log.warning(warning)

    return TokenValidation(
        credential=Credential(secret=secret, login=auth.login, granted_scopes=granted),
        report=report,
    )
