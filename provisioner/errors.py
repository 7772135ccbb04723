"""
errors.py

Responsibility: Fatal error kinds raised by the provisioning steps.

Every error carries the offending input (`field`) and an optional remediation
`hint` so the CLI can render it without parsing messages.
"""

from __future__ import annotations


class ProvisioningError(RuntimeError):
    kind = "provisioning"

    def __init__(self, message: str, *, field: str | None = None, hint: str | None = None) -> None:
        super().__init__(message)
        self.field = field
        self.hint = hint


class ConfigError(ProvisioningError):
    kind = "config"


class ToolMissingError(ProvisioningError):
    kind = "tool-missing"


class ResolutionError(ProvisioningError):
    kind = "resolution"


class AuthenticationError(ProvisioningError):
    kind = "authentication"


class RepositoryCreationError(ProvisioningError):
    kind = "repository-creation"


class PersistenceError(ProvisioningError):
    kind = "persistence"
