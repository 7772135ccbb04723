"""
provisioner package

This package implements gpr-provision as a CLI-first utility that prepares a
machine to publish and consume a Java package through GitHub Packages.

Key responsibilities are split across modules:
- `access.py`: pick the organization or personal account to operate on
- `repository.py`: ensure the package repository exists (create on confirmation)
- `tokens.py`: validate a Personal Access Token and report its scopes
- `config_merger.py`: write settings.xml, merge gradle.properties, retarget pom.xml
- `github_client.py`: isolated GitHub REST API interactions
- `workflow.py` / `verify.py`: the setup run and its read-only counterpart
- `cli.py`: CLI entrypoint (argparse, prompts, printing)
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
