"""
cli.py

Responsibility: CLI entrypoint for gpr-provision.

Commands:
- `setup`: resolve account -> ensure repo -> validate token -> write config files
- `verify`: the same checks, read-only, with a scored report

This module owns all printing and prompting. The steps it drives receive
`confirm` / `read_token` callables instead of reading stdin themselves:
- Workflow: `workflow.py`
- Verification: `verify.py`
- GitHub API: `github_client.py`
"""

from __future__ import annotations

import argparse
import getpass
import logging
import os
import sys

from provisioner import __version__
from provisioner.config import Settings, load_settings
from provisioner.config_merger import packages_url
from provisioner.errors import ProvisioningError
from provisioner.github_client import GitHubClient, GitHubError, resolve_operator_token
from provisioner.logging import configure_logging, get_logger, redact
from provisioner.verify import run_verification
from provisioner.workflow import SetupResult, run_setup

log = get_logger("cli")

_RULE = "=" * 44

TOKEN_INSTRUCTIONS = """\
You need a Personal Access Token for Maven/Gradle to publish and consume packages.

1. Open: https://github.com/settings/tokens/new
2. Token settings:
   - Note: '{repo} Package Publishing'
   - Expiration: 90 days (or your preference)
   - Select scopes:
     repo (if using a private repository)
     write:packages
     read:packages
     delete:packages (optional)
3. Click 'Generate token' and copy it immediately (starts with ghp_)
"""


def _heading(title: str) -> None:
    print(_RULE)
    print(title)
    print(_RULE)


def interactive_confirm(question: str) -> bool:
    answer = input(f"{question} (y/n): ")
    return answer.strip().lower() in ("y", "yes")


def _token_reader(repo: str):
    def read_token() -> str:
        print()
        _heading("Personal Access Token Setup")
        print(TOKEN_INSTRUCTIONS.format(repo=repo))
        return getpass.getpass("Please enter your Personal Access Token: ")

    return read_token


def _settings_from_args(args: argparse.Namespace) -> Settings:
    settings = load_settings(args.config)
    return settings.with_overrides(organization=args.org, repository=args.repo)


def _print_summary(result: SetupResult) -> None:
    identity = result.identity
    repo = result.repository
    print()
    _heading("Setup Complete!")
    print("Configuration Summary:")
    print(f"  Organization: {identity.account_name}")
    print(f"  Repository: https://github.com/{repo.full_name}")
    print(f"  User: {result.caller}")
    print(f"  Token: {result.credential.masked}")
    for path in result.written:
        print(f"  Wrote: {path}")
    if result.warnings:
        print()
        print("Warnings:")
        for warning in result.warnings:
            print(f"  - {warning}")
    print()
    print("Next steps:")
    print("1. Deploy the package with your build tool")
    print("2. In your Gradle project, add the repository:")
    print(f"   {packages_url(identity.account_name, repo.name)}")
    print("3. View your packages at:")
    print(f"   https://github.com/{repo.full_name}/packages")


def setup_cmd(args: argparse.Namespace) -> int:
    settings = _settings_from_args(args)
    _heading(f"GitHub Packages Setup for {settings.repository}")
    print(f"Organization: {settings.organization}")
    print()

    provider = GitHubClient(resolve_operator_token(args.github_token), api_base=settings.api_base)
    result = run_setup(provider, settings, interactive_confirm, _token_reader(settings.repository))
    _print_summary(result)
    return 0


def verify_cmd(args: argparse.Namespace) -> int:
    settings = _settings_from_args(args)
    try:
        provider: GitHubClient | None = GitHubClient(resolve_operator_token(args.github_token), api_base=settings.api_base)
    except ProvisioningError as e:
        log.warning("GitHub checks limited: %s", e)
        provider = None

    report = run_verification(settings, provider, env=os.environ)

    _heading("GitHub Packages Setup Verification")
    print(f"Organization: {report.organization}")
    print(f"Repository: {report.repository}")
    print()
    for check in report.checks:
        print(f"Checking {check.description}... {'Passed' if check.passed else 'Failed'}")
        for line in check.details:
            print(f"  -> {line}")
    print()
    print(f"Passed {report.passed} out of {report.total} checks ({report.success_rate}%)")
    print(report.verdict)
    return 0 if report.success_rate == 100 else 1


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", default=None, help="YAML config file (default: ./gpr-provision.yaml if present)")
    p.add_argument("--org", default=None, help="Preferred GitHub organization (overrides config)")
    p.add_argument("--repo", default=None, help="Package repository name (overrides config)")
    p.add_argument("--github-token", default=None, help="Operator token for API lookups (or GITHUB_TOKEN / gh auth)")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="gpr-provision", description="Provision GitHub Packages credentials for Maven and Gradle")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("setup", help="Resolve account, ensure repo, validate token, write Maven/Gradle config")
    _add_common(s)
    s.set_defaults(func=setup_cmd)

    v = sub.add_parser("verify", help="Re-run the setup checks without changing anything")
    _add_common(v)
    v.set_defaults(func=verify_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    try:
        return int(args.func(args))
    except ProvisioningError as e:
        print(f"error: {redact(str(e))}", file=sys.stderr)
        if e.hint:
            print(f"hint: {e.hint}", file=sys.stderr)
        return 1
    except GitHubError as e:
        print(f"error: {redact(str(e))}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
