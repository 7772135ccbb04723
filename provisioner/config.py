"""
config.py

Responsibility: Load the optional YAML config file into a typed, immutable `Settings`.

This implementation intentionally stays conservative:
- A missing file is fine: every key has a default matching the published package.
- Unknown keys are ignored, wrong types are rejected with ConfigError.
- CLI overrides are applied on top via `Settings.with_overrides`.

The workflow and verification code treat the resulting Settings as the single
source of truth for names and paths.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from provisioner.errors import ConfigError
from provisioner.repository import DEFAULT_DESCRIPTION

DEFAULT_CONFIG_FILE = "gpr-provision.yaml"
DEFAULT_ORGANIZATION = "alphanovatech"
DEFAULT_REPOSITORY = "flatbuffers-java"


@dataclass(frozen=True)
class Settings:
    """Names and paths a provisioning or verification run operates on."""

    organization: str = DEFAULT_ORGANIZATION
    repository: str = DEFAULT_REPOSITORY
    description: str = DEFAULT_DESCRIPTION
    api_base: str = "https://api.github.com"
    maven_settings: Path = Path("~/.m2/settings.xml").expanduser()
    gradle_properties: Path = Path("~/.gradle/gradle.properties").expanduser()
    summary_file: Path = Path(".github-package-config")
    pom_file: Path = Path("pom.xml")

    def with_overrides(self, **overrides: Any) -> "Settings":
        clean = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **clean) if clean else self


_STR_KEYS = ("organization", "repository", "description", "api_base")
_PATH_KEYS = ("maven_settings", "gradle_properties", "summary_file", "pom_file")


def _as_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, (str, int)):
        raise ConfigError(f"`{key}` must be a string", field=key)
    text = str(value).strip()
    if not text:
        raise ConfigError(f"`{key}` must not be empty", field=key)
    return text


def parse_settings(data: dict[str, Any]) -> Settings:
    values: dict[str, Any] = {}
    for key in _STR_KEYS:
        text = _as_str(data, key)
        if text is not None:
            values[key] = text
    for key in _PATH_KEYS:
        text = _as_str(data, key)
        if text is not None:
            values[key] = Path(text).expanduser()
    return Settings(**values)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """
    Load settings from `config_path`, or from ./gpr-provision.yaml if present.

    Passing an explicit path that does not exist is an error; the implicit
    default file is optional.
    """
    if config_path is None:
        path = Path(DEFAULT_CONFIG_FILE)
        if not path.exists():
            return Settings()
    else:
        path = Path(config_path).expanduser()
        if not path.exists():
            raise ConfigError(f"Config file does not exist: {path}", field=str(path))

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file is not valid YAML: {path}", field=str(path)) from e
    if not isinstance(data, dict):
        raise ConfigError("Config file must be a mapping/object at the top level.", field=str(path))
    return parse_settings(data)
