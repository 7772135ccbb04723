from pathlib import Path

import pytest

from provisioner.config import DEFAULT_ORGANIZATION, DEFAULT_REPOSITORY, Settings, load_settings
from provisioner.errors import ConfigError


def test_missing_default_file_gives_defaults(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    s = load_settings()

    assert s.organization == DEFAULT_ORGANIZATION
    assert s.repository == DEFAULT_REPOSITORY
    assert s.summary_file == Path(".github-package-config")


def test_yaml_values_and_home_expansion(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    cfg = tmp_path / "gpr-provision.yaml"
    cfg.write_text(
        "organization: acme\n"
        "repository: pkg-a\n"
        "gradle_properties: ~/custom/gradle.properties\n"
        "unknown_key: ignored\n"
    )

    s = load_settings(cfg)

    assert s.organization == "acme"
    assert s.repository == "pkg-a"
    assert s.gradle_properties == tmp_path / "custom" / "gradle.properties"


def test_explicit_missing_file_is_an_error(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "nope.yaml")


@pytest.mark.parametrize("body", ["- a\n- b\n", "organization: [1, 2]\n", "repository: ''\n", "organization: {\n"])
def test_invalid_config_is_rejected(tmp_path: Path, body: str):
    cfg = tmp_path / "bad.yaml"
    cfg.write_text(body)

    with pytest.raises(ConfigError):
        load_settings(cfg)


def test_overrides_skip_none():
    s = Settings().with_overrides(organization="acme", repository=None)

    assert s.organization == "acme"
    assert s.repository == DEFAULT_REPOSITORY
