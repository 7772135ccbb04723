import pytest

from conftest import TOKEN, scripted
from provisioner.config_merger import read_properties, read_summary
from provisioner.errors import AuthenticationError, ResolutionError
from provisioner.models import Visibility
from provisioner.workflow import run_setup


def _token(value=TOKEN):
    return lambda: value


def test_member_org_with_new_repository(provider, settings):
    provider.orgs.add("acme")
    provider.memberships.add("acme")

    result = run_setup(provider, settings, scripted(True), _token())

    assert result.repository.exists is True
    assert result.repository.visibility is Visibility.PRIVATE
    creates = [c for c in provider.calls if c[0] == "create_repo"]
    assert len(creates) == 1
    assert creates[0][3].visibility is Visibility.PRIVATE
    assert creates[0][3].auto_init is True
    assert settings.maven_settings.is_file()
    assert read_summary(settings.summary_file)["GITHUB_ORG"] == "acme"


def test_missing_org_declined_stops_before_any_repository_or_config_work(provider, settings):
    with pytest.raises(ResolutionError):
        run_setup(provider, settings, scripted(False), _token())

    assert provider.call_names() == ["whoami", "org_exists"]
    assert not settings.maven_settings.exists()
    assert not settings.gradle_properties.exists()
    assert not settings.summary_file.exists()


def test_token_with_only_repo_scope_still_writes_both_documents(provider, settings):
    provider.orgs.add("acme")
    provider.memberships.add("acme")
    provider.repos[("acme", "pkg-a")] = Visibility.PRIVATE
    provider.tokens["ghp_repo_only"] = ("octocat", frozenset({"repo"}))

    result = run_setup(provider, settings, scripted(), _token("ghp_repo_only"))

    assert set(result.scopes.missing_required) == {"write:packages", "read:packages"}
    assert any("write:packages" in w for w in result.warnings)
    assert any("read:packages" in w for w in result.warnings)
    assert "ghp_repo_only" in settings.maven_settings.read_text()
    assert read_properties(settings.gradle_properties)["gpr.key"] == "ghp_repo_only"


def test_invalid_token_aborts_before_writing(provider, settings):
    provider.orgs.add("acme")
    provider.repos[("acme", "pkg-a")] = Visibility.PRIVATE

    with pytest.raises(AuthenticationError):
        run_setup(provider, settings, scripted(), _token("ghp_nope"))

    assert not settings.maven_settings.exists()
    assert not settings.gradle_properties.exists()


def test_declined_repository_creation_still_configures(provider, settings):
    provider.orgs.add("acme")
    provider.memberships.add("acme")

    result = run_setup(provider, settings, scripted(False), _token())

    assert result.repository.exists is False
    assert any("does not exist" in w for w in result.warnings)
    assert settings.gradle_properties.is_file()


def test_personal_fallback_retargets_pom(provider, settings):
    settings.pom_file.write_text(
        '<project xmlns="http://maven.apache.org/POM/4.0.0"><distributionManagement><repository>'
        "<id>github-alphanovatech</id><url>https://maven.pkg.github.com/alphanovatech/flatbuffers-java</url>"
        "</repository></distributionManagement></project>"
    )

    result = run_setup(provider, settings, scripted(True, True), _token())

    assert result.identity.account_name == "octocat"
    assert settings.pom_file in result.written
    assert "github-octocat" in settings.pom_file.read_text()
    assert "https://maven.pkg.github.com/octocat/pkg-a" in settings.pom_file.read_text()


def test_rerun_is_idempotent(provider, settings):
    provider.orgs.add("acme")
    provider.memberships.add("acme")
    provider.repos[("acme", "pkg-a")] = Visibility.PRIVATE
    settings.gradle_properties.parent.mkdir(parents=True)
    settings.gradle_properties.write_text("foo=bar\n")

    run_setup(provider, settings, scripted(), _token())
    first = [p.read_bytes() for p in (settings.maven_settings, settings.gradle_properties, settings.summary_file)]
    run_setup(provider, settings, scripted(), _token())
    second = [p.read_bytes() for p in (settings.maven_settings, settings.gradle_properties, settings.summary_file)]

    assert first == second
    assert read_properties(settings.gradle_properties)["foo"] == "bar"
