"""Unit tests for registry credential handling."""

import json

import pytest
from conftest import ScriptedPrompter

from notebooks_infra.credentials import CredentialState, RegistryCredentialManager, registry_variants
from notebooks_infra.engine import PodmanEngine
from notebooks_infra.errors import CredentialFailure, LoginFailed


class StoreEngine(PodmanEngine):
    """Podman adapter reading credentials from explicit files."""

    def __init__(self, runner, stores):
        super().__init__(runner)
        self.stores = stores

    def credential_stores(self):
        return self.stores


@pytest.fixture
def stores(tmp_path):
    return [tmp_path / "auth.json", tmp_path / "config.json"]


def _write_auths(path, *registries, section="auths"):
    path.write_text(json.dumps({section: {registry: {"auth": "dXNlcjpwYXNz"} for registry in registries}}))


def test_registry_variants_for_docker_hub():
    variants = registry_variants("docker.io")
    assert variants[0] == "docker.io"
    assert set(variants) == {"docker.io", "index.docker.io", "registry-1.docker.io", "https://index.docker.io/v1/"}


def test_registry_variants_for_other_registry():
    assert registry_variants("quay.io") == ["quay.io"]


def test_found_under_alias_skips_prompt(fake_runner, env, stores):
    """Test that a legacy Docker Hub key satisfies a docker.io check."""
    _write_auths(stores[1], "https://index.docker.io/v1/")
    prompter = ScriptedPrompter()
    manager = RegistryCredentialManager(StoreEngine(fake_runner, stores), env, prompter)

    manager.ensure_login("docker.io")

    assert prompter.questions == []
    assert fake_runner.calls == []


def test_credential_helper_counts_as_found(fake_runner, env, stores):
    _write_auths(stores[0], "quay.io", section="credHelpers")
    manager = RegistryCredentialManager(StoreEngine(fake_runner, stores), env, ScriptedPrompter())
    assert manager.check("quay.io") is CredentialState.FOUND


def test_unreadable_store_is_ignored(fake_runner, env, stores):
    stores[0].write_text("{not json")
    manager = RegistryCredentialManager(StoreEngine(fake_runner, stores), env, ScriptedPrompter())
    assert manager.check("docker.io") is CredentialState.NOT_FOUND


def test_force_mode_never_prompts(fake_runner, force_env, stores):
    """Test that missing credentials fail in force mode without asking."""
    prompter = ScriptedPrompter()
    manager = RegistryCredentialManager(StoreEngine(fake_runner, stores), force_env, prompter)

    with pytest.raises(CredentialFailure):
        manager.ensure_login("docker.io")
    assert prompter.questions == []
    assert fake_runner.calls == []


def test_prompted_credentials_are_used_for_login(fake_runner, env, stores):
    prompter = ScriptedPrompter(answers=["alice", "s3cret"])
    manager = RegistryCredentialManager(StoreEngine(fake_runner, stores), env, prompter)

    manager.ensure_login("docker.io")

    (call,) = fake_runner.calls
    assert call.argv == ("podman", "login", "--username", "alice", "--password-stdin", "docker.io")
    assert call.kwargs["input"] == "s3cret"


def test_empty_answers_mean_anonymous_access(fake_runner, env, stores):
    manager = RegistryCredentialManager(StoreEngine(fake_runner, stores), env, ScriptedPrompter(answers=["", ""]))
    manager.ensure_login("docker.io")
    assert fake_runner.calls == []


def test_rejected_login_propagates(fake_runner, env, stores):
    fake_runner.on("podman", "login", exit_code=125, output="unauthorized")
    manager = RegistryCredentialManager(
        StoreEngine(fake_runner, stores), env, ScriptedPrompter(answers=["alice", "wrong"]),
    )
    with pytest.raises(LoginFailed):
        manager.ensure_login("docker.io")
