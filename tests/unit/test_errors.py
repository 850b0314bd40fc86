"""Unit tests for the setup exception hierarchy."""

import pytest

from notebooks_infra.errors import (
    CommandFailed,
    CredentialFailure,
    LoginFailed,
    MissingPrerequisite,
    NoContainerEngineFound,
    SetupError,
)


def test_setup_error_without_details():
    """Test that the message is used as-is without details."""
    err = SetupError("Cluster creation failed")
    assert str(err) == "Cluster creation failed"
    assert err.details is None


def test_setup_error_with_details():
    """Test that details are appended to the message."""
    err = SetupError("Cluster creation failed", "Is the container engine running?")
    assert str(err) == "Cluster creation failed\n\nDetails: Is the container engine running?"


def test_missing_prerequisite_lists_every_tool():
    """Test that all missing tools are reported together."""
    err = MissingPrerequisite(["go", "kind", "podman or docker"])
    assert err.missing == ["go", "kind", "podman or docker"]
    assert "go, kind, podman or docker" in str(err)


def test_no_container_engine_found_keeps_requirement():
    """Test that the unmet requirement is exposed for reporting."""
    err = NoContainerEngineFound("No container engine found", requirement="podman or docker")
    assert err.requirement == "podman or docker"
    assert isinstance(err, SetupError)


def test_command_failed_keeps_output_tail():
    """Test that only the last lines of output become the details."""
    output = "\n".join(f"line {i}" for i in range(1, 11))
    err = CommandFailed(["kubectl", "apply", "-k", "."], 1, output)
    assert err.exit_code == 1
    assert err.argv == ["kubectl", "apply", "-k", "."]
    assert "Command 'kubectl apply -k .' failed with exit code 1" in str(err)
    assert err.details == "\n".join(f"line {i}" for i in range(6, 11))


def test_command_failed_without_output():
    """Test that empty output produces no details."""
    err = CommandFailed(["false"], 1)
    assert err.details is None


def test_login_failed_is_credential_failure():
    """Test that login failures can be handled as credential failures."""
    with pytest.raises(CredentialFailure):
        raise LoginFailed("Failed to login to container registry: docker.io")
