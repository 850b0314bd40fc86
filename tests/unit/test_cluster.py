"""Unit tests for kind cluster lifecycle management."""

import os

import pytest
import yaml
from conftest import ScriptedPrompter

from notebooks_infra.cluster import ClusterLifecycleManager, kind_config
from notebooks_infra.config import ClusterSpec
from notebooks_infra.constants import KIND_NODE_IMAGE
from notebooks_infra.engine import PodmanEngine
from notebooks_infra.errors import ClusterOperationFailure
from notebooks_infra.runner import CommandRunner

NO_CLUSTERS = ""


def _manager(runner, env, prompter):
    return ClusterLifecycleManager(runner, PodmanEngine(runner), env, prompter)


def test_kind_config():
    """Test the single-node config with the service-account issuer flags."""
    config = kind_config(ClusterSpec())
    (node,) = config["nodes"]
    assert config["kind"] == "Cluster"
    assert node["role"] == "control-plane"
    assert node["image"] == KIND_NODE_IMAGE
    patch = yaml.safe_load(node["kubeadmConfigPatches"][0])
    assert patch["kind"] == "ClusterConfiguration"
    assert patch["apiServer"]["extraArgs"] == {
        "service-account-issuer": "https://kubernetes.default.svc",
        "service-account-signing-key-file": "/etc/kubernetes/pki/sa.key",
    }


def test_list_clusters(fake_runner, env):
    fake_runner.on("kind", "get", "clusters", output="kubeflow\nother\n")
    assert _manager(fake_runner, env, ScriptedPrompter()).list_clusters() == ["kubeflow", "other"]
    assert fake_runner.calls[0].env == {"KIND_EXPERIMENTAL_PROVIDER": "podman"}
    assert fake_runner.calls[0].kwargs["combine_output"] is False


def test_provider_notices_are_not_cluster_names(tmp_path, monkeypatch, env):
    """Test that kind's stderr chatter never shows up as an existing cluster."""
    kind = tmp_path / "kind"
    kind.write_text(
        "#!/bin/sh\n"
        "echo 'enabling experimental podman provider' >&2\n"
        "echo 'No kind clusters found.' >&2\n"
    )
    kind.chmod(0o755)
    monkeypatch.setenv("PATH", f"{tmp_path}{os.pathsep}{os.environ['PATH']}")
    runner = CommandRunner()

    assert _manager(runner, env, ScriptedPrompter()).list_clusters() == []


def test_no_clusters_creates_without_prompt(fake_runner, env):
    """Test that an empty cluster list goes straight to creation."""
    written = []

    def capture_config(argv):
        config_arg = next(arg for arg in argv if arg.startswith("--config="))
        with open(config_arg.split("=", 1)[1]) as f:
            written.append(yaml.safe_load(f))

    fake_runner.on("kind", "get", "clusters", output=NO_CLUSTERS)
    fake_runner.on("kind", "create", "cluster", callback=capture_config)
    prompter = ScriptedPrompter()

    _manager(fake_runner, env, prompter).ensure_cluster(ClusterSpec())

    assert prompter.questions == []
    (create,) = fake_runner.calls_to("kind", "create", "cluster")
    assert "--name=kubeflow" in create.argv
    assert written == [kind_config(ClusterSpec())]
    assert fake_runner.calls_to("kind", "delete") == []


def test_confirmed_deletion_removes_every_cluster(fake_runner, env):
    fake_runner.on("kind", "get", "clusters", output="kubeflow\nother\n")
    _manager(fake_runner, env, ScriptedPrompter(confirms=[True])).ensure_cluster(ClusterSpec())

    deletes = [call.argv for call in fake_runner.calls_to("kind", "delete")]
    assert deletes == [
        ("kind", "delete", "cluster", "--name", "kubeflow"),
        ("kind", "delete", "cluster", "--name", "other"),
    ]
    assert len(fake_runner.calls_to("kind", "create")) == 1


def test_force_deletes_without_prompt(fake_runner, force_env):
    fake_runner.on("kind", "get", "clusters", output="old\n")
    prompter = ScriptedPrompter()
    _manager(fake_runner, force_env, prompter).ensure_cluster(ClusterSpec())
    assert prompter.questions == []
    assert len(fake_runner.calls_to("kind", "delete")) == 1
    assert len(fake_runner.calls_to("kind", "create")) == 1


def test_declined_deletion_reuses_same_named_cluster(fake_runner, env):
    fake_runner.on("kind", "get", "clusters", output="kubeflow\n")
    _manager(fake_runner, env, ScriptedPrompter(confirms=[False])).ensure_cluster(ClusterSpec())
    assert fake_runner.calls_to("kind", "delete") == []
    assert fake_runner.calls_to("kind", "create") == []


def test_declined_deletion_keeps_others_and_creates(fake_runner, env):
    fake_runner.on("kind", "get", "clusters", output="other\n")
    _manager(fake_runner, env, ScriptedPrompter(confirms=[False])).ensure_cluster(ClusterSpec())
    assert fake_runner.calls_to("kind", "delete") == []
    assert len(fake_runner.calls_to("kind", "create")) == 1


def test_list_failure(fake_runner, env):
    fake_runner.on("kind", "get", "clusters", exit_code=1, output="failed to list nodes")
    with pytest.raises(ClusterOperationFailure):
        _manager(fake_runner, env, ScriptedPrompter()).ensure_cluster(ClusterSpec())


def test_delete_failure_stops_before_create(fake_runner, force_env):
    fake_runner.on("kind", "get", "clusters", output="old\n")
    fake_runner.on("kind", "delete", exit_code=1, output="permission denied")
    with pytest.raises(ClusterOperationFailure):
        _manager(fake_runner, force_env, ScriptedPrompter()).ensure_cluster(ClusterSpec())
    assert fake_runner.calls_to("kind", "create") == []


def test_create_failure(fake_runner, env):
    fake_runner.on("kind", "get", "clusters", output=NO_CLUSTERS)
    fake_runner.on("kind", "create", exit_code=1, output="node(s) already exist for a cluster")
    with pytest.raises(ClusterOperationFailure) as exc_info:
        _manager(fake_runner, env, ScriptedPrompter()).ensure_cluster(ClusterSpec())
    assert "already exist" in exc_info.value.details
