# /*
# Copyright 2026 The Kubeflow Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""kind cluster lifecycle: list, delete, and create."""

from __future__ import annotations

import tempfile
from pathlib import Path

import yaml
from rich.panel import Panel

from notebooks_infra import console, info, success, warning
from notebooks_infra.config import ClusterSpec, EnvironmentConfig
from notebooks_infra.engine import ContainerEngine
from notebooks_infra.errors import ClusterOperationFailure
from notebooks_infra.prompts import Prompter
from notebooks_infra.runner import CommandRunner


def kind_config(spec: ClusterSpec) -> dict:
    """Build the kind cluster configuration document.

    A single control-plane node pinned to the node image, with the API
    server configured as a service-account token issuer.

    Args:
        spec: Cluster definition.

    Returns:
        kind ``Cluster`` config as a dictionary ready for YAML serialization.
    """
    cluster_configuration = {
        "kind": "ClusterConfiguration",
        "apiServer": {"extraArgs": dict(spec.apiserver_extra_args)},
    }
    return {
        "kind": "Cluster",
        "apiVersion": "kind.x-k8s.io/v1alpha4",
        "nodes": [
            {
                "role": "control-plane",
                "image": spec.node_image,
                "kubeadmConfigPatches": [yaml.safe_dump(cluster_configuration, sort_keys=False)],
            }
        ],
    }


class ClusterLifecycleManager:
    """Replace any existing kind clusters with a fresh one."""

    def __init__(
        self,
        runner: CommandRunner,
        engine: ContainerEngine,
        env: EnvironmentConfig,
        prompter: Prompter,
    ) -> None:
        self.runner = runner
        self.engine = engine
        self.env = env
        self.prompter = prompter

    def _kind(self, *args: str, combine_output: bool = True):
        return self.runner.run(["kind", *args], env=self.engine.kind_env(), combine_output=combine_output)

    def list_clusters(self) -> list[str]:
        """List kind clusters under the engine's provider binding.

        Raises:
            ClusterOperationFailure: If kind cannot list clusters.
        """
        # stderr carries provider notices and "No kind clusters found."
        result = self._kind("get", "clusters", combine_output=False)
        if not result.ok:
            raise ClusterOperationFailure("Failed to list kind clusters", result.output.strip() or None)
        return [line.strip() for line in result.output.splitlines() if line.strip()]

    def delete_cluster(self, name: str) -> None:
        """Delete one kind cluster.

        Raises:
            ClusterOperationFailure: If the deletion fails.
        """
        info(f"Deleting cluster: {name}")
        result = self._kind("delete", "cluster", "--name", name)
        if not result.ok:
            raise ClusterOperationFailure(f"Failed to delete kind cluster '{name}'", result.output.strip() or None)

    def create_cluster(self, spec: ClusterSpec) -> None:
        """Create the kind cluster from its rendered configuration.

        Raises:
            ClusterOperationFailure: If kind fails to create the cluster.
        """
        info(f"Creating kind cluster: {spec.name}")
        with tempfile.TemporaryDirectory(prefix="notebooks-kind-") as tmp_dir:
            config_file = Path(tmp_dir) / "kind-config.yaml"
            config_file.write_text(yaml.safe_dump(kind_config(spec), sort_keys=False))
            result = self._kind("create", "cluster", f"--name={spec.name}", f"--config={config_file}")
        if not result.ok:
            raise ClusterOperationFailure(f"Failed to create kind cluster '{spec.name}'",
                                          result.output.strip() or None)
        success("Kind cluster created successfully")

    def ensure_cluster(self, spec: ClusterSpec) -> None:
        """Clean up existing clusters (with confirmation) and create a new one.

        Declining the deletion keeps existing clusters; a kept cluster with
        the requested name is reused as-is instead of being created again.

        Args:
            spec: Cluster definition to create.

        Raises:
            ClusterOperationFailure: If listing, deleting, or creating fails.
        """
        console.print(Panel.fit("Preparing kind cluster", style="bold blue"))
        info("Checking for existing kind clusters...")
        existing = self.list_clusters()

        if not existing:
            info("No existing clusters found")
        else:
            warning("Found existing clusters:")
            for name in existing:
                console.print(f"    {name}", markup=False)
            if self.env.force or self.prompter.confirm("Do you want to delete existing clusters?"):
                info("Deleting existing clusters...")
                for name in existing:
                    self.delete_cluster(name)
                success("All existing clusters deleted")
            else:
                info("Skipping cluster deletion")
                if spec.name in existing:
                    warning(f"Reusing existing cluster: {spec.name}")
                    return

        self.create_cluster(spec)
