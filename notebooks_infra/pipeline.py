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

"""Per-component image build (cache-aware), cluster load, deploy, and validation."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from rich.panel import Panel

from notebooks_infra import console, info, success
from notebooks_infra.config import EnvironmentConfig
from notebooks_infra.constants import (
    MESH_PROPAGATION_SECONDS,
    NS_CONTROLLER,
    NS_WORKSPACES,
    REL_BACKEND_DIR,
    REL_CONTROLLER_DIR,
    REL_FRONTEND_DIR,
    REL_FRONTEND_OVERLAY,
)
from notebooks_infra.engine import ContainerEngine
from notebooks_infra.errors import BuildFailure, CommandFailed, DeployFailure
from notebooks_infra.kubectl import Kubectl, WaitCondition
from notebooks_infra.runner import CommandRunner
from notebooks_infra.tagging import ImageTag, image_tag


class BuildMethod(str, Enum):
    MAKE = "make"
    ENGINE = "engine"


@dataclass(frozen=True)
class ComponentSpec:
    """A buildable application component.

    Attributes:
        name: Component name, also the image tag prefix.
        source_dir: Component sources and build context.
        deployment: Deployment restarted after each deploy.
        namespace: Namespace of the deployment and its pods.
        readiness_selector: Label selector of the pods gating readiness.
        readiness_timeout: Seconds to wait for the pods.
        excluded: Subpaths left out of the content hash.
        build: Build through the component Makefile or the engine CLI.
        dockerfile: Dockerfile for engine builds.
        install_crds: Run ``make install`` before deploying.
        kustomize_overlay: Overlay (relative to *source_dir*) deployed with kustomize
            instead of ``make deploy``.
        kustomize_image: Image name rewritten in the overlay.
        mesh_delay_seconds: Pause after deploy for service mesh routing to settle.
    """

    name: str
    source_dir: Path
    deployment: str
    namespace: str
    readiness_selector: str
    readiness_timeout: int = 300
    excluded: tuple[str, ...] = ()
    build: BuildMethod = BuildMethod.MAKE
    dockerfile: str = "Dockerfile"
    install_crds: bool = False
    kustomize_overlay: str | None = None
    kustomize_image: str | None = None
    mesh_delay_seconds: int = 0


@dataclass
class ComponentResult:
    """Outcome of one component pass."""

    name: str
    image: str
    built: bool
    elapsed: float = field(default=0.0)


def default_components(project_root: Path) -> list[ComponentSpec]:
    """Components in deployment order; later ones rely on earlier ones being reachable.

    Args:
        project_root: Checkout containing the ``workspaces/`` sources.

    Returns:
        Controller, backend, and frontend specs.
    """
    return [
        ComponentSpec(
            name="controller",
            source_dir=project_root / REL_CONTROLLER_DIR,
            deployment="workspace-controller-controller-manager",
            namespace=NS_CONTROLLER,
            readiness_selector="control-plane=controller-manager",
            install_crds=True,
        ),
        ComponentSpec(
            name="backend",
            source_dir=project_root / REL_BACKEND_DIR,
            deployment="workspaces-backend",
            namespace=NS_WORKSPACES,
            readiness_selector="app.kubernetes.io/component=api",
            mesh_delay_seconds=MESH_PROPAGATION_SECONDS,
        ),
        ComponentSpec(
            name="frontend",
            source_dir=project_root / REL_FRONTEND_DIR,
            deployment="workspaces-frontend",
            namespace=NS_WORKSPACES,
            readiness_selector="app.kubernetes.io/component=ui",
            excluded=("node_modules", "dist"),
            build=BuildMethod.ENGINE,
            kustomize_overlay=REL_FRONTEND_OVERLAY,
            kustomize_image="workspaces-frontend",
            mesh_delay_seconds=MESH_PROPAGATION_SECONDS,
        ),
    ]


class ComponentBuildDeployPipeline:
    """Build, load, deploy, restart, and validate application components in order."""

    def __init__(
        self,
        runner: CommandRunner,
        engine: ContainerEngine,
        kubectl: Kubectl,
        env: EnvironmentConfig,
        cluster_name: str,
        make: str = "make",
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.runner = runner
        self.engine = engine
        self.kubectl = kubectl
        self.env = env
        self.cluster_name = cluster_name
        self.make = make
        self._sleep = sleep

    def run_all(self, components: list[ComponentSpec]) -> list[ComponentResult]:
        """Process components sequentially, aborting at the first failure."""
        console.print(Panel.fit("Building and deploying notebooks components", style="bold blue"))
        info(f"Using image registry: {self.env.registry or '(none)'}")
        info(f"Using tag suffix: {self.env.tag_suffix}")
        results = [self.build_deploy_validate(component) for component in components]
        success("All components built, deployed, and validated")
        return results

    def build_deploy_validate(self, component: ComponentSpec) -> ComponentResult:
        """Run the full pass for one component.

        Args:
            component: Component to process.

        Returns:
            ComponentResult with the deployed image and whether it was rebuilt.

        Raises:
            BuildFailure: If the image cannot be built.
            ImageTransferFailure: If the image cannot be loaded into the cluster.
            DeployFailure: If deploying or restarting fails.
            ReadinessTimeout: If the pods never become ready.
        """
        started = time.monotonic()
        info(f"Building {component.name}...")
        tag = image_tag(component, self.env)
        info(f"Generated image tag: {tag}")

        built = self.build(component, tag)
        self.engine.transfer_image_to_cluster(str(tag), self.cluster_name)
        self.deploy(component, tag)
        self.validate(component)

        success(f"{component.name.capitalize()} built, deployed, and validated")
        return ComponentResult(component.name, str(tag), built, time.monotonic() - started)

    def build(self, component: ComponentSpec, tag: ImageTag) -> bool:
        """Build the image unless it is cached locally; force mode always rebuilds.

        Returns:
            True if a build ran, False on a cache hit.
        """
        exists = self.engine.image_exists_locally(str(tag))
        info(f"Image {'exists' if exists else 'not found'} locally: {tag}")
        if exists and not self.env.force:
            info(f"{component.name.capitalize()} image already exists locally, skipping build")
            return False

        if self.env.force:
            info(f"Force mode enabled, rebuilding {component.name} image without cache")
        else:
            info(f"Building {component.name} image...")

        if component.build is BuildMethod.ENGINE:
            self.engine.build_image(str(tag), component.source_dir,
                                    dockerfile=component.dockerfile, no_cache=self.env.force)
            return True

        make_env = {"IMG": str(tag), "CONTAINER_TOOL": self.engine.name}
        if self.env.force:
            make_env.update({"DOCKER_BUILDKIT": "1", "CONTAINER_BUILD_ARGS": "--no-cache"})
        result = self.engine.retry.run([self.make, "docker-build"], cwd=component.source_dir, env=make_env)
        if not result.ok:
            raise BuildFailure(f"Failed to build {component.name} image {tag}",
                               result.output.strip()[-500:] or None)
        return True

    def deploy(self, component: ComponentSpec, tag: ImageTag) -> None:
        """Deploy the component manifests referencing *tag* and restart its deployment."""
        info(f"Deploying {component.name}...")
        try:
            if component.kustomize_overlay:
                overlay = component.source_dir / component.kustomize_overlay
                self.runner.run_checked(
                    ["kustomize", "edit", "set", "image", f"{component.kustomize_image}={tag}"], cwd=overlay,
                )
                self.kubectl.apply_kustomize(overlay)
            else:
                if component.install_crds:
                    info(f"Installing {component.name}...")
                    self.runner.run_checked([self.make, "install"], cwd=component.source_dir)
                self.runner.run_checked([self.make, "deploy"], cwd=component.source_dir, env={"IMG": str(tag)})

            if component.mesh_delay_seconds:
                info(f"Waiting {component.mesh_delay_seconds}s for Istio to process "
                     f"{component.name} VirtualService...")
                self._sleep(component.mesh_delay_seconds)

            info(f"Restarting {component.name} deployment...")
            self.kubectl.rollout_restart(component.deployment, component.namespace)
        except CommandFailed as e:
            raise DeployFailure(f"Failed to deploy {component.name}", e.details) from e

    def validate(self, component: ComponentSpec) -> None:
        """Block until the component's pods are ready."""
        info(f"Validating {component.name} deployment...")
        self.kubectl.wait(WaitCondition(
            "pod",
            component.namespace,
            selector=component.readiness_selector,
            timeout=component.readiness_timeout,
        ))
