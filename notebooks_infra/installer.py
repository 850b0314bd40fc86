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

"""Sequential installation of platform dependencies with readiness gates."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from rich.panel import Panel

from notebooks_infra import console, info, success
from notebooks_infra.errors import CommandFailed, InstallFailure
from notebooks_infra.kubectl import Kubectl, WaitCondition


@dataclass(frozen=True)
class ConfigMapPatch:
    """Structured edit of one ConfigMap key followed by a rolling restart.

    Attributes:
        configmap: ConfigMap name.
        namespace: ConfigMap namespace.
        key: Data key holding the serialized configuration.
        transform: Pure function from the old value to the new value.
        restart_deployment: Deployment that consumes the ConfigMap.
        delay_seconds: Pause before reading the ConfigMap, for mesh propagation.
    """

    configmap: str
    namespace: str
    key: str
    transform: Callable[[str], str]
    restart_deployment: str | None = None
    delay_seconds: int = 0


@dataclass(frozen=True)
class InstallStep:
    """One node of the platform dependency chain.

    Attributes:
        name: Human-readable step name.
        apply_targets: Kustomize directories or remote URLs, applied in order.
        manifests: Inline manifests applied after the kustomize targets.
        settle_seconds: Pause between apply and the readiness gates.
        waits: Readiness gates that must all pass before the next step.
        patch: Optional ConfigMap patch applied once the gates pass.
    """

    name: str
    apply_targets: tuple[str, ...] = ()
    manifests: tuple[dict, ...] = ()
    settle_seconds: int = 0
    waits: tuple[WaitCondition, ...] = ()
    patch: ConfigMapPatch | None = None


class DependencyInstaller:
    """Apply install steps strictly in order, stopping at the first failure.

    Steps are never retried and nothing is rolled back; every apply is
    idempotent, so re-running the whole setup resumes safely.
    """

    def __init__(self, kubectl: Kubectl, sleep: Callable[[float], None] = time.sleep) -> None:
        self.kubectl = kubectl
        self._sleep = sleep

    def install_all(self, steps: list[InstallStep]) -> list[str]:
        """Install every step.

        Args:
            steps: Ordered dependency chain.

        Returns:
            Names of the installed steps, in order.

        Raises:
            InstallFailure: If an apply or patch fails.
            ReadinessTimeout: If a readiness gate times out.
        """
        console.print(Panel.fit("Installing platform dependencies", style="bold blue"))
        installed = []
        for step in steps:
            self.install(step)
            installed.append(step.name)
        success("Core platform dependencies installed")
        return installed

    def install(self, step: InstallStep) -> None:
        """Apply, gate, and optionally patch a single step."""
        info(f"Installing {step.name}...")
        try:
            for target in step.apply_targets:
                self.kubectl.apply_kustomize(target)
            if step.manifests:
                self.kubectl.apply_objects(*step.manifests)
        except CommandFailed as e:
            raise InstallFailure(f"Failed to apply {step.name}", e.details) from e

        if step.settle_seconds:
            info(f"Waiting {step.settle_seconds}s for {step.name} resources to be created...")
            self._sleep(step.settle_seconds)

        self._wait_all(step)

        if step.patch is not None:
            self._apply_patch(step, step.patch)
            self._wait_all(step)

        success(f"{step.name} installed and ready")

    def _wait_all(self, step: InstallStep) -> None:
        for condition in step.waits:
            info(f"Waiting for {condition.describe()}...")
            self.kubectl.wait(condition)

    def _apply_patch(self, step: InstallStep, patch: ConfigMapPatch) -> None:
        if patch.delay_seconds:
            info(f"Waiting {patch.delay_seconds}s for the service mesh to reconcile {step.name}...")
            self._sleep(patch.delay_seconds)

        info(f"Modifying {patch.namespace}/{patch.configmap} configmap...")
        try:
            live = self.kubectl.get_json("configmap", patch.configmap, patch.namespace)
            data = live.get("data") or {}
            if patch.key not in data:
                raise InstallFailure(f"ConfigMap {patch.namespace}/{patch.configmap} has no key '{patch.key}'")
            try:
                data[patch.key] = patch.transform(data[patch.key])
            except ValueError as e:
                raise InstallFailure(f"Cannot patch {patch.namespace}/{patch.configmap}: {e}") from e
            live["data"] = data
            self.kubectl.apply_objects(live)

            if patch.restart_deployment:
                info(f"Restarting {patch.restart_deployment} deployment to apply config changes...")
                self.kubectl.rollout_restart(patch.restart_deployment, patch.namespace)
        except CommandFailed as e:
            raise InstallFailure(f"Failed to patch {step.name} configuration", e.details) from e
        except ValueError as e:
            raise InstallFailure(f"Failed to read back {patch.namespace}/{patch.configmap}", str(e)) from e
