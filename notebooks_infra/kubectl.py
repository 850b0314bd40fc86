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

"""kubectl operations: apply, read back, restart, and readiness waits."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import yaml

from notebooks_infra.errors import ReadinessTimeout
from notebooks_infra.runner import CommandResult, CommandRunner


@dataclass(frozen=True)
class WaitCondition:
    """A readiness gate evaluated with ``kubectl wait``.

    Exactly one of *selector*, *name*, or *all_resources* identifies the
    resources to wait on.

    Attributes:
        resource: Resource type, e.g. ``pod`` or ``deployment``.
        namespace: Namespace of the resources, or None for cluster-scoped ones.
        condition: ``--for`` expression, e.g. ``condition=Ready``.
        selector: Label selector.
        name: Single resource name.
        all_resources: Wait on every resource of the type in the namespace.
        timeout: Seconds before the gate fails.
    """

    resource: str
    namespace: str | None = None
    condition: str = "condition=Ready"
    selector: str | None = None
    name: str | None = None
    all_resources: bool = False
    timeout: int = 300

    def __post_init__(self) -> None:
        targets = [self.selector is not None, self.name is not None, self.all_resources]
        if sum(targets) != 1:
            raise ValueError("WaitCondition needs exactly one of selector, name, or all_resources")

    def describe(self) -> str:
        target = self.name or (f"-l {self.selector}" if self.selector else "--all")
        where = f" -n {self.namespace}" if self.namespace else ""
        return f"{self.resource} {target}{where} ({self.condition}, {self.timeout}s)"

    def to_args(self) -> list[str]:
        args = ["wait", f"--for={self.condition}", self.resource]
        if self.name:
            args.append(self.name)
        elif self.selector:
            args += ["-l", self.selector]
        else:
            args.append("--all")
        if self.namespace:
            args += ["-n", self.namespace]
        return [*args, f"--timeout={self.timeout}s"]


class Kubectl:
    """Thin kubectl client over a CommandRunner."""

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def run(self, *args: str, input: str | None = None, cwd: Path | None = None,
            combine_output: bool = True) -> CommandResult:
        return self.runner.run(["kubectl", *args], input=input, cwd=cwd, combine_output=combine_output)

    def apply_kustomize(self, target: str | Path, cwd: Path | None = None) -> None:
        """Apply a kustomization directory or remote URL.

        Raises:
            CommandFailed: If kubectl rejects the kustomization.
        """
        self.run("apply", "-k", str(target), cwd=cwd).check()

    def apply_objects(self, *objects: dict) -> None:
        """Apply in-memory manifests through stdin.

        Raises:
            CommandFailed: If kubectl rejects the manifests.
        """
        document = yaml.safe_dump_all(objects, sort_keys=False)
        self.run("apply", "-f", "-", input=document).check()

    def get_json(self, kind: str, name: str, namespace: str) -> dict:
        """Read back a live resource as a dictionary.

        Raises:
            CommandFailed: If the resource cannot be read.
        """
        result = self.run("get", kind, name, "-n", namespace, "-o", "json", combine_output=False).check()
        return json.loads(result.output)

    def rollout_restart(self, deployment: str, namespace: str) -> None:
        """Trigger a rolling restart of a deployment.

        Raises:
            CommandFailed: If the restart cannot be triggered.
        """
        self.run("rollout", "restart", f"deployment/{deployment}", "-n", namespace).check()

    def wait(self, condition: WaitCondition) -> None:
        """Block on a readiness gate.

        Raises:
            ReadinessTimeout: If the condition is not met in time.
        """
        result = self.run(*condition.to_args())
        if not result.ok:
            raise ReadinessTimeout(
                f"Timed out waiting for {condition.describe()}",
                result.output.strip() or None,
            )

