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

"""Top-level sequencing of the setup stages."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from rich.panel import Panel
from rich.table import Table

from notebooks_infra import console, info, logger, success
from notebooks_infra.cluster import ClusterLifecycleManager
from notebooks_infra.config import ClusterSpec, EnvironmentConfig, SetupSettings
from notebooks_infra.constants import (
    DASHBOARD_URL,
    DEFAULT_PROFILE_OWNER,
    DEFAULT_PROFILE_PASSWORD,
    INGRESS_PORT_MAPPING,
    INGRESS_SERVICE,
    NS_ISTIO_SYSTEM,
)
from notebooks_infra.credentials import RegistryCredentialManager
from notebooks_infra.dependencies import platform_steps
from notebooks_infra.engine import ContainerEngine, create_engine
from notebooks_infra.installer import DependencyInstaller
from notebooks_infra.kubectl import Kubectl
from notebooks_infra.pipeline import ComponentBuildDeployPipeline, default_components
from notebooks_infra.prerequisites import PrerequisiteChecker, Toolchain, check_open_file_limits
from notebooks_infra.prompts import Prompter
from notebooks_infra.retry import RetryExecutor
from notebooks_infra.runner import CommandRunner


@dataclass
class SetupContext:
    """Everything a stage needs; stages record resolved tools here for later ones.

    Attributes:
        settings: Resolved setup settings.
        env: Run-wide options.
        cluster: kind cluster definition.
        runner: External command runner.
        prompter: Operator interaction.
        sleep: Sleep function used for backoff and propagation delays.
        toolchain: Resolved tools, set by the prerequisites stage.
        engine: Container engine adapter, set by the prerequisites stage.
    """

    settings: SetupSettings
    env: EnvironmentConfig
    cluster: ClusterSpec
    runner: CommandRunner
    prompter: Prompter
    sleep: Callable[[float], None] = time.sleep
    toolchain: Toolchain | None = None
    engine: ContainerEngine | None = None

    def require_engine(self) -> ContainerEngine:
        if self.engine is None:
            raise RuntimeError("Container engine is not resolved; run the prerequisites stage first")
        return self.engine


@dataclass
class StepResult:
    """Outcome of one stage."""

    name: str
    detail: str = ""
    elapsed: float = field(default=0.0)


class Step(Protocol):
    """A setup stage."""

    name: str

    def run(self, ctx: SetupContext) -> StepResult:
        ...


class ResourceLimitsStep:
    name = "resource-limits"

    def run(self, ctx: SetupContext) -> StepResult:
        check_open_file_limits(ctx.env, ctx.prompter)
        return StepResult(self.name, "open-file limits checked")


class PrerequisitesStep:
    name = "prerequisites"

    def run(self, ctx: SetupContext) -> StepResult:
        ctx.toolchain = PrerequisiteChecker(ctx.runner).verify(ctx.settings.container_engine)
        retry = RetryExecutor(ctx.runner, sleep=ctx.sleep)
        ctx.engine = create_engine(ctx.toolchain.engine, ctx.runner, retry)
        return StepResult(self.name, f"engine={ctx.toolchain.engine}, make={ctx.toolchain.make}")


class ClusterStep:
    name = "cluster"

    def run(self, ctx: SetupContext) -> StepResult:
        manager = ClusterLifecycleManager(ctx.runner, ctx.require_engine(), ctx.env, ctx.prompter)
        manager.ensure_cluster(ctx.cluster)
        return StepResult(self.name, f"kind cluster '{ctx.cluster.name}'")


class RegistryLoginStep:
    name = "registry-login"

    def run(self, ctx: SetupContext) -> StepResult:
        console.print(Panel.fit("Container registry login", style="bold blue"))
        registry = ctx.settings.login_registry
        RegistryCredentialManager(ctx.require_engine(), ctx.env, ctx.prompter).ensure_login(registry)
        return StepResult(self.name, registry)


class PlatformDependenciesStep:
    name = "platform-dependencies"

    def run(self, ctx: SetupContext) -> StepResult:
        installer = DependencyInstaller(Kubectl(ctx.runner), sleep=ctx.sleep)
        installed = installer.install_all(platform_steps(ctx.settings.manifests_repo))
        return StepResult(self.name, ", ".join(installed))


class ComponentsStep:
    name = "components"

    def run(self, ctx: SetupContext) -> StepResult:
        pipeline = ComponentBuildDeployPipeline(
            ctx.runner,
            ctx.require_engine(),
            Kubectl(ctx.runner),
            ctx.env,
            ctx.cluster.name,
            make=ctx.toolchain.make if ctx.toolchain else "make",
            sleep=ctx.sleep,
        )
        results = pipeline.run_all(default_components(ctx.settings.project_root))
        return StepResult(self.name, ", ".join(
            f"{r.name}{'' if r.built else ' (cached)'}" for r in results
        ))


def default_steps() -> list[Step]:
    """Stages in execution order."""
    return [
        ResourceLimitsStep(),
        PrerequisitesStep(),
        ClusterStep(),
        RegistryLoginStep(),
        PlatformDependenciesStep(),
        ComponentsStep(),
    ]


class Orchestrator:
    """Run stages in order; the first failure aborts the run.

    Nothing is rolled back on failure. Every stage is idempotent, so the
    recovery procedure is to run the whole setup again.
    """

    def __init__(self, ctx: SetupContext, steps: list[Step] | None = None) -> None:
        self.ctx = ctx
        self.steps = steps if steps is not None else default_steps()

    def run(self) -> list[StepResult]:
        """Execute every stage.

        Returns:
            Results of all stages, in order.

        Raises:
            SetupError: From the first failing stage.
        """
        info("Starting kubeflow notebooks setup...")
        results = []
        for step in self.steps:
            logger.debug("Starting stage %s", step.name)
            started = time.monotonic()
            result = step.run(self.ctx)
            result.elapsed = time.monotonic() - started
            results.append(result)
        success("kubeflow notebooks setup completed successfully!")
        return results


def report(results: list[StepResult]) -> None:
    """Print the stage summary and dashboard access instructions."""
    table = Table(title="Setup summary")
    table.add_column("Stage", style="cyan")
    table.add_column("Result")
    table.add_column("Elapsed", justify="right")
    for result in results:
        table.add_row(result.name, result.detail, f"{result.elapsed:.1f}s")
    console.print(table)

    console.print(Panel.fit("Accessing the Central Dashboard", style="bold blue"))
    info("To access the Central Dashboard, you must first run:")
    console.print(f"  kubectl -n {NS_ISTIO_SYSTEM} port-forward {INGRESS_SERVICE} {INGRESS_PORT_MAPPING}",
                  markup=False)
    info(f"Then access the dashboard at: {DASHBOARD_URL}")
    info("When prompted for authentication, use these credentials:")
    console.print(f"  Username: {DEFAULT_PROFILE_OWNER}", markup=False)
    console.print(f"  Password: {DEFAULT_PROFILE_PASSWORD}", markup=False)
