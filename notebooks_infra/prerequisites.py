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

"""Required tool verification and open-file limit checks."""

from __future__ import annotations

import resource
from collections.abc import Callable
from dataclasses import dataclass

from rich.panel import Panel

from notebooks_infra import console, info, success, warning
from notebooks_infra.config import EnvironmentConfig
from notebooks_infra.constants import MIN_HARD_NOFILE, MIN_SOFT_NOFILE
from notebooks_infra.engine import detect_engine
from notebooks_infra.errors import InsufficientResourceLimits, MissingPrerequisite, NoContainerEngineFound
from notebooks_infra.prompts import Prompter
from notebooks_infra.runner import CommandRunner

VERSION_ARGS: dict[str, tuple[str, ...]] = {
    "go": ("version",),
    "node": ("--version",),
    "kubectl": ("version", "--client"),
    "podman": ("version",),
    "docker": ("version",),
    "kind": ("version",),
    "gmake": ("--version",),
    "make": ("--version",),
    "kustomize": ("version",),
}

REQUIRED_BEFORE_ENGINE = ("go", "node", "kubectl")
REQUIRED_AFTER_ENGINE = ("kind",)
MAKE_CANDIDATES = ("gmake", "make")


@dataclass(frozen=True)
class Toolchain:
    """Tools resolved during verification.

    Attributes:
        engine: Container engine name (``podman`` or ``docker``).
        make: GNU make executable, ``gmake`` when available.
    """

    engine: str
    make: str


class PrerequisiteChecker:
    """Verify every required tool, reporting all missing ones together."""

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def _report_version(self, tool: str, label: str | None = None) -> None:
        result = self.runner.run([tool, *VERSION_ARGS.get(tool, ("--version",))])
        first_line = result.output.strip().splitlines()[0] if result.output.strip() else "unknown version"
        success(f"{label or tool} found: {first_line}")

    def _check(self, tool: str, missing: list[str]) -> bool:
        if not self.runner.which(tool):
            missing.append(tool)
            return False
        self._report_version(tool)
        return True

    def verify(self, explicit_engine: str | None) -> Toolchain:
        """Verify required applications.

        Args:
            explicit_engine: CONTAINER_ENGINE value, or None to auto-detect.

        Returns:
            Resolved Toolchain.

        Raises:
            MissingPrerequisite: If any required application is missing.
        """
        console.print(Panel.fit("Verifying required applications", style="bold blue"))
        missing: list[str] = []

        for tool in REQUIRED_BEFORE_ENGINE:
            self._check(tool, missing)

        engine = ""
        try:
            engine = detect_engine(explicit_engine, self.runner.which)
            self._report_version(engine)
        except NoContainerEngineFound as e:
            warning(e.message)
            missing.append(e.requirement)

        for tool in REQUIRED_AFTER_ENGINE:
            self._check(tool, missing)

        make = next((m for m in MAKE_CANDIDATES if self.runner.which(m)), "")
        if make:
            self._report_version(make, "GNU make" if make == "gmake" else None)
        else:
            missing.append("make")

        self._check("kustomize", missing)

        if missing:
            raise MissingPrerequisite(missing)
        success("All required tools are available")
        return Toolchain(engine=engine, make=make)


def _format_limit(value: int) -> str:
    return "unlimited" if value == resource.RLIM_INFINITY else str(value)


def open_file_limit_issues(soft: int, hard: int) -> list[str]:
    """Describe open-file limits that are below the recommended minimums.

    Args:
        soft: Soft RLIMIT_NOFILE value.
        hard: Hard RLIMIT_NOFILE value.

    Returns:
        One message per limit that is too low; empty when both are fine.
    """
    issues = []
    if soft != resource.RLIM_INFINITY and soft < MIN_SOFT_NOFILE:
        issues.append(f"Soft limit ({soft}) is below recommended minimum of {MIN_SOFT_NOFILE}; "
                      f"increase it with: ulimit -Sn {MIN_SOFT_NOFILE}")
    if hard != resource.RLIM_INFINITY and hard < MIN_HARD_NOFILE:
        issues.append(f"Hard limit ({hard}) is below recommended minimum of {MIN_HARD_NOFILE}; "
                      f"increase it with: ulimit -Hn {MIN_HARD_NOFILE}")
    return issues


def check_open_file_limits(
    env: EnvironmentConfig,
    prompter: Prompter,
    getrlimit: Callable[[int], tuple[int, int]] = resource.getrlimit,
) -> None:
    """Warn about low open-file limits; ask to continue unless in force mode.

    Raises:
        InsufficientResourceLimits: If the operator declines to continue.
    """
    info("Checking ulimit settings...")
    soft, hard = getrlimit(resource.RLIMIT_NOFILE)
    info(f"Current ulimit settings: soft={_format_limit(soft)}, hard={_format_limit(hard)}")

    issues = open_file_limit_issues(soft, hard)
    if not issues:
        success("ulimit settings are sufficient for kubeflow deployment")
        return

    for issue in issues:
        warning(issue)
    warning("The currently defined limits may cause 'too many open files' errors during kubeflow deployment")

    if env.force:
        info("Force mode enabled, continuing with current ulimit settings")
        return
    if not prompter.confirm("Do you want to continue with the current ulimit settings?"):
        raise InsufficientResourceLimits("Aborting setup due to insufficient ulimit settings")
    info("Continuing with current ulimit settings")
