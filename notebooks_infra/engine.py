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

"""Container engine adapters for Podman and Docker."""

from __future__ import annotations

import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import docker
from docker.errors import DockerException, ImageNotFound

from notebooks_infra import info, logger, success
from notebooks_infra.constants import (
    ENGINE_DOCKER,
    ENGINE_PODMAN,
    ENGINE_SEARCH_ORDER,
    KIND_PROVIDER_ENV,
)
from notebooks_infra.errors import (
    BuildFailure,
    ContainerEngineError,
    ImageTransferFailure,
    LoginFailed,
    NoContainerEngineFound,
)
from notebooks_infra.retry import RetryExecutor
from notebooks_infra.runner import CommandRunner


@dataclass
class CredentialSet:
    """Registry username and password, kept in memory for one login attempt."""

    username: str = ""
    password: str = field(default="", repr=False)

    @property
    def anonymous(self) -> bool:
        return not self.username and not self.password


def docker_config_path() -> Path:
    """Location of the Docker CLI config holding registry auths."""
    config_dir = os.environ.get("DOCKER_CONFIG")
    return Path(config_dir) / "config.json" if config_dir else Path.home() / ".docker" / "config.json"


def podman_auth_path() -> Path:
    """Location of the Podman auth file, following containers-auth.json(5)."""
    if os.environ.get("REGISTRY_AUTH_FILE"):
        return Path(os.environ["REGISTRY_AUTH_FILE"])
    if os.environ.get("XDG_RUNTIME_DIR"):
        return Path(os.environ["XDG_RUNTIME_DIR"]) / "containers" / "auth.json"
    return Path.home() / ".config" / "containers" / "auth.json"


class ContainerEngine(ABC):
    """Uniform image operations over a concrete container engine CLI."""

    name: str = ""

    def __init__(self, runner: CommandRunner, retry: RetryExecutor | None = None) -> None:
        self.runner = runner
        self.retry = retry or RetryExecutor(runner)

    def kind_env(self) -> dict[str, str]:
        """Environment binding kind to this engine as its node provider."""
        return {KIND_PROVIDER_ENV: self.name}

    def build_command(self, tag: str, dockerfile: str = "Dockerfile", no_cache: bool = False) -> list[str]:
        """Build the engine CLI invocation for an image build in the current directory."""
        argv = [self.name, "build"]
        if no_cache:
            argv.append("--no-cache")
        return [*argv, "-f", dockerfile, "-t", tag, "."]

    def build_image(
        self,
        tag: str,
        context: Path,
        *,
        dockerfile: str = "Dockerfile",
        no_cache: bool = False,
    ) -> None:
        """Build an image, retrying transient failures.

        Args:
            tag: Full image reference to tag the build with.
            context: Build context directory.
            dockerfile: Dockerfile path relative to the context.
            no_cache: Ignore layer caches and rebuild everything.

        Raises:
            BuildFailure: If every attempt fails.
        """
        result = self.retry.run(self.build_command(tag, dockerfile, no_cache), cwd=context)
        if not result.ok:
            raise BuildFailure(f"Failed to build image {tag}", result.output.strip()[-500:] or None)

    def login(self, registry: str, credentials: CredentialSet) -> None:
        """Log into a registry; anonymous credentials are accepted without a login.

        Args:
            registry: Registry host to authenticate against.
            credentials: Username and password, both empty for anonymous access.

        Raises:
            LoginFailed: If the engine rejects the credentials.
        """
        if credentials.anonymous:
            info(f"Skipping login for anonymous access to registry: {registry}")
            success(f"Anonymous access configured for registry: {registry}")
            return
        result = self.runner.run(
            [self.name, "login", "--username", credentials.username, "--password-stdin", registry],
            input=credentials.password,
        )
        if not result.ok:
            raise LoginFailed(f"Failed to login to container registry: {registry}", result.output.strip() or None)
        success(f"Successfully logged into container registry: {registry}")

    @abstractmethod
    def image_exists_locally(self, tag: str) -> bool:
        """Check the engine's local image store for a tag."""

    @abstractmethod
    def transfer_image_to_cluster(self, tag: str, cluster_name: str) -> None:
        """Make a local image available on the kind cluster nodes."""

    @abstractmethod
    def credential_stores(self) -> list[Path]:
        """Auth files consulted for existing registry credentials, in order."""


class PodmanEngine(ContainerEngine):
    """Podman; images reach kind through a docker-archive tarball."""

    name = ENGINE_PODMAN

    def image_exists_locally(self, tag: str) -> bool:
        result = self.runner.run([self.name, "image", "exists", tag])
        if result.exit_code not in (0, 1):
            raise ContainerEngineError(f"Failed to query Podman image store for {tag}", result.output.strip() or None)
        return result.ok

    def transfer_image_to_cluster(self, tag: str, cluster_name: str) -> None:
        info(f"Loading image into kind cluster: {tag}")
        with tempfile.TemporaryDirectory(prefix="notebooks-image-") as tmp_dir:
            archive = Path(tmp_dir) / "image.tar"
            info(f"Saving Podman image to temporary file: {archive}")
            saved = self.runner.run([self.name, "save", "--format", "docker-archive", "-o", str(archive), tag])
            if not saved.ok:
                raise ImageTransferFailure(f"Failed to save Podman image: {tag}", saved.output.strip() or None)
            loaded = self.runner.run(
                ["kind", "load", "image-archive", str(archive), "--name", cluster_name],
                env=self.kind_env(),
            )
            if not loaded.ok:
                raise ImageTransferFailure(f"Failed to load image archive into cluster '{cluster_name}'",
                                           loaded.output.strip() or None)
        success("Image loaded into kind cluster via Podman")

    def credential_stores(self) -> list[Path]:
        return [podman_auth_path(), docker_config_path()]


class DockerEngine(ContainerEngine):
    """Docker; kind reads images straight from the daemon."""

    name = ENGINE_DOCKER

    def __init__(
        self,
        runner: CommandRunner,
        retry: RetryExecutor | None = None,
        client_factory: Callable[[], docker.DockerClient] = docker.from_env,
    ) -> None:
        super().__init__(runner, retry)
        self._client_factory = client_factory

    def image_exists_locally(self, tag: str) -> bool:
        try:
            client = self._client_factory()
        except DockerException as e:
            raise ContainerEngineError("Failed to connect to Docker", str(e)) from e
        try:
            client.images.get(tag)
            return True
        except ImageNotFound:
            return False
        except DockerException as e:
            raise ContainerEngineError(f"Failed to query Docker image store for {tag}", str(e)) from e
        finally:
            client.close()

    def transfer_image_to_cluster(self, tag: str, cluster_name: str) -> None:
        info(f"Loading image into kind cluster: {tag}")
        result = self.runner.run(
            ["kind", "load", "docker-image", tag, "--name", cluster_name],
            env=self.kind_env(),
        )
        if not result.ok:
            raise ImageTransferFailure(f"Failed to load image {tag} into cluster '{cluster_name}'",
                                       result.output.strip() or None)
        success("Image loaded into kind cluster via Docker")

    def credential_stores(self) -> list[Path]:
        return [docker_config_path()]


ENGINES: dict[str, type[ContainerEngine]] = {
    ENGINE_PODMAN: PodmanEngine,
    ENGINE_DOCKER: DockerEngine,
}


def detect_engine(explicit: str | None, which: Callable[[str], bool]) -> str:
    """Select the container engine name.

    An explicit selection wins; otherwise Podman is preferred over Docker.

    Args:
        explicit: Value of CONTAINER_ENGINE, or None when unset.
        which: PATH lookup returning True if a program is installed.

    Returns:
        The selected engine name.

    Raises:
        NoContainerEngineFound: If the selection is unsupported or unavailable.
    """
    if explicit:
        info(f"CONTAINER_ENGINE is set to: {explicit}")
        if explicit not in ENGINES:
            raise NoContainerEngineFound(
                f"CONTAINER_ENGINE is set to '{explicit}' but only 'podman' or 'docker' are supported",
                requirement="valid container engine",
            )
        if not which(explicit):
            raise NoContainerEngineFound(
                f"CONTAINER_ENGINE is set to '{explicit}' but {explicit} is not available",
                requirement=explicit,
            )
        return explicit

    info("CONTAINER_ENGINE not set, detecting available container engine...")
    for candidate in ENGINE_SEARCH_ORDER:
        if which(candidate):
            logger.debug("Detected container engine: %s", candidate)
            return candidate
    raise NoContainerEngineFound("No container engine found", requirement=" or ".join(ENGINE_SEARCH_ORDER))


def create_engine(name: str, runner: CommandRunner, retry: RetryExecutor | None = None) -> ContainerEngine:
    """Instantiate the adapter for a detected engine name."""
    return ENGINES[name](runner, retry)
