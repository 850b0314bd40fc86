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

"""Configuration classes and config resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import AliasChoices, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.panel import Panel

from notebooks_infra import console
from notebooks_infra.constants import (
    APISERVER_EXTRA_ARGS,
    DEFAULT_CLUSTER_NAME,
    DEFAULT_LOGIN_REGISTRY,
    DEFAULT_MANIFESTS_REPO,
    DEFAULT_REGISTRY,
    DEFAULT_TAG_SUFFIX,
    ENGINE_ENV_VAR,
    KIND_NODE_IMAGE,
)
from notebooks_infra.errors import InvalidConfiguration


# ============================================================================
# Configuration classes
# ============================================================================

class SetupSettings(BaseSettings):
    """Setup configuration, auto-loaded from NOTEBOOKS_* env vars.

    Attributes:
        cluster_name: Name of the kind cluster.
        registry: Registry host prefixed to application image tags.
        tag_suffix: Suffix inserted between component name and content hash.
        login_registry: Registry to authenticate against for base image pulls.
        manifests_repo: Remote kustomize repository with platform manifests.
        project_root: Checkout containing the ``workspaces/`` sources.
        container_engine: Explicit engine selection, read from CONTAINER_ENGINE.
    """

    model_config = SettingsConfigDict(env_prefix="NOTEBOOKS_", extra="ignore")

    cluster_name: str = Field(default=DEFAULT_CLUSTER_NAME, pattern=r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
    registry: str = DEFAULT_REGISTRY
    tag_suffix: str = Field(default=DEFAULT_TAG_SUFFIX, pattern=r"^[\w][\w.-]*$")
    login_registry: str = DEFAULT_LOGIN_REGISTRY
    manifests_repo: str = DEFAULT_MANIFESTS_REPO
    project_root: Path = Field(default_factory=Path.cwd)
    container_engine: str | None = Field(
        default=None, validation_alias=AliasChoices(ENGINE_ENV_VAR, "container_engine"),
    )


@dataclass(frozen=True)
class EnvironmentConfig:
    """Run-wide options threaded through every component.

    Attributes:
        registry: Registry host prefixed to image tags (empty for none).
        tag_suffix: Tag suffix, e.g. ``e2e-istio``.
        force: Answer every confirmation with yes and always rebuild images.
        verbose: Echo external commands and their output.
    """

    registry: str = DEFAULT_REGISTRY
    tag_suffix: str = DEFAULT_TAG_SUFFIX
    force: bool = False
    verbose: bool = False


@dataclass(frozen=True)
class ClusterSpec:
    """kind cluster definition.

    Attributes:
        name: Cluster name.
        node_image: Pinned control-plane node image.
        apiserver_extra_args: Extra kube-apiserver flags.
    """

    name: str = DEFAULT_CLUSTER_NAME
    node_image: str = KIND_NODE_IMAGE
    apiserver_extra_args: dict[str, str] = field(default_factory=lambda: dict(APISERVER_EXTRA_ARGS))


# ============================================================================
# Config resolution
# ============================================================================

def resolve_config(
    *,
    force: bool,
    verbose: bool,
    registry: str | None,
    tag_suffix: str | None,
) -> tuple[SetupSettings, EnvironmentConfig, ClusterSpec]:
    """Merge CLI overrides, environment variables, and defaults into config objects.

    Resolution priority: CLI arguments > NOTEBOOKS_* environment variables > defaults.

    Args:
        force: Whether force mode is enabled.
        verbose: Whether verbose output is enabled.
        registry: CLI override for the image registry, or None.
        tag_suffix: CLI override for the tag suffix, or None.

    Returns:
        Tuple of (SetupSettings, EnvironmentConfig, ClusterSpec).

    Raises:
        InvalidConfiguration: If a CLI or environment value fails validation.
    """
    overrides: dict = {}
    if registry is not None:
        overrides["registry"] = registry
    if tag_suffix is not None:
        overrides["tag_suffix"] = tag_suffix

    # init kwargs take precedence over NOTEBOOKS_* variables and are validated alike
    try:
        settings = SetupSettings(**overrides)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise InvalidConfiguration("Invalid configuration", problems) from e

    env = EnvironmentConfig(
        registry=settings.registry,
        tag_suffix=settings.tag_suffix,
        force=force,
        verbose=verbose,
    )
    return settings, env, ClusterSpec(name=settings.cluster_name)


# ============================================================================
# Display
# ============================================================================

def display_config(settings: SetupSettings, env: EnvironmentConfig) -> None:
    """Print the resolved configuration.

    Args:
        settings: Resolved setup settings.
        env: Run-wide options.
    """
    console.print(Panel.fit("Configuration", style="bold blue"))
    console.print(f"  cluster_name    : {settings.cluster_name}")
    console.print(f"  registry        : {env.registry or '(none)'}")
    console.print(f"  tag_suffix      : {env.tag_suffix}")
    console.print(f"  login_registry  : {settings.login_registry}")
    console.print(f"  container_engine: {settings.container_engine or '(auto-detect)'}")
    console.print(f"  project_root    : {settings.project_root}")
    console.print(f"  force           : {env.force}")
