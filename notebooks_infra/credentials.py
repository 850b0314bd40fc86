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

"""Registry credential detection, collection, and login."""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path

from notebooks_infra import error, info, logger, success, warning
from notebooks_infra.config import EnvironmentConfig
from notebooks_infra.constants import DOCKER_HUB_ALIASES
from notebooks_infra.engine import ContainerEngine, CredentialSet
from notebooks_infra.errors import CredentialFailure
from notebooks_infra.prompts import Prompter


class CredentialState(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"


def registry_variants(registry: str) -> list[str]:
    """List the keys a registry may be recorded under in an auth file.

    Docker Hub has been stored under several hostnames by different tools,
    so every alias is tried when the registry is one of them.

    Args:
        registry: Registry host as configured.

    Returns:
        The registry itself followed by any known aliases.
    """
    variants = [registry]
    if registry.rstrip("/") in {alias.rstrip("/") for alias in DOCKER_HUB_ALIASES}:
        variants.extend(alias for alias in DOCKER_HUB_ALIASES if alias != registry)
    return variants


def _load_auth_keys(store: Path) -> set[str]:
    """Read registry keys from an auth file, treating unreadable files as empty."""
    if not store.is_file():
        return set()
    try:
        data = json.loads(store.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.debug("Ignoring unreadable auth file %s: %s", store, e)
        return set()
    if not isinstance(data, dict):
        return set()
    keys: set[str] = set()
    for section in ("auths", "credHelpers"):
        entries = data.get(section)
        if isinstance(entries, dict):
            keys.update(entries)
    return keys


class RegistryCredentialManager:
    """Ensure the container engine can authenticate against a registry.

    The flow is CHECK, then either done (credentials found) or, when
    nothing is stored, PROMPT and LOGIN. Force mode never prompts: missing
    credentials are a failure.
    """

    def __init__(self, engine: ContainerEngine, env: EnvironmentConfig, prompter: Prompter) -> None:
        self.engine = engine
        self.env = env
        self.prompter = prompter

    def check(self, registry: str) -> CredentialState:
        """Look for stored credentials in the engine's auth files, first hit wins."""
        variants = registry_variants(registry)
        for store in self.engine.credential_stores():
            keys = _load_auth_keys(store)
            for variant in variants:
                if variant in keys:
                    info(f"Container registry credentials found for registry: {registry} "
                         f"(matched variant: {variant} in {store})")
                    return CredentialState.FOUND
        info(f"No container registry credentials found for registry: {registry}")
        return CredentialState.NOT_FOUND

    def prompt_credentials(self, registry: str) -> CredentialSet:
        """Collect a username and password; both empty requests anonymous access."""
        info(f"Collecting container registry credentials for registry: {registry}")
        info("Leave username and password empty for anonymous login")
        username = self.prompter.ask("Username (empty for anonymous)")
        password = self.prompter.ask("Password (empty for anonymous)", secret=True)
        return CredentialSet(username=username, password=password)

    def ensure_login(self, registry: str) -> None:
        """Make sure registry credentials are usable.

        Args:
            registry: Registry host to authenticate against.

        Raises:
            CredentialFailure: If credentials are missing in force mode or the login fails.
        """
        info(f"Checking container registry credentials for registry: {registry}")
        if self.check(registry) is CredentialState.FOUND:
            success(f"Valid container registry credentials found for registry: {registry}")
            return

        warning(f"No valid container registry credentials found for registry: {registry}")
        if self.env.force:
            error(f"Force mode enabled but no container registry credentials available for registry: {registry}")
            raise CredentialFailure(
                f"No container registry credentials available for registry: {registry}",
                f"Run '{self.engine.name} login {registry}' manually or run without --force",
            )

        credentials = self.prompt_credentials(registry)
        try:
            info(f"Logging into container registry: {registry}")
            self.engine.login(registry, credentials)
        finally:
            del credentials
        success("Container registry login completed successfully")
