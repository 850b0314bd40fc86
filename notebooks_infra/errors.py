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

"""Exception hierarchy for the setup workflow."""

from __future__ import annotations


class SetupError(Exception):
    """Base exception for every fatal setup condition."""

    def __init__(self, message: str, details: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Main error message.
            details: Additional details or a suggested remedy.
        """
        self.message = message
        self.details = details
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the complete error message.

        Returns:
            Message followed by the details, when present.
        """
        if self.details:
            return f"{self.message}\n\nDetails: {self.details}"
        return self.message


class MissingPrerequisite(SetupError):
    """One or more required tools are not installed."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            f"Missing required applications: {', '.join(self.missing)}",
            "Install the missing applications and run this command again.",
        )


class NoContainerEngineFound(SetupError):
    """No supported container engine could be selected."""

    def __init__(self, message: str, requirement: str) -> None:
        self.requirement = requirement
        super().__init__(message)


class InvalidConfiguration(SetupError):
    """A command-line or environment setting failed validation."""


class InsufficientResourceLimits(SetupError):
    """Open-file limits are too low and the operator declined to continue."""


class CommandFailed(SetupError):
    """An external command exited with a non-zero status."""

    def __init__(self, argv: list[str], exit_code: int, output: str = "") -> None:
        self.argv = list(argv)
        self.exit_code = exit_code
        self.output = output
        tail = output.strip().splitlines()[-5:]
        super().__init__(
            f"Command '{' '.join(self.argv)}' failed with exit code {exit_code}",
            "\n".join(tail) or None,
        )


class ClusterOperationFailure(SetupError):
    """Listing, deleting, or creating the kind cluster failed."""


class CredentialFailure(SetupError):
    """Registry credentials are missing and cannot be obtained."""


class LoginFailed(CredentialFailure):
    """The container engine rejected the registry login."""


class BuildFailure(SetupError):
    """An image build failed after all retry attempts."""


class ContainerEngineError(SetupError):
    """The container engine could not be reached or queried."""


class ImageTransferFailure(SetupError):
    """An image could not be loaded into the cluster nodes."""


class InstallFailure(SetupError):
    """A platform dependency could not be applied or patched."""


class DeployFailure(SetupError):
    """An application component could not be deployed or restarted."""


class ReadinessTimeout(SetupError):
    """A readiness gate was not satisfied within its timeout."""


class DirectoryNotFound(SetupError):
    """A component source directory does not exist."""
