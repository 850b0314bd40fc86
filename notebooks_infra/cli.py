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

"""
cli.py - Local Kubeflow Notebooks environment on kind.

Creates a kind cluster, installs the Kubeflow platform dependencies
(cert-manager, Istio, oauth2-proxy, Dex, Central Dashboard, profiles, ...),
then builds the controller, backend, and frontend images with content-based
tags and deploys them. Every stage is idempotent: after a failure, fix the
cause and run the command again.

Environment Variables:
    - CONTAINER_ENGINE: podman or docker (default: auto-detect, podman first)
    - NOTEBOOKS_CLUSTER_NAME (default: kubeflow)
    - NOTEBOOKS_REGISTRY (default: localhost)
    - NOTEBOOKS_TAG_SUFFIX (default: e2e-istio)
    - NOTEBOOKS_LOGIN_REGISTRY (default: docker.io)
    - NOTEBOOKS_MANIFESTS_REPO (default: https://github.com/kubeflow/manifests)
    - NOTEBOOKS_PROJECT_ROOT (default: current directory)

Examples:
    # Default settings
    setup-notebooks

    # Custom registry and tag
    setup-notebooks -r my-registry.com -t v1.0.0

    # Unattended: delete clusters without asking and rebuild all images
    setup-notebooks --force
"""

from __future__ import annotations

import logging
import sys

import typer

from notebooks_infra import error
from notebooks_infra.config import display_config, resolve_config
from notebooks_infra.errors import SetupError
from notebooks_infra.orchestrator import Orchestrator, SetupContext, report
from notebooks_infra.prompts import make_prompter
from notebooks_infra.runner import CommandRunner

PROG_NAME = "setup-notebooks"
USAGE_ERROR_EXIT_CODE = 2

app = typer.Typer(
    help="Set up Kubeflow Notebooks within the Central Dashboard on a local kind cluster.",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)


def _reject_flag_value(value: str | None) -> str | None:
    """Refuse option values that look like another flag (e.g. ``-r -f``)."""
    if value is not None and (value == "" or value.startswith("-")):
        raise typer.BadParameter("option requires a value")
    return value


@app.command()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Echo external commands and their output"),
    force: bool = typer.Option(
        False, "--force", "-f", help="Answer prompts with yes and always rebuild images without cache"),
    registry: str | None = typer.Option(
        None, "--registry", "-r", callback=_reject_flag_value,
        help="Image registry hostname (default: localhost)"),
    tag_suffix: str | None = typer.Option(
        None, "--tag-suffix", "-t", callback=_reject_flag_value,
        help="Image tag suffix (default: e2e-istio)"),
) -> None:
    """Set up Kubeflow Notebooks within the Central Dashboard on a local kind cluster.

    Verifies required tools, replaces existing kind clusters (with
    confirmation), logs into the container registry, installs the platform
    dependencies, then builds, deploys, and validates the notebooks
    components. Images are only rebuilt when their sources changed.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        settings, env, cluster = resolve_config(
            force=force, verbose=verbose, registry=registry, tag_suffix=tag_suffix,
        )
        display_config(settings, env)
        ctx = SetupContext(
            settings=settings,
            env=env,
            cluster=cluster,
            runner=CommandRunner(verbose=verbose),
            prompter=make_prompter(force),
        )
        report(Orchestrator(ctx).run())
    except SetupError as e:
        error(str(e))
        raise typer.Exit(1) from e


def run(argv: list[str] | None = None) -> None:
    """Console entry point; usage errors exit with status 1 instead of 2."""
    try:
        app(args=argv, prog_name=PROG_NAME)
    except SystemExit as e:
        if e.code == USAGE_ERROR_EXIT_CODE:
            sys.exit(1)
        raise


if __name__ == "__main__":
    run()
