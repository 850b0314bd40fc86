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

"""notebooks_infra - local kind environment for Kubeflow Notebooks development."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.markup import escape

__version__ = "0.1.0"

console = Console(stderr=True)
logger = logging.getLogger("notebooks_infra")


def info(message: str) -> None:
    """Print an informational message."""
    console.print(f"[blue]ℹ️  {escape(message)}[/blue]")
    logger.debug(message)


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✅ {escape(message)}[/green]")
    logger.debug(message)


def warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]⚠️  {escape(message)}[/yellow]")
    logger.debug(message)


def error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]❌ {escape(message)}[/red]")
    logger.debug(message)


def prompt_label(message: str) -> str:
    """Format a question so prompts stand out from progress output."""
    return f"[bold dark_orange]❓ {escape(message)}[/bold dark_orange]"
