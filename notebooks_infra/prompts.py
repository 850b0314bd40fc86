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

"""Operator interaction: confirmations and credential entry."""

from __future__ import annotations

from typing import Protocol

from rich.prompt import Confirm, Prompt

from notebooks_infra import console, info, prompt_label
from notebooks_infra.errors import CredentialFailure


class Prompter(Protocol):
    """Capability to ask the operator questions."""

    def confirm(self, question: str) -> bool:
        ...

    def ask(self, question: str, *, secret: bool = False) -> str:
        ...


class InteractivePrompter:
    """Ask on the terminal; secrets are read without echo."""

    def confirm(self, question: str) -> bool:
        return Confirm.ask(prompt_label(question), console=console, default=False)

    def ask(self, question: str, *, secret: bool = False) -> str:
        return Prompt.ask(prompt_label(question), console=console, password=secret,
                          default="", show_default=False)


class ForcePrompter:
    """Force mode: every confirmation is accepted, free-form input is refused."""

    def confirm(self, question: str) -> bool:
        info(f"Force mode enabled, answering yes: {question}")
        return True

    def ask(self, question: str, *, secret: bool = False) -> str:
        raise CredentialFailure(f"Input required but force mode is enabled: {question}")


def make_prompter(force: bool) -> Prompter:
    """Pick the prompter matching the run mode."""
    return ForcePrompter() if force else InteractivePrompter()
