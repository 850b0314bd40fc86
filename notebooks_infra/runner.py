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

"""External command execution with combined output and normalized exit codes."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

import sh

from notebooks_infra import console, logger
from notebooks_infra.constants import COMMAND_TIMEOUT_SECONDS
from notebooks_infra.errors import CommandFailed

EXIT_TIMEOUT = 124
EXIT_NOT_FOUND = 127

OUTPUT_INDENT = "    "


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a single external command.

    Attributes:
        argv: Command and arguments as executed.
        exit_code: Process exit status (124 on timeout, 127 if not found).
        output: Combined stdout and stderr.
    """

    argv: tuple[str, ...]
    exit_code: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def check(self) -> CommandResult:
        """Return self, or raise CommandFailed for a non-zero exit."""
        if not self.ok:
            raise CommandFailed(list(self.argv), self.exit_code, self.output)
        return self


class CommandRunner:
    """Run external commands through ``sh`` and capture their combined output."""

    def __init__(self, verbose: bool = False, timeout: int = COMMAND_TIMEOUT_SECONDS) -> None:
        self.verbose = verbose
        self.timeout = timeout

    def run(
        self,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: Path | str | None = None,
        input: str | None = None,
        timeout: int | None = None,
        combine_output: bool = True,
    ) -> CommandResult:
        """Execute a command and report its outcome without raising.

        Args:
            argv: Program name followed by its arguments.
            env: Extra environment variables layered over the current environment.
            cwd: Working directory for the command.
            input: Text written to the command's stdin.
            timeout: Seconds before the command is killed; defaults to the runner timeout.
            combine_output: Merge stderr into the captured output; when False only
                stdout is returned on success, for output that gets parsed.

        Returns:
            CommandResult with the exit code and combined output.
        """
        argv = tuple(str(a) for a in argv)
        shown = " ".join([*(f"{k}={v}" for k, v in (env or {}).items()), *argv])
        logger.debug("$ %s", shown)
        if self.verbose:
            console.print(f"$ {shown}", style="dim", markup=False, highlight=False)

        kwargs: dict = {
            "_err_to_out": combine_output,
            "_tty_out": False,
            "_timeout": timeout or self.timeout,
            "_env": {**os.environ, **(env or {})},
        }
        if cwd is not None:
            kwargs["_cwd"] = str(cwd)
        if input is not None:
            kwargs["_in"] = input

        try:
            output = str(sh.Command(argv[0])(*argv[1:], **kwargs))
            result = CommandResult(argv, 0, output)
        except sh.CommandNotFound:
            result = CommandResult(argv, EXIT_NOT_FOUND, f"{argv[0]}: command not found")
        except sh.TimeoutException:
            result = CommandResult(argv, EXIT_TIMEOUT, f"{argv[0]}: timed out after {kwargs['_timeout']}s")
        except sh.ErrorReturnCode as err:
            output = err.stdout.decode(errors="replace")
            if not combine_output:
                output += err.stderr.decode(errors="replace")
            result = CommandResult(argv, err.exit_code, output)

        self._echo(result)
        return result

    def run_checked(self, argv: Sequence[str], **kwargs) -> CommandResult:
        """Execute a command and raise CommandFailed on a non-zero exit."""
        return self.run(argv, **kwargs).check()

    def which(self, program: str) -> bool:
        """Check if a program exists on the system PATH.

        Args:
            program: Name of the CLI command to check.

        Returns:
            True if the program is found.
        """
        try:
            sh.which(program)
        except (sh.ErrorReturnCode, sh.CommandNotFound):
            return False
        return True

    def _echo(self, result: CommandResult) -> None:
        if not result.output:
            return
        indented = "\n".join(OUTPUT_INDENT + line for line in result.output.rstrip().splitlines())
        logger.debug("exit=%d\n%s", result.exit_code, indented)
        if self.verbose or not result.ok:
            console.print(indented, markup=False, highlight=False)
