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

"""Bounded retry with a fixed backoff schedule for flaky commands."""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt, wait_chain, wait_fixed

from notebooks_infra import info, logger, success, warning
from notebooks_infra.constants import BUILD_BACKOFF_SECONDS, BUILD_MAX_ATTEMPTS
from notebooks_infra.runner import CommandResult, CommandRunner


@dataclass(frozen=True)
class RetryPolicy:
    """Retry bounds.

    Attributes:
        max_attempts: Total attempts, including the first.
        backoff_seconds: Sleep after failed attempt k is ``backoff_seconds[k-1]``;
            the last entry is reused if the schedule is shorter than the attempts.
    """

    max_attempts: int = BUILD_MAX_ATTEMPTS
    backoff_seconds: tuple[int, ...] = BUILD_BACKOFF_SECONDS

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if not self.backoff_seconds:
            raise ValueError("backoff_seconds must not be empty")


class RetryExecutor:
    """Run a command through a CommandRunner, retrying failed attempts."""

    def __init__(
        self,
        runner: CommandRunner,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.runner = runner
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    def run(self, argv: Sequence[str], **kwargs) -> CommandResult:
        """Attempt a command until it succeeds or the policy is exhausted.

        Args:
            argv: Command and arguments.
            **kwargs: Passed through to ``CommandRunner.run``.

        Returns:
            The first successful result, or the result of the final failed attempt.
        """
        policy = self.policy
        label = " ".join(argv)

        attempts = [0]

        def _before(state: RetryCallState) -> None:
            attempts[0] = state.attempt_number
            info(f"Attempt {state.attempt_number} of {policy.max_attempts}: {label}")

        def _before_sleep(state: RetryCallState) -> None:
            result: CommandResult = state.outcome.result()
            warning(
                f"Command failed on attempt {state.attempt_number} (exit code: {result.exit_code}), "
                f"retrying in {state.next_action.sleep:.0f}s..."
            )

        def _exhausted(state: RetryCallState) -> CommandResult:
            result: CommandResult = state.outcome.result()
            logger.error("Command failed after %d attempts with exit code %d: %s",
                         policy.max_attempts, result.exit_code, label)
            return result

        retrying = Retrying(
            stop=stop_after_attempt(policy.max_attempts),
            wait=wait_chain(*(wait_fixed(s) for s in policy.backoff_seconds)),
            retry=retry_if_result(lambda r: not r.ok),
            before=_before,
            before_sleep=_before_sleep,
            retry_error_callback=_exhausted,
            sleep=self._sleep,
        )
        result = retrying(self.runner.run, argv, **kwargs)
        if result.ok:
            success(f"Command succeeded on attempt {attempts[0]}")
        return result
