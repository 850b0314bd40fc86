"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import pytest
from hypothesis import Verbosity, settings

from notebooks_infra.config import EnvironmentConfig
from notebooks_infra.runner import CommandResult

# Configure Hypothesis for property-based testing
settings.register_profile("default", max_examples=50, deadline=None, verbosity=Verbosity.normal)
settings.register_profile("ci", max_examples=500, deadline=None, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=10, deadline=None, verbosity=Verbosity.verbose)

# Load the default profile
settings.load_profile("default")


@dataclass
class Call:
    """One recorded command invocation."""

    argv: tuple[str, ...]
    kwargs: dict = field(default_factory=dict)

    @property
    def env(self) -> dict:
        return self.kwargs.get("env") or {}


@dataclass
class _Rule:
    prefix: tuple[str, ...]
    results: list[tuple[int, str]]
    callback: Callable[[tuple[str, ...]], None] | None = None


class FakeRunner:
    """Stand-in for CommandRunner that records calls and replays scripted results.

    Results registered for the same prefix are consumed in order; the last
    one repeats. Unmatched commands succeed with empty output.
    """

    def __init__(self, installed: tuple[str, ...] | list[str] = ()) -> None:
        self.installed = set(installed)
        self.calls: list[Call] = []
        self.verbose = False
        self._rules: list[_Rule] = []

    def on(self, *prefix: str, exit_code: int = 0, output: str = "",
           callback: Callable[[tuple[str, ...]], None] | None = None) -> FakeRunner:
        for rule in self._rules:
            if rule.prefix == prefix:
                rule.results.append((exit_code, output))
                rule.callback = callback or rule.callback
                return self
        self._rules.append(_Rule(prefix, [(exit_code, output)], callback))
        return self

    def run(self, argv, **kwargs) -> CommandResult:
        argv = tuple(str(a) for a in argv)
        self.calls.append(Call(argv, kwargs))
        rule = self._match(argv)
        if rule is None:
            return CommandResult(argv, 0, "")
        if rule.callback is not None:
            rule.callback(argv)
        exit_code, output = rule.results.pop(0) if len(rule.results) > 1 else rule.results[0]
        return CommandResult(argv, exit_code, output)

    def run_checked(self, argv, **kwargs) -> CommandResult:
        return self.run(argv, **kwargs).check()

    def which(self, program: str) -> bool:
        return program in self.installed

    def commands(self) -> list[tuple[str, ...]]:
        return [call.argv for call in self.calls]

    def calls_to(self, *prefix: str) -> list[Call]:
        return [call for call in self.calls if call.argv[:len(prefix)] == prefix]

    def _match(self, argv: tuple[str, ...]) -> _Rule | None:
        matches = [rule for rule in self._rules if argv[:len(rule.prefix)] == rule.prefix]
        return max(matches, key=lambda rule: len(rule.prefix), default=None)


class ScriptedPrompter:
    """Prompter replaying canned answers and recording every question."""

    def __init__(self, confirms: list[bool] | None = None, answers: list[str] | None = None) -> None:
        self.confirms = list(confirms or [])
        self.answers = list(answers or [])
        self.questions: list[str] = []

    def confirm(self, question: str) -> bool:
        self.questions.append(question)
        if not self.confirms:
            raise AssertionError(f"Unexpected confirmation: {question}")
        return self.confirms.pop(0)

    def ask(self, question: str, *, secret: bool = False) -> str:
        self.questions.append(question)
        if not self.answers:
            raise AssertionError(f"Unexpected question: {question}")
        return self.answers.pop(0)


@pytest.fixture
def fake_runner():
    """Recording command runner with no scripted results."""
    return FakeRunner()


@pytest.fixture
def sleeps():
    """Recorded sleep durations; pass ``sleeps.append`` as the sleep function."""
    return []


@pytest.fixture
def env():
    """Default interactive run options."""
    return EnvironmentConfig()


@pytest.fixture
def force_env():
    """Run options with force mode enabled."""
    return EnvironmentConfig(force=True)
