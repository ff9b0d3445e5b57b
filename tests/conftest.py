"""Pytest configuration and fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from rulekit.predicates import clear_predicates


class CountingStub:
    """Predicate stub that records every call and returns a fixed outcome."""

    def __init__(self, outcome: bool | None = True, error: Exception | None = None):
        self.outcome = outcome
        self.error = error
        self.calls: list[tuple[Any, ...]] = []
        self.__name__ = "stub"

    def __call__(self, *args: Any) -> bool | None:
        self.calls.append(args)
        if self.error is not None:
            raise self.error
        return self.outcome

    @property
    def count(self) -> int:
        return len(self.calls)


@pytest.fixture(autouse=True)
def _isolated_registry():
    """Drop application-defined predicates between tests."""
    yield
    clear_predicates()


@pytest.fixture
def stub() -> Callable[..., CountingStub]:
    """Factory for call-counting stub predicates."""

    def make(outcome: bool | None = True, error: Exception | None = None) -> CountingStub:
        return CountingStub(outcome, error)

    return make


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a text file under tmp_path and return its path."""

    def write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return write


@pytest.fixture
def age_ruleset_path(write_file) -> Path:
    """A small TOML ruleset: adult, not exactly 30, and under 130 when an int."""
    return write_file(
        "age.toml",
        """
ruleset_id = "signup/age"
version = 1
description = "Adult, not exactly 30"
policy = "all"

[[rules]]
predicate = "greater"
args = [17]

[[rules]]
predicate = "not_equals"
args = [30]

[[rules]]
policy = { name = "if", condition = { predicate = "is_type", args = ["int"] } }
rules = [ { predicate = "less", args = [130] } ]
""",
    )
