from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .ruleset import Ruleset


@dataclass(frozen=True)
class RulesetDef:
    """A ruleset loaded from a document, with its identifying metadata."""

    ruleset_id: str
    version: int
    ruleset: Ruleset
    description: str | None = None
    source: Path | None = None

    def evaluate(self, value: object = None) -> bool:
        return self.ruleset.evaluate(value)
