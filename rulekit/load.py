from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from .errors import RulesetLoadError
from .rule import Evaluable, Negation, Rule
from .ruleset import Policy, Ruleset
from .schema import RulesetDef

logger = logging.getLogger(__name__)


def _parse_document(path: Path) -> dict[str, Any]:
    suffix = path.suffix.lower()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RulesetLoadError(source=str(path), reason=e.strerror or str(e), cause=e) from e

    if suffix == ".toml":
        import tomllib

        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise RulesetLoadError(source=str(path), reason=str(e), cause=e) from e
    elif suffix in (".yaml", ".yml"):
        import yaml

        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise RulesetLoadError(source=str(path), reason=str(e), cause=e) from e
    else:
        raise RulesetLoadError(source=str(path), reason=f"unsupported file type {suffix or '(none)'!r}")

    if not isinstance(data, dict):
        raise RulesetLoadError(source=str(path), reason="document root must be a table/mapping")
    return data


def _build_rule(raw: Any, where: str) -> Evaluable:
    if isinstance(raw, str):
        return Rule(raw)
    if not isinstance(raw, dict):
        raise RulesetLoadError(source=where, reason="rule must be a table/mapping or predicate name")

    if "rules" in raw or "policy" in raw:
        entry: Evaluable = _build_ruleset(raw, where)
    else:
        predicate = str(raw.get("predicate", "")).strip()
        if not predicate:
            raise RulesetLoadError(source=where, reason="rule is missing 'predicate'")
        args = raw.get("args", [])
        if not isinstance(args, list):
            args = [args]
        entry = Rule(predicate, *args)

    negate = raw.get("negate", False)
    if not isinstance(negate, bool):
        raise RulesetLoadError(source=where, reason=f"'negate' must be a boolean; {negate!r} provided")
    if negate:
        entry = Negation(entry)
    return entry


def _build_policy(raw: Any, where: str) -> Policy:
    if raw is None:
        return Policy.all()
    if isinstance(raw, dict) and "condition" in raw:
        cond = raw["condition"]
        if not isinstance(cond, bool):
            cond = _build_rule(cond, f"{where}.condition")
        raw = {**raw, "condition": cond}
    return Policy.parse(raw)


def _build_ruleset(data: dict[str, Any], where: str) -> Ruleset:
    rules_raw = data.get("rules", [])
    if not isinstance(rules_raw, list):
        raise RulesetLoadError(source=where, reason="'rules' must be an array")

    name = data.get("name")
    ruleset = Ruleset(_build_policy(data.get("policy"), where), name=str(name) if isinstance(name, str) else None)
    for i, raw in enumerate(rules_raw):
        ruleset.add_rule(_build_rule(raw, f"{where}.rules[{i}]"))
    return ruleset


def build_ruleset(data: dict[str, Any], *, source: Path | None = None) -> RulesetDef:
    """
    Build a ruleset from an already-parsed document.

    Rules are data, evaluation is code: each rule names a registered predicate
    and its arguments, or nests another ruleset with its own policy.
    """
    where = str(source) if source else "<document>"

    ruleset_id = str(data.get("ruleset_id", "")).strip()
    if not ruleset_id:
        raise RulesetLoadError(source=where, reason="ruleset_id is required")

    try:
        version = int(data.get("version", 0))
    except (TypeError, ValueError):
        version = 0
    if version <= 0:
        raise RulesetLoadError(source=where, reason="version must be a positive integer")

    description = data.get("description")

    ruleset = _build_ruleset({**data, "name": data.get("name", ruleset_id)}, where).freeze()
    logger.debug("built ruleset %s v%d (%s, %d rules)", ruleset_id, version, ruleset.policy, len(ruleset))

    return RulesetDef(
        ruleset_id=ruleset_id,
        version=version,
        ruleset=ruleset,
        description=str(description) if isinstance(description, str) else None,
        source=source,
    )


def load_ruleset(path: Path) -> RulesetDef:
    """
    Load a ruleset from TOML or YAML.

    Unknown predicate names fail here (NoSuchRule), not at evaluation time.
    """
    data = _parse_document(path)
    definition = build_ruleset(data, source=path)
    logger.info("loaded ruleset %s v%d from %s", definition.ruleset_id, definition.version, path)
    return definition
