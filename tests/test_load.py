"""Tests for loading rulesets from TOML and YAML documents."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path

import pytest

from rulekit.errors import InvalidArgument, InvalidCondition, NoSuchRule, RulesetLoadError
from rulekit.load import build_ruleset, load_ruleset
from rulekit.rule import Negation
from rulekit.ruleset import AT_LEAST, PolicyKind, Ruleset


def test_load_toml(age_ruleset_path: Path) -> None:
    definition = load_ruleset(age_ruleset_path)

    assert definition.ruleset_id == "signup/age"
    assert definition.version == 1
    assert definition.description == "Adult, not exactly 30"
    assert definition.source == age_ruleset_path
    assert definition.ruleset.name == "signup/age"
    assert definition.ruleset.frozen
    assert len(definition.ruleset) == 3
    assert definition.ruleset.entries[2].frozen


@pytest.mark.parametrize(
    "value,expected",
    [
        (21, True),
        (30, False),
        (12, False),
        (200, False),
        (25.5, True),
        ("abc", False),
    ],
)
def test_toml_ruleset_semantics(age_ruleset_path: Path, value, expected: bool) -> None:
    assert load_ruleset(age_ruleset_path).evaluate(value) is expected


def test_nested_ruleset_and_condition(age_ruleset_path: Path) -> None:
    nested = load_ruleset(age_ruleset_path).ruleset.entries[2]

    assert isinstance(nested, Ruleset)
    assert nested.policy.kind is PolicyKind.IF
    assert repr(nested.policy.condition) == "is_type('int')"


def test_load_yaml(write_file) -> None:
    path = write_file(
        "handle.yaml",
        """
ruleset_id: contact/handle
version: 2
policy:
  name: at_least
  count: 2
rules:
  - email
  - predicate: char_length
    args: [3, 64]
  - predicate: matches
    args: "^admin"
    negate: true
""",
    )
    definition = load_ruleset(path)

    assert definition.ruleset.policy == AT_LEAST(2)
    assert isinstance(definition.ruleset.entries[2], Negation)
    assert definition.evaluate("user@example.com") is True
    assert definition.evaluate("admin@example.com") is True
    assert definition.evaluate("admin") is False
    assert definition.evaluate("ab") is False


def test_load_yml_suffix(write_file) -> None:
    path = write_file("x.yml", "ruleset_id: x\nversion: 1\nrules: [always]\n")
    assert load_ruleset(path).evaluate(None) is True


def test_negated_nested_ruleset(write_file) -> None:
    path = write_file(
        "reserved.toml",
        """
ruleset_id = "names/reserved"
version = 1

[[rules]]
negate = true
policy = "any"
rules = [
  { predicate = "equals", args = ["root"] },
  { predicate = "equals", args = ["admin"] },
]
""",
    )
    definition = load_ruleset(path)

    assert definition.evaluate("alice") is True
    assert definition.evaluate("root") is False


def test_boolean_condition(write_file) -> None:
    path = write_file(
        "off.toml",
        """
ruleset_id = "flags/off"
version = 1
policy = { name = "unless", condition = true }
rules = ["never"]
""",
    )
    assert load_ruleset(path).evaluate("anything") is True


def test_build_ruleset_from_mapping() -> None:
    definition = build_ruleset(
        {
            "ruleset_id": "plan",
            "version": "3",
            "policy": {"name": "exactly", "count": 1},
            "rules": [
                {"predicate": "one_of", "args": [["free", "pro"]]},
                {"predicate": "equals", "args": ["enterprise"]},
            ],
        }
    )

    assert definition.version == 3
    assert definition.source is None
    assert definition.evaluate("pro") is True
    assert definition.evaluate("trial") is False


def test_load_is_logged(age_ruleset_path: Path, caplog) -> None:
    caplog.set_level(logging.INFO, logger="rulekit.load")
    load_ruleset(age_ruleset_path)
    assert "loaded ruleset signup/age v1" in caplog.text


# -----------------------------------------------------------------------------
# Errors
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(
    "text,reason",
    [
        ("version = 1\n", "ruleset_id is required"),
        ('ruleset_id = "x"\n', "version must be a positive integer"),
        ('ruleset_id = "x"\nversion = 0\n', "version must be a positive integer"),
        ('ruleset_id = "x"\nversion = "abc"\n', "version must be a positive integer"),
        ('ruleset_id = "x"\nversion = 1\nrules = "always"\n', "'rules' must be an array"),
        ('ruleset_id = "x"\nversion = 1\nrules = [42]\n', "rule must be a table/mapping or predicate name"),
        ('ruleset_id = "x"\nversion = 1\nrules = [{ args = [1] }]\n', "rule is missing 'predicate'"),
        (
            'ruleset_id = "x"\nversion = 1\nrules = [{ predicate = "always", negate = "true" }]\n',
            "'negate' must be a boolean",
        ),
        ('ruleset_id = "x"\nversion = 1\nrules = [{ predicate = "always", negate = 1 }]\n', "'negate' must be a boolean"),
    ],
)
def test_structural_errors(write_file, text: str, reason: str) -> None:
    path = write_file("bad.toml", text)
    with pytest.raises(RulesetLoadError) as excinfo:
        load_ruleset(path)
    assert reason in excinfo.value.message


def test_error_names_rule_position(write_file) -> None:
    path = write_file("bad.toml", 'ruleset_id = "x"\nversion = 1\nrules = ["always", 7]\n')
    with pytest.raises(RulesetLoadError) as excinfo:
        load_ruleset(path)
    assert excinfo.value.context["source"].endswith("bad.toml.rules[1]")


def test_unknown_predicate_fails_at_load(write_file) -> None:
    path = write_file("bad.toml", 'ruleset_id = "x"\nversion = 1\nrules = ["not_a_predicate"]\n')
    with pytest.raises(NoSuchRule):
        load_ruleset(path)


@pytest.mark.parametrize(
    "policy",
    [
        '{ name = "at_most", count = -1 }',
        "{ count = 2 }",
        '{ name = 3, count = 2 }',
    ],
)
def test_bad_policy(write_file, policy: str) -> None:
    path = write_file("bad.toml", f'ruleset_id = "x"\nversion = 1\npolicy = {policy}\nrules = ["always", "always"]\n')
    with pytest.raises(InvalidArgument):
        load_ruleset(path)


def test_missing_condition(write_file) -> None:
    path = write_file("bad.toml", 'ruleset_id = "x"\nversion = 1\npolicy = "if"\n')
    with pytest.raises(InvalidCondition):
        load_ruleset(path)


def test_malformed_toml(write_file) -> None:
    path = write_file("bad.toml", "ruleset_id = \n")
    with pytest.raises(RulesetLoadError) as excinfo:
        load_ruleset(path)
    assert isinstance(excinfo.value.__cause__, tomllib.TOMLDecodeError)


def test_malformed_yaml(write_file) -> None:
    path = write_file("bad.yaml", "rules: [unclosed\n")
    with pytest.raises(RulesetLoadError):
        load_ruleset(path)


@pytest.mark.parametrize("text", ["- a\n- b\n", ""])
def test_yaml_root_must_be_mapping(write_file, text: str) -> None:
    path = write_file("bad.yaml", text)
    with pytest.raises(RulesetLoadError):
        load_ruleset(path)


def test_unsupported_suffix(write_file) -> None:
    path = write_file("rules.json", "{}")
    with pytest.raises(RulesetLoadError, match="unsupported file type"):
        load_ruleset(path)


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(RulesetLoadError) as excinfo:
        load_ruleset(tmp_path / "missing.toml")
    assert isinstance(excinfo.value.__cause__, OSError)
