"""Tests for the functional combinators (all_of, any_of, ...)."""

from __future__ import annotations

import pytest

from rulekit.errors import CallbackFailure, InvalidArgument
from rulekit.predicates import always, char_length, equals, greater, is_type, less, never
from rulekit.rule import Negation, Rule
from rulekit.ruleset import (
    ALL,
    Ruleset,
    all_of,
    any_of,
    at_least,
    at_most,
    exactly,
    if_,
    none_of,
    one_of_rules,
    unless,
)


def test_tuples_carry_every_argument_without_value() -> None:
    assert all_of((greater, 7, 5), (less, 7, 10)) is True
    assert all_of((greater, 7, 5), (less, 12, 10)) is False


def test_value_is_prepended_to_tuples() -> None:
    assert all_of((greater, 5), (less, 10), value=7) is True
    assert all_of((greater, 5), (less, 10), value=12) is False


def test_tuples_may_name_predicates() -> None:
    assert any_of(("equals", "a"), ("not_equals", "b"), value="b") is False
    assert any_of(("equals", "a"), ("equals", "b"), value="b") is True


def test_evaluables_mix_with_tuples() -> None:
    assert all_of(Rule(greater, 5), (less, 10), value=7) is True


def test_none_and_one() -> None:
    assert none_of((equals, "a"), (equals, "b"), value="c") is True
    assert none_of((equals, "a"), (equals, "b"), value="a") is False
    assert one_of_rules((always,), (never,)) is True
    assert one_of_rules((always,), (always,)) is False


def test_counting() -> None:
    assert at_least(2, (always,), (never,), (always,)) is True
    assert at_least(3, (always,), (never,), (always,)) is False
    assert at_most(1, (always,), (never,)) is True
    assert exactly(0, (never,), (never,)) is True


def test_counting_validates_threshold() -> None:
    with pytest.raises(InvalidArgument):
        at_least(-1, (always,))


def test_if_and_unless() -> None:
    assert if_(False, (never,)) is True
    assert if_(True, (never,)) is False
    assert unless(True, (never,)) is True
    assert unless(False, (always,)) is True


def test_condition_tuple_sees_value() -> None:
    assert if_((is_type, "int"), (greater, 17), value=21) is True
    assert if_((is_type, "int"), (greater, 17), value="guest") is True
    assert if_((is_type, "int"), (greater, 17), value=12) is False
    assert unless((equals, "admin"), (char_length, 8), value="admin") is True
    assert unless((equals, "admin"), (char_length, 8), value="bob") is False


def test_empty_tuple_rejected() -> None:
    with pytest.raises(InvalidArgument):
        all_of((), value=1)


def test_errors_are_wrapped() -> None:
    with pytest.raises(CallbackFailure) as excinfo:
        all_of((always,), (greater, None), value=1)
    assert excinfo.value.index == 1


def test_evaluable_head_takes_only_the_subject() -> None:
    over_five = Ruleset(ALL, Rule(greater, 5))
    assert all_of((over_five, 7)) is True
    assert any_of((Negation(over_five), 3)) is True

    with pytest.raises(InvalidArgument):
        all_of((over_five, 7, 8))
    with pytest.raises(InvalidArgument):
        any_of((Negation(over_five), 3, 4))
