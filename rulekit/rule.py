"""Rules: predicates bound to their auxiliary arguments."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .errors import CallbackFailure, InvalidArgument
from .predicates import PredicateFn, predicate_name, resolve
from .values import type_name


@runtime_checkable
class Evaluable(Protocol):
    """Anything that can be evaluated against a single value."""

    def evaluate(self, value: Any = None) -> bool: ...


class Rule:
    """
    A predicate bound to zero or more auxiliary arguments.

    ``Rule(greater, 5).evaluate(7)`` invokes ``greater(7, 5)``. The predicate may
    be given by registry name (``Rule("not_equals", "a")``); names are resolved at
    construction so unknown names fail immediately with NoSuchRule.

    The bound arguments are captured as a tuple and never mutated; a Rule holds
    no other state, so one instance may be evaluated any number of times.
    """

    __slots__ = ("_predicate", "_args")

    def __init__(self, predicate: PredicateFn | str, *args: Any):
        if isinstance(predicate, str):
            predicate = resolve(predicate)
        if not callable(predicate):
            raise InvalidArgument(
                detail=f"rule predicate must be callable; {type_name(predicate)} provided",
                argument="predicate",
            )
        self._predicate = predicate
        self._args = tuple(args)

    @property
    def predicate(self) -> PredicateFn:
        return self._predicate

    @property
    def args(self) -> tuple[Any, ...]:
        return self._args

    @property
    def name(self) -> str:
        return predicate_name(self._predicate)

    def evaluate(self, value: Any = None) -> bool:
        return bool(self._predicate(value, *self._args))

    __call__ = evaluate

    def negate(self) -> "Negation":
        return Negation(self)

    def __repr__(self) -> str:
        args = ", ".join(repr(a) for a in self._args)
        return f"{self.name}({args})" if args else f"{self.name}()"


class Negation:
    """
    Logical complement of another evaluable.

    Errors raised by the wrapped entry are re-raised as CallbackFailure;
    negation only inverts boolean outcomes.
    """

    __slots__ = ("_entry",)

    def __init__(self, entry: Any):
        self._entry = as_evaluable(entry)

    @property
    def entry(self) -> Evaluable:
        return self._entry

    def evaluate(self, value: Any = None) -> bool:
        try:
            return not self._entry.evaluate(value)
        except CallbackFailure:
            raise
        except Exception as e:
            raise CallbackFailure(cause=e, policy="not", rule=repr(self._entry)) from e

    __call__ = evaluate

    def negate(self) -> Evaluable:
        return self._entry

    def __repr__(self) -> str:
        return f"not {self._entry!r}"


def as_evaluable(entry: Any, *args: Any) -> Evaluable:
    """
    Normalize a ruleset entry.

    Rules, negations and rulesets pass through unchanged (they already own their
    arguments, so passing more is an error). Predicate names and callables are
    bound into a Rule.

    Raises:
        InvalidArgument: for non-callable entries, or arguments given with an evaluable
        NoSuchRule: for unknown predicate names
    """
    if isinstance(entry, (Rule, Negation)) or _is_ruleset(entry):
        if args:
            raise InvalidArgument(
                detail=f"{type(entry).__name__} entries take no bound arguments",
                argument="args",
            )
        return entry
    if isinstance(entry, str) or callable(entry):
        return Rule(entry, *args)
    if isinstance(entry, Evaluable):
        if args:
            raise InvalidArgument(detail="evaluable entries take no bound arguments", argument="args")
        return entry
    raise InvalidArgument(
        detail=f"rule must be a predicate name, callable or evaluable; {type_name(entry)} provided",
        argument="rule",
    )


def _is_ruleset(entry: Any) -> bool:
    from .ruleset import Ruleset

    return isinstance(entry, Ruleset)
