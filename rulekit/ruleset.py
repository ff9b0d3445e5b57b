"""
Rulesets: ordered groups of rules evaluated under a counting policy.

Every policy is defined in terms of one primitive, counted evaluation: invoke the
entries in order, count the passes, and optionally stop at the first failure or
the first pass. Entries after a stopping point are never invoked, so an error in
an unreached entry never surfaces.

    Policy      Stop mode        Passes when
    ALL         first failure    passes == len(entries)
    ANY         first pass       passes > 0
    AT_LEAST n  none             passes >= n
    AT_MOST n   none             passes <= n
    EXACTLY n   none             passes == n
    NONE        (not ANY)
    ONE         (EXACTLY 1)
    IF c        condition false, or ALL
    UNLESS c    condition true, or ALL
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping, Sequence

from .errors import CallbackFailure, InvalidArgument, InvalidCondition, RulesetSealed
from .rule import Evaluable, Negation, Rule, as_evaluable
from .values import type_name

logger = logging.getLogger(__name__)


class StopMode(Enum):
    NONE = "none"
    ON_FIRST_FAIL = "on_first_fail"
    ON_FIRST_PASS = "on_first_pass"


class PolicyKind(Enum):
    ALL = "all"
    ANY = "any"
    AT_LEAST = "at_least"
    AT_MOST = "at_most"
    EXACTLY = "exactly"
    NONE = "none"
    ONE = "one"
    IF = "if"
    UNLESS = "unless"


_THRESHOLD_KINDS = (PolicyKind.AT_LEAST, PolicyKind.AT_MOST, PolicyKind.EXACTLY)
_CONDITION_KINDS = (PolicyKind.IF, PolicyKind.UNLESS)


@dataclass(frozen=True)
class Policy:
    """How a ruleset turns its entries' outcomes into a single pass/fail."""

    kind: PolicyKind
    threshold: int | None = None
    condition: bool | Evaluable | None = None

    def __post_init__(self) -> None:
        if self.kind in _THRESHOLD_KINDS:
            n = self.threshold
            if not isinstance(n, int) or isinstance(n, bool) or n < 0:
                raise InvalidArgument(
                    detail=f"{self.kind.value} threshold must be a non-negative integer; {n!r} provided",
                    argument="threshold",
                )
        elif self.threshold is not None:
            raise InvalidArgument(detail=f"{self.kind.value} takes no threshold", argument="threshold")

        if self.kind in _CONDITION_KINDS:
            cond = self.condition
            if not isinstance(cond, bool):
                if not (callable(cond) or isinstance(cond, Evaluable) or isinstance(cond, str)):
                    raise InvalidCondition(condition=cond, type=type_name(cond))
                object.__setattr__(self, "condition", as_evaluable(cond))
        elif self.condition is not None:
            raise InvalidArgument(detail=f"{self.kind.value} takes no condition", argument="condition")

    @classmethod
    def all(cls) -> "Policy":
        return cls(PolicyKind.ALL)

    @classmethod
    def any(cls) -> "Policy":
        return cls(PolicyKind.ANY)

    @classmethod
    def at_least(cls, n: int) -> "Policy":
        return cls(PolicyKind.AT_LEAST, threshold=n)

    @classmethod
    def at_most(cls, n: int) -> "Policy":
        return cls(PolicyKind.AT_MOST, threshold=n)

    @classmethod
    def exactly(cls, n: int) -> "Policy":
        return cls(PolicyKind.EXACTLY, threshold=n)

    @classmethod
    def none(cls) -> "Policy":
        return cls(PolicyKind.NONE)

    @classmethod
    def one(cls) -> "Policy":
        return cls(PolicyKind.ONE)

    @classmethod
    def if_(cls, condition: Any) -> "Policy":
        return cls(PolicyKind.IF, condition=condition)

    @classmethod
    def unless(cls, condition: Any) -> "Policy":
        return cls(PolicyKind.UNLESS, condition=condition)

    @classmethod
    def parse(cls, config: "str | Mapping[str, Any] | Policy") -> "Policy":
        """
        Build a policy from its config form.

        Accepts a bare name ("all", "any", "none", "one"), or a mapping with
        ``name`` plus ``count`` (at_least/at_most/exactly) or ``condition``
        (if/unless). Conditions here must already be bools or evaluables.
        """
        if isinstance(config, Policy):
            return config
        if isinstance(config, str):
            name, params = config, {}
        elif isinstance(config, Mapping):
            name, params = config.get("name"), config
        else:
            raise InvalidArgument(detail=f"policy must be a name or mapping; {type_name(config)} provided", argument="policy")

        if not isinstance(name, str) or not name.strip():
            raise InvalidArgument(detail=f"policy name must be a non-empty string; {name!r} provided", argument="policy")
        try:
            kind = PolicyKind(name.strip().lower().replace("-", "_"))
        except ValueError:
            raise InvalidArgument(detail=f"unknown policy {name!r}", argument="policy") from None

        if kind in _THRESHOLD_KINDS:
            return cls(kind, threshold=params.get("count", params.get("threshold")))
        if kind in _CONDITION_KINDS:
            if "condition" not in params:
                raise InvalidCondition(condition=None, type="null")
            return cls(kind, condition=params["condition"])
        return cls(kind)

    def __str__(self) -> str:
        if self.kind in _THRESHOLD_KINDS:
            return f"{self.kind.value}({self.threshold})"
        if self.kind in _CONDITION_KINDS:
            return f"{self.kind.value}({describe(self.condition)})"
        return self.kind.value


ALL = Policy.all()
ANY = Policy.any()
NONE = Policy.none()
ONE = Policy.one()


def AT_LEAST(n: int) -> Policy:
    return Policy.at_least(n)


def AT_MOST(n: int) -> Policy:
    return Policy.at_most(n)


def EXACTLY(n: int) -> Policy:
    return Policy.exactly(n)


def IF(condition: Any) -> Policy:
    return Policy.if_(condition)


def UNLESS(condition: Any) -> Policy:
    return Policy.unless(condition)


def describe(entry: Any) -> str:
    """Human-readable label for an entry or condition."""
    if isinstance(entry, bool):
        return str(entry).lower()
    if isinstance(entry, Ruleset):
        label = f"{entry.name}: " if entry.name else ""
        return f"{label}{entry.policy}[{len(entry)}]"
    return repr(entry)


def count_passes(
    entries: Sequence[Evaluable],
    value: Any,
    stop_mode: StopMode,
    *,
    policy: Policy | str = "",
) -> int:
    """
    Counted evaluation: invoke entries in order and return how many passed.

    Args:
        entries: Evaluables to invoke
        value: The value under test
        stop_mode: Whether to stop at the first failure, first pass, or never
        policy: Policy label recorded on CallbackFailure

    Raises:
        CallbackFailure: if an entry raises; no later entry is invoked
    """
    passes = 0
    for index, entry in enumerate(entries):
        try:
            passed = entry.evaluate(value)
        except CallbackFailure:
            raise
        except Exception as e:
            raise CallbackFailure(cause=e, policy=str(policy), index=index, rule=describe(entry)) from e

        if passed:
            passes += 1
            if stop_mode is StopMode.ON_FIRST_PASS:
                logger.debug("%s: stopped at first pass (index %d)", policy, index)
                break
        elif stop_mode is StopMode.ON_FIRST_FAIL:
            logger.debug("%s: stopped at first failure (index %d)", policy, index)
            break
    return passes


def _condition_holds(policy: Policy, value: Any) -> bool:
    cond = policy.condition
    if isinstance(cond, bool):
        return cond
    try:
        result = cond.evaluate(value)  # type: ignore[union-attr]
    except CallbackFailure:
        raise
    except Exception as e:
        raise CallbackFailure(cause=e, policy=str(policy), rule=describe(cond)) from e
    if not isinstance(result, bool):
        raise InvalidCondition(condition=result, type=type_name(result))
    return result


def evaluate(entries: Sequence[Evaluable], policy: Policy, value: Any = None) -> bool:
    """
    Evaluate entries under a policy.

    Args:
        entries: Evaluables (rules, negations, nested rulesets)
        policy: Combinator policy
        value: The value under test

    Returns:
        True if the entries satisfy the policy
    """
    kind = policy.kind
    total = len(entries)

    if kind is PolicyKind.ALL:
        result = count_passes(entries, value, StopMode.ON_FIRST_FAIL, policy=policy) == total
    elif kind is PolicyKind.ANY:
        result = count_passes(entries, value, StopMode.ON_FIRST_PASS, policy=policy) > 0
    elif kind is PolicyKind.NONE:
        result = count_passes(entries, value, StopMode.ON_FIRST_PASS, policy=policy) == 0
    elif kind is PolicyKind.AT_LEAST:
        result = count_passes(entries, value, StopMode.NONE, policy=policy) >= policy.threshold  # type: ignore[operator]
    elif kind is PolicyKind.AT_MOST:
        result = count_passes(entries, value, StopMode.NONE, policy=policy) <= policy.threshold  # type: ignore[operator]
    elif kind is PolicyKind.EXACTLY:
        result = count_passes(entries, value, StopMode.NONE, policy=policy) == policy.threshold
    elif kind is PolicyKind.ONE:
        result = count_passes(entries, value, StopMode.NONE, policy=policy) == 1
    elif kind is PolicyKind.IF:
        result = (not _condition_holds(policy, value)) or (
            count_passes(entries, value, StopMode.ON_FIRST_FAIL, policy=policy) == total
        )
    elif kind is PolicyKind.UNLESS:
        result = _condition_holds(policy, value) or (
            count_passes(entries, value, StopMode.ON_FIRST_FAIL, policy=policy) == total
        )
    else:  # pragma: no cover
        raise InvalidArgument(detail=f"unhandled policy {kind!r}", argument="policy")

    logger.debug("%s over %d entries -> %s", policy, total, "pass" if result else "fail")
    return result


class Ruleset:
    """
    An ordered, append-only group of rules evaluated under one policy.

    A Ruleset is itself evaluable, so rulesets nest::

        adult = Ruleset(ALL, Rule("is_type", "int"), Rule("greater", 17))
        Ruleset(ANY, adult, Rule("equals", "guardian-approved")).evaluate(21)

    Rules are added with ``add_rule`` while the ruleset is being built. The first
    evaluation freezes it along with every ruleset nested in it; adding rules
    afterwards raises RulesetSealed.
    Evaluation keeps no state on the instance.
    """

    def __init__(self, policy: Policy | str | Mapping[str, Any] = ALL, *entries: Any, name: str | None = None):
        self._policy = Policy.parse(policy)
        self._entries: list[Evaluable] = []
        self._frozen = False
        self.name = name
        for entry in entries:
            if isinstance(entry, tuple):
                self.add_rule(*entry)
            else:
                self.add_rule(entry)

    @property
    def policy(self) -> Policy:
        return self._policy

    @property
    def entries(self) -> tuple[Evaluable, ...]:
        return tuple(self._entries)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def add_rule(self, rule: Any, *args: Any) -> "Ruleset":
        """
        Append an entry.

        Args:
            rule: Predicate name, callable, Rule, Negation or Ruleset
            args: Arguments to bind when ``rule`` is a predicate

        Returns:
            This ruleset, for chaining
        """
        if self._frozen:
            raise RulesetSealed(name=self.name or describe(self))
        if rule is self:
            raise InvalidArgument(detail="a ruleset cannot contain itself", argument="rule")
        self._entries.append(as_evaluable(rule, *args))
        return self

    def freeze(self) -> "Ruleset":
        """Seal this ruleset and every ruleset nested in it against further additions."""
        if self._frozen:
            return self
        self._frozen = True
        nested = [*self._entries]
        if not isinstance(self._policy.condition, (bool, type(None))):
            nested.append(self._policy.condition)
        for entry in nested:
            while isinstance(entry, Negation):
                entry = entry.entry
            if isinstance(entry, Ruleset):
                entry.freeze()
        return self

    def evaluate(self, value: Any = None) -> bool:
        self.freeze()
        return evaluate(self.entries, self._policy, value)

    __call__ = evaluate

    def negate(self) -> Negation:
        return Negation(self)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Evaluable]:
        return iter(self.entries)

    def __repr__(self) -> str:
        inner = ", ".join(repr(e) for e in self._entries)
        return f"Ruleset({self._policy}, [{inner}])"


# Functional API: combine ad-hoc (predicate, *args) tuples without building a Ruleset.


def _entries(rules: Iterable[Any], value: Any) -> list[Evaluable]:
    out: list[Evaluable] = []
    for rule in rules:
        if isinstance(rule, tuple):
            if not rule:
                raise InvalidArgument(detail="rule tuple must start with a predicate", argument="rule")
            if value is None:
                # Tuple carries every argument, subject value included.
                predicate, *args = rule
                out.append(_Invocation(as_evaluable(predicate), tuple(args)))
            else:
                out.append(as_evaluable(*rule))
        else:
            out.append(as_evaluable(rule))
    return out


class _Invocation:
    """A rule invoked with its full argument list, ignoring the subject value."""

    __slots__ = ("_rule", "_args")

    def __init__(self, rule: Evaluable, args: tuple[Any, ...]):
        if not isinstance(rule, Rule) and len(args) > 1:
            raise InvalidArgument(
                detail=f"{type(rule).__name__} entries take only the subject value; {len(args)} arguments provided",
                argument="args",
            )
        self._rule = rule
        self._args = args

    def evaluate(self, value: Any = None) -> bool:
        if isinstance(self._rule, Rule):
            return bool(self._rule.predicate(*self._args, *self._rule.args))
        return self._rule.evaluate(self._args[0] if self._args else None)

    def __repr__(self) -> str:
        return f"{self._rule!r}{self._args!r}"


def all_of(*rules: Any, value: Any = None) -> bool:
    """Passes if no rule fails."""
    return evaluate(_entries(rules, value), ALL, value)


def any_of(*rules: Any, value: Any = None) -> bool:
    """Passes if any rule passes."""
    return evaluate(_entries(rules, value), ANY, value)


def none_of(*rules: Any, value: Any = None) -> bool:
    """Passes if no rule passes."""
    return evaluate(_entries(rules, value), NONE, value)


def one_of_rules(*rules: Any, value: Any = None) -> bool:
    """Passes if exactly one rule passes."""
    return evaluate(_entries(rules, value), ONE, value)


def at_least(n: int, *rules: Any, value: Any = None) -> bool:
    """Passes if at least n rules pass."""
    return evaluate(_entries(rules, value), AT_LEAST(n), value)


def at_most(n: int, *rules: Any, value: Any = None) -> bool:
    """Passes if at most n rules pass."""
    return evaluate(_entries(rules, value), AT_MOST(n), value)


def exactly(n: int, *rules: Any, value: Any = None) -> bool:
    """Passes if exactly n rules pass."""
    return evaluate(_entries(rules, value), EXACTLY(n), value)


def if_(condition: Any, *rules: Any, value: Any = None) -> bool:
    """Passes if the condition fails, or if all rules pass."""
    return evaluate(_entries(rules, value), IF(_condition(condition, value)), value)


def unless(condition: Any, *rules: Any, value: Any = None) -> bool:
    """Passes if the condition passes, or if all rules pass."""
    return evaluate(_entries(rules, value), UNLESS(_condition(condition, value)), value)


def _condition(condition: Any, value: Any) -> Any:
    if isinstance(condition, tuple):
        return _entries([condition], value)[0]
    return condition
