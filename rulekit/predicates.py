"""
Atomic predicates: the leaves of every ruleset.

All predicates:
- take the value to test as their first argument; auxiliary arguments may follow.
- return True if the test passes, and False otherwise.
- raise only for malformed invocation (InvalidArgument, InvalidPattern), never
  because the value simply fails the test.

Any callable meeting these requirements may be used wherever a predicate is
expected. Named predicates are looked up through ``resolve``, which also builds
the negated aliases (``not_equals``, ``not_matches``, ...).
"""

from __future__ import annotations

import functools
import operator
import re
import sys
from collections.abc import Mapping
from typing import Any, Callable

from .errors import CallbackFailure, InvalidArgument, InvalidPattern, NoSuchRule
from .values import (
    NUMERIC,
    ORDERABLE,
    Kind,
    is_iterable,
    kind_of,
    to_datetime,
    to_string,
    type_check,
    type_hint,
    type_name,
)

PredicateFn = Callable[..., bool]

NEGATION_PREFIX = "not_"


def _compatible(a: Any, b: Any) -> bool:
    ka, kb = kind_of(a), kind_of(b)
    if ka in NUMERIC and kb in NUMERIC:
        return True
    return ka is kb and ka in (Kind.STRING, Kind.DATETIME)


def _holds(op: Callable[[Any, Any], Any], left: Any, right: Any) -> bool:
    if not _compatible(left, right):
        return False
    try:
        return bool(op(left, right))
    except TypeError:
        # naive vs. aware datetimes
        return False


def _strict_equal(value: Any, compare: Any) -> bool:
    return type(value) is type(compare) and value == compare


def _time_operand(name: str, operand: Any):
    dt = to_datetime(operand)
    if dt is None:
        raise InvalidArgument(
            detail=f"{name} must be a time value; {operand!r} provided",
            argument=name,
            provided=type_name(operand),
        )
    return dt


def always(*_: Any) -> bool:
    """Always passes."""
    return True


def never(*_: Any) -> bool:
    """Always fails."""
    return False


def equals(value: Any, compare: Any) -> bool:
    """
    Passes if the value is equal to the test value.

    If ``compare`` provides an ``equals()`` method and the value is an instance
    of the same class, comparison is delegated to that method. Otherwise the
    comparison is strict: same type, equal value.
    """
    domain_equals = getattr(compare, "equals", None)
    if callable(domain_equals) and isinstance(value, type(compare)):
        return bool(domain_equals(value))
    return _strict_equal(value, compare)


def greater(value: Any, compare: Any) -> bool:
    """Passes if value > compare."""
    type_hint("compare", compare, *ORDERABLE)
    return _holds(operator.gt, value, compare)


def less(value: Any, compare: Any) -> bool:
    """Passes if value < compare."""
    type_hint("compare", compare, *ORDERABLE)
    return _holds(operator.lt, value, compare)


def from_(value: Any, min: Any, max: Any) -> bool:
    """Passes if min <= value <= max."""
    type_hint("min", min, *ORDERABLE)
    type_hint("max", max, *ORDERABLE)
    return _holds(operator.le, min, value) and _holds(operator.le, value, max)


def between(value: Any, min: Any, max: Any) -> bool:
    """Passes if min < value < max."""
    type_hint("min", min, *ORDERABLE)
    type_hint("max", max, *ORDERABLE)
    return _holds(operator.lt, min, value) and _holds(operator.lt, value, max)


def after(value: Any, compare: Any) -> bool:
    """Same as greater, but treats both operands as time values."""
    compare_dt = _time_operand("compare", compare)
    value_dt = to_datetime(value)
    return value_dt is not None and value_dt > compare_dt


def before(value: Any, compare: Any) -> bool:
    """Same as less, but treats both operands as time values."""
    compare_dt = _time_operand("compare", compare)
    value_dt = to_datetime(value)
    return value_dt is not None and value_dt < compare_dt


def during(value: Any, start: Any, end: Any) -> bool:
    """Same as from, but treats all operands as time values."""
    start_dt = _time_operand("start", start)
    end_dt = _time_operand("end", end)
    value_dt = to_datetime(value)
    return value_dt is not None and start_dt <= value_dt <= end_dt


def matches(value: Any, pattern: str | re.Pattern) -> bool:
    """Passes if the value is a string and the regular expression matches it."""
    type_hint("pattern", pattern, str, re.Pattern)
    if not isinstance(value, str):
        return False

    if isinstance(pattern, str):
        try:
            pattern = re.compile(pattern)
        except re.error as e:
            raise InvalidPattern(pattern=pattern, reason=str(e), cause=e) from e
    elif isinstance(pattern.pattern, bytes):
        raise InvalidArgument(detail="pattern must be a str pattern; bytes pattern provided", argument="pattern")

    return pattern.search(value) is not None


def one_of(value: Any, choices: Any) -> bool:
    """Passes if value is one of the given choices. Comparison is strict."""
    if isinstance(choices, (str, bytes)) or not is_iterable(choices):
        raise InvalidArgument(
            detail=f"choices must be a collection; {type_name(choices)} provided",
            argument="choices",
            provided=type_name(choices),
        )
    candidates = choices.values() if isinstance(choices, Mapping) else choices
    return any(_strict_equal(value, c) for c in candidates)


def is_type(value: Any, *types: Any) -> bool:
    """Passes if value is of one of the given variants, pseudo-types or classes."""
    if not types:
        raise InvalidArgument(detail="is_type requires at least one type", argument="types")
    return type_check(value, *types)


def byte_length(value: Any, min: int, max: int = sys.maxsize) -> bool:
    """Same as from, but checks the UTF-8 byte length of the value as a string."""
    type_hint("min", min, Kind.INT)
    type_hint("max", max, Kind.INT)
    text = to_string(value)
    return text is not None and from_(len(text.encode("utf-8")), min, max)


def char_length(value: Any, min: int, max: int = sys.maxsize) -> bool:
    """Same as byte_length, but counts characters."""
    type_hint("min", min, Kind.INT)
    type_hint("max", max, Kind.INT)
    text = to_string(value)
    return text is not None and from_(len(text), min, max)


def collection(value: Any, of: Any = None) -> bool:
    """
    Passes if value is iterable and all items are of the same type.

    The item type is inferred from the first item if omitted: its variant, or
    its class for plain objects. Mappings are checked by value.
    """
    if not is_iterable(value):
        return False
    items = list(value.values()) if isinstance(value, Mapping) else list(value)
    if not items:
        return True
    if of is None:
        first = kind_of(items[0])
        of = type(items[0]) if first is Kind.OBJECT else first
    return all(type_check(item, of) for item in items)


_EMAIL_LOCAL_RE = re.compile(r"^[\w!#$%&'*+/=?^`{|}~-]+(?:\.[\w!#$%&'*+/=?^`{|}~-]+)*$")
_EMAIL_DOMAIN_RE = re.compile(r"^(?:[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?\.)+[A-Za-z0-9-]{2,63}$")


def email(value: Any) -> bool:
    """
    Passes if the value is a well-formed email address.

    Internationalized domains are IDNA-encoded before checking. The only way to
    really validate an address is to send mail to it and get a reply back.
    """
    if not isinstance(value, str) or value.count("@") != 1:
        return False
    local, domain = value.split("@")
    if not local or len(local) > 64 or not _EMAIL_LOCAL_RE.match(local):
        return False
    try:
        ascii_domain = domain.encode("idna").decode("ascii")
    except UnicodeError:
        return False
    if len(local) + 1 + len(ascii_domain) > 254:
        return False
    return _EMAIL_DOMAIN_RE.match(ascii_domain) is not None


def predicate_name(predicate: Any) -> str:
    """Readable name for a predicate, used in errors and logs."""
    if isinstance(predicate, functools.partial) and predicate.func is not_ and predicate.args:
        return NEGATION_PREFIX + predicate_name(predicate.args[0])
    name = getattr(predicate, "__name__", None)
    if name is None:
        return repr(predicate)
    return name[:-1] if name.endswith("_") and name != NEGATION_PREFIX else name


def not_(predicate: PredicateFn, *arguments: Any) -> bool:
    """
    Negate another predicate.

    Errors raised by the negated predicate are not swallowed: they are
    re-raised as CallbackFailure, chained to the original.
    """
    if not callable(predicate):
        raise InvalidArgument(detail=f"cannot negate non-callable {type_name(predicate)}", argument="predicate")
    try:
        return not predicate(*arguments)
    except CallbackFailure:
        raise
    except Exception as e:
        raise CallbackFailure(cause=e, policy="not", rule=predicate_name(predicate)) from e


PREDICATES: dict[str, PredicateFn] = {
    "after": after,
    "always": always,
    "before": before,
    "between": between,
    "byte_length": byte_length,
    "char_length": char_length,
    "collection": collection,
    "during": during,
    "email": email,
    "equals": equals,
    "from": from_,
    "greater": greater,
    "is_type": is_type,
    "less": less,
    "matches": matches,
    "never": never,
    "one_of": one_of,
}

# Application-defined predicates: name -> predicate
_CUSTOM: dict[str, PredicateFn] = {}


def register_predicate(name: str, predicate: PredicateFn) -> None:
    """
    Register an application-defined predicate by name.

    Args:
        name: Registry name (must not collide with a builtin or use the negation prefix)
        predicate: Callable taking the value first, returning a bool
    """
    key = name.strip()
    if not key or key.startswith(NEGATION_PREFIX) or key in PREDICATES:
        raise InvalidArgument(detail=f"cannot register predicate under name {name!r}", argument="name")
    if not callable(predicate):
        raise InvalidArgument(detail=f"predicate {name!r} is not callable", argument="predicate")
    _CUSTOM[key] = predicate


def clear_predicates() -> None:
    """Clear all application-defined predicates (for testing)."""
    _CUSTOM.clear()


def list_predicates() -> list[str]:
    """List all resolvable base predicate names, sorted."""
    return sorted({*PREDICATES, *_CUSTOM})


def _lookup(name: str) -> PredicateFn | None:
    return PREDICATES.get(name) or _CUSTOM.get(name)


def resolve(name: str) -> PredicateFn:
    """
    Resolve a predicate name to its implementation.

    ``not_<name>`` resolves to the negation of ``<name>``. A trailing underscore
    is ignored, so ``from_`` and ``from`` are the same predicate.

    Raises:
        NoSuchRule: if the name (or the negated base name) is not registered
    """
    key = name.strip()
    if key.endswith("_") and key != NEGATION_PREFIX:
        key = key[:-1]

    fn = _lookup(key)
    if fn is not None:
        return fn

    if key.startswith(NEGATION_PREFIX):
        base = _lookup(key[len(NEGATION_PREFIX):])
        if base is not None:
            return functools.partial(not_, base)

    raise NoSuchRule(rule=name)
