"""
Value introspection used by predicates.

Values are classified into a small set of variants (``Kind``) so predicates can
declare which variants they accept for their auxiliary arguments and reject the
rest with ``InvalidArgument``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any

from .errors import InvalidArgument


class Kind(Enum):
    NULL = "null"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    BYTES = "bytes"
    DATETIME = "datetime"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    SET = "set"
    OBJECT = "object"


ORDERABLE = (Kind.INT, Kind.FLOAT, Kind.STRING, Kind.DATETIME)
NUMERIC = (Kind.INT, Kind.FLOAT)

# Spellings accepted by type_check in addition to the Kind values.
_ALIASES: dict[str, Kind] = {
    "none": Kind.NULL,
    "nonetype": Kind.NULL,
    "boolean": Kind.BOOL,
    "integer": Kind.INT,
    "double": Kind.FLOAT,
    "str": Kind.STRING,
    "text": Kind.STRING,
    "list": Kind.SEQUENCE,
    "tuple": Kind.SEQUENCE,
    "array": Kind.SEQUENCE,
    "dict": Kind.MAPPING,
    "map": Kind.MAPPING,
    "frozenset": Kind.SET,
}


def kind_of(value: Any) -> Kind:
    """Classify a value into its variant."""
    if value is None:
        return Kind.NULL
    if isinstance(value, bool):
        return Kind.BOOL
    if isinstance(value, int):
        return Kind.INT
    if isinstance(value, (float, Decimal, Fraction)):
        return Kind.FLOAT
    if isinstance(value, str):
        return Kind.STRING
    if isinstance(value, (bytes, bytearray)):
        return Kind.BYTES
    if isinstance(value, (datetime, date)):
        return Kind.DATETIME
    if isinstance(value, Mapping):
        return Kind.MAPPING
    if isinstance(value, (set, frozenset)):
        return Kind.SET
    if isinstance(value, (list, tuple)):
        return Kind.SEQUENCE
    return Kind.OBJECT


def type_name(value: Any) -> str:
    """Variant name for builtin values, dotted class path for everything else."""
    kind = kind_of(value)
    if kind is not Kind.OBJECT:
        return kind.value
    cls = type(value)
    return f"{cls.__module__}.{cls.__qualname__}"


def is_iterable(value: Any) -> bool:
    """True for iterables other than strings and bytes."""
    return isinstance(value, Iterable) and not isinstance(value, (str, bytes, bytearray))


def _class_matches(value: Any, name: str) -> bool:
    for cls in type(value).__mro__:
        if name in (cls.__name__, cls.__qualname__, f"{cls.__module__}.{cls.__qualname__}"):
            return True
    return False


def _matches_type(value: Any, expected: Any) -> bool:
    if isinstance(expected, Kind):
        return kind_of(value) is expected
    if isinstance(expected, type):
        return isinstance(value, expected)
    if not isinstance(expected, str):
        raise InvalidArgument(detail=f"type must be a name, Kind or class; {type_name(expected)} provided")

    key = expected.strip().lower()
    if key == "callable":
        return callable(value)
    if key == "iterable":
        return is_iterable(value)
    if key == "number":
        return kind_of(value) in NUMERIC
    if key in ("datetime", "datetimeable"):
        return to_datetime(value) is not None

    kind = _ALIASES.get(key)
    if kind is None:
        try:
            kind = Kind(key)
        except ValueError:
            kind = None
    if kind is not None:
        return kind_of(value) is kind

    return _class_matches(value, expected.strip())


def type_check(value: Any, *types: Any) -> bool:
    """
    Check a value against one or more types.

    Each type may be a ``Kind``, a class, a variant name or alias ("int",
    "string", "null", "list", ...), a pseudo-type ("callable", "iterable",
    "number", "datetime"), or a class name (bare or dotted, matched along the MRO).

    Returns:
        True if the value matches at least one of the given types
    """
    return any(_matches_type(value, t) for t in types)


def type_hint(name: str, arg: Any, *types: Any) -> None:
    """
    Raise InvalidArgument if ``arg`` matches none of ``types``.

    Args:
        name: Argument name, used in the error message
        arg: The argument to check
        types: Allowed types (see type_check)
    """
    if type_check(arg, *types):
        return
    allowed = "|".join(t.value if isinstance(t, Kind) else getattr(t, "__name__", str(t)) for t in types)
    prefix = "one of " if len(types) > 1 else ""
    raise InvalidArgument(
        detail=f"{name} must be {prefix}{allowed}; {type_name(arg)} provided",
        argument=name,
        provided=type_name(arg),
    )


def _aware(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


_ZULU_RE = re.compile(r"[zZ]$")


def to_datetime(value: Any) -> datetime | None:
    """
    Coerce a value to a timezone-aware datetime.

    Accepts datetimes, dates (midnight), UNIX timestamps (int/float) and ISO 8601
    strings, plus "now" and "today". Naive values are taken as UTC.

    Returns:
        The coerced datetime, or None if the value is not a time value
    """
    if isinstance(value, datetime):
        return _aware(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        lowered = text.lower()
        if lowered == "now":
            return datetime.now(timezone.utc)
        if lowered == "today":
            return datetime.combine(datetime.now(timezone.utc).date(), time.min, tzinfo=timezone.utc)
        try:
            return _aware(datetime.fromisoformat(_ZULU_RE.sub("+00:00", text)))
        except ValueError:
            return None
    return None


def to_string(value: Any) -> str | None:
    """
    Coerce a value to a string.

    Strings, UTF-8 bytes, numbers and objects that define their own ``__str__``
    convert; everything else (None, booleans, containers, plain objects) does not.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError:
            return None
    kind = kind_of(value)
    if kind in NUMERIC:
        return str(value)
    if kind is Kind.OBJECT and type(value).__str__ is not object.__str__:
        return str(value)
    return None
