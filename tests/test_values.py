from __future__ import annotations

from collections import OrderedDict
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from pathlib import PurePosixPath

import pytest

from rulekit.errors import InvalidArgument
from rulekit.values import Kind, is_iterable, kind_of, to_datetime, to_string, type_check, type_hint, type_name


@pytest.mark.parametrize(
    "value,kind",
    [
        (None, Kind.NULL),
        (False, Kind.BOOL),
        (0, Kind.INT),
        (1.5, Kind.FLOAT),
        (Decimal("2.5"), Kind.FLOAT),
        ("", Kind.STRING),
        (b"x", Kind.BYTES),
        (date(2024, 1, 1), Kind.DATETIME),
        (datetime(2024, 1, 1), Kind.DATETIME),
        ([1], Kind.SEQUENCE),
        ((1,), Kind.SEQUENCE),
        ({"a": 1}, Kind.MAPPING),
        ({1}, Kind.SET),
        (object(), Kind.OBJECT),
    ],
)
def test_kind_of(value, kind: Kind) -> None:
    assert kind_of(value) is kind


def test_type_name() -> None:
    assert type_name(1) == "int"
    assert type_name("x") == "string"
    assert type_name(object()) == "builtins.object"


@pytest.mark.parametrize(
    "value,expected",
    [
        ([1], True),
        ({1}, True),
        ({"a": 1}, True),
        (iter([]), True),
        ("abc", False),
        (b"abc", False),
        (5, False),
    ],
)
def test_is_iterable(value, expected: bool) -> None:
    assert is_iterable(value) is expected


def test_type_check_forms() -> None:
    assert type_check(1, Kind.INT)
    assert type_check(1, int)
    assert type_check("x", "text")
    assert type_check(None, "none")
    assert type_check(OrderedDict(), "dict")
    assert type_check(OrderedDict(), "OrderedDict")
    assert type_check(OrderedDict(), "collections.OrderedDict")
    assert type_check([], "iterable")
    assert type_check(print, "callable")
    assert not type_check(True, "number")
    assert not type_check("x", "int", "float")


def test_type_check_rejects_bad_type_argument() -> None:
    with pytest.raises(InvalidArgument):
        type_check(1, 3.14)


def test_type_hint() -> None:
    type_hint("count", 3, Kind.INT)

    with pytest.raises(InvalidArgument) as excinfo:
        type_hint("count", "3", Kind.INT, Kind.FLOAT)

    error = excinfo.value
    assert error.context["argument"] == "count"
    assert error.context["provided"] == "string"
    assert "one of int|float" in error.message


def test_to_datetime_values() -> None:
    utc = timezone.utc
    assert to_datetime(datetime(2024, 1, 1)) == datetime(2024, 1, 1, tzinfo=utc)
    assert to_datetime(date(2024, 1, 1)) == datetime(2024, 1, 1, tzinfo=utc)
    assert to_datetime(0) == datetime(1970, 1, 1, tzinfo=utc)
    assert to_datetime(Decimal("0")) == datetime(1970, 1, 1, tzinfo=utc)
    assert to_datetime("2024-01-01T12:00:00Z") == datetime(2024, 1, 1, 12, tzinfo=utc)


def test_to_datetime_keeps_offset() -> None:
    dt = to_datetime("2024-01-01T12:00:00+02:00")
    assert dt is not None
    assert dt.utcoffset() == timedelta(hours=2)


def test_to_datetime_relative_words() -> None:
    now = to_datetime("now")
    assert now is not None
    assert abs(now - datetime.now(timezone.utc)) < timedelta(minutes=1)
    today = to_datetime("Today")
    assert today is not None
    assert (today.hour, today.minute) == (0, 0)


@pytest.mark.parametrize("value", [True, None, "", "garbage", [2024], {"year": 2024}])
def test_to_datetime_rejects(value) -> None:
    assert to_datetime(value) is None


@pytest.mark.parametrize(
    "value,expected",
    [
        ("abc", "abc"),
        (b"abc", "abc"),
        (b"\xff", None),
        (12, "12"),
        (1.5, "1.5"),
        (PurePosixPath("a/b"), "a/b"),
        (True, None),
        (None, None),
        ([1], None),
        (object(), None),
    ],
)
def test_to_string(value, expected) -> None:
    assert to_string(value) == expected
