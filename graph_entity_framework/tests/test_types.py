import enum
import typing
import uuid
from datetime import date, datetime
from decimal import Decimal

import pytest

from graph_entity_framework import types


class Rating(enum.Enum):
    GOOD = "good"
    BAD = "bad"


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, None),
        ("text", "text"),
        (12, 12),
        (datetime(2012, 5, 1, 20, 15), "2012-05-01T20:15:00"),
        (date(2012, 5, 1), "2012-05-01"),
        (Decimal("9.99"), "9.99"),
        (uuid.UUID("12345678123456781234567812345678"), "12345678-1234-5678-1234-567812345678"),
        (Rating.GOOD, "good"),
        (["a", date(2012, 5, 1)], ["a", "2012-05-01"]),
        ({"foo": "bar"}, '{"foo": "bar"}'),
    ],
)
def test_encode_scalars(value: typing.Any, expected: typing.Any) -> None:
    assert types.encode(value) == expected


def test_encode_json() -> None:
    assert types.encode(["foo", {"bar": 1}], types.JSON) == '["foo", {"bar": 1}]'


@pytest.mark.parametrize(
    "value, value_type, expected",
    [
        (None, datetime, None),
        ("2012-05-01T20:15:00", datetime, datetime(2012, 5, 1, 20, 15)),
        ("2012-05-01", date, date(2012, 5, 1)),
        ("9.99", Decimal, Decimal("9.99")),
        ("good", Rating, Rating.GOOD),
        ("plain", str, "plain"),
        (3, int, 3),
        ("anything", typing.Any, "anything"),
        ('{"foo": "bar"}', dict, {"foo": "bar"}),
        ('{"foo": "bar"}', typing.Dict[str, str], {"foo": "bar"}),
    ],
)
def test_decode(value: typing.Any, value_type: typing.Any, expected: typing.Any) -> None:
    assert types.decode(value, value_type) == expected


def test_decode_json_format() -> None:
    assert types.decode('["foo", {"bar": 1}]', format=types.JSON) == ["foo", {"bar": 1}]


def test_decode_date_format() -> None:
    assert types.decode("2012-05-01T20:15:00", str, types.DATE) == datetime(2012, 5, 1, 20, 15)


def test_decode_date_format_for_date_field() -> None:
    decoded = types.decode("2012-05-01", date, types.DATE)

    assert decoded == date(2012, 5, 1)
    assert type(decoded) is date
    assert types.decode("2012-05-01T20:15:00", date, types.DATE) == date(2012, 5, 1)


def test_unwrap_optional() -> None:
    assert types.unwrap_optional(typing.Optional[datetime]) is datetime
    assert types.unwrap_optional(typing.Union[int, str]) == typing.Union[int, str]
    assert types.unwrap_optional(str) is str
