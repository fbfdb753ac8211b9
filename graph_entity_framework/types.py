import enum
import json
import typing
import uuid
from datetime import date, datetime
from decimal import Decimal
from functools import singledispatch

SCALAR = "scalar"
JSON = "json"
DATE = "date"
FORMATS = (SCALAR, JSON, DATE)


def is_generic(field_type: typing.Any) -> bool:
    return hasattr(field_type, "__origin__")


def unwrap_optional(field_type: typing.Any) -> typing.Any:
    if is_generic(field_type) and field_type.__origin__ == typing.Union:
        args = [arg for arg in field_type.__args__ if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return field_type


def _is_mapping_type(value_type: typing.Any) -> bool:
    if is_generic(value_type):
        value_type = value_type.__origin__
    return isinstance(value_type, type) and issubclass(value_type, dict)


@singledispatch
def to_storage(argument: typing.Any) -> typing.Any:
    return argument


@to_storage.register(date)
def _(argument: date) -> str:
    return argument.isoformat()


@to_storage.register(uuid.UUID)
@to_storage.register(Decimal)
def _(argument: typing.Any) -> str:
    return str(argument)


@to_storage.register(enum.Enum)
def _(argument: enum.Enum) -> typing.Any:
    return argument.value


@to_storage.register(list)
@to_storage.register(tuple)
def _(argument: typing.Sequence) -> list:
    return [to_storage(item) for item in argument]


@to_storage.register(dict)
def _(argument: dict) -> str:
    return json.dumps(argument)


mapping: typing.Dict[typing.Type, typing.Callable[[typing.Any], typing.Any]] = {
    datetime: datetime.fromisoformat,
    date: date.fromisoformat,
    uuid.UUID: uuid.UUID,
    Decimal: Decimal,
}


def encode(value: typing.Any, format: str = SCALAR) -> typing.Any:
    if value is None:
        return None
    if format == JSON:
        return json.dumps(value)
    return to_storage(value)


def decode(value: typing.Any, value_type: typing.Any = None, format: str = SCALAR) -> typing.Any:
    if value is None:
        return None
    if format == JSON:
        return json.loads(value)
    if format == DATE:
        parsed = datetime.fromisoformat(value)
        return parsed.date() if value_type is date else parsed
    if isinstance(value, str) and _is_mapping_type(value_type):
        return json.loads(value)
    if not isinstance(value_type, type):
        return value
    if issubclass(value_type, enum.Enum):
        return value_type(value)
    if not isinstance(value, str):
        return value

    converter = mapping.get(value_type)
    return converter(value) if converter else value
