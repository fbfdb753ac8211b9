import abc
import typing

import attr

from graph_entity_framework.annotations import (
    AUTO,
    CLASS_ANNOTATIONS,
    ENTITY,
    INDEX,
    MANY_TO_MANY,
    MANY_TO_ONE,
    MEMBER_ANNOTATIONS,
    PROPERTY,
)
from graph_entity_framework.proxy import EntityProxy


class MappedClassMeta(abc.ABCMeta):
    def __new__(mcs, name: str, bases: tuple, namespace: dict, repository_class: typing.Type = None, **kwargs):
        cls = super().__new__(mcs, name, bases, namespace, **kwargs)
        if not bases or any(issubclass(base, EntityProxy) for base in bases):
            return cls
        setattr(cls, CLASS_ANNOTATIONS, {ENTITY: {"repository_class": repository_class}})
        return attr.s(auto_attribs=True, eq=False)(cls)

    def __init__(cls, name: str, bases: tuple, namespace: dict, repository_class: typing.Type = None, **kwargs):
        super().__init__(name, bases, namespace, **kwargs)


class Entity(metaclass=MappedClassMeta):
    pass


def _annotated(annotations: typing.Dict[str, dict], **kwargs: typing.Any) -> typing.Any:
    return attr.ib(metadata={MEMBER_ANNOTATIONS: annotations}, **kwargs)


def Auto() -> typing.Any:
    return _annotated({AUTO: {}}, default=None)


def Property(
    index: bool = False, format: str = "scalar", default: typing.Any = None, factory: typing.Callable = None
) -> typing.Any:
    annotations = {PROPERTY: {"format": format}}
    if index:
        annotations[INDEX] = {}
    if factory is not None:
        return _annotated(annotations, factory=factory)
    return _annotated(annotations, default=default)


def _relation_attributes(
    relation: typing.Optional[str], direction: str, read_only: bool, write_only: bool
) -> typing.Dict[str, typing.Any]:
    return {"relation": relation, "direction": direction, "read_only": read_only, "write_only": write_only}


def ManyToMany(
    relation: str = None, direction: str = "to", read_only: bool = False, write_only: bool = False
) -> typing.Any:
    return _annotated({MANY_TO_MANY: _relation_attributes(relation, direction, read_only, write_only)}, factory=list)


def ManyToOne(
    relation: str = None, direction: str = "to", read_only: bool = False, write_only: bool = False
) -> typing.Any:
    return _annotated({MANY_TO_ONE: _relation_attributes(relation, direction, read_only, write_only)}, default=None)
