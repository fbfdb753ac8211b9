import enum
import importlib
import re
import typing

import attr
import inflection

from graph_entity_framework import annotations, types
from graph_entity_framework.annotations import AnnotationReader
from graph_entity_framework.exceptions import EntityWithoutIdentity, MappingError, MultipleIdentities, NotAnEntity
from graph_entity_framework.proxy import EntityProxy
from graph_entity_framework.repository import Repository

DIRECTIONS = ("to", "from")

_ACCESSOR_PREFIX = re.compile(r"^(find_one_by|find_by|get|set|add|find)_")


def class_path(cls: typing.Type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def load_class(path: str) -> typing.Type:
    parts = path.split(".")
    for split_at in range(len(parts) - 1, 0, -1):
        try:
            target = importlib.import_module(".".join(parts[:split_at]))
        except ImportError:
            continue
        try:
            for name in parts[split_at:]:
                target = getattr(target, name)
        except AttributeError:
            continue
        return target
    raise NotAnEntity(f"Class {path} can not be loaded")


class PropertyKind(enum.Enum):
    SCALAR = "scalar"
    PRIMARY_KEY = "primary_key"
    MANY_TO_ONE = "many_to_one"
    MANY_TO_MANY = "many_to_many"


class Visitor:
    def traverse(self, meta: "EntityMeta") -> None:
        self.visit_entity(meta)
        for prop in meta:
            prop.accept(self)
            prop.farewell(self)
        self.leave_entity(meta)

    def visit_entity(self, meta: "EntityMeta") -> None:
        pass

    def leave_entity(self, meta: "EntityMeta") -> None:
        pass

    def visit_primary_key(self, prop: "PropertyMeta") -> None:
        pass

    def leave_primary_key(self, prop: "PropertyMeta") -> None:
        pass

    def visit_scalar(self, prop: "PropertyMeta") -> None:
        pass

    def leave_scalar(self, prop: "PropertyMeta") -> None:
        pass

    def visit_many_to_many(self, prop: "PropertyMeta") -> None:
        pass

    def leave_many_to_many(self, prop: "PropertyMeta") -> None:
        pass

    def visit_many_to_one(self, prop: "PropertyMeta") -> None:
        pass

    def leave_many_to_one(self, prop: "PropertyMeta") -> None:
        pass


@attr.s(auto_attribs=True, frozen=True)
class PropertyMeta:
    name: str
    kind: PropertyKind
    indexed: bool = False
    format: str = types.SCALAR
    value_type: typing.Any = None
    relation: typing.Optional[str] = None
    direction: str = "to"
    read_only: bool = False
    write_only: bool = False

    @classmethod
    def from_member(cls, reader: AnnotationReader, member: attr.Attribute) -> typing.Optional["PropertyMeta"]:
        found = reader.get_member_annotations(member)

        if annotations.AUTO in found:
            return cls(member.name, PropertyKind.PRIMARY_KEY)

        if annotations.PROPERTY in found:
            prop_format = found[annotations.PROPERTY].get("format", types.SCALAR)
            if prop_format not in types.FORMATS:
                raise MappingError(f"Property {member.name} declares unknown format {prop_format!r}")
            return cls(
                member.name,
                PropertyKind.SCALAR,
                indexed=annotations.INDEX in found,
                format=prop_format,
                value_type=types.unwrap_optional(member.type),
            )

        for annotation, kind in (
            (annotations.MANY_TO_MANY, PropertyKind.MANY_TO_MANY),
            (annotations.MANY_TO_ONE, PropertyKind.MANY_TO_ONE),
        ):
            if annotation in found:
                attributes = found[annotation]
                direction = attributes.get("direction", "to")
                if direction not in DIRECTIONS:
                    raise MappingError(f"Relation {member.name} declares unknown direction {direction!r}")
                read_only = bool(attributes.get("read_only"))
                write_only = bool(attributes.get("write_only"))
                if read_only and write_only:
                    raise MappingError(f"Relation {member.name} can not be both read-only and write-only")
                return cls(
                    member.name,
                    kind,
                    relation=attributes.get("relation") or member.name,
                    direction=direction,
                    read_only=read_only,
                    write_only=write_only,
                )

        return None

    @property
    def is_primary_key(self) -> bool:
        return self.kind is PropertyKind.PRIMARY_KEY

    @property
    def is_property(self) -> bool:
        return self.kind is PropertyKind.SCALAR

    @property
    def is_relation_list(self) -> bool:
        return self.kind is PropertyKind.MANY_TO_MANY

    @property
    def is_relation(self) -> bool:
        return self.kind is PropertyKind.MANY_TO_ONE

    def matches(self, suffix: str) -> bool:
        candidate = inflection.underscore(suffix).lower()
        name = self.name.lower()
        return name == candidate or name == inflection.pluralize(candidate)

    def to_storage(self, value: typing.Any) -> typing.Any:
        return types.encode(value, self.format)

    def from_storage(self, value: typing.Any) -> typing.Any:
        return types.decode(value, self.value_type, self.format)

    def accept(self, visitor: Visitor) -> None:
        getattr(visitor, f"visit_{self.kind.value}")(self)

    def farewell(self, visitor: Visitor) -> None:
        getattr(visitor, f"leave_{self.kind.value}")(self)


@attr.s(auto_attribs=True)
class EntityMeta:
    class_name: str
    entity_class: typing.Type
    repository_class: typing.Type = Repository
    primary_key: typing.Optional[PropertyMeta] = None
    properties: typing.List[PropertyMeta] = attr.Factory(list)
    indexed_properties: typing.List[PropertyMeta] = attr.Factory(list)
    many_to_many_relations: typing.List[PropertyMeta] = attr.Factory(list)
    many_to_one_relations: typing.List[PropertyMeta] = attr.Factory(list)

    @classmethod
    def from_class(cls, reader: AnnotationReader, class_name: typing.Union[str, typing.Type]) -> "EntityMeta":
        entity_cls = load_class(class_name) if isinstance(class_name, str) else class_name
        if not isinstance(entity_cls, type):
            raise NotAnEntity(f"{entity_cls!r} is not a class")
        entity_cls = unwrap_proxy_class(entity_cls)

        entity = reader.get_class_annotation(entity_cls, annotations.ENTITY)
        if entity is None:
            raise NotAnEntity(f"Class {class_path(entity_cls)} is not declared as an entity.")

        meta = cls(class_path(entity_cls), entity_cls)
        if entity.get("repository_class"):
            meta.repository_class = entity["repository_class"]

        for member in reader.get_members(entity_cls):
            prop = PropertyMeta.from_member(reader, member)
            if prop is None:
                continue
            if prop.is_primary_key:
                meta._set_primary_key(prop)
            elif prop.is_property:
                meta.properties.append(prop)
                if prop.indexed:
                    meta.indexed_properties.append(prop)
            elif prop.is_relation_list:
                meta.many_to_many_relations.append(prop)
            elif prop.is_relation:
                meta.many_to_one_relations.append(prop)

        meta._validate()
        return meta

    def __iter__(self) -> typing.Iterator[PropertyMeta]:
        yield self.primary_key
        yield from self.properties
        yield from self.relations

    @property
    def relations(self) -> typing.List[PropertyMeta]:
        return self.many_to_many_relations + self.many_to_one_relations

    @property
    def short_name(self) -> str:
        return self.entity_class.__name__

    @property
    def proxy_class_name(self) -> str:
        return f"{self.short_name}Proxy"

    def find_property(self, accessor_name: str) -> typing.Optional[PropertyMeta]:
        suffix = _ACCESSOR_PREFIX.sub("", inflection.underscore(accessor_name), count=1)
        for prop in self.properties + self.many_to_many_relations + self.many_to_one_relations:
            if prop.matches(suffix):
                return prop
        return None

    def _set_primary_key(self, prop: PropertyMeta) -> None:
        if self.primary_key:
            raise MultipleIdentities(f"Class {self.class_name} contains multiple targets for Auto")
        self.primary_key = prop

    def _validate(self) -> None:
        if not self.primary_key:
            raise EntityWithoutIdentity(f"Class {self.class_name} contains no Auto property")


def unwrap_proxy_class(cls: typing.Type) -> typing.Type:
    while issubclass(cls, EntityProxy):
        cls = next(base for base in cls.__mro__[1:] if not issubclass(base, EntityProxy))
    return cls
