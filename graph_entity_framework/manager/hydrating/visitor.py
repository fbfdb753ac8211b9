import typing

import attr

from graph_entity_framework.meta import EntityMeta, PropertyMeta, Visitor
from graph_entity_framework.storages import NodeRecord


class HydratingVisitor(Visitor):
    def __init__(self, node: NodeRecord, instance: typing.Any) -> None:
        self._node = node
        self._state = instance.__dict__
        self._instance = instance
        self._mapped: typing.Set[str] = set()

    @property
    def result(self) -> typing.Any:
        return self._instance

    def visit_primary_key(self, prop: PropertyMeta) -> None:
        self._mapped.add(prop.name)
        self._state[prop.name] = self._node.id

    def visit_scalar(self, prop: PropertyMeta) -> None:
        self._mapped.add(prop.name)
        self._state[prop.name] = prop.from_storage(self._node.properties.get(prop.name))

    def visit_many_to_many(self, prop: PropertyMeta) -> None:
        # left to the proxy, loaded on first read
        self._mapped.add(prop.name)

    visit_many_to_one = visit_many_to_many

    def leave_entity(self, meta: EntityMeta) -> None:
        for field in attr.fields(meta.entity_class):
            if field.name in self._mapped:
                continue
            if isinstance(field.default, attr.Factory):
                factory = field.default
                self._state[field.name] = factory.factory(self._instance) if factory.takes_self else factory.factory()
            elif field.default is not attr.NOTHING:
                self._state[field.name] = field.default
