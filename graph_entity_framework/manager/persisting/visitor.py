import typing

from graph_entity_framework.meta import EntityMeta, PropertyMeta, Visitor
from graph_entity_framework.proxy import is_relation_loaded


class PersistingVisitor(Visitor):
    """Captures what ``persist`` has to write for one entity.

    Scalars end up encoded in ``properties``; writable relations end up in ``relations`` as the ordered list of
    their current targets. Read-only relations and lazy relations a proxy never loaded are left out, nothing
    about them can have changed.
    """

    def __init__(self, entity: typing.Any) -> None:
        self._entity = entity
        self.properties: typing.Dict[str, typing.Any] = {}
        self.relations: typing.List[typing.Tuple[PropertyMeta, typing.List[typing.Any]]] = []
        self.identity: typing.Any = None

    def visit_entity(self, meta: EntityMeta) -> None:
        self.properties.clear()
        self.relations.clear()

    def visit_primary_key(self, prop: PropertyMeta) -> None:
        self.identity = getattr(self._entity, prop.name)

    def visit_scalar(self, prop: PropertyMeta) -> None:
        self.properties[prop.name] = prop.to_storage(getattr(self._entity, prop.name))

    def visit_many_to_many(self, prop: PropertyMeta) -> None:
        if self._is_written(prop):
            self.relations.append((prop, list(getattr(self._entity, prop.name) or [])))

    def visit_many_to_one(self, prop: PropertyMeta) -> None:
        if self._is_written(prop):
            target = getattr(self._entity, prop.name)
            self.relations.append((prop, [] if target is None else [target]))

    def _is_written(self, prop: PropertyMeta) -> bool:
        return not prop.read_only and is_relation_loaded(self._entity, prop.name)
