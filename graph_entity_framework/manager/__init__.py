import collections
import copy
import logging
import typing
from datetime import datetime

from graph_entity_framework.config import ManagerConfig
from graph_entity_framework.exceptions import EntityNotFlushed, MappingError, UnknownEvent
from graph_entity_framework.manager.hydrating.visitor import HydratingVisitor
from graph_entity_framework.manager.persisting.visitor import PersistingVisitor
from graph_entity_framework.manager.query import Query
from graph_entity_framework.manager.unit_of_work import (
    CREATE,
    UPDATE,
    PendingEdge,
    PendingEntity,
    RemovedEdge,
    UnitOfWork,
)
from graph_entity_framework.meta import EntityMeta, PropertyMeta
from graph_entity_framework.proxy import ProxyFactory
from graph_entity_framework.registry import MetaRepository
from graph_entity_framework.repository import Repository
from graph_entity_framework.storages import INCOMING, OUTGOING, GraphTransport, NodeRecord

logger = logging.getLogger(__name__)

ENTITY_CREATE = "entity.create"
RELATION_CREATE = "relation.create"

_Key = typing.Tuple[str, typing.Any]


class EntityManager:
    """Keeps a unit of work of entities to write and turns stored nodes back into entities.

    One manager is meant to be driven by a single caller at a time. Everything it loads goes through an identity
    map, so a node is represented by at most one object per manager.
    """

    ENTITY_CREATE = ENTITY_CREATE
    RELATION_CREATE = RELATION_CREATE

    def __init__(
        self,
        transport: GraphTransport,
        meta_repository: typing.Optional[MetaRepository] = None,
        config: typing.Optional[ManagerConfig] = None,
    ) -> None:
        self._transport = transport
        self._meta_repository = meta_repository or MetaRepository()
        self._config = config or ManagerConfig()
        self._proxy_factory = ProxyFactory()
        self._unit_of_work = UnitOfWork()
        self._identity_map: typing.Dict[typing.Any, typing.Any] = {}
        self._stored: typing.Dict[typing.Any, typing.Dict[str, typing.Any]] = {}
        self._repositories: typing.Dict[typing.Type, Repository] = {}
        self._events: typing.Dict[str, typing.List[typing.Callable]] = {ENTITY_CREATE: [], RELATION_CREATE: []}
        self._date_generator: typing.Callable[[], typing.Any] = self._current_date

    @property
    def transport(self) -> GraphTransport:
        return self._transport

    @property
    def meta_repository(self) -> MetaRepository:
        return self._meta_repository

    @property
    def unit_of_work(self) -> UnitOfWork:
        return self._unit_of_work

    def _current_date(self) -> str:
        return datetime.now().strftime(self._config.date_format)

    def set_date_generator(self, generator: typing.Callable[[], typing.Any]) -> None:
        self._date_generator = generator

    def set_proxy_factory(self, proxy_factory: ProxyFactory) -> None:
        self._proxy_factory = proxy_factory

    def register_event(self, kind: str, handler: typing.Callable) -> None:
        if kind not in self._events:
            raise UnknownEvent(f"Unknown event {kind!r}, expected one of {sorted(self._events)}")
        self._events[kind].append(handler)

    def _fire(self, kind: str, *args: typing.Any) -> None:
        for handler in self._events[kind]:
            handler(*args)

    # writing

    def persist(self, entity: typing.Any) -> None:
        self._persist(entity, set())

    def _persist(self, entity: typing.Any, visited: typing.Set[int]) -> None:
        if id(entity) in visited:
            return
        visited.add(id(entity))

        meta = self._meta_repository.get(type(entity))
        visitor = PersistingVisitor(entity)
        visitor.traverse(meta)

        now = self._date_generator()
        properties = dict(visitor.properties)
        properties[self._config.update_date_key] = now

        pending = self._unit_of_work.get(entity)
        if pending is not None:
            pending.properties.update(properties)
        elif visitor.identity is None:
            properties[self._config.class_key] = meta.class_name
            properties[self._config.creation_date_key] = now
            self._unit_of_work.register(PendingEntity(entity, meta, CREATE, properties))
            logger.debug("Queued creation of %s", meta.class_name)
            self._fire(ENTITY_CREATE, entity)
        else:
            self._unit_of_work.register(PendingEntity(entity, meta, UPDATE, properties))
            logger.debug("Queued update of %s %s", meta.class_name, visitor.identity)

        for prop, targets in visitor.relations:
            for target in targets:
                self._persist(target, visited)
            self._reconcile_relation(entity, visitor.identity, prop, targets, now)

    def _key(self, entity: typing.Any) -> _Key:
        identity = self._identity(entity)
        if identity is None:
            return "new", id(entity)
        return "node", identity

    def _identity(self, entity: typing.Any) -> typing.Any:
        meta = self._meta_repository.get(type(entity))
        return getattr(entity, meta.primary_key.name)

    def _reconcile_relation(
        self, entity: typing.Any, identity: typing.Any, prop: PropertyMeta, targets: typing.List[typing.Any], now: typing.Any
    ) -> None:
        direction = OUTGOING if prop.direction == "to" else INCOMING

        stored: typing.DefaultDict[_Key, list] = collections.defaultdict(list)
        if identity is not None:
            for edge in self._transport.get_edges(identity, prop.relation, direction):
                if not self._unit_of_work.is_removed(edge.id):
                    stored["node", edge.other_end(direction)].append(edge)

        # edges queued by either side of the relation, seen from this entity
        outgoing = direction == OUTGOING
        queued: typing.DefaultDict[_Key, typing.List[PendingEdge]] = collections.defaultdict(list)
        for edge in self._unit_of_work.pending_edges(entity, prop.relation, outgoing):
            queued[self._key(edge.end if outgoing else edge.start)].append(edge)

        wanted: typing.Counter[_Key] = collections.Counter()
        for target in targets:
            key = self._key(target)
            wanted[key] += 1
            if wanted[key] > len(stored[key]) + len(queued[key]):
                self._queue_edge(entity, target, prop, now)

        if prop.write_only:
            return

        for key in set(stored) | set(queued):
            surplus = len(stored[key]) + len(queued[key]) - wanted[key]
            while surplus > 0 and queued[key]:
                self._unit_of_work.discard_edge(queued[key].pop())
                surplus -= 1
            for edge in stored[key][len(stored[key]) - surplus :] if surplus > 0 else ():
                self._unit_of_work.removed_edges.append(RemovedEdge(edge.id, edge.label))
                logger.debug("Queued removal of %s edge %s", edge.label, edge.id)

    def _queue_edge(self, entity: typing.Any, target: typing.Any, prop: PropertyMeta, now: typing.Any) -> None:
        start, end = (entity, target) if prop.direction == "to" else (target, entity)
        self._unit_of_work.edges.append(PendingEdge(prop.relation, start, end, {self._config.creation_date_key: now}))
        logger.debug("Queued %s edge", prop.relation)
        self._fire(RELATION_CREATE, prop.relation, start, end)

    def flush(self) -> None:
        unit_of_work = self._unit_of_work
        if not unit_of_work:
            return
        logger.debug(
            "Flushing %d entities, %d new edges, %d removed edges",
            len(unit_of_work.entities),
            len(unit_of_work.edges),
            len(unit_of_work.removed_edges),
        )

        # work is dropped from the queue as soon as it is applied, a retried flush resumes where it failed
        for key, pending in list(unit_of_work.entities.items()):
            if self._write_node(pending):
                node_id = self._identity(pending.entity)
                for prop in pending.meta.indexed_properties:
                    self._transport.index_node(
                        pending.meta.class_name, prop.name, pending.properties.get(prop.name), node_id
                    )
            del unit_of_work.entities[key]

        while unit_of_work.removed_edges:
            self._transport.delete_edge(unit_of_work.removed_edges[0].edge_id)
            unit_of_work.removed_edges.pop(0)

        while unit_of_work.edges:
            edge = unit_of_work.edges[0]
            self._transport.create_edge(
                self._identity(edge.start), self._identity(edge.end), edge.label, edge.properties
            )
            unit_of_work.edges.pop(0)

    def _write_node(self, pending: PendingEntity) -> bool:
        if pending.operation == CREATE:
            node_id = self._transport.create_node([pending.meta.short_name], pending.properties)
            setattr(pending.entity, pending.meta.primary_key.name, node_id)
            # a retry after a failing flush must not create the node twice
            pending.operation = UPDATE
            self._identity_map[node_id] = pending.entity
            self._stored[node_id] = copy.deepcopy(pending.properties)
            return True

        node_id = self._identity(pending.entity)
        stored = self._stored.get(node_id)
        if stored is not None and all(stored.get(key) == value for key, value in pending.properties.items()):
            return False
        self._transport.update_node(node_id, pending.properties)
        self._stored.setdefault(node_id, {}).update(copy.deepcopy(pending.properties))
        return True

    # reading

    def find(self, entity_cls: typing.Type, identity: typing.Any) -> typing.Any:
        meta = self._meta_repository.get(entity_cls)
        entity = self.find_any(identity)
        if entity is not None and not isinstance(entity, meta.entity_class):
            return None
        return entity

    def find_any(self, identity: typing.Any) -> typing.Any:
        if identity is None:
            return None
        if identity in self._identity_map:
            return self._identity_map[identity]
        node = self._transport.get_node(identity)
        if node is None:
            return None
        return self.hydrate(node)

    def find_by_index(self, meta: EntityMeta, prop: PropertyMeta, value: typing.Any) -> typing.List[typing.Any]:
        nodes = self._transport.find_by_index(meta.class_name, prop.name, prop.to_storage(value))
        return [self.hydrate(node) for node in nodes]

    def hydrate(self, node: NodeRecord) -> typing.Any:
        if node.id in self._identity_map:
            return self._identity_map[node.id]

        class_name = node.properties.get(self._config.class_key)
        if class_name is None:
            raise MappingError(f"Node {node.id} is not mapped to any class")
        meta = self._meta_repository.get(class_name)

        visitor = HydratingVisitor(node, self._proxy_factory.from_node(node, meta, self))
        visitor.traverse(meta)
        self._identity_map[node.id] = visitor.result
        # decoded values may share mutable objects with the record
        self._stored[node.id] = copy.deepcopy(node.properties)
        return visitor.result

    def load_relation(self, entity: typing.Any, prop: PropertyMeta) -> typing.Any:
        if prop.write_only:
            return [] if prop.is_relation_list else None

        direction = OUTGOING if prop.direction == "to" else INCOMING
        targets = []
        for edge in self._transport.get_edges(self._identity(entity), prop.relation, direction):
            node = self._transport.get_node(edge.other_end(direction))
            if node is not None:
                targets.append(self.hydrate(node))

        if prop.is_relation_list:
            return targets
        return targets[0] if targets else None

    def node_id(self, entity: typing.Any) -> typing.Any:
        identity = self._identity(entity)
        if identity is None:
            raise EntityNotFlushed(f"{type(entity).__name__} has not been flushed yet")
        return identity

    def get_repository(self, entity_cls: typing.Type) -> Repository:
        meta = self._meta_repository.get(entity_cls)
        if meta.entity_class not in self._repositories:
            self._repositories[meta.entity_class] = meta.repository_class(self, meta)
        return self._repositories[meta.entity_class]

    def create_query(self, text: str) -> Query:
        return Query(self, text)

    def clear(self) -> None:
        """Forget every loaded entity and drop the pending unit of work."""
        self._unit_of_work.clear()
        self._identity_map.clear()
        self._stored.clear()
