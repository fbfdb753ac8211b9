import typing

import attr

from graph_entity_framework.meta import EntityMeta

CREATE = "create"
UPDATE = "update"


@attr.s(auto_attribs=True)
class PendingEntity:
    entity: typing.Any
    meta: EntityMeta
    operation: str
    properties: typing.Dict[str, typing.Any] = attr.Factory(dict)


@attr.s(auto_attribs=True)
class PendingEdge:
    label: str
    start: typing.Any
    end: typing.Any
    properties: typing.Dict[str, typing.Any] = attr.Factory(dict)


@attr.s(auto_attribs=True)
class RemovedEdge:
    edge_id: typing.Any
    label: str


@attr.s(auto_attribs=True)
class UnitOfWork:
    entities: typing.Dict[int, PendingEntity] = attr.Factory(dict)
    edges: typing.List[PendingEdge] = attr.Factory(list)
    removed_edges: typing.List[RemovedEdge] = attr.Factory(list)

    def __bool__(self) -> bool:
        return bool(self.entities or self.edges or self.removed_edges)

    def __len__(self) -> int:
        return len(self.entities) + len(self.edges) + len(self.removed_edges)

    def get(self, entity: typing.Any) -> typing.Optional[PendingEntity]:
        return self.entities.get(id(entity))

    def register(self, pending: PendingEntity) -> PendingEntity:
        self.entities[id(pending.entity)] = pending
        return pending

    def pending_edges(self, entity: typing.Any, label: str, outgoing: bool = True) -> typing.List[PendingEdge]:
        """Queued edges with the given label that leave (or, with ``outgoing=False``, enter) ``entity``."""
        return [
            edge
            for edge in self.edges
            if edge.label == label and (edge.start if outgoing else edge.end) is entity
        ]

    def discard_edge(self, edge: PendingEdge) -> None:
        self.edges = [queued for queued in self.edges if queued is not edge]

    def is_removed(self, edge_id: typing.Any) -> bool:
        return any(removed.edge_id == edge_id for removed in self.removed_edges)

    def clear(self) -> None:
        self.entities.clear()
        self.edges.clear()
        self.removed_edges.clear()
