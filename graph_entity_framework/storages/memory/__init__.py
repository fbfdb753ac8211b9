import copy
import itertools
import logging
import typing

import attr

from graph_entity_framework.storages import (
    INCOMING,
    OUTGOING,
    EdgeRecord,
    GraphTransport,
    NodeRecord,
    TransportError,
)
from graph_entity_framework.storages.memory.query import EDGE_STEPS, parse

logger = logging.getLogger(__name__)


def _clean(properties: typing.Dict[str, typing.Any]) -> typing.Dict[str, typing.Any]:
    return {key: copy.deepcopy(value) for key, value in properties.items() if value is not None}


@attr.s(auto_attribs=True)
class _Node:
    labels: typing.Tuple[str, ...]
    properties: typing.Dict[str, typing.Any]


@attr.s(auto_attribs=True)
class _Edge:
    label: str
    start: int
    end: int
    properties: typing.Dict[str, typing.Any]


class InMemoryTransport(GraphTransport):
    """Graph kept in plain dictionaries, shared by every manager built on the same instance."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._nodes: typing.Dict[int, _Node] = {}
        self._edges: typing.Dict[int, _Edge] = {}
        self._indexes: typing.Dict[typing.Tuple[str, str], typing.Dict[int, typing.Any]] = {}

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def create_node(self, labels: typing.Sequence[str], properties: typing.Dict[str, typing.Any]) -> int:
        node_id = next(self._ids)
        self._nodes[node_id] = _Node(tuple(labels), _clean(properties))
        logger.debug("Created node %s %s", node_id, list(labels))
        return node_id

    def update_node(self, node_id: int, properties: typing.Dict[str, typing.Any]) -> None:
        node = self._get(node_id)
        for key, value in properties.items():
            if value is None:
                node.properties.pop(key, None)
            else:
                node.properties[key] = copy.deepcopy(value)

    def get_node(self, node_id: typing.Any) -> typing.Optional[NodeRecord]:
        node = self._nodes.get(node_id)
        if node is None:
            return None
        return NodeRecord(node_id, node.labels, copy.deepcopy(node.properties))

    def create_edge(self, start: int, end: int, label: str, properties: typing.Dict[str, typing.Any]) -> int:
        self._get(start)
        self._get(end)
        edge_id = next(self._ids)
        self._edges[edge_id] = _Edge(label, start, end, _clean(properties))
        logger.debug("Created edge %s (%s)-[%s]->(%s)", edge_id, start, label, end)
        return edge_id

    def delete_edge(self, edge_id: int) -> None:
        try:
            del self._edges[edge_id]
        except KeyError:
            raise TransportError(f"Edge {edge_id} does not exist")

    def get_edges(self, node_id: typing.Any, label: str = None, direction: str = OUTGOING) -> typing.List[EdgeRecord]:
        if direction not in (OUTGOING, INCOMING):
            raise TransportError(f"Unknown direction {direction!r}")
        side = "start" if direction == OUTGOING else "end"
        return [
            self._edge_record(edge_id)
            for edge_id, edge in self._edges.items()
            if getattr(edge, side) == node_id and (label is None or edge.label == label)
        ]

    def index_node(self, index: str, key: str, value: typing.Any, node_id: typing.Any) -> None:
        self._get(node_id)
        entries = self._indexes.setdefault((index, key), {})
        if value is None:
            entries.pop(node_id, None)
        else:
            entries[node_id] = copy.deepcopy(value)

    def find_by_index(self, index: str, key: str, value: typing.Any) -> typing.List[NodeRecord]:
        entries = self._indexes.get((index, key), {})
        return [self.get_node(node_id) for node_id in sorted(entries) if entries[node_id] == value]

    def query(self, text: str, parameters: typing.Dict[str, typing.Any]) -> typing.List[typing.Dict[str, typing.Any]]:
        traversal = parse(text)
        start = traversal.start_id(parameters)
        elements: typing.List[typing.Union[NodeRecord, EdgeRecord]] = []
        if start in self._nodes:
            elements.append(self.get_node(start))

        for step in traversal.steps:
            if step.name == "map":
                break
            elements = [found for element in elements for found in self._step(element, step.name, step.label)]

        return [dict(element.properties) for element in elements]

    def _step(
        self, element: typing.Union[NodeRecord, EdgeRecord], name: str, label: typing.Optional[str]
    ) -> typing.List[typing.Union[NodeRecord, EdgeRecord]]:
        if name in EDGE_STEPS:
            if not isinstance(element, EdgeRecord):
                raise TransportError(f"Step {name!r} applies to edges only")
            return [self.get_node(element.end if name == "inV" else element.start)]

        if not isinstance(element, NodeRecord):
            raise TransportError(f"Step {name!r} applies to vertices only")
        direction = OUTGOING if name.startswith("out") else INCOMING
        edges = self.get_edges(element.id, label, direction)
        if name.endswith("E"):
            return list(edges)
        return [self.get_node(edge.other_end(direction)) for edge in edges]

    def _get(self, node_id: typing.Any) -> _Node:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise TransportError(f"Node {node_id} does not exist")

    def _edge_record(self, edge_id: int) -> EdgeRecord:
        edge = self._edges[edge_id]
        return EdgeRecord(edge_id, edge.label, edge.start, edge.end, copy.deepcopy(edge.properties))
