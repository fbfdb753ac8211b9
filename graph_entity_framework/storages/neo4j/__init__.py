import logging
import typing

from neo4j import Driver, GraphDatabase
from neo4j.graph import Node, Relationship

from graph_entity_framework.config import Neo4jConfig
from graph_entity_framework.storages import (
    INCOMING,
    OUTGOING,
    EdgeRecord,
    GraphTransport,
    NodeRecord,
    TransportError,
)

logger = logging.getLogger(__name__)

SEQUENCE_KEY = "_sequence"
SEQUENCE_LABEL = "_GraphSequence"

# increments the shared counter, nodes and edges record it under SEQUENCE_KEY to keep creation order
_NEXT_SEQUENCE = f"MERGE (s:{SEQUENCE_LABEL}) SET s.value = coalesce(s.value, 0) + 1"

_NODE_COLUMNS = "elementId(n) AS id, labels(n) AS labels, properties(n) AS properties"
_EDGE_COLUMNS = (
    "elementId(r) AS id, type(r) AS label, elementId(a) AS start, elementId(b) AS end, properties(r) AS properties"
)


def quote(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


def _flatten(value: typing.Any) -> typing.Any:
    if isinstance(value, (Node, Relationship)):
        return _public(value.items())
    if isinstance(value, list):
        return [_flatten(item) for item in value]
    return value


def _node(record: typing.Mapping[str, typing.Any]) -> NodeRecord:
    return NodeRecord(record["id"], tuple(record["labels"]), _public(record["properties"].items()))


def _edge(record: typing.Mapping[str, typing.Any]) -> EdgeRecord:
    return EdgeRecord(
        record["id"], record["label"], record["start"], record["end"], _public(record["properties"].items())
    )


class Neo4jTransport(GraphTransport):
    """Transport speaking Cypher to a Neo4j server through the official driver.

    Index names become node labels, so ``find_by_index`` is a label scan backed by a property index that is
    created the first time a label/key pair is indexed. Nodes and edges carry a creation sequence (kept out of the
    returned properties) that orders edge and index lookups.
    """

    def __init__(self, driver: Driver, database: typing.Optional[str] = None) -> None:
        self._driver = driver
        self._database = database
        self._created_indexes: typing.Set[typing.Tuple[str, str]] = set()

    @classmethod
    def from_config(cls, config: Neo4jConfig) -> "Neo4jTransport":
        return cls(GraphDatabase.driver(config.url, auth=config.auth), database=config.database)

    def close(self) -> None:
        self._driver.close()

    def _run(self, cypher: str, parameters: typing.Dict[str, typing.Any] = None) -> typing.List[typing.Any]:
        logger.debug("Running %s", cypher)
        with self._driver.session(database=self._database) as session:
            return list(session.run(cypher, parameters or {}))

    def create_node(self, labels: typing.Sequence[str], properties: typing.Dict[str, typing.Any]) -> str:
        label_clause = "".join(f":{quote(label)}" for label in labels)
        records = self._run(
            f"{_NEXT_SEQUENCE} CREATE (n{label_clause}) SET n = $properties, n.{SEQUENCE_KEY} = s.value "
            "RETURN elementId(n) AS id",
            {"properties": _without_nulls(properties)},
        )
        return records[0]["id"]

    def update_node(self, node_id: str, properties: typing.Dict[str, typing.Any]) -> None:
        records = self._run(
            "MATCH (n) WHERE elementId(n) = $id SET n += $properties RETURN elementId(n) AS id",
            {"id": node_id, "properties": properties},
        )
        if not records:
            raise TransportError(f"Node {node_id} does not exist")

    def get_node(self, node_id: typing.Any) -> typing.Optional[NodeRecord]:
        records = self._run(f"MATCH (n) WHERE elementId(n) = $id RETURN {_NODE_COLUMNS}", {"id": str(node_id)})
        return _node(records[0]) if records else None

    def create_edge(self, start: str, end: str, label: str, properties: typing.Dict[str, typing.Any]) -> str:
        records = self._run(
            f"MATCH (a), (b) WHERE elementId(a) = $start AND elementId(b) = $end {_NEXT_SEQUENCE} "
            f"CREATE (a)-[r:{quote(label)}]->(b) SET r = $properties, r.{SEQUENCE_KEY} = s.value "
            "RETURN elementId(r) AS id",
            {"start": start, "end": end, "properties": _without_nulls(properties)},
        )
        if not records:
            raise TransportError(f"Can not connect {start} to {end}, one of the nodes does not exist")
        return records[0]["id"]

    def delete_edge(self, edge_id: str) -> None:
        self._run("MATCH ()-[r]->() WHERE elementId(r) = $id DELETE r", {"id": edge_id})

    def get_edges(self, node_id: typing.Any, label: str = None, direction: str = OUTGOING) -> typing.List[EdgeRecord]:
        if direction not in (OUTGOING, INCOMING):
            raise TransportError(f"Unknown direction {direction!r}")
        anchor = "a" if direction == OUTGOING else "b"
        label_clause = f":{quote(label)}" if label else ""
        records = self._run(
            f"MATCH (a)-[r{label_clause}]->(b) WHERE elementId({anchor}) = $id "
            f"RETURN {_EDGE_COLUMNS} ORDER BY r.{SEQUENCE_KEY}",
            {"id": str(node_id)},
        )
        return [_edge(record) for record in records]

    def index_node(self, index: str, key: str, value: typing.Any, node_id: typing.Any) -> None:
        if (index, key) not in self._created_indexes:
            self._run(f"CREATE INDEX IF NOT EXISTS FOR (n:{quote(index)}) ON (n.{quote(key)})")
            self._created_indexes.add((index, key))
        self._run(
            f"MATCH (n) WHERE elementId(n) = $id SET n:{quote(index)}, n.{quote(key)} = $value",
            {"id": str(node_id), "value": value},
        )

    def find_by_index(self, index: str, key: str, value: typing.Any) -> typing.List[NodeRecord]:
        records = self._run(
            f"MATCH (n:{quote(index)}) WHERE n.{quote(key)} = $value RETURN {_NODE_COLUMNS} ORDER BY n.{SEQUENCE_KEY}",
            {"value": value},
        )
        return [_node(record) for record in records]

    def query(self, text: str, parameters: typing.Dict[str, typing.Any]) -> typing.List[typing.Dict[str, typing.Any]]:
        return [{key: _flatten(value) for key, value in record.items()} for record in self._run(text, parameters)]


def _public(items: typing.Iterable[typing.Tuple[str, typing.Any]]) -> typing.Dict[str, typing.Any]:
    return {key: value for key, value in items if key != SEQUENCE_KEY}


def _without_nulls(properties: typing.Dict[str, typing.Any]) -> typing.Dict[str, typing.Any]:
    return {key: value for key, value in properties.items() if value is not None}
