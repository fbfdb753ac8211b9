import abc
import typing

import attr

OUTGOING = "out"
INCOMING = "in"


class TransportError(Exception):
    pass


@attr.s(auto_attribs=True, frozen=True)
class NodeRecord:
    id: typing.Any
    labels: typing.Tuple[str, ...] = ()
    properties: typing.Dict[str, typing.Any] = attr.Factory(dict)


@attr.s(auto_attribs=True, frozen=True)
class EdgeRecord:
    id: typing.Any
    label: str
    start: typing.Any
    end: typing.Any
    properties: typing.Dict[str, typing.Any] = attr.Factory(dict)

    def other_end(self, direction: str) -> typing.Any:
        return self.end if direction == OUTGOING else self.start


class GraphTransport(abc.ABC):
    @abc.abstractmethod
    def create_node(self, labels: typing.Sequence[str], properties: typing.Dict[str, typing.Any]) -> typing.Any:
        pass

    @abc.abstractmethod
    def update_node(self, node_id: typing.Any, properties: typing.Dict[str, typing.Any]) -> None:
        pass

    @abc.abstractmethod
    def get_node(self, node_id: typing.Any) -> typing.Optional[NodeRecord]:
        pass

    @abc.abstractmethod
    def create_edge(
        self, start: typing.Any, end: typing.Any, label: str, properties: typing.Dict[str, typing.Any]
    ) -> typing.Any:
        pass

    @abc.abstractmethod
    def delete_edge(self, edge_id: typing.Any) -> None:
        pass

    @abc.abstractmethod
    def get_edges(self, node_id: typing.Any, label: str, direction: str = OUTGOING) -> typing.List[EdgeRecord]:
        pass

    @abc.abstractmethod
    def index_node(self, index: str, key: str, value: typing.Any, node_id: typing.Any) -> None:
        pass

    @abc.abstractmethod
    def find_by_index(self, index: str, key: str, value: typing.Any) -> typing.List[NodeRecord]:
        pass

    @abc.abstractmethod
    def query(self, text: str, parameters: typing.Dict[str, typing.Any]) -> typing.List[typing.Dict[str, typing.Any]]:
        pass
