import typing

from graph_entity_framework.entity import Entity

if typing.TYPE_CHECKING:
    from graph_entity_framework.manager import EntityManager


class Query:
    """Native query of the underlying transport, with entities bound as parameters by their node ids."""

    def __init__(self, entity_manager: "EntityManager", text: str) -> None:
        self._entity_manager = entity_manager
        self._text = text
        self._parameters: typing.Dict[str, typing.Any] = {}

    @property
    def text(self) -> str:
        return self._text

    @property
    def parameters(self) -> typing.Dict[str, typing.Any]:
        return dict(self._parameters)

    def set(self, name: str, value: typing.Any) -> "Query":
        if isinstance(value, Entity):
            value = self._entity_manager.node_id(value)
        self._parameters[name] = value
        return self

    def get_list(self) -> typing.List[typing.Dict[str, typing.Any]]:
        return self._entity_manager.transport.query(self._text, dict(self._parameters))

    def get_map(self) -> typing.Dict[str, typing.Any]:
        rows = self.get_list()
        return rows[0] if rows else {}
