import re
import typing

import inflection

from graph_entity_framework.exceptions import PropertyNotFound, PropertyNotIndexed

if typing.TYPE_CHECKING:
    from graph_entity_framework.manager import EntityManager
    from graph_entity_framework.meta import EntityMeta, PropertyMeta

_FINDER = re.compile(r"^find_(?P<one>one_)?by_(?P<property>\w+)$")


class Repository:
    """Query facade for one mapped class.

    Besides ``find``, ``find_by`` and ``find_one_by`` it answers any ``find_by_<property>`` or
    ``find_one_by_<property>`` attribute (camelCase spellings such as ``findOneByCode`` work too),
    provided the property is declared with ``Property(index=True)``.
    """

    def __init__(self, entity_manager: "EntityManager", meta: "EntityMeta") -> None:
        self._entity_manager = entity_manager
        self._meta = meta

    @property
    def meta(self) -> "EntityMeta":
        return self._meta

    def find(self, identity: typing.Any) -> typing.Any:
        return self._entity_manager.find(self._meta.entity_class, identity)

    def find_by(self, **criteria: typing.Any) -> typing.List[typing.Any]:
        if not criteria:
            raise TypeError("find_by() requires at least one criterion")

        matches: typing.Optional[typing.List[typing.Any]] = None
        for name, value in criteria.items():
            prop = self._indexed_property(name)
            found = self._entity_manager.find_by_index(self._meta, prop, value)
            if matches is None:
                matches = found
            else:
                found_ids = {id(entity) for entity in found}
                matches = [entity for entity in matches if id(entity) in found_ids]
        return matches

    def find_one_by(self, **criteria: typing.Any) -> typing.Any:
        found = self.find_by(**criteria)
        return found[0] if found else None

    def __getattr__(self, name: str) -> typing.Callable[[typing.Any], typing.Any]:
        match = _FINDER.match(inflection.underscore(name))
        if not match:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

        prop = self._indexed_property(name)
        finder = self.find_one_by if match.group("one") else self.find_by

        def find(value: typing.Any) -> typing.Any:
            return finder(**{prop.name: value})

        return find

    def _indexed_property(self, accessor_name: str) -> "PropertyMeta":
        prop = self._meta.find_property(accessor_name)
        if prop is None:
            raise PropertyNotFound(f"Property {accessor_name} does not exist on {self._meta.class_name}")
        if not prop.indexed:
            raise PropertyNotIndexed(f"Property {prop.name} of {self._meta.class_name} is not indexed")
        return prop
