import typing
import weakref

from graph_entity_framework.exceptions import DetachedProxy

if typing.TYPE_CHECKING:
    from graph_entity_framework.meta import EntityMeta, PropertyMeta
    from graph_entity_framework.storages import NodeRecord


class EntityProxy:
    """Base of every generated proxy class.

    A proxy is a stored entity whose relations are fetched on first read through the manager that loaded it.
    The manager is only referenced weakly, so keeping a proxy around does not keep its manager alive.
    """

    __graph_manager__: typing.Optional[weakref.ref] = None
    __graph_node_id__: typing.Any = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} node={self.__graph_node_id__!r}>"


class LazyRelation:
    def __init__(self, prop: "PropertyMeta") -> None:
        self.prop = prop
        self.name = prop.name

    def __get__(self, instance: typing.Optional[EntityProxy], owner: typing.Type) -> typing.Any:
        if instance is None:
            return self
        state = instance.__dict__
        if self.name not in state:
            manager = instance.__graph_manager__() if instance.__graph_manager__ else None
            if manager is None:
                raise DetachedProxy(
                    f"Cannot load {type(instance).__name__}.{self.name}, the entity manager is gone"
                )
            state[self.name] = manager.load_relation(instance, self.prop)
        return state[self.name]

    def __set__(self, instance: EntityProxy, value: typing.Any) -> None:
        instance.__dict__[self.name] = value


def is_relation_loaded(entity: typing.Any, name: str) -> bool:
    if not isinstance(entity, EntityProxy):
        return True
    return name in entity.__dict__


class ProxyFactory:
    def __init__(self) -> None:
        self._proxy_classes: typing.Dict[typing.Type, typing.Type[EntityProxy]] = {}

    def get_proxy(self, entity: typing.Any, meta: "EntityMeta") -> typing.Type[EntityProxy]:
        entity_cls = entity if isinstance(entity, type) else type(entity)
        if issubclass(entity_cls, EntityProxy):
            return entity_cls
        try:
            return self._proxy_classes[entity_cls]
        except KeyError:
            pass

        namespace: typing.Dict[str, typing.Any] = {"__module__": entity_cls.__module__}
        for prop in meta.relations:
            namespace[prop.name] = LazyRelation(prop)
        proxy_cls = type(meta.proxy_class_name, (EntityProxy, entity_cls), namespace)
        self._proxy_classes[entity_cls] = proxy_cls
        return proxy_cls

    def from_node(self, node: "NodeRecord", meta: "EntityMeta", manager: typing.Any) -> EntityProxy:
        """Instantiate an empty proxy for a stored node, bypassing the mapped class' __init__."""
        proxy_cls = self.get_proxy(meta.entity_class, meta)
        proxy = proxy_cls.__new__(proxy_cls)
        proxy.__graph_manager__ = weakref.ref(manager)
        proxy.__graph_node_id__ = node.id
        return proxy
