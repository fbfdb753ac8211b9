from graph_entity_framework.entity import Auto, Entity, ManyToMany, ManyToOne, Property
from graph_entity_framework.exceptions import MappingError
from graph_entity_framework.manager import ENTITY_CREATE, RELATION_CREATE, EntityManager
from graph_entity_framework.meta import EntityMeta, PropertyMeta
from graph_entity_framework.proxy import EntityProxy, ProxyFactory
from graph_entity_framework.registry import MetaRepository
from graph_entity_framework.repository import Repository

__all__ = [
    "Auto",
    "Entity",
    "EntityManager",
    "EntityMeta",
    "EntityProxy",
    "ENTITY_CREATE",
    "ManyToMany",
    "ManyToOne",
    "MappingError",
    "MetaRepository",
    "Property",
    "PropertyMeta",
    "ProxyFactory",
    "RELATION_CREATE",
    "Repository",
]
