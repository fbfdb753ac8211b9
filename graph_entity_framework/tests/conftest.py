import typing

import pytest
from _pytest.config.argparsing import Parser

from graph_entity_framework import EntityManager, MetaRepository
from graph_entity_framework.storages.memory import InMemoryTransport


def pytest_addoption(parser: Parser) -> None:
    parser.addoption("--neo4j-url", action="store", default=None)
    parser.addoption("--neo4j-user", action="store", default="neo4j")
    parser.addoption("--neo4j-password", action="store", default=None)


@pytest.fixture()
def transport() -> InMemoryTransport:
    return InMemoryTransport()


@pytest.fixture()
def meta_repository() -> MetaRepository:
    return MetaRepository()


@pytest.fixture()
def make_manager(transport: InMemoryTransport, meta_repository: MetaRepository) -> typing.Callable[[], EntityManager]:
    # proxies only hold weak references to their manager, keep every manager alive for the whole test
    managers: typing.List[EntityManager] = []

    def factory() -> EntityManager:
        manager = EntityManager(transport, meta_repository)
        managers.append(manager)
        return manager

    return factory


@pytest.fixture()
def entity_manager(make_manager: typing.Callable[[], EntityManager]) -> EntityManager:
    return make_manager()
