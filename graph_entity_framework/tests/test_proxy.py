import typing

import pytest

from graph_entity_framework import EntityManager, EntityProxy, MetaRepository, ProxyFactory
from graph_entity_framework.exceptions import DetachedProxy
from graph_entity_framework.proxy import LazyRelation, is_relation_loaded
from graph_entity_framework.storages import NodeRecord
from graph_entity_framework.tests.entities import Cinema, Movie, Person


@pytest.fixture()
def proxy_factory() -> ProxyFactory:
    return ProxyFactory()


def test_proxy_class_extends_entity(proxy_factory: ProxyFactory, meta_repository: MetaRepository) -> None:
    proxy_cls = proxy_factory.get_proxy(Movie, meta_repository.get(Movie))

    assert proxy_cls.__name__ == "MovieProxy"
    assert issubclass(proxy_cls, Movie)
    assert issubclass(proxy_cls, EntityProxy)
    assert isinstance(vars(proxy_cls)["actors"], LazyRelation)
    assert isinstance(vars(proxy_cls)["main_actor"], LazyRelation)
    assert "title" not in vars(proxy_cls)


def test_proxy_class_is_cached(proxy_factory: ProxyFactory, meta_repository: MetaRepository) -> None:
    meta = meta_repository.get(Movie)
    proxy_cls = proxy_factory.get_proxy(Movie, meta)

    assert proxy_factory.get_proxy(Movie(), meta) is proxy_cls
    assert proxy_factory.get_proxy(proxy_cls, meta) is proxy_cls


def test_from_node_skips_init(
    proxy_factory: ProxyFactory, meta_repository: MetaRepository, entity_manager: EntityManager
) -> None:
    meta = meta_repository.get(Person)

    proxy = proxy_factory.from_node(NodeRecord(7, ("Person",), {"first_name": "Sigourney"}), meta, entity_manager)

    assert proxy.__graph_node_id__ == 7
    assert proxy.__graph_manager__() is entity_manager
    assert "first_name" not in vars(proxy)
    assert repr(proxy) == "<PersonProxy node=7>"


def test_relations_load_once(make_manager: typing.Callable[[], EntityManager]) -> None:
    writer = make_manager()
    cinema = Cinema(name="Rex", presented_movies=[Movie(title="Alien")])
    writer.persist(cinema)
    writer.flush()

    reader = make_manager()
    proxy = reader.find(Cinema, cinema.id)

    assert not is_relation_loaded(proxy, "presented_movies")
    movies = proxy.presented_movies
    assert is_relation_loaded(proxy, "presented_movies")
    assert proxy.presented_movies is movies
    assert [movie.title for movie in movies] == ["Alien"]


def test_assigning_relation_marks_it_loaded(make_manager: typing.Callable[[], EntityManager]) -> None:
    writer = make_manager()
    movie = Movie(title="Alien")
    writer.persist(movie)
    writer.flush()

    proxy = make_manager().find(Movie, movie.id)
    actor = Person(first_name="Sigourney")
    proxy.main_actor = actor

    assert is_relation_loaded(proxy, "main_actor")
    assert proxy.main_actor is actor


def test_plain_entities_have_loaded_relations() -> None:
    assert is_relation_loaded(Movie(), "actors")


def test_proxy_without_manager(proxy_factory: ProxyFactory, meta_repository: MetaRepository) -> None:
    meta = meta_repository.get(Movie)
    proxy_cls = proxy_factory.get_proxy(Movie, meta)
    proxy = proxy_cls.__new__(proxy_cls)

    with pytest.raises(DetachedProxy):
        proxy.actors
