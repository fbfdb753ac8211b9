import typing

import pytest

from graph_entity_framework import EntityManager, Repository
from graph_entity_framework.exceptions import PropertyNotFound, PropertyNotIndexed
from graph_entity_framework.tests.entities import Movie, MovieRepository, Person


@pytest.fixture()
def stored_movies(entity_manager: EntityManager) -> typing.List[Movie]:
    movies = [
        Movie(title="Alien", movie_registry_code="alien", category="horror"),
        Movie(title="Aliens", movie_registry_code="aliens", category="action"),
        Movie(title="The Thing", movie_registry_code="thing", category="horror"),
    ]
    for movie in movies:
        entity_manager.persist(movie)
    entity_manager.flush()
    return movies


def test_find_one_by_indexed_property(make_manager: typing.Callable[[], EntityManager], stored_movies) -> None:
    repository = make_manager().get_repository(Movie)

    movie = repository.find_one_by_movie_registry_code("aliens")

    assert movie.title == "Aliens"
    assert movie.id == stored_movies[1].id


def test_find_by_indexed_property(make_manager: typing.Callable[[], EntityManager], stored_movies) -> None:
    repository = make_manager().get_repository(Movie)

    assert sorted(movie.title for movie in repository.find_by_category("horror")) == ["Alien", "The Thing"]
    assert len(repository.find_by_movie_registry_code("thing")) == 1
    assert repository.find_by_movie_registry_code("missing") == []
    assert repository.find_one_by_movie_registry_code("missing") is None


def test_camel_case_finders(make_manager: typing.Callable[[], EntityManager], stored_movies) -> None:
    repository = make_manager().get_repository(Movie)

    assert repository.findOneByMovieRegistryCode("alien").title == "Alien"
    assert len(repository.findByCategory("horror")) == 2


def test_finders_go_through_identity_map(entity_manager: EntityManager, stored_movies) -> None:
    repository = entity_manager.get_repository(Movie)

    assert repository.find_one_by_movie_registry_code("alien") is stored_movies[0]


def test_find_by_multiple_criteria(make_manager: typing.Callable[[], EntityManager], stored_movies) -> None:
    repository = make_manager().get_repository(Movie)

    found = repository.find_by(category="horror", movie_registry_code="thing")

    assert [movie.title for movie in found] == ["The Thing"]
    assert repository.find_one_by(category="action", movie_registry_code="thing") is None


def test_find_by_requires_criteria(entity_manager: EntityManager) -> None:
    with pytest.raises(TypeError):
        entity_manager.get_repository(Movie).find_by()


def test_find_by_identity(make_manager: typing.Callable[[], EntityManager], stored_movies) -> None:
    repository = make_manager().get_repository(Movie)

    assert repository.find(stored_movies[2].id).title == "The Thing"


def test_reindexing_replaces_previous_value(
    make_manager: typing.Callable[[], EntityManager], entity_manager: EntityManager, stored_movies
) -> None:
    stored_movies[0].category = "classic"
    entity_manager.persist(stored_movies[0])
    entity_manager.flush()

    repository = make_manager().get_repository(Movie)

    assert [movie.title for movie in repository.find_by_category("horror")] == ["The Thing"]
    assert repository.find_one_by_category("classic").title == "Alien"


def test_missing_property(entity_manager: EntityManager) -> None:
    repository = entity_manager.get_repository(Movie)

    with pytest.raises(PropertyNotFound):
        repository.find_by_movie_registration_code("alien")


def test_property_without_index(entity_manager: EntityManager) -> None:
    repository = entity_manager.get_repository(Movie)

    with pytest.raises(PropertyNotIndexed):
        repository.find_by_title("Alien")


def test_unknown_attribute(entity_manager: EntityManager) -> None:
    with pytest.raises(AttributeError):
        entity_manager.get_repository(Movie).remove_all


def test_custom_repository_class(entity_manager: EntityManager, stored_movies) -> None:
    repository = entity_manager.get_repository(Movie)

    assert isinstance(repository, MovieRepository)
    assert repository.find_by_code("thing") is stored_movies[2]


def test_default_repository_class(entity_manager: EntityManager) -> None:
    repository = entity_manager.get_repository(Person)

    assert type(repository) is Repository
    assert repository.meta.entity_class is Person


def test_repository_is_cached_per_manager(make_manager: typing.Callable[[], EntityManager]) -> None:
    manager = make_manager()

    assert manager.get_repository(Movie) is manager.get_repository(Movie)
    assert make_manager().get_repository(Movie) is not manager.get_repository(Movie)


def test_hasattr_reports_unusable_finders(entity_manager: EntityManager) -> None:
    repository = entity_manager.get_repository(Movie)

    assert hasattr(repository, "find_by_category")
    assert not hasattr(repository, "find_by_movie_registration_code")
    assert not hasattr(repository, "find_one_by_title")
