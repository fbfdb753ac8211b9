import typing
import uuid
from datetime import date, datetime

from graph_entity_framework import Auto, Entity, ManyToMany, ManyToOne, Property, Repository


class MovieRepository(Repository):
    def find_by_code(self, code: str) -> typing.Optional["Movie"]:
        return self.find_one_by_movie_registry_code(code)


class Person(Entity):
    id: int = Auto()
    first_name: typing.Optional[str] = Property()
    last_name: typing.Optional[str] = Property()
    birth_date: typing.Optional[date] = Property(format="date")


class Movie(Entity, repository_class=MovieRepository):
    id: int = Auto()
    title: typing.Any = Property()
    movie_registry_code: str = Property(index=True, factory=lambda: uuid.uuid4().hex)
    category: typing.Optional[str] = Property(index=True)
    release_date: typing.Optional[datetime] = Property()
    blob: typing.Any = Property(format="json")
    tags: typing.Optional[typing.Dict[str, str]] = Property()
    actors: typing.List[Person] = ManyToMany(relation="actor")
    main_actor: typing.Optional[Person] = ManyToOne(relation="mainActor")
    cinemas: typing.List["Cinema"] = ManyToMany(relation="presentedMovie", direction="from", read_only=True)
    watched: bool = False


class Cinema(Entity):
    id: int = Auto()
    name: typing.Optional[str] = Property()
    presented_movies: typing.List[Movie] = ManyToMany(relation="presentedMovie")
    rejected_movies: typing.List[Movie] = ManyToMany(relation="rejectedMovie", write_only=True)


class Band(Entity):
    id: int = Auto()
    name: typing.Optional[str] = Property()
    members: typing.List["Musician"] = ManyToMany(relation="plays", direction="from")


class Musician(Entity):
    id: int = Auto()
    name: typing.Optional[str] = Property()
    bands: typing.List[Band] = ManyToMany(relation="plays")


class FailedEntity(Entity):
    name: typing.Optional[str] = Property()


class DoubleIdentity(Entity):
    id: int = Auto()
    other_id: int = Auto()


class PlainObject:
    name = "plain"
