import os
import typing

import attr


@attr.s(auto_attribs=True, frozen=True)
class ManagerConfig:
    date_format: str = "%Y-%m-%d %H:%M:%S"
    # node property names the manager writes next to the mapped properties
    class_key: str = "class"
    creation_date_key: str = "creationDate"
    update_date_key: str = "updateDate"


@attr.s(auto_attribs=True, frozen=True)
class Neo4jConfig:
    url: str = "bolt://localhost:7687"
    user: str = "neo4j"
    password: typing.Optional[str] = None
    database: typing.Optional[str] = None

    @classmethod
    def from_env(cls, environ: typing.Mapping[str, str] = None) -> "Neo4jConfig":
        environ = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            url=environ.get("NEO4J_URL", defaults.url),
            user=environ.get("NEO4J_USER", defaults.user),
            password=environ.get("NEO4J_PASSWORD", defaults.password),
            database=environ.get("NEO4J_DATABASE", defaults.database),
        )

    @property
    def auth(self) -> typing.Optional[typing.Tuple[str, str]]:
        if self.password is None:
            return None
        return self.user, self.password
