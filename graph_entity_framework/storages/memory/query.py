"""Gremlin-like traversals understood by the in-memory transport.

Only a small subset is supported::

    g.v(:movie).map
    g.v(:movie).outE.map
    g.v(12).out('actor').map
    g.v(:person).inE('actor').outV

The start vertex is either a ``:name`` parameter or a literal integer id. ``map`` may only be the last step.
"""
import re
import typing

import attr

from graph_entity_framework.storages import TransportError

NODE_STEPS = ("out", "in", "outE", "inE")
EDGE_STEPS = ("outV", "inV")

_TRAVERSAL = re.compile(r"^g\.v\((?P<start>:\w+|\d+)\)(?P<steps>(?:\.\w+(?:\('[^']*'\))?)*)$")
_STEP = re.compile(r"\.(?P<name>\w+)(?:\('(?P<label>[^']*)'\))?")


@attr.s(auto_attribs=True, frozen=True)
class Step:
    name: str
    label: typing.Optional[str] = None


@attr.s(auto_attribs=True, frozen=True)
class Traversal:
    start: typing.Union[str, int]
    steps: typing.Tuple[Step, ...] = ()

    def start_id(self, parameters: typing.Dict[str, typing.Any]) -> typing.Any:
        if isinstance(self.start, int):
            return self.start
        try:
            return parameters[self.start]
        except KeyError:
            raise TransportError(f"Parameter {self.start!r} is not bound")


def parse(text: str) -> Traversal:
    match = _TRAVERSAL.match(text.strip())
    if not match:
        raise TransportError(f"Unsupported traversal: {text!r}")

    start = match.group("start")
    steps = tuple(Step(step.group("name"), step.group("label")) for step in _STEP.finditer(match.group("steps")))
    for index, step in enumerate(steps):
        if step.name == "map":
            if index != len(steps) - 1:
                raise TransportError("map must be the last step")
        elif step.name not in NODE_STEPS + EDGE_STEPS:
            raise TransportError(f"Unsupported step {step.name!r}")
    return Traversal(start=int(start) if start.isdigit() else start[1:], steps=steps)
