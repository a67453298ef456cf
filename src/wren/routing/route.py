"""PathSegment, Route and RouteMatch frozen dataclasses."""

from dataclasses import dataclass
from typing import Literal, TypeAlias

from wren._internal.types import Handler

SegmentKind: TypeAlias = Literal["literal", "variable", "greedy"]


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Literal:  ``users``      (kind="literal", name="")
    Variable: ``:userId``    (kind="variable", name="userId")
    Greedy:   ``::filePath`` (kind="greedy", name="filePath")
    """

    value: str
    kind: SegmentKind = "literal"
    name: str = ""

    @property
    def is_variable(self) -> bool:
        """True for both single-segment and greedy variables."""
        return self.kind != "literal"


@dataclass(frozen=True, slots=True)
class Route:
    """A registered route: the terminal handler of one method + path."""

    method: str
    path: str
    handler: Handler


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    route_params: dict[str, str]
